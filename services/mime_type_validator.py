"""
MIME Type Validator - libmagic backed upload validation

Checks a file's content type against an allow-list. Detection order:
    1. Cached detection for the same content and signature database
    2. libmagic lookup (custom magic file when enabled, else libmagic default)
    3. Header-declared type, only if header checking is enabled and 1-2 gave nothing

Matching accepts an exact allow-list hit, or any allow-list entry equal to a
component of the detected type split on '/', '-' or ';'. Giving "image"
therefore accepts every image/* type.
"""

import hashlib
import os
from collections.abc import Mapping, Sequence
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from config.settings import Settings, get_settings
from models.schemas import MESSAGE_TEMPLATES, MimeTypeError
from services.file_info import FileInfo, resolve_file_info
from services.magic_database import (
    DEFAULT_MAGIC_FILES,
    environment_magic_file,
    is_magic_available,
    load_magic_file,
    open_magic,
    sniff,
)
from utils.exceptions import InvalidArgumentError, MagicUnavailableError, MimeValidatorError
from utils.logger import get_logger

logger = get_logger(__name__)

MagicFileOption = Union[str, bool, None]


def mime_type_matches(detected: str, allowed: Iterable[str]) -> bool:
    """Return True if ``detected`` is allowed, exactly or by component."""
    allowed = list(allowed)
    if detected in allowed:
        return True

    components = detected.split("/") + detected.split("-") + detected.split(";")
    return any(mime in components for mime in allowed)


class MimeTypeValidator:
    """
    Validates the MIME type of a file against a configured allow-list.

    After ``is_valid`` the detected type is available as ``type``, the
    resolved filename as ``value`` and failure messages via ``get_messages``.
    """

    MAGIC_SAMPLE_SIZE = 131072  # 128KB read from streams for buffer detection
    CACHE_MAX_SIZE = 1024

    def __init__(
        self,
        mime_type: Union[str, Sequence[str], None] = None,
        *,
        magic_file: MagicFileOption = None,
        enable_header_check: bool = False,
        disable_magic_file: bool = False,
    ):
        self._mime_types: List[str] = []
        self._magic_file: MagicFileOption = None
        self._enable_header_check = False
        self._disable_magic_file = False

        # Detector handle; opened per validation and dropped afterwards
        self._magic: Optional[Any] = None

        self._detection_cache: Dict[Tuple[Any, ...], str] = {}
        self._messages: Dict[str, str] = {}

        self.type: Optional[str] = None
        self.value: Optional[str] = None

        if magic_file is not None:
            self.set_magic_file(magic_file)
        self.enable_header_check(enable_header_check)
        self.disable_magic_file(disable_magic_file)
        if mime_type is not None:
            self.set_mime_type(mime_type)

    @classmethod
    def from_options(cls, options: Union[str, Sequence[Any], Mapping[Any, Any], None]) -> "MimeTypeValidator":
        """
        Build a validator from loosely shaped options.

        A string is a comma-separated allow-list and a sequence is a list of
        types. A mapping may carry ``mime_type``, ``magic_file``,
        ``enable_header_check`` and ``disable_magic_file``, plus integer-keyed
        entries that are treated as extra types.
        """
        if options is None:
            return cls()

        if isinstance(options, str):
            return cls(options)

        if isinstance(options, Mapping):
            remaining = dict(options)
            validator = cls()

            if remaining.get("magic_file") is not None:
                validator.set_magic_file(remaining.pop("magic_file"))
            remaining.pop("magic_file", None)

            if remaining.get("enable_header_check") is not None:
                validator.enable_header_check(bool(remaining.pop("enable_header_check")))
            remaining.pop("enable_header_check", None)

            if "disable_magic_file" in remaining:
                validator.disable_magic_file(bool(remaining.pop("disable_magic_file")))

            if "mime_type" in remaining:
                mime_type = remaining.pop("mime_type")
                if mime_type is not None:
                    validator.set_mime_type(mime_type)

            for key in [key for key in remaining if isinstance(key, int)]:
                validator.add_mime_type(remaining.pop(key))

            if remaining:
                raise InvalidArgumentError(
                    f"Unknown validator options: {', '.join(sorted(map(str, remaining)))}"
                )

            return validator

        if isinstance(options, Sequence):
            return cls(list(options))

        raise InvalidArgumentError("Invalid options to validator provided")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "MimeTypeValidator":
        settings = settings or get_settings()
        return cls(
            settings.allowed_types,
            enable_header_check=settings.MIME_ENABLE_HEADER_CHECK,
            disable_magic_file=settings.MIME_DISABLE_MAGIC_FILE,
        )

    # Signature database options

    def get_magic_file(self) -> MagicFileOption:
        """
        Return the configured magic file, discovering one if none is set.

        Discovery tries the MAGIC setting and then the common system
        locations. It settles on False when nothing usable exists.
        """
        if self._magic_file is None:
            if not is_magic_available():
                self._magic_file = False
                return self._magic_file

            env_file = environment_magic_file()
            if env_file:
                self.set_magic_file(env_file)
                if self._magic_file is None:
                    self._magic_file = False
                return self._magic_file

            for candidate in DEFAULT_MAGIC_FILES:
                try:
                    self.set_magic_file(candidate)
                except MimeValidatorError:
                    continue

                if isinstance(self._magic_file, str):
                    logger.debug(f"Discovered signature database | path={candidate}")
                    return self._magic_file

            if self._magic_file is None:
                self._magic_file = False

        return self._magic_file

    def set_magic_file(self, magic_file: MagicFileOption) -> "MimeTypeValidator":
        """
        Set the signature database to use.

        False pins libmagic's default database, while None or "" resets to
        autodiscovery.

        Raises:
            MagicUnavailableError: If libmagic is not installed
            InvalidArgumentError: If the file cannot be read
            InvalidMagicFileError: If libmagic cannot use the file
        """
        if magic_file is False:
            self._magic_file = False
        elif not magic_file:
            self._magic_file = None
        elif not is_magic_available():
            self._magic_file = None
            raise MagicUnavailableError("Magicfile can not be set; libmagic is not installed")
        else:
            path = str(magic_file)
            try:
                self._magic = load_magic_file(path)
            except MimeValidatorError:
                self._magic = None
                raise
            self._magic_file = path

        return self

    def disable_magic_file(self, disable: bool) -> "MimeTypeValidator":
        self._disable_magic_file = bool(disable)
        return self

    def is_magic_file_disabled(self) -> bool:
        return self._disable_magic_file

    # Header check

    def enable_header_check(self, header_check: bool = True) -> "MimeTypeValidator":
        """Trust the declared (client supplied) type when sniffing yields nothing."""
        self._enable_header_check = bool(header_check)
        return self

    def get_header_check(self) -> bool:
        return self._enable_header_check

    # Allow-list

    def get_mime_type(self, as_list: bool = False) -> Union[str, List[str]]:
        if as_list:
            return list(self._mime_types)
        return ",".join(self._mime_types)

    def set_mime_type(self, mime_type: Union[str, Sequence[str]]) -> "MimeTypeValidator":
        self._mime_types = []
        return self.add_mime_type(mime_type)

    def add_mime_type(self, mime_type: Union[str, Sequence[str]]) -> "MimeTypeValidator":
        """
        Append types to the allow-list.

        Raises:
            InvalidArgumentError: If mime_type is neither a string nor a sequence
        """
        if isinstance(mime_type, str):
            entries: Sequence[Any] = mime_type.split(",")
        elif isinstance(mime_type, Sequence):
            entries = mime_type
        else:
            raise InvalidArgumentError("Invalid options to validator provided")

        merged = list(self._mime_types)
        for content in entries:
            if not isinstance(content, str) or content == "":
                continue
            merged.append(content.strip())

        self._mime_types = list(dict.fromkeys(entry for entry in merged if entry))
        return self

    # Validation

    def is_valid(self, value: Any, file: Optional[Mapping] = None) -> bool:
        """
        Return True if the file's MIME type matches the allow-list.

        Args:
            value: Path, upload descriptor mapping or uploaded-file handle
            file: Upload descriptor accompanying a path string (optional)
        """
        self._messages = {}
        self.type = None

        file_info = resolve_file_info(value, file, has_type=True)
        self.value = file_info.filename

        if not file_info.is_readable():
            self._error(MimeTypeError.NOT_READABLE)
            return False

        if is_magic_available():
            self.type = self._detect_with_magic(file_info)

        if self.type is None and self.get_header_check():
            self.type = file_info.filetype or None
            if self.type:
                logger.debug(f"Using declared type | file={self.value} | type={self.type}")

        if self.type is None:
            self._error(MimeTypeError.NOT_DETECTED)
            return False

        if mime_type_matches(self.type, self._mime_types):
            logger.info(f"File type accepted | file={self.value} | type={self.type}")
            return True

        self._error(MimeTypeError.FALSE_TYPE)
        return False

    def get_messages(self) -> Dict[str, str]:
        return dict(self._messages)

    def _error(self, code: MimeTypeError) -> None:
        message = MESSAGE_TEMPLATES[code].replace("%type%", str(self.type))
        self._messages[code.value] = message
        logger.info(f"File type rejected | file={self.value} | code={code.value} | type={self.type}")

    def _detect_with_magic(self, file_info: FileInfo) -> Optional[str]:
        magic_file = self.get_magic_file()
        use_file = magic_file if isinstance(magic_file, str) and not self._disable_magic_file else None

        sample: Optional[bytes] = None
        path: Optional[str] = None
        if file_info.stream is not None:
            try:
                sample = file_info.read_sample(self.MAGIC_SAMPLE_SIZE)
            except OSError as exc:
                logger.warning(f"Upload stream could not be sampled | file={self.value} | error={exc}")
                return None
        else:
            path = os.path.realpath(file_info.path or "")

        cache_key = self._cache_key(use_file, path, sample)
        if cache_key is not None:
            cached = self._detection_cache.get(cache_key)
            if cached:
                logger.debug(f"Cache hit for detection | file={self.value} | type={cached}")
                return cached

        if use_file is None:
            self._magic = None

        try:
            if self._magic is None and use_file is not None:
                try:
                    self._magic = open_magic(use_file)
                except MimeValidatorError as exc:
                    logger.warning(f"Custom signature database unusable | path={use_file} | error={exc}")
                    self._magic = None

            if self._magic is None:
                try:
                    self._magic = open_magic()
                except MimeValidatorError as exc:
                    logger.error(f"Default signature database unusable | error={exc}")
                    return None

            detected = sniff(self._magic, path=path, buffer=sample)
        finally:
            self._magic = None

        if detected and cache_key is not None:
            self._cache_set(cache_key, detected)

        return detected

    def _cache_key(
        self,
        magic_file: Optional[str],
        path: Optional[str],
        sample: Optional[bytes],
    ) -> Optional[Tuple[Any, ...]]:
        if sample is not None:
            return ("sample", hashlib.sha256(sample).hexdigest(), magic_file)

        try:
            stat = os.stat(path or "")
        except OSError:
            return None

        return ("path", path, stat.st_size, stat.st_mtime_ns, magic_file)

    def _cache_set(self, key: Tuple[Any, ...], detected: str) -> None:
        if len(self._detection_cache) >= self.CACHE_MAX_SIZE:
            oldest_key = next(iter(self._detection_cache))
            del self._detection_cache[oldest_key]
        self._detection_cache[key] = detected
