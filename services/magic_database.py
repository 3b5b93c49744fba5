"""
Signature database access - python-magic wrapper

Opens libmagic detectors (MIME mode) against either libmagic's compiled-in
database or a custom magic file, and discovers a default magic file from the
MAGIC setting or common system locations.
"""

import os
from typing import Any, Optional, Tuple, cast

try:
    import magic
    MAGIC_AVAILABLE = True
except ImportError:
    MAGIC_AVAILABLE = False
    magic = None

from config.settings import get_settings
from utils.exceptions import InvalidArgumentError, InvalidMagicFileError, MagicUnavailableError
from utils.logger import get_logger

logger = get_logger(__name__)

# Autodiscovery order when neither the caller nor MAGIC names a database
DEFAULT_MAGIC_FILES: Tuple[str, ...] = (
    "/usr/share/misc/magic",
    "/usr/share/misc/magic.mime",
    "/usr/share/misc/magic.mgc",
    "/usr/share/mime/magic",
    "/usr/share/mime/magic.mime",
    "/usr/share/mime/magic.mgc",
    "/usr/share/file/magic",
    "/usr/share/file/magic.mime",
    "/usr/share/file/magic.mgc",
)


def is_magic_available() -> bool:
    return MAGIC_AVAILABLE


def open_magic(magic_file: Optional[str] = None) -> Any:
    """
    Open a MIME-mode libmagic detector.

    Args:
        magic_file: Custom signature database; None uses libmagic's default

    Raises:
        MagicUnavailableError: If python-magic / libmagic is not installed
        InvalidMagicFileError: If libmagic rejects the database
    """
    if not MAGIC_AVAILABLE:
        raise MagicUnavailableError("Magicfile can not be set; libmagic is not installed")

    magic_module = cast(Any, magic)
    try:
        return magic_module.Magic(mime=True, magic_file=magic_file)
    except magic_module.MagicException as exc:
        raise InvalidMagicFileError(magic_file or "<default>", str(exc)) from exc


def load_magic_file(magic_file: str) -> Any:
    """
    Validate a magic file path and open a detector backed by it.

    Raises:
        MagicUnavailableError: If libmagic is not installed
        InvalidArgumentError: If the file is missing or unreadable
        InvalidMagicFileError: If libmagic cannot parse the file
    """
    if not MAGIC_AVAILABLE:
        raise MagicUnavailableError("Magicfile can not be set; libmagic is not installed")

    if not os.path.isfile(magic_file) or not os.access(magic_file, os.R_OK):
        raise InvalidArgumentError(f'The given magicfile ("{magic_file}") could not be read')

    detector = open_magic(magic_file)
    logger.debug(f"Loaded signature database | path={magic_file}")
    return detector


def sniff(detector: Any, path: Optional[str] = None, buffer: Optional[bytes] = None) -> Optional[str]:
    """
    Run a detector against a file path or an in-memory sample.

    Returns:
        The detected MIME type, or None if libmagic could not classify the input
    """
    try:
        if path is not None:
            detected = detector.from_file(path)
        else:
            detected = detector.from_buffer(buffer or b"")
    except OSError as exc:
        logger.warning(f"Signature lookup could not read input | path={path} | error={exc}")
        return None
    except cast(Any, magic).MagicException as exc:
        logger.warning(f"Signature lookup failed | path={path} | error={exc}")
        return None

    if not detected:
        return None

    return detected


def environment_magic_file() -> Optional[str]:
    """Return the MAGIC setting (read once per process), or None when blank."""
    value = get_settings().MAGIC
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
