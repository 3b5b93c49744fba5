import mimetypes
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import IO, Any, Optional

from utils.exceptions import InvalidArgumentError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FileInfo:
    """Normalized view of a validation target.

    Exactly one of ``path`` / ``stream`` is set for a usable target; both are
    ``None`` when the caller passed nothing resolvable.
    """

    filename: Optional[str]
    filetype: Optional[str] = None
    path: Optional[str] = None
    stream: Optional[IO[bytes]] = None

    def is_readable(self) -> bool:
        if self.stream is not None:
            if getattr(self.stream, "closed", False):
                return False
            readable = getattr(self.stream, "readable", None)
            return bool(readable()) if callable(readable) else True

        if not self.path:
            return False

        return os.path.isfile(self.path) and os.access(self.path, os.R_OK)

    def read_sample(self, size: int) -> bytes:
        """
        Read up to ``size`` leading bytes.

        Seekable streams keep their cursor; non-seekable streams are read from
        their current position and stay consumed.
        """
        if self.stream is not None:
            seekable = getattr(self.stream, "seekable", None)
            if callable(seekable) and not seekable():
                return self.stream.read(size) or b""

            position = self.stream.tell()
            try:
                self.stream.seek(0)
                return self.stream.read(size)
            finally:
                self.stream.seek(position)

        if not self.path:
            return b""

        with open(self.path, "rb") as handle:
            return handle.read(size)


def resolve_file_info(value: Any, file: Optional[Mapping] = None, has_type: bool = False) -> FileInfo:
    """
    Normalize a validation target into a FileInfo.

    Accepted shapes:
        - path string plus a separate upload descriptor (legacy form)
        - upload descriptor mapping with ``tmp_name``, ``name`` and optional ``type``
        - uploaded-file handle exposing ``file``, ``filename`` and ``content_type``
        - plain filesystem path

    Args:
        value: The validation target
        file: Upload descriptor accompanying a path string (optional)
        has_type: Whether to resolve the declared content type

    Raises:
        InvalidArgumentError: If a descriptor mapping is missing required keys
            or the target has an unsupported type
    """
    if isinstance(value, str) and isinstance(file, Mapping):
        return _legacy_file_info(file, has_type)

    if isinstance(value, Mapping):
        return _descriptor_file_info(value, has_type)

    if _is_upload_handle(value):
        return _upload_file_info(value, has_type)

    return _path_file_info(value, has_type)


def _legacy_file_info(file: Mapping, has_type: bool) -> FileInfo:
    if "name" not in file:
        raise InvalidArgumentError("Value array must be in upload descriptor format")

    path = file.get("tmp_name")
    return FileInfo(
        filename=file["name"],
        filetype=file.get("type") if has_type else None,
        path=path,
    )


def _descriptor_file_info(value: Mapping, has_type: bool) -> FileInfo:
    if "tmp_name" not in value or "name" not in value:
        raise InvalidArgumentError("Value array must be in upload descriptor format")

    path = value["tmp_name"]
    return FileInfo(
        filename=value["name"],
        filetype=value.get("type") if has_type else None,
        path=path,
    )


def _is_upload_handle(value: Any) -> bool:
    return all(hasattr(value, attr) for attr in ("file", "filename", "content_type"))


def _upload_file_info(value: Any, has_type: bool) -> FileInfo:
    filename = value.filename
    return FileInfo(
        filename=filename,
        filetype=value.content_type if has_type else None,
        stream=value.file,
    )


def _path_file_info(value: Any, has_type: bool) -> FileInfo:
    if value is None:
        return FileInfo(filename=None)

    try:
        path = os.fspath(value)
    except TypeError as exc:
        raise InvalidArgumentError(
            f"Unsupported validation target of type {type(value).__name__}"
        ) from exc

    if isinstance(path, bytes):
        path = os.fsdecode(path)

    filetype = None
    if has_type and path:
        filetype, _ = mimetypes.guess_type(path)
        if filetype:
            logger.debug(f"Declared type from extension | path={path} | type={filetype}")

    return FileInfo(filename=path or None, filetype=filetype, path=path or None)
