"""Test doubles for libmagic and sample file contents."""

import io
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from utils.exceptions import InvalidArgumentError, InvalidMagicFileError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32
PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n"

SIGNATURES = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"%PDF-", "application/pdf"),
    (b"GIF89a", "image/gif"),
]


def classify(sample: bytes) -> str:
    for signature, mime in SIGNATURES:
        if sample.startswith(signature):
            return mime
    if not sample:
        return "application/x-empty"
    return "text/plain"


@dataclass
class FakeMagicBackend:
    """Stands in for libmagic; records every open and lookup."""

    opened: List[Optional[str]] = field(default_factory=list)
    lookups: List[str] = field(default_factory=list)
    custom_results: Dict[str, str] = field(default_factory=dict)
    broken_files: Set[str] = field(default_factory=set)

    def open(self, magic_file: Optional[str] = None) -> "FakeDetector":
        if magic_file in self.broken_files:
            raise InvalidMagicFileError(magic_file, "bad magic")
        self.opened.append(magic_file)
        return FakeDetector(self, magic_file)

    def load(self, magic_file: str) -> "FakeDetector":
        if not os.path.isfile(magic_file):
            raise InvalidArgumentError(f'The given magicfile ("{magic_file}") could not be read')
        return self.open(magic_file)


class FakeDetector:
    def __init__(self, backend: FakeMagicBackend, magic_file: Optional[str]):
        self.backend = backend
        self.magic_file = magic_file

    def _result(self, sample: bytes) -> str:
        if self.magic_file in self.backend.custom_results:
            return self.backend.custom_results[self.magic_file]
        return classify(sample)

    def from_file(self, path: str) -> str:
        self.backend.lookups.append(path)
        with open(path, "rb") as handle:
            return self._result(handle.read(64))

    def from_buffer(self, buffer: bytes) -> str:
        self.backend.lookups.append("<buffer>")
        return self._result(buffer)




class NonSeekableStream(io.RawIOBase):
    """Readable stream that rejects tell/seek, like a pipe or socket."""

    def __init__(self, data: bytes):
        self._data = data
        self._offset = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        chunk = self._data[self._offset:self._offset + len(buffer)]
        buffer[:len(chunk)] = chunk
        self._offset += len(chunk)
        return len(chunk)


class BrokenStream(io.RawIOBase):
    """Readable stream whose reads fail."""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        raise OSError("connection reset")
