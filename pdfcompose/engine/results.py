"""Result types returned by the composition engine."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from pypdf import PdfReader


@dataclass(frozen=True)
class NamedBuffer:
    """A serialized output document and the file name suggested for it."""

    name: str
    data: bytes

    @property
    def byte_length(self) -> int:
        return len(self.data)

    def page_count(self) -> int:
        """Re-read the buffer and return its page count."""

        return len(PdfReader(BytesIO(self.data)).pages)

    def __str__(self) -> str:
        return f"NamedBuffer(name={self.name!r}, bytes={self.byte_length})"


OperationResult = NamedBuffer | list[NamedBuffer]


__all__ = ["NamedBuffer", "OperationResult"]
