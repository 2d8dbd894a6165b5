"""PSF1 bitmap console fonts."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Union

PSF1_MAGIC = 0x0436
GLYPH_WIDTH = 8
_HEADER = struct.Struct("<HBB")


class PsfError(ValueError):
    """Raised for malformed font data."""


@dataclass(frozen=True)
class Glyph:
    """One character bitmap, row-major, ``True`` where a pixel is set."""

    height: int
    width: int
    map: tuple[bool, ...]


@dataclass(frozen=True)
class Font:
    """A PSF1 font held in memory."""

    data: bytes = field(repr=False)
    mode: int
    char_size: int
    char_count: int

    @classmethod
    def from_bytes(cls, data: bytes) -> Font:
        data = bytes(data)
        if len(data) < _HEADER.size:
            raise PsfError("font file is too short for a PSF1 header")
        magic, mode, char_size = _HEADER.unpack_from(data)
        if magic != PSF1_MAGIC:
            raise PsfError("invalid font file")
        return cls(
            data=data,
            mode=mode,
            char_size=char_size,
            char_count=256 if mode == 0x1 else 512,
        )

    def glyph(self, char: str) -> Glyph:
        """The bitmap of a single character."""
        start = _HEADER.size + ord(char) * self.char_size
        rows = self.data[start : start + self.char_size]
        if len(rows) < self.char_size:
            raise PsfError(f"no glyph data for {char!r}")
        bits = tuple(
            bool((row >> shift) & 1)
            for row in rows
            for shift in range(GLYPH_WIDTH - 1, -1, -1)
        )
        return Glyph(height=self.char_size, width=GLYPH_WIDTH, map=bits)


def load_font(path: Union[str, PathLike]) -> Font:
    """Read a PSF1 font from a file."""
    return Font.from_bytes(Path(path).read_bytes())