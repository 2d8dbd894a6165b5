"""Uncompressed Targa (TGA) images."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Union

_HEADER = struct.Struct("<BBBHHBHHHHBB")
HEADER_SIZE = _HEADER.size


class TargaError(ValueError):
    """Raised for malformed image data."""


@dataclass(frozen=True)
class TargaHeader:
    """The fixed 18-byte Targa header."""

    id_length: int = 0
    colormap: int = 0
    encoding: int = 0
    cmap_origin: int = 0
    cmap_length: int = 0
    cmap_depth: int = 0
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    bpp: int = 0
    pixel_type: int = 0

    @classmethod
    def parse(cls, data: bytes) -> TargaHeader:
        if len(data) < HEADER_SIZE:
            raise TargaError("image is too short for a Targa header")
        return cls(*_HEADER.unpack_from(data))


@dataclass(frozen=True)
class TargaImage:
    """A Targa header and the pixel data that follows it."""

    header: TargaHeader
    pixels: bytes = field(repr=False)

    @classmethod
    def from_bytes(cls, data: bytes) -> TargaImage:
        data = bytes(data)
        header = TargaHeader.parse(data)
        pixels = data[HEADER_SIZE:]
        if header.bpp in (24, 32):
            needed = header.width * header.height * (header.bpp // 8)
            if len(pixels) < needed:
                raise TargaError(
                    f"pixel data truncated: {len(pixels)} of {needed} bytes"
                )
        return cls(header=header, pixels=pixels)


def load_targa(path: Union[str, PathLike]) -> TargaImage:
    """Read a Targa image from a file."""
    return TargaImage.from_bytes(Path(path).read_bytes())