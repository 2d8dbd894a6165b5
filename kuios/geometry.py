"""Colours, sizes and layout primitives shared by the widget toolkit."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

_U32_MAX = 0xFFFF_FFFF
_NUMBER = re.compile(r"\+?[0-9]+")


def kui_ceil(x: float) -> int:
    """Round a positive fraction up; non-positive values are truncated toward zero."""
    int_part = int(x)
    if x > 0 and x > int_part:
        return int_part + 1
    return int_part


def _channel(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"colour channel {name} out of range: {value}")


@dataclass(frozen=True)
class Color:
    """An RGBA colour with 8-bit channels."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            _channel(name, getattr(self, name))

    @classmethod
    def rgb(cls, r: int, g: int, b: int) -> Color:
        """An opaque-looking colour; alpha is left at zero."""
        return cls(r, g, b, 0)

    @classmethod
    def rgba(cls, r: int, g: int, b: int, a: int) -> Color:
        return cls(r, g, b, a)

    def to_u16(self) -> int:
        """Pack as RGB565."""
        return ((self.r >> 3) << 11) | ((self.g >> 2) << 5) | (self.b >> 3)

    def to_u32(self) -> int:
        """Pack as ARGB8888."""
        return (self.a << 24) | (self.r << 16) | (self.g << 8) | self.b

    def to_u24(self) -> bytes:
        """Three bytes in framebuffer order: blue, green, red."""
        return bytes((self.b, self.g, self.r))

    @classmethod
    def from_u16(cls, value: int) -> Color:
        """Unpack RGB565, replicating high bits into the low ones."""
        r5 = (value >> 11) & 0x1F
        g6 = (value >> 5) & 0x3F
        b5 = value & 0x1F
        return cls(
            ((r5 << 3) | (r5 >> 2)) & 0xFF,
            ((g6 << 2) | (g6 >> 4)) & 0xFF,
            ((b5 << 3) | (b5 >> 2)) & 0xFF,
            0xFF,
        )

    @classmethod
    def from_u32(cls, value: int) -> Color:
        """Unpack RGBA8888 with red in the top byte."""
        return cls(
            (value >> 24) & 0xFF,
            (value >> 16) & 0xFF,
            (value >> 8) & 0xFF,
            value & 0xFF,
        )

    @classmethod
    def from_u24(cls, value: int) -> Color:
        """Unpack RGB888 with red in the top byte; alpha is full."""
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, 0xFF)


@dataclass(frozen=True)
class Size:
    """A length that is either absolute pixels or a percentage of the parent."""

    absolute: Optional[int] = None
    relative: Optional[int] = None

    @classmethod
    def parse(cls, text: str) -> Size:
        """Parse ``"120"`` as pixels or ``"50%"`` as a percentage."""
        is_relative = text.endswith("%")
        number = text[:-1] if is_relative else text
        if not _NUMBER.fullmatch(number):
            raise ValueError(f"invalid size: {text!r}")
        value = int(number)
        if value > _U32_MAX:
            raise ValueError(f"size out of range: {text!r}")
        if is_relative:
            return cls(relative=value)
        return cls(absolute=value)

    @classmethod
    def fixed(cls, value: int) -> Size:
        if value < 0:
            raise ValueError(f"size cannot be negative: {value}")
        return cls(absolute=value)

    def resolve(self, parent: int) -> int:
        """Pixels this size takes inside a parent of the given extent."""
        if self.absolute is not None:
            return self.absolute
        if self.relative is None:
            raise ValueError("size has neither an absolute nor a relative value")
        return kui_ceil(parent / 100.0 * self.relative)


class Align(Enum):
    CENTER = "center"
    LEFT = "left"


class Display(Enum):
    """Layout mode of a container; a Grid instance stands for grid layout."""

    FLEX = "flex"
    NONE = "none"


@dataclass(frozen=True)
class Grid:
    """Grid layout with a fixed number of columns and rows."""

    columns: int
    rows: int

    def __post_init__(self) -> None:
        if self.columns < 1 or self.rows < 1:
            raise ValueError("a grid needs at least one column and one row")


DisplayMode = Union[Display, Grid]


@dataclass
class ScreenStats:
    """Geometry and colour depth of the screen."""

    depth: int = 8
    width: Size = field(default_factory=lambda: Size.fixed(320))
    height: Size = field(default_factory=lambda: Size.fixed(200))
    real_x: int = 0
    real_y: int = 0