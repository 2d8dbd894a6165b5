"""Widget tree: windows, frames, buttons, labels and images."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from .geometry import (
    Align,
    Color,
    Display,
    DisplayMode,
    Grid,
    ScreenStats,
    Size,
    kui_ceil,
)
from .targa import TargaImage

EventHandler = Callable[["Widget", int, int, int], None]

U32_MAX = 0xFFFF_FFFF
EXIT_LABEL = "x"
EXIT_SIZE = 19
ACTION_BAR_HEIGHT = 25

_ZERO = Size.fixed(0)
_FULL = Size.parse("100%")
_WHITE = Color.rgb(255, 255, 255)
_BLACK = Color.rgb(0, 0, 0)


def _new_id() -> int:
    return random.randint(10, 0xFFFF)


def do_nothing(widget: Widget, arg1: int, arg2: int, arg3: int) -> None:
    """The default event handler; it ignores the click."""
    return None


def _absolute(size: Size, what: str) -> int:
    if size.absolute is None:
        raise ValueError(f"{what} has not been resolved to pixels")
    return size.absolute


def _scaled(extent: int, size: Size) -> Size:
    assert size.relative is not None
    return Size(
        absolute=kui_ceil(extent / 100.0 * size.relative), relative=size.relative
    )


def _offset(base: int, extent: int, relative: int) -> int:
    return kui_ceil(base + extent / 100.0 * relative)


@dataclass(eq=False, kw_only=True)
class Widget:
    """A node of the widget tree; the base node draws nothing and has no layout."""

    id: int = field(default_factory=_new_id)
    x: Size = _ZERO
    y: Size = _ZERO
    width: Size = _ZERO
    height: Size = _ZERO
    color: Color = _WHITE
    padding: Size = _ZERO
    real_x: int = 0
    real_y: int = 0

    @property
    def pixel_width(self) -> int:
        return _absolute(self.width, "width")

    @property
    def pixel_height(self) -> int:
        return _absolute(self.height, "height")

    @property
    def pixel_padding(self) -> int:
        return _absolute(self.padding, "padding")

    def reload(
        self, px: int, py: int, pw: int, ph: int, display: DisplayMode
    ) -> None:
        """Recompute position and size inside a parent; a plain widget has none."""
        return None

    def _resolve_extent(self, pw: int, ph: int) -> None:
        if self.width.relative is not None:
            self.width = _scaled(pw, self.width)
        if self.height.relative is not None:
            self.height = _scaled(ph, self.height)

    def _resolve_padding(self, pw: int) -> None:
        if self.padding.relative is not None:
            self.padding = _scaled(pw, self.padding)

    def _place_real(self, px: int, py: int, pw: int, ph: int) -> None:
        if self.x.relative is not None:
            self.real_x = _offset(px, pw, self.x.relative)
        else:
            self.real_x = px + _absolute(self.x, "x")
        if self.y.relative is not None:
            self.real_y = _offset(py, ph, self.y.relative)
        else:
            self.real_y = py + _absolute(self.y, "y")

    def _place_absolute(self, px: int, py: int, pw: int, ph: int) -> None:
        if self.x.relative is not None:
            self.x = Size(
                absolute=_offset(px, pw, self.x.relative), relative=self.x.relative
            )
        if self.y.relative is not None:
            self.y = Size(
                absolute=_offset(py, ph, self.y.relative), relative=self.y.relative
            )
        self.real_x = px + _absolute(self.x, "x")
        self.real_y = py + _absolute(self.y, "y")


@dataclass(eq=False, kw_only=True)
class Frame(Widget):
    """A container that lays out its children."""

    text_color: Color = _BLACK
    border_radius: Size = _ZERO
    children: list[Widget] = field(default_factory=list)
    display: DisplayMode = Display.NONE

    def add(self, child: Widget) -> None:
        self.children.append(child)

    def reload(
        self, px: int, py: int, pw: int, ph: int, display: DisplayMode
    ) -> None:
        if display is Display.NONE or display is Display.FLEX:
            self._place_real(px, py, pw, ph)
            self._resolve_extent(pw, ph)
        self._resolve_padding(pw)
        if isinstance(self.display, Grid):
            del self.children[self.display.columns * self.display.rows :]


@dataclass(eq=False, kw_only=True)
class Button(Widget):
    """A clickable rectangle with a text label."""

    label: str = ""
    event: EventHandler = do_nothing
    border_radius: Size = _ZERO
    text_color: Color = _BLACK
    text_align: Align = Align.CENTER
    args: tuple[int, int, int] = (0, 0, 0)

    @property
    def is_exit_button(self) -> bool:
        return (
            self.label == EXIT_LABEL
            and self.width.absolute == EXIT_SIZE
            and self.height.absolute == EXIT_SIZE
        )

    def reload(
        self, px: int, py: int, pw: int, ph: int, display: DisplayMode
    ) -> None:
        if self.is_exit_button:
            self.real_x = px + pw - 22
            self.real_y = py - ACTION_BAR_HEIGHT + 3
            return
        if display is Display.NONE:
            self._place_absolute(px, py, pw, ph)
            self._resolve_extent(pw, ph)
        self._resolve_padding(pw)


@dataclass(eq=False, kw_only=True)
class Label(Widget):
    """A rectangle of text."""

    label: str = ""
    text_color: Color = _BLACK
    border_radius: Size = _ZERO
    ch_max: int = U32_MAX
    ch_min: int = 0
    text_align: Align = Align.LEFT

    def reload(
        self, px: int, py: int, pw: int, ph: int, display: DisplayMode
    ) -> None:
        if display is Display.NONE:
            self._place_absolute(px, py, pw, ph)
            self._resolve_extent(pw, ph)
        self._resolve_padding(pw)


@dataclass(eq=False, kw_only=True)
class InputLabel(Label):
    """A label that takes keyboard input when focused."""


@dataclass(eq=False, kw_only=True)
class Image(Widget):
    """A Targa picture scaled to the widget's size."""

    image: TargaImage
    width: Size = _FULL
    height: Size = _FULL
    event: EventHandler = do_nothing
    args: tuple[int, int, int] = (0, 0, 0)

    def reload(
        self, px: int, py: int, pw: int, ph: int, display: DisplayMode
    ) -> None:
        if display is not Display.NONE:
            return
        self._place_real(px, py, pw, ph)
        self._resolve_extent(pw, ph)
        self._resolve_padding(pw)


@dataclass(eq=False, kw_only=True)
class Window(Widget):
    """A top-level window placed on the screen."""

    name: str = ""
    border_radius: int = 0
    color: Color = Color.rgb(255, 120, 56)
    text_color: Color = _BLACK
    children: list[Widget] = field(default_factory=list)
    parent: ScreenStats = field(default_factory=ScreenStats)
    display: DisplayMode = Display.NONE
    action_bar: bool = True

    def __post_init__(self) -> None:
        self.resolve()

    def resolve(self) -> None:
        """Turn relative position and size into pixels of the parent screen."""
        parent_w = _absolute(self.parent.width, "screen width")
        parent_h = _absolute(self.parent.height, "screen height")
        if self.x.absolute is None and self.x.relative is not None:
            self.x = Size(
                absolute=parent_w // 100 * self.x.relative, relative=self.x.relative
            )
        if self.y.absolute is None and self.y.relative is not None:
            self.y = Size(
                absolute=parent_h // 100 * self.y.relative, relative=self.y.relative
            )
        if self.width.absolute is None and self.width.relative is not None:
            self.width = _scaled(parent_w, self.width)
        if self.height.absolute is None and self.height.relative is not None:
            self.height = _scaled(parent_h, self.height)

    def add(self, child: Widget) -> None:
        """Append a child, first fitting it to the window."""
        child.reload(0, 0, self.pixel_width, self.pixel_height, Display.NONE)
        self.children.append(child)

    def add_exit(self, child: Widget) -> None:
        """Append a child as it is, without fitting it."""
        self.children.append(child)