"""Mouse clicks, keyboard focus and custom key bindings for widget trees."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .widgets import Button, Frame, Image, InputLabel, Label, Widget, Window

KeyEvent = Callable[[Widget], None]

MAX_CUSTOM_KEYS = 64
BACKSPACE = "\x08"
IGNORED_KEY = "\x02"


@dataclass
class CustomKeys:
    """Key bindings that replace the default editing of input labels."""

    capacity: int = MAX_CUSTOM_KEYS
    bindings: list[tuple[str, KeyEvent]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.bindings)

    def add(self, char: str, event: KeyEvent) -> None:
        """Bind a key; bindings beyond the capacity are ignored."""
        if len(self.bindings) < self.capacity:
            self.bindings.append((char, event))

    def remove(self, char: str) -> None:
        """Drop the first binding of a key, moving the last binding into its place."""
        for index, (key, _) in enumerate(self.bindings):
            if key == char:
                last = self.bindings.pop()
                if index < len(self.bindings):
                    self.bindings[index] = last
                return

    def get_event(self, char: str) -> Optional[KeyEvent]:
        """The handler bound to a key, or None."""
        return next((event for key, event in self.bindings if key == char), None)


def hit_test(widget: Widget, x: int, y: int) -> bool:
    """Whether a point lies within a widget's placed rectangle, edges included."""
    wx, wy = widget.real_x, widget.real_y
    return wx <= x <= wx + widget.pixel_width and wy <= y <= wy + widget.pixel_height


@dataclass
class InputState:
    """Which window and input field have focus, and the key bindings in force."""

    keys: CustomKeys = field(default_factory=CustomKeys)
    redraw: Optional[Callable[[Label], None]] = None
    window_id: Optional[int] = None
    focused: Optional[int] = None

    def click(self, window: Window, x: int, y: int) -> list[Widget]:
        """Deliver a click to a window and return the widgets it landed on."""
        self.window_id = window.id
        hits: list[Widget] = []
        for child in list(window.children):
            self._check(child, x, y, hits)
        return hits

    def _check(self, widget: Widget, x: int, y: int, hits: list[Widget]) -> None:
        if isinstance(widget, Frame):
            for child in list(widget.children):
                self._check(child, x, y, hits)
            return
        if not isinstance(widget, (Button, Label, Image)):
            return
        if not hit_test(widget, x, y):
            return
        hits.append(widget)
        if isinstance(widget, (Button, Image)):
            self.focused = None
            arg1, arg2, arg3 = widget.args
            widget.event(widget, arg1, arg2, arg3)
        elif isinstance(widget, InputLabel):
            self.focused = widget.id
        else:
            self.focused = None

    def type_char(self, window: Window, char: str) -> bool:
        """Deliver one typed character to the focused input field of a window.

        Returns whether a focused input field received it.
        """
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        handled = False
        for child in list(window.children):
            handled = self._input(child, char) or handled
        return handled

    def _input(self, widget: Widget, char: str) -> bool:
        if isinstance(widget, Frame):
            results = [self._input(child, char) for child in list(widget.children)]
            return any(results)
        if not isinstance(widget, InputLabel):
            return False
        if self.focused is None or widget.id != self.focused:
            return False
        event = self.keys.get_event(char)
        if event is not None:
            event(widget)
            return True
        if char == BACKSPACE:
            if len(widget.label) > widget.ch_min:
                widget.label = widget.label[:-1]
                self._changed(widget)
        elif char != IGNORED_KEY:
            if len(widget.label) < widget.ch_max:
                widget.label += char
                self._changed(widget)
        return True

    def _changed(self, widget: Label) -> None:
        if self.redraw is not None:
            self.redraw(widget)