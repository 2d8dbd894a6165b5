"""Layout of widget trees and rendering of windows into a framebuffer."""

from __future__ import annotations

from typing import Sequence, Union

from .framebuffer import Framebuffer
from .geometry import Align, Color, Display, DisplayMode, Grid, Size, kui_ceil
from .psf import Font
from .widgets import ACTION_BAR_HEIGHT, Button, Frame, Image, Label, Widget, Window

ACTION_BAR_COLOR = Color.rgb(251, 119, 60)
TITLE_X = 10
TITLE_Y = 12
TITLE_HEIGHT = 20
TITLE_RIGHT_MARGIN = 25


def _fit_to_cell(child: Widget, cell_width: int, cell_height: int) -> None:
    if child.height.relative is not None:
        child.height = Size(
            absolute=kui_ceil(cell_height / 100.0 * child.height.relative),
            relative=child.height.relative,
        )
    if child.width.relative is not None:
        child.width = Size(
            absolute=kui_ceil(cell_width / 100.0 * child.width.relative),
            relative=child.width.relative,
        )


def layout_grid(frame: Frame, grid: Grid) -> None:
    """Place a frame's children cell by cell, row after row."""
    frame_width = frame.pixel_width
    cell_width = kui_ceil(frame_width / grid.columns)
    cell_height = kui_ceil(frame.pixel_height / grid.rows)
    x = y = 0
    for index, child in enumerate(frame.children, start=1):
        rel_x = 0.0
        if child.x.relative is not None:
            rel_x = frame_width / 100.0 * child.x.relative
        child.real_x = frame.real_x + x + kui_ceil(rel_x)
        child.real_y = frame.real_y + y
        _fit_to_cell(child, cell_width, cell_height)
        x += cell_width
        if index % grid.columns == 0:
            y += cell_height
            x = 0


def layout_window_grid(window: Window, grid: Grid) -> None:
    """Place a window's children cell by cell, row after row."""
    cell_width = window.pixel_width // grid.columns
    cell_height = window.pixel_height // grid.rows
    x = y = 0
    for index, child in enumerate(window.children, start=1):
        child.real_x = x
        child.real_y = y
        _fit_to_cell(child, cell_width, cell_height)
        x += cell_width
        if index % grid.columns == 0:
            y += cell_height
            x = 0


def _flex(children: Sequence[Widget], left: int, top: int, width: int, height: int) -> None:
    total = 0
    for child in children:
        child.reload(left, top, width, height, Display.NONE)
        total += child.pixel_width + child.pixel_padding * 2
    base_x = max(0, kui_ceil(left + (width - total) / 2.0))
    offset = 0
    for child in children:
        child.real_x = base_x + offset
        child.real_y = top + max(0, (height - child.pixel_height) // 2)
        offset += child.pixel_width + child.pixel_padding * 2


def layout_flex(frame: Frame) -> None:
    """Line a frame's children up in a row centred in the frame."""
    _flex(frame.children, frame.real_x, frame.real_y, frame.pixel_width, frame.pixel_height)


def layout_window_flex(window: Window) -> None:
    """Line a window's children up in a row centred in the window."""
    _flex(window.children, 0, 0, window.pixel_width, window.pixel_height)


def _apply_layout(container: Union[Frame, Window]) -> None:
    display = container.display
    if isinstance(container, Frame):
        if display is Display.FLEX:
            layout_flex(container)
        elif isinstance(display, Grid):
            layout_grid(container, display)
    else:
        if display is Display.FLEX:
            layout_window_flex(container)
        elif isinstance(display, Grid):
            layout_window_grid(container, display)


def _draw_box(framebuffer: Framebuffer, widget: Widget) -> tuple[int, int]:
    top = widget.real_y + widget.pixel_padding
    left = widget.real_x + widget.pixel_padding
    framebuffer.fill_rect(
        top, top + widget.pixel_height, left, left + widget.pixel_width, widget.color
    )
    return left, top


def _draw_text_box(
    framebuffer: Framebuffer, font: Font, widget: Union[Button, Label]
) -> None:
    left, top = _draw_box(framebuffer, widget)
    draw = (
        framebuffer.draw_string_centered
        if widget.text_align is Align.CENTER
        else framebuffer.draw_string
    )
    draw(
        widget.label,
        widget.text_color,
        font,
        left,
        top,
        widget.pixel_width,
        widget.pixel_height,
    )


def draw_widget(
    widget: Widget,
    framebuffer: Framebuffer,
    font: Font,
    px: int,
    py: int,
    pw: int,
    ph: int,
    display: DisplayMode,
) -> None:
    """Fit a widget into its parent's area and draw it with its children."""
    if isinstance(widget, Frame):
        widget.reload(px, py, pw, ph, display)
        _draw_box(framebuffer, widget)
        _apply_layout(widget)
        for child in list(widget.children):
            draw_widget(
                child,
                framebuffer,
                font,
                widget.real_x,
                widget.real_y,
                widget.pixel_width,
                widget.pixel_height,
                widget.display,
            )
    elif isinstance(widget, (Button, Label)):
        widget.reload(px, py, pw, ph, display)
        _draw_text_box(framebuffer, font, widget)
    elif isinstance(widget, Image):
        widget.reload(px, py, pw, ph, display)
        framebuffer.draw_image(
            widget.image,
            widget.pixel_width,
            widget.pixel_height,
            widget.real_x,
            widget.real_y,
        )


def render_window(window: Window, framebuffer: Framebuffer, font: Font) -> None:
    """Draw a window, its action bar and its whole widget tree."""
    width, height = window.pixel_width, window.pixel_height
    framebuffer.fill_rect(0, height, 0, width, window.color)
    if window.action_bar:
        framebuffer.fill_rect(0, ACTION_BAR_HEIGHT, 0, width, ACTION_BAR_COLOR)
        framebuffer.draw_string(
            window.name,
            window.text_color,
            font,
            TITLE_X,
            TITLE_Y,
            max(0, width - TITLE_RIGHT_MARGIN),
            TITLE_HEIGHT,
        )
    _apply_layout(window)
    top = ACTION_BAR_HEIGHT if window.action_bar else 0
    for child in list(window.children):
        draw_widget(
            child, framebuffer, font, 0, top, width, max(0, height - top), window.display
        )