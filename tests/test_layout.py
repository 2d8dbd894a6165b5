import struct

from kuios.framebuffer import Framebuffer
from kuios.geometry import Align, Color, Display, Grid, Size
from kuios.layout import (
    ACTION_BAR_COLOR,
    draw_widget,
    layout_flex,
    layout_grid,
    layout_window_flex,
    layout_window_grid,
    render_window,
)
from kuios.psf import Font
from kuios.targa import TargaImage
from kuios.widgets import Button, Frame, Image, Label, Window

RED = Color.rgb(200, 0, 0)
BLUE = Color.rgb(0, 0, 200)
GREEN = Color.rgb(0, 200, 0)


def _font():
    header = struct.pack("<HBB", 0x0436, 1, 8)
    return Font.from_bytes(header + b"\xff" * (256 * 8))


def _label(width, height, **kwargs):
    return Label(width=Size.fixed(width), height=Size.fixed(height), **kwargs)


def _window(width, height, **kwargs):
    return Window(width=Size.fixed(width), height=Size.fixed(height), **kwargs)


def test_window_grid_places_children_in_cells():
    window = _window(200, 100, action_bar=False)
    children = [_label(10, 10) for _ in range(4)]
    window.children.extend(children)
    layout_window_grid(window, Grid(columns=2, rows=2))
    positions = [(c.real_x, c.real_y) for c in children]
    assert positions == [(0, 0), (200 // 2, 0), (0, 100 // 2), (200 // 2, 100 // 2)]


def test_window_grid_scales_relative_sizes_to_cell():
    window = _window(200, 100)
    child = Label(width=Size.parse("50%"), height=Size.parse("100%"))
    window.children.append(child)
    layout_window_grid(window, Grid(columns=2, rows=1))
    assert child.width.absolute * 2 == 200 // 2
    assert child.height.absolute == 100
    assert child.width.relative == 50


def test_frame_grid_offsets_from_frame_origin():
    frame = Frame(real_x=30, real_y=40, width=Size.fixed(100), height=Size.fixed(60))
    first, second = _label(5, 5), _label(5, 5)
    frame.add(first)
    frame.add(second)
    layout_grid(frame, Grid(columns=2, rows=1))
    assert (first.real_x, first.real_y) == (30, 40)
    assert second.real_x - first.real_x == 100 // 2
    assert second.real_y == first.real_y


def test_frame_grid_applies_relative_x():
    frame = Frame(width=Size.fixed(100), height=Size.fixed(60))
    child = Label(x=Size.parse("10%"), width=Size.fixed(5), height=Size.fixed(5))
    frame.add(child)
    layout_grid(frame, Grid(columns=1, rows=1))
    assert child.real_x == 10


def test_flex_centres_children_in_frame():
    frame = Frame(real_x=10, real_y=20, width=Size.fixed(100), height=Size.fixed(50))
    first, second = _label(20, 10), _label(20, 10)
    frame.add(first)
    frame.add(second)
    layout_flex(frame)
    left_gap = first.real_x - frame.real_x
    right_gap = frame.real_x + 100 - (second.real_x + 20)
    assert left_gap == right_gap
    assert first.real_x == 40
    assert 2 * (first.real_y - frame.real_y) + 10 == 50


def test_flex_counts_padding():
    frame = Frame(width=Size.fixed(200), height=Size.fixed(50))
    first = _label(20, 10, padding=Size.fixed(5))
    second = _label(20, 10, padding=Size.fixed(5))
    frame.add(first)
    frame.add(second)
    layout_flex(frame)
    assert second.real_x - first.real_x == 20 + 2 * 5


def test_window_flex_centres_children():
    window = _window(120, 60, action_bar=False)
    first, second = _label(30, 20), _label(30, 20)
    window.children.extend([first, second])
    layout_window_flex(window)
    assert first.real_x == 120 - (second.real_x + 30)
    assert second.real_x - first.real_x == 30
    assert 2 * first.real_y + 20 == 60


def test_render_window_fills_background():
    window = _window(40, 40, action_bar=False, color=RED)
    fb = Framebuffer(40, 40)
    render_window(window, fb, _font())
    assert fb.pixel(0, 0) == RED
    assert fb.pixel(39, 39) == RED


def test_render_window_draws_action_bar():
    window = _window(40, 40)
    fb = Framebuffer(40, 40)
    render_window(window, fb, _font())
    assert fb.pixel(0, 0) == ACTION_BAR_COLOR
    assert fb.pixel(30, 0) == window.color


def test_render_window_flex_draws_buttons_centred():
    window = _window(40, 40, action_bar=False, display=Display.FLEX)
    first = Button(width=Size.fixed(10), height=Size.fixed(10), color=BLUE)
    second = Button(width=Size.fixed(10), height=Size.fixed(10), color=GREEN)
    window.add_exit(first)
    window.add_exit(second)
    fb = Framebuffer(40, 40)
    render_window(window, fb, _font())
    assert first.real_x == 40 - (second.real_x + 10)
    assert fb.pixel(first.real_y, first.real_x) == BLUE
    assert fb.pixel(second.real_y, second.real_x) == GREEN


def test_draw_button_centres_label():
    font = _font()
    button = Button(
        x=Size.fixed(5),
        y=Size.fixed(5),
        width=Size.fixed(10),
        height=Size.fixed(10),
        color=BLUE,
        text_color=RED,
        label="A",
    )
    fb = Framebuffer(50, 50)
    draw_widget(button, fb, font, 0, 0, 50, 50, Display.NONE)
    red = [(r, c) for r in range(50) for c in range(50) if fb.pixel(r, c) == RED]
    glyph = font.glyph("A")
    assert len(red) == glyph.width * glyph.height
    cols = [c for _, c in red]
    assert min(cols) - 5 == (5 + 10) - (max(cols) + 1)
    assert fb.pixel(5, 5) == BLUE
    assert fb.pixel(4, 4) == Color()


def test_draw_left_aligned_label_starts_at_corner():
    font = _font()
    label = _label(20, 10, color=GREEN, text_color=RED, label="A", text_align=Align.LEFT)
    fb = Framebuffer(30, 30)
    draw_widget(label, fb, font, 0, 0, 30, 30, Display.NONE)
    assert fb.pixel(0, 0) == RED
    assert fb.pixel(0, font.glyph("A").width) == GREEN


def test_draw_frame_draws_nested_children():
    frame = Frame(
        x=Size.fixed(10), y=Size.fixed(10), width=Size.fixed(20), height=Size.fixed(20), color=GREEN
    )
    frame.add(
        Label(
            x=Size.fixed(2),
            y=Size.fixed(2),
            width=Size.fixed(4),
            height=Size.fixed(4),
            color=BLUE,
        )
    )
    fb = Framebuffer(50, 50)
    draw_widget(frame, fb, _font(), 0, 0, 50, 50, Display.NONE)
    assert fb.pixel(10, 10) == GREEN
    assert fb.pixel(12, 12) == BLUE
    assert fb.pixel(9, 9) == Color()


def test_draw_grid_frame_trims_extra_children():
    frame = Frame(
        width=Size.fixed(10), height=Size.fixed(10), display=Grid(columns=1, rows=2)
    )
    for _ in range(3):
        frame.add(_label(2, 2))
    draw_widget(frame, Framebuffer(20, 20), _font(), 0, 0, 20, 20, Display.NONE)
    assert len(frame.children) == 2


def test_draw_image_widget():
    header = struct.pack("<BBBHHBHHHHBB", 0, 0, 2, 0, 0, 0, 0, 0, 2, 2, 24, 0)
    pixels = bytes([10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 110, 120])
    image = Image(
        image=TargaImage.from_bytes(header + pixels),
        width=Size.fixed(2),
        height=Size.fixed(2),
    )
    fb = Framebuffer(4, 4)
    draw_widget(image, fb, _font(), 0, 0, 4, 4, Display.NONE)
    assert fb.pixel(0, 0) == Color.rgb(30, 20, 10)
    assert fb.pixel(1, 1) == Color.rgb(120, 110, 100)