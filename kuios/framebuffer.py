"""An in-memory pixel buffer with rectangle, text and image drawing."""

from __future__ import annotations

from .geometry import Color
from .psf import Font, Glyph
from .targa import TargaImage

_BYTES_PER_PIXEL = {16: 2, 24: 3, 32: 4}


class Framebuffer:
    """A row-major pixel buffer of 16, 24 or 32 bits per pixel."""

    def __init__(self, width: int, height: int, depth: int = 32) -> None:
        if depth not in _BYTES_PER_PIXEL:
            raise ValueError(f"Unsupported color depth: {depth}")
        if width < 0 or height < 0:
            raise ValueError("framebuffer dimensions cannot be negative")
        self.width = width
        self.height = height
        self.depth = depth
        self.bytes_per_pixel = _BYTES_PER_PIXEL[depth]
        self.buffer = bytearray(width * height * self.bytes_per_pixel)

    def _encode(self, color: Color) -> bytes:
        if self.depth == 16:
            return color.to_u16().to_bytes(2, "little")
        if self.depth == 32:
            return color.to_u32().to_bytes(4, "little")
        return color.to_u24()

    def _contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def _offset(self, row: int, col: int) -> int:
        return (row * self.width + col) * self.bytes_per_pixel

    def write_pixel(self, row: int, col: int, color: Color) -> None:
        """Set one pixel; positions outside the buffer are ignored."""
        if not self._contains(row, col):
            return
        offset = self._offset(row, col)
        self.buffer[offset : offset + self.bytes_per_pixel] = self._encode(color)

    def pixel(self, row: int, col: int) -> Color:
        """Decode the colour stored at a position."""
        if not self._contains(row, col):
            raise IndexError(f"pixel ({row}, {col}) is outside the framebuffer")
        offset = self._offset(row, col)
        raw = bytes(self.buffer[offset : offset + self.bytes_per_pixel])
        if self.depth == 16:
            return Color.from_u16(int.from_bytes(raw, "little"))
        if self.depth == 32:
            value = int.from_bytes(raw, "little")
            return Color.rgba(
                (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, value >> 24
            )
        blue, green, red = raw
        return Color.rgb(red, green, blue)

    def fill_rect(
        self, h_start: int, h_end: int, w_start: int, w_end: int, color: Color
    ) -> None:
        """Fill rows ``h_start..h_end`` and columns ``w_start..w_end``, clipped."""
        h_start = max(h_start, 0)
        w_start = max(w_start, 0)
        if h_start >= self.height or w_start >= self.width:
            return
        h_end = min(h_end, self.height)
        w_end = min(w_end, self.width)
        if h_end <= h_start or w_end <= w_start:
            return
        run = self._encode(color) * (w_end - w_start)
        for row in range(h_start, h_end):
            offset = self._offset(row, w_start)
            self.buffer[offset : offset + len(run)] = run

    def _blit_glyph(
        self, glyph: Glyph, color: Color, x: int, y: int, right: int, bottom: int
    ) -> None:
        for index, bit in enumerate(glyph.map):
            if not bit:
                continue
            i, j = divmod(index, glyph.width)
            screen_x, screen_y = x + j, y + i
            if screen_x < right and screen_y < bottom:
                self.write_pixel(screen_y, screen_x, color)

    def draw_string(
        self,
        text: str,
        color: Color,
        font: Font,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> None:
        """Draw left-aligned text, wrapping at the container edge and stopping at its bottom."""
        line_height = font.glyph("F").height
        right, bottom = x + width, y + height
        cursor_x, cursor_y = x, y
        for char in text:
            if char == "\n":
                cursor_x = x
                cursor_y += line_height
                continue
            glyph = font.glyph(char)
            if cursor_x + glyph.width > right:
                cursor_x = x
                cursor_y += line_height
            if cursor_y + glyph.height > bottom:
                break
            self._blit_glyph(glyph, color, cursor_x, cursor_y, right, bottom)
            cursor_x += glyph.width

    def draw_string_centered(
        self,
        text: str,
        color: Color,
        font: Font,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> None:
        """Draw text with every line centred horizontally and the block centred vertically."""
        lines = [[font.glyph(char) for char in line] for line in text.split("\n")]
        line_height = max((g.height for line in lines for g in line), default=0)
        total_height = line_height * len(lines)
        right, bottom = x + width, y + height
        cursor_y = y + max(0, (height - total_height) // 2)
        for glyphs in lines:
            line_width = sum(g.width for g in glyphs)
            cursor_x = x + max(0, (width - line_width) // 2)
            for glyph in glyphs:
                self._blit_glyph(glyph, color, cursor_x, cursor_y, right, bottom)
                cursor_x += glyph.width
            cursor_y += line_height

    def draw_image(
        self, image: TargaImage, dest_width: int, dest_height: int, x: int, y: int
    ) -> None:
        """Scale a 24- or 32-bit Targa image to the given size by nearest neighbour.

        Fully transparent 32-bit pixels are skipped; other depths draw nothing.
        """
        header = image.header
        if header.bpp not in (24, 32):
            return
        if dest_width <= 0 or dest_height <= 0 or header.width == 0 or header.height == 0:
            return
        step = header.bpp // 8
        x_ratio = header.width / dest_width
        y_ratio = header.height / dest_height
        pixels = image.pixels
        for dy in range(dest_height):
            src_y = int(dy * y_ratio)
            for dx in range(dest_width):
                src_x = int(dx * x_ratio)
                index = (src_y * header.width + src_x) * step
                blue, green, red = pixels[index : index + 3]
                if step == 4:
                    alpha = pixels[index + 3]
                    if alpha == 0:
                        continue
                    color = Color.rgba(red, green, blue, alpha)
                else:
                    color = Color.rgb(red, green, blue)
                self.write_pixel(y + dy, x + dx, color)