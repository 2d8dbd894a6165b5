# kuios

`kuios` builds simple windowed user interfaces and renders them into an
in-memory framebuffer. It also has the bookkeeping pieces such a system
needs: a page-aligned physical memory allocator, a round-robin task table,
and a small IPv4 packet stack.

It has no runtime dependencies.

## Modules

- `kuios.geometry`: `Color` with RGB565, 24-bit and 32-bit packing
  (`to_u16`, `to_u24`, `to_u32` and the matching `from_*` constructors),
  `Size` (`Size.parse("120")` for pixels, `Size.parse("50%")` for a
  percentage, `Size.fixed`, `resolve`), `Align`, `Display`, `Grid`,
  `ScreenStats` and `kui_ceil`.
- `kuios.psf`: PSF1 bitmap fonts. `Font.from_bytes`, `Font.glyph` and
  `load_font`. Bad data raises `PsfError`.
- `kuios.targa`: uncompressed TGA images. `TargaHeader.parse`,
  `TargaImage.from_bytes` and `load_targa`. Bad data raises `TargaError`.
- `kuios.framebuffer`: `Framebuffer` at 16, 24 or 32 bits per pixel, with
  `write_pixel`, `pixel`, `fill_rect`, `draw_string` (left-aligned and
  wrapping), `draw_string_centered`, and `draw_image` (nearest-neighbour
  scaling of 24- and 32-bit images).
- `kuios.widgets`: `Window`, `Frame`, `Button`, `Label`, `InputLabel` and
  `Image`. Each takes absolute or relative sizes and has a `reload` method
  that places it inside its parent.
- `kuios.layout`: `layout_flex`, `layout_grid`, `layout_window_flex`,
  `layout_window_grid`, `draw_widget`, and `render_window`, which draws a
  whole window tree with its action bar and title.
- `kuios.events`: `hit_test`, `CustomKeys` for key bindings, and
  `InputState`. `InputState.click` runs button and image handlers and
  focuses input labels. `InputState.type_char` edits the focused input label
  and honours backspace, `ch_min` and `ch_max`.
- `kuios.pmm`: `PhysicalMemoryManager`, a first-fit allocator over 4 KiB
  pages above `0xA00000`, with `malloc`, `dealloc` and `add_framebuffer`. It
  also provides `align_up`. When no gap is large enough, `malloc` raises
  `OutOfMemoryError`.
- `kuios.tasks`: `TaskManager` with `add_task`, `add_user_task`,
  `schedule`, `next_task` and `exit_current`. It uses `CpuState.kernel` and
  `CpuState.user` for initial registers and raises `NoFreeSlotError` when
  the table is full.
- `kuios.packets`: `Ipv4Header`, `UdpHeader`, `TcpHeader`, `IcmpHeader` and
  `ArpFrame`, together with the Internet `checksum`. It has builders for UDP
  datagrams, ping, TCP SYN, ACK and HTTP GET, and ARP request and reply.
- `kuios.dhcp`: `build_dhcp_discover`, `build_dhcp_request`, `find_option`
  and `DhcpMessage`. Malformed messages raise `DhcpError`.
- `kuios.netstack`: `EthernetHeader`, `SocketTable`, `ArpCache` and
  `NetworkInterface`. The interface can:
  - frame and send packets;
  - answer DHCP offers and take the configuration from an ack;
  - learn MAC addresses from received ARP traffic;
  - queue UDP and TCP frames for bound ports;
  - read a receive ring with `drain_ring`.

## Example

```python
from kuios.geometry import Color
from kuios.framebuffer import Framebuffer

fb = Framebuffer(64, 32, depth=32)
fb.fill_rect(0, 10, 0, 20, Color.rgb(255, 120, 56))
assert fb.pixel(5, 5) == Color.rgb(255, 120, 56)
```

```python
from kuios.packets import build_udp_packet, checksum

packet = build_udp_packet((10, 0, 2, 15), 5000, b"hello", (10, 0, 2, 2), 53)
assert checksum(packet[:20]) == 0
```

```python
from kuios.netstack import NetworkInterface

nic = NetworkInterface(mac=bytes.fromhex("020000000001"))
frame = nic.send_dhcp_discover()
assert frame is nic.sent[-1]
```

## What it does not do

- It does not touch hardware. `NetworkInterface` never talks to a network
  card. Outgoing frames are appended to its `sent` list and passed to an
  optional `transmit` callable.
- It does not display anything on a screen. Windows are drawn only into a
  `Framebuffer` byte buffer.
- It has no window server and no command-line program.
- `TaskManager` and `PhysicalMemoryManager` keep track of tasks and memory
  regions. They do not run code or reserve real memory.

## Running the tests

```
pip install -e .[test]
pytest
```