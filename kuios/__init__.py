"""Widget toolkit with framebuffer rendering, memory and task bookkeeping, and a small IPv4 packet stack."""

__version__ = "0.1.0"