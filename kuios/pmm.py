"""A first-fit physical memory allocator over page-aligned sections."""

from __future__ import annotations

from dataclasses import dataclass, field

HEAP_BASE = 0xA0_0000
PAGE_MASK = 0xFFF


class OutOfMemoryError(Exception):
    """Raised when no gap is large enough for an allocation."""


@dataclass
class Section:
    """A reserved region of physical memory."""

    base: int
    size: int


def align_up(address: int) -> int:
    """Round an address up to the next page boundary."""
    return (address + PAGE_MASK) & ~PAGE_MASK


@dataclass
class PhysicalMemoryManager:
    """Tracks reserved sections and hands out page-aligned blocks above the heap base."""

    ram_size: int
    sections: list[Section] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.sections.append(Section(base=HEAP_BASE, size=0))

    def _sort(self) -> None:
        self.sections.sort(key=lambda s: s.base)

    def _reserve(self, base: int, size: int) -> int:
        if base + size > self.ram_size:
            raise OutOfMemoryError(f"cannot allocate {size} bytes")
        self.sections.append(Section(base=base, size=size))
        return base

    def malloc(self, size: int) -> int:
        """Reserve ``size`` bytes and return the page-aligned base address."""
        if size < 0:
            raise ValueError(f"size cannot be negative: {size}")
        self._sort()
        candidate = HEAP_BASE
        for section in self.sections:
            aligned = align_up(candidate)
            if aligned + size <= section.base:
                return self._reserve(aligned, size)
            candidate = max(candidate, align_up(section.base + section.size))
        return self._reserve(align_up(candidate), size)

    def dealloc(self, base: int) -> None:
        """Release the most recent section starting at ``base``; zero is ignored."""
        if base == 0:
            return
        self._sort()
        for index in range(len(self.sections) - 1, -1, -1):
            if self.sections[index].base == base:
                del self.sections[index]
                return

    def add_framebuffer(self, base: int, size: int) -> None:
        """Mark a region as taken so allocations avoid it."""
        self.sections.append(Section(base=base, size=size))