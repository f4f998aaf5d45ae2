"""
CHIP-8 VM — Monochrome Framebuffer

64×32 boolean grid, row-major. Pixels are XOR-toggled, never set
directly; flip_pixel() reports when a lit pixel was switched off so DRW
can raise the collision flag.
"""

from typing import List, Tuple

from ..config import DISPLAY_WIDTH, DISPLAY_HEIGHT


class Framebuffer:
    """Fixed-size XOR framebuffer."""

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self._pixels: List[bool] = [False] * (width * height)

    def flip_pixel(self, x: int, y: int) -> bool:
        """Toggle one pixel. Returns True if it went from set to unset.

        Coordinates outside the grid are ignored (sprites may hang off
        the edge) and never report a collision.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        i = y * self.width + x
        was_set = self._pixels[i]
        self._pixels[i] = not was_set
        return was_set

    def get_pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        return self._pixels[y * self.width + x]

    def clear(self):
        """Reset every pixel to unset."""
        self._pixels = [False] * (self.width * self.height)

    def pixels(self) -> Tuple[bool, ...]:
        """Read-only row-major snapshot of the whole grid."""
        return tuple(self._pixels)

    def lit_count(self) -> int:
        return sum(self._pixels)

    def to_text(self, on: str = '█', off: str = '.') -> str:
        """Render the grid as text, one line per row."""
        rows = []
        for y in range(self.height):
            row = self._pixels[y * self.width:(y + 1) * self.width]
            rows.append(''.join(on if p else off for p in row))
        return '\n'.join(rows)
