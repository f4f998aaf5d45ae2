"""
CHIP-8 VM — 4K Memory Image

Memory map:
  $000–$04F  Interpreter space (unused)
  $050–$09F  Built-in hex digit font (16 glyphs × 5 bytes)
  $0A0–$1FF  Interpreter space (unused)
  $200–$FFF  Program image + program data

Unlike the real COSMAC VIP there is no wrap-around: every access must be
inside the image. An out-of-range index means a corrupted program or an
interpreter bug, so it raises OutOfBounds instead of being masked.
"""

from ..config import MEMORY_SIZE
from ..errors import OutOfBounds


class Memory:
    """Flat byte-addressable memory backed by a bytearray."""

    def __init__(self, size: int = MEMORY_SIZE):
        self.size = size
        self._mem = bytearray(size)

    def _check(self, addr: int):
        if not 0 <= addr < self.size:
            raise OutOfBounds(addr, self.size)

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        """Read one byte."""
        self._check(addr)
        return self._mem[addr]

    def write8(self, addr: int, value: int):
        """Write one byte (value masked to 8 bits)."""
        self._check(addr)
        self._mem[addr] = value & 0xFF

    def read16(self, addr: int) -> int:
        """Read 16-bit value (big-endian, most significant byte first)."""
        hi = self.read8(addr)
        lo = self.read8(addr + 1)
        return (hi << 8) | lo

    # --- Bulk load ---

    def load_binary(self, data: bytes, base_addr: int):
        """Copy data into memory starting at base_addr.

        The whole image must fit; nothing is written if it does not.
        """
        end = base_addr + len(data)
        if base_addr < 0 or end > self.size:
            raise OutOfBounds(max(base_addr, end - 1), self.size)
        self._mem[base_addr:end] = data
