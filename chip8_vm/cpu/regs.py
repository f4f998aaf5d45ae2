"""
CHIP-8 VM — Register File, Index Register, PC and Call Stack

Register model:
  V0–VF — 16 × 8-bit general registers. VF is also the flag output of
          ADD/SUB/SUBN/SHR/SHL/DRW and is overwritten by them.
  I     — 16-bit index register (memory pointer for DRW, BCD, LD [I])
  PC    — 16-bit program counter, advances by 2 per instruction
  stack — return addresses pushed by CALL, popped by RET

The decoder only ever hands out 4-bit register numbers; any other index
reaching read()/write() is an interpreter bug and raises OutOfBounds.
"""

from typing import List

from ..config import REGISTER_COUNT, FLAG_REGISTER, PROGRAM_START
from ..errors import OutOfBounds, StackUnderflow


class Registers:
    """CHIP-8 register set plus call stack."""

    __slots__ = ('V', 'I', 'PC', 'stack')

    def __init__(self):
        self.V = bytearray(REGISTER_COUNT)  # V0-VF
        self.I: int = 0                     # Index register (16-bit)
        self.PC: int = PROGRAM_START        # Program counter (16-bit)
        self.stack: List[int] = []          # Return addresses

    # --- General registers ---

    def read(self, index: int) -> int:
        if not 0 <= index < REGISTER_COUNT:
            raise OutOfBounds(index, REGISTER_COUNT, "register")
        return self.V[index]

    def write(self, index: int, value: int):
        if not 0 <= index < REGISTER_COUNT:
            raise OutOfBounds(index, REGISTER_COUNT, "register")
        self.V[index] = value & 0xFF

    @property
    def flag(self) -> int:
        """VF — carry / no-borrow / shifted-out bit / collision."""
        return self.V[FLAG_REGISTER]

    @flag.setter
    def flag(self, value: int):
        self.V[FLAG_REGISTER] = value & 0xFF

    # --- Index register ---

    def read_index(self) -> int:
        return self.I

    def write_index(self, value: int):
        self.I = value & 0xFFFF

    # --- Program counter ---

    def read_pc(self) -> int:
        return self.PC

    def write_pc(self, value: int):
        self.PC = value & 0xFFFF

    def increment_pc(self):
        """Step over one instruction (also used for skips)."""
        self.PC = (self.PC + 2) & 0xFFFF

    def decrement_pc(self):
        """Step back one instruction (block-until-keypress retry)."""
        self.PC = (self.PC - 2) & 0xFFFF

    # --- Call stack ---

    def push(self, addr: int):
        """Push a return address."""
        self.stack.append(addr & 0xFFFF)

    def pop(self) -> int:
        """Pop a return address. Empty stack is fatal."""
        if not self.stack:
            raise StackUnderflow(self.PC)
        return self.stack.pop()

    # --- Display ---

    def display(self) -> str:
        """Format register state for trace output."""
        v = ' '.join(f'{b:02X}' for b in self.V)
        return (f"PC={self.PC:04X} I={self.I:04X} SP={len(self.stack):02d} "
                f"V=[{v}]")

    def reset(self):
        """Reset to power-on state."""
        self.V = bytearray(REGISTER_COUNT)
        self.I = 0
        self.PC = PROGRAM_START
        self.stack = []
