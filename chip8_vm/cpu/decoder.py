"""
CHIP-8 VM — Instruction Decoder / Opcode Table

Every CHIP-8 instruction is one big-endian 16-bit word, read as four
nibbles:

    F   X   Y   N
    └── NN ──┘ (low byte)
        └─ NNN ─┘ (low 12 bits)

The table below maps (mask, pattern) → (mnemonic, operand form). A word
matches an entry when ``word & mask == pattern``; entries are tried in
order, exact matches first.

Operand forms:
  INH     no operands            00E0
  ADDR    12-bit address NNN     1NNN
  X_NN    register + byte        3XNN
  X_Y     two registers          8XY0
  X_Y_N   two registers + nibble DXYN
  X       one register           EX9E
"""

from dataclasses import dataclass
from typing import Tuple

from ..errors import UnknownInstruction


# ──────────────────────────────────────────────
# Operand form constants
# ──────────────────────────────────────────────

INH   = 'INH'
ADDR  = 'ADDR'
X_NN  = 'X_NN'
X_Y   = 'X_Y'
X_Y_N = 'X_Y_N'
X     = 'X'


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: (mask, pattern, mnemonic, operand_form)
#
# Mnemonics are unique per handler so the interpreter can dispatch on
# them directly ('SE' vs 'SE_R' for immediate vs register compare, etc).

OPCODES = [
    # ── Exact matches ──
    (0xFFFF, 0x00E0, 'CLS',    INH),
    (0xFFFF, 0x00FF, 'CLS',    INH),    # alternate clear encoding
    (0xFFFF, 0x00EE, 'RET',    INH),

    # ── Flow control ──
    (0xF000, 0x1000, 'JP',     ADDR),
    (0xF000, 0x2000, 'CALL',   ADDR),
    (0xF000, 0x3000, 'SE',     X_NN),
    (0xF000, 0x4000, 'SNE',    X_NN),
    (0xF00F, 0x5000, 'SE_R',   X_Y),
    (0xF00F, 0x9000, 'SNE_R',  X_Y),

    # ── Immediate loads / adds ──
    (0xF000, 0x6000, 'LD',     X_NN),
    (0xF000, 0x7000, 'ADD',    X_NN),

    # ── Register ALU (8XYn) ──
    (0xF00F, 0x8000, 'LD_R',   X_Y),
    (0xF00F, 0x8001, 'OR',     X_Y),
    (0xF00F, 0x8002, 'AND',    X_Y),
    (0xF00F, 0x8003, 'XOR',    X_Y),
    (0xF00F, 0x8004, 'ADD_R',  X_Y),
    (0xF00F, 0x8005, 'SUB',    X_Y),
    (0xF00F, 0x8006, 'SHR',    X_Y),
    (0xF00F, 0x8007, 'SUBN',   X_Y),
    (0xF00F, 0x800E, 'SHL',    X_Y),

    # ── Index / jump / random / draw ──
    (0xF000, 0xA000, 'LD_I',   ADDR),
    (0xF000, 0xB000, 'JP_V0',  ADDR),
    (0xF000, 0xC000, 'RND',    X_NN),
    (0xF000, 0xD000, 'DRW',    X_Y_N),

    # ── Keypad ──
    (0xF0FF, 0xE09E, 'SKP',    X),
    (0xF0FF, 0xE0A1, 'SKNP',   X),

    # ── Timers / index / memory (FXnn) ──
    (0xF0FF, 0xF007, 'LD_VDT', X),
    (0xF0FF, 0xF00A, 'LD_K',   X),
    (0xF0FF, 0xF015, 'LD_DT',  X),
    (0xF0FF, 0xF018, 'LD_ST',  X),
    (0xF0FF, 0xF01E, 'ADD_I',  X),
    (0xF0FF, 0xF029, 'LD_F',   X),
    (0xF0FF, 0xF033, 'BCD',    X),
    (0xF0FF, 0xF055, 'STORE',  X),
    (0xF0FF, 0xF065, 'LOAD',   X),
]


def split_nibbles(word: int) -> Tuple[int, int, int, int]:
    """Split a 16-bit word into its four nibbles, most significant first."""
    return ((word >> 12) & 0xF, (word >> 8) & 0xF, (word >> 4) & 0xF, word & 0xF)


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction. Every operand field is always populated;
    the operand form says which ones the handler actually uses."""
    raw: int
    mnemonic: str
    form: str
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    @property
    def text(self) -> str:
        """Short assembly-like rendering for trace output."""
        name = self.mnemonic.split('_')[0]
        if self.form == ADDR:
            args = f"${self.nnn:03X}"
        elif self.form == X_NN:
            args = f"V{self.x:X}, ${self.nn:02X}"
        elif self.form == X_Y:
            args = f"V{self.x:X}, V{self.y:X}"
        elif self.form == X_Y_N:
            args = f"V{self.x:X}, V{self.y:X}, {self.n}"
        elif self.form == X:
            args = f"V{self.x:X}"
        else:
            args = ""
        return f"{name:5s} {args}".rstrip()


def decode(word: int, pc: int = 0) -> Instruction:
    """Decode one 16-bit instruction word.

    pc is only used to make the UnknownInstruction error useful.
    """
    word &= 0xFFFF
    for mask, pattern, mnem, form in OPCODES:
        if word & mask == pattern:
            _, x, y, n = split_nibbles(word)
            return Instruction(
                raw=word, mnemonic=mnem, form=form,
                x=x, y=y, n=n, nn=word & 0xFF, nnn=word & 0xFFF,
            )
    raise UnknownInstruction(word, pc)
