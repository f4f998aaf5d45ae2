"""
CHIP-8 VM — Error Taxonomy

Every error the core can raise derives from Chip8Error so a driver can
catch the whole family in one place.

  ProgramLoadError    — file missing / unreadable (recovered at the CLI)
  UnknownInstruction  — nibble pattern with no handler (fatal)
  OutOfBounds         — memory or register index out of range (fatal)
  StackUnderflow      — RET with an empty call stack (fatal)
  UnknownPlatform     — platform variant name not in the preset table
"""


class Chip8Error(Exception):
    """Base class for all CHIP-8 VM errors."""
    pass


class ProgramLoadError(Chip8Error):
    """Raised when a program image cannot be read from disk."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load program '{path}': {reason}")


class UnknownInstruction(Chip8Error):
    """Raised when the fetched word matches no opcode pattern."""

    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"Unknown instruction ${opcode:04X} at ${pc:04X}")


class OutOfBounds(Chip8Error, IndexError):
    """Raised on a memory or register access outside the valid range."""

    def __init__(self, index: int, size: int, what: str = "memory"):
        self.index = index
        self.size = size
        self.what = what
        super().__init__(f"{what} index {index:#06x} out of range (size {size:#06x})")


class StackUnderflow(Chip8Error):
    """Raised when returning from a subroutine with an empty call stack."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"Stack underflow (PC=${pc:04X}): return with empty call stack")


class UnknownPlatform(Chip8Error, KeyError):
    """Raised when a platform variant name is not recognised."""

    def __init__(self, name: str, known):
        self.name = name
        self.known = tuple(known)
        super().__init__(f"Unknown platform '{name}' (known: {', '.join(self.known)})")

    def __str__(self) -> str:
        return self.args[0]
