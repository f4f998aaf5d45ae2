"""
CHIP-8 Virtual Machine
======================
A byte-code interpreter for the CHIP-8 instruction set with a terminal
front end.

Architecture:
    ┌──────────┐    ┌───────────┐    ┌────────────────────────────┐
    │ .ch8     │───>│  Memory   │───>│ Chip8Interpreter.step()    │
    │ program  │    │ (4K+font) │    │ fetch → decode → dispatch  │
    └──────────┘    └───────────┘    └─────────────┬──────────────┘
                                                   │ reads/writes
                  ┌──────────────┬─────────────────┼──────────────┐
                  ▼              ▼                 ▼              ▼
             Registers      Framebuffer          Timers         Keypad
             V0-VF,I,PC     64×32 XOR           60 Hz DT/ST    (injected)
             call stack

    The interpreter never draws or reads the terminal. A Driver steps it,
    ticks its timers and hands snapshot() to a Renderer.

    - cpu/regs.py:      register file, PC, call stack
    - cpu/decoder.py:   nibble-pattern opcode table → Instruction
    - cpu/quirks.py:    named platform variants (chip8, cosmac-vip, chip48)
    - mem/memory.py:    bounds-checked 4K memory
    - periph/:          framebuffer, timers, keypad capability
    - emu.py:           the interpreter
    - driver.py:        real-time frame loop
    - terminal.py:      rich renderer + stdin keyboard
    - cli.py:           `chip8-vm PROGRAM`
"""

__version__ = "0.1.0"

from .errors import (
    Chip8Error, ProgramLoadError, UnknownInstruction, OutOfBounds,
    StackUnderflow, UnknownPlatform,
)
from .cpu.quirks import Quirks, PLATFORMS, get_platform
from .periph.keypad import Keypad, KeyState
from .emu import Chip8Interpreter, RenderSnapshot, StopReason, Running, Waiting
