"""
CHIP-8 VM — Interpreter

Top-level class that integrates:
  - Memory image (mem/memory.py) with the built-in font (mem/font.py)
  - Register file, I, PC, call stack (cpu/regs.py)
  - Opcode decoder (cpu/decoder.py)
  - Platform variant switches (cpu/quirks.py)
  - Peripherals: framebuffer, delay/sound timers, keypad capability

Execution model (one step):
  1. If blocked on FX0A, poll the keypad and return
  2. Fetch the 16-bit word at PC, advance PC by 2
  3. Decode the nibble pattern → Instruction
  4. Dispatch to the handler → update registers, memory, framebuffer

The interpreter never renders and never touches the terminal. A driver
calls step() in a loop, ticks self.timers at its own cadence and pulls
snapshot() whenever it wants to draw.

Fatal conditions (UnknownInstruction, OutOfBounds, StackUnderflow) are
raised out of step(); the state is left exactly as it was when the fault
was detected.
"""

import logging
import random
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from .config import PROGRAM_START, FONT_START, FONT_GLYPH_SIZE
from .errors import Chip8Error
from .cpu.regs import Registers
from .cpu.decoder import Instruction, decode
from .cpu.quirks import Quirks, get_platform
from .mem.memory import Memory
from .mem.font import FONT
from .periph.display import Framebuffer
from .periph.keypad import Keypad
from .periph.timer import Timers

log = logging.getLogger(__name__)


class StopReason(Enum):
    STEPS = 'STEPS'        # max_steps reached
    WAITING = 'WAITING'    # blocked on FX0A with no key pressed


@dataclass(frozen=True)
class Running:
    """Normal fetch/decode/execute state."""


@dataclass(frozen=True)
class Waiting:
    """Blocked on FX0A until a key goes down; the key lands in `register`."""
    register: int


RUNNING = Running()
ExecState = Union[Running, Waiting]


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything a renderer needs, copied out of the interpreter."""
    title: str
    platform: str
    registers: Tuple[int, ...]
    pixels: Tuple[bool, ...]
    width: int
    height: int
    pc: int
    index: int
    delay_timer: int
    sound_timer: int
    waiting: bool

    def pixel(self, x: int, y: int) -> bool:
        return self.pixels[y * self.width + x]

    def to_dict(self) -> dict:
        """JSON-ready form (tuples become lists)."""
        d = asdict(self)
        d['registers'] = list(self.registers)
        d['pixels'] = list(self.pixels)
        return d


class Chip8Interpreter:
    """CHIP-8 byte-code interpreter.

    Usage:
        interp = Chip8Interpreter(rom_bytes, 'chip8', KeyState(), title='PONG')
        while running:
            interp.step()
            interp.timers.tick()
            renderer.render(interp.snapshot())

    Args:
        program:  Program image, loaded once at PROGRAM_START.
        platform: Platform variant name ('chip8', 'cosmac-vip', 'chip48')
                  or a Quirks instance. Required: opcode semantics differ
                  between variants and there is no silent default.
        keypad:   Input capability queried by SKP/SKNP/LD K.
        title:    Label passed through to render snapshots.
        clock:    Monotonic nanosecond clock for the timers.
        rng:      random.Random used by RND (seed it for reproducible runs).
    """

    def __init__(self, program: bytes, platform: Union[str, Quirks],
                 keypad: Keypad, *, title: str = '',
                 clock: Callable[[], int] = time.monotonic_ns,
                 rng: Optional[random.Random] = None):
        self.program = bytes(program)
        self.quirks = get_platform(platform)
        self.keypad = keypad
        self.title = title
        self.rng = rng if rng is not None else random.Random()

        # Core components
        self.mem = Memory()
        self.regs = Registers()
        self.display = Framebuffer()
        self.timers = Timers(clock)
        self.state: ExecState = RUNNING
        self.steps = 0

        self._load()

        # Trace output
        self._trace = False
        self._trace_output: List[str] = []

        # Instruction dispatch table
        self._dispatch = self._build_dispatch()

        log.info("Loaded %d-byte program %r at $%03X (platform %s)",
                 len(self.program), self.title, PROGRAM_START, self.quirks.name)

    def _load(self):
        self.mem.load_binary(FONT, FONT_START)
        self.mem.load_binary(self.program, PROGRAM_START)
        self.regs.write_pc(PROGRAM_START)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def waiting(self) -> bool:
        return isinstance(self.state, Waiting)

    def step(self) -> Optional[StopReason]:
        """Execute one instruction.

        Returns StopReason.WAITING while blocked on FX0A, else None.
        Raises UnknownInstruction / OutOfBounds / StackUnderflow.
        """
        if isinstance(self.state, Waiting):
            return self._poll_key(self.state.register)

        pc = self.regs.read_pc()
        try:
            ins = decode(self.mem.read16(pc), pc)
            self.regs.increment_pc()

            if self._trace:
                line = f"${pc:04X}: {ins.raw:04X} {ins.text:16s} {self.regs.display()}"
                self._trace_output.append(line)
                log.debug(line)

            self._dispatch[ins.mnemonic](ins)
        except Chip8Error as e:
            log.error("Fatal at $%04X: %s", pc, e)
            raise

        self.steps += 1
        return StopReason.WAITING if self.waiting else None

    def run(self, max_steps: int) -> StopReason:
        """Step until max_steps instructions ran or FX0A blocks."""
        for _ in range(max_steps):
            if self.step() is StopReason.WAITING:
                return StopReason.WAITING
        return StopReason.STEPS

    def _poll_key(self, register: int) -> Optional[StopReason]:
        keys = self.keypad.just_pressed()
        if not keys:
            return StopReason.WAITING
        self.regs.write(register, keys[0])
        self.regs.increment_pc()
        self.state = RUNNING
        log.debug("Key %X received into V%X", keys[0], register)
        return None

    # ══════════════════════════════════════════════
    # Snapshot
    # ══════════════════════════════════════════════

    def snapshot(self) -> RenderSnapshot:
        """Read-only copy of the state a renderer needs."""
        return RenderSnapshot(
            title=self.title,
            platform=self.quirks.name,
            registers=tuple(self.regs.V),
            pixels=self.display.pixels(),
            width=self.display.width,
            height=self.display.height,
            pc=self.regs.PC,
            index=self.regs.I,
            delay_timer=self.timers.delay,
            sound_timer=self.timers.sound,
            waiting=self.waiting,
        )

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(ins). PC already points past `ins`.

    def _build_dispatch(self) -> dict:
        """Build mnemonic → handler dispatch table."""
        return {
            # ── Display / flow ──
            'CLS':    self._op_cls,
            'RET':    self._op_ret,
            'JP':     self._op_jp,
            'CALL':   self._op_call,
            'JP_V0':  self._op_jp_v0,

            # ── Skips ──
            'SE':     self._op_se,
            'SNE':    self._op_sne,
            'SE_R':   self._op_se_r,
            'SNE_R':  self._op_sne_r,
            'SKP':    self._op_skp,
            'SKNP':   self._op_sknp,

            # ── Loads / arithmetic ──
            'LD':     self._op_ld,
            'ADD':    self._op_add,
            'LD_R':   self._op_ld_r,
            'OR':     self._op_or,
            'AND':    self._op_and,
            'XOR':    self._op_xor,
            'ADD_R':  self._op_add_r,
            'SUB':    self._op_sub,
            'SUBN':   self._op_subn,
            'SHR':    self._op_shr,
            'SHL':    self._op_shl,
            'RND':    self._op_rnd,

            # ── Index / memory ──
            'LD_I':   self._op_ld_i,
            'ADD_I':  self._op_add_i,
            'LD_F':   self._op_ld_f,
            'BCD':    self._op_bcd,
            'STORE':  self._op_store,
            'LOAD':   self._op_load,

            # ── Draw ──
            'DRW':    self._op_drw,

            # ── Timers / keypad ──
            'LD_VDT': self._op_ld_vdt,
            'LD_DT':  self._op_ld_dt,
            'LD_ST':  self._op_ld_st,
            'LD_K':   self._op_ld_k,
        }

    # ── Display / flow ──

    def _op_cls(self, ins: Instruction):
        self.display.clear()

    def _op_ret(self, ins: Instruction):
        self.regs.write_pc(self.regs.pop())

    def _op_jp(self, ins: Instruction):
        self.regs.write_pc(ins.nnn)

    def _op_call(self, ins: Instruction):
        self.regs.push(self.regs.read_pc())
        self.regs.write_pc(ins.nnn)

    def _op_jp_v0(self, ins: Instruction):
        offset = self.regs.read(ins.x if self.quirks.jump_uses_vx else 0)
        self.regs.write_pc(ins.nnn + offset)

    # ── Skips ──

    def _op_se(self, ins: Instruction):
        if self.regs.read(ins.x) == ins.nn:
            self.regs.increment_pc()

    def _op_sne(self, ins: Instruction):
        if self.regs.read(ins.x) != ins.nn:
            self.regs.increment_pc()

    def _op_se_r(self, ins: Instruction):
        if self.regs.read(ins.x) == self.regs.read(ins.y):
            self.regs.increment_pc()

    def _op_sne_r(self, ins: Instruction):
        if self.regs.read(ins.x) != self.regs.read(ins.y):
            self.regs.increment_pc()

    def _op_skp(self, ins: Instruction):
        if self.keypad.is_pressed(self.regs.read(ins.x) & 0xF):
            self.regs.increment_pc()

    def _op_sknp(self, ins: Instruction):
        if not self.keypad.is_pressed(self.regs.read(ins.x) & 0xF):
            self.regs.increment_pc()

    # ── Loads / arithmetic ──

    def _op_ld(self, ins: Instruction):
        self.regs.write(ins.x, ins.nn)

    def _op_add(self, ins: Instruction):
        # No carry out to VF for the immediate form
        self.regs.write(ins.x, (self.regs.read(ins.x) + ins.nn) & 0xFF)

    def _op_ld_r(self, ins: Instruction):
        self.regs.write(ins.x, self.regs.read(ins.y))

    def _logic(self, ins: Instruction, value: int):
        self.regs.write(ins.x, value)
        if self.quirks.logic_resets_flag:
            self.regs.flag = 0

    def _op_or(self, ins: Instruction):
        self._logic(ins, self.regs.read(ins.x) | self.regs.read(ins.y))

    def _op_and(self, ins: Instruction):
        self._logic(ins, self.regs.read(ins.x) & self.regs.read(ins.y))

    def _op_xor(self, ins: Instruction):
        self._logic(ins, self.regs.read(ins.x) ^ self.regs.read(ins.y))

    # VF is written after VX in every flag-producing op, so when X is F
    # the flag wins.

    def _op_add_r(self, ins: Instruction):
        total = self.regs.read(ins.x) + self.regs.read(ins.y)
        self.regs.write(ins.x, total & 0xFF)
        self.regs.flag = int(total > 0xFF)

    def _op_sub(self, ins: Instruction):
        vx, vy = self.regs.read(ins.x), self.regs.read(ins.y)
        self.regs.write(ins.x, (vx - vy) & 0xFF)
        self.regs.flag = int(vx >= vy)

    def _op_subn(self, ins: Instruction):
        vx, vy = self.regs.read(ins.x), self.regs.read(ins.y)
        self.regs.write(ins.x, (vy - vx) & 0xFF)
        self.regs.flag = int(vy >= vx)

    def _shift_source(self, ins: Instruction) -> int:
        return self.regs.read(ins.y if self.quirks.shift_uses_vy else ins.x)

    def _op_shr(self, ins: Instruction):
        val = self._shift_source(ins)
        self.regs.write(ins.x, val >> 1)
        self.regs.flag = val & 0x01

    def _op_shl(self, ins: Instruction):
        val = self._shift_source(ins)
        self.regs.write(ins.x, (val << 1) & 0xFF)
        self.regs.flag = (val >> 7) & 0x01

    def _op_rnd(self, ins: Instruction):
        self.regs.write(ins.x, self.rng.randrange(256) & ins.nn)

    # ── Index / memory ──

    def _op_ld_i(self, ins: Instruction):
        self.regs.write_index(ins.nnn)

    def _op_add_i(self, ins: Instruction):
        self.regs.write_index(self.regs.read_index() + self.regs.read(ins.x))

    def _op_ld_f(self, ins: Instruction):
        digit = self.regs.read(ins.x) & 0xF
        self.regs.write_index(FONT_START + FONT_GLYPH_SIZE * digit)

    def _op_bcd(self, ins: Instruction):
        val = self.regs.read(ins.x)
        i = self.regs.read_index()
        self.mem.write8(i, val // 100)
        self.mem.write8(i + 1, (val // 10) % 10)
        self.mem.write8(i + 2, val % 10)

    def _op_store(self, ins: Instruction):
        i = self.regs.read_index()
        for r in range(ins.x + 1):
            self.mem.write8(i + r, self.regs.read(r))
        if self.quirks.load_store_increments_index:
            self.regs.write_index(i + ins.x + 1)

    def _op_load(self, ins: Instruction):
        i = self.regs.read_index()
        for r in range(ins.x + 1):
            self.regs.write(r, self.mem.read8(i + r))
        if self.quirks.load_store_increments_index:
            self.regs.write_index(i + ins.x + 1)

    # ── Draw ──

    def _op_drw(self, ins: Instruction):
        """DXYN — XOR an 8×N sprite from [I] onto the framebuffer.

        The start position wraps once; the pixels of the sprite then wrap
        or clip per axis according to the platform variant.
        """
        fb = self.display
        x0 = self.regs.read(ins.x) % fb.width
        y0 = self.regs.read(ins.y) % fb.height
        i = self.regs.read_index()
        collided = False

        for row in range(ins.n):
            bits = self.mem.read8(i + row)
            y = y0 + row
            if self.quirks.wrap_rows:
                y %= fb.height
            for col in range(8):
                if bits & (0x80 >> col):
                    x = x0 + col
                    if self.quirks.wrap_columns:
                        x %= fb.width
                    if fb.flip_pixel(x, y):
                        collided = True

        self.regs.flag = int(collided)

    # ── Timers / keypad ──

    def _op_ld_vdt(self, ins: Instruction):
        self.regs.write(ins.x, self.timers.delay)

    def _op_ld_dt(self, ins: Instruction):
        self.timers.delay = self.regs.read(ins.x)

    def _op_ld_st(self, ins: Instruction):
        self.timers.sound = self.regs.read(ins.x)

    def _op_ld_k(self, ins: Instruction):
        """FX0A — take a just-pressed key, or park in Waiting(X).

        While waiting, PC points back at this instruction so the
        observable PC stays put until a key arrives.
        """
        keys = self.keypad.just_pressed()
        if keys:
            self.regs.write(ins.x, keys[0])
            return
        self.regs.decrement_pc()
        self.state = Waiting(ins.x)

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Enable per-instruction trace capture."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Power-cycle: fresh memory from the original image, cleared state."""
        self.mem = Memory()
        self.regs.reset()
        self.display.clear()
        self.timers.reset()
        self.state = RUNNING
        self.steps = 0
        self._load()
        self._trace_output.clear()
