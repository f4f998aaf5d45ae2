"""
CHIP-8 VM — Terminal Front End

TerminalRenderer   — draws a RenderSnapshot with rich: register column,
                     framebuffer box, hex keypad with held keys lit.
TerminalKeyboard   — KeyState fed by a daemon thread reading stdin in
                     cbreak mode. Terminals deliver key-down only, so a
                     second press of the same key releases it. Esc asks
                     the driver to quit.

Layout:

    Registers  ╭ PONG ─────────────────────╮  ╭ keypad ─╮
    V0 0x00    │ ██    ██                  │  │ 1 2 3 C │
    V1 0x1f    │                           │  │ 4 5 6 D │
    ...        ╰───────────────────────────╯  ╰─────────╯
"""

import logging
import os
import select
import sys
import threading
from typing import Dict, Iterable, Optional

from rich import box
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import KEYMAP, KEYPAD_ROWS, ESCAPE
from .driver import Renderer
from .emu import RenderSnapshot
from .periph.keypad import KeyState

log = logging.getLogger(__name__)

PIXEL_ON = '██'
PIXEL_OFF = '  '


# ══════════════════════════════════════════════
# Rendering
# ══════════════════════════════════════════════

def registers_text(snap: RenderSnapshot) -> Text:
    """Register column: V0–VF then PC, I and the two timers."""
    text = Text("Registers\n", style="bold")
    for i, value in enumerate(snap.registers):
        text.append(f"V{i:X} {value:#04x}\n")
    text.append(f"\nPC {snap.pc:#06x}\n")
    text.append(f"I  {snap.index:#06x}\n")
    text.append(f"DT {snap.delay_timer:3d}\n")
    text.append(f"ST {snap.sound_timer:3d}", style="bold red" if snap.sound_timer else "")
    return text


def screen_text(snap: RenderSnapshot) -> Text:
    """Framebuffer as text, two characters per pixel."""
    lines = []
    for y in range(snap.height):
        row = snap.pixels[y * snap.width:(y + 1) * snap.width]
        lines.append(''.join(PIXEL_ON if p else PIXEL_OFF for p in row))
    return Text('\n'.join(lines))


def keypad_table(held: Iterable[int] = ()) -> Table:
    """4×4 hex keypad; held keys are drawn reversed."""
    held = set(held)
    table = Table(show_header=False, box=box.ROUNDED, padding=(0, 1))
    for _ in range(4):
        table.add_column(justify="center")
    for row in KEYPAD_ROWS:
        table.add_row(*(
            Text(f"{key:X}", style="bold reverse" if key in held else "")
            for key in row
        ))
    return table


class TerminalRenderer(Renderer):
    """rich.live based renderer."""

    def __init__(self, console: Optional[Console] = None,
                 keypad: Optional[KeyState] = None):
        self.console = console or Console()
        self.keypad = keypad
        self._live: Optional[Live] = None

    def build(self, snap: RenderSnapshot) -> Table:
        title = snap.title or "CHIP-8"
        if snap.waiting:
            title += " (waiting for key)"
        screen = Panel(screen_text(snap), title=title, box=box.ROUNDED,
                       expand=False, subtitle=snap.platform)
        held = self.keypad.held() if self.keypad is not None else ()
        side = Group(Text("Keypad", style="bold"), keypad_table(held))

        layout = Table.grid(padding=(0, 2))
        layout.add_column()
        layout.add_column()
        layout.add_column()
        layout.add_row(registers_text(snap), screen, side)
        return layout

    def render(self, snapshot: RenderSnapshot):
        view = self.build(snapshot)
        if self._live is None:
            self._live = Live(view, console=self.console, auto_refresh=False,
                              transient=False)
            self._live.start()
        self._live.update(view, refresh=True)

    def close(self):
        if self._live is not None:
            self._live.stop()
            self._live = None


# ══════════════════════════════════════════════
# Keyboard capture
# ══════════════════════════════════════════════

class TerminalKeyboard(KeyState):
    """KeyState fed from stdin by a background reader thread."""

    POLL_INTERVAL = 0.05

    def __init__(self, stream=None, keymap: Dict[str, int] = KEYMAP):
        super().__init__()
        self._stream = stream if stream is not None else sys.stdin
        self._keymap = keymap
        self.quit_requested = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._saved_tty = None

    def feed(self, ch: str):
        """Apply one character of terminal input."""
        if ch == ESCAPE:
            log.info("Escape pressed, quit requested")
            self.quit_requested.set()
            return
        key = self._keymap.get(ch.lower())
        if key is None:
            log.debug("Ignoring unmapped key %r", ch)
            return
        self.toggle(key)

    def start(self):
        """Switch the terminal to cbreak mode and start the reader thread."""
        fd = self._stream.fileno()
        if os.isatty(fd):
            import termios
            import tty
            self._saved_tty = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        self._stop.clear()
        self._thread = threading.Thread(target=self._reader, args=(fd,),
                                        name="chip8-keyboard", daemon=True)
        self._thread.start()

    def _reader(self, fd: int):
        while not self._stop.is_set():
            ready, _, _ = select.select([fd], [], [], self.POLL_INTERVAL)
            if not ready:
                continue
            data = os.read(fd, 32)
            if not data:
                log.info("Keyboard input closed")
                self.quit_requested.set()
                return
            for ch in data.decode('utf-8', errors='ignore'):
                self.feed(ch)

    def stop(self):
        """Stop the reader thread and restore the terminal."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._saved_tty is not None:
            import termios
            termios.tcsetattr(self._stream.fileno(), termios.TCSADRAIN, self._saved_tty)
            self._saved_tty = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
