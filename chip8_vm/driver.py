"""
CHIP-8 VM — Frame Loop Driver

Owns the real-time cadence the interpreter deliberately knows nothing
about. Each frame:

  1. run steps_per_frame interpreter steps, clearing the keypad's
     just-pressed set after every step and ticking the timers
  2. hand one snapshot to the renderer
  3. sleep until the next frame deadline

The loop ends when should_stop() says so, when max_frames is reached, or
when the interpreter raises a fatal error (logged here, then re-raised).
"""

import abc
import logging
import time
from typing import Callable, Optional

from .config import FRAME_HZ, STEPS_PER_SECOND
from .emu import Chip8Interpreter, RenderSnapshot
from .errors import Chip8Error
from .periph.keypad import KeyState

log = logging.getLogger(__name__)


class Renderer(abc.ABC):
    """Render capability: receives snapshots, owns everything after that."""

    @abc.abstractmethod
    def render(self, snapshot: RenderSnapshot):
        """Draw one snapshot."""

    def close(self):
        """Release any terminal / window resources."""


class Driver:
    """Runs an interpreter against a keypad and a renderer."""

    def __init__(self, interp: Chip8Interpreter, keypad: KeyState,
                 renderer: Renderer, *,
                 steps_per_second: int = STEPS_PER_SECOND,
                 frame_hz: int = FRAME_HZ,
                 should_stop: Callable[[], bool] = lambda: False,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.interp = interp
        self.keypad = keypad
        self.renderer = renderer
        self.steps_per_frame = max(1, steps_per_second // frame_hz)
        self.frame_period = 1.0 / frame_hz
        self.should_stop = should_stop
        self._clock = clock
        self._sleep = sleep
        self.frames = 0

    def run_frame(self):
        """One frame's worth of steps, timer ticks and a render."""
        for _ in range(self.steps_per_frame):
            self.interp.step()
            self.keypad.clear_just_pressed()
            self.interp.timers.tick()
        self.renderer.render(self.interp.snapshot())
        self.frames += 1

    def run(self, max_frames: Optional[int] = None) -> int:
        """Run frames until stopped. Returns the number of frames run."""
        log.info("Driver start: %d steps/frame at %d Hz",
                 self.steps_per_frame, round(1.0 / self.frame_period))
        deadline = self._clock()
        try:
            while not self.should_stop():
                if max_frames is not None and self.frames >= max_frames:
                    break
                self.run_frame()
                deadline += self.frame_period
                delay = deadline - self._clock()
                if delay > 0:
                    self._sleep(delay)
                else:
                    # Running behind: don't try to catch up with a burst
                    deadline = self._clock()
        except Chip8Error:
            snap = self.interp.snapshot()
            log.error("Driver stopped after %d frames (PC=$%04X I=$%04X)",
                      self.frames, snap.pc, snap.index)
            raise
        log.info("Driver stopped after %d frames", self.frames)
        return self.frames
