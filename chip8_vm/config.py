"""
CHIP-8 VM — Machine / Front-end Configuration
==============================================

Fixed machine constants plus the handful of front-end knobs the terminal
driver reads. The machine constants describe the classic CHIP-8 layout
and should not need changing; the front-end knobs can be overridden from
the environment:

    CHIP8_PLATFORM           platform variant name (see cpu/quirks.py)
    CHIP8_STEPS_PER_SECOND   interpreter steps per wall-clock second
    CHIP8_LOG_DIR            where the driver writes its log files
    CHIP8_LOG_LEVEL          console log level (DEBUG, INFO, WARNING, ...)
"""

import os
from pathlib import Path


# =============================================================================
#  MEMORY MAP
# =============================================================================
MEMORY_SIZE = 4096        # 4K byte-addressable
PROGRAM_START = 0x200     # programs load here; 0x000-0x1FF is interpreter space
FONT_START = 0x050        # built-in hex digit sprites
FONT_GLYPH_SIZE = 5       # bytes per glyph (8x5 pixels)
REGISTER_COUNT = 16       # V0-VF
FLAG_REGISTER = 0xF       # VF doubles as carry / borrow / collision flag


# =============================================================================
#  DISPLAY
# =============================================================================
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32


# =============================================================================
#  TIMING
# =============================================================================
TIMER_HZ = 60             # delay + sound timers decay at 60 Hz
FRAME_HZ = 60             # renderer refresh rate
STEPS_PER_SECOND = int(os.environ.get("CHIP8_STEPS_PER_SECOND", "700"))


# =============================================================================
#  PLATFORM VARIANT
# =============================================================================
DEFAULT_PLATFORM = os.environ.get("CHIP8_PLATFORM", "chip8")


# =============================================================================
#  LOGGING
# =============================================================================
LOG_DIR = Path(os.environ.get("CHIP8_LOG_DIR", "logs"))
LOG_LEVEL = os.environ.get("CHIP8_LOG_LEVEL", "WARNING").upper()


# =============================================================================
#  KEYBOARD LAYOUT
#  Host key → CHIP-8 key code. The 4x4 block on the left of a QWERTZ
#  keyboard maps onto the COSMAC VIP hex keypad:
#
#      1 2 3 4        1 2 3 C
#      q w e r   →    4 5 6 D
#      a s d f        7 8 9 E
#      y x c v        A 0 B F
# =============================================================================
KEYMAP = {
    'x': 0x0,
    '1': 0x1,
    '2': 0x2,
    '3': 0x3,
    'q': 0x4,
    'w': 0x5,
    'e': 0x6,
    'a': 0x7,
    's': 0x8,
    'd': 0x9,
    'y': 0xA,
    'c': 0xB,
    '4': 0xC,
    'r': 0xD,
    'f': 0xE,
    'v': 0xF,
}

# Keypad rows as drawn on the original hardware
KEYPAD_ROWS = (
    (0x1, 0x2, 0x3, 0xC),
    (0x4, 0x5, 0x6, 0xD),
    (0x7, 0x8, 0x9, 0xE),
    (0xA, 0x0, 0xB, 0xF),
)

ESCAPE = '\x1b'           # quits the terminal front end
