"""
chip8-vm — run a CHIP-8 program in the terminal.

Usage:
    chip8-vm PROGRAM
    python -m chip8_vm PROGRAM

Keys: the 4x4 block 1-4 / q-r / a-f / y-v is the hex keypad (press once
to hold, again to release). Esc quits.

Environment: CHIP8_PLATFORM, CHIP8_STEPS_PER_SECOND, CHIP8_LOG_DIR,
CHIP8_LOG_LEVEL (see chip8_vm/config.py).

Exit codes: 0 clean exit, 1 program could not be loaded, 3 the program
crashed the interpreter, 130 interrupted.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import (
    DEFAULT_PLATFORM, LOG_LEVEL, MEMORY_SIZE, PROGRAM_START, STEPS_PER_SECOND,
)
from .errors import Chip8Error, ProgramLoadError, UnknownPlatform
from .cpu.quirks import get_platform

EXIT_OK = 0
EXIT_LOAD_ERROR = 1
EXIT_FATAL = 3
EXIT_INTERRUPTED = 130

MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START


def load_program(path) -> bytes:
    """Read a program image, turning every I/O problem into ProgramLoadError."""
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise ProgramLoadError(path, e.strerror or str(e)) from e
    if len(data) > MAX_PROGRAM_SIZE:
        raise ProgramLoadError(
            path, f"{len(data)} bytes does not fit in {MAX_PROGRAM_SIZE} bytes of program memory")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8-vm",
        description="CHIP-8 virtual machine — run a program in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("program", nargs="?", help="CHIP-8 program image (.ch8)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.program is None:
        print("Please specify a program path", file=sys.stderr)
        return EXIT_LOAD_ERROR

    try:
        program = load_program(args.program)
        platform = get_platform(DEFAULT_PLATFORM)
    except (ProgramLoadError, UnknownPlatform) as e:
        print(e, file=sys.stderr)
        return EXIT_LOAD_ERROR

    # Imported late so a bad path never pays for the terminal stack
    from .log_setup import setup_logging
    from .emu import Chip8Interpreter
    from .driver import Driver
    from .terminal import TerminalKeyboard, TerminalRenderer

    logger = setup_logging(
        console_level=getattr(logging, LOG_LEVEL, logging.WARNING),
        session={
            "program": args.program,
            "size": f"{len(program)} bytes",
            "platform": platform.name,
            "steps/second": STEPS_PER_SECOND,
        },
    )

    keyboard = TerminalKeyboard()
    interp = Chip8Interpreter(program, platform, keyboard, title=Path(args.program).name)
    renderer = TerminalRenderer(keypad=keyboard)
    driver = Driver(interp, keyboard, renderer,
                    should_stop=keyboard.quit_requested.is_set)

    fatal = None
    try:
        with keyboard:
            driver.run()
    except Chip8Error as e:
        fatal = e
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_INTERRUPTED
    finally:
        renderer.close()

    # Reported only once the live display has been torn down
    if fatal is not None:
        print(f"Fatal: {fatal}", file=sys.stderr)
        return EXIT_FATAL
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
