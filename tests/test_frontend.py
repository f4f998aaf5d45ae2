"""
Front-end tests — frame driver, terminal renderer / keyboard, CLI,
logging setup.
"""

import io
import logging

import pytest
from rich.console import Console

from chip8_vm import cli
from chip8_vm.driver import Driver, Renderer
from chip8_vm.emu import Chip8Interpreter
from chip8_vm.errors import UnknownInstruction, ProgramLoadError
from chip8_vm.log_setup import setup_logging
from chip8_vm.periph.keypad import KeyState
from chip8_vm.terminal import TerminalKeyboard, TerminalRenderer, keypad_table


def _program(*words):
    return b''.join(w.to_bytes(2, 'big') for w in words)


class RecordingRenderer(Renderer):

    def __init__(self):
        self.snapshots = []
        self.closed = False

    def render(self, snapshot):
        self.snapshots.append(snapshot)

    def close(self):
        self.closed = True


class FakeWallClock:
    """Seconds clock for the driver; sleep() moves it forward."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _driver(program, keypad=None, renderer=None, **kw):
    keypad = keypad or KeyState()
    interp = Chip8Interpreter(program, 'chip8', keypad, title='DRV', clock=lambda: 0)
    wall = FakeWallClock()
    driver = Driver(interp, keypad, renderer or RecordingRenderer(),
                    steps_per_second=600, frame_hz=60,
                    clock=wall, sleep=wall.sleep, **kw)
    return driver, wall


# ══════════════════════════════════════════════
# Driver
# ══════════════════════════════════════════════

class TestDriver:

    def test_steps_per_frame(self):
        driver, _ = _driver(_program(0x1200))
        assert driver.steps_per_frame == 10

    def test_steps_per_frame_at_least_one(self):
        interp = Chip8Interpreter(b'', 'chip8', KeyState())
        driver = Driver(interp, KeyState(), RecordingRenderer(),
                        steps_per_second=10, frame_hz=60)
        assert driver.steps_per_frame == 1

    def test_max_frames(self):
        """JP $200 loop; three frames → 30 steps, 3 renders"""
        renderer = RecordingRenderer()
        driver, wall = _driver(_program(0x1200), renderer=renderer)
        assert driver.run(max_frames=3) == 3
        assert driver.interp.steps == 30
        assert len(renderer.snapshots) == 3
        assert renderer.snapshots[-1].title == 'DRV'

    def test_sleeps_until_deadline(self):
        driver, wall = _driver(_program(0x1200))
        driver.run(max_frames=2)
        assert wall.sleeps == pytest.approx([1 / 60, 1 / 60])

    def test_should_stop(self):
        driver, _ = _driver(_program(0x1200), should_stop=lambda: True)
        assert driver.run() == 0

    def test_clears_just_pressed_each_step(self):
        keys = KeyState()
        keys.press(3)
        driver, _ = _driver(_program(0x1200), keypad=keys)
        driver.run_frame()
        assert keys.just_pressed() == []
        assert keys.is_pressed(3)

    def test_key_wait_across_frames(self):
        """F00A parks; a key pressed between frames releases it"""
        keys = KeyState()
        driver, _ = _driver(_program(0xF00A, 0x1202), keypad=keys)
        driver.run_frame()
        assert driver.interp.waiting
        assert driver.interp.regs.PC == 0x200
        keys.press(9)
        driver.run_frame()
        assert not driver.interp.waiting
        assert driver.interp.regs.read(0) == 9
        assert driver.interp.regs.PC == 0x202

    def test_key_landing_after_poll_reaches_wait(self):
        """Key arrives between the F30A read and the driver's clear"""

        class LateKey(KeyState):
            def __init__(self):
                super().__init__()
                self.pending = 7

            def just_pressed(self):
                keys = super().just_pressed()
                if self.pending is not None:
                    self.press(self.pending)
                    self.pending = None
                return keys

        keys = LateKey()
        driver, _ = _driver(_program(0xF30A, 0x1202), keypad=keys)
        driver.run(max_frames=5)
        assert driver.interp.regs.read(3) == 7
        assert not driver.interp.waiting
        assert driver.interp.regs.PC == 0x202

    def test_fatal_error_propagates(self):
        renderer = RecordingRenderer()
        driver, _ = _driver(_program(0xFFFF), renderer=renderer)
        with pytest.raises(UnknownInstruction):
            driver.run()
        assert renderer.snapshots == []


# ══════════════════════════════════════════════
# Terminal
# ══════════════════════════════════════════════

def _console():
    return Console(file=io.StringIO(), width=220, color_system=None)


class TestTerminalRenderer:

    def _snapshot(self):
        interp = Chip8Interpreter(_program(0xA050, 0xD015), 'chip8', KeyState(),
                                  title='PONG')
        interp.run(2)
        return interp.snapshot()

    def test_build(self):
        console = _console()
        console.print(TerminalRenderer(console=console).build(self._snapshot()))
        out = console.file.getvalue()
        assert 'PONG' in out
        assert 'chip8' in out
        assert 'VF 0x00' in out
        assert '██' in out
        assert 'Keypad' in out

    def test_waiting_title(self):
        keys = KeyState()
        interp = Chip8Interpreter(_program(0xF00A), 'chip8', keys, title='WAIT')
        interp.step()
        console = _console()
        console.print(TerminalRenderer(console=console).build(interp.snapshot()))
        assert 'WAIT (waiting for key)' in console.file.getvalue()

    def test_render_and_close(self):
        console = _console()
        renderer = TerminalRenderer(console=console)
        renderer.render(self._snapshot())
        renderer.render(self._snapshot())
        renderer.close()
        renderer.close()
        assert 'PONG' in console.file.getvalue()

    def test_keypad_table(self):
        console = _console()
        console.print(keypad_table({0xA}))
        out = console.file.getvalue()
        for ch in '0123456789ABCDEF':
            assert ch in out


class TestTerminalKeyboard:

    def test_feed_toggles_mapped_key(self):
        kb = TerminalKeyboard(stream=io.StringIO())
        kb.feed('q')
        assert kb.is_pressed(0x4)
        assert kb.just_pressed() == [0x4]
        kb.feed('Q')
        assert not kb.is_pressed(0x4)

    def test_feed_ignores_unmapped(self):
        kb = TerminalKeyboard(stream=io.StringIO())
        kb.feed('z')
        assert kb.held() == set()

    def test_escape_requests_quit(self):
        kb = TerminalKeyboard(stream=io.StringIO())
        assert not kb.quit_requested.is_set()
        kb.feed('\x1b')
        assert kb.quit_requested.is_set()

    def test_custom_keymap(self):
        kb = TerminalKeyboard(stream=io.StringIO(), keymap={'j': 0x2})
        kb.feed('j')
        assert kb.is_pressed(0x2)


# ══════════════════════════════════════════════
# CLI
# ══════════════════════════════════════════════

class TestCli:

    def test_load_program(self, tmp_path):
        rom = tmp_path / 'x.ch8'
        rom.write_bytes(_program(0x00E0))
        assert cli.load_program(rom) == b'\x00\xE0'

    def test_load_missing(self, tmp_path):
        with pytest.raises(ProgramLoadError) as exc:
            cli.load_program(tmp_path / 'missing.ch8')
        assert 'missing.ch8' in str(exc.value)

    def test_load_too_large(self, tmp_path):
        rom = tmp_path / 'big.ch8'
        rom.write_bytes(bytes(4096 - 0x200 + 1))
        with pytest.raises(ProgramLoadError):
            cli.load_program(rom)

    def test_load_max_size_fits(self, tmp_path):
        rom = tmp_path / 'full.ch8'
        rom.write_bytes(bytes(4096 - 0x200))
        assert len(cli.load_program(rom)) == 3584

    def test_no_program(self, capsys):
        assert cli.main([]) == cli.EXIT_LOAD_ERROR
        assert 'Please specify a program path' in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        path = tmp_path / 'nope.ch8'
        assert cli.main([str(path)]) == cli.EXIT_LOAD_ERROR
        err = capsys.readouterr().err
        assert 'Cannot load program' in err
        assert 'nope.ch8' in err

    def test_directory(self, tmp_path, capsys):
        assert cli.main([str(tmp_path)]) == cli.EXIT_LOAD_ERROR
        assert 'Cannot load program' in capsys.readouterr().err

    def test_takes_no_flags(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main(['--version'])
        assert exc.value.code == 2
        assert 'unrecognized arguments' in capsys.readouterr().err

    def test_fatal_error_exit_code(self, tmp_path, capsys, monkeypatch):
        """$FFFF at $200 stops the run with exit 3 and one Fatal line"""
        import chip8_vm.log_setup
        import chip8_vm.terminal

        closed = []
        monkeypatch.setattr(chip8_vm.terminal.TerminalKeyboard, 'start', lambda self: None)
        monkeypatch.setattr(chip8_vm.terminal.TerminalKeyboard, 'stop', lambda self: None)
        monkeypatch.setattr(chip8_vm.terminal.TerminalRenderer, 'close',
                            lambda self: closed.append(True))
        monkeypatch.setattr(chip8_vm.log_setup, 'setup_logging',
                            lambda **kw: logging.getLogger('chip8_test_cli'))

        rom = tmp_path / 'bad.ch8'
        rom.write_bytes(_program(0xFFFF))
        assert cli.main([str(rom)]) == cli.EXIT_FATAL
        err = capsys.readouterr().err
        assert err.count('Fatal: Unknown instruction $FFFF at $0200') == 1
        assert closed == [True]


# ══════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════

class TestLogging:

    @pytest.fixture
    def logger_name(self, request):
        name = f"chip8_test_{request.node.name}"
        yield name
        logger = logging.getLogger(name)
        for h in list(logger.handlers):
            h.close()
            logger.removeHandler(h)

    def test_creates_log_file(self, tmp_path, logger_name):
        logger = setup_logging(name=logger_name, log_dir=tmp_path, console=_console())
        logger.debug("hello file")
        for h in logger.handlers:
            h.flush()
        files = list(tmp_path.glob(f"{logger_name}_*.log"))
        assert len(files) == 1
        assert 'hello file' in files[0].read_text(encoding='utf-8')

    def test_idempotent(self, tmp_path, logger_name):
        first = setup_logging(name=logger_name, log_dir=tmp_path, console=_console())
        second = setup_logging(name=logger_name, log_dir=tmp_path, console=_console())
        assert first is second
        assert len(second.handlers) == 2

    def test_console_level(self, tmp_path, logger_name):
        console = _console()
        logger = setup_logging(name=logger_name, log_dir=tmp_path,
                               console_level=logging.WARNING, console=console)
        logger.info("quiet")
        logger.warning("loud")
        out = console.file.getvalue()
        assert 'loud' in out
        assert 'quiet' not in out

    def test_session_banner(self, tmp_path, logger_name):
        logger = setup_logging(name=logger_name, log_dir=tmp_path, console=_console(),
                               session={'program': 'PONG.ch8', 'platform': 'chip48'})
        for h in logger.handlers:
            h.flush()
        text = next(tmp_path.glob(f"{logger_name}_*.log")).read_text(encoding='utf-8')
        assert 'PONG.ch8' in text
        assert 'chip48' in text
        assert 'console level' in text

    def test_plain_console(self, tmp_path, logger_name):
        logger = setup_logging(name=logger_name, log_dir=tmp_path, rich_console=False)
        assert any(type(h) is logging.StreamHandler for h in logger.handlers)
