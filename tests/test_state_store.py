"""
State store tests — memory image, register file, PC and call stack.
"""

import pytest

from chip8_vm.mem.memory import Memory
from chip8_vm.cpu.regs import Registers
from chip8_vm.errors import OutOfBounds, StackUnderflow


class TestMemory:

    def test_size_defaults_to_4k(self):
        assert Memory().size == 4096

    def test_read_write_byte(self):
        mem = Memory()
        mem.write8(0x300, 0xAB)
        assert mem.read8(0x300) == 0xAB

    def test_write_masks_to_byte(self):
        mem = Memory()
        mem.write8(0x300, 0x1FF)
        assert mem.read8(0x300) == 0xFF

    def test_read16_big_endian(self):
        mem = Memory()
        mem.load_binary(bytes([0x12, 0x34]), 0x200)
        assert mem.read16(0x200) == 0x1234

    @pytest.mark.parametrize("addr", [4096, 5000, -1])
    def test_read_out_of_range(self, addr):
        with pytest.raises(OutOfBounds):
            Memory().read8(addr)

    def test_write_out_of_range(self):
        with pytest.raises(OutOfBounds):
            Memory().write8(0x1000, 0)

    def test_read16_straddling_end(self):
        """$FFF is readable, but a word at $FFF needs $1000 too."""
        mem = Memory()
        mem.read8(0xFFF)
        with pytest.raises(OutOfBounds):
            mem.read16(0xFFF)

    def test_out_of_bounds_is_index_error(self):
        with pytest.raises(IndexError):
            Memory().read8(0x2000)

    def test_load_binary_too_large_writes_nothing(self):
        mem = Memory()
        with pytest.raises(OutOfBounds):
            mem.load_binary(bytes([0xAA] * 0x10), 0xFF8)
        assert mem.read8(0xFF8) == 0


class TestRegisters:

    @pytest.mark.parametrize("r", range(16))
    def test_write_then_read(self, r):
        regs = Registers()
        regs.write(r, 0x40 + r)
        assert regs.read(r) == 0x40 + r

    def test_write_masks_to_byte(self):
        regs = Registers()
        regs.write(3, 0x1AB)
        assert regs.read(3) == 0xAB

    @pytest.mark.parametrize("r", [16, -1])
    def test_register_index_out_of_range(self, r):
        with pytest.raises(OutOfBounds):
            Registers().read(r)
        with pytest.raises(OutOfBounds):
            Registers().write(r, 0)

    def test_flag_is_vf(self):
        regs = Registers()
        regs.flag = 1
        assert regs.read(0xF) == 1

    def test_pc_starts_at_program_base(self):
        assert Registers().read_pc() == 0x200

    def test_pc_increment_and_decrement(self):
        regs = Registers()
        regs.increment_pc()
        assert regs.PC == 0x202
        regs.decrement_pc()
        assert regs.PC == 0x200

    def test_index_register_is_16_bit(self):
        regs = Registers()
        regs.write_index(0x1FFFF)
        assert regs.read_index() == 0xFFFF

    def test_stack_is_lifo(self):
        regs = Registers()
        regs.push(0x202)
        regs.push(0x304)
        assert regs.pop() == 0x304
        assert regs.pop() == 0x202

    def test_pop_empty_stack_underflows(self):
        with pytest.raises(StackUnderflow):
            Registers().pop()

    def test_display(self):
        regs = Registers()
        regs.write(0, 0xAB)
        text = regs.display()
        assert text.startswith('PC=0200 I=0000 SP=00')
        assert 'V=[AB 00' in text

    def test_reset(self):
        regs = Registers()
        regs.write(1, 9)
        regs.push(0x222)
        regs.write_pc(0x300)
        regs.reset()
        assert regs.read(1) == 0
        assert regs.stack == []
        assert regs.PC == 0x200
