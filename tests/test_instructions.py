"""Behavioral properties of the executor."""

import pytest

from chip8 import instructions
from chip8.decoder import Op
from chip8.errors import MemoryAccessError, StackOverflow, StackUnderflow, UnknownOpcode, UnsupportedOperation
from chip8.image import Ch8Image
from chip8.interpreter import Interpreter
from chip8.managed import ManagedPlatform

from support import RecordingPlatform, assemble, make_interpreter, run


def _load(x: int, value: int) -> int:
    return 0x6000 | (x << 8) | value


class TestFlagRegister:
    """VF side effects."""

    @pytest.mark.parametrize("low", [1, 2, 3])
    @pytest.mark.parametrize("x,y", [(0, 1), (4, 9), (14, 2), (3, 3)])
    def test_logic_ops_clear_flag(self, low, x, y):
        """OR/AND/XOR leave VF at 0 whatever it held before."""
        interp = make_interpreter(
            _load(15, 0xAA),
            _load(x, 0x5C),
            _load(y, 0x3A),
            0x8000 | (x << 8) | (y << 4) | low,
        )
        run(interp, 4)
        assert interp.cpu.flag == 0

    @pytest.mark.parametrize("a,b", [(0, 0), (5, 5), (6, 5), (5, 6), (0, 255), (255, 0), (128, 129)])
    def test_subtract_flag_is_not_borrow(self, a, b):
        """8xy5 sets VF to 1 exactly when Vx >= Vy."""
        interp = make_interpreter(_load(0, a), _load(1, b), 0x8015)
        run(interp, 3)
        assert interp.cpu.get_register(0) == (a - b) % 256
        assert interp.cpu.flag == (1 if a >= b else 0)

    @pytest.mark.parametrize("a,b", [(5, 6), (6, 5), (7, 7)])
    def test_reverse_subtract_flag(self, a, b):
        """8xy7 sets VF to 1 exactly when Vy >= Vx."""
        interp = make_interpreter(_load(0, a), _load(1, b), 0x8017)
        run(interp, 3)
        assert interp.cpu.get_register(0) == (b - a) % 256
        assert interp.cpu.flag == (1 if b >= a else 0)

    def test_add_carry(self):
        interp = make_interpreter(_load(0, 0x80), _load(1, 0x7F), 0x8014, 0x8014)
        run(interp, 3)
        assert interp.cpu.get_register(0) == 0xFF
        assert interp.cpu.flag == 0
        run(interp, 1)
        assert interp.cpu.get_register(0) == 0x7E
        assert interp.cpu.flag == 1

    def test_flag_register_as_destination_loses_result(self):
        """When Vx is VF, the flag write wins."""
        interp = make_interpreter(_load(15, 0xF0), _load(1, 0x20), 0x8F14)
        run(interp, 3)
        assert interp.cpu.flag == 1

    def test_shift_reads_second_operand(self):
        """Shifts take Vy as the source and leave Vy untouched."""
        interp = make_interpreter(_load(0, 0xFF), _load(1, 0x40), 0x8016, 0x821E)
        run(interp, 3)
        assert interp.cpu.get_register(0) == 0x20
        assert interp.cpu.flag == 0
        assert interp.cpu.get_register(1) == 0x40
        run(interp, 1)
        assert interp.cpu.get_register(2) == 0x80
        assert interp.cpu.flag == 0


class TestDraw:
    """Drawing through the reference platform."""

    def _interp(self, *words):
        return Interpreter(Ch8Image(assemble(*words)), ManagedPlatform(lambda: 0))

    def test_double_draw_restores_display(self):
        """Drawing twice toggles back and reports the collision."""
        interp = self._interp(_load(0, 10), _load(1, 3), 0xA000 + 5 * 8, 0xD015, 0xD015)
        run(interp, 4)
        after_first = interp.platform.frame_buffer.render()
        assert interp.cpu.flag == 0
        assert any("#" in row for row in after_first)
        run(interp, 1)
        assert interp.cpu.flag == 1
        assert all(set(row) == {"."} for row in interp.platform.frame_buffer.render())

    def test_zero_row_sprite_is_noop(self):
        interp = self._interp(0xD010)
        run(interp, 1)
        assert interp.cpu.flag == 0
        assert all(set(row) == {"."} for row in interp.platform.frame_buffer.render())

    def test_origin_wraps_pixels_clip(self):
        """Origin is taken modulo the screen, overflow pixels are dropped."""
        # 0xFF row at (64 + 60, 32 + 31): origin (60, 31), columns 60..63 visible
        interp = self._interp(0x60FF, 0xA300, 0xF055, 0x6000 | 124, 0x6100 | 63, 0xA300, 0xD011)
        run(interp, 7)
        fb = interp.platform.frame_buffer
        assert [fb.get(x, 31) for x in range(60, 64)] == [True] * 4
        assert not any(fb.get(x, 31) for x in range(0, 60))
        assert not any(fb.get(x, 0) for x in range(64))


class TestBlockTransfer:
    """Fx55 / Fx65."""

    def test_store_then_load_round_trip(self):
        values = [0x11, 0x22, 0x33, 0x44]
        words = [_load(i, v) for i, v in enumerate(values)]
        words += [0xA400, 0xF355]
        words += [_load(i, 0) for i in range(4)]
        words += [0xA400, 0xF365]
        interp = make_interpreter(*words)

        run(interp, 6)
        assert interp.cpu.index == 0x404
        assert interp.memory.read_block(0x400, 4) == bytes(values)

        run(interp, 6)
        assert interp.cpu.index == 0x404
        assert [interp.cpu.get_register(i) for i in range(4)] == values

    def test_store_leaves_higher_registers_out(self):
        interp = make_interpreter(_load(0, 1), _load(1, 2), 0xA400, 0xF055)
        run(interp, 4)
        assert interp.memory.read_block(0x400, 2) == b"\x01\x00"
        assert interp.cpu.index == 0x401

    def test_store_past_end_of_memory(self):
        interp = make_interpreter(0xAFFF, 0xF155)
        run(interp, 1)
        with pytest.raises(MemoryAccessError):
            interp.run_next_instruction()

    def test_to_decimal(self):
        interp = make_interpreter(_load(5, 7), 0xA400, 0xF533)
        run(interp, 3)
        assert interp.memory.read_block(0x400, 3) == b"\x00\x00\x07"


class TestWaitForKey:
    """Fx0A two-phase protocol."""

    def test_arming_parks_sentinel(self):
        platform = RecordingPlatform()
        interp = make_interpreter(_load(4, 9), 0xF40A, platform=platform)
        run(interp, 2)
        assert interp.cpu.get_register(4) == 16
        assert interp.cpu.pc == 0x202
        assert interp.cpu.waiting_for_key is True

    def test_stale_press_is_discarded(self):
        platform = RecordingPlatform()
        platform.press(3)
        platform.release(3)
        interp = make_interpreter(0xF40A, platform=platform)
        run(interp, 3)
        assert interp.cpu.get_register(4) == 16
        assert interp.cpu.pc == 0x200

    def test_press_and_release_advances(self):
        platform = RecordingPlatform()
        interp = make_interpreter(0xF40A, platform=platform)
        run(interp, 1)
        platform.press(7)
        platform.release(7)
        run(interp, 1)
        assert interp.cpu.get_register(4) == 7
        assert interp.cpu.pc == 0x202
        assert interp.cpu.waiting_for_key is False

    def test_held_key_blocks_until_released(self):
        platform = RecordingPlatform()
        interp = make_interpreter(0xF40A, platform=platform)
        run(interp, 1)
        platform.press(0xA)
        run(interp, 3)
        assert interp.cpu.get_register(4) == 0xA
        assert interp.cpu.pc == 0x200
        platform.release(0xA)
        platform.press(0xB)
        platform.release(0xB)
        run(interp, 1)
        assert interp.cpu.get_register(4) == 0xA
        assert interp.cpu.pc == 0x202

    def test_release_without_new_press_keeps_waiting(self):
        """Every poll needs a latched press, even after a key is captured."""
        platform = RecordingPlatform()
        interp = make_interpreter(0xF40A, platform=platform)
        run(interp, 1)
        platform.press(7)
        run(interp, 1)
        platform.release(7)
        run(interp, 2)
        assert interp.cpu.get_register(4) == 7
        assert interp.cpu.pc == 0x200
        assert interp.cpu.waiting_for_key is True
        platform.press(7)
        platform.release(7)
        run(interp, 1)
        assert interp.cpu.pc == 0x202
        assert interp.cpu.waiting_for_key is False

    def test_later_press_does_not_replace_captured_key(self):
        platform = RecordingPlatform()
        interp = make_interpreter(0xF40A, platform=platform)
        run(interp, 1)
        platform.press(1)
        run(interp, 1)
        platform.press(2)
        platform.release(2)
        run(interp, 1)
        assert interp.cpu.get_register(4) == 1
        assert interp.cpu.pc == 0x200

    def test_wait_rearms_for_next_instruction(self):
        platform = RecordingPlatform()
        interp = make_interpreter(0xF40A, 0xF50A, platform=platform)
        run(interp, 1)
        platform.press(1)
        platform.release(1)
        run(interp, 2)
        assert interp.cpu.pc == 0x202
        assert interp.cpu.get_register(5) == 16


class TestControlFlow:
    """Jumps, calls and failures."""

    def test_call_return_nesting(self):
        interp = make_interpreter(0x2204, 0x1202, 0x2208, 0x00EE, 0x00EE)
        run(interp, 3)
        assert interp.cpu.pc == 0x206
        run(interp, 1)
        assert interp.cpu.pc == 0x202

    def test_jump_v0_wraps_address(self):
        interp = make_interpreter(_load(0, 0x10), 0xBFF8)
        run(interp, 2)
        assert interp.cpu.pc == 0x008

    def test_recursion_overflows_stack(self):
        interp = make_interpreter(0x2200)
        run(interp, 16)
        with pytest.raises(StackOverflow):
            interp.run_next_instruction()

    def test_return_without_call(self):
        interp = make_interpreter(0x00EE)
        with pytest.raises(StackUnderflow):
            interp.run_next_instruction()
        assert interp.cpu.pc == 0x200

    def test_unknown_opcode_leaves_state_untouched(self):
        interp = make_interpreter(_load(0, 1), 0x5011)
        run(interp, 1)
        before = interp.cpu.get_state()
        with pytest.raises(UnknownOpcode) as exc:
            interp.run_next_instruction()
        assert exc.value.opcode == 0x5011
        assert interp.cpu.get_state() == before

    def test_unsupported_operation(self, monkeypatch):
        """An operation without an executor is reported, not executed."""
        monkeypatch.delitem(instructions.INSTRUCTION_EXECUTORS, Op.SET_TO_RANDOM)
        interp = make_interpreter(0xC1FF)
        before = interp.cpu.get_state()
        with pytest.raises(UnsupportedOperation) as exc:
            interp.run_next_instruction()
        assert exc.value.operation.op is Op.SET_TO_RANDOM
        assert "RND V1, 0xFF" in exc.value.message
        assert interp.cpu.get_state() == before
