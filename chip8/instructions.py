"""Instruction execution for the CHIP-8 virtual machine."""

from typing import Callable, Optional
from .cpu import CPU
from .data import Nibble, Word
from .decoder import Op, Operation
from .errors import UnsupportedOperation
from .memory import Memory, font_address
from .platform import Platform, Point, Sprite


# Written into the target register while FX0A waits; outside the key range.
KEY_WAIT_SENTINEL = 16


def _skip_if(cpu: CPU, condition: bool) -> Optional[int]:
    """Return the address after the next instruction when condition holds."""
    if condition:
        return cpu.pc + 4
    return None


def _key(value: int) -> Nibble:
    return Nibble(value & 0xF)


# Instruction executor type
InstructionExecutor = Callable[[Operation, CPU, Memory, Platform], Optional[int]]


def execute_clear_screen(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """00E0: clear the display"""
    platform.clear_screen()
    return None


def execute_return(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """00EE: PC := instruction after the matching CALL"""
    return cpu.pop() + 2


def execute_jump(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """1nnn: PC := nnn"""
    return op.address


def execute_call(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """2nnn: push PC, PC := nnn"""
    cpu.push(cpu.pc)
    return op.address


def execute_skip_if_equal(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """3xkk: skip if Vx == kk"""
    return _skip_if(cpu, cpu.get_register(op.x) == op.word)


def execute_skip_if_not_equal(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """4xkk: skip if Vx != kk"""
    return _skip_if(cpu, cpu.get_register(op.x) != op.word)


def execute_skip_if_registers_equal(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """5xy0: skip if Vx == Vy"""
    return _skip_if(cpu, cpu.get_register(op.x) == cpu.get_register(op.y))


def execute_skip_if_registers_not_equal(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """9xy0: skip if Vx != Vy"""
    return _skip_if(cpu, cpu.get_register(op.x) != cpu.get_register(op.y))


def execute_set_register(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """6xkk: Vx := kk"""
    cpu.set_register(op.x, op.word)
    return None


def execute_add_value(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """7xkk: Vx := Vx + kk, VF untouched"""
    cpu.set_register(op.x, cpu.get_register(op.x) + op.word)
    return None


def execute_set_to_register(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy0: Vx := Vy"""
    cpu.set_register(op.x, cpu.get_register(op.y))
    return None


def execute_or(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy1: Vx := Vx OR Vy, VF := 0"""
    cpu.set_register(op.x, cpu.get_register(op.x) | cpu.get_register(op.y))
    cpu.flag = 0
    return None


def execute_and(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy2: Vx := Vx AND Vy, VF := 0"""
    cpu.set_register(op.x, cpu.get_register(op.x) & cpu.get_register(op.y))
    cpu.flag = 0
    return None


def execute_xor(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy3: Vx := Vx XOR Vy, VF := 0"""
    cpu.set_register(op.x, cpu.get_register(op.x) ^ cpu.get_register(op.y))
    cpu.flag = 0
    return None


def execute_add_register(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy4: Vx := Vx + Vy, VF := carry"""
    result, carry = cpu.get_register(op.x).overflowing_add(cpu.get_register(op.y))
    cpu.set_register(op.x, result)
    cpu.flag = int(carry)
    return None


def execute_sub_register(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy5: Vx := Vx - Vy, VF := NOT borrow"""
    result, borrow = cpu.get_register(op.x).overflowing_sub(cpu.get_register(op.y))
    cpu.set_register(op.x, result)
    cpu.flag = int(not borrow)
    return None


def execute_sub_register_reversed(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy7: Vx := Vy - Vx, VF := NOT borrow"""
    result, borrow = cpu.get_register(op.y).overflowing_sub(cpu.get_register(op.x))
    cpu.set_register(op.x, result)
    cpu.flag = int(not borrow)
    return None


def execute_shift_right(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xy6: Vx := Vy >> 1, VF := bit shifted out"""
    value = cpu.get_register(op.y)
    cpu.set_register(op.x, value >> 1)
    cpu.flag = value & 0x1
    return None


def execute_shift_left(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """8xyE: Vx := Vy << 1, VF := bit shifted out"""
    value = cpu.get_register(op.y)
    cpu.set_register(op.x, value << 1)
    cpu.flag = value >> 7
    return None


def execute_set_index(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Annn: I := nnn"""
    cpu.index = op.address
    return None


def execute_jump_v0(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Bnnn: PC := nnn + V0"""
    return op.address + cpu.get_register(0)


def execute_set_to_random(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Cxkk: Vx := random byte AND kk"""
    cpu.set_register(op.x, platform.get_random_word() & op.word)
    return None


def execute_draw(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Dxyn: draw n-byte sprite from I at (Vx, Vy), VF := collision"""
    sprite = Sprite(mem.read_block(cpu.index, op.n))
    pos = Point(cpu.get_register(op.x), cpu.get_register(op.y))
    cpu.flag = int(platform.draw_sprite(pos, sprite))
    return None


def execute_skip_if_key_down(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Ex9E: skip if key Vx is held"""
    return _skip_if(cpu, platform.is_key_down(_key(cpu.get_register(op.x))))


def execute_skip_if_key_up(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """ExA1: skip if key Vx is not held"""
    return _skip_if(cpu, not platform.is_key_down(_key(cpu.get_register(op.x))))


def execute_get_delay_timer(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx07: Vx := DT"""
    cpu.set_register(op.x, platform.get_delay_timer())
    return None


def execute_wait_for_key(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx0A: Vx := next key press, once that key is released.

    Returning ``cpu.pc`` stalls: the same instruction runs again on the next
    step. The first call arms the wait, dropping any stale press and parking
    the sentinel in Vx. Later calls consume the key latch and stall while it
    is empty. A press is captured into Vx only while the sentinel is still
    there. The instruction completes on a latched poll once the captured key
    is no longer down.
    """
    if not cpu.waiting_for_key:
        platform.consume_key_press()
        cpu.set_register(op.x, KEY_WAIT_SENTINEL)
        cpu.waiting_for_key = True
        return cpu.pc

    key = platform.consume_key_press()
    if key is None:
        return cpu.pc
    if cpu.get_register(op.x) == KEY_WAIT_SENTINEL:
        cpu.set_register(op.x, key)

    if platform.is_key_down(Nibble(cpu.get_register(op.x))):
        return cpu.pc

    cpu.waiting_for_key = False
    return None


def execute_set_delay_timer(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx15: DT := Vx"""
    platform.set_delay_timer(cpu.get_register(op.x))
    return None


def execute_set_sound_timer(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx18: ST := Vx"""
    platform.set_sound_timer(cpu.get_register(op.x))
    return None


def execute_add_to_index(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx1E: I := I + Vx"""
    cpu.index = cpu.index + cpu.get_register(op.x)
    return None


def execute_set_index_to_sprite(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx29: I := address of font glyph for digit Vx"""
    cpu.index = font_address(cpu.get_register(op.x))
    return None


def execute_to_decimal(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx33: MEM[I..I+2] := BCD digits of Vx"""
    value = cpu.get_register(op.x)
    base = int(cpu.index)
    mem.write(base, value // 100)
    mem.write(base + 1, (value // 10) % 10)
    mem.write(base + 2, value % 10)
    return None


def execute_write_memory(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx55: MEM[I..I+x] := V0..Vx, I := I + x + 1"""
    base = int(cpu.index)
    for i in range(op.x + 1):
        mem.write(base + i, cpu.get_register(i))
    cpu.index = cpu.index + op.x + 1
    return None


def execute_read_memory(op: Operation, cpu: CPU, mem: Memory, platform: Platform) -> Optional[int]:
    """Fx65: V0..Vx := MEM[I..I+x], I := I + x + 1"""
    base = int(cpu.index)
    for i in range(op.x + 1):
        cpu.set_register(i, mem.read(base + i))
    cpu.index = cpu.index + op.x + 1
    return None


# Instruction dispatch table
INSTRUCTION_EXECUTORS: dict[Op, InstructionExecutor] = {
    Op.CLEAR_SCREEN: execute_clear_screen,
    Op.RETURN: execute_return,
    Op.JUMP: execute_jump,
    Op.CALL: execute_call,
    Op.SKIP_IF_EQUAL: execute_skip_if_equal,
    Op.SKIP_IF_NOT_EQUAL: execute_skip_if_not_equal,
    Op.SKIP_IF_REGISTERS_EQUAL: execute_skip_if_registers_equal,
    Op.SET_REGISTER: execute_set_register,
    Op.ADD_VALUE: execute_add_value,
    Op.SET_TO_REGISTER: execute_set_to_register,
    Op.OR: execute_or,
    Op.AND: execute_and,
    Op.XOR: execute_xor,
    Op.ADD_REGISTER: execute_add_register,
    Op.SUB_REGISTER: execute_sub_register,
    Op.SHIFT_RIGHT: execute_shift_right,
    Op.SUB_REGISTER_REVERSED: execute_sub_register_reversed,
    Op.SHIFT_LEFT: execute_shift_left,
    Op.SKIP_IF_REGISTERS_NOT_EQUAL: execute_skip_if_registers_not_equal,
    Op.SET_INDEX: execute_set_index,
    Op.JUMP_V0: execute_jump_v0,
    Op.SET_TO_RANDOM: execute_set_to_random,
    Op.DRAW: execute_draw,
    Op.SKIP_IF_KEY_DOWN: execute_skip_if_key_down,
    Op.SKIP_IF_KEY_UP: execute_skip_if_key_up,
    Op.GET_DELAY_TIMER: execute_get_delay_timer,
    Op.WAIT_FOR_KEY: execute_wait_for_key,
    Op.SET_DELAY_TIMER: execute_set_delay_timer,
    Op.SET_SOUND_TIMER: execute_set_sound_timer,
    Op.ADD_TO_INDEX: execute_add_to_index,
    Op.SET_INDEX_TO_SPRITE: execute_set_index_to_sprite,
    Op.TO_DECIMAL: execute_to_decimal,
    Op.WRITE_MEMORY: execute_write_memory,
    Op.READ_MEMORY: execute_read_memory,
}


def execute_operation(
    op: Operation,
    cpu: CPU,
    mem: Memory,
    platform: Platform,
) -> Optional[int]:
    """Execute a single decoded operation.

    Returns:
        New PC value if the operation transfers control, skips or stalls,
        None to advance to the next instruction

    Raises:
        UnsupportedOperation: if no executor is registered for the operation
    """
    executor = INSTRUCTION_EXECUTORS.get(op.op)
    if executor is None:
        raise UnsupportedOperation(op, addr=int(cpu.pc))
    return executor(op, cpu, mem, platform)
