"""Instruction decoder for the CHIP-8 virtual machine."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional
from .data import Address, Nibble, OpCode, RegisterIndex, Word
from .errors import UnknownOpcode


class Op(Enum):
    """Instruction forms known to the decoder."""
    CLEAR_SCREEN = auto()
    RETURN = auto()
    JUMP = auto()
    CALL = auto()
    SKIP_IF_EQUAL = auto()
    SKIP_IF_NOT_EQUAL = auto()
    SKIP_IF_REGISTERS_EQUAL = auto()
    SET_REGISTER = auto()
    ADD_VALUE = auto()
    SET_TO_REGISTER = auto()
    OR = auto()
    AND = auto()
    XOR = auto()
    ADD_REGISTER = auto()
    SUB_REGISTER = auto()
    SHIFT_RIGHT = auto()
    SUB_REGISTER_REVERSED = auto()
    SHIFT_LEFT = auto()
    SKIP_IF_REGISTERS_NOT_EQUAL = auto()
    SET_INDEX = auto()
    JUMP_V0 = auto()
    SET_TO_RANDOM = auto()
    DRAW = auto()
    SKIP_IF_KEY_DOWN = auto()
    SKIP_IF_KEY_UP = auto()
    GET_DELAY_TIMER = auto()
    WAIT_FOR_KEY = auto()
    SET_DELAY_TIMER = auto()
    SET_SOUND_TIMER = auto()
    ADD_TO_INDEX = auto()
    SET_INDEX_TO_SPRITE = auto()
    TO_DECIMAL = auto()
    WRITE_MEMORY = auto()
    READ_MEMORY = auto()


# Op -> (opcode pattern, mnemonic template)
OPCODE_FORMS: dict[Op, tuple[str, str]] = {
    Op.CLEAR_SCREEN: ("00E0", "CLS"),
    Op.RETURN: ("00EE", "RET"),
    Op.JUMP: ("1nnn", "JP {address}"),
    Op.CALL: ("2nnn", "CALL {address}"),
    Op.SKIP_IF_EQUAL: ("3xkk", "SE V{x}, {word}"),
    Op.SKIP_IF_NOT_EQUAL: ("4xkk", "SNE V{x}, {word}"),
    Op.SKIP_IF_REGISTERS_EQUAL: ("5xy0", "SE V{x}, V{y}"),
    Op.SET_REGISTER: ("6xkk", "LD V{x}, {word}"),
    Op.ADD_VALUE: ("7xkk", "ADD V{x}, {word}"),
    Op.SET_TO_REGISTER: ("8xy0", "LD V{x}, V{y}"),
    Op.OR: ("8xy1", "OR V{x}, V{y}"),
    Op.AND: ("8xy2", "AND V{x}, V{y}"),
    Op.XOR: ("8xy3", "XOR V{x}, V{y}"),
    Op.ADD_REGISTER: ("8xy4", "ADD V{x}, V{y}"),
    Op.SUB_REGISTER: ("8xy5", "SUB V{x}, V{y}"),
    Op.SHIFT_RIGHT: ("8xy6", "SHR V{x}, V{y}"),
    Op.SUB_REGISTER_REVERSED: ("8xy7", "SUBN V{x}, V{y}"),
    Op.SHIFT_LEFT: ("8xyE", "SHL V{x}, V{y}"),
    Op.SKIP_IF_REGISTERS_NOT_EQUAL: ("9xy0", "SNE V{x}, V{y}"),
    Op.SET_INDEX: ("Annn", "LD I, {address}"),
    Op.JUMP_V0: ("Bnnn", "JP V0, {address}"),
    Op.SET_TO_RANDOM: ("Cxkk", "RND V{x}, {word}"),
    Op.DRAW: ("Dxyn", "DRW V{x}, V{y}, {n}"),
    Op.SKIP_IF_KEY_DOWN: ("Ex9E", "SKP V{x}"),
    Op.SKIP_IF_KEY_UP: ("ExA1", "SKNP V{x}"),
    Op.GET_DELAY_TIMER: ("Fx07", "LD V{x}, DT"),
    Op.WAIT_FOR_KEY: ("Fx0A", "LD V{x}, K"),
    Op.SET_DELAY_TIMER: ("Fx15", "LD DT, V{x}"),
    Op.SET_SOUND_TIMER: ("Fx18", "LD ST, V{x}"),
    Op.ADD_TO_INDEX: ("Fx1E", "ADD I, V{x}"),
    Op.SET_INDEX_TO_SPRITE: ("Fx29", "LD F, V{x}"),
    Op.TO_DECIMAL: ("Fx33", "LD B, V{x}"),
    Op.WRITE_MEMORY: ("Fx55", "LD [I], V{x}"),
    Op.READ_MEMORY: ("Fx65", "LD V{x}, [I]"),
}

_FIXED_FORMS = {
    0x00E0: Op.CLEAR_SCREEN,
    0x00EE: Op.RETURN,
}

# Keyed by nibble 0
_ADDRESS_FORMS = {
    0x1: Op.JUMP,
    0x2: Op.CALL,
    0xA: Op.SET_INDEX,
    0xB: Op.JUMP_V0,
}

# Keyed by nibble 0
_REGISTER_WORD_FORMS = {
    0x3: Op.SKIP_IF_EQUAL,
    0x4: Op.SKIP_IF_NOT_EQUAL,
    0x6: Op.SET_REGISTER,
    0x7: Op.ADD_VALUE,
    0xC: Op.SET_TO_RANDOM,
}

# Keyed by (nibble 0, nibble 3)
_REGISTER_PAIR_FORMS = {
    (0x5, 0x0): Op.SKIP_IF_REGISTERS_EQUAL,
    (0x8, 0x0): Op.SET_TO_REGISTER,
    (0x8, 0x1): Op.OR,
    (0x8, 0x2): Op.AND,
    (0x8, 0x3): Op.XOR,
    (0x8, 0x4): Op.ADD_REGISTER,
    (0x8, 0x5): Op.SUB_REGISTER,
    (0x8, 0x6): Op.SHIFT_RIGHT,
    (0x8, 0x7): Op.SUB_REGISTER_REVERSED,
    (0x8, 0xE): Op.SHIFT_LEFT,
    (0x9, 0x0): Op.SKIP_IF_REGISTERS_NOT_EQUAL,
}

# Keyed by (nibble 0, low byte)
_SINGLE_REGISTER_FORMS = {
    (0xE, 0x9E): Op.SKIP_IF_KEY_DOWN,
    (0xE, 0xA1): Op.SKIP_IF_KEY_UP,
    (0xF, 0x07): Op.GET_DELAY_TIMER,
    (0xF, 0x0A): Op.WAIT_FOR_KEY,
    (0xF, 0x15): Op.SET_DELAY_TIMER,
    (0xF, 0x18): Op.SET_SOUND_TIMER,
    (0xF, 0x1E): Op.ADD_TO_INDEX,
    (0xF, 0x29): Op.SET_INDEX_TO_SPRITE,
    (0xF, 0x33): Op.TO_DECIMAL,
    (0xF, 0x55): Op.WRITE_MEMORY,
    (0xF, 0x65): Op.READ_MEMORY,
}


@dataclass(frozen=True)
class Operation:
    """Decoded instruction with typed operands."""
    op: Op
    x: Optional[RegisterIndex] = None
    y: Optional[RegisterIndex] = None
    n: Optional[Nibble] = None
    word: Optional[Word] = None
    address: Optional[Address] = None
    raw: Optional[OpCode] = field(default=None, compare=False)

    @property
    def pattern(self) -> str:
        return OPCODE_FORMS[self.op][0]

    def mnemonic(self) -> str:
        """Render as assembly-like text, e.g. ``ADD V1, V2``."""
        template = OPCODE_FORMS[self.op][1]
        return template.format(
            x=f"{self.x:X}" if self.x is not None else "?",
            y=f"{self.y:X}" if self.y is not None else "?",
            n=int(self.n) if self.n is not None else "?",
            word=f"0x{self.word:02X}" if self.word is not None else "?",
            address=f"0x{self.address:03X}" if self.address is not None else "?",
        )

    def __str__(self) -> str:
        return self.mnemonic()


def decode(opcode: int) -> Operation:
    """Decode a raw instruction word.

    Raises:
        UnknownOpcode: if the word matches no form in the decode table
    """
    code = OpCode(opcode)
    family, x, y, n = code.nibbles()

    if int(code) in _FIXED_FORMS:
        return Operation(_FIXED_FORMS[int(code)], raw=code)

    if family in _ADDRESS_FORMS:
        return Operation(_ADDRESS_FORMS[family], address=code.address(), raw=code)

    if family in _REGISTER_WORD_FORMS:
        return Operation(
            _REGISTER_WORD_FORMS[family],
            x=RegisterIndex(x),
            word=code.low_byte(),
            raw=code,
        )

    if family == 0xD:
        return Operation(
            Op.DRAW,
            x=RegisterIndex(x),
            y=RegisterIndex(y),
            n=Nibble(n),
            raw=code,
        )

    op = _REGISTER_PAIR_FORMS.get((int(family), int(n)))
    if op is not None:
        return Operation(op, x=RegisterIndex(x), y=RegisterIndex(y), raw=code)

    op = _SINGLE_REGISTER_FORMS.get((int(family), int(code.low_byte())))
    if op is not None:
        return Operation(op, x=RegisterIndex(x), raw=code)

    raise UnknownOpcode(int(code))
