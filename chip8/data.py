"""Bounded value types for the CHIP-8 virtual machine.

All types are ``int`` subclasses so they can be used directly as list indices
and compared with plain integers. ``Address`` and ``Word`` wrap into their
domain on construction; ``Nibble`` rejects values that do not fit.
"""

from .errors import InvalidNibble


class Address(int):
    """12-bit memory address."""

    DOMAIN_SIZE = 4096
    _MASK = DOMAIN_SIZE - 1

    def __new__(cls, value: int = 0):
        return super().__new__(cls, int(value) & cls._MASK)

    def __add__(self, offset: int) -> "Address":
        return Address(int(self) + int(offset))

    __radd__ = __add__

    def __sub__(self, offset: int) -> "Address":
        return Address(int(self) - int(offset))

    def __repr__(self) -> str:
        return f"Address(0x{int(self):03X})"


class Word(int):
    """8-bit register and memory cell value."""

    _MASK = 0xFF

    def __new__(cls, value: int = 0):
        return super().__new__(cls, int(value) & cls._MASK)

    def overflowing_add(self, other: int) -> tuple["Word", bool]:
        """Return the wrapped sum and whether it overflowed 8 bits."""
        total = int(self) + int(other)
        return Word(total), total > self._MASK

    def overflowing_sub(self, other: int) -> tuple["Word", bool]:
        """Return the wrapped difference and whether it borrowed."""
        diff = int(self) - int(other)
        return Word(diff), diff < 0

    def __repr__(self) -> str:
        return f"Word(0x{int(self):02X})"


class Nibble(int):
    """4-bit value, also used to select a register or a key."""

    def __new__(cls, value: int = 0):
        value = int(value)
        if value < 0 or value > 0xF:
            raise InvalidNibble(f"Nibble out of range: {value}")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Nibble(0x{int(self):X})"


RegisterIndex = Nibble

FLAG_REGISTER = RegisterIndex(0xF)


class OpCode(int):
    """Raw 16-bit instruction word."""

    def __new__(cls, value: int = 0):
        return super().__new__(cls, int(value) & 0xFFFF)

    @classmethod
    def from_bytes(cls, high: int, low: int) -> "OpCode":
        """Build an opcode from two big-endian bytes."""
        return cls(((high & 0xFF) << 8) | (low & 0xFF))

    def nibble(self, position: int) -> Nibble:
        """Return nibble at position 0..3, most-significant first."""
        shift = (3 - position) * 4
        return Nibble((int(self) >> shift) & 0xF)

    def nibbles(self) -> tuple[Nibble, Nibble, Nibble, Nibble]:
        return (self.nibble(0), self.nibble(1), self.nibble(2), self.nibble(3))

    def address(self) -> Address:
        """Low 12 bits (nnn)."""
        return Address(int(self))

    def low_byte(self) -> Word:
        """Low 8 bits (kk)."""
        return Word(int(self))

    def __repr__(self) -> str:
        return f"OpCode(0x{int(self):04X})"
