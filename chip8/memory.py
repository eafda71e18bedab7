"""Memory model for the CHIP-8 virtual machine."""

from typing import Iterable
from .data import Address, Word
from .errors import MemoryAccessError


FONT_ADDRESS = Address(0x000)
FONT_HEIGHT = 5
FONT_SPRITES: tuple[int, ...] = (
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
)


def font_address(digit: int) -> Address:
    """Address of the 5-byte glyph for a hex digit."""
    return FONT_ADDRESS + (digit & 0xF) * FONT_HEIGHT


class Memory:
    """Fixed 4096-byte address space with the font preloaded at 0x000."""

    size = Address.DOMAIN_SIZE

    def __init__(self):
        self._data: list[int] = [0] * self.size
        self.load(FONT_ADDRESS, FONT_SPRITES)

    def _check_bounds(self, addr: int) -> None:
        """Check if address is within valid range."""
        if addr < 0 or addr >= self.size:
            raise MemoryAccessError(f"Memory address out of range: {addr}")

    def read(self, addr: int) -> Word:
        """Read byte from memory address."""
        self._check_bounds(addr)
        return Word(self._data[addr])

    def write(self, addr: int, value: int) -> None:
        """Write byte to memory address, wrapped to 8 bits."""
        self._check_bounds(addr)
        self._data[addr] = value & 0xFF

    def read_block(self, addr: int, length: int) -> bytes:
        """Read ``length`` consecutive bytes starting at ``addr``."""
        if length:
            self._check_bounds(addr)
            self._check_bounds(addr + length - 1)
        return bytes(self._data[addr:addr + length])

    def load(self, addr: int, data: Iterable[int]) -> None:
        """Copy bytes into memory starting at ``addr``."""
        data = bytes(data)
        if data:
            self._check_bounds(addr)
            self._check_bounds(addr + len(data) - 1)
        self._data[addr:addr + len(data)] = list(data)

    def snapshot(self) -> list[int]:
        """Return a copy of the entire memory."""
        return self._data.copy()
