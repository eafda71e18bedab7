"""CPU state model for the CHIP-8 virtual machine."""

from .data import Address, FLAG_REGISTER, Word
from .errors import StackOverflow, StackUnderflow


REGISTER_COUNT = 16
STACK_DEPTH = 16


class CPU:
    """Register file, index register, program counter and call stack."""

    def __init__(self, start_address: int = 0x200):
        self.registers: list[Word] = [Word(0)] * REGISTER_COUNT
        self.index = Address(0)
        self.pc = Address(start_address)
        self.stack: list[Address] = [Address(0)] * STACK_DEPTH
        self.stack_top: int = 0
        self.waiting_for_key: bool = False

    def get_register(self, x: int) -> Word:
        return self.registers[x]

    def set_register(self, x: int, value: int) -> None:
        """Set Vx, wrapped to 8 bits."""
        self.registers[x] = Word(value)

    @property
    def flag(self) -> Word:
        return self.registers[FLAG_REGISTER]

    @flag.setter
    def flag(self, value: int) -> None:
        self.registers[FLAG_REGISTER] = Word(value)

    def push(self, address: int) -> None:
        """Push a return address onto the call stack."""
        if self.stack_top >= STACK_DEPTH:
            raise StackOverflow(f"Call stack overflow at depth {STACK_DEPTH}")
        self.stack[self.stack_top] = Address(address)
        self.stack_top += 1

    def pop(self) -> Address:
        """Pop the most recent return address."""
        if self.stack_top == 0:
            raise StackUnderflow("Return with empty call stack")
        self.stack_top -= 1
        address = self.stack[self.stack_top]
        self.stack[self.stack_top] = Address(0)
        return address

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        return {
            "pc": int(self.pc),
            "index": int(self.index),
            "registers": [int(v) for v in self.registers],
            "stack": [int(a) for a in self.stack[:self.stack_top]],
            "waiting_for_key": self.waiting_for_key,
        }

    def reset(self, start_address: int = 0x200) -> None:
        """Reset CPU to initial state."""
        self.registers = [Word(0)] * REGISTER_COUNT
        self.index = Address(0)
        self.pc = Address(start_address)
        self.stack = [Address(0)] * STACK_DEPTH
        self.stack_top = 0
        self.waiting_for_key = False
