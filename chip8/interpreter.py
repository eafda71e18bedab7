"""Fetch-decode-execute loop for the CHIP-8 virtual machine."""

import logging
from typing import Generic, TypeVar
from .cpu import CPU
from .data import Address, OpCode
from .decoder import Operation, decode
from .image import Image
from .instructions import execute_operation
from .memory import Memory
from .platform import Platform

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Platform)


class Interpreter(Generic[P]):
    """Owns CPU and memory; talks to the outside world through a platform."""

    def __init__(self, image: Image, platform: P):
        self.memory = Memory()
        image.load_into_memory(self.memory)
        self.cpu = CPU(start_address=image.entry_point)
        self.platform = platform

    def fetch(self) -> OpCode:
        """Read the instruction word at PC."""
        pc = int(self.cpu.pc)
        return OpCode.from_bytes(self.memory.read(pc), self.memory.read(pc + 1))

    def run_next_instruction(self) -> Operation:
        """Execute one instruction and resolve PC.

        Returns:
            The operation that was executed

        Raises:
            UnknownOpcode: if the fetched word does not decode
            UnsupportedOperation: if the operation has no executor
        """
        code = self.fetch()
        op = decode(code)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("0x%03X  %04X  %s", int(self.cpu.pc), int(code), op.mnemonic())

        new_pc = execute_operation(op, self.cpu, self.memory, self.platform)
        if new_pc is not None:
            self.cpu.pc = Address(new_pc)
        else:
            self.cpu.pc = self.cpu.pc + 2

        return op
