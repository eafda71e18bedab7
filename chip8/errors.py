"""Custom exceptions for the CHIP-8 virtual machine."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for API responses."""
    type: str
    message: str
    step: int
    addr: int
    opcode: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "step": self.step,
            "addr": self.addr,
            "opcode": self.opcode,
        }


class Chip8Error(Exception):
    """Base exception for all CHIP-8 errors."""

    def __init__(
        self,
        message: str,
        step: int = 0,
        addr: int = 0,
        opcode: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.addr = addr
        self.opcode = opcode

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            step=self.step,
            addr=self.addr,
            opcode=self.opcode,
        )


class InvalidNibble(Chip8Error, ValueError):
    """Value does not fit into 4 bits."""
    pass


class ImageError(Chip8Error):
    """Error while building or loading a program image."""
    pass


class ImageTooBig(ImageError):
    """Image does not fit into the address space."""
    pass


class Chip8RuntimeError(Chip8Error):
    """Error during program execution."""
    pass


class UnknownOpcode(Chip8RuntimeError):
    """Fetched word matches no entry in the decode table."""

    def __init__(self, opcode: int, **kwargs):
        super().__init__(f"Unknown opcode: 0x{opcode:04X}", opcode=opcode, **kwargs)


class UnsupportedOperation(Chip8RuntimeError):
    """Operation decodes but has no executor."""

    def __init__(self, operation, **kwargs):
        super().__init__(f"Unsupported operation: {operation.mnemonic()}", **kwargs)
        self.operation = operation


class MemoryAccessError(Chip8RuntimeError):
    """Memory address out of bounds."""
    pass


class StackOverflow(Chip8RuntimeError):
    """CALL with all 16 stack levels in use."""
    pass


class StackUnderflow(Chip8RuntimeError):
    """RETURN with an empty stack."""
    pass
