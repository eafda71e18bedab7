"""CHIP-8 virtual machine package."""

from .runner import run_rom, RunOptions, RunResult, KeyEvent
from .image import Ch8Image, Image
from .managed import FrameBuffer, ManagedInterpreter, ManagedPlatform
from .interpreter import Interpreter
from .platform import Platform
from .timing import TimingConfig
from .errors import (
    Chip8Error,
    Chip8RuntimeError,
    ImageTooBig,
    UnknownOpcode,
    UnsupportedOperation,
)

__all__ = [
    "run_rom",
    "RunOptions",
    "RunResult",
    "KeyEvent",
    "Ch8Image",
    "Image",
    "FrameBuffer",
    "ManagedInterpreter",
    "ManagedPlatform",
    "Interpreter",
    "Platform",
    "TimingConfig",
    "Chip8Error",
    "Chip8RuntimeError",
    "ImageTooBig",
    "UnknownOpcode",
    "UnsupportedOperation",
]
