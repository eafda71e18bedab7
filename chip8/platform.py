"""Capability interface between the interpreter and its host.

The interpreter never touches a screen, keyboard, clock or random source
directly. Everything it needs from the outside world goes through a
:class:`Platform`, so headless test doubles and real front ends can be
swapped without changing the executor.
"""

import abc
from dataclasses import dataclass
from typing import Iterator, Optional
from .data import Nibble, Word


SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32


@dataclass(frozen=True)
class Point:
    """Pixel coordinate; may lie outside the screen."""
    x: int
    y: int

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)


class Sprite:
    """Up to 15 rows of 8 pixels, most-significant bit leftmost."""

    def __init__(self, rows: bytes):
        self.rows = bytes(rows)

    def iter_pixels(self) -> Iterator[Point]:
        """Yield offsets of every set bit, row by row."""
        for dy, row in enumerate(self.rows):
            for dx in range(8):
                if row & (0x80 >> dx):
                    yield Point(dx, dy)


class Platform(abc.ABC):
    """Display, timers, keypad and randomness used by the executor."""

    @abc.abstractmethod
    def draw_sprite(self, pos: Point, sprite: Sprite) -> bool:
        """XOR a sprite onto the display; return True on collision."""

    @abc.abstractmethod
    def clear_screen(self) -> None:
        ...

    @abc.abstractmethod
    def get_delay_timer(self) -> Word:
        ...

    @abc.abstractmethod
    def set_delay_timer(self, value: Word) -> None:
        ...

    @abc.abstractmethod
    def set_sound_timer(self, value: Word) -> None:
        ...

    @abc.abstractmethod
    def is_key_down(self, key: Nibble) -> bool:
        ...

    @abc.abstractmethod
    def consume_key_press(self) -> Optional[Nibble]:
        """Return the latched key press, if any, and clear the latch."""

    @abc.abstractmethod
    def get_random_word(self) -> Word:
        ...
