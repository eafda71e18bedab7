"""Self-contained CHIP-8 machine: reference platform plus timing driver."""

import logging
from typing import Callable, Optional
from .data import Nibble, Word
from .decoder import Operation
from .errors import Chip8Error
from .image import Image
from .interpreter import Interpreter
from .platform import Platform, Point, Sprite, SCREEN_HEIGHT, SCREEN_WIDTH
from .timing import TimingConfig, make_schedule

logger = logging.getLogger(__name__)

# Any zero-argument callable producing an int; only the low byte is used.
RandomNumberGenerator = Callable[[], int]

KEY_COUNT = 16


class FrameBuffer:
    """64x32 monochrome display, indexed ``[row][column]``."""

    def __init__(self):
        self._rows: list[list[bool]] = [[False] * SCREEN_WIDTH for _ in range(SCREEN_HEIGHT)]

    def get(self, x: int, y: int) -> bool:
        return self._rows[y][x]

    def toggle(self, x: int, y: int) -> None:
        self._rows[y][x] = not self._rows[y][x]

    def clear(self) -> None:
        for row in self._rows:
            row[:] = [False] * SCREEN_WIDTH

    def render(self, on: str = "#", off: str = ".") -> list[str]:
        """Render each row as a string of ``on``/``off`` characters."""
        return ["".join(on if pixel else off for pixel in row) for row in self._rows]

    def __str__(self) -> str:
        return "\n".join(self.render())


class ManagedPlatform(Platform):
    """Reference platform: in-memory display, timers and keypad."""

    def __init__(self, rand: RandomNumberGenerator):
        self.rand = rand
        self.frame_buffer = FrameBuffer()
        self.delay_timer = Word(0)
        self.sound_timer = Word(0)
        self.keys: list[bool] = [False] * KEY_COUNT
        self.last_key: Optional[Nibble] = None

    def draw_sprite(self, pos: Point, sprite: Sprite) -> bool:
        # Origin wraps around the screen, the sprite itself is clipped.
        origin = Point(pos.x % SCREEN_WIDTH, pos.y % SCREEN_HEIGHT)
        collision = False
        for pixel in sprite.iter_pixels():
            target = origin + pixel
            if target.x >= SCREEN_WIDTH or target.y >= SCREEN_HEIGHT:
                continue
            if self.frame_buffer.get(target.x, target.y):
                collision = True
            self.frame_buffer.toggle(target.x, target.y)
        return collision

    def clear_screen(self) -> None:
        self.frame_buffer.clear()

    def get_delay_timer(self) -> Word:
        return self.delay_timer

    def set_delay_timer(self, value: Word) -> None:
        self.delay_timer = Word(value)

    def get_sound_timer(self) -> Word:
        return self.sound_timer

    def set_sound_timer(self, value: Word) -> None:
        self.sound_timer = Word(value)

    def is_key_down(self, key: Nibble) -> bool:
        return self.keys[key]

    def consume_key_press(self) -> Optional[Nibble]:
        key = self.last_key
        self.last_key = None
        return key

    def get_random_word(self) -> Word:
        return Word(self.rand())

    def set_key_down(self, key: Nibble, is_down: bool) -> None:
        """Update a key's held state; a press also latches it."""
        if is_down:
            self.last_key = key
        self.keys[key] = is_down

    def tick_timers(self, delay_ticks: int = 1, sound_ticks: int = 0) -> None:
        """Count timers down without going below zero."""
        if delay_ticks:
            self.delay_timer = Word(max(0, self.delay_timer - delay_ticks))
        if sound_ticks:
            self.sound_timer = Word(max(0, self.sound_timer - sound_ticks))


class ManagedInterpreter:
    """Drives an interpreter over a :class:`ManagedPlatform` with timer ticks."""

    def __init__(
        self,
        image: Image,
        rand: RandomNumberGenerator,
        timing: Optional[TimingConfig] = None,
    ):
        self.timing = timing or TimingConfig()
        self._schedule = make_schedule(self.timing)
        self.inner: Interpreter[ManagedPlatform] = Interpreter(image, ManagedPlatform(rand))
        self.counter = 0

    @property
    def platform(self) -> ManagedPlatform:
        return self.inner.platform

    @property
    def cpu(self):
        return self.inner.cpu

    @property
    def memory(self):
        return self.inner.memory

    @property
    def frame_buffer(self) -> FrameBuffer:
        return self.inner.platform.frame_buffer

    @property
    def instruction_count(self) -> int:
        return self.counter

    def simulate_one_instruction(self) -> Operation:
        """Advance the instruction count, tick timers if due, run one instruction."""
        self.counter += 1
        delay_ticks, sound_ticks = self._schedule(self.counter)
        self.platform.tick_timers(delay_ticks, sound_ticks)
        try:
            return self.inner.run_next_instruction()
        except Chip8Error as e:
            e.step = self.counter
            e.addr = int(self.cpu.pc)
            logger.warning("Execution stopped at step %d, 0x%03X: %s", e.step, e.addr, e.message)
            raise

    def simulate_duration(self, duration: float) -> int:
        """Run as many instructions as fit into ``duration`` seconds.

        Returns:
            Number of instructions executed

        Raises:
            Chip8Error: the first execution error; earlier steps stay applied
        """
        steps = self.timing.steps_for(duration)
        logger.debug("Simulating %.3fs as %d instructions", duration, steps)
        for _ in range(steps):
            self.simulate_one_instruction()
        return steps

    def set_key_down(self, key: int, is_down: bool) -> None:
        self.platform.set_key_down(Nibble(key), is_down)
