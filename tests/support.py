"""Shared helpers for the test suite."""

from typing import Optional

from chip8.data import Nibble, Word
from chip8.image import Ch8Image
from chip8.interpreter import Interpreter
from chip8.platform import Platform, Point, Sprite


def assemble(*words: int) -> bytes:
    """Pack 16-bit instruction words big-endian."""
    out = bytearray()
    for word in words:
        out.append((word >> 8) & 0xFF)
        out.append(word & 0xFF)
    return bytes(out)


class RecordingPlatform(Platform):
    """Headless platform that records calls and replays scripted input."""

    def __init__(self, random_words=(), collision: bool = False):
        self.calls: list[tuple] = []
        self.delay_timer = Word(0)
        self.sound_timer = Word(0)
        self.keys: set[int] = set()
        self.latched: Optional[Nibble] = None
        self.collision = collision
        self._random_words = list(random_words)

    def draw_sprite(self, pos: Point, sprite: Sprite) -> bool:
        self.calls.append(("draw_sprite", pos, sprite.rows))
        return self.collision

    def clear_screen(self) -> None:
        self.calls.append(("clear_screen",))

    def get_delay_timer(self) -> Word:
        return self.delay_timer

    def set_delay_timer(self, value: Word) -> None:
        self.calls.append(("set_delay_timer", int(value)))
        self.delay_timer = Word(value)

    def set_sound_timer(self, value: Word) -> None:
        self.calls.append(("set_sound_timer", int(value)))
        self.sound_timer = Word(value)

    def is_key_down(self, key: Nibble) -> bool:
        return int(key) in self.keys

    def consume_key_press(self) -> Optional[Nibble]:
        key = self.latched
        self.latched = None
        return key

    def get_random_word(self) -> Word:
        return Word(self._random_words.pop(0))

    def press(self, key: int) -> None:
        self.keys.add(key)
        self.latched = Nibble(key)

    def release(self, key: int) -> None:
        self.keys.discard(key)


def make_interpreter(*words: int, platform: Optional[Platform] = None) -> Interpreter:
    """Interpreter over a ROM assembled from ``words``."""
    return Interpreter(Ch8Image(assemble(*words)), platform or RecordingPlatform())


def run(interp: Interpreter, steps: int) -> Interpreter:
    for _ in range(steps):
        interp.run_next_instruction()
    return interp


def check_display(frame_buffer, expected_raw: str) -> None:
    """Compare a frame buffer against ``#``/``.`` rows, ignoring indentation."""
    actual = frame_buffer.render()
    expected = [line.strip() for line in expected_raw.split("\n") if line.strip()]
    if actual != expected:
        raise AssertionError(
            "Wrong display content. Expected:\n\n"
            + "\n".join(expected)
            + "\n\nGot:\n\n"
            + "\n".join(actual)
        )
