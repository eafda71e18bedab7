"""Timer tick schedules for the managed interpreter.

Programs see the delay and sound timers count down at 60 Hz while the CPU
runs at a much higher, nominal instruction rate. A schedule decides after
each instruction whether the timers should tick.
"""

from dataclasses import dataclass
from typing import Callable


STEP_COUNT = "step-count"
ELAPSED = "elapsed"
SCHEDULES = (STEP_COUNT, ELAPSED)


def _to_ns(seconds: float) -> int:
    return int(round(seconds * 1_000_000_000))


@dataclass
class TimingConfig:
    """Nominal durations, in seconds."""
    operation_duration: float = 0.002
    tick_duration: float = 1 / 60
    schedule: str = STEP_COUNT

    def __post_init__(self):
        if self.schedule not in SCHEDULES:
            raise ValueError(f"Unknown timer schedule: {self.schedule}")
        if _to_ns(self.operation_duration) < 1:
            raise ValueError("operation_duration must be at least 1ns")
        if _to_ns(self.tick_duration) < 1:
            raise ValueError("tick_duration must be at least 1ns")

    def steps_for(self, duration: float) -> int:
        """Number of whole instructions that fit into ``duration`` seconds."""
        if duration <= 0:
            return 0
        # Whole nanoseconds, so 1.0 / 0.002 is exactly 500.
        return _to_ns(duration) // _to_ns(self.operation_duration)


# count -> (delay timer ticks, sound timer ticks)
TickDecision = tuple[int, int]


class StepCountSchedule:
    """Tick the delay timer on a fixed pattern of instruction counts.

    The delay timer ticks when the count is a multiple of 8 but not of 48,
    and again whenever it is a multiple of 50. This reproduces the reference
    frame buffers exactly; the sound timer is left alone.
    """

    def __call__(self, count: int) -> TickDecision:
        tick = (count % 8 == 0 and count % 48 != 0) or count % 50 == 0
        return int(tick), 0


class ElapsedTimeSchedule:
    """Tick both timers once per elapsed ``tick_duration`` of simulated time."""

    def __init__(self, operation_duration: float, tick_duration: float):
        # Integer nanoseconds; the tick period is truncated.
        self._step_ns = _to_ns(operation_duration)
        self._tick_ns = max(1, int(tick_duration * 1_000_000_000))
        self._elapsed_ns = 0

    def __call__(self, count: int) -> TickDecision:
        self._elapsed_ns += self._step_ns
        ticks, self._elapsed_ns = divmod(self._elapsed_ns, self._tick_ns)
        return ticks, ticks


def make_schedule(config: TimingConfig) -> Callable[[int], TickDecision]:
    if config.schedule == ELAPSED:
        return ElapsedTimeSchedule(config.operation_duration, config.tick_duration)
    return StepCountSchedule()
