"""ROM runner with tracing for the CHIP-8 virtual machine."""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Union
from .errors import Chip8Error, ErrorInfo
from .image import Ch8Image, Image
from .managed import ManagedInterpreter
from .timing import TimingConfig

logger = logging.getLogger(__name__)


@dataclass
class KeyEvent:
    """Key state change applied before the given step runs.

    Steps are numbered from 1. Events for steps past the end of a run
    are never applied.
    """
    step: int
    key: int
    down: bool = True

    def __post_init__(self):
        if self.step < 1:
            raise ValueError(f"Key event step must be at least 1, got {self.step}")
        if not 0 <= self.key <= 0xF:
            raise ValueError(f"Key out of range: {self.key}")


@dataclass
class RunOptions:
    """Options for ROM execution."""
    max_steps: int = 1000
    seed: Optional[int] = None
    timing: TimingConfig = field(default_factory=TimingConfig)
    key_events: list[KeyEvent] = field(default_factory=list)
    trace: bool = False
    trace_registers: bool = False


@dataclass
class TraceRow:
    """Single row of execution trace."""
    step: int
    addr: int
    opcode: int
    instr_text: str
    index: int
    registers: Optional[list[int]] = None

    def to_dict(self, include_registers: bool) -> dict:
        result = {
            "step": self.step,
            "addr": self.addr,
            "opcode": self.opcode,
            "instr_text": self.instr_text,
            "index": self.index,
        }
        if include_registers:
            result["registers"] = self.registers
        return result


@dataclass
class RunResult:
    """Result of ROM execution."""
    status: str  # "ok" | "error"
    steps_executed: int
    final_state: dict
    display: list[str]
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "steps_executed": self.steps_executed,
            "final_state": self.final_state,
            "display": self.display,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def _final_state(machine: ManagedInterpreter) -> dict:
    state = machine.cpu.get_state()
    state["delay_timer"] = int(machine.platform.delay_timer)
    state["sound_timer"] = int(machine.platform.sound_timer)
    return state


def run_rom(
    rom: Union[bytes, Image],
    options: Optional[RunOptions] = None,
) -> RunResult:
    """Run a CHIP-8 ROM for a fixed number of instructions.

    Args:
        rom: Raw ``.ch8`` bytes or a prepared image
        options: Execution options

    Returns:
        RunResult with final state, rendered display and optional trace
    """
    if options is None:
        options = RunOptions()

    try:
        image = rom if isinstance(rom, Image) else Ch8Image(rom)
    except Chip8Error as e:
        return RunResult(
            status="error",
            steps_executed=0,
            final_state={},
            display=[],
            trace=[],
            error=e.to_error_info(),
        )

    rng = random.Random(options.seed)
    machine = ManagedInterpreter(image, lambda: rng.randrange(256), timing=options.timing)

    # step -> events, in submission order
    pending: dict[int, list[KeyEvent]] = {}
    for event in options.key_events:
        pending.setdefault(event.step, []).append(event)

    trace_rows: list[dict] = []
    error_info: Optional[ErrorInfo] = None
    steps_executed = 0

    logger.info(
        "Running image from 0x%03X for up to %d steps",
        int(image.entry_point),
        options.max_steps,
    )

    try:
        while steps_executed < options.max_steps:
            for event in pending.pop(steps_executed + 1, []):
                machine.set_key_down(event.key, event.down)

            instr_addr = int(machine.cpu.pc)
            op = machine.simulate_one_instruction()
            steps_executed += 1

            if options.trace:
                row = TraceRow(
                    step=steps_executed,
                    addr=instr_addr,
                    opcode=int(op.raw) if op.raw is not None else 0,
                    instr_text=op.mnemonic(),
                    index=int(machine.cpu.index),
                    registers=[int(v) for v in machine.cpu.registers] if options.trace_registers else None,
                )
                trace_rows.append(row.to_dict(include_registers=options.trace_registers))

    except Chip8Error as e:
        error_info = e.to_error_info()

    logger.info("Run finished after %d steps (%s)", steps_executed, "ok" if error_info is None else "error")

    return RunResult(
        status="ok" if error_info is None else "error",
        steps_executed=steps_executed,
        final_state=_final_state(machine),
        display=machine.frame_buffer.render(),
        trace=trace_rows,
        error=error_info,
    )
