"""Run a CHIP-8 ROM headlessly and print the display."""

import argparse
import logging
import sys

from .errors import Chip8Error
from .image import Ch8Image
from .runner import RunOptions, run_rom
from .timing import SCHEDULES, STEP_COUNT, TimingConfig


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="chip8", description="Headless CHIP-8 runner")
    parser.add_argument("rom", help="Path to a .ch8 image")
    parser.add_argument(
        "--steps", type=int, default=1000, help="Number of instructions to execute"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for RND")
    parser.add_argument(
        "--schedule",
        choices=SCHEDULES,
        default=STEP_COUNT,
        help="Timer tick schedule",
    )
    parser.add_argument(
        "--trace", action="store_true", help="Print each executed instruction"
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        image = Ch8Image.from_file(args.rom)
    except (OSError, Chip8Error) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    options = RunOptions(
        max_steps=args.steps,
        seed=args.seed,
        timing=TimingConfig(schedule=args.schedule),
        trace=args.trace,
    )
    result = run_rom(image, options)

    for row in result.trace:
        print(f"{row['step']:6d}  0x{row['addr']:03X}  {row['opcode']:04X}  {row['instr_text']}")
    print("\n".join(result.display))

    if result.error is not None:
        print(f"error: {result.error.type}: {result.error.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
