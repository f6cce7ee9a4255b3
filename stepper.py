#!/usr/bin/env python3
"""Sigma16 stepper — assemble, run and inspect a program's execution timeline.

Runs a program once, records a delta per executed instruction, then prints
the machine state reconstructed at any requested step.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from sigma_timeline import Timeline, TimelineSession, apply_delta
from sigma_timeline.constants import DEFAULT_STEP_CAP
from sigma_timeline.errors import AssemblyFailure
from sigma_timeline.formatters import (
    delta_summary,
    describe_instruction,
    execution_stats,
    format_state,
)
from sigma_timeline.run_types import RunConfig

DEMO_SOURCE = """\
; add two numbers and store the sum
      load   R1,x[R0]
      load   R2,y[R0]
      add    R3,R1,R2
      store  R3,sum[R0]
      trap   R0,R0,R0
x     data   42
y     data   17
sum   data   0
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sigma16 step-through timeline")
    parser.add_argument("file", nargs="?",
                        help="Assembly source file to run")
    parser.add_argument("--max-steps", "-n", type=int, default=DEFAULT_STEP_CAP,
                        help=f"Maximum instructions to execute (default: {DEFAULT_STEP_CAP})")
    parser.add_argument("--step", "-s", type=int, default=None,
                        help="Print the machine state reconstructed at this step")
    parser.add_argument("--deltas", action="store_true",
                        help="Print a summary of every recorded delta")
    parser.add_argument("--format", "-f", default="hex",
                        choices=["hex", "decimal", "binary"],
                        help="Word display format (default: hex)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Print step-by-step execution and debug logging")
    return parser


def _print_deltas(timeline: Timeline):
    """Describe every recorded delta, replaying the log once from the start."""
    state = timeline.initial_state
    for step, delta in enumerate(timeline.deltas, start=1):
        previous = state.snapshot()
        apply_delta(state, delta)
        print(f"\n[step {step}] " + describe_instruction(delta, state, previous))
        for line in delta_summary(delta, mode="beginner"):
            print(f"    {line}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.file:
        source = DEMO_SOURCE
        print("No file provided. Using built-in demo:\n")
        print(source)
    else:
        with open(args.file) as f:
            source = f.read()

    session = TimelineSession(RunConfig(step_cap=args.max_steps, verbose=args.verbose))
    try:
        timeline = session.run(source)
    except AssemblyFailure as exc:
        print(exc.report(), file=sys.stderr)
        return 1

    print(f"═══ Run: {timeline.status.value}, {timeline.total_steps} steps ═══")

    if args.deltas:
        _print_deltas(timeline)

    target = timeline.total_steps if args.step is None else args.step
    if not session.go_to_step(target):
        print(f"Step {target} is outside [0, {timeline.total_steps}]", file=sys.stderr)
        return 2

    stats = execution_stats(timeline, session.current_step)
    print(f"\n═══ State at step {session.current_step} ({stats.progress}%) ═══")
    print(json.dumps(format_state(session.current_state, args.format), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
