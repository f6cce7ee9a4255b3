"""Orchestrator — assemble a program, execute it, and record a Timeline."""

from __future__ import annotations

import logging
import re
import time

from .assembler import Assembler, Sigma16Assembler
from .assembly_types import AssemblyResult, ProgramInfo
from .constants import COMMENT_CHAR, DEFAULT_MODULE_NAME, NUM_REGISTERS
from .delta import compute_delta
from .delta_types import Delta
from .engine import ExecutionEngine, Sigma16Engine
from .errors import AssemblyFailure
from .formatters import format_condition_codes, word_to_hex
from .loader import load_object_code
from .machine_types import MachineState
from .run_types import RunConfig, RunStats
from .timeline_types import RunStatus, Timeline

logger = logging.getLogger(__name__)

_REGISTER_MENTION_RE = re.compile(r"\bR(1[0-5]|[0-9])\b", re.IGNORECASE)


def detect_registers_used(source_text: str) -> frozenset[int]:
    """Register indices mentioned anywhere in the code part of the source."""
    used: set[int] = set()
    for line in source_text.splitlines():
        code = line.split(COMMENT_CHAR, 1)[0]
        used.update(int(m) for m in _REGISTER_MENTION_RE.findall(code))
    return frozenset(i for i in used if i < NUM_REGISTERS)


def _assemble_or_fail(
    assembler: Assembler, module_name: str, source_text: str
) -> AssemblyResult:
    result = assembler.assemble(module_name, source_text)
    if result.error_count > 0:
        logger.info(
            "Assembly of %s failed with %d error(s)", module_name, result.error_count
        )
        raise AssemblyFailure(result.error_count, result.diagnostics, module_name)
    return result


def _boot(
    engine: ExecutionEngine, assembly: AssemblyResult
) -> tuple[MachineState, ProgramInfo]:
    """Fresh engine state with the object code loaded and pc at the entry."""
    state = engine.reset_state()
    program_info = load_object_code(state, assembly.object_code)
    state.pc = program_info.start_address
    return state, program_info


def _log_delta(step: int, delta: Delta):
    """Print verbose step-by-step execution info."""
    print(f"[step {step}] {word_to_hex(delta.instr_addr)}  ir={word_to_hex(delta.ir)}")
    for reg, val in delta.changed_registers.items():
        print(f"    R{reg} = {word_to_hex(val)}")
    for addr, val in delta.changed_memory.items():
        print(f"    mem[{word_to_hex(addr)}] = {word_to_hex(val)}")
    print(f"    flags: {format_condition_codes(delta.flags)}")
    print(f"    → pc {word_to_hex(delta.pc)}")
    if delta.halted:
        print("    halted")


def record_deltas(
    engine: ExecutionEngine,
    state: MachineState,
    step_cap: int,
    verbose: bool = False,
) -> list[Delta]:
    """Step ``state`` until the engine halts or ``step_cap`` is reached.

    Each instruction is bracketed by a snapshot of the state before it; the
    delta is computed against the live state afterwards, limiting the memory
    comparison to the addresses the engine reports as written.
    """
    deltas: list[Delta] = []
    while not engine.is_halted(state) and len(deltas) < step_cap:
        before = state.snapshot()
        access = engine.execute_one_instruction(state)
        delta = compute_delta(
            before,
            state,
            access.read_registers,
            access.written_registers,
            access.written_addresses,
        )
        deltas.append(delta)
        if verbose:
            _log_delta(len(deltas), delta)
    return deltas


def _run_status(engine: ExecutionEngine, state: MachineState) -> RunStatus:
    if state.blocked:
        return RunStatus.BLOCKED
    if engine.is_halted(state):
        return RunStatus.HALTED
    return RunStatus.STEP_CAP_REACHED


def run(
    source_text: str,
    step_cap: int | None = None,
    *,
    config: RunConfig | None = None,
    engine: ExecutionEngine | None = None,
    assembler: Assembler | None = None,
) -> Timeline:
    """End-to-end: assemble → load → execute with per-step delta recording.

    Args:
        source_text: Assembly source.
        step_cap: Maximum instructions to execute; overrides ``config``.
        config: Run configuration (step cap, module name, verbose).
        engine: Execution engine; defaults to the bundled Sigma16 engine.
        assembler: Assembler; defaults to the bundled Sigma16 assembler.

    Returns:
        An immutable Timeline. Hitting the step cap is reported through
        ``Timeline.status``, not raised.

    Raises:
        AssemblyFailure: if the source does not assemble. Nothing is executed.
        ValueError: if ``step_cap`` is negative.
    """
    config = config or RunConfig()
    cap = config.step_cap if step_cap is None else step_cap
    if cap < 0:
        raise ValueError(f"step_cap must be >= 0, got {cap}")
    engine = engine or Sigma16Engine()
    assembler = assembler or Sigma16Assembler()

    pipeline_start = time.perf_counter()
    stats = RunStats(
        source_bytes=len(source_text.encode("utf-8")),
        source_lines=len(source_text.splitlines()),
    )

    t0 = time.perf_counter()
    assembly = _assemble_or_fail(assembler, config.module_name, source_text)
    stats.assemble_time = time.perf_counter() - t0

    state, program_info = _boot(engine, assembly)
    stats.object_words = program_info.word_count
    initial_state = state.snapshot()

    t0 = time.perf_counter()
    deltas = record_deltas(engine, state, cap, verbose=config.verbose)
    stats.execution_time = time.perf_counter() - t0

    status = _run_status(engine, state)
    timeline = Timeline(
        baseline=initial_state,
        deltas=tuple(deltas),
        status=status,
        diagnostics=tuple(assembly.diagnostics),
        line_map=dict(assembly.line_map),
        source_text=source_text,
        module_name=config.module_name,
        program_info=program_info,
        program_registers=detect_registers_used(source_text),
    )

    stats.steps = timeline.total_steps
    stats.register_changes = sum(len(d.changed_registers) for d in deltas)
    stats.memory_changes = sum(len(d.changed_memory) for d in deltas)
    stats.status = status.value
    stats.total_time = time.perf_counter() - pipeline_start

    logger.info(
        "Recorded %d steps for %s (%s) in %.1fms",
        timeline.total_steps,
        config.module_name,
        status.value,
        stats.total_time * 1000,
    )
    if config.verbose:
        print()
        print(stats.report())

    return timeline


def execute(
    source_text: str,
    max_steps: int,
    *,
    module_name: str = DEFAULT_MODULE_NAME,
    engine: ExecutionEngine | None = None,
    assembler: Assembler | None = None,
) -> MachineState:
    """Assemble and execute up to ``max_steps`` instructions without recording.

    Returns the live final state. Used to cross-check replayed states against
    direct execution.
    """
    engine = engine or Sigma16Engine()
    assembler = assembler or Sigma16Assembler()
    assembly = _assemble_or_fail(assembler, module_name, source_text)
    state, _ = _boot(engine, assembly)
    for _ in range(max_steps):
        if engine.is_halted(state):
            break
        engine.execute_one_instruction(state)
    return state
