"""Delta computation and application.

``compute_delta`` turns a before/after pair of states into a sparse change
record; ``apply_delta`` replays one such record onto a working state. The
pair is lossless: applying ``compute_delta(before, after, ...)`` to a copy
of ``before`` yields a state equal to ``after``.
"""

from __future__ import annotations

from collections.abc import Iterable

from .constants import NUM_REGISTERS
from .delta_types import Delta
from .machine_types import MachineState


def _register_indices(indices: Iterable[int]) -> frozenset[int]:
    return frozenset(i for i in indices if 0 <= i < NUM_REGISTERS)


def _changed_registers(before: MachineState, after: MachineState) -> dict[int, int]:
    return {
        i: new
        for i, (old, new) in enumerate(zip(before.registers, after.registers))
        if old != new
    }


def _changed_memory(
    before: MachineState,
    after: MachineState,
    written_addresses: Iterable[int] | None,
) -> dict[int, int]:
    if written_addresses is not None:
        return {
            addr: after.memory[addr]
            for addr in sorted(written_addresses)
            if before.memory[addr] != after.memory[addr]
        }
    if before.memory == after.memory:
        return {}
    return {
        addr: new
        for addr, (old, new) in enumerate(zip(before.memory, after.memory))
        if old != new
    }


def compute_delta(
    before: MachineState,
    after: MachineState,
    observed_reads: Iterable[int] = (),
    observed_writes: Iterable[int] = (),
    written_addresses: Iterable[int] | None = None,
) -> Delta:
    """Record what changed between two states one instruction apart.

    Only registers and memory cells whose value actually differs are
    recorded. When ``written_addresses`` is given, the memory comparison is
    limited to those addresses instead of scanning all of memory.
    Neither state is modified.
    """
    return Delta(
        pc=after.pc,
        ir=after.ir,
        instr_addr=before.pc,
        changed_registers=_changed_registers(before, after),
        changed_memory=_changed_memory(before, after, written_addresses),
        flags=dict(after.flags),
        control=dict(after.control),
        halted=after.halted,
        blocked=after.blocked,
        instr_count=after.instr_count,
        fetched_registers=_register_indices(observed_reads),
        stored_registers=_register_indices(observed_writes),
    )


def apply_delta(state: MachineState, delta: Delta) -> MachineState:
    """Mechanically apply a Delta to ``state`` in place and return it.

    Scalar fields, flags and control words are overwritten unconditionally;
    registers and memory cells not named in the delta keep their values.
    """
    state.pc = delta.pc
    state.ir = delta.ir
    state.halted = delta.halted
    state.blocked = delta.blocked
    state.instr_count = delta.instr_count
    state.flags.update(delta.flags)
    state.control.update(delta.control)

    for index, value in delta.changed_registers.items():
        state.registers[index] = value
    for address, value in delta.changed_memory.items():
        state.memory[address] = value
    return state
