"""Timeline data types for step-by-step replay."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from .assembly_types import ProgramInfo
from .delta_types import Delta
from .machine_types import MachineState
from . import constants


class RunStatus(Enum):
    """How a run ended. Reaching the step cap is a status, not an error."""

    HALTED = "halted"
    BLOCKED = "blocked"
    STEP_CAP_REACHED = "step_cap_reached"


@dataclass(frozen=True)
class Timeline:
    """One initial snapshot plus the ordered log of per-instruction deltas.

    ``deltas[i]`` is the transition from step ``i`` to step ``i + 1``; step 0
    is the initial state itself. Built once per run and never mutated.

    ``baseline`` is the replay origin and is copied on construction; read
    it through ``initial_state``, which hands out a caller-owned copy.
    """

    baseline: MachineState = field(repr=False)
    deltas: tuple[Delta, ...] = ()
    status: RunStatus = RunStatus.HALTED
    diagnostics: tuple[str, ...] = ()
    line_map: Mapping[int, int] = field(default_factory=dict)
    source_text: str = ""
    module_name: str = constants.DEFAULT_MODULE_NAME
    program_info: ProgramInfo = field(default_factory=ProgramInfo)
    program_registers: frozenset[int] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "baseline", self.baseline.snapshot())
        object.__setattr__(self, "deltas", tuple(self.deltas))
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
        object.__setattr__(self, "line_map", MappingProxyType(dict(self.line_map)))

    @property
    def initial_state(self) -> MachineState:
        return self.baseline.snapshot()

    @property
    def total_steps(self) -> int:
        return len(self.deltas)

    @property
    def completed(self) -> bool:
        return self.status is RunStatus.HALTED

    @property
    def truncated(self) -> bool:
        return self.status is RunStatus.STEP_CAP_REACHED
