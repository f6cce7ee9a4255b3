"""Timeline navigation — the current-step cursor over an immutable Timeline."""

from __future__ import annotations

import logging

from .delta_types import Delta
from .machine_types import MachineState
from .reconstruct import ReconstructionCache
from .timeline_types import Timeline

logger = logging.getLogger(__name__)


class TimelineNavigator:
    """Tracks a step index in ``[0, timeline.total_steps]``.

    The index is the only mutable field. ``current_state`` and
    ``previous_state`` are derived from it by replay and memoized, so
    repeated reads at the same step do not reconstruct again. Each read
    returns a caller-owned copy. Out-of-range moves are rejected without changing
    the index.
    """

    def __init__(self, timeline: Timeline, cache_capacity: int = 2):
        self._timeline = timeline
        self._cache = ReconstructionCache(timeline, capacity=cache_capacity)
        self._current_step = 0

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def cache(self) -> ReconstructionCache:
        return self._cache

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def total_steps(self) -> int:
        return self._timeline.total_steps

    # ── Movement ─────────────────────────────────────────────────

    def go_to_step(self, step: int) -> bool:
        if isinstance(step, bool) or not isinstance(step, int):
            logger.debug("Rejected non-integer step %r", step)
            return False
        if not 0 <= step <= self.total_steps:
            logger.debug("Rejected step %d outside [0, %d]", step, self.total_steps)
            return False
        self._current_step = step
        return True

    def next_step(self) -> bool:
        if not self.can_step_forward:
            logger.debug("Cannot step forward past step %d", self._current_step)
            return False
        self._current_step += 1
        return True

    def prev_step(self) -> bool:
        if not self.can_step_backward:
            logger.debug("Cannot step backward before step 0")
            return False
        self._current_step -= 1
        return True

    def reset(self):
        self._current_step = 0

    def go_to_end(self):
        self._current_step = self.total_steps

    # ── Derived views ────────────────────────────────────────────

    @property
    def can_step_forward(self) -> bool:
        return self._current_step < self.total_steps

    @property
    def can_step_backward(self) -> bool:
        return self._current_step > 0

    @property
    def is_at_start(self) -> bool:
        return self._current_step == 0

    @property
    def is_at_end(self) -> bool:
        return self._current_step == self.total_steps

    @property
    def current_state(self) -> MachineState:
        return self._cache.get(self._current_step)

    @property
    def previous_state(self) -> MachineState | None:
        if self._current_step == 0:
            return None
        return self._cache.get(self._current_step - 1)

    @property
    def current_delta(self) -> Delta | None:
        if self._current_step == 0:
            return None
        return self._timeline.deltas[self._current_step - 1]

    @property
    def current_line_index(self) -> int | None:
        """Source line of the instruction that produced the current step."""
        line_map = self._timeline.line_map
        if self._current_step == 0:
            return line_map.get(self._timeline.baseline.pc)
        return line_map.get(self.current_delta.instr_addr)

    @property
    def runtime_register_usage(self) -> frozenset[int]:
        used: set[int] = set()
        for delta in self._timeline.deltas[: self._current_step]:
            used |= delta.touched_registers
        return frozenset(used)
