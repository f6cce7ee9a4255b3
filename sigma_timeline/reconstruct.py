"""State reconstruction — replay deltas from the initial snapshot."""

from __future__ import annotations

import logging
from collections import OrderedDict

from .delta import apply_delta
from .errors import OutOfRangeError
from .machine_types import MachineState
from .timeline_types import Timeline

logger = logging.getLogger(__name__)


def _check_step(timeline: Timeline, step: object) -> int:
    if isinstance(step, bool) or not isinstance(step, int):
        raise OutOfRangeError(step, timeline.total_steps)
    if step < 0 or step > timeline.total_steps:
        raise OutOfRangeError(step, timeline.total_steps)
    return step


def state_at_step(timeline: Timeline, step: int) -> MachineState:
    """Reconstruct the full machine state after ``step`` instructions.

    Starts from a fresh copy of ``timeline.baseline`` and applies
    ``deltas[0:step]`` in order, so the cost is linear in ``step``. The
    returned state is independently owned by the caller.

    Raises:
        OutOfRangeError: if ``step`` is outside ``[0, timeline.total_steps]``.
    """
    step = _check_step(timeline, step)
    state = timeline.baseline.snapshot()
    for delta in timeline.deltas[:step]:
        apply_delta(state, delta)
    return state


class ReconstructionCache:
    """Memoizes reconstructed states by step index.

    With the default capacity of 1 only the most recently requested step is
    kept; a larger capacity evicts least-recently-used entries. Cached states
    stay private: ``get`` hands out a copy, so a caller that edits its state
    cannot corrupt later reads of the same step.
    """

    def __init__(self, timeline: Timeline, capacity: int = 1):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._timeline = timeline
        self._capacity = capacity
        self._entries: OrderedDict[int, MachineState] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    def get(self, step: int) -> MachineState:
        step = _check_step(self._timeline, step)
        if step in self._entries:
            self._entries.move_to_end(step)
            self.hits += 1
            logger.debug("Step %d served from cache", step)
            return self._entries[step].snapshot()

        state = state_at_step(self._timeline, step)
        self.misses += 1
        logger.debug("Reconstructed step %d (cache miss)", step)
        self._entries[step] = state
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)
        return state.snapshot()

    def __contains__(self, step: object) -> bool:
        return step in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self):
        self._entries.clear()
