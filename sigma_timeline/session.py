"""Session — the single live Timeline and its navigator, as seen by a UI."""

from __future__ import annotations

import logging

from .assembler import Assembler
from .delta_types import Delta
from .engine import ExecutionEngine
from .errors import AssemblyFailure
from .machine_types import MachineState
from .navigator import TimelineNavigator
from .run import run
from .run_types import RunConfig
from .timeline_types import Timeline

logger = logging.getLogger(__name__)


class TimelineSession:
    """Holds at most one Timeline at a time.

    A new ``run`` replaces the timeline and its navigator together; when
    there is no timeline every navigation call is a no-op and the derived
    observables report an empty session.
    """

    def __init__(
        self,
        config: RunConfig | None = None,
        engine: ExecutionEngine | None = None,
        assembler: Assembler | None = None,
    ):
        self._config = config or RunConfig()
        self._engine = engine
        self._assembler = assembler
        self._navigator: TimelineNavigator | None = None
        self._error: str | None = None

    def run(self, source_text: str, step_cap: int | None = None) -> Timeline:
        self._error = None
        try:
            timeline = run(
                source_text,
                step_cap,
                config=self._config,
                engine=self._engine,
                assembler=self._assembler,
            )
        except AssemblyFailure as exc:
            self._navigator = None
            self._error = exc.report()
            raise
        self._navigator = TimelineNavigator(timeline)
        return timeline

    def clear(self):
        self._navigator = None
        self._error = None

    # ── Observables ──────────────────────────────────────────────

    @property
    def timeline(self) -> Timeline | None:
        return self._navigator.timeline if self._navigator else None

    @property
    def has_timeline(self) -> bool:
        return self._navigator is not None

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def current_step(self) -> int:
        return self._navigator.current_step if self._navigator else 0

    @property
    def total_steps(self) -> int:
        return self._navigator.total_steps if self._navigator else 0

    @property
    def current_state(self) -> MachineState | None:
        return self._navigator.current_state if self._navigator else None

    @property
    def previous_state(self) -> MachineState | None:
        return self._navigator.previous_state if self._navigator else None

    @property
    def current_delta(self) -> Delta | None:
        return self._navigator.current_delta if self._navigator else None

    @property
    def current_line_index(self) -> int | None:
        return self._navigator.current_line_index if self._navigator else None

    @property
    def runtime_register_usage(self) -> frozenset[int]:
        if self._navigator is None:
            return frozenset()
        return self._navigator.runtime_register_usage

    @property
    def can_step_forward(self) -> bool:
        return self._navigator is not None and self._navigator.can_step_forward

    @property
    def can_step_backward(self) -> bool:
        return self._navigator is not None and self._navigator.can_step_backward

    @property
    def is_at_start(self) -> bool:
        return self.current_step == 0

    @property
    def is_at_end(self) -> bool:
        return self._navigator is not None and self._navigator.is_at_end

    # ── Navigation ───────────────────────────────────────────────

    def next_step(self) -> bool:
        return self._navigator.next_step() if self._navigator else False

    def prev_step(self) -> bool:
        return self._navigator.prev_step() if self._navigator else False

    def go_to_step(self, step: int) -> bool:
        return self._navigator.go_to_step(step) if self._navigator else False

    def reset(self):
        if self._navigator:
            self._navigator.reset()

    def go_to_end(self):
        if self._navigator:
            self._navigator.go_to_end()
