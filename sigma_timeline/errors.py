"""Exception types raised by the timeline core."""

from __future__ import annotations


class TimelineError(Exception):
    """Base class for timeline failures."""


class AssemblyFailure(TimelineError):
    """Source text did not assemble; no timeline was produced."""

    def __init__(
        self,
        error_count: int,
        diagnostics: list[str] | tuple[str, ...] = (),
        module_name: str = "",
    ):
        super().__init__(f"Assembly failed with {error_count} error(s).")
        self.error_count = error_count
        self.diagnostics = tuple(diagnostics)
        self.module_name = module_name

    def report(self) -> str:
        return "\n".join([str(self), *self.diagnostics])


class OutOfRangeError(TimelineError, IndexError):
    """A step index fell outside ``[0, total_steps]``."""

    def __init__(self, step: object, total_steps: int):
        super().__init__(f"Step {step!r} is outside [0, {total_steps}]")
        self.step = step
        self.total_steps = total_steps
