"""Sigma16 step-through timeline package."""

from .run import run, execute  # noqa: F401
from .reconstruct import state_at_step, ReconstructionCache  # noqa: F401
from .navigator import TimelineNavigator  # noqa: F401
from .session import TimelineSession  # noqa: F401
from .delta import compute_delta, apply_delta  # noqa: F401
from .errors import AssemblyFailure, OutOfRangeError  # noqa: F401
from .timeline_types import Timeline, RunStatus  # noqa: F401
