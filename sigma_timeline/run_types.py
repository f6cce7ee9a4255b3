"""Run pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class RunConfig:
    """Groups run configuration."""

    step_cap: int = constants.DEFAULT_STEP_CAP
    module_name: str = constants.DEFAULT_MODULE_NAME
    verbose: bool = False


@dataclass
class RunStats:
    """Timing and size statistics for one assemble-and-run."""

    source_bytes: int = 0
    source_lines: int = 0
    object_words: int = 0

    # Stage timings (seconds)
    assemble_time: float = 0.0
    execution_time: float = 0.0
    total_time: float = 0.0

    steps: int = 0
    register_changes: int = 0
    memory_changes: int = 0
    status: str = ""

    def report(self) -> str:
        lines = [
            "═══ Run Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes, {self.object_words} object words",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]

        stages = [
            ("Assemble", self.assemble_time, f"{self.object_words} words"),
            ("Execute + record", self.execution_time, f"{self.steps} deltas"),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        lines.append("")
        lines.append(
            f"  Status: {self.status}; {self.register_changes} register changes,"
            f" {self.memory_changes} memory changes recorded"
        )
        return "\n".join(lines)


@dataclass(frozen=True)
class TimelineStats:
    """Progress through a timeline up to a given step."""

    current_step: int = 0
    total_steps: int = 0
    progress: float = 0.0
    completed: bool = False
    total_reg_changes: int = 0
    total_mem_changes: int = 0
