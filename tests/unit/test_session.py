"""Tests for TimelineSession — the UI-facing holder of one timeline."""

import pytest

from sigma_timeline.errors import AssemblyFailure
from sigma_timeline.run_types import RunConfig
from sigma_timeline.session import TimelineSession
from sigma_timeline.timeline_types import RunStatus

from tests.unit.programs import BAD_SOURCE, LOOP_SOURCE, SPIN_SOURCE, SUM_ADDRESS, SUM_SOURCE


class TestEmptySession:
    def test_defaults(self):
        session = TimelineSession()

        assert not session.has_timeline
        assert session.timeline is None
        assert session.error is None
        assert session.current_step == 0
        assert session.total_steps == 0
        assert session.current_state is None
        assert session.previous_state is None
        assert session.current_delta is None
        assert session.current_line_index is None
        assert session.runtime_register_usage == frozenset()
        assert session.is_at_start
        assert not session.is_at_end
        assert not session.can_step_forward
        assert not session.can_step_backward

    def test_navigation_is_noop(self):
        session = TimelineSession()
        assert session.next_step() is False
        assert session.prev_step() is False
        assert session.go_to_step(0) is False
        session.reset()
        session.go_to_end()
        assert session.current_step == 0


class TestRun:
    def test_scenario_walkthrough(self):
        session = TimelineSession()
        session.run(SUM_SOURCE)

        assert session.total_steps == 5
        assert session.current_step == 0

        session.next_step()
        session.next_step()
        session.next_step()
        assert session.current_state.registers[3] == 59
        assert session.current_delta.changed_registers == {3: 59}

        session.go_to_end()
        assert session.current_state.memory[SUM_ADDRESS] == 59
        assert session.is_at_end

        session.reset()
        assert session.current_state.registers[3] == 0

    def test_new_run_replaces_timeline_and_cursor(self):
        session = TimelineSession()
        first = session.run(SUM_SOURCE)
        session.go_to_step(4)

        second = session.run(LOOP_SOURCE)

        assert session.timeline is second
        assert session.timeline is not first
        assert session.current_step == 0

    def test_config_step_cap(self):
        session = TimelineSession(RunConfig(step_cap=10))
        timeline = session.run(SPIN_SOURCE)
        assert timeline.status is RunStatus.STEP_CAP_REACHED
        assert session.total_steps == 10

    def test_explicit_step_cap(self):
        session = TimelineSession()
        session.run(SPIN_SOURCE, step_cap=4)
        assert session.total_steps == 4

    def test_clear(self):
        session = TimelineSession()
        session.run(SUM_SOURCE)
        session.clear()
        assert not session.has_timeline
        assert session.total_steps == 0


class TestAssemblyErrors:
    def test_failure_discards_timeline_and_records_error(self):
        session = TimelineSession()
        session.run(SUM_SOURCE)

        with pytest.raises(AssemblyFailure):
            session.run(BAD_SOURCE)

        assert not session.has_timeline
        assert session.error.startswith("Assembly failed with 3 error(s).")
        assert session.next_step() is False

    def test_successful_run_clears_error(self):
        session = TimelineSession()
        with pytest.raises(AssemblyFailure):
            session.run(BAD_SOURCE)

        session.run(SUM_SOURCE)

        assert session.error is None
        assert session.has_timeline
