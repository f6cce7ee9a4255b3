"""Tests for the stepper command-line entry point."""

import json

from stepper import main

from tests.unit.programs import BAD_SOURCE, SPIN_SOURCE, SUM_SOURCE


def _json_block(out):
    """The JSON state printed after the final heading."""
    return json.loads(out[out.index("{"):])


class TestMain:
    def test_demo_program(self, capsys):
        assert main([]) == 0

        out = capsys.readouterr().out
        assert "Using built-in demo" in out
        assert "═══ Run: halted, 5 steps ═══" in out
        assert "═══ State at step 5 (100.0%) ═══" in out
        assert _json_block(out[out.index("State at step"):])["halted"] is True

    def test_source_file(self, tmp_path, capsys):
        path = tmp_path / "sum.asm.txt"
        path.write_text(SUM_SOURCE)

        assert main([str(path), "--step", "3", "--format", "decimal"]) == 0

        out = capsys.readouterr().out
        state = _json_block(out)
        assert state["registers"][3] == "R3:     59"
        assert "State at step 3 (60.0%)" in out

    def test_deltas_listing(self, tmp_path, capsys):
        path = tmp_path / "sum.asm.txt"
        path.write_text(SUM_SOURCE)

        assert main([str(path), "--deltas"]) == 0

        out = capsys.readouterr().out
        assert "[step 3] ADD R1 and R2, store result in R3." in out
        assert "Registers updated: R3 = 0x003b (59)" in out

    def test_step_cap(self, tmp_path, capsys):
        path = tmp_path / "spin.asm.txt"
        path.write_text(SPIN_SOURCE)

        assert main([str(path), "-n", "12"]) == 0

        assert "═══ Run: step_cap_reached, 12 steps ═══" in capsys.readouterr().out

    def test_assembly_failure_exit_code(self, tmp_path, capsys):
        path = tmp_path / "bad.asm.txt"
        path.write_text(BAD_SOURCE)

        assert main([str(path)]) == 1

        err = capsys.readouterr().err
        assert "Assembly failed with 3 error(s)." in err
        assert "line 2: unknown mnemonic 'frob'" in err

    def test_step_out_of_range(self, tmp_path, capsys):
        path = tmp_path / "sum.asm.txt"
        path.write_text(SUM_SOURCE)

        assert main([str(path), "--step", "99"]) == 2
        assert "Step 99 is outside [0, 5]" in capsys.readouterr().err

    def test_deltas_listing_replays_the_log_once(self, tmp_path, capsys, monkeypatch):
        import sigma_timeline.reconstruct as reconstruct

        calls = []
        original = reconstruct.state_at_step

        def counting_state_at_step(timeline, step):
            calls.append(step)
            return original(timeline, step)

        monkeypatch.setattr(reconstruct, "state_at_step", counting_state_at_step)
        path = tmp_path / "spin.asm.txt"
        path.write_text(SPIN_SOURCE)

        assert main([str(path), "--deltas", "-n", "300"]) == 0

        out = capsys.readouterr().out
        assert out.count("Jump to 0000.") == 300
        assert calls == [300]
