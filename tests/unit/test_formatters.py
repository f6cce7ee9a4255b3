"""Tests for display formatters — words, instructions, deltas and stats."""

from sigma_timeline.formatters import (
    decode_instruction,
    delta_summary,
    describe_instruction,
    execution_stats,
    format_condition_codes,
    format_memory,
    format_register,
    format_state,
    format_value,
    word_to_binary,
    word_to_decimal,
    word_to_hex,
)
from sigma_timeline.isa import Format
from sigma_timeline.navigator import TimelineNavigator
from sigma_timeline.run import run

from tests.unit.programs import SUM_SOURCE


def _at_step(step):
    nav = TimelineNavigator(run(SUM_SOURCE))
    nav.go_to_step(step)
    return nav


class TestWordFormats:
    def test_hex(self):
        assert word_to_hex(59) == "003b"
        assert word_to_hex(0x1FFFF) == "ffff"

    def test_binary(self):
        assert word_to_binary(5) == "0000000000000101"

    def test_decimal_is_twos_complement(self):
        assert word_to_decimal(0xFFFF) == -1
        assert word_to_decimal(0x7FFF) == 32767

    def test_register_and_memory(self):
        assert format_register(3, 59) == "R3: 003b"
        assert format_register(3, 0xFFFF, "decimal") == "R3:     -1"
        assert format_memory(10, 59, "binary") == "[000a]: 0000000000111011"

    def test_value(self):
        assert format_value(59) == "0x003b (59)"

    def test_condition_codes(self):
        assert format_condition_codes({}) == "none"
        assert format_condition_codes({"G": True, "g": True, "C": True}) == "> G C"
        assert format_condition_codes({"l": True, "L": True}) == "L <"


class TestDecodeInstruction:
    def test_rrr(self):
        decoded = decode_instruction(0x0312)
        assert decoded.mnemonic == "add"
        assert decoded.format is Format.RRR
        assert decoded.operands == "R3,R1,R2"

    def test_rx_without_memory(self):
        decoded = decode_instruction(0xF101)
        assert decoded.mnemonic == "load"
        assert decoded.operands == "R1,disp[R0]"
        assert decoded.disp is None

    def test_rx_reads_displacement(self):
        decoded = decode_instruction(0xF302, memory=[0, 0xF302, 0x000A], address=1)
        assert decoded.disp == 10
        assert decoded.operands == "R3,000a[R0]"

    def test_source_line_overrides_display(self):
        decoded = decode_instruction(0xF105, source_line="      jumpgt loop[R0]")
        assert decoded.mnemonic == "jumpgt"
        assert decoded.operands == "loop[R0]"
        assert decoded.machine_mnemonic == "jumpc1"

    def test_labelled_source_line(self):
        decoded = decode_instruction(0x0312, source_line="next  add R3,R1,R2 ; sum")
        assert decoded.source_mnemonic == "add"
        assert decoded.source_operands == "R3,R1,R2"


class TestDescribeInstruction:
    def test_before_first_step(self):
        nav = _at_step(0)
        text = describe_instruction(nav.current_delta, nav.current_state, nav.previous_state)
        assert text == "Program loaded. Step forward to begin execution."

    def test_load(self):
        nav = _at_step(1)
        text = describe_instruction(
            nav.current_delta, nav.current_state, nav.previous_state, {"x": 8}
        )
        assert text == "Load label x (0008) (value 0x002a (42)) into R1."

    def test_add(self):
        nav = _at_step(3)
        text = describe_instruction(nav.current_delta, nav.current_state, nav.previous_state)
        assert text == "ADD R1 and R2, store result in R3."

    def test_store_with_label(self):
        nav = _at_step(4)
        text = describe_instruction(
            nav.current_delta, nav.current_state, nav.previous_state, {"sum": 10}
        )
        assert text == "Store R3 into label sum (000a). New value is 0x003b (59)."

    def test_trap_halt(self):
        nav = _at_step(5)
        text = describe_instruction(nav.current_delta, nav.current_state, nav.previous_state)
        assert text == "Trap 0: halt execution."


class TestDeltaSummary:
    def test_none(self):
        assert delta_summary(None) == []

    def test_advanced_lists_locations_and_flags(self):
        nav = _at_step(3)
        assert delta_summary(nav.current_delta) == [
            "PC: 0005",
            "Instruction: add R3,R1,R2",
            "Registers changed: R3",
            "Flags: > G",
        ]

    def test_beginner_spells_out_values(self):
        nav = _at_step(4)
        lines = delta_summary(
            nav.current_delta,
            mode="beginner",
            memory=nav.timeline.initial_state.memory,
            symbols={"sum": 10},
            source_line="      store  R3,sum[R0]",
        )
        assert lines == [
            "PC: 0007",
            "Instruction: store R3,sum[R0]",
            "Memory: variable sum at 000a = 0x003b (59)",
        ]

    def test_beginner_registers(self):
        nav = _at_step(3)
        lines = delta_summary(nav.current_delta, mode="beginner")
        assert "Registers updated: R3 = 0x003b (59)" in lines
        assert not any(line.startswith("Flags") for line in lines)


class TestExecutionStats:
    def test_no_timeline(self):
        assert execution_stats(None, 0) is None

    def test_progress_and_change_totals(self):
        timeline = run(SUM_SOURCE)
        stats = execution_stats(timeline, 3)

        assert stats.current_step == 3
        assert stats.total_steps == 5
        assert stats.progress == 60.0
        assert stats.completed is True
        assert stats.total_reg_changes == 3
        assert stats.total_mem_changes == 0

    def test_empty_timeline_progress(self):
        stats = execution_stats(run(SUM_SOURCE, step_cap=0), 0)
        assert stats.progress == 0.0


class TestFormatState:
    def test_hex_state(self):
        nav = _at_step(5)
        result = format_state(nav.current_state)

        assert result["pc"] == "0008"
        assert result["registers"][3] == "R3: 003b"
        assert "[000a]: 003b" in result["memory"]
        assert result["halted"] is True
        assert result["instr_count"] == 5

    def test_decimal_state(self):
        nav = _at_step(3)
        result = format_state(nav.current_state, "decimal")
        assert result["registers"][3] == "R3:     59"
        assert result["flags"] == "> G"


class TestBranchOutcome:
    SOURCE = """\
      lea    R1,1[R0]
      {op}   R1,next[R0]
next  trap   R0,R0,R0
"""

    def _describe_branch(self, op):
        nav = TimelineNavigator(run(self.SOURCE.format(op=op)))
        nav.go_to_step(2)
        return describe_instruction(
            nav.current_delta, nav.current_state, nav.previous_state, {"next": 4}
        )

    def test_untaken_branch_to_next_instruction(self):
        assert self._describe_branch("jumpz") == (
            "Jump to label next (0004) if R1 is zero (not taken)."
        )

    def test_taken_branch_to_next_instruction(self):
        assert self._describe_branch("jumpnz") == (
            "Jump to label next (0004) if R1 is not zero (taken)."
        )

    def test_condition_bit_branch(self):
        nav = TimelineNavigator(run("      cmp R0,R0\n      jumpeq next[R0]\nnext  trap R0,R0,R0\n"))
        nav.go_to_step(2)
        text = describe_instruction(nav.current_delta, nav.current_state, nav.previous_state)
        assert text == "Jump to 0003 if condition code bit E is 1 (taken)."
