"""Tests for the object-code loader."""

from sigma_timeline.loader import load_object_code, parse_hex_word
from sigma_timeline.machine_types import MachineState


class TestParseHexWord:
    def test_plain_and_prefixed(self):
        assert parse_hex_word("f101") == 0xF101
        assert parse_hex_word(" 0x00ff ") == 0xFF

    def test_invalid_text(self):
        assert parse_hex_word("") is None
        assert parse_hex_word("zz") is None


class TestLoadObjectCode:
    def test_data_written_from_org(self):
        state = MachineState.create()

        info = load_object_code(state, ["module m", "org 0010", "data 0001,0002", "data 0003"])

        assert list(state.memory[0x10:0x13]) == [1, 2, 3]
        assert info.start_address == 0x10
        assert info.min_address == 0x10
        assert info.max_address == 0x12
        assert info.word_count == 3

    def test_data_without_org_loads_at_zero(self):
        state = MachineState.create()
        info = load_object_code(state, ["data abcd"])
        assert state.memory[0] == 0xABCD
        assert info.start_address == 0

    def test_unknown_records_and_blank_lines_ignored(self):
        state = MachineState.create()
        load_object_code(state, ["", "import x", "relocate 0001", "data 0005"])
        assert state.memory[0] == 5
        assert state.memory[1] == 0

    def test_empty_object_code(self):
        state = MachineState.create()
        info = load_object_code(state, [])
        assert info.word_count == 0
        assert info.start_address == 0
        assert state == MachineState.create()

    def test_word_count_excludes_org_gaps(self):
        state = MachineState.create()

        info = load_object_code(state, ["org 0000", "data f100,0001", "org 0020", "data 0007"])

        assert info.word_count == 3
        assert info.span == 0x21

    def test_records_split_on_any_whitespace(self):
        state = MachineState.create()

        info = load_object_code(state, ["org\t0010", "data  \t0005,0006"])

        assert list(state.memory[0x10:0x12]) == [5, 6]
        assert info.word_count == 2
