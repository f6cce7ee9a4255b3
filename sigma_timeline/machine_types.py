"""Machine model — data types (pure data, no execution logic)."""

from __future__ import annotations

from array import array
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    CONTROL_NAMES,
    FLAG_NAMES,
    MEMORY_WORDS,
    NUM_REGISTERS,
    WORD_MASK,
)


def _zero_words(count: int) -> array:
    return array("H", bytes(2 * count))


def _cleared_flags() -> dict[str, bool]:
    return {name: False for name in FLAG_NAMES}


def _cleared_control() -> dict[str, int]:
    return {name: 0 for name in CONTROL_NAMES}


@dataclass
class MachineState:
    """Every storage cell of the machine at one instant.

    Registers and memory are unsigned 16-bit arrays, so every index is
    always defined. A state produced by ``snapshot`` shares nothing with
    its source.
    """

    registers: array = field(default_factory=lambda: _zero_words(NUM_REGISTERS))
    memory: array = field(default_factory=lambda: _zero_words(MEMORY_WORDS))
    flags: dict[str, bool] = field(default_factory=_cleared_flags)
    control: dict[str, int] = field(default_factory=_cleared_control)
    pc: int = 0
    ir: int = 0
    instr_count: int = 0
    halted: bool = False
    blocked: bool = False

    @classmethod
    def create(cls) -> MachineState:
        return cls()

    def snapshot(self) -> MachineState:
        return MachineState(
            registers=array("H", self.registers),
            memory=array("H", self.memory),
            flags=dict(self.flags),
            control=dict(self.control),
            pc=self.pc,
            ir=self.ir,
            instr_count=self.instr_count,
            halted=self.halted,
            blocked=self.blocked,
        )

    @property
    def cc_word(self) -> int:
        word = 0
        for bit, name in enumerate(FLAG_NAMES):
            if self.flags[name]:
                word |= 1 << bit
        return word

    def flag_at_bit(self, bit: int) -> bool:
        if 0 <= bit < len(FLAG_NAMES):
            return self.flags[FLAG_NAMES[bit]]
        return False

    def set_flags(self, **values: bool):
        """Clear every flag, then set the named ones."""
        for name in FLAG_NAMES:
            self.flags[name] = False
        for name, value in values.items():
            if name not in self.flags:
                raise KeyError(f"Unknown condition flag: {name}")
            self.flags[name] = bool(value)

    def read_register(self, index: int) -> int:
        if index == 0:
            return 0
        return self.registers[index]

    def write_register(self, index: int, value: int) -> bool:
        """Write a register; R0 is hardwired to zero. Returns True if stored."""
        if index == 0:
            return False
        self.registers[index] = value & WORD_MASK
        return True

    def read_memory(self, address: int) -> int:
        return self.memory[address & WORD_MASK]

    def write_memory(self, address: int, value: int) -> int:
        address &= WORD_MASK
        self.memory[address] = value & WORD_MASK
        return address

    def to_dict(self) -> dict:
        result: dict[str, Any] = {
            "pc": self.pc,
            "ir": self.ir,
            "registers": list(self.registers),
            "memory": {
                addr: value for addr, value in enumerate(self.memory) if value
            },
            "flags": dict(self.flags),
            "control": dict(self.control),
            "instr_count": self.instr_count,
            "halted": self.halted,
        }
        if self.blocked:
            result["blocked"] = True
        return result
