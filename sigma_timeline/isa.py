"""Instruction set tables — opcodes, formats, field decode and encode."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .constants import FLAG_NAMES, WORD_MASK


class Format(str, Enum):
    RRR = "RRR"
    RX = "RX"
    EXP = "EXP"
    EXP3 = "EXP3"


# Primary opcode (bits 15..12) -> mnemonic
RRR_MNEMONICS: tuple[str, ...] = (
    "add",
    "sub",
    "mul",
    "div",
    "cmp",
    "addc",
    "muln",
    "divn",
    "rrr1",
    "rrr2",
    "rrr3",
    "rrr4",
    "trap",
    "exp3",
    "exp",
    "rx",
)

OP_EXP3 = 0xD
OP_EXP = 0xE
OP_RX = 0xF

# RX secondary opcode (b field) -> mnemonic
RX_MNEMONICS: tuple[str, ...] = (
    "lea",
    "load",
    "store",
    "jump",
    "jumpc0",
    "jumpc1",
    "jal",
    "jumpz",
    "jumpnz",
    "testset",
    "noprx",
    "noprx",
    "noprx",
    "noprx",
    "noprx",
    "noprx",
)

RRR_OPCODES: dict[str, int] = {
    name: op for op, name in enumerate(RRR_MNEMONICS) if op < OP_EXP3
}
RX_OPCODES: dict[str, int] = {
    name: code for code, name in enumerate(RX_MNEMONICS) if name != "noprx"
}

# Conditional-jump pseudo-ops -> (real RX mnemonic, condition flag)
JUMP_ALIASES: dict[str, tuple[str, str]] = {
    "jumpgt": ("jumpc1", "G"),
    "jumple": ("jumpc0", "G"),
    "jumplt": ("jumpc1", "L"),
    "jumpge": ("jumpc0", "L"),
    "jumpeq": ("jumpc1", "E"),
    "jumpne": ("jumpc0", "E"),
    "jumpv": ("jumpc1", "V"),
    "jumpnv": ("jumpc0", "V"),
    "jumpco": ("jumpc1", "C"),
    "jumpnco": ("jumpc0", "C"),
}


def flag_bit(name: str) -> int:
    return FLAG_NAMES.index(name)


@dataclass(frozen=True)
class InstructionFields:
    op: int
    d: int
    a: int
    b: int

    @property
    def format(self) -> Format:
        if self.op == OP_RX:
            return Format.RX
        if self.op == OP_EXP:
            return Format.EXP
        if self.op == OP_EXP3:
            return Format.EXP3
        return Format.RRR

    @property
    def mnemonic(self) -> str:
        if self.op == OP_RX:
            return RX_MNEMONICS[self.b]
        return RRR_MNEMONICS[self.op]

    @property
    def word_count(self) -> int:
        """Words occupied in memory, including a displacement word."""
        return 2 if self.op in (OP_RX, OP_EXP) else 1


def decode(ir: int) -> InstructionFields:
    ir &= WORD_MASK
    return InstructionFields(
        op=(ir >> 12) & 0xF,
        d=(ir >> 8) & 0xF,
        a=(ir >> 4) & 0xF,
        b=ir & 0xF,
    )


def encode(op: int, d: int, a: int, b: int) -> int:
    return ((op & 0xF) << 12) | ((d & 0xF) << 8) | ((a & 0xF) << 4) | (b & 0xF)


def encode_rrr(mnemonic: str, d: int, a: int, b: int) -> int:
    return encode(RRR_OPCODES[mnemonic], d, a, b)


def encode_rx(mnemonic: str, d: int, a: int) -> int:
    return encode(OP_RX, d, a, RX_OPCODES[mnemonic])
