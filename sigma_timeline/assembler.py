"""Two-pass assembler for the RRR/RX subset of Sigma16 assembly language.

Each source line has the shape ``[label] mnemonic operands [comment]``: a
label starts in column 0, fields are separated by whitespace and ``;``
begins a comment. Operands are written without spaces, for example
``R3,R1,R2`` or ``R1,x[R0]``.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .assembly_types import AssemblyResult
from .constants import (
    COMMENT_CHAR,
    FLAG_NAMES,
    HEX_PREFIX,
    NUM_REGISTERS,
    OBJ_DATA,
    OBJ_MODULE,
    OBJ_ORG,
    OBJ_WORDS_PER_LINE,
    WORD_MASK,
)
from .isa import JUMP_ALIASES, encode_rrr, encode_rx, flag_bit
from .formatters import word_to_hex

logger = logging.getLogger(__name__)

_REGISTER_RE = re.compile(r"^[Rr](\d{1,2})$")
_LABEL_RE = re.compile(r"^[A-Za-z_]\w*$")
_DECIMAL_RE = re.compile(r"^-?\d+$")
_HEX_RE = re.compile(r"^\$[0-9A-Fa-f]{1,4}$")
_INDEXED_RE = re.compile(r"^(?P<disp>[^\[\]]+)(?:\[(?P<reg>[^\[\]]+)\])?$")

RRR_THREE = frozenset({"add", "sub", "mul", "div", "addc", "trap"})
RX_REGISTER = frozenset({"lea", "load", "store", "jal", "jumpz", "jumpnz", "testset"})
RX_FLAG = frozenset({"jumpc0", "jumpc1"})


class AssemblyError(ValueError):
    """A single source-line error; collected into diagnostics, never escapes."""


@dataclass
class _Statement:
    line_index: int
    mnemonic: str
    operands: str
    address: int = 0
    size: int = 0
    words: list[int] = field(default_factory=list)


def _statement_size(mnemonic: str) -> int:
    if mnemonic in RRR_THREE or mnemonic == "cmp" or mnemonic == "data":
        return 1
    if mnemonic in RX_REGISTER or mnemonic in RX_FLAG or mnemonic == "jump":
        return 2
    if mnemonic in JUMP_ALIASES:
        return 2
    if mnemonic == "org":
        return 0
    raise AssemblyError(f"unknown mnemonic '{mnemonic}'")


def _parse_register(text: str) -> int:
    match = _REGISTER_RE.match(text.strip())
    if not match or int(match.group(1)) >= NUM_REGISTERS:
        raise AssemblyError(f"bad register '{text}'")
    return int(match.group(1))


def _split_operands(operands: str, expected: int) -> list[str]:
    parts = operands.split(",") if operands else []
    if len(parts) != expected:
        raise AssemblyError(
            f"expected {expected} operand(s), got {len(parts)} in '{operands}'"
        )
    return parts


class Assembler(ABC):
    """Translates source text into loadable object code."""

    @abstractmethod
    def assemble(self, module_name: str, source_text: str) -> AssemblyResult: ...


class Sigma16Assembler(Assembler):
    def assemble(self, module_name: str, source_text: str) -> AssemblyResult:
        diagnostics: list[str] = []
        symbols: dict[str, int] = {}
        statements = self._first_pass(source_text, symbols, diagnostics)

        memory: dict[int, int] = {}
        line_map: dict[int, int] = {}
        for stmt in statements:
            try:
                stmt.words = self._encode(stmt, symbols)
            except AssemblyError as exc:
                diagnostics.append(f"line {stmt.line_index + 1}: {exc}")
                stmt.words = [0] * stmt.size
            for offset, word in enumerate(stmt.words):
                addr = (stmt.address + offset) & WORD_MASK
                memory[addr] = word
                line_map[addr] = stmt.line_index

        result = AssemblyResult(
            module_name=module_name,
            object_code=_object_lines(module_name, memory),
            error_count=len(diagnostics),
            diagnostics=diagnostics,
            line_map=line_map,
            symbols=symbols,
        )
        logger.info(
            "Assembled %s: %d words, %d error(s)",
            module_name,
            len(memory),
            result.error_count,
        )
        return result

    def _first_pass(
        self, source_text: str, symbols: dict[str, int], diagnostics: list[str]
    ) -> list[_Statement]:
        statements: list[_Statement] = []
        location = 0
        for line_index, raw in enumerate(source_text.splitlines()):
            code = raw.split(COMMENT_CHAR, 1)[0]
            if not code.strip():
                continue
            fields = code.split()
            label = ""
            if not code[0].isspace():
                label = fields.pop(0).rstrip(":")
            try:
                if label:
                    self._define(label, location, symbols)
                if not fields:
                    continue
                stmt = _Statement(
                    line_index=line_index,
                    mnemonic=fields[0].lower(),
                    operands=fields[1] if len(fields) > 1 else "",
                    address=location,
                )
                stmt.size = _statement_size(stmt.mnemonic)
                if stmt.mnemonic == "org":
                    location = self._value(stmt.operands, symbols) & WORD_MASK
                    continue
            except AssemblyError as exc:
                diagnostics.append(f"line {line_index + 1}: {exc}")
                continue
            statements.append(stmt)
            location = (location + stmt.size) & WORD_MASK
        return statements

    def _define(self, label: str, address: int, symbols: dict[str, int]):
        if not _LABEL_RE.match(label):
            raise AssemblyError(f"bad label '{label}'")
        if label in symbols:
            raise AssemblyError(f"duplicate label '{label}'")
        symbols[label] = address

    def _value(self, text: str, symbols: dict[str, int]) -> int:
        text = text.strip()
        if _DECIMAL_RE.match(text):
            value = int(text)
            if not -(WORD_MASK + 1) // 2 <= value <= WORD_MASK:
                raise AssemblyError(f"value out of range '{text}'")
            return value & WORD_MASK
        if _HEX_RE.match(text):
            return int(text[len(HEX_PREFIX) :], 16)
        if _LABEL_RE.match(text):
            if text not in symbols:
                raise AssemblyError(f"undefined label '{text}'")
            return symbols[text]
        raise AssemblyError(f"bad operand '{text}'")

    def _indexed(self, text: str, symbols: dict[str, int]) -> tuple[int, int]:
        """Parse ``disp[Ra]``; a missing index register means R0."""
        match = _INDEXED_RE.match(text.strip())
        if not match:
            raise AssemblyError(f"bad address operand '{text}'")
        reg = match.group("reg")
        index = _parse_register(reg) if reg else 0
        return self._value(match.group("disp"), symbols), index

    def _encode(self, stmt: _Statement, symbols: dict[str, int]) -> list[int]:
        mnemonic, operands = stmt.mnemonic, stmt.operands

        if mnemonic == "data":
            return [self._value(operands, symbols)]

        if mnemonic in RRR_THREE:
            d, a, b = (_parse_register(p) for p in _split_operands(operands, 3))
            return [encode_rrr(mnemonic, d, a, b)]

        if mnemonic == "cmp":
            a, b = (_parse_register(p) for p in _split_operands(operands, 2))
            return [encode_rrr(mnemonic, 0, a, b)]

        if mnemonic in RX_REGISTER:
            reg_text, addr_text = _split_operands(operands, 2)
            d = _parse_register(reg_text)
            disp, a = self._indexed(addr_text, symbols)
            return [encode_rx(mnemonic, d, a), disp]

        if mnemonic in RX_FLAG:
            bit_text, addr_text = _split_operands(operands, 2)
            bit = self._flag_operand(bit_text)
            disp, a = self._indexed(addr_text, symbols)
            return [encode_rx(mnemonic, bit, a), disp]

        if mnemonic == "jump":
            (addr_text,) = _split_operands(operands, 1)
            disp, a = self._indexed(addr_text, symbols)
            return [encode_rx(mnemonic, 0, a), disp]

        if mnemonic in JUMP_ALIASES:
            real, flag = JUMP_ALIASES[mnemonic]
            (addr_text,) = _split_operands(operands, 1)
            disp, a = self._indexed(addr_text, symbols)
            return [encode_rx(real, flag_bit(flag), a), disp]

        raise AssemblyError(f"unknown mnemonic '{mnemonic}'")

    def _flag_operand(self, text: str) -> int:
        text = text.strip()
        if text in FLAG_NAMES:
            return flag_bit(text)
        if _DECIMAL_RE.match(text) and 0 <= int(text) < NUM_REGISTERS:
            return int(text)
        raise AssemblyError(f"bad condition bit '{text}'")


def _object_lines(module_name: str, memory: dict[int, int]) -> list[str]:
    """Render memory as module/org/data records, one org per contiguous run."""
    lines = [f"{OBJ_MODULE} {module_name}"]
    run: list[int] = []
    expected: int | None = None

    def flush():
        for start in range(0, len(run), OBJ_WORDS_PER_LINE):
            chunk = run[start : start + OBJ_WORDS_PER_LINE]
            lines.append(f"{OBJ_DATA} " + ",".join(word_to_hex(w) for w in chunk))
        run.clear()

    for addr in sorted(memory):
        if addr != expected:
            flush()
            lines.append(f"{OBJ_ORG} {word_to_hex(addr)}")
        run.append(memory[addr])
        expected = addr + 1
    flush()
    return lines


_default_assembler = Sigma16Assembler()


def assemble(module_name: str, source_text: str) -> AssemblyResult:
    return _default_assembler.assemble(module_name, source_text)
