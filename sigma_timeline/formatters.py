"""Formatting helpers for displaying words, states and deltas."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from .arithmetic import to_signed
from .constants import COMMENT_CHAR, FLAG_NAMES, FLAG_SYMBOLS, TRAP_HALT, WORD_MASK
from .isa import JUMP_ALIASES, RRR_OPCODES, RX_OPCODES, Format, decode
from .run_types import TimelineStats

if TYPE_CHECKING:
    from .delta_types import Delta
    from .machine_types import MachineState
    from .timeline_types import Timeline

_LABELLED_LINE_RE = re.compile(r"^([A-Za-z_]\w*):?\s+(.*)$")
_KNOWN_MNEMONICS = frozenset(RRR_OPCODES) | frozenset(RX_OPCODES) | frozenset(
    JUMP_ALIASES
) | {"data", "org"}


def word_to_hex(word: int) -> str:
    return f"{word & WORD_MASK:04x}"


def word_to_binary(word: int) -> str:
    return f"{word & WORD_MASK:016b}"


def word_to_decimal(word: int) -> int:
    """Two's complement reading of a 16-bit word."""
    return to_signed(word)


def register_name(index: int) -> str:
    return f"R{index}"


def _format_word(value: int, fmt: str) -> str:
    if fmt == "decimal":
        return f"{word_to_decimal(value):>6}"
    if fmt == "binary":
        return word_to_binary(value)
    return word_to_hex(value)


def format_register(index: int, value: int, fmt: str = "hex") -> str:
    return f"{register_name(index)}: {_format_word(value, fmt)}"


def format_memory(address: int, value: int, fmt: str = "hex") -> str:
    return f"[{word_to_hex(address)}]: {_format_word(value, fmt)}"


def format_condition_codes(flags: dict[str, bool]) -> str:
    symbols = [FLAG_SYMBOLS[name] for name in FLAG_NAMES if flags.get(name)]
    return " ".join(symbols) if symbols else "none"


def format_value(value: int) -> str:
    return f"0x{word_to_hex(value)} ({word_to_decimal(value)})"


@dataclass(frozen=True)
class DecodedInstruction:
    op: int
    mnemonic: str
    format: Format
    operands: str
    d: int
    a: int
    b: int
    disp: int | None
    hex: str
    machine_mnemonic: str
    machine_operands: str
    source_mnemonic: str | None = None
    source_operands: str | None = None


def _parse_source_instruction(line: str) -> tuple[str, str] | None:
    """Extract (mnemonic, operand text) from a source line, skipping a label."""
    code = line.split(COMMENT_CHAR, 1)[0]
    if not code.strip():
        return None
    rest = code.strip()
    if not code[0].isspace():
        match = _LABELLED_LINE_RE.match(rest)
        if match and match.group(1).lower() not in _KNOWN_MNEMONICS:
            rest = match.group(2).strip()
    parts = rest.split()
    if not parts:
        return None
    return parts[0].lower(), " ".join(parts[1:2])


def decode_instruction(
    ir: int,
    memory: Sequence[int] | None = None,
    address: int | None = None,
    source_line: str | None = None,
) -> DecodedInstruction:
    """Decode an instruction word for display.

    When ``memory`` and ``address`` are given, the displacement word that
    follows an RX or EXP instruction is read from memory.
    """
    fields = decode(ir)
    disp = None
    if memory is not None and address is not None:
        disp = memory[(address + 1) & WORD_MASK]

    fmt = fields.format
    mnemonic = fields.mnemonic
    d, a, b = fields.d, fields.a, fields.b
    if fmt is Format.RX:
        disp_text = word_to_hex(disp) if disp is not None else "disp"
        operands = f"R{d},{disp_text}[R{a}]"
    elif fmt is Format.EXP:
        extra = word_to_hex(disp) if disp is not None else "word"
        operands = f"R{d},R{a},R{b},{extra}"
    else:
        operands = f"R{d},R{a},R{b}"

    source_mnemonic = source_operands = None
    if source_line:
        parsed = _parse_source_instruction(source_line)
        if parsed:
            source_mnemonic, source_operands = parsed

    return DecodedInstruction(
        op=fields.op,
        mnemonic=source_mnemonic or mnemonic,
        format=fmt,
        operands=source_operands if source_mnemonic else operands,
        d=d,
        a=a,
        b=b,
        disp=disp,
        hex=word_to_hex(ir),
        machine_mnemonic=mnemonic,
        machine_operands=operands,
        source_mnemonic=source_mnemonic,
        source_operands=source_operands,
    )


def _label_lookup(symbols: dict[str, int] | None) -> dict[int, str]:
    if not symbols:
        return {}
    by_address: dict[int, str] = {}
    for name, addr in symbols.items():
        by_address.setdefault(addr, name)
    return by_address


def _taken_text(mnemonic: str, d: int, before: MachineState) -> str:
    """Whether a conditional jump branched, judged from the state it read."""
    if mnemonic in ("jumpz", "jumpnz"):
        condition = before.read_register(d) == 0
    else:
        condition = before.flag_at_bit(d)
    if mnemonic in ("jumpnz", "jumpc0"):
        condition = not condition
    return "taken" if condition else "not taken"


def describe_instruction(
    delta: Delta | None,
    current_state: MachineState | None,
    previous_state: MachineState | None,
    symbols: dict[str, int] | None = None,
) -> str:
    """One-sentence English description of the step that produced ``delta``."""
    if delta is None or current_state is None:
        return "Program loaded. Step forward to begin execution."

    before = previous_state or current_state
    decoded = decode_instruction(
        delta.ir, memory=before.memory, address=delta.instr_addr
    )
    mnemonic, d, a, b = decoded.machine_mnemonic, decoded.d, decoded.a, decoded.b
    rd, ra, rb = register_name(d), register_name(a), register_name(b)

    ea = None
    if decoded.format is Format.RX and decoded.disp is not None:
        ea = (decoded.disp + before.read_register(a)) & WORD_MASK
    ea_text = word_to_hex(ea) if ea is not None else "effective address"
    label = _label_lookup(symbols).get(ea) if ea is not None else None
    target = f"label {label} ({ea_text})" if label else ea_text

    if mnemonic in ("add", "sub", "mul", "div", "addc"):
        return f"{mnemonic.upper()} {ra} and {rb}, store result in {rd}."
    if mnemonic == "cmp":
        return f"Compare {ra} with {rb} and update condition codes."
    if mnemonic == "trap":
        code = before.read_register(d)
        if code == TRAP_HALT:
            return "Trap 0: halt execution."
        return f"Trap {word_to_hex(code)}: invoke system handler."
    if mnemonic == "lea":
        return f"Compute the address of {target} and store it in {rd}."
    if mnemonic == "load":
        value = before.read_memory(ea) if ea is not None else 0
        return f"Load {target} (value {format_value(value)}) into {rd}."
    if mnemonic == "store":
        value = current_state.read_memory(ea) if ea is not None else 0
        return f"Store {rd} into {target}. New value is {format_value(value)}."
    if mnemonic == "jump":
        return f"Jump to {target}."
    if mnemonic == "jal":
        return f"Store return address in {rd} and jump to {target}."
    if mnemonic in ("jumpz", "jumpnz"):
        cond = "is zero" if mnemonic == "jumpz" else "is not zero"
        taken = _taken_text(mnemonic, d, before)
        return f"Jump to {target} if {rd} {cond} ({taken})."
    if mnemonic in ("jumpc0", "jumpc1"):
        taken = _taken_text(mnemonic, d, before)
        bit_name = FLAG_SYMBOLS[FLAG_NAMES[d]] if d < len(FLAG_NAMES) else str(d)
        return (
            f"Jump to {target} if condition code bit {bit_name} is "
            f"{mnemonic[-1]} ({taken})."
        )
    if mnemonic == "testset":
        return f"Test and set {target}, returning the old value in {rd}."
    if mnemonic in ("noprx", "rrr1", "rrr2", "rrr3", "rrr4"):
        return "No operation."
    return f"Execute {mnemonic} instruction."


def delta_summary(
    delta: Delta | None,
    mode: str = "advanced",
    memory: Sequence[int] | None = None,
    symbols: dict[str, int] | None = None,
    source_line: str | None = None,
) -> list[str]:
    """Human-readable list of what one delta changed.

    ``beginner`` mode spells out register and memory values; ``advanced``
    lists only the changed locations and adds the condition codes.
    """
    if delta is None:
        return []

    changes = [f"PC: {word_to_hex(delta.pc)}"]
    instr = decode_instruction(
        delta.ir, memory=memory, address=delta.instr_addr, source_line=source_line
    )
    changes.append(f"Instruction: {instr.mnemonic} {instr.operands}")

    if delta.changed_registers:
        if mode == "beginner":
            regs = ", ".join(
                f"R{r} = {format_value(v)}" for r, v in delta.changed_registers.items()
            )
            changes.append(f"Registers updated: {regs}")
        else:
            regs = ", ".join(f"R{r}" for r in delta.changed_registers)
            changes.append(f"Registers changed: {regs}")

    if delta.changed_memory:
        if mode == "beginner":
            labels = _label_lookup(symbols)
            for addr, value in delta.changed_memory.items():
                name = labels.get(addr)
                where = (
                    f"variable {name} at {word_to_hex(addr)}"
                    if name
                    else f"[{word_to_hex(addr)}]"
                )
                changes.append(f"Memory: {where} = {format_value(value)}")
        else:
            addrs = ", ".join(word_to_hex(a) for a in delta.changed_memory)
            changes.append(f"Memory changed: {addrs}")

    if mode == "advanced" and any(delta.flags.values()):
        changes.append(f"Flags: {format_condition_codes(delta.flags)}")

    return changes


def execution_stats(timeline: Timeline | None, current_step: int) -> TimelineStats | None:
    if timeline is None:
        return None

    total = timeline.total_steps
    reg_changes = mem_changes = 0
    for delta in timeline.deltas[:current_step]:
        reg_changes += len(delta.changed_registers)
        mem_changes += len(delta.changed_memory)

    return TimelineStats(
        current_step=current_step,
        total_steps=total,
        progress=round(current_step / total * 100, 1) if total else 0.0,
        completed=timeline.completed,
        total_reg_changes=reg_changes,
        total_mem_changes=mem_changes,
    )


def format_state(state: MachineState, fmt: str = "hex") -> dict[str, Any]:
    """Display-ready dict of a state: formatted registers and non-zero memory."""
    return {
        "pc": word_to_hex(state.pc),
        "ir": word_to_hex(state.ir),
        "registers": [
            format_register(i, v, fmt) for i, v in enumerate(state.registers)
        ],
        "memory": [
            format_memory(addr, v, fmt)
            for addr, v in enumerate(state.memory)
            if v
        ],
        "flags": format_condition_codes(state.flags),
        "instr_count": state.instr_count,
        "halted": state.halted,
    }
