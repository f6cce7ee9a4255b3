"""Execution engine — one-instruction stepping over a MachineState."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from .arithmetic import ArithResult, op_add, op_cmp, op_div, op_mul, op_sub
from .constants import (
    NUM_REGISTERS,
    TRAP_BLOCKING_READ,
    TRAP_HALT,
    WORD_MASK,
)
from .delta_types import AccessRecord
from .isa import InstructionFields, decode
from .machine_types import MachineState

logger = logging.getLogger(__name__)

REMAINDER_REGISTER = NUM_REGISTERS - 1


class ExecutionEngine(ABC):
    """Executes single instructions against a caller-owned state."""

    @abstractmethod
    def execute_one_instruction(self, state: MachineState) -> AccessRecord:
        """Execute exactly one instruction, mutating ``state`` in place."""
        ...

    @abstractmethod
    def is_halted(self, state: MachineState) -> bool: ...

    @abstractmethod
    def reset_state(self) -> MachineState: ...


class _Access:
    """Mutable collector for the storage one instruction touches."""

    def __init__(self, state: MachineState):
        self.state = state
        self.reads: set[int] = set()
        self.writes: set[int] = set()
        self.addresses: set[int] = set()

    def reg(self, index: int) -> int:
        self.reads.add(index)
        return self.state.read_register(index)

    def put_reg(self, index: int, value: int):
        if self.state.write_register(index, value):
            self.writes.add(index)

    def mem(self, address: int) -> int:
        return self.state.read_memory(address)

    def put_mem(self, address: int, value: int):
        self.addresses.add(self.state.write_memory(address, value))

    def record(self) -> AccessRecord:
        return AccessRecord(
            read_registers=frozenset(self.reads),
            written_registers=frozenset(self.writes),
            written_addresses=frozenset(self.addresses),
        )


Handler = Callable[[_Access, InstructionFields], None]


# ── RRR handlers ─────────────────────────────────────────────────


def _store_result(acc: _Access, fields: InstructionFields, result: ArithResult):
    acc.put_reg(fields.d, result.primary)
    if result.secondary is not None and fields.d != REMAINDER_REGISTER:
        acc.put_reg(REMAINDER_REGISTER, result.secondary)
    acc.state.set_flags(**result.flags)


def _binary(op: Callable[[int, int], ArithResult]) -> Handler:
    def inner(acc: _Access, fields: InstructionFields):
        _store_result(acc, fields, op(acc.reg(fields.a), acc.reg(fields.b)))

    return inner


def _addc(acc: _Access, fields: InstructionFields):
    carry_in = 1 if acc.state.flags["C"] else 0
    _store_result(
        acc, fields, op_add(acc.reg(fields.a), acc.reg(fields.b), carry_in)
    )


def _div(acc: _Access, fields: InstructionFields):
    result = op_div(acc.reg(fields.a), acc.reg(fields.b))
    if result is None:
        logger.debug("div by zero at %04x", acc.state.pc)
        acc.state.set_flags(V=True)
        return
    _store_result(acc, fields, result)


def _cmp(acc: _Access, fields: InstructionFields):
    acc.state.set_flags(**op_cmp(acc.reg(fields.a), acc.reg(fields.b)))


def _trap(acc: _Access, fields: InstructionFields):
    code = acc.reg(fields.d)
    acc.reg(fields.a)
    acc.reg(fields.b)
    if code == TRAP_HALT:
        acc.state.halted = True
    elif code == TRAP_BLOCKING_READ:
        acc.state.blocked = True
    else:
        logger.debug("trap code %d has no effect", code)


def _nop(acc: _Access, fields: InstructionFields):
    pass


def _exp(acc: _Access, fields: InstructionFields):
    # Second word is consumed but EXP instructions are not decoded.
    acc.state.pc = (acc.state.pc + 1) & WORD_MASK


# ── RX handlers (ea already computed) ───────────────────────────

RxHandler = Callable[[_Access, InstructionFields, int], None]


def _lea(acc: _Access, fields: InstructionFields, ea: int):
    acc.put_reg(fields.d, ea)


def _load(acc: _Access, fields: InstructionFields, ea: int):
    acc.put_reg(fields.d, acc.mem(ea))


def _store(acc: _Access, fields: InstructionFields, ea: int):
    acc.put_mem(ea, acc.reg(fields.d))


def _jump(acc: _Access, fields: InstructionFields, ea: int):
    acc.state.pc = ea


def _jumpc0(acc: _Access, fields: InstructionFields, ea: int):
    if not acc.state.flag_at_bit(fields.d):
        acc.state.pc = ea


def _jumpc1(acc: _Access, fields: InstructionFields, ea: int):
    if acc.state.flag_at_bit(fields.d):
        acc.state.pc = ea


def _jal(acc: _Access, fields: InstructionFields, ea: int):
    acc.put_reg(fields.d, acc.state.pc)
    acc.state.pc = ea


def _jumpz(acc: _Access, fields: InstructionFields, ea: int):
    if acc.reg(fields.d) == 0:
        acc.state.pc = ea


def _jumpnz(acc: _Access, fields: InstructionFields, ea: int):
    if acc.reg(fields.d) != 0:
        acc.state.pc = ea


def _testset(acc: _Access, fields: InstructionFields, ea: int):
    acc.put_reg(fields.d, acc.mem(ea))
    acc.put_mem(ea, 1)


def _rx_nop(acc: _Access, fields: InstructionFields, ea: int):
    pass


RX_DISPATCH: tuple[RxHandler, ...] = (
    _lea,  # 0
    _load,  # 1
    _store,  # 2
    _jump,  # 3
    _jumpc0,  # 4
    _jumpc1,  # 5
    _jal,  # 6
    _jumpz,  # 7
    _jumpnz,  # 8
    _testset,  # 9
    _rx_nop,  # a
    _rx_nop,  # b
    _rx_nop,  # c
    _rx_nop,  # d
    _rx_nop,  # e
    _rx_nop,  # f
)


def _rx(acc: _Access, fields: InstructionFields):
    state = acc.state
    disp = state.read_memory(state.pc)
    state.pc = (state.pc + 1) & WORD_MASK
    ea = (acc.reg(fields.a) + disp) & WORD_MASK
    RX_DISPATCH[fields.b](acc, fields, ea)


PRIMARY_DISPATCH: tuple[Handler, ...] = (
    _binary(op_add),  # 0 add
    _binary(op_sub),  # 1 sub
    _binary(op_mul),  # 2 mul
    _div,  # 3 div
    _cmp,  # 4 cmp
    _addc,  # 5 addc
    _nop,  # 6 muln
    _nop,  # 7 divn
    _nop,  # 8
    _nop,  # 9
    _nop,  # a
    _nop,  # b
    _trap,  # c
    _nop,  # d EXP3
    _exp,  # e EXP
    _rx,  # f RX
)


class Sigma16Engine(ExecutionEngine):
    """Bundled engine for the RRR and RX instruction formats.

    Interrupts, timers and EXP instructions are not modelled.
    """

    def execute_one_instruction(self, state: MachineState) -> AccessRecord:
        if self.is_halted(state):
            logger.debug("Skipping execution: machine is halted or blocked")
            return AccessRecord()

        acc = _Access(state)
        instr_addr = state.pc
        state.ir = state.read_memory(instr_addr)
        state.pc = (instr_addr + 1) & WORD_MASK
        fields = decode(state.ir)

        PRIMARY_DISPATCH[fields.op](acc, fields)
        state.instr_count += 1

        logger.debug(
            "%04x: %s (ir=%04x) -> pc=%04x",
            instr_addr,
            fields.mnemonic,
            state.ir,
            state.pc,
        )
        return acc.record()

    def is_halted(self, state: MachineState) -> bool:
        return state.halted or state.blocked

    def reset_state(self) -> MachineState:
        return MachineState.create()
