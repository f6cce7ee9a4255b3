"""Delta and access-record schemas (pure data, no business logic)."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator


class AccessRecord(BaseModel):
    """Storage the engine touched while executing one instruction."""

    model_config = ConfigDict(frozen=True)

    read_registers: frozenset[int] = frozenset()
    written_registers: frozenset[int] = frozenset()
    written_addresses: frozenset[int] = frozenset()


class Delta(BaseModel):
    """Change record for one executed instruction.

    ``changed_registers`` and ``changed_memory`` hold only cells whose value
    differs from the preceding state. Flags, control words and the scalar
    fields are stored on every delta, changed or not. Every mapping is a
    read-only view, so a delta cannot be edited after it is built.
    """

    model_config = ConfigDict(frozen=True, validate_default=True)

    pc: int
    ir: int
    instr_addr: int
    changed_registers: Mapping[int, int] = {}
    changed_memory: Mapping[int, int] = {}
    flags: Mapping[str, bool] = {}
    control: Mapping[str, int] = {}
    halted: bool = False
    blocked: bool = False
    instr_count: int = 0
    fetched_registers: frozenset[int] = frozenset()
    stored_registers: frozenset[int] = frozenset()

    @field_validator("changed_registers", "changed_memory", "flags", "control")
    @classmethod
    def _read_only(cls, value: Mapping) -> Mapping:
        return MappingProxyType(dict(value))

    @property
    def touched_registers(self) -> frozenset[int]:
        return self.fetched_registers | self.stored_registers

    @property
    def change_count(self) -> int:
        return len(self.changed_registers) + len(self.changed_memory)
