"""Assembler output schemas (pure data, no business logic)."""

from __future__ import annotations

from pydantic import BaseModel


class AssemblyResult(BaseModel):
    module_name: str
    object_code: list[str] = []
    error_count: int = 0
    diagnostics: list[str] = []
    line_map: dict[int, int] = {}  # address -> 0-based source line
    symbols: dict[str, int] = {}  # label -> address

    @property
    def ok(self) -> bool:
        return self.error_count == 0


class ProgramInfo(BaseModel):
    """Address range covered by loaded object code.

    ``word_count`` is the number of words actually written, which is smaller
    than the address span when ``org`` leaves gaps.
    """

    start_address: int = 0
    min_address: int | None = None
    max_address: int | None = None
    word_count: int = 0

    @property
    def span(self) -> int:
        if self.min_address is None or self.max_address is None:
            return 0
        return self.max_address - self.min_address + 1
