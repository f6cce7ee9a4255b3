"""Object-code loader — copies org/data records into machine memory."""

from __future__ import annotations

import logging

from .assembly_types import ProgramInfo
from .constants import OBJ_DATA, OBJ_ORG, WORD_MASK
from .machine_types import MachineState

logger = logging.getLogger(__name__)


def parse_hex_word(text: str) -> int | None:
    cleaned = text.strip()
    if cleaned[:2].lower() == "0x":
        cleaned = cleaned[2:]
    if not cleaned:
        return None
    try:
        return int(cleaned, 16) & WORD_MASK
    except ValueError:
        return None


def _split_record(line: str) -> tuple[str, str]:
    """Split a record into keyword and operand text at the first whitespace run."""
    parts = line.split(None, 1)
    return parts[0], parts[1] if len(parts) > 1 else ""


def load_object_code(state: MachineState, object_lines: list[str]) -> ProgramInfo:
    """Write every ``data`` word into ``state.memory``.

    ``org`` moves the load address. Module, import, export and relocate
    records are ignored since only single-module programs are loaded.
    """
    address = 0
    word_count = 0
    min_address: int | None = None
    max_address: int | None = None

    def note(addr: int):
        nonlocal min_address, max_address
        if min_address is None or addr < min_address:
            min_address = addr
        if max_address is None or addr > max_address:
            max_address = addr

    for raw_line in object_lines:
        line = raw_line.strip()
        if not line:
            continue
        op, rest = _split_record(line)

        if op == OBJ_ORG:
            next_addr = parse_hex_word(rest)
            if next_addr is not None:
                address = next_addr
                note(address)
            continue

        if op == OBJ_DATA:
            for text in rest.split(","):
                value = parse_hex_word(text)
                if value is None:
                    continue
                state.write_memory(address, value)
                note(address)
                word_count += 1
                address = (address + 1) & WORD_MASK
            continue

    info = ProgramInfo(
        start_address=min_address if min_address is not None else 0,
        min_address=min_address,
        max_address=max_address,
        word_count=word_count,
    )
    logger.debug(
        "Loaded object code: start=%04x, %d words", info.start_address, info.word_count
    )
    return info
