"""Named constants — machine geometry, flag layout and run defaults."""

from __future__ import annotations

WORD_BITS = 16
WORD_MASK = 0xFFFF
SIGN_BIT = 0x8000

NUM_REGISTERS = 16
MEMORY_WORDS = 65536

# Condition flags in bit order (bit 0 first); jumpc0/jumpc1 index this tuple.
FLAG_NAMES: tuple[str, ...] = ("g", "G", "E", "L", "l", "v", "V", "C")
FLAG_SYMBOLS: dict[str, str] = {
    "g": ">",
    "G": "G",
    "E": "E",
    "L": "L",
    "l": "<",
    "v": "v",
    "V": "V",
    "C": "C",
}

CONTROL_NAMES: tuple[str, ...] = ("statusreg", "mask", "req", "vect")

TRAP_HALT = 0
TRAP_READ = 1
TRAP_WRITE = 2
TRAP_BLOCKING_READ = 3

DEFAULT_STEP_CAP = 50000
DEFAULT_MODULE_NAME = "program"

OBJ_MODULE = "module"
OBJ_ORG = "org"
OBJ_DATA = "data"
OBJ_WORDS_PER_LINE = 8

COMMENT_CHAR = ";"
HEX_PREFIX = "$"
