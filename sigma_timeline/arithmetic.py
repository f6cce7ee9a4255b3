"""Word arithmetic with condition-flag results."""

from __future__ import annotations

from dataclasses import dataclass, field

from .constants import SIGN_BIT, WORD_MASK

INT_MIN = -(SIGN_BIT)
INT_MAX = SIGN_BIT - 1


def to_signed(word: int) -> int:
    word &= WORD_MASK
    return word - (WORD_MASK + 1) if word & SIGN_BIT else word


def _fits_signed(value: int) -> bool:
    return INT_MIN <= value <= INT_MAX


@dataclass(frozen=True)
class ArithResult:
    """Primary result word, optional secondary word, and the flags to set."""

    primary: int
    flags: dict[str, bool] = field(default_factory=dict)
    secondary: int | None = None


def _result_flags(word: int) -> dict[str, bool]:
    signed = to_signed(word)
    return {"g": word != 0, "G": signed > 0, "E": word == 0, "L": signed < 0}


def op_add(a: int, b: int, carry_in: int = 0) -> ArithResult:
    raw = a + b + carry_in
    word = raw & WORD_MASK
    carry = raw > WORD_MASK
    flags = _result_flags(word)
    flags.update(
        V=not _fits_signed(to_signed(a) + to_signed(b) + carry_in),
        v=carry,
        C=carry,
    )
    return ArithResult(primary=word, flags=flags)


def op_sub(a: int, b: int) -> ArithResult:
    word = (a - b) & WORD_MASK
    flags = _result_flags(word)
    flags.update(
        V=not _fits_signed(to_signed(a) - to_signed(b)),
        v=a < b,
        C=a >= b,
    )
    return ArithResult(primary=word, flags=flags)


def op_mul(a: int, b: int) -> ArithResult:
    product = to_signed(a) * to_signed(b)
    word = product & WORD_MASK
    flags = _result_flags(word)
    flags.update(V=not _fits_signed(product), v=a * b > WORD_MASK)
    return ArithResult(primary=word, flags=flags)


def op_div(a: int, b: int) -> ArithResult | None:
    """Floor division; the remainder is the secondary result.

    Returns None on division by zero, which the caller reports via V.
    """
    if b == 0:
        return None
    quotient, remainder = divmod(to_signed(a), to_signed(b))
    word = quotient & WORD_MASK
    flags = _result_flags(word)
    flags["V"] = not _fits_signed(quotient)
    return ArithResult(primary=word, flags=flags, secondary=remainder & WORD_MASK)


def op_cmp(a: int, b: int) -> dict[str, bool]:
    sa, sb = to_signed(a), to_signed(b)
    return {"g": a > b, "l": a < b, "G": sa > sb, "L": sa < sb, "E": a == b}
