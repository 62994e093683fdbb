"""
LMC Toolkit - Bounded Decimal Number Types

Every value the machine touches is a fixed-width decimal number:

  ThreeDigitNumber  000-999  mailboxes, calculator, I/O values
  TwoDigitNumber     00-99   program counter / mailbox address

Arithmetic never fails. It wraps and reports what happened through a
transient flag on the result:

  add3: a + b > 999  ->  (a + b - 1000, OVERFLOW)
  sub3: a - b < 0    ->  ((a - b) mod 1000, NEG)
  add2: a + b > 99   ->  ((a + b) mod 100, OVERFLOW)

Flags describe only the operation that produced the value. They are not
carried into later results and do not take part in equality.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import re

from .config import WORD_MIN, WORD_MAX, COUNTER_MIN, COUNTER_MAX

__all__ = [
    'Flag', 'NumberError', 'OutOfBounds',
    'ThreeDigitNumber', 'TwoDigitNumber',
    'add3', 'sub3', 'add2',
]


class Flag(Enum):
    NEG = 'NEG'
    OVERFLOW = 'OVERFLOW'

    def __str__(self) -> str:
        return self.value


class NumberError(ValueError):
    """Base class for bounded-number failures."""


class OutOfBounds(NumberError):
    """Raised when a value does not fit the number type's range."""
    def __init__(self, value: int, low: int, high: int):
        self.value = value
        self.low = low
        self.high = high
        width = len(str(high))
        super().__init__(
            f"out of bounds: {value} is not in the range "
            f"{low:0{width}d}-{high:0{width}d}")


# Plain ASCII decimal: optional sign, digits only
_DECIMAL_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)


def _check_range(value, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected int, got {type(value).__name__}")
    if not low <= value <= high:
        raise OutOfBounds(value, low, high)
    return value


@dataclass(frozen=True)
class ThreeDigitNumber:
    """A 3-digit decimal value (000-999) with an optional transient flag."""
    value: int
    flag: Optional[Flag] = field(default=None, compare=False)

    def __post_init__(self):
        _check_range(self.value, WORD_MIN, WORD_MAX)

    @classmethod
    def parse(cls, text: str) -> 'ThreeDigitNumber':
        """Parse a signed decimal literal such as '007' or '-3'.

        Only ASCII digits with an optional sign are accepted; underscores
        and non-ASCII digits are malformed.

        Raises ValueError for malformed text and OutOfBounds for values
        outside 000-999. OutOfBounds is itself a ValueError, so callers that
        need to tell them apart must catch NumberError first.
        """
        text = text.strip()
        if not _DECIMAL_RE.fullmatch(text):
            raise ValueError(f"invalid decimal literal: {text!r}")
        return cls(int(text))

    def __add__(self, other: 'ThreeDigitNumber') -> 'ThreeDigitNumber':
        if not isinstance(other, ThreeDigitNumber):
            return NotImplemented
        return add3(self, other)

    def __sub__(self, other: 'ThreeDigitNumber') -> 'ThreeDigitNumber':
        if not isinstance(other, ThreeDigitNumber):
            return NotImplemented
        return sub3(self, other)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:03d}"


@dataclass(frozen=True)
class TwoDigitNumber:
    """A 2-digit decimal value (00-99). Only used as the program counter."""
    value: int
    flag: Optional[Flag] = field(default=None, compare=False)

    def __post_init__(self):
        _check_range(self.value, COUNTER_MIN, COUNTER_MAX)

    def __add__(self, other: 'TwoDigitNumber') -> 'TwoDigitNumber':
        if not isinstance(other, TwoDigitNumber):
            return NotImplemented
        return add2(self, other)

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:02d}"


# ══════════════════════════════════════════════
# Wraparound arithmetic - pure functions of two inputs
# ══════════════════════════════════════════════

def add3(a: ThreeDigitNumber, b: ThreeDigitNumber) -> ThreeDigitNumber:
    """3-digit add. Sets OVERFLOW and drops the carry when the sum passes 999."""
    total = a.value + b.value
    if total > WORD_MAX:
        return ThreeDigitNumber(total - (WORD_MAX + 1), Flag.OVERFLOW)
    return ThreeDigitNumber(total)


def sub3(a: ThreeDigitNumber, b: ThreeDigitNumber) -> ThreeDigitNumber:
    """3-digit subtract. Sets NEG and wraps modulo 1000 when a < b."""
    diff = a.value - b.value
    if diff < 0:
        return ThreeDigitNumber(diff % (WORD_MAX + 1), Flag.NEG)
    return ThreeDigitNumber(diff)


def add2(a: TwoDigitNumber, b: TwoDigitNumber) -> TwoDigitNumber:
    """2-digit add for the program counter. 99 + 1 wraps to 00 with OVERFLOW."""
    total = a.value + b.value
    if total > COUNTER_MAX:
        return TwoDigitNumber(total % (COUNTER_MAX + 1), Flag.OVERFLOW)
    return TwoDigitNumber(total)
