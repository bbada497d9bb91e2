"""High-precision numeric backend.

The reference orbit is the only place that needs more than double precision.
It is written against ``HighPrecisionReal`` so any type offering the basic
arithmetic operators and ``float()`` can stand in for ``mpmath.mpf``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from mpmath import mp, mpf
from mpmath import libmp

DEFAULT_DPS = 30

_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class HighPrecisionReal(Protocol):
    def __add__(self, other: Any) -> Any: ...
    def __sub__(self, other: Any) -> Any: ...
    def __mul__(self, other: Any) -> Any: ...
    def __gt__(self, other: Any) -> bool: ...
    def __lt__(self, other: Any) -> bool: ...
    def __float__(self) -> float: ...


def parse_decimal(text: str, dps: Optional[int] = None) -> mpf:
    """Parse a decimal literal without going through a binary float.

    The working precision is at least ``DEFAULT_DPS`` digits and grows with
    the number of digits in the literal so nothing typed in is lost.
    """
    s = str(text).strip()
    if not _DECIMAL_RE.match(s):
        raise ValueError(f"Not a decimal number: {text!r}")
    mantissa = re.split(r"[eE]", s)[0]
    digits = sum(ch.isdigit() for ch in mantissa)
    prec = max(DEFAULT_DPS, digits + 10, dps or 0)
    with mp.workdps(prec):
        return mpf(s)


@dataclass(frozen=True)
class HighPrecisionComplex:
    real: HighPrecisionReal
    imag: HighPrecisionReal

    @classmethod
    def from_strings(cls, real: str, imag: str, dps: Optional[int] = None) -> "HighPrecisionComplex":
        return cls(parse_decimal(real, dps), parse_decimal(imag, dps))

    def to_complex(self) -> complex:
        return complex(float(self.real), float(self.imag))

    def shifted(self, d_real: Any, d_imag: Any, dps: Optional[int] = None) -> "HighPrecisionComplex":
        # mpf sums round to the context precision, not the operands'
        with mp.workdps(max(mp.dps, dps or 0)):
            return HighPrecisionComplex(self.real + d_real, self.imag + d_imag)

    def __str__(self) -> str:
        return f"{self.real} + i {self.imag}"


def precision_for_radius(radius: float, depth: int, extra_digits: int = 80, max_dps: int = 5000) -> int:
    if radius <= 0:
        raise ValueError("radius must be positive.")
    zdigits = max(0, int(math.ceil(-math.log10(radius))))
    iter_term = int(max(0.0, math.log10(max(10, int(depth)))) * 25)
    dps = max(100, zdigits + extra_digits + iter_term)
    return min(dps, max_dps)


def backend_name() -> str:
    return str(libmp.BACKEND)
