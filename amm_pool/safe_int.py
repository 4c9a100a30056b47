"""Checked non-negative integers for reserve and share arithmetic.

Pool accounting must never go negative and must never divide by an empty
reserve. SafeInt wraps a plain int and turns either mistake into an exception
rather than a wrong number.

    from amm_pool.safe_int import S

    amount_a = S(shares).mul_div(reserve_a, total_shares).value  # floor
    amount_b = S(shares).mul_div(reserve_b, total_shares, round_up=True).value
"""

from __future__ import annotations

import functools
import math


class SafeIntError(ArithmeticError):
    """Base class for SafeInt arithmetic errors."""


class DivisionByZero(SafeIntError):
    """Division by a zero reserve or supply."""


class Underflow(SafeIntError):
    """A result would be negative."""


def _as_int(x: SafeInt | int) -> int:
    if isinstance(x, SafeInt):
        return x._value
    if isinstance(x, int) and not isinstance(x, bool):
        return x
    raise TypeError(f"SafeInt operand must be int, got {type(x).__name__}")


def _non_negative(result: int, expr: str) -> SafeInt:
    if result < 0:
        raise Underflow(f"Underflow: {expr} = {result}")
    return SafeInt(result)


def _divisor(x: SafeInt | int, expr: str) -> int:
    value = _as_int(x)
    if value == 0:
        raise DivisionByZero(f"Division by zero: {expr}")
    return value


@functools.total_ordering
class SafeInt:
    """Integer with checked subtraction and division.

    Construction accepts any int (so a bad input can still be inspected), but
    every subtraction result is checked against zero and every divisor is
    checked for zero. bool is rejected everywhere.
    """

    __slots__ = ("_value",)

    def __init__(self, value: int | SafeInt) -> None:
        self._value = _as_int(value)

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __hash__(self) -> int:
        return hash(self._value)

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _as_int(other))

    __radd__ = __add__

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _as_int(other))

    __rmul__ = __mul__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        rhs = _as_int(other)
        return _non_negative(self._value - rhs, f"{self._value} - {rhs}")

    def __rsub__(self, other: int) -> SafeInt:
        lhs = _as_int(other)
        return _non_negative(lhs - self._value, f"{lhs} - {self._value}")

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value // _divisor(other, f"{self._value} // 0"))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (SafeInt, int)) and not isinstance(other, bool):
            return self._value == _as_int(other)
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _as_int(other)

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Division rounding up: (self + other - 1) // other."""
        divisor = _divisor(other, f"ceil({self._value} / 0)")
        return SafeInt(-(-self._value // divisor))

    def mul_div(
        self, factor: SafeInt | int, denominator: SafeInt | int, *, round_up: bool = False
    ) -> SafeInt:
        """self * factor / denominator, truncated unless round_up is set.

        This is the shape of every proportional formula in the pool: swap
        output, pro-rata redemption and the non-limiting side of a deposit.
        """
        product = self * factor
        if round_up:
            return product.ceiling_div(denominator)
        return product // denominator

    def isqrt(self) -> SafeInt:
        """Floor of the square root.

        Raises:
            Underflow: If the value is negative
        """
        if self._value < 0:
            raise Underflow(f"Square root of negative value: {self._value}")
        return SafeInt(math.isqrt(self._value))


# Short alias used throughout the pool math
S = SafeInt
