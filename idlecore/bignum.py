from __future__ import annotations

import decimal
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Iterable, Union

from idlecore.errors import InvalidNumberError

# Exponent range is the widest the decimal module allows, so balances can
# grow far past what a float could hold.
CONTEXT = decimal.Context(
    prec=60,
    rounding=decimal.ROUND_HALF_EVEN,
    Emax=decimal.MAX_EMAX,
    Emin=decimal.MIN_EMIN,
    traps=[decimal.DivisionByZero, decimal.InvalidOperation, decimal.Overflow],
)

# Integers below 10**21 serialize as plain digits, larger ones as exponent form.
_PLAIN_INTEGER_DIGITS = 21


class BigNum:
    """Immutable arbitrary-precision signed decimal.

    Accepts another BigNum, an int, a Decimal or a numeric string. Floats are
    only accepted through ``BigNum.from_float`` so binary noise never leaks
    into balances by accident.
    """

    __slots__ = ("_value",)

    def __init__(self, value: NumberLike = 0) -> None:
        self._value = _to_decimal(value)

    @classmethod
    def from_float(cls, value: float) -> BigNum:
        """Build from a float through its shortest repr."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidNumberError(f"Expected a float, got {type(value).__name__}")
        return cls(repr(float(value)))

    @classmethod
    def sum(cls, values: Iterable[NumberLike]) -> BigNum:
        total = ZERO
        for v in values:
            total = total.add(v)
        return total

    # ── Arithmetic ───────────────────────────────────────────────────

    def add(self, other: NumberLike) -> BigNum:
        return _wrap(CONTEXT.add(self._value, _to_decimal(other)))

    def sub(self, other: NumberLike) -> BigNum:
        return _wrap(CONTEXT.subtract(self._value, _to_decimal(other)))

    def mul(self, other: NumberLike) -> BigNum:
        return _wrap(CONTEXT.multiply(self._value, _to_decimal(other)))

    def div(self, other: NumberLike) -> BigNum:
        divisor = _to_decimal(other)
        if divisor.is_zero():
            raise decimal.DivisionByZero("division by zero")
        return _wrap(CONTEXT.divide(self._value, divisor))

    def pow(self, exponent: int) -> BigNum:
        if isinstance(exponent, bool) or not isinstance(exponent, int):
            raise TypeError(f"Exponent must be an int, got {type(exponent).__name__}")
        if exponent < 0 and self._value.is_zero():
            raise decimal.DivisionByZero("zero raised to a negative power")
        return _wrap(CONTEXT.power(self._value, Decimal(exponent)))

    def floor(self) -> BigNum:
        return _wrap(self._value.to_integral_value(rounding=ROUND_FLOOR, context=CONTEXT))

    def ceil(self) -> BigNum:
        return _wrap(self._value.to_integral_value(rounding=ROUND_CEILING, context=CONTEXT))

    def min(self, other: NumberLike) -> BigNum:
        other = BigNum(other)
        return other if other._value < self._value else self

    def max(self, other: NumberLike) -> BigNum:
        other = BigNum(other)
        return other if other._value > self._value else self

    def neg(self) -> BigNum:
        return _wrap(CONTEXT.minus(self._value))

    # ── Comparison ───────────────────────────────────────────────────

    def eq(self, other: NumberLike) -> bool:
        return self._value == _to_decimal(other)

    def lt(self, other: NumberLike) -> bool:
        return self._value < _to_decimal(other)

    def gte(self, other: NumberLike) -> bool:
        return self._value >= _to_decimal(other)

    def is_zero(self) -> bool:
        return self._value.is_zero()

    def is_positive(self) -> bool:
        return self._value > 0

    def is_negative(self) -> bool:
        return self._value < 0

    # ── Conversion ───────────────────────────────────────────────────

    def to_decimal(self) -> Decimal:
        return self._value

    def to_float(self) -> float:
        return float(self._value)

    def to_string(self) -> str:
        """Canonical string form; parsing it back yields an equal value."""
        if self._value.is_zero():
            return "0"
        v = self._value.normalize(CONTEXT)
        if v == v.to_integral_value() and v.adjusted() < _PLAIN_INTEGER_DIGITS:
            return format(v, "f")
        return str(v)

    # ── Dunders ──────────────────────────────────────────────────────

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"BigNum('{self.to_string()}')"

    def __int__(self) -> int:
        return int(self._value)

    def __float__(self) -> float:
        return self.to_float()

    def __bool__(self) -> bool:
        return not self._value.is_zero()

    def __hash__(self) -> int:
        return hash(self._value)

    def __eq__(self, other: object) -> bool:
        d = _coerce(other)
        if d is None:
            return NotImplemented
        return self._value == d

    def __lt__(self, other: object) -> bool:
        d = _coerce(other)
        if d is None:
            return NotImplemented
        return self._value < d

    def __le__(self, other: object) -> bool:
        d = _coerce(other)
        if d is None:
            return NotImplemented
        return self._value <= d

    def __gt__(self, other: object) -> bool:
        d = _coerce(other)
        if d is None:
            return NotImplemented
        return self._value > d

    def __ge__(self, other: object) -> bool:
        d = _coerce(other)
        if d is None:
            return NotImplemented
        return self._value >= d

    def __add__(self, other: NumberLike) -> BigNum:
        return self.add(other)

    def __radd__(self, other: NumberLike) -> BigNum:
        return BigNum(other).add(self)

    def __sub__(self, other: NumberLike) -> BigNum:
        return self.sub(other)

    def __rsub__(self, other: NumberLike) -> BigNum:
        return BigNum(other).sub(self)

    def __mul__(self, other: NumberLike) -> BigNum:
        return self.mul(other)

    def __rmul__(self, other: NumberLike) -> BigNum:
        return BigNum(other).mul(self)

    def __truediv__(self, other: NumberLike) -> BigNum:
        return self.div(other)

    def __rtruediv__(self, other: NumberLike) -> BigNum:
        return BigNum(other).div(self)

    def __pow__(self, exponent: int) -> BigNum:
        return self.pow(exponent)

    def __neg__(self) -> BigNum:
        return self.neg()

    def __abs__(self) -> BigNum:
        return _wrap(CONTEXT.abs(self._value))


NumberLike = Union[BigNum, int, str, Decimal]


def _to_decimal(value: object) -> Decimal:
    if isinstance(value, BigNum):
        return value._value
    if isinstance(value, bool):
        raise InvalidNumberError("Booleans are not numbers")
    try:
        if isinstance(value, int):
            d = CONTEXT.create_decimal(value)
        elif isinstance(value, Decimal):
            d = CONTEXT.create_decimal(value)
        elif isinstance(value, str):
            d = CONTEXT.create_decimal(value.strip())
        else:
            raise InvalidNumberError(
                f"Cannot build a BigNum from {type(value).__name__}"
            )
    except (decimal.InvalidOperation, decimal.Overflow) as exc:
        raise InvalidNumberError(f"Not a valid number: {value!r}") from exc
    if not d.is_finite():
        raise InvalidNumberError(f"Not a finite number: {value!r}")
    return d


def _coerce(value: object) -> Decimal | None:
    if isinstance(value, BigNum):
        return value._value
    if isinstance(value, (int, Decimal)) and not isinstance(value, bool):
        return _to_decimal(value)
    return None


def _wrap(d: Decimal) -> BigNum:
    n = BigNum.__new__(BigNum)
    n._value = d
    return n


ZERO = BigNum(0)
ONE = BigNum(1)
