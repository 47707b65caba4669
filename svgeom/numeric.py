"""Decimal numeric core: coercion, precision scope and elementary functions.

Every function here works at the precision of the active decimal context.
Transcendental functions add a few guard digits internally and round the
result back to the caller's precision on return.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from decimal import ROUND_HALF_EVEN, Context, Decimal, InvalidOperation, getcontext, localcontext
from typing import Union

from svgeom.errors import InvalidArgument

Number = Union[int, float, str, Decimal]

ZERO = Decimal(0)
ONE = Decimal(1)
TWO = Decimal(2)
HALF = Decimal("0.5")
INFINITY = Decimal("Infinity")

_GUARD_DIGITS = 10
_MIN_PRECISION = 12

# pi per working precision, alive only inside one precision_scope
_pi_values: ContextVar[dict[int, Decimal] | None] = ContextVar("svgeom_pi_values", default=None)


def D(value: Number) -> Decimal:
    """Coerce int/float/str/Decimal to a finite Decimal.

    Floats go through their shortest repr, so ``D(0.1) == Decimal("0.1")``.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidArgument(f"cannot coerce bool {value!r} to Decimal")
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidArgument(f"non-finite number: {value!r}")
        return Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidArgument(f"not a number: {value!r}") from None
    else:
        raise InvalidArgument(f"cannot coerce {type(value).__name__} to Decimal")

    if not result.is_finite():
        raise InvalidArgument(f"non-finite number: {value!r}")
    return result


@contextmanager
def precision_scope(precision: int) -> Iterator[Context]:
    """Run a block at ``precision`` significant digits.

    Uses ``decimal.localcontext`` so the setting is thread-local and restored
    on exit. Constants such as pi are computed at most once per scope and
    dropped when it exits.
    """
    if precision < _MIN_PRECISION:
        raise InvalidArgument(f"decimal precision must be >= {_MIN_PRECISION}, got {precision}")
    token = _pi_values.set({})
    try:
        with localcontext() as ctx:
            ctx.prec = precision
            ctx.rounding = ROUND_HALF_EVEN
            yield ctx
    finally:
        _pi_values.reset(token)


def default_epsilon() -> Decimal:
    """Zero threshold scaled to the active precision: 10^-(prec - 10)."""
    digits = max(getcontext().prec - _GUARD_DIGITS, 2)
    return ONE.scaleb(-digits)


def quantize(value: Decimal, places: int) -> Decimal:
    """Round to ``places`` decimals. Integer digits are never lost to the working precision."""
    digits = max(getcontext().prec, value.adjusted() + places + 2)
    result = value.quantize(ONE.scaleb(-places), context=Context(prec=digits, rounding=ROUND_HALF_EVEN))
    # -0.00 -> 0.00
    return abs(result) if result.is_zero() else result


def to_fixed(value: Decimal, places: int) -> str:
    """Fixed-point string with exactly ``places`` decimals, never exponent notation."""
    return f"{quantize(value, places):f}"


def sqrt(x: Number) -> Decimal:
    x = D(x)
    if x < 0:
        raise InvalidArgument(f"square root of negative number {x}")
    return x.sqrt()


def hypot(x: Number, y: Number) -> Decimal:
    x = D(x)
    y = D(y)
    return (x * x + y * y).sqrt()


def _pi_at(precision: int) -> Decimal:
    values = _pi_values.get()
    if values is not None and precision in values:
        return values[precision]
    with localcontext() as ctx:
        ctx.prec = precision + _GUARD_DIGITS
        three = Decimal(3)
        lasts, t, s, n, na, d, da = 0, three, three, 1, 0, 0, 24
        while s != lasts:
            lasts = s
            n, na = n + na, na + 8
            d, da = d + da, da + 32
            t = (t * n) / d
            s += t
    if values is not None:
        values[precision] = s
    return s


def pi() -> Decimal:
    return +_pi_at(getcontext().prec)


def radians(degrees_value: Number) -> Decimal:
    return D(degrees_value) * pi() / 180


def degrees(radians_value: Number) -> Decimal:
    return D(radians_value) * 180 / pi()


def _reduce_angle(x: Decimal) -> Decimal:
    two_pi = 2 * _pi_at(getcontext().prec)
    return x - two_pi * (x / two_pi).to_integral_value()


def wrap_angle(x: Decimal) -> Decimal:
    """Map an angle in radians to the interval [-pi, pi]."""
    return _reduce_angle(x)


def cos(x: Number) -> Decimal:
    x = D(x)
    with localcontext() as ctx:
        ctx.prec += _GUARD_DIGITS
        x = _reduce_angle(x)
        i, lasts, s, fact, num, sign = 0, 0, ONE, 1, ONE, 1
        while s != lasts:
            lasts = s
            i += 2
            fact *= i * (i - 1)
            num *= x * x
            sign *= -1
            s += num / fact * sign
    return +s


def sin(x: Number) -> Decimal:
    x = D(x)
    with localcontext() as ctx:
        ctx.prec += _GUARD_DIGITS
        x = _reduce_angle(x)
        i, lasts, s, fact, num, sign = 1, 0, x, 1, x, 1
        while s != lasts:
            lasts = s
            i += 2
            fact *= i * (i - 1)
            num *= x * x
            sign *= -1
            s += num / fact * sign
    return +s


def tan(x: Number) -> Decimal:
    x = D(x)
    with localcontext() as ctx:
        ctx.prec += _GUARD_DIGITS
        c = cos(x)
        if c.is_zero():
            raise InvalidArgument(f"tangent undefined at {x}")
        result = sin(x) / c
    return +result


def atan(x: Number) -> Decimal:
    x = D(x)
    with localcontext() as ctx:
        ctx.prec += _GUARD_DIGITS
        # atan(x) = 2 atan(x / (1 + sqrt(1 + x^2))) until the series converges fast
        halvings = 0
        limit = Decimal("0.1")
        while abs(x) > limit:
            x = x / (1 + (1 + x * x).sqrt())
            halvings += 1
        x2 = x * x
        term = x
        total = x
        n = 1
        lasts = None
        while total != lasts:
            lasts = total
            term *= -x2
            n += 2
            total += term / n
        total *= 2**halvings
    return +total


def atan2(y: Number, x: Number) -> Decimal:
    y = D(y)
    x = D(x)
    with localcontext() as ctx:
        ctx.prec += _GUARD_DIGITS
        if x > 0:
            result = atan(y / x)
        elif x < 0:
            result = atan(y / x) + (pi() if y >= 0 else -pi())
        elif y > 0:
            result = pi() / 2
        elif y < 0:
            result = -pi() / 2
        else:
            result = ZERO
    return +result


def acos(x: Number) -> Decimal:
    x = D(x)
    if x > 1 or x < -1:
        raise InvalidArgument(f"acos argument out of range: {x}")
    with localcontext() as ctx:
        ctx.prec += _GUARD_DIGITS
        result = atan2((1 - x * x).sqrt(), x)
    return +result


def ceil_log2(x: Decimal) -> int:
    """Smallest s >= 0 with 2**s >= x."""
    s = 0
    power = ONE
    while power < x:
        power *= 2
        s += 1
    return s
