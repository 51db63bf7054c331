"""
Quantity coercion helpers.

Stock quantities are ``Decimal`` everywhere in the kernel; callers may pass
ints, numeric strings or floats. Floats go through ``str`` so that ``0.1``
becomes ``Decimal("0.1")`` rather than its binary expansion.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from wms_kernel.exceptions import InvalidQuantityError

ZERO = Decimal("0")


def as_quantity(value: Decimal | int | float | str) -> Decimal:
    """Coerce ``value`` to a finite Decimal.

    Raises:
        InvalidQuantityError: if the value is not numeric, NaN, or infinite.
    """
    if isinstance(value, bool):
        raise InvalidQuantityError(value, "booleans are not quantities")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidQuantityError(value, "not a number") from e
    if not result.is_finite():
        raise InvalidQuantityError(value, "must be finite")
    return result


def positive_quantity(value: Decimal | int | float | str) -> Decimal:
    """Coerce ``value`` and require it to be strictly positive."""
    result = as_quantity(value)
    if result <= ZERO:
        raise InvalidQuantityError(value)
    return result
