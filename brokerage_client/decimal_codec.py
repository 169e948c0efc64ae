"""
Brokerage Client - Decimal Codec.

============================================================
PURPOSE
============================================================
Exact decimal encoding/decoding for monetary and quantity fields.

POLICIES:
- ARBITRARY_PRECISION: wire string keeps its exact scale
  ("9050.50" decodes and re-encodes as "9050.50")
- FLOAT: value travels as a JSON number

Both policies accept a JSON string or a JSON number on decode.
No rounding is ever applied.

============================================================
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

from .errors import DecodeError


DecimalLike = Union[Decimal, str, int, float]


class DecimalPolicy(Enum):
    """How a decimal field is represented on the wire."""

    ARBITRARY_PRECISION = "arbitrary_precision"
    """JSON string preserving the exact scale."""

    FLOAT = "float"
    """JSON number."""


def decode_decimal(
    value: Any,
    policy: DecimalPolicy = DecimalPolicy.ARBITRARY_PRECISION,
    field: Optional[str] = None,
) -> Decimal:
    """
    Decode a wire value into an exact Decimal.

    Args:
        value: JSON string or number (Decimal when the body was parsed
            with ``parse_float=Decimal``)
        policy: Field policy (both policies decode the same inputs)
        field: Field name for error context

    Returns:
        Decimal with every significant digit of the input

    Raises:
        DecodeError: If the value is not a finite decimal
    """
    if isinstance(value, bool):
        raise DecodeError(f"expected a decimal, got boolean {value!r}", field=field)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise DecodeError(f"invalid decimal {value!r}", field=field) from None
    else:
        raise DecodeError(
            f"expected a decimal string or number, got {type(value).__name__}",
            field=field,
        )

    if not result.is_finite():
        raise DecodeError(f"non-finite decimal {value!r}", field=field)
    return result


def encode_decimal(
    value: Decimal,
    policy: DecimalPolicy = DecimalPolicy.ARBITRARY_PRECISION,
) -> Union[str, float]:
    """
    Encode a Decimal for the wire.

    Arbitrary precision values are written in fixed-point notation with
    their scale untouched; float values become JSON numbers.
    """
    if policy is DecimalPolicy.FLOAT:
        return float(value)
    return format(value, "f")


def to_decimal(value: DecimalLike) -> Decimal:
    """
    Build a Decimal from caller input.

    Floats go through ``str`` so 181.01 becomes Decimal("181.01") rather
    than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not decimal amounts")
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (int, str)):
        try:
            return Decimal(value)
        except InvalidOperation:
            raise ValueError(f"invalid decimal {value!r}") from None
    raise TypeError(f"cannot convert {type(value).__name__} to Decimal")
