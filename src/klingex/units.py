"""Conversion between raw integer base units and human-readable decimals."""

from decimal import ROUND_DOWN, Decimal, InvalidOperation


def _to_decimal(value: str | int | Decimal) -> Decimal:
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid numeric value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value!r}")
    return result


def _plain(value: Decimal) -> str:
    """Render without exponent, trailing zeros or a dangling point."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


def to_human(raw: str | int | Decimal, decimals: int) -> str:
    """Convert base units to a decimal string.

    >>> to_human("150000000", 8)
    '1.5'
    """
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    return _plain(_to_decimal(raw).scaleb(-decimals))


def to_raw(human: str | int | Decimal, decimals: int) -> str:
    """Convert a decimal string to base units, truncating extra precision.

    >>> to_raw("1.5", 8)
    '150000000'
    """
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    try:
        scaled = _to_decimal(human).scaleb(decimals).quantize(Decimal(1), rounding=ROUND_DOWN)
    except InvalidOperation as e:
        raise ValueError(f"Value out of range: {human!r}") from e
    return _plain(scaled)
