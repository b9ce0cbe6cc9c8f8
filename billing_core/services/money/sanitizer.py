"""
Financial amount sanitizer: the single gate for monetary input.

Every externally supplied amount (fees, balances, adjustments, rates) passes
through sanitize_amount() before it is stored or combined with other money.
The result is integer cents; no float arithmetic happens after this point.

Rules, in order:
  1. Coerce to a Decimal (int, float, Decimal, or a numeric string that may
     carry "$", "," or spaces). Anything else, NaN or ±Infinity → InvalidAmount.
  2. Negative → InvalidAmount.
  3. At or above MAX_AMOUNT + 0.01 → AmountTooLarge, before any rounding.
  4. Round to 2 dp, half away from zero; above MAX_AMOUNT → AmountTooLarge
     (never clamped).
  5. Return cents.

The ceiling is checked after rounding, so 999999999.994 is accepted as
999999999.99 while 999999999.995 (which rounds up to 1,000,000,000.00) is not.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from billing_core.services.errors import AmountTooLarge, InvalidAmount

MAX_AMOUNT = Decimal("999999999.99")
_CENT = Decimal("0.01")
_CEILING = MAX_AMOUNT + _CENT


def to_decimal(value: object) -> Decimal:
    """Convert raw input to a finite Decimal. Raises InvalidAmount on failure."""
    # bool is an int subclass; True is not $1.00
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"Invalid amount: {value!r} is not a number")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, (float, str)):
        # str(float) is the shortest round-trip repr, so 0.1 stays "0.1"
        cleaned = str(value).strip().replace(",", "").replace("$", "").replace(" ", "")
        if not cleaned:
            raise InvalidAmount("Invalid amount: empty value")
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            raise InvalidAmount(f"Invalid amount: cannot convert {value!r} to a number")
    else:
        raise InvalidAmount(
            f"Invalid amount: unsupported type {type(value).__name__}"
        )

    if not number.is_finite():
        raise InvalidAmount(f"Invalid amount: {value!r} must be a finite number")
    return number


def sanitize_amount(value: object) -> int:
    """Validate and normalize a monetary value. Returns integer cents."""
    number = to_decimal(value)

    if number < 0:
        raise InvalidAmount(f"Invalid amount: {value!r} cannot be negative")

    # quantize overflows the default decimal context on huge values
    if number >= _CEILING:
        raise AmountTooLarge(
            f"Invalid amount: {value!r} exceeds maximum limit of {MAX_AMOUNT}"
        )

    rounded = number.quantize(_CENT, rounding=ROUND_HALF_UP)
    if rounded > MAX_AMOUNT:
        raise AmountTooLarge(
            f"Invalid amount: {rounded} exceeds maximum limit of {MAX_AMOUNT}"
        )

    return int(rounded * 100)


def cents_to_dollars(cents: int) -> Decimal:
    """Integer cents → Decimal dollars with exactly two places (for display/JSON)."""
    return (Decimal(cents) / 100).quantize(_CENT)
