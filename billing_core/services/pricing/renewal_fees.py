"""
Trademark renewal fee calculator.

Builds the priced line items for a Section 8 / 15 / 9 renewal filing and
totals them. Amounts are integer cents throughout; currency is always USD.

Line items, in display order:
  1. Firm service fee (Section 8 preparation)    always
  2. Rush processing fee                          processing_speed == "rush"
  3. USPTO Section 8 government fee               always
  4. USPTO grace period fee                       registration date in a grace window
  5. USPTO Section 15 government fee              section15 and not (continuous == "no"
                                                  or challenged == "yes")
  6. USPTO Section 9 renewal government fee       section9

Grace windows are (5.5y, 6y] and (9.5y, 10y] since registration, with a year
approximated as 365 days. The approximation drifts from calendar years by the
number of leap days elapsed; it is kept deliberately so that quotes stay
consistent with previously issued ones.

Pure functions: "now" is injected so results are deterministic under test.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from dateutil import parser as date_parser

from billing_core.services.errors import InvalidAmount, UnsupportedCurrency
from billing_core.services.money.sanitizer import cents_to_dollars

CURRENCY = "USD"


class ProcessingSpeed:
    STANDARD = "standard"
    RUSH = "rush"

    ALL = (STANDARD, RUSH)


class Answer:
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"

    ALL = (YES, NO, UNKNOWN)


@dataclass(frozen=True)
class LineItem:
    """One priced component of a checkout. unit_amount is in cents."""

    name: str
    description: str
    unit_amount: int
    quantity: int = 1

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("LineItem.name must be non-empty")
        for field_name in ("unit_amount", "quantity"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"LineItem.{field_name} must be an integer, got {value!r}")
        if self.unit_amount < 0:
            raise ValueError("LineItem.unit_amount must be >= 0")
        if self.quantity < 1:
            raise ValueError("LineItem.quantity must be >= 1")

    @property
    def extended_amount(self) -> int:
        return self.unit_amount * self.quantity


# ── Fee schedule ──────────────────────────────────────────────────────────────

SERVICE_FEE = LineItem(
    name="JMR Legal Service Fee",
    description="Section 8 Declaration of Continued Use preparation and filing",
    unit_amount=20000,
)
RUSH_FEE = LineItem(
    name="Rush Processing Fee",
    description="2 business day expedited processing",
    unit_amount=50000,
)
SECTION_8_FEE = LineItem(
    name="USPTO Government Fee - Section 8",
    description="Official USPTO filing fee for Section 8 Declaration",
    unit_amount=22500,
)
GRACE_PERIOD_FEE = LineItem(
    name="USPTO Grace Period Fee",
    description="Additional fee for filing during grace period",
    unit_amount=10000,
)
SECTION_15_FEE = LineItem(
    name="USPTO Government Fee - Section 15",
    description="Official USPTO filing fee for Section 15 Declaration of Incontestability",
    unit_amount=20000,
)
SECTION_9_FEE = LineItem(
    name="USPTO Government Fee - Section 9",
    description="Official USPTO filing fee for Section 9 Renewal",
    unit_amount=22500,
)

_YEAR = timedelta(days=365)
GRACE_WINDOWS: tuple[tuple[timedelta, timedelta], ...] = (
    (_YEAR * 5.5, _YEAR * 6),
    (_YEAR * 9.5, _YEAR * 10),
)

DateInput = Union[date, datetime, str, None]


@dataclass(frozen=True)
class RenewalFeeRequest:
    """Form inputs for one renewal transaction. Constructed fresh, consumed once."""

    processing_speed: str = ProcessingSpeed.STANDARD
    section15: bool = False
    section15_continuous: Optional[str] = Answer.UNKNOWN
    section15_challenged: Optional[str] = Answer.UNKNOWN
    section9: bool = False
    trademark_registration_date: DateInput = None

    def __post_init__(self) -> None:
        if self.processing_speed not in ProcessingSpeed.ALL:
            raise ValueError(
                f"processing_speed must be one of {list(ProcessingSpeed.ALL)}, "
                f"got {self.processing_speed!r}"
            )
        for field_name in ("section15_continuous", "section15_challenged"):
            value = getattr(self, field_name)
            if value is not None and value not in Answer.ALL:
                raise ValueError(
                    f"{field_name} must be one of {list(Answer.ALL)}, got {value!r}"
                )


# ── Time helpers ──────────────────────────────────────────────────────────────


def _as_utc(value: DateInput) -> Optional[datetime]:
    """Normalize a date/datetime/ISO string to an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        value = date_parser.parse(value)
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    # Plain dates are midnight UTC
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def is_in_grace_period(
    registration_date: DateInput, now: Optional[datetime] = None
) -> bool:
    """True if the time since registration falls in a grace window."""
    registered_at = _as_utc(registration_date)
    if registered_at is None:
        return False
    current = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    elapsed = current - registered_at
    return any(lower < elapsed <= upper for lower, upper in GRACE_WINDOWS)


def _section15_applies(request: RenewalFeeRequest) -> bool:
    # Only an explicit "no" / "yes" blocks the filing; unknown is permissive
    return (
        request.section15
        and request.section15_continuous != Answer.NO
        and request.section15_challenged != Answer.YES
    )


# ── Public API ────────────────────────────────────────────────────────────────


def compute_renewal_line_items(
    request: RenewalFeeRequest, now: Optional[datetime] = None
) -> list[LineItem]:
    """Assemble the ordered line items for a renewal checkout."""
    items: list[LineItem] = [SERVICE_FEE]

    if request.processing_speed == ProcessingSpeed.RUSH:
        items.append(RUSH_FEE)

    items.append(SECTION_8_FEE)

    if is_in_grace_period(request.trademark_registration_date, now):
        items.append(GRACE_PERIOD_FEE)

    if _section15_applies(request):
        items.append(SECTION_15_FEE)

    if request.section9:
        items.append(SECTION_9_FEE)

    return items


def compute_total(items: list[LineItem]) -> int:
    """Total payable, in cents."""
    return sum(item.extended_amount for item in items)


def format_amount(cents: int, currency: str = CURRENCY) -> str:
    """Render integer cents as a USD string, e.g. 145000 -> "$1,450.00"."""
    if (currency or "").upper() != CURRENCY:
        raise UnsupportedCurrency(
            f"Only {CURRENCY} amounts are supported, got {currency!r}"
        )
    if isinstance(cents, bool) or not isinstance(cents, int):
        raise InvalidAmount(f"Invalid amount: expected integer cents, got {cents!r}")
    text = f"${cents_to_dollars(abs(cents)):,.2f}"
    return f"-{text}" if cents < 0 else text
