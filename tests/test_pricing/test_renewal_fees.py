"""
Renewal fee calculator tests.
"now" is always injected; grace-window offsets use 365-day years, matching
the calculator's year approximation.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from billing_core.services.errors import InvalidAmount, UnsupportedCurrency
from billing_core.services.pricing.renewal_fees import (
    GRACE_PERIOD_FEE,
    RUSH_FEE,
    SECTION_8_FEE,
    SECTION_9_FEE,
    SECTION_15_FEE,
    SERVICE_FEE,
    LineItem,
    RenewalFeeRequest,
    compute_renewal_line_items,
    compute_total,
    format_amount,
    is_in_grace_period,
)

YEAR = timedelta(days=365)


class TestBaseFees:
    def test_standard_request_has_service_and_section8_only(self, fixed_now):
        items = compute_renewal_line_items(RenewalFeeRequest(), fixed_now)
        assert items == [SERVICE_FEE, SECTION_8_FEE]
        assert compute_total(items) == 20000 + 22500

    def test_rush_adds_exactly_one_item(self, fixed_now):
        standard = compute_renewal_line_items(RenewalFeeRequest(section9=True), fixed_now)
        rush = compute_renewal_line_items(
            RenewalFeeRequest(processing_speed="rush", section9=True), fixed_now
        )
        assert len(rush) == len(standard) + 1
        assert compute_total(rush) - compute_total(standard) == RUSH_FEE.unit_amount
        assert rush[1] == RUSH_FEE

    def test_section9_appended_last(self, fixed_now):
        items = compute_renewal_line_items(RenewalFeeRequest(section9=True), fixed_now)
        assert items[-1] == SECTION_9_FEE

    def test_invalid_processing_speed_rejected(self):
        with pytest.raises(ValueError):
            RenewalFeeRequest(processing_speed="overnight")


class TestSection15:
    @pytest.mark.parametrize(
        "continuous,challenged,expected",
        [
            ("yes", "no", True),
            ("unknown", "unknown", True),
            (None, None, True),
            ("no", "no", False),
            ("yes", "yes", False),
            ("unknown", "yes", False),
        ],
    )
    def test_eligibility(self, fixed_now, continuous, challenged, expected):
        request = RenewalFeeRequest(
            section15=True,
            section15_continuous=continuous,
            section15_challenged=challenged,
        )
        items = compute_renewal_line_items(request, fixed_now)
        assert (SECTION_15_FEE in items) is expected

    def test_not_requested_means_no_fee(self, fixed_now):
        request = RenewalFeeRequest(section15=False, section15_continuous="yes")
        assert SECTION_15_FEE not in compute_renewal_line_items(request, fixed_now)


class TestGracePeriod:
    def test_five_years_seven_months_is_in_grace(self, fixed_now):
        registered = fixed_now - timedelta(days=int(5.58 * 365))
        assert is_in_grace_period(registered, fixed_now)

    def test_five_years_four_months_is_not(self, fixed_now):
        registered = fixed_now - timedelta(days=int(5.33 * 365))
        assert not is_in_grace_period(registered, fixed_now)

    def test_six_years_exactly_is_inclusive(self, fixed_now):
        assert is_in_grace_period(fixed_now - 6 * YEAR, fixed_now)

    def test_six_years_and_a_day_is_outside(self, fixed_now):
        registered = fixed_now - 6 * YEAR - timedelta(days=1)
        assert not is_in_grace_period(registered, fixed_now)

    def test_lower_bound_is_exclusive(self, fixed_now):
        assert not is_in_grace_period(fixed_now - YEAR * 5.5, fixed_now)

    def test_second_window(self, fixed_now):
        assert is_in_grace_period(fixed_now - YEAR * 9.75, fixed_now)
        assert is_in_grace_period(fixed_now - 10 * YEAR, fixed_now)
        assert not is_in_grace_period(fixed_now - 10 * YEAR - timedelta(days=1), fixed_now)

    def test_absent_date_is_never_in_grace(self, fixed_now):
        assert not is_in_grace_period(None, fixed_now)
        assert not is_in_grace_period("", fixed_now)

    def test_accepts_iso_string_and_plain_date(self, fixed_now):
        registered = (fixed_now - timedelta(days=2100)).date()
        assert is_in_grace_period(registered, fixed_now)
        assert is_in_grace_period(registered.isoformat(), fixed_now)

    def test_naive_datetime_treated_as_utc(self, fixed_now):
        registered = (fixed_now - timedelta(days=2100)).replace(tzinfo=None)
        assert is_in_grace_period(registered, fixed_now)

    def test_unparseable_date_raises(self, fixed_now):
        with pytest.raises(ValueError):
            is_in_grace_period("not a date", fixed_now)


class TestFullQuote:
    def test_everything_selected(self, fixed_now):
        request = RenewalFeeRequest(
            processing_speed="rush",
            section15=True,
            section15_continuous="yes",
            section15_challenged="no",
            section9=True,
            trademark_registration_date=fixed_now - YEAR * 5.8,
        )
        items = compute_renewal_line_items(request, fixed_now)
        assert items == [
            SERVICE_FEE,
            RUSH_FEE,
            SECTION_8_FEE,
            GRACE_PERIOD_FEE,
            SECTION_15_FEE,
            SECTION_9_FEE,
        ]
        total = compute_total(items)
        assert total == 145000
        assert format_amount(total) == "$1,450.00"

    def test_quantity_multiplies(self):
        item = LineItem(name="Filing", description="x", unit_amount=2500, quantity=3)
        assert compute_total([item, SERVICE_FEE]) == 7500 + 20000


class TestLineItem:
    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            LineItem(name="  ", description="", unit_amount=100)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            LineItem(name="Refund", description="", unit_amount=-1)

    def test_non_integer_amount_rejected(self):
        with pytest.raises(ValueError):
            LineItem(name="Fee", description="", unit_amount=12.5)

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValueError):
            LineItem(name="Fee", description="", unit_amount=100, quantity=0)


class TestFormatAmount:
    def test_formats_with_thousands_separator(self):
        assert format_amount(145000) == "$1,450.00"
        assert format_amount(5) == "$0.05"
        assert format_amount(0) == "$0.00"

    def test_negative(self):
        assert format_amount(-12345) == "-$123.45"

    def test_rejects_other_currencies(self):
        with pytest.raises(UnsupportedCurrency):
            format_amount(100, "EUR")

    def test_rejects_non_integer(self):
        with pytest.raises(InvalidAmount):
            format_amount(1.5)
