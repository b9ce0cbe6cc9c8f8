"""
LEDES 1998B invoice export.

File layout:
    LEDES1998B[]
    INVOICE_DATE|INVOICE_NUMBER|...|CLIENT_MATTER_ID[]
    20260131|INV-1001|...|M-42[]

One record per time entry, pipe-delimited, each line terminated by "[]".
Dates are YYYYMMDD, money is dollars with two decimals. Every amount is run
through the sanitizer, and line totals are units × unit cost rounded half-up
to the cent, so INVOICE_TOTAL always equals the sum of LINE_ITEM_TOTAL.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from billing_core.services.errors import (
    AmountTooLarge,
    ExportTooLarge,
    InvalidAmount,
    UnsupportedExportFormat,
)
from billing_core.services.ledes.validator import (
    LEDESConfiguration,
    LEDESFormat,
    UTBMSMapping,
)
from billing_core.services.money.sanitizer import (
    MAX_AMOUNT,
    cents_to_dollars,
    sanitize_amount,
    to_decimal,
)
from billing_core.services.storage.base import StorageBackend
from billing_core.taxonomy.utbms import DEFAULT_ACTIVITY_MAP, FALLBACK_ACTIVITY_CODE

logger = logging.getLogger(__name__)

LEDES_1998B_FIELDS = [
    "INVOICE_DATE", "INVOICE_NUMBER", "CLIENT_ID", "LAW_FIRM_MATTER_ID", "INVOICE_TOTAL",
    "BILLING_START_DATE", "BILLING_END_DATE", "INVOICE_DESCRIPTION", "LINE_ITEM_NUMBER",
    "EXP/FEE/INV_ADJ_TYPE", "LINE_ITEM_NUMBER_OF_UNITS", "LINE_ITEM_ADJUSTMENT_AMOUNT",
    "LINE_ITEM_TOTAL", "LINE_ITEM_DATE", "LINE_ITEM_TASK_CODE", "LINE_ITEM_EXPENSE_CODE",
    "LINE_ITEM_ACTIVITY_CODE", "TIMEKEEPER_ID", "LINE_ITEM_DESCRIPTION", "LAW_FIRM_ID",
    "LINE_ITEM_UNIT_COST", "TIMEKEEPER_NAME", "TIMEKEEPER_CLASSIFICATION", "CLIENT_MATTER_ID",
]

FORMAT_LINE = "LEDES1998B[]"
RECORD_TERMINATOR = "[]"

_UNITS = Decimal("0.01")


class LineType:
    FEE = "F"
    EXPENSE = "E"


@dataclass(frozen=True)
class TimeEntry:
    """
    One billable entry. `rate` is the hourly rate (or expense unit cost) in
    dollars; when None the configuration's billing rate for the timekeeper
    classification is used.
    """

    matter_id: str
    timekeeper_id: str
    timekeeper_name: str
    timekeeper_classification: str
    entry_date: date
    description: str
    hours: Any
    rate: Any = None
    activity_type: str = "general_work"
    task_code: str = ""
    expense_code: str = ""
    is_expense: bool = False


@dataclass(frozen=True)
class InvoiceHeader:
    invoice_number: str
    invoice_date: date
    billing_start_date: date
    billing_end_date: date
    law_firm_id: str
    description: str = ""


@dataclass(frozen=True)
class LEDESExport:
    content: str
    record_count: int
    total_cents: int
    file_name: str

    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))


# ── Field helpers ─────────────────────────────────────────────────────────────


def _clean(text: Optional[str]) -> str:
    """Strip the delimiter, terminator and newlines out of free text."""
    value = (text or "").replace("|", " ").replace("[]", " ")
    return re.sub(r"\s+", " ", value).strip()


def _fmt_date(value: date) -> str:
    return value.strftime("%Y%m%d")


def _fmt_money(cents: int) -> str:
    return f"{cents_to_dollars(cents):.2f}"


def _safe_file_part(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "_", value).strip("_") or "client"


def map_activity_code(activity_type: Optional[str], mapping: UTBMSMapping) -> str:
    """
    Resolve a firm activity type to a UTBMS activity code.
    Order: the configuration's own mapping, then the built-in conventional
    map, then the configuration's default.
    """
    key = activity_type or "general_work"
    if key in mapping.activity_codes:
        return mapping.activity_codes[key]
    if key in DEFAULT_ACTIVITY_MAP:
        return DEFAULT_ACTIVITY_MAP[key]
    return mapping.default_activity_code or FALLBACK_ACTIVITY_CODE


def _unit_cost_cents(entry: TimeEntry, config: LEDESConfiguration) -> int:
    if entry.rate is not None:
        return sanitize_amount(entry.rate)
    try:
        return config.billing_rates[entry.timekeeper_classification]
    except KeyError:
        raise InvalidAmount(
            f"No rate on entry and no billing rate configured for "
            f"classification {entry.timekeeper_classification!r}"
        )


def _units(entry: TimeEntry) -> Decimal:
    hours = to_decimal(entry.hours)
    if hours > MAX_AMOUNT:
        raise AmountTooLarge(f"Units {entry.hours!r} exceed the maximum of {MAX_AMOUNT}")
    units = hours.quantize(_UNITS, rounding=ROUND_HALF_UP)
    if units <= 0:
        raise InvalidAmount(f"Units must be greater than zero, got {entry.hours!r}")
    return units


def _line(entry: TimeEntry, config: LEDESConfiguration) -> tuple[dict, int]:
    units = _units(entry)
    unit_cost = _unit_cost_cents(entry, config)
    total_cents = int((units * unit_cost).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    mapping = config.utbms_mapping

    if entry.is_expense:
        line_type = LineType.EXPENSE
        expense_code = entry.expense_code or mapping.default_expense_code
        activity_code = ""
    else:
        line_type = LineType.FEE
        expense_code = ""
        activity_code = map_activity_code(entry.activity_type, mapping)

    row = {
        "EXP/FEE/INV_ADJ_TYPE": line_type,
        "LINE_ITEM_NUMBER_OF_UNITS": f"{units:.2f}",
        "LINE_ITEM_ADJUSTMENT_AMOUNT": "0.00",
        "LINE_ITEM_TOTAL": _fmt_money(total_cents),
        "LINE_ITEM_DATE": _fmt_date(entry.entry_date),
        "LINE_ITEM_TASK_CODE": entry.task_code
        or mapping.task_codes.get(entry.activity_type, ""),
        "LINE_ITEM_EXPENSE_CODE": expense_code,
        "LINE_ITEM_ACTIVITY_CODE": activity_code,
        "TIMEKEEPER_ID": _clean(entry.timekeeper_id),
        "LINE_ITEM_DESCRIPTION": _clean(entry.description),
        "LINE_ITEM_UNIT_COST": _fmt_money(unit_cost),
        "TIMEKEEPER_NAME": _clean(entry.timekeeper_name),
        "TIMEKEEPER_CLASSIFICATION": _clean(entry.timekeeper_classification),
        "LAW_FIRM_MATTER_ID": _clean(entry.matter_id),
        "CLIENT_MATTER_ID": _clean(entry.matter_id),
    }
    return row, total_cents


# ── Public API ────────────────────────────────────────────────────────────────


def build_ledes_1998b(
    entries: Sequence[TimeEntry],
    config: LEDESConfiguration,
    invoice: InvoiceHeader,
) -> LEDESExport:
    """
    Render `entries` as a LEDES 1998B file using `config` for code mapping
    and default rates.

    Raises:
        UnsupportedExportFormat: config.format is not LEDES1998B.
        InvalidAmount / AmountTooLarge: an entry's units or rate is unusable.
        ValueError: no entries.
    """
    if config.format != LEDESFormat.LEDES_1998B:
        raise UnsupportedExportFormat(
            f"Export is only available for {LEDESFormat.LEDES_1998B}, "
            f"configuration {config.id} uses {config.format}"
        )
    if not entries:
        raise ValueError("A LEDES invoice needs at least one line item")

    lines: list[tuple[dict, int]] = [_line(entry, config) for entry in entries]
    invoice_total = sum(total for _, total in lines)

    header = {
        "INVOICE_DATE": _fmt_date(invoice.invoice_date),
        "INVOICE_NUMBER": _clean(invoice.invoice_number),
        "CLIENT_ID": _clean(config.client_id),
        "INVOICE_TOTAL": _fmt_money(invoice_total),
        "BILLING_START_DATE": _fmt_date(invoice.billing_start_date),
        "BILLING_END_DATE": _fmt_date(invoice.billing_end_date),
        "INVOICE_DESCRIPTION": _clean(
            invoice.description or f"Professional Services for {config.client_name}"
        ),
        "LAW_FIRM_ID": _clean(invoice.law_firm_id),
    }

    out = [FORMAT_LINE, "|".join(LEDES_1998B_FIELDS) + RECORD_TERMINATOR]
    for number, (row, _) in enumerate(lines, start=1):
        record = {**header, **row, "LINE_ITEM_NUMBER": str(number)}
        out.append("|".join(record[f] for f in LEDES_1998B_FIELDS) + RECORD_TERMINATOR)

    file_name = (
        f"LEDES1998B_{_safe_file_part(config.client_id)}_"
        f"{_safe_file_part(invoice.invoice_number)}.txt"
    )
    logger.info(
        "Built LEDES 1998B invoice %s: %d lines, total %s",
        invoice.invoice_number,
        len(lines),
        _fmt_money(invoice_total),
    )
    return LEDESExport(
        content="\n".join(out) + "\n",
        record_count=len(lines),
        total_cents=invoice_total,
        file_name=file_name,
    )


def store_export(
    export: LEDESExport,
    storage: StorageBackend,
    max_bytes: Optional[int] = None,
    subfolder: str = "ledes",
) -> str:
    """Write an export through the storage backend. Returns the storage key."""
    if max_bytes is None:
        from billing_core.settings import settings

        max_bytes = settings.ledes_export_max_bytes

    data = export.content.encode("utf-8")
    if len(data) > max_bytes:
        raise ExportTooLarge(
            f"Export {export.file_name} is {len(data)} bytes, "
            f"over the {max_bytes} byte limit"
        )
    key = storage.save(data, export.file_name, subfolder=subfolder)
    logger.info("Stored LEDES export %s (%d bytes)", key, len(data))
    return key
