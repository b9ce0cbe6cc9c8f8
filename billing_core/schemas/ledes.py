"""
LEDES configuration and export schemas.

Create/update payloads are deliberately loose: the domain validator checks
them and reports every violation at once, which pydantic's per-field errors
would pre-empt.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import Field

from billing_core.schemas.common import BaseSchema

# ── Configuration ────────────────────────────────────────────────────────────


class UTBMSMappingSchema(BaseSchema):
    activity_codes: dict[str, str] = {}
    expense_codes: dict[str, str] = {}
    task_codes: dict[str, str] = {}
    matter_categories: dict[str, str] = {}
    default_activity_code: Optional[str] = None
    default_expense_code: Optional[str] = None


class LEDESConfigurationCreate(BaseSchema):
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    format: Optional[str] = None
    version: Optional[str] = None
    utbms_mapping: Optional[UTBMSMappingSchema] = None
    # Classification -> hourly rate in dollars ("$450.00", 450, "450.5")
    billing_rates: dict[str, Any] = {}
    is_active: bool = True


class LEDESConfigurationUpdate(BaseSchema):
    """Partial update; omitted fields keep their stored values."""

    client_id: Optional[str] = None
    client_name: Optional[str] = None
    format: Optional[str] = None
    version: Optional[str] = None
    utbms_mapping: Optional[UTBMSMappingSchema] = None
    billing_rates: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None


class LEDESConfigurationResponse(BaseSchema):
    id: str
    client_id: str
    client_name: str
    format: str
    version: str
    utbms_mapping: UTBMSMappingSchema
    billing_rates: dict[str, Decimal]  # dollars, two places
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ── Export ───────────────────────────────────────────────────────────────────


class TimeEntryIn(BaseSchema):
    matter_id: str = Field(..., min_length=1)
    timekeeper_id: str = Field(..., min_length=1)
    timekeeper_name: str
    timekeeper_classification: str
    entry_date: date
    description: str
    hours: Union[Decimal, str]
    rate: Optional[Union[Decimal, str]] = None
    activity_type: str = "general_work"
    task_code: str = ""
    expense_code: str = ""
    is_expense: bool = False


class LEDESExportRequest(BaseSchema):
    invoice_number: str = Field(..., min_length=1, max_length=64)
    invoice_date: date
    billing_start_date: date
    billing_end_date: date
    law_firm_id: str = Field(..., min_length=1)
    description: str = ""
    entries: list[TimeEntryIn] = Field(..., min_length=1)


class LEDESExportResponse(BaseSchema):
    configuration_id: str
    storage_key: str
    file_name: str
    record_count: int
    total_cents: int
    formatted_total: str
    size_bytes: int
