"""Renewal quote request/response shapes. Amounts are integer cents."""

from typing import Literal, Optional

from billing_core.schemas.common import BaseSchema

AnswerLiteral = Literal["yes", "no", "unknown"]


class RenewalQuoteRequest(BaseSchema):
    processing_speed: Literal["standard", "rush"] = "standard"
    section15: bool = False
    section15_continuous: Optional[AnswerLiteral] = "unknown"
    section15_challenged: Optional[AnswerLiteral] = "unknown"
    section9: bool = False
    # ISO date or datetime; parsed by the fee calculator
    trademark_registration_date: Optional[str] = None


class LineItemResponse(BaseSchema):
    name: str
    description: str
    unit_amount: int
    quantity: int
    formatted_amount: str


class RenewalQuoteResponse(BaseSchema):
    line_items: list[LineItemResponse]
    total_cents: int
    formatted_total: str
    currency: str
    in_grace_period: bool
