"""Trust account request/response shapes."""

import uuid
from decimal import Decimal
from typing import Literal, Union

from pydantic import Field

from billing_core.schemas.common import BaseSchema, TimestampedSchema


class TrustAccountCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=256)
    client_id: str = Field(..., min_length=1, max_length=128)
    # Dollars; run through the amount sanitizer
    opening_balance: Union[Decimal, str] = Decimal(0)


class TrustAccountResponse(TimestampedSchema):
    name: str
    client_id: str
    balance_cents: int
    formatted_balance: str
    version: int


class BalanceUpdateRequest(BaseSchema):
    amount: Union[Decimal, str]  # dollars
    operation: Literal["add", "subtract"]


class BalanceUpdateResponse(BaseSchema):
    account_id: uuid.UUID
    operation: str
    amount_cents: int
    balance_cents: int
    formatted_balance: str
