"""
Renewal quote routes.

  POST /quotes/renewal  → priced line items and total for a trademark renewal
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status

from billing_core.schemas.quotes import (
    LineItemResponse,
    RenewalQuoteRequest,
    RenewalQuoteResponse,
)
from billing_core.services.pricing.renewal_fees import (
    CURRENCY,
    RenewalFeeRequest,
    compute_renewal_line_items,
    compute_total,
    format_amount,
    is_in_grace_period,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/renewal", response_model=RenewalQuoteResponse)
def quote_renewal(payload: RenewalQuoteRequest) -> RenewalQuoteResponse:
    try:
        request = RenewalFeeRequest(**payload.model_dump())
        now = datetime.now(timezone.utc)
        items = compute_renewal_line_items(request, now)
        in_grace = is_in_grace_period(request.trademark_registration_date, now)
    except ValueError as exc:
        # Unparseable registration date
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )

    total = compute_total(items)
    logger.info("Renewal quote: %d line items, total %d cents", len(items), total)
    return RenewalQuoteResponse(
        line_items=[
            LineItemResponse(
                name=item.name,
                description=item.description,
                unit_amount=item.unit_amount,
                quantity=item.quantity,
                formatted_amount=format_amount(item.extended_amount),
            )
            for item in items
        ],
        total_cents=total,
        formatted_total=format_amount(total),
        currency=CURRENCY,
        in_grace_period=in_grace,
    )
