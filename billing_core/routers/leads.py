"""
Lead scoring routes.

  POST /leads/score  → composite 0–100 score and routing temperature
"""

from fastapi import APIRouter, HTTPException, status

from billing_core.schemas.leads import LeadScoreRequest, LeadScoreResponse
from billing_core.services.errors import InvalidLeadFactor
from billing_core.services.leads.scoring import (
    compute_lead_score,
    lead_temperature,
    max_achievable_score,
)

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("/score", response_model=LeadScoreResponse)
def score_lead(payload: LeadScoreRequest) -> LeadScoreResponse:
    factors = payload.model_dump(exclude_none=True)
    try:
        score = compute_lead_score(factors)
    except InvalidLeadFactor as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )
    return LeadScoreResponse(
        score=score,
        temperature=lead_temperature(score),
        max_achievable_score=max_achievable_score(list(factors)),
    )
