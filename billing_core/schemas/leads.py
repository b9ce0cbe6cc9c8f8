"""Lead scoring request/response shapes."""

from typing import Optional

from pydantic import ConfigDict, Field

from billing_core.schemas.common import BaseSchema


class LeadScoreRequest(BaseSchema):
    """
    Intake factors, each 0–100. Accepts camelCase (intake form) or
    snake_case keys; omitted factors contribute nothing.
    """

    model_config = ConfigDict(populate_by_name=True)

    matter_urgency: Optional[float] = Field(default=None, alias="matterUrgency")
    budget_range: Optional[float] = Field(default=None, alias="budgetRange")
    referral_quality: Optional[float] = Field(default=None, alias="referralQuality")
    response_time: Optional[float] = Field(default=None, alias="responseTime")
    practice_area_match: Optional[float] = Field(default=None, alias="practiceAreaMatch")
    geographic_match: Optional[float] = Field(default=None, alias="geographicMatch")


class LeadScoreResponse(BaseSchema):
    score: int
    temperature: str  # hot | warm | cold
    max_achievable_score: int
