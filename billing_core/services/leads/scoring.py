"""
Lead scoring: weighted composite of six 0–100 intake factors.

    score = Σ clamp(value, 0, 100) × weight      over recognised factors
    result = clamp(round_half_up(score), 0, 100)

Missing factors score 0 and the weights are NOT renormalised: a lead with
only urgency and budget filled in tops out at 45. Complete intake data is
rewarded; partial data is not extrapolated.

Weights are Decimals so they sum to exactly 1 and an all-100 lead scores
exactly 100.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Mapping, Optional

from billing_core.services.errors import InvalidLeadFactor

logger = logging.getLogger(__name__)

FACTOR_WEIGHTS: dict[str, Decimal] = {
    "matter_urgency": Decimal("0.20"),
    "budget_range": Decimal("0.25"),
    "referral_quality": Decimal("0.20"),
    "response_time": Decimal("0.10"),
    "practice_area_match": Decimal("0.15"),
    "geographic_match": Decimal("0.10"),
}

# Intake forms post camelCase keys
FACTOR_ALIASES: dict[str, str] = {
    "matterUrgency": "matter_urgency",
    "budgetRange": "budget_range",
    "referralQuality": "referral_quality",
    "responseTime": "response_time",
    "practiceAreaMatch": "practice_area_match",
    "geographicMatch": "geographic_match",
}

MIN_SCORE = Decimal(0)
MAX_SCORE = Decimal(100)


class LeadTemperature:
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


def _clamp(value: Decimal) -> Decimal:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def _factor_value(name: str, raw: object) -> Decimal:
    if isinstance(raw, bool):
        raise InvalidLeadFactor(f"Factor {name!r} must be numeric, got {raw!r}")
    if isinstance(raw, (int, Decimal)):
        value = Decimal(raw)
    elif isinstance(raw, (float, str)):
        try:
            value = Decimal(str(raw).strip())
        except InvalidOperation:
            raise InvalidLeadFactor(f"Factor {name!r} must be numeric, got {raw!r}")
    else:
        raise InvalidLeadFactor(f"Factor {name!r} must be numeric, got {raw!r}")
    if not value.is_finite():
        raise InvalidLeadFactor(f"Factor {name!r} must be finite, got {raw!r}")
    return value


def compute_lead_score(factors: Mapping[str, object]) -> int:
    """Integer score in [0, 100]. Unknown keys are ignored; None counts as absent."""
    values: dict[str, Decimal] = {}
    for key, raw in factors.items():
        name = FACTOR_ALIASES.get(key, key)
        if name not in FACTOR_WEIGHTS:
            logger.debug("Ignoring unrecognised lead factor %r", key)
            continue
        if raw is None:
            continue
        if name in values:
            raise InvalidLeadFactor(f"Factor {name!r} supplied more than once")
        # Out-of-range inputs are clamped before weighting, not after
        values[name] = _clamp(_factor_value(key, raw))

    total = sum(
        (value * FACTOR_WEIGHTS[name] for name, value in values.items()), Decimal(0)
    )

    rounded = total.quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(_clamp(rounded))


def lead_temperature(score: int) -> str:
    """Bucket a score for lead routing."""
    if score >= 75:
        return LeadTemperature.HOT
    if score >= 50:
        return LeadTemperature.WARM
    return LeadTemperature.COLD


def max_achievable_score(present: Optional[list[str]] = None) -> int:
    """Upper bound for a lead that only supplies the `present` factors."""
    names = [FACTOR_ALIASES.get(k, k) for k in (present or [])]
    weight = sum((FACTOR_WEIGHTS[n] for n in set(names) if n in FACTOR_WEIGHTS), Decimal(0))
    return int((weight * MAX_SCORE).quantize(Decimal(1), rounding=ROUND_HALF_UP))
