"""
LEDES configuration validator.

Turns raw configuration form data into a LEDESConfiguration, or raises a
LEDESValidationError listing every violated rule. Checks are not fail-fast:
the caller gets the complete report in one round trip.

Rules:
  MISSING_CLIENT_NAME            client_name empty after trimming
  MISSING_CLIENT_ID              client_id empty after trimming
  INVALID_FORMAT                 format not LEDES1998B | LEDES2.0 | LEDESXML
  MISSING_UTBMS_MAPPING          utbms_mapping absent or not an object
  INVALID_DEFAULT_ACTIVITY_CODE  default_activity_code not a UTBMS activity code
  INVALID_DEFAULT_EXPENSE_CODE   default_expense_code not a UTBMS expense code
  INVALID_ACTIVITY_CODE_MAPPING  an activity_codes entry maps to an unknown code
  INVALID_EXPENSE_CODE_MAPPING   an expense_codes entry maps to an unknown code
  INVALID_UTBMS_MAPPING          a sub-map of utbms_mapping is not an object
  INVALID_BILLING_RATE           a billing_rates entry fails amount sanitization
  INVALID_IS_ACTIVE              is_active given but not a boolean

Design principle: pure function, no DB writes. Persistence is the
repository's job, and it only ever sees configurations that passed here.
"""

import logging
import secrets
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from billing_core.services.errors import (
    AmountTooLarge,
    InvalidAmount,
    LEDESValidationError,
    Violation,
)
from billing_core.services.money.sanitizer import cents_to_dollars, sanitize_amount
from billing_core.taxonomy.utbms import ACTIVITY_CODES, EXPENSE_CODES

logger = logging.getLogger(__name__)


class LEDESFormat:
    LEDES_1998B = "LEDES1998B"
    LEDES_20 = "LEDES2.0"
    LEDES_XML = "LEDESXML"

    ALL = (LEDES_1998B, LEDES_20, LEDES_XML)


class ViolationCode:
    MISSING_CLIENT_NAME = "MISSING_CLIENT_NAME"
    MISSING_CLIENT_ID = "MISSING_CLIENT_ID"
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_UTBMS_MAPPING = "MISSING_UTBMS_MAPPING"
    INVALID_DEFAULT_ACTIVITY_CODE = "INVALID_DEFAULT_ACTIVITY_CODE"
    INVALID_DEFAULT_EXPENSE_CODE = "INVALID_DEFAULT_EXPENSE_CODE"
    INVALID_ACTIVITY_CODE_MAPPING = "INVALID_ACTIVITY_CODE_MAPPING"
    INVALID_EXPENSE_CODE_MAPPING = "INVALID_EXPENSE_CODE_MAPPING"
    INVALID_UTBMS_MAPPING = "INVALID_UTBMS_MAPPING"
    INVALID_BILLING_RATE = "INVALID_BILLING_RATE"
    INVALID_IS_ACTIVE = "INVALID_IS_ACTIVE"


@dataclass(frozen=True)
class UTBMSMapping:
    """Firm-internal codes → UTBMS codes, plus the two required defaults."""

    default_activity_code: str
    default_expense_code: str
    activity_codes: dict[str, str] = field(default_factory=dict)
    expense_codes: dict[str, str] = field(default_factory=dict)
    task_codes: dict[str, str] = field(default_factory=dict)
    matter_categories: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "activity_codes": dict(self.activity_codes),
            "expense_codes": dict(self.expense_codes),
            "task_codes": dict(self.task_codes),
            "matter_categories": dict(self.matter_categories),
            "default_activity_code": self.default_activity_code,
            "default_expense_code": self.default_expense_code,
        }


@dataclass(frozen=True)
class LEDESConfiguration:
    id: str
    client_id: str
    client_name: str
    format: str
    version: str
    utbms_mapping: UTBMSMapping
    billing_rates: dict[str, int]  # classification -> hourly rate, cents
    is_active: bool
    created_at: datetime
    updated_at: datetime

    def to_input(self) -> dict:
        """The mutable fields, shaped like validator input (rates in dollars)."""
        return {
            "client_id": self.client_id,
            "client_name": self.client_name,
            "format": self.format,
            "version": self.version,
            "utbms_mapping": self.utbms_mapping.to_dict(),
            "billing_rates": {k: cents_to_dollars(v) for k, v in self.billing_rates.items()},
            "is_active": self.is_active,
        }


def generate_configuration_id(now: datetime) -> str:
    """Time-based id with a random suffix. Unique with overwhelming probability."""
    return f"ledes-{int(now.timestamp() * 1000)}-{secrets.token_hex(6)}"


# ── Rule checks ───────────────────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_known(value: Any, valid: frozenset[str]) -> bool:
    # Form data can carry lists or objects here, which are unhashable
    return isinstance(value, str) and value in valid


def _check_code_map(
    mapping: Mapping,
    key: str,
    valid: frozenset[str],
    code: str,
    violations: list[Violation],
) -> dict[str, str]:
    raw = mapping.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        violations.append(
            Violation(
                ViolationCode.INVALID_UTBMS_MAPPING,
                f"utbms_mapping.{key}",
                f"UTBMS {key} must be an object",
            )
        )
        return {}
    checked: dict[str, str] = {}
    for firm_code, utbms_code in raw.items():
        if valid and not _is_known(utbms_code, valid):
            violations.append(
                Violation(
                    code,
                    f"utbms_mapping.{key}.{firm_code}",
                    f"'{firm_code}' maps to unknown UTBMS code {utbms_code!r}",
                )
            )
            continue
        checked[str(firm_code)] = str(utbms_code)
    return checked


def _check_utbms_mapping(
    raw: Any, violations: list[Violation]
) -> Optional[UTBMSMapping]:
    if not isinstance(raw, Mapping):
        violations.append(
            Violation(
                ViolationCode.MISSING_UTBMS_MAPPING,
                "utbms_mapping",
                "UTBMS mapping is required",
            )
        )
        return None

    default_activity = raw.get("default_activity_code")
    if not _is_known(default_activity, ACTIVITY_CODES):
        violations.append(
            Violation(
                ViolationCode.INVALID_DEFAULT_ACTIVITY_CODE,
                "utbms_mapping.default_activity_code",
                f"Default activity code {default_activity!r} is not a UTBMS activity code",
            )
        )
    default_expense = raw.get("default_expense_code")
    if not _is_known(default_expense, EXPENSE_CODES):
        violations.append(
            Violation(
                ViolationCode.INVALID_DEFAULT_EXPENSE_CODE,
                "utbms_mapping.default_expense_code",
                f"Default expense code {default_expense!r} is not a UTBMS expense code",
            )
        )

    activity_codes = _check_code_map(
        raw, "activity_codes", ACTIVITY_CODES,
        ViolationCode.INVALID_ACTIVITY_CODE_MAPPING, violations,
    )
    expense_codes = _check_code_map(
        raw, "expense_codes", EXPENSE_CODES,
        ViolationCode.INVALID_EXPENSE_CODE_MAPPING, violations,
    )
    # Task codes and matter categories are free-form
    task_codes = _check_code_map(
        raw, "task_codes", frozenset(), ViolationCode.INVALID_UTBMS_MAPPING, violations
    )
    matter_categories = _check_code_map(
        raw, "matter_categories", frozenset(), ViolationCode.INVALID_UTBMS_MAPPING, violations
    )

    return UTBMSMapping(
        default_activity_code=str(default_activity),
        default_expense_code=str(default_expense),
        activity_codes=activity_codes,
        expense_codes=expense_codes,
        task_codes=task_codes,
        matter_categories=matter_categories,
    )


def _check_billing_rates(raw: Any, violations: list[Violation]) -> dict[str, int]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        violations.append(
            Violation(
                ViolationCode.INVALID_BILLING_RATE,
                "billing_rates",
                "Billing rates must be an object of classification -> hourly rate",
            )
        )
        return {}
    rates: dict[str, int] = {}
    for classification, amount in raw.items():
        try:
            rates[str(classification)] = sanitize_amount(amount)
        except (InvalidAmount, AmountTooLarge) as exc:
            violations.append(
                Violation(
                    ViolationCode.INVALID_BILLING_RATE,
                    f"billing_rates.{classification}",
                    str(exc),
                )
            )
    return rates


def collect_violations(data: Mapping[str, Any]) -> tuple[list[Violation], dict]:
    """
    Run every rule against `data`.
    Returns (violations, normalized fields); fields are only usable if
    violations is empty.
    """
    violations: list[Violation] = []

    client_name = data.get("client_name")
    if _is_blank(client_name):
        violations.append(
            Violation(
                ViolationCode.MISSING_CLIENT_NAME,
                "client_name",
                "Client name is required",
            )
        )
    client_id = data.get("client_id")
    if _is_blank(client_id):
        violations.append(
            Violation(
                ViolationCode.MISSING_CLIENT_ID, "client_id", "Client id is required"
            )
        )

    ledes_format = data.get("format")
    if ledes_format not in LEDESFormat.ALL:
        violations.append(
            Violation(
                ViolationCode.INVALID_FORMAT,
                "format",
                f"Valid LEDES format is required (one of {list(LEDESFormat.ALL)})",
            )
        )

    utbms_mapping = _check_utbms_mapping(data.get("utbms_mapping"), violations)
    billing_rates = _check_billing_rates(data.get("billing_rates"), violations)

    is_active = data.get("is_active")
    if is_active is None:
        is_active = True
    elif not isinstance(is_active, bool):
        violations.append(
            Violation(
                ViolationCode.INVALID_IS_ACTIVE,
                "is_active",
                f"is_active must be true or false, got {is_active!r}",
            )
        )

    fields = {
        "client_id": client_id.strip() if isinstance(client_id, str) else client_id,
        "client_name": client_name.strip() if isinstance(client_name, str) else client_name,
        "format": ledes_format,
        "version": str(data.get("version") or "1.0"),
        "utbms_mapping": utbms_mapping,
        "billing_rates": billing_rates,
        "is_active": is_active,
    }
    return violations, fields


# ── Public API ────────────────────────────────────────────────────────────────


def validate_and_create_configuration(
    data: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    id_factory: Optional[Callable[[datetime], str]] = None,
) -> LEDESConfiguration:
    """
    Validate raw configuration data and build a new LEDESConfiguration.

    Raises:
        LEDESValidationError: with every violation, if any rule fails.
    """
    violations, fields = collect_violations(data)
    if violations:
        logger.info(
            "LEDES configuration rejected: %s", ", ".join(v.code for v in violations)
        )
        raise LEDESValidationError(violations)

    now = now or datetime.now(timezone.utc)
    make_id = id_factory or generate_configuration_id
    return LEDESConfiguration(id=make_id(now), created_at=now, updated_at=now, **fields)


def validate_configuration_update(
    existing: LEDESConfiguration,
    updates: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> LEDESConfiguration:
    """
    Merge `updates` over `existing` and re-validate the result as a whole.
    id and created_at are never changed; updated_at is bumped. A None value
    leaves the stored field as it is.
    """
    merged = existing.to_input()
    merged.update(
        {
            k: v
            for k, v in updates.items()
            if v is not None and k not in ("id", "created_at", "updated_at")
        }
    )
    violations, fields = collect_violations(merged)
    if violations:
        raise LEDESValidationError(violations)
    return replace(existing, updated_at=now or datetime.now(timezone.utc), **fields)
