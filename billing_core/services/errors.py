"""
Domain exceptions for the billing core.

Every error is raised at the point of detection and propagates unchanged to
the caller. Routers translate them to HTTP responses; nothing inside the
services catches one of these and substitutes a default value.
"""

from dataclasses import dataclass


class BillingError(Exception):
    """Base class. `code` is a stable machine-readable identifier."""

    code = "BILLING_ERROR"


# ── Money ─────────────────────────────────────────────────────────────────────


class InvalidAmount(BillingError):
    """Non-numeric, non-finite, negative or otherwise malformed monetary input."""

    code = "INVALID_AMOUNT"


class AmountTooLarge(BillingError):
    """Monetary value above the product ceiling. Never clamped."""

    code = "AMOUNT_TOO_LARGE"


class UnsupportedCurrency(BillingError):
    code = "UNSUPPORTED_CURRENCY"


# ── Balance updates ───────────────────────────────────────────────────────────


class AccountNotFound(BillingError):
    code = "ACCOUNT_NOT_FOUND"


class InsufficientFunds(BillingError):
    code = "INSUFFICIENT_FUNDS"


class BalanceLimitExceeded(BillingError):
    code = "BALANCE_LIMIT_EXCEEDED"


class RetriesExhausted(BillingError):
    """
    Transient write conflicts outlasted the retry budget.
    Retryable at a higher level, unlike the business-rule failures above.
    """

    code = "RETRIES_EXHAUSTED"

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


# ── Lead scoring ──────────────────────────────────────────────────────────────


class InvalidLeadFactor(BillingError):
    code = "INVALID_LEAD_FACTOR"


# ── LEDES ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Violation:
    """One violated rule on a LEDES configuration."""

    code: str
    field: str
    message: str


class LEDESValidationError(BillingError):
    """Aggregate validation failure. Always carries every violation found."""

    code = "VALIDATION_ERROR"

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        summary = "; ".join(v.message for v in self.violations)
        super().__init__(f"LEDES configuration validation failed: {summary}")

    @property
    def codes(self) -> list[str]:
        return [v.code for v in self.violations]


class ConfigurationNotFound(BillingError):
    code = "CONFIGURATION_NOT_FOUND"


class UnsupportedExportFormat(BillingError):
    code = "UNSUPPORTED_EXPORT_FORMAT"


class ExportTooLarge(BillingError):
    code = "EXPORT_TOO_LARGE"
