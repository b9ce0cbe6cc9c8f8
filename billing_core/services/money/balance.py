"""
Atomic balance update: optimistic-concurrency retry loop over an account store.

Contract:
  - Every attempt re-reads the balance and version from the store; a read is
    never reused across attempts.
  - Business rules are checked against the fresh read:
        new balance < 0                 → InsufficientFunds
        new balance > MAX_BALANCE_CENTS → BalanceLimitExceeded
    Both abort immediately (no retry) and leave the stored balance untouched.
  - The write is a compare-and-set on the version that was read. A lost race
    sleeps base_delay * 2**(attempt - 1) and starts over.
  - At most MAX_ATTEMPTS attempts; the last lost race raises RetriesExhausted.

Conflict detection itself belongs to the store (see account_store.py); this
module owns only the retry policy and bound enforcement. No timeout is exposed.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from billing_core.services.errors import (
    AccountNotFound,
    BalanceLimitExceeded,
    InsufficientFunds,
    InvalidAmount,
    RetriesExhausted,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 0.1
MAX_BALANCE_CENTS = 1_000_000_000  # $10,000,000.00


class BalanceOperation:
    ADD = "add"
    SUBTRACT = "subtract"

    ALL = (ADD, SUBTRACT)


@dataclass(frozen=True)
class AccountSnapshot:
    """A consistent read of one account: balance plus its concurrency token."""

    account_id: str
    balance_cents: int
    version: int


class AccountStore(Protocol):
    def read(self, account_id: str) -> Optional[AccountSnapshot]:
        """Return the current snapshot, or None if the account does not exist."""

    def compare_and_set(
        self, account_id: str, expected_version: int, new_balance_cents: int
    ) -> bool:
        """Write new_balance_cents only if the version is still expected_version."""


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retrying after the given (1-based) failed attempt."""
    return base_delay * (2 ** (attempt - 1))


def atomic_balance_update(
    store: AccountStore,
    account_id: str,
    amount_cents: int,
    operation: str,
    *,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Apply `operation` of `amount_cents` to the account. Returns the new balance.

    Raises:
        InvalidAmount:        amount_cents is not a non-negative int.
        ValueError:           operation is not "add" or "subtract".
        AccountNotFound:      the store has no such account.
        InsufficientFunds:    subtracting would take the balance below zero.
        BalanceLimitExceeded: the new balance would exceed MAX_BALANCE_CENTS.
        RetriesExhausted:     every attempt lost a write race.
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidAmount(
            f"Invalid amount: expected integer cents, got {amount_cents!r}"
        )
    if amount_cents < 0:
        raise InvalidAmount(f"Invalid amount: {amount_cents} cannot be negative")
    if operation not in BalanceOperation.ALL:
        raise ValueError(
            f"operation must be one of {list(BalanceOperation.ALL)}, got {operation!r}"
        )

    for attempt in range(1, max_attempts + 1):
        # ── Read (fresh every attempt) ────────────────────────────────────────
        snapshot = store.read(account_id)
        if snapshot is None:
            raise AccountNotFound(f"Account {account_id!r} not found")

        # ── Compute + business rules ──────────────────────────────────────────
        if operation == BalanceOperation.ADD:
            new_balance = snapshot.balance_cents + amount_cents
        else:
            new_balance = snapshot.balance_cents - amount_cents

        if new_balance < 0:
            raise InsufficientFunds(
                f"Insufficient funds in account {account_id!r}: balance "
                f"{snapshot.balance_cents} cents, requested {amount_cents} cents"
            )
        if new_balance > MAX_BALANCE_CENTS:
            raise BalanceLimitExceeded(
                f"Balance for account {account_id!r} would be {new_balance} cents, "
                f"above the maximum of {MAX_BALANCE_CENTS} cents"
            )

        # ── Conditional write ─────────────────────────────────────────────────
        if store.compare_and_set(account_id, snapshot.version, new_balance):
            logger.info(
                "Balance updated for %s: %s %d cents -> %d (attempt %d)",
                account_id,
                operation,
                amount_cents,
                new_balance,
                attempt,
            )
            return new_balance

        if attempt < max_attempts:
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                "Write conflict on account %s (attempt %d/%d); retrying in %.3fs",
                account_id,
                attempt,
                max_attempts,
                delay,
            )
            sleep(delay)

    logger.error(
        "Balance update for %s abandoned after %d conflicting attempts",
        account_id,
        max_attempts,
    )
    raise RetriesExhausted(
        f"Balance update for account {account_id!r} failed after "
        f"{max_attempts} attempts due to concurrent modification",
        attempts=max_attempts,
    )
