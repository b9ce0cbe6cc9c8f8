"""
SQLAlchemy-backed AccountStore for trust account balances.

Compare-and-set is a single conditional UPDATE:

    UPDATE trust_accounts
       SET balance_cents = :new, version = version + 1
     WHERE id = :id AND version = :expected

One affected row means the write won; zero means someone else wrote first.
Reads select the two columns directly so a stale ORM identity-map object
can never stand in for the current row.

The store never commits; the caller owns the transaction.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from billing_core.models.trust import TrustAccount
from billing_core.services.money.balance import AccountSnapshot

logger = logging.getLogger(__name__)


def _parse_account_id(account_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(account_id))
    except ValueError:
        return None


class SqlAlchemyAccountStore:
    def __init__(self, db: Session):
        self.db = db

    def read(self, account_id: str) -> Optional[AccountSnapshot]:
        account_uuid = _parse_account_id(account_id)
        if account_uuid is None:
            return None
        row = self.db.execute(
            select(TrustAccount.balance_cents, TrustAccount.version).where(
                TrustAccount.id == account_uuid
            )
        ).one_or_none()
        if row is None:
            return None
        return AccountSnapshot(
            account_id=str(account_uuid),
            balance_cents=row.balance_cents,
            version=row.version,
        )

    def compare_and_set(
        self, account_id: str, expected_version: int, new_balance_cents: int
    ) -> bool:
        account_uuid = _parse_account_id(account_id)
        if account_uuid is None:
            return False
        result = self.db.execute(
            update(TrustAccount)
            .where(
                TrustAccount.id == account_uuid,
                TrustAccount.version == expected_version,
            )
            .values(
                balance_cents=new_balance_cents,
                version=TrustAccount.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        won = result.rowcount == 1
        if not won:
            logger.debug(
                "compare_and_set lost on %s (expected version %d)",
                account_id,
                expected_version,
            )
        return won
