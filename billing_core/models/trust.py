"""
TrustAccount: client trust (IOLTA) account balance.

Balances are integer cents. `version` is the optimistic-concurrency token:
every successful balance write increments it, and writers only succeed if
the version they read is still current (see services/money/account_store.py).
"""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_core.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class TrustAccount(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "trust_accounts"

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    client_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    balance_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<TrustAccount id={self.id} balance_cents={self.balance_cents} "
            f"version={self.version}>"
        )
