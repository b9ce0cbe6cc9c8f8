"""SQLAlchemy account store + balance update against a real (SQLite) table."""

import uuid

import pytest
from sqlalchemy import update

from billing_core.models.trust import TrustAccount
from billing_core.services.errors import AccountNotFound, InsufficientFunds
from billing_core.services.money.account_store import SqlAlchemyAccountStore
from billing_core.services.money.balance import atomic_balance_update


@pytest.fixture
def store(db):
    return SqlAlchemyAccountStore(db)


def _no_sleep(_):
    return None


class TestRead:
    def test_reads_balance_and_version(self, store, sample_trust_account):
        snapshot = store.read(str(sample_trust_account.id))
        assert snapshot.balance_cents == 50000
        assert snapshot.version == 0

    def test_unknown_or_malformed_id(self, store):
        assert store.read(str(uuid.uuid4())) is None
        assert store.read("not-a-uuid") is None


class TestCompareAndSet:
    def test_matching_version_wins_and_bumps_version(self, store, sample_trust_account):
        account_id = str(sample_trust_account.id)
        assert store.compare_and_set(account_id, 0, 42) is True
        snapshot = store.read(account_id)
        assert snapshot.balance_cents == 42
        assert snapshot.version == 1

    def test_stale_version_loses(self, store, sample_trust_account, db):
        account_id = str(sample_trust_account.id)
        db.execute(
            update(TrustAccount)
            .where(TrustAccount.id == sample_trust_account.id)
            .values(version=TrustAccount.version + 1)
            .execution_options(synchronize_session=False)
        )
        assert store.compare_and_set(account_id, 0, 1) is False
        assert store.read(account_id).balance_cents == 50000


class TestAtomicUpdateWithStore:
    def test_subtract(self, store, sample_trust_account, db):
        account_id = str(sample_trust_account.id)
        new_balance = atomic_balance_update(store, account_id, 12500, "subtract", sleep=_no_sleep)
        db.commit()
        assert new_balance == 37500
        db.refresh(sample_trust_account)
        assert sample_trust_account.balance_cents == 37500
        assert sample_trust_account.version == 1

    def test_overdraw_leaves_row_untouched(self, store, sample_trust_account, db):
        with pytest.raises(InsufficientFunds):
            atomic_balance_update(
                store, str(sample_trust_account.id), 50001, "subtract", sleep=_no_sleep
            )
        db.rollback()
        db.refresh(sample_trust_account)
        assert sample_trust_account.balance_cents == 50000
        assert sample_trust_account.version == 0

    def test_missing_account(self, store):
        with pytest.raises(AccountNotFound):
            atomic_balance_update(store, str(uuid.uuid4()), 1, "add", sleep=_no_sleep)
