"""
Trust account routes.

  POST /trust-accounts                 → open an account with a sanitized opening balance
  GET  /trust-accounts/{id}            → current balance
  POST /trust-accounts/{id}/balance    → atomic add / subtract

Balance update error mapping:
  InsufficientFunds                              → 409
  BalanceLimitExceeded, InvalidAmount, TooLarge  → 422
  AccountNotFound                                → 404
  RetriesExhausted                               → 503 + Retry-After
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from billing_core.database import get_db
from billing_core.models.trust import TrustAccount
from billing_core.schemas.trust import (
    BalanceUpdateRequest,
    BalanceUpdateResponse,
    TrustAccountCreate,
    TrustAccountResponse,
)
from billing_core.services.audit import logger as audit
from billing_core.services.errors import (
    AccountNotFound,
    AmountTooLarge,
    BalanceLimitExceeded,
    InsufficientFunds,
    InvalidAmount,
    RetriesExhausted,
)
from billing_core.services.money.account_store import SqlAlchemyAccountStore
from billing_core.services.money.balance import MAX_BALANCE_CENTS, atomic_balance_update
from billing_core.services.money.sanitizer import sanitize_amount
from billing_core.services.pricing.renewal_fees import format_amount
from billing_core.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trust-accounts", tags=["trust-accounts"])

RETRY_AFTER_SECONDS = "1"


def _to_response(account: TrustAccount) -> TrustAccountResponse:
    return TrustAccountResponse(
        id=account.id,
        name=account.name,
        client_id=account.client_id,
        balance_cents=account.balance_cents,
        formatted_balance=format_amount(account.balance_cents),
        version=account.version,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


def _unprocessable(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
    )


@router.post("", response_model=TrustAccountResponse, status_code=status.HTTP_201_CREATED)
def create_trust_account(
    payload: TrustAccountCreate, db: Session = Depends(get_db)
) -> TrustAccountResponse:
    try:
        opening_cents = sanitize_amount(payload.opening_balance)
    except (InvalidAmount, AmountTooLarge) as exc:
        raise _unprocessable(exc)
    if opening_cents > MAX_BALANCE_CENTS:
        raise _unprocessable(
            BalanceLimitExceeded(
                f"Opening balance {opening_cents} cents is above the maximum "
                f"of {MAX_BALANCE_CENTS} cents"
            )
        )

    account = TrustAccount(
        name=payload.name, client_id=payload.client_id, balance_cents=opening_cents
    )
    db.add(account)
    db.flush()
    audit.log_event(
        db,
        "trust_account",
        account.id,
        "trust_account.created",
        payload={"client_id": account.client_id, "opening_balance_cents": opening_cents},
    )
    db.commit()
    db.refresh(account)
    logger.info("Opened trust account %s for client %s", account.id, account.client_id)
    return _to_response(account)


@router.get("/{account_id}", response_model=TrustAccountResponse)
def get_trust_account(
    account_id: uuid.UUID, db: Session = Depends(get_db)
) -> TrustAccountResponse:
    account = db.get(TrustAccount, account_id)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account '{account_id}' not found",
        )
    return _to_response(account)


@router.post("/{account_id}/balance", response_model=BalanceUpdateResponse)
def update_balance(
    account_id: uuid.UUID,
    payload: BalanceUpdateRequest,
    db: Session = Depends(get_db),
) -> BalanceUpdateResponse:
    try:
        amount_cents = sanitize_amount(payload.amount)
        new_balance = atomic_balance_update(
            SqlAlchemyAccountStore(db),
            str(account_id),
            amount_cents,
            payload.operation,
            base_delay=settings.balance_retry_base_delay_seconds,
        )
    except AccountNotFound as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except InsufficientFunds as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except (BalanceLimitExceeded, InvalidAmount, AmountTooLarge) as exc:
        db.rollback()
        raise _unprocessable(exc)
    except RetriesExhausted as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )

    audit.log_balance_updated(
        db, str(account_id), payload.operation, amount_cents, new_balance
    )
    db.commit()

    return BalanceUpdateResponse(
        account_id=account_id,
        operation=payload.operation,
        amount_cents=amount_cents,
        balance_cents=new_balance,
        formatted_balance=format_amount(new_balance),
    )
