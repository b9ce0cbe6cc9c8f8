"""
Audit Logger: the only way to write AuditEvent rows.

Design rules enforced here:
  - created_at is always server-set (DB default), never passed by application
  - Payload is always serialized to a plain dict (no ORM objects, no dataclasses)
  - All writes go through log_event(); no direct AuditEvent instantiation elsewhere
  - This module never raises: audit failures are logged but do not block the main flow
"""

import json
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from billing_core.models.audit import ActorType, AuditEvent

logger = logging.getLogger(__name__)


def log_event(
    db: Session,
    entity_type: str,
    entity_id: Any,
    event_type: str,
    payload: dict[str, Any],
    actor_type: str = ActorType.SYSTEM,
    actor_id: Optional[str] = None,
    flush: bool = True,
) -> None:
    """
    Write an immutable audit event to the database.

    Args:
        db:          SQLAlchemy session (caller manages transaction)
        entity_type: The type of entity that changed (e.g. "trust_account")
        entity_id:   Id of the entity; UUIDs are stored as strings
        event_type:  Past-tense event name (e.g. "ledes_configuration.updated")
        payload:     Dict snapshot of relevant state, JSON-serializable
        actor_type:  SYSTEM | FIRM_USER | EXPORT_JOB
        actor_id:    Firm user id if human-triggered; None for system events
        flush:       If True, flush to DB immediately (within the caller's transaction)

    Does not raise: exceptions are caught and logged as warnings.
    """
    try:
        event = AuditEvent(
            entity_type=entity_type,
            entity_id=str(entity_id),
            event_type=event_type,
            actor_type=actor_type,
            actor_id=actor_id,
            payload=_safe_payload(payload),
        )
        db.add(event)
        if flush:
            db.flush()
    except Exception as exc:
        logger.warning(
            "Failed to write audit event %r for %s:%s: %s",
            event_type,
            entity_type,
            entity_id,
            exc,
        )


def _safe_payload(payload: dict) -> dict:
    """Round-trip through JSON, stringifying UUID, datetime and Decimal values."""

    def default(obj: Any) -> Any:
        if isinstance(obj, uuid.UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

    return json.loads(json.dumps(payload, default=default))


# ── Convenience wrappers for common events ────────────────────────────────────


def log_configuration_changed(
    db: Session,
    configuration,
    event: str,
    actor_id: Optional[str] = None,
) -> None:
    """event is one of created | updated | deleted."""
    log_event(
        db,
        "ledes_configuration",
        configuration.id,
        f"ledes_configuration.{event}",
        payload={
            "client_id": configuration.client_id,
            "client_name": configuration.client_name,
            "format": configuration.format,
            "version": configuration.version,
            "is_active": configuration.is_active,
        },
        actor_type=ActorType.FIRM_USER if actor_id else ActorType.SYSTEM,
        actor_id=actor_id,
    )


def log_balance_updated(
    db: Session,
    account_id: str,
    operation: str,
    amount_cents: int,
    new_balance_cents: int,
    actor_id: Optional[str] = None,
) -> None:
    log_event(
        db,
        "trust_account",
        account_id,
        "trust_account.balance_updated",
        payload={
            "operation": operation,
            "amount_cents": amount_cents,
            "new_balance_cents": new_balance_cents,
        },
        actor_type=ActorType.FIRM_USER if actor_id else ActorType.SYSTEM,
        actor_id=actor_id,
    )


def log_export_generated(
    db: Session,
    configuration_id: str,
    storage_key: str,
    record_count: int,
    total_cents: int,
    size_bytes: int,
) -> None:
    log_event(
        db,
        "ledes_export",
        configuration_id,
        "ledes_export.generated",
        payload={
            "storage_key": storage_key,
            "record_count": record_count,
            "total_cents": total_cents,
            "size_bytes": size_bytes,
        },
        actor_type=ActorType.EXPORT_JOB,
    )
