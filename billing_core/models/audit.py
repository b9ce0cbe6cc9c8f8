"""
AuditEvent: the immutable audit log.

CRITICAL DESIGN RULE:
  This table is append-only. No UPDATE or DELETE statements should ever
  be issued against it.

  The DB-level server_default on created_at (not application code) ensures
  the timestamp is authoritative and cannot be spoofed.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from billing_core.models.base import Base


class ActorType:
    SYSTEM = "SYSTEM"
    FIRM_USER = "FIRM_USER"
    EXPORT_JOB = "EXPORT_JOB"


class AuditEvent(Base):
    """
    Immutable record of every meaningful state change in the system.

    entity_type + entity_id: the thing that changed
    event_type: what happened (past-tense verb, e.g. "trust_account.balance_updated")
    actor_*: who caused it
    payload: JSON snapshot of relevant state at the time of the event.
    """

    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── What changed ─────────────────────────────────────────────────────────
    entity_type: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="ledes_configuration | ledes_export | trust_account",
    )
    # String, not UUID: LEDES configuration ids are generated opaque strings
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        comment=(
            "Past-tense dot-namespaced: ledes_configuration.created, "
            "trust_account.balance_updated, ledes_export.generated, ..."
        ),
    )

    # ── Who caused it ────────────────────────────────────────────────────────
    actor_type: Mapped[str] = mapped_column(
        String(16), nullable=False, comment="SYSTEM | FIRM_USER | EXPORT_JOB"
    )
    actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # ── State snapshot ────────────────────────────────────────────────────────
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # ── Timestamp (server-authoritative, never set by application code) ───────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditEvent event={self.event_type!r} "
            f"entity={self.entity_type}:{self.entity_id} "
            f"actor={self.actor_type}>"
        )
