"""
LEDESConfigurationRecord: persisted LEDES billing-export configuration.

Rows are only ever written from a fully validated LEDESConfiguration
(see services/ledes/validator.py). The id and both timestamps are assigned
by the validator, not by the database, so the object handed back to the
caller is exactly what was stored.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_core.models.base import Base


class LEDESConfigurationRecord(Base):
    __tablename__ = "ledes_configurations"

    # Generated "ledes-<epoch-ms>-<hex>" id, opaque to callers
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # ── Client ────────────────────────────────────────────────────────────────
    client_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    client_name: Mapped[str] = mapped_column(String(256), nullable=False)

    # ── Format ────────────────────────────────────────────────────────────────
    format: Mapped[str] = mapped_column(
        String(16), nullable=False, comment="LEDES1998B | LEDES2.0 | LEDESXML"
    )
    version: Mapped[str] = mapped_column(String(16), nullable=False, default="1.0")

    # ── UTBMS mapping + embedded rates (plain JSON objects) ───────────────────
    utbms_mapping: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    billing_rates: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Timekeeper classification -> hourly rate in integer cents",
    )

    # ── Lifecycle ─────────────────────────────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<LEDESConfigurationRecord id={self.id!r} "
            f"client={self.client_name!r} format={self.format!r}>"
        )
