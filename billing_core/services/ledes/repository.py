"""
LEDES configuration store.

Every write goes through the validator first, so the table only ever holds
configurations that passed every rule. An invalid create or update leaves
the table exactly as it was.

Functions flush but never commit; the router owns the transaction.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from billing_core.models.ledes import LEDESConfigurationRecord
from billing_core.services.audit import logger as audit
from billing_core.services.errors import ConfigurationNotFound
from billing_core.services.ledes.validator import (
    LEDESConfiguration,
    UTBMSMapping,
    validate_and_create_configuration,
    validate_configuration_update,
)

logger = logging.getLogger(__name__)


# ── Record <-> domain conversion ──────────────────────────────────────────────


def _as_utc(value: datetime) -> datetime:
    # SQLite hands DateTime(timezone=True) columns back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_domain(record: LEDESConfigurationRecord) -> LEDESConfiguration:
    mapping = record.utbms_mapping or {}
    return LEDESConfiguration(
        id=record.id,
        client_id=record.client_id,
        client_name=record.client_name,
        format=record.format,
        version=record.version,
        utbms_mapping=UTBMSMapping(
            default_activity_code=mapping.get("default_activity_code", ""),
            default_expense_code=mapping.get("default_expense_code", ""),
            activity_codes=dict(mapping.get("activity_codes") or {}),
            expense_codes=dict(mapping.get("expense_codes") or {}),
            task_codes=dict(mapping.get("task_codes") or {}),
            matter_categories=dict(mapping.get("matter_categories") or {}),
        ),
        billing_rates={k: int(v) for k, v in (record.billing_rates or {}).items()},
        is_active=record.is_active,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
    )


def _apply(record: LEDESConfigurationRecord, config: LEDESConfiguration) -> None:
    record.client_id = config.client_id
    record.client_name = config.client_name
    record.format = config.format
    record.version = config.version
    record.utbms_mapping = config.utbms_mapping.to_dict()
    record.billing_rates = dict(config.billing_rates)
    record.is_active = config.is_active
    record.updated_at = config.updated_at


def _get_record(db: Session, configuration_id: str) -> LEDESConfigurationRecord:
    record = db.get(LEDESConfigurationRecord, configuration_id)
    if record is None:
        raise ConfigurationNotFound(
            f"LEDES configuration {configuration_id!r} not found"
        )
    return record


# ── Public API ────────────────────────────────────────────────────────────────


def create_configuration(
    db: Session,
    data: Mapping[str, Any],
    *,
    actor_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LEDESConfiguration:
    """Validate `data` in full, then persist. Raises LEDESValidationError."""
    config = validate_and_create_configuration(data, now=now)

    record = LEDESConfigurationRecord(id=config.id, created_at=config.created_at)
    _apply(record, config)
    db.add(record)
    db.flush()

    audit.log_configuration_changed(db, config, "created", actor_id=actor_id)
    logger.info(
        "Created LEDES configuration %s for client %s (%s)",
        config.id,
        config.client_id,
        config.format,
    )
    return config


def list_configurations(
    db: Session, client_id: Optional[str] = None, active_only: bool = False
) -> list[LEDESConfiguration]:
    stmt = select(LEDESConfigurationRecord).order_by(
        LEDESConfigurationRecord.created_at, LEDESConfigurationRecord.id
    )
    if client_id is not None:
        stmt = stmt.where(LEDESConfigurationRecord.client_id == client_id)
    if active_only:
        stmt = stmt.where(LEDESConfigurationRecord.is_active.is_(True))
    return [_to_domain(r) for r in db.execute(stmt).scalars().all()]


def get_configuration(db: Session, configuration_id: str) -> LEDESConfiguration:
    return _to_domain(_get_record(db, configuration_id))


def update_configuration(
    db: Session,
    configuration_id: str,
    updates: Mapping[str, Any],
    *,
    actor_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LEDESConfiguration:
    """
    Merge `updates` into the stored configuration and re-validate the whole
    record. Nothing is written unless the merged record is valid.
    """
    record = _get_record(db, configuration_id)
    updated = validate_configuration_update(_to_domain(record), updates, now=now)

    _apply(record, updated)
    db.flush()

    audit.log_configuration_changed(db, updated, "updated", actor_id=actor_id)
    logger.info("Updated LEDES configuration %s", configuration_id)
    return updated


def delete_configuration(
    db: Session, configuration_id: str, *, actor_id: Optional[str] = None
) -> None:
    record = _get_record(db, configuration_id)
    config = _to_domain(record)
    db.delete(record)
    db.flush()

    audit.log_configuration_changed(db, config, "deleted", actor_id=actor_id)
    logger.info("Deleted LEDES configuration %s", configuration_id)
