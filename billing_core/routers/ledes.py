"""
LEDES configuration and export routes.

  POST   /ledes/configurations                 → validate + create
  GET    /ledes/configurations                 → list (filter by client, active)
  GET    /ledes/configurations/{id}            → detail
  PATCH  /ledes/configurations/{id}            → partial update, re-validated as a whole
  DELETE /ledes/configurations/{id}            → remove
  POST   /ledes/configurations/{id}/exports    → build + store a LEDES 1998B invoice file

Validation failures return 422 with every violation:
  {"detail": {"error": "VALIDATION_ERROR", "details": [{code, field, message}, ...]}}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from billing_core.database import get_db
from billing_core.schemas.common import ErrorDetail, ErrorResponse
from billing_core.schemas.ledes import (
    LEDESConfigurationCreate,
    LEDESConfigurationResponse,
    LEDESConfigurationUpdate,
    LEDESExportRequest,
    LEDESExportResponse,
    UTBMSMappingSchema,
)
from billing_core.services.audit import logger as audit
from billing_core.services.errors import (
    AmountTooLarge,
    ConfigurationNotFound,
    ExportTooLarge,
    InvalidAmount,
    LEDESValidationError,
    UnsupportedExportFormat,
)
from billing_core.services.ledes import repository
from billing_core.services.ledes.export import (
    InvoiceHeader,
    TimeEntry,
    build_ledes_1998b,
    store_export,
)
from billing_core.services.ledes.validator import LEDESConfiguration
from billing_core.services.money.sanitizer import cents_to_dollars
from billing_core.services.pricing.renewal_fees import format_amount
from billing_core.services.storage.base import get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ledes", tags=["ledes"])


# ── Helpers ───────────────────────────────────────────────────────────────────


def _to_response(config: LEDESConfiguration) -> LEDESConfigurationResponse:
    return LEDESConfigurationResponse(
        id=config.id,
        client_id=config.client_id,
        client_name=config.client_name,
        format=config.format,
        version=config.version,
        utbms_mapping=UTBMSMappingSchema(**config.utbms_mapping.to_dict()),
        billing_rates={k: cents_to_dollars(v) for k, v in config.billing_rates.items()},
        is_active=config.is_active,
        created_at=config.created_at,
        updated_at=config.updated_at,
    )


def _validation_http_error(exc: LEDESValidationError) -> HTTPException:
    body = ErrorResponse(
        error=exc.code,
        details=[
            ErrorDetail(code=v.code, field=v.field, message=v.message)
            for v in exc.violations
        ],
    )
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=body.model_dump()
    )


def _not_found(exc: ConfigurationNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


# ── Configurations ────────────────────────────────────────────────────────────


@router.post(
    "/configurations",
    response_model=LEDESConfigurationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_configuration(
    payload: LEDESConfigurationCreate, db: Session = Depends(get_db)
) -> LEDESConfigurationResponse:
    try:
        config = repository.create_configuration(db, payload.model_dump())
    except LEDESValidationError as exc:
        raise _validation_http_error(exc)
    db.commit()
    return _to_response(config)


@router.get("/configurations", response_model=list[LEDESConfigurationResponse])
def list_configurations(
    client_id: Optional[str] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
) -> list[LEDESConfigurationResponse]:
    configs = repository.list_configurations(
        db, client_id=client_id, active_only=active_only
    )
    return [_to_response(c) for c in configs]


@router.get(
    "/configurations/{configuration_id}", response_model=LEDESConfigurationResponse
)
def get_configuration(
    configuration_id: str, db: Session = Depends(get_db)
) -> LEDESConfigurationResponse:
    try:
        return _to_response(repository.get_configuration(db, configuration_id))
    except ConfigurationNotFound as exc:
        raise _not_found(exc)


@router.patch(
    "/configurations/{configuration_id}", response_model=LEDESConfigurationResponse
)
def update_configuration(
    configuration_id: str,
    payload: LEDESConfigurationUpdate,
    db: Session = Depends(get_db),
) -> LEDESConfigurationResponse:
    try:
        config = repository.update_configuration(
            db, configuration_id, payload.model_dump(exclude_unset=True)
        )
    except ConfigurationNotFound as exc:
        raise _not_found(exc)
    except LEDESValidationError as exc:
        raise _validation_http_error(exc)
    db.commit()
    return _to_response(config)


@router.delete(
    "/configurations/{configuration_id}", status_code=status.HTTP_204_NO_CONTENT
)
def delete_configuration(configuration_id: str, db: Session = Depends(get_db)) -> Response:
    try:
        repository.delete_configuration(db, configuration_id)
    except ConfigurationNotFound as exc:
        raise _not_found(exc)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Exports ───────────────────────────────────────────────────────────────────


@router.post(
    "/configurations/{configuration_id}/exports",
    response_model=LEDESExportResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_export(
    configuration_id: str,
    payload: LEDESExportRequest,
    db: Session = Depends(get_db),
) -> LEDESExportResponse:
    """
    Build a LEDES 1998B invoice from the posted time entries and write it
    to export storage. The configuration supplies code mapping and default
    rates for classifications without an explicit rate.
    """
    try:
        config = repository.get_configuration(db, configuration_id)
    except ConfigurationNotFound as exc:
        raise _not_found(exc)

    entries = [TimeEntry(**entry.model_dump()) for entry in payload.entries]
    invoice = InvoiceHeader(
        invoice_number=payload.invoice_number,
        invoice_date=payload.invoice_date,
        billing_start_date=payload.billing_start_date,
        billing_end_date=payload.billing_end_date,
        law_firm_id=payload.law_firm_id,
        description=payload.description,
    )

    try:
        export = build_ledes_1998b(entries, config, invoice)
        storage_key = store_export(export, get_storage())
    except UnsupportedExportFormat as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ExportTooLarge as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)
        )
    except (InvalidAmount, AmountTooLarge, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )

    audit.log_export_generated(
        db,
        configuration_id,
        storage_key=storage_key,
        record_count=export.record_count,
        total_cents=export.total_cents,
        size_bytes=export.size_bytes,
    )
    db.commit()

    return LEDESExportResponse(
        configuration_id=configuration_id,
        storage_key=storage_key,
        file_name=export.file_name,
        record_count=export.record_count,
        total_cents=export.total_cents,
        formatted_total=format_amount(export.total_cents),
        size_bytes=export.size_bytes,
    )
