"""
Document number routes.

Document-creation flows call POST /api/sequences/{series}/next to obtain the
number they print on the new document. The preview route only shows what the
next number will probably be.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from stockbook.constants.document_series import DOCUMENT_SERIES_NAMES, DocumentSeries
from stockbook.database import get_db
from stockbook.dependencies.tenant import get_counter_store, get_tenant_id
from stockbook.repositories.counter_repository import list_counters
from stockbook.schemas.sequence import (
    CounterListResponse,
    CounterResponse,
    DocumentNumberResponse,
)
from stockbook.services.counter_store import AtomicCounterStore
from stockbook.services.sequence_service import (
    InvalidArgumentError,
    StorageUnavailableError,
    next_document_number,
    preview_document_number,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sequences", tags=["Document Numbers"])


def _resolve_series(series: str) -> DocumentSeries:
    try:
        return DocumentSeries(series)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown document series: {series}",
        ) from e


@router.post(
    "/{series}/next",
    response_model=DocumentNumberResponse,
    status_code=status.HTTP_201_CREATED,
)
def allocate_number(
    series: str,
    year: Optional[int] = Query(None, ge=0),
    tenant_id: str = Depends(get_tenant_id),
    store: AtomicCounterStore = Depends(get_counter_store),
):
    """Allocate the next document number of a series."""
    doc_series = _resolve_series(series)

    try:
        number, sequence, period = next_document_number(
            store, tenant_id, doc_series, year
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageUnavailableError:
        name = DOCUMENT_SERIES_NAMES[doc_series]
        logger.error(f"Could not create {name} number for tenant {tenant_id}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not create document number, please retry",
        )

    return DocumentNumberResponse(
        series=doc_series, number=number, sequence=sequence, period=period
    )


@router.get("/{series}/preview", response_model=DocumentNumberResponse)
def preview_number(
    series: str,
    year: Optional[int] = Query(None, ge=0),
    tenant_id: str = Depends(get_tenant_id),
    store: AtomicCounterStore = Depends(get_counter_store),
):
    """Show the next number of a series without consuming it."""
    doc_series = _resolve_series(series)

    try:
        number, sequence, period = preview_document_number(
            store, tenant_id, doc_series, year
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not read document number, please retry",
        )

    return DocumentNumberResponse(
        series=doc_series, number=number, sequence=sequence, period=period
    )


@router.get("", response_model=CounterListResponse)
def counters(
    series: Optional[str] = Query(None),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """List the tenant's counters."""
    if series is not None:
        series = _resolve_series(series).value

    rows = list_counters(db, tenant_id, series)
    return CounterListResponse(
        tenant_id=tenant_id,
        counters=[CounterResponse.model_validate(row) for row in rows],
    )
