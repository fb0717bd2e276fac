"""
Sequence Service

Mints human-readable document numbers (INV-2025-0001, PO-0001) from durable
per-tenant counters. All mutation goes through
AtomicCounterStore.find_one_and_increment, so concurrent callers in different
processes never receive the same number.

Numbers are gap-tolerant: a number allocated by a caller that then fails to
create its document is skipped for good.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from stockbook.config import settings
from stockbook.constants.document_series import (
    ALL_TIME_PERIOD,
    SERIES_FORMATS,
    DocumentSeries,
)
from stockbook.services.counter_store import (
    AtomicCounterStore,
    CounterKey,
    InvalidArgumentError,
    SequenceError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

Period = Union[int, str]

# Column widths of sequence_counters
MAX_TENANT_LENGTH = 64
MAX_SERIES_LENGTH = 32
MAX_PERIOD_LENGTH = 16

__all__ = [
    "SequenceAllocator",
    "SequenceError",
    "InvalidArgumentError",
    "StorageUnavailableError",
    "format_document_number",
    "next_document_number",
    "preview_document_number",
]


def _normalize_tenant_id(tenant_id) -> str:
    if tenant_id is None or isinstance(tenant_id, bool):
        raise InvalidArgumentError("tenant_id is required")
    if not isinstance(tenant_id, (str, int)):
        raise InvalidArgumentError(f"Invalid tenant_id: {tenant_id!r}")

    value = str(tenant_id).strip()
    if not value:
        raise InvalidArgumentError("tenant_id is required")
    if len(value) > MAX_TENANT_LENGTH:
        raise InvalidArgumentError(f"tenant_id longer than {MAX_TENANT_LENGTH} characters")
    return value


def _normalize_period(period) -> str:
    if period is None or isinstance(period, bool):
        raise InvalidArgumentError("period is required")

    if isinstance(period, int):
        if period < 0:
            raise InvalidArgumentError(f"Invalid period: {period}")
        value = str(period)
    elif isinstance(period, str):
        value = period.strip()
    else:
        raise InvalidArgumentError(f"Invalid period: {period!r}")

    if not value or value.strip("-") == "" or any(c.isspace() for c in value):
        raise InvalidArgumentError(f"Invalid period: {period!r}")
    if len(value) > MAX_PERIOD_LENGTH:
        raise InvalidArgumentError(f"period longer than {MAX_PERIOD_LENGTH} characters")
    return value


def _check_pad_width(pad_width) -> int:
    if isinstance(pad_width, bool) or not isinstance(pad_width, int) or pad_width < 1:
        raise InvalidArgumentError(f"Invalid pad_width: {pad_width!r}")
    return pad_width


def format_document_number(
    prefix: str,
    sequence: int,
    period: Optional[Period] = None,
    pad_width: int = 4,
) -> str:
    """
    Format a document number.

    Examples:
        >>> format_document_number("INV-", 1, 2025)
        'INV-2025-0001'
        >>> format_document_number("PO-", 12)
        'PO-0012'
    """
    if not isinstance(prefix, str):
        raise InvalidArgumentError(f"Invalid prefix: {prefix!r}")
    if isinstance(sequence, bool) or not isinstance(sequence, int) or sequence < 1:
        raise InvalidArgumentError(f"Invalid sequence: {sequence!r}")
    _check_pad_width(pad_width)

    padded = f"{sequence:0{pad_width}d}"
    if period is None:
        return f"{prefix}{padded}"
    return f"{prefix}{_normalize_period(period)}-{padded}"


class SequenceAllocator:
    """
    Hands out the next number of one document series.

    Each instance is bound to a series name (one counter namespace per
    document type); counters inside it are keyed by (tenant_id, period).
    """

    def __init__(self, store: AtomicCounterStore, series: str):
        if not isinstance(series, str) or not series.strip():
            raise InvalidArgumentError("series is required")
        if len(series.strip()) > MAX_SERIES_LENGTH:
            raise InvalidArgumentError(f"series longer than {MAX_SERIES_LENGTH} characters")
        self.store = store
        self.series = series.strip()

    def _key(self, tenant_id, period) -> CounterKey:
        return CounterKey(
            tenant_id=_normalize_tenant_id(tenant_id),
            series=self.series,
            period=_normalize_period(period),
        )

    def allocate_sequence(self, tenant_id, period: Period) -> int:
        """
        Atomically increment the (tenant_id, period) counter and return the
        new value.

        Raises:
            InvalidArgumentError: tenant_id or period missing or malformed
            StorageUnavailableError: the increment did not happen; the caller
                may retry the whole allocation
        """
        key = self._key(tenant_id, period)

        try:
            sequence = self.store.find_one_and_increment(key)
        except StorageUnavailableError:
            logger.error(f"[FAIL] Could not allocate sequence for {key}")
            raise

        logger.debug(f"Allocated sequence {sequence} for {key}")
        return sequence

    def allocate(
        self,
        tenant_id,
        period: Period,
        prefix: str,
        pad_width: int = 4,
        include_period: bool = True,
    ) -> str:
        """
        Allocate the next document number for (tenant_id, period).

        Args:
            tenant_id: Owning tenant
            period: Partition key, usually the calendar year
            prefix: Printed prefix, e.g. "INV-"
            pad_width: Digits to zero-pad the sequence to
            include_period: Print the period in the number (False for
                series that never reset, e.g. "PO-0001")

        Returns:
            Formatted number, e.g. "INV-2025-0001"

        Raises:
            InvalidArgumentError: malformed input, nothing is consumed
            StorageUnavailableError: storage failed, nothing is consumed
        """
        if not isinstance(prefix, str):
            raise InvalidArgumentError(f"Invalid prefix: {prefix!r}")
        _check_pad_width(pad_width)

        sequence = self.allocate_sequence(tenant_id, period)
        return format_document_number(
            prefix, sequence, period if include_period else None, pad_width
        )

    def peek_sequence(self, tenant_id, period: Period) -> int:
        return self.store.current_value(self._key(tenant_id, period)) + 1

    def peek(
        self,
        tenant_id,
        period: Period,
        prefix: str,
        pad_width: int = 4,
        include_period: bool = True,
    ) -> str:
        """
        Number the next allocate() would return if nobody allocates first.

        Read-only. Never use the result as a document's number.
        """
        if not isinstance(prefix, str):
            raise InvalidArgumentError(f"Invalid prefix: {prefix!r}")
        _check_pad_width(pad_width)

        sequence = self.peek_sequence(tenant_id, period)
        return format_document_number(
            prefix, sequence, period if include_period else None, pad_width
        )


def series_period(series: DocumentSeries, year: Optional[int] = None) -> str:
    """Counter period for a series: the year for yearly series, "all" otherwise."""
    if not SERIES_FORMATS[series].yearly:
        return ALL_TIME_PERIOD
    return _normalize_period(year if year is not None else datetime.now().year)


def next_document_number(
    store: AtomicCounterStore,
    tenant_id,
    series: DocumentSeries,
    year: Optional[int] = None,
) -> tuple[str, int, str]:
    """
    Allocate the next number of a registered document series.

    Returns:
        (document_number, sequence, period)

    Example:
        >>> next_document_number(store, "u1", DocumentSeries.INVOICE, 2025)
        ("INV-2025-0001", 1, "2025")
    """
    fmt = SERIES_FORMATS[series]
    period = series_period(series, year)

    allocator = SequenceAllocator(store, series.value)
    sequence = allocator.allocate_sequence(tenant_id, period)
    number = format_document_number(
        fmt.prefix,
        sequence,
        period if fmt.yearly else None,
        settings.SEQUENCE_PAD_WIDTH,
    )

    logger.info(f"Issued {number} for tenant {tenant_id}")
    return number, sequence, period


def preview_document_number(
    store: AtomicCounterStore,
    tenant_id,
    series: DocumentSeries,
    year: Optional[int] = None,
) -> tuple[str, int, str]:
    """Read-only counterpart of next_document_number()."""
    fmt = SERIES_FORMATS[series]
    period = series_period(series, year)

    allocator = SequenceAllocator(store, series.value)
    sequence = allocator.peek_sequence(tenant_id, period)
    number = format_document_number(
        fmt.prefix,
        sequence,
        period if fmt.yearly else None,
        settings.SEQUENCE_PAD_WIDTH,
    )
    return number, sequence, period
