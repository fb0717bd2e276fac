"""
Read-only queries over document counters.

Counters are only ever changed through AtomicCounterStore; nothing in this
module writes.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from stockbook.models.sequence_counter import SequenceCounter


def list_counters(
    db: Session, tenant_id: str, series: Optional[str] = None
) -> List[SequenceCounter]:
    """
    List a tenant's counters, ordered by series then period.

    Args:
        db: Database session
        tenant_id: Owning tenant
        series: Optional series filter (e.g. "invoices")

    Returns:
        List of SequenceCounter rows
    """
    query = db.query(SequenceCounter).filter(SequenceCounter.tenant_id == tenant_id)
    if series:
        query = query.filter(SequenceCounter.series == series)
    return query.order_by(SequenceCounter.series, SequenceCounter.period).all()
