"""
Sequence Counter Model
Durable per-tenant, per-series, per-period counters behind document numbers.
"""

from sqlalchemy import CheckConstraint, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from stockbook.database import Base


class SequenceCounter(Base):
    """
    Last sequence value issued for a (tenant_id, series, period) key.

    Rows are created lazily on first allocation and never deleted; they double
    as an audit trail of document volume per period.
    """

    __tablename__ = "sequence_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    series: Mapped[str] = mapped_column(String(32), nullable=False)
    period: Mapped[str] = mapped_column(String(16), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "series", "period", name="uq_sequence_counters_key"
        ),
        CheckConstraint(
            "sequence >= 0", name="ck_sequence_counters_sequence_non_negative"
        ),
    )

    def __repr__(self):
        return (
            f"<SequenceCounter {self.tenant_id}/{self.series}/{self.period}: "
            f"{self.sequence}>"
        )
