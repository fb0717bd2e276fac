from stockbook.schemas.base import BaseResponseSchema
from stockbook.schemas.sequence import (
    CounterListResponse,
    CounterResponse,
    DocumentNumberResponse,
)

__all__ = [
    "BaseResponseSchema",
    "CounterListResponse",
    "CounterResponse",
    "DocumentNumberResponse",
]
