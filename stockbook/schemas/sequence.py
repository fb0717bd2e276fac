from pydantic import BaseModel, ConfigDict
from datetime import datetime
from stockbook.constants.document_series import DocumentSeries
from stockbook.schemas.base import BaseResponseSchema


class DocumentNumberResponse(BaseResponseSchema):
    series: DocumentSeries
    number: str
    sequence: int
    period: str


class CounterResponse(BaseResponseSchema):
    series: str
    period: str
    sequence: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CounterListResponse(BaseModel):
    tenant_id: str
    counters: list[CounterResponse]
