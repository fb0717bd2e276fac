"""
Document Series Constants

Every numbered document type, with the prefix printed on its numbers and
whether its counter resets every calendar year.
"""

import enum
from dataclasses import dataclass


class DocumentSeries(str, enum.Enum):
    INVOICE = "invoices"
    SALE = "sales"
    PURCHASE_ORDER = "purchases"
    SALES_ORDER = "sales_orders"
    CUSTOMER = "customers"
    SUPPLIER = "suppliers"
    PRODUCT = "products"


@dataclass(frozen=True)
class SeriesFormat:
    prefix: str
    yearly: bool


# Period key shared by every series that never resets
ALL_TIME_PERIOD = "all"

SERIES_FORMATS = {
    DocumentSeries.INVOICE: SeriesFormat(prefix="INV-", yearly=True),
    DocumentSeries.SALE: SeriesFormat(prefix="SALE-", yearly=True),
    DocumentSeries.PURCHASE_ORDER: SeriesFormat(prefix="PO-", yearly=False),
    DocumentSeries.SALES_ORDER: SeriesFormat(prefix="SO-", yearly=False),
    DocumentSeries.CUSTOMER: SeriesFormat(prefix="CUST-", yearly=False),
    DocumentSeries.SUPPLIER: SeriesFormat(prefix="SUPP-", yearly=False),
    DocumentSeries.PRODUCT: SeriesFormat(prefix="PROD-", yearly=False),
}

# Human-readable names for logging and error messages
DOCUMENT_SERIES_NAMES = {
    DocumentSeries.INVOICE: "invoice",
    DocumentSeries.SALE: "sale",
    DocumentSeries.PURCHASE_ORDER: "purchase order",
    DocumentSeries.SALES_ORDER: "sales order",
    DocumentSeries.CUSTOMER: "customer",
    DocumentSeries.SUPPLIER: "supplier",
    DocumentSeries.PRODUCT: "product",
}
