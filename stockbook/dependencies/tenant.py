from fastapi import HTTPException, Request, status

from stockbook.services.counter_store import AtomicCounterStore

TENANT_HEADER = "X-Tenant-ID"


def get_tenant_id(request: Request) -> str:
    """
    Tenant scoping every counter of the request.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    tenant_id = request.headers.get(TENANT_HEADER, "").strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Tenant not identified",
        )
    return tenant_id


def get_counter_store(request: Request) -> AtomicCounterStore:
    return request.app.state.counter_store
