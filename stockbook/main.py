from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from stockbook.config import settings
from stockbook.database import init_db, close_db
from stockbook.services.counter_store import SqlCounterStore
from stockbook.web.sequence_routes import router as sequence_router
from contextlib import asynccontextmanager
from pathlib import Path

import logging

_log_dir = Path(__file__).parent.parent / "logs"
_log_dir.mkdir(exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.FileHandler(_log_dir / "app.log"), logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown events"""
    logger.info("[>>] Starting Stockbook backend...")
    init_db()
    logger.info("[OK] Database initialized")
    yield
    logger.info("[<<] Shutting down Stockbook backend...")
    close_db()
    logger.info("[OK] Database connections closed")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Document numbering API for the Stockbook inventory and billing app",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.counter_store = SqlCounterStore()


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log every unhandled exception"""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        str(exc),
        exc_info=True,
    )
    return PlainTextResponse(
        "Internal Server Error. Please contact support if the problem persists.",
        status_code=500,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-Tenant-ID"],
)


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


app.include_router(sequence_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
