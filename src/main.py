"""
main.py

Application entry point.

Run with:
    python main.py
or:
    uvicorn main:app --reload
"""

import structlog
import uvicorn

from api import app, get_uow
from config import settings
from infrastructure import InMemoryUnitOfWork, PostgrestClient, RestUnitOfWork
from logging_config import setup_logging

setup_logging(settings.log_level)
logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Wire the concrete Unit of Work into the FastAPI dependency system.
# STORE_BACKEND=memory keeps data in process; STORE_BACKEND=rest talks to a
# PostgREST-compatible store at STORE_URL.
# ---------------------------------------------------------------------------

if settings.store_backend == "rest":
    if not settings.store_url:
        raise RuntimeError("STORE_URL must be set when STORE_BACKEND=rest")
    _client = PostgrestClient(
        settings.store_url,
        api_key=settings.store_api_key,
        timeout=settings.store_timeout,
    )
    app.dependency_overrides[get_uow] = lambda: RestUnitOfWork(_client)
    app.state.store_client = _client   # closed by api.lifespan on shutdown
else:
    app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork()

logger.info("app_configured", environment=settings.environment,
            store_backend=settings.store_backend, mcp_enabled=settings.mcp_enabled)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "dev",
        log_level=settings.log_level.lower(),
    )
