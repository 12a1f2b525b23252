"""FastAPI application serving the orchestrator.

Usage:
    uvicorn agentflow.api.main:create_app --factory --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from agentflow.api.error_handlers import domain_exception_handler, global_exception_handler
from agentflow.api.routes import create_router
from agentflow.core.logging_utils import generate_correlation_id, get_logger, setup_json_logging
from agentflow.di.container import Container
from agentflow.domain.exceptions import DomainException

logger = get_logger(__name__)


async def correlation_id_middleware(request: Request, call_next: Callable):
    """Attach an ``X-Correlation-ID`` to every request and response."""
    correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def create_app(container: Container | None = None) -> FastAPI:
    container = container or Container()
    runtime = container.config.runtime

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        manager = container.session_manager()
        restored = await manager.initialize()
        manager.start_cleanup_task()
        logger.info("api_started", extra={"restored_sessions": restored})
        try:
            yield
        finally:
            await container.aclose()
            logger.info("api_stopped")

    setup_json_logging(runtime.log_level, log_file=runtime.log_file)
    app = FastAPI(
        title="agentflow",
        description="Stage-based agent orchestration with streamed responses",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.middleware("http")(correlation_id_middleware)
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(create_router(container.orchestrator()))
    return app
