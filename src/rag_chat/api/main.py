"""
FastAPI Application - Query entry point for the RAG chat service

License: MIT
"""

from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from ..config import get_config
from ..errors import RAGError
from ..infrastructure.logging_config import setup_logging
from ..infrastructure.monitoring import metrics_payload, observe_request, setup_prometheus_metrics
from .dependencies import get_chat_service, init_chat_service, reset_chat_service
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown tasks."""
    # Configuration errors propagate here and stop the server.
    config = get_config()
    setup_logging(
        level=config.logging.level,
        format_type=config.logging.format_type,
        log_file=config.logging.log_file,
        environment=config.environment,
    )
    logger.info("Starting RAG chat API")

    if config.monitoring.prometheus_enabled:
        setup_prometheus_metrics()

    chat_service = init_chat_service(config)
    chat_service.verify()

    logger.info("RAG chat API startup complete")

    yield

    logger.info("Shutting down RAG chat API")
    reset_chat_service()


app = FastAPI(
    title="RAG Chat API",
    description="Retrieval-grounded streaming chat",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def add_monitoring(request: Request, call_next):
    """Record request metrics; for streams the duration is time to first byte."""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    observe_request(request.method, request.url.path, response.status_code, duration)
    response.headers["X-Process-Time"] = str(duration)

    return response


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Dictionary with service health status
    """
    try:
        health_status = await get_chat_service().health_check()
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        raise HTTPException(status_code=503, detail=f"Health check failed: {str(e)}")

    if not health_status["healthy"]:
        raise HTTPException(status_code=503, detail="Vector index unreachable")

    return {"status": "healthy", "timestamp": time.time(), "services": health_status["services"]}


@app.get("/metrics", tags=["Monitoring"])
async def get_metrics():
    """Prometheus metrics endpoint."""
    content, content_type = metrics_payload()
    return Response(content=content, media_type=content_type)


app.include_router(router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed chat payloads use the same error shape as other failures."""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=500, content={"error": f"Invalid request: {exc.errors()}"})


@app.exception_handler(RAGError)
async def rag_exception_handler(request: Request, exc: RAGError):
    """Pipeline errors raised outside the chat handler (e.g. lazy initialization)."""
    logger.error(f"Request failed: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Returns:
        JSON error response
    """
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "An unknown error occurred"})


def main():
    """Run the API server (``rag-server``)."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "rag_chat.api.main:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
