# pdfqa/main.py
import threading
import time
import uuid
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pdfqa.api.routes import router
from pdfqa.config import Settings, load_settings
from pdfqa.observability.logger import setup_logging, get_logger
from pdfqa.observability.metrics import metrics_tracker
from pdfqa.observability.posthog_client import PostHogClient
from pdfqa.workflow.pipeline import Pipeline, build_pipeline

VERSION = "1.0.0"

logger = get_logger(__name__)


def _failure(status_code: int, error: str, request: Request, error_type: Optional[str] = None):

    return JSONResponse(
        status_code=status_code,
        content={
            "ok": False,
            "error": error,
            "error_type": error_type,
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
    )


def auto_ingest(pipeline: Pipeline) -> None:
    """Ingest every discovered PDF; a failure is logged and startup continues."""

    try:

        paths = pipeline.discover()

        if not paths:
            logger.info("No local PDFs found to auto-ingest")
            return

        result = pipeline.ingestor.ingest_many(paths)

        logger.info(
            "Auto-ingest complete",
            extra={"documents": len(paths), "total_stored": result.total_stored},
        )

    except Exception as e:

        logger.warning(
            "Auto-ingest failed",
            extra={"error": str(e), "error_type": type(e).__name__},
            exc_info=True,
        )


def create_app(
    pipeline: Optional[Pipeline] = None,
    settings: Optional[Settings] = None,
    posthog: Optional[PostHogClient] = None,
    run_auto_ingest: Optional[bool] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    The pipeline is normally assembled from the environment on startup;
    tests pass a ready-made one instead.
    """

    app = FastAPI(
        title="PDF Question Answering API",
        description="Retrieval-augmented question answering over ingested PDFs",
        version=VERSION,
    )

    app.state.pipeline = pipeline
    app.state.posthog = posthog if posthog is not None else PostHogClient.from_env()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Log every HTTP request with latency and record metrics.
        """

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "request_started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None
            }
        )

        start_time = time.time()

        try:

            response = await call_next(request)

        except Exception as e:

            metrics_tracker.record_failure()

            logger.error(
                "request_failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "latency_seconds": round(time.time() - start_time, 3),
                    "error": str(e),
                    "error_type": type(e).__name__
                }
            )

            raise

        latency = time.time() - start_time

        if response.status_code < 400:
            metrics_tracker.record_success(latency)
        else:
            metrics_tracker.record_failure()

        logger.info(
            "request_completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_seconds": round(latency, 3)
            }
        )

        response.headers["X-Request-ID"] = request_id

        return response

    app.include_router(router)

    @app.on_event("startup")
    async def startup_event():

        if app.state.pipeline is None:

            current = settings if settings is not None else load_settings()

            app.state.pipeline = build_pipeline(current)

        active = app.state.pipeline

        logger.info(
            "application_startup",
            extra={"version": VERSION, "mode": active.mode.value},
        )

        active.warm()

        should_ingest = (
            active.settings.auto_ingest if run_auto_ingest is None else run_auto_ingest
        )

        # the server starts accepting requests while PDFs are ingested
        if should_ingest:
            app.state.auto_ingest_thread = threading.Thread(
                target=auto_ingest,
                args=(active,),
                name="auto-ingest",
                daemon=True,
            )
            app.state.auto_ingest_thread.start()

    @app.on_event("shutdown")
    async def shutdown_event():

        logger.info("application_shutdown")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):

        return _failure(exc.status_code, str(exc.detail), request, "HTTPException")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):

        errors = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )

        return _failure(
            status.HTTP_400_BAD_REQUEST,
            f"Invalid request: {errors}",
            request,
            "RequestValidationError",
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):

        request_id = getattr(request.state, "request_id", "unknown")

        logger.error(
            "unhandled_exception",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "error": str(exc),
                "error_type": type(exc).__name__
            },
            exc_info=True
        )

        app.state.posthog.track_error(
            distinct_id=request_id,
            error_type=type(exc).__name__,
            error_message=str(exc),
            endpoint=request.url.path,
        )

        return _failure(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(exc) or type(exc).__name__,
            request,
            type(exc).__name__,
        )

    @app.get("/")
    async def root():

        return {
            "message": "PDF Question Answering API",
            "version": VERSION,
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }

    return app


def get_app() -> FastAPI:
    """uvicorn factory: `uvicorn pdfqa.main:get_app --factory`."""

    load_dotenv()

    settings = load_settings()

    setup_logging(log_level=settings.log_level)

    return create_app(settings=settings)
