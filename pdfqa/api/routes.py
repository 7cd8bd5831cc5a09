import logging
import time

from fastapi import APIRouter, HTTPException, Request

from pdfqa.models import (
    AskRequest,
    AskResponse,
    HealthResponse,
    IngestRequest,
    IngestResponse,
)
from pdfqa.observability.logger import log_request_complete, log_request_error
from pdfqa.observability.metrics import metrics_tracker
from pdfqa.workflow.pipeline import Pipeline


logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================
# HELPERS
# ============================================================

def get_pipeline(request: Request) -> Pipeline:

    pipeline = getattr(request.app.state, "pipeline", None)

    if pipeline is None:
        raise RuntimeError("Pipeline not initialized")

    return pipeline


def request_id_of(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


# ============================================================
# HEALTH
# ============================================================

@router.get("/health", response_model=HealthResponse)
def health_check(request: Request):

    pipeline = get_pipeline(request)

    return HealthResponse(
        status="healthy",
        mode=pipeline.mode.value,
        total_vectors=pipeline.store.count(),
    )


# ============================================================
# INGEST
# ============================================================

@router.post("/ingest", response_model=IngestResponse)
def ingest_documents(request: Request, payload: IngestRequest = None):

    pipeline = get_pipeline(request)
    posthog = request.app.state.posthog
    request_id = request_id_of(request)

    start_time = time.time()

    paths = payload.paths if payload and payload.paths else pipeline.discover()

    try:

        result = pipeline.ingestor.ingest_many(paths)

    except Exception as e:

        log_request_error(logger, request_id, "ingest", e, paths=paths)

        raise

    latency = time.time() - start_time

    log_request_complete(
        logger,
        request_id,
        "ingest",
        latency,
        documents=len(result.paths),
        total_stored=result.total_stored,
    )

    posthog.track_ingest(
        distinct_id=request_id,
        documents=len(result.paths),
        chunks=result.total_stored,
        latency=latency,
    )

    return IngestResponse(total_stored=result.total_stored, paths=result.paths)


# ============================================================
# ASK QUESTION
# ============================================================

@router.post("/ask", response_model=AskResponse)
def ask_question(request: Request, payload: AskRequest = None):

    if payload is None or not payload.question or not payload.question.strip():

        raise HTTPException(
            status_code=400,
            detail="Missing 'question'",
        )

    pipeline = get_pipeline(request)
    posthog = request.app.state.posthog
    request_id = request_id_of(request)

    question = payload.question.strip()

    start_time = time.time()

    try:

        result = pipeline.answerer.answer(question, top_k=payload.top_k)

    except Exception as e:

        log_request_error(logger, request_id, "ask", e, top_k=payload.top_k)

        raise

    latency = time.time() - start_time

    log_request_complete(
        logger,
        request_id,
        "ask",
        latency,
        top_k=payload.top_k,
        sources_used=result.sources_used,
        degraded=result.degraded,
    )

    posthog.track_question(
        distinct_id=request_id,
        question=question,
        top_k=payload.top_k,
        sources_used=result.sources_used,
        degraded=result.degraded,
        latency=latency,
    )

    return AskResponse(
        answer=result.answer,
        context=result.context,
        sources_used=result.sources_used,
        degraded=result.degraded,
    )


# ============================================================
# METRICS ENDPOINT
# ============================================================

@router.get("/metrics")
def get_metrics():

    return metrics_tracker.get_metrics()
