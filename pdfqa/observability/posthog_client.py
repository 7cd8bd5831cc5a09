# pdfqa/observability/posthog_client.py

"""
PostHog event tracking.

Optional: without POSTHOG_API_KEY every call is a no-op. Tracking never
raises into the request path; failures are logged as warnings.
"""

import logging
import os
from typing import Any, Dict, Optional

from posthog import Posthog


logger = logging.getLogger(__name__)

DEFAULT_POSTHOG_HOST = "https://app.posthog.com"


class PostHogClient:

    def __init__(
        self,
        api_key: Optional[str] = None,
        host: str = DEFAULT_POSTHOG_HOST,
        client: Optional[Posthog] = None,
    ):

        self._enabled = False
        self._client: Optional[Posthog] = client

        if self._client is not None:
            self._enabled = True
            return

        if not api_key:
            logger.info("PostHog disabled: POSTHOG_API_KEY not set")
            return

        try:

            self._client = Posthog(
                project_api_key=api_key,
                host=host,
                timeout=5,
                flush_interval=1,
            )

            self._enabled = True

            logger.info(
                "PostHog client initialized",
                extra={"host": host}
            )

        except Exception as e:

            logger.error(
                "PostHog initialization failed",
                extra={"error": str(e)}
            )

    @classmethod
    def from_env(cls) -> "PostHogClient":
        return cls(
            api_key=os.getenv("POSTHOG_API_KEY"),
            host=os.getenv("POSTHOG_HOST", DEFAULT_POSTHOG_HOST),
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _track(
        self,
        distinct_id: str,
        event: str,
        properties: Optional[Dict[str, Any]] = None,
    ):

        if not self._enabled or not self._client:
            return

        try:

            self._client.capture(
                distinct_id=distinct_id,
                event=event,
                properties=properties or {},
            )

        except Exception as e:

            logger.warning(
                "PostHog tracking failed",
                extra={
                    "event": event,
                    "error": str(e),
                }
            )

    def track_ingest(
        self,
        distinct_id: str,
        documents: int,
        chunks: int,
        latency: float,
    ):

        self._track(
            distinct_id,
            "documents_ingested",
            {
                "documents": documents,
                "chunks": chunks,
                "latency_seconds": latency,
            },
        )

    def track_question(
        self,
        distinct_id: str,
        question: str,
        top_k: int,
        sources_used: int,
        degraded: bool,
        latency: float,
    ):

        self._track(
            distinct_id,
            "question_asked",
            {
                "question_length": len(question),
                "top_k": top_k,
                "sources_used": sources_used,
                "degraded": degraded,
                "latency_seconds": latency,
            },
        )

    def track_error(
        self,
        distinct_id: str,
        error_type: str,
        error_message: str,
        endpoint: str,
    ):

        self._track(
            distinct_id,
            "system_error",
            {
                "error_type": error_type,
                "error_message": error_message,
                "endpoint": endpoint,
            },
        )
