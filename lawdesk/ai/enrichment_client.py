"""
Case Argument Extraction Client
===============================

Two-step conversation with the argument extraction service:

1. POST <feed path>   multipart: session_id + every case file as `files`
2. POST <query path>  JSON: {"session_id": ..., "question": ...}

Both calls share one session id so the service answers against the
documents fed in step 1.
"""

import logging
import mimetypes
import secrets
import time
from contextlib import ExitStack
from pathlib import Path
from typing import List, Optional, Tuple

import httpx

from .base import BaseServiceClient
from ..config import get_settings
from ..errors import ExternalServiceError, StorageError

logger = logging.getLogger(__name__)

# Keys checked, in order, when the query endpoint answers with JSON
ANSWER_KEYS = ("arguments", "answer", "response", "result", "text")


def new_session_id(case_id: str) -> str:
    """`<caseId>_<epoch-millis>_<random hex>`"""
    return f"{case_id}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class EnrichmentClient(BaseServiceClient):
    """Client for the document feed / query service"""

    service_name = "Argument service"

    def __init__(self, base_url: str, feed_path: str, query_path: str, question: str,
                 timeout: int = 120, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.feed_path = feed_path
        self.query_path = query_path
        self.question = question

    async def feed_documents(self, session_id: str, paths: List[Path]) -> None:
        with ExitStack() as stack:
            files = []
            for path in paths:
                mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
                try:
                    handle = stack.enter_context(open(path, "rb"))
                except OSError as e:
                    logger.error(f"Cannot read {path.name} for session {session_id}: {e}")
                    raise StorageError("Failed to read case documents")
                files.append(("files", (path.name, handle, mime)))
            await self.request("POST", self.feed_path, data={"session_id": session_id}, files=files)
        logger.info(f"Fed {len(paths)} document(s) under session {session_id}")

    async def query(self, session_id: str, question: Optional[str] = None) -> str:
        response = await self.request(
            "POST",
            self.query_path,
            json={"session_id": session_id, "question": question or self.question},
        )
        return self.extract_answer(response)

    def extract_answer(self, response: httpx.Response) -> str:
        """Answer text from a plain-text body or one of ANSWER_KEYS in JSON."""
        if "json" not in response.headers.get("content-type", ""):
            return response.text

        data = self.json_body(response)
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            for key in ANSWER_KEYS:
                value = data.get(key)
                if isinstance(value, str):
                    return value
        raise ExternalServiceError(f"{self.service_name} returned an unexpected payload")

    async def extract_arguments(self, case_id: str, paths: List[Path]) -> Tuple[str, str]:
        """Feed the case files and ask for arguments under a fresh session id.

        Returns (session_id, arguments text).
        """
        session_id = new_session_id(case_id)
        await self.feed_documents(session_id, paths)
        return session_id, await self.query(session_id)


_enrichment_client: Optional[EnrichmentClient] = None


def get_enrichment_client() -> EnrichmentClient:
    """Get or create the enrichment client singleton"""
    global _enrichment_client
    if _enrichment_client is None:
        settings = get_settings()
        _enrichment_client = EnrichmentClient(
            base_url=settings.enrichment_base_url,
            feed_path=settings.enrichment_feed_path,
            query_path=settings.enrichment_query_path,
            question=settings.enrichment_question,
            timeout=settings.enrichment_timeout,
        )
    return _enrichment_client
