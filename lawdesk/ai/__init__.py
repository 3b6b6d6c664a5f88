"""
AI Clients
==========

Outbound clients for the external services.

- MediaClient: OpenAI-compatible API (OCR, speech-to-text, text-to-speech,
  formatting, chat). Configured by AI_BASE_URL / AI_API_KEY.
- EnrichmentClient: case argument extraction (feed documents, then query).
  Configured by ENRICHMENT_BASE_URL.

Usage:
    from lawdesk.ai import get_media_client, get_enrichment_client

    text = await get_media_client().chat("Hello")
"""

from .base import BaseServiceClient
from .enrichment_client import EnrichmentClient, get_enrichment_client, new_session_id
from .media import MediaClient, get_media_client, split_sentences

__all__ = [
    "BaseServiceClient",
    "EnrichmentClient",
    "get_enrichment_client",
    "new_session_id",
    "MediaClient",
    "get_media_client",
    "split_sentences",
]
