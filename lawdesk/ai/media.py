"""
AI Media Client
===============

Thin wrappers over an OpenAI-compatible HTTP API:

- extract_text_from_image: vision chat completion (OCR, including handwriting)
- transcribe: speech-to-text
- synthesize: text-to-speech, one request per sentence
- format_text / chat: plain chat completions
"""

import base64
import logging
import re
from typing import AsyncIterator, Dict, List, Optional

import httpx

from .base import BaseServiceClient
from ..config import get_settings
from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)

OCR_PROMPT = (
    "Extract all text from this image, including handwriting. "
    "Return only the extracted text without any introduction or commentary."
)
FORMAT_PROMPT = "Suggest formatting for the following text (e.g., bold, h1, h2, italics):"

_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def split_sentences(text: str) -> List[str]:
    """Split text into sentences; a trailing fragment without a terminator
    becomes the last chunk."""
    chunks = []
    end = 0
    for match in _SENTENCE.finditer(text):
        chunks.append(match.group().strip())
        end = match.end()
    chunks.append(text[end:].strip())
    return [c for c in chunks if c]


class MediaClient(BaseServiceClient):
    """OCR, speech and chat calls against the configured AI API"""

    service_name = "AI service"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        ocr_model: str = "gpt-4o-mini",
        stt_model: str = "whisper-1",
        stt_language: str = "en",
        tts_model: str = "tts-1",
        tts_voice: str = "alloy",
        format_model: str = "gpt-4",
        chat_model: str = "gpt-3.5-turbo",
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, api_key=api_key, timeout=timeout, transport=transport)
        self.ocr_model = ocr_model
        self.stt_model = stt_model
        self.stt_language = stt_language
        self.tts_model = tts_model
        self.tts_voice = tts_voice
        self.format_model = format_model
        self.chat_model = chat_model

    def _require_key(self):
        if not self.api_key:
            logger.error("AI_API_KEY not configured")
            raise ExternalServiceError("AI API key not configured")

    async def _chat_completion(self, model: str, messages: List[Dict], max_tokens: Optional[int] = None) -> str:
        self._require_key()
        payload = {"model": model, "messages": messages}
        if max_tokens:
            payload["max_tokens"] = max_tokens

        response = await self.request("POST", "/chat/completions", json=payload)
        data = self.json_body(response)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"AI response missing content: {e}")
            raise ExternalServiceError("AI service returned no content")
        return content or ""

    async def extract_text_from_image(self, image: bytes, mime_type: Optional[str] = None) -> str:
        encoded = base64.b64encode(image).decode("ascii")
        messages = [{
            "role": "user",
            "content": [
                {"type": "text", "text": OCR_PROMPT},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type or 'image/jpeg'};base64,{encoded}"}},
            ],
        }]
        return await self._chat_completion(self.ocr_model, messages, max_tokens=1000)

    async def transcribe(self, audio: bytes, filename: str, mime_type: Optional[str] = None) -> str:
        self._require_key()
        response = await self.request(
            "POST",
            "/audio/transcriptions",
            data={"model": self.stt_model, "language": self.stt_language},
            files={"file": (filename, audio, mime_type or "application/octet-stream")},
        )
        data = self.json_body(response)
        if not isinstance(data, dict):
            raise ExternalServiceError(f"{self.service_name} returned an unexpected payload")
        return data.get("text", "")

    async def synthesize_sentence(self, sentence: str) -> bytes:
        self._require_key()
        response = await self.request(
            "POST",
            "/audio/speech",
            json={"model": self.tts_model, "voice": self.tts_voice, "input": sentence},
        )
        return response.content

    async def synthesize(self, text: str) -> AsyncIterator[bytes]:
        """Yield MPEG audio for each sentence, in order."""
        for sentence in split_sentences(text):
            yield await self.synthesize_sentence(sentence)

    async def format_text(self, text: str) -> str:
        messages = [
            {"role": "system", "content": FORMAT_PROMPT},
            {"role": "user", "content": text},
        ]
        return await self._chat_completion(self.format_model, messages)

    async def chat(self, message: str) -> str:
        return await self._chat_completion(self.chat_model, [{"role": "user", "content": message}])


_media_client: Optional[MediaClient] = None


def get_media_client() -> MediaClient:
    """Get or create the media client singleton"""
    global _media_client
    if _media_client is None:
        settings = get_settings()
        _media_client = MediaClient(
            base_url=settings.ai_base_url,
            api_key=settings.ai_api_key,
            ocr_model=settings.ocr_model,
            stt_model=settings.stt_model,
            stt_language=settings.stt_language,
            tts_model=settings.tts_model,
            tts_voice=settings.tts_voice,
            format_model=settings.format_model,
            chat_model=settings.chat_model,
            timeout=settings.ai_timeout,
        )
    return _media_client
