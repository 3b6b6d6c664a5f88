"""
AI Proxy Endpoints
==================

Authenticated pass-through to the configured OpenAI-compatible API.

- POST /vision          multipart `image`  -> {text}
- POST /speech-to-text  multipart `audio`  -> {transcription}
- POST /tts             {text}             -> audio/mpeg stream
- POST /format          {text}             -> {formatted_text}
- POST /chat            {message}          -> {reply}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse

from .ai.media import MediaClient, get_media_client
from .auth import AuthContext, get_auth_context
from .config import get_settings
from .errors import UnsupportedTypeError, ValidationError
from .schemas import ChatRequest, TextRequest, envelope
from .storage import read_limited

logger = logging.getLogger(__name__)

router = APIRouter(tags=["AI"])


async def _read_upload(upload: Optional[UploadFile], kind: str, mime_prefix: str) -> bytes:
    if upload is None:
        raise ValidationError(f"No {kind} file uploaded")
    content_type = upload.content_type or ""
    if content_type and not content_type.startswith(mime_prefix) and content_type != "application/octet-stream":
        raise UnsupportedTypeError(f"Expected an {kind} file")
    data = await read_limited(upload, get_settings().max_upload_bytes)
    if not data:
        raise ValidationError(f"Uploaded {kind} file is empty")
    return data


@router.post("/vision")
async def vision(
    image: Optional[UploadFile] = File(default=None),
    auth: AuthContext = Depends(get_auth_context),
    client: MediaClient = Depends(get_media_client),
):
    """Extract text (including handwriting) from an image"""
    data = await _read_upload(image, "image", "image/")
    text = await client.extract_text_from_image(data, image.content_type)
    return envelope("Text extracted successfully", {"text": text})


@router.post("/speech-to-text")
async def speech_to_text(
    audio: Optional[UploadFile] = File(default=None),
    auth: AuthContext = Depends(get_auth_context),
    client: MediaClient = Depends(get_media_client),
):
    data = await _read_upload(audio, "audio", "audio/")
    transcription = await client.transcribe(data, audio.filename or "audio", audio.content_type)
    return envelope("Audio transcribed successfully", {"transcription": transcription})


@router.post("/tts")
async def text_to_speech(
    request: TextRequest,
    auth: AuthContext = Depends(get_auth_context),
    client: MediaClient = Depends(get_media_client),
):
    """
    Synthesize speech sentence by sentence.

    The first sentence is synthesized before the response starts so an
    upstream failure still gets a JSON error; later failures end the stream.
    """
    if not request.text or not request.text.strip():
        raise ValidationError("Text input is required")

    chunks = client.synthesize(request.text)
    first = await chunks.__anext__()

    async def audio_stream():
        yield first
        try:
            async for chunk in chunks:
                yield chunk
        except Exception:
            logger.exception("TTS stream aborted")

    return StreamingResponse(audio_stream(), media_type="audio/mpeg")


@router.post("/format")
async def format_text(
    request: TextRequest,
    auth: AuthContext = Depends(get_auth_context),
    client: MediaClient = Depends(get_media_client),
):
    if not request.text or not request.text.strip():
        raise ValidationError("Text is required")
    formatted = await client.format_text(request.text)
    return envelope("Formatting suggested successfully", {"formatted_text": formatted})


@router.post("/chat")
async def chat(
    request: ChatRequest,
    auth: AuthContext = Depends(get_auth_context),
    client: MediaClient = Depends(get_media_client),
):
    if not request.message or not request.message.strip():
        raise ValidationError("Message is required")
    reply = await client.chat(request.message)
    return envelope("Reply generated successfully", {"reply": reply})
