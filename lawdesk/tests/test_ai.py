"""
AI Proxy Tests
==============

MediaClient against httpx.MockTransport and the /api/ai endpoints with the
client overridden.
"""

import base64
import json

import httpx
import pytest

from lawdesk.ai.media import MediaClient, get_media_client, split_sentences
from lawdesk.errors import ExternalServiceError

from conftest import auth_header


class FakeOpenAI:
    """Minimal OpenAI-compatible responder"""

    def __init__(self, status=200, garbled=False):
        self.status = status
        self.garbled = garbled
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.garbled:
            return httpx.Response(200, content=b"<html>oops</html>", headers={"content-type": "application/json"})
        if self.status != 200:
            return httpx.Response(self.status, json={"error": {"message": "boom"}})
        if request.url.path == "/v1/chat/completions":
            body = json.loads(request.content)
            last = body["messages"][-1]["content"]
            reply = "echo: " + (last if isinstance(last, str) else "image")
            return httpx.Response(200, json={"choices": [{"message": {"content": reply}}]})
        if request.url.path == "/v1/audio/transcriptions":
            return httpx.Response(200, json={"text": "hello world"})
        if request.url.path == "/v1/audio/speech":
            body = json.loads(request.content)
            return httpx.Response(200, content=f"<{body['input']}>".encode(), headers={"content-type": "audio/mpeg"})
        return httpx.Response(404)


def _media(fake, api_key="sk-test"):
    return MediaClient(
        base_url="http://ai.test/v1",
        api_key=api_key,
        transport=httpx.MockTransport(fake),
    )


class TestSplitSentences:

    def test_split(self):
        assert split_sentences("Hello there. How are you? Fine!") == ["Hello there.", "How are you?", "Fine!"]

    def test_no_terminator_is_one_chunk(self):
        assert split_sentences("no punctuation here") == ["no punctuation here"]

    def test_trailing_fragment_is_kept(self):
        assert split_sentences("One. two") == ["One.", "two"]
        assert split_sentences("Call me. Then email  ") == ["Call me.", "Then email"]


class TestMediaClient:

    @pytest.mark.asyncio
    async def test_chat_sends_model_and_key(self):
        fake = FakeOpenAI()
        client = _media(fake)
        try:
            assert await client.chat("hi") == "echo: hi"
        finally:
            await client.close()

        request = fake.requests[0]
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert json.loads(request.content)["model"] == "gpt-3.5-turbo"

    @pytest.mark.asyncio
    async def test_format_uses_system_prompt(self):
        fake = FakeOpenAI()
        client = _media(fake)
        try:
            await client.format_text("Title then body")
        finally:
            await client.close()
        body = json.loads(fake.requests[0].content)
        assert body["model"] == "gpt-4"
        assert body["messages"][0]["role"] == "system"
        assert body["messages"][0]["content"].startswith("Suggest formatting")

    @pytest.mark.asyncio
    async def test_vision_sends_data_url(self):
        fake = FakeOpenAI()
        client = _media(fake)
        try:
            await client.extract_text_from_image(b"\x89PNG", "image/png")
        finally:
            await client.close()
        content = json.loads(fake.requests[0].content)["messages"][0]["content"]
        expected = "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
        assert content[1]["image_url"]["url"] == expected

    @pytest.mark.asyncio
    async def test_transcribe(self):
        fake = FakeOpenAI()
        client = _media(fake)
        try:
            assert await client.transcribe(b"RIFF", "memo.wav", "audio/wav") == "hello world"
        finally:
            await client.close()
        body = fake.requests[0].content
        assert b'name="model"' in body and b"whisper-1" in body
        assert b'name="language"' in body

    @pytest.mark.asyncio
    async def test_synthesize_in_sentence_order(self):
        fake = FakeOpenAI()
        client = _media(fake)
        try:
            chunks = [c async for c in client.synthesize("One. Two! Three?")]
        finally:
            await client.close()
        assert chunks == [b"<One.>", b"<Two!>", b"<Three?>"]

    @pytest.mark.asyncio
    async def test_missing_key_fails_without_request(self):
        fake = FakeOpenAI()
        client = _media(fake, api_key=None)
        with pytest.raises(ExternalServiceError):
            await client.chat("hi")
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        client = _media(FakeOpenAI(status=500))
        try:
            with pytest.raises(ExternalServiceError):
                await client.chat("hi")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json_is_upstream_error(self):
        client = _media(FakeOpenAI(garbled=True))
        try:
            with pytest.raises(ExternalServiceError):
                await client.chat("hi")
            with pytest.raises(ExternalServiceError):
                await client.transcribe(b"RIFF", "memo.wav", "audio/wav")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_synthesize_keeps_trailing_fragment(self):
        fake = FakeOpenAI()
        client = _media(fake)
        try:
            chunks = [c async for c in client.synthesize("Done. and more")]
        finally:
            await client.close()
        assert chunks == [b"<Done.>", b"<and more>"]


class TestAIEndpoints:

    def _override(self, fake, api_key="sk-test"):
        from lawdesk.api import app
        app.dependency_overrides[get_media_client] = lambda: _media(fake, api_key)

    def test_chat(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/chat", headers=auth_header(user_token), json={"message": "hi"})
        assert response.status_code == 200
        assert response.json()["data"] == {"reply": "echo: hi"}

    def test_chat_requires_message(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/chat", headers=auth_header(user_token), json={})
        assert response.status_code == 400
        assert response.json()["message"] == "Message is required"

    def test_format(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/format", headers=auth_header(user_token), json={"text": "abc"})
        assert response.json()["data"] == {"formatted_text": "echo: abc"}

    def test_vision(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/vision", headers=auth_header(user_token),
                               files={"image": ("scan.png", b"\x89PNG", "image/png")})
        assert response.status_code == 200
        assert response.json()["data"] == {"text": "echo: image"}

    def test_vision_rejects_non_image(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/vision", headers=auth_header(user_token),
                               files={"image": ("notes.txt", b"text", "text/plain")})
        assert response.status_code == 400

    def test_speech_to_text(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/speech-to-text", headers=auth_header(user_token),
                               files={"audio": ("memo.mp3", b"ID3", "audio/mpeg")})
        assert response.json()["data"] == {"transcription": "hello world"}

    def test_speech_to_text_requires_file(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/speech-to-text", headers=auth_header(user_token))
        assert response.status_code == 400

    def test_tts_streams_audio(self, client, user_token):
        self._override(FakeOpenAI())
        response = client.post("/api/ai/tts", headers=auth_header(user_token), json={"text": "Hi. Bye."})
        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"<Hi.><Bye.>"

    def test_tts_upstream_failure_is_json_502(self, client, user_token):
        self._override(FakeOpenAI(status=500))
        response = client.post("/api/ai/tts", headers=auth_header(user_token), json={"text": "Hi."})
        assert response.status_code == 502
        assert response.json()["status"] is False

    def test_missing_api_key_is_502(self, client, user_token):
        self._override(FakeOpenAI(), api_key=None)
        response = client.post("/api/ai/chat", headers=auth_header(user_token), json={"message": "hi"})
        assert response.status_code == 502

    def test_requires_auth(self, client):
        assert client.post("/api/ai/chat", json={"message": "hi"}).status_code == 401

    def test_invalid_upstream_json_is_502(self, client, user_token):
        self._override(FakeOpenAI(garbled=True))
        response = client.post("/api/ai/chat", headers=auth_header(user_token), json={"message": "hi"})
        assert response.status_code == 502
        assert response.json() == {"status": False, "message": "AI service returned an unexpected payload", "data": {}}

    def test_oversized_upload_rejected(self, client, user_token, monkeypatch):
        from lawdesk.config import get_settings

        monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")
        get_settings.cache_clear()
        fake = FakeOpenAI()
        self._override(fake)
        response = client.post("/api/ai/vision", headers=auth_header(user_token),
                               files={"image": ("scan.png", b"\x89PNG-too-big", "image/png")})
        assert response.status_code == 400
        assert response.json()["message"] == "File too large (max 4 bytes)"
        assert fake.requests == []
