import json

import pytest
from pydantic import BaseModel

from config.routes import LlmRoute
from llm_gateway import LlmGatewayError, chat, complete, json_schema_format, strip_code_fences, transcribe


class Answer(BaseModel):
    answer: str


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    @property
    def text(self):
        return json.dumps(self._payload)


class FakeClient:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.responses.pop(0)


def _reply(content):
    return FakeResponse(payload={"choices": [{"message": {"content": content}}]})


ROUTE = LlmRoute(name="test", base_url="http://llm.local/v1", model="gpt-4o", max_retries=1)


def test_complete_returns_content_and_posts_payload():
    client = FakeClient(_reply("Tell me about yourself."))
    fmt = json_schema_format("interview_response", {"type": "object"})
    text = complete(
        [{"role": "user", "content": "hi"}],
        cfg=ROUTE,
        client=client,
        response_format=fmt,
        options={"max_tokens": 300},
    )
    assert text == "Tell me about yourself."
    sent = client.requests[0]
    assert sent["url"] == "http://llm.local/v1/chat/completions"
    assert sent["json"]["model"] == "gpt-4o"
    assert sent["json"]["max_tokens"] == 300
    assert sent["json"]["response_format"]["json_schema"]["strict"] is True


def test_error_status_raises():
    client = FakeClient(FakeResponse(status_code=500, payload={"error": "boom"}))
    with pytest.raises(LlmGatewayError):
        complete([{"role": "user", "content": "hi"}], cfg=ROUTE, client=client)


def test_missing_content_raises():
    client = FakeClient(FakeResponse(payload={"choices": []}))
    with pytest.raises(LlmGatewayError):
        complete([{"role": "user", "content": "hi"}], cfg=ROUTE, client=client)


def test_chat_retries_invalid_output_then_succeeds():
    client = FakeClient(_reply("not json"), _reply('{"answer": "42"}'))
    result = chat([{"role": "user", "content": "q"}], Answer, cfg=ROUTE, client=client)
    assert result == Answer(answer="42")
    retry_messages = client.requests[1]["json"]["messages"]
    assert retry_messages[-1]["role"] == "system"
    assert "not valid for the schema" in retry_messages[-1]["content"]
    assert client.requests[0]["json"]["response_format"] == {"type": "json_object"}


def test_chat_gives_up_after_retries():
    client = FakeClient(_reply("nope"), _reply("still nope"))
    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "q"}], Answer, cfg=ROUTE, client=client)
    assert len(client.requests) == 2


def test_authorization_header_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    client = FakeClient(_reply("ok"))
    complete([{"role": "user", "content": "hi"}], cfg=ROUTE, client=client)
    assert client.requests[0]["headers"]["Authorization"] == "Bearer sk-test"


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("  plain  ") == "plain"


class FakeUploadClient:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def post(self, url, *, files, data, headers, timeout):
        self.requests.append({"url": url, "files": files, "data": data, "headers": headers, "timeout": timeout})
        return self.response


WHISPER = LlmRoute(name="stt", base_url="http://llm.local/v1/", endpoint="/audio/transcriptions", model="whisper-1")


def test_transcribe_uploads_multipart(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    client = FakeUploadClient(FakeResponse(payload={"text": " Hello panel. "}))
    text = transcribe(
        b"audio-bytes", cfg=WHISPER, filename="a.wav", content_type="audio/wav", language="ko", client=client
    )
    assert text == "Hello panel."
    sent = client.requests[0]
    assert sent["url"] == "http://llm.local/v1/audio/transcriptions"
    assert sent["files"] == {"file": ("a.wav", b"audio-bytes", "audio/wav")}
    assert sent["data"] == {"model": "whisper-1", "response_format": "json", "language": "ko"}
    assert sent["headers"]["Authorization"] == "Bearer sk-test"
    assert "Content-Type" not in sent["headers"]


def test_transcribe_error_status_raises():
    client = FakeUploadClient(FakeResponse(status_code=429, payload={"error": "quota"}))
    with pytest.raises(LlmGatewayError):
        transcribe(b"x", cfg=WHISPER, client=client)


def test_transcribe_missing_text_raises():
    client = FakeUploadClient(FakeResponse(payload={"segments": []}))
    with pytest.raises(LlmGatewayError):
        transcribe(b"x", cfg=WHISPER, client=client)
