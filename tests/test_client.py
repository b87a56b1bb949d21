from __future__ import annotations

import json

import httpx
import pytest

from simplificator_tui.chat.persona import REVIEW_TOOL_NAME
from simplificator_tui.chat.stream_assembler import ErrorKind, StreamingAssembler
from simplificator_tui.client import (
    AuthError,
    CreditsError,
    GatewayClient,
    GatewayError,
    RateLimitError,
)
from simplificator_tui.config import GatewayConfig
from simplificator_tui.models import DEFAULT_SUGGESTIONS


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_config(api_key: str | None = "test-key") -> GatewayConfig:
    return GatewayConfig(
        gateway_url="https://gateway.test/v1/",
        model="test/model",
        api_key=api_key,
        timeout=5.0,
        db_path=":memory:",
    )


def make_client(handler, config: GatewayConfig | None = None) -> GatewayClient:
    config = config or make_config()
    client = GatewayClient(config)
    client._client = httpx.Client(
        base_url=config.base_url,
        transport=httpx.MockTransport(handler),
    )
    return client


def sse(*contents: str, done: bool = True) -> bytes:
    lines = [
        f"data: {json.dumps({'choices': [{'delta': {'content': text}}]})}\n\n"
        for text in contents
    ]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


class Recorder:
    def __init__(self) -> None:
        self.deltas: list[str] = []
        self.completed = 0
        self.errors: list[tuple[ErrorKind, str]] = []

    def assembler(self) -> StreamingAssembler:
        return StreamingAssembler(
            on_delta=self.deltas.append,
            on_complete=self._complete,
            on_error=lambda kind, detail: self.errors.append((kind, detail)),
        )

    def _complete(self) -> None:
        self.completed += 1


def tool_call_response(arguments: object) -> dict:
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "tool_calls": [
                        {
                            "type": "function",
                            "function": {"name": REVIEW_TOOL_NAME, "arguments": arguments},
                        }
                    ],
                }
            }
        ]
    }


# ---------------------------------------------------------------------------
# stream_chat
# ---------------------------------------------------------------------------


class TestStreamChat:
    def test_streams_deltas_and_completes(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=sse("Keep ", "it ", "simple"))

        recorder = Recorder()
        make_client(handler).stream_chat([{"role": "user", "content": "hi"}], recorder.assembler())

        assert recorder.deltas == ["Keep ", "it ", "simple"]
        assert recorder.completed == 1
        assert recorder.errors == []

    def test_sends_stream_payload_with_system_prompt(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=sse("ok"))

        history = [{"role": "user", "content": "Do I need Kafka?"}]
        make_client(handler).stream_chat(history, StreamingAssembler(), system_prompt="be brief")

        request = captured[0]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert request.url.path == "/v1/chat/completions"
        assert body["stream"] is True
        assert body["model"] == "test/model"
        assert body["messages"][0] == {"role": "system", "content": "be brief"}
        assert body["messages"][1:] == history

    def test_stream_without_done_is_flushed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=sse("tail", done=False))

        recorder = Recorder()
        make_client(handler).stream_chat([], recorder.assembler())

        assert recorder.deltas == ["tail"]
        assert recorder.completed == 1

    def test_chunked_body_is_reassembled(self):
        body = sse("Un", "split", " ✅")

        def stream_body():
            for i in range(0, len(body), 3):
                yield body[i:i + 3]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=stream_body())

        recorder = Recorder()
        make_client(handler).stream_chat([], recorder.assembler())

        assert recorder.deltas == ["Un", "split", " ✅"]
        assert recorder.completed == 1

    @pytest.mark.parametrize(
        "status, expected",
        [
            (429, "Rate limit exceeded"),
            (402, "AI credits depleted"),
            (500, "Gateway returned HTTP 500: upstream exploded"),
        ],
    )
    def test_non_success_status_fails_with_request_error(self, status, expected):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"error": "upstream exploded"})

        recorder = Recorder()
        make_client(handler).stream_chat([], recorder.assembler())

        assert recorder.deltas == []
        assert recorder.completed == 0
        assert len(recorder.errors) == 1
        kind, detail = recorder.errors[0]
        assert kind is ErrorKind.REQUEST
        assert expected in detail

    def test_connect_error_fails_with_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused")

        recorder = Recorder()
        make_client(handler).stream_chat([], recorder.assembler())

        assert recorder.completed == 0
        assert recorder.errors[0][0] is ErrorKind.TRANSPORT
        assert "Connection refused" in recorder.errors[0][1]

    def test_timeout_fails_with_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out")

        recorder = Recorder()
        make_client(handler).stream_chat([], recorder.assembler())

        assert recorder.errors[0][0] is ErrorKind.TRANSPORT
        assert "timed out" in recorder.errors[0][1]

    def test_drop_mid_stream_keeps_partial_deltas(self):
        def broken_body():
            yield sse("partial", done=False)
            raise httpx.ReadError("connection reset")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=broken_body())

        recorder = Recorder()
        make_client(handler).stream_chat([], recorder.assembler())

        assert recorder.deltas == ["partial"]
        assert recorder.completed == 0
        assert recorder.errors[0][0] is ErrorKind.TRANSPORT

    def test_cancelled_stream_reports_nothing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=sse("never"))

        recorder = Recorder()
        make_client(handler).stream_chat([], recorder.assembler(), is_cancelled=lambda: True)

        assert recorder.deltas == []
        assert recorder.completed == 0
        assert recorder.errors == []


# ---------------------------------------------------------------------------
# review_code
# ---------------------------------------------------------------------------


class TestReviewCode:
    def test_returns_sanitised_result(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=tool_call_response(
                    {
                        "score": 8.5,
                        "title": "Microservice Madness",
                        "suggestions": ["Merge services", "Drop Kafka", "Use Postgres", "Extra"],
                    }
                ),
            )

        result = make_client(handler).review_code("services: 14", "A todo app for my cat")

        assert result.score == 9
        assert result.title == "Microservice Madness"
        assert result.suggestions == ["Merge services", "Drop Kafka", "Use Postgres"]

    def test_forces_review_tool_call(self):
        captured: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(json.loads(request.content))
            return httpx.Response(200, json=tool_call_response({"score": 2, "title": "Tidy"}))

        make_client(handler).review_code("print('hi')", "Hello world script")

        body = captured[0]
        assert "stream" not in body
        assert body["tool_choice"] == {"type": "function", "function": {"name": REVIEW_TOOL_NAME}}
        assert body["tools"][0]["function"]["name"] == REVIEW_TOOL_NAME
        assert body["messages"][0]["role"] == "system"
        assert "print('hi')" in body["messages"][1]["content"]
        assert "Hello world script" in body["messages"][1]["content"]

    def test_missing_fields_fall_back_to_defaults(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=tool_call_response({"score": "lots"}))

        result = make_client(handler).review_code("x = 1 + 1", "A calculator with plugins")

        assert result.score == 5
        assert result.title == "A calculator with plugins"
        assert result.suggestions == DEFAULT_SUGGESTIONS

    def test_reply_without_tool_call_raises_gateway_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"choices": [{"message": {"content": "hmm"}}]})

        with pytest.raises(GatewayError, match="No tool call"):
            make_client(handler).review_code("code here!", "description here")

    def test_unparsable_tool_arguments_raise_gateway_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=tool_call_response("{not json"))

        with pytest.raises(GatewayError, match="not valid JSON"):
            make_client(handler).review_code("code here!", "description here")

    @pytest.mark.parametrize(
        "status, error",
        [(401, AuthError), (403, AuthError), (429, RateLimitError), (402, CreditsError), (500, GatewayError)],
    )
    def test_status_errors(self, status, error):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"error": "nope"})

        with pytest.raises(error):
            make_client(handler).review_code("code here!", "description here")

    def test_rate_limit_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={})

        with pytest.raises(RateLimitError, match="Rate limit exceeded"):
            make_client(handler).review_code("code here!", "description here")

    def test_connect_error_raises_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused")

        with pytest.raises(ConnectionError, match="Cannot reach gateway"):
            make_client(handler).review_code("code here!", "description here")

    def test_timeout_raises_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow")

        with pytest.raises(ConnectionError, match="timed out"):
            make_client(handler).review_code("code here!", "description here")


class TestClientLifecycle:
    def test_http_client_carries_bearer_token_and_base_url(self):
        client = GatewayClient(make_config())
        http = client._get_client()
        try:
            assert http.headers["Authorization"] == "Bearer test-key"
            assert str(http.base_url).rstrip("/") == "https://gateway.test/v1"
        finally:
            client.close()

    def test_no_authorization_header_without_key(self):
        client = GatewayClient(make_config(api_key=None))
        http = client._get_client()
        try:
            assert "Authorization" not in http.headers
        finally:
            client.close()

    def test_http_client_is_reused_until_closed(self):
        client = GatewayClient(make_config())
        first = client._get_client()
        assert client._get_client() is first
        client.close()
        assert first.is_closed
        second = client._get_client()
        assert second is not first
        client.close()
