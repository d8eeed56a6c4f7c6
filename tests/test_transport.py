"""Tests for the HTTP client, outcome classification, retry and the sessions API."""

import asyncio
import json
import logging

import httpx
import pytest

from devin_agent.errors import (
    AuthenticationError,
    DevinError,
    InsufficientCredits,
    NetworkError,
    RequestAborted,
    TransientServiceError,
)
from devin_agent.sessions import SessionsAPI
from devin_agent.transport.http import HttpClient, Outcome, classify_response
from devin_agent.transport.retry import RetryPolicy, with_retry
from devin_agent.transport.signal import AbortSignal

API_KEY = "apk_" + "k" * 40
NO_DELAY = RetryPolicy(base_delay=0)


def make_api(handler, policy=NO_DELAY):
    http = HttpClient(API_KEY, base_url="https://devin.test/v1", transport=httpx.MockTransport(handler))
    return http, SessionsAPI(http, policy)


class TestClassification:
    def test_auth_statuses(self):
        for status in (401, 403):
            outcome = classify_response(httpx.Response(status, json={"error": "nope"}))
            assert outcome.kind == Outcome.AUTH
            assert isinstance(outcome.error, AuthenticationError)

    def test_credit_exhaustion(self):
        assert classify_response(httpx.Response(402)).kind == Outcome.CREDITS
        outcome = classify_response(httpx.Response(400, json={"detail": "Insufficient credits on account"}))
        assert outcome.kind == Outcome.CREDITS
        assert isinstance(outcome.error, InsufficientCredits)

    def test_transient_statuses(self):
        for status in (429, 500, 502, 503):
            outcome = classify_response(httpx.Response(status, text="busy"))
            assert outcome.kind == Outcome.TRANSIENT
            assert outcome.retryable
            assert isinstance(outcome.error, TransientServiceError)

    def test_other_client_errors(self):
        outcome = classify_response(httpx.Response(404, json={"message": "no such session"}))
        assert outcome.kind == Outcome.FAILED
        assert not outcome.retryable
        assert str(outcome.error) == "HTTP 404: no such session"

    def test_unwrap(self):
        assert Outcome.success({"id": "s"}).unwrap() == {"id": "s"}
        with pytest.raises(AuthenticationError):
            Outcome.failure(Outcome.AUTH, AuthenticationError()).unwrap()


class TestHttpClient:
    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "devin-1"})

        http, _ = make_api(handler)
        outcome = await http.post("/sessions", {"prompt": "hi"})
        await http.close()

        assert outcome.ok
        assert outcome.value == {"id": "devin-1"}
        assert seen["auth"] == f"Bearer {API_KEY}"
        assert seen["url"] == "https://devin.test/v1/sessions"
        assert seen["body"] == {"prompt": "hi"}

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_dict(self):
        http, _ = make_api(lambda request: httpx.Response(204))
        outcome = await http.post("/sessions/s/messages", {"content": "x"})
        await http.close()
        assert outcome.ok
        assert outcome.value == {}

    @pytest.mark.asyncio
    async def test_invalid_json_fails(self):
        http, _ = make_api(lambda request: httpx.Response(200, text="<html>"))
        outcome = await http.get("/sessions")
        await http.close()
        assert outcome.kind == Outcome.FAILED
        assert outcome.error.code == "invalid_response"

    @pytest.mark.asyncio
    async def test_connect_error_is_network_outcome(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        http, _ = make_api(handler)
        outcome = await http.get("/sessions")
        await http.close()
        assert outcome.kind == Outcome.NETWORK
        assert isinstance(outcome.error, NetworkError)
        assert outcome.error.cause_code == "ECONNREFUSED"

    @pytest.mark.asyncio
    async def test_timeout_is_etimedout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        http, _ = make_api(handler)
        outcome = await http.get("/sessions")
        await http.close()
        assert outcome.error.cause_code == "ETIMEDOUT"

    @pytest.mark.asyncio
    async def test_pre_aborted_signal_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        http, _ = make_api(handler)
        signal = AbortSignal()
        signal.abort()
        outcome = await http.get("/sessions", signal=signal)
        await http.close()
        assert outcome.kind == Outcome.ABORTED
        assert isinstance(outcome.error, RequestAborted)
        assert calls == []

    @pytest.mark.asyncio
    async def test_abort_cancels_in_flight_request(self):
        entered = asyncio.Event()
        never = asyncio.Event()

        async def handler(request):
            entered.set()
            await never.wait()
            return httpx.Response(200, json={})

        http, _ = make_api(handler)
        signal = AbortSignal()
        task = asyncio.create_task(http.get("/sessions/s", signal=signal))
        await entered.wait()
        signal.abort()
        outcome = await task
        await http.close()
        assert outcome.kind == Outcome.ABORTED


class TestRetry:
    def test_linear_delay(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [2.5, 5.0, 7.5]

    @pytest.mark.asyncio
    async def test_transient_failure_retried_until_exhausted(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, text="down")

        http, api = make_api(handler)
        with pytest.raises(TransientServiceError):
            await api.create("hi", "standard", "auto_confirm")
        await http.close()
        assert len(calls) == 1 + NO_DELAY.max_retries

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self):
        responses = [httpx.Response(429), httpx.Response(503), httpx.Response(200, json={"id": "devin-9"})]
        http, api = make_api(lambda request: responses.pop(0))
        assert await api.create("hi", "standard", "auto_confirm") == "devin-9"
        await http.close()
        assert responses == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error", [(401, AuthenticationError), (402, InsufficientCredits)])
    async def test_non_transient_failure_attempted_once(self, status, error):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(status, json={"error": "x"})

        http, api = make_api(handler)
        with pytest.raises(error):
            await api.send_message("devin-1", "hello")
        await http.close()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_network_failure_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        http, api = make_api(handler)
        with pytest.raises(NetworkError) as exc_info:
            await api.create("hi", "standard", "auto_confirm")
        await http.close()
        assert len(calls) == 1
        assert exc_info.value.cause_code == "ECONNREFUSED"

    @pytest.mark.asyncio
    async def test_abort_during_backoff(self):
        calls = []

        async def operation():
            calls.append(1)
            return Outcome.failure(Outcome.TRANSIENT, TransientServiceError("busy", 503))

        signal = AbortSignal()
        task = asyncio.create_task(with_retry(operation, RetryPolicy(base_delay=30), "test", signal))
        await asyncio.sleep(0.01)
        signal.abort()
        outcome = await task
        assert outcome.kind == Outcome.ABORTED
        assert calls == [1]


class TestSessionsAPI:
    @pytest.mark.asyncio
    async def test_create_body(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "devin-1"})

        http, api = make_api(handler)
        session_id = await api.create("Write tests", "deep", "sync_confirm")
        await http.close()
        assert session_id == "devin-1"
        assert bodies == [{"prompt": "Write tests", "effort_level": "deep", "planning_mode_agency": "sync_confirm"}]

    @pytest.mark.asyncio
    async def test_send_message_omits_empty_attachments(self):
        bodies = []

        def handler(request):
            assert request.url.path == "/v1/sessions/devin-1/messages"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        http, api = make_api(handler)
        await api.send_message("devin-1", "plain")
        await api.send_message("devin-1", "files", ["https://x/1"])
        await http.close()
        assert bodies == [{"content": "plain"}, {"content": "files", "attachments": ["https://x/1"]}]

    @pytest.mark.asyncio
    async def test_create_without_id_is_invalid_response(self):
        http, api = make_api(lambda request: httpx.Response(200, json={"status": "created"}))
        with pytest.raises(DevinError) as exc_info:
            await api.create("hi", "standard", "auto_confirm")
        await http.close()
        assert exc_info.value.code == "invalid_response"

    @pytest.mark.asyncio
    async def test_get_and_list(self):
        def handler(request):
            if request.url.path == "/v1/sessions":
                return httpx.Response(200, json={"sessions": [
                    {"session_id": "devin-1", "status": "running", "title": "First"},
                    {"session_id": "devin-2", "status": "completed", "title": "Second"},
                ]})
            return httpx.Response(200, json={"id": "devin-1", "status": "completed", "output": "done"})

        http, api = make_api(handler)
        details = await api.get("devin-1")
        sessions = await api.list()
        await http.close()
        assert details.status == "completed"
        assert details.output == "done"
        assert [s.id for s in sessions] == ["devin-1", "devin-2"]

    @pytest.mark.asyncio
    async def test_list_accepts_untitled_sessions(self):
        def handler(request):
            return httpx.Response(200, json={"sessions": [
                {"session_id": "devin-1", "status": "running", "title": None},
                {"session_id": "devin-2", "status": None},
            ]})

        http, api = make_api(handler)
        sessions = await api.list()
        await http.close()
        assert [(s.id, s.status, s.title) for s in sessions] == [
            ("devin-1", "running", None),
            ("devin-2", None, None),
        ]

    @pytest.mark.asyncio
    async def test_aborted_get_logs_no_warning(self, caplog):
        http, api = make_api(lambda request: httpx.Response(200, json={"id": "devin-1"}))
        signal = AbortSignal()
        signal.abort()
        with caplog.at_level(logging.DEBUG, logger="devin_agent"):
            with pytest.raises(RequestAborted):
                await api.get("devin-1", signal=signal)
        await http.close()
        assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []

    @pytest.mark.asyncio
    async def test_create_recursive_metadata(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "devin-child"})

        http, api = make_api(handler)
        assert await api.create_recursive("sub task", "devin-parent") == "devin-child"
        await http.close()
        assert bodies[0]["metadata"] == {
            "is_recursive": True,
            "spawned_by": "devin-agent",
            "parent_session_id": "devin-parent",
        }

    @pytest.mark.asyncio
    async def test_upload_attachment_multipart(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["content_type"] = request.headers["Content-Type"]
            seen["body"] = request.content
            return httpx.Response(200, json={"url": "https://files.devin.ai/a.py"})

        http, api = make_api(handler)
        url = await api.upload_attachment("a.py", b"print(1)", "text/x-python")
        await http.close()
        assert url == "https://files.devin.ai/a.py"
        assert seen["path"] == "/v1/attachments"
        assert seen["content_type"].startswith("multipart/form-data")
        assert b'filename="a.py"' in seen["body"]
        assert b"print(1)" in seen["body"]
