"""
E2E Tests for Connector Sends
Tests the full flow: pending request → request pipes → httpx → response pipes,
wrapped in retry orchestration, against an in-memory httpx.MockTransport.
"""
import json

import httpx
import pytest

from conduit import BodyRequest, ClientSettings, Connector, PipeOrder, Request
from conduit.core.exceptions import (
    DuplicatePipeNameError,
    FatalRequestError,
    InternalServerError,
    RequestError,
    UnauthorizedError,
)
from conduit.core.retry import RetryOrchestrator
from conduit.http import HttpxSender
from conduit.infra.telemetry import get_request_id


class Server:
    """Scripted endpoint: replays statuses (or exceptions) and records requests."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [200]
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"status": outcome, "data": [{"id": 1}]})


class ExampleConnector(Connector):
    def __init__(self, server: Server):
        super().__init__(
            sender=HttpxSender(ClientSettings(), transport=httpx.MockTransport(server)),
        )
        self.sleeps: list[float] = []

    def resolve_base_url(self) -> str:
        return "https://api.example.test/v1/"

    def default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "X-Client": "connector"}

    def default_query(self) -> dict[str, str]:
        return {"locale": "en"}

    def retry_orchestrator(self, policy):
        async def async_sleep(seconds):
            self.sleeps.append(seconds)

        return RetryOrchestrator(
            policy, self._should_retry, sleep=self.sleeps.append, async_sleep=async_sleep
        )


class UserRequest(Request):
    def resolve_endpoint(self) -> str:
        return "/user"

    def default_headers(self) -> dict[str, str]:
        return {"X-Client": "request"}


class CreateUser(BodyRequest):
    def resolve_endpoint(self) -> str:
        return "users"

    def default_body(self):
        return {"name": "Sam"}


class RefreshingRequest(UserRequest):
    """Retries a 401 once with a fresh token."""

    tries = 2

    def handle_retry(self, failure, request) -> bool:
        if isinstance(failure, UnauthorizedError):
            self.with_token_auth("fresh-token")
            return True
        return False


def _broken_observer(exc):
    raise RuntimeError("observer bug")


@pytest.fixture
def server():
    return Server()


# ── Request building ──────────────────────────────────────────────────────────

class TestRequestBuilding:

    def test_url_headers_and_query_are_merged(self, server):
        connector = ExampleConnector(server)
        request = UserRequest()
        request.query().add("page", 2)

        response = connector.send(request)

        sent = server.requests[0]
        assert response.status == 200
        assert str(sent.url) == "https://api.example.test/v1/user?locale=en&page=2"
        assert sent.headers["X-Client"] == "request"
        assert sent.headers["Accept"] == "application/json"
        assert response.json("data.0.id") == 1

    def test_body_request_sends_json(self, server):
        ExampleConnector(server).send(CreateUser())

        sent = server.requests[0]
        assert sent.method == "POST"
        assert json.loads(sent.content) == {"name": "Sam"}

    def test_authenticator_reaches_the_wire(self, server):
        ExampleConnector(server).with_token_auth("secret").send(UserRequest())
        assert server.requests[0].headers["Authorization"] == "Bearer secret"

    def test_request_pipes_run_connector_then_request_then_auth(self, server):
        order = []
        connector = ExampleConnector(server).with_token_auth("secret")
        connector.middleware().on_request(lambda p: order.append("connector"))
        connector.middleware().on_request(lambda p: order.append("first"), order=PipeOrder.FIRST)
        request = UserRequest()
        request.middleware().on_request(
            lambda p: order.append(("request", p.headers.get("Authorization")))
        )

        connector.send(request)
        assert order == ["first", "connector", ("request", None)]
        assert server.requests[0].headers["Authorization"] == "Bearer secret"

    def test_pipe_name_collision_fails_the_send(self, server):
        connector = ExampleConnector(server)
        connector.middleware().on_request(lambda p: None, name="trace")
        request = UserRequest()
        request.middleware().on_request(lambda p: None, name="trace")

        with pytest.raises(DuplicatePipeNameError):
            connector.send(request)
        assert server.requests == []

    def test_request_id_is_bound_during_the_send(self, server):
        seen = []
        connector = ExampleConnector(server)
        connector.middleware().on_request(lambda p: seen.append(get_request_id()))

        connector.send(UserRequest())
        assert seen[0] is not None
        assert get_request_id() is None


# ── Responses without retry ───────────────────────────────────────────────────

class TestWithoutRetry:

    def test_failed_response_is_returned(self):
        server = Server(500)
        response = ExampleConnector(server).send(UserRequest())

        assert response.status == 500
        assert response.failed
        assert len(server.requests) == 1

    def test_response_pipe_can_replace_response(self, server):
        connector = ExampleConnector(server)
        replacement = []

        def swap(response):
            clone = type(response)(httpx.Response(202), response.pending_request)
            replacement.append(clone)
            return clone

        connector.middleware().on_response(swap)
        assert connector.send(UserRequest()) is replacement[0]

    def test_response_pipe_error_skips_fatal_pipeline(self):
        fatal = []
        connector = ExampleConnector(Server(503))
        connector.middleware().on_response(lambda r: r.throw())
        connector.middleware().on_fatal_exception(fatal.append)

        with pytest.raises(RequestError):
            connector.send(UserRequest())
        assert fatal == []


# ── Fatal errors ──────────────────────────────────────────────────────────────

class TestFatalErrors:

    def test_transport_error_runs_fatal_pipeline_and_raises(self):
        fatal, responses = [], []
        connector = ExampleConnector(Server(httpx.ConnectError("connection refused")))
        connector.middleware().on_fatal_exception(fatal.append)
        connector.middleware().on_response(responses.append)

        with pytest.raises(FatalRequestError) as excinfo:
            connector.send(UserRequest())

        assert fatal == [excinfo.value]
        assert isinstance(excinfo.value.original_error, httpx.ConnectError)
        assert excinfo.value.pending_request.url == "https://api.example.test/v1/user"
        assert responses == []

    def test_fatal_pipeline_runs_on_every_attempt(self):
        fatal = []
        server = Server(httpx.ConnectError("refused"), httpx.ConnectError("refused"), 200)
        connector = ExampleConnector(server).with_retry(3)
        connector.middleware().on_fatal_exception(fatal.append)

        assert connector.send(UserRequest()).status == 200
        assert len(fatal) == 2
        assert len(server.requests) == 3

    def test_failing_fatal_pipe_cannot_hide_the_connection_error(self):
        seen = []
        connector = ExampleConnector(Server(httpx.ConnectError("connection refused")))
        connector.middleware().on_fatal_exception(_broken_observer)
        connector.middleware().on_fatal_exception(seen.append)

        with pytest.raises(FatalRequestError) as excinfo:
            connector.send(UserRequest())
        assert seen == [excinfo.value]

    def test_failing_fatal_pipe_does_not_stop_retries(self):
        server = Server(httpx.ConnectError("refused"), 200)
        connector = ExampleConnector(server).with_retry(2)
        connector.middleware().on_fatal_exception(_broken_observer)

        assert connector.send(UserRequest()).status == 200
        assert len(server.requests) == 2


# ── Retries ──────────────────────────────────────────────────────────────────

class TestRetries:

    def test_connector_policy_retries_until_success(self):
        server = Server(500, 500, 200)
        connector = ExampleConnector(server).with_retry(3, interval_ms=100)

        assert connector.send(UserRequest()).status == 200
        assert len(server.requests) == 3
        assert connector.sleeps == [0.1, 0.1]

    def test_exponential_backoff(self):
        server = Server(500, 500, 500, 200)
        connector = ExampleConnector(server).with_retry(4, interval_ms=100, exponential_backoff=True)

        connector.send(UserRequest())
        assert connector.sleeps == [0.1, 0.2, 0.4]

    def test_exhaustion_raises_last_error(self):
        server = Server(500)
        connector = ExampleConnector(server).with_retry(2)

        with pytest.raises(InternalServerError) as excinfo:
            connector.send(UserRequest())
        assert excinfo.value.response.status == 500
        assert len(server.requests) == 2

    def test_exhaustion_returns_last_response_when_not_throwing(self):
        server = Server(502, 500)
        request = UserRequest().with_retry(2, throw_on_max_tries=False)

        response = ExampleConnector(server).send(request)
        assert response.status == 500
        assert len(server.requests) == 2

    def test_request_settings_override_connector(self):
        server = Server(500)
        connector = ExampleConnector(server).with_retry(5, interval_ms=10)

        with pytest.raises(InternalServerError):
            connector.send(UserRequest().with_retry(2))
        assert len(server.requests) == 2
        assert connector.sleeps == [0.01]

    def test_hook_refreshes_credentials_between_attempts(self):
        server = Server(401, 200)
        connector = ExampleConnector(server).with_token_auth("stale-token")

        response = connector.send(RefreshingRequest())

        assert response.status == 200
        assert [r.headers["Authorization"] for r in server.requests] == [
            "Bearer stale-token",
            "Bearer fresh-token",
        ]

    def test_connector_hook_can_decline(self):
        class Strict(ExampleConnector):
            def handle_retry(self, failure, request) -> bool:
                return False

        server = Server(500, 200)
        with pytest.raises(InternalServerError):
            Strict(server).with_retry(3, interval_ms=100).send(UserRequest())
        assert len(server.requests) == 1

    def test_zero_tries_sends_once(self):
        server = Server(500)
        response = ExampleConnector(server).with_retry(0).send(UserRequest())

        assert response.status == 500
        assert len(server.requests) == 1

    def test_nested_send_in_hook_keeps_outer_request_id(self):
        server = Server(401, 200, 200)
        connector = ExampleConnector(server)
        seen = []
        connector.middleware().on_request(lambda p: seen.append((p.request, get_request_id())))

        class FetchToken(UserRequest):
            pass

        class Protected(UserRequest):
            tries = 2

            def handle_retry(self, failure, request) -> bool:
                connector.send(FetchToken())
                return True

        assert connector.send(Protected()).status == 200

        outer = [rid for req, rid in seen if isinstance(req, Protected)]
        inner = [rid for req, rid in seen if isinstance(req, FetchToken)]
        assert len(outer) == 2
        assert outer[0] is not None
        assert outer[1] == outer[0]
        assert inner[0] not in outer
        assert get_request_id() is None


# ── Async ────────────────────────────────────────────────────────────────────

class TestAsyncSend:

    @pytest.mark.asyncio
    async def test_asend_retries(self):
        server = Server(503, 200)
        connector = ExampleConnector(server).with_retry(2, interval_ms=50)

        async with connector:
            response = await connector.asend(UserRequest())

        assert response.status == 200
        assert connector.sleeps == [0.05]

    @pytest.mark.asyncio
    async def test_asend_fatal(self):
        fatal = []
        connector = ExampleConnector(Server(httpx.ConnectTimeout("timed out")))
        connector.middleware().on_fatal_exception(fatal.append)

        with pytest.raises(FatalRequestError):
            await connector.asend(UserRequest())
        assert len(fatal) == 1
