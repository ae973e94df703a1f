from __future__ import annotations

import httpx
import pytest

from easypanel_gateway.trpc.client import TrpcClient
from easypanel_gateway.trpc.errors import AuthConfigError, UpstreamError, UpstreamErrorInfo
from easypanel_gateway.trpc.retry import RetryPolicy
from easypanel_gateway.trpc.token_manager import LoginCredentials, SessionTokenManager
from easypanel_gateway.trpc.transport import TrpcTransport
from fakes import FakeClock, FakeUpstream, json_input, ok, trpc_error


def _client(
    http: httpx.AsyncClient, clock: FakeClock, *, credentials: LoginCredentials | None = None
) -> TrpcClient:
    transport = TrpcTransport(http=http)
    tokens = SessionTokenManager(
        transport=transport,
        credentials=credentials or LoginCredentials(email="admin@example.com", password="pw"),
        clock=clock,
    )
    return TrpcClient(transport=transport, tokens=tokens)


def _bearer(request: httpx.Request) -> str:
    return request.headers["authorization"].removeprefix("Bearer ")


@pytest.mark.asyncio
async def test_call_returns_unwrapped_payload(upstream: FakeUpstream, clock: FakeClock) -> None:
    upstream.on("projects.listProjects", lambda r: ok([{"name": "web"}]))

    async with upstream.client() as http:
        data = await _client(http, clock).call("projects.listProjects")

    assert data == [{"name": "web"}]
    (call,) = upstream.calls("projects.listProjects")
    assert _bearer(call) == "tok-1"
    assert json_input(call) == {}


@pytest.mark.asyncio
async def test_401_invalidates_and_retries_once_with_fresh_token(
    upstream: FakeUpstream, clock: FakeClock
) -> None:
    upstream.on(
        "projects.listProjects",
        lambda r: trpc_error(401),
        lambda r: ok(["ok"]),
    )

    async with upstream.client() as http:
        data = await _client(http, clock).call("projects.listProjects")

    assert data == ["ok"]
    calls = upstream.calls("projects.listProjects")
    assert [_bearer(c) for c in calls] == ["tok-1", "tok-2"]
    assert upstream.login_count == 2


@pytest.mark.asyncio
async def test_second_401_propagates_without_more_attempts(
    upstream: FakeUpstream, clock: FakeClock
) -> None:
    upstream.on("projects.listProjects", lambda r: trpc_error(401))

    async with upstream.client() as http:
        with pytest.raises(UpstreamError) as exc:
            await _client(http, clock).call("projects.listProjects")

    assert exc.value.status == 401
    assert exc.value.procedure == "projects.listProjects"
    assert len(upstream.calls("projects.listProjects")) == 2


@pytest.mark.asyncio
async def test_non_401_failure_is_a_single_attempt(upstream: FakeUpstream, clock: FakeClock) -> None:
    upstream.on("projects.inspectProject", lambda r: trpc_error(404, "Project not found"))

    async with upstream.client() as http:
        with pytest.raises(UpstreamError) as exc:
            await _client(http, clock).call("projects.inspectProject", {"projectName": "x"})

    assert exc.value.status == 404
    assert exc.value.procedure == "projects.inspectProject"
    assert len(upstream.calls("projects.inspectProject")) == 1
    assert upstream.login_count == 1


@pytest.mark.asyncio
async def test_query_uses_get(upstream: FakeUpstream, clock: FakeClock) -> None:
    upstream.on("monitor.getSystemStats", lambda r: ok({"cpu": 0.1}))

    async with upstream.client() as http:
        data = await _client(http, clock).query("monitor.getSystemStats", {"window": 5})

    assert data == {"cpu": 0.1}
    (call,) = upstream.calls("monitor.getSystemStats")
    assert call.method == "GET"
    assert json_input(call) == {"window": 5}


@pytest.mark.asyncio
async def test_mutate_uses_post(upstream: FakeUpstream, clock: FakeClock) -> None:
    upstream.on("projects.destroyProject", lambda r: ok(None))

    async with upstream.client() as http:
        assert await _client(http, clock).mutate("projects.destroyProject", {"name": "x"}) is None

    (call,) = upstream.calls("projects.destroyProject")
    assert call.method == "POST"


@pytest.mark.asyncio
async def test_missing_config_fails_before_any_request(upstream: FakeUpstream, clock: FakeClock) -> None:
    async with upstream.client() as http:
        transport = TrpcTransport(http=http)
        client = TrpcClient(
            transport=transport,
            tokens=SessionTokenManager(transport=transport, credentials=None, clock=clock),
        )
        with pytest.raises(AuthConfigError):
            await client.call("projects.listProjects")

    assert upstream.requests == []


@pytest.mark.asyncio
async def test_call_with_token_skips_session_and_retry(
    upstream: FakeUpstream, clock: FakeClock
) -> None:
    upstream.on("auth.getUser", lambda r: trpc_error(401))

    async with upstream.client() as http:
        with pytest.raises(UpstreamError):
            await _client(http, clock).call_with_token("auth.getUser", token="caller-token")

    (call,) = upstream.requests
    assert _bearer(call) == "caller-token"
    assert upstream.login_count == 0


@pytest.mark.asyncio
async def test_verify_session_calls_get_user(upstream: FakeUpstream, clock: FakeClock) -> None:
    upstream.on("auth.getUser", lambda r: ok({"email": "admin@example.com"}))

    async with upstream.client() as http:
        user = await _client(http, clock).verify_session()

    assert user == {"email": "admin@example.com"}


def _error(status: int) -> UpstreamError:
    return UpstreamError(UpstreamErrorInfo(message="x", status=status, procedure="p"))


def test_retry_policy_only_retries_first_401() -> None:
    policy = RetryPolicy()

    assert policy.should_retry(_error(401), attempt=1) is True
    assert policy.should_retry(_error(401), attempt=2) is False
    assert policy.should_retry(_error(403), attempt=1) is False
    assert policy.should_retry(_error(500), attempt=1) is False


def test_retry_policy_is_configurable() -> None:
    policy = RetryPolicy(max_attempts=1)
    assert policy.should_retry(_error(401), attempt=1) is False
