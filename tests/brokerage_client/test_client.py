"""
Session Client Tests.

============================================================
PURPOSE
============================================================
End-to-end client behaviour against a local aiohttp server.

TEST CATEGORIES:
- Login: token acquisition, headers, refused credentials
- Requests: get / post / delete through the envelope
- Failures: broker errors, decode errors, transport errors
- Concurrency: parallel requests keep their own results
- Sink: raw body observation

============================================================
"""

import asyncio
import random

import pytest
from aiohttp import web

from brokerage_client import (
    Action,
    BrokerError,
    Client,
    ClientConfig,
    DecodeError,
    ErrorCategory,
    InstrumentType,
    LoginResponse,
    Order,
    OrderLeg,
    OrderPlacedResult,
    OrderStatus,
    OrderType,
    PriceEffect,
    TimeInForce,
    TimeoutConfig,
    TransportError,
)


SESSION_TOKEN = "tok-5WU44237-abcdef"


def _data(payload, status=200):
    return web.json_response({"data": payload}, status=status)


def _error(code, message, status):
    return web.json_response({"error": {"code": code, "message": message}}, status=status)


async def _login_handler(request):
    body = await request.json()
    if body.get("login") == "trader" and body.get("password") == "secret":
        return _data({
            "session-token": SESSION_TOKEN,
            "user": {"email": "trader@example.com", "username": "trader"},
        }, status=201)
    return _error("invalid_credentials", "Invalid login, please check your username and password", 401)


class _Recorder:
    """Captures the last request a handler saw."""

    def __init__(self, response_payload):
        self.response_payload = response_payload
        self.headers = None
        self.json = None
        self.method = None

    async def __call__(self, request):
        self.method = request.method
        self.headers = dict(request.headers)
        if request.can_read_body:
            self.json = await request.json()
        return _data(self.response_payload)


def _identity(data):
    return data


# ============================================================
# LOGIN TESTS
# ============================================================

class TestLogin:
    """Tests for Client.login."""

    @pytest.mark.asyncio
    async def test_login_sends_credentials(self, broker_server):
        """Test the login request body."""
        seen = {}

        async def handler(request):
            seen.update(await request.json())
            seen["content-type"] = request.headers.get("Content-Type")
            return await _login_handler(request)

        async with broker_server([("POST", "/sessions", handler)]) as config:
            client = await Client.login("trader", "secret", config=config)
            await client.close()

        assert seen["login"] == "trader"
        assert seen["password"] == "secret"
        assert seen["remember-me"] is False
        assert seen["content-type"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_token_sent_on_every_request(self, broker_server):
        """Test Authorization and User-Agent headers after login."""
        recorder = _Recorder({"ok": True})
        routes = [("POST", "/sessions", _login_handler), ("GET", "/customers/me", recorder)]

        async with broker_server(routes) as config:
            config.user_agent = "desk-tool/1.0"
            async with await Client.login("trader", "secret", config=config) as client:
                assert client.session_token == SESSION_TOKEN
                await client.get("/customers/me", _identity)

        assert recorder.headers["Authorization"] == SESSION_TOKEN
        assert recorder.headers["User-Agent"] == "desk-tool/1.0"
        assert recorder.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_invalid_credentials(self, broker_server):
        """Test that a refused login raises BrokerError."""
        async with broker_server([("POST", "/sessions", _login_handler)]) as config:
            with pytest.raises(BrokerError) as exc_info:
                await Client.login("trader", "wrong", config=config)

        assert exc_info.value.code == "invalid_credentials"
        assert exc_info.value.http_status == 401
        assert exc_info.value.category is ErrorCategory.AUTHENTICATION

    @pytest.mark.asyncio
    async def test_login_from_env(self, broker_server, monkeypatch):
        """Test login with environment credentials."""
        monkeypatch.setenv("BROKERAGE_LOGIN", "trader")
        monkeypatch.setenv("BROKERAGE_PASSWORD", "secret")

        async with broker_server([("POST", "/sessions", _login_handler)]) as config:
            async with await Client.login_from_env(config=config) as client:
                assert client.session_token == SESSION_TOKEN

    @pytest.mark.asyncio
    async def test_login_payload_is_typed(self, broker_server):
        """Test that the login response decodes into LoginResponse."""
        async with broker_server([("POST", "/sessions", _login_handler)]) as config:
            async with Client.from_session_token("bootstrap", config=config) as client:
                response = await client.post(
                    "/sessions",
                    {"login": "trader", "password": "secret", "remember-me": True},
                    LoginResponse,
                )

        assert response.session_token == SESSION_TOKEN
        assert response.user.email == "trader@example.com"


# ============================================================
# REQUEST TESTS
# ============================================================

class TestRequests:
    """Tests for get, post and delete."""

    @pytest.mark.asyncio
    async def test_get_decodes_record(self, broker_server, order_placed_payload):
        """Test a typed GET."""
        recorder = _Recorder(order_placed_payload)

        async with broker_server([("GET", "/orders/129359", recorder)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                result = await client.get("/orders/129359", OrderPlacedResult)

        assert result.order.status is OrderStatus.RECEIVED
        assert recorder.method == "GET"

    @pytest.mark.asyncio
    async def test_post_serializes_order(self, broker_server, order_placed_payload):
        """Test the posted JSON body of an order."""
        order = (
            Order.builder()
            .time_in_force(TimeInForce.DAY)
            .order_type(OrderType.LIMIT)
            .price("9050.50")
            .price_effect(PriceEffect.DEBIT)
            .legs([
                OrderLeg.builder()
                .instrument_type(InstrumentType.EQUITY)
                .symbol("AAPL")
                .quantity(100)
                .action(Action.BUY_TO_OPEN)
                .build()
            ])
            .build()
        )
        recorder = _Recorder(order_placed_payload)

        async with broker_server([("POST", "/accounts/5WU44237/orders", recorder)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                await client.post("/accounts/5WU44237/orders", order, OrderPlacedResult)

        assert recorder.json == {
            "time-in-force": "Day",
            "order-type": "Limit",
            "price": "9050.50",
            "price-effect": "Debit",
            "legs": [
                {
                    "instrument-type": "Equity",
                    "symbol": "AAPL",
                    "quantity": 100.0,
                    "action": "Buy to Open",
                }
            ],
        }

    @pytest.mark.asyncio
    async def test_delete(self, broker_server, live_order_payload):
        """Test a typed DELETE."""
        recorder = _Recorder(live_order_payload)

        async with broker_server([("DELETE", "/orders/1", recorder)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                result = await client.delete("/orders/1", _identity)

        assert recorder.method == "DELETE"
        assert result["id"] == 129359


# ============================================================
# FAILURE TESTS
# ============================================================

class TestFailures:
    """Tests for the three failure kinds."""

    @pytest.mark.asyncio
    async def test_error_body_with_200(self, broker_server):
        """Test that an error envelope raises even on HTTP 200."""
        async def handler(request):
            return _error("preflight_check_failure", "Order rejected", 200)

        async with broker_server([("GET", "/x", handler)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                with pytest.raises(BrokerError) as exc_info:
                    await client.get("/x", _identity)

        assert exc_info.value.code == "preflight_check_failure"
        assert exc_info.value.http_status == 200

    @pytest.mark.asyncio
    async def test_error_body_with_500(self, broker_server):
        """Test a server error that carries an error envelope."""
        async def handler(request):
            return _error("internal_error", "Something broke", 500)

        async with broker_server([("GET", "/x", handler)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                with pytest.raises(BrokerError) as exc_info:
                    await client.get("/x", _identity)

        assert exc_info.value.message == "Something broke"
        assert exc_info.value.category is ErrorCategory.UNKNOWN

    @pytest.mark.asyncio
    async def test_non_json_body(self, broker_server):
        """Test that an HTML gateway page is a DecodeError."""
        async def handler(request):
            return web.Response(text="<html>502 Bad Gateway</html>", status=502)

        async with broker_server([("GET", "/x", handler)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                with pytest.raises(DecodeError):
                    await client.get("/x", _identity)

    @pytest.mark.asyncio
    async def test_body_without_data_or_error(self, broker_server):
        """Test a JSON body in neither envelope shape."""
        async def handler(request):
            return web.json_response({"context": "/x"})

        async with broker_server([("GET", "/x", handler)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                with pytest.raises(DecodeError):
                    await client.get("/x", _identity)

    @pytest.mark.asyncio
    async def test_invalid_utf8_body(self, broker_server):
        """Test that undecodable bytes are a DecodeError and still reach the sink."""
        seen = []

        async def handler(request):
            return web.Response(body=b'{"data": "\xff\xfe"}', content_type="application/json")

        async with broker_server([("GET", "/x", handler)]) as config:
            client = Client.from_session_token(SESSION_TOKEN, config=config, response_sink=seen.append)
            async with client:
                with pytest.raises(DecodeError, match="UTF-8"):
                    await client.get("/x", _identity)

        assert len(seen) == 1
        assert seen[0].startswith('{"data": ')

    @pytest.mark.asyncio
    async def test_timeout(self, broker_server):
        """Test that a configured timeout raises TransportError."""
        async def handler(request):
            await asyncio.sleep(0.5)
            return _data({"late": True})

        async with broker_server([("GET", "/slow", handler)]) as config:
            config.timeout = TimeoutConfig(total_timeout_seconds=0.05)
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                with pytest.raises(TransportError, match="timeout") as exc_info:
                    await client.get("/slow", _identity)

        assert isinstance(exc_info.value.cause, asyncio.TimeoutError)

    @pytest.mark.asyncio
    async def test_payload_decode_error(self, broker_server, order_placed_payload):
        """Test that a bad payload surfaces the field path."""
        order_placed_payload["order"]["status"] = "Pending"

        async with broker_server([("GET", "/x", _Recorder(order_placed_payload))]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                with pytest.raises(DecodeError) as exc_info:
                    await client.get("/x", OrderPlacedResult)

        assert exc_info.value.field == "order.status"

    @pytest.mark.asyncio
    async def test_connection_refused(self, broker_server):
        """Test that a dead endpoint raises TransportError."""
        async with broker_server([]) as config:
            dead = ClientConfig(base_url=config.base_url)
        # The server is closed; its port no longer accepts connections.

        async with Client.from_session_token(SESSION_TOKEN, config=dead) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get("/x", _identity)

        assert exc_info.value.cause is not None


# ============================================================
# CONCURRENCY TESTS
# ============================================================

class TestConcurrency:
    """Tests for parallel requests on one client."""

    @pytest.mark.asyncio
    async def test_parallel_gets_keep_their_results(self, broker_server):
        """Test that 20 concurrent requests each get their own payload."""
        async def handler(request):
            n = int(request.match_info["n"])
            await asyncio.sleep(random.uniform(0, 0.02))
            return _data({"n": n, "padding": "x" * n * 50})

        async with broker_server([("GET", "/echo/{n}", handler)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                results = await asyncio.gather(
                    *(client.get(f"/echo/{n}", _identity) for n in range(20))
                )

        assert [r["n"] for r in results] == list(range(20))
        assert all(len(r["padding"]) == r["n"] * 50 for r in results)


# ============================================================
# RESPONSE SINK TESTS
# ============================================================

class TestResponseSink:
    """Tests for the raw body sink."""

    @pytest.mark.asyncio
    async def test_sink_sees_success_and_error_bodies(self, broker_server):
        """Test that every body reaches the sink before decoding."""
        seen = []

        async def ok(request):
            return _data({"ok": True})

        async def bad(request):
            return _error("not_found", "No such order", 404)

        async with broker_server([("GET", "/ok", ok), ("GET", "/bad", bad)]) as config:
            client = Client.from_session_token(SESSION_TOKEN, config=config, response_sink=seen.append)
            async with client:
                await client.get("/ok", _identity)
                with pytest.raises(BrokerError):
                    await client.get("/bad", _identity)

        assert len(seen) == 2
        assert '"ok": true' in seen[0]
        assert "No such order" in seen[1]

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_change_outcome(self, broker_server):
        """Test that a raising sink is logged, not propagated."""
        def sink(text):
            raise RuntimeError("sink down")

        async def ok(request):
            return _data({"ok": True})

        async with broker_server([("GET", "/ok", ok)]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config, response_sink=sink) as client:
                assert await client.get("/ok", _identity) == {"ok": True}


# ============================================================
# LIFECYCLE TESTS
# ============================================================

class TestLifecycle:
    """Tests for client shutdown."""

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, broker_server):
        """Test that leaving the context closes the HTTP session."""
        async with broker_server([]) as config:
            async with Client.from_session_token(SESSION_TOKEN, config=config) as client:
                assert not client.closed

        assert client.closed
