"""
Brokerage Client - Session Client.

============================================================
PURPOSE
============================================================
Authenticated HTTP client for the broker REST API.

FLOW (every call):
    request ─► raw body ─► response sink ─► envelope ─► typed payload
                                                 └────► typed error

SAFETY FEATURES:
- One request per operation, no retries
- Session token fixed at login, no mutable shared state
- Credential masking in all logs

Order placement is NOT idempotent: a caller retrying a timed-out
post may submit the order twice.

============================================================
"""

import asyncio
import json
import logging
import time
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, TypeVar

import aiohttp
from aiohttp import hdrs

from .config import ClientConfig
from .decimal_codec import encode_decimal
from .envelope import decode_response
from .errors import BrokerError, BrokerageClientError, DecodeError, TransportError
from .logging_utils import ClientLogger, ResponseSink, log_response_body
from .schema import resolve_decoder
from .types import LoginCredentials, LoginResponse
from .wire_enums import WireEnum


logger = logging.getLogger(__name__)

T = TypeVar("T")

SESSIONS_PATH = "/sessions"
JSON_CONTENT_TYPE = "application/json"


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return encode_decimal(value)
    if isinstance(value, WireEnum):
        return value.encode()
    if hasattr(value, "to_wire"):
        return value.to_wire()
    if hasattr(value, "value") and isinstance(value.value, str):
        return value.value
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def _body_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"response body is not valid UTF-8: {e}") from None


def serialize_payload(payload: Any) -> str:
    """Serialize a record (via `to_wire`) or a plain JSON structure."""
    if hasattr(payload, "to_wire"):
        payload = payload.to_wire()
    return json.dumps(payload, default=_json_default)


# ============================================================
# TRANSPORT
# ============================================================

class HttpTransport:
    """
    Sends one request and funnels the body through the envelope.

    Holds no per-request state, so concurrent calls never share a
    response buffer.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: ClientConfig,
        response_sink: Optional[ResponseSink] = None,
        owns_session: bool = True,
    ):
        self._session = session
        self._config = config
        self._response_sink = response_sink or (
            log_response_body if config.log_response_bodies else None
        )
        self._owns_session = owns_session
        self._log = ClientLogger()

    @property
    def closed(self) -> bool:
        return self._session.closed

    async def close(self) -> None:
        if self._owns_session and not self._session.closed:
            await self._session.close()

    def _emit(self, text: str) -> None:
        if self._response_sink is None:
            return
        try:
            self._response_sink(text)
        except Exception:
            logger.warning("Response sink raised; response is still decoded", exc_info=True)

    async def request(
        self,
        method: str,
        path: str,
        decoder: Any,
        payload: Any = None,
    ) -> Any:
        """
        Make API request.

        Args:
            method: HTTP method
            path: Endpoint path, appended to the base URL
            decoder: Record class or callable for the success payload
            payload: Optional request body (record or JSON structure)

        Returns:
            Decoded payload

        Raises:
            TransportError: Network failure or timeout
            DecodeError: Malformed body or payload
            BrokerError: Broker error envelope
        """
        decode = resolve_decoder(decoder)
        body = serialize_payload(payload) if payload is not None else None

        request_id = self._log.log_request(
            method,
            path,
            headers=dict(self._session.headers),
            payload=json.loads(body) if body is not None else None,
        )
        started = time.monotonic()

        try:
            async with self._session.request(
                method,
                self._config.url(path),
                data=body,
            ) as response:
                status = response.status
                raw = await response.read()
        except asyncio.TimeoutError as e:
            raise TransportError("Request timeout", cause=e) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Network error: {e}", cause=e) from e

        latency_ms = (time.monotonic() - started) * 1000
        self._emit(raw.decode("utf-8", errors="replace"))

        try:
            result = decode_response(_body_text(raw), decode, http_status=status)
        except BrokerError as e:
            self._log.log_response(request_id, path, status, latency_ms, False, e.code, e.message)
            raise
        except BrokerageClientError as e:
            self._log.log_response(request_id, path, status, latency_ms, False, "DECODE", str(e))
            raise

        self._log.log_response(request_id, path, status, latency_ms, True)
        return result


def _build_session(
    config: ClientConfig,
    session_token: Optional[str] = None,
) -> aiohttp.ClientSession:
    headers: Dict[str, str] = {
        hdrs.CONTENT_TYPE: JSON_CONTENT_TYPE,
        hdrs.USER_AGENT: config.user_agent,
    }
    if session_token is not None:
        headers[hdrs.AUTHORIZATION] = session_token

    timeout = config.timeout.to_client_timeout()
    if timeout is None:
        return aiohttp.ClientSession(headers=headers)
    return aiohttp.ClientSession(headers=headers, timeout=timeout)


# ============================================================
# CLIENT
# ============================================================

class Client:
    """
    Authenticated brokerage client.

    Obtain one with `await Client.login(...)`; use it as an async
    context manager or call `close()` when done.
    """

    def __init__(self, transport: HttpTransport, session_token: str):
        self._transport = transport
        self._session_token = session_token

    @property
    def session_token(self) -> str:
        return self._session_token

    @property
    def closed(self) -> bool:
        return self._transport.closed

    # --------------------------------------------------------
    # CONSTRUCTION
    # --------------------------------------------------------

    @classmethod
    async def login(
        cls,
        login: str,
        password: str,
        remember_me: bool = False,
        *,
        config: Optional[ClientConfig] = None,
        response_sink: Optional[ResponseSink] = None,
    ) -> "Client":
        """
        Create a session and return a client carrying its token.

        Raises:
            BrokerError: Invalid credentials or other broker refusal
            TransportError: Network failure
        """
        config = config or ClientConfig()
        credentials = LoginCredentials(login=login, password=password, remember_me=remember_me)

        bootstrap = HttpTransport(_build_session(config), config, response_sink)
        try:
            response: LoginResponse = await bootstrap.request(
                "POST", SESSIONS_PATH, LoginResponse, credentials
            )
        finally:
            await bootstrap.close()

        logger.info("Logged in%s", f" as {response.user.username}" if response.user else "")
        return cls.from_session_token(
            response.session_token,
            config=config,
            response_sink=response_sink,
        )

    @classmethod
    async def login_from_env(
        cls,
        config: Optional[ClientConfig] = None,
        response_sink: Optional[ResponseSink] = None,
    ) -> "Client":
        """Log in with credentials read from the environment."""
        config = config or ClientConfig.from_env()
        login, password = config.credentials()
        return await cls.login(
            login,
            password,
            config.remember_me,
            config=config,
            response_sink=response_sink,
        )

    @classmethod
    def from_session_token(
        cls,
        session_token: str,
        *,
        config: Optional[ClientConfig] = None,
        response_sink: Optional[ResponseSink] = None,
    ) -> "Client":
        """
        Build a client around an existing session token.

        Must be called from a running event loop.
        """
        config = config or ClientConfig()
        session = _build_session(config, session_token)
        return cls(HttpTransport(session, config, response_sink), session_token)

    # --------------------------------------------------------
    # REQUESTS
    # --------------------------------------------------------

    async def get(self, path: str, decoder: Callable[[Any], T]) -> T:
        """Authenticated GET decoded through the response envelope."""
        return await self._transport.request("GET", path, decoder)

    async def post(self, path: str, payload: Any, decoder: Callable[[Any], T]) -> T:
        """Authenticated POST of `payload` decoded through the response envelope."""
        return await self._transport.request("POST", path, decoder, payload)

    async def delete(self, path: str, decoder: Callable[[Any], T]) -> T:
        """Authenticated DELETE decoded through the response envelope."""
        return await self._transport.request("DELETE", path, decoder)

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
