"""
Brokerage Client - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Secure logging for client requests and responses with:
- Credential masking (passwords, session tokens)
- Structured JSON log entries
- The diagnostic response sink

============================================================
SECURITY REQUIREMENTS
============================================================
1. NEVER log raw passwords or session tokens
2. Mask the Authorization header
3. Mask credential keys inside JSON bodies

============================================================
"""

import json
import logging
import re
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)


ResponseSink = Callable[[str], None]
"""Receives every raw response body before it is parsed."""


# ============================================================
# SENSITIVE DATA
# ============================================================

# Header names that should be masked
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
}

# Body keys that should be masked
SENSITIVE_KEYS = {
    "password",
    "session-token",
    "remember-token",
    "session_token",
    "remember_token",
    "token",
}

_SENSITIVE_JSON_VALUE = re.compile(
    r'("(?:' + "|".join(re.escape(k) for k in sorted(SENSITIVE_KEYS)) + r')"\s*:\s*)"[^"]*"',
    re.IGNORECASE,
)


# ============================================================
# MASKING FUNCTIONS
# ============================================================

def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive headers."""
    if not headers:
        return {}
    return {
        key: mask_value(str(value)) if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def mask_params(params: Any) -> Any:
    """
    Mask sensitive keys in a JSON-ready structure.

    Args:
        params: Request payload (dict, list or scalar)

    Returns:
        Copy with sensitive values masked
    """
    if isinstance(params, dict):
        masked = {}
        for key, value in params.items():
            if str(key).lower() in SENSITIVE_KEYS and value:
                masked[key] = mask_value(str(value))
            else:
                masked[key] = mask_params(value)
        return masked
    if isinstance(params, list):
        return [mask_params(v) for v in params]
    return params


def mask_body(text: str) -> str:
    """Mask credential values inside a raw JSON body."""
    if not text:
        return text
    return _SENSITIVE_JSON_VALUE.sub(lambda m: f'{m.group(1)}"***"', text)


# ============================================================
# LOG ENTRY STRUCTURES
# ============================================================

@dataclass
class RequestLogEntry:
    """Structured log entry for requests."""

    timestamp: str
    request_id: str
    method: str
    path: str
    headers: Optional[Dict[str, str]] = None
    payload: Optional[Any] = None

    def to_json(self) -> str:
        return json.dumps(
            {k: v for k, v in asdict(self).items() if v is not None},
            default=str,
        )


@dataclass
class ResponseLogEntry:
    """Structured log entry for responses."""

    timestamp: str
    request_id: str
    path: str
    status_code: int
    latency_ms: float
    success: bool
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps({k: v for k, v in asdict(self).items() if v is not None})


# ============================================================
# CLIENT LOGGER
# ============================================================

class ClientLogger:
    """
    Secure logger for client operations.

    Provides structured logging with automatic credential masking.
    """

    def __init__(self, logger_name: str = "brokerage_client.http"):
        self._logger = logging.getLogger(logger_name)

    @staticmethod
    def _generate_request_id() -> str:
        return uuid.uuid4().hex[:12]

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def log_request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        payload: Any = None,
    ) -> str:
        """
        Log outgoing request.

        Returns:
            Request ID for correlation
        """
        request_id = self._generate_request_id()
        entry = RequestLogEntry(
            timestamp=self._now(),
            request_id=request_id,
            method=method,
            path=path,
            headers=mask_headers(headers) if headers else None,
            payload=mask_params(payload) if payload is not None else None,
        )
        self._logger.debug(f"REQUEST: {entry.to_json()}")
        return request_id

    def log_response(
        self,
        request_id: str,
        path: str,
        status_code: int,
        latency_ms: float,
        success: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Log incoming response. Broker errors log at WARNING."""
        entry = ResponseLogEntry(
            timestamp=self._now(),
            request_id=request_id,
            path=path,
            status_code=status_code,
            latency_ms=round(latency_ms, 3),
            success=success,
            error_code=error_code,
            error_message=error_message[:200] if error_message else None,
        )
        if success:
            self._logger.debug(f"RESPONSE: {entry.to_json()}")
        else:
            self._logger.warning(f"RESPONSE_ERROR: {entry.to_json()}")


# ============================================================
# RESPONSE SINK
# ============================================================

def log_response_body(text: str, preview_chars: int = 2000) -> None:
    """Default response sink: masked, truncated body at DEBUG."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("BODY: %s", mask_body(text)[:preview_chars])


def discard_response_body(text: str) -> None:
    """Response sink that drops every body."""
    return None
