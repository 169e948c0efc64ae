"""
Brokerage Client - Response Envelope.

============================================================
PURPOSE
============================================================
Every broker response body is one of two shapes:

    {"data": <payload>}                      -> Success
    {"error": {"code", "message", ...}}      -> Failure

The discriminator is structural (presence of the "error" key),
never the HTTP status code alone.

============================================================
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar, Union

from .errors import BrokerError, DecodeError


T = TypeVar("T")


# ============================================================
# ENVELOPE VARIANTS
# ============================================================

@dataclass(frozen=True)
class BrokerErrorPayload:
    """The broker's error object."""

    code: Optional[str]
    message: str
    errors: Tuple[Tuple[Optional[str], str], ...] = ()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_wire(cls, data: Any) -> "BrokerErrorPayload":
        if not isinstance(data, dict):
            raise DecodeError(
                f"expected an error object, got {type(data).__name__}", field="error"
            )
        code = data.get("code")
        message = data.get("message")
        if code is not None and not isinstance(code, str):
            code = str(code)
        if message is None:
            message = code or "unknown broker error"
        elif not isinstance(message, str):
            raise DecodeError("expected a string", field="error.message")

        nested: List[Tuple[Optional[str], str]] = []
        for item in data.get("errors") or []:
            if isinstance(item, dict):
                nested.append((item.get("code"), str(item.get("message", ""))))
        return cls(code=code, message=message, errors=tuple(nested), raw=data)

    def to_exception(self, http_status: Optional[int] = None) -> BrokerError:
        return BrokerError(
            code=self.code,
            message=self.message,
            errors=list(self.errors),
            http_status=http_status,
            raw=self.raw,
        )


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T


@dataclass(frozen=True)
class Failure:
    error: BrokerErrorPayload


ApiResponse = Union[Success[T], Failure]


# ============================================================
# PARSING
# ============================================================

def parse_body(text: str) -> Any:
    """
    Parse a JSON body keeping every number exact.

    Raises:
        DecodeError: If the body is not valid JSON
    """
    try:
        return json.loads(text, parse_float=Decimal)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"malformed JSON body: {e}") from None


def decode_envelope(body: Any, decoder: Callable[[Any], T]) -> ApiResponse:
    """
    Split a parsed body into Success or Failure.

    Args:
        body: Parsed JSON body
        decoder: Decodes the success payload into the requested type

    Returns:
        Success with the decoded payload, or Failure with the error payload

    Raises:
        DecodeError: If the body matches neither shape or the payload
            does not decode
    """
    if not isinstance(body, dict):
        raise DecodeError(f"expected a JSON object body, got {type(body).__name__}")

    if body.get("error") is not None:
        return Failure(BrokerErrorPayload.from_wire(body["error"]))

    if "data" not in body:
        raise DecodeError("response has neither 'data' nor 'error'")

    return Success(decoder(body["data"]))


def unwrap(response: ApiResponse, http_status: Optional[int] = None) -> T:
    """
    Return the success payload or raise the broker error.

    Raises:
        BrokerError: For a Failure envelope
    """
    if isinstance(response, Success):
        return response.data
    raise response.error.to_exception(http_status)


def decode_response(
    text: str,
    decoder: Callable[[Any], T],
    http_status: Optional[int] = None,
) -> T:
    """Parse, discriminate and unwrap a raw response body."""
    return unwrap(decode_envelope(parse_body(text), decoder), http_status)
