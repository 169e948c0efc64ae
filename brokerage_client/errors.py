"""
Brokerage Client - Error Handling and Classification.

============================================================
PURPOSE
============================================================
Typed errors raised by the client with:
- One exception per failure kind (transport, decode, broker, builder)
- Broker error payload preserved verbatim
- Informational classification of broker error codes

============================================================
ERROR KINDS
============================================================
1. TransportError  - Connection issues, timeouts (never retried)
2. DecodeError     - Malformed JSON, bad decimal, unknown enum value
3. BrokerError     - The broker's own structured error payload
4. MissingField    - Builder finalized with an unset required field

============================================================
"""

from enum import Enum
from typing import Optional, Dict, Any, List, Tuple


# ============================================================
# ERROR TAXONOMY
# ============================================================

class ErrorCategory(Enum):
    """Standardized categories for broker errors."""

    AUTHENTICATION = "AUTHENTICATION"
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    ORDER_REJECTED = "ORDER_REJECTED"
    UNKNOWN = "UNKNOWN"


# Broker error codes to category
BROKER_ERROR_MAP: Dict[str, ErrorCategory] = {
    # Authentication
    "invalid_credentials": ErrorCategory.AUTHENTICATION,
    "invalid_session": ErrorCategory.AUTHENTICATION,
    "unauthorized": ErrorCategory.AUTHENTICATION,
    "session_expired": ErrorCategory.AUTHENTICATION,

    # Request validation
    "validation_error": ErrorCategory.VALIDATION,
    "invalid_request": ErrorCategory.VALIDATION,

    # Lookups
    "record_not_found": ErrorCategory.NOT_FOUND,
    "not_found": ErrorCategory.NOT_FOUND,

    # Order checks
    "preflight_check_failure": ErrorCategory.ORDER_REJECTED,
    "order_not_cancellable": ErrorCategory.ORDER_REJECTED,
    "margin_check_failed": ErrorCategory.ORDER_REJECTED,
}


def classify_broker_error(
    code: Optional[str],
    http_status: Optional[int] = None,
) -> ErrorCategory:
    """
    Map a broker error code to a category.

    Args:
        code: Broker error code (may be absent)
        http_status: HTTP status code, used only when the code is unknown

    Returns:
        ErrorCategory
    """
    if code and code in BROKER_ERROR_MAP:
        return BROKER_ERROR_MAP[code]
    if http_status in (401, 403):
        return ErrorCategory.AUTHENTICATION
    if http_status == 404:
        return ErrorCategory.NOT_FOUND
    if http_status in (400, 422):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


# ============================================================
# EXCEPTIONS
# ============================================================

class BrokerageClientError(Exception):
    """Base exception for the brokerage client."""
    pass


class TransportError(BrokerageClientError):
    """Network or connection failure. Surfaced as-is, never retried."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class DecodeError(BrokerageClientError):
    """
    A response could not be decoded.

    `field` carries the dotted path of the offending field when known,
    e.g. ``order.legs[0].quantity``.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def at(self, prefix: str) -> "DecodeError":
        """Prefix the field path with an enclosing field name."""
        if self.field is None:
            self.field = prefix
        elif self.field.startswith("["):
            self.field = f"{prefix}{self.field}"
        else:
            self.field = f"{prefix}.{self.field}"
        return self

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class UnknownVariant(DecodeError):
    """A wire string outside the known variant set of an enum."""

    def __init__(self, value: Any, enum_name: str, field: Optional[str] = None):
        super().__init__(f"unknown {enum_name} variant {value!r}", field=field)
        self.value = value
        self.enum_name = enum_name


class BrokerError(BrokerageClientError):
    """
    The broker's structured error payload, surfaced verbatim.

    `errors` holds nested per-field errors as (code, message) pairs when
    the broker sends them.
    """

    def __init__(
        self,
        code: Optional[str],
        message: str,
        errors: Optional[List[Tuple[Optional[str], str]]] = None,
        http_status: Optional[int] = None,
        raw: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(f"[{code}] {message}" if code else message)
        self.code = code
        self.message = message
        self.errors = list(errors or [])
        self.http_status = http_status
        self.raw = raw or {}

    @property
    def category(self) -> ErrorCategory:
        """Informational category of this error."""
        return classify_broker_error(self.code, self.http_status)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "code": self.code,
            "message": self.message,
            "errors": [{"code": c, "message": m} for c, m in self.errors],
            "http_status": self.http_status,
            "category": self.category.value,
        }


class MissingField(BrokerageClientError):
    """A builder was finalized before a required field was set."""

    def __init__(self, field_name: str):
        super().__init__(f"missing required field {field_name!r}")
        self.field_name = field_name

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MissingField):
            return self.field_name == other.field_name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("MissingField", self.field_name))
