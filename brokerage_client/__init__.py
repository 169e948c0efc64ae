"""
Brokerage Client Package.

============================================================
PURPOSE
============================================================
Typed async client for a brokerage trading REST API.

CRITICAL PRINCIPLE:
    "Every response is fully decoded or fully rejected."

AUTHORITY BOUNDARIES:
    CAN:
        - Log in and hold a session token
        - Submit, preview, query and cancel orders
        - Decode broker responses into typed records

    MUST NOT:
        - Retry requests
        - Rate limit
        - Reconcile or persist order state

============================================================
MODULES
============================================================
- decimal_codec: Exact decimal wire encoding
- wire_enums: Broker vocabularies with exact wire spellings
- schema: Explicit record wire schemas
- types: Orders, legs, records, results
- envelope: Success/error response envelope
- client: Session client (login, get, post, delete)
- accounts: Account-bound order endpoints
- errors: Error taxonomy
- config: Client configuration
- logging_utils: Secure logging and response sink

============================================================
"""

# ============================================================
# TYPES
# ============================================================
from .wire_enums import (
    WireEnum,
    Action,
    InstrumentType,
    OrderType,
    TimeInForce,
    OrderStatus,
    PriceEffect,
)
from .types import (
    Symbol,
    OrderId,
    AccountNumber,
    as_symbol,
    OrderLeg,
    OrderLegBuilder,
    Order,
    OrderBuilder,
    LiveOrderLeg,
    LiveOrderRecord,
    DryRunRecord,
    FullOrder,
    BuyingPowerEffect,
    FeeCalculation,
    Warning as BrokerWarning,
    OrderPlacedResult,
    DryRunResult,
    LoginCredentials,
    LoginResponse,
    User,
)
from .decimal_codec import DecimalPolicy, decode_decimal, encode_decimal

# ============================================================
# ENVELOPE
# ============================================================
from .envelope import (
    ApiResponse,
    Success,
    Failure,
    BrokerErrorPayload,
    decode_envelope,
    decode_response,
    parse_body,
    unwrap,
)

# ============================================================
# CLIENT
# ============================================================
from .client import Client, HttpTransport
from .accounts import Account
from .config import ClientConfig, TimeoutConfig

# ============================================================
# ERRORS
# ============================================================
from .errors import (
    BrokerageClientError,
    TransportError,
    DecodeError,
    UnknownVariant,
    BrokerError,
    MissingField,
    ErrorCategory,
)

__all__ = [
    # Enums
    "WireEnum",
    "Action",
    "InstrumentType",
    "OrderType",
    "TimeInForce",
    "OrderStatus",
    "PriceEffect",
    # Records
    "Symbol",
    "OrderId",
    "AccountNumber",
    "as_symbol",
    "OrderLeg",
    "OrderLegBuilder",
    "Order",
    "OrderBuilder",
    "LiveOrderLeg",
    "LiveOrderRecord",
    "DryRunRecord",
    "FullOrder",
    "BuyingPowerEffect",
    "FeeCalculation",
    "BrokerWarning",
    "OrderPlacedResult",
    "DryRunResult",
    "LoginCredentials",
    "LoginResponse",
    "User",
    # Decimal codec
    "DecimalPolicy",
    "decode_decimal",
    "encode_decimal",
    # Envelope
    "ApiResponse",
    "Success",
    "Failure",
    "BrokerErrorPayload",
    "decode_envelope",
    "decode_response",
    "parse_body",
    "unwrap",
    # Client
    "Client",
    "HttpTransport",
    "Account",
    "ClientConfig",
    "TimeoutConfig",
    # Errors
    "BrokerageClientError",
    "TransportError",
    "DecodeError",
    "UnknownVariant",
    "BrokerError",
    "MissingField",
    "ErrorCategory",
]
