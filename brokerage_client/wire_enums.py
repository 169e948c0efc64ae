"""
Brokerage Client - Wire Enums.

============================================================
PURPOSE
============================================================
Broker vocabularies with their exact wire spellings.

Each member's value IS its wire string. Decoding is strict:
a string outside the known set raises UnknownVariant, there
is no fallback member.

============================================================
"""

from enum import Enum, unique
from typing import Any, Optional

from .errors import UnknownVariant


class WireEnum(Enum):
    """Enum whose values are the broker's display strings."""

    def encode(self) -> str:
        """Wire string for this member."""
        return self.value

    @classmethod
    def decode(cls, wire: Any, field: Optional[str] = None) -> "WireEnum":
        """
        Look up the member for a wire string.

        Raises:
            UnknownVariant: If the string is not a known spelling
        """
        if isinstance(wire, str):
            try:
                return cls(wire)
            except ValueError:
                pass
        raise UnknownVariant(wire, cls.__name__, field=field)

    def __str__(self) -> str:
        return self.value


# ============================================================
# ORDER VOCABULARY
# ============================================================

@unique
class Action(WireEnum):
    """Leg action."""

    BUY_TO_OPEN = "Buy to Open"
    SELL_TO_OPEN = "Sell to Open"
    BUY_TO_CLOSE = "Buy to Close"
    SELL_TO_CLOSE = "Sell to Close"
    SELL = "Sell"
    BUY = "Buy"

    def is_opening(self) -> bool:
        """Check if this action opens a position."""
        return self in (Action.BUY_TO_OPEN, Action.SELL_TO_OPEN)

    def is_buy(self) -> bool:
        """Check if this action buys."""
        return self in (Action.BUY_TO_OPEN, Action.BUY_TO_CLOSE, Action.BUY)


@unique
class InstrumentType(WireEnum):
    """Instrument type of a leg or underlying."""

    EQUITY = "Equity"
    EQUITY_OPTION = "Equity Option"
    EQUITY_OFFERING = "Equity Offering"
    FUTURE = "Future"
    FUTURE_OPTION = "Future Option"
    CRYPTOCURRENCY = "Cryptocurrency"


@unique
class OrderType(WireEnum):
    """Order type."""

    LIMIT = "Limit"
    MARKET = "Market"
    MARKETABLE_LIMIT = "Marketable Limit"
    STOP = "Stop"
    STOP_LIMIT = "Stop Limit"
    NOTIONAL_MARKET = "Notional Market"


@unique
class TimeInForce(WireEnum):
    """Time in force for orders."""

    DAY = "Day"
    """Good for the regular session."""

    GTC = "GTC"
    """Good Till Canceled."""

    GTD = "GTD"
    """Good Till Date."""

    EXT = "Ext"
    """Day order including extended hours."""

    GTC_EXT = "GTC Ext"
    """Good Till Canceled including extended hours."""

    IOC = "IOC"
    """Immediate Or Cancel."""


@unique
class OrderStatus(WireEnum):
    """
    Broker-reported order status.

    Lifecycle as reported by the broker:

    Received ─► Routed ─► In Flight ─► Live
                                        │
              ┌─────────────────────────┼──────────────────┐
              ▼                         ▼                  ▼
      Cancel Requested          Replace Requested      Contingent
              │                         │                  │
              └─────────────┬───────────┴──────────────────┘
                            ▼
     Filled | Cancelled | Expired | Rejected | Removed | Partially Removed

    Transitions happen server-side. The client only decodes the
    status; it never validates ordering.
    """

    RECEIVED = "Received"
    ROUTED = "Routed"
    IN_FLIGHT = "In Flight"
    LIVE = "Live"
    CANCEL_REQUESTED = "Cancel Requested"
    REPLACE_REQUESTED = "Replace Requested"
    CONTINGENT = "Contingent"
    FILLED = "Filled"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"
    REJECTED = "Rejected"
    REMOVED = "Removed"
    PARTIALLY_REMOVED = "Partially Removed"

    def is_terminal(self) -> bool:
        """Check if this is a terminal status."""
        return self in {
            OrderStatus.FILLED,
            OrderStatus.CANCELLED,
            OrderStatus.EXPIRED,
            OrderStatus.REJECTED,
            OrderStatus.REMOVED,
            OrderStatus.PARTIALLY_REMOVED,
        }

    def is_working(self) -> bool:
        """Check if the order may still execute."""
        return not self.is_terminal()


@unique
class PriceEffect(WireEnum):
    """
    Sign convention attached to every monetary amount.

    An amount is never interpreted without its effect.
    """

    DEBIT = "Debit"
    CREDIT = "Credit"
    NONE = "None"

    def sign(self) -> int:
        """-1 for debits, +1 for credits, 0 for none."""
        if self is PriceEffect.DEBIT:
            return -1
        if self is PriceEffect.CREDIT:
            return 1
        return 0
