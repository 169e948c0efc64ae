"""
Brokerage Client - Types.

============================================================
PURPOSE
============================================================
All domain records for the brokerage client.

- Identifiers: Symbol, OrderId, AccountNumber
- Outbound: OrderLeg, Order (builder-constructed)
- Inbound: LiveOrderLeg, LiveOrderRecord, DryRunRecord, FullOrder
- Impact: BuyingPowerEffect, FeeCalculation, Warning
- Results: OrderPlacedResult, DryRunResult
- Session: LoginCredentials, LoginResponse, User

CRITICAL PRINCIPLE:
    "A monetary amount is never read without its PriceEffect."

Every record declares its wire keys and codecs explicitly
(see schema.py). Records are immutable.

============================================================
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple, Union

from .decimal_codec import DecimalLike, to_decimal
from .errors import MissingField
from .schema import (
    ARBITRARY,
    BOOLEAN,
    FLOAT,
    INTEGER,
    RAW,
    STRING,
    TIMESTAMP,
    ValueCodec,
    WireRecord,
    enum_of,
    list_of,
    record_of,
    wire,
)
from .wire_enums import (
    Action,
    InstrumentType,
    OrderStatus,
    OrderType,
    PriceEffect,
    TimeInForce,
    WireEnum,
)


# ============================================================
# IDENTIFIERS
# ============================================================

@dataclass(frozen=True, order=True)
class Symbol:
    """Instrument ticker. Ordered and hashed by its string."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"Symbol expects a string, got {type(self.value).__name__}")

    @classmethod
    def of(cls, value: Union[str, "Symbol"]) -> "Symbol":
        """Build a Symbol from a string or return an existing Symbol."""
        if isinstance(value, Symbol):
            return value
        return cls(str(value))

    def __str__(self) -> str:
        return self.value


def as_symbol(value: Union[str, Symbol]) -> Symbol:
    return Symbol.of(value)


@dataclass(frozen=True)
class OrderId:
    """Opaque broker-assigned order identifier."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AccountNumber:
    """Opaque brokerage account identifier."""

    value: str

    def __str__(self) -> str:
        return self.value


SYMBOL = ValueCodec(Symbol)
ORDER_ID = ValueCodec(OrderId, accept_int=True)
ACCOUNT_NUMBER = ValueCodec(AccountNumber)


def _coerce_enum(enum_cls, value: Union[WireEnum, str]) -> WireEnum:
    if isinstance(value, enum_cls):
        return value
    return enum_cls.decode(value)


# ============================================================
# OUTBOUND ORDER
# ============================================================

@dataclass(frozen=True)
class OrderLeg(WireRecord):
    """One instrument leg of an order."""

    instrument_type: InstrumentType = wire("instrument-type", enum_of(InstrumentType))
    symbol: Symbol = wire("symbol", SYMBOL)
    quantity: Decimal = wire("quantity", FLOAT)
    action: Action = wire("action", enum_of(Action))

    @classmethod
    def builder(cls) -> "OrderLegBuilder":
        return OrderLegBuilder()


@dataclass(frozen=True)
class Order(WireRecord):
    """
    Order request as submitted to the broker.

    Build with `Order.builder()`; every field is mandatory. An empty
    legs sequence is not rejected here, the broker decides.
    """

    time_in_force: TimeInForce = wire("time-in-force", enum_of(TimeInForce))
    order_type: OrderType = wire("order-type", enum_of(OrderType))
    price: Decimal = wire("price", ARBITRARY)
    price_effect: PriceEffect = wire("price-effect", enum_of(PriceEffect))
    legs: Tuple[OrderLeg, ...] = wire("legs", list_of(record_of(OrderLeg)))

    @classmethod
    def builder(cls) -> "OrderBuilder":
        return OrderBuilder()


class OrderLegBuilder:
    """Accumulates OrderLeg fields; `build()` fails on the first unset one."""

    _REQUIRED = ("instrument_type", "symbol", "quantity", "action")

    def __init__(self):
        self._values = {}

    def instrument_type(self, value: Union[InstrumentType, str]) -> "OrderLegBuilder":
        self._values["instrument_type"] = _coerce_enum(InstrumentType, value)
        return self

    def symbol(self, value: Union[str, Symbol]) -> "OrderLegBuilder":
        self._values["symbol"] = Symbol.of(value)
        return self

    def quantity(self, value: DecimalLike) -> "OrderLegBuilder":
        self._values["quantity"] = to_decimal(value)
        return self

    def action(self, value: Union[Action, str]) -> "OrderLegBuilder":
        self._values["action"] = _coerce_enum(Action, value)
        return self

    def build(self) -> OrderLeg:
        for name in self._REQUIRED:
            if name not in self._values:
                raise MissingField(name)
        return OrderLeg(**self._values)


class OrderBuilder:
    """
    Accumulates the five required Order fields.

    Setters return the builder so calls chain:

        order = (
            Order.builder()
            .time_in_force(TimeInForce.DAY)
            .order_type(OrderType.LIMIT)
            .price("181.01")
            .price_effect(PriceEffect.DEBIT)
            .legs([leg])
            .build()
        )
    """

    _REQUIRED = ("time_in_force", "order_type", "price", "price_effect", "legs")

    def __init__(self):
        self._values = {}

    def time_in_force(self, value: Union[TimeInForce, str]) -> "OrderBuilder":
        self._values["time_in_force"] = _coerce_enum(TimeInForce, value)
        return self

    def order_type(self, value: Union[OrderType, str]) -> "OrderBuilder":
        self._values["order_type"] = _coerce_enum(OrderType, value)
        return self

    def price(self, value: DecimalLike) -> "OrderBuilder":
        self._values["price"] = to_decimal(value)
        return self

    def price_effect(self, value: Union[PriceEffect, str]) -> "OrderBuilder":
        self._values["price_effect"] = _coerce_enum(PriceEffect, value)
        return self

    def legs(self, value: Iterable[OrderLeg]) -> "OrderBuilder":
        self._values["legs"] = tuple(value)
        return self

    def add_leg(self, leg: OrderLeg) -> "OrderBuilder":
        self._values["legs"] = self._values.get("legs", ()) + (leg,)
        return self

    def build(self) -> Order:
        """
        Finalize the order.

        Raises:
            MissingField: Naming the first unset field
        """
        for name in self._REQUIRED:
            if name not in self._values:
                raise MissingField(name)
        return Order(**self._values)


# ============================================================
# INBOUND ORDER RECORDS
# ============================================================

@dataclass(frozen=True)
class LiveOrderLeg(WireRecord):
    """Leg of a placed order as reported by the broker."""

    instrument_type: InstrumentType = wire("instrument-type", enum_of(InstrumentType))
    symbol: Symbol = wire("symbol", SYMBOL)
    quantity: Decimal = wire("quantity", FLOAT)
    remaining_quantity: Decimal = wire("remaining-quantity", FLOAT)
    action: Action = wire("action", enum_of(Action))
    fills: Tuple[Any, ...] = wire("fills", list_of(RAW))

    @property
    def filled_quantity(self) -> Decimal:
        return self.quantity - self.remaining_quantity


@dataclass(frozen=True)
class LiveOrderRecord(WireRecord):
    """A placed order as reported by the broker."""

    id: int = wire("id", INTEGER)
    account_number: AccountNumber = wire("account-number", ACCOUNT_NUMBER)
    time_in_force: TimeInForce = wire("time-in-force", enum_of(TimeInForce))
    order_type: OrderType = wire("order-type", enum_of(OrderType))
    size: int = wire("size", INTEGER)
    underlying_symbol: Symbol = wire("underlying-symbol", SYMBOL)
    underlying_instrument_type: InstrumentType = wire(
        "underlying-instrument-type", enum_of(InstrumentType)
    )
    price: Decimal = wire("price", ARBITRARY)
    price_effect: PriceEffect = wire("price-effect", enum_of(PriceEffect))
    status: OrderStatus = wire("status", enum_of(OrderStatus))
    cancellable: bool = wire("cancellable", BOOLEAN)
    editable: bool = wire("editable", BOOLEAN)
    edited: bool = wire("edited", BOOLEAN)
    received_at: datetime = wire("received-at", TIMESTAMP)
    updated_at: int = wire("updated-at", INTEGER)
    global_request_id: str = wire("global-request-id", STRING)
    legs: Tuple[LiveOrderLeg, ...] = wire("legs", list_of(record_of(LiveOrderLeg)))

    @property
    def order_id(self) -> OrderId:
        return OrderId(str(self.id))


@dataclass(frozen=True)
class DryRunRecord(WireRecord):
    """Order preview: no broker id, legs without remaining quantity."""

    account_number: AccountNumber = wire("account-number", ACCOUNT_NUMBER)
    time_in_force: TimeInForce = wire("time-in-force", enum_of(TimeInForce))
    order_type: OrderType = wire("order-type", enum_of(OrderType))
    size: int = wire("size", INTEGER)
    underlying_symbol: Symbol = wire("underlying-symbol", SYMBOL)
    price: Decimal = wire("price", ARBITRARY)
    price_effect: PriceEffect = wire("price-effect", enum_of(PriceEffect))
    status: OrderStatus = wire("status", enum_of(OrderStatus))
    cancellable: bool = wire("cancellable", BOOLEAN)
    editable: bool = wire("editable", BOOLEAN)
    edited: bool = wire("edited", BOOLEAN)
    legs: Tuple[OrderLeg, ...] = wire("legs", list_of(record_of(OrderLeg)))


@dataclass(frozen=True)
class FullOrder(WireRecord):
    """Fully materialized order; size is an exact decimal sent as a string."""

    id: OrderId = wire("id", ORDER_ID)
    account_number: AccountNumber = wire("account-number", ACCOUNT_NUMBER)
    time_in_force: TimeInForce = wire("time-in-force", enum_of(TimeInForce))
    order_type: OrderType = wire("order-type", enum_of(OrderType))
    size: Decimal = wire("size", ARBITRARY)
    underlying_symbol: Symbol = wire("underlying-symbol", SYMBOL)
    price: Decimal = wire("price", ARBITRARY)
    price_effect: PriceEffect = wire("price-effect", enum_of(PriceEffect))
    status: OrderStatus = wire("status", enum_of(OrderStatus))
    cancellable: bool = wire("cancellable", BOOLEAN)
    editable: bool = wire("editable", BOOLEAN)
    edited: bool = wire("edited", BOOLEAN)
    legs: Tuple[OrderLeg, ...] = wire("legs", list_of(record_of(OrderLeg)))


# ============================================================
# IMPACT
# ============================================================

@dataclass(frozen=True)
class BuyingPowerEffect(WireRecord):
    """Net collateral/margin impact of an order."""

    change_in_margin_requirement: Decimal = wire("change-in-margin-requirement", ARBITRARY)
    change_in_margin_requirement_effect: PriceEffect = wire(
        "change-in-margin-requirement-effect", enum_of(PriceEffect)
    )
    change_in_buying_power: Decimal = wire("change-in-buying-power", ARBITRARY)
    change_in_buying_power_effect: PriceEffect = wire(
        "change-in-buying-power-effect", enum_of(PriceEffect)
    )
    current_buying_power: Decimal = wire("current-buying-power", ARBITRARY)
    current_buying_power_effect: PriceEffect = wire(
        "current-buying-power-effect", enum_of(PriceEffect)
    )
    new_buying_power: Decimal = wire("new-buying-power", ARBITRARY)
    new_buying_power_effect: PriceEffect = wire("new-buying-power-effect", enum_of(PriceEffect))
    isolated_order_margin_requirement: Decimal = wire(
        "isolated-order-margin-requirement", ARBITRARY
    )
    isolated_order_margin_requirement_effect: PriceEffect = wire(
        "isolated-order-margin-requirement-effect", enum_of(PriceEffect)
    )
    is_spread: bool = wire("is-spread", BOOLEAN)
    impact: Decimal = wire("impact", ARBITRARY)
    effect: PriceEffect = wire("effect", enum_of(PriceEffect))


@dataclass(frozen=True)
class FeeCalculation(WireRecord):
    """Fee components of an order, each with its effect."""

    regulatory_fees: Decimal = wire("regulatory-fees", ARBITRARY)
    regulatory_fees_effect: PriceEffect = wire("regulatory-fees-effect", enum_of(PriceEffect))
    clearing_fees: Decimal = wire("clearing-fees", ARBITRARY)
    clearing_fees_effect: PriceEffect = wire("clearing-fees-effect", enum_of(PriceEffect))
    commission: Decimal = wire("commission", ARBITRARY)
    commission_effect: PriceEffect = wire("commission-effect", enum_of(PriceEffect))
    proprietary_index_option_fees: Decimal = wire("proprietary-index-option-fees", ARBITRARY)
    proprietary_index_option_fees_effect: PriceEffect = wire(
        "proprietary-index-option-fees-effect", enum_of(PriceEffect)
    )
    total_fees: Decimal = wire("total-fees", ARBITRARY)
    total_fees_effect: PriceEffect = wire("total-fees-effect", enum_of(PriceEffect))


@dataclass(frozen=True)
class Warning(WireRecord):
    """Broker-issued advisory attached to an order response."""

    code: str = wire("code", STRING)
    message: str = wire("message", STRING)


# ============================================================
# RESULTS
# ============================================================

@dataclass(frozen=True)
class OrderPlacedResult(WireRecord):
    """Decoded payload of a placed order."""

    order: LiveOrderRecord = wire("order", record_of(LiveOrderRecord))
    warnings: Tuple[Warning, ...] = wire("warnings", list_of(record_of(Warning)))
    buying_power_effect: BuyingPowerEffect = wire(
        "buying-power-effect", record_of(BuyingPowerEffect)
    )
    fee_calculation: FeeCalculation = wire("fee-calculation", record_of(FeeCalculation))


@dataclass(frozen=True)
class DryRunResult(WireRecord):
    """Decoded payload of an order preview."""

    order: DryRunRecord = wire("order", record_of(DryRunRecord))
    warnings: Tuple[Warning, ...] = wire("warnings", list_of(record_of(Warning)))
    buying_power_effect: BuyingPowerEffect = wire(
        "buying-power-effect", record_of(BuyingPowerEffect)
    )
    fee_calculation: FeeCalculation = wire("fee-calculation", record_of(FeeCalculation))


# ============================================================
# SESSION
# ============================================================

@dataclass(frozen=True)
class LoginCredentials(WireRecord):
    login: str = wire("login", STRING)
    password: str = wire("password", STRING)
    remember_me: bool = wire("remember-me", BOOLEAN)


@dataclass(frozen=True)
class User(WireRecord):
    email: str = wire("email", STRING)
    username: str = wire("username", STRING)
    external_id: Optional[str] = wire("external-id", STRING, optional=True)


@dataclass(frozen=True)
class LoginResponse(WireRecord):
    """Session returned by the login endpoint."""

    session_token: str = wire("session-token", STRING)
    remember_token: Optional[str] = wire("remember-token", STRING, optional=True)
    user: Optional[User] = wire("user", record_of(User), optional=True)
