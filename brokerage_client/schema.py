"""
Brokerage Client - Wire Schema.

============================================================
PURPOSE
============================================================
Explicit field ↔ wire key ↔ codec declarations for records.

Every record field is declared with `wire(key, codec)`. The
generic `decode_record` / `encode_record` walk those declarations;
nothing is inferred from type annotations or field names.

DECODING RULES:
- Unknown keys in the payload are ignored
- A missing or null required key is a DecodeError
- Errors carry the dotted wire path (order.legs[0].action)

============================================================
"""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Tuple, Type, TypeVar

from .decimal_codec import DecimalPolicy, decode_decimal, encode_decimal
from .errors import DecodeError
from .wire_enums import WireEnum


T = TypeVar("T")

WIRE_METADATA_KEY = "wire"


# ============================================================
# CODECS
# ============================================================

class Codec:
    """Converts one field between its wire and Python forms."""

    def decode(self, value: Any) -> Any:
        raise NotImplementedError

    def encode(self, value: Any) -> Any:
        raise NotImplementedError


class DecimalCodec(Codec):
    """Decimal field with a wire policy."""

    def __init__(self, policy: DecimalPolicy):
        self.policy = policy

    def decode(self, value: Any) -> Decimal:
        return decode_decimal(value, self.policy)

    def encode(self, value: Decimal) -> Any:
        return encode_decimal(value, self.policy)


class EnumCodec(Codec):
    """Wire enum field."""

    def __init__(self, enum_cls: Type[WireEnum]):
        self.enum_cls = enum_cls

    def decode(self, value: Any) -> WireEnum:
        return self.enum_cls.decode(value)

    def encode(self, value: WireEnum) -> str:
        return value.encode()


class _StringCodec(Codec):
    def decode(self, value: Any) -> str:
        if not isinstance(value, str):
            raise DecodeError(f"expected a string, got {type(value).__name__}")
        return value

    def encode(self, value: str) -> str:
        return value


class _IntCodec(Codec):
    def decode(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
            raise DecodeError(f"expected an integer, got {type(value).__name__}")
        if isinstance(value, Decimal):
            if value != value.to_integral_value():
                raise DecodeError(f"expected an integer, got {value}")
            return int(value)
        return value

    def encode(self, value: int) -> int:
        return value


class _BoolCodec(Codec):
    def decode(self, value: Any) -> bool:
        if not isinstance(value, bool):
            raise DecodeError(f"expected a boolean, got {type(value).__name__}")
        return value

    def encode(self, value: bool) -> bool:
        return value


class _TimestampCodec(Codec):
    """ISO-8601 timestamp string."""

    def decode(self, value: Any) -> datetime:
        if not isinstance(value, str):
            raise DecodeError(f"expected a timestamp string, got {type(value).__name__}")
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise DecodeError(f"invalid timestamp {value!r}") from None

    def encode(self, value: datetime) -> str:
        return value.isoformat()


class _RawCodec(Codec):
    """Passes JSON values through untouched."""

    def decode(self, value: Any) -> Any:
        return value

    def encode(self, value: Any) -> Any:
        return value


class ValueCodec(Codec):
    """
    String-backed value type such as Symbol or OrderId.

    `accept_int` lets numeric broker ids decode into a string-backed type.
    """

    def __init__(self, value_cls: Type[T], accept_int: bool = False):
        self.value_cls = value_cls
        self.accept_int = accept_int

    def decode(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.value_cls(value)
        if self.accept_int and isinstance(value, int) and not isinstance(value, bool):
            return self.value_cls(str(value))
        raise DecodeError(
            f"expected a {self.value_cls.__name__} string, got {type(value).__name__}"
        )

    def encode(self, value: Any) -> str:
        return value.value


class RecordCodec(Codec):
    """Nested record."""

    def __init__(self, record_cls: Type[T]):
        self.record_cls = record_cls

    def decode(self, value: Any) -> Any:
        return decode_record(self.record_cls, value)

    def encode(self, value: Any) -> Dict[str, Any]:
        return encode_record(value)


class ListCodec(Codec):
    """JSON array decoded into a tuple."""

    def __init__(self, item: Codec):
        self.item = item

    def decode(self, value: Any) -> Tuple[Any, ...]:
        if not isinstance(value, list):
            raise DecodeError(f"expected an array, got {type(value).__name__}")
        items = []
        for index, raw in enumerate(value):
            try:
                items.append(self.item.decode(raw))
            except DecodeError as e:
                raise e.at(f"[{index}]")
        return tuple(items)

    def encode(self, value: Any) -> list:
        return [self.item.encode(v) for v in value]


ARBITRARY = DecimalCodec(DecimalPolicy.ARBITRARY_PRECISION)
FLOAT = DecimalCodec(DecimalPolicy.FLOAT)
STRING = _StringCodec()
INTEGER = _IntCodec()
BOOLEAN = _BoolCodec()
TIMESTAMP = _TimestampCodec()
RAW = _RawCodec()


def enum_of(enum_cls: Type[WireEnum]) -> EnumCodec:
    return EnumCodec(enum_cls)


def record_of(record_cls: Type[T]) -> RecordCodec:
    return RecordCodec(record_cls)


def list_of(item: Codec) -> ListCodec:
    return ListCodec(item)


# ============================================================
# FIELD DECLARATION
# ============================================================

@dataclass(frozen=True)
class WireField:
    """Schema entry for one record field."""

    key: str
    """Wire key (kebab-case)."""

    codec: Codec
    """Codec for the value."""

    optional: bool = False
    """Whether the key may be absent or null."""


def wire(key: str, codec: Codec, optional: bool = False):
    """
    Declare a record field's wire key and codec.

    Optional fields default to None and must follow required fields.
    """
    metadata = {WIRE_METADATA_KEY: WireField(key, codec, optional)}
    if optional:
        return field(default=None, metadata=metadata)
    return field(metadata=metadata)


def schema_of(record_cls: type) -> Tuple[Tuple[str, WireField], ...]:
    """(attribute name, WireField) pairs in declaration order."""
    if not is_dataclass(record_cls):
        raise TypeError(f"{record_cls.__name__} is not a dataclass")
    return tuple(
        (f.name, f.metadata[WIRE_METADATA_KEY])
        for f in fields(record_cls)
        if WIRE_METADATA_KEY in f.metadata
    )


# ============================================================
# GENERIC DECODE / ENCODE
# ============================================================

def decode_record(record_cls: Type[T], data: Any) -> T:
    """
    Decode a JSON object into a record.

    Raises:
        DecodeError: On a missing key or an invalid field value
    """
    if not isinstance(data, dict):
        raise DecodeError(
            f"expected an object for {record_cls.__name__}, got {type(data).__name__}"
        )

    values: Dict[str, Any] = {}
    for name, wire_field in schema_of(record_cls):
        raw = data.get(wire_field.key)
        if raw is None:
            if wire_field.optional:
                values[name] = None
                continue
            reason = "null value" if wire_field.key in data else "missing required key"
            raise DecodeError(f"{reason} for {record_cls.__name__}", field=wire_field.key)
        try:
            values[name] = wire_field.codec.decode(raw)
        except DecodeError as e:
            raise e.at(wire_field.key)
    return record_cls(**values)


def encode_record(obj: Any) -> Dict[str, Any]:
    """Encode a record into a JSON-ready dict. None optionals are omitted."""
    out: Dict[str, Any] = {}
    for name, wire_field in schema_of(type(obj)):
        value = getattr(obj, name)
        if value is None:
            if wire_field.optional:
                continue
            raise ValueError(f"{type(obj).__name__}.{name} is required")
        out[wire_field.key] = wire_field.codec.encode(value)
    return out


class WireRecord:
    """Mixin giving dataclass records `from_wire` / `to_wire`."""

    @classmethod
    def from_wire(cls: Type[T], data: Any) -> T:
        return decode_record(cls, data)

    def to_wire(self) -> Dict[str, Any]:
        return encode_record(self)


def resolve_decoder(target: Any) -> Callable[[Any], Any]:
    """
    Accept a record class or a plain callable as a payload decoder.
    """
    from_wire = getattr(target, "from_wire", None)
    if from_wire is not None:
        return from_wire
    if callable(target):
        return target
    raise TypeError(f"{target!r} is not a decoder")


def items_decoder(item_decoder: Any) -> Callable[[Any], Tuple[Any, ...]]:
    """
    Decoder for paginated list payloads shaped ``{"items": [...]}``.
    """
    decode_item = resolve_decoder(item_decoder)

    def decode(data: Any) -> Tuple[Any, ...]:
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise DecodeError("expected an object with an items array", field="items")
        items = []
        for index, raw in enumerate(data["items"]):
            try:
                items.append(decode_item(raw))
            except DecodeError as e:
                raise e.at(f"items[{index}]")
        return tuple(items)

    return decode
