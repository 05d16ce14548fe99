"""Value parsers for Debezium and Kafka Connect logical types.

Each parser takes the column's schema parameters and the raw decoded JSON
value and returns a value the database driver can bind. Parsers are looked
up by the column's semantic type (the ``name`` of its field schema).
"""

import base64
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Mapping, Union

from dateutil.parser import isoparse, isoparser

from .columns import CONNECT_DECIMAL, VARIABLE_SCALE_DECIMAL

Parser = Callable[[Mapping[str, Any], Any], Any]

EPOCH_DATE = date(1970, 1, 1)
EPOCH_DATETIME = datetime(1970, 1, 1)

DEBEZIUM_DATE = "io.debezium.time.Date"
DEBEZIUM_TIME = "io.debezium.time.Time"
DEBEZIUM_MICRO_TIME = "io.debezium.time.MicroTime"
DEBEZIUM_NANO_TIME = "io.debezium.time.NanoTime"
DEBEZIUM_ZONED_TIME = "io.debezium.time.ZonedTime"
DEBEZIUM_TIMESTAMP = "io.debezium.time.Timestamp"
DEBEZIUM_MICRO_TIMESTAMP = "io.debezium.time.MicroTimestamp"
DEBEZIUM_NANO_TIMESTAMP = "io.debezium.time.NanoTimestamp"
DEBEZIUM_ZONED_TIMESTAMP = "io.debezium.time.ZonedTimestamp"
CONNECT_DATE = "org.apache.kafka.connect.data.Date"
CONNECT_TIME = "org.apache.kafka.connect.data.Time"
CONNECT_TIMESTAMP = "org.apache.kafka.connect.data.Timestamp"


def _unscaled_bytes(value: Union[str, bytes, bytearray]) -> int:
    """Decode a big-endian two's-complement integer, base64 encoded in JSON."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    else:
        raw = base64.b64decode(value, validate=True)
    return int.from_bytes(raw, byteorder="big", signed=True)


def _scaled_decimal(unscaled: Union[str, bytes, bytearray], scale: int) -> Decimal:
    return Decimal(_unscaled_bytes(unscaled)).scaleb(-scale)


def parse_variable_scale_decimal(parameters: Mapping[str, Any], value: Any) -> Decimal:
    """Parse ``{"scale": 2, "value": "BNI="}`` into ``Decimal("12.34")``."""
    if isinstance(value, Mapping):
        return _scaled_decimal(value["value"], int(value["scale"]))
    # decimal.handling.mode=string or double
    return Decimal(str(value))


def parse_decimal(parameters: Mapping[str, Any], value: Any) -> Decimal:
    """Parse a fixed-scale decimal; the scale comes from the schema parameters.

    The JSON converter encodes the unscaled value as base64, so strings are
    always decoded. Plain numbers pass through ``Decimal(str(value))``.
    """
    if isinstance(value, (str, bytes, bytearray)):
        return _scaled_decimal(value, int(parameters.get("scale", 0)))
    return Decimal(str(value))


def parse_date(parameters: Mapping[str, Any], value: Any) -> date:
    """Days since the epoch."""
    return EPOCH_DATE + timedelta(days=int(value))


def parse_timestamp(parameters: Mapping[str, Any], value: Any) -> datetime:
    """Milliseconds since the epoch, no time zone."""
    return EPOCH_DATETIME + timedelta(milliseconds=int(value))


def parse_micro_timestamp(parameters: Mapping[str, Any], value: Any) -> datetime:
    return EPOCH_DATETIME + timedelta(microseconds=int(value))


def parse_nano_timestamp(parameters: Mapping[str, Any], value: Any) -> datetime:
    return EPOCH_DATETIME + timedelta(microseconds=int(value) // 1000)


def parse_zoned_timestamp(parameters: Mapping[str, Any], value: Any) -> datetime:
    return isoparse(value)


def _time_of_day(microseconds: int) -> time:
    return (EPOCH_DATETIME + timedelta(microseconds=microseconds)).time()


def parse_time(parameters: Mapping[str, Any], value: Any) -> time:
    """Milliseconds since midnight."""
    return _time_of_day(int(value) * 1000)


def parse_micro_time(parameters: Mapping[str, Any], value: Any) -> time:
    return _time_of_day(int(value))


def parse_nano_time(parameters: Mapping[str, Any], value: Any) -> time:
    return _time_of_day(int(value) // 1000)


def parse_zoned_time(parameters: Mapping[str, Any], value: Any) -> time:
    return isoparser().parse_isotime(value)


DEFAULT_PARSERS: dict[str, Parser] = {
    VARIABLE_SCALE_DECIMAL: parse_variable_scale_decimal,
    CONNECT_DECIMAL: parse_decimal,
    DEBEZIUM_DATE: parse_date,
    CONNECT_DATE: parse_date,
    DEBEZIUM_TIMESTAMP: parse_timestamp,
    CONNECT_TIMESTAMP: parse_timestamp,
    DEBEZIUM_MICRO_TIMESTAMP: parse_micro_timestamp,
    DEBEZIUM_NANO_TIMESTAMP: parse_nano_timestamp,
    DEBEZIUM_ZONED_TIMESTAMP: parse_zoned_timestamp,
    DEBEZIUM_TIME: parse_time,
    CONNECT_TIME: parse_time,
    DEBEZIUM_MICRO_TIME: parse_micro_time,
    DEBEZIUM_NANO_TIME: parse_nano_time,
    DEBEZIUM_ZONED_TIME: parse_zoned_time,
}


__all__ = ["Parser", "DEFAULT_PARSERS", "EPOCH_DATE", "EPOCH_DATETIME"]
