"""Writer for the PostgreSQL binary COPY format."""

import struct
import uuid
from collections.abc import Mapping
from decimal import Decimal

from pgcopykit.conversion import (
    COPY_HEADER,
    DEC_DIGITS,
    NBASE,
    NUMERIC_NEG,
    NUMERIC_POS,
    date_to_postgres,
    power_of_ten,
    timestamp_to_postgres,
)
from pgcopykit.types import CopyState, LogicalTypeId, to_postgres_oid

_NULL_BYTE_MESSAGE = (
    "Attempting to write a VARCHAR value with a NULL-byte. Postgres does not "
    "support NULL-bytes in VARCHAR values.\n* SET pg_null_byte_replacement='' "
    "to remove NULL bytes or replace them with another character"
)

_INTEGER_SIZES = {
    LogicalTypeId.SMALLINT: 2,
    LogicalTypeId.INTEGER: 4,
    LogicalTypeId.BIGINT: 8,
}

_SIMPLE_WRITERS = {
    LogicalTypeId.BOOLEAN: "write_boolean",
    LogicalTypeId.FLOAT: "write_float",
    LogicalTypeId.DOUBLE: "write_double",
    LogicalTypeId.DATE: "write_date",
    LogicalTypeId.TIME: "write_time",
    LogicalTypeId.TIME_TZ: "write_time_tz",
    LogicalTypeId.TIMESTAMP: "write_timestamp",
    LogicalTypeId.TIMESTAMP_TZ: "write_timestamp",
    LogicalTypeId.INTERVAL: "write_interval",
    LogicalTypeId.UUID: "write_uuid",
    LogicalTypeId.VARCHAR: "write_varchar",
    LogicalTypeId.BLOB: "write_raw_blob",
}


class BinaryWriter:
    """Accumulates rows encoded in the binary COPY format."""

    def __init__(self, state=None):
        self.state = state if state is not None else CopyState()
        self._stream = bytearray()

    def getvalue(self):
        """Return everything written so far."""
        return bytes(self._stream)

    def _raw(self, value, size):
        mask = (1 << (8 * size)) - 1
        self._stream += (value & mask).to_bytes(size, "big")

    def _begin_sized(self):
        position = len(self._stream)
        self._raw(0, 4)
        return position

    def _end_sized(self, position):
        size = len(self._stream) - position - 4
        self._stream[position : position + 4] = size.to_bytes(4, "big", signed=True)

    def write_header(self):
        self._stream += COPY_HEADER
        self._raw(0, 4)
        self._raw(0, 4)

    def write_footer(self):
        self._raw(-1, 2)

    def begin_row(self, column_count):
        self._raw(column_count, 2)

    def write_null(self):
        self._raw(-1, 4)

    def write_integer(self, value, size):
        """Write a length-prefixed big-endian integer of 1, 2, 4 or 8 bytes."""
        if size not in (1, 2, 4, 8):
            raise ValueError(f"unsupported integer size: {size}")
        self._raw(size, 4)
        self._raw(value, size)

    def write_boolean(self, value):
        self.write_integer(1 if value else 0, 1)

    def write_float(self, value):
        self._raw(4, 4)
        self._stream += struct.pack(">f", value)

    def write_double(self, value):
        self._raw(8, 4)
        self._stream += struct.pack(">d", value)

    def write_date(self, days):
        """Write days since 1970-01-01; +/-math.inf are the infinite dates."""
        self.write_integer(date_to_postgres(days), 4)

    def write_time(self, micros):
        self.write_integer(micros, 8)

    def write_time_tz(self, value):
        self._raw(12, 4)
        self._raw(value.micros, 8)
        self._raw(-value.offset, 4)

    def write_timestamp(self, micros):
        """Write microseconds since 1970; +/-math.inf are the infinite timestamps."""
        self.write_integer(timestamp_to_postgres(micros), 8)

    def write_interval(self, value):
        self._raw(16, 4)
        self._raw(value.micros, 8)
        self._raw(value.days, 4)
        self._raw(value.months, 4)

    def write_uuid(self, value):
        """Write a UUID given as uuid.UUID, a 128-bit integer or its text form."""
        if isinstance(value, int):
            value = uuid.UUID(int=value)
        elif not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        self._raw(16, 4)
        self._stream += value.bytes

    def write_decimal(self, value, scale):
        """Write a numeric from its unscaled integer (or a Decimal) and scale."""
        if isinstance(value, Decimal):
            value = int(value.scaleb(scale).to_integral_value())
        factor = power_of_ten(scale, wide=True)
        sign = NUMERIC_NEG if value < 0 else NUMERIC_POS
        integer_part, fractional_part = divmod(abs(value), factor)

        integral_digits = []
        while integer_part > 0:
            integer_part, digit = divmod(integer_part, NBASE)
            integral_digits.append(digit)
        integral_digits.reverse()

        # fractional digits are left aligned: ".12" at scale 2 is written as 1200
        fractional_ndigits = -(-scale // DEC_DIGITS)
        correction = fractional_ndigits * DEC_DIGITS - scale
        fractional_part *= power_of_ten(correction)
        fractional_digits = []
        for _ in range(fractional_ndigits):
            fractional_part, digit = divmod(fractional_part, NBASE)
            fractional_digits.append(digit)
        fractional_digits.reverse()

        digits = integral_digits + fractional_digits
        self._raw(2 * (4 + len(digits)), 4)
        self._raw(len(digits), 2)
        self._raw(len(integral_digits) - 1, 2)
        self._raw(sign, 2)
        self._raw(scale, 2)
        for digit in digits:
            self._raw(digit, 2)

    def write_raw_blob(self, data):
        data = bytes(data)
        self._raw(len(data), 4)
        self._stream += data

    def write_varchar(self, text):
        """Write text as UTF-8; NUL characters need a configured replacement."""
        data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
        if b"\x00" in data:
            if not self.state.has_null_byte_replacement:
                raise ValueError(_NULL_BYTE_MESSAGE)
            data = data.replace(b"\x00", self.state.null_byte_replacement.encode("utf-8"))
        self.write_raw_blob(data)

    def _write_array(self, items, element_type, dimensions, depth):
        length = len(items) if items is not None else 0
        if length != dimensions[depth]:
            raise ValueError(
                "Postgres multidimensional arrays must all have matching dimensions - "
                f"found a length mismatch (found {length} entries, expected {dimensions[depth]})"
            )
        for item in items or ():
            if element_type.id is LogicalTypeId.LIST:
                self._write_array(item, element_type.child, dimensions, depth + 1)
            else:
                self.write_value(item, element_type)

    def _write_list(self, value, logical_type):
        value_oid = to_postgres_oid(logical_type.child)
        if len(value) == 0:
            self._raw(12, 4)
            self._raw(0, 4)
            self._raw(0, 4)
            self._raw(value_oid, 4)
            return
        dimensions = []
        current, current_type = value, logical_type
        while current_type.id is LogicalTypeId.LIST:
            dimensions.append(len(current) if current is not None else 0)
            current = current[0] if current else None
            current_type = current_type.child

        position = self._begin_sized()
        self._raw(len(dimensions), 4)
        self._raw(1, 4)
        self._raw(value_oid, 4)
        for dimension in dimensions:
            self._raw(dimension, 4)
            self._raw(1, 4)
        self._write_array(value, logical_type.child, dimensions, 0)
        self._end_sized(position)

    def _write_struct(self, value, logical_type):
        if isinstance(value, Mapping):
            field_values = [value[name] for name, _ in logical_type.fields]
        else:
            field_values = list(value)
            if len(field_values) != len(logical_type.fields):
                raise ValueError(
                    f"struct value has {len(field_values)} fields, expected {len(logical_type.fields)}"
                )
        position = self._begin_sized()
        self._raw(len(logical_type.fields), 4)
        for (_, field_type), field_value in zip(logical_type.fields, field_values):
            self._raw(to_postgres_oid(field_type), 4)
            self.write_value(field_value, field_type)
        self._end_sized(position)

    def write_value(self, value, logical_type):
        """Write one field of the given logical type; None is written as NULL."""
        if value is None:
            self.write_null()
            return
        tid = logical_type.id
        if tid in _INTEGER_SIZES:
            self.write_integer(value, _INTEGER_SIZES[tid])
        elif tid in _SIMPLE_WRITERS:
            getattr(self, _SIMPLE_WRITERS[tid])(value)
        elif tid is LogicalTypeId.DECIMAL:
            self.write_decimal(value, logical_type.scale)
        elif tid is LogicalTypeId.ENUM:
            if isinstance(value, int) and not isinstance(value, bool):
                value = logical_type.values[value]
            self.write_varchar(value)
        elif tid is LogicalTypeId.LIST:
            self._write_list(value, logical_type)
        elif tid is LogicalTypeId.STRUCT:
            self._write_struct(value, logical_type)
        else:
            raise NotImplementedError(
                f'Type "{logical_type}" is not supported for Postgres binary copy'
            )