import math
import struct
import uuid
from decimal import Decimal
from fractions import Fraction

import pytest

from pgcopykit import oids
from pgcopykit.binary_writer import BinaryWriter
from pgcopykit.conversion import (
    COPY_HEADER,
    NBASE,
    NUMERIC_NEG,
    NUMERIC_POS,
    POSTGRES_DATE_INF,
    POSTGRES_INFINITY,
    POSTGRES_MAX_DATE,
    Interval,
    TimeTZ,
    date_from_postgres,
    timestamp_from_postgres,
)
from pgcopykit.types import (
    BLOB,
    INTEGER,
    VARCHAR,
    CopyState,
    LogicalType,
    LogicalTypeId,
)


def decode_numeric(data):
    size, ndigits, weight, sign, scale = struct.unpack(">iHhHH", data[:12])
    digits = struct.unpack(f">{ndigits}H", data[12 : 12 + 2 * ndigits])
    total = sum(Fraction(d) * Fraction(NBASE) ** (weight - i) for i, d in enumerate(digits))
    unscaled = total * 10**scale
    if sign == NUMERIC_NEG:
        unscaled = -unscaled
    return size, unscaled, scale, weight, digits, sign


def test_header_and_footer():
    writer = BinaryWriter()
    writer.write_header()
    writer.write_footer()
    data = writer.getvalue()
    assert data[: len(COPY_HEADER)] == COPY_HEADER
    assert data[len(COPY_HEADER) : len(COPY_HEADER) + 8] == bytes(8)
    assert struct.unpack(">h", data[-2:]) == (-1,)


def test_null_and_row_start():
    writer = BinaryWriter()
    writer.begin_row(3)
    writer.write_null()
    assert struct.unpack(">hi", writer.getvalue()) == (3, -1)


@pytest.mark.parametrize("value,size,fmt", [(-2, 2, ">h"), (70000, 4, ">i"), (-(2**40), 8, ">q"), (200, 1, ">B")])
def test_write_integer(value, size, fmt):
    writer = BinaryWriter()
    writer.write_integer(value, size)
    data = writer.getvalue()
    assert struct.unpack(">i", data[:4]) == (size,)
    assert struct.unpack(fmt, data[4:]) == (value,)


def test_write_integer_rejects_odd_size():
    with pytest.raises(ValueError):
        BinaryWriter().write_integer(1, 3)


def test_boolean_float_double():
    writer = BinaryWriter()
    writer.write_boolean(True)
    writer.write_float(1.5)
    writer.write_double(-2.25)
    assert struct.unpack(">iBifid", writer.getvalue()) == (1, 1, 4, 1.5, 8, -2.25)


@pytest.mark.parametrize("days", [0, 10957, -365, 20000])
def test_date_round_trip(days):
    writer = BinaryWriter()
    writer.write_date(days)
    length, wire = struct.unpack(">iI", writer.getvalue())
    assert length == 4
    assert date_from_postgres(wire) == days


def test_date_infinity_and_range():
    writer = BinaryWriter()
    writer.write_date(math.inf)
    assert struct.unpack(">iI", writer.getvalue())[1] == POSTGRES_DATE_INF
    with pytest.raises(ValueError):
        BinaryWriter().write_date(POSTGRES_MAX_DATE)


@pytest.mark.parametrize("micros", [0, 1_700_000_000_000_000, -5_000_000])
def test_timestamp_round_trip(micros):
    writer = BinaryWriter()
    writer.write_timestamp(micros)
    length, wire = struct.unpack(">iQ", writer.getvalue())
    assert length == 8
    assert timestamp_from_postgres(wire) == micros


def test_timestamp_infinity():
    writer = BinaryWriter()
    writer.write_timestamp(math.inf)
    assert struct.unpack(">iQ", writer.getvalue())[1] == POSTGRES_INFINITY


def test_time_and_time_tz():
    writer = BinaryWriter()
    writer.write_time(123456)
    writer.write_time_tz(TimeTZ(micros=777, offset=3600))
    assert struct.unpack(">iqiQi", writer.getvalue()) == (8, 123456, 12, 777, -3600)


def test_interval():
    writer = BinaryWriter()
    writer.write_interval(Interval(months=3, days=4, micros=5))
    assert struct.unpack(">iQII", writer.getvalue()) == (16, 5, 4, 3)


@pytest.mark.parametrize("form", ["uuid", "int", "str"])
def test_uuid(form):
    value = uuid.UUID("12345678-1234-5678-1234-567812345678")
    given = {"uuid": value, "int": value.int, "str": str(value)}[form]
    writer = BinaryWriter()
    writer.write_uuid(given)
    data = writer.getvalue()
    assert struct.unpack(">i", data[:4]) == (16,)
    assert data[4:] == value.bytes


def test_decimal_left_aligned_fraction():
    writer = BinaryWriter()
    writer.write_decimal(12, 2)
    _, unscaled, scale, weight, digits, sign = decode_numeric(writer.getvalue())
    assert digits == (1200,)
    assert weight == -1
    assert sign == NUMERIC_POS
    assert (unscaled, scale) == (12, 2)


@pytest.mark.parametrize(
    "value,scale",
    [(0, 0), (5, 0), (123456789, 0), (1234, 2), (-1234, 2), (1, 5), (10**30 + 7, 10), (999999999, 9)],
)
def test_decimal_round_trip(value, scale):
    writer = BinaryWriter()
    writer.write_decimal(value, scale)
    data = writer.getvalue()
    size, unscaled, got_scale, _, _, sign = decode_numeric(data)
    assert size == len(data) - 4
    assert unscaled == value
    assert got_scale == scale
    assert sign == (NUMERIC_NEG if value < 0 else NUMERIC_POS)


def test_decimal_from_decimal_object():
    writer = BinaryWriter()
    writer.write_decimal(Decimal("-12.34"), 2)
    assert decode_numeric(writer.getvalue())[1] == -1234


def test_varchar_and_blob():
    writer = BinaryWriter()
    writer.write_varchar("héllo")
    writer.write_raw_blob(b"\x00\x01")
    data = writer.getvalue()
    encoded = "héllo".encode("utf-8")
    assert struct.unpack(">i", data[:4]) == (len(encoded),)
    assert data[4 : 4 + len(encoded)] == encoded
    assert data[4 + len(encoded) :] == struct.pack(">i", 2) + b"\x00\x01"


def test_varchar_null_byte_rejected():
    with pytest.raises(ValueError, match="NULL-byte"):
        BinaryWriter().write_varchar("a\x00b")


def test_varchar_null_byte_replaced():
    writer = BinaryWriter(CopyState(null_byte_replacement="?"))
    writer.write_varchar("a\x00b")
    assert writer.getvalue()[4:] == b"a?b"
    empty = BinaryWriter(CopyState(null_byte_replacement=""))
    empty.write_varchar("a\x00b")
    assert empty.getvalue()[4:] == b"ab"


def test_write_value_null():
    writer = BinaryWriter()
    writer.write_value(None, INTEGER)
    assert struct.unpack(">i", writer.getvalue()) == (-1,)


def test_write_value_enum_by_index_and_name():
    enum_type = LogicalType.enum_of(["red", "green"])
    by_index = BinaryWriter()
    by_index.write_value(1, enum_type)
    by_name = BinaryWriter()
    by_name.write_value("green", enum_type)
    assert by_index.getvalue() == by_name.getvalue()
    assert by_index.getvalue()[4:] == b"green"


def test_write_value_two_dimensional_list():
    writer = BinaryWriter()
    writer.write_value([[1, 2], [3, 4]], LogicalType.list_of(LogicalType.list_of(INTEGER)))
    data = writer.getvalue()
    size, ndim, has_nulls, oid = struct.unpack(">iIII", data[:16])
    assert size == len(data) - 4
    assert (ndim, has_nulls, oid) == (2, 1, oids.INT4OID)
    assert struct.unpack(">IIII", data[16:32]) == (2, 1, 2, 1)
    values = struct.unpack(">" + "ii" * 4, data[32:])
    assert values[1::2] == (1, 2, 3, 4)
    assert set(values[0::2]) == {4}


def test_write_value_list_with_null_element():
    writer = BinaryWriter()
    writer.write_value(["a", None], LogicalType.list_of(VARCHAR))
    data = writer.getvalue()
    assert struct.unpack(">I", data[12:16]) == (oids.VARCHAROID,)
    assert data[-4:] == struct.pack(">i", -1)


def test_write_value_empty_list():
    writer = BinaryWriter()
    writer.write_value([], LogicalType.list_of(INTEGER))
    assert struct.unpack(">iIII", writer.getvalue()) == (12, 0, 0, oids.INT4OID)


def test_write_value_ragged_list_rejected():
    writer = BinaryWriter()
    with pytest.raises(ValueError, match="matching dimensions"):
        writer.write_value([[1, 2], [3]], LogicalType.list_of(LogicalType.list_of(INTEGER)))


def test_write_value_struct():
    struct_type = LogicalType.struct_of([("a", INTEGER), ("b", VARCHAR)])
    from_mapping = BinaryWriter()
    from_mapping.write_value({"a": 1, "b": "x"}, struct_type)
    from_tuple = BinaryWriter()
    from_tuple.write_value((1, "x"), struct_type)
    data = from_mapping.getvalue()
    assert data == from_tuple.getvalue()
    size, count, oid_a, len_a, val_a, oid_b, len_b = struct.unpack(">iIIiiIi", data[:28])
    assert size == len(data) - 4
    assert (count, oid_a, len_a, val_a) == (2, oids.INT4OID, 4, 1)
    assert (oid_b, len_b, data[28:]) == (oids.VARCHAROID, 1, b"x")


def test_write_value_blob_and_decimal():
    writer = BinaryWriter()
    writer.write_value(b"xyz", BLOB)
    assert writer.getvalue() == struct.pack(">i", 3) + b"xyz"
    dec = BinaryWriter()
    dec.write_value(12345, LogicalType.decimal(10, 3))
    assert decode_numeric(dec.getvalue())[1:3] == (12345, 3)


def test_write_value_unsupported_type():
    with pytest.raises(NotImplementedError, match="not supported"):
        BinaryWriter().write_value({}, LogicalType(LogicalTypeId.MAP))