import math
import struct
import uuid
from decimal import Decimal

import pytest

from pgcopykit.binary_reader import BinaryReader
from pgcopykit.binary_writer import BinaryWriter
from pgcopykit.conversion import NUMERIC_NAN, NUMERIC_NEG, Interval, TimeTZ


def _written(write, *args):
    """Write one field and return a reader positioned after its length prefix."""
    writer = BinaryWriter()
    write(writer, *args)
    reader = BinaryReader(writer.getvalue())
    length = reader.read_integer(4, signed=True)
    return reader, length


def _numeric(ndigits, weight, sign, scale, digits):
    return struct.pack(">HhHH", ndigits, weight, sign, scale) + struct.pack(
        f">{len(digits)}H", *digits
    )


def test_read_integer_is_big_endian():
    reader = BinaryReader(b"\x00\x01\x00\x00\x00\x02")
    assert reader.read_integer(2) == 1
    assert reader.read_integer(4) == 2
    assert reader.out_of_buffer()


def test_read_integer_signedness():
    assert BinaryReader(b"\xff\xff").read_integer(2, signed=True) == -1
    assert BinaryReader(b"\xff\xff").read_integer(2) == 65535


def test_read_integer_past_end_raises():
    reader = BinaryReader(b"\x00\x01")
    with pytest.raises(EOFError):
        reader.read_integer(4)


def test_read_integer_rejects_odd_size():
    with pytest.raises(ValueError):
        BinaryReader(b"\x00\x00\x00").read_integer(3)


def test_out_of_buffer_tracks_position():
    reader = BinaryReader(b"\x01")
    assert not reader.out_of_buffer()
    assert reader.read_boolean() is True
    assert reader.out_of_buffer()
    assert reader.position == 1


def test_boolean_round_trip():
    reader, length = _written(BinaryWriter.write_boolean, False)
    assert length == 1
    assert reader.read_boolean() is False


@pytest.mark.parametrize("value", [0.5, -2.25, 1024.0])
def test_float_round_trip(value):
    reader, length = _written(BinaryWriter.write_float, value)
    assert length == 4
    assert reader.read_float() == value


@pytest.mark.parametrize("value", [math.pi, -1e300, 0.0])
def test_double_round_trip(value):
    reader, length = _written(BinaryWriter.write_double, value)
    assert length == 8
    assert reader.read_double() == value


@pytest.mark.parametrize("days", [0, 10957, -1, 19000, math.inf, -math.inf])
def test_date_round_trip(days):
    reader, _ = _written(BinaryWriter.write_date, days)
    assert reader.read_date() == days


def test_date_epoch_wire_value():
    # 2000-01-01 is day zero on the wire
    reader, _ = _written(BinaryWriter.write_date, 10957)
    assert reader.read_integer(4) == 0


@pytest.mark.parametrize("micros", [0, 1_700_000_000_123_456, -5, math.inf, -math.inf])
def test_timestamp_round_trip(micros):
    reader, length = _written(BinaryWriter.write_timestamp, micros)
    assert length == 8
    assert reader.read_timestamp() == micros


def test_time_round_trip():
    reader, _ = _written(BinaryWriter.write_time, 45_296_000_001)
    assert reader.read_time() == 45_296_000_001


def test_time_tz_round_trip():
    value = TimeTZ(micros=3_600_000_000, offset=-7200)
    reader, length = _written(BinaryWriter.write_time_tz, value)
    assert length == 12
    assert reader.read_time_tz() == value


def test_interval_round_trip():
    value = Interval(months=-3, days=12, micros=-1_500_000)
    reader, length = _written(BinaryWriter.write_interval, value)
    assert length == 16
    assert reader.read_interval() == value


def test_uuid_round_trip():
    value = uuid.UUID("12345678-1234-5678-1234-567812345678")
    reader, length = _written(BinaryWriter.write_uuid, value)
    assert length == 16
    assert reader.read_uuid() == value


def test_read_string_returns_bytes():
    reader, length = _written(BinaryWriter.write_varchar, "héllo")
    assert reader.read_string(length).decode("utf-8") == "héllo"
    assert reader.out_of_buffer()


def test_read_string_past_end_raises():
    with pytest.raises(EOFError):
        BinaryReader(b"abc").read_string(4)


def test_decimal_config_fields():
    reader = BinaryReader(_numeric(2, 0, NUMERIC_NEG, 2, [1, 5000]))
    config = reader.read_decimal_config()
    assert (config.ndigits, config.weight, config.scale, config.is_negative) == (2, 0, 2, True)


def test_decimal_nan_raises():
    reader = BinaryReader(_numeric(0, 0, NUMERIC_NAN, 0, []))
    with pytest.raises(ValueError):
        reader.read_decimal()


@pytest.mark.parametrize("scale", [0, 2, 5])
def test_decimal_round_trip(scale):
    reader, _ = _written(BinaryWriter.write_decimal, 0, scale)
    assert reader.read_decimal() == Decimal(0)


@pytest.mark.parametrize(
    "unscaled, scale",
    [
        (12345, 2),
        (-1, 5),
        (10000, 0),
        (5, 1),
        (-987654321, 3),
        (12345678901234567890123456789012345678, 18),
    ],
)
def test_decimal_round_trip_exact(unscaled, scale):
    reader, _ = _written(BinaryWriter.write_decimal, unscaled, scale)
    assert reader.read_decimal() == Decimal(f"{unscaled}E-{scale}")
    assert reader.out_of_buffer()


def test_decimal_zero_round_trip():
    reader, _ = _written(BinaryWriter.write_decimal, 0, 2)
    assert reader.read_decimal() == Decimal("0")


def test_decimal_with_suppressed_trailing_fraction_group():
    # 1.50 sent as the groups 0001 . 5000
    reader = BinaryReader(_numeric(2, 0, 0, 2, [1, 5000]))
    assert reader.read_decimal() == Decimal("1.50")


def test_decimal_with_suppressed_trailing_integral_group():
    # 10000 sent as a single group of weight one
    reader = BinaryReader(_numeric(1, 1, 0, 0, [1]))
    assert reader.read_decimal() == Decimal("10000")


def test_decimal_truncated_digits_raise():
    reader = BinaryReader(_numeric(2, 0, 0, 0, [1]))
    with pytest.raises(EOFError):
        reader.read_decimal()