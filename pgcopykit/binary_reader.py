"""Reader for values encoded in the PostgreSQL binary COPY format."""

import struct
import uuid
from decimal import Decimal

from pgcopykit.conversion import (
    DEC_DIGITS,
    NBASE,
    NUMERIC_NEG,
    NUMERIC_POS,
    DecimalConfig,
    Interval,
    TimeTZ,
    date_from_postgres,
    power_of_ten,
    timestamp_from_postgres,
)


class BinaryReader:
    """Reads big-endian binary COPY values from a byte buffer, front to back."""

    def __init__(self, data):
        self._buffer = bytes(data)
        self._pos = 0

    @property
    def position(self):
        """Offset of the next byte to be read."""
        return self._pos

    def out_of_buffer(self):
        """Whether every byte of the buffer has been consumed."""
        return self._pos >= len(self._buffer)

    def _take(self, length, what):
        if self._pos + length > len(self._buffer):
            raise EOFError(f"Postgres scanner - out of buffer in {what}")
        chunk = self._buffer[self._pos : self._pos + length]
        self._pos += length
        return chunk

    def read_integer(self, size, signed=False):
        """Read a big-endian integer of 1, 2, 4 or 8 bytes."""
        if size not in (1, 2, 4, 8):
            raise ValueError(f"unsupported integer size: {size}")
        return int.from_bytes(self._take(size, "ReadInteger"), "big", signed=signed)

    def read_boolean(self):
        return self.read_integer(1) > 0

    def read_float(self):
        return struct.unpack(">f", self._take(4, "ReadInteger"))[0]

    def read_double(self):
        return struct.unpack(">d", self._take(8, "ReadInteger"))[0]

    def read_date(self):
        """Read a date as days since 1970-01-01, or +/-math.inf."""
        return date_from_postgres(self.read_integer(4))

    def read_time(self):
        """Read a time of day in microseconds."""
        return self.read_integer(8, signed=True)

    def read_time_tz(self):
        micros = self.read_integer(8, signed=True)
        tz_offset = self.read_integer(4, signed=True)
        return TimeTZ(micros=micros, offset=-tz_offset)

    def read_timestamp(self):
        """Read a timestamp as microseconds since 1970, or +/-math.inf."""
        return timestamp_from_postgres(self.read_integer(8))

    def read_interval(self):
        micros = self.read_integer(8, signed=True)
        days = self.read_integer(4, signed=True)
        months = self.read_integer(4, signed=True)
        return Interval(months=months, days=days, micros=micros)

    def read_uuid(self):
        return uuid.UUID(bytes=self._take(16, "ReadInteger"))

    def read_string(self, length):
        """Read the next length bytes unchanged."""
        if length < 0:
            raise ValueError(f"negative string length: {length}")
        return self._take(length, "ReadString")

    def read_decimal_config(self):
        """Read the header of a binary numeric value."""
        ndigits = self.read_integer(2)
        weight = self.read_integer(2, signed=True)
        sign = self.read_integer(2)
        if sign not in (NUMERIC_POS, NUMERIC_NEG):
            raise ValueError("Postgres numeric NA/NaN/Infinity not supported")
        scale = self.read_integer(2)
        return DecimalConfig(
            scale=scale, ndigits=ndigits, weight=weight, is_negative=sign == NUMERIC_NEG
        )

    def read_decimal(self):
        """Read a binary numeric value as an exact Decimal."""
        config = self.read_decimal_config()
        scale_power = power_of_ten(config.scale, wide=True)
        if config.ndigits == 0:
            return Decimal(f"0E-{config.scale}")

        integral_part = 0
        if config.weight >= 0:
            integral_part = self.read_integer(2)
            for i in range(1, config.weight + 1):
                integral_part *= NBASE
                if i < config.ndigits:
                    integral_part += self.read_integer(2)
            integral_part *= scale_power

        # The digit groups after the point may be fewer or more than the scale
        # asks for; the last group is stretched or shrunk to match it.
        fractional_part = 0
        if config.ndigits > config.weight + 1:
            fractional_power = (config.ndigits - config.weight - 1) * DEC_DIGITS
            correction = fractional_power - config.scale
            for i in range(max(0, config.weight + 1), config.ndigits):
                digit = self.read_integer(2)
                if i + 1 < config.ndigits:
                    fractional_part = fractional_part * NBASE + digit
                    continue
                base = NBASE
                if correction >= 0:
                    compensation = power_of_ten(correction, wide=True)
                    base //= compensation
                    digit //= compensation
                else:
                    compensation = power_of_ten(-correction, wide=True)
                    base *= compensation
                    digit *= compensation
                fractional_part = fractional_part * base + digit

        unscaled = integral_part + fractional_part
        if config.is_negative:
            unscaled = -unscaled
        return Decimal(f"{unscaled}E-{config.scale}")