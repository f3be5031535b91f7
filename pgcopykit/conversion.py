"""Constants and value conversions of the PostgreSQL binary COPY format."""

import math
from dataclasses import dataclass

COPY_HEADER = b"PGCOPY\n\xff\r\n\x00"
COPY_HEADER_LENGTH = len(COPY_HEADER)

# Julian day numbers of 2000-01-01 (the server epoch) and 1970-01-01.
POSTGRES_EPOCH_JDATE = 2451545
UNIX_EPOCH_JDATE = 2440588
POSTGRES_MIN_DATE = -2440589
POSTGRES_MAX_DATE = 2145042906
POSTGRES_DATE_INF = 2147483647
POSTGRES_DATE_NINF = 2147483648

# Julian microseconds of the two epochs.
POSTGRES_EPOCH_TS = 211813488000000000
UNIX_EPOCH_TS = 210866803200000000
POSTGRES_INFINITY = 9223372036854775807
POSTGRES_NINFINITY = 9223372036854775808

NBASE = 10000
DEC_DIGITS = 4

NUMERIC_SIGN_MASK = 0xC000
NUMERIC_POS = 0x0000
NUMERIC_NEG = 0x4000
NUMERIC_SHORT = 0x8000
NUMERIC_SPECIAL = 0xC000

NUMERIC_EXT_SIGN_MASK = 0xF000
NUMERIC_NAN = 0xC000
NUMERIC_PINF = 0xD000
NUMERIC_NINF = 0xF000
NUMERIC_INF_SIGN_MASK = 0x2000

NUMERIC_DSCALE_MASK = 0x3FFF
NUMERIC_SHORT_SIGN_MASK = 0x2000
NUMERIC_SHORT_DSCALE_MASK = 0x1F80
NUMERIC_SHORT_DSCALE_SHIFT = 7
NUMERIC_SHORT_DSCALE_MAX = NUMERIC_SHORT_DSCALE_MASK >> NUMERIC_SHORT_DSCALE_SHIFT
NUMERIC_SHORT_WEIGHT_SIGN_MASK = 0x0040
NUMERIC_SHORT_WEIGHT_MASK = 0x003F
NUMERIC_SHORT_WEIGHT_MAX = NUMERIC_SHORT_WEIGHT_MASK
NUMERIC_SHORT_WEIGHT_MIN = -(NUMERIC_SHORT_WEIGHT_MASK + 1)

_UINT32 = 0xFFFFFFFF
_UINT64 = 0xFFFFFFFFFFFFFFFF
_EPOCH_OFFSET_TS = POSTGRES_EPOCH_TS - UNIX_EPOCH_TS


@dataclass(frozen=True)
class Interval:
    """A month/day/microsecond interval."""

    months: int = 0
    days: int = 0
    micros: int = 0


@dataclass(frozen=True)
class TimeTZ:
    """Time of day in microseconds with a UTC offset in seconds."""

    micros: int = 0
    offset: int = 0


@dataclass(frozen=True)
class DecimalConfig:
    """Header of a binary numeric value."""

    scale: int
    ndigits: int
    weight: int
    is_negative: bool


def _signed(value, bits):
    if value >= 1 << (bits - 1):
        return value - (1 << bits)
    return value


def power_of_ten(index, wide=False):
    """Return 10**index; up to 10**18, or up to 10**38 when wide."""
    limit = 39 if wide else 19
    if not 0 <= index < limit:
        raise ValueError(f"power of ten out of range: {index}")
    return 10**index


def date_to_postgres(days):
    """Convert days since 1970-01-01 to the unsigned 32-bit wire value.

    math.inf and -math.inf map to the server's infinite dates.
    """
    if days == math.inf:
        return POSTGRES_DATE_INF
    if days == -math.inf:
        return POSTGRES_DATE_NINF
    if days <= POSTGRES_MIN_DATE or days >= POSTGRES_MAX_DATE:
        raise ValueError(f'DATE "{days}" is out of range for Postgres\' DATE field')
    return (days + UNIX_EPOCH_JDATE - POSTGRES_EPOCH_JDATE) & _UINT32


def date_from_postgres(julian):
    """Convert a 32-bit wire date to days since 1970-01-01 (or +/-math.inf)."""
    julian &= _UINT32
    if julian == POSTGRES_DATE_INF:
        return math.inf
    if julian == POSTGRES_DATE_NINF:
        return -math.inf
    return _signed((julian + POSTGRES_EPOCH_JDATE - UNIX_EPOCH_JDATE) & _UINT32, 32)


def timestamp_to_postgres(micros):
    """Convert microseconds since 1970 to the unsigned 64-bit wire value."""
    if micros == math.inf:
        return POSTGRES_INFINITY
    if micros == -math.inf:
        return POSTGRES_NINFINITY
    return (micros - _EPOCH_OFFSET_TS) & _UINT64


def timestamp_from_postgres(value):
    """Convert a 64-bit wire timestamp to microseconds since 1970 (or +/-math.inf)."""
    value &= _UINT64
    if value == POSTGRES_INFINITY:
        return math.inf
    if value == POSTGRES_NINFINITY:
        return -math.inf
    return _signed((value + _EPOCH_OFFSET_TS) & _UINT64, 64)


def numeric_sign(is_short, header1):
    """Sign bits of a numeric header."""
    if is_short:
        return NUMERIC_NEG if header1 & NUMERIC_SHORT_SIGN_MASK else NUMERIC_POS
    return header1 & NUMERIC_SIGN_MASK


def numeric_dscale(is_short, header1):
    """Display scale of a numeric header."""
    if is_short:
        return (header1 & NUMERIC_SHORT_DSCALE_MASK) >> NUMERIC_SHORT_DSCALE_SHIFT
    return header1 & NUMERIC_DSCALE_MASK


def numeric_weight(is_short, header1, header2):
    """Weight of a numeric value; short headers carry a 7-bit signed weight."""
    if is_short:
        high = ~NUMERIC_SHORT_WEIGHT_MASK if header1 & NUMERIC_SHORT_WEIGHT_SIGN_MASK else 0
        return high | (header1 & NUMERIC_SHORT_WEIGHT_MASK)
    return header2