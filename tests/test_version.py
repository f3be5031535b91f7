import pytest

from pgcopykit.version import (
    PostgresInstanceType,
    PostgresVersion,
    extract_postgres_version,
)


def test_typical_banner():
    v = extract_postgres_version(
        "PostgreSQL 15.13 on x86_64-pc-linux-gnu, compiled by gcc 12.2.0, 64-bit"
    )
    assert (v.major, v.minor, v.patch) == (15, 13, 0)
    assert v.instance_type is PostgresInstanceType.POSTGRES


def test_three_part_version():
    v = extract_postgres_version("PostgreSQL 9.6.24")
    assert (v.major, v.minor, v.patch) == (9, 6, 24)


def test_only_three_parts_read():
    v = extract_postgres_version("PostgreSQL 1.2.3.4")
    assert (v.major, v.minor, v.patch) == (1, 2, 3)


def test_trailing_dot_stops():
    v = extract_postgres_version("PostgreSQL 16.")
    assert (v.major, v.minor, v.patch) == (16, 0, 0)


def test_non_postgres_banner_is_unknown():
    v = extract_postgres_version("SomethingElse 3.1")
    assert v.instance_type is PostgresInstanceType.UNKNOWN
    assert (v.major, v.minor) == (3, 1)


def test_empty_string():
    v = extract_postgres_version("")
    assert v == PostgresVersion(instance_type=PostgresInstanceType.UNKNOWN)


def test_no_digits():
    v = extract_postgres_version("PostgreSQL devel")
    assert (v.major, v.minor, v.patch) == (0, 0, 0)
    assert v.instance_type is PostgresInstanceType.POSTGRES


@pytest.mark.parametrize(
    "low, high",
    [
        (PostgresVersion(9, 6), PostgresVersion(10, 0)),
        (PostgresVersion(14, 1), PostgresVersion(14, 2)),
        (PostgresVersion(14, 2, 1), PostgresVersion(14, 2, 3)),
    ],
)
def test_ordering(low, high):
    assert low < high
    assert high > low
    assert low <= high
    assert high >= low
    assert not high < low
    assert not low >= high


def test_ordering_ignores_instance_type():
    a = PostgresVersion(13, 0, 0, PostgresInstanceType.AURORA)
    b = PostgresVersion(13, 0, 0, PostgresInstanceType.POSTGRES)
    assert a <= b
    assert a >= b
    assert not a < b


def test_parsed_versions_compare():
    old = extract_postgres_version("PostgreSQL 12.4")
    new = extract_postgres_version("PostgreSQL 12.10")
    assert old < new