# pgcopykit

Tools for producing and decoding PostgreSQL `COPY` data in memory, and for
mapping PostgreSQL types to logical column types.

- `pgcopykit.binary_writer.BinaryWriter` writes the binary `COPY` format: the
  `PGCOPY` header and footer, row field counts, and length-prefixed fields in
  network byte order. It handles integers, booleans, floats, dates, times,
  times with zone, timestamps, intervals, UUIDs, `numeric` decimals, text,
  byte strings, enums, arrays (including multidimensional ones) and composite
  values.
- `pgcopykit.text_writer.TextWriter` writes the tab-separated text `COPY`
  format for `VARCHAR` values, escaping control characters, backslashes and
  double quotes. NULL is written as a backspace character.
- `pgcopykit.binary_reader.BinaryReader` decodes single values from a buffer
  of binary `COPY` data: integers, booleans, floats, dates, times, times with
  zone, timestamps, intervals, UUIDs, raw strings and `numeric` values (as
  exact `Decimal`).
- `pgcopykit.conversion` holds the format's constants (header, epochs,
  infinities, numeric header bits) and the date and timestamp conversions
  between the Unix epoch and the server's wire values.
- `pgcopykit.types` defines `LogicalType` and maps it to and from PostgreSQL
  type names and OIDs: arrays, numeric width and scale, geometry types, and
  user-defined types through a lookup callback.
- `pgcopykit.oids` lists the built-in type OIDs; `oid_name` gives the catalog
  name of one.
- `pgcopykit.version.extract_postgres_version` parses the string returned by
  `SELECT version()`.

## Installation

```
pip install pgcopykit
```

## Writing binary COPY data

```python
from decimal import Decimal

from pgcopykit.binary_writer import BinaryWriter
from pgcopykit.types import INTEGER, VARCHAR, LogicalType

writer = BinaryWriter()
writer.write_header()
writer.begin_row(4)
writer.write_value(42, INTEGER)
writer.write_value("hello", VARCHAR)
writer.write_value(Decimal("12.34"), LogicalType.decimal(10, 2))
writer.write_value([[1, 2], [3, 4]], LogicalType.list_of(LogicalType.list_of(INTEGER)))
writer.write_footer()
payload = writer.getvalue()  # bytes for COPY ... FROM STDIN (FORMAT binary)
```

`None` is written as NULL. Text containing NUL characters raises
`ValueError` unless the copy state names a replacement:

```python
from pgcopykit.types import CopyState

writer = BinaryWriter(CopyState(null_byte_replacement=""))
```

## Writing text COPY data

```python
from pgcopykit.text_writer import TextWriter
from pgcopykit.types import VARCHAR

writer = TextWriter()
writer.write_value("a\tb", VARCHAR)
writer.write_separator()
writer.write_value(None, VARCHAR)
writer.finish_row()
writer.write_footer()
data = writer.getvalue()  # b'a\\tb\t\x08\n\\.\n'
```

## Reading binary values

The reader consumes values front to back; each field's 4-byte length prefix
is read like any other integer.

```python
from pgcopykit.binary_reader import BinaryReader

reader = BinaryReader(payload[19:])      # skip header and field count
length = reader.read_integer(4, signed=True)
value = reader.read_integer(length, signed=True)   # 42
```

`read_decimal()` returns a `Decimal`; `read_date()` and `read_timestamp()`
return days or microseconds since 1970-01-01, or `math.inf` / `-math.inf`.

## Mapping types

```python
from pgcopykit.types import PostgresTypeData, type_to_logical_type

logical, pg_type = type_to_logical_type(PostgresTypeData(type_name="_int4", array_dimensions=2))
print(logical)  # INTEGER[][]
```

Unknown type names become `VARCHAR` with a `CAST_TO_VARCHAR` annotation unless
a `lookup_type` callable resolves them.

## Version strings

```python
from pgcopykit.version import extract_postgres_version

version = extract_postgres_version("PostgreSQL 15.13 on x86_64-pc-linux-gnu")
assert (version.major, version.minor) == (15, 13)
```

## What it does not do

pgcopykit does not connect to a server, run queries or send `COPY` data
anywhere; it only builds and decodes bytes. `BinaryReader` reads individual
values and does not parse whole `COPY` streams (header, rows and field
counts are left to the caller), and there is no reader for the text format.

## Running the tests

```
pip install pgcopykit[test]
pytest
```