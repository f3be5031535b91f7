"""Logical column types and their mapping to and from PostgreSQL types."""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from pgcopykit import oids


class LogicalTypeId(enum.Enum):
    """Kinds of logical column types."""

    BOOLEAN = enum.auto()
    TINYINT = enum.auto()
    SMALLINT = enum.auto()
    INTEGER = enum.auto()
    BIGINT = enum.auto()
    HUGEINT = enum.auto()
    UTINYINT = enum.auto()
    USMALLINT = enum.auto()
    UINTEGER = enum.auto()
    UBIGINT = enum.auto()
    UHUGEINT = enum.auto()
    FLOAT = enum.auto()
    DOUBLE = enum.auto()
    DECIMAL = enum.auto()
    VARCHAR = enum.auto()
    BLOB = enum.auto()
    BIT = enum.auto()
    DATE = enum.auto()
    TIME = enum.auto()
    TIME_TZ = enum.auto()
    TIMESTAMP = enum.auto()
    TIMESTAMP_SEC = enum.auto()
    TIMESTAMP_MS = enum.auto()
    TIMESTAMP_NS = enum.auto()
    TIMESTAMP_TZ = enum.auto()
    INTERVAL = enum.auto()
    UUID = enum.auto()
    LIST = enum.auto()
    STRUCT = enum.auto()
    MAP = enum.auto()
    UNION = enum.auto()
    ENUM = enum.auto()


_DISPLAY_NAMES = {
    LogicalTypeId.TIME_TZ: "TIME WITH TIME ZONE",
    LogicalTypeId.TIMESTAMP_TZ: "TIMESTAMP WITH TIME ZONE",
    LogicalTypeId.TIMESTAMP_SEC: "TIMESTAMP_S",
}


@dataclass(frozen=True)
class LogicalType:
    """A column type, optionally carrying a user-facing alias."""

    id: LogicalTypeId
    child: Optional[LogicalType] = None
    fields: tuple = ()
    width: int = 0
    scale: int = 0
    values: tuple = ()
    alias: Optional[str] = None

    @staticmethod
    def list_of(child):
        return LogicalType(LogicalTypeId.LIST, child=child)

    @staticmethod
    def struct_of(fields):
        pairs = fields.items() if isinstance(fields, Mapping) else fields
        return LogicalType(LogicalTypeId.STRUCT, fields=tuple((name, t) for name, t in pairs))

    @staticmethod
    def decimal(width, scale):
        return LogicalType(LogicalTypeId.DECIMAL, width=width, scale=scale)

    @staticmethod
    def enum_of(values):
        return LogicalType(LogicalTypeId.ENUM, values=tuple(values))

    def with_alias(self, alias):
        return LogicalType(self.id, self.child, self.fields, self.width, self.scale, self.values, alias)

    def __str__(self):
        if self.alias:
            return self.alias
        if self.id is LogicalTypeId.LIST:
            return f"{self.child}[]"
        if self.id is LogicalTypeId.STRUCT:
            return "STRUCT(" + ", ".join(f"{name} {t}" for name, t in self.fields) + ")"
        if self.id is LogicalTypeId.DECIMAL:
            return f"DECIMAL({self.width},{self.scale})"
        if self.id is LogicalTypeId.ENUM:
            return "ENUM(" + ", ".join("'" + v.replace("'", "''") + "'" for v in self.values) + ")"
        return _DISPLAY_NAMES.get(self.id, self.id.name)


def _simple(type_id):
    return LogicalType(type_id)


BOOLEAN = _simple(LogicalTypeId.BOOLEAN)
SMALLINT = _simple(LogicalTypeId.SMALLINT)
INTEGER = _simple(LogicalTypeId.INTEGER)
BIGINT = _simple(LogicalTypeId.BIGINT)
UINTEGER = _simple(LogicalTypeId.UINTEGER)
FLOAT = _simple(LogicalTypeId.FLOAT)
DOUBLE = _simple(LogicalTypeId.DOUBLE)
VARCHAR = _simple(LogicalTypeId.VARCHAR)
BLOB = _simple(LogicalTypeId.BLOB)
DATE = _simple(LogicalTypeId.DATE)
TIME = _simple(LogicalTypeId.TIME)
TIME_TZ = _simple(LogicalTypeId.TIME_TZ)
TIMESTAMP = _simple(LogicalTypeId.TIMESTAMP)
TIMESTAMP_TZ = _simple(LogicalTypeId.TIMESTAMP_TZ)
INTERVAL = _simple(LogicalTypeId.INTERVAL)
UUID = _simple(LogicalTypeId.UUID)
GEOMETRY = BLOB.with_alias("WKB_BLOB")


class PostgresTypeAnnotation(enum.Enum):
    """How a server value must be treated when it is read."""

    STANDARD = enum.auto()
    CAST_TO_VARCHAR = enum.auto()
    NUMERIC_AS_DOUBLE = enum.auto()
    CTID = enum.auto()
    JSONB = enum.auto()
    FIXED_LENGTH_CHAR = enum.auto()
    GEOM_POINT = enum.auto()
    GEOM_LINE = enum.auto()
    GEOM_LINE_SEGMENT = enum.auto()
    GEOM_BOX = enum.auto()
    GEOM_PATH = enum.auto()
    GEOM_POLYGON = enum.auto()
    GEOM_CIRCLE = enum.auto()


@dataclass
class PostgresType:
    """Server-side details of a column type, nested like the logical type."""

    oid: int = 0
    info: PostgresTypeAnnotation = PostgresTypeAnnotation.STANDARD
    children: list = field(default_factory=list)


@dataclass
class PostgresTypeData:
    """A type as described by the system catalog."""

    type_modifier: int = 0
    type_name: str = ""
    array_dimensions: int = 0


class CopyFormat(enum.Enum):
    AUTO = 0
    BINARY = 1
    TEXT = 2


@dataclass
class CopyState:
    """Options for writing COPY data."""

    format: CopyFormat = CopyFormat.AUTO
    null_byte_replacement: Optional[str] = None

    @property
    def has_null_byte_replacement(self):
        return self.null_byte_replacement is not None


class IsolationLevel(enum.Enum):
    READ_COMMITTED = enum.auto()
    REPEATABLE_READ = enum.auto()
    SERIALIZABLE = enum.auto()


def type_to_string(logical_type):
    """Render a logical type as a PostgreSQL type name for DDL."""
    if logical_type.alias:
        if logical_type.alias.lower() == "wkb_blob":
            return "GEOMETRY"
        return logical_type.alias
    tid = logical_type.id
    if tid is LogicalTypeId.FLOAT:
        return "REAL"
    if tid is LogicalTypeId.DOUBLE:
        return "FLOAT"
    if tid is LogicalTypeId.BLOB:
        return "BYTEA"
    if tid is LogicalTypeId.LIST:
        return type_to_string(logical_type.child) + "[]"
    if tid is LogicalTypeId.ENUM:
        raise NotImplementedError(
            "Enums in Postgres must be named - unnamed enums are not supported. "
            "Use CREATE TYPE to create a named enum."
        )
    if tid is LogicalTypeId.STRUCT:
        raise NotImplementedError(
            "Composite types in Postgres must be named - unnamed composite types are not "
            "supported. Use CREATE TYPE to create a named composite type."
        )
    if tid is LogicalTypeId.MAP:
        raise NotImplementedError("MAP type not supported in Postgres")
    if tid is LogicalTypeId.UNION:
        raise NotImplementedError("UNION type not supported in Postgres")
    return str(logical_type)


def remove_alias(logical_type):
    """Strip a user alias from a composite or enum type."""
    if not logical_type.alias:
        return logical_type
    alias = logical_type.alias.lower()
    if alias == "json":
        return logical_type
    if alias == "geometry":
        return GEOMETRY
    if logical_type.id is LogicalTypeId.STRUCT:
        return LogicalType.struct_of(logical_type.fields)
    if logical_type.id is LogicalTypeId.ENUM:
        return LogicalType.enum_of(logical_type.values)
    raise ValueError("Unsupported logical type for RemoveAlias")


_GEOMETRY_ANNOTATIONS = {
    "line": PostgresTypeAnnotation.GEOM_LINE,
    "lseg": PostgresTypeAnnotation.GEOM_LINE_SEGMENT,
    "box": PostgresTypeAnnotation.GEOM_BOX,
    "path": PostgresTypeAnnotation.GEOM_PATH,
    "polygon": PostgresTypeAnnotation.GEOM_POLYGON,
    "circle": PostgresTypeAnnotation.GEOM_CIRCLE,
}

_PLAIN_TYPES = {
    "bool": BOOLEAN,
    "int2": SMALLINT,
    "int4": INTEGER,
    "int8": BIGINT,
    "oid": UINTEGER,
    "float4": FLOAT,
    "float8": DOUBLE,
    "varchar": VARCHAR,
    "text": VARCHAR,
    "json": VARCHAR,
    "geometry": GEOMETRY,
    "date": DATE,
    "bytea": BLOB,
    "time": TIME,
    "timetz": TIME_TZ,
    "timestamp": TIMESTAMP,
    "timestamptz": TIMESTAMP_TZ,
    "interval": INTERVAL,
    "uuid": UUID,
}


def _numeric_type(type_modifier, postgres_type):
    width = ((type_modifier - 4) >> 16) & 0xFFFF
    scale = (((type_modifier - 4) & 0x7FF) ^ 1024) - 1024
    if type_modifier == -1 or width < 0 or scale < 0 or width > 38:
        postgres_type.info = PostgresTypeAnnotation.NUMERIC_AS_DOUBLE
        return DOUBLE
    return LogicalType.decimal(width, scale)


def type_to_logical_type(type_info, array_as_varchar=False, lookup_type=None):
    """Map a catalog type to a logical type.

    Returns a (LogicalType, PostgresType) pair. lookup_type, when given,
    resolves a user-defined type name to a (LogicalType, PostgresType) pair
    or None; without it unknown types are read as text.
    """
    postgres_type = PostgresType()
    name = type_info.type_name

    if name.startswith("_"):
        if lookup_type is not None and array_as_varchar:
            postgres_type.info = PostgresTypeAnnotation.CAST_TO_VARCHAR
            return VARCHAR, postgres_type
        dimensions = type_info.array_dimensions or 1
        child_info = PostgresTypeData(type_modifier=type_info.type_modifier, type_name=name[1:])
        child_type, child_pg = type_to_logical_type(child_info, array_as_varchar, lookup_type)
        for _ in range(1, dimensions):
            child_pg = PostgresType(children=[child_pg])
            child_type = LogicalType.list_of(child_type)
        postgres_type.children.append(child_pg)
        return LogicalType.list_of(child_type), postgres_type

    if name in _PLAIN_TYPES:
        return _PLAIN_TYPES[name], postgres_type
    if name == "numeric":
        return _numeric_type(type_info.type_modifier, postgres_type), postgres_type
    if name in ("char", "bpchar"):
        postgres_type.info = PostgresTypeAnnotation.FIXED_LENGTH_CHAR
        return VARCHAR, postgres_type
    if name == "jsonb":
        postgres_type.info = PostgresTypeAnnotation.JSONB
        return VARCHAR, postgres_type
    if name == "point":
        postgres_type.info = PostgresTypeAnnotation.GEOM_POINT
        return LogicalType.struct_of([("x", DOUBLE), ("y", DOUBLE)]), postgres_type
    if name in _GEOMETRY_ANNOTATIONS:
        postgres_type.info = _GEOMETRY_ANNOTATIONS[name]
        return LogicalType.list_of(DOUBLE), postgres_type

    entry = lookup_type(name) if lookup_type is not None else None
    if entry is None:
        postgres_type.info = PostgresTypeAnnotation.CAST_TO_VARCHAR
        return VARCHAR, postgres_type
    user_type, user_pg_type = entry
    return remove_alias(user_type), user_pg_type


_PASS_THROUGH = {
    LogicalTypeId.BOOLEAN,
    LogicalTypeId.SMALLINT,
    LogicalTypeId.INTEGER,
    LogicalTypeId.BIGINT,
    LogicalTypeId.FLOAT,
    LogicalTypeId.DOUBLE,
    LogicalTypeId.ENUM,
    LogicalTypeId.BLOB,
    LogicalTypeId.DATE,
    LogicalTypeId.DECIMAL,
    LogicalTypeId.INTERVAL,
    LogicalTypeId.TIME,
    LogicalTypeId.TIME_TZ,
    LogicalTypeId.TIMESTAMP,
    LogicalTypeId.TIMESTAMP_TZ,
    LogicalTypeId.UUID,
    LogicalTypeId.VARCHAR,
}

_WIDENED = {
    LogicalTypeId.TIMESTAMP_SEC: TIMESTAMP,
    LogicalTypeId.TIMESTAMP_MS: TIMESTAMP,
    LogicalTypeId.TIMESTAMP_NS: TIMESTAMP,
    LogicalTypeId.TINYINT: SMALLINT,
    LogicalTypeId.UTINYINT: BIGINT,
    LogicalTypeId.USMALLINT: BIGINT,
    LogicalTypeId.UINTEGER: BIGINT,
    LogicalTypeId.UBIGINT: LogicalType.decimal(20, 0),
    LogicalTypeId.HUGEINT: DOUBLE,
}


def to_postgres_type(logical_type):
    """Map a logical type to one the server can store."""
    tid = logical_type.id
    if tid in _PASS_THROUGH:
        return logical_type
    if tid is LogicalTypeId.LIST:
        return LogicalType.list_of(to_postgres_type(logical_type.child))
    if tid is LogicalTypeId.STRUCT:
        converted = LogicalType.struct_of((name, to_postgres_type(t)) for name, t in logical_type.fields)
        return converted.with_alias(logical_type.alias)
    return _WIDENED.get(tid, VARCHAR)


def create_empty_postgres_type(logical_type):
    """Build a PostgresType tree with default annotations matching the type's nesting."""
    if logical_type.id is LogicalTypeId.STRUCT:
        children = [create_empty_postgres_type(t) for _, t in logical_type.fields]
    elif logical_type.id is LogicalTypeId.LIST:
        children = [create_empty_postgres_type(logical_type.child)]
    else:
        children = []
    return PostgresType(children=children)


_TYPE_OIDS = {
    LogicalTypeId.BOOLEAN: oids.BOOLOID,
    LogicalTypeId.SMALLINT: oids.INT2OID,
    LogicalTypeId.INTEGER: oids.INT4OID,
    LogicalTypeId.BIGINT: oids.INT8OID,
    LogicalTypeId.FLOAT: oids.FLOAT4OID,
    LogicalTypeId.DOUBLE: oids.FLOAT8OID,
    LogicalTypeId.VARCHAR: oids.VARCHAROID,
    LogicalTypeId.BLOB: oids.BYTEAOID,
    LogicalTypeId.DATE: oids.DATEOID,
    LogicalTypeId.TIME: oids.TIMEOID,
    LogicalTypeId.TIMESTAMP: oids.TIMESTAMPOID,
    LogicalTypeId.INTERVAL: oids.INTERVALOID,
    LogicalTypeId.TIME_TZ: oids.TIMETZOID,
    LogicalTypeId.TIMESTAMP_TZ: oids.TIMESTAMPTZOID,
    LogicalTypeId.BIT: oids.BITOID,
    LogicalTypeId.UUID: oids.UUIDOID,
}


def supported_postgres_oid(logical_type):
    """Whether the type has a built-in server OID."""
    return logical_type.id in _TYPE_OIDS


def to_postgres_oid(logical_type):
    """Return the server OID of a type; lists give their element's OID."""
    while logical_type.id is LogicalTypeId.LIST:
        logical_type = logical_type.child
    try:
        return _TYPE_OIDS[logical_type.id]
    except KeyError:
        raise NotImplementedError(
            f"Unsupported type for Postgres array copy: {logical_type}"
        ) from None


_OID_NAMES = {
    oids.BOOLOID: "bool",
    oids.INT2OID: "int2",
    oids.INT4OID: "int4",
    oids.INT8OID: "int8",
    oids.FLOAT4OID: "float4",
    oids.FLOAT8OID: "float8",
    oids.CHAROID: "char",
    oids.BPCHAROID: "char",
    oids.TEXTOID: "varchar",
    oids.VARCHAROID: "varchar",
    oids.JSONOID: "json",
    oids.BYTEAOID: "bytea",
    oids.DATEOID: "date",
    oids.TIMEOID: "time",
    oids.TIMESTAMPOID: "timestamp",
    oids.INTERVALOID: "interval",
    oids.TIMETZOID: "timetz",
    oids.TIMESTAMPTZOID: "timestamptz",
    oids.BITOID: "bit",
    oids.UUIDOID: "uuid",
    oids.NUMERICOID: "numeric",
    oids.JSONBOID: "jsonb",
    oids.BOOLARRAYOID: "_bool",
    oids.CHARARRAYOID: "_char",
    oids.BPCHARARRAYOID: "_char",
    oids.INT8ARRAYOID: "_int8",
    oids.INT2ARRAYOID: "_int2",
    oids.INT4ARRAYOID: "_int4",
    oids.FLOAT4ARRAYOID: "_float4",
    oids.FLOAT8ARRAYOID: "_float8",
    oids.TEXTARRAYOID: "_varchar",
    oids.VARCHARARRAYOID: "_varchar",
    oids.JSONARRAYOID: "_json",
    oids.JSONBARRAYOID: "_jsonb",
    oids.NUMERICARRAYOID: "_numeric",
    oids.UUIDARRAYOID: "_uuid",
    oids.DATEARRAYOID: "_date",
    oids.TIMEARRAYOID: "_time",
    oids.TIMESTAMPARRAYOID: "_timestamp",
    oids.TIMESTAMPTZARRAYOID: "_timestamptz",
    oids.INTERVALARRAYOID: "_interval",
    oids.TIMETZARRAYOID: "_timetz",
    oids.BITARRAYOID: "_bit",
}


def postgres_oid_to_name(oid):
    """Name under which a result column's OID is interpreted."""
    return _OID_NAMES.get(oid, "unsupported_type")


_KEYWORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric both case cast check collate column
    constraint create current_catalog current_date current_role current_time current_timestamp
    current_user default deferrable desc distinct do else end except false fetch for foreign
    from grant group having in initially intersect into lateral leading limit localtime
    localtimestamp not null offset on only or order placing primary references returning
    select session_user some symmetric table then to trailing true union unique user using
    variadic when where window with
    authorization binary collation concurrently cross current_schema freeze full ilike inner
    is isnull join left like natural notnull outer overlaps right similar tablesample verbose
    between bigint bit boolean char character coalesce dec decimal exists extract float
    greatest grouping inout int integer interval least national nchar none nullif numeric out
    overlay position precision real row setof smallint substring time timestamp treat trim
    values varchar
    """.split()
)

_PLAIN_IDENTIFIER = re.compile(r"[a-z_][a-z0-9_]*\Z")


def quote_postgres_identifier(text):
    """Double-quote an identifier when it is not a plain lower-case name or is a keyword."""
    if text and (not _PLAIN_IDENTIFIER.match(text) or text in _KEYWORDS):
        return '"' + text.replace('"', '""') + '"'
    return text