"""Encode and decode PostgreSQL COPY data and map PostgreSQL types."""

__version__ = "0.1.0"

__all__ = [
    "binary_reader",
    "binary_writer",
    "conversion",
    "oids",
    "text_writer",
    "types",
    "version",
]