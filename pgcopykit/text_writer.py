"""Writer for the PostgreSQL text COPY format."""

from pgcopykit.types import CopyState, LogicalTypeId

_NULL_MARKER = "\b"

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\b": "\\b",
    "\f": "\\f",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}

_NULL_BYTE_MESSAGE = (
    "Attempting to write a VARCHAR value with a NULL-byte. Postgres does not "
    "support NULL-bytes in VARCHAR values.\n* SET pg_null_byte_replacement='' "
    "to remove NULL bytes or replace them with another character"
)


class TextWriter:
    """Accumulates rows in the text COPY format; NULL is written as a backspace."""

    def __init__(self, state=None):
        self.state = state if state is not None else CopyState()
        self._parts = []

    def getvalue(self):
        """Return everything written so far, encoded as UTF-8."""
        return "".join(self._parts).encode("utf-8")

    def write_null(self):
        self._parts.append(_NULL_MARKER)

    def write_char(self, char):
        """Write one character, escaping it where the format requires."""
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        if char == "\x00":
            if not self.state.has_null_byte_replacement:
                raise ValueError(_NULL_BYTE_MESSAGE)
            for replacement in self.state.null_byte_replacement:
                self.write_char(replacement)
            return
        self._parts.append(_ESCAPES.get(char, char))

    def write_varchar(self, text):
        for char in text:
            self.write_char(char)

    def write_value(self, value, logical_type):
        """Write one VARCHAR field; None is written as NULL."""
        if logical_type.id is not LogicalTypeId.VARCHAR:
            raise TypeError("Text format can only write VARCHAR columns")
        if value is None:
            self.write_null()
        else:
            self.write_varchar(value)

    def write_separator(self):
        self._parts.append("\t")

    def finish_row(self):
        self._parts.append("\n")

    def write_footer(self):
        self._parts.append("\\.\n")