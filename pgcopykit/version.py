"""Server version numbers and parsing of the server's version banner."""

import enum
import re
from dataclasses import dataclass

_NUMBER = re.compile(r"[0-9]+")
_FIRST_DIGIT = re.compile(r"[0-9]")


class PostgresInstanceType(enum.Enum):
    """Kind of server the version string came from."""

    UNKNOWN = enum.auto()
    POSTGRES = enum.auto()
    AURORA = enum.auto()


@dataclass
class PostgresVersion:
    """A major.minor.patch server version.

    Ordering compares only the numeric parts.
    """

    major: int = 0
    minor: int = 0
    patch: int = 0
    instance_type: PostgresInstanceType = PostgresInstanceType.POSTGRES

    def _key(self):
        return (self.major, self.minor, self.patch)

    def __lt__(self, other):
        if not isinstance(other, PostgresVersion):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other):
        if not isinstance(other, PostgresVersion):
            return NotImplemented
        return not other._key() < self._key()

    def __gt__(self, other):
        if not isinstance(other, PostgresVersion):
            return NotImplemented
        return other._key() < self._key()

    def __ge__(self, other):
        if not isinstance(other, PostgresVersion):
            return NotImplemented
        return not self._key() < other._key()


def extract_postgres_version(version_str):
    """Parse up to three dot-separated numbers from a version banner.

    Scanning starts at the first digit. A banner that does not mention
    PostgreSQL yields an UNKNOWN instance type.
    """
    result = PostgresVersion()
    if "PostgreSQL" not in version_str:
        result.instance_type = PostgresInstanceType.UNKNOWN

    first = _FIRST_DIGIT.search(version_str)
    if first is None:
        return result

    parts = []
    pos = first.start()
    while len(parts) < 3:
        match = _NUMBER.match(version_str, pos)
        if match is None:
            break
        parts.append(int(match.group()))
        pos = match.end()
        if pos >= len(version_str) or version_str[pos] != ".":
            break
        pos += 1

    for name, value in zip(("major", "minor", "patch"), parts):
        setattr(result, name, value)
    return result