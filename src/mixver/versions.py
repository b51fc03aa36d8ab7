"""Release versions and their ordering."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

from mixver.errors import VersionParseError

_VERSION_PATTERN = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.\-]+))?$")


@total_ordering
@dataclass(frozen=True)
class Version:
    """A release version such as ``v24.1.3`` or ``v24.2.0-beta.1``.

    Pre-releases sort before the release they precede, so
    ``v24.2.0-beta.1 < v24.2.0``. Two pre-releases of the same release
    compare by their suffix text.
    """

    major: int
    minor: int
    patch: int
    prerelease: str = field(default="")

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse ``vMAJOR.MINOR.PATCH[-suffix]``; the leading ``v`` is optional."""
        match = _VERSION_PATTERN.match(text.strip()) if isinstance(text, str) else None
        if match is None:
            raise VersionParseError(
                message=f"Cannot parse version {text!r}",
                field="version",
                value=text,
                expected="vMAJOR.MINOR.PATCH",
            )
        major, minor, patch, prerelease = match.groups()
        return cls(int(major), int(minor), int(patch), prerelease or "")

    @classmethod
    def coerce(cls, value: Version | str) -> Version:
        if isinstance(value, Version):
            return value
        return cls.parse(value)

    @property
    def series(self) -> str:
        return f"{self.major}.{self.minor}"

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _key(self) -> tuple[int, int, int, int, str]:
        # Releases rank after any of their pre-releases.
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, self.prerelease)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def at_least(self, other: Version | str) -> bool:
        """Return True if this version is the same as or newer than ``other``."""
        return self >= Version.coerce(other)

    def __str__(self) -> str:
        base = f"v{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.prerelease}" if self.prerelease else base


def parse_versions(texts: list[str]) -> list[Version]:
    """Parse a list of version strings, preserving order."""
    return [Version.parse(text) for text in texts]
