# evm/core/version.py
"""Parsing, validation and ordering of Elasticsearch version strings.

A version has exactly three dot-separated components. The first two are
non-negative integers; the third is a non-negative integer or the wildcard
``*``, which stands for "the highest installed patch release".
"""
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from evm.error import InvalidVersionError

WILDCARD = "*"
_VERSION_RE = re.compile(r"([0-9]+)\.([0-9]+)\.([0-9]+|\*)")


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: Optional[int]  # None for a wildcard

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parses and validates a version string.

        Raises:
            InvalidVersionError: If `text` is not of the form X.Y.Z or X.Y.*.
        """
        if not isinstance(text, str):
            raise InvalidVersionError(text)
        match = _VERSION_RE.fullmatch(text)
        if not match:
            raise InvalidVersionError(text)
        major, minor, patch = match.groups()
        return cls(
            int(major), int(minor), None if patch == WILDCARD else int(patch)
        )

    @property
    def is_wildcard(self) -> bool:
        return self.patch is None

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, -1 if self.patch is None else self.patch)

    def matches(self, other: "Version") -> bool:
        """True if `other` is this version, or fits this wildcard."""
        if (self.major, self.minor) != (other.major, other.minor):
            return False
        return self.is_wildcard or self.patch == other.patch

    def __str__(self) -> str:
        patch = WILDCARD if self.patch is None else str(self.patch)
        return f"{self.major}.{self.minor}.{patch}"


def validate_version(text: str, allow_wildcard: bool = True) -> Version:
    """Validates `text` and returns the parsed version.

    Args:
        text: The version string supplied by the user.
        allow_wildcard: When False, a wildcard patch component is rejected.

    Raises:
        InvalidVersionError: If the string is malformed, or is a wildcard
            where an exact version is required.
    """
    parsed = Version.parse(text)
    if parsed.is_wildcard and not allow_wildcard:
        raise InvalidVersionError(
            text, "An exact version (X.Y.Z) is required for this operation."
        )
    return parsed


def sort_versions(versions: Iterable[str], descending: bool = True) -> list:
    """Sorts version strings numerically, component by component."""
    return sorted(
        versions, key=lambda v: Version.parse(v).sort_key, reverse=descending
    )
