"""
Deployment version identity.

A ``NodeVersion`` identifies the release a test run targets: four ordinals,
an opaque qualifier (edition or build tag) and a flag marking the behavioural
simulator. Ordering and equality only look at the four ordinals.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

from packaging.version import InvalidVersion, Version

from .errors import InvalidNodeVersion

# "6.5.0-4960-enterprise", "7.0.0", "5.5.1-community", "1.5.15"
_VERSION_PATTERN = re.compile(
    r"^\s*(?P<release>\d+(?:\.\d+){1,3})"
    r"(?:-(?P<build>\d+))?"
    r"(?:-(?P<qualifier>[A-Za-z0-9][A-Za-z0-9._-]*))?\s*$"
)


@total_ordering
@dataclass(frozen=True, eq=False)
class NodeVersion:
    """Release identity of a deployment.

    Attributes:
        major: Major release ordinal
        minor: Minor release ordinal
        patch: Patch release ordinal
        build: Build ordinal
        qualifier: Opaque edition or tag, ignored by comparisons
        is_mock: True when the deployment is the behavioural simulator
    """

    major: int
    minor: int
    patch: int
    build: int = 0
    qualifier: str = ""
    is_mock: bool = False

    def __post_init__(self) -> None:
        for name, value in zip(("major", "minor", "patch", "build"), self.ordinals):
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @property
    def ordinals(self) -> tuple[int, int, int, int]:
        return (self.major, self.minor, self.patch, self.build)

    def lower(self, other: NodeVersion) -> bool:
        """Return True if this version sorts strictly before ``other``."""
        return self.ordinals < other.ordinals

    def equal(self, other: NodeVersion) -> bool:
        """Return True if all four ordinals match ``other``."""
        return self.ordinals == other.ordinals

    def at_least(self, other: NodeVersion) -> bool:
        return not self.lower(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeVersion):
            return NotImplemented
        return self.equal(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, NodeVersion):
            return NotImplemented
        return self.lower(other)

    def __hash__(self) -> int:
        return hash(self.ordinals)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.build:
            text += f"-{self.build}"
        if self.qualifier:
            text += f"-{self.qualifier}"
        return text

    @classmethod
    def parse(cls, text: str, is_mock: bool = False) -> NodeVersion:
        """Parse a deployment version string.

        Accepts ``MAJOR.MINOR[.PATCH[.BUILD]][-BUILD][-QUALIFIER]``, which
        covers the strings servers report (``6.5.0-4960-enterprise``) as well
        as plain release numbers (``7.0.0``).

        Args:
            text: Version string to parse
            is_mock: Whether the version belongs to the simulator

        Returns:
            The parsed NodeVersion

        Raises:
            InvalidNodeVersion: If the string is not a recognisable version
        """
        match = _VERSION_PATTERN.match(text or "")
        if match is None:
            raise InvalidNodeVersion(f"invalid node version: {text!r}")

        try:
            release = list(Version(match.group("release")).release)
        except InvalidVersion as err:
            raise InvalidNodeVersion(f"invalid node version: {text!r}") from err

        release.extend([0] * (4 - len(release)))
        major, minor, patch, build = release[:4]
        if match.group("build") is not None:
            if build:
                raise InvalidNodeVersion(
                    f"invalid node version: {text!r} (build given twice)"
                )
            build = int(match.group("build"))

        return cls(
            major,
            minor,
            patch,
            build,
            qualifier=match.group("qualifier") or "",
            is_mock=is_mock,
        )
