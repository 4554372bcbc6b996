"""
Feature flag overrides.

A test run can force features on or off regardless of the catalog by passing
an ordered list of flags, e.g. ``--cluster-features "-*,+keyvalue"``. Flags
are evaluated in order and the last matching flag wins; a wildcard flag
matches every feature. A specific flag does not beat a wildcard by itself,
only list position decides.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Sequence, Union, overload

from loguru import logger

from .features import WILDCARD, Feature, FeatureLike, lookup_feature


class FlagState(Enum):
    """Outcome of resolving the override list for one feature."""

    UNSET = "unset"
    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass(frozen=True)
class FeatureFlag:
    """Force a feature (or every feature, with ``*``) on or off."""

    feature: str
    enabled: bool

    def __post_init__(self) -> None:
        # Normalise Feature members to their token so comparisons stay plain str.
        if isinstance(self.feature, Feature):
            object.__setattr__(self, "feature", self.feature.value)

    def matches(self, token: str) -> bool:
        return self.feature == token or self.feature == WILDCARD

    def __str__(self) -> str:
        return f"{'+' if self.enabled else '-'}{self.feature}"


class FeatureFlags(Sequence[FeatureFlag]):
    """Immutable, ordered list of feature flags."""

    def __init__(self, flags: Iterable[FeatureFlag] = ()):
        self._flags: tuple[FeatureFlag, ...] = tuple(flags)

    @overload
    def __getitem__(self, index: int) -> FeatureFlag: ...

    @overload
    def __getitem__(self, index: slice) -> FeatureFlags: ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return FeatureFlags(self._flags[index])
        return self._flags[index]

    def __len__(self) -> int:
        return len(self._flags)

    def __iter__(self) -> Iterator[FeatureFlag]:
        return iter(self._flags)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FeatureFlags):
            return self._flags == other._flags
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._flags)

    def __repr__(self) -> str:
        return f"FeatureFlags({list(self._flags)!r})"

    def __str__(self) -> str:
        return ",".join(str(flag) for flag in self._flags)

    def resolve(self, feature: FeatureLike) -> FlagState:
        """Resolve the override state of ``feature``.

        Scans every flag in order; each flag targeting ``feature`` or the
        wildcard overwrites the result, so the last match wins.

        Args:
            feature: Feature or feature token to resolve

        Returns:
            FlagState.UNSET when no flag matches, otherwise the state set by
            the last matching flag
        """
        token = feature.value if isinstance(feature, Feature) else feature
        state = FlagState.UNSET
        for flag in self._flags:
            if flag.matches(token):
                state = FlagState.ENABLED if flag.enabled else FlagState.DISABLED
        return state


def parse_feature_flags(text: str | None) -> FeatureFlags:
    """Parse a comma-separated flag string such as ``"+query, -*, subdoc"``.

    A leading ``-`` disables the feature, a leading ``+`` or no prefix enables
    it. Empty entries are ignored. Unknown tokens are kept, since they can only
    match themselves, but are reported as warnings.
    """
    flags = []
    for raw in (text or "").split(","):
        entry = raw.strip()
        if not entry:
            continue

        enabled = True
        if entry[0] in "+-":
            enabled = entry[0] == "+"
            entry = entry[1:].strip()
        if not entry:
            logger.warning("Ignoring feature flag without a feature: {!r}", raw)
            continue

        if entry != WILDCARD and lookup_feature(entry) is None:
            logger.warning("Unknown feature in feature flags: {}", entry)
        flags.append(FeatureFlag(entry, enabled))

    return FeatureFlags(flags)
