"""
Feature catalog.

Each optional behaviour a test scenario may depend on is a ``Feature``. The
catalog maps every feature to the rule deciding whether it is available,
with one table for the behavioural simulator and one for real deployments.

Both tables are built once at import time and exposed read-only, so any number
of test workers can consult them concurrently.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union

from .version import NodeVersion

WILDCARD = "*"


class Feature(str, Enum):
    """Optional capabilities a test scenario can require."""

    KEY_VALUE = "keyvalue"
    VIEW = "view"
    QUERY = "query"
    SUBDOC = "subdoc"
    RBAC = "rbac"
    SEARCH = "search"
    SEARCH_INDEX = "searchindex"
    ANALYTICS = "analytics"
    XATTR = "xattrs"
    COLLECTIONS = "collections"
    SUBDOC_MOCK_BUG = "subdocmockbug"
    ADJOIN = "adjoin"
    EXPAND_MACROS = "expandmacros"
    DURABILITY = "durability"
    USER_GROUP = "usergroup"
    USER_MANAGER = "usermanager"
    ANALYTICS_INDEX = "analyticsindex"
    BUCKET_MGR = "bucketmgr"
    SEARCH_ANALYZE = "searchanalyze"
    ANALYTICS_INDEX_PENDING_MUTATIONS = "analyticspending"
    GET_META = "getmeta"
    PING = "ping"
    VIEW_INDEX_UPSERT_BUG = "viewinsertupsertbug"
    REPLICAS = "replicas"

    def __str__(self) -> str:
        return self.value


FeatureLike = Union[Feature, str]
Rule = Callable[[NodeVersion], bool]

SRV_VER_180 = NodeVersion(1, 8, 0)
SRV_VER_200 = NodeVersion(2, 0, 0)
SRV_VER_400 = NodeVersion(4, 0, 0)
SRV_VER_450 = NodeVersion(4, 5, 0)
SRV_VER_500 = NodeVersion(5, 0, 0)
SRV_VER_551 = NodeVersion(5, 5, 1)
SRV_VER_552 = NodeVersion(5, 5, 2)
SRV_VER_553 = NodeVersion(5, 5, 3)
SRV_VER_600 = NodeVersion(6, 0, 0)
SRV_VER_650 = NodeVersion(6, 5, 0)
SRV_VER_700 = NodeVersion(7, 0, 0)
MOCK_VER_156 = NodeVersion(1, 5, 6, is_mock=True)


def at_least(minimum: NodeVersion) -> Rule:
    """Rule that holds once the deployment reaches ``minimum``."""
    return lambda version: not version.lower(minimum)


def none_of(*releases: NodeVersion) -> Rule:
    """Rule that holds unless the deployment is exactly one of ``releases``."""
    return lambda version: not any(version.equal(release) for release in releases)


def always(value: bool) -> Rule:
    return lambda version: value


# The simulator supports everything not listed here.
MOCK_UNSUPPORTED: frozenset[Feature] = frozenset(
    {
        Feature.SEARCH_INDEX,
        Feature.ANALYTICS,
        Feature.QUERY,
        Feature.SEARCH,
        Feature.XATTR,
        Feature.COLLECTIONS,
        Feature.SUBDOC_MOCK_BUG,
        Feature.EXPAND_MACROS,
        Feature.DURABILITY,
        Feature.USER_GROUP,
        Feature.USER_MANAGER,
        Feature.ANALYTICS_INDEX,
        Feature.BUCKET_MGR,
        Feature.SEARCH_ANALYZE,
        Feature.ANALYTICS_INDEX_PENDING_MUTATIONS,
        Feature.GET_META,
        Feature.PING,
    }
)

MOCK_RULES: Mapping[Feature, Rule] = MappingProxyType(
    {
        **{feature: always(False) for feature in MOCK_UNSUPPORTED},
        Feature.RBAC: at_least(MOCK_VER_156),
    }
)

# Real deployments support nothing that is not listed here.
SERVER_RULES: Mapping[Feature, Rule] = MappingProxyType(
    {
        Feature.KEY_VALUE: at_least(SRV_VER_180),
        Feature.VIEW: at_least(SRV_VER_200),
        Feature.QUERY: at_least(SRV_VER_400),
        Feature.SUBDOC: at_least(SRV_VER_450),
        Feature.XATTR: at_least(SRV_VER_450),
        Feature.EXPAND_MACROS: at_least(SRV_VER_450),
        Feature.RBAC: at_least(SRV_VER_500),
        Feature.SEARCH: at_least(SRV_VER_500),
        Feature.SEARCH_INDEX: at_least(SRV_VER_500),
        Feature.USER_MANAGER: at_least(SRV_VER_500),
        Feature.ANALYTICS: at_least(SRV_VER_600),
        Feature.ANALYTICS_INDEX: at_least(SRV_VER_600),
        Feature.DURABILITY: at_least(SRV_VER_650),
        Feature.USER_GROUP: at_least(SRV_VER_650),
        Feature.SEARCH_ANALYZE: at_least(SRV_VER_650),
        Feature.ANALYTICS_INDEX_PENDING_MUTATIONS: at_least(SRV_VER_650),
        Feature.COLLECTIONS: at_least(SRV_VER_700),
        Feature.SUBDOC_MOCK_BUG: always(True),
        Feature.BUCKET_MGR: always(True),
        Feature.GET_META: always(True),
        Feature.PING: always(True),
        Feature.ADJOIN: none_of(SRV_VER_551, SRV_VER_552, SRV_VER_553),
        Feature.VIEW_INDEX_UPSERT_BUG: none_of(SRV_VER_650),
    }
)


def lookup_feature(token: FeatureLike) -> Optional[Feature]:
    """Return the ``Feature`` for ``token``, or None if it is not in the catalog."""
    if isinstance(token, Feature):
        return token
    try:
        return Feature(token)
    except ValueError:
        return None


def catalog_supports(token: FeatureLike, version: NodeVersion) -> bool:
    """Decide from the catalog alone whether ``version`` supports a feature.

    Tokens outside the catalog are never supported.
    """
    feature = lookup_feature(token)
    if feature is None:
        return False

    if version.is_mock:
        rule = MOCK_RULES.get(feature)
        return True if rule is None else rule(version)

    rule = SERVER_RULES.get(feature)
    return False if rule is None else rule(version)
