"""
cluster-harness: feature gating and simulator control for cluster integration tests.

Decides whether a test scenario can run against the targeted deployment (a real
server of a given version, or the behavioural simulator), advances time for
expiry tests, and waits for new collections to become visible.
"""

__version__ = "0.1.0"

from .cluster import ClusterContext
from .errors import (
    CollectionNotFoundError,
    CollectionWaitTimeout,
    ConfigurationError,
    DatasetError,
    DocumentNotFoundError,
    HarnessError,
    HarnessSetupError,
    InvalidNodeVersion,
    MockControlError,
)
from .features import WILDCARD, Feature
from .flags import FeatureFlag, FeatureFlags, FlagState, parse_feature_flags
from .mock import Command, MockCommand, MockControl
from .version import NodeVersion
from .waiting import wait_for_collection

__all__ = [
    "ClusterContext",
    "Command",
    "CollectionNotFoundError",
    "CollectionWaitTimeout",
    "ConfigurationError",
    "DatasetError",
    "DocumentNotFoundError",
    "Feature",
    "FeatureFlag",
    "FeatureFlags",
    "FlagState",
    "HarnessError",
    "HarnessSetupError",
    "InvalidNodeVersion",
    "MockCommand",
    "MockControl",
    "NodeVersion",
    "WILDCARD",
    "parse_feature_flags",
    "wait_for_collection",
]
