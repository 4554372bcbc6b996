"""
Deployment context for integration tests.

``ClusterContext`` bundles what a test run knows about its target deployment:
the client handle, the deployment's ``NodeVersion``, the feature flag
overrides from the run configuration and, against the simulator, its control
channel. It is built once during suite setup and never mutated afterwards.

Example:
    ```python
    cluster = ClusterContext(client, NodeVersion.parse("6.5.0"))
    if cluster.not_supports_feature(Feature.DURABILITY):
        pytest.skip("Skipping test as feature not supported")
    cluster.time_travel(timedelta(seconds=2))
    ```
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from .datasets import BreweryDocument, SupportsUpsert, create_brewery_dataset
from .features import FeatureLike, catalog_supports
from .flags import FeatureFlags, FlagState
from .mock import MockControl, time_travel_command
from .version import NodeVersion


@dataclass(frozen=True)
class ClusterContext:
    """
    What a test run knows about the deployment it targets.

    Attributes:
        client: The production client handle, used as-is by tests
        version: Version of the deployment (``is_mock`` marks the simulator)
        feature_flags: Ordered feature flag overrides
        mock: Control channel to the simulator, None against a real deployment
        dataset_dir: Directory to load JSON datasets from (None: bundled data)
    """

    client: Any
    version: NodeVersion
    feature_flags: FeatureFlags = field(default_factory=FeatureFlags)
    mock: Optional[MockControl] = None
    dataset_dir: Optional[Union[str, Path]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.feature_flags, FeatureFlags):
            object.__setattr__(self, "feature_flags", FeatureFlags(self.feature_flags))

    @property
    def is_mock(self) -> bool:
        return self.mock is not None

    def supports_feature(self, feature: FeatureLike) -> bool:
        """
        Decide whether tests requiring ``feature`` can run.

        Feature flag overrides are consulted first; the last matching flag
        decides. Without a matching flag the catalog rule for the simulator or
        the real deployment applies. Unknown features are never supported.

        Args:
            feature: Feature or feature token

        Returns:
            True if the feature is available
        """
        state = self.feature_flags.resolve(feature)
        if state is FlagState.ENABLED:
            return True
        if state is FlagState.DISABLED:
            return False
        return catalog_supports(feature, self.version)

    def not_supports_feature(self, feature: FeatureLike) -> bool:
        return not self.supports_feature(feature)

    def time_travel(self, duration: timedelta) -> None:
        """
        Move the deployment's clock forward by ``duration``.

        Against the simulator a single TIME_TRAVEL command is sent with the
        duration rounded up to whole seconds. Against a real deployment the
        calling thread sleeps for the full duration. Negative durations are
        treated as zero in both modes; the clock never moves backwards.

        Raises:
            MockControlError: If the simulator fails the command
        """
        if duration < timedelta(0):
            logger.warning("Negative time travel {} clamped to zero", duration)
            duration = timedelta(0)
        if self.mock is not None:
            seconds = math.ceil(duration / timedelta(seconds=1))
            logger.info("Time travelling simulator by {}s", seconds)
            self.mock.control(time_travel_command(seconds))
        else:
            logger.info(
                "Sleeping {}s for real deployment", duration.total_seconds()
            )
            time.sleep(duration.total_seconds())

    def default_collection(self, bucket: Any) -> Any:
        return bucket.default_collection()

    def create_brewery_dataset(
        self, collection: SupportsUpsert
    ) -> list[BreweryDocument]:
        """Seed ``collection`` with the beer-sample brewery documents."""
        return create_brewery_dataset(collection, self.dataset_dir)
