"""
Unit tests for ClusterContext.

Tests feature resolution with overrides, time travel against the simulator
and a real deployment, and the dataset helpers.
"""

from dataclasses import FrozenInstanceError
from datetime import timedelta
from unittest.mock import patch

import pytest

from cluster_harness.cluster import ClusterContext
from cluster_harness.errors import DatasetError, MockControlError
from cluster_harness.features import WILDCARD, Feature
from cluster_harness.flags import FeatureFlag, FeatureFlags, parse_feature_flags
from cluster_harness.mock import MockControl
from cluster_harness.version import NodeVersion
from tests.shared.fakes import FakeBucket, RecordingTransport


def server_context(version: str, flags: str = "") -> ClusterContext:
    return ClusterContext(
        client=None,
        version=NodeVersion.parse(version),
        feature_flags=parse_feature_flags(flags),
    )


def mock_context(version: str = "1.5.15", flags: str = "", mock=None) -> ClusterContext:
    return ClusterContext(
        client=None,
        version=NodeVersion.parse(version, is_mock=True),
        feature_flags=parse_feature_flags(flags),
        mock=mock,
    )


class TestSupportsFeature:
    """Test supports_feature and not_supports_feature."""

    @pytest.mark.parametrize(
        "feature,version,expected",
        [
            ("query", "3.9.9", False),
            ("query", "4.0.0", True),
            ("adjoin", "5.5.1", False),
            ("adjoin", "5.5.4", True),
            ("collections", "6.6.5", False),
            ("collections", "7.0.0-3739-enterprise", True),
        ],
    )
    def test_server_examples(self, feature, version, expected):
        """Test catalog outcomes with no overrides."""
        context = server_context(version)
        assert context.supports_feature(feature) is expected
        assert context.not_supports_feature(feature) is (not expected)

    def test_mock_defaults(self):
        """Test simulator outcomes with no overrides."""
        context = mock_context()
        assert context.supports_feature(Feature.KEY_VALUE) is True
        assert context.supports_feature(Feature.QUERY) is False
        assert context.supports_feature(Feature.RBAC) is True
        assert mock_context("1.5.5").supports_feature(Feature.RBAC) is False

    def test_uses_version_mock_flag(self):
        """Test catalog selection follows the version, not the control channel."""
        context = mock_context(mock=None)
        assert context.is_mock is False
        assert context.supports_feature(Feature.QUERY) is False

    def test_wildcard_last_forces_every_feature(self):
        """Test a trailing wildcard overrides the catalog for all features."""
        enabled = server_context("1.0.0", "-query,+*")
        disabled = mock_context(flags="+query,-*")
        for feature in Feature:
            assert enabled.supports_feature(feature) is True
            assert disabled.supports_feature(feature) is False

    def test_wildcard_forces_unknown_tokens(self):
        """Test overrides apply to tokens outside the catalog."""
        assert server_context("7.0.0", "+*").supports_feature("teleport") is True

    def test_specific_after_wildcard(self):
        """Test a later specific flag overrides an earlier wildcard."""
        context = server_context("7.0.0", "-*,+keyvalue")
        assert context.supports_feature(Feature.KEY_VALUE) is True
        assert context.supports_feature(Feature.VIEW) is False

    def test_override_beats_catalog(self):
        """Test overrides win over the catalog in both directions."""
        assert server_context("3.0.0", "+query").supports_feature("query") is True
        assert server_context("7.0.0", "-query").supports_feature("query") is False

    def test_unknown_feature(self):
        """Test unknown tokens resolve to unsupported without raising."""
        assert server_context("7.0.0").supports_feature("teleport") is False
        assert mock_context().supports_feature("teleport") is False

    def test_flags_sequence_coerced(self):
        """Test a plain list of flags is accepted."""
        context = ClusterContext(
            client=None,
            version=NodeVersion(7, 0, 0),
            feature_flags=[FeatureFlag(WILDCARD, False)],
        )
        assert isinstance(context.feature_flags, FeatureFlags)
        assert context.supports_feature(Feature.KEY_VALUE) is False

    def test_context_is_frozen(self):
        """Test the context cannot be changed after construction."""
        context = server_context("7.0.0")
        with pytest.raises(FrozenInstanceError):
            context.version = NodeVersion(1, 0, 0)


class TestTimeTravel:
    """Test ClusterContext.time_travel."""

    def test_mock_rounds_up_to_seconds(self, mock_control, mock_transport):
        """Test 1500ms sends one TIME_TRAVEL command with Offset=2."""
        context = mock_context(mock=mock_control)

        with patch("cluster_harness.cluster.time.sleep") as sleep:
            context.time_travel(timedelta(milliseconds=1500))

        sleep.assert_not_called()
        assert len(mock_transport.requests) == 1
        request = mock_transport.requests[0]
        assert request.url.path == "/mock/time_travel"
        assert request.url.params["Offset"] == "2"

    @pytest.mark.parametrize(
        "duration,offset",
        [
            (timedelta(seconds=1), "1"),
            (timedelta(seconds=3), "3"),
            (timedelta(milliseconds=1), "1"),
            (timedelta(seconds=2, microseconds=1), "3"),
            (timedelta(0), "0"),
        ],
    )
    def test_mock_offsets(self, mock_control, mock_transport, duration, offset):
        """Test ceiling of the duration in seconds."""
        mock_context(mock=mock_control).time_travel(duration)
        assert mock_transport.requests[-1].url.params["Offset"] == offset

    def test_mock_failure_is_not_retried(self):
        """Test a failed control command raises after one attempt."""
        transport = RecordingTransport(status_code=500, body={"status": "fail"})
        with MockControl("http://mock.local", transport=transport) as control:
            context = mock_context(mock=control)
            with pytest.raises(MockControlError):
                context.time_travel(timedelta(seconds=5))

        assert len(transport.requests) == 1

    def test_real_deployment_sleeps(self):
        """Test a real deployment blocks for the literal duration."""
        context = server_context("6.5.0")

        with patch("cluster_harness.cluster.time.sleep") as sleep:
            context.time_travel(timedelta(milliseconds=1500))

        sleep.assert_called_once_with(1.5)

    def test_mock_negative_duration_is_zero(self, mock_control, mock_transport):
        """Test a negative duration never moves the simulator clock backwards."""
        mock_context(mock=mock_control).time_travel(timedelta(seconds=-3))

        assert len(mock_transport.requests) == 1
        assert mock_transport.requests[0].url.params["Offset"] == "0"

    def test_real_deployment_negative_duration_is_zero(self):
        """Test a negative duration returns without sleeping a negative length."""
        context = server_context("7.0.0")

        with patch("cluster_harness.cluster.time.sleep") as sleep:
            context.time_travel(timedelta(seconds=-1))

        sleep.assert_called_once_with(0.0)

    def test_real_deployment_blocks(self):
        """Test the real-deployment path actually waits."""
        import time

        context = server_context("6.5.0")
        start = time.monotonic()
        context.time_travel(timedelta(milliseconds=50))
        assert time.monotonic() - start >= 0.05


class TestDatasets:
    """Test the dataset helpers exposed on the context."""

    def test_default_collection(self):
        """Test default_collection delegates to the bucket."""
        bucket = FakeBucket()
        collection = server_context("7.0.0").default_collection(bucket)
        assert collection.name == "_default"

    def test_create_brewery_dataset(self):
        """Test the five breweries are upserted under their names."""
        bucket = FakeBucket()
        context = server_context("7.0.0")

        documents = context.create_brewery_dataset(bucket.default_collection())

        stored = bucket.documents["_default"]
        assert len(documents) == 5
        assert len(stored) == 5
        assert "21st Amendment Brewery Cafe" in stored
        assert stored["21st Amendment Brewery Cafe"]["city"] == "San Francisco"

    def test_create_brewery_dataset_write_failure(self):
        """Test write failures are wrapped with the cause kept."""
        bucket = FakeBucket()
        bucket.write_error = RuntimeError("temporary failure")

        with pytest.raises(DatasetError) as excinfo:
            server_context("7.0.0").create_brewery_dataset(bucket.default_collection())

        assert excinfo.value.message == "could not create dataset"
        assert excinfo.value.__cause__ is bucket.write_error
        assert str(excinfo.value) == "could not create dataset: temporary failure"

    def test_create_brewery_dataset_read_failure(self, tmp_path):
        """Test a missing dataset file is reported as a read failure."""
        context = ClusterContext(
            client=None, version=NodeVersion(7, 0, 0), dataset_dir=tmp_path
        )
        with pytest.raises(DatasetError, match="could not read test dataset"):
            context.create_brewery_dataset(FakeBucket().default_collection())
