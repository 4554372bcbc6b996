"""
pytest plugin wiring the harness into a test suite.

Enable it from a conftest:

    pytest_plugins = ["cluster_harness.plugin"]

It provides:
- ``--cluster-*`` command-line options (see ``pytest --help``)
- the ``requires_feature(*features)`` marker, which skips a test unless every
  listed feature is supported by the target deployment
- the ``harness_config``, ``cluster_client`` and ``cluster`` fixtures

Override ``cluster_client`` in a conftest to hand the real client handle to
the ``cluster`` fixture.
"""

from typing import Iterator, Optional

import pytest
from loguru import logger

from .cluster import ClusterContext
from .config import HarnessConfig, load_config
from .errors import ConfigurationError
from .logging_config import setup_logging
from .mock import MockControl

harness_config_key = pytest.StashKey[HarnessConfig]()
feature_context_key = pytest.StashKey[ClusterContext]()

SKIP_REASON = "Skipping test as feature not supported: {}"


def pytest_addoption(parser):
    group = parser.getgroup("cluster", "cluster harness")
    group.addoption(
        "--cluster-version",
        default=None,
        help="Version of the real deployment under test; omit to run in mock mode",
    )
    group.addoption(
        "--cluster-mock-version",
        default=None,
        help="Version of the simulator used in mock mode",
    )
    group.addoption(
        "--cluster-mock-control-url",
        default=None,
        help="Base URL of the simulator's control channel",
    )
    group.addoption(
        "--cluster-features",
        default=None,
        help="Feature flag overrides, e.g. '-*,+keyvalue' (last match wins)",
    )
    group.addoption(
        "--cluster-config",
        default=None,
        help="YAML file with harness configuration",
    )
    group.addoption(
        "--cluster-log-level",
        default=None,
        help="Log level for harness messages",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "requires_feature(*features): skip the test unless the target deployment "
        "supports every listed feature",
    )

    log_level: Optional[str] = config.getoption("cluster_log_level")
    try:
        harness_config = load_config(
            config.getoption("cluster_config"),
            server_version=config.getoption("cluster_version"),
            mock_version=config.getoption("cluster_mock_version"),
            mock_control_url=config.getoption("cluster_mock_control_url"),
            features=config.getoption("cluster_features"),
            log_level=log_level,
        )
    except ConfigurationError as err:
        raise pytest.UsageError(str(err)) from err

    if log_level:
        setup_logging(harness_config.log_level)

    config.stash[harness_config_key] = harness_config
    config.stash[feature_context_key] = ClusterContext(
        client=None,
        version=harness_config.node_version(),
        feature_flags=harness_config.feature_flags(),
    )


def pytest_report_header(config):
    harness_config = config.stash.get(harness_config_key, None)
    if harness_config is None:
        return None
    context = config.stash[feature_context_key]
    mode = "mock" if harness_config.is_mock else "server"
    header = f"cluster: {mode} {context.version}"
    if len(context.feature_flags):
        header += f", feature flags: {context.feature_flags}"
    return header


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_setup(item):
    context = item.config.stash.get(feature_context_key, None)
    if context is None:
        return
    for marker in item.iter_markers(name="requires_feature"):
        for feature in marker.args:
            if context.not_supports_feature(feature):
                pytest.skip(SKIP_REASON.format(feature))


@pytest.fixture(scope="session")
def harness_config(pytestconfig) -> HarnessConfig:
    return pytestconfig.stash[harness_config_key]


@pytest.fixture(scope="session")
def cluster_client():
    """Client handle passed to the cluster context. Override in a conftest."""
    return None


@pytest.fixture(scope="session")
def cluster(harness_config, cluster_client) -> Iterator[ClusterContext]:
    """Session-wide deployment context for the configured target."""
    mock = None
    if harness_config.is_mock:
        if harness_config.mock_control_url:
            mock = MockControl(harness_config.mock_control_url)
        else:
            logger.warning(
                "No mock control URL configured, time travel will sleep instead"
            )

    context = ClusterContext(
        client=cluster_client,
        version=harness_config.node_version(),
        feature_flags=harness_config.feature_flags(),
        mock=mock,
        dataset_dir=harness_config.dataset_dir,
    )
    yield context

    if mock is not None:
        mock.close()
