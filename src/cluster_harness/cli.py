"""
Command-line interface for cluster-harness.

Example:
    ```bash
    # Which features would a 6.5.0 server run?
    cluster-harness features --version 6.5.0

    # Same, with overrides
    cluster-harness features --version 6.5.0 --features "-*,+keyvalue"

    # Advance the simulator clock by 30 seconds
    cluster-harness time-travel 30 --control-url http://localhost:18091
    ```
"""

from datetime import timedelta
from typing import Optional

import typer

from .cluster import ClusterContext
from .config import DEFAULT_MOCK_VERSION, load_config
from .errors import ConfigurationError, MockControlError
from .features import Feature
from .logging_config import setup_logging
from .mock import MockControl
from .version import NodeVersion

app = typer.Typer(
    name="cluster-harness",
    help="Feature resolution and simulator control for cluster integration tests.",
    no_args_is_help=True,
)


@app.command()
def features(
    version: Optional[str] = typer.Option(
        None, "--version", help="Real deployment version (omit for mock mode)"
    ),
    mock_version: Optional[str] = typer.Option(
        None, "--mock-version", help="Simulator version used in mock mode"
    ),
    feature_flags: Optional[str] = typer.Option(
        None, "--features", help="Feature flag overrides, e.g. '-*,+keyvalue'"
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", help="YAML configuration file"
    ),
) -> None:
    """List every known feature and whether the target deployment supports it."""
    try:
        config = load_config(
            config_file,
            server_version=version,
            mock_version=mock_version,
            features=feature_flags,
        )
    except ConfigurationError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)

    setup_logging(config.log_level)
    context = ClusterContext(
        client=None,
        version=config.node_version(),
        feature_flags=config.feature_flags(),
    )

    mode = "mock" if config.is_mock else "server"
    typer.echo(f"Target: {mode} {context.version}")
    for feature in Feature:
        status = "supported" if context.supports_feature(feature) else "unsupported"
        typer.echo(f"  {feature.value:<22} {status}")


@app.command("time-travel")
def time_travel(
    seconds: float = typer.Argument(
        ..., min=0, help="Seconds to advance the simulator clock"
    ),
    control_url: str = typer.Option(
        ..., "--control-url", help="Base URL of the simulator's control channel"
    ),
    timeout: float = typer.Option(5.0, help="Request timeout in seconds"),
) -> None:
    """Advance the simulator's clock."""
    with MockControl(control_url, timeout=timeout) as mock:
        context = ClusterContext(
            client=None,
            version=NodeVersion.parse(DEFAULT_MOCK_VERSION, is_mock=True),
            mock=mock,
        )
        try:
            context.time_travel(timedelta(seconds=seconds))
        except MockControlError as err:
            typer.echo(f"Error: {err}", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"Advanced simulator clock by {seconds:g}s")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
