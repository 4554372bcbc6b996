"""
Control channel for the behavioural simulator.

The simulator exposes its control commands over HTTP as
``/mock/<command>?<param>=<value>`` and answers with a JSON body whose
``status`` field is ``"ok"`` on success. Only synchronous request/response
control is needed by the harness.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import httpx
from loguru import logger

from .errors import MockControlError


class MockCommand(str, Enum):
    """Control commands understood by the simulator."""

    TIME_TRAVEL = "TIME_TRAVEL"


@dataclass(frozen=True)
class Command:
    """A control instruction and its payload."""

    code: MockCommand
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return f"/mock/{self.code.value.lower()}"


def time_travel_command(offset_seconds: int) -> Command:
    return Command(MockCommand.TIME_TRAVEL, {"Offset": offset_seconds})


class MockControl:
    """
    Synchronous client for the simulator's control channel.

    Args:
        base_url: Base URL of the simulator's control endpoint
        timeout: Request timeout in seconds
        transport: Optional httpx transport, used to substitute the network
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self._client = httpx.Client(
            base_url=base_url, timeout=timeout, transport=transport
        )

    def control(self, command: Command) -> dict[str, Any]:
        """
        Send a control instruction and wait for the simulator to apply it.

        Args:
            command: The instruction to send

        Returns:
            Decoded JSON response body

        Raises:
            MockControlError: If the request fails or the simulator does not
                report success
        """
        logger.debug("Sending mock command {} {}", command.code.value, command.payload)
        try:
            response = self._client.get(command.path, params=command.payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as err:
            raise MockControlError(
                f"mock command {command.code.value} failed: {err}"
            ) from err
        except ValueError as err:
            raise MockControlError(
                f"mock command {command.code.value} returned invalid JSON"
            ) from err

        if not isinstance(body, dict) or body.get("status") != "ok":
            raise MockControlError(
                f"mock command {command.code.value} was rejected: {body!r}"
            )
        return body

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "MockControl":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
