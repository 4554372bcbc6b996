"""Wait for a freshly created collection to become visible."""

from __future__ import annotations

import time
from typing import Any, Protocol, Union

from loguru import logger

from .errors import (
    CollectionNotFoundError,
    CollectionWaitTimeout,
    DocumentNotFoundError,
)

ExceptionTypes = Union[type[BaseException], tuple[type[BaseException], ...]]

DEFAULT_TIMEOUT = 1.0
DEFAULT_INTERVAL = 0.1
PROBE_KEY = "test"


class SupportsGet(Protocol):
    def get(self, key: str, *args: Any, **kwargs: Any) -> Any: ...


class SupportsCollection(Protocol):
    def collection(self, name: str) -> SupportsGet: ...


def wait_for_collection(
    bucket: SupportsCollection,
    name: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    interval: float = DEFAULT_INTERVAL,
    probe_key: str = PROBE_KEY,
    collection_missing: ExceptionTypes = CollectionNotFoundError,
    document_missing: ExceptionTypes = DocumentNotFoundError,
) -> None:
    """
    Block until collection ``name`` in ``bucket`` can be read from.

    Reads ``probe_key`` through the collection. While the read reports the
    collection as missing the read is retried every ``interval`` seconds. A
    missing document means the collection exists, which counts as visible.
    The deadline is checked before every attempt.

    Args:
        bucket: Object whose ``collection(name)`` returns a readable collection
        name: Name of the collection to wait for
        timeout: Seconds from the call until the wait gives up
        interval: Seconds to sleep between attempts
        probe_key: Document key read to probe the collection
        collection_missing: Exception class(es) meaning the collection is missing
        document_missing: Exception class(es) meaning only the document is missing

    Raises:
        CollectionWaitTimeout: If the collection is still missing at the deadline
        Exception: Any other read error, unchanged
    """
    deadline = time.monotonic() + timeout
    attempts = 0

    while True:
        if time.monotonic() >= deadline:
            raise CollectionWaitTimeout(
                f"wait time for collection {name!r} to become available expired"
                f" after {attempts} attempts"
            )

        attempts += 1
        collection = bucket.collection(name)
        try:
            collection.get(probe_key)
        except collection_missing:
            logger.debug(
                "Collection {} not visible yet (attempt {}), retrying", name, attempts
            )
            time.sleep(interval)
            continue
        except document_missing:
            pass

        logger.debug("Collection {} visible after {} attempts", name, attempts)
        return
