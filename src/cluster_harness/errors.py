"""
Exception hierarchy for cluster-harness.

Three kinds of failure surface from the harness:
- Setup/fixture errors, wrapped with a descriptive message and the original
  cause (``HarnessSetupError`` and subclasses). These are never retried.
- Visibility timeouts raised by the collection waiter once its deadline elapses.
- Terminal errors such as a failed simulator control instruction.

The client error classifications (``CollectionNotFoundError`` and
``DocumentNotFoundError``) describe what a document read reports. Client
adapters raise them, or the waiter is given the client's own exception classes.
"""

from typing import Optional


class HarnessError(Exception):
    """Base class for all cluster-harness errors."""


class HarnessSetupError(HarnessError):
    """A fixture or setup step failed.

    The message describes the step that failed and the original exception is
    kept on ``inner_error`` (and chained as ``__cause__`` when raised with
    ``raise ... from``).

    Args:
        message: Description of the failed setup step
        inner_error: The exception that caused the failure
    """

    def __init__(self, message: str, inner_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.inner_error = inner_error

    def __str__(self) -> str:
        if self.inner_error is None:
            return self.message
        return f"{self.message}: {self.inner_error}"


class DatasetError(HarnessSetupError):
    """A test dataset could not be read or written."""


class MockControlError(HarnessError):
    """The simulator rejected or failed to answer a control instruction."""


class CollectionWaitTimeout(HarnessError, TimeoutError):
    """A collection did not become visible before the wait deadline."""


class ConfigurationError(HarnessError, ValueError):
    """The harness configuration is invalid."""


class InvalidNodeVersion(ValueError):
    """A deployment version string could not be parsed."""


class CollectionNotFoundError(LookupError):
    """The collection (namespace) addressed by a read does not exist yet."""


class DocumentNotFoundError(LookupError):
    """The collection exists but the requested document does not."""
