"""Status and error notification channel between the pipeline and its UI.

status() has overwrite semantics (the latest stage replaces the previous one).
error() is additive: one message per failed chain, none cleared by others.
All emitters run on one event loop, so calls never interleave.
"""

from typing import Protocol

GENERIC_ERROR = "An error occurred while fetching data. Please try again."
INVALID_ADDRESS = "Please enter a valid Ethereum address."


class Notifier(Protocol):
    def status(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class RecordingNotifier:
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self.statuses: list[str] = []
        self.errors: list[str] = []

    @property
    def latest_status(self) -> str | None:
        return self.statuses[-1] if self.statuses else None

    def status(self, message: str) -> None:
        self.statuses.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

