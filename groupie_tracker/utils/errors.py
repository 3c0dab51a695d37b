# groupie_tracker/utils/errors.py

"""Base exception for Groupie Tracker.

Every application error carries a human-readable ``message`` and an optional
``provider_name`` naming the external service that caused it, so log lines
read like ``[spotify] Artist not found``.

    GroupieTrackerError
    +-- ConfigError      (utils.config_loader: missing/placeholder credentials)
    +-- AuthError        (spotify.exceptions: token endpoint failures)
    +-- UpstreamError    (spotify.exceptions: data endpoint / aggregation failures)
    +-- NotFoundError    (spotify.exceptions: unknown external or local ID)
"""

from typing import Optional


class GroupieTrackerError(Exception):
    """Base exception for all Groupie Tracker errors"""

    def __init__(self, message: str = "An unexpected error occurred", provider_name: Optional[str] = None):
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> Optional[str]:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message
