# groupie_tracker/spotify/exceptions.py

from typing import Optional

from ..utils.errors import GroupieTrackerError

PROVIDER = "spotify"


class AuthError(GroupieTrackerError):
    """Token endpoint rejected the credentials or returned an unusable token"""

    def __init__(self, status: Optional[int] = None, body: str = "", reason: Optional[str] = None):
        self.status = status
        self.body = body
        self.reason = reason
        if reason:
            message = f"Authentication failed: {reason}"
        else:
            message = f"Authentication failed (HTTP {status}): {body}"
        super().__init__(message=message, provider_name=PROVIDER)


class UpstreamError(GroupieTrackerError):
    """A data endpoint failed, or an aggregation pass produced nothing"""

    def __init__(self, message: str = "Upstream request failed", status: Optional[int] = None):
        self.status = status
        super().__init__(message=message, provider_name=PROVIDER)


class NotFoundError(GroupieTrackerError):
    """The requested external or local artist ID does not exist"""

    def __init__(self, message: str = "Artist not found"):
        super().__init__(message=message, provider_name=PROVIDER)
