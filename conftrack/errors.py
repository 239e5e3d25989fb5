"""Error taxonomy for the conference tracker.

Only failures that break a durable invariant (for example a subscription
that could not be saved) reach the caller; everything else is logged and
recovered where it happens.
"""


class ConfTrackError(Exception):
    """Base class for all tracker errors."""


class NetworkError(ConfTrackError):
    """The remote conference source could not be reached or read."""


class StorageError(ConfTrackError):
    """A persistent key-value read or write failed."""


class SchedulingError(ConfTrackError):
    """A single timer could not be registered or cleared."""


class PermissionDenied(ConfTrackError):
    """Notifications are not permitted on the current host."""


class DeliveryError(ConfTrackError):
    """A channel accepted the request but did not deliver the notification."""
