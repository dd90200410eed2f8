"""
Domain exceptions for AEC generation.

These represent business rule violations in the domain layer. Callers can
catch AECError to handle every coordinator failure in one place.
"""

import math


class AECError(Exception):
    """Base class for all AEC lifecycle errors."""


class NotFound(AECError):
    """
    Raised when an AEC does not exist or belongs to another workspace.

    Both cases share one error so callers cannot probe for the existence
    of AECs outside their workspace.
    """

    def __init__(self, aec_id: str):
        super().__init__(f"AEC not found: {aec_id}")
        self.aec_id = aec_id


class Conflict(AECError):
    """Raised when another run already holds the AEC lock."""

    def __init__(self, message: str, holder: str | None = None):
        """
        Args:
            message: Human-readable error message
            holder: Run identifier currently holding the lock (if known)
        """
        super().__init__(message)
        self.holder = holder


class AlreadyLocked(Conflict):
    """Aggregate-level lock guard. Surfaces to callers as a Conflict."""

    def __init__(self, holder: str):
        super().__init__(
            f"AEC is already locked by run {holder}. Cannot start new run.",
            holder=holder,
        )


class InvalidState(AECError):
    """Raised when the current status does not permit the requested transition."""

    def __init__(self, message: str, status: str | None = None):
        """
        Args:
            message: Human-readable error message
            status: The status the AEC was in when the transition was refused
        """
        super().__init__(message)
        self.status = status


class VersionConflict(AECError):
    """
    Raised by repositories when a save carries a stale version token.

    The coordinator translates this into Conflict (Execute) or
    InvalidState (Resume) depending on which operation lost the race.
    """

    def __init__(self, aec_id: str, expected: int, actual: int):
        super().__init__(
            f"AEC {aec_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )
        self.aec_id = aec_id
        self.expected = expected
        self.actual = actual


class CircuitOpen(AECError):
    """
    Raised when a call is rejected because its upstream dependency is disabled.

    Recoverable: callers should retry after retry_after_ms.
    """

    def __init__(self, name: str, retry_after_ms: int):
        super().__init__(
            f'Circuit breaker "{name}" is OPEN. Service unavailable. '
            f"Retry after {math.ceil(max(retry_after_ms, 0) / 1000)}s"
        )
        self.name = name
        self.retry_after_ms = retry_after_ms
