"""Error taxonomy for roadmap operations.

Every error raised by the service layer on purpose is a ``RoadtrackError``.
The HTTP adapter maps each kind to a status code; anything else surfacing
from a request is treated as an internal failure.
"""


class RoadtrackError(Exception):
    """Base class for user-actionable errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(RoadtrackError):
    """The requested roadmap does not exist (or was soft-deleted)."""

    kind = "not_found"
    status_code = 404


class ConflictError(RoadtrackError):
    """Duplicate roadmap name, or a stale version on update."""

    kind = "conflict"
    status_code = 409


class SubmissionError(RoadtrackError):
    """A submission that parsed fine but cannot be applied as a tree."""

    kind = "validation"
    status_code = 400
