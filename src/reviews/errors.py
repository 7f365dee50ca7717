"""Error taxonomy for the Reviews domain.

Input problems are plain `protean.exceptions.ValidationError`s. The
classes below add the categories callers need to tell apart: conflicts
to re-query, permission denials, invalid moderation transitions and
unreachable collaborators.
"""

from protean.exceptions import InvalidOperationError, ProteanException


class ConflictError(InvalidOperationError):
    """A review already exists for the same booking and reviewer."""

    def __init__(self, messages, review_id=None, **kwargs):
        super().__init__(messages, **kwargs)
        self.review_id = review_id


class AuthorizationError(InvalidOperationError):
    """The acting party may not perform this change."""


class StateError(InvalidOperationError):
    """The review's current status does not allow the operation."""

    def __init__(self, messages, current_status=None, **kwargs):
        super().__init__(messages, **kwargs)
        self.current_status = current_status


class DependencyError(ProteanException):
    """A collaborating service was unreachable or answered with garbage."""
