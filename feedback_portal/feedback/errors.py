"""Error taxonomy for feedback board actions.

Every failure a board action can hit maps onto one of these kinds. The
board service recovers all of them at the action boundary and turns them
into a user-facing message.
"""


class FeedbackError(Exception):
    """Base exception for feedback board failures."""

    kind: str = "error"
    user_message: str = "Something went wrong"

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(FeedbackError, ValueError):
    """A required field was empty or a value was malformed."""

    kind = "validation"
    user_message = "Please fill in the required fields"


class DuplicateVoteError(ValidationError):
    """The backend rejected a second vote by the same user on the same item."""

    kind = "duplicate_vote"
    user_message = "You have already voted on this item"


class NetworkError(FeedbackError):
    """The backend call did not complete (timeout, connectivity, 5xx)."""

    kind = "network"
    user_message = "Request failed, please try again"


class NotFoundError(FeedbackError):
    """The backend no longer recognizes the referenced id."""

    kind = "not_found"
    user_message = "This item no longer exists"


class PermissionDeniedError(FeedbackError):
    """The actor lacks the role required for the action."""

    kind = "permission"
    user_message = "You do not have access to perform this action"
