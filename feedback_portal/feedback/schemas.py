"""Schema definitions for feedback board records.

Maps 1:1 to the records returned by the hosted backend (snake_case JSON).
A feedback item is a user-submitted suggestion tracked through a status
lifecycle; comments hang off a feedback item and may reply to one another;
votes record one user's upvote or downvote on one item.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from feedback_portal.feedback.errors import ValidationError

FeedbackStatus = Literal[
    "submitted",
    "under_review",
    "planned",
    "in_progress",
    "completed",
    "rejected",
]

# Ordered the way boards display them
STATUSES: tuple[str, ...] = (
    "submitted",
    "under_review",
    "planned",
    "in_progress",
    "completed",
    "rejected",
)

VALID_STATUSES: frozenset[str] = frozenset(STATUSES)

STATUS_LABELS: dict[str, str] = {
    "submitted": "New",
    "under_review": "Review",
    "planned": "Planned",
    "in_progress": "In Progress",
    "completed": "Done",
    "rejected": "Rejected",
}

FeedbackPriority = Literal["low", "medium", "high", "critical"]

PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")

VALID_PRIORITIES: frozenset[str] = frozenset(PRIORITIES)

VoteType = Literal["upvote", "downvote"]

VALID_VOTE_TYPES: frozenset[str] = frozenset({"upvote", "downvote"})

INITIAL_STATUS = "submitted"
DEFAULT_PRIORITY = "medium"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (or pass through a datetime) as aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _aware(value: Any) -> datetime:
    """Creation times are always aware UTC; a missing one means now."""
    return parse_timestamp(value) or datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _unique_tags(tags: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def _require_text(name: str, value: str | None) -> None:
    if value is None or not value.strip():
        raise ValidationError(f"{name} is required and must not be empty")


def _check_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid status {status!r}. "
            f"Must be one of: {sorted(VALID_STATUSES)}"
        )


def _check_priority(priority: str) -> None:
    if priority not in VALID_PRIORITIES:
        raise ValidationError(
            f"Invalid priority {priority!r}. "
            f"Must be one of: {sorted(VALID_PRIORITIES)}"
        )


@dataclass
class FeedbackItem:
    """A feedback item on a board.

    Attributes:
        id: Backend-assigned identifier.
        title: Required short summary.
        description: Optional free-text body.
        status: Lifecycle status, ``submitted`` on creation.
        priority: Triage priority, ``medium`` unless specified.
        category: Optional free-text label.
        votes_count: Upvote counter, never negative.
        comments_count: Cached comment counter. Not re-derived from the
            comment list, so it can drift after partial failures.
        tags: Free-text labels in display order, duplicates collapsed.
        created_at: Creation time, immutable.
        updated_at: Last modification time, if the backend reports one.
        board_id: Owning board.
        submitted_by: Submitting user.
        assigned_to: Assignee, if any.
        rating: Optional rating used by the ``rating`` sort.
        impact_score: Product-team impact estimate.
        effort_estimate: Product-team effort estimate.
    """

    id: str
    title: str
    description: str | None = None
    status: str = INITIAL_STATUS
    priority: str = DEFAULT_PRIORITY
    category: str | None = None
    votes_count: int = 0
    comments_count: int = 0
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime | None = None
    board_id: str | None = None
    submitted_by: str | None = None
    assigned_to: str | None = None
    rating: float | None = None
    impact_score: float = 0.0
    effort_estimate: float = 0.0

    def __post_init__(self) -> None:
        _require_text("title", self.title)
        _check_status(self.status)
        _check_priority(self.priority)
        if self.votes_count < 0:
            raise ValidationError(
                f"Invalid votes_count {self.votes_count}. Must be >= 0."
            )
        if self.comments_count < 0:
            raise ValidationError(
                f"Invalid comments_count {self.comments_count}. Must be >= 0."
            )
        self.tags = _unique_tags(list(self.tags))
        self.created_at = _aware(self.created_at)
        self.updated_at = parse_timestamp(self.updated_at)

    @property
    def last_activity(self) -> datetime:
        """Most recent update timestamp, falling back to creation time."""
        return self.updated_at or self.created_at

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedbackItem":
        """Build from a backend record."""
        rating = data.get("rating")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            description=data.get("description"),
            status=data.get("status") or INITIAL_STATUS,
            priority=data.get("priority") or DEFAULT_PRIORITY,
            category=data.get("category") or None,
            votes_count=int(data.get("votes_count") or 0),
            comments_count=int(data.get("comments_count") or 0),
            tags=list(data.get("tags") or []),
            created_at=parse_timestamp(data.get("created_at"))
            or datetime.now(timezone.utc),
            updated_at=parse_timestamp(data.get("updated_at")),
            board_id=data.get("board_id"),
            submitted_by=data.get("submitted_by"),
            assigned_to=data.get("assigned_to"),
            rating=float(rating) if rating is not None else None,
            impact_score=float(data.get("impact_score") or 0.0),
            effort_estimate=float(data.get("effort_estimate") or 0.0),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "category": self.category,
            "votes_count": self.votes_count,
            "comments_count": self.comments_count,
            "tags": list(self.tags),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "board_id": self.board_id,
            "submitted_by": self.submitted_by,
            "assigned_to": self.assigned_to,
            "rating": self.rating,
            "impact_score": self.impact_score,
            "effort_estimate": self.effort_estimate,
        }


@dataclass
class FeedbackDraft:
    """User input for a new feedback item, before the backend assigns an id."""

    title: str
    description: str | None = None
    category: str | None = None
    priority: str = DEFAULT_PRIORITY
    tags: list[str] = field(default_factory=list)

    def validate(self, max_title_length: int | None = None) -> None:
        """Raise ValidationError if the draft cannot be submitted."""
        _require_text("title", self.title)
        if max_title_length is not None and len(self.title.strip()) > max_title_length:
            raise ValidationError(
                f"title is longer than {max_title_length} characters"
            )
        _check_priority(self.priority)

    def to_payload(self) -> dict[str, Any]:
        """Creation body: new items always start submitted with zeroed counters."""
        return {
            "title": self.title.strip(),
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "status": INITIAL_STATUS,
            "votes_count": 0,
            "comments_count": 0,
            "impact_score": 0,
            "effort_estimate": 0,
            "tags": _unique_tags(list(self.tags)),
            "customer_info": {},
        }


@dataclass
class Comment:
    """A comment on a feedback item.

    Attributes:
        id: Backend-assigned identifier.
        feedback_id: Owning feedback item, immutable.
        content: Required non-empty text.
        author_id: Author identifier.
        parent_id: Comment this replies to; None marks a top-level comment.
        is_internal: Visible to the product team only.
        created_at: Creation time, immutable.
        updated_at: Last edit time, if edited.
    """

    id: str
    feedback_id: str
    content: str
    author_id: str | None = None
    parent_id: str | None = None
    is_internal: bool = False
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        _require_text("content", self.content)
        if not self.feedback_id:
            raise ValidationError("feedback_id is required")
        self.created_at = _aware(self.created_at)
        self.updated_at = parse_timestamp(self.updated_at)

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        """Build from a backend record."""
        parent_id = data.get("parent_id")
        return cls(
            id=str(data["id"]),
            feedback_id=str(data["feedback_id"]),
            content=data.get("content") or "",
            author_id=data.get("author_id"),
            parent_id=str(parent_id) if parent_id else None,
            is_internal=bool(data.get("is_internal", False)),
            created_at=parse_timestamp(data.get("created_at"))
            or datetime.now(timezone.utc),
            updated_at=parse_timestamp(data.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "feedback_id": self.feedback_id,
            "author_id": self.author_id,
            "parent_id": self.parent_id,
            "content": self.content,
            "is_internal": self.is_internal,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Vote:
    """One user's vote on one feedback item.

    Duplicate (feedback_id, user_id) pairs are rejected by the backend,
    not here.
    """

    feedback_id: str
    user_id: str | None = None
    vote_type: str = "upvote"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self) -> None:
        if self.vote_type not in VALID_VOTE_TYPES:
            raise ValidationError(
                f"Invalid vote_type {self.vote_type!r}. "
                f"Must be one of: {sorted(VALID_VOTE_TYPES)}"
            )

    @property
    def delta(self) -> int:
        """Change this vote applies to an item's counter."""
        return 1 if self.vote_type == "upvote" else -1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vote":
        """Build from a backend record."""
        return cls(
            feedback_id=str(data["feedback_id"]),
            user_id=data.get("user_id"),
            vote_type=data.get("vote_type") or "upvote",
            id=str(data.get("id") or uuid.uuid4()),
            created_at=parse_timestamp(data.get("created_at"))
            or datetime.now(timezone.utc),
        )
