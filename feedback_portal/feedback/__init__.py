"""Feedback board engine: store, comment threads, filtering, and board actions.

Components:
- FeedbackItem / Comment / Vote / FeedbackDraft: Dataclasses mapping backend records
- FeedbackConfig: Pydantic settings for limits, suggestions and trending
- FeedbackStore: In-memory board state with optimistic vote updates
- build_comment_tree: Flat comments to two-level threads
- FilterParams / apply_pipeline: Filter and stable sort of a board view
- Authorization: Session roles resolved once and injected
- RecentSearches: Search history over an injected key-value store
- FeedbackBoardService: Action boundary over the store and backend client
"""

from feedback_portal.feedback.authorization import Authorization, Permission, Role
from feedback_portal.feedback.config import FeedbackConfig
from feedback_portal.feedback.errors import (
    DuplicateVoteError,
    FeedbackError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from feedback_portal.feedback.pipeline import FilterParams, apply_pipeline
from feedback_portal.feedback.schemas import (
    VALID_PRIORITIES,
    VALID_STATUSES,
    Comment,
    FeedbackDraft,
    FeedbackItem,
    Vote,
)
from feedback_portal.feedback.search import (
    InMemoryKeyValueStore,
    RecentSearches,
    RedisKeyValueStore,
)
from feedback_portal.feedback.service import ActionResult, FeedbackBoardService
from feedback_portal.feedback.store import FeedbackStore
from feedback_portal.feedback.threads import CommentThread, build_comment_tree

__all__ = [
    "ActionResult",
    "Authorization",
    "Comment",
    "CommentThread",
    "DuplicateVoteError",
    "FeedbackBoardService",
    "FeedbackConfig",
    "FeedbackDraft",
    "FeedbackError",
    "FeedbackItem",
    "FeedbackStore",
    "FilterParams",
    "InMemoryKeyValueStore",
    "NetworkError",
    "NotFoundError",
    "Permission",
    "PermissionDeniedError",
    "RecentSearches",
    "RedisKeyValueStore",
    "Role",
    "VALID_PRIORITIES",
    "VALID_STATUSES",
    "ValidationError",
    "Vote",
    "apply_pipeline",
    "build_comment_tree",
]
