"""Board service: the action boundary between user intents and the backend.

Each public coroutine corresponds to one user action (load a board, vote,
reply, change status, ...). It checks permissions from the session's
``Authorization``, pre-validates input, talks to the backend, merges the
confirmed result into the ``FeedbackStore``, and turns every feedback
error into an ``ActionResult``. Nothing raised by the backend escapes an
action.

Independent actions are independent coroutines with no ordering between
them; within one action each step is awaited in turn. Callers are expected
to disable a control while its action is in flight; the service does not
debounce.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, TypeVar

from feedback_portal.feedback.authorization import Authorization, Permission
from feedback_portal.feedback.config import FeedbackConfig
from feedback_portal.feedback.errors import (
    FeedbackError,
    NotFoundError,
    ValidationError,
)
from feedback_portal.feedback.optimistic import OptimisticAction, run_optimistic
from feedback_portal.feedback.pipeline import FilterParams, apply_pipeline
from feedback_portal.feedback.schemas import FeedbackDraft, FeedbackItem
from feedback_portal.feedback.store import FeedbackStore
from feedback_portal.feedback.threads import (
    CommentThread,
    build_comment_tree,
    dropped_comments,
    sort_comments,
)
from feedback_portal.observability.logging import bind_context

if TYPE_CHECKING:
    from feedback_portal.backend.client import FeedbackBackendClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ActionResult(Generic[T]):
    """Outcome of one user action.

    Attributes:
        ok: Whether the action succeeded.
        message: User-facing message (success or failure).
        kind: Error kind on failure (validation, network, not_found,
            permission, duplicate_vote), None on success.
        value: Action payload on success.
    """

    ok: bool
    message: str
    kind: str | None = None
    value: T | None = None

    @classmethod
    def success(cls, message: str, value: Any = None) -> "ActionResult":
        return cls(ok=True, message=message, value=value)

    @classmethod
    def failure(cls, error: FeedbackError) -> "ActionResult":
        return cls(ok=False, message=error.user_message, kind=error.kind)


class FeedbackBoardService:
    """Orchestrates board actions over the store and the backend client.

    Args:
        client: Backend client for the hosted boards API.
        authorization: Session roles, resolved once at session start.
        store: Board state; a fresh store if omitted.
        config: Trending and limit settings.
    """

    def __init__(
        self,
        client: "FeedbackBackendClient",
        authorization: Authorization,
        store: FeedbackStore | None = None,
        config: FeedbackConfig | None = None,
    ) -> None:
        self._client = client
        self._auth = authorization
        self._store = store if store is not None else FeedbackStore()
        self._config = config or FeedbackConfig()
        self._board_id: str | None = None

    @property
    def store(self) -> FeedbackStore:
        return self._store

    @property
    def board_id(self) -> str | None:
        return self._board_id

    def _recover(self, action: str, error: FeedbackError) -> ActionResult:
        """Log a failed action and turn it into a result."""
        if isinstance(error, ValidationError):
            logger.info("%s rejected: %s", action, error)
        else:
            logger.warning("%s failed (%s): %s", action, error.kind, error)
        return ActionResult.failure(error)

    def _forget_missing(self, feedback_id: str, error: FeedbackError) -> None:
        if isinstance(error, NotFoundError):
            self._store.remove(feedback_id)
            logger.info("Removed %s from store: no longer on backend", feedback_id)

    # ── Reads ────────────────────────────────────────────

    async def load_board(self, board_id: str) -> ActionResult[list[FeedbackItem]]:
        """Fetch a board and replace the store's contents with it."""
        try:
            items = await self._client.fetch_feedback(board_id)
        except FeedbackError as e:
            return self._recover("load_board", e)
        self._board_id = board_id
        self._store.load(items)
        bind_context(board_id=board_id)
        logger.info("Loaded board %s with %d items", board_id, len(items))
        return ActionResult.success("Board loaded", items)

    def view(self, params: FilterParams | None = None) -> list[FeedbackItem]:
        """Derived, filtered and ordered view of the store."""
        return apply_pipeline(
            self._store.items,
            params or FilterParams(),
            trending_window=timedelta(days=self._config.trending_window_days),
            trending_boost=self._config.trending_boost,
        )

    async def load_thread(
        self,
        feedback_id: str,
        newest_first: bool = False,
    ) -> ActionResult[list[CommentThread]]:
        """Fetch an item's comments and group them into two-level threads."""
        try:
            comments = await self._client.fetch_comments(feedback_id)
        except FeedbackError as e:
            self._forget_missing(feedback_id, e)
            return self._recover("load_thread", e)

        ordered = sort_comments(comments, newest_first=newest_first)
        hidden = dropped_comments(ordered)
        if hidden:
            logger.debug(
                "%d nested replies on %s not shown in two-level threads",
                len(hidden),
                feedback_id,
            )
        return ActionResult.success("Comments loaded", build_comment_tree(ordered))

    # ── Votes ────────────────────────────────────────────

    async def _optimistic_vote(
        self,
        action: str,
        feedback_id: str,
        delta: int,
        confirm: Callable[[], Awaitable[Any]],
    ) -> ActionResult:
        try:
            self._auth.require(Permission.VOTE)
        except FeedbackError as e:
            return self._recover(action, e)

        # Counts floor at zero; only undo a delta that actually landed
        changed: list[bool] = []

        def apply() -> None:
            before = self._store.get(feedback_id)
            after = self._store.apply_vote(feedback_id, delta)
            changed.append(
                before is not None
                and after is not None
                and before.votes_count != after.votes_count
            )

        def compensate() -> None:
            if changed and changed[0]:
                self._store.apply_vote(feedback_id, -delta)

        optimistic = OptimisticAction(
            name=action,
            apply=apply,
            compensate=compensate,
            confirm=confirm,
        )
        try:
            await run_optimistic(optimistic)
        except FeedbackError as e:
            self._forget_missing(feedback_id, e)
            return self._recover(action, e)
        return ActionResult.success("Vote recorded!", self._store.get(feedback_id))

    async def upvote(self, feedback_id: str) -> ActionResult[FeedbackItem]:
        """Optimistically add a vote; compensate if the backend refuses."""
        return await self._optimistic_vote(
            "upvote",
            feedback_id,
            1,
            lambda: self._client.vote(feedback_id, "upvote"),
        )

    async def remove_vote(self, feedback_id: str) -> ActionResult[FeedbackItem]:
        """Optimistically retract a vote; compensate if the backend refuses."""
        return await self._optimistic_vote(
            "remove_vote",
            feedback_id,
            -1,
            lambda: self._client.remove_vote(feedback_id),
        )

    # ── Writes ───────────────────────────────────────────

    async def submit_feedback(self, draft: FeedbackDraft) -> ActionResult[FeedbackItem]:
        """Create an item on the current board and add it to the store."""
        try:
            self._auth.require(Permission.SUBMIT)
            if self._board_id is None:
                raise ValidationError("No board loaded")
            draft.validate(max_title_length=self._config.max_title_length)
            item = await self._client.create_feedback(self._board_id, draft)
        except FeedbackError as e:
            return self._recover("submit_feedback", e)
        self._store.upsert(item)
        logger.info("Submitted feedback %s on board %s", item.id, self._board_id)
        return ActionResult.success("Your feedback has been submitted!", item)

    async def add_comment(
        self,
        feedback_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> ActionResult:
        """Post a comment, then bump the item's cached comment counter.

        The counter is incremented locally after the comment is confirmed;
        if anything between the two steps fails the counter drifts and is
        only corrected by the next board load.
        """
        try:
            self._auth.require(Permission.COMMENT)
            if not content or not content.strip():
                raise ValidationError("content is required and must not be empty")
            comment = await self._client.create_comment(feedback_id, content, parent_id)
        except FeedbackError as e:
            self._forget_missing(feedback_id, e)
            return self._recover("add_comment", e)
        self._store.adjust_comments_count(feedback_id, 1)
        return ActionResult.success("Comment added successfully", comment)

    async def edit_comment(self, comment_id: str, content: str) -> ActionResult:
        """Replace a comment's text. Thread shape and counters are unchanged."""
        try:
            self._auth.require(Permission.COMMENT)
            if not content or not content.strip():
                raise ValidationError("content is required and must not be empty")
            comment = await self._client.update_comment(comment_id, content)
        except FeedbackError as e:
            return self._recover("edit_comment", e)
        return ActionResult.success("Comment updated", comment)

    async def change_status(self, feedback_id: str, status: str) -> ActionResult[FeedbackItem]:
        """Set an item's status. Any status may follow any other."""
        try:
            self._auth.require(Permission.UPDATE_STATUS)
            item = await self._client.update_status(feedback_id, status)
        except FeedbackError as e:
            self._forget_missing(feedback_id, e)
            return self._recover("change_status", e)
        self._store.upsert(item)
        return ActionResult.success("Status updated", item)

    async def delete_feedback(self, feedback_id: str) -> ActionResult[FeedbackItem]:
        """Moderator delete; the item leaves the store once confirmed."""
        try:
            self._auth.require(Permission.MODERATE)
            await self._client.delete_feedback(feedback_id)
        except NotFoundError:
            removed = self._store.remove(feedback_id)
            return ActionResult.success("Feedback deleted", removed)
        except FeedbackError as e:
            return self._recover("delete_feedback", e)
        removed = self._store.remove(feedback_id)
        return ActionResult.success("Feedback deleted", removed)

    async def delete_comment(self, feedback_id: str, comment_id: str) -> ActionResult:
        """Moderator delete of a comment; decrements the cached counter."""
        try:
            self._auth.require(Permission.MODERATE)
            await self._client.delete_comment(comment_id)
        except FeedbackError as e:
            return self._recover("delete_comment", e)
        self._store.adjust_comments_count(feedback_id, -1)
        return ActionResult.success("Comment deleted")
