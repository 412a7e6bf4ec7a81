"""Client for the hosted backend's boards API.

Implements the data-access contracts the board engine needs (fetch and
create feedback, comments and votes, status updates, moderation deletes)
on top of ``HTTPClient``. Transport and HTTP failures are translated into
the feedback error taxonomy so callers only ever handle ``FeedbackError``.

Required-field checks run before any request is issued; the backend
repeats them and its rejection maps to the same ``ValidationError``.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import httpx

from feedback_portal.backend.http_client import HTTPClient, HTTPClientError
from feedback_portal.config.settings import Settings, get_settings
from feedback_portal.feedback.config import FeedbackConfig
from feedback_portal.feedback.errors import (
    DuplicateVoteError,
    FeedbackError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from feedback_portal.feedback.schemas import (
    VALID_STATUSES,
    VALID_VOTE_TYPES,
    Comment,
    FeedbackDraft,
    FeedbackItem,
    Vote,
)
from feedback_portal.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_message(body: str | None, fallback: str) -> str:
    """Pull ``message`` out of a JSON error body if there is one."""
    if not body:
        return fallback
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return fallback
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return fallback


def translate_error(exc: HTTPClientError, operation: str) -> FeedbackError:
    """Map an HTTP failure onto the feedback error taxonomy.

    No status (transport failure) and 5xx/429 are network errors; 400/422
    are validation errors; 401/403 are permission errors; 404 is not found;
    409 on a vote is a duplicate vote.
    """
    status = exc.status_code
    message = _error_message(exc.response_body, str(exc))

    if status is None or status >= 500 or status == 429:
        return NetworkError(message, status_code=status)
    if status in (401, 403):
        return PermissionDeniedError(message, status_code=status)
    if status == 404:
        return NotFoundError(message, status_code=status)
    if status == 409:
        if operation == "vote":
            return DuplicateVoteError(message, status_code=status)
        return ValidationError(message, status_code=status)
    if status in (400, 422):
        return ValidationError(message, status_code=status)
    return NetworkError(message, status_code=status)


def _unwrap(payload: Any) -> Any:
    """Strip the ``{"data": ...}`` envelope the edge functions use."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


@dataclass
class FeedbackPage:
    """One page of a board's feedback plus the paging metadata."""

    items: list[FeedbackItem]
    page: int
    total_pages: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


class FeedbackBackendClient:
    """Boards API client.

    The caller owns the ``HTTPClient`` context; this class only issues
    requests through it.

    Args:
        http_client: Entered HTTPClient.
        settings: Backend URL and keys. Defaults to ``get_settings()``.
        config: Input limits. Defaults to ``FeedbackConfig()``.
        access_token: Session token; falls back to the API key.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        settings: Settings | None = None,
        config: FeedbackConfig | None = None,
        access_token: str | None = None,
    ) -> None:
        self._http = http_client
        self._settings = settings or get_settings()
        self._config = config or FeedbackConfig()
        self._access_token = access_token or self._settings.access_token

    # ── Request plumbing ────────────────────────────────

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._settings.backend_api_key:
            headers["apikey"] = self._settings.backend_api_key
        token = self._access_token or self._settings.backend_api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self._settings.base_url}{path}"

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Issue one request; return the unwrapped JSON body (None if empty)."""
        metrics = get_metrics()
        started = time.monotonic()
        try:
            response = await self._http.request(
                method,
                self._url(path),
                params=params,
                headers=self._headers(),
                json_body=json_body,
            )
        except HTTPClientError as e:
            error = translate_error(e, operation)
            metrics.record_backend_error(operation, error.kind)
            logger.warning(
                "Backend %s failed (%s, status=%s): %s",
                operation, error.kind, e.status_code, error,
            )
            raise error from e
        metrics.record_backend_call(operation, time.monotonic() - started)

        if not response.content:
            return None
        try:
            return _unwrap(response.json())
        except (json.JSONDecodeError, httpx.DecodingError) as e:
            raise self._malformed(operation, e) from e

    def _malformed(self, operation: str, cause: Exception) -> NetworkError:
        get_metrics().record_backend_error(operation, NetworkError.kind)
        logger.warning("Malformed %s response from backend: %s", operation, cause)
        return NetworkError(f"Malformed response from backend for {operation}")

    def _record(self, operation: str, build: Callable[[], T]) -> T:
        """Map a response payload, treating any shape error as a bad response."""
        try:
            return build()
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self._malformed(operation, e) from e

    def _rows(
        self,
        operation: str,
        payload: Any,
        factory: Callable[[dict[str, Any]], T],
    ) -> list[T]:
        def build() -> list[T]:
            if payload is None:
                return []
            if not isinstance(payload, list):
                raise TypeError(f"expected a list of records, got {type(payload).__name__}")
            return [factory(row) for row in payload]

        return self._record(operation, build)

    # ── Feedback ────────────────────────────────────────

    async def fetch_feedback_page(
        self,
        board_id: str,
        *,
        page: int = 1,
        limit: int | None = None,
    ) -> FeedbackPage:
        """One page of a board, newest first as the backend orders it.

        Accepts both the paginated ``{"data": [...], "meta": {...}}`` body
        and a bare list (treated as the only page).
        """
        payload = await self._call(
            "fetch_feedback",
            "GET",
            f"/{board_id}/feedback",
            params={"page": page, "limit": limit or self._config.page_size},
        )
        meta: dict[str, Any] = {}
        if isinstance(payload, dict):
            meta = payload.get("meta") or {}
            payload = payload.get("data")
        items = self._rows("fetch_feedback", payload, FeedbackItem.from_dict)

        def paging() -> FeedbackPage:
            return FeedbackPage(
                items=items,
                page=int(meta.get("page") or page),
                total_pages=int(meta.get("totalPages") or 1),
                total=int(meta.get("total") or len(items)),
            )

        return self._record("fetch_feedback", paging)

    async def fetch_feedback(self, board_id: str) -> list[FeedbackItem]:
        """All feedback visible on a board, following every page.

        Stops after ``FeedbackConfig.max_pages`` pages, logging a warning
        if the board has more.
        """
        items: list[FeedbackItem] = []
        page = 1
        while True:
            result = await self.fetch_feedback_page(board_id, page=page)
            items.extend(result.items)
            if not result.has_more:
                break
            if page >= self._config.max_pages:
                logger.warning(
                    "Board %s has %d pages; stopped after %d",
                    board_id, result.total_pages, page,
                )
                break
            page += 1
        return items

    async def create_feedback(self, board_id: str, draft: FeedbackDraft) -> FeedbackItem:
        """Submit a new item.

        Raises:
            ValidationError: Blank title (raised before any request) or
                rejected by the backend.
        """
        draft.validate(max_title_length=self._config.max_title_length)
        payload = await self._call(
            "create_feedback",
            "POST",
            f"/{board_id}/feedback",
            json_body=draft.to_payload(),
        )
        return self._record("create_feedback", lambda: FeedbackItem.from_dict(payload))

    async def update_status(self, feedback_id: str, status: str) -> FeedbackItem:
        """Set any status; transitions are not restricted client-side."""
        if status not in VALID_STATUSES:
            raise ValidationError(
                f"Invalid status {status!r}. Must be one of: {sorted(VALID_STATUSES)}"
            )
        payload = await self._call(
            "update_status",
            "PATCH",
            f"/feedback/{feedback_id}/status",
            json_body={"status": status},
        )
        return self._record("update_status", lambda: FeedbackItem.from_dict(payload))

    async def delete_feedback(self, feedback_id: str) -> None:
        await self._call("delete_feedback", "DELETE", f"/feedback/{feedback_id}")

    # ── Votes ───────────────────────────────────────────

    async def vote(self, feedback_id: str, vote_type: str = "upvote") -> Vote | None:
        """Record a vote. Duplicate-vote rejection is the backend's call."""
        if vote_type not in VALID_VOTE_TYPES:
            raise ValidationError(
                f"Invalid vote_type {vote_type!r}. Must be one of: {sorted(VALID_VOTE_TYPES)}"
            )
        payload = await self._call(
            "vote",
            "POST",
            f"/feedback/{feedback_id}/vote",
            json_body={"vote_type": vote_type},
        )
        if isinstance(payload, dict) and "feedback_id" in payload:
            return self._record("vote", lambda: Vote.from_dict(payload))
        return None

    async def remove_vote(self, feedback_id: str) -> None:
        await self._call("remove_vote", "DELETE", f"/feedback/{feedback_id}/vote")

    # ── Comments ────────────────────────────────────────

    def _validate_content(self, content: str) -> None:
        if not content or not content.strip():
            raise ValidationError("content is required and must not be empty")
        limit = self._config.max_comment_length
        if limit and len(content.strip()) > limit:
            raise ValidationError(f"content is longer than {limit} characters")

    async def fetch_comments(self, feedback_id: str) -> list[Comment]:
        """Flat comment list for one item; no ordering is assumed."""
        payload = await self._call(
            "fetch_comments", "GET", f"/feedback/{feedback_id}/comments",
        )
        return self._rows("fetch_comments", payload, Comment.from_dict)

    async def create_comment(
        self,
        feedback_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> Comment:
        """Post a comment or a reply.

        Raises:
            ValidationError: Blank content (raised before any request).
        """
        self._validate_content(content)
        payload = await self._call(
            "create_comment",
            "POST",
            f"/feedback/{feedback_id}/comments",
            json_body={"content": content.strip(), "parent_id": parent_id},
        )
        return self._record("create_comment", lambda: Comment.from_dict(payload))

    async def update_comment(self, comment_id: str, content: str) -> Comment:
        self._validate_content(content)
        payload = await self._call(
            "update_comment",
            "PATCH",
            f"/comments/{comment_id}",
            json_body={"content": content.strip()},
        )
        return self._record("update_comment", lambda: Comment.from_dict(payload))

    async def delete_comment(self, comment_id: str) -> None:
        await self._call("delete_comment", "DELETE", f"/comments/{comment_id}")
