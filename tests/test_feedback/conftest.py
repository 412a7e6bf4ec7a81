"""Shared fixtures for feedback tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from feedback_portal.feedback.authorization import Authorization, Role
from feedback_portal.feedback.schemas import Comment, FeedbackItem

BASE_TIME = datetime(2026, 2, 5, 10, 0, 0, tzinfo=timezone.utc)


def _make_item(id: str, **overrides) -> FeedbackItem:
    """FeedbackItem with sensible defaults; ``overrides`` win."""
    fields = {
        "title": f"Feedback {id}",
        "created_at": BASE_TIME,
    }
    fields.update(overrides)
    return FeedbackItem(id=id, **fields)


def _make_comment(id: str, parent_id: str | None = None, minutes: int = 0, **overrides) -> Comment:
    """Comment on feedback ``f1`` created ``minutes`` after BASE_TIME."""
    fields = {
        "feedback_id": "f1",
        "content": f"Comment {id}",
        "author_id": "user_1",
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    fields.update(overrides)
    return Comment(id=id, parent_id=parent_id, **fields)


@pytest.fixture
def sample_item():
    """A FeedbackItem with all fields populated."""
    return FeedbackItem(
        id="feedback_abc123",
        title="Dark Mode",
        description="Please add a dark theme to the dashboard",
        status="planned",
        priority="high",
        category="UI",
        votes_count=12,
        comments_count=3,
        tags=["ui", "theme"],
        created_at=BASE_TIME,
        updated_at=BASE_TIME + timedelta(days=2),
        board_id="board_1",
        submitted_by="user_42",
        rating=4.5,
    )


@pytest.fixture
def board_items():
    """A small board with a mix of statuses, categories and votes."""
    return [
        _make_item("1", title="Dark Mode", category="UI", votes_count=5, status="planned"),
        _make_item(
            "2",
            title="Light theme",
            description="supports dark too",
            category="UI",
            votes_count=9,
            priority="high",
        ),
        _make_item("3", title="CSV export", category="Data", votes_count=9, tags=["export"]),
        _make_item("4", title="SSO login", votes_count=0, status="completed", priority="critical"),
    ]


@pytest.fixture
def member_auth():
    return Authorization(user_id="user_1", roles=frozenset({Role.MEMBER}))


@pytest.fixture
def admin_auth():
    return Authorization(user_id="admin_1", roles=frozenset({Role.ADMIN}))


@pytest.fixture
def viewer_auth():
    return Authorization(user_id="viewer_1", roles=frozenset({Role.VIEWER}))


@pytest.fixture
def mock_client():
    """Backend client double with async methods."""
    client = AsyncMock()
    client.fetch_feedback = AsyncMock(return_value=[])
    client.fetch_comments = AsyncMock(return_value=[])
    client.vote = AsyncMock(return_value=None)
    client.remove_vote = AsyncMock(return_value=None)
    client.create_feedback = AsyncMock()
    client.create_comment = AsyncMock()
    client.update_comment = AsyncMock()
    client.update_status = AsyncMock()
    client.delete_feedback = AsyncMock(return_value=None)
    client.delete_comment = AsyncMock(return_value=None)
    return client
