"""Tests for FeedbackBoardService actions."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest
import respx
import structlog

from feedback_portal.backend.client import FeedbackBackendClient
from feedback_portal.backend.http_client import HTTPClient, RetryConfig
from feedback_portal.feedback.errors import (
    DuplicateVoteError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
)
from feedback_portal.feedback.pipeline import FilterParams
from feedback_portal.feedback.schemas import FeedbackDraft
from feedback_portal.feedback.service import ActionResult, FeedbackBoardService
from feedback_portal.feedback.store import FeedbackStore
from tests.test_feedback.conftest import _make_comment, _make_item

BASE = "https://backend.example.com/boards-api"


@pytest.fixture
def service(mock_client, member_auth, board_items):
    return FeedbackBoardService(
        client=mock_client,
        authorization=member_auth,
        store=FeedbackStore(board_items),
    )


@pytest.fixture
def admin_service(mock_client, admin_auth, board_items):
    return FeedbackBoardService(
        client=mock_client,
        authorization=admin_auth,
        store=FeedbackStore(board_items),
    )


class TestActionResult:
    """Tests for ActionResult."""

    def test_failure_uses_user_message(self):
        result = ActionResult.failure(NetworkError("socket closed"))
        assert result.ok is False
        assert result.kind == "network"
        assert result.message == "Request failed, please try again"

    def test_success(self):
        result = ActionResult.success("done", 3)
        assert result.ok is True
        assert result.kind is None
        assert result.value == 3


class TestLoadBoard:
    """Tests for load_board() and view()."""

    @pytest.mark.asyncio
    async def test_load_replaces_store(self, mock_client, member_auth):
        mock_client.fetch_feedback.return_value = [_make_item("a"), _make_item("b")]
        service = FeedbackBoardService(client=mock_client, authorization=member_auth)

        result = await service.load_board("board_1")

        assert result.ok
        assert service.board_id == "board_1"
        assert [i.id for i in service.store.items] == ["a", "b"]
        mock_client.fetch_feedback.assert_awaited_once_with("board_1")

    @pytest.mark.asyncio
    async def test_load_failure_keeps_store(self, service, mock_client):
        mock_client.fetch_feedback.side_effect = NetworkError("down")

        result = await service.load_board("board_1")

        assert not result.ok
        assert result.kind == "network"
        assert len(service.store) == 4
        assert service.board_id is None

    @pytest.mark.asyncio
    async def test_load_binds_board_to_log_context(self, service):
        structlog.contextvars.clear_contextvars()

        await service.load_board("board_1")

        assert structlog.contextvars.get_contextvars()["board_id"] == "board_1"
        structlog.contextvars.clear_contextvars()

    def test_view_filters_and_sorts(self, service):
        view = service.view(FilterParams(category="UI", sort_key="popularity"))
        assert [i.id for i in view] == ["2", "1"]

    def test_view_does_not_touch_store(self, service):
        before = service.store.items
        service.view(FilterParams(search_text="dark", sort_key="popularity"))
        assert service.store.items == before


class TestVoting:
    """Tests for upvote() and remove_vote()."""

    @pytest.mark.asyncio
    async def test_upvote_success(self, service, mock_client):
        result = await service.upvote("1")

        assert result.ok
        assert result.message == "Vote recorded!"
        assert service.store.get("1").votes_count == 6
        mock_client.vote.assert_awaited_once_with("1", "upvote")

    @pytest.mark.asyncio
    async def test_upvote_network_failure_compensates(self, service, mock_client):
        mock_client.vote.side_effect = NetworkError("timeout")

        result = await service.upvote("1")

        assert not result.ok
        assert result.kind == "network"
        assert service.store.get("1").votes_count == 5

    @pytest.mark.asyncio
    async def test_duplicate_vote_compensates(self, service, mock_client):
        mock_client.vote.side_effect = DuplicateVoteError("already voted")

        result = await service.upvote("2")

        assert result.kind == "duplicate_vote"
        assert service.store.get("2").votes_count == 9

    @pytest.mark.asyncio
    async def test_remove_vote_failure_at_zero_does_not_drift(self, service, mock_client):
        mock_client.remove_vote.side_effect = NetworkError("timeout")

        result = await service.remove_vote("4")

        assert not result.ok
        assert service.store.get("4").votes_count == 0

    @pytest.mark.asyncio
    async def test_vote_on_missing_item_removes_it(self, service, mock_client):
        mock_client.vote.side_effect = NotFoundError("gone")

        result = await service.upvote("3")

        assert result.kind == "not_found"
        assert "3" not in service.store

    @pytest.mark.asyncio
    async def test_viewer_cannot_vote(self, mock_client, viewer_auth, board_items):
        service = FeedbackBoardService(
            client=mock_client,
            authorization=viewer_auth,
            store=FeedbackStore(board_items),
        )

        result = await service.upvote("1")

        assert result.kind == "permission"
        assert service.store.get("1").votes_count == 5
        mock_client.vote.assert_not_awaited()


class TestSubmitFeedback:
    """Tests for submit_feedback()."""

    @pytest.mark.asyncio
    async def test_blank_title_never_reaches_backend(self, service, mock_client):
        mock_client.fetch_feedback.return_value = []
        await service.load_board("board_1")

        result = await service.submit_feedback(FeedbackDraft(title="  "))

        assert not result.ok
        assert result.kind == "validation"
        assert result.message == "Please fill in the required fields"
        mock_client.create_feedback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_loaded_board(self, service, mock_client):
        result = await service.submit_feedback(FeedbackDraft(title="Dark mode"))

        assert result.kind == "validation"
        mock_client.create_feedback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_adds_to_store(self, service, mock_client):
        mock_client.fetch_feedback.return_value = [_make_item("1")]
        await service.load_board("board_1")
        created = _make_item("new", title="Dark mode")
        mock_client.create_feedback.return_value = created
        draft = FeedbackDraft(title="Dark mode")

        result = await service.submit_feedback(draft)

        assert result.ok
        assert result.message == "Your feedback has been submitted!"
        assert service.store.get("new") == created
        mock_client.create_feedback.assert_awaited_once_with("board_1", draft)


class TestComments:
    """Tests for load_thread(), add_comment() and delete_comment()."""

    @pytest.mark.asyncio
    async def test_load_thread_builds_two_levels(self, service, mock_client):
        mock_client.fetch_comments.return_value = [
            _make_comment("C", parent_id="B", minutes=3),
            _make_comment("A", minutes=1),
            _make_comment("B", parent_id="A", minutes=2),
        ]

        result = await service.load_thread("f1")

        assert result.ok
        assert [t.comment.id for t in result.value] == ["A"]
        assert [r.id for r in result.value[0].replies] == ["B"]

    @pytest.mark.asyncio
    async def test_add_comment_bumps_counter(self, service, mock_client):
        mock_client.create_comment.return_value = _make_comment("c1", feedback_id="1")

        result = await service.add_comment("1", "Great idea")

        assert result.ok
        assert result.message == "Comment added successfully"
        assert service.store.get("1").comments_count == 1
        mock_client.create_comment.assert_awaited_once_with("1", "Great idea", None)

    @pytest.mark.asyncio
    async def test_blank_comment_rejected(self, service, mock_client):
        result = await service.add_comment("1", "   ")

        assert result.kind == "validation"
        mock_client.create_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_comment_failure_leaves_counter(self, service, mock_client):
        mock_client.create_comment.side_effect = NetworkError("timeout")

        result = await service.add_comment("1", "hello")

        assert not result.ok
        assert service.store.get("1").comments_count == 0

    @pytest.mark.asyncio
    async def test_member_cannot_delete_comment(self, service, mock_client):
        result = await service.delete_comment("1", "c1")

        assert result.kind == "permission"
        mock_client.delete_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_deletes_comment(self, admin_service, mock_client):
        admin_service.store.upsert(_make_item("1", comments_count=2))

        result = await admin_service.delete_comment("1", "c1")

        assert result.ok
        assert admin_service.store.get("1").comments_count == 1
        mock_client.delete_comment.assert_awaited_once_with("c1")

    @pytest.mark.asyncio
    async def test_edit_comment(self, service, mock_client):
        mock_client.update_comment.return_value = _make_comment("c1", content="Edited")

        result = await service.edit_comment("c1", "Edited")

        assert result.ok
        assert result.value.content == "Edited"
        assert service.store.get("1").comments_count == 0
        mock_client.update_comment.assert_awaited_once_with("c1", "Edited")

    @pytest.mark.asyncio
    async def test_blank_edit_rejected(self, service, mock_client):
        result = await service.edit_comment("c1", " ")

        assert result.kind == "validation"
        mock_client.update_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_viewer_cannot_edit_comment(self, mock_client, viewer_auth):
        service = FeedbackBoardService(client=mock_client, authorization=viewer_auth)

        result = await service.edit_comment("c1", "Edited")

        assert result.kind == "permission"
        mock_client.update_comment.assert_not_awaited()


class TestModeration:
    """Tests for change_status() and delete_feedback()."""

    @pytest.mark.asyncio
    async def test_member_cannot_change_status(self, service, mock_client):
        result = await service.change_status("1", "completed")

        assert result.kind == "permission"
        assert result.message == PermissionDeniedError.user_message
        mock_client.update_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_changes_status_any_direction(self, admin_service, mock_client):
        mock_client.update_status.return_value = _make_item("4", status="submitted")

        result = await admin_service.change_status("4", "submitted")

        assert result.ok
        assert admin_service.store.get("4").status == "submitted"

    @pytest.mark.asyncio
    async def test_delete_removes_item(self, admin_service):
        result = await admin_service.delete_feedback("2")

        assert result.ok
        assert result.value.id == "2"
        assert "2" not in admin_service.store

    @pytest.mark.asyncio
    async def test_delete_of_already_gone_item_succeeds(self, admin_service, mock_client):
        mock_client.delete_feedback.side_effect = NotFoundError("gone")

        result = await admin_service.delete_feedback("2")

        assert result.ok
        assert "2" not in admin_service.store

    @pytest.mark.asyncio
    async def test_delete_network_failure_keeps_item(self, admin_service, mock_client):
        mock_client.delete_feedback.side_effect = NetworkError("timeout")

        result = await admin_service.delete_feedback("2")

        assert not result.ok
        assert "2" in admin_service.store


class TestConcurrentActions:
    """Independent actions interleave without losing updates."""

    @pytest.mark.asyncio
    async def test_parallel_votes_on_different_items(self, service, mock_client):
        mock_client.vote = AsyncMock(return_value=None)
        results = await asyncio.gather(service.upvote("1"), service.upvote("3"))

        assert all(r.ok for r in results)
        assert service.store.get("1").votes_count == 6
        assert service.store.get("3").votes_count == 10


class TestWithBackendClient:
    """Actions over the real boards client, with the backend mocked by respx."""

    @pytest.fixture
    def backend_service(self, test_settings, member_auth, board_items):
        http = HTTPClient(RetryConfig(max_retries=0, base_delay=0.01))
        client = FeedbackBackendClient(http, settings=test_settings)
        return http, FeedbackBoardService(
            client=client,
            authorization=member_auth,
            store=FeedbackStore(board_items),
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_board_is_a_network_failure(self, backend_service):
        http, service = backend_service
        respx.get(f"{BASE}/board_1/feedback").mock(
            return_value=httpx.Response(200, json={
                "data": {"data": [{"id": "1", "title": "x", "created_at": "yesterday"}]},
            })
        )

        async with http:
            result = await service.load_board("board_1")

        assert result.kind == "network"
        assert len(service.store) == 4

    @pytest.mark.asyncio
    @respx.mock
    async def test_dropped_connection_compensates_vote(self, backend_service):
        http, service = backend_service
        respx.post(f"{BASE}/feedback/1/vote").mock(
            side_effect=httpx.RemoteProtocolError("server disconnected")
        )

        async with http:
            result = await service.upvote("1")

        assert not result.ok
        assert result.kind == "network"
        assert service.store.get("1").votes_count == 5
