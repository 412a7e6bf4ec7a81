"""
Command-line interface for feedback-portal.

Runs board actions against the hosted backend, for operators and for
checking a deployment by hand.

Usage:
    feedback-portal board BOARD_ID            # List a board's feedback
    feedback-portal thread FEEDBACK_ID        # Show a comment thread
    feedback-portal submit BOARD_ID --title   # Submit new feedback
    feedback-portal vote BOARD_ID FEEDBACK_ID # Upvote an item
    feedback-portal status BOARD_ID FEEDBACK_ID STATUS
    feedback-portal recent [--query TEXT]     # Recent searches and suggestions
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import click
from redis.exceptions import RedisError

from feedback_portal.config.settings import get_settings
from feedback_portal.feedback.authorization import Authorization, Role
from feedback_portal.feedback.pipeline import VALID_SORT_KEYS, FilterParams
from feedback_portal.feedback.schemas import PRIORITIES, STATUSES
from feedback_portal.observability.logging import bind_context, setup_logging

logger = logging.getLogger(__name__)

ROLE_NAMES = [r.value for r in Role]


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--user-id", default=None, help="Session user id")
@click.option(
    "--role",
    "roles",
    multiple=True,
    type=click.Choice(ROLE_NAMES),
    help="Session role (repeatable)",
)
@click.option("--metrics", is_flag=True, help="Expose Prometheus metrics on METRICS_PORT")
@click.pass_context
def main(
    ctx: click.Context,
    debug: bool,
    user_id: str | None,
    roles: tuple[str, ...],
    metrics: bool,
) -> None:
    """Feedback Portal - customer feedback boards."""
    setup_logging("DEBUG" if debug else None)
    bind_context(user_id=user_id)
    if metrics:
        from feedback_portal.observability.metrics import get_metrics

        get_metrics().start_server()
    ctx.obj = Authorization.from_role_names(user_id, list(roles))


@asynccontextmanager
async def _board_service(authorization: Authorization) -> AsyncIterator[Any]:
    """Service wired to a live backend client for the duration of a command."""
    from feedback_portal.backend.client import FeedbackBackendClient
    from feedback_portal.backend.http_client import HTTPClient, RetryConfig
    from feedback_portal.feedback.config import FeedbackConfig
    from feedback_portal.feedback.service import FeedbackBoardService

    settings = get_settings()
    if not settings.backend_configured:
        logger.warning("BACKEND_API_KEY is not set; requests go out unauthenticated")
    retry = RetryConfig(
        max_retries=settings.max_http_retries,
        max_backoff_seconds=settings.max_backoff_seconds,
    )
    config = FeedbackConfig()
    async with HTTPClient(retry, timeout=settings.http_timeout_seconds) as http:
        client = FeedbackBackendClient(http, settings=settings, config=config)
        yield FeedbackBoardService(client, authorization, config=config)


def _report_failure(result: Any) -> None:
    click.echo(click.style(f"Error: {result.message}", fg="red"), err=True)
    sys.exit(1)


def _format_item(item: Any) -> str:
    category = f" [{item.category}]" if item.category else ""
    return (
        f"{item.id}  {item.title}{category}\n"
        f"    status: {item.status_label}  priority: {item.priority}  "
        f"votes: {item.votes_count}  comments: {item.comments_count}"
    )


@main.command()
@click.argument("board_id")
@click.option("--search", "search_text", default=None, help="Text to match in title or description")
@click.option("--status", default="all", type=click.Choice(["all", *STATUSES]))
@click.option("--category", default="all", help="Exact category, or 'all'")
@click.option("--priority", default="all", type=click.Choice(["all", *PRIORITIES]))
@click.option("--tag", "tags", multiple=True, help="Required tag (repeatable)")
@click.option("--sort", "sort_key", default="relevance", type=click.Choice(sorted(VALID_SORT_KEYS)))
@click.pass_obj
def board(
    authorization: Authorization,
    board_id: str,
    search_text: str | None,
    status: str,
    category: str,
    priority: str,
    tags: tuple[str, ...],
    sort_key: str,
) -> None:
    """List a board's feedback, filtered and sorted."""
    params = FilterParams(
        search_text=search_text,
        status=status,
        category=category,
        priority=priority,
        tags=list(tags),
        sort_key=sort_key,
    )

    async def run():
        async with _board_service(authorization) as service:
            result = await service.load_board(board_id)
            if not result.ok:
                return result, []
            if search_text and search_text.strip():
                await _remember_search(search_text)
            return result, service.view(params)

    result, items = asyncio.run(run())
    if not result.ok:
        _report_failure(result)

    click.echo(f"\nBoard {board_id}: {len(items)} of {len(result.value)} items")
    click.echo("-" * 60)
    if not items:
        click.echo("No feedback matches the current filters.")
        return
    for item in items:
        click.echo(_format_item(item))


@main.command()
@click.argument("feedback_id")
@click.option("--newest-first", is_flag=True, help="Show newest comments first")
@click.pass_obj
def thread(authorization: Authorization, feedback_id: str, newest_first: bool) -> None:
    """Show the comment threads on a feedback item."""

    async def run():
        async with _board_service(authorization) as service:
            return await service.load_thread(feedback_id, newest_first=newest_first)

    result = asyncio.run(run())
    if not result.ok:
        _report_failure(result)

    threads = result.value
    if not threads:
        click.echo("No comments yet.")
        return
    for t in threads:
        click.echo(f"{t.comment.author_id or 'anonymous'}: {t.comment.content}")
        for reply in t.replies:
            click.echo(f"    ↳ {reply.author_id or 'anonymous'}: {reply.content}")


@main.command()
@click.argument("board_id")
@click.option("--title", required=True, help="Feedback title")
@click.option("--description", default=None, help="Longer description")
@click.option("--category", default=None, help="Category label")
@click.option("--priority", default="medium", type=click.Choice(list(PRIORITIES)))
@click.pass_obj
def submit(
    authorization: Authorization,
    board_id: str,
    title: str,
    description: str | None,
    category: str | None,
    priority: str,
) -> None:
    """Submit new feedback to a board."""
    from feedback_portal.feedback.schemas import FeedbackDraft

    draft = FeedbackDraft(
        title=title,
        description=description,
        category=category,
        priority=priority,
    )

    async def run():
        async with _board_service(authorization) as service:
            loaded = await service.load_board(board_id)
            if not loaded.ok:
                return loaded
            return await service.submit_feedback(draft)

    result = asyncio.run(run())
    if not result.ok:
        _report_failure(result)
    click.echo(click.style(result.message, fg="green"))
    click.echo(_format_item(result.value))


@main.command()
@click.argument("board_id")
@click.argument("feedback_id")
@click.pass_obj
def vote(authorization: Authorization, board_id: str, feedback_id: str) -> None:
    """Upvote a feedback item."""

    async def run():
        async with _board_service(authorization) as service:
            loaded = await service.load_board(board_id)
            if not loaded.ok:
                return loaded
            return await service.upvote(feedback_id)

    result = asyncio.run(run())
    if not result.ok:
        _report_failure(result)
    click.echo(click.style(result.message, fg="green"))
    if result.value is not None:
        click.echo(_format_item(result.value))


@main.command()
@click.argument("board_id")
@click.argument("feedback_id")
@click.argument("new_status", type=click.Choice(list(STATUSES)))
@click.pass_obj
def status(authorization: Authorization, board_id: str, feedback_id: str, new_status: str) -> None:
    """Change a feedback item's status (admin only)."""

    async def run():
        async with _board_service(authorization) as service:
            loaded = await service.load_board(board_id)
            if not loaded.ok:
                return loaded
            return await service.change_status(feedback_id, new_status)

    result = asyncio.run(run())
    if not result.ok:
        _report_failure(result)
    click.echo(click.style(result.message, fg="green"))
    click.echo(_format_item(result.value))


@asynccontextmanager
async def _recent_searches() -> AsyncIterator[Any]:
    """RecentSearches over Redis, or None when Redis is not configured."""
    settings = get_settings()
    if not settings.redis_url:
        yield None
        return

    import redis.asyncio as redis

    from feedback_portal.feedback.config import FeedbackConfig
    from feedback_portal.feedback.search import RecentSearches, RedisKeyValueStore

    config = FeedbackConfig()
    redis_client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        yield RecentSearches(
            RedisKeyValueStore(redis_client),
            key=config.recent_search_key,
            limit=config.recent_search_limit,
        )
    finally:
        await redis_client.aclose()


async def _remember_search(query: str) -> None:
    """Best effort: a Redis outage never fails the board listing."""
    async with _recent_searches() as history:
        if history is None:
            return
        try:
            await history.record(query)
        except RedisError as e:
            logger.warning("Could not remember search %r: %s", query, e)


@main.command()
@click.option("--clear", is_flag=True, help="Forget recent searches")
@click.option("--query", default=None, help="Show search-box suggestions for this text")
def recent(clear: bool, query: str | None) -> None:
    """Show recent board searches (requires REDIS_URL)."""
    from feedback_portal.feedback.config import FeedbackConfig
    from feedback_portal.feedback.search import build_suggestions

    async def run():
        async with _recent_searches() as history:
            if history is None:
                return None
            if clear:
                await history.clear()
                return []
            return await history.load()

    try:
        searches = asyncio.run(run())
    except RedisError as e:
        click.echo(click.style(f"Recent searches unavailable: {e}", fg="red"), err=True)
        sys.exit(1)

    if searches is None:
        click.echo("Recent searches need REDIS_URL to be set.")
        sys.exit(1)
    if clear:
        click.echo("Recent searches cleared.")
        return
    if query is not None:
        limit = FeedbackConfig().suggestion_limit
        for suggestion in build_suggestions(query, searches, limit=limit):
            click.echo(f"  {suggestion.title}  ({suggestion.type})")
        return
    if not searches:
        click.echo("No recent searches.")
        return
    for search in searches:
        click.echo(f"  {search}")


if __name__ == "__main__":
    main()
