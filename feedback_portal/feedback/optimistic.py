"""Optimistic update stage: intent -> apply -> await confirmation -> commit or compensate.

Wraps any local mutation that is shown before the backend confirms it
(votes, toggles). The local change is applied synchronously, the backend
call is awaited, and if the call fails for any reason the inverse
change is applied before the error is re-raised to the action boundary.

Usage:
    action = OptimisticAction(
        name="upvote",
        apply=lambda: store.apply_vote(fid, +1),
        compensate=lambda: store.apply_vote(fid, -1),
        confirm=lambda: client.vote(fid, "upvote"),
    )
    result = await run_optimistic(action)
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from feedback_portal.feedback.errors import FeedbackError
from feedback_portal.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OptimisticOutcome(enum.Enum):
    """Terminal states of an optimistic action."""

    PENDING = "pending"
    COMMITTED = "committed"
    COMPENSATED = "compensated"


@dataclass
class OptimisticAction(Generic[T]):
    """One optimistic mutation and its rollback.

    Attributes:
        name: Action name for logs and metrics.
        apply: Synchronous local mutation, run first.
        compensate: Synchronous inverse of ``apply``, run on failure.
        confirm: Backend call whose success commits the mutation.
    """

    name: str
    apply: Callable[[], Any]
    compensate: Callable[[], Any]
    confirm: Callable[[], Awaitable[T]]
    outcome: OptimisticOutcome = OptimisticOutcome.PENDING


async def run_optimistic(action: OptimisticAction[T]) -> T:
    """Apply, await confirmation, then commit or compensate.

    Returns:
        Whatever ``confirm`` returned.

    Raises:
        Exception: Whatever the confirmation raised, after the local
            change has been compensated.
    """
    action.apply()
    try:
        result = await action.confirm()
    except Exception as e:
        action.compensate()
        action.outcome = OptimisticOutcome.COMPENSATED
        get_metrics().record_compensation(action.name)
        kind = e.kind if isinstance(e, FeedbackError) else type(e).__name__
        logger.warning("Optimistic %s compensated after %s: %s", action.name, kind, e)
        raise
    action.outcome = OptimisticOutcome.COMMITTED
    return result
