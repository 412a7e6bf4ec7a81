"""In-memory store of the feedback items shown on one board.

The store is the single piece of mutable state in a board session. Every
operation is total: an unknown id is "nothing to do", never an error, because
the held list may be a filtered or paged subset of what the backend has.

Mutations are synchronous and visible to the next read. Vote counts are
applied optimistically; rolling back a failed vote is the caller's job
(apply the inverse delta).
"""

import logging
from dataclasses import replace

from feedback_portal.feedback.schemas import FeedbackItem

logger = logging.getLogger(__name__)

_VALID_DELTAS = (1, -1)


class FeedbackStore:
    """Holds the canonical list of feedback items for a board.

    Items are replaced rather than mutated in place, so lists handed out
    by ``items`` or derived by the filter pipeline never change underneath
    their holder. Not thread-safe; owned by exactly one session.
    """

    def __init__(self, items: list[FeedbackItem] | None = None) -> None:
        self._items: list[FeedbackItem] = list(items or [])

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, feedback_id: object) -> bool:
        return self._index_of(feedback_id) is not None

    @property
    def items(self) -> list[FeedbackItem]:
        """A copy of the held list, in held order."""
        return list(self._items)

    def get(self, feedback_id: str) -> FeedbackItem | None:
        idx = self._index_of(feedback_id)
        return self._items[idx] if idx is not None else None

    def load(self, items: list[FeedbackItem]) -> None:
        """Replace the held list wholesale."""
        self._items = list(items)
        logger.debug("Store loaded with %d items", len(self._items))

    def apply_vote(self, feedback_id: str, delta: int) -> FeedbackItem | None:
        """Add ``delta`` (+1 or -1) to an item's vote count, floored at zero.

        Args:
            feedback_id: Item to update.
            delta: +1 for an upvote, -1 to retract or compensate one.

        Returns:
            The updated item, or None if no item matches.
        """
        if delta not in _VALID_DELTAS:
            raise ValueError(f"Invalid vote delta {delta!r}. Must be +1 or -1.")
        idx = self._index_of(feedback_id)
        if idx is None:
            return None
        current = self._items[idx]
        updated = replace(current, votes_count=max(0, current.votes_count + delta))
        self._items[idx] = updated
        return updated

    def adjust_comments_count(self, feedback_id: str, delta: int) -> FeedbackItem | None:
        """Bump the cached comment counter, floored at zero.

        The counter is never re-derived from the actual comment list.
        """
        if delta not in _VALID_DELTAS:
            raise ValueError(f"Invalid comment delta {delta!r}. Must be +1 or -1.")
        idx = self._index_of(feedback_id)
        if idx is None:
            return None
        current = self._items[idx]
        updated = replace(
            current, comments_count=max(0, current.comments_count + delta)
        )
        self._items[idx] = updated
        return updated

    def upsert(self, item: FeedbackItem) -> None:
        """Replace the item with the same id, or append it if new."""
        idx = self._index_of(item.id)
        if idx is None:
            self._items.append(item)
        else:
            self._items[idx] = item

    def remove(self, feedback_id: str) -> FeedbackItem | None:
        """Drop an item. Returns the removed item, or None if absent."""
        idx = self._index_of(feedback_id)
        if idx is None:
            return None
        return self._items.pop(idx)

    def _index_of(self, feedback_id: object) -> int | None:
        for idx, item in enumerate(self._items):
            if item.id == feedback_id:
                return idx
        return None
