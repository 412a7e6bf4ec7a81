"""Filter and sort pipeline deriving the displayed view of a board.

Takes the store's held list plus the active filter parameters and returns
a new ordered list. Filtering and sorting are pure: the input list and its
items are never touched, the same parameters always give the same output,
and ties keep their input order (Python's sort is stable, including with
``reverse=True``).

Sort keys:
- relevance: pass-through, the backend's order is kept
- popularity: votes descending
- recent: last update (or creation) time descending
- rating: rating descending, unrated items after rated ones
- trending: votes plus a flat boost for recently created items
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Literal

from feedback_portal.feedback.schemas import FeedbackItem

logger = logging.getLogger(__name__)

SortKey = Literal["relevance", "popularity", "recent", "rating", "trending"]

VALID_SORT_KEYS: frozenset[str] = frozenset({
    "relevance",
    "popularity",
    "recent",
    "rating",
    "trending",
})

# Sentinel meaning "no constraint" for exact-match filters
ALL = "all"

DEFAULT_TRENDING_WINDOW = timedelta(days=7)
DEFAULT_TRENDING_BOOST = 10


@dataclass
class FilterParams:
    """Active filter settings. Every field defaults to "no constraint".

    Attributes:
        search_text: Case-insensitive substring matched against title or
            description. Blank means no constraint.
        status: Exact status, or ``"all"``.
        category: Exact category, or ``"all"``.
        priority: Exact priority, or ``"all"``.
        tags: Tags an item must all carry.
        sort_key: Ordering of the output.
    """

    search_text: str | None = None
    status: str | None = ALL
    category: str | None = ALL
    priority: str | None = ALL
    tags: list[str] = field(default_factory=list)
    sort_key: str = "relevance"

    def __post_init__(self) -> None:
        if self.sort_key not in VALID_SORT_KEYS:
            raise ValueError(
                f"Invalid sort_key {self.sort_key!r}. "
                f"Must be one of: {sorted(VALID_SORT_KEYS)}"
            )

    @property
    def normalized_search(self) -> str | None:
        """Lower-cased search text, or None when blank."""
        if self.search_text is None or not self.search_text.strip():
            return None
        return self.search_text.lower()


def _unconstrained(value: str | None) -> bool:
    return value is None or value == ALL


def matches(item: FeedbackItem, params: FilterParams) -> bool:
    """Whether a single item passes every active predicate."""
    needle = params.normalized_search
    if needle is not None:
        in_title = needle in item.title.lower()
        in_description = needle in (item.description or "").lower()
        if not (in_title or in_description):
            return False

    if not _unconstrained(params.status) and item.status != params.status:
        return False
    if not _unconstrained(params.category) and item.category != params.category:
        return False
    if not _unconstrained(params.priority) and item.priority != params.priority:
        return False
    if params.tags and not all(tag in item.tags for tag in params.tags):
        return False
    return True


def filter_feedback(items: list[FeedbackItem], params: FilterParams) -> list[FeedbackItem]:
    """Items passing every predicate, in input order."""
    return [item for item in items if matches(item, params)]


def sort_feedback(
    items: list[FeedbackItem],
    sort_key: str = "relevance",
    *,
    now: datetime | None = None,
    trending_window: timedelta = DEFAULT_TRENDING_WINDOW,
    trending_boost: int = DEFAULT_TRENDING_BOOST,
) -> list[FeedbackItem]:
    """Stable sort of ``items`` by ``sort_key``; returns a new list.

    Args:
        items: Items to order.
        sort_key: One of VALID_SORT_KEYS.
        now: Reference time for the trending window (defaults to now, UTC).
        trending_window: How recent an item must be to get the boost.
        trending_boost: Votes-equivalent boost for recent items.

    Returns:
        A new list; ties keep their relative input order.
    """
    if sort_key == "relevance":
        return list(items)
    if sort_key == "popularity":
        return sorted(items, key=lambda i: i.votes_count, reverse=True)
    if sort_key == "recent":
        return sorted(items, key=lambda i: i.last_activity, reverse=True)
    if sort_key == "rating":
        return sorted(
            items,
            key=lambda i: (i.rating is not None, i.rating or 0.0),
            reverse=True,
        )
    if sort_key == "trending":
        cutoff = (now or datetime.now(timezone.utc)) - trending_window

        def trending_score(item: FeedbackItem) -> int:
            boost = trending_boost if item.created_at > cutoff else 0
            return item.votes_count + boost

        return sorted(items, key=trending_score, reverse=True)

    raise ValueError(
        f"Invalid sort_key {sort_key!r}. Must be one of: {sorted(VALID_SORT_KEYS)}"
    )


def apply_pipeline(
    items: list[FeedbackItem],
    params: FilterParams,
    *,
    now: datetime | None = None,
    trending_window: timedelta = DEFAULT_TRENDING_WINDOW,
    trending_boost: int = DEFAULT_TRENDING_BOOST,
) -> list[FeedbackItem]:
    """Filter then sort. An empty result is an empty list."""
    filtered = filter_feedback(items, params)
    result = sort_feedback(
        filtered,
        params.sort_key,
        now=now,
        trending_window=trending_window,
        trending_boost=trending_boost,
    )
    logger.debug(
        "Pipeline kept %d of %d items (sort=%s)",
        len(result),
        len(items),
        params.sort_key,
    )
    return result


def available_categories(items: list[FeedbackItem]) -> list[str]:
    """Distinct non-empty categories in first-seen order."""
    seen: dict[str, None] = {}
    for item in items:
        if item.category:
            seen.setdefault(item.category, None)
    return list(seen)


def active_filter_count(params: FilterParams) -> int:
    """Number of constraining filters, as shown on the filter badge."""
    count = sum(
        1 for value in (params.status, params.category, params.priority)
        if not _unconstrained(value)
    )
    return count + len(params.tags)
