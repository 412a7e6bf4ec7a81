"""Recent searches and search-box suggestions.

Recent searches persist through an injected key-value store rather than
ambient global state, so the same code runs against Redis in a deployed
session and against an in-memory dict in tests.

Components:
- KeyValueStore: Protocol for async get/set/delete of string values
- InMemoryKeyValueStore: Dict-backed store
- RedisKeyValueStore: redis.asyncio-backed store
- RecentSearches: Most-recent-first, de-duplicated, bounded search history
- build_suggestions: Merge provided, recent, and popular suggestions
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol

logger = logging.getLogger(__name__)

SuggestionType = Literal["article", "category", "tag", "recent"]

POPULAR_SEARCHES: tuple[str, ...] = (
    "Getting started",
    "API integration",
    "User management",
    "Roadmap planning",
    "Feedback collection",
)

# Provided (caller-supplied) suggestions shown ahead of recent/popular ones
MAX_PROVIDED_SUGGESTIONS = 3


class KeyValueStore(Protocol):
    """Minimal persistence capability for small string values."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class RedisKeyValueStore:
    """KeyValueStore over a ``redis.asyncio`` client.

    The client should be created with ``decode_responses=True``.
    """

    def __init__(self, redis_client: Any, namespace: str = "feedback_portal") -> None:
        self._redis = redis_client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> str | None:
        return await self._redis.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        await self._redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))


class RecentSearches:
    """Bounded most-recent-first search history.

    Args:
        store: Where the history is persisted (as a JSON list).
        key: Store key.
        limit: Maximum entries kept.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = "kb-recent-searches",
        limit: int = 5,
    ) -> None:
        self._store = store
        self._key = key
        self._limit = limit

    async def load(self) -> list[str]:
        """Saved searches, newest first. Corrupt data reads as empty."""
        raw = await self._store.get(self._key)
        if not raw:
            return []
        try:
            saved = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable recent searches under %s", self._key)
            return []
        if not isinstance(saved, list):
            return []
        return [s for s in saved if isinstance(s, str)][: self._limit]

    async def record(self, query: str) -> list[str]:
        """Move ``query`` to the front of the history and persist it.

        Blank queries are ignored. Returns the updated history.
        """
        if not query.strip():
            return await self.load()
        current = await self.load()
        updated = [query] + [s for s in current if s != query]
        updated = updated[: self._limit]
        await self._store.set(self._key, json.dumps(updated))
        return updated

    async def clear(self) -> None:
        await self._store.delete(self._key)


@dataclass(frozen=True)
class SearchSuggestion:
    """One entry in the search-box dropdown."""

    id: str
    title: str
    type: str
    description: str | None = None


def build_suggestions(
    query: str,
    recent: list[str],
    popular: tuple[str, ...] | list[str] = POPULAR_SEARCHES,
    provided: list[SearchSuggestion] | None = None,
    limit: int = 8,
) -> list[SearchSuggestion]:
    """Dropdown suggestions: provided first, then recent, then popular.

    With a non-blank query only titles containing it (case-insensitive)
    are kept. Titles already listed are not repeated.
    """
    candidates: list[SearchSuggestion] = list((provided or [])[:MAX_PROVIDED_SUGGESTIONS])
    candidates += [SearchSuggestion(id=s, title=s, type="recent") for s in recent]
    candidates += [SearchSuggestion(id=s, title=s, type="tag") for s in popular]

    needle = query.strip().lower()
    seen: set[str] = set()
    result: list[SearchSuggestion] = []
    for suggestion in candidates:
        key = suggestion.title.lower()
        if needle and needle not in key:
            continue
        if key in seen:
            continue
        seen.add(key)
        result.append(suggestion)
        if len(result) >= limit:
            break
    return result
