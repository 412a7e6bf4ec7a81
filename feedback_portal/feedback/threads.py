"""Two-level comment threads for a feedback item.

Boards show comments one level deep: each top-level comment (no parent)
anchors a thread, and the thread lists the comments whose ``parent_id``
is that top-level comment. A reply to a reply has no place in that
model and is dropped from display. This is a known constraint of the
display model, not a storage rule; the comment itself still exists.

The builder makes two passes over the input, never re-sorts, and never
mutates what it is given. Callers sort by ``created_at`` first (see
``sort_comments``) to pick the display order.
"""

from collections import defaultdict
from dataclasses import dataclass, field

from feedback_portal.feedback.schemas import Comment


@dataclass
class CommentThread:
    """A top-level comment and its direct replies, in input order."""

    comment: Comment
    replies: list[Comment] = field(default_factory=list)

    @property
    def reply_count(self) -> int:
        return len(self.replies)


def build_comment_tree(comments: list[Comment]) -> list[CommentThread]:
    """Group a flat comment list into top-level threads.

    Args:
        comments: All comments for one feedback item, in display order.

    Returns:
        One thread per top-level comment, each holding the comments whose
        parent is that top-level comment. Replies whose parent is itself a
        reply (or is not in the list) appear nowhere.
    """
    top_level: list[Comment] = []
    replies_by_parent: dict[str, list[Comment]] = defaultdict(list)

    for comment in comments:
        if comment.parent_id is None:
            top_level.append(comment)
        else:
            replies_by_parent[comment.parent_id].append(comment)

    return [
        CommentThread(comment=c, replies=list(replies_by_parent.get(c.id, [])))
        for c in top_level
    ]


def dropped_comments(comments: list[Comment]) -> list[Comment]:
    """Comments that ``build_comment_tree`` cannot place under any thread."""
    top_level_ids = {c.id for c in comments if c.parent_id is None}
    return [
        c for c in comments
        if c.parent_id is not None and c.parent_id not in top_level_ids
    ]


def sort_comments(comments: list[Comment], newest_first: bool = False) -> list[Comment]:
    """Stable sort by ``created_at``; returns a new list."""
    return sorted(comments, key=lambda c: c.created_at, reverse=newest_first)
