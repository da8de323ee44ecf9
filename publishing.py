"""
Draft/published transitions.

A post has no stored state column; it is Published exactly when
``published_at`` is set. Every write carries the caller's ``publish`` flag
and the rules below decide the resulting timestamp:

    Draft     --publish=True-->  Published   stamp now
    Published --publish=True-->  Published   keep the original stamp
    Published --publish=False--> Draft       clear the stamp
    Draft     --publish=False--> Draft       nothing
"""
import enum
from datetime import datetime
from typing import Optional


class PostState(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


def state_of(published_at: Optional[datetime]) -> PostState:
    return PostState.PUBLISHED if published_at is not None else PostState.DRAFT


def next_published_at(current: Optional[datetime], publish: bool, now: datetime) -> Optional[datetime]:
    """Return the ``published_at`` a post should carry after a write.

    Args:
        current: The post's timestamp before the write (None for a new post or a draft).
        publish: The caller's intent for this write.
        now: The write time.
    """
    if not publish:
        return None
    if current is not None:
        return current
    return now


def transition(current: Optional[datetime], publish: bool) -> tuple[PostState, PostState]:
    """(before, after) states for a write, used for logging."""
    before = state_of(current)
    after = PostState.PUBLISHED if publish else PostState.DRAFT
    return before, after
