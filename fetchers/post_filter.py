"""Select which fetched posts are exported."""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from dateutil import parser as date_parser

from models import Post, PostState
from .base_fetcher import FilterValidationError

logger = logging.getLogger('tumblr_hugo_export.fetcher.filter')


def parse_since(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a ``--since`` value into an aware UTC datetime.

    Raises:
        FilterValidationError: If the value is not a recognisable date
    """
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise FilterValidationError(f"Invalid date for since filter: {value}. {e}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class PostFilter:
    """
    Keeps posts matching every active criterion.

    A post passes when its state is one of the requested states, and, if
    enabled, it is not a reblog and is not older than ``since``. A reblog here
    is a post with a trail or without any content of its own. Requesting no
    state at all selects nothing.
    """

    def __init__(
        self,
        since: Optional[datetime] = None,
        no_reblogs: bool = False,
        published: bool = False,
        private: bool = False,
        draft: bool = False,
        queued: bool = False
    ):
        if since is not None and since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        self.since = since
        self.no_reblogs = no_reblogs
        self.states = set()
        if published:
            self.states.add(PostState.PUBLISHED)
        if private:
            self.states.add(PostState.PRIVATE)
        if draft:
            self.states.add(PostState.DRAFT)
        if queued:
            self.states.add(PostState.QUEUED)

        self._predicates: List[Callable[[Post], bool]] = [self._state_matches]
        if no_reblogs:
            self._predicates.append(self._is_original)
        if since is not None:
            self._predicates.append(self._is_recent)

    def filter(self, posts: Sequence[Post]) -> List[Post]:
        """Return the matching posts in their original order."""
        if not self.states:
            logger.debug("No post states requested; nothing passes the filter")
            return []
        return [post for post in posts if self.matches(post)]

    def matches(self, post: Post) -> bool:
        return all(predicate(post) for predicate in self._predicates)

    def _state_matches(self, post: Post) -> bool:
        return post.state in self.states

    @staticmethod
    def _is_original(post: Post) -> bool:
        return len(post.content_blocks) > 0 and len(post.trail) == 0

    def _is_recent(self, post: Post) -> bool:
        return post.date >= self.since


def filter_posts(
    posts: Sequence[Post],
    since: Optional[datetime] = None,
    no_reblogs: bool = False,
    published: bool = False,
    private: bool = False,
    draft: bool = False,
    queued: bool = False
) -> List[Post]:
    """Convenience wrapper around PostFilter."""
    return PostFilter(
        since=since,
        no_reblogs=no_reblogs,
        published=published,
        private=private,
        draft=draft,
        queued=queued
    ).filter(posts)
