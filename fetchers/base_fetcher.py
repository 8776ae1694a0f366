"""Abstract base fetcher interface and common functionality."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from models import MalformedPostError, Post


class FetcherError(Exception):
    """Base exception for fetcher-related errors."""
    pass


class FilterValidationError(FetcherError):
    """Exception for invalid filter parameters."""
    pass


class BaseFetcher(ABC):
    """Abstract base class for sources of raw Tumblr posts."""

    def __init__(self, config: Dict[str, Any], logger=None):
        """
        Initialize base fetcher with configuration and logger.

        Args:
            config: Configuration dictionary
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger('tumblr_hugo_export.fetcher')

    @abstractmethod
    def fetch_posts(
        self,
        blog: str,
        published: bool = True,
        private: bool = False,
        drafts: bool = False,
        queued: bool = False,
        authenticate: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Fetch raw post dictionaries for a blog.

        Args:
            blog: Blog name or hostname
            published: Include published posts
            private: Include private posts (needs an authenticated request)
            drafts: Include drafts
            queued: Include queued posts
            authenticate: Force user authentication for published posts

        Returns:
            List of posts as returned by the API
        """
        pass


def parse_posts(raw_posts: List[Dict[str, Any]], logger: Optional[logging.Logger] = None) -> Tuple[List[Post], int]:
    """
    Parse raw post dictionaries, skipping the ones that cannot be parsed.

    Args:
        raw_posts: Posts as returned by a fetcher
        logger: Logger instance

    Returns:
        Tuple of (parsed posts, number of posts skipped)
    """
    logger = logger or logging.getLogger('tumblr_hugo_export.fetcher')
    posts = []
    failures = 0

    for index, raw_post in enumerate(raw_posts):
        if not isinstance(raw_post, dict):
            logger.error(f"Skipping post #{index}: expected an object, got {type(raw_post).__name__}")
            failures += 1
            continue
        try:
            posts.append(Post.from_dict(raw_post))
        except MalformedPostError as e:
            logger.error(f"Skipping post #{index}: {e}")
            failures += 1

    logger.debug(f"Parsed {len(posts)} posts ({failures} skipped)")
    return posts, failures


def write_posts_json(raw_posts: List[Dict[str, Any]], path: str, logger: Optional[logging.Logger] = None) -> None:
    """
    Write raw posts to a JSON file so a later run can use it with --jsonin.

    Raises:
        FetcherError: If the file cannot be written
    """
    logger = logger or logging.getLogger('tumblr_hugo_export.fetcher')
    target = Path(path)
    try:
        if target.parent and not target.parent.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(raw_posts, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise FetcherError(f"Failed to write posts to {path}: {e}")

    logger.info(f"Wrote {len(raw_posts)} raw posts to {target}")
