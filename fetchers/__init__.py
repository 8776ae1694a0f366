"""Fetchers package for retrieving Tumblr posts via the API or a saved JSON file."""

from typing import Optional

from .base_fetcher import BaseFetcher, FetcherError, FilterValidationError, parse_posts, write_posts_json
from .api_fetcher import ApiFetcher
from .json_fetcher import JsonFetcher
from .post_filter import PostFilter, filter_posts, parse_since


class FetcherFactory:
    """Factory for creating fetcher instances based on the post source."""

    @staticmethod
    def create_fetcher(config: dict, logger, json_in: Optional[str] = None):
        """Create the fetcher for the requested source.

        Args:
            config: Configuration dictionary
            logger: Logger instance
            json_in: Path of a saved JSON file; the API is used when omitted

        Returns:
            BaseFetcher instance (JsonFetcher or ApiFetcher)
        """
        if json_in:
            return JsonFetcher(config, json_in, logger)
        return ApiFetcher(config, logger)


__all__ = [
    'BaseFetcher',
    'FetcherError',
    'FilterValidationError',
    'ApiFetcher',
    'JsonFetcher',
    'FetcherFactory',
    'PostFilter',
    'filter_posts',
    'parse_since',
    'parse_posts',
    'write_posts_json'
]
