"""API fetcher implementation for retrieving Tumblr posts via the v2 REST API."""

from typing import Any, Dict, List, Optional

from tumblr_client import TumblrClient
from .base_fetcher import BaseFetcher


class ApiFetcher(BaseFetcher):
    """Fetches posts from the Tumblr API, merging the requested post states."""

    def __init__(self, config: Dict[str, Any], logger=None, client: Optional[TumblrClient] = None):
        """
        Initialize API fetcher with configuration.

        Args:
            config: Configuration dictionary with tumblr and advanced settings
            logger: Logger instance (optional)
            client: Preconfigured client (built from config when omitted)
        """
        super().__init__(config, logger)
        self.client = client or TumblrClient.from_config(config)
        self.logger.debug("Initialized ApiFetcher")

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
        Fetch posts from the API.

        Private posts are only returned by the published posts endpoint when
        the request is authenticated, so asking for them implies authentication.
        """
        posts: List[Dict[str, Any]] = []

        if published or private:
            posts.extend(self.client.get_posts(blog, authenticate=authenticate or private))
        if drafts:
            posts.extend(self.client.get_drafts(blog))
        if queued:
            posts.extend(self.client.get_queue(blog))

        self.logger.info(f"Fetched {len(posts)} posts from blog '{blog}'")
        return posts
