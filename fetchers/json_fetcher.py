"""Fetcher reading posts from a JSON file previously written with --jsonout."""

import json
from pathlib import Path
from typing import Any, Dict, List

from .base_fetcher import BaseFetcher, FetcherError


class JsonFetcher(BaseFetcher):
    """Loads raw posts from a saved JSON document instead of the API."""

    def __init__(self, config: Dict[str, Any], json_path: str, logger=None):
        super().__init__(config, logger)
        self.json_path = Path(json_path)

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
        Read every post in the file; state selection happens in the post filter.

        Raises:
            FetcherError: If the file is missing, unreadable or not a post list
        """
        if not self.json_path.is_file():
            raise FetcherError(f"JSON input file not found: {self.json_path}")

        try:
            with open(self.json_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise FetcherError(f"Failed to read posts from {self.json_path}: {e}")

        if isinstance(data, dict) and isinstance(data.get('posts'), list):
            data = data['posts']
        if not isinstance(data, list):
            raise FetcherError(f"{self.json_path} does not contain a list of posts")

        self.logger.info(f"Read {len(data)} posts from {self.json_path}")
        return data
