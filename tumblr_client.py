"""Tumblr v2 API client with retry logic, rate limiting and paged post retrieval."""

import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from requests_oauthlib import OAuth1
from urllib3.util.retry import Retry

logger = logging.getLogger('tumblr_hugo_export.client')

API_BASE_URL = "https://api.tumblr.com/v2"


class TumblrApiError(Exception):
    """Raised when the Tumblr API returns an error or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class TumblrAuthError(TumblrApiError):
    """Raised when a request needs credentials that are not configured."""


def blog_identifier(blog: str) -> str:
    """Expand a bare blog name to its tumblr.com hostname."""
    blog = blog.strip()
    if '.' in blog:
        return blog
    return f"{blog}.tumblr.com"


class TumblrClient:
    """Tumblr API client supporting API-key and OAuth 1.0a authenticated requests."""

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: Optional[str] = None,
        oauth_token: Optional[str] = None,
        oauth_token_secret: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        rate_limit: float = 0.0,
        page_size: int = 20,
        base_url: str = API_BASE_URL
    ):
        """
        Initialize the client.

        Args:
            consumer_key: Application consumer key, also used as the API key
            consumer_secret: Application consumer secret (OAuth requests)
            oauth_token: User access token (OAuth requests)
            oauth_token_secret: User access token secret (OAuth requests)
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for transient errors
            retry_backoff_factor: Exponential backoff factor
            rate_limit: Minimum seconds between requests (0.0 = no rate limiting)
            page_size: Posts requested per page (the API allows at most 20)
            base_url: API root
        """
        if not consumer_key:
            raise TumblrAuthError("A Tumblr consumer key is required")

        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.oauth_token = oauth_token
        self.oauth_token_secret = oauth_token_secret
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limit = rate_limit
        self.page_size = max(1, min(int(page_size), 20))
        self.last_request_time = 0.0

        self.session = requests.Session()

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f"Client configured with timeout={timeout}s, max_retries={max_retries}, "
                     f"backoff_factor={retry_backoff_factor}, rate_limit={rate_limit}s")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'TumblrClient':
        """
        Initialize Tumblr client from configuration dictionary.

        Args:
            config: Configuration dictionary with tumblr and advanced settings

        Returns:
            TumblrClient instance
        """
        tumblr_config = config.get('tumblr', {})
        advanced_config = config.get('advanced', {})

        return cls(
            consumer_key=tumblr_config.get('consumer_key'),
            consumer_secret=tumblr_config.get('consumer_secret'),
            oauth_token=tumblr_config.get('oauth_token'),
            oauth_token_secret=tumblr_config.get('oauth_token_secret'),
            timeout=advanced_config.get('request_timeout', 30),
            max_retries=advanced_config.get('max_retries', 3),
            retry_backoff_factor=advanced_config.get('retry_backoff_factor', 2.0),
            rate_limit=advanced_config.get('rate_limit', 0.0),
            page_size=advanced_config.get('page_size', 20)
        )

    @property
    def can_authenticate(self) -> bool:
        return bool(self.consumer_secret and self.oauth_token and self.oauth_token_secret)

    def _oauth(self) -> OAuth1:
        if not self.can_authenticate:
            raise TumblrAuthError(
                "This request needs user authentication: configure tumblr.consumer_secret, "
                "tumblr.oauth_token and tumblr.oauth_token_secret"
            )
        return OAuth1(
            self.consumer_key,
            client_secret=self.consumer_secret,
            resource_owner_key=self.oauth_token,
            resource_owner_secret=self.oauth_token_secret
        )

    def _enforce_rate_limit(self) -> None:
        """Enforce rate limiting if configured."""
        if self.rate_limit <= 0:
            return

        time_since_last = time.time() - self.last_request_time
        if time_since_last < self.rate_limit:
            sleep_time = self.rate_limit - time_since_last
            logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f}s")
            time.sleep(sleep_time)

        self.last_request_time = time.time()

    def _get(self, endpoint: str, params: Dict[str, Any], authenticate: bool = False) -> Dict[str, Any]:
        """
        GET an API endpoint and return the ``response`` member of the envelope.

        Raises:
            TumblrAuthError: If authentication is needed but not configured
            TumblrApiError: For HTTP, network or payload errors
        """
        self._enforce_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        request_params = dict(params)
        auth = None
        if authenticate:
            auth = self._oauth()
        else:
            request_params['api_key'] = self.consumer_key

        start_time = time.time()
        logger.debug(f"API Request: GET {url} {params}")

        try:
            response = self.session.get(url, params=request_params, auth=auth, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: GET {url}")
            raise TumblrApiError(f"Request timed out: {url}")
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: GET {url}: {e}")
            raise TumblrApiError(f"Request failed: {url}: {e}")

        elapsed = time.time() - start_time
        logger.debug(f"API Response: {response.status_code} {url} ({elapsed:.3f}s)")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code != 200:
            message = response.reason
            if isinstance(payload, dict):
                meta = payload.get('meta') or {}
                message = meta.get('msg', message)
                logger.error(f"Error details: {json.dumps(payload.get('errors', payload), indent=2)}")
            logger.error(f"HTTP Error {response.status_code}: GET {url}")
            if response.status_code in (401, 403):
                raise TumblrAuthError(f"Not authorized for {url}: {message}", response.status_code)
            raise TumblrApiError(f"HTTP {response.status_code} for {url}: {message}", response.status_code)

        if not isinstance(payload, dict) or not isinstance(payload.get('response'), dict):
            raise TumblrApiError(f"Unexpected response payload from {url}", response.status_code)

        return payload['response']

    def get_posts(self, blog: str, authenticate: bool = False) -> List[Dict[str, Any]]:
        """
        Fetch all published posts of a blog.

        Args:
            blog: Blog name or hostname
            authenticate: Sign requests with OAuth, which also returns private posts

        Returns:
            List of raw post dictionaries in Neue Post Format
        """
        endpoint = f"blog/{blog_identifier(blog)}/posts"
        posts: List[Dict[str, Any]] = []
        offset = 0
        total = None

        while True:
            response = self._get(
                endpoint,
                {'npf': 'true', 'offset': offset, 'limit': self.page_size},
                authenticate=authenticate
            )
            page = response.get('posts') or []
            if total is None:
                total = response.get('total_posts')
                logger.info(f"Blog {blog} reports {total} posts")
            if not page:
                break

            posts.extend(page)
            offset += len(page)
            logger.debug(f"Fetched {len(posts)}/{total} posts")
            if total is not None and offset >= total:
                break

        logger.info(f"Retrieved {len(posts)} published posts from {blog}")
        return posts

    def get_drafts(self, blog: str) -> List[Dict[str, Any]]:
        """Fetch all draft posts of a blog (requires OAuth)."""
        endpoint = f"blog/{blog_identifier(blog)}/posts/draft"
        posts: List[Dict[str, Any]] = []
        before_id = None

        while True:
            params: Dict[str, Any] = {'npf': 'true'}
            if before_id is not None:
                params['before_id'] = before_id
            page = self._get(endpoint, params, authenticate=True).get('posts') or []
            if not page:
                break

            posts.extend(page)
            next_before_id = page[-1].get('id')
            if next_before_id is None or next_before_id == before_id:
                break
            before_id = next_before_id

        logger.info(f"Retrieved {len(posts)} draft posts from {blog}")
        return posts

    def get_queue(self, blog: str) -> List[Dict[str, Any]]:
        """Fetch all queued posts of a blog (requires OAuth)."""
        endpoint = f"blog/{blog_identifier(blog)}/posts/queue"
        posts: List[Dict[str, Any]] = []
        offset = 0

        while True:
            page = self._get(
                endpoint,
                {'npf': 'true', 'offset': offset, 'limit': self.page_size},
                authenticate=True
            ).get('posts') or []
            if not page:
                break

            posts.extend(page)
            offset += len(page)
            if len(page) < self.page_size:
                break

        logger.info(f"Retrieved {len(posts)} queued posts from {blog}")
        return posts

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'TumblrClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
