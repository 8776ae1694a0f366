"""Tests for post sources and raw post parsing."""

import json
from unittest.mock import MagicMock

import pytest

from fetchers import (
    ApiFetcher,
    FetcherError,
    FetcherFactory,
    JsonFetcher,
    parse_posts,
    write_posts_json,
)

RAW_POSTS = [
    {'id': 1, 'state': 'published', 'date': '2020-01-01 10:00:00 GMT', 'content': []},
    {'id': 2, 'state': 'draft', 'date': '2020-01-02 10:00:00 GMT', 'content': []},
]


class TestJsonFetcher:
    """Reading posts saved with --jsonout."""

    def test_reads_list(self, tmp_path):
        path = tmp_path / "posts.json"
        path.write_text(json.dumps(RAW_POSTS), encoding='utf-8')

        assert JsonFetcher({}, str(path)).fetch_posts("myblog") == RAW_POSTS

    def test_reads_response_envelope(self, tmp_path):
        path = tmp_path / "posts.json"
        path.write_text(json.dumps({'posts': RAW_POSTS}), encoding='utf-8')

        assert len(JsonFetcher({}, str(path)).fetch_posts("myblog")) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FetcherError):
            JsonFetcher({}, str(tmp_path / "missing.json")).fetch_posts("myblog")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "posts.json"
        path.write_text("{not json", encoding='utf-8')
        with pytest.raises(FetcherError):
            JsonFetcher({}, str(path)).fetch_posts("myblog")

    def test_roundtrip_with_writer(self, tmp_path):
        path = tmp_path / "out" / "posts.json"
        write_posts_json(RAW_POSTS, str(path))
        assert JsonFetcher({}, str(path)).fetch_posts("myblog") == RAW_POSTS


class TestApiFetcher:
    """Combining post states from the API client."""

    def test_published_only(self):
        client = MagicMock()
        client.get_posts.return_value = RAW_POSTS[:1]

        posts = ApiFetcher({}, client=client).fetch_posts("myblog", published=True)

        assert posts == RAW_POSTS[:1]
        client.get_posts.assert_called_once_with("myblog", authenticate=False)
        client.get_drafts.assert_not_called()
        client.get_queue.assert_not_called()

    def test_private_implies_authentication(self):
        client = MagicMock()
        client.get_posts.return_value = []

        ApiFetcher({}, client=client).fetch_posts("myblog", published=False, private=True)

        client.get_posts.assert_called_once_with("myblog", authenticate=True)

    def test_drafts_and_queue_merged(self):
        client = MagicMock()
        client.get_drafts.return_value = [{'id': 2}]
        client.get_queue.return_value = [{'id': 3}]

        posts = ApiFetcher({}, client=client).fetch_posts("myblog", published=False, drafts=True, queued=True)

        assert posts == [{'id': 2}, {'id': 3}]
        client.get_posts.assert_not_called()


class TestParsePosts:

    def test_malformed_posts_counted(self):
        raw = RAW_POSTS + [{'state': 'published'}, "garbage"]

        posts, failures = parse_posts(raw)

        assert [post.id for post in posts] == [1, 2]
        assert failures == 2

    def test_bad_block_does_not_drop_later_posts(self):
        """A post with an unparseable block is kept and the posts after it are still parsed."""
        bad_range = dict(RAW_POSTS[0], content=[
            {'type': 'text', 'text': 'ab', 'formatting': [{'type': 'bold', 'start': None, 'end': 2}]},
        ])

        posts, failures = parse_posts([bad_range, RAW_POSTS[1]])

        assert [post.id for post in posts] == [1, 2]
        assert failures == 0

    def test_malformed_trail_skips_only_that_post(self):
        bad_trail = dict(RAW_POSTS[0], trail=[{'blog': 'alice'}])

        posts, failures = parse_posts([bad_trail, RAW_POSTS[1]])

        assert [post.id for post in posts] == [2]
        assert failures == 1


class TestFetcherFactory:

    def test_json_source(self, tmp_path):
        fetcher = FetcherFactory.create_fetcher({}, None, json_in=str(tmp_path / "posts.json"))
        assert isinstance(fetcher, JsonFetcher)

    def test_api_source(self):
        fetcher = FetcherFactory.create_fetcher({'tumblr': {'consumer_key': 'key'}}, None)
        assert isinstance(fetcher, ApiFetcher)
