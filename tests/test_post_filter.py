"""Tests for post selection by state, reblog status and date."""

from datetime import datetime, timezone

import pytest

from fetchers import FilterValidationError, PostFilter, filter_posts, parse_since
from models import Post, PostState, ReblogTrailEntry, TextBlock


def make_post(post_id, state=PostState.PUBLISHED, day=1, content=True, reblog=False):
    return Post(
        id=post_id,
        state=state,
        date=datetime(2020, 1, day, tzinfo=timezone.utc),
        content_blocks=[TextBlock(text="body")] if content else [],
        trail=[ReblogTrailEntry(blog_name="other", blog_url=None)] if reblog else []
    )


@pytest.fixture
def posts():
    return [
        make_post(1, PostState.PUBLISHED, day=1),
        make_post(2, PostState.DRAFT, day=2),
        make_post(3, PostState.PRIVATE, day=3),
        make_post(4, PostState.QUEUED, day=4),
        make_post(5, PostState.PUBLISHED, day=5, reblog=True),
        make_post(6, PostState.PUBLISHED, day=6, content=False),
    ]


class TestStateSelection:
    """Posts pass only when their state was requested."""

    def test_published_only(self, posts):
        assert [post.id for post in PostFilter(published=True).filter(posts)] == [1, 5, 6]

    def test_several_states(self, posts):
        selected = PostFilter(draft=True, queued=True).filter(posts)
        assert [post.id for post in selected] == [2, 4]

    def test_private(self, posts):
        assert [post.id for post in PostFilter(private=True).filter(posts)] == [3]

    def test_no_states_selects_nothing(self, posts):
        post_filter = PostFilter(no_reblogs=True)
        assert post_filter.states == set()
        assert post_filter.filter(posts) == []


class TestCriteria:
    """Reblog and date criteria."""

    def test_no_reblogs_drops_trail_and_empty_posts(self, posts):
        selected = PostFilter(published=True, no_reblogs=True).filter(posts)
        assert [post.id for post in selected] == [1]

    def test_since_is_inclusive(self, posts):
        since = datetime(2020, 1, 3, tzinfo=timezone.utc)
        selected = filter_posts(posts, since=since, published=True, private=True, draft=True, queued=True)
        assert [post.id for post in selected] == [3, 4, 5, 6]

    def test_naive_since_taken_as_utc(self, posts):
        selected = PostFilter(since=datetime(2020, 1, 5), published=True).filter(posts)
        assert [post.id for post in selected] == [5, 6]

    def test_filter_is_idempotent(self, posts):
        post_filter = PostFilter(published=True, no_reblogs=True)
        once = post_filter.filter(posts)
        assert post_filter.filter(once) == once


class TestParseSince:

    def test_empty_value(self):
        assert parse_since(None) is None
        assert parse_since("") is None

    def test_date_only(self):
        assert parse_since("2020-01-01") == datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_invalid_value(self):
        with pytest.raises(FilterValidationError):
            parse_since("not a date")
