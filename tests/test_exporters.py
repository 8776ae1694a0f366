"""Tests for writing documents and copying media."""

from unittest.mock import MagicMock

import pytest
import requests

from exporters import MarkdownExporter, MediaManager, relative_media_prefix
from models import FrontMatter, MediaRef, OutputLayout, RenderedPost

MEDIA_CONFIG = {
    'export': {'max_workers': 2, 'progress_bars': False},
    'advanced': {'request_timeout': 5, 'max_retries': 1},
}


def rendered_post(name="42---hello", media_refs=None):
    front_matter = FrontMatter()
    front_matter.add('id', '42')
    return RenderedPost(post_name=name, front_matter=front_matter,
                        body_markdown="  \nHello\n\n", media_refs=media_refs or [])


def mock_response(chunks):
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_content.return_value = chunks
    return response


class TestRelativeMediaPrefix:

    def test_sibling_directories(self, tmp_path):
        assert relative_media_prefix(tmp_path / "posts", tmp_path / "media") == "../../media/"

    def test_same_directory(self, tmp_path):
        assert relative_media_prefix(tmp_path / "posts", tmp_path / "posts") == "../"

    def test_nested_media(self, tmp_path):
        assert relative_media_prefix(tmp_path, tmp_path / "static" / "media") == "../static/media/"


class TestMarkdownExporter:
    """Document paths and write behaviour per layout."""

    def test_hugo_layout(self, tmp_path):
        exporter = MarkdownExporter({}, OutputLayout.HUGO, posts_dir=str(tmp_path / "posts"),
                                    media_dir=str(tmp_path / "media"))
        exporter.prepare()

        assert exporter.write(rendered_post())

        document = tmp_path / "posts" / "42---hello.md"
        assert document.read_text(encoding='utf-8') == "---\nid: 42\n---\n\n  \nHello\n\n"
        assert exporter.media_directory(rendered_post()) == tmp_path / "media"
        assert exporter.media_prefix == "../../media/"
        assert exporter.get_stats() == {'files_written': 1, 'files_failed': 0}

    def test_page_bundle_layout(self, tmp_path):
        exporter = MarkdownExporter({}, OutputLayout.PAGE_BUNDLE, posts_dir=str(tmp_path))

        assert exporter.write(rendered_post())

        assert (tmp_path / "42---hello" / "index.md").is_file()
        assert exporter.media_directory(rendered_post()) == tmp_path / "42---hello"
        assert exporter.media_prefix is None

    def test_media_layout_writes_nothing(self, tmp_path):
        exporter = MarkdownExporter({}, OutputLayout.MEDIA_ONLY, media_dir=str(tmp_path / "media"))

        assert exporter.write(rendered_post())

        assert list(tmp_path.iterdir()) == []
        assert exporter.get_stats()['files_written'] == 0

    def test_dry_run_writes_nothing(self, tmp_path):
        exporter = MarkdownExporter({}, OutputLayout.HUGO, posts_dir=str(tmp_path / "posts"),
                                    media_dir=str(tmp_path / "media"), dry_run=True)
        exporter.prepare()

        assert exporter.write(rendered_post())
        assert not (tmp_path / "posts").exists()

    def test_write_failure_counted(self, tmp_path):
        blocker = tmp_path / "posts"
        blocker.write_text("not a directory", encoding='utf-8')
        exporter = MarkdownExporter({}, OutputLayout.HUGO, posts_dir=str(blocker), media_dir=str(tmp_path))

        assert not exporter.write(rendered_post())
        assert exporter.get_stats() == {'files_written': 0, 'files_failed': 1}

    @pytest.mark.parametrize("layout,kwargs", [
        (OutputLayout.HUGO, {'posts_dir': 'posts'}),
        (OutputLayout.PAGE_BUNDLE, {'media_dir': 'media'}),
        (OutputLayout.MEDIA_ONLY, {'posts_dir': 'posts'}),
    ])
    def test_missing_directories(self, layout, kwargs):
        with pytest.raises(ValueError):
            MarkdownExporter({}, layout, **kwargs)


class TestMediaManager:
    """Downloads with skip and failure handling."""

    def test_download(self, tmp_path):
        session = MagicMock()
        session.get.return_value = mock_response([b"abc", b"de"])
        manager = MediaManager(MEDIA_CONFIG, session=session)

        result = manager.copy([MediaRef("https://x.com/pic.jpg", "42_1.jpg")], tmp_path)

        assert result == {'downloaded': 1, 'skipped': 0, 'failed': 0}
        assert (tmp_path / "42_1.jpg").read_bytes() == b"abcde"
        assert not (tmp_path / "42_1.jpg.part").exists()
        assert manager.get_stats()['total_size_bytes'] == 5

    def test_existing_file_skipped(self, tmp_path):
        (tmp_path / "42_1.jpg").write_bytes(b"old")
        session = MagicMock()
        manager = MediaManager(MEDIA_CONFIG, session=session)

        result = manager.copy([MediaRef("https://x.com/pic.jpg", "42_1.jpg")], tmp_path)

        assert result['skipped'] == 1
        session.get.assert_not_called()
        assert (tmp_path / "42_1.jpg").read_bytes() == b"old"

    def test_failure_does_not_stop_other_files(self, tmp_path):
        def get(url, **kwargs):
            if "broken" in url:
                raise requests.ConnectionError("connection refused")
            return mock_response([b"ok"])

        session = MagicMock()
        session.get.side_effect = get
        manager = MediaManager(MEDIA_CONFIG, session=session)

        result = manager.copy([
            MediaRef("https://x.com/broken.jpg", "1_1.jpg"),
            MediaRef("https://x.com/fine.jpg", "1_2.jpg"),
        ], tmp_path)

        assert result == {'downloaded': 1, 'skipped': 0, 'failed': 1}
        assert not (tmp_path / "1_1.jpg").exists()
        assert (tmp_path / "1_2.jpg").read_bytes() == b"ok"
        assert manager.get_stats()['total_media'] == 2

    def test_dry_run_downloads_nothing(self, tmp_path):
        session = MagicMock()
        manager = MediaManager(MEDIA_CONFIG, dry_run=True, session=session)

        result = manager.copy([MediaRef("https://x.com/pic.jpg", "42_1.jpg")], tmp_path / "media")

        assert result['skipped'] == 1
        session.get.assert_not_called()
        assert not (tmp_path / "media").exists()

    def test_no_media(self, tmp_path):
        manager = MediaManager(MEDIA_CONFIG, session=MagicMock())
        assert manager.copy([], tmp_path) == {'downloaded': 0, 'skipped': 0, 'failed': 0}
