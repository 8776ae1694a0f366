"""Tests for rendering individual content blocks."""

import pytest

from converters.block_renderer import BlockRenderer, MalformedContentError, select_image
from models import (
    AudioBlock,
    ImageBlock,
    LinkBlock,
    MalformedBlock,
    MediaItem,
    TextBlock,
    UnknownBlock,
    VideoBlock,
    content_block_from_dict,
)


@pytest.fixture
def renderer():
    return BlockRenderer()


class TestImageBlocks:
    """Image blocks become figure shortcodes with one media copy."""

    def test_widest_rendition_selected(self, renderer):
        block = ImageBlock(media=[
            MediaItem(url="https://64.media.tumblr.com/abc/s500x750/small.jpg", width=500),
            MediaItem(url="https://64.media.tumblr.com/abc/s1280x1920/large.jpg", width=1280),
        ])

        result = renderer.render(block, "1_1", "../media/")

        assert result.markdown == '{{<figure src="../media/1_1.jpg" caption="" >}}\n'
        assert len(result.media_refs) == 1
        assert result.media_refs[0].source_url.endswith("large.jpg")
        assert result.media_refs[0].local_file_name == "1_1.jpg"

    def test_original_dimensions_preferred(self):
        """A rendition flagged as original wins even when narrower."""
        media = [
            MediaItem(url="https://example.com/a.png", width=2000),
            MediaItem(url="https://example.com/b.png", width=640, has_original_dimensions=True),
        ]
        assert select_image(media).url == "https://example.com/b.png"

    def test_width_tie_keeps_first(self):
        media = [
            MediaItem(url="https://example.com/first.png", width=800),
            MediaItem(url="https://example.com/second.png", width=800),
        ]
        assert select_image(media).url == "https://example.com/first.png"

    def test_empty_media_is_malformed(self, renderer):
        with pytest.raises(MalformedContentError):
            renderer.render(ImageBlock(media=[]), "1_1")

    def test_extension_defaults_to_bin(self, renderer):
        block = ImageBlock(media=[MediaItem(url="https://example.com/image", width=10)])
        result = renderer.render(block, "9_3")
        assert result.media_refs[0].local_file_name == "9_3.bin"


class TestVideoBlocks:
    """Video blocks by provider."""

    def test_youtube(self, renderer):
        block = VideoBlock(provider="youtube", metadata_id="dQw4w9WgXcQ", display_text='My "Video"')
        result = renderer.render(block, "1_1")
        assert result.markdown == '{{<youtube id="dQw4w9WgXcQ" title="My Video" >}}\n'
        assert result.media_refs == []

    def test_youtube_without_id_is_malformed(self, renderer):
        with pytest.raises(MalformedContentError):
            renderer.render(VideoBlock(provider="youtube"), "1_1")

    def test_vimeo_id_from_url(self, renderer):
        block = VideoBlock(provider="vimeo", url="https://vimeo.com/123456", display_text="Clip")
        result = renderer.render(block, "1_1")
        assert result.markdown == '{{<vimeo id="123456" title="Clip" >}}\n'

    def test_native_video_copies_media(self, renderer):
        block = VideoBlock(media=MediaItem(url="https://va.media.tumblr.com/tumblr_x.mp4", type="video/mp4"))
        result = renderer.render(block, "1_2")
        assert result.markdown == '{{<video src="1_2.mp4" type="video/mp4" >}}\n'
        assert [ref.local_file_name for ref in result.media_refs] == ["1_2.mp4"]

    def test_native_video_without_media_is_malformed(self, renderer):
        with pytest.raises(MalformedContentError):
            renderer.render(VideoBlock(), "1_1")

    def test_unknown_provider_placeholder(self, renderer):
        result = renderer.render(VideoBlock(provider="dailymotion"), "1_1")
        assert result.markdown == "Video provider unknown- dailymotion\n"


class TestAudioBlocks:
    """Audio blocks by provider."""

    def test_spotify_embed(self, renderer):
        block = AudioBlock(provider="spotify", embed_url="https://open.spotify.com/embed/track/abc")
        result = renderer.render(block, "1_1")
        assert result.markdown == (
            '{{<embedded_audio src="https://open.spotify.com/embed/track/abc" '
            'class="spotify_audio_player" >}}\n\n'
        )

    def test_soundcloud_embed(self, renderer):
        block = AudioBlock(provider="soundcloud", embed_url="https://w.soundcloud.com/player/?url=x")
        assert renderer.render(block, "1_1").markdown == (
            '{{<embedded_audio src="https://w.soundcloud.com/player/?url=x" '
            'class="soundcloud_audio_player" >}}\n\n'
        )

    def test_native_audio_with_poster(self, renderer):
        """The poster is copied first, then the audio file."""
        block = AudioBlock(
            media=MediaItem(url="https://a.tumblr.com/song.mp3", type="audio/mpeg"),
            poster=[MediaItem(url="https://64.media.tumblr.com/poster.png")],
            title="Title",
            artist="Artist"
        )

        result = renderer.render(block, "1_1", "../media/")

        assert result.markdown == (
            '{{<audio src="../media/1_1.mp3" type="audio/mpeg" '
            'poster="../media/1_1_poster.png" caption="Artist - Title">}}\n\n'
        )
        assert [ref.local_file_name for ref in result.media_refs] == ["1_1_poster.png", "1_1.mp3"]

    def test_extensionless_poster_and_audio_do_not_collide(self, renderer):
        """Without extensions both files fall back to .bin and still get distinct names."""
        block = AudioBlock(
            media=MediaItem(url="https://a.tumblr.com/tumblr_audio", type="audio/mpeg"),
            poster=[MediaItem(url="https://64.media.tumblr.com/poster")]
        )

        result = renderer.render(block, "3_1")

        assert [ref.local_file_name for ref in result.media_refs] == ["3_1_poster.bin", "3_1.bin"]

    def test_native_audio_without_poster_is_malformed(self, renderer):
        block = AudioBlock(media=MediaItem(url="https://a.tumblr.com/song.mp3"))
        with pytest.raises(MalformedContentError):
            renderer.render(block, "1_1")

    def test_unknown_provider_placeholder(self, renderer):
        result = renderer.render(AudioBlock(provider="bandcamp"), "1_1")
        assert result.markdown == "Audio provider unknown- bandcamp\n\n"


class TestOtherBlocks:
    """Text, link and unknown blocks."""

    def test_text_delegates_to_formatter(self, renderer):
        assert renderer.render(TextBlock(text="Hi"), "1_1").markdown == "  \nHi\n\n"

    def test_text_without_text_is_malformed(self, renderer):
        with pytest.raises(MalformedContentError):
            renderer.render(TextBlock(text=None), "1_1")

    def test_link_with_title(self, renderer):
        result = renderer.render(LinkBlock(url="https://example.com", title=" Example "), "1_1")
        assert result.markdown == "[Example](https://example.com)\n"

    def test_link_without_title_uses_url(self, renderer):
        result = renderer.render(LinkBlock(url="https://example.com", title="  "), "1_1")
        assert result.markdown == "[https://example.com](https://example.com)\n"

    def test_link_without_url_is_malformed(self, renderer):
        with pytest.raises(MalformedContentError):
            renderer.render(LinkBlock(title="Nowhere"), "1_1")

    def test_unknown_type_placeholder(self, renderer):
        result = renderer.render(UnknownBlock(type_tag="poll"), "1_1")
        assert result.markdown == "Content type unknown- poll\n"
        assert result.media_refs == []

    def test_dispatch_from_raw_dicts(self, renderer):
        """Raw blocks are parsed into their variant before rendering."""
        link = content_block_from_dict({'type': 'link', 'url': 'https://example.com', 'title': 'Ex'})
        poll = content_block_from_dict({'type': 'poll', 'question': 'Why?'})

        assert isinstance(link, LinkBlock)
        assert isinstance(poll, UnknownBlock)
        assert renderer.render(poll, "1_2").markdown == "Content type unknown- poll\n"

    def test_unparseable_block_is_malformed(self, renderer):
        """A block whose fields cannot be parsed is reported when rendered."""
        block = content_block_from_dict({'type': 'image', 'media': [{'url': 'https://x.com/a.png', 'width': 'wide'}]})

        assert isinstance(block, MalformedBlock)
        with pytest.raises(MalformedContentError, match="image"):
            renderer.render(block, "1_1")
