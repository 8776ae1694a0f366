"""Render individual NPF content blocks to Markdown fragments and media references."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from models import (
    AudioBlock,
    ContentBlock,
    ImageBlock,
    LinkBlock,
    MalformedBlock,
    MediaItem,
    MediaRef,
    TextBlock,
    UnknownBlock,
    VideoBlock,
)
from .text_formatter import TextFormatter

EMBEDDED_AUDIO_PROVIDERS = ('spotify', 'soundcloud')


class ConversionError(Exception):
    """Base exception for content conversion failures."""


class MalformedContentError(ConversionError):
    """A content block lacks a field its variant requires."""

    def __init__(self, block_type: str, message: str):
        self.block_type = block_type
        super().__init__(f"Malformed {block_type} block: {message}")


@dataclass
class BlockResult:
    """Markdown produced for one block plus the media it needs copied."""

    markdown: str
    media_refs: List[MediaRef] = field(default_factory=list)


def select_image(media: List[MediaItem]) -> MediaItem:
    """
    Pick the rendition to copy: the first one with original dimensions,
    otherwise the widest (earliest wins on ties).
    """
    for item in media:
        if item.has_original_dimensions:
            return item
    return max(media, key=lambda item: item.width)


class BlockRenderer:
    """Dispatches each content block variant to its renderer."""

    def __init__(self, text_formatter: Optional[TextFormatter] = None, logger: Optional[logging.Logger] = None):
        self.text_formatter = text_formatter or TextFormatter()
        self.logger = logger or logging.getLogger('tumblr_hugo_export.converters.block_renderer')
        self._renderers: Dict[type, Callable[[ContentBlock, str, str], BlockResult]] = {
            TextBlock: self._render_text,
            ImageBlock: self._render_image,
            VideoBlock: self._render_video,
            AudioBlock: self._render_audio,
            LinkBlock: self._render_link,
            MalformedBlock: self._render_malformed,
        }

    def render(self, block: ContentBlock, block_id: str, media_prefix: Optional[str] = None) -> BlockResult:
        """
        Render one content block.

        Args:
            block: Parsed content block
            block_id: Identifier used to name copied media (``{post_id}_{n}``)
            media_prefix: Path prepended to local media file names in shortcodes

        Returns:
            BlockResult with the Markdown fragment and media references

        Raises:
            MalformedContentError: If the block is missing data its variant needs
        """
        renderer = self._renderers.get(type(block), self._render_unknown)
        return renderer(block, block_id, media_prefix or "")

    def _render_text(self, block: TextBlock, block_id: str, media_prefix: str) -> BlockResult:
        if block.text is None:
            raise MalformedContentError(block.block_type, "text is missing")
        return BlockResult(self.text_formatter.render(block.text, block.block_format, block.ranges))

    def _render_image(self, block: ImageBlock, block_id: str, media_prefix: str) -> BlockResult:
        if not block.media:
            raise MalformedContentError(block.block_type, "media list is empty")
        image = select_image(block.media)
        if not image.url:
            raise MalformedContentError(block.block_type, "selected media has no url")

        media_ref = MediaRef.for_block(block_id, image.url)
        markdown = f'{{{{<figure src="{media_prefix}{media_ref.local_file_name}" caption="" >}}}}\n'
        return BlockResult(markdown, [media_ref])

    def _render_video(self, block: VideoBlock, block_id: str, media_prefix: str) -> BlockResult:
        title = (block.display_text or "").replace('"', '')

        if block.provider == 'youtube':
            if not block.metadata_id:
                raise MalformedContentError(block.block_type, "youtube video has no id")
            return BlockResult(f'{{{{<youtube id="{block.metadata_id}" title="{title}" >}}}}\n')

        if block.provider == 'vimeo':
            if not block.url:
                raise MalformedContentError(block.block_type, "vimeo video has no url")
            video_id = block.url.rstrip('/').rsplit('/', 1)[-1]
            return BlockResult(f'{{{{<vimeo id="{video_id}" title="{title}" >}}}}\n')

        if block.provider is None:
            if block.media is None or not block.media.url:
                raise MalformedContentError(block.block_type, "native video has no media")
            media_ref = MediaRef.for_block(block_id, block.media.url)
            markdown = (
                f'{{{{<video src="{media_prefix}{media_ref.local_file_name}" '
                f'type="{block.media.type or ""}" >}}}}\n'
            )
            return BlockResult(markdown, [media_ref])

        self.logger.debug(f"Unsupported video provider '{block.provider}' in block {block_id}")
        return BlockResult(f"Video provider unknown- {block.provider}\n")

    def _render_audio(self, block: AudioBlock, block_id: str, media_prefix: str) -> BlockResult:
        if block.provider in EMBEDDED_AUDIO_PROVIDERS:
            markdown = (
                f'{{{{<embedded_audio src="{block.embed_url or ""}" '
                f'class="{block.provider}_audio_player" >}}}}\n'
            )
            return BlockResult(markdown + "\n")

        if block.provider is None:
            if block.media is None or not block.media.url:
                raise MalformedContentError(block.block_type, "native audio has no media")
            if not block.poster or not block.poster[0].url:
                raise MalformedContentError(block.block_type, "native audio has no poster")

            poster_ref = MediaRef.for_block(f"{block_id}_poster", block.poster[0].url)
            audio_ref = MediaRef.for_block(block_id, block.media.url)
            markdown = (
                f'{{{{<audio src="{media_prefix}{audio_ref.local_file_name}" '
                f'type="{block.media.type or ""}" '
                f'poster="{media_prefix}{poster_ref.local_file_name}" '
                f'caption="{block.artist or ""} - {block.title or ""}">}}}}\n'
            )
            return BlockResult(markdown + "\n", [poster_ref, audio_ref])

        self.logger.debug(f"Unsupported audio provider '{block.provider}' in block {block_id}")
        return BlockResult(f"Audio provider unknown- {block.provider}\n\n")

    def _render_link(self, block: LinkBlock, block_id: str, media_prefix: str) -> BlockResult:
        if not block.url:
            raise MalformedContentError(block.block_type, "url is missing")
        title = block.title.strip() if block.title and block.title.strip() else block.url.strip()
        return BlockResult(f"[{title}]({block.url})\n")

    def _render_malformed(self, block: MalformedBlock, block_id: str, media_prefix: str) -> BlockResult:
        raise MalformedContentError(block.type_tag or block.block_type, block.reason)

    def _render_unknown(self, block: ContentBlock, block_id: str, media_prefix: str) -> BlockResult:
        type_tag = block.type_tag if isinstance(block, UnknownBlock) else block.block_type
        self.logger.debug(f"Unsupported content type '{type_tag}' in block {block_id}")
        return BlockResult(f"Content type unknown- {type_tag}\n")
