"""Assemble a rendered Hugo document from a post's own and reblogged content."""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models import (
    BlockError,
    ContentBlock,
    FrontMatter,
    MediaRef,
    Post,
    PostState,
    RenderedPost,
    ReblogTrailEntry,
    TextBlock,
)
from .block_renderer import BlockRenderer, MalformedContentError
from .text_formatter import TextFormatter

FALLBACK_TITLE = "..."

PHRASE_DELIMITERS = re.compile(r'[,.!?;:\t<\[\n\r"“]')

ATTRIBUTION_FIRST = 'first'
ATTRIBUTION_ENTRY = 'entry'


def first_phrase(value: Optional[str]) -> Optional[str]:
    """
    Return the leading phrase of ``value``.

    Surrounding quotes are removed, then the text is cut at the first
    punctuation, quote, bracket or line delimiter. Inputs shorter than two
    characters yield None.
    """
    if not value or len(value) <= 1:
        return None
    for fragment in PHRASE_DELIMITERS.split(value.strip('"\'')):
        if fragment:
            return fragment
    return None


def escape_yaml(value: str) -> str:
    return value.replace('\\', '\\\\')


def format_date(value: datetime) -> str:
    """Serialize as UTC ISO 8601 with seven fractional digits, e.g. 2013-04-25T18:08:37.0000000Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond:06d}0Z"


class PostAssembler:
    """
    Turns a Post into a RenderedPost.

    Content blocks of the post and then of each reblog trail entry are rendered
    in order with ids ``{post_id}_{n}``, ``n`` counting from 1 across both. A
    block that raises MalformedContentError is recorded on the result and left
    out of the body; its siblings are unaffected.
    """

    def __init__(
        self,
        block_renderer: Optional[BlockRenderer] = None,
        reblog_attribution: str = ATTRIBUTION_FIRST,
        logger: Optional[logging.Logger] = None
    ):
        if reblog_attribution not in (ATTRIBUTION_FIRST, ATTRIBUTION_ENTRY):
            raise ValueError(
                f"reblog_attribution must be '{ATTRIBUTION_FIRST}' or '{ATTRIBUTION_ENTRY}', "
                f"got '{reblog_attribution}'"
            )
        self.block_renderer = block_renderer or BlockRenderer()
        self.reblog_attribution = reblog_attribution
        self.logger = logger or logging.getLogger('tumblr_hugo_export.converters.post_assembler')

    @classmethod
    def from_config(cls, config: Dict[str, Any], logger: Optional[logging.Logger] = None) -> 'PostAssembler':
        export_config = config.get('export', {})
        formatter = TextFormatter(strict=bool(export_config.get('strict_markdown', False)))
        return cls(
            block_renderer=BlockRenderer(formatter, logger=logger),
            reblog_attribution=export_config.get('reblog_attribution', ATTRIBUTION_FIRST),
            logger=logger
        )

    def assemble(self, post: Post, media_prefix: Optional[str] = None) -> RenderedPost:
        """
        Render a post into front matter, body and media manifest.

        Args:
            post: Parsed post
            media_prefix: Path from the document to its media, prepended to
                media file names in shortcodes

        Returns:
            RenderedPost ready to be written
        """
        post_name = str(post.id)
        if post.slug and post.slug.strip():
            post_name += f"---{post.slug}"

        fragments: List[str] = []
        media_refs: List[MediaRef] = []
        block_errors: List[BlockError] = []
        counter = 0

        def render_blocks(blocks: List[ContentBlock]) -> None:
            nonlocal counter
            for block in blocks:
                counter += 1
                block_id = f"{post.id}_{counter}"
                try:
                    result = self.block_renderer.render(block, block_id, media_prefix)
                except MalformedContentError as e:
                    self.logger.warning(f"Post {post.id}: skipping block {block_id}: {e}")
                    block_errors.append(BlockError(block_id=block_id, message=str(e)))
                    continue
                fragments.append(result.markdown)
                media_refs.extend(result.media_refs)

        render_blocks(post.content_blocks)

        for entry in post.trail:
            render_blocks(entry.content_blocks)
            named = post.trail[0] if self.reblog_attribution == ATTRIBUTION_FIRST else entry
            attribution = self._attribution_line(named)
            if attribution:
                fragments.append(attribution)

        front_matter = self._build_front_matter(post, self._derive_title(post))

        self.logger.debug(
            f"Assembled post {post_name}: {counter} blocks, {len(media_refs)} media, "
            f"{len(block_errors)} block errors"
        )

        return RenderedPost(
            post_name=post_name,
            front_matter=front_matter,
            body_markdown="".join(fragments),
            media_refs=media_refs,
            block_errors=block_errors
        )

    @staticmethod
    def _derive_title(post: Post) -> str:
        title = first_phrase(post.summary)
        if not title or not title.strip():
            first_text = next((block for block in post.content_blocks if isinstance(block, TextBlock)), None)
            title = first_phrase(first_text.text) if first_text else None
        if not title or not title.strip():
            return FALLBACK_TITLE
        return escape_yaml(title)

    @staticmethod
    def _attribution_line(entry: ReblogTrailEntry) -> Optional[str]:
        if not entry.blog_name:
            return None
        return f">Reblogged from [{entry.blog_name}]({entry.blog_url or ''})\n\n"

    @staticmethod
    def _build_front_matter(post: Post, title: str) -> FrontMatter:
        front_matter = FrontMatter()
        front_matter.add('id', str(post.id))
        front_matter.add('date', format_date(post.date))
        front_matter.add('categories', f'["{post.original_type}"]')
        front_matter.add('draft', 'true' if post.state in (PostState.DRAFT, PostState.PRIVATE) else 'false')
        front_matter.add('title', f'"{title}"')
        front_matter.add('reblog', 'true' if post.is_reblog else 'false')
        if post.tags:
            front_matter.add('tags', '[' + ','.join(f'"{tag}"' for tag in post.tags) + ']')
        return front_matter
