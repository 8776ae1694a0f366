"""Converters package for rendering Tumblr NPF posts to Hugo Markdown."""

import logging

from .block_renderer import BlockRenderer, BlockResult, ConversionError, MalformedContentError, select_image
from .post_assembler import PostAssembler, first_phrase
from .text_formatter import TextFormatter


def convert_post(post, config=None, logger=None, media_prefix=None):
    """
    Convenience function to render a Post into a RenderedPost.

    This runs the full conversion pipeline:
    1. Each content block (own, then reblog trail) is dispatched by type
    2. Text blocks are formatted with their inline ranges and escaping
    3. A title and ordered front matter are derived from post metadata
    4. Media needing a local copy is collected in block order

    Args:
        post: Post object parsed with Post.from_dict
        config: Optional configuration dictionary (export.strict_markdown,
            export.reblog_attribution)
        logger: Optional logger instance (defaults to the package logger)
        media_prefix: Optional path prepended to local media file names

    Returns:
        RenderedPost with document text and media references

    Example:
        >>> from converters import convert_post
        >>> from models import Post
        >>> post = Post.from_dict({'id': 1, 'state': 'published', 'date': '2020-01-01 10:00:00 GMT'})
        >>> print(convert_post(post).document)
    """
    if logger is None:
        logger = logging.getLogger('tumblr_hugo_export.converters')

    assembler = PostAssembler.from_config(config or {}, logger=logger)
    return assembler.assemble(post, media_prefix)


__all__ = [
    'convert_post',
    'PostAssembler',
    'BlockRenderer',
    'BlockResult',
    'TextFormatter',
    'ConversionError',
    'MalformedContentError',
    'first_phrase',
    'select_image'
]
