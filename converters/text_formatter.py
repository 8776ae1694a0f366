"""Render NPF text blocks to Markdown by interleaving format markers with escaped text."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from models import BlockFormat, FormatKind, FormatRange

logger = logging.getLogger('tumblr_hugo_export.converters.text_formatter')

# Characters Markdown could read as syntax; each is preceded by one backslash.
ESCAPED_CHARACTERS = frozenset('\\`*_{}[]<>()#+-.!|')

LINE_BREAK = "  \n"
BLOCK_END = "\n\n"

# Block formats rendered as Hugo shortcodes wrapping the whole block.
SHORTCODE_BLOCK_FORMATS = {BlockFormat.QUIRKY, BlockFormat.QUOTE, BlockFormat.CHAT}

BLOCK_PREFIXES = {
    BlockFormat.HEADING1: "# ",
    BlockFormat.HEADING2: "## ",
    BlockFormat.INDENTED: "> ",
    BlockFormat.ORDERED_LIST_ITEM: "1. ",
    BlockFormat.UNORDERED_LIST_ITEM: "- ",
}

SYMMETRIC_MARKERS = {
    FormatKind.BOLD: "**",
    FormatKind.ITALIC: "*",
    FormatKind.STRIKETHROUGH: "~~",
}


class TextFormatter:
    """
    Converts a text block and its format ranges into Markdown.

    Markers are collected per character offset before a single emission pass.
    Ordering rules at a shared offset:

    * opening markers are appended, so they appear in the order ranges were given
    * closing markers are inserted at the front, so ranges ending at the same
      offset close in reverse order
    * the escape backslash for the character at that offset comes after every
      marker queued there

    With ``strict`` enabled, shortcode based formats (quirky, quote and chat blocks,
    small and color ranges) produce no markers so the output is plain Markdown.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def render(
        self,
        text: str,
        block_format: BlockFormat = BlockFormat.NONE,
        ranges: Optional[Sequence[FormatRange]] = None
    ) -> str:
        """
        Render ``text`` with its block format and inline ranges.

        Args:
            text: Raw block text
            block_format: Format applied to the whole block
            ranges: Inline format ranges, in source order

        Returns:
            Markdown framed by a hard line break and a trailing blank line
        """
        length = len(text)
        markers: Dict[int, List[str]] = {offset: [] for offset in range(length + 1)}

        if block_format is not BlockFormat.NONE:
            opening, closing = self._block_markers(block_format)
            markers[0].append(opening)
            markers[length].append(closing)

        for format_range in ranges or []:
            start = min(format_range.start, length)
            end = min(format_range.end, length)
            if start < 0 or start > end:
                logger.debug(f"Skipping invalid format range {format_range}")
                continue
            opening, closing = self._range_markers(format_range)
            markers[start].append(opening)
            markers[end].insert(0, closing)

        output = [LINE_BREAK]
        for offset, character in enumerate(text):
            if character in ESCAPED_CHARACTERS:
                markers[offset].append("\\")
            output.append("".join(markers[offset]))
            output.append(character)
        output.append("".join(markers[length]))
        output.append(BLOCK_END)

        return "".join(output)

    def _block_markers(self, block_format: BlockFormat) -> Tuple[str, str]:
        if block_format in SHORTCODE_BLOCK_FORMATS:
            if self.strict:
                return "", ""
            name = block_format.value
            return f"{{{{%{name}%}}}}", f"{{{{%/{name}%}}}}"
        return BLOCK_PREFIXES.get(block_format, ""), ""

    def _range_markers(self, format_range: FormatRange) -> Tuple[str, str]:
        kind = format_range.kind
        if kind in SYMMETRIC_MARKERS:
            marker = SYMMETRIC_MARKERS[kind]
            return marker, marker
        if self.strict:
            return "", ""
        if kind is FormatKind.SMALL:
            return "{{%small%}}", "{{%/small%}}"
        if kind is FormatKind.COLOR:
            return f'{{{{%color "{format_range.color_hex or ""}"%}}}}', "{{%/color%}}"
        return "", ""
