"""Data models for the Tumblr to Hugo export pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type
from urllib.parse import urlparse

from dateutil import parser as date_parser

logger = logging.getLogger('tumblr_hugo_export')


class MalformedPostError(ValueError):
    """Raised when a raw post lacks a field every post must carry."""


class OutputLayout(Enum):
    """How exported documents and media are laid out on disk."""
    HUGO = "hugo"
    PAGE_BUNDLE = "hugopagebundle"
    MEDIA_ONLY = "media"


class PostState(Enum):
    """Publication state of a post."""
    PUBLISHED = "published"
    PRIVATE = "private"
    DRAFT = "draft"
    QUEUED = "queued"


class BlockFormat(Enum):
    """Formatting applied to an entire text block (the NPF ``subtype``)."""
    NONE = ""
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    QUIRKY = "quirky"
    QUOTE = "quote"
    INDENTED = "indented"
    CHAT = "chat"
    ORDERED_LIST_ITEM = "ordered-list-item"
    UNORDERED_LIST_ITEM = "unordered-list-item"

    @classmethod
    def from_subtype(cls, subtype: Optional[str]) -> 'BlockFormat':
        """Map an NPF subtype to a block format; unknown subtypes have no effect."""
        if not subtype:
            return cls.NONE
        try:
            return cls(subtype)
        except ValueError:
            logger.debug(f"Ignoring unsupported text subtype '{subtype}'")
            return cls.NONE


class FormatKind(Enum):
    """Inline format types rendered by the text formatter."""
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    SMALL = "small"
    COLOR = "color"


@dataclass(frozen=True)
class FormatRange:
    """Half-open character interval ``[start, end)`` carrying an inline style."""

    start: int
    end: int
    kind: FormatKind
    color_hex: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['FormatRange']:
        """Build a range from an NPF formatting entry, or None for unsupported types."""
        try:
            kind = FormatKind(data.get('type'))
        except ValueError:
            return None
        return cls(
            start=int(data.get('start', 0)),
            end=int(data.get('end', 0)),
            kind=kind,
            color_hex=data.get('hex')
        )


@dataclass(frozen=True)
class MediaRef:
    """A pending copy of a remote media file to a locally assigned file name."""

    source_url: str
    local_file_name: str

    @classmethod
    def for_block(cls, block_id: str, source_url: str) -> 'MediaRef':
        """Name the local copy ``{block_id}.{extension}``."""
        return cls(source_url=source_url, local_file_name=f"{block_id}.{file_extension(source_url)}")


def file_extension(url: str) -> str:
    """Return the extension of the last path segment of ``url`` ('bin' when absent)."""
    name = urlparse(url).path.rsplit('/', 1)[-1]
    if '.' not in name:
        return 'bin'
    return name.rsplit('.', 1)[-1]


@dataclass
class MediaItem:
    """One rendition of an image, video, audio or poster file."""

    url: Optional[str]
    type: Optional[str] = None
    width: int = 0
    height: int = 0
    has_original_dimensions: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MediaItem':
        return cls(
            url=data.get('url'),
            type=data.get('type'),
            width=int(data.get('width') or 0),
            height=int(data.get('height') or 0),
            has_original_dimensions=bool(data.get('has_original_dimensions', False))
        )


def _media_list(value: Any) -> List[MediaItem]:
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []
    return [MediaItem.from_dict(item) for item in value if isinstance(item, dict)]


def _single_media(value: Any) -> Optional[MediaItem]:
    items = _media_list(value)
    return items[0] if items else None


@dataclass
class ContentBlock:
    """Base class for the closed set of NPF content block variants."""

    block_type = "unknown"


@dataclass
class TextBlock(ContentBlock):
    text: Optional[str]
    block_format: BlockFormat = BlockFormat.NONE
    ranges: List[FormatRange] = field(default_factory=list)

    block_type = "text"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextBlock':
        ranges = []
        for entry in data.get('formatting') or []:
            format_range = FormatRange.from_dict(entry)
            if format_range is None:
                logger.debug(f"Ignoring unsupported inline format '{entry.get('type')}'")
                continue
            ranges.append(format_range)
        return cls(
            text=data.get('text'),
            block_format=BlockFormat.from_subtype(data.get('subtype')),
            ranges=ranges
        )


@dataclass
class ImageBlock(ContentBlock):
    media: List[MediaItem] = field(default_factory=list)

    block_type = "image"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ImageBlock':
        return cls(media=_media_list(data.get('media')))


@dataclass
class VideoBlock(ContentBlock):
    provider: Optional[str] = None
    url: Optional[str] = None
    media: Optional[MediaItem] = None
    metadata_id: Optional[str] = None
    display_text: Optional[str] = None

    block_type = "video"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VideoBlock':
        metadata = data.get('metadata') or {}
        attribution = data.get('attribution') or {}
        return cls(
            provider=data.get('provider'),
            url=data.get('url'),
            media=_single_media(data.get('media')),
            metadata_id=metadata.get('id'),
            display_text=attribution.get('display_text')
        )


@dataclass
class AudioBlock(ContentBlock):
    provider: Optional[str] = None
    embed_url: Optional[str] = None
    media: Optional[MediaItem] = None
    poster: List[MediaItem] = field(default_factory=list)
    title: Optional[str] = None
    artist: Optional[str] = None

    block_type = "audio"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AudioBlock':
        return cls(
            provider=data.get('provider'),
            embed_url=data.get('embed_url'),
            media=_single_media(data.get('media')),
            poster=_media_list(data.get('poster')),
            title=data.get('title'),
            artist=data.get('artist')
        )


@dataclass
class LinkBlock(ContentBlock):
    url: Optional[str] = None
    title: Optional[str] = None

    block_type = "link"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LinkBlock':
        return cls(url=data.get('url'), title=data.get('title'))


@dataclass
class UnknownBlock(ContentBlock):
    type_tag: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UnknownBlock':
        return cls(type_tag=data.get('type'))


@dataclass
class MalformedBlock(ContentBlock):
    """A block whose fields could not be parsed; rendering it reports the reason."""

    type_tag: Optional[str] = None
    reason: str = ""


BLOCK_TYPES: Dict[str, Type[ContentBlock]] = {
    TextBlock.block_type: TextBlock,
    ImageBlock.block_type: ImageBlock,
    VideoBlock.block_type: VideoBlock,
    AudioBlock.block_type: AudioBlock,
    LinkBlock.block_type: LinkBlock,
}


def content_block_from_dict(data: Dict[str, Any]) -> ContentBlock:
    """Construct the variant named by the ``type`` tag; anything else is Unknown."""
    if not isinstance(data, dict):
        return UnknownBlock(type_tag=type(data).__name__)
    block_class = BLOCK_TYPES.get(data.get('type'), UnknownBlock)
    try:
        return block_class.from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Malformed {data.get('type')} block: {e}")
        return MalformedBlock(type_tag=data.get('type'), reason=str(e))


def content_blocks_from_list(items: Optional[List[Dict[str, Any]]]) -> List[ContentBlock]:
    return [content_block_from_dict(item) for item in items or []]


@dataclass
class ReblogTrailEntry:
    """A prior post in a reblog chain with the blog it came from."""

    blog_name: Optional[str]
    blog_url: Optional[str]
    content_blocks: List[ContentBlock] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReblogTrailEntry':
        blog = data.get('blog') or {}
        return cls(
            blog_name=blog.get('name'),
            blog_url=blog.get('url'),
            content_blocks=content_blocks_from_list(data.get('content'))
        )


def parse_post_date(value: Any) -> datetime:
    """
    Parse a Tumblr post date into an aware UTC datetime.

    Accepts the API's ``"2013-04-25 18:08:37 GMT"`` form, ISO 8601 strings and
    Unix timestamps. Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        parsed = date_parser.parse(str(value))

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class Post:
    """A Tumblr post in Neue Post Format, parsed into typed content blocks."""

    id: int
    state: PostState
    date: datetime
    slug: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    content_blocks: List[ContentBlock] = field(default_factory=list)
    trail: List[ReblogTrailEntry] = field(default_factory=list)
    original_type: str = "text"

    @property
    def is_reblog(self) -> bool:
        return len(self.trail) > 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Post':
        """
        Build a post from the raw API (or saved JSON) representation.

        Raises:
            MalformedPostError: If id, state or date is missing or invalid, or the
                content, tags or trail are not lists of the expected shape
        """
        raw_id = data.get('id', data.get('id_string'))
        try:
            post_id = int(raw_id)
        except (TypeError, ValueError):
            raise MalformedPostError(f"Post has no valid id: {raw_id!r}")

        try:
            state = PostState(data.get('state'))
        except ValueError:
            raise MalformedPostError(f"Post {post_id} has unsupported state {data.get('state')!r}")

        raw_date = data.get('date', data.get('timestamp'))
        if raw_date is None:
            raise MalformedPostError(f"Post {post_id} has no date")
        try:
            date = parse_post_date(raw_date)
        except (ValueError, OverflowError) as e:
            raise MalformedPostError(f"Post {post_id} has invalid date {raw_date!r}: {e}")

        try:
            tags = [str(tag) for tag in data.get('tags') or []]
            content_blocks = content_blocks_from_list(data.get('content'))
            trail = [ReblogTrailEntry.from_dict(entry) for entry in data.get('trail') or []]
        except (TypeError, AttributeError) as e:
            raise MalformedPostError(f"Post {post_id} has malformed content: {e}")

        return cls(
            id=post_id,
            state=state,
            date=date,
            slug=data.get('slug'),
            tags=tags,
            summary=data.get('summary'),
            content_blocks=content_blocks,
            trail=trail,
            original_type=data.get('original_type') or data.get('type') or "text"
        )


class FrontMatter:
    """Ordered front matter where the first value written for a key wins."""

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}

    def add(self, key: str, value: str) -> bool:
        """Insert ``key`` if absent. Returns False when the key already existed."""
        if key in self._entries:
            return False
        self._entries[key] = value
        return True

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._entries.get(key, default)

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def items(self) -> List[Tuple[str, str]]:
        return list(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def to_yaml(self) -> str:
        return "".join(f"{key}: {value}\n" for key, value in self._entries.items())


@dataclass
class BlockError:
    """A content block that could not be rendered."""

    block_id: str
    message: str


@dataclass
class RenderedPost:
    """A post rendered to Markdown with the media it references."""

    post_name: str
    front_matter: FrontMatter
    body_markdown: str
    media_refs: List[MediaRef] = field(default_factory=list)
    block_errors: List[BlockError] = field(default_factory=list)

    @property
    def document(self) -> str:
        """The complete Markdown document: front matter fence followed by the body."""
        return "---\n" + self.front_matter.to_yaml() + "---\n\n" + self.body_markdown
