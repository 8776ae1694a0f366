"""Write rendered posts to disk in a Hugo content layout."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from models import OutputLayout, RenderedPost


def relative_media_prefix(posts_dir: Path, media_dir: Path) -> str:
    """
    Path from a rendered post to the media directory.

    Hugo serves ``posts/name.md`` at ``posts/name/``, one level below the
    posts directory, hence the extra ``../``.
    """
    relative = os.path.relpath(Path(media_dir).resolve(), Path(posts_dir).resolve()).replace(os.sep, '/')
    if relative == '.':
        return "../"
    return f"../{relative}/"


class MarkdownExporter:
    """
    Writes Markdown documents for one of the output layouts.

    ``hugo`` writes ``{posts_dir}/{post_name}.md`` with media collected in
    ``media_dir``. ``hugopagebundle`` writes ``{posts_dir}/{post_name}/index.md``
    with the post's media beside it. ``media`` writes no documents at all.
    Write failures are logged and counted, never raised.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        layout: OutputLayout,
        posts_dir: Optional[str] = None,
        media_dir: Optional[str] = None,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the markdown exporter.

        Args:
            config: Configuration dictionary
            layout: Output layout
            posts_dir: Directory for documents (bundle root for page bundles)
            media_dir: Directory for media (hugo and media layouts)
            dry_run: Log what would be written without touching the filesystem
            logger: Logger instance
        """
        self.config = config
        self.layout = layout
        self.posts_dir = Path(posts_dir) if posts_dir else None
        self.media_dir = Path(media_dir) if media_dir else None
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('tumblr_hugo_export.exporters.markdown_exporter')

        if layout is OutputLayout.HUGO and (self.posts_dir is None or self.media_dir is None):
            raise ValueError("The hugo layout needs both a posts and a media directory")
        if layout is OutputLayout.PAGE_BUNDLE and self.posts_dir is None:
            raise ValueError("The page bundle layout needs an output directory")
        if layout is OutputLayout.MEDIA_ONLY and self.media_dir is None:
            raise ValueError("The media layout needs a media directory")

        self.stats = {
            'files_written': 0,
            'files_failed': 0
        }

    @property
    def writes_documents(self) -> bool:
        return self.layout is not OutputLayout.MEDIA_ONLY

    @property
    def media_prefix(self) -> Optional[str]:
        """Prefix placed before media file names inside documents."""
        if self.layout is OutputLayout.HUGO:
            return relative_media_prefix(self.posts_dir, self.media_dir)
        return None

    def prepare(self) -> None:
        """Create the top-level output directories (skipped in dry-run mode)."""
        if self.dry_run:
            return
        for directory in (self.posts_dir, self.media_dir):
            if directory is not None:
                directory.mkdir(parents=True, exist_ok=True)
                self.logger.debug(f"Output directory ready: {directory}")

    def document_path(self, rendered: RenderedPost) -> Path:
        if self.layout is OutputLayout.PAGE_BUNDLE:
            return self.posts_dir / rendered.post_name / "index.md"
        return self.posts_dir / f"{rendered.post_name}.md"

    def media_directory(self, rendered: RenderedPost) -> Path:
        """Directory the post's media is copied into."""
        if self.layout is OutputLayout.PAGE_BUNDLE:
            return self.posts_dir / rendered.post_name
        return self.media_dir

    def write(self, rendered: RenderedPost) -> bool:
        """
        Write one rendered post.

        Args:
            rendered: RenderedPost to write

        Returns:
            True if the document was written (or would be, in dry-run mode)
        """
        if not self.writes_documents:
            return True

        target = self.document_path(rendered)
        self.logger.info(f"Creating markdown file: {target}")

        if self.dry_run:
            self.logger.debug(f"\n{rendered.document}")
            self.stats['files_written'] += 1
            return True

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(rendered.document, encoding='utf-8')
        except OSError as e:
            self.logger.error(f"Create output file failed: {target}: {e}")
            self.stats['files_failed'] += 1
            return False

        self.stats['files_written'] += 1
        return True

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()
