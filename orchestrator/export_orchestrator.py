"""
Export orchestrator for coordinating the complete export pipeline.

This module sequences the export phases: Fetch → Parse → Filter → Render →
Write/Copy → Report. A failure on one post or one media file is counted and
processing continues with the next item.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from converters import PostAssembler
from exporters import MarkdownExporter, MediaManager
from fetchers import BaseFetcher, PostFilter, parse_posts, write_posts_json
from logger import ProgressTracker, log_section
from models import Post
from orchestrator.export_report import ExportReport


class ExportOrchestrator:
    """Central coordinator sequencing all export phases."""

    def __init__(
        self,
        config: Dict[str, Any],
        fetcher: BaseFetcher,
        exporter: MarkdownExporter,
        media_manager: MediaManager,
        assembler: Optional[PostAssembler] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize export orchestrator.

        Args:
            config: Configuration dictionary
            fetcher: Source of raw posts
            exporter: Document writer for the chosen layout
            media_manager: Media copier
            assembler: Post renderer (built from config when omitted)
            logger: Optional logger instance
        """
        self.config = config
        self.fetcher = fetcher
        self.exporter = exporter
        self.media_manager = media_manager
        self.logger = logger or logging.getLogger('tumblr_hugo_export.orchestrator')
        self.assembler = assembler or PostAssembler.from_config(config, logger=self.logger)
        self.report_generator = ExportReport(self.logger)

    def run(
        self,
        blog: str,
        post_filter: PostFilter,
        fetch_options: Optional[Dict[str, bool]] = None,
        json_out: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Run the export.

        Args:
            blog: Blog name or hostname
            post_filter: Selection applied to the fetched posts
            fetch_options: Keyword arguments for BaseFetcher.fetch_posts
            json_out: Optional path receiving the raw fetched posts

        Returns:
            Report dictionary (see ExportReport.generate_report)

        Raises:
            FetcherError, TumblrApiError: If posts cannot be fetched
        """
        phase_stats: Dict[str, Any] = {}

        log_section("Fetching posts")
        start_time = time.time()
        raw_posts = self.fetcher.fetch_posts(blog, **(fetch_options or {}))
        if json_out:
            write_posts_json(raw_posts, json_out, self.logger)
        posts, parse_failures = parse_posts(raw_posts, self.logger)
        phase_stats['fetch'] = {
            'posts_read': len(raw_posts),
            'parse_failures': parse_failures,
            'read_time': time.time() - start_time
        }

        selected = post_filter.filter(posts)
        if not post_filter.states:
            self.logger.warning("No post states selected; nothing will be exported")
        phase_stats['filter'] = {
            'posts_parsed': len(posts),
            'posts_selected': len(selected)
        }
        self.logger.info(f"Selected {len(selected)} of {len(posts)} posts")

        log_section("Exporting posts")
        phase_stats['export'] = self._export_posts(selected)
        phase_stats['media'] = self.media_manager.get_stats()

        return self.report_generator.generate_report(phase_stats, selected, self.exporter.layout.value)

    def _export_posts(self, posts: List[Post]) -> Dict[str, Any]:
        start_time = time.time()
        stats = {
            'posts_exported': 0,
            'posts_failed': 0,
            'block_errors': 0
        }

        self.exporter.prepare()
        media_prefix = self.exporter.media_prefix

        with ProgressTracker(total_items=len(posts), item_type='posts') as tracker:
            for post in posts:
                try:
                    rendered = self.assembler.assemble(post, media_prefix)
                except Exception as e:
                    self.logger.error(f"Failed to render post {post.id}: {e}", exc_info=True)
                    stats['posts_failed'] += 1
                    tracker.increment(success=False)
                    continue

                stats['block_errors'] += len(rendered.block_errors)
                written = self.exporter.write(rendered)
                copy_stats = self.media_manager.copy(rendered.media_refs, self.exporter.media_directory(rendered))

                success = written and copy_stats['failed'] == 0
                if success:
                    stats['posts_exported'] += 1
                tracker.increment(success=success)

        exporter_stats = self.exporter.get_stats()
        stats['files_written'] = exporter_stats['files_written']
        stats['files_failed'] = exporter_stats['files_failed']
        stats['processing_time'] = time.time() - start_time
        return stats
