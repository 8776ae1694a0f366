"""
Export report generator for aggregating statistics and formatting reports.

This module turns the per-phase statistics collected by the orchestrator into
an end-of-run summary suitable for console display.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from logger import ProgressTracker
from models import Post, PostState


class ExportReport:
    """Generates the end-of-run export summary."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize export report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('tumblr_hugo_export.orchestrator.report')

    def generate_report(
        self,
        phase_stats: Dict[str, Any],
        exported_posts: List[Post],
        layout: str
    ) -> Dict[str, Any]:
        """
        Generate the export report.

        Args:
            phase_stats: Statistics from the fetch, filter and export phases
            exported_posts: Posts that passed the filter
            layout: Output layout name

        Returns:
            Report dictionary
        """
        fetch = phase_stats.get('fetch', {})
        filtering = phase_stats.get('filter', {})
        export = phase_stats.get('export', {})
        media = phase_stats.get('media', {})

        states = {state.value: 0 for state in PostState}
        for post in exported_posts:
            states[post.state.value] += 1

        total_errors = (
            fetch.get('parse_failures', 0)
            + export.get('posts_failed', 0)
            + export.get('files_failed', 0)
            + media.get('failed', 0)
        )

        report = {
            'summary': {
                'layout': layout,
                'read_time': fetch.get('read_time', 0.0),
                'read_time_formatted': ProgressTracker._format_elapsed(fetch.get('read_time', 0.0)),
                'processing_time': export.get('processing_time', 0.0),
                'processing_time_formatted': ProgressTracker._format_elapsed(export.get('processing_time', 0.0)),
                'posts_read': fetch.get('posts_read', 0),
                'posts_selected': filtering.get('posts_selected', 0),
                'total': len(exported_posts),
                'total_errors': total_errors,
                'total_warnings': export.get('block_errors', 0)
            },
            'states': states,
            'errors': {
                'parse_failures': fetch.get('parse_failures', 0),
                'post_failures': export.get('posts_failed', 0),
                'file_errors': export.get('files_failed', 0),
                'copy_errors': media.get('failed', 0),
                'block_errors': export.get('block_errors', 0)
            },
            'media': {
                'total': media.get('total_media', 0),
                'downloaded': media.get('downloaded', 0),
                'skipped': media.get('skipped', 0),
                'failed': media.get('failed', 0),
                'total_size_bytes': media.get('total_size_bytes', 0)
            },
            'filtered': {
                'before': filtering.get('posts_parsed', 0),
                'after': filtering.get('posts_selected', 0)
            },
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {report['summary']['total']} posts, "
            f"{report['summary']['total_errors']} errors"
        )

        return report

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Export report dictionary

        Returns:
            Formatted console string
        """
        summary = report.get('summary', {})
        errors = report.get('errors', {})
        states = report.get('states', {})
        media = report.get('media', {})
        filtered = report.get('filtered', {})

        sections = []
        sections.append("=" * 60)
        sections.append("EXPORT REPORT")
        sections.append("=" * 60)
        sections.append("")

        sections.append(f"Read Time      : {summary.get('read_time_formatted', '0s')}")
        sections.append(f"Processing Time: {summary.get('processing_time_formatted', '0s')}")

        for label, key in (
            ("Parse Errors:   ", 'parse_failures'),
            ("Post Errors:    ", 'post_failures'),
            ("File Errors:    ", 'file_errors'),
            ("Copy Errors:    ", 'copy_errors'),
            ("Block Errors:   ", 'block_errors'),
        ):
            if errors.get(key, 0):
                sections.append(f"{label} {errors[key]}")

        if filtered.get('before', 0) != filtered.get('after', 0):
            sections.append(f"Filtered:        {filtered['before']} posts down to {filtered['after']}")

        sections.append(f"Published Posts: {states.get(PostState.PUBLISHED.value, 0)}")
        sections.append(f"Private Posts:   {states.get(PostState.PRIVATE.value, 0)}")
        sections.append(f"Draft Posts:     {states.get(PostState.DRAFT.value, 0)}")
        sections.append(f"Queued Posts:    {states.get(PostState.QUEUED.value, 0)}")
        sections.append(f"Total:           {summary.get('total', 0)}")

        if media.get('total', 0):
            sections.append("")
            sections.append(
                f"Media: {media.get('downloaded', 0)} downloaded, "
                f"{media.get('skipped', 0)} skipped, {media.get('failed', 0)} failed"
            )

        sections.append("")
        sections.append("=" * 60)
        return "\n".join(sections)
