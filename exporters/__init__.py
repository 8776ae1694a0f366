"""Export package writing rendered posts and their media to a Hugo site.

Package Structure:
- markdown_exporter: Writes documents for the hugo, hugopagebundle and media layouts
- media_manager: Downloads referenced media, skipping files already present

Configuration Referenced:
- export.max_workers: Parallel media downloads per post
- export.progress_bars: Show a tqdm progress bar for media downloads
- advanced.request_timeout / max_retries / retry_backoff_factor: Download behaviour
"""

from .markdown_exporter import MarkdownExporter, relative_media_prefix
from .media_manager import MediaManager

__all__ = [
    'MarkdownExporter',
    'MediaManager',
    'relative_media_prefix'
]
