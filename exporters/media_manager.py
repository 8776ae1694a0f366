"""Media manager for downloading the files referenced by rendered posts."""

import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.util.retry import Retry

from models import MediaRef

DOWNLOADED = 'downloaded'
SKIPPED = 'skipped'
FAILED = 'failed'


class MediaManager:
    """
    Copies remote media into local directories.

    Files already present are skipped. Each download is retried with
    exponential backoff; a file that still fails is counted and logged while
    the remaining files continue.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        dry_run: bool = False,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the media manager.

        Args:
            config: Configuration dictionary (export and advanced settings)
            dry_run: Log planned copies without downloading
            session: HTTP session (a retrying session is created when omitted)
            logger: Logger instance
        """
        self.config = config
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('tumblr_hugo_export.exporters.media_manager')

        export_config = config.get('export', {})
        advanced_config = config.get('advanced', {})
        self.max_workers = max(1, int(export_config.get('max_workers', 4)))
        self.show_progress = export_config.get('progress_bars', True)
        self.timeout = advanced_config.get('request_timeout', 30)
        self.max_retries = max(1, int(advanced_config.get('max_retries', 3)))

        self.session = session or self._create_session()

        self.stats = {
            'total_media': 0,
            DOWNLOADED: 0,
            SKIPPED: 0,
            FAILED: 0,
            'total_size_bytes': 0
        }

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=float(self.config.get('advanced', {}).get('retry_backoff_factor', 2.0)),
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy, pool_maxsize=self.max_workers)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def copy(self, media_refs: List[MediaRef], target_dir: Path) -> Dict[str, int]:
        """
        Copy a post's media into ``target_dir``.

        Args:
            media_refs: Media references from a RenderedPost
            target_dir: Destination directory

        Returns:
            Per-call statistics (downloaded, skipped, failed)
        """
        call_stats = {DOWNLOADED: 0, SKIPPED: 0, FAILED: 0}
        if not media_refs:
            return call_stats

        target_dir = Path(target_dir)
        if not self.dry_run:
            target_dir.mkdir(parents=True, exist_ok=True)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._copy_one, media_ref, target_dir) for media_ref in media_refs]

            if self._should_show_progress(len(futures)):
                futures = tqdm(futures, desc=f"Media -> {target_dir.name}", unit="file", leave=False)

            for future in futures:
                outcome, size = future.result()
                call_stats[outcome] += 1
                self.stats['total_size_bytes'] += size

        for outcome, count in call_stats.items():
            self.stats[outcome] += count
        self.stats['total_media'] += len(media_refs)

        return call_stats

    def _copy_one(self, media_ref: MediaRef, target_dir: Path) -> Tuple[str, int]:
        """Copy a single file and report (outcome, bytes written); never raises."""
        target = target_dir / media_ref.local_file_name
        self.logger.info(f"Copy {media_ref.source_url} --> {target}")

        if self.dry_run:
            return SKIPPED, 0

        if target.exists():
            self.logger.info(f"File exists: {target}")
            return SKIPPED, 0

        try:
            size = self._download(media_ref.source_url, target)
        except (requests.RequestException, OSError) as e:
            self.logger.error(f"Copy failed {media_ref.source_url}: {e}")
            return FAILED, 0

        return DOWNLOADED, size

    def _download(self, url: str, target: Path) -> int:
        """
        Stream ``url`` into ``target`` with retries.

        The body goes to a ``.part`` file that is renamed only once complete.
        """
        partial = target.with_name(target.name + ".part")
        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                size = 0
                with self.session.get(url, stream=True, timeout=self.timeout) as response:
                    response.raise_for_status()
                    with open(partial, 'wb') as f:
                        for chunk in response.iter_content(chunk_size=64 * 1024):
                            if chunk:
                                f.write(chunk)
                                size += len(chunk)
                partial.replace(target)
                return size
            except (requests.RequestException, OSError) as e:
                last_exception = e
                self.logger.warning(f"Download attempt {attempt + 1} failed for '{url}': {e}")
                if partial.exists():
                    partial.unlink()
                if attempt < self.max_retries - 1:
                    time.sleep(2 ** attempt)

        raise last_exception

    def _should_show_progress(self, count: int) -> bool:
        return bool(self.show_progress) and count > 1 and sys.stderr.isatty()

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()

    def close(self) -> None:
        self.session.close()
