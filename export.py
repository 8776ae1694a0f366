#!/usr/bin/env python3
"""
Tumblr to Hugo Export Tool - Main CLI Entry Point

This script provides the command-line interface for exporting Tumblr posts as
Markdown documents with Hugo shortcodes, copying their media alongside.
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from config_loader import DEFAULT_CONFIG_PATH, ConfigLoader, get_nested
from exporters import MarkdownExporter, MediaManager
from fetchers import FetcherError, FetcherFactory, FilterValidationError, PostFilter, parse_since
from logger import log_config, log_section, setup_logging
from models import OutputLayout
from orchestrator import ExportOrchestrator
from tumblr_client import TumblrApiError, TumblrAuthError

__version__ = "1.0.0"


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by every subcommand."""
    parser.add_argument('-p', '--published', action='store_true', help='Export published posts')
    parser.add_argument('-r', '--restricted', action='store_true',
                        help='Export private posts (uses user authentication)')
    parser.add_argument('-d', '--drafts', action='store_true', help='Export draft posts')
    parser.add_argument('-q', '--queued', action='store_true', help='Export queued posts')
    parser.add_argument('-n', '--noreblogs', action='store_true',
                        help='Only process original posts, no reblogs')
    parser.add_argument('-a', '--authenticate', action='store_true',
                        help='Always use user authentication (required for private or censored posts)')
    parser.add_argument('-s', '--since', type=str, help='Only process posts on or after this date')
    parser.add_argument('-o', '--jsonout', type=str, help='Write the raw post JSON to a file')
    parser.add_argument('-i', '--jsonin', type=str, help='Read raw post JSON from a file instead of the API')
    parser.add_argument('-t', '--test', action='store_true',
                        help='Dry run: log documents and media copies without writing anything')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity (-v for INFO, -vv for DEBUG)')
    parser.add_argument('--config', type=str, default=None,
                        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH})')
    parser.add_argument('--strict', action=argparse.BooleanOptionalAction, default=None,
                        help='Plain Markdown only: omit shortcodes for quirky/quote/chat, small and color')
    parser.add_argument('--reblog-attribution', choices=['first', 'entry'], default=None,
                        help='Blog named on reblog attribution lines (default: first)')
    parser.add_argument('--progress', action=argparse.BooleanOptionalAction, default=None,
                        help='Show progress bars for media downloads')
    parser.add_argument('--log-file', type=str, help='Also log to this file')


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='tumblr-export',
        description="Export Tumblr posts to Markdown for the Hugo static site generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Published posts into a Hugo site, media under static/
  tumblr-export hugo myblog site/content/posts site/static/media -p

  # Drafts and queued posts as page bundles
  tumblr-export hugopagebundle myblog site/content/posts -d -q

  # Save the raw posts, then convert them later without the API
  tumblr-export hugo myblog posts media -p -o posts.json
  tumblr-export hugo myblog posts media -p -i posts.json

  # Original posts since 2020, dry run
  tumblr-export hugo myblog posts media -p -n -s 2020-01-01 -t

  # Download media only
  tumblr-export media myblog static/media -p
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', required=True)

    hugo = subparsers.add_parser('hugo', help='Convert blog posts to Hugo posts')
    hugo.add_argument('blog', help='Blog name or hostname')
    hugo.add_argument('posts', help='Output directory for posts')
    hugo.add_argument('media', help='Output directory for images, video and audio')
    _add_common_arguments(hugo)

    bundle = subparsers.add_parser('hugopagebundle', help='Convert blog posts to Hugo page bundles')
    bundle.add_argument('blog', help='Blog name or hostname')
    bundle.add_argument('output', help='Output directory for post bundles')
    _add_common_arguments(bundle)

    media = subparsers.add_parser('media', help='Only copy the media referenced by blog posts')
    media.add_argument('blog', help='Blog name or hostname')
    media.add_argument('media', help='Output directory for media')
    _add_common_arguments(media)

    return parser


def build_exporter(config: dict, args: argparse.Namespace, logger: logging.Logger) -> MarkdownExporter:
    """Create the exporter for the selected subcommand."""
    layout = OutputLayout(args.command)
    if layout is OutputLayout.HUGO:
        return MarkdownExporter(config, layout, posts_dir=args.posts, media_dir=args.media,
                                dry_run=args.test, logger=logger)
    if layout is OutputLayout.PAGE_BUNDLE:
        return MarkdownExporter(config, layout, posts_dir=args.output, dry_run=args.test, logger=logger)
    return MarkdownExporter(config, layout, media_dir=args.media, dry_run=args.test, logger=logger)


def run_export(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the export pipeline and return the process exit code."""
    post_filter = PostFilter(
        since=parse_since(args.since),
        no_reblogs=args.noreblogs,
        published=args.published,
        private=args.restricted,
        draft=args.drafts,
        queued=args.queued
    )
    fetch_options = {
        'published': args.published,
        'private': args.restricted,
        'drafts': args.drafts,
        'queued': args.queued,
        'authenticate': args.authenticate
    }

    logger.info(f"Command: {args.command}, Blog: {args.blog}, Dry-run: {args.test}")

    fetcher = FetcherFactory.create_fetcher(config, logger, json_in=args.jsonin)
    exporter = build_exporter(config, args, logger)
    media_manager = MediaManager(config, dry_run=args.test, logger=logger)

    try:
        orchestrator = ExportOrchestrator(config, fetcher, exporter, media_manager, logger=logger)
        report = orchestrator.run(args.blog, post_filter, fetch_options, json_out=args.jsonout)
    finally:
        media_manager.close()

    print("\n" + orchestrator.report_generator.format_console_report(report))

    errors = report.get('summary', {}).get('total_errors', 0)
    if errors > 0:
        logger.warning(f"Export completed with {errors} errors")
        return 1
    logger.info("Export completed successfully")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    verbosity = max(args.verbose, 2) if args.test else args.verbose

    try:
        logger = setup_logging(verbosity=verbosity)
        log_section("Tumblr to Hugo Export")
        logger.info(f"Version: {__version__}")

        config_path = args.config or DEFAULT_CONFIG_PATH
        config = ConfigLoader.load(config_path, required=args.config is not None)
        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        if not args.jsonin:
            needs_user_auth = args.authenticate or args.restricted or args.drafts or args.queued
            ConfigLoader.validate_credentials(config, needs_user_auth=needs_user_auth)

        logger = setup_logging(
            verbosity=verbosity,
            log_file=get_nested(config, 'logging.file'),
            level=None if args.verbose or args.test else get_nested(config, 'logging.level')
        )
        log_config(config)

        return run_export(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, FilterValidationError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except TumblrAuthError as e:
        print(f"ERROR: Authentication error: {e}", file=sys.stderr)
        return 2
    except (TumblrApiError, FetcherError) as e:
        print(f"ERROR: Could not fetch posts: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
