"""
CLI interface for the video announcement sync.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from config.settings import ConfigurationError, Settings, get_settings
from config.sources import load_sources
from agents.sync_agent import create_sync_agent
from models.sync import RunStatus

# Setup logging
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def print_success(message: str) -> None:
    """Print success message."""
    print(f"[SUCCESS] {message}")


def print_error(message: str) -> None:
    """Print error message."""
    print(f"[ERROR] {message}", file=sys.stderr)


def print_info(message: str) -> None:
    """Print info message."""
    print(f"[INFO] {message}")


def print_warning(message: str) -> None:
    """Print warning message."""
    print(f"[WARNING] {message}")


def load_cli_settings() -> Optional[Settings]:
    """Load settings, reporting every missing key before anything touches the network."""
    try:
        return get_settings()
    except ConfigurationError as e:
        print_error(str(e))
        for key in e.missing_keys:
            print(f"   missing: {key}", file=sys.stderr)
        return None


async def run_command(dry_run: bool = False, max_posts: Optional[int] = None) -> int:
    """Execute one reconciliation run."""
    settings = load_cli_settings()
    if settings is None:
        return EXIT_FAILURE

    try:
        agent = create_sync_agent(settings)
    except ConfigurationError as e:
        print_error(str(e))
        return EXIT_FAILURE

    result = await agent.run(dry_run=dry_run, max_posts=max_posts)

    if result.status == RunStatus.SUCCESS:
        if result.posted:
            verb = "Would post" if dry_run else "Posted"
            print_success(f"{verb} {len(result.posted)} announcement(s)")
        else:
            print_success("Nothing new to announce")
    elif result.status == RunStatus.PARTIAL:
        print_warning(
            f"Completed with issues: posted {len(result.posted)} announcement(s), "
            f"{len(result.failed_sources)} source(s) failed"
        )
    else:
        print_error(f"Run failed after posting {len(result.posted)} announcement(s)")

    if result.deferred:
        print_info(f"{len(result.deferred)} video(s) deferred to the next run")
    for video_id in result.missing_videos:
        print_warning(f"Video {video_id} not found")
    for error in result.errors[:5]:
        print(f"   {error}")

    return EXIT_FAILURE if result.status == RunStatus.FAILED else EXIT_OK


async def schedule_command(interval: Optional[int] = None, dry_run: bool = False) -> int:
    """Run the sync periodically until interrupted."""
    from schedulers.sync_scheduler import SyncScheduler

    settings = load_cli_settings()
    if settings is None:
        return EXIT_FAILURE

    try:
        agent = create_sync_agent(settings)
    except ConfigurationError as e:
        print_error(str(e))
        return EXIT_FAILURE

    scheduler = SyncScheduler(agent, interval or settings.sync_interval_seconds, dry_run=dry_run)
    scheduler.start()
    print_info(f"Syncing every {scheduler.interval_seconds} seconds, press Ctrl+C to stop")

    try:
        while True:
            await asyncio.sleep(1)
    except asyncio.CancelledError:
        pass
    finally:
        scheduler.stop()
        print_success("Scheduler stopped")

    return EXIT_OK


async def history_command() -> int:
    """Print the video IDs already announced by the account."""
    settings = load_cli_settings()
    if settings is None:
        return EXIT_FAILURE

    try:
        agent = create_sync_agent(settings)
    except ConfigurationError as e:
        print_error(str(e))
        return EXIT_FAILURE

    announced = await agent.get_announced_ids()
    print_info(f"@{settings.twitter_account_name} has announced {len(announced)} video(s)")
    for video_id in sorted(announced):
        print(f"   {video_id}")
    return EXIT_OK


def sources_command(path: Optional[str] = None) -> int:
    """Print the configured sources."""
    if path is None:
        settings = load_cli_settings()
        if settings is None:
            return EXIT_FAILURE
        path = settings.sources_file

    try:
        sources = load_sources(path)
    except ConfigurationError as e:
        print_error(str(e))
        return EXIT_FAILURE

    print(f"\nChannels ({len(sources.channels)})")
    for channel in sources.channels:
        handle = f" @{channel.mention_handle}" if channel.mention_handle else ""
        print(f"   {channel.channel_id}{handle}")

    print(f"\nVideos ({len(sources.videos)})")
    for video in sources.videos:
        handle = f" @{video.mention_handle}" if video.mention_handle else ""
        print(f"   {video.video_id}{handle}")
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Announce new YouTube videos on Twitter"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Announce every video not yet announced")
    run_parser.add_argument("--dry-run", action="store_true", help="Log announcements instead of posting")
    run_parser.add_argument("--max-posts", type=int, help="Stop after this many announcements")

    schedule_parser = subparsers.add_parser("schedule", help="Run the sync periodically")
    schedule_parser.add_argument("--interval", type=int, help="Seconds between runs")
    schedule_parser.add_argument("--dry-run", action="store_true", help="Log announcements instead of posting")

    subparsers.add_parser("history", help="List video IDs already announced")

    sources_parser = subparsers.add_parser("sources", help="List configured sources")
    sources_parser.add_argument("--file", help="Sources file (defaults to SOURCES_FILE)")

    return parser


async def main(argv=None) -> int:
    """Main CLI function."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    if args.command == "run":
        if args.max_posts is not None and args.max_posts < 1:
            parser.error("--max-posts must be at least 1")
        return await run_command(dry_run=args.dry_run, max_posts=args.max_posts)

    elif args.command == "schedule":
        return await schedule_command(interval=args.interval, dry_run=args.dry_run)

    elif args.command == "history":
        return await history_command()

    elif args.command == "sources":
        return sources_command(args.file)

    print_error(f"Unknown command: {args.command}")
    parser.print_help()
    return EXIT_FAILURE


def cli() -> None:
    """Console script entry point."""
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        print_info("\nGoodbye!")
        exit_code = EXIT_OK
    except Exception as e:
        print_error(f"Fatal error: {e}")
        exit_code = EXIT_FAILURE
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
