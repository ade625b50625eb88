"""
Command-line interface for Game Tracker
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from game_tracker.config import ConfigManager
from game_tracker.conflict_resolver import ConflictResolver
from game_tracker.database import DatabaseManager, GameStore, ThreadStore
from game_tracker.errors import GameTrackerError, StoreUnavailableError
from game_tracker.ingestion import GameIngestionPipeline
from game_tracker.locks import EntityLockRegistry
from game_tracker.logger import setup_logger, set_console_level
from game_tracker.models import ChoiceOption, IngestionOutcome, NotificationLevel
from game_tracker.remote_catalog import HttpRemoteCatalog
from game_tracker.thread_sync import ThreadWatchSynchronizer
from game_tracker.version import __version__

logger = setup_logger()


class LoggingNotifier:
    """Notifier writing user notices to the application log"""

    _levels = {
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }

    def notify(self, level: NotificationLevel, message: str) -> None:
        logger.log(self._levels.get(level, logging.INFO), message)


class ConsoleChooser:
    """Chooser reading the selection from stdin (empty answer cancels)"""

    def __init__(self, input_func=input):
        self._input = input_func

    async def choose(self, prompt: str, options: Sequence[ChoiceOption]) -> Optional[str]:
        print(prompt)
        for i, option in enumerate(options, start=1):
            print(f"  [{i}] {option.label}")

        while True:
            answer = (await asyncio.to_thread(self._input, "Select a number (empty to cancel): ")).strip()
            if not answer:
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1].key
            print(f"Please enter a number between 1 and {len(options)}")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser"""
    parser = argparse.ArgumentParser(
        prog='game-tracker',
        description='Game Tracker - keep a local game library and watched threads in sync',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s add "D:/Games/My Game [v.1.2]" "D:/Games/Other Game [MOD]"
  %(prog)s add-url "D:/Games/Weird Name" https://example.com/threads/my-game.1234/
  %(prog)s sync --file watched.txt
  %(prog)s updates
        '''
    )
    parser.add_argument('--config', type=str, help='Path to config.ini')
    parser.add_argument('--quiet', '-q', action='store_true', help='Only print warnings and errors')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', required=True)

    add_parser = subparsers.add_parser('add', help='Add games from their directories')
    add_parser.add_argument('paths', nargs='+', help='Game directories')

    add_url_parser = subparsers.add_parser('add-url', help='Add a game from its thread URL')
    add_url_parser.add_argument('path', help='Game directory')
    add_url_parser.add_argument('url', help='Thread URL of the game')

    sync_parser = subparsers.add_parser('sync', help='Synchronize the watched threads')
    sync_parser.add_argument('urls', nargs='*', help='Watched thread URLs')
    sync_parser.add_argument('--file', '-f', type=str, help='File with one watched URL per line')
    sync_parser.add_argument(
        '--isolate-failures', action='store_true', default=None,
        help='Keep going when a single thread cannot be fetched'
    )

    subparsers.add_parser('updates', help='List watched threads with unread updates')

    read_parser = subparsers.add_parser('mark-read', help='Mark a thread update as read')
    read_parser.add_argument('remote_id', type=int, help='Thread id')

    search_parser = subparsers.add_parser('list', help='List library games')
    search_parser.add_argument('query', nargs='?', default='', help='Filter by name')

    return parser


def read_watch_list(args) -> List[str]:
    urls = list(args.urls)
    if args.file:
        lines = Path(args.file).read_text(encoding='utf-8').splitlines()
        urls.extend(line.strip() for line in lines if line.strip() and not line.startswith('#'))
    return urls


async def run(args, config: ConfigManager) -> int:
    locks = EntityLockRegistry()
    notifier = LoggingNotifier()

    async with DatabaseManager(config.database_path, config.pool_size) as db, \
            HttpRemoteCatalog(config.catalog_url, config.catalog_timeout) as catalog:
        threads = ThreadStore(db)
        games = GameStore(db)

        if args.command in ('add', 'add-url'):
            pipeline = GameIngestionPipeline(
                catalog,
                games,
                ConflictResolver(ConsoleChooser()),
                notifier,
                locks=locks,
                max_itemized_duplicates=config.max_itemized_duplicates,
            )
            if args.command == 'add':
                notifier.notify(NotificationLevel.INFO, "Adding games from path...")
                report = await pipeline.ingest_paths(args.paths)
                return 1 if report.failed else 0

            result = await pipeline.ingest_url(args.path, args.url)
            return 1 if result.outcome == IngestionOutcome.FAILED else 0

        isolate = config.isolate_failures
        if getattr(args, 'isolate_failures', None) is not None:
            isolate = args.isolate_failures
        synchronizer = ThreadWatchSynchronizer(threads, games, catalog, locks=locks, isolate_failures=isolate)

        if args.command == 'sync':
            updated = await synchronizer.refresh(args.watch_urls)
            print_threads(updated)
            return 0

        if args.command == 'updates':
            print_threads(await synchronizer.get_updated_threads())
            return 0

        if args.command == 'mark-read':
            return 0 if await synchronizer.mark_as_read(args.remote_id) else 1

        if args.command == 'list':
            for game in await games.search(args.query):
                mod = " [MOD]" if game.mod else ""
                print(f"{game.remote_id:>8}  {game.name}{mod} ({game.version})  {game.game_directory}")
            return 0

    return 2


def print_threads(threads):
    if not threads:
        print("No updated threads")
        return
    for thread in threads:
        print(f"{thread.remote_id:>8}  {thread.name} ({thread.version})  {thread.url}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.quiet:
        set_console_level(logging.WARNING)

    if args.command == 'sync':
        try:
            args.watch_urls = read_watch_list(args)
        except OSError as e:
            logger.error(f"Cannot read watch list {args.file}: {e}")
            return 1

    config = ConfigManager(args.config)
    try:
        return asyncio.run(run(args, config))
    except StoreUnavailableError as e:
        logger.error(f"Library database unavailable: {e}")
        return 3
    except GameTrackerError as e:
        logger.error(f"Operation aborted: {e}", exc_info=True)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
