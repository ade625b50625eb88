"""
Adding games to the library.

Every directory (or directory + thread URL) goes through:
    parse -> catalog lookup -> [user choice] -> duplicate check -> insert
and ends in exactly one IngestionOutcome. A failing item never stops the
rest of the batch; only an unusable store does.
"""

from typing import Iterable, List, Optional

from game_tracker.conflict_resolver import ConflictResolver
from game_tracker.constants import DEFAULT_MAX_ITEMIZED_DUPLICATES
from game_tracker.deduplicator import GameLibraryDeduplicator, report_duplicates
from game_tracker.errors import AlreadyListedError, NotFoundError, StoreUnavailableError
from game_tracker.interfaces import Notifier, RecordStore, RemoteCatalog
from game_tracker.locks import EntityKind, EntityLockRegistry
from game_tracker.logger import setup_logger
from game_tracker.models import (
    BatchReport,
    DirInfo,
    GameRecord,
    IngestionOutcome,
    IngestionResult,
    MatchKind,
    NotificationLevel,
    RemoteGameInfo,
)
from game_tracker.name_parser import clean_game_name, get_dir_name, parse_directory_name

logger = setup_logger()


class GameIngestionPipeline:
    """
    Orchestrates lookup, deduplication, conflict resolution and persistence.

    Args:
        catalog: Remote catalog to look games up
        game_store: Store of GameRecord
        resolver: Asks the user to pick among same-name results
        notifier: Receives user-facing notices
        locks: Lock registry shared with the thread synchronizer
        max_itemized_duplicates: Duplicate notice threshold (see report_duplicates)
    """

    def __init__(
        self,
        catalog: RemoteCatalog,
        game_store: RecordStore[GameRecord],
        resolver: ConflictResolver,
        notifier: Notifier,
        deduplicator: Optional[GameLibraryDeduplicator] = None,
        locks: Optional[EntityLockRegistry] = None,
        max_itemized_duplicates: int = DEFAULT_MAX_ITEMIZED_DUPLICATES,
    ):
        self.catalog = catalog
        self.game_store = game_store
        self.resolver = resolver
        self.notifier = notifier
        self.deduplicator = deduplicator or GameLibraryDeduplicator()
        self.locks = locks or EntityLockRegistry()
        self.max_itemized_duplicates = max_itemized_duplicates

    # ===== Public API =====

    async def ingest_paths(self, paths: Iterable[str]) -> BatchReport:
        """
        Add the games contained in one or more directories.

        Args:
            paths: Game directories selected by the user

        Returns:
            BatchReport with one result per path, in input order
        """
        paths = [str(path) for path in paths]
        unlisted = await self._filter_listed(paths)
        report = BatchReport()

        for path in paths:
            if path not in unlisted:
                report.add(IngestionResult(
                    source=path,
                    outcome=IngestionOutcome.ALREADY_LISTED,
                    name=clean_game_name(get_dir_name(path)),
                ))
                continue

            report.add(await self._run_item(path, self._ingest_directory(parse_directory_name(path))))

        counts = report.counts()
        logger.info(
            f"Ingestion batch of {len(paths)}: "
            + ", ".join(f"{count} {outcome}" for outcome, count in counts.items() if count)
        )
        return report

    async def ingest_path(self, path: str) -> IngestionResult:
        """Add the game contained in a single directory"""
        report = await self.ingest_paths([path])
        return report.results[0]

    async def ingest_url(self, path: str, url: str) -> IngestionResult:
        """
        Add a game whose directory name cannot be matched, using its thread URL.

        The catalog data comes from url, version/mod/location from path.
        """
        path = str(path)
        if not await self._filter_listed([path]):
            return IngestionResult(
                source=path,
                outcome=IngestionOutcome.ALREADY_LISTED,
                name=clean_game_name(get_dir_name(path)),
            )

        dir_info = parse_directory_name(path)
        self.notifier.notify(NotificationLevel.INFO, f"Adding game from {url}")
        return await self._run_item(path, self._ingest_from_url(dir_info, url))

    # ===== State machine =====

    async def _filter_listed(self, paths: List[str]) -> set:
        """Name-based duplicate check against the current library"""
        library = await self.game_store.find()
        unlisted, duplicates = self.deduplicator.partition_unlisted(paths, library)
        report_duplicates(duplicates, self.notifier, self.max_itemized_duplicates)
        return set(unlisted)

    async def _run_item(self, source: str, step) -> IngestionResult:
        """Await one item and turn how it ended into an IngestionResult"""
        try:
            game = await step
        except StoreUnavailableError:
            raise
        except NotFoundError as e:
            logger.warning(str(e))
            self.notifier.notify(NotificationLevel.WARNING, f"No game found for {e.query}")
            return IngestionResult(source=source, outcome=IngestionOutcome.NOT_FOUND, name=e.query)
        except AlreadyListedError as e:
            logger.info(str(e))
            self.notifier.notify(NotificationLevel.WARNING, f"{e.name} is already listed")
            return IngestionResult(source=source, outcome=IngestionOutcome.ALREADY_LISTED, name=e.name)
        except Exception as e:
            logger.error(f"Unexpected error while retrieving game data from path: {source}. {e}", exc_info=True)
            self.notifier.notify(
                NotificationLevel.ERROR,
                f"Cannot retrieve game data ({source}), unexpected error: {e}",
            )
            return IngestionResult(source=source, outcome=IngestionOutcome.FAILED, error=str(e))

        if game is None:
            return IngestionResult(
                source=source,
                outcome=IngestionOutcome.CANCELLED,
                name=clean_game_name(get_dir_name(source)),
            )

        self.notifier.notify(NotificationLevel.INFO, f"{game.name} successfully added")
        return IngestionResult(source=source, outcome=IngestionOutcome.INSERTED, name=game.name, game=game)

    async def _ingest_directory(self, dir_info: DirInfo) -> Optional[GameRecord]:
        results = await self.catalog.search_by_name(dir_info.name, dir_info.mod)
        match = self.deduplicator.classify_matches(results)

        if match.kind == MatchKind.ZERO:
            raise NotFoundError(dir_info.name)

        selected = match.selected
        if match.kind == MatchKind.MULTIPLE:
            label = f"{dir_info.name} ({dir_info.version})"
            if dir_info.mod:
                label = f"{label} [MOD]"
            selected = await self.resolver.resolve(label, match.candidates)
            if selected is None:
                return None

        return await self._insert_if_unlisted(selected, dir_info)

    async def _ingest_from_url(self, dir_info: DirInfo, url: str) -> GameRecord:
        info = await self.catalog.fetch_by_url(url)
        return await self._insert_if_unlisted(info, dir_info)

    async def _insert_if_unlisted(self, info: RemoteGameInfo, dir_info: DirInfo) -> GameRecord:
        async with self.locks.hold(EntityKind.GAME, info.id):
            if await self.game_store.find({"remote_id": info.id}):
                raise AlreadyListedError(info.name, info.id)

            record = GameRecord.from_remote(info, dir_info)
            inserted = await self.game_store.insert(record)

        logger.info(f"Added {inserted.name} (id {inserted.remote_id}) from {dir_info.path}")
        return inserted
