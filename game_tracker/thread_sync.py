"""
Watched thread synchronization.

The remote watch list is the source of truth: every pass inserts the threads
seen for the first time, flags the ones whose URL changed (a new URL means a
new release upstream) and removes the ones the user unsubscribed from.
"""

from typing import Iterable, List, Optional

from game_tracker.errors import ParseError, StoreError, StoreUnavailableError, TransportError
from game_tracker.interfaces import RecordStore, RemoteCatalog
from game_tracker.locks import EntityKind, EntityLockRegistry
from game_tracker.logger import setup_logger
from game_tracker.models import ThreadRecord, GameRecord, SyncReport
from game_tracker.name_parser import extract_thread_id

logger = setup_logger()


class ThreadWatchSynchronizer:
    """
    Reconciles the thread store with the user's watch list.

    Args:
        thread_store: Store of ThreadRecord
        game_store: Store of GameRecord, used to hide installed games
        catalog: Remote catalog used to fetch thread data
        locks: Lock registry shared with the ingestion pipeline
        isolate_failures: If False (default) a fetch failure aborts the pass
            before anything is removed. If True the failing thread is logged,
            kept as is, and the pass continues.
    """

    def __init__(
        self,
        thread_store: RecordStore[ThreadRecord],
        game_store: RecordStore[GameRecord],
        catalog: RemoteCatalog,
        locks: Optional[EntityLockRegistry] = None,
        isolate_failures: bool = False,
    ):
        self.thread_store = thread_store
        self.game_store = game_store
        self.catalog = catalog
        self.locks = locks or EntityLockRegistry()
        self.isolate_failures = isolate_failures

    async def sync(self, urls: Iterable[str]) -> SyncReport:
        """
        Run one synchronization pass over the watch list.

        Args:
            urls: Watched thread URLs, in the order the remote returned them

        Returns:
            SyncReport describing what changed
        """
        report = SyncReport()
        seen_ids = set()

        for url in urls:
            try:
                remote_id = extract_thread_id(url)
            except ParseError as e:
                logger.warning(str(e))
                report.skipped_urls.append(url)
                continue

            if remote_id in seen_ids:
                # The same thread twice in one list must not flip-flop its URL
                logger.debug(f"Thread {remote_id} listed more than once, keeping the first URL")
                continue
            seen_ids.add(remote_id)

            if not self.isolate_failures:
                await self._sync_thread(remote_id, url, report)
                continue

            try:
                await self._sync_thread(remote_id, url, report)
            except StoreUnavailableError:
                raise
            except (TransportError, StoreError) as e:
                logger.error(f"Cannot synchronize thread {remote_id} ({url}): {e}")
                report.failed[remote_id] = str(e)

        # Remove the unsubscribed threads
        report.removed = await self._remove_unsubscribed(seen_ids)

        logger.info(
            f"Thread sync: {len(report.inserted)} new, {len(report.updated)} updated, "
            f"{len(report.removed)} removed, {len(report.skipped_urls)} skipped, "
            f"{len(report.failed)} failed"
        )
        return report

    async def _sync_thread(self, remote_id: int, url: str, report: SyncReport):
        async with self.locks.hold(EntityKind.THREAD, remote_id):
            existing = await self.thread_store.find({"remote_id": remote_id})

            if not existing:
                info = await self.catalog.fetch_by_url(url)
                record = ThreadRecord.from_remote(remote_id, url, info)
                await self.thread_store.insert(record)
                report.inserted.append(remote_id)
                logger.debug(f"New watched thread {remote_id}: {record.name}")
                return

            stored = existing[0]
            if stored.url == url:
                # No update...
                report.unchanged.append(remote_id)
                return

            info = await self.catalog.fetch_by_url(url)
            record = ThreadRecord.from_remote(remote_id, url, info)
            record.update_available = True
            record.marked_as_read = False
            record.internal_id = stored.internal_id
            await self.thread_store.update(record)
            report.updated.append(remote_id)
            logger.info(f"Update available for {record.name} ({remote_id})")

    async def _remove_unsubscribed(self, seen_ids: set) -> List[int]:
        removed = []
        for thread in await self.thread_store.find():
            if thread.remote_id in seen_ids:
                continue
            async with self.locks.hold(EntityKind.THREAD, thread.remote_id):
                await self.thread_store.delete(thread.internal_id)
            removed.append(thread.remote_id)
            logger.debug(f"Removed unsubscribed thread {thread.remote_id}: {thread.name}")
        return removed

    async def get_updated_threads(self) -> List[ThreadRecord]:
        """
        Threads with an unread update, excluding games already installed,
        ordered by name (case-insensitive).
        """
        threads = await self.thread_store.find(
            {"update_available": True, "marked_as_read": False},
            order_by="name",
        )
        if not threads:
            return []

        installed_ids = {game.remote_id for game in await self.game_store.find()}
        result = [thread for thread in threads if thread.remote_id not in installed_ids]
        return sorted(result, key=lambda thread: thread.name.casefold())

    async def refresh(self, urls: Iterable[str]) -> List[ThreadRecord]:
        """Synchronize with the watch list, then return the threads to show"""
        await self.sync(urls)
        return await self.get_updated_threads()

    async def mark_as_read(self, remote_id: int) -> bool:
        """
        Hide a thread update until its URL changes again.

        Returns:
            False if the thread is not watched
        """
        async with self.locks.hold(EntityKind.THREAD, remote_id):
            existing = await self.thread_store.find({"remote_id": remote_id})
            if not existing:
                logger.warning(f"Cannot mark thread {remote_id} as read: not watched")
                return False

            thread = existing[0]
            if thread.marked_as_read:
                return True
            thread.marked_as_read = True
            await self.thread_store.update(thread)

        logger.info(f"Thread {remote_id} marked as read")
        return True
