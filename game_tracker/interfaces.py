"""
Capabilities injected into the sync and ingestion services.

Concrete implementations live in remote_catalog.py (HTTP catalog),
database.py (SQLite stores) and cli.py (console chooser, logging notifier).
"""

from typing import Any, Mapping, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from game_tracker.models import RemoteGameInfo, ChoiceOption, NotificationLevel

RecordT = TypeVar("RecordT")


@runtime_checkable
class RemoteCatalog(Protocol):
    async def fetch_by_url(self, url: str) -> RemoteGameInfo: ...

    async def search_by_name(self, name: str, is_mod: bool) -> list[RemoteGameInfo]: ...


class RecordStore(Protocol[RecordT]):
    """Generic persisted-entity capability (ThreadStore, GameStore)"""

    async def find(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> list[RecordT]: ...

    async def insert(self, record: RecordT) -> RecordT: ...

    async def update(self, record: RecordT) -> None: ...

    async def delete(self, record_id: int) -> None: ...


@runtime_checkable
class Chooser(Protocol):
    async def choose(self, prompt: str, options: Sequence[ChoiceOption]) -> Optional[str]:
        """Return the key of the selected option, or None when cancelled"""
        ...


@runtime_checkable
class Notifier(Protocol):
    def notify(self, level: NotificationLevel, message: str) -> None: ...
