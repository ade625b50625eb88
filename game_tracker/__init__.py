from .version import __version__
from .logger import setup_logger
from .name_parser import (
    parse_directory_name,
    normalize_game_name,
    clean_game_name,
    extract_thread_id,
)
from .deduplicator import GameLibraryDeduplicator, report_duplicates
from .conflict_resolver import ConflictResolver
from .thread_sync import ThreadWatchSynchronizer
from .ingestion import GameIngestionPipeline
from .database import DatabaseManager, ThreadStore, GameStore
from .remote_catalog import HttpRemoteCatalog
from .locks import EntityLockRegistry

__all__ = [
    "__version__",
    "setup_logger",
    "parse_directory_name",
    "normalize_game_name",
    "clean_game_name",
    "extract_thread_id",
    "GameLibraryDeduplicator",
    "report_duplicates",
    "ConflictResolver",
    "ThreadWatchSynchronizer",
    "GameIngestionPipeline",
    "DatabaseManager",
    "ThreadStore",
    "GameStore",
    "HttpRemoteCatalog",
    "EntityLockRegistry",
]
