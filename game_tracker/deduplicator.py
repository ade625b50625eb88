"""
Duplicate detection for the game library.

Before a remote id is known, games are compared by normalized name; once
the catalog answered, by remote id (see ingestion.py).
"""

from typing import Iterable, List, Sequence, Tuple

from game_tracker.constants import DEFAULT_MAX_ITEMIZED_DUPLICATES
from game_tracker.interfaces import Notifier
from game_tracker.logger import setup_logger
from game_tracker.models import (
    GameRecord,
    RemoteGameInfo,
    MatchKind,
    MatchResult,
    NotificationLevel,
)
from game_tracker.name_parser import clean_game_name, get_dir_name, normalize_game_name

logger = setup_logger()


class GameLibraryDeduplicator:
    """Partition candidate directories and classify catalog results"""

    def partition_unlisted(
        self,
        paths: Iterable[str],
        library: Sequence[GameRecord],
    ) -> Tuple[List[str], List[str]]:
        """
        Split paths into the ones not yet in the library and the display
        names of the ones already there.

        Args:
            paths: Game directories, in selection order
            library: Current GameRecords

        Returns:
            (unlisted paths, duplicate names), both in input order
        """
        listed_names = {normalize_game_name(game.name) for game in library}
        unlisted = []
        duplicates = []

        for path in paths:
            raw_name = get_dir_name(path)
            if normalize_game_name(raw_name) in listed_names:
                duplicates.append(clean_game_name(raw_name))
            else:
                unlisted.append(path)

        if duplicates:
            logger.info(f"{len(duplicates)} selected game(s) already listed: {', '.join(duplicates)}")
        return unlisted, duplicates

    @staticmethod
    def classify_matches(results: Sequence[RemoteGameInfo]) -> MatchResult:
        if not results:
            return MatchResult(kind=MatchKind.ZERO, candidates=[])
        if len(results) == 1:
            return MatchResult(kind=MatchKind.SINGLE, candidates=list(results))
        return MatchResult(kind=MatchKind.MULTIPLE, candidates=list(results))


def report_duplicates(
    duplicates: Sequence[str],
    notifier: Notifier,
    max_itemized: int = DEFAULT_MAX_ITEMIZED_DUPLICATES,
) -> int:
    """
    Tell the user which selected games are already listed.

    Up to max_itemized duplicates get one notice each, more than that get a
    single notice with the count.

    Returns:
        Number of notices sent
    """
    if not duplicates:
        return 0

    if len(duplicates) <= max_itemized:
        for name in duplicates:
            notifier.notify(NotificationLevel.WARNING, f"{name} is already listed")
        return len(duplicates)

    notifier.notify(NotificationLevel.WARNING, f"{len(duplicates)} selected games are already listed")
    return 1
