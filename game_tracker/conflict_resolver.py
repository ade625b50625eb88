from typing import List, Optional, Sequence

from game_tracker.interfaces import Chooser
from game_tracker.logger import setup_logger
from game_tracker.models import RemoteGameInfo, ChoiceOption

logger = setup_logger()


class ConflictResolver:
    """
    Ask the user which catalog entry a directory is, when several share its name.

    Candidates are shown in the order the catalog returned them. The resolver
    never picks one by itself: no answer means no game.
    """

    def __init__(self, chooser: Chooser):
        self.chooser = chooser

    @staticmethod
    def build_prompt(candidate_name: str) -> str:
        return f"Multiple games found for {candidate_name}, select one:"

    @staticmethod
    def build_options(candidates: Sequence[RemoteGameInfo]) -> List[ChoiceOption]:
        """One option per candidate, the chooser renders the labels"""
        return [
            ChoiceOption(key=str(game.id), label=f"{game.name} [{game.author}] [{game.version}]")
            for game in candidates
        ]

    async def resolve(self, candidate_name: str, candidates: Sequence[RemoteGameInfo]) -> Optional[RemoteGameInfo]:
        if not candidates:
            return None

        selection = await self.chooser.choose(self.build_prompt(candidate_name), self.build_options(candidates))
        if selection is None:
            logger.info(f"No game selected for {candidate_name}")
            return None

        for game in candidates:
            if str(game.id) == str(selection):
                logger.info(f"Selected {game.name} (id {game.id}) for {candidate_name}")
                return game

        logger.warning(f"Selection '{selection}' for {candidate_name} matches no candidate, ignoring")
        return None
