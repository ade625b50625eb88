"""
Exception hierarchy for Game Tracker.

Only StoreUnavailableError is meant to reach the caller of a whole sync pass
or ingestion batch; everything else is handled per item.
"""


class GameTrackerError(Exception):
    """Base class for all Game Tracker errors"""


class ParseError(GameTrackerError):
    """A watch URL has no extractable numeric thread id"""

    def __init__(self, url: str):
        super().__init__(f"Cannot find ID for {url}")
        self.url = url


class NotFoundError(GameTrackerError):
    """The remote catalog returned no match for a name or URL"""

    def __init__(self, query: str):
        super().__init__(f"No results found for {query}")
        self.query = query


class AlreadyListedError(GameTrackerError):
    """The game is already part of the local library"""

    def __init__(self, name: str, remote_id: int | None = None):
        super().__init__(f"{name} is already listed")
        self.name = name
        self.remote_id = remote_id


class TransportError(GameTrackerError):
    """A remote fetch failed (HTTP status, timeout, undecodable payload)"""


class StoreError(GameTrackerError):
    """A single store operation failed"""


class StoreUnavailableError(StoreError):
    """The store itself cannot be used; fatal for the whole operation"""
