"""
HTTP client for the remote game catalog.

Endpoints (JSON):
    GET {base_url}/game?url=<thread url>          -> RemoteGameInfo
    GET {base_url}/search?name=<name>&mod=<0|1>   -> [RemoteGameInfo, ...]
"""

import asyncio
from typing import List, Optional

import aiohttp
import msgspec

from game_tracker.constants import DEFAULT_CATALOG_TIMEOUT
from game_tracker.errors import TransportError
from game_tracker.logger import setup_logger
from game_tracker.models import RemoteGameInfo

logger = setup_logger()

# msgspec decoders for better performance
_game_decoder = msgspec.json.Decoder(RemoteGameInfo)
_search_decoder = msgspec.json.Decoder(List[RemoteGameInfo])


class HttpRemoteCatalog:
    """
    RemoteCatalog over HTTP.

    Every failure (status, timeout, connection, payload) is raised as
    TransportError; callers decide whether it aborts their operation.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_CATALOG_TIMEOUT,
                 session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self):
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _get(self, endpoint: str, params: dict) -> bytes:
        url = f"{self.base_url}/{endpoint}"
        try:
            async with self._get_session().get(url, params=params, timeout=self.timeout) as response:
                if response.status != 200:
                    logger.warning(f"Catalog request {endpoint} failed: HTTP {response.status}")
                    raise TransportError(f"HTTP {response.status} from {url}")
                return await response.read()
        except asyncio.TimeoutError as e:
            logger.warning(f"Timeout querying catalog {endpoint}")
            raise TransportError(f"Timeout querying {url}") from e
        except aiohttp.ClientError as e:
            logger.warning(f"Network error querying catalog {endpoint}: {e}")
            raise TransportError(f"Network error querying {url}: {e}") from e

    async def fetch_by_url(self, url: str) -> RemoteGameInfo:
        """Full game data of the thread at url"""
        content = await self._get("game", {"url": url})
        try:
            return _game_decoder.decode(content)
        except msgspec.DecodeError as e:
            raise TransportError(f"Invalid game payload for {url}: {e}") from e

    async def search_by_name(self, name: str, is_mod: bool) -> List[RemoteGameInfo]:
        """Games whose name matches, in the order the catalog ranks them"""
        content = await self._get("search", {"name": name, "mod": "1" if is_mod else "0"})
        try:
            results = _search_decoder.decode(content)
        except msgspec.DecodeError as e:
            raise TransportError(f"Invalid search payload for '{name}': {e}") from e
        logger.debug(f"Catalog search '{name}' (mod={is_mod}): {len(results)} result(s)")
        return results
