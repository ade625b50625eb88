"""
Shared fakes and fixtures.

The stores are real SQLite databases in tmp_path; the catalog, chooser and
notifier are in-memory fakes recording how they were called.
"""

import asyncio

import pytest

from game_tracker.database import DatabaseManager, GameStore, ThreadStore
from game_tracker.errors import TransportError
from game_tracker.models import RemoteGameInfo


class FakeCatalog:
    """RemoteCatalog returning canned data; an Exception value is raised instead"""

    def __init__(self, by_url=None, by_name=None):
        self.by_url = dict(by_url or {})
        self.by_name = dict(by_name or {})
        self.url_calls = []
        self.search_calls = []

    async def fetch_by_url(self, url):
        self.url_calls.append(url)
        value = self.by_url.get(url)
        if value is None:
            raise TransportError(f"HTTP 404 from {url}")
        if isinstance(value, Exception):
            raise value
        return value

    async def search_by_name(self, name, is_mod):
        self.search_calls.append((name, is_mod))
        value = self.by_name.get(name, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


class FakeChooser:
    """Chooser answering with a fixed key (None cancels)"""

    def __init__(self, answer=None):
        self.answer = answer
        self.prompts = []

    async def choose(self, prompt, options):
        self.prompts.append((prompt, list(options)))
        return self.answer


class RecordingNotifier:
    def __init__(self):
        self.notices = []

    def notify(self, level, message):
        self.notices.append((level, message))

    def messages(self, level=None):
        return [message for lvl, message in self.notices if level is None or lvl == level]


def game_info(remote_id, name, author="Dev", version="1.0", url=None):
    return RemoteGameInfo(
        id=remote_id,
        name=name,
        author=author,
        version=version,
        url=url or f"https://forum.example.com/threads/{name.lower().replace(' ', '-')}.{remote_id}/",
    )


@pytest.fixture
def run_db(tmp_path):
    """
    Run an async scenario against fresh stores.

    Usage:
        def test_x(run_db):
            async def scenario(threads, games):
                ...
            run_db(scenario)
    """
    db_path = tmp_path / "library.db"

    def runner(scenario):
        async def main():
            async with DatabaseManager(db_path, pool_size=2) as db:
                return await scenario(ThreadStore(db), GameStore(db))

        return asyncio.run(main())

    return runner
