import asyncio

import pytest

from game_tracker.cli import ConsoleChooser, create_parser, main, read_watch_list
from game_tracker.conflict_resolver import ConflictResolver
from game_tracker.database import DatabaseManager, GameStore
from game_tracker.models import ChoiceOption, GameRecord

from conftest import game_info


def write_config(tmp_path, db_path):
    config_path = tmp_path / "config.ini"
    config_path.write_text(f"[Database]\npath = {db_path}\n", encoding="utf-8")
    return str(config_path)


class TestParser:

    def test_sync_options(self):
        args = create_parser().parse_args(["sync", "https://a/t.1/", "--isolate-failures"])
        assert args.command == "sync"
        assert args.urls == ["https://a/t.1/"]
        assert args.isolate_failures is True

    def test_isolate_failures_defaults_to_config(self):
        args = create_parser().parse_args(["sync"])
        assert args.isolate_failures is None

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_watch_list_file(self, tmp_path):
        watch_file = tmp_path / "watched.txt"
        watch_file.write_text("# followed\nhttps://a/t.2/\n\n  https://a/t.3/  \n", encoding="utf-8")

        args = create_parser().parse_args(["sync", "https://a/t.1/", "--file", str(watch_file)])
        assert read_watch_list(args) == ["https://a/t.1/", "https://a/t.2/", "https://a/t.3/"]


class TestConsoleChooser:

    OPTIONS = [ChoiceOption(key="76", label="Option 1"), ChoiceOption(key="77", label="Option 2")]

    def test_returns_key_of_selected_option(self):
        chooser = ConsoleChooser(input_func=lambda prompt: "2")
        assert asyncio.run(chooser.choose("Pick one", self.OPTIONS)) == "77"

    def test_empty_answer_cancels(self):
        chooser = ConsoleChooser(input_func=lambda prompt: "")
        assert asyncio.run(chooser.choose("Pick one", self.OPTIONS)) is None

    def test_candidates_are_printed_once(self, capsys):
        candidates = [game_info(76, "Game X", author="First Dev"), game_info(77, "Game X", author="Second Dev")]
        chooser = ConsoleChooser(input_func=lambda prompt: "2")

        selected = asyncio.run(ConflictResolver(chooser).resolve("Game X", candidates))

        out = capsys.readouterr().out
        assert selected.id == 77
        assert out.count("First Dev") == 1
        assert out.count("Second Dev") == 1
        assert "[2] Game X [Second Dev] [1.0]" in out

    def test_asks_again_on_invalid_answer(self):
        answers = iter(["9", "abc", "1"])
        chooser = ConsoleChooser(input_func=lambda prompt: next(answers))
        assert asyncio.run(chooser.choose("Pick one", self.OPTIONS)) == "76"


class TestMain:

    def test_list_library(self, tmp_path, capsys):
        db_path = tmp_path / "library.db"

        async def populate():
            async with DatabaseManager(db_path) as db:
                await GameStore(db).insert(
                    GameRecord(remote_id=42, name="Listed Game", version="1.0", game_directory="/games/Listed Game")
                )

        asyncio.run(populate())

        assert main(["--config", write_config(tmp_path, db_path), "-q", "list"]) == 0
        assert "Listed Game" in capsys.readouterr().out

    def test_mark_read_unknown_thread(self, tmp_path):
        config = write_config(tmp_path, tmp_path / "library.db")
        assert main(["--config", config, "-q", "mark-read", "999"]) == 1

    def test_missing_watch_list_file(self, tmp_path):
        db_path = tmp_path / "library.db"
        config = write_config(tmp_path, db_path)
        missing = tmp_path / "missing.txt"

        assert main(["--config", config, "-q", "sync", "--file", str(missing)]) == 1
        # Nothing was opened before the file was read
        assert not db_path.exists()

    def test_unusable_database(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        config = write_config(tmp_path, blocker / "library.db")
        assert main(["--config", config, "-q", "updates"]) == 3
