import pytest

from game_tracker.errors import ParseError
from game_tracker.name_parser import (
    clean_game_name,
    extract_thread_id,
    get_dir_name,
    get_version_from_name,
    normalize_game_name,
    parse_directory_name,
)


class TestDirectoryNameParser:

    def test_full_directory_name(self):
        info = parse_directory_name("/home/user/games/Summer Nights [v.0.9.2] [MOD]")
        assert info.path == "/home/user/games/Summer Nights [v.0.9.2] [MOD]"
        assert info.name == "Summer Nights"
        assert info.version == "0.9.2"
        assert info.mod is True

    def test_plain_name(self):
        info = parse_directory_name("/games/Plain Game")
        assert info.name == "Plain Game"
        assert info.version == "Unknown"
        assert info.mod is False

    def test_version_marker_is_case_insensitive(self):
        assert get_version_from_name("Game [V.1.0b]") == "1.0b"
        assert get_version_from_name("Game [v.Final]") == "Final"

    def test_version_keeps_original_case(self):
        assert get_version_from_name("Game [v.0.5-Beta]") == "0.5-Beta"

    def test_bracket_without_marker_is_not_a_version(self):
        assert get_version_from_name("Game A [v2]") == "Unknown"

    def test_unterminated_version_tag(self):
        assert get_version_from_name("Game [v.1.2") == "1.2"

    def test_mod_tag_is_case_insensitive(self):
        assert parse_directory_name("/games/Game [mod]").mod is True
        assert parse_directory_name("/games/Game modded").mod is False

    def test_special_characters_are_removed(self):
        assert clean_game_name('Who? Me: "The" <Game>*|%') == "Who Me The Game"

    def test_windows_path(self):
        info = parse_directory_name("D:\\Games\\Some Game [v.2]\\")
        assert info.name == "Some Game"
        assert info.version == "2"

    def test_trailing_separator(self):
        assert get_dir_name("/games/Some Game/") == "Some Game"


class TestNameNormalizer:

    @pytest.mark.parametrize("name", [
        "Game A",
        "game a",
        "Game A [v2]",
        "  GAME A [v.1.0] [MOD]  ",
        "Game: A",
    ])
    def test_same_key(self, name):
        assert normalize_game_name(name) == "GAME A"

    def test_different_games(self):
        assert normalize_game_name("Game A") != normalize_game_name("Game B")


class TestThreadIdExtraction:

    @pytest.mark.parametrize("url, expected", [
        ("https://forum.example.com/threads/some-game.123/", 123),
        ("https://forum.example.com/threads/some-game.123", 123),
        ("https://forum.example.com/threads/thread.123-updated", 123),
        ("https://forum.example.com/threads/game-v1.2.4567/", 4567),
        ("https://forum.example.com/threads/some-game.123/page-4", 123),
        ("https://forum.example.com/threads/98765/", 98765),
    ])
    def test_extract(self, url, expected):
        assert extract_thread_id(url) == expected

    @pytest.mark.parametrize("url", [
        "https://forum.example.com/threads/no-id/",
        "https://forum.example.com/",
        "not a url",
        "",
    ])
    def test_no_numeric_segment(self, url):
        with pytest.raises(ParseError):
            extract_thread_id(url)

    @pytest.mark.parametrize("url", [
        "https://forum.example.com/threads/big.99999999999999999999/",
        "https://forum.example.com/threads/9223372036854775808/",
        f"https://forum.example.com/threads/x.{'1' * 5000}/",
    ])
    def test_oversized_id(self, url):
        with pytest.raises(ParseError):
            extract_thread_id(url)

    def test_largest_storable_id(self):
        assert extract_thread_id("https://forum.example.com/threads/t.9223372036854775807/") == 2**63 - 1
        assert extract_thread_id("https://forum.example.com/threads/t.000123/") == 123

    def test_host_digits_are_ignored(self):
        with pytest.raises(ParseError):
            extract_thread_id("https://192.168.1.10/threads/no-id/")
