"""
Parsing helpers for game directory names and watch URLs.
Pure functions, no I/O.
"""

import re
from functools import lru_cache
from urllib.parse import urlsplit

from game_tracker.constants import (
    VERSION_MARKER,
    MOD_TAG,
    UNKNOWN_VERSION,
    FILESYSTEM_SPECIAL_CHARS,
    MAX_REMOTE_ID,
)
from game_tracker.errors import ParseError
from game_tracker.models import DirInfo

_TAG_PATTERN = re.compile(r"\[(.*?)\]")
# Directories may come from Windows machines
_SEPARATOR_PATTERN = re.compile(r"[\\/]")
_SPECIALS_PATTERN = re.compile("[" + re.escape(FILESYSTEM_SPECIAL_CHARS) + "]")
# "game-name.1234" style thread slugs
_THREAD_ID_PATTERN = re.compile(r"\.([0-9]+)")


def clean_game_name(name: str) -> str:
    """Remove every [tag] group and filesystem-special character, then trim"""
    without_tags = _TAG_PATTERN.sub("", name)
    return _SPECIALS_PATTERN.sub("", without_tags).strip()


@lru_cache(maxsize=1024)
def normalize_game_name(name: str) -> str:
    """
    Canonical key used for duplicate detection.

    Two names with the same key are the same game as far as the library is
    concerned, e.g. "Game A" and "game a [v.2]".
    """
    return clean_game_name(name).upper()


def get_version_from_name(name: str) -> str:
    """
    Extract the version from a [v.version] tag, if any.

    >>> get_version_from_name("Game [v.1.2.3]")
    '1.2.3'
    """
    start = name.upper().find(VERSION_MARKER)
    if start == -1:
        return UNKNOWN_VERSION

    start += len(VERSION_MARKER)
    end = name.find("]", start)
    if end == -1:
        end = len(name)
    return name[start:end]


def is_mod_name(name: str) -> bool:
    return MOD_TAG in name.upper()


def get_dir_name(path) -> str:
    """Last component of a directory path, trailing separators ignored"""
    stripped = str(path).rstrip("/\\")
    return _SEPARATOR_PATTERN.split(stripped)[-1] or str(path)


def parse_directory_name(path) -> DirInfo:
    """Build the DirInfo of a game directory from its raw name"""
    raw_name = get_dir_name(path)
    return DirInfo(
        path=str(path),
        name=clean_game_name(raw_name),
        version=get_version_from_name(raw_name),
        mod=is_mod_name(raw_name),
    )


def extract_thread_id(url: str) -> int:
    """
    Get the numeric thread id from a watch URL.

    The id is the trailing numeric part of the last path segment carrying
    one, either "name.123" or a bare "123".
    Raises ParseError when the URL has no such segment, or when the id
    does not fit a stored remote id.
    """
    path = urlsplit(url).path
    for segment in reversed([s for s in path.split("/") if s]):
        if segment.isascii() and segment.isdigit():
            return _to_remote_id(segment, url)
        matches = _THREAD_ID_PATTERN.findall(segment)
        if matches:
            return _to_remote_id(matches[-1], url)
    raise ParseError(url)


def _to_remote_id(digits: str, url: str) -> int:
    # Length check first: int() refuses very long digit strings
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(MAX_REMOTE_ID)) or int(digits) > MAX_REMOTE_ID:
        raise ParseError(url)
    return int(digits)
