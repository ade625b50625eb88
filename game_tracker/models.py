"""
msgspec-based data models for type-safe, high-performance serialization.
All records that cross the persistence or network boundary are msgspec.Struct
definitions, so unexpected shapes are rejected where they enter the app.

This module provides:
- Custom datetime encoder/decoder hooks for msgspec
- Persisted records (ThreadRecord, GameRecord)
- Remote catalog payloads (RemoteGameInfo)
- Result structures returned by the sync and ingestion services
"""

import msgspec
from datetime import datetime
from enum import StrEnum
from typing import Optional, List, Dict


# =============================================================================
# Custom Encoder/Decoder Hooks
# =============================================================================

def datetime_enc_hook(obj):
    """
    Custom encoder hook for datetime objects.
    Converts datetime to ISO 8601 string format.
    """
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise NotImplementedError(f"Cannot encode {type(obj)}")


def datetime_dec_hook(type, obj):
    """
    Custom decoder hook for datetime objects.
    Converts ISO 8601 string back to datetime.
    """
    if type is datetime:
        return datetime.fromisoformat(obj)
    raise NotImplementedError(f"Cannot decode {type}")


# =============================================================================
# Global Encoders/Decoders
# =============================================================================

json_encoder = msgspec.json.Encoder(enc_hook=datetime_enc_hook)
tags_decoder = msgspec.json.Decoder(List[str])


def encode_json(obj) -> bytes:
    """
    Encode object to JSON bytes using msgspec.

    Args:
        obj: Any msgspec.Struct or serializable object

    Returns:
        JSON as bytes
    """
    return json_encoder.encode(obj)


def decode_tags(data: bytes) -> List[str]:
    """
    Decode a stored tag list.

    Raises msgspec.ValidationError when data is not a JSON list of strings.
    """
    return tags_decoder.decode(data)


def convert_record(obj, type):
    """
    Validate a dict (or a Struct of another shape) against a record type.

    Raises msgspec.ValidationError when the shape does not match.
    """
    if isinstance(obj, type):
        obj = msgspec.structs.asdict(obj)
    return msgspec.convert(obj, type, dec_hook=datetime_dec_hook)


# =============================================================================
# Remote Catalog Structures
# =============================================================================

class RemoteGameInfo(msgspec.Struct):
    """
    Game metadata returned by the remote catalog.

    Only id and name are mandatory; unknown fields in the payload are ignored.
    """
    id: int
    name: str
    author: str = ""
    version: str = ""
    url: str = ""
    is_mod: bool = False
    overview: str = ""
    tags: List[str] = msgspec.field(default_factory=list)


# =============================================================================
# Database Models
# =============================================================================

class ThreadRecord(msgspec.Struct):
    """
    Watched remote thread.

    remote_id comes from the watch URL; internal_id is assigned by the store
    and never changes once the record exists.
    """
    remote_id: int
    url: str
    name: str
    author: str = ""
    version: str = ""
    update_available: bool = False
    marked_as_read: bool = False
    internal_id: Optional[int] = None
    last_synced: datetime = msgspec.field(default_factory=datetime.now)

    def __post_init__(self):
        if self.remote_id < 0:
            raise ValueError(f"remote_id must be non-negative, got {self.remote_id}")

    @classmethod
    def from_remote(cls, remote_id: int, url: str, info: RemoteGameInfo) -> "ThreadRecord":
        # The watch URL is stored verbatim, it is the change signal for the next pass
        return cls(
            remote_id=remote_id,
            url=url,
            name=info.name,
            author=info.author,
            version=info.version,
        )


class GameRecord(msgspec.Struct):
    """
    Game installed in the local library.

    version/game_directory/mod describe the local copy, the remaining fields
    are the remote metadata captured when the game was added.
    """
    remote_id: int
    name: str
    version: str
    game_directory: str
    mod: bool = False
    author: str = ""
    url: str = ""
    remote_version: str = ""
    overview: str = ""
    tags: List[str] = msgspec.field(default_factory=list)
    id: Optional[int] = None
    created_at: datetime = msgspec.field(default_factory=datetime.now)

    def __post_init__(self):
        if self.remote_id < 0:
            raise ValueError(f"remote_id must be non-negative, got {self.remote_id}")

    @classmethod
    def from_remote(cls, info: RemoteGameInfo, dir_info: "DirInfo") -> "GameRecord":
        """Merge remote metadata with the local directory information"""
        return cls(
            remote_id=info.id,
            name=info.name,
            version=dir_info.version,
            game_directory=dir_info.path,
            mod=dir_info.mod,
            author=info.author,
            url=info.url,
            remote_version=info.version,
            overview=info.overview,
            tags=list(info.tags),
        )


# =============================================================================
# Local Structures (never persisted)
# =============================================================================

class DirInfo(msgspec.Struct, frozen=True):
    """Information parsed from a game directory name"""
    path: str
    name: str
    version: str
    mod: bool


class ChoiceOption(msgspec.Struct, frozen=True):
    """One entry offered to a Chooser; key is returned on selection"""
    key: str
    label: str


class NotificationLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class MatchKind(StrEnum):
    ZERO = "zero"
    SINGLE = "single"
    MULTIPLE = "multiple"


class MatchResult(msgspec.Struct):
    """Classification of a remote lookup"""
    kind: MatchKind
    candidates: List[RemoteGameInfo]

    @property
    def selected(self) -> Optional[RemoteGameInfo]:
        """The only candidate of a SINGLE match, None otherwise"""
        if self.kind == MatchKind.SINGLE:
            return self.candidates[0]
        return None


# =============================================================================
# Service Results
# =============================================================================

class IngestionOutcome(StrEnum):
    INSERTED = "inserted"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    ALREADY_LISTED = "already_listed"
    FAILED = "failed"


class IngestionResult(msgspec.Struct):
    """
    Terminal state of one directory or URL going through ingestion.

    source is the directory path (or URL for the URL flow), name the best
    name known when the item stopped.
    """
    source: str
    outcome: IngestionOutcome
    name: str = ""
    game: Optional[GameRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == IngestionOutcome.INSERTED


class BatchReport(msgspec.Struct):
    """Results of an ingestion batch, in input order"""
    results: List[IngestionResult] = msgspec.field(default_factory=list)

    def add(self, result: IngestionResult):
        self.results.append(result)

    def by_outcome(self, outcome: IngestionOutcome) -> List[IngestionResult]:
        return [r for r in self.results if r.outcome == outcome]

    @property
    def inserted(self) -> List[GameRecord]:
        return [r.game for r in self.results if r.outcome == IngestionOutcome.INSERTED]

    @property
    def failed(self) -> List[IngestionResult]:
        return self.by_outcome(IngestionOutcome.FAILED)

    def counts(self) -> Dict[str, int]:
        counts = {outcome.value: 0 for outcome in IngestionOutcome}
        for result in self.results:
            counts[result.outcome.value] += 1
        return counts


class SyncReport(msgspec.Struct):
    """
    Summary of one watch-list synchronization pass.

    Ids are remote ids. failed is only populated when failures are isolated
    per thread.
    """
    inserted: List[int] = msgspec.field(default_factory=list)
    updated: List[int] = msgspec.field(default_factory=list)
    unchanged: List[int] = msgspec.field(default_factory=list)
    removed: List[int] = msgspec.field(default_factory=list)
    skipped_urls: List[str] = msgspec.field(default_factory=list)
    failed: Dict[int, str] = msgspec.field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.updated or self.removed)
