"""Pydantic schemas for the PGN database API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

GameResult = Literal["1-0", "0-1", "1/2-1/2", "*"]
LookupSource = Literal["tree", "eco", "pgn-header"]

DEFAULT_PLAYER = "Unknown"
DEFAULT_EVENT = "Unknown"
DEFAULT_DATE = "????.??.??"
DEFAULT_RESULT = "*"


class GameRecord(BaseModel):
    id: Optional[int] = None
    event: str = DEFAULT_EVENT
    site: str = DEFAULT_EVENT
    date: str = DEFAULT_DATE
    white: str = DEFAULT_PLAYER
    black: str = DEFAULT_PLAYER
    result: str = DEFAULT_RESULT
    eco: str = ""
    opening: str = ""
    white_elo: Optional[int] = None
    black_elo: Optional[int] = None
    pgn: str = Field(..., min_length=1)
    tags: list[str] = []
    notes: str = ""
    move_count: int = Field(0, ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        unique: list[str] = []
        for tag in value:
            tag = tag.strip()
            if not tag or tag in seen:
                continue
            seen.add(tag)
            unique.append(tag)
        return unique


class GameImportRequest(BaseModel):
    games: list[GameRecord] = Field(..., min_length=1)


class PgnImportRequest(BaseModel):
    pgn: str
    tags: list[str] = []


class GameImportResponse(BaseModel):
    imported: int
    ids: list[int]


class StorageInfo(BaseModel):
    used_bytes: int
    max_bytes: Optional[int] = None
    percentage: int = 0


class GameFilters(BaseModel):
    search_text: str = ""
    opening: str = ""
    date_from: str = ""
    date_to: str = ""
    result: str = ""
    tags: list[str] = []


class OpeningHint(BaseModel):
    """Opening data carried by the PGN headers of a game."""

    opening: str = ""
    eco: str = ""


class LookupResult(BaseModel):
    name: str
    eco: str = ""
    source: LookupSource

    @property
    def editable(self) -> bool:
        # Only the opening tree is writably backed.
        return self.source == "tree"


class MoveNode(BaseModel):
    move: str = ""
    name: Optional[str] = None
    link: Optional[str] = None
    children: list[MoveNode] = []

    @property
    def is_named(self) -> bool:
        return bool(self.name) and bool(self.link)


class LookupRequest(BaseModel):
    moves: list[str] = []
    up_to_index: Optional[int] = Field(None, ge=-1)
    hint: Optional[OpeningHint] = None


class LookupResponse(BaseModel):
    result: Optional[LookupResult] = None
    editable: bool = False


class SaveNameRequest(BaseModel):
    moves: list[str] = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class OpeningStatusResponse(BaseModel):
    tree_available: bool
    eco_positions: int
    generation: int


class PgnTextRequest(BaseModel):
    pgn: str


class SanitizeResponse(BaseModel):
    pgn: str
    comments: list[str]


class MoveOut(BaseModel):
    ply: int
    san: str
    from_square: str
    to_square: str
    promotion: Optional[str] = None
    color: Literal["w", "b"]
    comment: str = ""
    fen: str


class ParsedGameResponse(BaseModel):
    headers: dict[str, str]
    moves: list[MoveOut]
    pgn: str
    opening: Optional[LookupResult] = None


class PlatformImportRequest(BaseModel):
    username: str = Field(..., min_length=1)
    tags: list[str] = []


class EnrichmentResponse(BaseModel):
    queued: bool
    owner_id: str


class AuthFeatureResponse(BaseModel):
    enabled: bool
