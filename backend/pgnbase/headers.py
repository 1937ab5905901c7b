"""Typed PGN header tags."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

HEADER_LINE_RE = re.compile(r'^\s*\[\s*[A-Za-z0-9_]+\s+".*"\s*\]\s*$')
HEADER_TAG_RE = re.compile(r'\[\s*([A-Za-z0-9_]+)\s+"((?:[^"\\]|\\.)*)"\s*\]')

# attribute name -> PGN tag name, in export order
KNOWN_TAGS: Dict[str, str] = {
    "event": "Event",
    "site": "Site",
    "date": "Date",
    "round": "Round",
    "white": "White",
    "black": "Black",
    "result": "Result",
    "white_elo": "WhiteElo",
    "black_elo": "BlackElo",
    "eco": "ECO",
    "opening": "Opening",
    "time_control": "TimeControl",
    "termination": "Termination",
    "setup": "SetUp",
    "fen": "FEN",
}
_ATTR_BY_TAG = {tag: attr for attr, tag in KNOWN_TAGS.items()}


def is_header_line(line: str) -> bool:
    return bool(HEADER_LINE_RE.match(line))


def _unescape(value: str) -> str:
    return value.replace('\\"', '"').replace("\\\\", "\\")


@dataclass
class PgnHeaders:
    event: Optional[str] = None
    site: Optional[str] = None
    date: Optional[str] = None
    round: Optional[str] = None
    white: Optional[str] = None
    black: Optional[str] = None
    result: Optional[str] = None
    white_elo: Optional[str] = None
    black_elo: Optional[str] = None
    eco: Optional[str] = None
    opening: Optional[str] = None
    time_control: Optional[str] = None
    termination: Optional[str] = None
    setup: Optional[str] = None
    fen: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "PgnHeaders":
        headers = cls()
        for line in lines:
            for key, raw_value in HEADER_TAG_RE.findall(line):
                headers.set(key, _unescape(raw_value))
        return headers

    @classmethod
    def from_mapping(cls, mapping: Dict[str, str]) -> "PgnHeaders":
        headers = cls()
        for key, value in mapping.items():
            headers.set(key, value)
        return headers

    def set(self, tag: str, value: str) -> None:
        attr = _ATTR_BY_TAG.get(tag)
        if attr:
            setattr(self, attr, value)
        else:
            self.extra[tag] = value

    def get(self, tag: str) -> Optional[str]:
        attr = _ATTR_BY_TAG.get(tag)
        if attr:
            return getattr(self, attr)
        return self.extra.get(tag)

    def as_pgn_dict(self) -> Dict[str, str]:
        """Return present tags keyed by their PGN names, known tags first."""
        result: Dict[str, str] = {}
        for attr, tag in KNOWN_TAGS.items():
            value = getattr(self, attr)
            if value is not None:
                result[tag] = value
        result.update(self.extra)
        return result
