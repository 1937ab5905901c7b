"""Split multi-game PGN text into per-game units and game records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .headers import PgnHeaders, is_header_line
from .sanitizer import normalize_newlines
from .schemas import DEFAULT_DATE, DEFAULT_EVENT, DEFAULT_PLAYER, DEFAULT_RESULT, GameRecord

MOVE_NUMBER_RE = re.compile(r"(?:^|\s)\d+\.(?!\.)")


@dataclass
class RawGameUnit:
    header_lines: List[str] = field(default_factory=list)
    movetext_lines: List[str] = field(default_factory=list)

    @property
    def movetext(self) -> str:
        return "\n".join(self.movetext_lines).strip()

    @property
    def pgn(self) -> str:
        headers = "\n".join(self.header_lines)
        if not headers:
            return self.movetext
        if not self.movetext:
            return headers
        return f"{headers}\n\n{self.movetext}"

    def is_empty(self) -> bool:
        return not self.header_lines and not self.movetext


def split_games(text: str) -> List[RawGameUnit]:
    """Slice a blob of concatenated games into one unit per game.

    A header line that shows up after movetext has started opens the next
    game. The unit in progress at end of input is always kept, even when it
    only has headers.
    """
    units: List[RawGameUnit] = []
    current = RawGameUnit()
    in_movetext = False

    for line in normalize_newlines(text).lstrip("\ufeff").split("\n"):
        if is_header_line(line):
            if in_movetext:
                if not current.is_empty():
                    units.append(current)
                current = RawGameUnit()
                in_movetext = False
            current.header_lines.append(line.strip())
            continue
        if not line.strip() and not in_movetext:
            if current.header_lines:
                in_movetext = True
            continue
        in_movetext = True
        current.movetext_lines.append(line)

    if not current.is_empty():
        units.append(current)
    return units


def parse_headers(lines: Iterable[str]) -> PgnHeaders:
    return PgnHeaders.from_lines(lines)


def count_moves(movetext: str) -> int:
    """Approximate the move count from ``N.`` move-number tokens.

    Digits followed by a dot inside comments are counted too, so this is only
    good enough for display.
    """
    return len(MOVE_NUMBER_RE.findall(movetext))


def parse_elo(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    value = value.strip()
    return int(value) if value.isdigit() else None


def unit_to_record(unit: RawGameUnit, tags: Optional[List[str]] = None) -> GameRecord:
    headers = parse_headers(unit.header_lines)
    return GameRecord(
        event=headers.event or DEFAULT_EVENT,
        site=headers.site or DEFAULT_EVENT,
        date=headers.date or DEFAULT_DATE,
        white=headers.white or DEFAULT_PLAYER,
        black=headers.black or DEFAULT_PLAYER,
        result=headers.result or DEFAULT_RESULT,
        eco=headers.eco or "",
        opening=headers.opening or "",
        white_elo=parse_elo(headers.white_elo),
        black_elo=parse_elo(headers.black_elo),
        pgn=unit.pgn,
        tags=list(tags or []),
        move_count=count_moves(unit.movetext),
    )


def parse_multi_game_pgn(text: str, tags: Optional[List[str]] = None) -> List[GameRecord]:
    return [unit_to_record(unit, tags) for unit in split_games(text)]
