"""Filtering, listing and export over a collection of game records."""

from __future__ import annotations

import re
from typing import Iterable, List

from .schemas import GameFilters, GameRecord

_UNSAFE_FILENAME_RE = re.compile(r"[^\w.\-]+")


def filter_games(games: Iterable[GameRecord], filters: GameFilters) -> List[GameRecord]:
    filtered = list(games)

    if filters.search_text:
        needle = filters.search_text.lower()
        filtered = [g for g in filtered if needle in g.white.lower() or needle in g.black.lower()]

    if filters.opening:
        filtered = [g for g in filtered if g.opening == filters.opening]

    # PGN dates ("2024.05.01") compare correctly as strings
    if filters.date_from:
        date_from = filters.date_from.replace("-", ".")
        filtered = [g for g in filtered if g.date >= date_from]
    if filters.date_to:
        date_to = filters.date_to.replace("-", ".")
        filtered = [g for g in filtered if g.date <= date_to]

    if filters.result:
        filtered = [g for g in filtered if g.result == filters.result]

    if filters.tags:
        wanted = set(filters.tags)
        filtered = [g for g in filtered if wanted.intersection(g.tags)]

    return filtered


def unique_openings(games: Iterable[GameRecord]) -> List[str]:
    return sorted({g.opening for g in games if g.opening})


def unique_tags(games: Iterable[GameRecord]) -> List[str]:
    return sorted({tag for g in games for tag in g.tags})


def export_database(games: Iterable[GameRecord]) -> str:
    return "\n\n".join(g.pgn.strip() for g in games) + "\n"


def export_filename(game: GameRecord) -> str:
    stem = f"{game.white}_vs_{game.black}_{game.date}"
    return _UNSAFE_FILENAME_RE.sub("_", stem) + ".pgn"
