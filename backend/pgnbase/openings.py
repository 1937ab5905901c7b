"""Opening recognition by longest SAN prefix over a static ECO corpus."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EcoEntry:
    eco: str
    name: str
    moves: Tuple[str, ...]


@dataclass(frozen=True)
class EcoMatch:
    eco: str
    name: str
    depth: int


def prefix_limit(moves: Sequence[str], up_to_index: Optional[int]) -> int:
    """Number of plies a lookup covers: through ``up_to_index`` or the whole list."""
    limit = len(moves) if up_to_index is None else up_to_index + 1
    return max(0, min(limit, len(moves)))


def load_eco_corpus(path: Path) -> List[EcoEntry]:
    with open(path, encoding="utf-8") as handle:
        raw = json.load(handle)
    entries = [EcoEntry(eco=item["eco"], name=item["name"], moves=tuple(item["moves"])) for item in raw]
    # sorted() is stable, so equal-length entries keep their file order
    return sorted(entries, key=lambda entry: -len(entry.moves))


class OpeningIndex:
    def __init__(self, entries: Iterable[EcoEntry]) -> None:
        self._index: Dict[str, Tuple[str, str]] = {}
        for entry in entries:
            key = " ".join(entry.moves)
            if key not in self._index:
                self._index[key] = (entry.eco, entry.name)

    def __len__(self) -> int:
        return len(self._index)

    def lookup(self, moves: Sequence[str], up_to_index: Optional[int] = None) -> Optional[EcoMatch]:
        """Return the entry for the longest known prefix of ``moves``."""
        for length in range(prefix_limit(moves, up_to_index), 0, -1):
            match = self._index.get(" ".join(moves[:length]))
            if match:
                return EcoMatch(eco=match[0], name=match[1], depth=length)
        return None


@lru_cache(maxsize=4)
def get_opening_index(path: Optional[str] = None) -> OpeningIndex:
    corpus_path = Path(path or settings.eco_corpus_path)
    entries = load_eco_corpus(corpus_path)
    index = OpeningIndex(entries)
    logger.info(f"ECO index built from {corpus_path.name}: {len(entries)} entries, {len(index)} unique lines")
    return index
