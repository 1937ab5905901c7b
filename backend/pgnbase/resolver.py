"""Layered opening lookup: opening tree, then ECO index, then PGN headers."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from .config import settings
from .opening_tree import OpeningTreeClient, traverse
from .openings import OpeningIndex, get_opening_index, prefix_limit
from .schemas import LookupResult, MoveNode, OpeningHint

logger = logging.getLogger(__name__)


class OpeningResolver:
    """Owns the opening tree cache and answers opening lookups.

    ``generation`` changes whenever the cached tree is replaced or dropped, so
    callers that memoize lookups can tell their results went stale.
    """

    def __init__(self, index: OpeningIndex, tree_client: Optional[OpeningTreeClient] = None) -> None:
        self.index = index
        self.tree_client = tree_client
        self.generation = 0

    @property
    def tree(self) -> Optional[MoveNode]:
        return self.tree_client.tree if self.tree_client else None

    @property
    def tree_available(self) -> bool:
        return bool(self.tree_client and self.tree_client.available)

    def load_tree(self) -> bool:
        if not self.tree_client:
            return False
        self.tree_client.load()
        self.generation += 1
        return self.tree_client.available

    def invalidate(self) -> None:
        if self.tree_client:
            self.tree_client.invalidate()
        self.generation += 1

    def lookup(
        self,
        moves: Sequence[str],
        up_to_index: Optional[int] = None,
        hint: Optional[OpeningHint] = None,
    ) -> Optional[LookupResult]:
        tree = self.tree
        if tree is not None:
            tree_match = traverse(tree, moves, up_to_index)
            if tree_match:
                # tree nodes carry no ECO code of their own
                eco_match = self.index.lookup(moves, up_to_index)
                return LookupResult(name=tree_match.name, eco=eco_match.eco if eco_match else "", source="tree")

        eco_match = self.index.lookup(moves, up_to_index)
        if eco_match:
            return LookupResult(name=eco_match.name, eco=eco_match.eco, source="eco")

        if hint and hint.opening:
            return LookupResult(name=hint.opening, eco=hint.eco, source="pgn-header")
        return None

    def lookup_for_game(self, moves: Sequence[str], hint: Optional[OpeningHint] = None) -> Optional[LookupResult]:
        return self.lookup(moves, None, hint)

    def save_name(self, moves: Sequence[str], name: str) -> bool:
        if not self.tree_client:
            return False
        updated = self.tree_client.save_name(moves, name)
        self.generation += 1
        if updated is None:
            return False
        logger.info(f"Opening name saved for {' '.join(moves)}: {name}")
        return True


class OpeningCursor:
    """Skips repeated lookups while a viewer steps back and forth in a game."""

    def __init__(self, resolver: OpeningResolver) -> None:
        self.resolver = resolver
        self._key: Optional[Tuple] = None
        self._result: Optional[LookupResult] = None

    @property
    def current(self) -> Optional[LookupResult]:
        return self._result

    def lookup_for_position(
        self,
        moves: Sequence[str],
        move_index: int,
        hint: Optional[OpeningHint] = None,
    ) -> Optional[LookupResult]:
        key = (
            tuple(moves[: prefix_limit(moves, move_index)]),
            hint.opening if hint else "",
            hint.eco if hint else "",
            self.resolver.generation,
        )
        if key == self._key:
            return self._result
        self._key = key
        self._result = self.resolver.lookup(moves, move_index, hint)
        return self._result

    def invalidate(self) -> None:
        self._key = None
        self._result = None


def build_resolver() -> OpeningResolver:
    tree_client = None
    if settings.opening_tree_url:
        tree_client = OpeningTreeClient(settings.opening_tree_url, timeout=settings.opening_tree_timeout)
    return OpeningResolver(get_opening_index(), tree_client)
