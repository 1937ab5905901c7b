"""Client for the remote, user-curated opening name tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from .openings import prefix_limit
from .schemas import MoveNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeMatch:
    name: str
    depth: int


def traverse(tree: MoveNode, moves: Sequence[str], up_to_index: Optional[int] = None) -> Optional[TreeMatch]:
    """Walk the tree along ``moves`` and return the deepest named node.

    Nodes without both a name and a link are passed through: the walk goes on
    in case a deeper node is named.
    """
    current = tree
    last_named: Optional[TreeMatch] = None
    for depth in range(prefix_limit(moves, up_to_index)):
        child = next((node for node in current.children if node.move == moves[depth]), None)
        if child is None:
            break
        current = child
        if child.is_named:
            last_named = TreeMatch(name=child.name, depth=depth + 1)
    return last_named


class OpeningTreeClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)
        self.tree: Optional[MoveNode] = None
        self.available = False

    def load(self) -> Optional[MoveNode]:
        try:
            response = self._client.get("/moves/slim")
            response.raise_for_status()
            tree = MoveNode.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"Opening tree unavailable: {exc}")
            self.invalidate()
            return None
        self.tree = tree
        self.available = True
        logger.info(f"Opening tree loaded ({len(tree.children)} first moves)")
        return tree

    def invalidate(self) -> None:
        self.tree = None
        self.available = False

    def save_name(self, moves: Sequence[str], name: str) -> Optional[MoveNode]:
        """Store ``name`` for the line ``moves`` and return the refreshed tree."""
        try:
            response = self._client.post("/moves", json={"moves": list(moves), "name": name})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Saving opening name failed: {exc}")
            return None
        if not isinstance(data, dict) or not data.get("success") or not data.get("moves"):
            logger.error(f"Opening tree rejected name update for {' '.join(moves)}")
            return None
        # the write endpoint returns the full tree, not the slim one
        return self.load()

    def close(self) -> None:
        self._client.close()
