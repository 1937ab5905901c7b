"""Wrapper around python-chess for move replay and FEN tracking."""

from __future__ import annotations

from typing import Optional

import chess


class Board:
    def __init__(self, inner: chess.Board) -> None:
        self._board = inner

    @classmethod
    def from_fen(cls, fen: Optional[str] = None) -> "Board":
        return cls(chess.Board(fen) if fen else chess.Board())

    def to_fen(self) -> str:
        return self._board.fen()

    def apply(self, from_square: str, to_square: str, promotion: Optional[str] = None) -> str:
        """Play a move given by squares and return its SAN."""
        uci = f"{from_square}{to_square}{(promotion or '').lower()}"
        move = chess.Move.from_uci(uci)
        if move not in self._board.legal_moves:
            raise ValueError(f"Illegal move: {uci}")
        san = self._board.san(move)
        self._board.push(move)
        return san

    @property
    def raw(self) -> chess.Board:
        return self._board
