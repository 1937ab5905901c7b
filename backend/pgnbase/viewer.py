"""Working copy of one loaded game: moves, comments, navigation and export."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import chess
import chess.pgn

from .board import Board
from .headers import PgnHeaders
from .resolver import OpeningCursor, OpeningResolver
from .sanitizer import clean_comment, sanitize_pgn
from .schemas import LookupResult, OpeningHint
from .splitter import split_games

logger = logging.getLogger(__name__)


class InvalidPgnError(ValueError):
    """Sanitized text was still rejected by the PGN parser."""


@dataclass
class Move:
    san: str
    from_square: str
    to_square: str
    color: str
    fen: str
    promotion: Optional[str] = None
    comment: str = ""


def read_game(text: str) -> Tuple[PgnHeaders, List[Move], Dict[str, str]]:
    """Parse the first game in ``text`` after sanitizing it.

    Returns the headers, the main-line moves and the comments keyed by the
    FEN reached after the move they belong to.
    """
    units = split_games(text)
    if not units:
        raise InvalidPgnError("no game found")
    sanitized = sanitize_pgn(units[0].pgn)
    game = chess.pgn.read_game(io.StringIO(sanitized.text))
    if game is None:
        raise InvalidPgnError("no game found")
    if game.errors:
        raise InvalidPgnError(str(game.errors[0]))

    comments_by_position: Dict[str, str] = {}
    moves: List[Move] = []
    board = game.board()
    for node in game.mainline():
        move = node.move
        san = board.san(move)
        color = "w" if board.turn == chess.WHITE else "b"
        board.push(move)
        fen = board.fen()
        comment = clean_comment(node.comment or "")
        if comment:
            comments_by_position[fen] = comment
        moves.append(
            Move(
                san=san,
                from_square=chess.square_name(move.from_square),
                to_square=chess.square_name(move.to_square),
                color=color,
                fen=fen,
                promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
            )
        )
    for move in moves:
        move.comment = comments_by_position.get(move.fen, "")
    return PgnHeaders.from_lines(sanitized.header_lines), moves, comments_by_position


def _strip_braces(comment: str) -> str:
    comment = comment.strip()
    if comment.startswith("{"):
        comment = comment[1:]
    if comment.endswith("}"):
        comment = comment[:-1]
    return comment.strip()


class GameViewer:
    def __init__(self, resolver: Optional[OpeningResolver] = None) -> None:
        self.cursor = OpeningCursor(resolver) if resolver else None
        self._reset()

    def _reset(self) -> None:
        self.pgn = ""
        self.headers = PgnHeaders()
        self.moves: List[Move] = []
        self.comments_by_position: Dict[str, str] = {}
        self.current_index = -1
        self.loaded = False

    def load_pgn(self, text: str) -> bool:
        try:
            headers, moves, comments = read_game(text)
        except ValueError as exc:
            logger.warning(f"Invalid PGN: {exc}")
            self._reset()
            return False
        self.pgn = text
        self.headers = headers
        self.moves = moves
        self.comments_by_position = comments
        self.current_index = -1
        self.loaded = True
        if self.cursor:
            self.cursor.invalidate()
        return True

    def _start_board(self) -> Board:
        if self.headers.fen:
            try:
                return Board.from_fen(self.headers.fen)
            except ValueError:
                logger.warning("Invalid FEN header, using the standard start position")
        return Board.from_fen()

    @property
    def fen(self) -> str:
        if self.current_index < 0:
            return self._start_board().to_fen()
        return self.moves[self.current_index].fen

    def go_to_move(self, index: int) -> None:
        if -1 <= index < len(self.moves):
            self.current_index = index

    def update_comment(self, comment: str) -> None:
        if self.current_index < 0:
            return
        move = self.moves[self.current_index]
        move.comment = comment
        if comment:
            self.comments_by_position[move.fen] = comment
        else:
            self.comments_by_position.pop(move.fen, None)

    def san_history(self, up_to_index: Optional[int] = None) -> List[str]:
        sans = [move.san for move in self.moves]
        if up_to_index is None:
            return sans
        return sans[: max(up_to_index + 1, 0)]

    def opening_hint(self) -> OpeningHint:
        return OpeningHint(opening=self.headers.opening or "", eco=self.headers.eco or "")

    def current_opening(self) -> Optional[LookupResult]:
        if not self.cursor or not self.loaded:
            return None
        return self.cursor.lookup_for_position(self.san_history(), self.current_index, self.opening_hint())

    def generate_pgn(self) -> str:
        """Rebuild standard PGN (brace comments only) from the working copy."""
        if not self.loaded:
            return ""
        game = chess.pgn.Game.without_tag_roster()
        for key, value in self.headers.as_pgn_dict().items():
            game.headers[key] = value

        board = self._start_board()
        if board.to_fen() != chess.STARTING_FEN:
            game.setup(board.raw.copy())
        else:
            game.headers.pop("FEN", None)
            game.headers.pop("SetUp", None)

        node: chess.pgn.GameNode = game
        for move in self.moves:
            board.apply(move.from_square, move.to_square, move.promotion)
            node = node.add_variation(board.raw.peek())
            comment = _strip_braces(move.comment)
            if comment:
                node.comment = comment

        exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=True, columns=None)
        return game.accept(exporter)
