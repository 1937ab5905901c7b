"""Stateless PGN text utilities."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Request

from ..resolver import OpeningResolver
from ..sanitizer import sanitize_pgn
from ..schemas import GameRecord, MoveOut, ParsedGameResponse, PgnTextRequest, SanitizeResponse
from ..splitter import parse_multi_game_pgn
from ..viewer import GameViewer

router = APIRouter(prefix="/pgn", tags=["pgn"])


@router.post("/sanitize", response_model=SanitizeResponse)
def sanitize(payload: PgnTextRequest) -> SanitizeResponse:
    result = sanitize_pgn(payload.pgn)
    return SanitizeResponse(pgn=result.text, comments=result.comments)


@router.post("/split", response_model=List[GameRecord])
def split(payload: PgnTextRequest) -> List[GameRecord]:
    return parse_multi_game_pgn(payload.pgn)


@router.post("/parse", response_model=ParsedGameResponse)
def parse(payload: PgnTextRequest, request: Request) -> ParsedGameResponse:
    resolver: OpeningResolver = request.app.state.resolver
    viewer = GameViewer(resolver)
    if not viewer.load_pgn(payload.pgn):
        raise HTTPException(status_code=422, detail="Invalid PGN")

    moves = [
        MoveOut(
            ply=ply,
            san=move.san,
            from_square=move.from_square,
            to_square=move.to_square,
            promotion=move.promotion,
            color=move.color,
            comment=move.comment,
            fen=move.fen,
        )
        for ply, move in enumerate(viewer.moves, start=1)
    ]
    return ParsedGameResponse(
        headers=viewer.headers.as_pgn_dict(),
        moves=moves,
        pgn=viewer.generate_pgn(),
        opening=resolver.lookup_for_game(viewer.san_history(), viewer.opening_hint()),
    )
