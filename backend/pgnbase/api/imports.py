"""Import a player's games from Lichess or Chess.com into their library."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from ..importers import ImportSourceError, fetch_chesscom_pgn, fetch_lichess_pgn
from ..schemas import GameImportResponse, PlatformImportRequest
from ..splitter import parse_multi_game_pgn
from ..store import SqlGameStorage, StorageError
from ..worker import enqueue_enrichment
from .auth import get_storage
from .games import storage_http_error

router = APIRouter(prefix="/imports", tags=["imports"])

logger = logging.getLogger(__name__)


async def _import_from(
    source: str,
    fetch: Callable[[str], Awaitable[str]],
    payload: PlatformImportRequest,
    storage: SqlGameStorage,
) -> GameImportResponse:
    try:
        pgn = await fetch(payload.username)
    except ImportSourceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    records = parse_multi_game_pgn(pgn, [*payload.tags, source])
    try:
        ids = await run_in_threadpool(storage.import_games, records)
    except StorageError as exc:
        raise storage_http_error(exc) from exc

    enqueue_enrichment(storage.owner_id, ids)
    logger.info(f"Imported {len(ids)} {source} games for {payload.username}")
    return GameImportResponse(imported=len(ids), ids=ids)


@router.post("/lichess", response_model=GameImportResponse, status_code=status.HTTP_201_CREATED)
async def import_lichess(
    payload: PlatformImportRequest, storage: SqlGameStorage = Depends(get_storage)
) -> GameImportResponse:
    return await _import_from("lichess", fetch_lichess_pgn, payload, storage)


@router.post("/chesscom", response_model=GameImportResponse, status_code=status.HTTP_201_CREATED)
async def import_chesscom(
    payload: PlatformImportRequest, storage: SqlGameStorage = Depends(get_storage)
) -> GameImportResponse:
    return await _import_from("chesscom", fetch_chesscom_pgn, payload, storage)
