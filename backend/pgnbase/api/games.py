"""Game library endpoints: CRUD, bulk PGN import, filtering and export."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from ..library import export_database, export_filename, filter_games, unique_openings, unique_tags
from ..schemas import (
    GameFilters,
    GameImportRequest,
    GameImportResponse,
    GameRecord,
    PgnImportRequest,
    StorageInfo,
)
from ..splitter import parse_multi_game_pgn
from ..store import SqlGameStorage, StorageError, StorageLimitExceeded
from ..worker import enqueue_enrichment
from .auth import get_storage

router = APIRouter(prefix="/pgn", tags=["games"])

logger = logging.getLogger(__name__)


def storage_http_error(exc: StorageError) -> HTTPException:
    if isinstance(exc, StorageLimitExceeded):
        return HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={"message": str(exc), "used_bytes": exc.used_bytes, "max_bytes": exc.max_bytes},
        )
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def _all_games(storage: SqlGameStorage) -> List[GameRecord]:
    try:
        return storage.get_all_games()
    except StorageError as exc:
        raise storage_http_error(exc) from exc


def _import(storage: SqlGameStorage, records: List[GameRecord]) -> GameImportResponse:
    try:
        ids = storage.import_games(records)
    except StorageError as exc:
        raise storage_http_error(exc) from exc
    return GameImportResponse(imported=len(ids), ids=ids)


@router.get("/games", response_model=List[GameRecord])
def list_games(
    search_text: str = "",
    opening: str = "",
    date_from: str = "",
    date_to: str = "",
    result: str = "",
    tags: List[str] = Query(default=[]),
    storage: SqlGameStorage = Depends(get_storage),
) -> List[GameRecord]:
    filters = GameFilters(
        search_text=search_text,
        opening=opening,
        date_from=date_from,
        date_to=date_to,
        result=result,
        tags=tags,
    )
    return filter_games(_all_games(storage), filters)


@router.get("/games/openings", response_model=List[str])
def list_openings(storage: SqlGameStorage = Depends(get_storage)) -> List[str]:
    return unique_openings(_all_games(storage))


@router.get("/games/tags", response_model=List[str])
def list_tags(storage: SqlGameStorage = Depends(get_storage)) -> List[str]:
    return unique_tags(_all_games(storage))


@router.get("/games/export", response_class=PlainTextResponse)
def export_games(storage: SqlGameStorage = Depends(get_storage)) -> PlainTextResponse:
    games = _all_games(storage)
    if not games:
        raise HTTPException(status_code=404, detail="No games to export")
    return PlainTextResponse(
        export_database(games),
        media_type="application/x-chess-pgn",
        headers={"Content-Disposition": 'attachment; filename="database.pgn"'},
    )


@router.post("/games/import", response_model=GameImportResponse, status_code=status.HTTP_201_CREATED)
def import_games(payload: GameImportRequest, storage: SqlGameStorage = Depends(get_storage)) -> GameImportResponse:
    return _import(storage, payload.games)


@router.post("/games/import-pgn", response_model=GameImportResponse, status_code=status.HTTP_201_CREATED)
def import_pgn(payload: PgnImportRequest, storage: SqlGameStorage = Depends(get_storage)) -> GameImportResponse:
    records = parse_multi_game_pgn(payload.pgn, payload.tags)
    if not records:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No games found in PGN")
    response = _import(storage, records)
    enqueue_enrichment(storage.owner_id, response.ids)
    logger.info(f"Queued opening classification for {response.imported} imported games")
    return response


@router.get("/games/{game_id}", response_model=GameRecord)
def get_game(game_id: int, storage: SqlGameStorage = Depends(get_storage)) -> GameRecord:
    try:
        return storage.get_game(game_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Game not found") from None
    except StorageError as exc:
        raise storage_http_error(exc) from exc


@router.get("/games/{game_id}/pgn", response_class=PlainTextResponse)
def download_game(game_id: int, storage: SqlGameStorage = Depends(get_storage)) -> PlainTextResponse:
    try:
        game = storage.get_game(game_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Game not found") from None
    except StorageError as exc:
        raise storage_http_error(exc) from exc
    return PlainTextResponse(
        game.pgn,
        media_type="application/x-chess-pgn",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(game)}"'},
    )


@router.post("/games", response_model=GameRecord, status_code=status.HTTP_201_CREATED)
def create_game(payload: GameRecord, storage: SqlGameStorage = Depends(get_storage)) -> GameRecord:
    try:
        game_id = storage.save_game(payload)
        return storage.get_game(game_id)
    except StorageError as exc:
        raise storage_http_error(exc) from exc


@router.put("/games/{game_id}", response_model=GameRecord)
def update_game(game_id: int, payload: GameRecord, storage: SqlGameStorage = Depends(get_storage)) -> GameRecord:
    try:
        return storage.update_game(payload.model_copy(update={"id": game_id}))
    except KeyError:
        raise HTTPException(status_code=404, detail="Game not found") from None
    except StorageError as exc:
        raise storage_http_error(exc) from exc


@router.delete("/games/{game_id}")
def delete_game(game_id: int, storage: SqlGameStorage = Depends(get_storage)) -> dict[str, int]:
    try:
        storage.delete_game(game_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Game not found") from None
    except StorageError as exc:
        raise storage_http_error(exc) from exc
    return {"deleted": 1}


@router.delete("/games")
def clear_games(storage: SqlGameStorage = Depends(get_storage)) -> dict[str, int]:
    try:
        return {"deleted": storage.clear_database()}
    except StorageError as exc:
        raise storage_http_error(exc) from exc


@router.get("/user/storage", response_model=StorageInfo)
def storage_usage(storage: SqlGameStorage = Depends(get_storage)) -> StorageInfo:
    try:
        return storage.storage_info()
    except StorageError as exc:
        raise storage_http_error(exc) from exc
