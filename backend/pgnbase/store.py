"""Game storage backends: SQLAlchemy rows locally or per owner, HTTP for the remote API."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

import httpx
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal
from .models import GameModel
from .schemas import GameImportResponse, GameRecord, StorageInfo

logger = logging.getLogger(__name__)

LOCAL_OWNER = "local"
_RECORD_ONLY_FIELDS = {"id", "created_at", "updated_at"}


class StorageError(RuntimeError):
    """A storage operation failed and stored state was left unchanged."""


class StorageLimitExceeded(StorageError):
    def __init__(self, used_bytes: int, max_bytes: int) -> None:
        super().__init__(f"Storage limit reached ({used_bytes} of {max_bytes} bytes used)")
        self.used_bytes = used_bytes
        self.max_bytes = max_bytes


class GameStorage(ABC):
    """Uniform collection of game records, wherever they live.

    Lookups of unknown ids raise ``KeyError``; backend failures raise
    ``StorageError``.
    """

    @abstractmethod
    def get_all_games(self) -> List[GameRecord]:
        ...

    @abstractmethod
    def get_game(self, game_id: int) -> GameRecord:
        ...

    @abstractmethod
    def save_game(self, record: GameRecord) -> int:
        ...

    @abstractmethod
    def update_game(self, record: GameRecord) -> GameRecord:
        ...

    @abstractmethod
    def delete_game(self, game_id: int) -> None:
        ...

    @abstractmethod
    def import_games(self, records: Sequence[GameRecord]) -> List[int]:
        ...

    @abstractmethod
    def clear_database(self) -> int:
        ...

    @abstractmethod
    def storage_info(self) -> StorageInfo:
        ...


def _payload(record: GameRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json", exclude=_RECORD_ONLY_FIELDS)


class SqlGameStorage(GameStorage):
    def __init__(self, owner_id: str, max_bytes: Optional[int] = None) -> None:
        self.owner_id = owner_id
        self.max_bytes = max_bytes

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = SessionLocal()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Storage failure for owner {self.owner_id}: {exc}")
            raise StorageError(str(exc)) from exc
        finally:
            db.close()

    def _owned(self, db: Session, game_id: int) -> GameModel:
        model = db.get(GameModel, game_id)
        if not model or model.owner_id != self.owner_id:
            raise KeyError(game_id)
        return model

    def _used_bytes(self, db: Session) -> int:
        rows = db.scalars(select(GameModel).where(GameModel.owner_id == self.owner_id)).all()
        return sum(row.stored_bytes() for row in rows)

    def _check_limit(self, db: Session) -> None:
        if self.max_bytes is None:
            return
        used = self._used_bytes(db)
        if used >= self.max_bytes:
            raise StorageLimitExceeded(used, self.max_bytes)

    def _new_model(self, record: GameRecord, now: datetime) -> GameModel:
        return GameModel(
            owner_id=self.owner_id,
            **record.model_dump(exclude=_RECORD_ONLY_FIELDS),
            created_at=record.created_at or now,
            updated_at=now,
        )

    def get_all_games(self) -> List[GameRecord]:
        with self._session() as db:
            rows = db.scalars(
                select(GameModel)
                .where(GameModel.owner_id == self.owner_id)
                .order_by(GameModel.created_at.desc(), GameModel.id.desc())
            ).all()
            return [GameRecord.model_validate(row.as_dict()) for row in rows]

    def get_game(self, game_id: int) -> GameRecord:
        with self._session() as db:
            return GameRecord.model_validate(self._owned(db, game_id).as_dict())

    def save_game(self, record: GameRecord) -> int:
        with self._session() as db:
            self._check_limit(db)
            model = self._new_model(record, datetime.now(timezone.utc))
            db.add(model)
            db.commit()
            return model.id

    def update_game(self, record: GameRecord) -> GameRecord:
        if record.id is None:
            raise ValueError("Game id is required for update")
        with self._session() as db:
            model = self._owned(db, record.id)
            for key, value in record.model_dump(exclude=_RECORD_ONLY_FIELDS).items():
                setattr(model, key, value)
            model.updated_at = datetime.now(timezone.utc)
            db.commit()
            db.refresh(model)
            return GameRecord.model_validate(model.as_dict())

    def delete_game(self, game_id: int) -> None:
        with self._session() as db:
            db.delete(self._owned(db, game_id))
            db.commit()

    def import_games(self, records: Sequence[GameRecord]) -> List[int]:
        with self._session() as db:
            self._check_limit(db)
            now = datetime.now(timezone.utc)
            models = [self._new_model(record, now) for record in records]
            db.add_all(models)
            db.commit()
            ids = [model.id for model in models]
        logger.info(f"Imported {len(ids)} games for owner {self.owner_id}")
        return ids

    def clear_database(self) -> int:
        with self._session() as db:
            result = db.execute(delete(GameModel).where(GameModel.owner_id == self.owner_id))
            db.commit()
            return result.rowcount or 0

    def storage_info(self) -> StorageInfo:
        with self._session() as db:
            used = self._used_bytes(db)
        percentage = round(used / self.max_bytes * 100) if self.max_bytes else 0
        return StorageInfo(used_bytes=used, max_bytes=self.max_bytes, percentage=percentage)


class RemoteGameStorage(GameStorage):
    """Client for the game routes of a pgnbase server."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {token}"},
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise StorageError(f"Server unreachable: {exc}") from exc
        if response.status_code == 404:
            raise KeyError(url)
        if response.is_error:
            detail = _error_detail(response)
            if response.status_code == 413 and isinstance(detail, dict):
                raise StorageLimitExceeded(detail.get("used_bytes", 0), detail.get("max_bytes", 0))
            raise StorageError(str(detail))
        return response.json()

    def get_all_games(self) -> List[GameRecord]:
        return [GameRecord.model_validate(item) for item in self._request("GET", "/pgn/games")]

    def get_game(self, game_id: int) -> GameRecord:
        return GameRecord.model_validate(self._request("GET", f"/pgn/games/{game_id}"))

    def save_game(self, record: GameRecord) -> int:
        created = GameRecord.model_validate(self._request("POST", "/pgn/games", json=_payload(record)))
        return created.id

    def update_game(self, record: GameRecord) -> GameRecord:
        if record.id is None:
            raise ValueError("Game id is required for update")
        return GameRecord.model_validate(self._request("PUT", f"/pgn/games/{record.id}", json=_payload(record)))

    def delete_game(self, game_id: int) -> None:
        self._request("DELETE", f"/pgn/games/{game_id}")

    def import_games(self, records: Sequence[GameRecord]) -> List[int]:
        data = self._request("POST", "/pgn/games/import", json={"games": [_payload(r) for r in records]})
        return GameImportResponse.model_validate(data).ids

    def clear_database(self) -> int:
        return int(self._request("DELETE", "/pgn/games").get("deleted", 0))

    def storage_info(self) -> StorageInfo:
        return StorageInfo.model_validate(self._request("GET", "/pgn/user/storage"))

    def close(self) -> None:
        self._client.close()


def _error_detail(response: httpx.Response) -> Any:
    try:
        data = response.json()
    except ValueError:
        return response.text
    return data.get("detail", data) if isinstance(data, dict) else data


def select_storage(authenticated: bool, token: Optional[str] = None) -> GameStorage:
    """Server storage for signed-in users, the local database otherwise."""
    if authenticated:
        if not token:
            raise ValueError("A token is required for server storage")
        logger.info("Storage mode: server")
        return RemoteGameStorage(settings.remote_api_url, token)
    logger.info("Storage mode: local")
    return SqlGameStorage(LOCAL_OWNER)
