"""SQLAlchemy models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameModel(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String, index=True, nullable=False)
    event = Column(String, nullable=False, default="Unknown")
    site = Column(String, nullable=False, default="Unknown")
    date = Column(String, index=True, nullable=False, default="????.??.??")
    white = Column(String, index=True, nullable=False, default="Unknown")
    black = Column(String, index=True, nullable=False, default="Unknown")
    result = Column(String, nullable=False, default="*")
    eco = Column(String, index=True, nullable=False, default="")
    opening = Column(String, index=True, nullable=False, default="")
    white_elo = Column(Integer, nullable=True)
    black_elo = Column(Integer, nullable=True)
    pgn = Column(Text, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    notes = Column(Text, default="", nullable=False)
    move_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "event": self.event,
            "site": self.site,
            "date": self.date,
            "white": self.white,
            "black": self.black,
            "result": self.result,
            "eco": self.eco,
            "opening": self.opening,
            "white_elo": self.white_elo,
            "black_elo": self.black_elo,
            "pgn": self.pgn,
            "tags": list(self.tags or []),
            "notes": self.notes or "",
            "move_count": self.move_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def stored_bytes(self) -> int:
        parts = [self.pgn, self.notes, self.event, self.site, self.white, self.black, self.opening]
        return sum(len(part or "") for part in parts) + len(str(list(self.tags or [])))
