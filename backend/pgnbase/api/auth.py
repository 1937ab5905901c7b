"""Bearer-token identity for the game routes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from fastapi import APIRouter, Depends, Header, HTTPException, status

from ..config import settings
from ..schemas import AuthFeatureResponse
from ..store import LOCAL_OWNER, SqlGameStorage

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/feature", response_model=AuthFeatureResponse)
def auth_feature() -> AuthFeatureResponse:
    return AuthFeatureResponse(enabled=settings.auth_feature_enabled)


def create_token(owner_id: str, email: str | None = None) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_exp_minutes)
    payload = {"sub": owner_id, "email": email, "exp": exp}
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def get_current_owner(authorization: str | None = Header(default=None)) -> str:
    """Owner id from the bearer token, or the local owner when auth is off."""
    if not settings.auth_feature_enabled:
        return LOCAL_OWNER
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    token = authorization.split(" ", maxsplit=1)[1]
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    owner_id = payload.get("sub")
    if not owner_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return str(owner_id)


def get_storage(owner_id: str = Depends(get_current_owner)) -> SqlGameStorage:
    return SqlGameStorage(owner_id, settings.max_storage_bytes)
