"""Opening name lookup and maintenance."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..resolver import OpeningResolver
from ..schemas import (
    EnrichmentResponse,
    LookupRequest,
    LookupResponse,
    OpeningStatusResponse,
    SaveNameRequest,
)
from ..worker import enqueue_enrichment
from .auth import get_current_owner

router = APIRouter(prefix="/openings", tags=["openings"])


def get_resolver(request: Request) -> OpeningResolver:
    return request.app.state.resolver


def _status(resolver: OpeningResolver) -> OpeningStatusResponse:
    return OpeningStatusResponse(
        tree_available=resolver.tree_available,
        eco_positions=len(resolver.index),
        generation=resolver.generation,
    )


@router.get("/status", response_model=OpeningStatusResponse)
def opening_status(resolver: OpeningResolver = Depends(get_resolver)) -> OpeningStatusResponse:
    return _status(resolver)


@router.post("/lookup", response_model=LookupResponse)
def lookup_opening(payload: LookupRequest, resolver: OpeningResolver = Depends(get_resolver)) -> LookupResponse:
    result = resolver.lookup(payload.moves, payload.up_to_index, payload.hint)
    return LookupResponse(result=result, editable=bool(result and result.editable))


@router.post("/tree/reload", response_model=OpeningStatusResponse)
def reload_tree(resolver: OpeningResolver = Depends(get_resolver)) -> OpeningStatusResponse:
    resolver.load_tree()
    return _status(resolver)


@router.post("/names", response_model=OpeningStatusResponse)
def save_opening_name(
    payload: SaveNameRequest, resolver: OpeningResolver = Depends(get_resolver)
) -> OpeningStatusResponse:
    if not resolver.save_name(payload.moves, payload.name):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Opening tree unavailable")
    return _status(resolver)


@router.post("/enrich", response_model=EnrichmentResponse, status_code=status.HTTP_202_ACCEPTED)
def enrich_games(owner_id: str = Depends(get_current_owner)) -> EnrichmentResponse:
    enqueue_enrichment(owner_id)
    return EnrichmentResponse(queued=True, owner_id=owner_id)
