"""Entry point for the PGN database API service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import auth, games, imports, openings, pgn
from .config import settings
from .database import init_db
from .resolver import build_resolver
from .worker import start_worker, stop_worker

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title=settings.project_name)
app.state.resolver = build_resolver()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(games.router, prefix=settings.api_prefix)
app.include_router(pgn.router, prefix=settings.api_prefix)
app.include_router(openings.router, prefix=settings.api_prefix)
app.include_router(imports.router, prefix=settings.api_prefix)
app.include_router(auth.router, prefix=settings.api_prefix)


@app.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.on_event("startup")
def _startup() -> None:
    init_db()
    app.state.resolver.load_tree()
    start_worker(app.state.resolver)


@app.on_event("shutdown")
def _shutdown() -> None:
    stop_worker()
    if app.state.resolver.tree_client:
        app.state.resolver.tree_client.close()
