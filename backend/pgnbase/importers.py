"""Download a player's game history from online chess platforms as PGN text."""

from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional
from urllib.parse import quote

import httpx

from .config import settings

logger = logging.getLogger(__name__)

EVENT_TAG_RE = re.compile(r"\[Event\s")
EVENT_TAG_LENGTH = len("[Event ")


class ImportSourceError(ValueError):
    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


@asynccontextmanager
async def _client_scope(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(
        timeout=settings.import_timeout,
        headers={"User-Agent": "pgnbase"},
        follow_redirects=True,
    ) as owned:
        yield owned


async def fetch_lichess_pgn(
    username: str,
    on_progress: Optional[Callable[[int], None]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Stream a Lichess user's games; ``on_progress`` gets the running game count."""
    url = f"{settings.lichess_api_url}{quote(username)}"
    params = {
        "tags": "true",
        "clocks": "false",
        "evals": "false",
        "opening": "true",
        "max": settings.lichess_max_games,
        "perfType": settings.lichess_perf_types,
    }
    chunks: list[str] = []
    game_count = 0
    tail = ""
    async with _client_scope(client) as http:
        try:
            async with http.stream(
                "GET", url, params=params, headers={"Accept": "application/x-chess-pgn"}
            ) as response:
                if response.status_code == 404:
                    raise ImportSourceError(f"Lichess user '{username}' not found", status_code=404)
                if response.is_error:
                    raise ImportSourceError(f"Lichess request failed (status {response.status_code})")
                async for text in response.aiter_text():
                    chunks.append(text)
                    # tags can straddle chunk boundaries
                    window = tail + text
                    found = len(EVENT_TAG_RE.findall(window))
                    tail = window[-(EVENT_TAG_LENGTH - 1) :]
                    if found:
                        game_count += found
                        if on_progress:
                            on_progress(game_count)
        except httpx.HTTPError as exc:
            raise ImportSourceError(f"Lichess unreachable: {exc}") from exc

    pgn = "".join(chunks)
    if not pgn.strip():
        raise ImportSourceError(f"No games found for Lichess user '{username}'", status_code=404)
    logger.info(f"Fetched {game_count} Lichess games for {username}")
    return pgn


async def fetch_chesscom_pgn(
    username: str,
    on_progress: Optional[Callable[[int, int], None]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Fetch every monthly archive of a Chess.com user concurrently.

    Months that fail to download are skipped; ``on_progress`` receives
    ``(loaded, total)`` after each month.
    """
    archives_url = f"{settings.chesscom_api_url}{quote(username)}/games/archives"
    async with _client_scope(client) as http:
        try:
            response = await http.get(archives_url)
        except httpx.HTTPError as exc:
            raise ImportSourceError(f"Chess.com unreachable: {exc}") from exc
        if response.status_code == 404:
            raise ImportSourceError(f"Chess.com user '{username}' not found", status_code=404)
        if response.is_error:
            raise ImportSourceError(f"Chess.com archive request failed (status {response.status_code})")

        try:
            data = response.json()
        except ValueError as exc:
            raise ImportSourceError("Chess.com returned an unreadable archive list") from exc
        archives = (data.get("archives") if isinstance(data, dict) else None) or []
        if not archives:
            raise ImportSourceError(f"No games found for Chess.com user '{username}'", status_code=404)

        total = len(archives)
        loaded = 0
        if on_progress:
            on_progress(0, total)

        async def fetch_month(archive_url: str) -> str:
            nonlocal loaded
            try:
                month = await http.get(f"{archive_url}/pgn")
                text = month.text if month.is_success else ""
            except httpx.HTTPError as exc:
                logger.warning(f"Could not fetch {archive_url}: {exc}")
                text = ""
            loaded += 1
            if on_progress:
                on_progress(loaded, total)
            return text

        parts = await asyncio.gather(*(fetch_month(url) for url in archives))

    pgn = "\n\n".join(part.strip() for part in parts if part.strip())
    if not pgn:
        raise ImportSourceError(f"No games found for Chess.com user '{username}'", status_code=404)
    return pgn
