"""Background opening classification of stored games."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .config import settings
from .movelist import extract_moves
from .resolver import OpeningResolver
from .schemas import GameRecord, OpeningHint
from .store import GameStorage, SqlGameStorage, StorageError

job_queue: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()

logger = logging.getLogger(__name__)

_worker_thread: Optional[threading.Thread] = None


@dataclass
class EnrichmentReport:
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0


class GameEnricher:
    """Classify every game of a store in small chunks.

    Each chunk re-reads its records, so games deleted while the run is in
    progress are skipped rather than written back. Running it twice writes
    nothing the second time.
    """

    def __init__(
        self,
        resolver: OpeningResolver,
        storage: GameStorage,
        chunk_size: Optional[int] = None,
        pause: Optional[float] = None,
    ) -> None:
        self.resolver = resolver
        self.storage = storage
        self.chunk_size = max(1, chunk_size or settings.enrichment_chunk_size)
        self.pause = settings.enrichment_chunk_pause if pause is None else pause

    def classify(self, record: GameRecord) -> Optional[GameRecord]:
        """Return the record with a better opening, or None if nothing changes."""
        moves = extract_moves(record.pgn)
        result = self.resolver.lookup_for_game(moves, OpeningHint(opening=record.opening, eco=record.eco))
        if not result or result.source == "pgn-header":
            return None
        if result.name == record.opening and result.eco == record.eco:
            return None
        return record.model_copy(update={"opening": result.name, "eco": result.eco})

    def run(self, game_ids: Optional[Sequence[int]] = None) -> EnrichmentReport:
        if game_ids is None:
            game_ids = [game.id for game in self.storage.get_all_games() if game.id is not None]
        ids: List[int] = list(game_ids)
        report = EnrichmentReport()
        logger.info(f"Starting enrichment of {len(ids)} games")

        for start in range(0, len(ids), self.chunk_size):
            self._run_chunk(ids[start : start + self.chunk_size], report)
            done = min(start + self.chunk_size, len(ids))
            logger.info(f"Enrichment: {done}/{len(ids)}")
            if done < len(ids):
                # let request handlers run between chunks
                time.sleep(self.pause)

        logger.info(f"Enrichment finished: {report.updated} updated, {report.skipped} skipped, {report.failed} failed")
        return report

    def _run_chunk(self, game_ids: Sequence[int], report: EnrichmentReport) -> None:
        for game_id in game_ids:
            try:
                record = self.storage.get_game(game_id)
            except KeyError:
                report.skipped += 1
                continue
            except StorageError as exc:
                logger.error(f"Could not read game {game_id}: {exc}")
                report.failed += 1
                continue

            report.processed += 1
            updated = self.classify(record)
            if updated is None:
                continue
            try:
                self.storage.update_game(updated)
            except (KeyError, StorageError) as exc:
                logger.error(f"Could not update game {game_id}: {exc}")
                report.failed += 1
                continue
            report.updated += 1


def process_enrichment_task(resolver: OpeningResolver, task: Dict[str, Any]) -> EnrichmentReport:
    storage = SqlGameStorage(task["owner_id"])
    return GameEnricher(resolver, storage).run(task.get("game_ids"))


def worker(resolver: OpeningResolver) -> None:
    """Background worker to process enrichment requests."""
    while True:
        task = job_queue.get()
        if task is None:
            job_queue.task_done()
            break
        try:
            process_enrichment_task(resolver, task)
        except Exception as e:
            logger.error(f"Enrichment failed for owner {task.get('owner_id')}: {e}")
        finally:
            job_queue.task_done()


def start_worker(resolver: OpeningResolver) -> threading.Thread:
    global _worker_thread
    if _worker_thread and _worker_thread.is_alive():
        return _worker_thread
    _worker_thread = threading.Thread(target=worker, args=(resolver,), daemon=True)
    _worker_thread.start()
    return _worker_thread


def stop_worker() -> None:
    if _worker_thread and _worker_thread.is_alive():
        job_queue.put(None)
        _worker_thread.join(timeout=5)


def enqueue_enrichment(owner_id: str, game_ids: Optional[Sequence[int]] = None) -> None:
    job_queue.put({"owner_id": owner_id, "game_ids": list(game_ids) if game_ids is not None else None})
