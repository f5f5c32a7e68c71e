"""Processed-token cache: append-only text file mirrored by an in-memory set."""

from __future__ import annotations

from pathlib import Path
from threading import Lock

import structlog

log = structlog.get_logger(__name__)

DEFAULT_CACHE_FILE = "./cache/processed_markets.txt"


class ProcessedMarketTracker:
    """
    Remember which CLOB tokens already had their history fetched.

    Each newly marked token is appended to the cache file immediately, so an
    interrupted run only loses the token in flight. The file is never rewritten
    while the tracker is alive. File errors are logged and never raised: the
    in-memory set stays authoritative for the current run.
    """

    def __init__(self, cache_file_path: str | Path = DEFAULT_CACHE_FILE) -> None:
        self._path = Path(cache_file_path)
        self._ids: set[str] = set()
        self._lock = Lock()
        self._load()

    @property
    def cache_file_path(self) -> Path:
        return self._path

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._ids)

    def _load(self) -> None:
        try:
            if self._path.exists():
                lines = self._path.read_text(encoding="utf-8").splitlines()
                with self._lock:
                    for line in lines:
                        token = line.strip()
                        if token:
                            self._ids.add(token)
                log.info("tracker_loaded", path=str(self._path), count=self.count)
            else:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                log.info("tracker_empty", path=str(self._path))
        except OSError as e:
            log.warning("tracker_load_failed", path=str(self._path), error=str(e))

    def is_processed(self, token_id: str | None) -> bool:
        if not token_id:
            return False
        with self._lock:
            return token_id in self._ids

    def mark_processed(self, token_id: str | None) -> bool:
        """Add token_id. True only on first insert, which is also persisted."""
        if not token_id:
            return False
        with self._lock:
            if token_id in self._ids:
                return False
            self._ids.add(token_id)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(token_id + "\n")
        except OSError as e:
            log.warning("tracker_persist_failed", token_id=token_id, error=str(e))
        return True

    def get_all_processed_ids(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._ids)

    def clear(self) -> None:
        """Forget every token and delete the cache file."""
        with self._lock:
            self._ids.clear()
        try:
            if self._path.exists():
                self._path.unlink()
                log.info("tracker_cleared", path=str(self._path))
        except OSError as e:
            log.warning("tracker_clear_failed", path=str(self._path), error=str(e))
