"""Summary cache stores - JSON files on disk, or in memory."""

import json
import logging
import os
import re
import shutil
import tempfile
import threading
from pathlib import Path

from pydantic import ValidationError

from panelflow.domain.entities.summary_cache import SummaryCache

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _safe_name(workspace_id: str) -> str:
    name = _UNSAFE_CHARS.sub("_", workspace_id).strip(".")
    return name or "_"


class JsonFileSummaryCacheStore:
    """One JSON document per (workspace, source node): {base}/{workspace}/{node}.json.

    Thread-safe: file operations are protected by a reentrant lock. Unreadable,
    malformed or other-version documents load as None.
    """

    def __init__(self, base_dir: str | Path = "output/summary_cache") -> None:
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _workspace_dir(self, workspace_id: str) -> Path:
        return self._base / _safe_name(workspace_id)

    def _path(self, workspace_id: str, source_node_id: int) -> Path:
        return self._workspace_dir(workspace_id) / f"{source_node_id}.json"

    def load(self, workspace_id: str, source_node_id: int) -> SummaryCache | None:
        path = self._path(workspace_id, source_node_id)
        if not path.exists():
            return None
        try:
            with self._lock:
                raw = path.read_text(encoding="utf-8")
            return SummaryCache.model_validate_json(raw)
        except (OSError, ValidationError):
            logger.warning("Unreadable summary cache: %s", path, exc_info=True)
            return None

    def save(self, workspace_id: str, source_node_id: int, cache: SummaryCache) -> None:
        """Replace the stored document atomically. Write failures are logged."""
        path = self._path(workspace_id, source_node_id)
        data = cache.model_dump(mode="json", by_alias=True)
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(suffix=".json", prefix="cache_", dir=path.parent)
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(data, f, ensure_ascii=False, indent=2)
                    os.replace(tmp_path, path)
                except Exception:
                    if os.path.exists(tmp_path):
                        os.unlink(tmp_path)
                    raise
            except OSError as e:
                logger.warning("Failed to save summary cache %s: %s", path, e)

    def clear(self, workspace_id: str, source_node_id: int) -> None:
        with self._lock:
            self._path(workspace_id, source_node_id).unlink(missing_ok=True)

    def clear_all(self, workspace_id: str) -> int:
        directory = self._workspace_dir(workspace_id)
        with self._lock:
            if not directory.is_dir():
                return 0
            removed = len(list(directory.glob("*.json")))
            shutil.rmtree(directory, ignore_errors=True)
        logger.info("Cleared %d summary caches of workspace %s", removed, workspace_id)
        return removed


class InMemorySummaryCacheStore:
    """Process-local store for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._caches: dict[tuple[str, int], SummaryCache] = {}

    def load(self, workspace_id: str, source_node_id: int) -> SummaryCache | None:
        cache = self._caches.get((workspace_id, source_node_id))
        return cache.model_copy(deep=True) if cache else None

    def save(self, workspace_id: str, source_node_id: int, cache: SummaryCache) -> None:
        self._caches[(workspace_id, source_node_id)] = cache.model_copy(deep=True)

    def clear(self, workspace_id: str, source_node_id: int) -> None:
        self._caches.pop((workspace_id, source_node_id), None)

    def clear_all(self, workspace_id: str) -> int:
        keys = [key for key in self._caches if key[0] == workspace_id]
        for key in keys:
            del self._caches[key]
        return len(keys)
