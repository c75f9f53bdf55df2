"""Content diff against a summary cache (SHA-256 keyed)."""

import hashlib
from collections.abc import Iterable

from panelflow.domain.entities.summary_cache import (
    CacheDiff,
    ChangedFile,
    SourceFile,
    SummaryCache,
    UnchangedFile,
)


def hash_content(content: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def relative_path(path: str, folder_path: str) -> str:
    """Path relative to folder_path; paths outside the folder are returned as-is."""
    prefix = folder_path.rstrip("/\\")
    if prefix and path.startswith(prefix) and len(path) > len(prefix) and path[len(prefix)] in "/\\":
        return path[len(prefix) + 1:]
    return path


def diff_against_cache(
    cache: SummaryCache | None,
    files: Iterable[SourceFile],
    folder_path: str,
) -> CacheDiff:
    """Classify current files as changed or unchanged, and cached paths as removed.

    Files resolving to the same relative path are collapsed: the last one
    wins, at the position of the first. Removed entries are reported only;
    purging is up to the caller.
    """
    diff = CacheDiff()
    latest: dict[str, str] = {}
    for file in files:
        latest[relative_path(file.path, folder_path)] = file.content

    for rel, content in latest.items():
        diff.order.append(rel)
        cached = cache.files.get(rel) if cache else None
        if cached and cached.summary and cached.content_hash == hash_content(content):
            diff.unchanged.append(UnchangedFile(relative_path=rel, summary=cached.summary))
        else:
            diff.changed.append(ChangedFile(relative_path=rel, content=content))

    if cache:
        diff.removed = [path for path in cache.files if path not in latest]
    return diff
