"""Summary Cache Port - durable key-value store for map-reduce summaries."""

from typing import Protocol

from panelflow.domain.entities.summary_cache import SummaryCache


class SummaryCacheStorePort(Protocol):
    """Summary caches keyed by (workspace_id, source_node_id)."""

    def load(self, workspace_id: str, source_node_id: int) -> SummaryCache | None:
        """Return the cache, or None when missing or unreadable."""
        ...

    def save(self, workspace_id: str, source_node_id: int, cache: SummaryCache) -> None:
        """Replace the stored cache."""
        ...

    def clear(self, workspace_id: str, source_node_id: int) -> None:
        """Drop one cache."""
        ...

    def clear_all(self, workspace_id: str) -> int:
        """Drop every cache of a workspace. Returns number removed."""
        ...
