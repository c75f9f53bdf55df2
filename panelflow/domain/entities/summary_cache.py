"""Summary cache entities and diff result."""

from dataclasses import dataclass, field
from typing import Literal

from panelflow.domain.entities.base import CamelModel

SUMMARY_CACHE_VERSION = 1


class FileSummaryEntry(CamelModel):
    """Cached summary of one file, keyed by content hash."""

    content_hash: str
    summary: str
    summarized_at: int  # epoch milliseconds


class SummaryCache(CamelModel):
    """Persisted summaries for one (workspace, source node) pair."""

    version: Literal[1] = SUMMARY_CACHE_VERSION
    folder_path: str
    files: dict[str, FileSummaryEntry] = {}
    reduced_summary: str | None = None
    reduced_at: int | None = None


class SourceFile(CamelModel):
    """A file of the current file set: absolute or folder-relative path plus text."""

    path: str
    content: str


@dataclass(frozen=True)
class ChangedFile:
    relative_path: str
    content: str


@dataclass(frozen=True)
class UnchangedFile:
    relative_path: str
    summary: str


@dataclass
class CacheDiff:
    """Three-way diff of the current file set against a summary cache."""

    changed: list[ChangedFile] = field(default_factory=list)
    unchanged: list[UnchangedFile] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    # Relative paths of the current file set, in input order
    order: list[str] = field(default_factory=list)

    @property
    def is_full_hit(self) -> bool:
        return not self.changed and not self.removed


@dataclass(frozen=True)
class FileChunk:
    """Line-bounded slice of a file submitted to one map call."""

    relative_path: str
    content: str
    chunk_index: int
    total_chunks: int

    @property
    def label(self) -> str:
        if self.total_chunks > 1:
            return f"{self.relative_path} (part {self.chunk_index + 1}/{self.total_chunks})"
        return self.relative_path
