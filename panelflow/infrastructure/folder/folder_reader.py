"""Folder reader - builds the passive output of a folder panel.

Walks a directory tree with depth, file-count and exact-name exclusion limits,
then reads text files with per-file truncation and a total size cap.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from panelflow.domain.entities.summary_cache import SourceFile
from panelflow.domain.ports.config import FolderConfig
from panelflow.domain.services.folder_output import FolderEntry, build_folder_output

logger = logging.getLogger(__name__)


@dataclass
class FolderSnapshot:
    folder_path: str
    entries: list[FolderEntry] = field(default_factory=list)
    files: list[SourceFile] = field(default_factory=list)

    def render(self) -> str:
        return build_folder_output(self.folder_path, self.entries, self.files)


def is_binary_file(file_path: Path, check_bytes: int = 8192) -> bool:
    """Check if file appears to be binary (null bytes or mostly control bytes)."""
    try:
        with open(file_path, "rb") as f:
            chunk = f.read(check_bytes)
    except OSError:
        return True
    if b"\x00" in chunk:
        return True
    non_text = sum(1 for b in chunk if b < 32 and b not in (9, 10, 13))
    return len(chunk) > 0 and non_text / len(chunk) > 0.3


def _read_tree(path: Path, settings: FolderConfig, depth: int = 0) -> list[FolderEntry]:
    """Directory entries, directories first then by name.

    Errors at the top level propagate; unreadable subdirectories are skipped.
    """
    if depth >= settings.max_depth:
        return []

    entries: list[FolderEntry] = []
    file_count = 0
    for child in sorted(path.iterdir(), key=lambda p: p.name):
        if file_count >= settings.max_files:
            break
        if child.name in settings.exclude_patterns:
            continue
        if child.is_dir():
            try:
                children = _read_tree(child, settings, depth + 1)
            except OSError as e:
                logger.warning("Skipping unreadable dir %s: %s", child, e)
                children = []
            entries.append(FolderEntry(child.name, str(child), is_dir=True, children=children))
            file_count += len(children)
        else:
            entries.append(FolderEntry(child.name, str(child), is_dir=False))
            file_count += 1

    entries.sort(key=lambda e: (not e.is_dir, e.name))
    return entries


def _collect_files(entries: list[FolderEntry]) -> list[FolderEntry]:
    files: list[FolderEntry] = []
    for entry in entries:
        if entry.is_dir:
            files.extend(_collect_files(entry.children))
        else:
            files.append(entry)
    return files


def _read_contents(entries: list[FolderEntry], settings: FolderConfig) -> list[SourceFile]:
    results: list[SourceFile] = []
    total_size = 0
    truncated = 0
    all_files = _collect_files(entries)

    for entry in all_files:
        if total_size >= settings.max_total_bytes:
            logger.info("Folder total size limit reached (%d bytes), stopping", total_size)
            break
        path = Path(entry.path)
        if is_binary_file(path):
            logger.debug("Skipping binary file %s", path)
            continue
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Failed to read %s: %s", path, e)
            continue
        if len(content) > settings.max_file_bytes:
            dropped = len(content) - settings.max_file_bytes
            content = f"{content[:settings.max_file_bytes]}\n\n[... {dropped} bytes truncated ...]"
            truncated += 1
        total_size += len(content)
        results.append(SourceFile(path=str(path), content=content))

    logger.info(
        "Read %d/%d files (%d bytes, %d truncated)",
        len(results),
        len(all_files),
        total_size,
        truncated,
    )
    return results


def read_folder(folder_path: str, settings: FolderConfig | None = None) -> FolderSnapshot:
    """Read a folder's tree and text contents.

    Raises:
        FileNotFoundError: folder_path does not exist.
        NotADirectoryError: folder_path is not a directory.

    """
    settings = settings or FolderConfig()
    root = Path(folder_path)
    if not root.exists():
        raise FileNotFoundError(folder_path)
    if not root.is_dir():
        raise NotADirectoryError(folder_path)

    entries = _read_tree(root, settings)
    return FolderSnapshot(
        folder_path=str(root),
        entries=entries,
        files=_read_contents(entries, settings),
    )
