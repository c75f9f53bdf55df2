"""Text format of a folder panel's output: file listing followed by file contents."""

import re
from dataclasses import dataclass, field

from panelflow.domain.entities.summary_cache import SourceFile
from panelflow.domain.services.content_diff import relative_path

CONTENTS_MARKER = "--- File contents ---"
LISTING_MARKER = "--- File list ---"

_HEADER_RE = re.compile(r"^### (.+?) ###$", re.MULTILINE)


@dataclass
class FolderEntry:
    """Directory tree node."""

    name: str
    path: str
    is_dir: bool
    children: list["FolderEntry"] = field(default_factory=list)


def _render_tree(entries: list[FolderEntry], lines: list[str], indent: str = "") -> None:
    for entry in entries:
        if entry.is_dir:
            lines.append(f"{indent}{entry.name}/")
            _render_tree(entry.children, lines, indent + "  ")
        else:
            lines.append(f"{indent}{entry.name}")


def build_folder_output(
    folder_path: str,
    entries: list[FolderEntry],
    files: list[SourceFile],
) -> str:
    """Render listing and contents as the passive output of a folder panel."""
    lines = [f"=== Folder: {folder_path} ===", "", LISTING_MARKER]
    _render_tree(entries, lines)

    if files:
        lines.append("")
        lines.append(CONTENTS_MARKER)
        for file in files:
            lines.append(f"### {relative_path(file.path, folder_path)} ###")
            lines.append(file.content)
            lines.append("")

    return "\n".join(lines)


def parse_folder_output(folder_output: str) -> list[SourceFile]:
    """Split a folder panel output back into (relative path, content) files.

    Returns an empty list when the text has no contents section.
    """
    marker_idx = folder_output.find(CONTENTS_MARKER)
    if marker_idx == -1:
        return []

    section = folder_output[marker_idx + len(CONTENTS_MARKER):]
    headers = list(_HEADER_RE.finditer(section))
    files: list[SourceFile] = []
    for i, header in enumerate(headers):
        end = headers[i + 1].start() if i + 1 < len(headers) else len(section)
        content = section[header.end():end].strip()
        files.append(SourceFile(path=header.group(1), content=content))
    return files
