"""Line-bounded chunking of large files for the map phase."""

from panelflow.domain.entities.summary_cache import FileChunk

MAP_CHUNK_BYTES = 10_000


def chunk_file_content(
    content: str,
    relative_path: str,
    max_bytes: int = MAP_CHUNK_BYTES,
) -> list[FileChunk]:
    """Split content on line boundaries into chunks of at most max_bytes.

    Small files stay a single chunk. A single line longer than max_bytes is
    never split and becomes its own oversized chunk. Joining the chunk
    contents with newlines reproduces the original text.
    """
    if len(content.encode("utf-8")) <= max_bytes:
        return [FileChunk(relative_path, content, 0, 1)]

    pieces: list[str] = []
    current: list[str] = []
    current_size = 0
    for line in content.split("\n"):
        line_size = len(line.encode("utf-8")) + 1
        if current and current_size + line_size > max_bytes:
            pieces.append("\n".join(current))
            current = []
            current_size = 0
        current.append(line)
        current_size += line_size
    if current:
        pieces.append("\n".join(current))

    total = len(pieces)
    return [FileChunk(relative_path, piece, index, total) for index, piece in enumerate(pieces)]
