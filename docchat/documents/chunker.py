"""
Text chunking with sliding-window overlap.

    chunk_text("abcdefghij", window_size=4, overlap=1)
    -> ["abcd", "defg", "ghij"]

Each window starts (window_size - overlap) characters after the previous
one, so the last `overlap` characters of a chunk are repeated at the start
of the next. Dropping those repeated characters gives back the text:

    reassemble(["abcd", "defg", "ghij"], overlap=1) -> "abcdefghij"
"""

from typing import List, Sequence

from ..exceptions import ChunkingPreconditionError


def check_window(window_size: int, overlap: int) -> None:
    """Reject window parameters that would never advance."""
    if window_size <= 0:
        raise ChunkingPreconditionError(f"window_size must be > 0, got {window_size}")
    if overlap < 0 or overlap >= window_size:
        raise ChunkingPreconditionError(
            f"overlap must be in [0, window_size), got overlap={overlap} "
            f"with window_size={window_size}"
        )


def chunk_text(text: str, window_size: int = 2500, overlap: int = 200) -> List[str]:
    """Split text into overlapping windows of at most window_size characters."""
    check_window(window_size, overlap)

    chunks = []
    step = window_size - overlap
    start = 0

    while start < len(text):
        end = min(start + window_size, len(text))
        chunks.append(text[start:end])
        if end == len(text):
            break
        start = max(start + step, 0)

    return chunks


def reassemble(chunks: Sequence[str], overlap: int) -> str:
    """Inverse of chunk_text: trim the overlap from every chunk but the first."""
    if not chunks:
        return ""
    return chunks[0] + "".join(c[overlap:] for c in chunks[1:])
