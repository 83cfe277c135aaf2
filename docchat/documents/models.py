"""
Document data classes.

ProcessedDocument is what comes out of extraction + chunking; Document is
what the store hands back once it has an id.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple


@dataclass(frozen=True)
class Chunk:
    """A piece of a document."""
    index: int   # Reading order, unique within the document
    text: str


@dataclass
class ProcessedDocument:
    """Extracted text and its chunks, not yet stored."""
    original_filename: str
    stored_filename: str
    full_text: str
    chunks: List[str]
    chunk_size: int
    chunk_overlap: int


@dataclass
class Document:
    """
    A stored document with chunks and (maybe partial) summary.

    stored_filename is a unique name derived from the upload (random hex plus
    the original extension). Only the extracted text is kept, so it is an
    identifier, not a path to a file on disk.
    """
    id: str
    original_filename: str
    stored_filename: str
    full_text: str
    chunks: Tuple[Chunk, ...]
    uploaded_at: datetime
    chunk_size: int
    chunk_overlap: int
    summary: str = ""

    def to_dict(self, include_text: bool = False) -> dict:
        data = {
            "doc_id": self.id,
            "filename": self.original_filename,
            "stored_filename": self.stored_filename,
            "uploaded_at": self.uploaded_at.isoformat(),
            "chunk_count": len(self.chunks),
            "summary": self.summary,
        }
        if include_text:
            data["full_text"] = self.full_text
        return data
