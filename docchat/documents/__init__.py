"""
Document Processing Package

This package handles document ingestion, extraction, chunking, and storage.
- chunker.py: Overlapping fixed-size text windows
- processor.py: Extract text (PDF, DOCX, TXT, MD) and chunk it
- store.py: SQL store for documents, chunks and summaries
"""

from .chunker import chunk_text, reassemble
from .models import Chunk, Document, ProcessedDocument
from .processor import DocumentProcessor
from .store import DocumentStore

__all__ = [
    "chunk_text",
    "reassemble",
    "Chunk",
    "Document",
    "ProcessedDocument",
    "DocumentProcessor",
    "DocumentStore",
]
