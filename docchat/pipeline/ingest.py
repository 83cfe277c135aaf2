"""Upload pipeline: extract, chunk, store, summarize."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..documents.models import Document
from ..documents.processor import DocumentProcessor
from ..documents.store import DocumentStore
from .base import SummaryResult
from .summarizer import IterativeSummarizer

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    document: Document
    summary: SummaryResult


async def ingest_document(
    file_content: bytes,
    filename: str,
    content_type: Optional[str],
    processor: DocumentProcessor,
    store: DocumentStore,
    summarizer: IterativeSummarizer,
) -> IngestResult:
    """
    Process and store an upload, then summarize it.

    Extraction errors propagate and nothing is stored. Once stored, the
    document is kept even if summarization fails completely.
    """
    processed = processor.process(file_content, filename, content_type)
    document = await store.create(processed)

    result = await summarizer.summarize([c.text for c in document.chunks])
    await store.set_summary(document.id, result.summary)
    document.summary = result.summary

    logger.info(
        "Ingested %s (%s): summary %s, %d/%d chunks summarized",
        document.id, filename, result.status, len(result.succeeded), result.chunk_count,
    )
    return IngestResult(document=document, summary=result)
