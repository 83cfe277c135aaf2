"""
Summarization & Retrieval Package

## How it works

Upload:
1. The document text is split into overlapping chunks
2. Each chunk is summarized on its own
3. The chunk summaries are combined into one document summary

Question:
1. Every chunk is scored by how often the question's keywords appear
2. The top 4 chunks with a score above zero become the context
   (no matches: the summary, or the start of the text)
3. The model answers using ONLY that context

## Files

- base.py: Result data classes (SummaryResult, QAResult)
- scoring.py: Keyword relevance scorer
- summarizer.py: Map/reduce summarizer with partial-failure tolerance
- retrieval.py: Context selection and grounded answering
- ingest.py: Upload pipeline tying processor, store and summarizer together
"""

from .base import QAResult, SummaryResult
from .ingest import IngestResult, ingest_document
from .retrieval import NOT_FOUND_ANSWER, RetrievalQA
from .scoring import question_keywords, rank_chunks, score_chunk
from .summarizer import IterativeSummarizer, bullet_summary

__all__ = [
    "QAResult",
    "SummaryResult",
    "IngestResult",
    "ingest_document",
    "NOT_FOUND_ANSWER",
    "RetrievalQA",
    "question_keywords",
    "rank_chunks",
    "score_chunk",
    "IterativeSummarizer",
    "bullet_summary",
]
