"""
Pipeline Base Classes

Simple data structures for summarization and question-answering results.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class SummaryResult:
    """
    Result of iterative summarization.

    Status:
    - "complete": every chunk was summarized
    - "partial": some chunks failed (or the time budget ran out)
    - "failed": no chunk summary succeeded, summary is ""
    - "empty": there were no chunks to summarize
    """
    summary: str
    chunk_count: int
    succeeded: List[int] = field(default_factory=list)   # chunk indices
    failed: List[int] = field(default_factory=list)
    used_fallback: bool = False   # reduce step failed, first summaries joined
    timed_out: bool = False

    @property
    def status(self) -> str:
        if self.chunk_count == 0:
            return "empty"
        if not self.succeeded:
            return "failed"
        if len(self.succeeded) < self.chunk_count:
            return "partial"
        return "complete"

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "chunk_count": self.chunk_count,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "used_fallback": self.used_fallback,
            "timed_out": self.timed_out,
            "status": self.status,
        }


@dataclass
class QAResult:
    """
    Answer to a question about one document.

    context_source says where the context came from: "chunks" when
    keyword retrieval found matches, otherwise "summary" or "prefix"
    (start of the full text).
    """
    question: str
    answer: str
    context_source: str
    chunk_indices: List[int] = field(default_factory=list)
    scores: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "answer": self.answer,
            "context_source": self.context_source,
            "chunk_indices": self.chunk_indices,
            "scores": self.scores,
        }
