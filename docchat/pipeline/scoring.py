"""Keyword relevance scoring for chunks."""

import re
from typing import Iterable, List, Tuple, TypeVar

from ..documents.models import Chunk

MIN_KEYWORD_LENGTH = 3

C = TypeVar("C", str, Chunk)


def question_keywords(question: str) -> List[str]:
    """Lower-cased words of the question with at least 3 characters."""
    return [w for w in re.split(r"\W+", question.lower()) if len(w) >= MIN_KEYWORD_LENGTH]


def score_chunk(chunk_text: str, question: str) -> int:
    """Count whole-word occurrences of the question's keywords in the chunk."""
    lower = chunk_text.lower()
    score = 0
    for word in question_keywords(question):
        score += len(re.findall(rf"\b{re.escape(word)}\b", lower))
    return score


def rank_chunks(chunks: Iterable[C], question: str) -> List[Tuple[C, int]]:
    """(chunk, score) pairs, best first. Equal scores keep document order."""
    scored = [
        (chunk, score_chunk(chunk.text if isinstance(chunk, Chunk) else chunk, question))
        for chunk in chunks
    ]
    # sorted() is stable
    return sorted(scored, key=lambda pair: pair[1], reverse=True)
