"""Pytest configuration and fixtures."""
from datetime import datetime, timezone
from typing import Callable, List, Optional

import pytest
import pytest_asyncio

from docchat.documents import Chunk, Document, DocumentProcessor, DocumentStore
from docchat.exceptions import SummarizationError
from docchat.pipeline.summarizer import CHUNK_PROMPT, COMBINE_PROMPT

CHUNK_MARKER = CHUNK_PROMPT.split("{text}")[0]
COMBINE_MARKER = COMBINE_PROMPT.split("{text}")[0]


class StubLLM:
    """
    Stand-in for the model client.

    handler(prompt) returns the reply, or raises to simulate a failure.
    Every call is recorded in .calls as (prompt, temperature, max_output_tokens).
    """

    def __init__(self, handler: Callable[[str], Optional[str]]):
        self.handler = handler
        self.calls: List[tuple] = []

    async def complete(self, prompt, temperature=None, max_output_tokens=None):
        self.calls.append((prompt, temperature, max_output_tokens))
        return self.handler(prompt)

    async def check_health(self) -> bool:
        return True

    @property
    def prompts(self) -> List[str]:
        return [c[0] for c in self.calls]


def chunk_echo_handler(chunks: List[str], fail: Optional[set] = None, combine_fails: bool = False):
    """
    Replies "summary-of-chunk-N" (1-based) for chunk prompts and joins the
    partial summaries with " | " for the combine prompt.
    """
    fail = fail or set()

    def handler(prompt: str) -> str:
        if prompt.startswith(CHUNK_MARKER):
            body = prompt[len(CHUNK_MARKER):]
            n = chunks.index(body) + 1
            if n in fail:
                raise SummarizationError(f"chunk {n} failed", status_code=503)
            return f"summary-of-chunk-{n}"
        if prompt.startswith(COMBINE_MARKER):
            if combine_fails:
                raise SummarizationError("combine failed", status_code=500)
            return " | ".join(prompt[len(COMBINE_MARKER):].split("\n\n"))
        raise AssertionError(f"unexpected prompt: {prompt[:60]}")

    return handler


def make_document(chunks: List[str], summary: str = "", full_text: Optional[str] = None) -> Document:
    return Document(
        id="doc-1",
        original_filename="test.txt",
        stored_filename="abc.txt",
        full_text=full_text if full_text is not None else " ".join(chunks),
        chunks=tuple(Chunk(index=i, text=t) for i, t in enumerate(chunks)),
        uploaded_at=datetime.now(timezone.utc),
        chunk_size=2500,
        chunk_overlap=0,
        summary=summary,
    )


@pytest.fixture
def pets_document():
    """The three-chunk document used by the QA tests."""
    return make_document(
        ["cats are great pets", "dogs are loyal companions", "fish live in water"],
        summary="A short note about pets.",
    )


@pytest.fixture
def processor():
    return DocumentProcessor(chunk_size=100, chunk_overlap=20)


@pytest_asyncio.fixture
async def store(tmp_path):
    """Document store backed by a temporary SQLite file."""
    doc_store = DocumentStore(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await doc_store.init()
    yield doc_store
    await doc_store.close()


@pytest.fixture
def sample_text():
    """About 450 characters of plain text."""
    return (
        "The quarterly report covers revenue, hiring and product launches. "
        "Revenue grew twelve percent compared to the previous quarter. "
        "The company hired forty engineers across three offices. "
        "Two products launched: a mobile banking app and a budgeting tool. "
        "Customer satisfaction improved after the support team expanded. "
        "Next quarter the company plans to enter two new markets in Europe. "
        "Risks include currency fluctuations and rising cloud costs."
    )
