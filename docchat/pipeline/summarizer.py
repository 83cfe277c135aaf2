"""
Iterative Summarizer

For documents too long for one prompt, this summarizer:
1. Summarizes each chunk on its own (map)
2. Combines and compresses the chunk summaries into one (reduce)

A chunk whose summary fails is skipped; the document summary is built
from whatever succeeded. If the combine step fails, the first three chunk
summaries are used as they are.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from ..exceptions import DocChatError, SummarizationError
from .base import SummaryResult

logger = logging.getLogger(__name__)

CHUNK_PROMPT = (
    "You are a concise document summarizer. Summarize the following text in 2-3 "
    "short paragraphs, focusing on main points and key facts, use simple language:\n\n{text}"
)

COMBINE_PROMPT = (
    "You are a document summarizer. Combine and compress the following chunk summaries "
    "into a single coherent summary in simple language (about 6-8 short lines):\n\n{text}"
)

BULLET_PROMPT = """You are a professional document summarizer. Please read the following document and provide a clear, concise summary in exactly 5 bullet points. Each bullet point should capture a key aspect or main idea from the document. Use simple, clear language that anyone can understand.

Document content:
{text}

Please provide your summary in this exact format:
• [First main point]
• [Second main point]
• [Third main point]
• [Fourth main point]
• [Fifth main point]

Focus on the most important information and key takeaways from the document."""

FALLBACK_SUMMARIES = 3


class IterativeSummarizer:
    """
    Summarize a chunked document with one model call per chunk plus one
    combine call.

    Usage:
        summarizer = IterativeSummarizer(llm_client)
        result = await summarizer.summarize(chunks)
        print(result.summary, result.status)
    """

    def __init__(
        self,
        llm_client,
        chunk_tokens: int = 400,
        combine_tokens: int = 500,
        concurrency: int = 1,
        time_budget: Optional[float] = None,
    ):
        """
        Args:
            llm_client: Anything with an async complete() method
            chunk_tokens: Output budget for each chunk summary
            combine_tokens: Output budget for the combined summary
            concurrency: Chunk summaries in flight at once (1 = in order)
            time_budget: Seconds for the whole run; None or 0 for no limit
        """
        self.llm = llm_client
        self.chunk_tokens = chunk_tokens
        self.combine_tokens = combine_tokens
        self.concurrency = max(1, concurrency)
        self.time_budget = time_budget or None

    async def summarize(self, chunks: Sequence[str]) -> SummaryResult:
        """Summarize each chunk, then combine the summaries."""
        if not chunks:
            return SummaryResult(summary="", chunk_count=0)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.time_budget if self.time_budget else None

        partials = await self._map(chunks, deadline)
        succeeded = [i for i, s in enumerate(partials) if s]
        failed = [i for i, s in enumerate(partials) if not s]
        summaries = [s for s in partials if s]

        if failed:
            logger.warning(
                "Summarized %d/%d chunks; failed chunks: %s",
                len(succeeded), len(chunks), failed,
            )

        result = SummaryResult(
            summary="",
            chunk_count=len(chunks),
            succeeded=succeeded,
            failed=failed,
        )

        if not summaries:
            logger.error("No chunk summary succeeded; document summary left empty")
            result.timed_out = self._expired(deadline)
            return result

        combined = await self._call(
            COMBINE_PROMPT.format(text="\n\n".join(summaries)),
            self.combine_tokens,
            deadline,
            label="combine",
        )

        if combined:
            result.summary = combined
        else:
            result.summary = "\n\n".join(summaries[:FALLBACK_SUMMARIES])
            result.used_fallback = True

        result.timed_out = self._expired(deadline)
        return result

    async def _map(self, chunks: Sequence[str], deadline: Optional[float]) -> List[Optional[str]]:
        if self.concurrency == 1:
            partials = []
            for i, chunk in enumerate(chunks):
                partials.append(await self._summarize_chunk(i, chunk, deadline))
            return partials

        semaphore = asyncio.Semaphore(self.concurrency)

        async def guarded(i: int, chunk: str) -> Optional[str]:
            async with semaphore:
                return await self._summarize_chunk(i, chunk, deadline)

        # gather() keeps results in chunk order
        return list(await asyncio.gather(*(guarded(i, c) for i, c in enumerate(chunks))))

    async def _summarize_chunk(self, index: int, chunk: str, deadline: Optional[float]) -> Optional[str]:
        return await self._call(
            CHUNK_PROMPT.format(text=chunk),
            self.chunk_tokens,
            deadline,
            label=f"chunk {index}",
        )

    async def _call(
        self,
        prompt: str,
        max_tokens: int,
        deadline: Optional[float],
        label: str,
    ) -> Optional[str]:
        """One model call. Returns the stripped reply, or None on failure."""
        timeout = None
        if deadline is not None:
            timeout = deadline - asyncio.get_running_loop().time()
            if timeout <= 0:
                logger.warning("Time budget exhausted, skipping %s", label)
                return None

        try:
            reply = await asyncio.wait_for(
                self.llm.complete(prompt, max_output_tokens=max_tokens),
                timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Summarizing %s timed out", label)
            return None
        except DocChatError as e:
            logger.warning("Error summarizing %s: %s", label, e)
            return None

        reply = (reply or "").strip()
        if not reply:
            logger.warning("Empty summary for %s", label)
            return None
        return reply

    @staticmethod
    def _expired(deadline: Optional[float]) -> bool:
        return deadline is not None and asyncio.get_running_loop().time() >= deadline


async def bullet_summary(llm_client, text: str, max_chars: int = 30000) -> str:
    """
    One-shot 5 bullet point summary of a whole document.

    Text beyond max_chars is cut off. Raises SummarizationError when the
    model fails or returns nothing.
    """
    if len(text) > max_chars:
        text = text[:max_chars] + "..."

    summary = await llm_client.complete(
        BULLET_PROMPT.format(text=text),
        temperature=0.3,
        max_output_tokens=500,
    )
    summary = (summary or "").strip()
    if not summary:
        raise SummarizationError("Model returned an empty summary")
    return summary
