"""
Retrieval QA - answer questions about one stored document.

The answer is grounded in the chunks that share the most keywords with
the question. When no chunk shares any, the document summary (or the
start of the text) is used instead, and the model is told to say so if
the answer is not there.
"""

import logging
from typing import List, Optional

from ..documents.models import Document
from ..exceptions import DocChatError, NoAnswerError
from .base import QAResult
from .scoring import rank_chunks

logger = logging.getLogger(__name__)

NOT_FOUND_ANSWER = "I cannot find the answer in the uploaded document."

QA_PROMPT = """You are a helpful assistant. Use ONLY the information in the CONTEXT to answer the user's question.
If the information is not present, reply: "{not_found}"

CONTEXT:
{context}
{history}
QUESTION:
{question}

Answer concisely and cite short quotes from the context when helpful."""


class RetrievalQA:
    """
    Keyword retrieval + grounded answer.

    Usage:
        qa = RetrievalQA(llm_client)
        answer = await qa.answer(document, "Who signed the contract?")
    """

    def __init__(
        self,
        llm_client,
        top_k: int = 4,
        prefix_chars: int = 2000,
        temperature: float = 0.2,
        max_output_tokens: int = 500,
    ):
        self.llm = llm_client
        self.top_k = top_k
        self.prefix_chars = prefix_chars
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def select_context(self, document: Document, question: str) -> QAResult:
        """Pick the context for a question. The answer field is left empty."""
        ranked = rank_chunks(document.chunks, question)
        top = [(c, s) for c, s in ranked[: self.top_k] if s > 0]

        if top:
            return QAResult(
                question=question,
                answer="",
                context_source="chunks",
                chunk_indices=[c.index for c, _ in top],
                scores=[s for _, s in top],
            )

        source = "summary" if document.summary else "prefix"
        return QAResult(question=question, answer="", context_source=source)

    def build_context(self, document: Document, selection: QAResult) -> str:
        if selection.context_source == "chunks":
            by_index = {c.index: c.text for c in document.chunks}
            return "\n\n".join(by_index[i] for i in selection.chunk_indices)
        if selection.context_source == "summary":
            return document.summary
        return document.full_text[: self.prefix_chars]

    def build_prompt(self, context: str, question: str, history: Optional[List[dict]] = None) -> str:
        history_text = ""
        if history:
            lines = [
                f"{'User' if msg['role'] == 'user' else 'Assistant'}: {msg['content']}"
                for msg in history
            ]
            history_text = "\nPrevious conversation:\n" + "\n".join(lines) + "\n"

        return QA_PROMPT.format(
            not_found=NOT_FOUND_ANSWER,
            context=context,
            history=history_text,
            question=question,
        )

    async def answer_with_sources(
        self,
        document: Document,
        question: str,
        history: Optional[List[dict]] = None,
    ) -> QAResult:
        """
        Answer a question and report which context was used.

        Raises:
            NoAnswerError: the model call failed or returned nothing
        """
        result = self.select_context(document, question)
        context = self.build_context(document, result)
        prompt = self.build_prompt(context, question, history)

        logger.debug(
            "Answering for %s from %s (chunks=%s)",
            document.id, result.context_source, result.chunk_indices,
        )

        try:
            reply = await self.llm.complete(
                prompt,
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            )
        except DocChatError as e:
            logger.error("Answer generation failed for %s: %s", document.id, e)
            raise NoAnswerError(f"No answer available: {e}") from e

        reply = (reply or "").strip()
        if not reply:
            raise NoAnswerError("No answer available: the model returned nothing")

        result.answer = reply
        return result

    async def answer(
        self,
        document: Document,
        question: str,
        history: Optional[List[dict]] = None,
    ) -> str:
        result = await self.answer_with_sources(document, question, history)
        return result.answer
