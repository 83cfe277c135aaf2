# Summarize a local file without starting the API:
#   python summarize_file.py report.pdf
import asyncio
import sys

from docchat.config import settings
from docchat.documents import DocumentProcessor
from docchat.llm import CredentialPool, GeminiClient, RetryingClient
from docchat.logging_config import setup_logging
from docchat.pipeline import IterativeSummarizer


async def main(path: str):
    setup_logging(settings.log_level)
    llm = RetryingClient(GeminiClient(CredentialPool(settings.gemini.api_keys)))
    processor = DocumentProcessor(
        chunk_size=settings.document.chunk_size,
        chunk_overlap=settings.document.chunk_overlap,
    )

    with open(path, "rb") as f:
        processed = processor.process(f.read(), path)

    result = await IterativeSummarizer(llm_client=llm).summarize(processed.chunks)
    print(f"[{result.status}] {len(result.succeeded)}/{result.chunk_count} chunks summarized\n")
    print(result.summary)

asyncio.run(main(sys.argv[1]))
