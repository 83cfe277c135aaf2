"""
DocChat - FastAPI Backend

Upload a document, get a summary, then ask questions about it.

API Endpoints:
- POST   /upload              - Upload, chunk and summarize a document
- POST   /chat                - Ask a question about an uploaded document
- POST   /summarize           - One-shot 5 bullet point summary of a file
- GET    /documents           - List uploaded documents
- GET    /documents/{doc_id}  - Document details and summary
- DELETE /documents/{doc_id}  - Delete a document
- GET    /sessions/{id}       - Chat session history
- GET    /health              - Health check
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import settings
from .documents import DocumentProcessor, DocumentStore
from .exceptions import (
    CredentialsNotConfiguredError,
    DocChatError,
    DocumentNotFoundError,
    DocumentProcessingError,
    NoAnswerError,
)
from .llm import CredentialPool, GeminiClient, RetryingClient, RetryPolicy
from .logging_config import setup_logging
from .pipeline import IterativeSummarizer, RetrievalQA, bullet_summary, ingest_document
from .sessions import SessionManager, TTLCache

logger = logging.getLogger(__name__)

# Global instances
llm_client = None
summarizer: Optional[IterativeSummarizer] = None
qa: Optional[RetrievalQA] = None
doc_processor: Optional[DocumentProcessor] = None
doc_store: Optional[DocumentStore] = None
sessions: Optional[SessionManager] = None


def use_llm_client(client) -> None:
    """Point the summarizer and QA at a model client."""
    global llm_client, summarizer, qa

    llm_client = client
    summarizer = IterativeSummarizer(
        llm_client=client,
        concurrency=settings.summary.concurrency,
        time_budget=settings.summary.time_budget,
    )
    qa = RetrievalQA(
        llm_client=client,
        top_k=settings.document.max_chunks_per_query,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    global doc_processor, doc_store, sessions

    setup_logging(settings.log_level, settings.log_file or None)

    credentials = CredentialPool(
        settings.gemini.api_keys,
        cooldown=settings.gemini.key_cooldown,
    )
    if not len(credentials):
        logger.warning("No Gemini API key configured; summaries and answers will fail")

    gemini = GeminiClient(
        credentials,
        base_url=settings.gemini.base_url,
        model=settings.gemini.model,
        timeout=settings.gemini.timeout,
    )
    use_llm_client(RetryingClient(gemini, RetryPolicy(**settings.retry.model_dump())))

    doc_processor = DocumentProcessor(
        chunk_size=settings.document.chunk_size,
        chunk_overlap=settings.document.chunk_overlap,
        min_text_length=settings.document.min_text_length,
        max_file_size=settings.document.max_file_size,
    )

    doc_store = DocumentStore(settings.database.url)
    await doc_store.init()

    sessions = SessionManager(
        TTLCache(capacity=settings.session.capacity, ttl=settings.session.ttl),
        max_history=settings.session.max_history,
    )

    logger.info("DocChat ready (model: %s)", settings.gemini.model)

    yield

    logger.info("Shutting down...")
    await doc_store.close()


app = FastAPI(
    title="DocChat",
    description="Document upload, summarization and grounded Q&A",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response Models
class ChatRequest(BaseModel):
    doc_id: str
    question: str
    session_id: Optional[str] = None


class ChatResponse(BaseModel):
    answer: str
    session_id: str
    context_source: str
    chunk_indices: List[int]


class UploadResponse(BaseModel):
    doc_id: str
    filename: str
    chunk_count: int
    summary: str
    summary_status: str
    message: str


class DocumentInfo(BaseModel):
    doc_id: str
    filename: str
    chunk_count: int
    uploaded_at: Optional[str] = None


class DocumentDetail(DocumentInfo):
    stored_filename: str
    summary: str


class HealthResponse(BaseModel):
    status: str
    llm_connected: bool
    documents_count: int


def _require_ready():
    if not doc_processor or not doc_store or not summarizer or not qa or not sessions:
        raise HTTPException(503, "Not ready")


def summarization_failure_response(error: DocChatError) -> JSONResponse:
    """Turn a model failure into a user-facing error with a hint."""
    if isinstance(error, CredentialsNotConfiguredError):
        return JSONResponse(status_code=503, content={
            "error": "The AI service is not configured on this server.",
            "suggestion": "Set GEMINI_API_KEY and restart the service.",
            "retryable": False,
            "errorType": "NOT_CONFIGURED",
        })

    status = getattr(error, "status_code", None)
    error_code = getattr(error, "error_code", None)
    retryable = getattr(error, "retryable", False)
    message = str(error).lower()

    if status == 429 or error_code == "RESOURCE_EXHAUSTED" or "quota" in message:
        return JSONResponse(status_code=503, content={
            "error": "The AI service is currently experiencing high demand.",
            "suggestion": "Please try again in a minute.",
            "retryAfter": 60,
            "retryable": True,
            "errorType": "QUOTA_EXCEEDED",
        })
    if status == 403:
        return JSONResponse(status_code=503, content={
            "error": "API access temporarily unavailable due to authentication issues.",
            "suggestion": "Please try again in a few minutes.",
            "retryAfter": 300,
            "retryable": True,
            "errorType": "AUTH_ERROR",
        })
    if status in (500, 502, 503, 504):
        return JSONResponse(status_code=503, content={
            "error": "The AI service is temporarily unavailable.",
            "suggestion": "Please try again in a few moments.",
            "retryAfter": 30,
            "retryable": True,
            "errorType": "SERVER_ERROR",
        })
    if status is None and retryable:
        return JSONResponse(status_code=503, content={
            "error": "Network connectivity issues with the AI service.",
            "suggestion": "Please try again.",
            "retryAfter": 15,
            "retryable": True,
            "errorType": "NETWORK_ERROR",
        })
    if status == 400 and any(w in message for w in ("safety", "blocked", "filter")):
        return JSONResponse(status_code=400, content={
            "error": "Document content was flagged by safety filters.",
            "suggestion": "Please try with a different document.",
            "retryable": False,
            "errorType": "CONTENT_FILTERED",
        })
    if status == 400:
        return JSONResponse(status_code=400, content={
            "error": "Invalid request format or document content.",
            "suggestion": "Please ensure your document is properly formatted and try again.",
            "retryable": False,
            "errorType": "CLIENT_ERROR",
        })
    return JSONResponse(status_code=500, content={
        "error": "An unexpected error occurred while processing your document.",
        "suggestion": "Please try again, or try a smaller document.",
        "retryAfter": 60,
        "retryable": True,
        "errorType": "UNKNOWN_ERROR",
    })


# Endpoints
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Check system health."""
    llm_ok = await llm_client.check_health() if llm_client else False
    stats = await doc_store.get_stats() if doc_store else {"total_documents": 0}

    return HealthResponse(
        status="healthy" if llm_ok else "degraded",
        llm_connected=llm_ok,
        documents_count=stats["total_documents"],
    )


@app.post("/upload", response_model=UploadResponse)
async def upload_document(file: UploadFile = File(...)):
    """Upload a document, store its chunks and summarize it."""
    _require_ready()

    content = await file.read()
    if not content:
        raise HTTPException(400, "Empty file")

    try:
        result = await ingest_document(
            file_content=content,
            filename=file.filename or "unknown",
            content_type=file.content_type,
            processor=doc_processor,
            store=doc_store,
            summarizer=summarizer,
        )
    except DocumentProcessingError as e:
        raise HTTPException(400, str(e))

    message = "Document uploaded and summarized. Use /chat to ask questions."
    if result.summary.status != "complete":
        message = "Document uploaded; the summary may be partial. Use /chat to ask questions."

    return UploadResponse(
        doc_id=result.document.id,
        filename=result.document.original_filename,
        chunk_count=len(result.document.chunks),
        summary=result.summary.summary,
        summary_status=result.summary.status,
        message=message,
    )


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """Answer a question about an uploaded document."""
    _require_ready()

    if not request.question.strip():
        raise HTTPException(400, "question required")

    try:
        document = await doc_store.require(request.doc_id)
    except DocumentNotFoundError:
        raise HTTPException(404, "Document not found")

    session = sessions.get_or_create(request.session_id, document.id)

    try:
        result = await qa.answer_with_sources(document, request.question, session.history)
    except NoAnswerError as e:
        logger.error("Chat failed for %s: %s", document.id, e)
        raise HTTPException(502, "No answer from the language model")

    sessions.record_exchange(session, request.question, result.answer)

    return ChatResponse(
        answer=result.answer,
        session_id=session.session_id,
        context_source=result.context_source,
        chunk_indices=result.chunk_indices,
    )


@app.post("/summarize")
async def summarize_file(file: UploadFile = File(...)):
    """Summarize a file in 5 bullet points without storing it."""
    _require_ready()

    content = await file.read()
    if not content:
        raise HTTPException(400, "Empty file")

    filename = file.filename or "unknown"
    try:
        text = doc_processor.extract(content, filename, file.content_type)
    except DocumentProcessingError as e:
        raise HTTPException(400, str(e))

    try:
        summary = await bullet_summary(llm_client, text, settings.summary.bullet_max_chars)
    except DocChatError as e:
        logger.error("Bullet summary failed for %s: %s", filename, e)
        return summarization_failure_response(e)

    return {
        "success": True,
        "summary": summary,
        "filename": filename,
        "fileSize": len(content),
    }


@app.get("/documents", response_model=List[DocumentInfo])
async def list_documents():
    """List uploaded documents."""
    _require_ready()

    docs = await doc_store.list_documents()
    return [DocumentInfo(**d) for d in docs]


@app.get("/documents/{doc_id}", response_model=DocumentDetail)
async def get_document(doc_id: str):
    """Get a document's details and summary."""
    _require_ready()

    document = await doc_store.get(doc_id)
    if document is None:
        raise HTTPException(404, "Not found")

    data = document.to_dict()
    return DocumentDetail(**data)


@app.delete("/documents/{doc_id}")
async def delete_document(doc_id: str):
    """Delete a document."""
    _require_ready()

    if not await doc_store.delete(doc_id):
        raise HTTPException(404, "Not found")

    return {"status": "deleted", "doc_id": doc_id}


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Get a chat session's history."""
    _require_ready()

    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")

    return session.to_dict()
