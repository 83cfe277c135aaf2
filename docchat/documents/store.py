"""
Document Store - SQL storage for documents and their chunks.

Documents are written once at upload time; only the summary is updated
afterwards. Uses SQLAlchemy's async engine (SQLite via aiosqlite by default).
"""

import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, relationship

from ..exceptions import DocumentNotFoundError
from .models import Chunk, Document, ProcessedDocument

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- SQLAlchemy Models ---

class DocumentRecord(Base):
    __tablename__ = "documents"
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    original_filename = Column(String, nullable=False)
    stored_filename = Column(String, nullable=False, unique=True)
    full_text = Column(Text, nullable=False)
    summary = Column(Text, nullable=False, default="")
    chunk_size = Column(Integer, nullable=False)
    chunk_overlap = Column(Integer, nullable=False)
    uploaded_at = Column(DateTime, default=_utcnow)

    chunks = relationship(
        "ChunkRecord",
        order_by="ChunkRecord.index",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ChunkRecord(Base):
    __tablename__ = "chunks"
    id = Column(Integer, primary_key=True)
    document_id = Column(
        String, ForeignKey("documents.id", ondelete="CASCADE"), index=True, nullable=False
    )
    index = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)


class DocumentStore:
    """Durable storage for uploaded documents."""

    def __init__(self, database_url: str = "sqlite+aiosqlite:///./data/docchat.db"):
        self._ensure_sqlite_dir(database_url)
        self.engine = create_async_engine(database_url, echo=False)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)
        # Serializes summary writes; last writer wins
        self._summary_lock = asyncio.Lock()

    @staticmethod
    def _ensure_sqlite_dir(database_url: str) -> None:
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            directory = os.path.dirname(url.database)
            if directory:
                os.makedirs(directory, exist_ok=True)

    async def init(self) -> None:
        """Create tables if needed."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session with rollback on error and explicit close."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create(self, processed: ProcessedDocument) -> Document:
        """Store a processed document with all its chunks."""
        record = DocumentRecord(
            id=str(uuid.uuid4()),
            original_filename=processed.original_filename,
            stored_filename=processed.stored_filename,
            full_text=processed.full_text,
            summary="",
            chunk_size=processed.chunk_size,
            chunk_overlap=processed.chunk_overlap,
            uploaded_at=_utcnow(),
            chunks=[
                ChunkRecord(index=i, text=text)
                for i, text in enumerate(processed.chunks)
            ],
        )

        async with self.get_session() as session:
            session.add(record)
            await session.commit()

        logger.info(
            "Stored document %s (%s, %d chunks)",
            record.id, record.original_filename, len(processed.chunks),
        )
        return self._to_document(record)

    async def get(self, doc_id: str) -> Optional[Document]:
        """Get a document, or None if it does not exist."""
        async with self.get_session() as session:
            record = await session.get(DocumentRecord, doc_id)
            if record is None:
                return None
            return self._to_document(record)

    async def require(self, doc_id: str) -> Document:
        """Get a document or raise DocumentNotFoundError."""
        document = await self.get(doc_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {doc_id} not found")
        return document

    async def set_summary(self, doc_id: str, summary: str) -> None:
        """Write the document summary."""
        async with self._summary_lock:
            async with self.get_session() as session:
                record = await session.get(DocumentRecord, doc_id)
                if record is None:
                    raise DocumentNotFoundError(f"Document {doc_id} not found")
                record.summary = summary
                await session.commit()

    async def list_documents(self) -> List[dict]:
        """List all documents, newest first."""
        stmt = (
            select(
                DocumentRecord.id,
                DocumentRecord.original_filename,
                DocumentRecord.uploaded_at,
                func.count(ChunkRecord.id),
            )
            .outerjoin(ChunkRecord, ChunkRecord.document_id == DocumentRecord.id)
            .group_by(DocumentRecord.id)
            .order_by(DocumentRecord.uploaded_at.desc())
        )

        async with self.get_session() as session:
            rows = (await session.execute(stmt)).all()

        return [
            {
                "doc_id": doc_id,
                "filename": filename,
                "uploaded_at": uploaded_at.isoformat() if uploaded_at else None,
                "chunk_count": chunk_count,
            }
            for doc_id, filename, uploaded_at, chunk_count in rows
        ]

    async def delete(self, doc_id: str) -> bool:
        """Delete a document and its chunks. Returns False if it did not exist."""
        async with self.get_session() as session:
            record = await session.get(DocumentRecord, doc_id)
            if record is None:
                return False
            await session.delete(record)
            await session.commit()

        logger.info("Deleted document %s", doc_id)
        return True

    async def get_stats(self) -> dict:
        """Get store statistics."""
        async with self.get_session() as session:
            documents = await session.scalar(select(func.count(DocumentRecord.id)))
            chunks = await session.scalar(select(func.count(ChunkRecord.id)))

        return {
            "total_documents": documents or 0,
            "total_chunks": chunks or 0,
        }

    @staticmethod
    def _to_document(record: DocumentRecord) -> Document:
        return Document(
            id=record.id,
            original_filename=record.original_filename,
            stored_filename=record.stored_filename,
            full_text=record.full_text,
            chunks=tuple(Chunk(index=c.index, text=c.text) for c in record.chunks),
            uploaded_at=record.uploaded_at,
            chunk_size=record.chunk_size,
            chunk_overlap=record.chunk_overlap,
            summary=record.summary or "",
        )
