"""
Chat sessions.

A session remembers the conversation about one document so follow-up
questions can refer to earlier answers. Sessions live in memory only, in a
cache bounded both by age (ttl) and by size (capacity, least recently used
evicted first).
"""

import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """Key-value cache with expiry and LRU eviction."""

    def __init__(
        self,
        capacity: int = 1000,
        ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self.ttl = ttl
        self.clock = clock
        self._data: "OrderedDict[K, Tuple[float, V]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: K) -> bool:
        return self.get(key) is not None

    def get(self, key: K) -> Optional[V]:
        item = self._data.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self.clock() >= expires_at:
            del self._data[key]
            return None
        self._data.move_to_end(key)
        return value

    def set(self, key: K, value: V) -> None:
        if key in self._data:
            del self._data[key]
        self._data[key] = (self.clock() + self.ttl, value)
        while len(self._data) > self.capacity:
            evicted, _ = self._data.popitem(last=False)
            logger.debug("Evicted %s from cache (capacity %d)", evicted, self.capacity)

    def delete(self, key: K) -> bool:
        return self._data.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self.clock()
        expired = [k for k, (expires_at, _) in self._data.items() if now >= expires_at]
        for key in expired:
            del self._data[key]
        return len(expired)


@dataclass
class ChatSession:
    """Conversation about one document."""
    session_id: str
    document_id: str
    created_at: float
    history: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "document_id": self.document_id,
            "history": list(self.history),
        }


class SessionManager:
    """Create, look up and extend chat sessions."""

    def __init__(self, cache: TTLCache, max_history: int = 20):
        self.cache = cache
        self.max_history = max_history

    def create(self, document_id: str) -> ChatSession:
        session = ChatSession(
            session_id=uuid.uuid4().hex,
            document_id=document_id,
            created_at=time.time(),
        )
        self.cache.set(session.session_id, session)
        return session

    def get(self, session_id: str) -> Optional[ChatSession]:
        return self.cache.get(session_id)

    def get_or_create(self, session_id: Optional[str], document_id: str) -> ChatSession:
        """Reuse a live session for the same document, otherwise start one."""
        if session_id:
            session = self.get(session_id)
            if session is not None and session.document_id == document_id:
                return session
        return self.create(document_id)

    def record_exchange(self, session: ChatSession, question: str, answer: str) -> None:
        session.history.append({"role": "user", "content": question})
        session.history.append({"role": "assistant", "content": answer})
        if len(session.history) > self.max_history:
            del session.history[: len(session.history) - self.max_history]
