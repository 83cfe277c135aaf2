"""Tests for API endpoints."""
import pytest
from fastapi.testclient import TestClient

from docchat import main
from docchat.config import settings
from docchat.exceptions import CredentialsNotConfiguredError, SummarizationError
from docchat.pipeline.retrieval import NOT_FOUND_ANSWER

from conftest import COMBINE_MARKER, StubLLM

PETS_TEXT = (
    "Cats are great pets that like to sleep. "
    "Dogs are loyal companions who enjoy long walks. "
    "Fish live in water and need a clean tank."
)


def default_handler(prompt: str) -> str:
    if prompt.startswith(COMBINE_MARKER):
        return "Combined summary about pets."
    if "QUESTION:" in prompt:
        return "Dogs are loyal companions."
    if "5 bullet points" in prompt:
        return "• one\n• two\n• three\n• four\n• five"
    return "A chunk summary."


@pytest.fixture
def llm():
    return StubLLM(default_handler)


@pytest.fixture
def client(tmp_path, monkeypatch, llm):
    """Test client with a temporary database and a stub model."""
    monkeypatch.setattr(settings.database, "url", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setattr(settings.document, "chunk_size", 60)
    monkeypatch.setattr(settings.document, "chunk_overlap", 10)

    with TestClient(main.app) as test_client:
        main.use_llm_client(llm)
        yield test_client


def upload(client, text=PETS_TEXT, filename="pets.txt", content_type="text/plain"):
    return client.post("/upload", files={"file": (filename, text.encode(), content_type)})


class TestHealthEndpoint:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["documents_count"] == 0


class TestUploadEndpoint:

    def test_upload_success(self, client):
        response = upload(client)
        assert response.status_code == 200
        data = response.json()
        assert data["filename"] == "pets.txt"
        assert data["chunk_count"] > 1
        assert data["summary"] == "Combined summary about pets."
        assert data["summary_status"] == "complete"

    def test_upload_kept_when_model_fails(self, client, llm):
        def failing(prompt):
            raise SummarizationError("down", status_code=503, retryable=True)

        llm.handler = failing
        response = upload(client)
        assert response.status_code == 200
        assert response.json()["summary"] == ""
        assert response.json()["summary_status"] == "failed"

        docs = client.get("/documents").json()
        assert len(docs) == 1

    def test_upload_unsupported_type(self, client):
        response = client.post("/upload", files={"file": ("pic.png", b"\x89PNG", "image/png")})
        assert response.status_code == 400

    def test_upload_too_short(self, client):
        response = upload(client, text="hi")
        assert response.status_code == 400

    def test_upload_empty_file(self, client):
        response = client.post("/upload", files={"file": ("empty.txt", b"", "text/plain")})
        assert response.status_code == 400

    def test_upload_too_large(self, client, llm, monkeypatch):
        monkeypatch.setattr(main.doc_processor, "max_file_size", 64)
        response = upload(client, text="x" * 65)

        assert response.status_code == 400
        assert "too large" in response.json()["detail"]
        assert llm.calls == []
        assert client.get("/documents").json() == []


class TestChatEndpoint:

    def test_chat_answers_from_matching_chunk(self, client, llm):
        doc_id = upload(client).json()["doc_id"]

        response = client.post("/chat", json={"doc_id": doc_id, "question": "tell me about dogs"})
        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Dogs are loyal companions."
        assert data["context_source"] == "chunks"
        assert data["chunk_indices"]

    def test_chat_session_keeps_history(self, client, llm):
        doc_id = upload(client).json()["doc_id"]

        first = client.post("/chat", json={"doc_id": doc_id, "question": "tell me about dogs"}).json()
        session_id = first["session_id"]
        second = client.post(
            "/chat", json={"doc_id": doc_id, "question": "and the fish?", "session_id": session_id}
        ).json()

        assert second["session_id"] == session_id
        assert "User: tell me about dogs" in llm.prompts[-1]

        history = client.get(f"/sessions/{session_id}").json()["history"]
        assert [m["role"] for m in history] == ["user", "assistant", "user", "assistant"]

    def test_chat_not_found_phrase_passes_through(self, client, llm):
        doc_id = upload(client).json()["doc_id"]
        llm.handler = lambda prompt: NOT_FOUND_ANSWER

        data = client.post("/chat", json={"doc_id": doc_id, "question": "birds?"}).json()
        assert data["answer"] == NOT_FOUND_ANSWER
        assert data["context_source"] == "summary"

    def test_chat_no_answer(self, client, llm):
        doc_id = upload(client).json()["doc_id"]
        llm.handler = lambda prompt: ""

        response = client.post("/chat", json={"doc_id": doc_id, "question": "dogs?"})
        assert response.status_code == 502

    def test_chat_unknown_document(self, client):
        response = client.post("/chat", json={"doc_id": "nope", "question": "dogs?"})
        assert response.status_code == 404

    def test_unknown_session(self, client):
        assert client.get("/sessions/unknown").status_code == 404


class TestSummarizeEndpoint:

    def test_bullet_summary(self, client):
        response = client.post("/summarize", files={"file": ("pets.txt", PETS_TEXT.encode(), "text/plain")})
        assert response.status_code == 200
        assert response.json()["summary"].startswith("• one")

    @pytest.mark.parametrize(
        "error,status,error_type",
        [
            (SummarizationError("quota exceeded", status_code=429, retryable=True), 503, "QUOTA_EXCEEDED"),
            (SummarizationError("forbidden", status_code=403), 503, "AUTH_ERROR"),
            (SummarizationError("overloaded", status_code=503, retryable=True), 503, "SERVER_ERROR"),
            (SummarizationError("connect failed", retryable=True), 503, "NETWORK_ERROR"),
            (SummarizationError("blocked by safety", status_code=400), 400, "CONTENT_FILTERED"),
            (SummarizationError("bad argument", status_code=400), 400, "CLIENT_ERROR"),
            (SummarizationError("weird"), 500, "UNKNOWN_ERROR"),
        ],
    )
    def test_failures_are_classified(self, client, llm, error, status, error_type):
        def failing(prompt):
            raise error

        llm.handler = failing
        response = client.post("/summarize", files={"file": ("pets.txt", PETS_TEXT.encode(), "text/plain")})
        assert response.status_code == status
        assert response.json()["errorType"] == error_type

    def test_missing_api_key_is_reported(self, client, llm):
        def no_keys(prompt):
            raise CredentialsNotConfiguredError("No Gemini API key configured")

        llm.handler = no_keys
        response = client.post("/summarize", files={"file": ("pets.txt", PETS_TEXT.encode(), "text/plain")})
        assert response.status_code == 503
        assert response.json()["errorType"] == "NOT_CONFIGURED"
        assert response.json()["retryable"] is False


class TestDocumentsEndpoints:

    def test_list_get_delete(self, client):
        doc_id = upload(client).json()["doc_id"]

        docs = client.get("/documents").json()
        assert [d["doc_id"] for d in docs] == [doc_id]

        detail = client.get(f"/documents/{doc_id}").json()
        assert detail["filename"] == "pets.txt"
        assert detail["summary"] == "Combined summary about pets."

        assert client.delete(f"/documents/{doc_id}").status_code == 200
        assert client.get(f"/documents/{doc_id}").status_code == 404
        assert client.delete(f"/documents/{doc_id}").status_code == 404
