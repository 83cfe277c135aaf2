"""Tests for settings loading."""
from docchat.config import Settings


class TestGeminiKeys:

    def test_plain_environment_variables(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "primary")
        monkeypatch.setenv("GEMINI_API_KEY_BACKUP", "backup")

        settings = Settings(_env_file=None)
        assert settings.gemini.api_keys == ["primary", "backup"]

    def test_read_from_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY_BACKUP", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=from-dotenv\n")

        settings = Settings(_env_file=str(env_file))
        assert settings.gemini.api_keys == ["from-dotenv"]

    def test_nested_variable_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "plain")
        monkeypatch.setenv("DOCCHAT_GEMINI__API_KEY", "nested")

        settings = Settings(_env_file=None)
        assert settings.gemini.api_key == "nested"

    def test_no_keys(self, monkeypatch):
        for name in ("GEMINI_API_KEY", "GEMINI_API_KEY_BACKUP", "DOCCHAT_GEMINI__API_KEY"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)
        assert settings.gemini.api_keys == []


class TestDocumentSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DOCCHAT_DOCUMENT__MAX_FILE_SIZE", raising=False)
        settings = Settings(_env_file=None)
        assert settings.document.max_file_size == 10 * 1024 * 1024
        assert (settings.document.chunk_size, settings.document.chunk_overlap) == (2500, 200)

    def test_nested_override(self, monkeypatch):
        monkeypatch.setenv("DOCCHAT_DOCUMENT__MAX_FILE_SIZE", "1024")
        assert Settings(_env_file=None).document.max_file_size == 1024
