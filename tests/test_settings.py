"""Tests for configuration management."""

from config.settings import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("MAGIC", "MIME_ALLOWED_TYPES", "MIME_ENABLE_HEADER_CHECK", "MIME_DISABLE_MAGIC_FILE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.MAGIC is None
    assert settings.allowed_types == []
    assert settings.MIME_ENABLE_HEADER_CHECK is False
    assert settings.MIME_DISABLE_MAGIC_FILE is False
    assert settings.MAX_UPLOAD_SIZE == 50 * 1024 * 1024


def test_from_env_vars(monkeypatch):
    monkeypatch.setenv("MIME_ALLOWED_TYPES", "image/png, ,application/pdf")
    monkeypatch.setenv("MIME_ENABLE_HEADER_CHECK", "true")
    monkeypatch.setenv("MAX_UPLOAD_SIZE", "1024")

    settings = Settings()

    assert settings.allowed_types == ["image/png", "application/pdf"]
    assert settings.MIME_ENABLE_HEADER_CHECK is True
    assert settings.MAX_UPLOAD_SIZE == 1024


def test_env_names_are_case_sensitive(monkeypatch):
    monkeypatch.delenv("MAGIC", raising=False)
    monkeypatch.setenv("magic", "/tmp/lowercase.mgc")

    assert Settings().MAGIC is None


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
