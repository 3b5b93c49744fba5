"""Shared fixtures: a fake libmagic backend and sample files."""

import pytest

import services.mime_type_validator as validator_module
from config.settings import get_settings

from tests.testing_utils import PDF_BYTES, PNG_BYTES, FakeMagicBackend


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_magic(monkeypatch):
    backend = FakeMagicBackend()
    monkeypatch.setattr(validator_module, "is_magic_available", lambda: True)
    monkeypatch.setattr(validator_module, "open_magic", backend.open)
    monkeypatch.setattr(validator_module, "load_magic_file", backend.load)
    monkeypatch.setattr(validator_module, "environment_magic_file", lambda: None)
    monkeypatch.setattr(validator_module, "DEFAULT_MAGIC_FILES", ())
    return backend


@pytest.fixture
def no_magic(monkeypatch):
    monkeypatch.setattr(validator_module, "is_magic_available", lambda: False)
    monkeypatch.setattr(validator_module, "environment_magic_file", lambda: None)


@pytest.fixture
def png_file(tmp_path):
    path = tmp_path / "picture.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "document.pdf"
    path.write_bytes(PDF_BYTES)
    return path


@pytest.fixture
def custom_magic_file(tmp_path):
    path = tmp_path / "custom.mgc"
    path.write_bytes(b"0 string CUSTOM custom data\n")
    return path
