import pytest

from metadata_embedder.config import (
    DEFAULT_IPTC_CHARSET,
    DEFAULT_MAX_WORKERS,
    get_settings,
)

ENV_VARS = ("EMBED_MAX_WORKERS", "EMBED_IPTC_CHARSET", "EMBED_LOG_LEVEL", "EMBED_LOG_FILE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = get_settings()

    assert settings.max_workers == DEFAULT_MAX_WORKERS
    assert settings.iptc_charset == DEFAULT_IPTC_CHARSET
    assert settings.log_level == "INFO"
    assert settings.log_file is None


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("EMBED_MAX_WORKERS", "8")
    monkeypatch.setenv("EMBED_IPTC_CHARSET", "iso8859_1")
    monkeypatch.setenv("EMBED_LOG_LEVEL", "debug")
    monkeypatch.setenv("EMBED_LOG_FILE", "embed.log")

    settings = get_settings()

    assert settings.max_workers == 8
    assert settings.iptc_charset == "iso8859_1"
    assert settings.log_level == "DEBUG"
    assert settings.log_file == "embed.log"


@pytest.mark.parametrize("value", ["four", "0", "-2"])
def test_invalid_worker_count(monkeypatch, value):
    monkeypatch.setenv("EMBED_MAX_WORKERS", value)

    with pytest.raises(ValueError, match="EMBED_MAX_WORKERS"):
        get_settings()
