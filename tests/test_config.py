import pytest

from datafetch.config import FetchConfig, load_config


def test_load_config_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("base_url: https://app.example.com", encoding="utf-8")

    cfg = load_config(path)

    assert isinstance(cfg, FetchConfig)
    assert cfg.base_url == "https://app.example.com"
    assert cfg.default_ttl_sec == 300
    assert cfg.credentials == "include"


def test_env_overrides(monkeypatch, tmp_path):
    source = tmp_path / "config.yml"
    source.write_text("default_ttl_sec: 60", encoding="utf-8")

    monkeypatch.setenv("DATAFETCH_DEFAULT_TTL_SEC", "12.5")
    monkeypatch.setenv("DATAFETCH_CREDENTIALS", "omit")
    monkeypatch.setenv("DATAFETCH_LOG_LEVEL", "debug")

    cfg = load_config(source)

    assert cfg.default_ttl_sec == 12.5
    assert cfg.credentials == "omit"
    assert cfg.log_level == "DEBUG"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


def test_rejects_unknown_credentials(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("credentials: always", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_shipped_defaults_load():
    from pathlib import Path

    cfg = load_config(Path(__file__).parent.parent / "config" / "datafetch.defaults.yml")

    assert cfg.request_timeout_sec == 30
