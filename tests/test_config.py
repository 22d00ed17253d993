import json

import pytest

from scrapers.config import ScraperConfig, load_config


def test_defaults_without_file(monkeypatch):
    monkeypatch.delenv("SCRAPER_CONFIG", raising=False)
    config = load_config()
    assert config == ScraperConfig()
    assert config.response_timeout == 30000
    assert config.location_attempts == 2


def test_overrides_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "response_timeout": 5000,
        "product_card_selectors": ["div.card"],
    }))
    config = load_config(str(path))
    assert config.response_timeout == 5000
    assert config.product_card_selectors == ["div.card"]
    assert config.location_input_selectors == ScraperConfig().location_input_selectors


def test_override_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"location_attempts": 3}))
    monkeypatch.setenv("SCRAPER_CONFIG", str(path))
    assert load_config().location_attempts == 3


def test_unknown_keys_rejected(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"respones_timeout": 1}))
    with pytest.raises(ValueError, match="respones_timeout"):
        load_config(str(path))
