"""
tests/test_config_loader.py — YAML Configuration Loader
========================================================
"""

from __future__ import annotations

import pytest

from heartline.config import HeartlineConfig, load_config


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_loads_all_keys(tmp_path):
    path = _write(tmp_path, (
        "app_name: Heartline\n"
        "api_port: 8080\n"
        "events_page_default: 25\n"
        "events_page_max: 50\n"
    ))
    assert load_config(path) == HeartlineConfig(
        app_name="Heartline", api_port=8080, events_page_default=25, events_page_max=50,
    )


def test_page_sizes_default(tmp_path):
    cfg = load_config(_write(tmp_path, "app_name: Heartline\napi_port: '8000'\n"))
    assert cfg.api_port == 8000
    assert cfg.events_page_default == 20
    assert cfg.events_page_max == 100


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="config.yaml.example"):
        load_config(tmp_path / "nope.yaml")


def test_missing_required_key(tmp_path):
    with pytest.raises(KeyError):
        load_config(_write(tmp_path, "app_name: Heartline\n"))


def test_empty_file_is_missing_keys(tmp_path):
    with pytest.raises(KeyError):
        load_config(_write(tmp_path, ""))
