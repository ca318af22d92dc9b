"""
heartline.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for **infrastructure-only** settings (service name,
API port, feed page sizes).  Game balance never lives here: points, caps
and the level curve are in :mod:`heartline.engine.rules`.  Secrets and the
database URL come from the environment (``.env``).

Usage::

    from heartline.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.app_name)          # "Heartline"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object — infrastructure only.
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HeartlineConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    app_name: str
    api_port: int

    # Event feed pagination
    events_page_default: int = 20
    events_page_max: int = 100


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> HeartlineConfig:
    """Read *path* and return a :class:`HeartlineConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return HeartlineConfig(
        app_name=raw["app_name"],
        api_port=int(raw["api_port"]),
        events_page_default=int(raw.get("events_page_default", 20)),
        events_page_max=int(raw.get("events_page_max", 100)),
    )
