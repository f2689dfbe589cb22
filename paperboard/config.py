"""Process-wide board configuration."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

_ENV_PREFIX = "PAPERBOARD_"


@dataclass
class BoardConfig:
    """Settings selected once at startup."""

    root_page_id: str = "page:page"
    storage_url: str = "memory://"
    key_prefix: str = "saas_"
    autosave_interval: float = 30.0
    fit_padding: float = 50.0
    fit_animation_ms: int = 500
    min_zoom: float = 0.1
    max_zoom: float = 8.0
    embedded: bool = False
    default_project_id: str = "default-1"
    default_project_name: str = "Office Renovation"
    fallback_project_name: str = "Mon Projet"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BoardConfig":
        """Build a config from ``PAPERBOARD_<FIELD>`` environment variables."""

        env = os.environ if environ is None else environ
        config = cls()
        for spec in fields(cls):
            raw = env.get(_ENV_PREFIX + spec.name.upper())
            if raw is None:
                continue
            current = getattr(config, spec.name)
            if isinstance(current, bool):
                value: object = raw.strip().lower() in ("1", "true", "yes", "on")
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            else:
                value = raw
            setattr(config, spec.name, value)
        return config


_BOARD_CONFIG = BoardConfig()


def get_board_config() -> BoardConfig:
    return copy.deepcopy(_BOARD_CONFIG)


def set_board_config(config: BoardConfig) -> None:
    global _BOARD_CONFIG
    _BOARD_CONFIG = copy.deepcopy(config)


__all__ = ["BoardConfig", "get_board_config", "set_board_config"]
