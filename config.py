"""Plugin configuration.

Stored as JSON in the shape the game-server plugin has always used:

    {"Options": {"maxQuarries": 3}, "debug": false, "Version": "1.0.1"}
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("outpost-quarries.config")

VERSION = "1.0.1"
DEFAULT_MAX_QUARRIES = 3

CONFIG_DIR = os.environ.get("CONFIG_DIR", os.path.join(tempfile.gettempdir(), "outpost-quarries"))
CONFIG_PATH = os.environ.get("QUARRY_CONFIG", os.path.join(CONFIG_DIR, "outpost_quarries.json"))


@dataclass
class QuarryConfig:
    """Placement options."""
    max_quarries: int = DEFAULT_MAX_QUARRIES
    debug: bool = False
    keyword: str = "warehouse"
    version: str = VERSION


def config_to_dict(cfg: QuarryConfig) -> dict:
    return {
        "Options": {"maxQuarries": cfg.max_quarries, "keyword": cfg.keyword},
        "debug": cfg.debug,
        "Version": cfg.version,
    }


def dict_to_config(d: dict) -> QuarryConfig:
    if not isinstance(d, dict):
        raise ValueError("Config must be a JSON object")
    options = d.get("Options") or {}
    if not isinstance(options, dict):
        raise ValueError("Config \"Options\" must be a JSON object")
    try:
        max_quarries = int(options.get("maxQuarries") or DEFAULT_MAX_QUARRIES)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid maxQuarries: {e}") from e
    return QuarryConfig(
        max_quarries=max_quarries,
        debug=bool(d.get("debug", False)),
        keyword=options.get("keyword") or "warehouse",
    )


def save_config(cfg: QuarryConfig, path: Optional[str] = None) -> str:
    path = path or CONFIG_PATH
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config_to_dict(cfg), f, indent=2)
    return path


def load_config(path: Optional[str] = None) -> QuarryConfig:
    """Read the config file, filling defaults and stamping the current version.

    A missing file is created with defaults. An unset or zero maxQuarries
    falls back to the default of 3. The normalized config is written back.
    """
    path = path or CONFIG_PATH
    if os.path.exists(path):
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e
        cfg = dict_to_config(data)
    else:
        logger.info("Creating new config file.")
        cfg = QuarryConfig()

    cfg.version = VERSION
    save_config(cfg, path)
    return cfg
