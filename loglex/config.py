"""Configuration module: frozen dataclass loaded from environment variables."""

import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

EMIT_ORIG_MODES = ("", "single", "multi")
OUTPUT_FORMATS = ("json", "text")


@dataclass(frozen=True)
class Config:
    max_line_bytes: int = 20 * 1024 * 1024  # 20 MB
    max_depth: int = 100
    workers: int = 4
    progress_every: int = 0
    emit_orig: str = ""
    output_format: str = "json"
    dict_max_samples: int = 5
    formats_file: str | None = None

    def __post_init__(self):
        if self.emit_orig not in EMIT_ORIG_MODES:
            raise ValueError(f"emit_orig must be one of {EMIT_ORIG_MODES}, got {self.emit_orig!r}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")
        if self.max_line_bytes <= 0 or self.max_depth <= 0 or self.workers <= 0:
            raise ValueError("max_line_bytes, max_depth and workers must be positive")


def load_config() -> Config:
    """Build Config from environment variables with sensible defaults."""
    return Config(
        max_line_bytes=int(os.environ.get("LOGLEX_MAX_LINE_BYTES", Config.max_line_bytes)),
        max_depth=int(os.environ.get("LOGLEX_MAX_DEPTH", Config.max_depth)),
        workers=int(os.environ.get("LOGLEX_WORKERS", Config.workers)),
        progress_every=int(os.environ.get("LOGLEX_PROGRESS_EVERY", Config.progress_every)),
        emit_orig=os.environ.get("LOGLEX_EMIT_ORIG", Config.emit_orig).lower(),
        output_format=os.environ.get("LOGLEX_OUTPUT_FORMAT", Config.output_format).lower(),
        dict_max_samples=int(os.environ.get("LOGLEX_DICT_MAX_SAMPLES", Config.dict_max_samples)),
        formats_file=os.environ.get("LOGLEX_FORMATS_FILE") or None,
    )


def load_yaml_config(path: str | None) -> dict:
    """Load the formats YAML file. Returns empty dict if no path.

    Unlike optional rule files, a formats file that was asked for must exist,
    so FileNotFoundError propagates.
    """
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    logger.info("Loaded YAML config from %s", path)
    return data
