"""Decoder settings.

Design:
- Settings live in src/configs/decoder.yaml (optional).
- Missing or unreadable file -> defaults (checksums unverified, last answer, tag "answer").
- Env vars override the file; per-request fields override both.

decoder.yaml supports:
  strict_checksum: false
  answer_tag: answer
  extract_answer: last   # last | all | none
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

from .logging_util import get_logger
from .types import DecoderSettings

logger = get_logger(__name__)

ANSWER_MODES = ("last", "all", "none")

def _load_yaml(path: Path) -> Dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except Exception as e:
        logger.error("Failed to load YAML: %s (%s)", path, e)
        return {}
    if not isinstance(data, dict):
        logger.error("Ignoring %s: top level must be a mapping, got %s", path, type(data).__name__)
        return {}
    return data

def to_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in ("1", "true", "y", "yes", "on"):
        return True
    if s in ("0", "false", "n", "no", "off"):
        return False
    return default

def normalize_answer_mode(v: Any, default: str = "last") -> str:
    s = (str(v) if v is not None else "").strip().lower()
    return s if s in ANSWER_MODES else default

def settings_path(project_root: Path) -> Path:
    return project_root / "src" / "configs" / "decoder.yaml"

def load_settings(project_root: Path) -> DecoderSettings:
    raw = _load_yaml(settings_path(project_root))
    defaults = DecoderSettings()

    strict = to_bool(raw.get("strict_checksum"), defaults.strict_checksum)
    tag = str(raw.get("answer_tag") or "").strip() or defaults.answer_tag
    mode = normalize_answer_mode(raw.get("extract_answer"), defaults.extract_answer)

    env_strict = os.environ.get("EVSTREAM_STRICT_CHECKSUM")
    if env_strict is not None:
        strict = to_bool(env_strict, strict)
    env_tag = (os.environ.get("EVSTREAM_ANSWER_TAG") or "").strip()
    if env_tag:
        tag = env_tag

    settings = DecoderSettings(strict_checksum=strict, answer_tag=tag, extract_answer=mode)  # type: ignore
    logger.debug("Loaded settings: %s", settings)
    return settings
