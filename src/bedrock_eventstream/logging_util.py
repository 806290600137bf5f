"""Logging utilities.

Key goal:
- The request layer (client, Lambda, CLI) logs each step so a failing decode
  is easy to locate. The decoder core itself never logs; it raises.
- Step lines carry the decode stage and the request id:
    [STEP 2 decode_frame] [req-1] decode 212 byte(s), strict=False
- Keep logging config minimal; allow integration into the caller's logging if needed.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from .errors import EventStreamError

_DEFAULT_LEVEL = os.environ.get("EVSTREAM_LOG_LEVEL", "INFO").upper()

def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    # If already configured elsewhere, do not attach handlers again.
    if logger.handlers:
        return logger

    logger.setLevel(_DEFAULT_LEVEL)

    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter("[%(levelname)s] %(name)s:%(lineno)d - %(message)s"))
    logger.addHandler(h)

    return logger

def _prefix(step: str, stage: str, request_id: Optional[str]) -> str:
    tag = f"[STEP {step} {stage}]"
    return f"{tag} [{request_id}]" if request_id else tag

def log_step(logger: logging.Logger, step: str, stage: str, msg: str, request_id: Optional[str] = None):
    logger.info("%s %s", _prefix(step, stage, request_id), msg)

def log_decode_failure(logger: logging.Logger, where: str, err: Exception, request_id: Optional[str] = None):
    """Typed decode failures are expected input problems (warning); anything else is a bug (exception)."""
    rid = f" [{request_id}]" if request_id else ""
    if isinstance(err, EventStreamError):
        logger.warning(
            "decode failed%s at %s: %s=%s stage=%s offset=%s",
            rid, where, type(err).__name__, err, err.stage, err.offset,
        )
    else:
        logger.exception("decode crashed%s at %s: %s", rid, where, err)
