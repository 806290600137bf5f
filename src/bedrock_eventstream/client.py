"""DecodeClient: request-level orchestrator around the frame decoder."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from .answer import extract_all_answers
from .config import load_settings
from .errors import AnswerNotFound, EventStreamError
from .frame import decode_frame, iter_frames
from .input_spec import parse_input
from .logging_util import get_logger, log_decode_failure, log_step
from .types import DecoderSettings, Frame

logger = get_logger(__name__)

class DecodeClient:
    def __init__(self, project_root: Optional[Path] = None, settings: Optional[DecoderSettings] = None):
        # Auto-detect root:
        # <root>/src/bedrock_eventstream/client.py -> parents[2] == <root>
        self.project_root = project_root or Path(__file__).resolve().parents[2]
        self.settings = settings or load_settings(self.project_root)

    def run(self, req: Dict[str, Any], request_id: Optional[str] = None) -> Dict[str, Any]:
        meta: Dict[str, Any] = {"request_id": request_id, "steps": {}, "where": None}
        out: Dict[str, Any] = {"frames": None, "answer": None, "answers": None, "error": None, "meta": meta}
        t0 = time.time()
        where = "parse_input"

        try:
            log_step(logger, "1", where, "parse input", request_id)
            spec = parse_input(req, project_root=self.project_root, settings=self.settings)
            meta["steps"]["parse_input_ms"] = int((time.time() - t0) * 1000)
            meta["source"] = spec.source
            meta["strict"] = spec.strict

            where = "decode_frame"
            log_step(logger, "2", where, f"decode {len(spec.frame_bytes)} byte(s), strict={spec.strict}", request_id)
            t_decode = time.time()
            if spec.stream:
                frames = list(iter_frames(spec.frame_bytes, strict=spec.strict))
            else:
                frames = [decode_frame(spec.frame_bytes, strict=spec.strict)]
            meta["steps"]["decode_ms"] = int((time.time() - t_decode) * 1000)
            out["frames"] = [self.frame_view(f) for f in frames]

            if spec.answers == "none":
                log_step(logger, "3", "extract_answer", "skipped (answers=none)", request_id)
            else:
                where = "extract_answer"
                log_step(logger, "3", where, f"extract <{spec.answer_tag}> segments", request_id)
                segments = self._last_answers(frames, spec.answer_tag)
                out["answer"] = segments[-1]
                if spec.answers == "all":
                    out["answers"] = segments

        except EventStreamError as e:
            log_decode_failure(logger, where, e, request_id)
            meta["where"] = where
            out["error"] = {"type": type(e).__name__, "stage": e.stage, "offset": e.offset, "message": str(e)}

        except Exception as e:
            log_decode_failure(logger, where, e, request_id)
            meta["where"] = where
            out["error"] = {"type": type(e).__name__, "stage": None, "offset": None, "message": str(e)}

        meta["steps"]["total_ms"] = int((time.time() - t0) * 1000)
        return out

    @staticmethod
    def _last_answers(frames: List[Frame], tag: str) -> List[str]:
        # Latest frame that carries an answer wins; earlier frames are only a fallback.
        last_error: Optional[AnswerNotFound] = None
        for frame in reversed(frames):
            try:
                return extract_all_answers(frame.payload, tag)
            except AnswerNotFound as e:
                last_error = e
        raise last_error or AnswerNotFound("no frames decoded")

    @staticmethod
    def frame_view(frame: Frame) -> Dict[str, Any]:
        return {
            "total_length": frame.total_length,
            "headers_length": frame.headers_length,
            "prelude_checksum": frame.prelude_checksum,
            "message_checksum": frame.message_checksum,
            "message_type": frame.message_type,
            "event_type": frame.event_type,
            "headers": [
                {"name": h.name, "type": h.value_type, "value": h.value}
                for h in frame.headers
            ],
            "payload": frame.payload,
        }
