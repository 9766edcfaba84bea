"""
Evaluator that delegates to a remote engine worker over HTTP.

The worker accepts `{"fen", "movetime"}` and answers with the raw UCI output:
`{"info": ["info depth 12 ... score cp 34 ... pv e2e4 ...", ...],
"bestmove": "e2e4"}` (a `"bestmove e2e4"` line inside `info` also works).
"""
from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional

import requests

from ..errors import EvaluatorFailure
from ..models import Evaluation
from .protocol import ManagedEvaluator

MATE_SCORE = 10000


def _parse_uci_info(line: str) -> Optional[Dict[str, Any]]:
    parts = line.split()
    if "score" not in parts:
        return None
    try:
        score_idx = parts.index("score")
        score_type = parts[score_idx + 1]
        score_value = int(parts[score_idx + 2])
    except (ValueError, IndexError):
        return None

    if score_type == "mate":
        score_cp = MATE_SCORE - abs(score_value) if score_value > 0 else -MATE_SCORE + abs(score_value)
    else:
        score_cp = score_value

    pv = parts[parts.index("pv") + 1 :] if "pv" in parts else []
    multipv = 1
    if "multipv" in parts:
        try:
            multipv = int(parts[parts.index("multipv") + 1])
        except (ValueError, IndexError):
            return None
    return {"multipv": multipv, "score_cp": score_cp, "pv": pv}


def parse_worker_payload(payload: Dict[str, Any], white_to_move: bool) -> Evaluation:
    """Turn a worker response into a white-positive Evaluation."""
    best: Optional[Dict[str, Any]] = None
    bestmove = payload.get("bestmove")
    for line in payload.get("info", []):
        if not isinstance(line, str):
            continue
        if line.startswith("bestmove "):
            tokens = line.split()
            bestmove = bestmove or (tokens[1] if len(tokens) > 1 else None)
        elif line.startswith("info "):
            parsed = _parse_uci_info(line)
            # later lines are deeper; keep the last principal line
            if parsed and parsed["multipv"] == 1:
                best = parsed
    if best is None:
        raise EvaluatorFailure("Engine worker returned no score")

    # UCI scores are relative to the side to move
    value = best["score_cp"] if white_to_move else -best["score_cp"]
    if not bestmove and best["pv"]:
        bestmove = best["pv"][0]
    if bestmove in ("(none)", "0000"):
        bestmove = None
    return Evaluation(value=float(value), recommended_move=bestmove)


class HttpEvaluator(ManagedEvaluator):
    """POST positions to ENGINE_URL; requests runs in a worker thread."""

    def __init__(self, engine_url: Optional[str] = None, *, timeout_s: float = 10.0, token: Optional[str] = None):
        url = engine_url or os.getenv("ENGINE_URL", "")
        if not url:
            raise EvaluatorFailure("ENGINE_URL is required for HTTP engine mode.")
        self.engine_url = url
        self.timeout_s = timeout_s
        self.token = token or os.getenv("WORKER_API_TOKEN") or os.getenv("ENGINE_API_TOKEN")

    def _post_analyze(self, fen: str, movetime_ms: int) -> Dict[str, Any]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        resp = requests.post(
            self.engine_url,
            json={"fen": fen, "movetime": movetime_ms},
            timeout=self.timeout_s + movetime_ms / 1000.0,
            headers=headers,
        )
        resp.raise_for_status()
        return resp.json()

    async def analyze(self, position: str, *, movetime_ms: int) -> Evaluation:
        fields = position.split()
        if len(fields) < 2 or fields[1] not in ("w", "b"):
            raise EvaluatorFailure(f"Invalid position {position!r}")
        try:
            payload = await asyncio.to_thread(self._post_analyze, position, movetime_ms)
        except (requests.RequestException, ValueError) as exc:
            raise EvaluatorFailure(f"Engine worker request failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise EvaluatorFailure("Engine worker returned a non-object payload")
        return parse_worker_payload(payload, white_to_move=fields[1] == "w")


__all__ = ["HttpEvaluator", "parse_worker_payload"]
