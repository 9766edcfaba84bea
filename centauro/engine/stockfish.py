"""
Stockfish-backed evaluator using the asyncio API of python-chess.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import chess
import chess.engine

from ..config import DEFAULT_ENGINE_PATH
from ..errors import EvaluatorFailure
from ..models import Evaluation
from .protocol import ManagedEvaluator

logger = logging.getLogger(__name__)

MATE_SCORE = 10000

ENGINE_ERRORS = (chess.engine.EngineError, chess.engine.EngineTerminatedError, asyncio.TimeoutError)


class StockfishEvaluator(ManagedEvaluator):
    """
    Pool of UCI engine processes shared by concurrent analyses.

    Each `analyze` call borrows one idle process, so at most `pool_size`
    searches run at once regardless of how many games are in flight.
    """

    def __init__(
        self,
        engine_path: Optional[str] = None,
        *,
        pool_size: int = 1,
        threads: int = 1,
        hash_mb: int = 128,
        timeout_margin_s: float = 5.0,
    ):
        self.engine_path = engine_path or DEFAULT_ENGINE_PATH
        self.pool_size = max(1, pool_size)
        self.threads = threads
        self.hash_mb = hash_mb
        self.timeout_margin_s = timeout_margin_s
        self._engines: List[chess.engine.Protocol] = []
        self._idle: Optional[asyncio.Queue] = None
        self._init_lock = asyncio.Lock()

    async def init(self) -> None:
        async with self._init_lock:
            if self._idle is not None:
                return
            idle: asyncio.Queue = asyncio.Queue()
            for _ in range(self.pool_size):
                try:
                    _, engine = await chess.engine.popen_uci(self.engine_path)
                    await engine.configure({"Threads": self.threads, "Hash": self.hash_mb})
                except (OSError, *ENGINE_ERRORS) as exc:
                    await self._quit_all()
                    raise EvaluatorFailure(f"Failed to start engine {self.engine_path}: {exc}") from exc
                self._engines.append(engine)
                idle.put_nowait(engine)
            self._idle = idle
            logger.info("Started %d engine process(es): %s", self.pool_size, self.engine_path)

    async def dispose(self) -> None:
        async with self._init_lock:
            await self._quit_all()
            self._idle = None

    async def _quit_all(self) -> None:
        for engine in self._engines:
            try:
                await engine.quit()
            except ENGINE_ERRORS:
                pass
        if self._engines:
            logger.info("Engine processes stopped")
        self._engines = []

    async def analyze(self, position: str, *, movetime_ms: int) -> Evaluation:
        await self.init()
        try:
            board = chess.Board(position)
        except ValueError as exc:
            raise EvaluatorFailure(f"Invalid position {position!r}: {exc}") from exc

        idle = self._idle
        if idle is None:
            raise EvaluatorFailure("Engine pool has been disposed")
        limit_s = max(movetime_ms, 1) / 1000.0
        engine = await idle.get()
        try:
            info = await asyncio.wait_for(
                engine.analyse(board, chess.engine.Limit(time=limit_s)),
                timeout=limit_s + self.timeout_margin_s,
            )
        except ENGINE_ERRORS as exc:
            raise EvaluatorFailure(f"Engine analysis failed: {exc}") from exc
        finally:
            idle.put_nowait(engine)

        score = info.get("score")
        value = score.white().score(mate_score=MATE_SCORE) if score is not None else 0
        pv = info.get("pv") or []
        return Evaluation(value=float(value or 0), recommended_move=pv[0].uci() if pv else None)


__all__ = ["StockfishEvaluator", "MATE_SCORE"]
