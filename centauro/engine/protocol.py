"""
Evaluator protocol definition for dependency-injected analyses.
"""
from __future__ import annotations

from typing import Protocol

from ..models import Evaluation


class PositionEvaluator(Protocol):
    """Protocol that concrete evaluator adapters must implement."""

    async def analyze(self, position: str, *, movetime_ms: int) -> Evaluation:
        """Return the white-positive evaluation and best move for a FEN."""


class ManagedEvaluator:
    """
    Base for evaluators that hold a long-lived resource.

    Subclasses override `init`/`dispose`; `async with` calls both.
    """

    async def init(self) -> None:
        return None

    async def dispose(self) -> None:
        return None

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()
