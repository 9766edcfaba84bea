"""
Blunder detection over an evaluation trace and punishment-line construction.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..engine.protocol import PositionEvaluator
from ..errors import IllegalMoveError
from ..models import BlunderEvent, PunishmentLine
from ..rules import ChessRules, RulesEngine

module_logger = logging.getLogger(__name__)


class BlunderDetector:
    """
    Find the first evaluation drop of at least `threshold`.

    The first qualifying drop wins even if a larger one follows.
    """

    def __init__(self, threshold: float):
        self.threshold = abs(threshold)

    def detect(self, evaluations: Sequence[float]) -> Optional[BlunderEvent]:
        if len(evaluations) < 2:
            return None
        for index in range(1, len(evaluations)):
            delta = evaluations[index] - evaluations[index - 1]
            if delta <= -self.threshold:
                return BlunderEvent(index=index, delta=delta)
        return None


def detect_blunder(evaluations: Sequence[float], threshold: float) -> Optional[BlunderEvent]:
    return BlunderDetector(threshold).detect(evaluations)


class PunishmentBuilder:
    """Follow the evaluator's recommendations from a position, one ply at a time."""

    def __init__(self, rules: Optional[RulesEngine] = None):
        self.rules = rules or ChessRules()

    async def build(
        self,
        evaluator: PositionEvaluator,
        start_position: str,
        *,
        movetime_ms: int,
        max_branch_length: int,
        game_index: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> PunishmentLine:
        log = logger or module_logger
        game = "?" if game_index is None else game_index
        moves: List[str] = []
        positions: List[str] = [start_position]
        current = start_position

        for ply in range(max(0, max_branch_length)):
            try:
                evaluation = await evaluator.analyze(current, movetime_ms=movetime_ms)
            except Exception as exc:
                log.warning("Game %s: evaluator failed at punishment ply %d: %s", game, ply + 1, exc)
                break
            if not evaluation.recommended_move:
                break
            try:
                san, current = self.rules.play(current, evaluation.recommended_move)
            except IllegalMoveError as exc:
                log.warning(
                    "Game %s: evaluator recommended an illegal move at punishment ply %d: %s", game, ply + 1, exc
                )
                break
            moves.append(san)
            positions.append(current)

        return PunishmentLine(moves=tuple(moves), positions=tuple(positions))


__all__ = ["BlunderDetector", "PunishmentBuilder", "detect_blunder"]
