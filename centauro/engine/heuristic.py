"""
Dependency-free evaluator for demos and offline runs.

Recommends captures first, then moves into the centre, and scores a position
by material balance. It is not a chess engine and never claims to be.
"""
from __future__ import annotations

import chess

from ..errors import EvaluatorFailure
from ..models import Evaluation
from .protocol import ManagedEvaluator

PIECE_VALUES_CP = {
    chess.PAWN: 100,
    chess.KNIGHT: 300,
    chess.BISHOP: 300,
    chess.ROOK: 500,
    chess.QUEEN: 900,
    chess.KING: 0,
}

CENTER_SQUARES = (chess.D4, chess.E4, chess.D5, chess.E5)


def material_balance(board: chess.Board) -> int:
    score = 0
    for piece_type, value in PIECE_VALUES_CP.items():
        score += value * len(board.pieces(piece_type, chess.WHITE))
        score -= value * len(board.pieces(piece_type, chess.BLACK))
    return score


def _priority(board: chess.Board, move: chess.Move) -> int:
    if board.is_capture(move):
        return 2
    if move.to_square in CENTER_SQUARES:
        return 1
    return 0


class HeuristicEvaluator(ManagedEvaluator):
    async def analyze(self, position: str, *, movetime_ms: int) -> Evaluation:
        try:
            board = chess.Board(position)
        except ValueError as exc:
            raise EvaluatorFailure(f"Invalid position {position!r}: {exc}") from exc

        moves = list(board.legal_moves)
        if not moves:
            return Evaluation(value=float(material_balance(board)))
        best = sorted(moves, key=lambda move: -_priority(board, move))[0]
        return Evaluation(value=float(material_balance(board)), recommended_move=best.uci())


__all__ = ["HeuristicEvaluator", "material_balance"]
