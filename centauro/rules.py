"""
Rules adapter: move application and position identity via python-chess.
"""
from __future__ import annotations

from typing import Protocol, Tuple

import chess

from .errors import IllegalMoveError


class RulesEngine(Protocol):
    """Protocol the pipelines use for every move application."""

    def initial_position(self) -> str:
        """Return the canonical standard starting position."""

    def apply(self, position: str, move: str) -> str:
        """Return the position after `move`, or raise IllegalMoveError."""

    def play(self, position: str, move: str) -> Tuple[str, str]:
        """Return `(san, position)` after `move`, or raise IllegalMoveError."""


class ChessRules:
    """RulesEngine backed by python-chess; positions are FEN strings."""

    def initial_position(self) -> str:
        return chess.STARTING_FEN

    def apply(self, position: str, move: str) -> str:
        return self.play(position, move)[1]

    def play(self, position: str, move: str) -> Tuple[str, str]:
        board = self._load(position, move)
        parsed = self._parse_move(board, move)
        san = board.san(parsed)
        board.push(parsed)
        return san, board.fen()

    @staticmethod
    def _load(position: str, move: str) -> chess.Board:
        try:
            return chess.Board(position)
        except ValueError as exc:
            raise IllegalMoveError(position, move, f"invalid position ({exc})") from exc

    @staticmethod
    def _parse_move(board: chess.Board, move: str) -> chess.Move:
        try:
            parsed = board.parse_san(move)
        except ValueError:
            pass
        else:
            if not parsed:
                raise IllegalMoveError(board.fen(), move, "null move")
            return parsed
        try:
            parsed = chess.Move.from_uci(move)
        except ValueError as exc:
            raise IllegalMoveError(board.fen(), move, "unrecognised notation") from exc
        if not board.is_legal(parsed):
            raise IllegalMoveError(board.fen(), move, "not legal in this position")
        return parsed


__all__ = ["RulesEngine", "ChessRules"]
