"""
PGN parsing via python-chess.
"""
from __future__ import annotations

import io
from typing import List, Protocol

import chess
import chess.pgn

from ..errors import ParseError
from ..models import GameRecord


class GameParser(Protocol):
    def parse(self, raw_text: str, index: int = 0) -> GameRecord:
        """Return the parsed game or raise ParseError."""


class PgnParser:
    """Strict PGN parser: any move error rejects the whole game."""

    def parse(self, raw_text: str, index: int = 0) -> GameRecord:
        if not raw_text or not raw_text.strip():
            raise ParseError("Empty PGN text")
        try:
            game = chess.pgn.read_game(io.StringIO(raw_text))
        except (ValueError, KeyError) as exc:
            raise ParseError(f"Unreadable PGN: {exc}") from exc
        if game is None:
            raise ParseError("No game found in PGN text")
        if game.errors:
            raise ParseError(f"Invalid PGN: {game.errors[0]}")

        try:
            board = game.board()
        except ValueError as exc:
            raise ParseError(f"Invalid start position: {exc}") from exc
        start = board.fen()

        sans: List[str] = []
        for move in game.mainline_moves():
            sans.append(board.san(move))
            board.push(move)
        return GameRecord(headers=dict(game.headers), moves=tuple(sans), index=index, start_position=start)


def split_pgn(text: str) -> List[str]:
    """Split a multi-game PGN document into one raw text per game."""
    stream = io.StringIO(text)
    offsets: List[int] = []
    while True:
        offset = stream.tell()
        headers = chess.pgn.read_headers(stream)
        if headers is None:
            break
        offsets.append(offset)
    offsets.append(len(text))
    chunks = [text[start:end].strip() for start, end in zip(offsets, offsets[1:])]
    return [chunk for chunk in chunks if chunk]


__all__ = ["GameParser", "PgnParser", "split_pgn"]
