"""
Game record parsers.
"""

from .pgn import GameParser, PgnParser, split_pgn

__all__ = ["GameParser", "PgnParser", "split_pgn"]
