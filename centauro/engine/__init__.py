"""
Position evaluator abstractions for the CENTAURO pipelines.
"""

from .heuristic import HeuristicEvaluator
from .http import HttpEvaluator
from .protocol import ManagedEvaluator, PositionEvaluator
from .stockfish import StockfishEvaluator

__all__ = [
    "PositionEvaluator",
    "ManagedEvaluator",
    "StockfishEvaluator",
    "HttpEvaluator",
    "HeuristicEvaluator",
]
