"""
Error taxonomy for the CENTAURO pipelines.

Only ConfigurationError is allowed to escape a run; the other errors are
recovered per game and reported through logging.
"""
from __future__ import annotations

from typing import List, Optional


class CentauroError(Exception):
    """Base class for pipeline errors."""


class ParseError(CentauroError):
    """A raw game record could not be parsed."""


class IllegalMoveError(CentauroError):
    """A move could not be applied to a position."""

    def __init__(self, position: str, move: str, reason: Optional[str] = None):
        self.position = position
        self.move = move
        self.reason = reason
        message = f"Illegal move {move!r} in position {position!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class EvaluatorFailure(CentauroError):
    """The position evaluator failed to produce an answer."""


class ConfigurationError(CentauroError):
    """Pipeline options are missing or invalid."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        if self.errors:
            message = message + "\n" + "\n".join(f"  - {err}" for err in self.errors)
        super().__init__(message)
