"""
CENTAURO: theory and punishment lesson generation from chess game collections.
"""

from .analytics import BlunderDetector, MainLineSelector, MoveFrequencyTree, PunishmentBuilder
from .concurrency import BoundedConcurrencyExecutor
from .config import CentauroOptions, PunishmentOptions, TheoryOptions
from .core import CentauroCore
from .errors import CentauroError, ConfigurationError, EvaluatorFailure, IllegalMoveError, ParseError
from .models import Evaluation, Lesson, LessonKind, RawGame

__all__ = [
    "CentauroCore",
    "CentauroOptions",
    "TheoryOptions",
    "PunishmentOptions",
    "BoundedConcurrencyExecutor",
    "MoveFrequencyTree",
    "MainLineSelector",
    "BlunderDetector",
    "PunishmentBuilder",
    "Evaluation",
    "Lesson",
    "LessonKind",
    "RawGame",
    "CentauroError",
    "ConfigurationError",
    "EvaluatorFailure",
    "IllegalMoveError",
    "ParseError",
]
