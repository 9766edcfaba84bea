"""
Dataclass models shared across the CENTAURO pipelines.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import chess

STANDARD_START = chess.STARTING_FEN


@dataclass(frozen=True)
class RawGame:
    """Unparsed game as handed to the pipelines."""

    pgn: str
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GameRecord:
    """
    Parsed game: headers, the SAN move list and the position the moves
    were read from (the FEN header when present, else the standard start).
    """

    headers: Mapping[str, str]
    moves: Tuple[str, ...]
    index: int = 0
    start_position: str = STANDARD_START

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "moves", tuple(self.moves))

    @property
    def starts_from_standard_position(self) -> bool:
        return self.start_position == STANDARD_START



@dataclass
class MoveEdge:
    count: int
    child: int


@dataclass
class MoveTreeNode:
    """Node in the move-frequency arena; children point at arena indices."""

    position_id: str
    total_visits: int = 0
    children: Dict[str, MoveEdge] = field(default_factory=dict)

    def child_count_sum(self) -> int:
        return sum(edge.count for edge in self.children.values())


@dataclass(frozen=True)
class CandidateLine:
    moves: Tuple[str, ...]
    positions: Tuple[str, ...]
    step_frequencies: Tuple[float, ...]

    @property
    def mean_frequency(self) -> float:
        if not self.step_frequencies:
            return 0.0
        return sum(self.step_frequencies) / len(self.step_frequencies)


@dataclass(frozen=True)
class EvaluationTrace:
    positions: Tuple[str, ...]
    evaluations: Tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.positions) != len(self.evaluations):
            raise ValueError("EvaluationTrace positions and evaluations differ in length.")

    def oriented(self, perspective: str) -> "EvaluationTrace":
        """Return the trace seen from `perspective` ("white" or "black")."""
        if perspective == "black":
            return EvaluationTrace(self.positions, tuple(-value for value in self.evaluations))
        return self


@dataclass(frozen=True)
class BlunderEvent:
    index: int
    delta: float


@dataclass(frozen=True)
class PunishmentLine:
    moves: Tuple[str, ...]
    positions: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.moves)


@dataclass(frozen=True)
class Evaluation:
    """Evaluator answer: white-positive centipawns plus an optional UCI move."""

    value: float
    recommended_move: Optional[str] = None


class LessonKind(str, Enum):
    THEORY = "Theory"
    PUNISHMENT = "Punishment"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


@dataclass(frozen=True)
class LessonMove:
    id: str
    move: str
    position: str


@dataclass(frozen=True)
class LessonContent:
    start_position: str
    context: str
    explanation: str
    move_sequence: Tuple[LessonMove, ...] = ()
    correct_move: Optional[str] = None
    hints: Tuple[str, ...] = ()
    success_feedback: str = ""
    failure_feedback: str = ""


@dataclass(frozen=True)
class LessonStats:
    games_processed: int
    mean_frequency: Optional[float] = None
    eval_drop: Optional[float] = None
    blunder_ply: Optional[int] = None
    blunder_move: Optional[str] = None


@dataclass(frozen=True)
class Lesson:
    """Generated lesson handed to the downstream mapper."""

    title: str
    description: str
    kind: LessonKind
    difficulty: Difficulty
    content: LessonContent
    stats: LessonStats
    opening_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        content = self.content
        stats = {
            key: value
            for key, value in (
                ("games_processed", self.stats.games_processed),
                ("mean_frequency", self.stats.mean_frequency),
                ("eval_drop", self.stats.eval_drop),
                ("blunder_ply", self.stats.blunder_ply),
                ("blunder_move", self.stats.blunder_move),
            )
            if value is not None
        }
        payload: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "kind": self.kind.value,
            "difficulty": self.difficulty.value,
            "content": {
                "start_position": content.start_position,
                "context": content.context,
                "move_sequence": [
                    {"id": step.id, "move": step.move, "position": step.position}
                    for step in content.move_sequence
                ],
                "explanation": content.explanation,
                "hints": list(content.hints),
                "success_feedback": content.success_feedback,
                "failure_feedback": content.failure_feedback,
            },
            "stats": stats,
        }
        if content.correct_move is not None:
            payload["content"]["correct_move"] = content.correct_move
        if self.opening_id is not None:
            payload["opening_id"] = self.opening_id
        return payload


__all__ = [
    "STANDARD_START",
    "RawGame",
    "GameRecord",
    "MoveEdge",
    "MoveTreeNode",
    "CandidateLine",
    "EvaluationTrace",
    "BlunderEvent",
    "PunishmentLine",
    "Evaluation",
    "LessonKind",
    "Difficulty",
    "LessonMove",
    "LessonContent",
    "LessonStats",
    "Lesson",
]
