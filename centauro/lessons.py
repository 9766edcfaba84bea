"""
Lesson synthesis from candidate lines and punishment lines.
"""
from __future__ import annotations

from typing import Optional, Sequence

from .models import (
    BlunderEvent,
    CandidateLine,
    Difficulty,
    Lesson,
    LessonContent,
    LessonKind,
    LessonMove,
    LessonStats,
    PunishmentLine,
)

THEORY_DESCRIPTION = "Built from move frequencies in strong players' games"
THEORY_CONTEXT = "The most frequently played theoretical sequence in this opening"
THEORY_SUCCESS = "You followed the theoretical line correctly."
THEORY_FAILURE = "Compare your moves with the main line and adjust."

PUNISHMENT_TITLE = "Punishing the critical mistake"
PUNISHMENT_DESCRIPTION = "A blunder and the punishing sequence recommended by the engine"
PUNISHMENT_HINTS = ("Look for forcing captures and direct threats against the king.",)
PUNISHMENT_SUCCESS = "Correct sequence, played with precision."
PUNISHMENT_FAILURE = "Review the tactical theme and try again."


def generate_explanation(position: str, moves: Sequence[str]) -> str:
    return (
        f"In this position ({position}), the sequence {' -> '.join(moves)} shows the central idea: "
        "control of critical squares, piece improvement and exploitation of weaknesses."
    )


def theory_lesson(
    line: CandidateLine,
    number: int,
    *,
    games_processed: int,
    opening_id: Optional[str] = None,
) -> Lesson:
    """Theory lesson for the `number`-th selected line (1-based)."""
    start = line.positions[0]
    sequence = tuple(
        LessonMove(id=f"m{number}-{k + 1}", move=move, position=line.positions[k + 1])
        for k, move in enumerate(line.moves)
    )
    return Lesson(
        title=f"Main Line {number}",
        description=THEORY_DESCRIPTION,
        kind=LessonKind.THEORY,
        difficulty=Difficulty.INTERMEDIATE,
        content=LessonContent(
            start_position=start,
            context=THEORY_CONTEXT,
            move_sequence=sequence,
            explanation=generate_explanation(start, line.moves),
            success_feedback=THEORY_SUCCESS,
            failure_feedback=THEORY_FAILURE,
        ),
        stats=LessonStats(games_processed=games_processed, mean_frequency=line.mean_frequency),
        opening_id=opening_id,
    )


def punishment_lesson(
    line: PunishmentLine,
    blunder: BlunderEvent,
    game_number: int,
    *,
    blunder_move: Optional[str] = None,
    opening_id: Optional[str] = None,
) -> Lesson:
    """Punishment lesson for the `game_number`-th input game (1-based)."""
    start = line.positions[0]
    sequence = tuple(
        LessonMove(id=f"p{game_number}-{k + 1}", move=move, position=line.positions[k + 1])
        for k, move in enumerate(line.moves)
    )
    context = "The position after the mistake allows a precise reply"
    if blunder_move:
        context = f"After {blunder_move}, the position allows a precise reply"
    return Lesson(
        title=PUNISHMENT_TITLE,
        description=PUNISHMENT_DESCRIPTION,
        kind=LessonKind.PUNISHMENT,
        difficulty=Difficulty.INTERMEDIATE,
        content=LessonContent(
            start_position=start,
            context=context,
            move_sequence=sequence,
            correct_move=line.moves[0],
            explanation=generate_explanation(start, line.moves),
            hints=PUNISHMENT_HINTS,
            success_feedback=PUNISHMENT_SUCCESS,
            failure_feedback=PUNISHMENT_FAILURE,
        ),
        stats=LessonStats(
            games_processed=1,
            eval_drop=blunder.delta,
            blunder_ply=blunder.index,
            blunder_move=blunder_move,
        ),
        opening_id=opening_id,
    )


__all__ = ["generate_explanation", "theory_lesson", "punishment_lesson"]
