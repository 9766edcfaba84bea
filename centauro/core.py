"""
CENTAURO orchestration: theory and tactics pipelines over raw game batches.

Both pipelines share the ingestion stage (bounded-concurrency PGN parsing) and
the failure policy: a game that cannot be parsed, replayed or evaluated is
logged and yields no lesson, while the rest of the batch carries on. Only a
ConfigurationError aborts a run, and it is raised before any game is touched.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .analytics.blunder import BlunderDetector, PunishmentBuilder
from .analytics.frequency import MainLineSelector, MoveFrequencyTree
from .concurrency import BoundedConcurrencyExecutor
from .config import CentauroOptions, resolve_options
from .engine.protocol import PositionEvaluator
from .errors import ConfigurationError, IllegalMoveError, ParseError
from .lessons import punishment_lesson, theory_lesson
from .models import EvaluationTrace, GameRecord, Lesson, RawGame
from .parsers.pgn import GameParser, PgnParser
from .rules import ChessRules, RulesEngine

GameInput = Union[RawGame, str, Mapping[str, Any]]
OptionsInput = Union[CentauroOptions, Mapping[str, Any], None]


def _raw_parts(game: GameInput) -> Tuple[str, Mapping[str, str]]:
    if isinstance(game, RawGame):
        return game.pgn, game.headers
    if isinstance(game, str):
        return game, {}
    if isinstance(game, Mapping):
        return game.get("pgn", ""), game.get("headers") or {}
    raise ParseError(f"Unsupported game input: {type(game).__name__}")


class CentauroCore:
    def __init__(
        self,
        evaluator: Optional[PositionEvaluator] = None,
        options: OptionsInput = None,
        *,
        rules: Optional[RulesEngine] = None,
        parser: Optional[GameParser] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.evaluator = evaluator
        self.options = options
        self.rules = rules or ChessRules()
        self.parser = parser or PgnParser()
        self.logger = logger or logging.getLogger(__name__)

    def _resolve(self, options: OptionsInput) -> CentauroOptions:
        return resolve_options(options if options is not None else self.options)

    async def _parse_all(self, games: Sequence[GameInput], opts: CentauroOptions) -> List[GameRecord]:
        async def parse_one(game: GameInput, index: int) -> Optional[GameRecord]:
            try:
                text, headers = _raw_parts(game)
                record = self.parser.parse(text, index)
            except ParseError as exc:
                self.logger.warning("Dropping unparseable game %d: %s", index, exc)
                return None
            if headers:
                record = replace(record, headers={**headers, **record.headers})
            return record

        executor = BoundedConcurrencyExecutor(opts.concurrency, label="game", logger=self.logger)
        parsed = await executor.run(games, parse_one)
        records = [record for record in parsed if record is not None]
        self.logger.info("Parsed %d of %d games", len(records), len(games))
        return records

    async def process_theory(self, games: Sequence[GameInput], options: OptionsInput = None) -> List[Lesson]:
        """Build theory lessons from the most frequent lines in `games`."""
        opts = self._resolve(options)
        records = await self._parse_all(games, opts)

        sequences = []
        for record in records:
            if not record.starts_from_standard_position:
                self.logger.info("Skipping game %d: non-standard start position", record.index)
                continue
            sequences.append((record.index, record.moves))

        tree = MoveFrequencyTree(self.rules.initial_position())
        for game_index, moves in sequences:
            tree.add_game(moves, self.rules, game_index=game_index, logger=self.logger)
        lines = MainLineSelector(opts.theory).select(tree)
        self.logger.info("Selected %d theory lines from %d games", len(lines), len(sequences))

        return [
            theory_lesson(line, number, games_processed=len(sequences), opening_id=opts.opening_id)
            for number, line in enumerate(lines, start=1)
        ]

    async def process_tactics(self, games: Sequence[GameInput], options: OptionsInput = None) -> List[Lesson]:
        """Build punishment lessons from the first blunder of each game."""
        opts = self._resolve(options)
        if self.evaluator is None:
            raise ConfigurationError("process_tactics requires a position evaluator")
        records = await self._parse_all(games, opts)

        async def tactics_one(record: GameRecord, _: int) -> Optional[Lesson]:
            try:
                return await self._tactics_for_game(record, opts)
            except Exception as exc:
                self.logger.warning("Game %d: tactics failed: %s", record.index, exc)
                return None

        executor = BoundedConcurrencyExecutor(opts.concurrency, label="game", logger=self.logger)
        results = await executor.run(records, tactics_one)
        lessons = [lesson for lesson in results if lesson is not None]
        self.logger.info("Generated %d punishment lessons from %d games", len(lessons), len(records))
        return lessons

    async def _tactics_for_game(self, record: GameRecord, opts: CentauroOptions) -> Optional[Lesson]:
        trace, played = await self.evaluation_trace(record, opts.punishment.movetime_ms)
        oriented = trace.oriented(opts.punishment.perspective)
        blunder = BlunderDetector(opts.punishment.eval_drop_threshold).detect(oriented.evaluations)
        if blunder is None:
            return None

        line = await PunishmentBuilder(self.rules).build(
            self.evaluator,
            trace.positions[blunder.index],
            movetime_ms=opts.punishment.movetime_ms,
            max_branch_length=opts.punishment.max_branch_length,
            game_index=record.index,
            logger=self.logger,
        )
        if not line.moves:
            self.logger.info("Game %d: no punishment line after ply %d", record.index, blunder.index)
            return None
        return punishment_lesson(
            line,
            blunder,
            record.index + 1,
            blunder_move=played[blunder.index - 1],
            opening_id=opts.opening_id,
        )

    async def evaluation_trace(self, record: GameRecord, movetime_ms: int) -> Tuple[EvaluationTrace, List[str]]:
        """
        Replay `record` move by move and evaluate every position, in order.

        Returns the trace (start position first) and the SAN of each replayed
        move. An illegal move truncates the trace; an evaluator failure reuses
        the previous value.
        """
        current = record.start_position
        positions = [current]
        evaluations = [await self._evaluate(current, 0.0, record.index, 0, movetime_ms)]
        played: List[str] = []

        for ply, move in enumerate(record.moves, start=1):
            try:
                san, current = self.rules.play(current, move)
            except IllegalMoveError as exc:
                self.logger.warning("Game %d: replay stopped at ply %d: %s", record.index, ply, exc)
                break
            played.append(san)
            positions.append(current)
            evaluations.append(await self._evaluate(current, evaluations[-1], record.index, ply, movetime_ms))

        return EvaluationTrace(tuple(positions), tuple(evaluations)), played

    async def _evaluate(self, position: str, previous: float, game_index: int, ply: int, movetime_ms: int) -> float:
        try:
            evaluation = await self.evaluator.analyze(position, movetime_ms=movetime_ms)
        except Exception as exc:
            self.logger.warning("Game %d: evaluator failed at ply %d, reusing previous value: %s", game_index, ply, exc)
            return previous
        return evaluation.value


__all__ = ["CentauroCore"]
