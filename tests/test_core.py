"""
Pipeline tests for CentauroCore with a scripted evaluator.
"""
from __future__ import annotations

import asyncio
import logging
import unittest

from centauro.core import CentauroCore
from centauro.errors import ConfigurationError, ParseError
from centauro.models import GameRecord, LessonKind, RawGame
from centauro.parsers.pgn import PgnParser
from centauro.rules import ChessRules
from tests.fixtures.scripted_evaluator import ScriptedEvaluator, fen_after

OPTIONS = {
    "theory": {"min_frequency": 1.0, "max_depth": 8, "min_samples_per_node": 2},
    "punishment": {"eval_drop_threshold": 200, "movetime_ms": 20, "max_branch_length": 6},
    "concurrency": 4,
}

QUEEN_BLUNDER = "1. e4 d5 2. Qg4 Nf6 *"
SCHOLARS_MATE = "1. e4 e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7# 1-0"


def _options(**punishment) -> dict:
    return {**OPTIONS, "punishment": {**OPTIONS["punishment"], **punishment}}


class SpyParser(PgnParser):
    def __init__(self):
        self.calls = 0

    def parse(self, raw_text, index=0):
        self.calls += 1
        return super().parse(raw_text, index)


class ProcessTheoryTest(unittest.TestCase):
    def test_identical_games_give_one_lesson(self) -> None:
        core = CentauroCore(options=OPTIONS)
        lessons = asyncio.run(core.process_theory(["1. e4 e5 *", "1. e4 e5 *"]))

        self.assertEqual(1, len(lessons))
        lesson = lessons[0]
        self.assertEqual(LessonKind.THEORY, lesson.kind)
        self.assertEqual(["e4", "e5"], [step.move for step in lesson.content.move_sequence])
        self.assertEqual(["m1-1", "m1-2"], [step.id for step in lesson.content.move_sequence])
        self.assertEqual(fen_after("e4", "e5"), lesson.content.move_sequence[-1].position)
        self.assertEqual(2, lesson.stats.games_processed)
        self.assertAlmostEqual(1.0, lesson.stats.mean_frequency)
        self.assertIsNone(lesson.content.correct_move)

    def test_unparseable_games_are_dropped_and_logged(self) -> None:
        games = ["1. e4 e5 *", "1. e4 e5 2. Ke3 *", RawGame(pgn="1. e4 e5 *", headers={"Event": "X"})]
        core = CentauroCore(options=OPTIONS)
        with self.assertLogs("centauro.core", level=logging.WARNING) as logs:
            lessons = asyncio.run(core.process_theory(games))
        self.assertEqual(1, len(lessons))
        self.assertEqual(2, lessons[0].stats.games_processed)
        self.assertTrue(any("game 1" in line for line in logs.output))

    def test_non_standard_starts_are_skipped(self) -> None:
        setup = '[SetUp "1"]\n[FEN "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"]\n\n1. e4 Kd7 *'
        core = CentauroCore(options=OPTIONS)
        lessons = asyncio.run(core.process_theory(["1. e4 e5 *", "1. e4 e5 *", setup]))
        self.assertEqual(2, lessons[0].stats.games_processed)

    def test_fen_header_without_setup_tag_is_not_standard(self) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
        endgame = f'[SetUp "0"]\n[FEN "{fen}"]\n\n1. e4 Kd7 *'
        loose = {**OPTIONS, "theory": {"min_frequency": 0.0, "max_depth": 4, "min_samples_per_node": 1}}
        core = CentauroCore(ScriptedEvaluator(), loose)

        self.assertEqual([], asyncio.run(core.process_theory([endgame])))

        record = PgnParser().parse(endgame)
        trace, played = asyncio.run(core.evaluation_trace(record, 20))
        self.assertEqual(fen, trace.positions[0])
        self.assertEqual(["e4", "Kd7"], played)

    def test_invalid_options_abort_before_parsing(self) -> None:
        parser = SpyParser()
        core = CentauroCore(parser=parser)
        with self.assertRaises(ConfigurationError):
            asyncio.run(core.process_theory(["1. e4 e5 *"]))
        bad = {**OPTIONS, "theory": {"min_frequency": 2.0}}
        with self.assertRaises(ConfigurationError):
            asyncio.run(core.process_theory(["1. e4 e5 *"], bad))
        self.assertEqual(0, parser.calls)

    def test_call_options_override_constructor_options(self) -> None:
        core = CentauroCore(options=OPTIONS)
        loose = {**OPTIONS, "theory": {"min_frequency": 0.0, "max_depth": 1, "min_samples_per_node": 1}}
        lessons = asyncio.run(core.process_theory(["1. e4 e5 *", "1. d4 d5 *"], loose))
        self.assertEqual(["e4", "d4"], [lesson.content.move_sequence[0].move for lesson in lessons])
        self.assertEqual(["Main Line 1", "Main Line 2"], [lesson.title for lesson in lessons])


class ProcessTacticsTest(unittest.TestCase):
    def test_single_blunder_gives_one_move_punishment(self) -> None:
        blunder_fen = fen_after("e4", "d5", "Qg4")
        evaluator = ScriptedEvaluator({blunder_fen: (-900, "c8g4")})
        core = CentauroCore(evaluator, OPTIONS)

        lessons = asyncio.run(core.process_tactics([QUEEN_BLUNDER]))

        self.assertEqual(1, len(lessons))
        lesson = lessons[0]
        self.assertEqual(LessonKind.PUNISHMENT, lesson.kind)
        self.assertEqual(blunder_fen, lesson.content.start_position)
        self.assertEqual("Bxg4", lesson.content.correct_move)
        self.assertEqual(["Bxg4"], [step.move for step in lesson.content.move_sequence])
        self.assertEqual(-900, lesson.stats.eval_drop)
        self.assertEqual(3, lesson.stats.blunder_ply)
        self.assertEqual("Qg4", lesson.stats.blunder_move)
        self.assertEqual(1, lesson.stats.games_processed)

    def test_game_without_drop_gives_no_lesson(self) -> None:
        evaluator = ScriptedEvaluator({fen_after("e4", "d5", "Qg4"): (-150, "c8g4")})
        lessons = asyncio.run(CentauroCore(evaluator, OPTIONS).process_tactics([QUEEN_BLUNDER]))
        self.assertEqual([], lessons)

    def test_empty_punishment_gives_no_lesson(self) -> None:
        evaluator = ScriptedEvaluator({fen_after("e4", "d5", "Qg4"): (-900, None)})
        lessons = asyncio.run(CentauroCore(evaluator, OPTIONS).process_tactics([QUEEN_BLUNDER]))
        self.assertEqual([], lessons)

    def test_black_perspective_finds_black_blunders(self) -> None:
        blunder_fen = fen_after("e4", "e5", "Qh5", "Nc6", "Bc4", "Nf6")
        mated = fen_after("e4", "e5", "Qh5", "Nc6", "Bc4", "Nf6", "Qxf7#")
        evaluator = ScriptedEvaluator({blunder_fen: (10000, "h5f7"), mated: (10000, None)})

        white = asyncio.run(CentauroCore(evaluator, OPTIONS).process_tactics([SCHOLARS_MATE]))
        black = asyncio.run(CentauroCore(evaluator, _options(perspective="black")).process_tactics([SCHOLARS_MATE]))

        self.assertEqual([], white)
        self.assertEqual(1, len(black))
        self.assertEqual("Qxf7#", black[0].content.correct_move)
        self.assertEqual("Nf6", black[0].stats.blunder_move)
        self.assertEqual(-10000, black[0].stats.eval_drop)

    def test_lessons_follow_game_order_and_failures_are_isolated(self) -> None:
        blunder_fen = fen_after("e4", "d5", "Qg4")
        evaluator = ScriptedEvaluator({blunder_fen: (-900, "c8g4")}, delay_s=0.001)
        games = [QUEEN_BLUNDER, "not a game at all 1. Ke5", "1. d4 d5 *", QUEEN_BLUNDER]
        core = CentauroCore(evaluator, {**OPTIONS, "concurrency": 2})

        lessons = asyncio.run(core.process_tactics(games))

        self.assertEqual(["p1-1", "p4-1"], [lesson.content.move_sequence[0].id for lesson in lessons])
        self.assertLessEqual(evaluator.peak_in_flight, 2)

    def test_missing_evaluator_is_configuration_error(self) -> None:
        parser = SpyParser()
        with self.assertRaises(ConfigurationError):
            asyncio.run(CentauroCore(options=OPTIONS, parser=parser).process_tactics([QUEEN_BLUNDER]))
        self.assertEqual(0, parser.calls)


class EvaluationTraceTest(unittest.TestCase):
    def test_evaluator_failure_reuses_previous_value(self) -> None:
        start = fen_after()
        evaluator = ScriptedEvaluator(
            {start: (30, None), fen_after("e4", "e5"): (-40, None)},
            failing=[fen_after("e4")],
        )
        record = GameRecord(headers={}, moves=("e4", "e5"))
        trace, played = asyncio.run(CentauroCore(evaluator, OPTIONS).evaluation_trace(record, 20))
        self.assertEqual((30.0, 30.0, -40.0), trace.evaluations)
        self.assertEqual(["e4", "e5"], played)

    def test_start_position_failure_defaults_to_zero(self) -> None:
        evaluator = ScriptedEvaluator(failing=[fen_after()])
        record = GameRecord(headers={}, moves=())
        trace, _ = asyncio.run(CentauroCore(evaluator, OPTIONS).evaluation_trace(record, 20))
        self.assertEqual((0.0,), trace.evaluations)

    def test_illegal_move_truncates_trace(self) -> None:
        evaluator = ScriptedEvaluator()
        record = GameRecord(headers={}, moves=("e4", "e5", "Ke3", "Nf3"))
        with self.assertLogs("centauro.core", level=logging.WARNING):
            trace, played = asyncio.run(CentauroCore(evaluator, OPTIONS).evaluation_trace(record, 20))
        self.assertEqual(3, len(trace.positions))
        self.assertEqual(3, len(trace.evaluations))
        self.assertEqual(["e4", "e5"], played)
        self.assertEqual(3, len(evaluator.calls))


class ExplodingRules(ChessRules):
    def play(self, position, move):
        if move == "d5":
            raise RuntimeError("rules backend crashed")
        return super().play(position, move)


class InjectedLoggerTest(unittest.TestCase):
    def setUp(self) -> None:
        self.logger = logging.getLogger("centauro.tests.injected")

    def test_recovered_failures_name_the_game(self) -> None:
        blunder_fen = fen_after("e4", "d5", "Qg4")
        evaluator = ScriptedEvaluator(
            {blunder_fen: (-900, "c8g4")},
            failing=[fen_after("e4", "d5", "Qg4", "Bxg4")],
        )
        core = CentauroCore(evaluator, OPTIONS, logger=self.logger)

        with self.assertNoLogs("centauro.analytics.blunder", level=logging.WARNING):
            with self.assertLogs(self.logger, level=logging.WARNING) as logs:
                lessons = asyncio.run(core.process_tactics(["garbage 1. Ke5", "1. e4 d5 2. Qg4 *"]))

        self.assertEqual(["Bxg4"], [step.move for step in lessons[0].content.move_sequence])
        self.assertTrue(any("unparseable game 0" in line for line in logs.output))
        self.assertTrue(any("Game 1: evaluator failed at punishment ply 2" in line for line in logs.output))

    def test_unexpected_failures_use_the_input_index(self) -> None:
        core = CentauroCore(ScriptedEvaluator(), OPTIONS, rules=ExplodingRules(), logger=self.logger)
        games = ["garbage 1. Ke5", "1. e4 e5 *", "1. d4 d5 *"]

        with self.assertLogs(self.logger, level=logging.WARNING) as logs:
            lessons = asyncio.run(core.process_tactics(games))

        self.assertEqual([], lessons)
        self.assertTrue(any("Game 2: tactics failed: rules backend crashed" in line for line in logs.output))
        self.assertFalse(any("Game 1" in line for line in logs.output))


class RawInputTest(unittest.TestCase):
    def test_unsupported_input_is_parse_error(self) -> None:
        from centauro.core import _raw_parts

        with self.assertRaises(ParseError):
            _raw_parts(42)
        self.assertEqual(("1. e4 *", {"Event": "E"}), _raw_parts({"pgn": "1. e4 *", "headers": {"Event": "E"}}))


if __name__ == "__main__":
    unittest.main()
