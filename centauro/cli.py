#!/usr/bin/env python3
"""
Command-line runner for the CENTAURO pipelines.

    python -m centauro theory --input masters.pgn --output theory.json
    python -m centauro tactics --input club.pgn --engine /usr/local/bin/stockfish
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from .config import DEFAULT_ENGINE_PATH, CentauroOptions
from .core import CentauroCore
from .engine import HeuristicEvaluator, HttpEvaluator, ManagedEvaluator, StockfishEvaluator
from .errors import ConfigurationError, EvaluatorFailure
from .models import Lesson
from .parsers.pgn import split_pgn

logger = logging.getLogger("centauro")


def _load_games(path: Path) -> List[str]:
    if path.is_dir():
        games: List[str] = []
        for pgn_path in sorted(path.glob("*.pgn")):
            games.extend(split_pgn(pgn_path.read_text(encoding="utf-8", errors="replace")))
        return games
    return split_pgn(path.read_text(encoding="utf-8", errors="replace"))


def _build_evaluator(args: argparse.Namespace, concurrency: int) -> ManagedEvaluator:
    if args.heuristic:
        return HeuristicEvaluator()
    engine_url = args.engine_url or os.getenv("ENGINE_URL")
    if engine_url:
        return HttpEvaluator(engine_url)
    return StockfishEvaluator(args.engine, pool_size=concurrency)


async def _run(args: argparse.Namespace, options: CentauroOptions, games: List[str]) -> List[Lesson]:
    if args.command == "theory":
        return await CentauroCore(options=options).process_theory(games)
    async with _build_evaluator(args, options.concurrency) as evaluator:
        return await CentauroCore(evaluator, options).process_tactics(games)


def run(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        print(f"❌ Input {input_path} not found", file=sys.stderr)
        return 1

    try:
        options = CentauroOptions.from_yaml(args.config)
    except ConfigurationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    try:
        games = _load_games(input_path)
    except OSError as exc:
        print(f"❌ Failed to read {input_path}: {exc}", file=sys.stderr)
        return 1
    print(f"Loaded {len(games)} games from {input_path}", file=sys.stderr)

    try:
        lessons = asyncio.run(_run(args, options, games))
    except (ConfigurationError, EvaluatorFailure) as exc:
        print(f"❌ Failed: {exc}", file=sys.stderr)
        return 1

    payload = [lesson.to_dict() for lesson in lessons]
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"✅ Done: {len(payload)} lessons written to {output_path}", file=sys.stderr)
    else:
        print(json.dumps(payload, indent=2))
    return 0


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="CENTAURO lesson generator")
    parser.add_argument("command", choices=("theory", "tactics"), help="Pipeline to run")
    parser.add_argument("--input", "-i", required=True, help="PGN file or directory of PGN files")
    parser.add_argument("--config", "-c", help="Options YAML (default: centauro.yml or config/centauro.yml)")
    parser.add_argument("--output", "-o", help="Write lessons JSON here instead of stdout")
    parser.add_argument("--engine", default=DEFAULT_ENGINE_PATH, help="Path to a UCI engine binary")
    parser.add_argument("--engine-url", help="Remote engine worker URL (default: $ENGINE_URL)")
    parser.add_argument("--heuristic", action="store_true", help="Use the built-in heuristic evaluator")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress at INFO level")
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("chess.engine").setLevel(logging.ERROR)
    logging.getLogger("chess.pgn").setLevel(logging.ERROR)
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
