"""CLI command handlers for the applicant scoring engine.

Each public function corresponds to a CLI subcommand and encapsulates
the wiring, orchestration, and output for that command.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import TYPE_CHECKING

from applicant_scoring.config import load_settings
from applicant_scoring.pipeline.engine import ScoringEngine

if TYPE_CHECKING:
    from applicant_scoring.pipeline.analysis import PositionStatistics


def build_engine(args: argparse.Namespace) -> ScoringEngine:
    """Load settings (``--settings``), apply ``--data``, and open the dataset."""
    settings = load_settings(args.settings)
    if getattr(args, "data", None):
        settings.data.dataset_path = args.data
    return ScoringEngine.from_settings(settings)


async def _ready(engine: ScoringEngine) -> None:
    # Fail fast on a misconfigured evaluator before scoring anything
    if engine.evaluator is not None:
        await engine.evaluator.health_check()


def handle_score(args: argparse.Namespace) -> None:
    """Print one application's percentage."""
    engine = build_engine(args)

    async def _run() -> None:
        await _ready(engine)
        pct = await engine.compute_score(args.application_id)
        print(f"Application {args.application_id}: {pct:.2f}%")

    asyncio.run(_run())


def handle_rank(args: argparse.Namespace) -> None:
    """Print a position's candidates, best first."""
    engine = build_engine(args)

    async def _run() -> None:
        await _ready(engine)
        rankings = await engine.rank_candidates(args.position_id)
        if not rankings:
            print(f"No applications for position {args.position_id}.")
            return

        print(f"\n{'=' * 60}")
        print(f" Ranking — position {args.position_id}")
        print(f"{'=' * 60}")
        for i, r in enumerate(rankings, 1):
            applied = r.applied_on.date().isoformat() if r.applied_on else "-"
            email = f" <{r.display_email}>" if r.display_email else ""
            print(f"{i}. [{r.percentage:6.2f}%] {r.display_name}{email}")
            print(f"   application {r.application_id} | {r.status} | applied {applied}")
        print()

    asyncio.run(_run())


def handle_breakdown(args: argparse.Namespace) -> None:
    """Print the per-question breakdown of one application."""
    engine = build_engine(args)

    async def _run() -> None:
        await _ready(engine)
        entries = await engine.get_score_breakdown(args.application_id)
        if not entries:
            print(f"No breakdown for application {args.application_id}.")
            return
        for e in entries:
            print(f"{e.order:>3}. [{e.question_type}] {e.question_text}")
            print(f"     Answer: {e.answer_text}")
            print(f"     Score:  {e.raw_score:.2f} / {e.max_score:.2f} ({e.percentage:.1f}%)")

    asyncio.run(_run())


def handle_max_score(args: argparse.Namespace) -> None:
    """Print the maximum attainable raw score for a position."""
    engine = build_engine(args)
    print(f"Position {args.position_id} max score: {engine.get_max_score_for_position(args.position_id):.2f}")


def handle_recalculate(args: argparse.Namespace) -> None:
    """Rescore and store cached scores for the selected scope."""
    engine = build_engine(args)

    async def _run() -> None:
        await _ready(engine)
        result = await engine.recalculate(
            position_id=args.position,
            application_id=args.application,
        )
        print(f"Recalculated {result.total} applications")
        print(f"  Updated:   {result.updated}")
        print(f"  Unchanged: {result.unchanged}")
        print(f"  Failed:    {result.failed}")

    asyncio.run(_run())


def _print_stats(stats: PositionStatistics) -> None:
    print(f"{stats.title} (position {stats.position_id})")
    print(f"  Applications: {stats.application_count}")
    print(f"  Average:      {stats.average_percentage:.2f}%")
    print(f"  Top:          {stats.top_percentage:.2f}%")
    print(f"  Max score:    {stats.max_score:.2f}")


def handle_stats(args: argparse.Namespace) -> None:
    """Print scoring statistics for one position or every open position."""
    engine = build_engine(args)

    async def _run() -> None:
        await _ready(engine)
        if args.position is not None:
            stats = await engine.position_statistics(args.position)
            if stats is None:
                print(f"Position {args.position} not found.")
                return
            _print_stats(stats)
            return

        all_stats = await engine.all_position_statistics()
        if not all_stats:
            print("No open positions.")
            return
        for stats in all_stats:
            _print_stats(stats)

    asyncio.run(_run())


def handle_analyze_question(args: argparse.Namespace) -> None:
    """Print the answer score distribution for one question."""
    engine = build_engine(args)

    async def _run() -> None:
        await _ready(engine)
        perf = await engine.analyze_question(args.question_id)
        if perf is None:
            print(f"No answers for question {args.question_id}.")
            return
        print(f"Question {perf.question_id}: {perf.question_text}")
        print(f"  Responses: {perf.total_responses}")
        print(f"  Average:   {perf.average_score:.2f}")
        for bucket, count in perf.distribution.items():
            print(f"  {bucket:>5}: {count}")

    asyncio.run(_run())
