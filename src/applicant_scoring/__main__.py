"""CLI entry point for the applicant scoring engine."""

from __future__ import annotations

import argparse
import sys

from applicant_scoring.config import DEFAULT_SETTINGS_PATH
from applicant_scoring.errors import ActionableError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="applicant-scoring",
        description="Score, rank, and recalculate job applicant questionnaires",
    )
    parser.add_argument(
        "--settings",
        type=str,
        default=str(DEFAULT_SETTINGS_PATH),
        help=f"Path to settings.toml (default: {DEFAULT_SETTINGS_PATH})",
    )
    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="Dataset JSON file (overrides [data].dataset_path)",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Also write a timestamped log file to this directory",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # -- score ---------------------------------------------------------------
    score_p = sub.add_parser("score", help="Compute one application's percentage")
    score_p.add_argument("application_id", type=int)

    # -- rank ----------------------------------------------------------------
    rank_p = sub.add_parser("rank", help="Rank all candidates for a position")
    rank_p.add_argument("position_id", type=int)

    # -- breakdown -----------------------------------------------------------
    breakdown_p = sub.add_parser("breakdown", help="Per-question scores for an application")
    breakdown_p.add_argument("application_id", type=int)

    # -- max-score -----------------------------------------------------------
    max_p = sub.add_parser("max-score", help="Maximum raw score for a position")
    max_p.add_argument("position_id", type=int)

    # -- recalculate ---------------------------------------------------------
    recalc_p = sub.add_parser(
        "recalculate", help="Rescore and store cached scores (default: all applications)"
    )
    scope = recalc_p.add_mutually_exclusive_group()
    scope.add_argument("--position", type=int, default=None, help="Only this position")
    scope.add_argument("--application", type=int, default=None, help="Only this application")

    # -- stats ---------------------------------------------------------------
    stats_p = sub.add_parser("stats", help="Scoring statistics for open positions")
    stats_p.add_argument("--position", type=int, default=None, help="Only this position")

    # -- analyze-question ----------------------------------------------------
    analyze_p = sub.add_parser(
        "analyze-question", help="Score distribution of one question's answers"
    )
    analyze_p.add_argument("question_id", type=int)

    return parser


def main(argv: list[str] | None = None) -> None:
    from applicant_scoring import cli
    from applicant_scoring.logging import configure_file_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_dir:
        configure_file_logging(args.log_dir, run_name=args.command)

    handlers = {
        "score": cli.handle_score,
        "rank": cli.handle_rank,
        "breakdown": cli.handle_breakdown,
        "max-score": cli.handle_max_score,
        "recalculate": cli.handle_recalculate,
        "stats": cli.handle_stats,
        "analyze-question": cli.handle_analyze_question,
    }
    try:
        handlers[args.command](args)
    except ActionableError as exc:
        print(f"Error: {exc.error}", file=sys.stderr)
        if exc.suggestion:
            print(f"Suggestion: {exc.suggestion}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
