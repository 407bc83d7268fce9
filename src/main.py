# src/main.py
"""CLI entry point: analyze, cache, queue and ping commands.

Usage:
    muscleai analyze <image> [--no-cache] [--no-queue] [--json]
    muscleai cache stats|clear
    muscleai queue status
    muscleai ping
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from muscleai.version import __version__

if TYPE_CHECKING:
    from muscleai.api.models import AnalysisOutcome
    from muscleai.config.settings import Settings
    from muscleai.core.models import MuscleScore

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from muscleai.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="muscleai",
        description=f"muscleai v{__version__}: physique photo analysis",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- analyze ---
    p_analyze = subparsers.add_parser("analyze", help="Analyze a physique photo")
    p_analyze.add_argument("image", type=Path, help="Path to a JPEG or PNG image")
    p_analyze.add_argument(
        "--no-cache", action="store_true", help="Bypass the response cache",
    )
    p_analyze.add_argument(
        "--no-queue", action="store_true", help="Call the model directly without queueing",
    )
    p_analyze.add_argument(
        "--json", action="store_true", help="Print the full result as JSON",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clear the response cache")
    p_cache.add_argument("action", choices=["stats", "clear"])
    p_cache.set_defaults(func=_cmd_cache)

    # --- queue ---
    p_queue = subparsers.add_parser("queue", help="Inspect the request queue")
    p_queue.add_argument("action", choices=["status"])
    p_queue.set_defaults(func=_cmd_queue)

    # --- ping ---
    p_ping = subparsers.add_parser("ping", help="Check connectivity and API key")
    p_ping.set_defaults(func=_cmd_ping)

    return parser


async def _cmd_analyze(args: argparse.Namespace, settings: Settings) -> int:
    """Execute single-image analysis."""
    from muscleai.api.facade import orchestrator_session

    image: Path = args.image
    logger.info("Analyzing %s", image)

    async with orchestrator_session(
        settings, use_cache=not args.no_cache, use_queue=not args.no_queue
    ) as orchestrator:
        outcome = await orchestrator.analyze(
            str(image), on_progress=lambda s: logger.debug("[%3d%%] %s", s.progress, s.status_message)
        )

    if not outcome.success:
        assert outcome.error is not None
        print(f"\nAnalysis failed: {outcome.error.user_message}", file=sys.stderr)
        logger.debug("Failure detail: [%s] %s", outcome.error.code.value, outcome.error.message)
        return 1

    if args.json:
        assert outcome.data is not None
        print(outcome.data.model_dump_json(by_alias=True, indent=2))
    else:
        _print_result_summary(outcome)
    return 0


async def _cmd_cache(args: argparse.Namespace, settings: Settings) -> int:
    """Display or clear the response cache."""
    from muscleai.api.facade import orchestrator_session

    async with orchestrator_session(settings, use_queue=False) as orchestrator:
        if orchestrator.cache is None:
            print("Cache is disabled (CACHE_ENABLED=false)")
            return 1
        if args.action == "clear":
            await orchestrator.clear_cache()
            print("Cache cleared")
            return 0
        stats = await orchestrator.cache_stats()

    assert stats is not None
    print("\nCache statistics:")
    print(f"  Entries:      {stats.count}")
    print(f"  Total size:   {stats.total_bytes} bytes")
    print(f"  Oldest entry: {stats.oldest if stats.oldest is not None else '-'}")
    print(f"  Newest entry: {stats.newest if stats.newest is not None else '-'}")
    return 0


async def _cmd_queue(args: argparse.Namespace, settings: Settings) -> int:
    """Display the persisted request queue."""
    from muscleai.api.facade import orchestrator_session

    async with orchestrator_session(settings, use_cache=False) as orchestrator:
        status = orchestrator.queue_status()
        queue = orchestrator.queue
        if status is None or queue is None:
            print("Queue is disabled (QUEUE_ENABLED=false)")
            return 1
        pending = queue.pending_requests()

    print("\nQueue status:")
    print(f"  Pending:    {status.pending}")
    print(f"  Total:      {status.total}")
    for position, request in enumerate(pending, start=1):
        print(
            f"  {position:>3}. {request.id}  priority={request.priority}  "
            f"retries={request.retry_count}  {request.image_ref}"
        )
    return 0


async def _cmd_ping(args: argparse.Namespace, settings: Settings) -> int:
    """Send a minimal request to the vision endpoint."""
    from muscleai.api.facade import orchestrator_session

    async with orchestrator_session(settings, use_cache=False, use_queue=False) as orchestrator:
        ok = await orchestrator.test_connection()
    print("Connection OK" if ok else "Connection failed")
    return 0 if ok else 1


def _print_result_summary(outcome: AnalysisOutcome) -> None:
    """Print a human-readable summary of an AnalysisOutcome."""
    result = outcome.data
    assessment = result.overall_assessment
    print("\nAnalysis complete" + (" (cached)" if outcome.cached else "") + ":")
    print(f"  Image quality:   {result.metadata.image_quality}")
    print(f"  Confidence:      {result.metadata.analysis_confidence:.0f}%")
    if assessment.physique_score is not None:
        print(f"  Physique score:  {assessment.physique_score}/10")
    if assessment.symmetry_score is not None:
        print(f"  Symmetry score:  {assessment.symmetry_score}/10")
    print(f"  Average score:   {result.average_score():.1f}/10")
    print(f"  Strongest:       {_muscle_label(result.strongest_muscle())}")
    print(f"  Weakest:         {_muscle_label(result.weakest_muscle())}")
    print("  Muscles:")
    for muscle in sorted(result.muscle_scores, key=lambda m: -m.score):
        print(f"    {_muscle_label(muscle):<24} {muscle.score:>4}/10  {muscle.category}")
    if result.recommendations:
        print("  Recommendations:")
        for rec in result.recommendations:
            exercises = ", ".join(rec.exercises) or "-"
            print(f"    [{rec.priority}] {rec.target}: {exercises}")


def _muscle_label(muscle: MuscleScore) -> str:
    return muscle.common_name or muscle.name


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from muscleai.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
