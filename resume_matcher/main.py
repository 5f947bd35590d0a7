"""Command-line entry point for the resume matcher.

Subcommands:
    match     Rank job postings for a resume and print the response as JSON
    score     Score a resume against one job posting
    backfill  Embed postings with missing or stale vectors once
    serve     Run the backfill on its configured interval until stopped
"""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Tuple

from pydantic import ValidationError

from resume_matcher.config.environment import EnvironmentConfig
from resume_matcher.config.exceptions import ConfigurationError
from resume_matcher.config.loader import load_config
from resume_matcher.config.models import MatcherConfig
from resume_matcher.domain.models import MatchFilters, MatchOutcome, ResumeProfile
from resume_matcher.embeddings import EmbeddingBackfill
from resume_matcher.logging import get_logger
from resume_matcher.logging.config import configure_logging
from resume_matcher.persistence.database import close_database, init_database
from resume_matcher.persistence.exceptions import DatabaseConnectionError
from resume_matcher.pipeline import MatchOrchestrator
from resume_matcher.scheduler import SchedulerService

logger = get_logger(__name__, component="cli")

FAILURE_OUTCOMES = (
    MatchOutcome.MISSING_RESUME_EMBEDDING,
    MatchOutcome.STORAGE_ERROR,
    MatchOutcome.INTERNAL_ERROR,
)


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[MatcherConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Priority: CLI flag > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    matcher_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = matcher_config.logging.level

    return matcher_config, env_config


def read_resume(path: Path, owner_id: str) -> ResumeProfile:
    """Read a resume from a JSON profile or a plain-text file.

    Raises:
        ConfigurationError: If the file is missing or not a valid profile
    """
    if not path.exists():
        raise ConfigurationError(f"Resume file not found: {path}")

    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            return ResumeProfile.model_validate_json(content)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid resume profile in {path}: {e}") from e

    return ResumeProfile(owner_id=owner_id, raw_text=content)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resume-matcher",
        description="Resume Matcher - rank job postings against a candidate resume",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    match_parser = subparsers.add_parser("match", help="Rank job postings for a resume")
    match_parser.add_argument("--resume", type=Path, required=True, help="Resume .json profile or text file")
    match_parser.add_argument("--owner-id", default="cli", help="Owner id for plain-text resumes")
    match_parser.add_argument("--location", default=None)
    match_parser.add_argument("--min-salary", type=float, default=None)
    match_parser.add_argument("--max-salary", type=float, default=None)
    match_parser.add_argument("--experience", default=None)
    match_parser.add_argument("--category-id", type=int, default=None)

    score_parser = subparsers.add_parser("score", help="Score a resume against one job posting")
    score_parser.add_argument("--resume", type=Path, required=True, help="Resume .json profile or text file")
    score_parser.add_argument("--owner-id", default="cli", help="Owner id for plain-text resumes")
    score_parser.add_argument("--job-id", type=int, required=True)

    subparsers.add_parser("backfill", help="Embed postings with missing or stale vectors once")
    subparsers.add_parser("serve", help="Run the embedding backfill on its interval")

    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def run_match(args, orchestrator: MatchOrchestrator) -> int:
    resume = read_resume(args.resume, args.owner_id)
    try:
        filters = MatchFilters(
            location=args.location,
            min_salary=args.min_salary,
            max_salary=args.max_salary,
            experience=args.experience,
            category_id=args.category_id,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid filters: {e}") from e

    response = orchestrator.find_matches(resume, filters)
    _print_json(response.model_dump(mode="json"))
    return 1 if response.code in FAILURE_OUTCOMES else 0


def run_score(args, orchestrator: MatchOrchestrator) -> int:
    resume = read_resume(args.resume, args.owner_id)
    result = orchestrator.score_one(args.job_id, resume)
    _print_json(result.model_dump(mode="json") if result is not None else None)
    return 0


def run_backfill(backfill: EmbeddingBackfill) -> int:
    result = backfill.run_once()
    _print_json(
        {
            "scanned": result.scanned,
            "pending": result.pending,
            "embedded": result.embedded,
            "failed": result.failed,
            "duration_seconds": round(result.duration_seconds, 3),
            "error_message": result.error_message,
        }
    )
    return 1 if result.error_message else 0


def run_serve(matcher_config: MatcherConfig, backfill: EmbeddingBackfill) -> int:
    if not matcher_config.backfill.enabled:
        print("Scheduled backfill is disabled (set backfill.enabled: true)", file=sys.stderr)
        logger.error(
            "Refusing to serve: scheduled backfill is disabled",
            extra={"event": "service.serve.disabled"},
        )
        return 1

    shutdown_event = threading.Event()
    scheduler_service = SchedulerService(
        backfill_callable=backfill.run_once,
        interval_seconds=matcher_config.backfill.interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info(
        "Scheduler started. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler_service.shutdown(wait=False)

    return 0


def main(argv=None) -> int:
    """
    Main entry point for the resume matcher CLI.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        matcher_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=matcher_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Resume matcher starting",
            extra={
                "event": "service.starting",
                "command": args.command,
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "model_version": matcher_config.embedding.model_version,
            },
        )

        init_database(env_config.database_url)

        orchestrator = MatchOrchestrator.from_config(matcher_config, env_config)

        try:
            if args.command == "match":
                return run_match(args, orchestrator)
            if args.command == "score":
                return run_score(args, orchestrator)

            backfill = EmbeddingBackfill(
                orchestrator.embedding_store,
                assembler=orchestrator.assembler,
                batch_size=matcher_config.backfill.batch_size,
            )
            if args.command == "backfill":
                return run_backfill(backfill)
            return run_serve(matcher_config, backfill)
        finally:
            close_database()
            logger.info(
                "Resume matcher stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except DatabaseConnectionError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        logger.error(
            f"Database initialization failed: {e}",
            extra={"event": "service.startup.failed", "error_type": "DatabaseConnectionError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
