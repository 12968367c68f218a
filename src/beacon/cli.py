"""Command line interface for the congressional ingestion service."""
from __future__ import annotations

import argparse
import logging
import signal
from pathlib import Path
from typing import Optional

from .config import load_config
from .runtime import create_ingestion
from .scheduler import IngestionScheduler

LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Congress.gov roster and roll-call ingestion")
    parser.add_argument(
        "command",
        choices=["ingest", "run"],
        help="'ingest' runs a single cycle, 'run' keeps ingesting on the configured interval",
    )
    parser.add_argument("--config", type=Path, help="Path to an explicit configuration file")
    parser.add_argument(
        "--without-summaries",
        action="store_true",
        help="Skip bill summaries even if a Gemini API key is configured",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    config = load_config(args.config)
    resources = create_ingestion(config, skip_summaries=args.without_summaries)
    try:
        if args.command == "ingest":
            report = resources.service.run_cycle()
            return 1 if report.failures else 0
        if args.command == "run":
            scheduler = IngestionScheduler(
                lambda stop_event: resources.service.run_cycle(cancel_event=stop_event),
                config.ingestion.poll_interval_seconds,
            )
            signal.signal(signal.SIGTERM, lambda *_: scheduler.stop())
            try:
                scheduler.run_forever()
            except KeyboardInterrupt:
                scheduler.stop()
                LOGGER.info("Interrupted, shutting down")
            return 0
    finally:
        resources.close()
    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
