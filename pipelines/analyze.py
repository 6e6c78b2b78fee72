"""Command-line analysis run."""

import argparse
import asyncio
import os
import sys
from pathlib import Path

import structlog

from core import verbose
from core.config import PipelineConfig, Settings, load_config, snapshot_config
from core.errors import ConfigurationError, ConfigValidationError, ProviderError
from core.log import configure_logging
from orchestration.runner import run_analysis_async
from schemas.request import AnalysisRequest, JobOutcome

logger = structlog.get_logger()


def build_request(settings: Settings, pipeline: PipelineConfig) -> AnalysisRequest:
    """Request for one CLI run; candidates come from the watchlist when set."""
    candidates = list(pipeline.watchlist)
    scan_size = settings.candidate_count
    if candidates:
        scan_size = min(scan_size, len(candidates))

    return AnalysisRequest(
        candidates=candidates,
        target_count=min(settings.target_count, scan_size),
        scan_size=scan_size,
        trigger_type="cli",
    )


def print_outcome(outcome: JobOutcome) -> None:
    """Human-readable summary of a finished job."""
    if not outcome.success:
        print(f"Job {outcome.job_id} failed: {outcome.error}")
        return

    summary = outcome.summary
    print(f"Job {outcome.job_id} completed in {outcome.duration_ms / 1000:.2f}s")
    print(f"  Signals analyzed: {outcome.symbols_analyzed}")
    saved = sum(1 for r in outcome.save_results if r.success)
    print(f"  Signals saved:    {saved}/{len(outcome.save_results)}")
    if summary is None:
        return

    dist = summary.distribution
    print(f"  High confidence:  {summary.high_confidence}")
    print(f"  Distribution:     BUY {dist.BUY} / SELL {dist.SELL} / HOLD {dist.HOLD}")
    for top in summary.top_signals:
        print(
            f"    {top.symbol:<8s} {top.signal.value:<4s} {top.confidence:>3d}%"
            f"  (AltRank {top.alt_rank})"
        )


def main(argv: list[str] | None = None) -> None:
    """Entry point for a single analysis run."""
    parser = argparse.ArgumentParser(description="Run one trading signal analysis job")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.getenv("SIGNAL_AGENT_CONFIG", "config/pipeline.yaml")),
        help="Pipeline YAML overrides",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    args = parser.parse_args(argv)

    # Load configuration
    try:
        settings, pipeline = load_config(pipeline_path=args.config)
    except ConfigValidationError as e:
        configure_logging()
        logger.error("Configuration error", error=str(e), errors=e.errors)
        sys.exit(1)

    configure_logging(settings.log_level, json_output=settings.log_json)
    verbose.configure(max(args.verbose, settings.verbose))

    logger.info(
        "Starting analysis",
        candidate_count=settings.candidate_count,
        target_count=settings.target_count,
        watchlist=len(pipeline.watchlist),
    )
    logger.debug("Effective configuration", config=snapshot_config(settings))

    # Run the pipeline
    try:
        outcome = asyncio.run(run_analysis_async(settings, build_request(settings, pipeline)))
    except (ConfigurationError, ProviderError) as e:
        logger.error("Analysis could not start", error=str(e))
        sys.exit(1)

    print_outcome(outcome)
    if not outcome.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
