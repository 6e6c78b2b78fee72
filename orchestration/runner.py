"""Pipeline runner for signal analysis jobs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog

from analysis.summary import high_confidence_signals, summarize
from collectors.base import MetricsProvider
from collectors.lunarcrush import LunarCrushClient
from collectors.selector import select_candidates
from core import verbose
from core.config import Settings
from core.context import RunContext
from core.errors import JobCreationError, SymbolNotSupportedError
from core.ids import generate_job_id
from notifications.telegram import TelegramNotifier
from orchestration.tracker import ProgressTracker
from schemas.job import JobStatus
from schemas.request import AnalysisRequest, JobOutcome
from schemas.signal import TradingSignal
from scoring.base import SignalScorer
from scoring.fanout import score_all
from scoring.llm import LLMSignalScorer
from storage.store import FileJobStore, FileSignalStore, SignalStore
from storage.writer import write_all

logger = structlog.get_logger(__name__)

SINGLE_SYMBOL_UNIVERSE = 100
HISTORY_DEPTH = 5

Notify = Callable[[TradingSignal], Awaitable[bool]]


class SignalPipeline:
    """Runs the seven-phase analysis workflow for one job at a time.

    Phases: initialize → select → score → write → summarize → notify →
    complete. Fatal errors from any phase after initialize are caught here
    once and recorded as a single ``fail`` transition.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        provider: MetricsProvider,
        scorer: SignalScorer,
        signal_store: SignalStore,
        tracker: ProgressTracker,
        notify: Notify | None = None,
    ):
        self.settings = settings
        self.provider = provider
        self.scorer = scorer
        self.signal_store = signal_store
        self.tracker = tracker
        self.notify = notify

    async def run(self, request: AnalysisRequest) -> JobOutcome:
        """Run one job to a terminal state and report the outcome."""
        job_id = request.job_id or generate_job_id()
        ctx = RunContext.boot(self.settings, job_id)
        log = logger.bind(job_id=job_id)

        verbose.header(f"Analysis Job {job_id}")

        # Phase 1: initialize
        try:
            self.tracker.initialize(job_id, request.event_data())
        except JobCreationError as e:
            # No job record is owned by this run, so there is nothing to fail
            log.error("job not started", error=str(e))
            ctx.complete_run(JobStatus.FAILED)
            return JobOutcome(
                job_id=job_id, success=False, error=str(e), duration_ms=ctx.elapsed_ms()
            )

        self.tracker.advance(
            job_id, 1, "Initializing Analysis", "Setting up trading analysis pipeline..."
        )
        log.info("analysis started", candidates=len(request.candidates))

        try:
            return await self._run_phases(job_id, request, ctx)
        except Exception as e:
            log.error("analysis failed", error=str(e), error_type=type(e).__name__)
            ctx.complete_run(JobStatus.FAILED)
            self.tracker.fail(job_id, str(e), duration_ms=ctx.elapsed_ms())
            log.debug("run telemetry", telemetry=ctx.summary())
            verbose.header(f"Failed: {e}")
            return JobOutcome(
                job_id=job_id, success=False, error=str(e), duration_ms=ctx.elapsed_ms()
            )

    async def _run_phases(
        self, job_id: str, request: AnalysisRequest, ctx: RunContext
    ) -> JobOutcome:
        def advance(step: int, name: str, message: str) -> None:
            self.tracker.advance(job_id, step, name, message)

        # Phase 2: select candidates and fetch their metrics
        candidates = list(request.candidates)[: request.scan_size]
        advance(
            2,
            "Selecting Best Coins",
            f"Testing top {len(candidates)} candidates for complete social data...",
        )
        selected = await select_candidates(
            candidates,
            request.target_count,
            self.provider.get_social_metrics,
            on_progress=lambda message: advance(2, "Testing Coin Data", message),
            ctx=ctx,
        )
        symbols = ", ".join(coin.symbol for coin, _ in selected)
        advance(
            2,
            "Selection Complete",
            f"Selected {len(selected)} coins with complete metrics: {symbols}",
        )

        # Phase 3: score in parallel
        advance(3, "AI Signal Generation", f"Analyzing {len(selected)} coins in parallel...")
        signals = await score_all(
            [(coin.symbol, metrics) for coin, metrics in selected],
            self.scorer.score,
            timeout=self.settings.scoring_timeout_seconds,
            ctx=ctx,
        )
        advance(
            3,
            "AI Analysis Complete",
            f"Generated {len(signals)} trading signals with confidence scores",
        )

        # Phase 4: write results
        advance(4, "Saving Results", f"Storing {len(signals)} trading signals in database...")
        save_results = await write_all(
            signals,
            self.signal_store.insert,
            on_progress=lambda done, total: advance(
                4, "Saving Results", f"Saved {done}/{total} signals to database..."
            ),
            ctx=ctx,
        )
        saved = sum(1 for r in save_results if r.success)

        # Phase 5: summarize
        advance(5, "Generating Summary", "Creating analysis summary...")
        summary = summarize(signals, threshold=self.settings.high_confidence_threshold)

        # Phase 6: notify
        alerts_sent = await self._send_alerts(job_id, signals, ctx)

        # Phase 7: complete
        ctx.complete_run(JobStatus.COMPLETED)
        duration_ms = ctx.elapsed_ms()
        self.tracker.complete(
            job_id,
            signals_generated=saved,
            signals_scored=len(signals),
            summary=summary,
            duration_ms=duration_ms,
            alerts_sent=alerts_sent,
        )

        verbose.header(
            f"Done: {len(signals)} signals, {saved} saved, "
            f"{summary.high_confidence} high-confidence ({duration_ms / 1000:.2f}s)"
        )
        logger.info(
            "analysis complete",
            job_id=job_id,
            scored=len(signals),
            saved=saved,
            high_confidence=summary.high_confidence,
            duration_ms=duration_ms,
        )
        logger.debug("run telemetry", telemetry=ctx.summary())

        return JobOutcome(
            job_id=job_id,
            success=True,
            symbols_analyzed=len(signals),
            summary=summary,
            duration_ms=duration_ms,
            save_results=save_results,
        )

    async def _send_alerts(
        self, job_id: str, signals: Sequence[TradingSignal], ctx: RunContext
    ) -> int:
        """Best-effort alerts for high-confidence signals. Never raises."""
        if self.notify is None or not self.settings.notify_enabled:
            self.tracker.advance(job_id, 6, "Notifications", "Alerts disabled, skipping")
            return 0

        eligible = high_confidence_signals(signals, self.settings.high_confidence_threshold)
        self.tracker.advance(
            job_id, 6, "Sending Alerts", f"Sending {len(eligible)} high-confidence alerts..."
        )
        ctx.start_stage("notify", items_in=len(eligible))
        verbose.stage("Notify", f"alert on {len(eligible)} high-confidence signals")

        sent = 0
        errors: list[str] = []
        for signal in eligible:
            try:
                delivered = await self.notify(signal)
            except Exception as e:
                logger.warning("alert delivery failed", symbol=signal.symbol, error=str(e))
                errors.append(f"{signal.symbol}: {e}")
                continue
            if delivered:
                sent += 1
            else:
                errors.append(f"{signal.symbol}: not delivered")

        ctx.metrics.num_alerts_sent = sent
        ctx.complete_stage("notify", items_out=sent, errors=errors)
        return sent

    async def analyze_symbol(self, symbol: str) -> TradingSignal:
        """Score one coin with its recent history and store the signal.

        Raises:
            SymbolNotSupportedError: the coin is not among the top-ranked coins
        """
        symbol = symbol.upper()
        coins = await self.provider.get_top_coins(SINGLE_SYMBOL_UNIVERSE)
        coin = next((c for c in coins if c.symbol == symbol), None)
        if coin is None:
            raise SymbolNotSupportedError(
                f"Symbol {symbol} is not in the top {SINGLE_SYMBOL_UNIVERSE} coins by "
                "AltRank. Only top-ranked coins are supported."
            )

        metrics = await self.provider.get_social_metrics(coin)

        try:
            history = self.signal_store.recent_metrics(symbol, HISTORY_DEPTH)
        except Exception as e:
            logger.warning("history unavailable", symbol=symbol, error=str(e))
            history = []

        signal = await self.scorer.score(symbol, metrics, history)

        try:
            self.signal_store.insert(signal)
        except Exception as e:
            logger.error("failed to save signal", symbol=symbol, error=str(e))

        return signal


def build_pipeline(
    settings: Settings,
    provider: MetricsProvider,
    *,
    tracker: ProgressTracker | None = None,
    signal_store: SignalStore | None = None,
    scorer: SignalScorer | None = None,
    notifier: TelegramNotifier | None = None,
) -> SignalPipeline:
    """Wire a pipeline from settings, using file stores by default."""
    tracker = tracker or ProgressTracker(FileJobStore(settings.jobs_dir))
    signal_store = signal_store or FileSignalStore(settings.signals_dir)
    scorer = scorer or LLMSignalScorer.from_settings(settings)
    if notifier is None and settings.has_telegram:
        notifier = TelegramNotifier.from_settings(settings)

    return SignalPipeline(
        settings,
        provider=provider,
        scorer=scorer,
        signal_store=signal_store,
        tracker=tracker,
        notify=notifier.send_signal_alert if notifier else None,
    )


async def run_analysis_async(
    settings: Settings,
    request: AnalysisRequest | None = None,
    *,
    tracker: ProgressTracker | None = None,
    signal_store: SignalStore | None = None,
) -> JobOutcome:
    """Fetch candidates (unless supplied) and run one job against LunarCrush.

    Args:
        settings: Loaded settings
        request: Optional request; candidates are fetched when it has none
        tracker: Optional shared tracker (e.g. the API process's)
        signal_store: Optional shared signal store

    Returns:
        JobOutcome for the job
    """
    async with LunarCrushClient.from_settings(settings) as provider:
        if request is None or not request.candidates:
            coins = await provider.get_top_coins(settings.candidate_count)
            base = request or AnalysisRequest(
                target_count=settings.target_count,
                scan_size=max(settings.candidate_count, settings.target_count),
            )
            request = base.model_copy(update={"candidates": coins})

        pipeline = build_pipeline(
            settings, provider, tracker=tracker, signal_store=signal_store
        )
        return await pipeline.run(request)


def run_analysis(settings: Settings, request: AnalysisRequest | None = None) -> JobOutcome:
    """Synchronous wrapper for run_analysis_async."""
    return asyncio.run(run_analysis_async(settings, request))
