"""FastAPI application entry point."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

import structlog
from fastapi import BackgroundTasks, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from collectors.base import MetricsProvider
from collectors.lunarcrush import LunarCrushClient
from core import verbose
from core.config import Settings, load_config
from core.errors import SymbolNotSupportedError
from core.ids import generate_job_id
from core.log import configure_logging
from orchestration.runner import SignalPipeline, build_pipeline
from orchestration.tracker import ProgressTracker
from schemas.request import AnalysisRequest
from scoring.base import SignalScorer
from storage.store import FileJobStore, FileSignalStore, SignalStore

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"

ProviderFactory = Callable[[], AbstractAsyncContextManager[MetricsProvider]]


class Services:
    """Process-wide collaborators shared by every request."""

    def __init__(
        self,
        settings: Settings,
        *,
        tracker: ProgressTracker,
        signal_store: SignalStore,
        provider_factory: ProviderFactory,
        scorer: SignalScorer | None = None,
    ):
        self.settings = settings
        self.tracker = tracker
        self.signal_store = signal_store
        self.provider_factory = provider_factory
        self.scorer = scorer

    @classmethod
    def from_settings(cls, settings: Settings) -> Services:
        return cls(
            settings,
            tracker=ProgressTracker(FileJobStore(settings.jobs_dir)),
            signal_store=FileSignalStore(settings.signals_dir),
            provider_factory=lambda: LunarCrushClient.from_settings(settings),
        )

    def pipeline(self, provider: MetricsProvider) -> SignalPipeline:
        return build_pipeline(
            self.settings,
            provider,
            tracker=self.tracker,
            signal_store=self.signal_store,
            scorer=self.scorer,
        )


def get_services(request: Request) -> Services:
    """Services for this app, built from config on first use."""
    services = request.app.state.services
    if services is None:
        settings, _ = load_config()
        services = Services.from_settings(settings)
        request.app.state.services = services
    return services


async def run_job(services: Services, analysis: AnalysisRequest) -> None:
    """Background task: run one job with its own provider connection."""
    async with services.provider_factory() as provider:
        outcome = await services.pipeline(provider).run(analysis)
    logger.info("background job finished", job_id=outcome.job_id, success=outcome.success)


def create_app(services: Services | None = None) -> FastAPI:
    """Build the API app. ``services`` is resolved lazily when omitted."""
    app = FastAPI(
        title="Signal Agent API",
        description="API for Signal Agent - social-metrics trading signal analysis",
        version=API_VERSION,
    )
    app.state.services = services

    # CORS middleware for dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Signal Agent API",
            "version": API_VERSION,
            "docs": "/docs",
        }

    @app.post("/api/trigger")
    async def trigger_analysis(
        background_tasks: BackgroundTasks,
        services: Services = Depends(get_services),
    ):
        """Queue an analysis job over the current top coins."""
        settings = services.settings
        try:
            async with services.provider_factory() as provider:
                coins = await provider.get_top_coins(settings.candidate_count)
        except Exception as e:
            logger.error("failed to queue processing job", error=str(e))
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "Failed to queue processing job"},
            )

        job_id = generate_job_id()
        analysis = AnalysisRequest(
            job_id=job_id,
            candidates=coins,
            target_count=settings.target_count,
            scan_size=max(settings.candidate_count, settings.target_count),
            trigger_type="api",
        )
        background_tasks.add_task(run_job, services, analysis)

        logger.info("analysis job queued", job_id=job_id, candidates=len(coins))
        return {
            "success": True,
            "job_id": job_id,
            "symbols": [c.symbol for c in coins],
            "message": (
                f"Analysis started for top {len(coins)} coins, "
                f"selecting {settings.target_count} with complete data"
            ),
        }

    @app.get("/api/trigger")
    async def describe_trigger(services: Services = Depends(get_services)):
        """Describe the trigger endpoint."""
        return {
            "message": "Trading signal analysis trigger",
            "usage": "POST /api/trigger to start a job, GET /api/jobs/{job_id} to poll it",
            "candidate_count": services.settings.candidate_count,
            "target_count": services.settings.target_count,
        }

    @app.get("/api/jobs")
    async def list_jobs(
        limit: int = Query(20, ge=1, le=200),
        services: Services = Depends(get_services),
    ):
        """Most recently started jobs first."""
        jobs = services.tracker.store.list_recent(limit=limit)
        return {
            "success": True,
            "count": len(jobs),
            "jobs": [j.model_dump(mode="json") for j in jobs],
        }

    @app.get("/api/jobs/{job_id}")
    async def get_job(job_id: str, services: Services = Depends(get_services)):
        """Poll a job's latest persisted state."""
        job = services.tracker.load_job(job_id)
        if job is None:
            return JSONResponse(
                status_code=404,
                content={"success": False, "error": f"Job {job_id} not found"},
            )
        return {"success": True, "job": job.model_dump(mode="json")}

    @app.get("/api/signals")
    async def list_signals(
        limit: int = Query(20, ge=1, le=500),
        services: Services = Depends(get_services),
    ):
        """Latest signals, newest first."""
        signals = services.signal_store.latest(limit=limit)
        return {
            "success": True,
            "count": len(signals),
            "signals": [s.model_dump(mode="json") for s in signals],
        }

    @app.post("/api/analyze/{symbol}")
    async def analyze_symbol(symbol: str, services: Services = Depends(get_services)):
        """Score a single coin with its recent history."""
        try:
            async with services.provider_factory() as provider:
                signal = await services.pipeline(provider).analyze_symbol(symbol)
        except SymbolNotSupportedError as e:
            return JSONResponse(status_code=404, content={"success": False, "error": str(e)})
        except Exception as e:
            logger.error("single-symbol analysis failed", symbol=symbol, error=str(e))
            return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

        return {"success": True, "signal": signal.model_dump(mode="json")}

    @app.post("/api/clear-db")
    async def clear_database(services: Services = Depends(get_services)):
        """Delete all stored signals and jobs."""
        signals_deleted = services.signal_store.clear()
        jobs_deleted = services.tracker.store.clear()
        services.tracker.clear_finished()
        logger.warning(
            "database cleared", signals_deleted=signals_deleted, jobs_deleted=jobs_deleted
        )
        return {
            "success": True,
            "signals_deleted": signals_deleted,
            "jobs_deleted": jobs_deleted,
        }

    return app


def _startup_logging() -> None:
    settings = Settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    verbose.configure(settings.verbose)


_startup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
