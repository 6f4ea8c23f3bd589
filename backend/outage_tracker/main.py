from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from outage_tracker.config import settings
from outage_tracker.database import init_db
from outage_tracker.errors import ConfigurationError, CycleAbortedError


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.scheduler_enabled:
        from outage_tracker.tasks.scheduler import start_scheduler, stop_scheduler
        start_scheduler()
        yield
        stop_scheduler()
    else:
        yield


app = FastAPI(
    title="Outage Tracker",
    description="Service-area outage record with active/inactive reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)

from outage_tracker.routers import areas, cycles, outage  # noqa: E402

app.include_router(outage.router, prefix="/api/v1")
app.include_router(areas.router, prefix="/api/v1")
app.include_router(cycles.router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/v1/admin/reconcile")
async def trigger_reconcile():
    """Run one reconciliation cycle now."""
    from outage_tracker.services.reconciliation import run_configured_cycle
    try:
        report = await run_in_threadpool(run_configured_cycle)
    except CycleAbortedError as e:
        return JSONResponse(status_code=502, content={"status": "aborted", **e.to_dict()})
    except ConfigurationError as e:
        return JSONResponse(status_code=500, content={"status": "aborted", "kind": "config", "detail": str(e)})
    return {
        "status": "reconcile_complete",
        "matched": len(report.matched),
        "deactivated": report.deactivated_count,
        "errors": len(report.errors),
    }
