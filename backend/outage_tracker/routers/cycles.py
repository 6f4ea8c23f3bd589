from fastapi import APIRouter, HTTPException

from outage_tracker.schemas.outage import CycleReport
from outage_tracker.services.reconciliation import get_last_report

router = APIRouter(prefix="/cycles", tags=["cycles"])


@router.get("/last", response_model=CycleReport)
async def last_cycle():
    report = get_last_report()
    if report is None:
        raise HTTPException(status_code=404, detail="No reconciliation cycle has completed yet")
    return report
