from fastapi import APIRouter

from outage_tracker.schemas.outage import AreaOfInterest
from outage_tracker.services.reconciliation import get_last_report

router = APIRouter(prefix="/areas", tags=["areas"])


@router.get("/", response_model=list[AreaOfInterest])
async def list_areas():
    """Service-area summaries from the most recent cycle."""
    report = get_last_report()
    if report is None:
        return []
    return report.areas
