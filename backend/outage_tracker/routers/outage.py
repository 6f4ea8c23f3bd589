from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from outage_tracker.database import get_db
from outage_tracker.schemas.outage import OutageDetail, OutageOut
from outage_tracker.services.coordinate_store import CoordinateStore
from outage_tracker.services.outage_store import OutageStore

router = APIRouter(prefix="/outages", tags=["outages"])


@router.get("/", response_model=list[OutageOut])
def list_outages(active: bool | None = Query(None), db: Session = Depends(get_db)):
    """Stored outage events, optionally filtered by active flag."""
    return OutageStore(db).list_events(active=active)


@router.get("/geojson")
def active_outages_geojson(db: Session = Depends(get_db)):
    """Active events' boundary hulls as a GeoJSON FeatureCollection."""
    coords = CoordinateStore(db)
    features = []
    for o in OutageStore(db).list_events(active=True):
        ring = [[p.lon, p.lat] for p in coords.points_for(o.event_id)]
        if len(ring) >= 3:
            if ring[0] != ring[-1]:
                ring.append(ring[0])
            geometry = {"type": "Polygon", "coordinates": [ring]}
        elif o.device_lat is not None and o.device_lon is not None:
            geometry = {"type": "Point", "coordinates": [o.device_lon, o.device_lat]}
        else:
            continue
        features.append({
            "type": "Feature",
            "geometry": geometry,
            "properties": {
                "event_id": o.event_id,
                "county": o.county,
                "customers_affected": o.customers_affected,
                "cause": o.cause,
            },
        })
    return {"type": "FeatureCollection", "features": features}


@router.get("/{event_id}", response_model=OutageDetail)
def get_outage(event_id: str, db: Session = Depends(get_db)):
    outage = OutageStore(db).get(event_id)
    if outage is None:
        raise HTTPException(status_code=404, detail=f"Outage {event_id} not found")
    return OutageDetail.model_validate(outage)
