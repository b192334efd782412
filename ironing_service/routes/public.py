"""
Public Routes for the Ironing Service
=====================================

Read-only catalog endpoints that don't require authentication. The customer
app uses them to build the order form.

Endpoints:
----------
- GET /services: Active ironing services with their unit prices
- GET /centers: Active ironing centers
- GET /timeslots: Upcoming pickup windows that still have room

Usage:
------
    GET /api/timeslots?center_id=1
    [
        {"id": 4, "center_id": 1, "date": "2026-10-19",
         "start_time": "09:00", "end_time": "11:00",
         "capacity": 10, "remaining_capacity": 7, ...}
    ]
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Center, Service, Timeslot
from ..schemas.catalog import CenterOut, ServiceOut, TimeslotOut


logger = logging.getLogger(__name__)

public_router = APIRouter(tags=["Catalog"])


@public_router.get("/services", response_model=List[ServiceOut])
def list_services(db: Session = Depends(get_db)) -> List[ServiceOut]:
    services = db.query(Service).filter(Service.is_active.is_(True)).order_by(Service.name).all()
    return [ServiceOut.model_validate(s) for s in services]


@public_router.get("/centers", response_model=List[CenterOut])
def list_centers(db: Session = Depends(get_db)) -> List[CenterOut]:
    centers = db.query(Center).filter(Center.is_active.is_(True)).order_by(Center.name).all()
    return [CenterOut.model_validate(c) for c in centers]


@public_router.get("/timeslots", response_model=List[TimeslotOut])
def list_timeslots(
    db: Session = Depends(get_db),
    center_id: Optional[int] = Query(None, description="Only slots at this center"),
    on_date: Optional[date] = Query(None, alias="date", description="Only slots on this day"),
) -> List[TimeslotOut]:
    """
    Return bookable timeslots, earliest first.

    Past days and full slots are left out.
    """
    query = db.query(Timeslot).filter(Timeslot.remaining_capacity > 0)
    if on_date is not None:
        query = query.filter(Timeslot.date == on_date)
    else:
        query = query.filter(Timeslot.date >= date.today())
    if center_id is not None:
        query = query.filter(Timeslot.center_id == center_id)

    slots = query.order_by(Timeslot.date, Timeslot.start_time).all()
    return [
        TimeslotOut(
            id=s.id,
            center_id=s.center_id,
            date=s.date,
            start_time=s.start_time,
            end_time=s.end_time,
            capacity=s.capacity,
            remaining_capacity=s.remaining_capacity,
            center_name=s.center.name if s.center else None,
        )
        for s in slots
    ]
