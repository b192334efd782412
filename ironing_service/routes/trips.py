"""
Trip Management Routes for the Ironing Service
==============================================

Floor-manager endpoints for planning pickup and delivery runs.

Endpoints:
----------
- POST /admin/trips: Create a trip, optionally attaching orders
- GET /admin/trips: List trips with optional filters
- GET /admin/trips/{id}: Trip with its orders
- POST /admin/trips/{id}/assign-orders: Attach more orders to a trip

Filtering:
----------
    GET /admin/trips?status=PENDING&type=PICKUP&start_date=2026-10-01

Authentication:
---------------
FLOOR_MANAGER or ADMIN. Delivery persons may read a single trip if it is
their own.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth import require_roles
from ..db import get_db
from ..models import Role, TripStatus, TripType, User
from ..schemas.trips import (
    TripAssignmentResponse,
    TripAssignOrders,
    TripCreate,
    TripListResponse,
    TripOut,
)
from ..services import trips


logger = logging.getLogger(__name__)

trips_router = APIRouter(prefix="/admin/trips", tags=["Admin - Trips"])

require_manager = require_roles(Role.FLOOR_MANAGER)


@trips_router.post("", response_model=TripAssignmentResponse, status_code=status.HTTP_201_CREATED)
def create_trip(
    payload: TripCreate,
    manager: User = Depends(require_manager),
    db: Session = Depends(get_db),
) -> TripAssignmentResponse:
    """
    Create a trip for a delivery person.

    Orders in the wrong status for the trip type are skipped rather than
    failing the whole request; they are listed in skipped_order_ids.
    """
    trip, assigned, skipped = trips.create_trip(
        db,
        manager,
        delivery_person_id=payload.delivery_person_id,
        trip_type=payload.type,
        scheduled_date=payload.scheduled_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        order_ids=payload.order_ids,
    )
    return TripAssignmentResponse(
        trip=TripOut.model_validate(trip),
        assigned_order_ids=assigned,
        skipped_order_ids=skipped,
    )


@trips_router.get("", response_model=TripListResponse)
def list_trips(
    _manager: User = Depends(require_manager),
    db: Session = Depends(get_db),
    trip_status: Optional[TripStatus] = Query(None, alias="status"),
    trip_type: Optional[TripType] = Query(None, alias="type"),
    delivery_person_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> TripListResponse:
    result = trips.list_trips(
        db,
        status=trip_status,
        delivery_person_id=delivery_person_id,
        trip_type=trip_type,
        start_date=start_date,
        end_date=end_date,
    )
    return TripListResponse(trips=[TripOut.model_validate(t) for t in result])


@trips_router.get("/{trip_id}", response_model=TripOut)
def get_trip(
    trip_id: int,
    user: User = Depends(require_roles(Role.FLOOR_MANAGER, Role.DELIVERY_PERSON)),
    db: Session = Depends(get_db),
) -> TripOut:
    return TripOut.model_validate(trips.get_trip_for(db, user, trip_id))


@trips_router.post("/{trip_id}/assign-orders", response_model=TripAssignmentResponse)
def assign_orders(
    trip_id: int,
    payload: TripAssignOrders,
    manager: User = Depends(require_manager),
    db: Session = Depends(get_db),
) -> TripAssignmentResponse:
    trip, assigned, skipped = trips.assign_orders(db, manager, trip_id, payload.order_ids)
    return TripAssignmentResponse(
        trip=TripOut.model_validate(trip),
        assigned_order_ids=assigned,
        skipped_order_ids=skipped,
    )
