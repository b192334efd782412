"""
Center Routes for the Ironing Service
=====================================

Endpoints for the staff working inside an ironing center.

Endpoints:
----------
- GET /center/{center_id}/orders: Orders currently in processing at a center
- POST /center/order/{id}/update-stage: Move an order to its next stage

Authentication:
---------------
CENTER_OPERATOR (or ADMIN) bearer token.

Stages:
-------
A picked-up order is marked AT_CENTER, then goes PROCESSING -> QC ->
READY_FOR_DELIVERY. Every move goes through the state machine and is
written to the order log with
``{"updatedBy": <role>, "stage": <status>}`` as metadata.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import require_roles
from ..db import get_db
from ..models import Role, User
from ..schemas.orders import (
    OrderActionResponse,
    OrderDetailOut,
    OrderListResponse,
    OrderOut,
    StatusUpdateRequest,
)
from ..services import orders, trips
from ..services.orders import ValidationError


logger = logging.getLogger(__name__)

center_router = APIRouter(prefix="/center", tags=["Center"])

require_operator = require_roles(Role.CENTER_OPERATOR)


@center_router.get("/{center_id}/orders", response_model=OrderListResponse)
def list_center_orders(
    center_id: int,
    _operator: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> OrderListResponse:
    """Orders at the center between AT_CENTER and READY_FOR_DELIVERY, oldest first."""
    return OrderListResponse(
        orders=[OrderDetailOut.model_validate(o) for o in orders.list_center_orders(db, center_id)]
    )


@center_router.post("/order/{order_id}/update-stage", response_model=OrderActionResponse)
def update_stage(
    order_id: int,
    payload: StatusUpdateRequest,
    operator: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> OrderActionResponse:
    if not payload.status:
        raise ValidationError("Status is required")

    order = orders.update_status(
        db,
        operator,
        order_id,
        payload.status,
        metadata={"updatedBy": operator.role.value, "stage": payload.status},
    )
    trips.complete_trip_if_done(db, order)
    logger.info("Center stage for order %s set to %s by user %s", order.id, order.status.value, operator.id)
    return OrderActionResponse(message="Order stage updated", order=OrderOut.model_validate(order))
