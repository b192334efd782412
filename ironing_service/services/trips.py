"""
Trip Service for the Ironing Service
====================================

A trip is one delivery person's batch run, either collecting garments
(PICKUP) or returning them (DELIVERY). Floor managers create trips and attach
orders; attaching an order moves it through the state machine:

    PICKUP trip:   PLACED             -> ASSIGNED_FOR_PICKUP
    DELIVERY trip: READY_FOR_DELIVERY -> ASSIGNED_FOR_DELIVERY

Orders in any other status are skipped and reported back so the manager can
see what did not fit.

Trip Completion:
----------------
complete_trip_if_done is called after every status update. A pickup trip is
COMPLETED once all its orders have reached the center (AT_CENTER or later,
including a later DELIVERY_FAILED or REFUND_REQUESTED) or dropped out
(PICKUP_FAILED, CANCELLED); a delivery trip once all its
orders are DELIVERED, COMPLETED or DELIVERY_FAILED. A PENDING trip becomes
IN_PROGRESS as soon as one of its orders moves past assignment; a customer
cancelling an order does not start the trip.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..models import Order, OrderStatus, Role, Trip, TripStatus, TripType, User
from ..order_state_machine import apply_transition
from .orders import AccessDeniedError, NotFoundError, ValidationError


logger = logging.getLogger(__name__)

# Status an order must be in to join a trip, and the status it moves to
ASSIGNMENT_RULES = {
    TripType.PICKUP: (OrderStatus.PLACED, OrderStatus.ASSIGNED_FOR_PICKUP),
    TripType.DELIVERY: (OrderStatus.READY_FOR_DELIVERY, OrderStatus.ASSIGNED_FOR_DELIVERY),
}

PICKUP_DONE_STATUSES = frozenset({
    OrderStatus.AT_CENTER,
    OrderStatus.PROCESSING,
    OrderStatus.QC,
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.ASSIGNED_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
    OrderStatus.DELIVERY_FAILED,
    OrderStatus.REFUND_REQUESTED,
    # nothing left to collect for these
    OrderStatus.PICKUP_FAILED,
    OrderStatus.CANCELLED,
})

# Orders that left a trip without the trip doing any work
DROPPED_OUT_STATUSES = frozenset({OrderStatus.CANCELLED})

DELIVERY_DONE_STATUSES = frozenset({
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
    OrderStatus.DELIVERY_FAILED,
})


def get_trip(db: Session, trip_id: int) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if trip is None:
        raise NotFoundError("Trip not found")
    return trip


def get_trip_for(db: Session, user: User, trip_id: int) -> Trip:
    """Delivery persons may only look at their own trips."""
    trip = get_trip(db, trip_id)
    if user.role == Role.DELIVERY_PERSON and trip.delivery_person_id != user.id:
        raise AccessDeniedError("Access denied - not your trip")
    return trip


def list_trips(
    db: Session,
    status: Optional[TripStatus] = None,
    delivery_person_id: Optional[int] = None,
    trip_type: Optional[TripType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Trip]:
    query = db.query(Trip)
    if status is not None:
        query = query.filter(Trip.status == status)
    if delivery_person_id is not None:
        query = query.filter(Trip.delivery_person_id == delivery_person_id)
    if trip_type is not None:
        query = query.filter(Trip.type == trip_type)
    if start_date is not None:
        query = query.filter(Trip.scheduled_date >= start_date)
    if end_date is not None:
        query = query.filter(Trip.scheduled_date <= end_date)
    return query.order_by(Trip.scheduled_date.desc(), Trip.id.desc()).all()


def _attach_orders(
    db: Session,
    trip: Trip,
    actor: User,
    order_ids: Sequence[int],
) -> Tuple[List[int], List[int]]:
    required, target = ASSIGNMENT_RULES[trip.type]
    assigned, skipped = [], []

    orders = db.query(Order).filter(Order.id.in_(set(order_ids))).order_by(Order.id).all()
    found = {o.id for o in orders}
    skipped.extend(sorted(set(order_ids) - found))

    for order in orders:
        if order.status != required:
            skipped.append(order.id)
            continue
        if trip.type == TripType.PICKUP:
            order.pickup_trip_id = trip.id
        else:
            order.delivery_trip_id = trip.id
        apply_transition(
            db,
            order,
            target,
            actor_id=actor.id,
            actor_role=actor.role,
            metadata={"action": "assigned_to_trip", "trip_id": trip.id},
        )
        assigned.append(order.id)

    return assigned, sorted(skipped)


def create_trip(
    db: Session,
    actor: User,
    delivery_person_id: int,
    trip_type: TripType,
    scheduled_date: date,
    start_time: str,
    end_time: str,
    order_ids: Optional[Sequence[int]] = None,
) -> Tuple[Trip, List[int], List[int]]:
    """
    Create a trip and optionally attach orders to it.

    Returns:
        (trip, assigned order ids, skipped order ids)
    """
    delivery_person = db.query(User).filter(User.id == delivery_person_id).first()
    if delivery_person is None or delivery_person.role != Role.DELIVERY_PERSON:
        raise ValidationError("Invalid delivery person ID")

    try:
        trip = Trip(
            delivery_person_id=delivery_person_id,
            type=trip_type,
            status=TripStatus.PENDING,
            scheduled_date=scheduled_date,
            start_time=start_time,
            end_time=end_time,
        )
        db.add(trip)
        db.flush()

        assigned, skipped = [], []
        if order_ids:
            assigned, skipped = _attach_orders(db, trip, actor, order_ids)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(trip)
    logger.info(
        "Trip %s (%s) created for delivery person %s with %d orders",
        trip.id, trip_type.value, delivery_person_id, len(assigned),
    )
    return trip, assigned, skipped


def assign_orders(
    db: Session,
    actor: User,
    trip_id: int,
    order_ids: Sequence[int],
) -> Tuple[Trip, List[int], List[int]]:
    if not order_ids:
        raise ValidationError("Order IDs are required")

    trip = get_trip(db, trip_id)
    if trip.status == TripStatus.COMPLETED:
        raise ValidationError("Trip is already completed")

    try:
        assigned, skipped = _attach_orders(db, trip, actor, order_ids)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(trip)
    return trip, assigned, skipped


def _sync_trip_status(trip: Trip, waiting_status: OrderStatus, done: frozenset) -> bool:
    """
    PENDING -> IN_PROGRESS once any order has moved past assignment,
    -> COMPLETED once every order is done. Returns True if the trip changed.
    """
    orders = trip.orders
    if trip.status == TripStatus.COMPLETED or not orders:
        return False

    if all(o.status in done for o in orders):
        trip.status = TripStatus.COMPLETED
        logger.info("Trip %s completed - all %d orders finished", trip.id, len(orders))
        return True

    if trip.status == TripStatus.PENDING and any(
        o.status not in (waiting_status, *DROPPED_OUT_STATUSES) for o in orders
    ):
        trip.status = TripStatus.IN_PROGRESS
        return True

    return False


def complete_trip_if_done(db: Session, order: Order) -> None:
    """Bring the order's pickup/delivery trips up to date after a status change."""
    changed = False
    if order.pickup_trip is not None:
        changed |= _sync_trip_status(order.pickup_trip, OrderStatus.ASSIGNED_FOR_PICKUP, PICKUP_DONE_STATUSES)
    if order.delivery_trip is not None:
        changed |= _sync_trip_status(order.delivery_trip, OrderStatus.ASSIGNED_FOR_DELIVERY, DELIVERY_DONE_STATUSES)
    if changed:
        db.commit()
