"""
Order Service for the Ironing Service
=====================================

Business logic for placing, editing, cancelling, and reading orders. Routes
stay thin: they parse the request, call one function here, and serialize the
result.

Key Functions:
--------------
- create_order: price items, charge the wallet, take a timeslot seat, insert
  the order with its initial PLACED log row
- update_order: re-price an order that has not been picked up yet
- cancel_order: refund, give the seat back, and transition to CANCELLED
- update_status: staff-driven transition through the state machine
- mark_pickup_failure: record why a pickup failed and close the order

Money:
------
All amounts are integer cents. total = sum(unit price * quantity) + delivery
charge (STANDARD 0, PREMIUM 5000 by default, see config.py).

Atomicity:
----------
Each public function performs all of its writes in one transaction and
commits once at the end; on any error the session is rolled back, so a
failed order never leaves a charged wallet or a consumed seat behind.
Wallet and seat counters are changed with conditional UPDATEs
(``balance_cents >= amount``, ``remaining_capacity > 0``), which the database
evaluates atomically, so two concurrent requests cannot both spend the last
rupee or the last seat.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from .. import config
from ..auth import STAFF_ROLES
from ..models import (
    Address,
    Order,
    OrderItem,
    OrderStatus,
    Role,
    Service,
    Timeslot,
    User,
    Wallet,
)
from ..order_state_machine import OrderNotFoundError, apply_transition, record_initial_status


logger = logging.getLogger(__name__)

# Orders the customer may still edit
UPDATABLE_STATUSES = (OrderStatus.PLACED,)

# Orders the customer may still cancel
CANCELLABLE_STATUSES = (OrderStatus.PLACED, OrderStatus.ASSIGNED_FOR_PICKUP)

# Stages shown on the center operator dashboard
CENTER_PROCESSING_STATUSES = (
    OrderStatus.AT_CENTER,
    OrderStatus.PROCESSING,
    OrderStatus.QC,
    OrderStatus.READY_FOR_DELIVERY,
)


# =============================================================================
# Errors
# =============================================================================

class OrderServiceError(Exception):
    """Base class for order/trip business errors; carries an HTTP status code."""

    status_code = 400

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, **self.extra}


class ValidationError(OrderServiceError):
    status_code = 400


class NotFoundError(OrderServiceError):
    status_code = 404


class AccessDeniedError(OrderServiceError):
    status_code = 403


class InsufficientBalanceError(OrderServiceError):
    status_code = 400

    def __init__(self, required: int, available: int):
        super().__init__("Insufficient wallet balance", required=required, available=available)


class TimeslotFullError(OrderServiceError):
    status_code = 400

    def __init__(self, timeslot_id: int):
        super().__init__("Timeslot is full", timeslot_id=timeslot_id)


# =============================================================================
# Helpers
# =============================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_delivery_type(delivery_type: Optional[str]) -> str:
    delivery_type = delivery_type or "STANDARD"
    if delivery_type not in config.DELIVERY_TYPES:
        raise ValidationError("Invalid delivery type")
    return delivery_type


def _estimated_delivery_time(delivery_type: str) -> datetime:
    return _utcnow() + timedelta(hours=config.DELIVERY_TURNAROUND_HOURS[delivery_type])


def price_items(db: Session, items: Sequence[Dict[str, int]]) -> Tuple[List[OrderItem], int]:
    """
    Turn requested items into OrderItem rows priced at current service rates.

    Args:
        db: Database session
        items: [{"service_id": 1, "quantity": 3}, ...]

    Returns:
        (unsaved OrderItem list, subtotal in cents)
    """
    if not items:
        raise ValidationError("Missing required fields: items")

    for item in items:
        if not item.get("service_id") or not item.get("quantity") or item["quantity"] <= 0:
            raise ValidationError("Invalid item: must have service_id and positive quantity")

    service_ids = {item["service_id"] for item in items}
    services = {
        s.id: s
        for s in db.query(Service).filter(Service.id.in_(service_ids), Service.is_active.is_(True)).all()
    }
    if len(services) != len(service_ids):
        raise NotFoundError("One or more services not found")

    lines = []
    subtotal = 0
    for item in items:
        service = services[item["service_id"]]
        subtotal += service.base_price_cents * item["quantity"]
        lines.append(OrderItem(
            service_id=service.id,
            name=service.name,
            quantity=item["quantity"],
            price_cents=service.base_price_cents,
        ))
    return lines, subtotal


def _get_owned_address(db: Session, user: User, address_id: int) -> Address:
    address = db.query(Address).filter(Address.id == address_id).first()
    if address is None or address.user_id != user.id:
        raise NotFoundError("Address not found or access denied")
    return address


def _get_wallet(db: Session, user_id: int) -> Wallet:
    wallet = db.query(Wallet).filter(Wallet.user_id == user_id).first()
    if wallet is None:
        raise NotFoundError("Wallet not found")
    return wallet


def _debit_wallet(db: Session, user_id: int, amount_cents: int) -> None:
    """Subtract amount_cents, failing if the balance would go negative."""
    wallet = _get_wallet(db, user_id)
    if wallet.balance_cents < amount_cents:
        raise InsufficientBalanceError(required=amount_cents, available=wallet.balance_cents)

    result = db.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id, Wallet.balance_cents >= amount_cents)
        .values(balance_cents=Wallet.balance_cents - amount_cents)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        # Someone else spent the money between our read and our write
        db.refresh(wallet)
        raise InsufficientBalanceError(required=amount_cents, available=wallet.balance_cents)


def _credit_wallet(db: Session, user_id: int, amount_cents: int) -> None:
    _get_wallet(db, user_id)
    db.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id)
        .values(balance_cents=Wallet.balance_cents + amount_cents)
        .execution_options(synchronize_session="fetch")
    )


def _reserve_seat(db: Session, timeslot_id: int) -> Timeslot:
    timeslot = db.query(Timeslot).filter(Timeslot.id == timeslot_id).first()
    if timeslot is None:
        raise NotFoundError("Timeslot not found")
    if timeslot.remaining_capacity <= 0:
        raise TimeslotFullError(timeslot_id)

    result = db.execute(
        update(Timeslot)
        .where(Timeslot.id == timeslot_id, Timeslot.remaining_capacity > 0)
        .values(remaining_capacity=Timeslot.remaining_capacity - 1)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        raise TimeslotFullError(timeslot_id)
    return timeslot


def _release_seat(db: Session, timeslot_id: int) -> None:
    db.execute(
        update(Timeslot)
        .where(Timeslot.id == timeslot_id, Timeslot.remaining_capacity < Timeslot.capacity)
        .values(remaining_capacity=Timeslot.remaining_capacity + 1)
        .execution_options(synchronize_session="fetch")
    )


def get_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


def is_assigned_partner(order: Order, user: User) -> bool:
    """True when user drives the pickup or delivery trip the order belongs to."""
    return (
        (order.pickup_trip is not None and order.pickup_trip.delivery_person_id == user.id)
        or (order.delivery_trip is not None and order.delivery_trip.delivery_person_id == user.id)
    )


# =============================================================================
# Reads
# =============================================================================

def get_order_for_user(db: Session, user: User, order_id: int) -> Order:
    """Return the order if user may see it: customers only their own, staff any."""
    order = get_order(db, order_id)
    if user.role == Role.USER and order.user_id != user.id:
        raise AccessDeniedError("Access denied")
    return order


def list_user_orders(db: Session, user: User) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_center_orders(db: Session, center_id: int) -> List[Order]:
    """Orders at a center that are somewhere in processing, oldest first."""
    return (
        db.query(Order)
        .filter(
            Order.center_id == center_id,
            Order.status.in_(CENTER_PROCESSING_STATUSES),
        )
        .order_by(Order.created_at.asc(), Order.id.asc())
        .all()
    )


# =============================================================================
# Writes
# =============================================================================

def create_order(
    db: Session,
    user: User,
    address_id: int,
    timeslot_id: int,
    items: Sequence[Dict[str, int]],
    delivery_type: Optional[str] = None,
    center_id: Optional[int] = None,
) -> Order:
    """
    Place a new order paid from the user's wallet.

    Returns:
        The committed Order (status PLACED) with its items and first log row

    Raises:
        ValidationError: bad delivery type or items
        NotFoundError: address, timeslot, service, or wallet missing
        TimeslotFullError: no seats left in the timeslot
        InsufficientBalanceError: wallet cannot cover the total
    """
    delivery_type = _validate_delivery_type(delivery_type)

    try:
        _get_owned_address(db, user, address_id)
        timeslot = _reserve_seat(db, timeslot_id)
        lines, subtotal = price_items(db, items)

        delivery_charge = config.DELIVERY_CHARGES_CENTS[delivery_type]
        total = subtotal + delivery_charge
        _debit_wallet(db, user.id, total)

        order = Order(
            user_id=user.id,
            address_id=address_id,
            center_id=center_id or timeslot.center_id,
            timeslot_id=timeslot_id,
            status=OrderStatus.PLACED,
            delivery_type=delivery_type,
            delivery_charge_cents=delivery_charge,
            estimated_delivery_time=_estimated_delivery_time(delivery_type),
            total_cents=total,
            payment_method="WALLET",
            items=lines,
        )
        db.add(order)
        db.flush()

        record_initial_status(db, order, actor_id=user.id, actor_role=user.role)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s placed by user %s for %s cents", order.id, user.id, total)
    return order


def update_order(
    db: Session,
    user: User,
    order_id: int,
    address_id: Optional[int] = None,
    timeslot_id: Optional[int] = None,
    delivery_type: Optional[str] = None,
    items: Optional[Sequence[Dict[str, int]]] = None,
) -> Order:
    """
    Edit an order before pickup. The wallet is charged or refunded the difference.

    Only provided fields change. Moving to another timeslot releases the old
    seat and takes one in the new slot.
    """
    order = get_order(db, order_id)
    if order.user_id != user.id:
        raise AccessDeniedError("Access denied")
    if order.status not in UPDATABLE_STATUSES:
        raise ValidationError("Order cannot be updated after pickup", current_status=order.status.value)

    try:
        if address_id is not None and address_id != order.address_id:
            _get_owned_address(db, user, address_id)
            order.address_id = address_id

        if timeslot_id is not None and timeslot_id != order.timeslot_id:
            _reserve_seat(db, timeslot_id)
            _release_seat(db, order.timeslot_id)
            order.timeslot_id = timeslot_id

        if delivery_type is not None:
            delivery_type = _validate_delivery_type(delivery_type)
            order.delivery_type = delivery_type
            order.delivery_charge_cents = config.DELIVERY_CHARGES_CENTS[delivery_type]
            order.estimated_delivery_time = _estimated_delivery_time(delivery_type)

        if items is not None:
            lines, subtotal = price_items(db, items)
            order.items = lines
        else:
            subtotal = sum(line.price_cents * line.quantity for line in order.items)

        new_total = subtotal + order.delivery_charge_cents
        difference = new_total - order.total_cents
        if difference > 0:
            _debit_wallet(db, user.id, difference)
        elif difference < 0:
            _credit_wallet(db, user.id, -difference)
        order.total_cents = new_total

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s updated by user %s (difference %s cents)", order.id, user.id, difference)
    return order


def cancel_order(db: Session, user: User, order_id: int, reason: Optional[str]) -> Order:
    """
    Cancel an order that has not been picked up yet.

    Refunds the full total to the wallet, gives the timeslot seat back, and
    moves the order to CANCELLED through the state machine, all in one
    transaction.
    """
    if not reason or not reason.strip():
        raise ValidationError("Cancellation reason is required")

    order = get_order(db, order_id)
    if order.user_id != user.id:
        raise AccessDeniedError("Access denied")
    if order.status not in CANCELLABLE_STATUSES:
        raise ValidationError(
            "Order cannot be cancelled",
            current_status=order.status.value,
        )

    try:
        _credit_wallet(db, order.user_id, order.total_cents)
        _release_seat(db, order.timeslot_id)
        order.cancellation_reason = reason.strip()
        apply_transition(
            db,
            order,
            OrderStatus.CANCELLED,
            actor_id=user.id,
            actor_role=user.role,
            metadata={"reason": reason.strip()},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s cancelled by user %s, refunded %s cents", order.id, user.id, order.total_cents)
    return order


def update_status(
    db: Session,
    actor: User,
    order_id: int,
    to_status: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> Order:
    """
    Staff-driven status change. Delivery persons may only move orders on
    their own trips; customers may not use this at all.
    """
    if actor.role not in STAFF_ROLES:
        raise AccessDeniedError("Access denied")

    order = get_order(db, order_id)
    if actor.role == Role.DELIVERY_PERSON and not is_assigned_partner(order, actor):
        raise AccessDeniedError("Access denied - order not assigned to you")

    try:
        apply_transition(
            db,
            order,
            to_status,
            actor_id=actor.id,
            actor_role=actor.role,
            metadata=metadata if metadata is not None else {"updatedBy": actor.role.value},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    return order


def mark_pickup_failure(db: Session, actor: User, order_id: int, reason: Optional[str]) -> Order:
    """Close an order the delivery person could not collect."""
    if not reason or not reason.strip():
        raise ValidationError("Failure reason is required")

    order = get_order(db, order_id)
    if order.pickup_trip is None or order.pickup_trip.delivery_person_id != actor.id:
        raise AccessDeniedError("Access denied - order not assigned to you")

    try:
        order.pickup_failure_reason = reason.strip()
        apply_transition(
            db,
            order,
            OrderStatus.PICKUP_FAILED,
            actor_id=actor.id,
            actor_role=actor.role,
            metadata={"action": "pickup_failed", "reason": reason.strip()},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    return order
