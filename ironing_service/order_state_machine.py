"""
Order Status State Machine
==========================

Enforces the legal lifecycle of an order and writes the audit trail.

Every order moves strictly forward through a fixed directed graph:

    PLACED -> ASSIGNED_FOR_PICKUP -> PICKED_UP -> AT_CENTER -> PROCESSING
           -> QC -> READY_FOR_DELIVERY -> ASSIGNED_FOR_DELIVERY
           -> OUT_FOR_DELIVERY -> DELIVERED -> COMPLETED

with side exits to CANCELLED (before pickup), PICKUP_FAILED and
DELIVERY_FAILED. COMPLETED and the four exception states (CANCELLED,
PICKUP_FAILED, DELIVERY_FAILED, REFUND_REQUESTED) have no outgoing edges.

Audit Trail:
------------
Each successful transition appends exactly one OrderLog row with the
previous status, the new status, who did it, and free-form metadata. The
status change and the log row are written in the same database transaction,
so the audit trail can never diverge from the order.

Concurrency:
------------
Order.version is a SQLAlchemy version counter. Two requests racing to move
the same order both read version N; the first commit bumps it to N+1 and the
second UPDATE matches zero rows, raising StaleDataError. Routes turn that
into 409 Conflict.

Usage:
------
    from ironing_service.order_state_machine import transition_order_status

    order = transition_order_status(
        db,
        order_id=42,
        to_status=OrderStatus.PICKED_UP,
        actor_id=user.id,
        actor_role=user.role,
        metadata={"action": "pickup_verified"},
    )

Callers that need additional writes in the same transaction (wallet refund,
timeslot seat restore) pass ``commit=False`` and commit themselves.
"""

import logging
from typing import Any, Dict, FrozenSet, List, Optional, Union

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .models import Order, OrderLog, OrderStatus, Role


logger = logging.getLogger(__name__)


# =============================================================================
# Transition Table
# =============================================================================

STATE_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({
        OrderStatus.ASSIGNED_FOR_PICKUP,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.ASSIGNED_FOR_PICKUP: frozenset({
        OrderStatus.PICKED_UP,
        OrderStatus.PICKUP_FAILED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.AT_CENTER}),
    OrderStatus.AT_CENTER: frozenset({OrderStatus.PROCESSING}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.QC}),
    OrderStatus.QC: frozenset({OrderStatus.READY_FOR_DELIVERY}),
    OrderStatus.READY_FOR_DELIVERY: frozenset({OrderStatus.ASSIGNED_FOR_DELIVERY}),
    OrderStatus.ASSIGNED_FOR_DELIVERY: frozenset({
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERY_FAILED,
    }),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({
        OrderStatus.DELIVERED,
        OrderStatus.DELIVERY_FAILED,
    }),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.PICKUP_FAILED: frozenset(),
    OrderStatus.DELIVERY_FAILED: frozenset(),
    OrderStatus.REFUND_REQUESTED: frozenset(),
}

# Exception states stop the normal workflow for good
EXCEPTION_STATES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.CANCELLED,
    OrderStatus.PICKUP_FAILED,
    OrderStatus.DELIVERY_FAILED,
    OrderStatus.REFUND_REQUESTED,
})

# Declaration order of the enum is the lifecycle order; used for stable output
_STATUS_ORDER = {status: index for index, status in enumerate(OrderStatus)}


# =============================================================================
# Errors
# =============================================================================

class OrderNotFoundError(Exception):
    """Raised when a transition targets an order id that does not exist."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class UnknownStatusError(ValueError):
    """Raised when a requested status is not part of the OrderStatus enum."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid status value: {value}")


class InvalidTransitionError(Exception):
    """Raised when the transition table does not allow from_status -> to_status."""

    def __init__(
        self,
        from_status: OrderStatus,
        to_status: OrderStatus,
        allowed: List[OrderStatus],
        message: Optional[str] = None,
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed
        if message is None:
            allowed_str = ", ".join(s.value for s in allowed) or "none"
            message = (
                f"Invalid transition from {from_status.value} to {to_status.value}. "
                f"Allowed transitions: {allowed_str}"
            )
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": str(self),
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "allowed_transitions": [s.value for s in self.allowed],
        }


class TerminalStateError(InvalidTransitionError):
    """Raised when an order in an exception state is asked to move on."""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus):
        super().__init__(
            from_status,
            to_status,
            [],
            message=(
                f"Cannot transition from exception state {from_status.value}. "
                f"Order is in a terminal state."
            ),
        )


# =============================================================================
# Pure Queries
# =============================================================================

def coerce_status(value: Union[OrderStatus, str]) -> OrderStatus:
    """Return value as an OrderStatus, raising UnknownStatusError if it is not one."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise UnknownStatusError(value) from None


def allowed_transitions(status: Union[OrderStatus, str]) -> List[OrderStatus]:
    """Return the statuses reachable from status in one step, in lifecycle order."""
    status = coerce_status(status)
    return sorted(STATE_TRANSITIONS.get(status, frozenset()), key=_STATUS_ORDER.__getitem__)


def is_exception_state(status: Union[OrderStatus, str]) -> bool:
    return coerce_status(status) in EXCEPTION_STATES


def is_terminal(status: Union[OrderStatus, str]) -> bool:
    """True when no transition leaves status (COMPLETED or an exception state)."""
    return not STATE_TRANSITIONS[coerce_status(status)]


def validate_transition(
    from_status: Union[OrderStatus, str],
    to_status: Union[OrderStatus, str],
) -> bool:
    return coerce_status(to_status) in STATE_TRANSITIONS[coerce_status(from_status)]


def check_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    """
    Raise if from_status -> to_status is not a legal move.

    Raises:
        TerminalStateError: from_status is an exception state
        InvalidTransitionError: to_status is not in the allowed set
    """
    if from_status in EXCEPTION_STATES and from_status != to_status:
        raise TerminalStateError(from_status, to_status)

    if not validate_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status, allowed_transitions(from_status))


# =============================================================================
# Transitions
# =============================================================================

def _append_log(
    db: Session,
    order: Order,
    from_status: Optional[OrderStatus],
    to_status: OrderStatus,
    actor_id: int,
    actor_role: Union[Role, str],
    metadata: Optional[Dict[str, Any]],
) -> OrderLog:
    log = OrderLog(
        order_id=order.id,
        from_status=from_status,
        to_status=to_status,
        actor_id=actor_id,
        actor_role=Role(actor_role),
        log_metadata=dict(metadata or {}),
    )
    db.add(log)
    return log


def record_initial_status(
    db: Session,
    order: Order,
    actor_id: int,
    actor_role: Union[Role, str],
    metadata: Optional[Dict[str, Any]] = None,
) -> OrderLog:
    """
    Append the PLACED entry for a freshly created order.

    The order must already be flushed so it has an id. This is the only log
    row with a null from_status. Does not commit.
    """
    return _append_log(db, order, None, OrderStatus.PLACED, actor_id, actor_role, metadata)


def apply_transition(
    db: Session,
    order: Order,
    to_status: Union[OrderStatus, str],
    actor_id: int,
    actor_role: Union[Role, str],
    metadata: Optional[Dict[str, Any]] = None,
) -> OrderLog:
    """
    Validate and stage a transition on an already-loaded order.

    Sets the new status and adds the audit row to the session; the caller
    owns the commit.
    """
    to_status = coerce_status(to_status)
    actor_role = Role(actor_role)
    from_status = order.status

    check_transition(from_status, to_status)

    order.status = to_status
    log = _append_log(db, order, from_status, to_status, actor_id, actor_role, metadata)
    db.flush()

    logger.info(
        "Order %s: %s -> %s by %s %s",
        order.id, from_status.value, to_status.value, actor_role.value, actor_id,
    )
    return log


def transition_order_status(
    db: Session,
    order_id: int,
    to_status: Union[OrderStatus, str],
    actor_id: int,
    actor_role: Union[Role, str],
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> Order:
    """
    Move an order to a new status and record the transition.

    Args:
        db: Database session
        order_id: Order to transition
        to_status: Desired status
        actor_id: User performing the transition
        actor_role: Role of that user at the time of the transition
        metadata: Free-form context stored on the log row
        commit: When False, only flush; the caller commits

    On any error the session is rolled back, so a failed transition leaves
    neither the new status nor a log row behind.

    Returns:
        The updated Order

    Raises:
        UnknownStatusError: to_status is not an OrderStatus
        OrderNotFoundError: no order with order_id
        TerminalStateError: the order is in an exception state
        InvalidTransitionError: the move is not in the transition table
        StaleDataError: another request changed the order concurrently
    """
    to_status = coerce_status(to_status)

    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None:
        raise OrderNotFoundError(order_id)

    try:
        apply_transition(db, order, to_status, actor_id, actor_role, metadata)
        if commit:
            db.commit()
            db.refresh(order)
    except StaleDataError:
        db.rollback()
        logger.warning("Concurrent update detected on order %s", order_id)
        raise
    except Exception:
        db.rollback()
        raise

    return order
