"""
Tests for the order service: wallet charging, timeslot seats, edits and
cancellations, and the guarantee that a failed write leaves nothing behind.
"""

import pytest

from ironing_service.models import Order, OrderLog, OrderStatus, Timeslot, User, Wallet
from ironing_service.order_state_machine import InvalidTransitionError, OrderNotFoundError
from ironing_service.services import orders as order_service
from ironing_service.services.orders import (
    AccessDeniedError,
    InsufficientBalanceError,
    NotFoundError,
    TimeslotFullError,
    ValidationError,
)

from conftest import CUSTOMER_BALANCE


def _balance(db_session, user_id):
    db_session.expire_all()
    return db_session.query(Wallet).filter(Wallet.user_id == user_id).one().balance_cents


def _remaining(db_session, timeslot_id):
    db_session.expire_all()
    return db_session.get(Timeslot, timeslot_id).remaining_capacity


def _user(db_session, seed, key):
    return db_session.get(User, seed.user_ids[key])


class TestCreateOrder:

    def test_charges_wallet_and_takes_seat(self, db_session, seed):
        order = order_service.create_order(
            db_session,
            _user(db_session, seed, "customer"),
            address_id=seed.address_id,
            timeslot_id=seed.timeslot_id,
            items=[
                {"service_id": seed.shirt_id, "quantity": 3},
                {"service_id": seed.pants_id, "quantity": 1},
            ],
        )

        assert order.status == OrderStatus.PLACED
        assert order.total_cents == 3 * 500 + 700
        assert order.delivery_charge_cents == 0
        assert order.center_id == seed.center_id
        assert order.payment_method == "WALLET"
        assert [(i.name, i.quantity, i.price_cents) for i in order.items] == [
            ("Shirt", 3, 500),
            ("Pants", 1, 700),
        ]
        assert _balance(db_session, seed.user_ids["customer"]) == CUSTOMER_BALANCE - 2200
        assert _remaining(db_session, seed.timeslot_id) == 9

    def test_initial_log_has_no_from_status(self, db_session, seed, place_order):
        order_id = place_order()

        logs = db_session.query(OrderLog).filter(OrderLog.order_id == order_id).all()
        assert len(logs) == 1
        assert logs[0].from_status is None
        assert logs[0].to_status == OrderStatus.PLACED
        assert logs[0].actor_id == seed.user_ids["customer"]

    def test_premium_delivery_adds_charge_and_shortens_eta(self, db_session, seed):
        customer = _user(db_session, seed, "customer")
        standard = order_service.create_order(
            db_session, customer, seed.address_id, seed.timeslot_id,
            items=[{"service_id": seed.shirt_id, "quantity": 1}],
        )
        premium = order_service.create_order(
            db_session, customer, seed.address_id, seed.timeslot_id,
            items=[{"service_id": seed.shirt_id, "quantity": 1}],
            delivery_type="PREMIUM",
        )

        assert premium.delivery_charge_cents == 5000
        assert premium.total_cents == 5500
        turnaround = standard.estimated_delivery_time - premium.estimated_delivery_time
        assert 23 * 3600 < turnaround.total_seconds() < 25 * 3600

    def test_insufficient_balance_leaves_nothing_behind(self, db_session, seed):
        with pytest.raises(InsufficientBalanceError) as exc_info:
            order_service.create_order(
                db_session,
                _user(db_session, seed, "customer"),
                seed.address_id,
                seed.timeslot_id,
                items=[{"service_id": seed.dress_id, "quantity": 50}],
            )

        assert exc_info.value.to_dict() == {
            "detail": "Insufficient wallet balance",
            "required": 60000,
            "available": CUSTOMER_BALANCE,
        }
        assert _balance(db_session, seed.user_ids["customer"]) == CUSTOMER_BALANCE
        assert _remaining(db_session, seed.timeslot_id) == 10
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderLog).count() == 0

    def test_full_timeslot_rejected(self, db_session, seed, place_order):
        place_order(timeslot_id=seed.last_seat_timeslot_id)

        with pytest.raises(TimeslotFullError):
            place_order(timeslot_id=seed.last_seat_timeslot_id)

        assert _remaining(db_session, seed.last_seat_timeslot_id) == 0
        assert db_session.query(Order).count() == 1

    def test_unknown_service(self, db_session, seed):
        with pytest.raises(NotFoundError, match="services not found"):
            order_service.create_order(
                db_session, _user(db_session, seed, "customer"), seed.address_id, seed.timeslot_id,
                items=[{"service_id": 999, "quantity": 1}],
            )
        assert _remaining(db_session, seed.timeslot_id) == 10

    def test_someone_elses_address(self, db_session, seed):
        with pytest.raises(NotFoundError, match="Address not found"):
            order_service.create_order(
                db_session, _user(db_session, seed, "customer"), seed.other_address_id, seed.timeslot_id,
                items=[{"service_id": seed.shirt_id, "quantity": 1}],
            )

    def test_bad_delivery_type(self, db_session, seed):
        with pytest.raises(ValidationError, match="Invalid delivery type"):
            order_service.create_order(
                db_session, _user(db_session, seed, "customer"), seed.address_id, seed.timeslot_id,
                items=[{"service_id": seed.shirt_id, "quantity": 1}],
                delivery_type="EXPRESS",
            )

    def test_zero_quantity(self, db_session, seed):
        with pytest.raises(ValidationError, match="positive quantity"):
            order_service.create_order(
                db_session, _user(db_session, seed, "customer"), seed.address_id, seed.timeslot_id,
                items=[{"service_id": seed.shirt_id, "quantity": 0}],
            )


class TestUpdateOrder:

    def test_reprices_and_charges_difference(self, db_session, seed, place_order):
        order_id = place_order()  # 2 shirts = 1000

        order = order_service.update_order(
            db_session,
            _user(db_session, seed, "customer"),
            order_id,
            items=[{"service_id": seed.dress_id, "quantity": 2}],
            delivery_type="PREMIUM",
        )

        assert order.total_cents == 2400 + 5000
        assert _balance(db_session, seed.user_ids["customer"]) == CUSTOMER_BALANCE - 7400

    def test_refunds_when_cheaper(self, db_session, seed, place_order):
        order_id = place_order(items=[{"service_id": seed.dress_id, "quantity": 3}])

        order_service.update_order(
            db_session, _user(db_session, seed, "customer"), order_id,
            items=[{"service_id": seed.shirt_id, "quantity": 1}],
        )

        assert _balance(db_session, seed.user_ids["customer"]) == CUSTOMER_BALANCE - 500

    def test_moving_timeslot_moves_the_seat(self, db_session, seed, place_order):
        order_id = place_order()

        order_service.update_order(
            db_session, _user(db_session, seed, "customer"), order_id,
            timeslot_id=seed.other_timeslot_id,
        )

        assert _remaining(db_session, seed.timeslot_id) == 10
        assert _remaining(db_session, seed.other_timeslot_id) == 9

    def test_not_after_assignment(self, db_session, seed, place_order, advance_order):
        order_id = place_order()
        advance_order(order_id, OrderStatus.ASSIGNED_FOR_PICKUP)

        with pytest.raises(ValidationError, match="cannot be updated"):
            order_service.update_order(
                db_session, _user(db_session, seed, "customer"), order_id,
                address_id=seed.office_address_id,
            )

    def test_only_owner(self, db_session, seed, place_order):
        order_id = place_order()
        with pytest.raises(AccessDeniedError):
            order_service.update_order(
                db_session, _user(db_session, seed, "other_customer"), order_id,
                delivery_type="PREMIUM",
            )


class TestCancelOrder:

    def test_refunds_and_releases_seat(self, db_session, seed, place_order):
        order_id = place_order()

        order = order_service.cancel_order(
            db_session, _user(db_session, seed, "customer"), order_id, "Changed my mind",
        )

        assert order.status == OrderStatus.CANCELLED
        assert order.cancellation_reason == "Changed my mind"
        assert _balance(db_session, seed.user_ids["customer"]) == CUSTOMER_BALANCE
        assert _remaining(db_session, seed.timeslot_id) == 10
        last_log = order.logs[-1]
        assert last_log.from_status == OrderStatus.PLACED
        assert last_log.to_status == OrderStatus.CANCELLED
        assert last_log.log_metadata == {"reason": "Changed my mind"}

    def test_allowed_while_assigned_for_pickup(self, db_session, seed, place_order, advance_order):
        order_id = place_order()
        advance_order(order_id, OrderStatus.ASSIGNED_FOR_PICKUP)

        order = order_service.cancel_order(db_session, _user(db_session, seed, "customer"), order_id, "Away")
        assert order.status == OrderStatus.CANCELLED

    def test_not_after_pickup(self, db_session, seed, place_order, advance_order):
        order_id = place_order()
        advance_order(order_id, OrderStatus.ASSIGNED_FOR_PICKUP, OrderStatus.PICKED_UP)

        with pytest.raises(ValidationError, match="cannot be cancelled"):
            order_service.cancel_order(db_session, _user(db_session, seed, "customer"), order_id, "Too late")
        assert _balance(db_session, seed.user_ids["customer"]) == CUSTOMER_BALANCE - 1000

    def test_reason_required(self, db_session, seed, place_order):
        order_id = place_order()
        with pytest.raises(ValidationError, match="reason is required"):
            order_service.cancel_order(db_session, _user(db_session, seed, "customer"), order_id, "  ")


class TestUpdateStatus:

    def test_customer_cannot_move_orders(self, db_session, seed, place_order):
        order_id = place_order()
        with pytest.raises(AccessDeniedError):
            order_service.update_status(
                db_session, _user(db_session, seed, "customer"), order_id, "ASSIGNED_FOR_PICKUP",
            )

    def test_unassigned_partner_rejected(self, db_session, seed, place_order):
        order_id = place_order()
        with pytest.raises(AccessDeniedError, match="not assigned"):
            order_service.update_status(
                db_session, _user(db_session, seed, "partner"), order_id, "ASSIGNED_FOR_PICKUP",
            )

    def test_default_metadata_records_role(self, db_session, seed, place_order):
        order_id = place_order()
        order = order_service.update_status(
            db_session, _user(db_session, seed, "manager"), order_id, "ASSIGNED_FOR_PICKUP",
        )
        assert order.logs[-1].log_metadata == {"updatedBy": "FLOOR_MANAGER"}

    def test_illegal_move_rolls_back(self, db_session, seed, place_order):
        order_id = place_order()
        with pytest.raises(InvalidTransitionError):
            order_service.update_status(db_session, _user(db_session, seed, "admin"), order_id, "QC")

        db_session.expire_all()
        assert db_session.get(Order, order_id).status == OrderStatus.PLACED

    def test_unknown_order(self, db_session, seed):
        with pytest.raises(OrderNotFoundError):
            order_service.update_status(db_session, _user(db_session, seed, "admin"), 9999, "CANCELLED")
