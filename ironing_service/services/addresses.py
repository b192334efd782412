"""
Address Service for the Ironing Service
=======================================

Customers keep a small book of pickup/delivery addresses and pick one when
placing an order. Every function takes the calling user and only ever
touches that user's addresses.

An address that an order points at cannot be deleted, since the order still
has to be collected from and returned to it. Editing it is allowed.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ..models import Address, Order, User
from .orders import AccessDeniedError, NotFoundError, ValidationError


logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("label", "line1", "city", "pincode")


def _get_own_address(db: Session, user: User, address_id: int) -> Address:
    address = db.query(Address).filter(Address.id == address_id).first()
    if address is None:
        raise NotFoundError("Address not found")
    if address.user_id != user.id:
        raise AccessDeniedError("Access denied")
    return address


def list_addresses(db: Session, user: User) -> List[Address]:
    return (
        db.query(Address)
        .filter(Address.user_id == user.id)
        .order_by(Address.label, Address.id)
        .all()
    )


def create_address(db: Session, user: User, fields: Dict[str, Any]) -> Address:
    address = Address(user_id=user.id, **{k: fields[k] for k in EDITABLE_FIELDS})
    db.add(address)
    db.commit()
    db.refresh(address)
    logger.info("Created address %s for user %s", address.id, user.id)
    return address


def update_address(db: Session, user: User, address_id: int, changes: Dict[str, Any]) -> Address:
    """Apply the given fields; None values are left unchanged."""
    address = _get_own_address(db, user, address_id)

    for field in EDITABLE_FIELDS:
        value = changes.get(field)
        if value is not None:
            setattr(address, field, value)

    db.commit()
    db.refresh(address)
    return address


def delete_address(db: Session, user: User, address_id: int) -> None:
    address = _get_own_address(db, user, address_id)

    in_use = db.query(Order.id).filter(Order.address_id == address.id).first()
    if in_use is not None:
        raise ValidationError("Address is used by an existing order")

    try:
        db.delete(address)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted address %s for user %s", address_id, user.id)
