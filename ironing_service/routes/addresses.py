"""
Address Routes for the Ironing Service
======================================

Endpoints:
----------
- GET /addresses: List the caller's saved addresses
- POST /addresses: Add an address
- PUT /addresses/{id}: Edit one of the caller's addresses
- DELETE /addresses/{id}: Remove one of the caller's addresses

Authentication:
---------------
Any signed-in user. Addresses belonging to someone else return 403.

Usage:
------
    POST /api/addresses
    {"label": "Home", "line1": "12 MG Road", "city": "Bengaluru", "pincode": "560001"}
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..db import get_db
from ..models import User
from ..schemas.addresses import AddressCreate, AddressListResponse, AddressOut, AddressUpdate
from ..services import addresses


addresses_router = APIRouter(prefix="/addresses", tags=["Addresses"])


@addresses_router.get("", response_model=AddressListResponse)
def list_addresses(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AddressListResponse:
    return AddressListResponse(
        addresses=[AddressOut.model_validate(a) for a in addresses.list_addresses(db, user)],
    )


@addresses_router.post("", response_model=AddressOut, status_code=status.HTTP_201_CREATED)
def create_address(
    payload: AddressCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AddressOut:
    address = addresses.create_address(db, user, payload.model_dump())
    return AddressOut.model_validate(address)


@addresses_router.put("/{address_id}", response_model=AddressOut)
def update_address(
    address_id: int,
    payload: AddressUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AddressOut:
    address = addresses.update_address(db, user, address_id, payload.model_dump(exclude_unset=True))
    return AddressOut.model_validate(address)


@addresses_router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_address(
    address_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    """Remove an address that no order refers to."""
    addresses.delete_address(db, user, address_id)
