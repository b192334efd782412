"""
Routes Package for the Ironing Service
======================================

This package contains all API route definitions organized by domain. Each
module defines a FastAPI APIRouter with related endpoints grouped together.

Architecture Overview:
----------------------
**Customer-Facing Routes:**
- orders.py: Placing, editing, cancelling, and tracking orders
- addresses.py: The customer's saved addresses
- public.py: Service catalog, centers, and timeslots (no auth required)

**Staff Routes (require a bearer token with a staff role):**
- center.py: Processing stages inside an ironing center
- partner.py: Delivery-person pickup/delivery hand-offs
- trips.py: Trip planning for floor managers

Router Registration:
--------------------
All routers are registered in main.py under the /api prefix:

    api = APIRouter(prefix="/api")
    api.include_router(orders_router)
    ...

Route Dependencies:
-------------------
- get_db: Database session for queries
- get_current_user / require_roles(...): Bearer-token authentication
- otp_limit: Rate limiting on OTP endpoints

Error Handling:
---------------
Service-layer errors propagate out of the handlers and are mapped to
responses by the exception handlers in main.py:
- 400: Validation error or illegal status transition
- 401: Missing or unknown token
- 403: Role or ownership check failed
- 404: Order, trip, or other record not found
- 409: Order changed concurrently
- 429: Too many OTP attempts
"""

from .orders import orders_router
from .center import center_router
from .partner import partner_router
from .trips import trips_router
from .public import public_router
from .addresses import addresses_router

__all__ = [
    "orders_router",
    "center_router",
    "partner_router",
    "trips_router",
    "public_router",
    "addresses_router",
]
