# Load environment variables FIRST, before any module imports that need them
from dotenv import load_dotenv
load_dotenv()

import logging

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm.exc import StaleDataError

from .config import CORS_ORIGINS
from .logging_config import setup_logging
from .middleware import RequestIDMiddleware
from .order_state_machine import InvalidTransitionError, OrderNotFoundError, UnknownStatusError
from .rate_limit import limiter
from .routes import (
    addresses_router,
    center_router,
    orders_router,
    partner_router,
    public_router,
    trips_router,
)
from .services.orders import OrderServiceError

# Configure logging at module load time
setup_logging()

logger = logging.getLogger(__name__)

# Database schema is managed by Alembic.
# Run `alembic upgrade head` before starting the server against Postgres.

app = FastAPI(
    title="Ironing Service API",
    description="Pickup-and-delivery laundry ironing marketplace",
    version="1.0.0",
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Orders", "description": "Customer orders and status changes"},
        {"name": "Center", "description": "Processing stages inside a center"},
        {"name": "Partner", "description": "Delivery-person pickup and delivery"},
        {"name": "Admin - Trips", "description": "Trip planning for floor managers"},
        {"name": "Catalog", "description": "Services, centers, and timeslots"},
        {"name": "Addresses", "description": "Customer pickup and delivery addresses"},
    ],
)

app.add_middleware(RequestIDMiddleware)

# Add rate limit exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    logger.info("Rejected transition %s -> %s", exc.from_status.value, exc.to_status.value)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict())


@app.exception_handler(UnknownStatusError)
async def unknown_status_handler(request: Request, exc: UnknownStatusError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(OrderNotFoundError)
async def order_not_found_handler(request: Request, exc: OrderNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Order not found"})


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning("Concurrent modification detected on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Order was modified by another request, please retry"},
    )


@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# =============================================================================
# Routers
# =============================================================================

api_router = APIRouter(prefix="/api")
api_router.include_router(orders_router)
api_router.include_router(center_router)
api_router.include_router(partner_router)
api_router.include_router(trips_router)
api_router.include_router(public_router)
api_router.include_router(addresses_router)
app.include_router(api_router)


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy"}
