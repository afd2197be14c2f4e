"""
FastAPI Application Entry Point

Restaurant Queue Portal - captive-portal ordering backend.

Customer endpoints (reached from the WiFi portal page):
    - GET  /api/menu: Available menu items
    - GET  /api/currently-serving: Number being prepared or ready
    - POST /api/order: Place today's order
    - GET  /api/order/status: Poll today's order
    - POST /api/order/clear: Drop today's order to start a new one

Staff endpoints (dashboard on the LAN side):
    - GET /api/admin/orders: Today's orders
    - PUT /api/admin/order/{order_id}/status: Change an order's status
    - GET /api/admin/stats: Today's counts per status

    - GET /health: System health check

Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from queue_portal.core.config import get_settings, setup_logging
from queue_portal.core.exceptions import (
    InvalidStatusTransition,
    OrderNotFound,
    StoreUnavailable,
)
from queue_portal.database import async_session_maker, engine, get_db, init_db
from queue_portal.schemas import (
    CurrentlyServingResponse,
    ErrorResponse,
    HealthResponse,
    MenuItemResponse,
    OrderResponse,
    OrderStatusResponse,
    OrderSubmit,
    StatsResponse,
    StatusUpdate,
    SubmitResponse,
    SuccessResponse,
)
from queue_portal.services import OrderService, build_order_service
from queue_portal.services.menu import MenuCatalog

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    if settings.seed_menu:
        async with async_session_maker() as session:
            await MenuCatalog.seed(session)

    app.state.order_service = build_order_service(settings)
    service = app.state.order_service
    logger.info(f"✅ Lease Table: {service.resolver.lease_table.provider_name}")
    if settings.enforce_status_transitions:
        logger.info("✅ Strict status transitions enabled")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Captive-portal ordering: one order per device per day, "
        "per-day queue numbers and a staff dashboard API."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# The portal page and dashboard may be served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_client_address(request: Request) -> str:
    """Address set by the reverse proxy, else the socket peer."""
    # Only trustworthy when the proxy overwrites any client-sent value
    # (nginx: proxy_set_header X-Real-IP $remote_addr). Leave the setting
    # empty when clients reach the app directly.
    forwarded = settings.real_ip_header and request.headers.get(settings.real_ip_header)
    if forwarded:
        return forwarded.strip()
    return request.client.host if request.client else "unknown"


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.restaurant_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> HealthResponse:
    """Verify the store and the lease table are usable."""

    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    lease_table = service.resolver.lease_table
    lease_status = "healthy" if await lease_table.health_check() else "degraded"

    # Lease problems only cost identity precision, not availability
    overall = "operational" if db_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        lease_table=f"{lease_table.provider_name}: {lease_status}",
        timestamp=datetime.now(),
    )


# =============================================================================
# CUSTOMER ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu",
    response_model=List[MenuItemResponse],
    tags=["Customer"],
)
async def get_menu(
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> List[MenuItemResponse]:
    """Available menu items."""
    items = await service.menu(db)
    return [MenuItemResponse.model_validate(item) for item in items]


@app.get(
    "/api/currently-serving",
    response_model=CurrentlyServingResponse,
    tags=["Customer"],
)
async def get_currently_serving(
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> CurrentlyServingResponse:
    """Lowest queue number being prepared or ready for pickup."""
    return CurrentlyServingResponse(currently_serving=await service.currently_serving(db))


@app.post(
    "/api/order",
    response_model=SubmitResponse,
    responses={503: {"model": ErrorResponse}},
    tags=["Customer"],
    summary="Place Today's Order",
)
async def create_order(
    order_data: OrderSubmit,
    address: str = Depends(get_client_address),
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> SubmitResponse:
    """
    Place the calling device's order for today.

    A device that already ordered today gets its existing queue number back.
    """
    logger.info(f"Order from address {address}")

    result = await service.submit(
        db,
        address,
        [item.model_dump() for item in order_data.items],
        order_data.notes,
    )
    order = result.order

    return SubmitResponse(
        queue_number=order.queue_number,
        status=order.status,
        already_ordered=result.already_ordered,
        message=(
            "You already have an order today"
            if result.already_ordered
            else "Order placed successfully!"
        ),
    )


@app.get(
    "/api/order/status",
    response_model=OrderStatusResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Customer"],
)
async def get_order_status(
    address: str = Depends(get_client_address),
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> OrderStatusResponse:
    """Queue number, status and items of today's order."""
    order = await service.status(db, address)
    return OrderStatusResponse.from_order(order)


@app.post(
    "/api/order/clear",
    response_model=SuccessResponse,
    tags=["Customer"],
)
async def clear_order(
    address: str = Depends(get_client_address),
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> SuccessResponse:
    """Drop today's order so the device can place a new one."""
    await service.clear(db, address)
    return SuccessResponse()


# =============================================================================
# STAFF ENDPOINTS
# =============================================================================

@app.get(
    "/api/admin/orders",
    response_model=List[OrderResponse],
    tags=["Staff"],
)
async def get_all_orders(
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    """Today's orders by queue number."""
    orders = await service.list_today(db)
    return [OrderResponse.from_order(order) for order in orders]


@app.put(
    "/api/admin/order/{order_id}/status",
    response_model=SuccessResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Staff"],
)
async def update_order_status(
    order_id: int,
    update: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> SuccessResponse:
    """Set an order's status."""
    await service.update_status(db, order_id, update.status)
    return SuccessResponse()


@app.get(
    "/api/admin/stats",
    response_model=StatsResponse,
    tags=["Staff"],
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    service: OrderService = Depends(get_order_service),
) -> StatsResponse:
    """Today's order counts per status."""
    return StatsResponse(**await service.stats(db))


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(OrderNotFound)
async def not_found_handler(request: Request, exc: OrderNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"success": False, "error": str(exc)},
    )


@app.exception_handler(InvalidStatusTransition)
async def transition_handler(request: Request, exc: InvalidStatusTransition) -> JSONResponse:
    logger.warning(f"Rejected status change: {exc}")
    return JSONResponse(
        status_code=409,
        content={"success": False, "error": str(exc)},
    )


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={
            "success": False,
            "error": "Service temporarily unavailable, please try again",
            "detail": str(exc) if settings.debug else None,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "queue_portal.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
