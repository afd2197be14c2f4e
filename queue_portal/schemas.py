"""
Pydantic Schemas for Request/Response Validation

Version: 1.0.0
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from queue_portal.models import Order, OrderStatus


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderItemIn(BaseModel):
    """Single line of an order."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Margherita Pizza"])
    quantity: int = Field(..., ge=1, le=99, examples=[1])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item name must not be blank")
        return v


class OrderSubmit(BaseModel):
    """Request schema for placing today's order."""
    items: List[OrderItemIn] = Field(..., min_length=1)
    notes: str = Field(default="", max_length=500)

    @field_validator("notes", mode="before")
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return v or ""


class StatusUpdate(BaseModel):
    """Staff request to change an order's status."""
    status: OrderStatus = Field(..., examples=["preparing"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: float
    category: str


class OrderItemOut(BaseModel):
    name: str
    quantity: int


class CurrentlyServingResponse(BaseModel):
    currently_serving: Optional[int] = None


class SubmitResponse(BaseModel):
    """Response after placing (or re-placing) an order."""
    queue_number: int
    status: OrderStatus
    already_ordered: bool = False
    message: str


class OrderStatusResponse(BaseModel):
    """Customer view of their order."""
    queue_number: int
    status: OrderStatus
    items: List[OrderItemOut]
    summary: str

    @classmethod
    def from_order(cls, order: Order) -> "OrderStatusResponse":
        return cls(
            queue_number=order.queue_number,
            status=order.status,
            items=order.item_list,
            summary=order.summary,
        )


class OrderResponse(BaseModel):
    """Staff view of an order."""
    id: int
    queue_number: int
    device_id: str
    items: List[OrderItemOut]
    summary: str
    status: OrderStatus
    timestamp: int
    notes: str

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            queue_number=order.queue_number,
            device_id=order.device_id,
            items=order.item_list,
            summary=order.summary,
            status=order.status,
            timestamp=order.created_at,
            notes=order.notes or "",
        )


class StatusCounts(BaseModel):
    total: int
    pending: int
    preparing: int
    ready: int
    completed: int


class StatsResponse(BaseModel):
    """Dashboard statistics for today."""
    day: str
    counts: StatusCounts
    currently_serving: Optional[int] = None


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    lease_table: str
    timestamp: datetime
