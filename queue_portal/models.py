"""
SQLAlchemy Database Models

Tables:
- menu_items: the orderable catalog
- orders: one row per device per day, holding queue number and status
- queue_counters: highest queue number issued per day

Version: 1.0.0
"""

import enum
import json

from sqlalchemy import (
    Boolean,
    Column,
    Enum,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)

from queue_portal.database import Base


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"


# Forward-only progression, used when strict transitions are enabled.
# Re-setting the current status is always allowed.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED}
    ),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.COMPLETED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
}

# Statuses counted by the "currently serving" display
SERVING_STATUSES = (OrderStatus.PREPARING, OrderStatus.READY)


def allowed_sources(target: OrderStatus) -> list[OrderStatus]:
    """Statuses an order may be in for a move to ``target`` to be legal."""
    return [
        source for source, targets in ALLOWED_TRANSITIONS.items()
        if target in targets or source == target
    ]


class MenuItem(Base):
    """
    Orderable catalog entry.

    Soft-disabled through ``available``; rows are never deleted.
    """
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(50), nullable=False)
    available = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.price}>"


class Order(Base):
    """
    A device's order for one calendar day.

    ``order_day`` is the ISO date of ``created_at`` in the portal's time zone,
    stored at insert time so the day-scoped uniqueness rules are enforced by
    the database as well.
    """
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("device_id", "order_day", name="uq_orders_device_day"),
        UniqueConstraint("order_day", "queue_number", name="uq_orders_day_queue"),
        # Never reuse ids of cleared orders
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    queue_number = Column(Integer, nullable=False)
    device_id = Column(String(64), nullable=False, index=True)
    items = Column(Text, nullable=False)  # JSON list of {name, quantity}
    status = Column(
        Enum(
            OrderStatus,
            name="order_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    created_at = Column(Integer, nullable=False)  # epoch seconds
    order_day = Column(String(10), nullable=False, index=True)
    notes = Column(Text, nullable=False, default="")

    @property
    def item_list(self) -> list[dict]:
        return json.loads(self.items)

    @property
    def summary(self) -> str:
        """Human-readable item summary, e.g. "Caesar Salad x2, Lemonade x1"."""
        return ", ".join(f"{i['name']} x{i['quantity']}" for i in self.item_list)

    def __repr__(self):
        return f"<Order #{self.id} - Q{self.queue_number} - {self.device_id} - {self.status.value}>"


class QueueCounter(Base):
    """Highest queue number handed out on a given day."""
    __tablename__ = "queue_counters"

    order_day = Column(String(10), primary_key=True)
    last_number = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<QueueCounter {self.order_day} - {self.last_number}>"
