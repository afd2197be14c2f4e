"""
Order Ledger

Owns the orders table. Each device gets at most one order per calendar day;
staff move orders through pending → preparing → ready → completed.

All methods take the caller's session and never commit: the order service
decides the transaction boundaries.
"""

import json
import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from queue_portal.core.exceptions import (
    DuplicateOrder,
    InvalidStatusTransition,
    OrderNotFound,
)
from queue_portal.models import Order, OrderStatus, allowed_sources

logger = logging.getLogger(__name__)


def serialize_items(items: Iterable[dict]) -> str:
    """Store items as a JSON list of {name, quantity}, keeping their order."""
    return json.dumps(
        [{"name": item["name"], "quantity": int(item["quantity"])} for item in items]
    )


class OrderLedger:
    """Day-scoped order records."""

    @staticmethod
    async def find_active_order(
        db: AsyncSession, device_id: str, day: date
    ) -> Optional[Order]:
        result = await db.execute(
            select(Order)
            .where(
                Order.device_id == device_id,
                Order.order_day == day.isoformat(),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @classmethod
    async def create_order(
        cls,
        db: AsyncSession,
        device_id: str,
        items: Iterable[dict],
        notes: str,
        queue_number: int,
        created_at: int,
        day: date,
    ) -> Order:
        """
        Insert a pending order for ``device_id`` on ``day``.

        Raises:
            DuplicateOrder: The device already has an order that day
        """
        if await cls.find_active_order(db, device_id, day) is not None:
            raise DuplicateOrder(device_id, day.isoformat())

        order = Order(
            queue_number=queue_number,
            device_id=device_id,
            items=serialize_items(items),
            status=OrderStatus.PENDING,
            created_at=created_at,
            order_day=day.isoformat(),
            notes=notes or "",
        )
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        return await db.get(Order, order_id, populate_existing=True)

    @staticmethod
    async def set_status(
        db: AsyncSession,
        order_id: int,
        status: OrderStatus,
        enforce_transitions: bool = False,
    ) -> None:
        """
        Overwrite an order's status in a single UPDATE.

        With ``enforce_transitions`` the UPDATE only matches orders whose
        current status may legally move to ``status``, so the check and the
        write cannot be separated by a concurrent change.

        Raises:
            OrderNotFound: No order with ``order_id``
            InvalidStatusTransition: Strict mode rejected the change
        """
        stmt = update(Order).where(Order.id == order_id)
        if enforce_transitions:
            stmt = stmt.where(Order.status.in_(allowed_sources(status)))
        # Orders already loaded in this session pick up the new status
        stmt = stmt.values(status=status).execution_options(synchronize_session="fetch")

        result = await db.execute(stmt)
        if result.rowcount:
            return

        current = (
            await db.execute(select(Order.status).where(Order.id == order_id))
        ).scalar_one_or_none()
        if current is None:
            raise OrderNotFound(f"Order #{order_id} not found")
        raise InvalidStatusTransition(order_id, current.value, status.value)

    @staticmethod
    async def clear_order(db: AsyncSession, device_id: str, day: date) -> int:
        """
        Delete the device's order for ``day``.

        Returns:
            Number of rows removed (0 or 1)
        """
        result = await db.execute(
            delete(Order)
            .where(Order.device_id == device_id, Order.order_day == day.isoformat())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    @staticmethod
    async def list_for_day(db: AsyncSession, day: date) -> Sequence[Order]:
        """Orders created on ``day`` by queue number ascending."""
        result = await db.execute(
            select(Order)
            .where(Order.order_day == day.isoformat())
            .order_by(Order.queue_number)
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()
