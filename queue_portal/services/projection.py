"""
Status Projection

Values computed from the day's orders on demand: the "currently serving"
number shown to customers and the status counts shown on the dashboard.
"""

from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from queue_portal.models import SERVING_STATUSES, Order, OrderStatus


class StatusProjection:

    @staticmethod
    async def currently_serving(db: AsyncSession, day: date) -> Optional[int]:
        """
        Lowest queue number among the day's orders being prepared or ready.

        Pending and completed orders are ignored. None when nothing qualifies.
        """
        result = await db.execute(
            select(func.min(Order.queue_number)).where(
                Order.order_day == day.isoformat(),
                Order.status.in_(SERVING_STATUSES),
            )
        )
        return result.scalar()

    @staticmethod
    async def status_counts(db: AsyncSession, day: date) -> dict[str, int]:
        """Order count per status for ``day``, plus the total."""
        result = await db.execute(
            select(Order.status, func.count(Order.id))
            .where(Order.order_day == day.isoformat())
            .group_by(Order.status)
        )
        counts = {status.value: 0 for status in OrderStatus}
        for status, count in result.all():
            counts[status.value] = count
        counts["total"] = sum(counts.values())
        return counts
