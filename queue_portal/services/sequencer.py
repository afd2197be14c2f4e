"""
Queue Sequencer

Hands out per-day queue numbers: 1, 2, 3, ... in creation order, starting
again at 1 on the next calendar day.

Both functions must run inside the transaction that inserts the numbered
order, while the order lock is held; on their own they are a
read-then-write race.
"""

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from queue_portal.models import Order, QueueCounter


class QueueSequencer:
    """Per-day queue number assignment."""

    @staticmethod
    async def next_number(db: AsyncSession, day: date) -> int:
        """
        One more than the highest number issued on ``day``; 1 if none.

        The highest number is the larger of the day's counter and the day's
        highest existing order, so a cleared order's number is not handed
        out again.
        """
        order_day = day.isoformat()
        issued = (
            await db.execute(
                select(QueueCounter.last_number).where(QueueCounter.order_day == order_day)
            )
        ).scalar()
        highest = (
            await db.execute(
                select(func.max(Order.queue_number)).where(Order.order_day == order_day)
            )
        ).scalar()
        return max(issued or 0, highest or 0) + 1

    @classmethod
    async def issue(cls, db: AsyncSession, day: date) -> int:
        """Compute the next number for ``day`` and record it as issued."""
        number = await cls.next_number(db, day)
        order_day = day.isoformat()

        counter = await db.get(QueueCounter, order_day)
        if counter is None:
            db.add(QueueCounter(order_day=order_day, last_number=number))
        else:
            counter.last_number = number
        return number
