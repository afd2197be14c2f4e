"""
Order Service

Handles business logic for the customer and staff operations.

Customer operations resolve the caller's address to a device identity
first; staff operations act on explicit order ids. Every operation runs in
one transaction on the session it is given. Submit and clear also hold the
order lock, so "check, number, insert" is a single atomic unit.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from queue_portal.core.clock import Clock
from queue_portal.core.config import Settings
from queue_portal.core.exceptions import DuplicateOrder, OrderNotFound, StoreUnavailable
from queue_portal.models import MenuItem, Order, OrderStatus
from queue_portal.services.identity import BaseLeaseTable, DeviceIdentityResolver, get_lease_table
from queue_portal.services.ledger import OrderLedger
from queue_portal.services.locking import OrderLock
from queue_portal.services.menu import MenuCatalog
from queue_portal.services.projection import StatusProjection
from queue_portal.services.sequencer import QueueSequencer

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    """
    Attributes:
        order: The device's order for today
        already_ordered: True when ``order`` existed before this submission
    """
    order: Order
    already_ordered: bool


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Turn database failures into StoreUnavailable."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Store failure during {action}: {e}")
        raise StoreUnavailable(f"Order store unavailable during {action}", cause=e) from e


class OrderService:
    """
    Orchestrates resolver, ledger, sequencer and projection.

    Example:
        >>> service = OrderService(resolver, Clock(), OrderLock())
        >>> result = await service.submit(db, "192.168.4.23", [{"name": "Lemonade", "quantity": 1}])
        >>> result.order.queue_number
        1
    """

    def __init__(
        self,
        resolver: DeviceIdentityResolver,
        clock: Clock,
        lock: OrderLock,
        enforce_transitions: bool = False,
    ):
        self.resolver = resolver
        self.clock = clock
        self.lock = lock
        self.enforce_transitions = enforce_transitions

    # =========================================================================
    # CUSTOMER OPERATIONS
    # =========================================================================

    async def menu(self, db: AsyncSession) -> Sequence[MenuItem]:
        with store_errors("menu"):
            async with db.begin():
                return await MenuCatalog.list_available(db)

    async def currently_serving(self, db: AsyncSession) -> Optional[int]:
        with store_errors("currently serving"):
            async with db.begin():
                return await StatusProjection.currently_serving(db, self.clock.today())

    async def submit(
        self,
        db: AsyncSession,
        address: str,
        items: Iterable[dict],
        notes: str = "",
    ) -> SubmitResult:
        """
        Place today's order for the device behind ``address``.

        Re-submitting returns the existing order unchanged with
        ``already_ordered`` set instead of failing.

        Raises:
            StoreUnavailable: The store or the order lock failed
        """
        device_id = await self.resolver.resolve(address)
        created_at = int(self.clock.now())
        day = self.clock.day_for(created_at)
        items = list(items)

        try:
            async with self.lock.hold():
                async with db.begin():
                    existing = await OrderLedger.find_active_order(db, device_id, day)
                    if existing is not None:
                        logger.info(
                            f"Device {device_id} already has order #{existing.id} "
                            f"(queue {existing.queue_number})"
                        )
                        return SubmitResult(order=existing, already_ordered=True)

                    queue_number = await QueueSequencer.issue(db, day)
                    order = await OrderLedger.create_order(
                        db,
                        device_id=device_id,
                        items=items,
                        notes=notes,
                        queue_number=queue_number,
                        created_at=created_at,
                        day=day,
                    )
        except (DuplicateOrder, IntegrityError) as e:
            # A worker outside this lock inserted first; return its order
            logger.warning(f"Concurrent submission for {device_id}: {e}")
            return await self._existing_after_race(db, device_id, day, e)
        except SQLAlchemyError as e:
            logger.error(f"Store failure during submit: {e}")
            raise StoreUnavailable("Order store unavailable during submit", cause=e) from e

        logger.info(
            f"Order #{order.id} created: queue {order.queue_number} for {device_id} "
            f"({order.summary})"
        )
        return SubmitResult(order=order, already_ordered=False)

    async def _existing_after_race(
        self, db: AsyncSession, device_id: str, day, cause: Exception
    ) -> SubmitResult:
        with store_errors("submit"):
            async with db.begin():
                existing = await OrderLedger.find_active_order(db, device_id, day)
        if existing is None:
            # The conflict was on the queue number, not on the device
            raise StoreUnavailable("Queue number conflict, try again", cause=cause)
        return SubmitResult(order=existing, already_ordered=True)

    async def status(self, db: AsyncSession, address: str) -> Order:
        """
        Today's order for the device behind ``address``.

        Raises:
            OrderNotFound: The device has no order today
        """
        device_id = await self.resolver.resolve(address)
        with store_errors("status"):
            async with db.begin():
                order = await OrderLedger.find_active_order(db, device_id, self.clock.today())
        if order is None:
            raise OrderNotFound("No order found")
        return order

    async def clear(self, db: AsyncSession, address: str) -> int:
        """
        Delete today's order for the device behind ``address``, if any.

        Returns:
            Number of orders removed
        """
        device_id = await self.resolver.resolve(address)
        day = self.clock.today()

        async with self.lock.hold():
            with store_errors("clear"):
                async with db.begin():
                    removed = await OrderLedger.clear_order(db, device_id, day)

        if removed:
            logger.info(f"Cleared today's order for {device_id}")
        return removed

    # =========================================================================
    # STAFF OPERATIONS
    # =========================================================================

    async def list_today(self, db: AsyncSession) -> Sequence[Order]:
        with store_errors("list orders"):
            async with db.begin():
                return await OrderLedger.list_for_day(db, self.clock.today())

    async def update_status(
        self, db: AsyncSession, order_id: int, status: OrderStatus
    ) -> None:
        """
        Set an order's status.

        Raises:
            OrderNotFound: Unknown order id
            InvalidStatusTransition: Backwards move with strict transitions on
        """
        with store_errors("status update"):
            async with db.begin():
                await OrderLedger.set_status(
                    db, order_id, status, enforce_transitions=self.enforce_transitions
                )
        logger.info(f"Order #{order_id} -> {status.value}")

    async def stats(self, db: AsyncSession) -> dict:
        """Dashboard counts for today plus the currently serving number."""
        day = self.clock.today()
        with store_errors("stats"):
            async with db.begin():
                counts = await StatusProjection.status_counts(db, day)
                serving = await StatusProjection.currently_serving(db, day)
        return {"day": day.isoformat(), "counts": counts, "currently_serving": serving}


def build_order_service(
    settings: Settings, lease_table: Optional[BaseLeaseTable] = None
) -> OrderService:
    """
    Wire an OrderService from settings.

    Must be called with a running event loop available (application startup),
    since the order lock owns an asyncio.Lock.
    """
    return OrderService(
        resolver=DeviceIdentityResolver(lease_table or get_lease_table()),
        clock=Clock(settings.tz),
        lock=OrderLock(settings.order_lock_file or None, timeout=settings.order_lock_timeout),
        enforce_transitions=settings.enforce_status_transitions,
    )
