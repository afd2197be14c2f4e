"""
Portal Exceptions

Error kinds raised by the ordering engine. The API layer maps them to
HTTP responses; DuplicateOrder never reaches a customer because the order
service recovers it by returning the existing order.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for all ordering engine errors."""


class ResolutionFallback(PortalError):
    """
    A transient address could not be mapped to a hardware address.

    Never propagated past the identity resolver, which logs it and falls
    back to the address itself.
    """

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Could not resolve {address}: {reason}")


class DuplicateOrder(PortalError):
    """The device already has an order for the day."""

    def __init__(self, device_id: str, order_day: str):
        self.device_id = device_id
        self.order_day = order_day
        super().__init__(f"Device {device_id} already has an order on {order_day}")


class OrderNotFound(PortalError):
    """No matching order exists."""

    def __init__(self, message: str = "No order found"):
        super().__init__(message)


class InvalidStatusTransition(PortalError):
    """Rejected status change (strict transition mode only)."""

    def __init__(self, order_id: int, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Order #{order_id} cannot move from {current} to {requested}"
        )


class StoreUnavailable(PortalError):
    """
    The order store could not complete an atomic unit.

    The transaction has been rolled back; nothing was written.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
