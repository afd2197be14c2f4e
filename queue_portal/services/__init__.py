"""
                        Services Module

Contains the ordering engine behind the API.

Services:
    - identity: lease tables and the device identity resolver
    - menu: menu catalog
    - sequencer: per-day queue numbers
    - ledger: daily order records
    - projection: currently serving and dashboard counts
    - locking: cross-process order lock
    - order_service: orchestration of all of the above
"""

from queue_portal.services.order_service import OrderService, SubmitResult, build_order_service

__all__ = ["OrderService", "SubmitResult", "build_order_service"]
