"""Dispatch domain API package."""

from dispatch.api.errors import register_error_handlers
from dispatch.api.routes import driver_router, mitra_router, order_router

__all__ = ["order_router", "driver_router", "mitra_router", "register_error_handlers"]
