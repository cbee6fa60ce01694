"""Order and inventory lifecycle management."""

from .manager import OrderLifecycleManager, derive_order_status

__all__ = ["OrderLifecycleManager", "derive_order_status"]
