"""
Value objects package for domain layer.
"""

from .package_key import PackageKey
from .session_operations import (
    NewOrder,
    OrderPriceUpdate,
    SessionOperations,
    SessionToCreate,
)
from .temp_package_id import TempPackageId

__all__ = [
    "NewOrder",
    "OrderPriceUpdate",
    "PackageKey",
    "SessionOperations",
    "SessionToCreate",
    "TempPackageId",
]
