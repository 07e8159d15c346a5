"""
Package key value object used to group form sessions into packages.

Keys take one of three shapes:
- ``existing-{order_id}`` for sessions attached to a persisted order
- the literal temp package ID for a simulated package
- ``new-{service_id}`` for a standalone new package
"""

from dataclasses import dataclass
from typing import Optional

EXISTING_PREFIX = "existing-"
NEW_PREFIX = "new-"


@dataclass(frozen=True)
class PackageKey:
    """Immutable package grouping key."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Package key cannot be empty")

    def __str__(self) -> str:
        return self.value

    @property
    def is_existing(self) -> bool:
        """Key refers to a persisted order."""
        return self.value.startswith(EXISTING_PREFIX)

    @property
    def order_id(self) -> Optional[str]:
        """Order ID for existing-package keys."""
        if not self.is_existing:
            return None
        return self.value[len(EXISTING_PREFIX):]

    @classmethod
    def for_order(cls, order_id: str) -> "PackageKey":
        return cls(f"{EXISTING_PREFIX}{order_id}")

    @classmethod
    def for_service(cls, service_id: str) -> "PackageKey":
        return cls(f"{NEW_PREFIX}{service_id}")

    @classmethod
    def resolve(
        cls,
        service_id: str,
        order_id: Optional[str] = None,
        temp_package_id: Optional[str] = None,
    ) -> "PackageKey":
        """Resolve the grouping key for a session's identifiers."""
        if order_id:
            return cls.for_order(order_id)
        if temp_package_id:
            return cls(temp_package_id)
        return cls.for_service(service_id)
