"""
Temporary package ID value object for packages simulated in a form.
Format: temp-{SERVICE_ID}-{COUNTER}
"""

import re
from dataclasses import dataclass
from typing import Any

TEMP_PREFIX = "temp"


@dataclass(frozen=True)
class TempPackageId:
    """Immutable identifier of a not-yet-persisted package."""

    value: str

    def __post_init__(self) -> None:
        """Validate temp package ID format."""
        if not self.value:
            raise ValueError("Temp package ID cannot be empty")

        if not isinstance(self.value, str):
            raise ValueError("Temp package ID must be a string")

        # Service IDs may contain dashes (UUIDs), the counter is the last segment
        pattern = r"^[a-zA-Z0-9_]+-.+-\d+$"
        if not re.match(pattern, self.value):
            raise ValueError(
                "Temp package ID must follow format: {PREFIX}-{SERVICE_ID}-{COUNTER}"
            )

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __eq__(self, other: Any) -> bool:
        """Equality comparison."""
        if not isinstance(other, TempPackageId):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        """Hash for use in sets and dictionaries."""
        return hash(self.value)

    @property
    def counter(self) -> int:
        """Counter segment the ID was minted with."""
        return int(self.value.rsplit("-", 1)[1])

    @property
    def service_id(self) -> str:
        """Service segment the ID was minted with."""
        return self.value.split("-", 1)[1].rsplit("-", 1)[0]

    @classmethod
    def generate(
        cls, service_id: str, counter: int, prefix: str = TEMP_PREFIX
    ) -> "TempPackageId":
        """Mint a temp package ID for a service."""
        if counter < 0:
            raise ValueError("Temp package counter cannot be negative")
        return cls(f"{prefix}-{service_id}-{counter}")

    @staticmethod
    def is_temp(identifier: str, prefix: str = TEMP_PREFIX) -> bool:
        """Check whether an order-like identifier refers to a simulated package."""
        return bool(identifier) and identifier.startswith(f"{prefix}-")
