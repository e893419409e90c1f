from enum import Enum
from typing import Union


class ManagementState(str, Enum):
    """Management intent set on the operator resource by an administrator."""

    MANAGED = "Managed"
    UNMANAGED = "Unmanaged"
    REMOVED = "Removed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Union[str, "ManagementState", None]) -> "ManagementState":
        """Map a raw spec value onto a state; anything unrecognised is UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN
