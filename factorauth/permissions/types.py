"""
Types shared by the permission evaluator and the registry.
"""

from enum import Enum
from typing import Any, Callable, Iterable, Mapping


# Factor and permission ids are plain ints or IntEnum members.
FactorId = Any
PermissionId = Any

PermissionMap = Mapping[PermissionId, Iterable[FactorId]]
FactorLookup = Callable[[PermissionId], Iterable[FactorId]]


class Verdict(Enum):
    """Outcome of a permission check."""
    GRANTED = "granted"
    DENIED = "denied"
    NOT_FOUND = "not_found"

    @property
    def granted(self) -> bool:
        return self is Verdict.GRANTED

    @property
    def found(self) -> bool:
        """True when the permission is part of the policy, granted or not."""
        return self is not Verdict.NOT_FOUND


# Constants for convenience
Granted = Verdict.GRANTED
Denied = Verdict.DENIED
NotFound = Verdict.NOT_FOUND
