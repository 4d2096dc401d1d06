"""
Package permissions implements factor-based permission evaluation.

A permission is granted when every factor it requires is satisfied. The
policy answers granted / denied / not found, and the registry holds the
explicit permission and role declarations used to build policies.
"""

from .types import (
    FactorId,
    PermissionId,
    PermissionMap,
    FactorLookup,
    Verdict,
    Granted,
    Denied,
    NotFound
)

from .policy import (
    AccessPolicy,
    serialize_policy,
    deserialize_policy
)

from .registry import PermissionRegistry

__all__ = [
    # Types
    'FactorId',
    'PermissionId',
    'PermissionMap',
    'FactorLookup',
    'Verdict',
    'Granted',
    'Denied',
    'NotFound',

    # Evaluation
    'AccessPolicy',
    'serialize_policy',
    'deserialize_policy',

    # Registry
    'PermissionRegistry'
]
