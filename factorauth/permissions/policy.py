"""
Factor-based access policy and permission evaluation.

A policy is the set of factors currently satisfied by a subject plus the
factors each permission requires. A permission is granted when all of its
required factors are satisfied.
"""

import logging
import operator
from collections import abc
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..codec.policy import Converter, decode_policy, encode_policy
from ..errors import FactorAuthError, NullInputError
from .types import FactorId, FactorLookup, PermissionId, PermissionMap, Verdict


logger = logging.getLogger(__name__)


class AccessPolicy:
    """
    Satisfied factors and permission requirements of one subject.

    The policy is immutable once built. Verdicts are computed lazily and
    memoized per permission; a cached verdict never changes because its
    inputs cannot. Concurrent callers may recompute the same verdict, the
    overwrite is identical.
    """

    def __init__(self, satisfied_factors: Iterable[FactorId] = (),
                 permissions: Optional[PermissionMap] = None):
        if satisfied_factors is None:
            raise NullInputError("satisfied_factors")

        self._satisfied_factors = frozenset(satisfied_factors)
        self._permissions: Dict[PermissionId, Tuple[FactorId, ...]] = {}
        self._verdicts: Dict[PermissionId, Verdict] = {}
        self._serialized: Optional[str] = None
        self.source: Optional[str] = None

        # Lists shared by several permissions stay shared. Each source list is
        # held next to its tuple so its id cannot be reused by a later one.
        normalized: Dict[int, Tuple[Any, Tuple[FactorId, ...]]] = {}
        for permission_id, required_factors in (permissions or {}).items():
            key = id(required_factors)
            if key not in normalized:
                normalized[key] = (required_factors,
                                   tuple(dict.fromkeys(required_factors or ())))
            self._permissions[permission_id] = normalized[key][1]

    @classmethod
    def from_permissions(cls, satisfied_factors: Iterable[FactorId],
                         permission_ids: Iterable[PermissionId],
                         lookup: Any) -> 'AccessPolicy':
        """
        Build a policy from permission ids and a required-factors lookup.

        Args:
            satisfied_factors: Factors currently true for the subject
            permission_ids: Permissions to include in the policy
            lookup: A PermissionRegistry, a mapping of permission id to required
                factors, or any callable doing the same lookup
        """
        if isinstance(lookup, abc.Mapping):
            resolve: FactorLookup = lambda permission_id: lookup.get(permission_id, ())
        else:
            resolve = getattr(lookup, 'required_factors', lookup)

        permissions = {}
        for permission_id in permission_ids:
            if permission_id not in permissions:
                permissions[permission_id] = list(resolve(permission_id))

        return cls(satisfied_factors, permissions)

    @classmethod
    def for_role(cls, satisfied_factors: Iterable[FactorId], role: Any,
                 registry: Any) -> 'AccessPolicy':
        """Build a policy from the permissions a role grants in a registry."""
        return cls.from_permissions(satisfied_factors, registry.granted_permissions(role),
                                    registry)

    @classmethod
    def deserialize(cls, value: str,
                    factor_converter: Optional[Converter] = None,
                    permission_converter: Optional[Converter] = None) -> 'AccessPolicy':
        """
        Parse a policy from its compact string form.

        Raises:
            NullInputError: If value is None
            CodecError: If value is not a valid policy string
        """
        satisfied_factors, permissions = decode_policy(value, factor_converter,
                                                       permission_converter)
        policy = cls(satisfied_factors, permissions)
        policy.source = value
        return policy

    @classmethod
    def try_deserialize(cls, value: Optional[str],
                        factor_converter: Optional[Converter] = None,
                        permission_converter: Optional[Converter] = None) -> 'AccessPolicy':
        """Parse an untrusted policy string, falling back to an empty policy."""
        if value is None:
            return cls()

        try:
            return cls.deserialize(value, factor_converter, permission_converter)
        except FactorAuthError as e:
            logger.warning(f"Rejected policy string: {e}")
            return cls()

    @property
    def satisfied_factors(self) -> frozenset:
        return self._satisfied_factors

    @property
    def permissions(self) -> Mapping[PermissionId, Tuple[FactorId, ...]]:
        return MappingProxyType(self._permissions)

    def factors_satisfied(self, factors: Iterable[FactorId]) -> bool:
        """Check whether every listed factor is satisfied."""
        for factor in factors:
            if factor not in self._satisfied_factors:
                return False

        return True

    def is_granted(self, permission_id: PermissionId) -> Verdict:
        """
        Check a permission.

        Returns:
            Verdict: GRANTED when all required factors are satisfied, DENIED when
            some are missing, NOT_FOUND when the policy has no such permission
        """
        verdict = self._verdicts.get(permission_id)
        if verdict is not None:
            return verdict

        required_factors = self._permissions.get(permission_id)

        if required_factors is None:
            verdict = Verdict.NOT_FOUND
        elif self.factors_satisfied(required_factors):
            verdict = Verdict.GRANTED
        else:
            verdict = Verdict.DENIED

        self._verdicts[permission_id] = verdict
        return verdict

    def has_permission(self, permission_id: PermissionId,
                       satisfied: Optional[bool] = True) -> bool:
        """
        Check a permission against a filter.

        With ``satisfied=True`` only granted permissions match, with ``False``
        only denied ones, with ``None`` any permission the policy contains.
        """
        verdict = self.is_granted(permission_id)

        if verdict is Verdict.NOT_FOUND:
            return False
        if satisfied is None:
            return True

        return verdict.granted == satisfied

    def missing_factors(self, permission_id: PermissionId) -> List[FactorId]:
        """Required factors of a permission that are not satisfied."""
        if self._verdicts.get(permission_id) is Verdict.GRANTED:
            return []

        return [factor for factor in self._permissions.get(permission_id, ())
                if factor not in self._satisfied_factors]

    def satisfied_factors_for(self, permission_id: Optional[PermissionId] = None) -> List[FactorId]:
        """
        Satisfied factors, overall or for one permission.

        Without a permission id, all satisfied factors in no particular
        order. With one, the required factors of that permission that are
        satisfied.
        """
        if permission_id is None:
            return list(self._satisfied_factors)

        required_factors = self._permissions.get(permission_id, ())

        if self._verdicts.get(permission_id) is Verdict.GRANTED:
            return list(required_factors)

        return [factor for factor in required_factors if factor in self._satisfied_factors]

    def equivalent(self, other: 'AccessPolicy') -> bool:
        """
        Check whether two policies answer every query the same way.

        Required factors are compared as sets; grouping and ordering are
        ignored.
        """
        if other is self:
            return True

        if not isinstance(other, AccessPolicy):
            return False

        if (self._satisfied_factors != other._satisfied_factors
                or self._permissions.keys() != other._permissions.keys()):
            return False

        for permission_id, required_factors in self._permissions.items():
            if set(required_factors) != set(other._permissions[permission_id]):
                return False

        return True

    def serialize(self) -> str:
        """Get the compact string form of this policy."""
        if self._serialized is None:
            self._serialized = encode_policy(self._satisfied_factors, self._permissions)

        return self._serialized

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'satisfied_factors': _ordered(self._satisfied_factors),
            'permissions': {permission_id: list(required_factors)
                            for permission_id, required_factors in self._permissions.items()}
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccessPolicy):
            return NotImplemented
        return self.equivalent(other)

    __hash__ = None

    def __contains__(self, permission_id: PermissionId) -> bool:
        return permission_id in self._permissions

    def __len__(self) -> int:
        return len(self._permissions)

    def __repr__(self) -> str:
        return (f"AccessPolicy(satisfied_factors={_ordered(self._satisfied_factors)}, "
                f"permissions={len(self._permissions)})")


def _ordered(factors: Iterable[FactorId]) -> List[FactorId]:
    # Integer ids sort numerically, anything else after them by repr
    def sort_key(factor: Any) -> Tuple[int, Any]:
        try:
            return (0, operator.index(factor))
        except TypeError:
            return (1, repr(factor))

    return sorted(factors, key=sort_key)


def serialize_policy(policy: AccessPolicy) -> str:
    """Serialize a policy, rejecting None."""
    if policy is None:
        raise NullInputError("policy")

    return policy.serialize()


def deserialize_policy(value: str,
                       factor_converter: Optional[Converter] = None,
                       permission_converter: Optional[Converter] = None) -> AccessPolicy:
    """Parse a policy from its compact string form."""
    return AccessPolicy.deserialize(value, factor_converter, permission_converter)
