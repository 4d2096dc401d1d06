"""
Tests for AccessPolicy: construction, evaluation and serialization.
"""

import logging
from collections.abc import Mapping
from enum import IntEnum

import pytest

from factorauth import (
    AccessPolicy,
    PermissionRegistry,
    Verdict,
    serialize_policy,
    deserialize_policy,
)
from factorauth.errors import EmptyInputError, NullInputError


class Factor(IntEnum):
    EMAIL_VERIFIED = 1
    PHONE_VERIFIED = 2
    MFA = 3
    TERMS_ACCEPTED = 4


class Permission(IntEnum):
    READ = 1
    WRITE = 2
    DELETE = 3
    AUDIT = 4


class LazyPermissionTable(Mapping):
    """Mapping that builds a new factor list on every access"""

    def __init__(self, table):
        self._table = table

    def __getitem__(self, permission_id):
        return list(self._table[permission_id])

    def __iter__(self):
        return iter(self._table)

    def __len__(self):
        return len(self._table)


@pytest.fixture
def policy():
    """Create the reference policy"""
    return AccessPolicy.deserialize("!1,3#1+1&2+1,3")


@pytest.fixture
def registry():
    """Create a registry with typed ids"""
    return PermissionRegistry(
        required_factors={
            Permission.READ: [Factor.EMAIL_VERIFIED],
            Permission.WRITE: [Factor.EMAIL_VERIFIED, Factor.MFA],
            Permission.DELETE: [Factor.MFA, Factor.PHONE_VERIFIED],
            Permission.AUDIT: [],
        },
        role_grants={
            "viewer": [Permission.READ],
            "editor": [Permission.READ, Permission.WRITE, Permission.DELETE],
        },
    )


class TestEvaluation:
    """Test permission checks."""

    def test_tri_state(self, policy):
        """Test granted, denied and not found are distinguished."""
        assert policy.is_granted(1) is Verdict.GRANTED
        assert policy.is_granted(2) is Verdict.GRANTED
        assert policy.is_granted(4) is Verdict.NOT_FOUND

    def test_missing_factors(self):
        """Test a permission with unsatisfied factors."""
        policy = AccessPolicy.deserialize("#1+1,4")

        assert policy.is_granted(1) is Verdict.DENIED
        assert policy.missing_factors(1) == [1, 4]

    def test_missing_factors_partial(self):
        """Test missing factors keep the required order."""
        policy = AccessPolicy([3], {1: [4, 3, 1]})

        assert policy.missing_factors(1) == [4, 1]

    def test_missing_factors_granted_or_absent(self, policy):
        """Test granted and unknown permissions miss nothing."""
        assert policy.missing_factors(2) == []
        policy.is_granted(2)
        assert policy.missing_factors(2) == []
        assert policy.missing_factors(99) == []

    def test_no_required_factors(self):
        """Test a permission requiring nothing is always granted."""
        policy = AccessPolicy.deserialize("#5")

        assert policy.is_granted(5) is Verdict.GRANTED
        assert policy.missing_factors(5) == []

    def test_verdict_helpers(self):
        """Test verdict properties."""
        assert Verdict.GRANTED.granted and Verdict.GRANTED.found
        assert not Verdict.DENIED.granted and Verdict.DENIED.found
        assert not Verdict.NOT_FOUND.granted and not Verdict.NOT_FOUND.found

    def test_has_permission_filter(self):
        """Test the satisfied filter."""
        policy = AccessPolicy.deserialize("!1#1+1&2+2")

        assert policy.has_permission(1) is True
        assert policy.has_permission(2) is False
        assert policy.has_permission(2, satisfied=False) is True
        assert policy.has_permission(1, satisfied=False) is False
        assert policy.has_permission(2, satisfied=None) is True
        assert policy.has_permission(9, satisfied=None) is False
        assert policy.has_permission(9, satisfied=False) is False

    def test_satisfied_factors_for(self):
        """Test satisfied factors overall and per permission."""
        policy = AccessPolicy.deserialize("!1,3#1+1&2+1,4")

        assert sorted(policy.satisfied_factors_for()) == [1, 3]
        assert policy.satisfied_factors_for(2) == [1]
        assert policy.satisfied_factors_for(1) == [1]
        assert policy.satisfied_factors_for(99) == []

    def test_satisfied_factors_for_zero_id(self):
        """Test permission id 0 is not mistaken for no argument."""
        policy = AccessPolicy.deserialize("!0,1#0+0")

        assert policy.is_granted(0) is Verdict.GRANTED
        assert policy.satisfied_factors_for(0) == [0]

    def test_factors_satisfied(self, policy):
        """Test the factor list utility."""
        assert policy.factors_satisfied([1, 3])
        assert policy.factors_satisfied([])
        assert not policy.factors_satisfied([1, 2])

    def test_cache_is_idempotent(self, policy):
        """Test repeated checks agree and leave the policy untouched."""
        factors = policy.satisfied_factors
        permissions = dict(policy.permissions)

        first = policy.is_granted(2)
        second = policy.is_granted(2)

        assert first is second is Verdict.GRANTED
        assert policy.is_granted(7) is policy.is_granted(7) is Verdict.NOT_FOUND
        assert policy.satisfied_factors == factors
        assert dict(policy.permissions) == permissions

    def test_read_only_views(self, policy):
        """Test the exposed collections cannot be mutated."""
        with pytest.raises(TypeError):
            policy.permissions[9] = (1,)
        with pytest.raises(AttributeError):
            policy.satisfied_factors.add(9)

    def test_container_protocol(self, policy):
        """Test len and membership."""
        assert len(policy) == 2
        assert 1 in policy
        assert 4 not in policy


class TestConstruction:
    """Test building policies on the producer side."""

    def test_explicit(self):
        """Test explicit factors and permission map."""
        policy = AccessPolicy([Factor.EMAIL_VERIFIED], {Permission.READ: [Factor.EMAIL_VERIFIED]})

        assert policy.is_granted(Permission.READ) is Verdict.GRANTED
        assert policy.is_granted(Permission.WRITE) is Verdict.NOT_FOUND

    def test_duplicates_collapse(self):
        """Test duplicate required factors are stored once."""
        policy = AccessPolicy([], {1: [3, 1, 3]})

        assert policy.permissions[1] == (3, 1)

    def test_shared_lists_stay_shared(self):
        """Test one required-factor list used by several permissions is stored once."""
        shared = [1, 2]
        policy = AccessPolicy([], {1: shared, 2: shared})

        assert policy.permissions[1] is policy.permissions[2]

    def test_lazily_built_mapping(self):
        """Test a mapping yielding fresh lists keeps each permission's own factors."""
        policy = AccessPolicy([1], LazyPermissionTable({n: [n] for n in range(1, 9)}))

        for permission_id in range(1, 9):
            assert policy.permissions[permission_id] == (permission_id,)
        assert policy.is_granted(1) is Verdict.GRANTED
        for permission_id in range(2, 9):
            assert policy.is_granted(permission_id) is Verdict.DENIED

    def test_from_permissions_with_registry(self, registry):
        """Test permission ids resolved through a registry."""
        policy = AccessPolicy.from_permissions(
            [Factor.EMAIL_VERIFIED], [Permission.READ, Permission.WRITE], registry
        )

        assert policy.is_granted(Permission.READ) is Verdict.GRANTED
        assert policy.is_granted(Permission.WRITE) is Verdict.DENIED
        assert policy.missing_factors(Permission.WRITE) == [Factor.MFA]

    def test_from_permissions_with_mapping(self):
        """Test permission ids resolved through a plain dict."""
        policy = AccessPolicy.from_permissions([1], [1, 2, 3], {1: [1], 2: [2]})

        assert policy.is_granted(1) is Verdict.GRANTED
        assert policy.is_granted(2) is Verdict.DENIED
        assert policy.is_granted(3) is Verdict.GRANTED
        assert policy.permissions[3] == ()

    def test_from_permissions_with_callable(self):
        """Test permission ids resolved through a plain function."""
        table = {1: [1], 2: [2]}
        policy = AccessPolicy.from_permissions([2], [1, 2, 2], lambda pid: table.get(pid, []))

        assert len(policy) == 2
        assert policy.is_granted(1) is Verdict.DENIED
        assert policy.is_granted(2) is Verdict.GRANTED

    def test_for_role(self, registry):
        """Test the permissions of a role."""
        policy = AccessPolicy.for_role([Factor.EMAIL_VERIFIED, Factor.MFA], "editor", registry)

        assert policy.is_granted(Permission.READ) is Verdict.GRANTED
        assert policy.is_granted(Permission.WRITE) is Verdict.GRANTED
        assert policy.is_granted(Permission.DELETE) is Verdict.DENIED
        assert policy.is_granted(Permission.AUDIT) is Verdict.NOT_FOUND

    def test_for_unknown_role(self, registry):
        """Test an undeclared role yields an empty policy."""
        policy = AccessPolicy.for_role([Factor.MFA], "nobody", registry)

        assert len(policy) == 0
        assert policy.serialize() == "!3"

    def test_none_factors(self):
        """Test None satisfied factors fail."""
        with pytest.raises(NullInputError):
            AccessPolicy(None, {})


class TestSerialization:
    """Test the compact string form of a policy."""

    def test_worked_example(self):
        """Test the reference encoding."""
        policy = AccessPolicy([1], {1: [1], 2: [3, 1]})

        assert policy.serialize() in ("!1#1+1&2+1,3", "!1#2+1,3&1+1")

    def test_empty_policy(self):
        """Test an empty policy round trip."""
        policy = AccessPolicy()

        assert policy.serialize() == ""
        parsed = AccessPolicy.deserialize("")
        assert len(parsed) == 0
        assert parsed.is_granted(1) is Verdict.NOT_FOUND
        assert parsed.is_granted(0) is Verdict.NOT_FOUND

    def test_round_trip(self, registry):
        """Test a deserialized policy answers every query like the original."""
        original = AccessPolicy.for_role([Factor.EMAIL_VERIFIED, Factor.MFA], "editor", registry)
        parsed = AccessPolicy.deserialize(original.serialize(), Factor, Permission)

        assert parsed == original
        for permission in list(Permission) + [99]:
            assert parsed.is_granted(permission) is original.is_granted(permission)
            assert parsed.missing_factors(permission) == original.missing_factors(permission)
            assert (sorted(parsed.satisfied_factors_for(permission))
                    == sorted(original.satisfied_factors_for(permission)))

    def test_order_independence(self):
        """Test insertion order does not change the decoded policy."""
        first = AccessPolicy([1, 2, 3], {1: [1, 2], 2: [3], 3: []})
        second = AccessPolicy([3, 1, 2], {3: [], 2: [3], 1: [2, 1]})

        assert AccessPolicy.deserialize(first.serialize()) == AccessPolicy.deserialize(second.serialize())

    def test_source_is_kept(self):
        """Test the parsed string is kept on the policy."""
        policy = AccessPolicy.deserialize("!A#1+a")

        assert policy.source == "!A#1+a"
        assert policy.serialize() == "!a#1+a"

    def test_typed_ids(self):
        """Test converters produce typed ids."""
        policy = AccessPolicy.deserialize("!3#2+1,3", Factor, Permission)

        assert policy.missing_factors(Permission.WRITE) == [Factor.EMAIL_VERIFIED]
        assert isinstance(policy.missing_factors(Permission.WRITE)[0], Factor)

    def test_module_functions(self):
        """Test the module-level helpers."""
        policy = deserialize_policy("!1#1+1")

        assert serialize_policy(policy) == "!1#1+1"
        with pytest.raises(NullInputError):
            serialize_policy(None)
        with pytest.raises(NullInputError):
            AccessPolicy.deserialize(None)

    def test_malformed_raises(self):
        """Test malformed strings raise from deserialize."""
        with pytest.raises(EmptyInputError):
            AccessPolicy.deserialize("!1,,3")

    def test_try_deserialize_falls_back(self, caplog):
        """Test untrusted strings fall back to an empty policy."""
        with caplog.at_level(logging.WARNING, logger="factorauth.permissions.policy"):
            policy = AccessPolicy.try_deserialize("!1,,3")

        assert len(policy) == 0
        assert policy.satisfied_factors == frozenset()
        assert "Rejected policy string" in caplog.text

        assert len(AccessPolicy.try_deserialize(None)) == 0
        assert AccessPolicy.try_deserialize("#1+1").is_granted(1) is Verdict.DENIED


class TestEquivalence:
    """Test policy comparison."""

    def test_factor_order_ignored(self):
        """Test required factors compare as sets."""
        assert AccessPolicy([1], {1: [1, 3]}) == AccessPolicy([1], {1: [3, 1, 3]})

    def test_differences(self):
        """Test differing policies are not equivalent."""
        base = AccessPolicy([1], {1: [1]})

        assert base != AccessPolicy([2], {1: [1]})
        assert base != AccessPolicy([1], {2: [1]})
        assert base != AccessPolicy([1], {1: [1, 2]})
        assert not base.equivalent("!1#1+1")

    def test_typed_and_plain_ids(self):
        """Test IntEnum ids compare equal to their values."""
        typed = AccessPolicy([Factor.MFA], {Permission.READ: [Factor.MFA]})
        plain = AccessPolicy.deserialize(typed.serialize())

        assert typed == plain


class TestDictionaryForm:
    """Test the dictionary representation."""

    def test_to_dict(self):
        """Test factors are ordered numerically and permissions keep their order."""
        policy = AccessPolicy([32, 3, 1], {2: [3, 1], 1: []})

        assert policy.to_dict() == {
            'satisfied_factors': [1, 3, 32],
            'permissions': {2: [3, 1], 1: []},
        }

    def test_to_dict_mixed_ids(self):
        """Test non-integer factor ids from custom converters do not break ordering."""
        policy = AccessPolicy(["sms", 2, "email", 1], {})

        assert policy.to_dict()['satisfied_factors'] == [1, 2, "email", "sms"]
        assert "AccessPolicy(satisfied_factors=[1, 2, 'email', 'sms']" in repr(policy)
