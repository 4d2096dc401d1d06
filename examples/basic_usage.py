"""
Basic factorauth usage example.

This example demonstrates the fundamental factorauth operations:
- Declaring permissions and roles
- Building a policy on the producer side
- Serializing it for a token claim
- Checking permissions on the consumer side
"""

from enum import IntEnum

from factorauth import AccessPolicy, PermissionRegistry, Verdict


class Factor(IntEnum):
    EMAIL_VERIFIED = 1
    PHONE_VERIFIED = 2
    MFA = 3


class Permission(IntEnum):
    READ_REPORTS = 1
    EDIT_REPORTS = 2
    EXPORT_REPORTS = 3
    VIEW_PROFILE = 4


def basic_example():
    """Demonstrate basic factorauth usage"""
    print("Basic factorauth Example")
    print("=" * 30)

    # 1. Declare permissions and roles
    registry = PermissionRegistry(
        required_factors={
            Permission.READ_REPORTS: [Factor.EMAIL_VERIFIED],
            Permission.EDIT_REPORTS: [Factor.EMAIL_VERIFIED, Factor.MFA],
            Permission.EXPORT_REPORTS: [Factor.MFA, Factor.EMAIL_VERIFIED],
            Permission.VIEW_PROFILE: [],
        },
        role_grants={
            "analyst": list(Permission),
        },
    )
    print(f"✓ Registry: {registry}")

    # 2. Build the policy of a subject who verified only their e-mail
    policy = AccessPolicy.for_role([Factor.EMAIL_VERIFIED], "analyst", registry)
    claim = policy.serialize()
    print(f"✓ Policy claim: {claim!r} ({len(claim)} bytes)")

    # 3. Parse the claim on the consumer side
    received = AccessPolicy.deserialize(claim, Factor, Permission)
    for permission in Permission:
        verdict = received.is_granted(permission)
        missing = ", ".join(factor.name for factor in received.missing_factors(permission))
        print(f"  {permission.name:<15} {verdict.value:<10} {missing}")

    # 4. Unknown permissions are not denials
    assert received.is_granted(99) is Verdict.NOT_FOUND
    print("✓ Unknown permission reported as not found")

    # 5. Untrusted input never raises
    fallback = AccessPolicy.try_deserialize("!1,,3")
    print(f"✓ Malformed claim replaced by empty policy: {fallback}")


if __name__ == "__main__":
    basic_example()
