"""
Package codec implements the compact string form of a factor-based policy.

The string is small enough to travel inside a signed token claim:
- number: radix-32 unsigned 32-bit integers
- group: comma-delimited integer lists
- policy: the ``!factors#perms+factors&perms+factors`` grammar
"""

from .number import (
    ALPHABET,
    MAX_VALUE,
    PRECOMPUTED_LIMIT,
    encode_number,
    decode_number,
)

from .group import (
    ITEMS_DELIMITER,
    encode_group,
    decode_group,
)

from .policy import (
    SATISFIED_FACTORS_PREFIX,
    PERMISSIONS_PREFIX,
    GROUP_DELIMITER,
    REQUIRED_FACTORS_DELIMITER,
    canonical_key,
    group_permissions,
    encode_policy,
    decode_policy,
)

__all__ = [
    # Integer codec
    'ALPHABET',
    'MAX_VALUE',
    'PRECOMPUTED_LIMIT',
    'encode_number',
    'decode_number',

    # Group codec
    'ITEMS_DELIMITER',
    'encode_group',
    'decode_group',

    # Policy grammar
    'SATISFIED_FACTORS_PREFIX',
    'PERMISSIONS_PREFIX',
    'GROUP_DELIMITER',
    'REQUIRED_FACTORS_DELIMITER',
    'canonical_key',
    'group_permissions',
    'encode_policy',
    'decode_policy',
]
