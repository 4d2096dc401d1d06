"""
Compact policy grammar.

A policy is written as at most two sections::

    policy            := [ "!" factor-list ] [ "#" permission-groups ]
    factor-list       := int32 ("," int32)*
    permission-groups := group ("&" group)*
    group             := perm-list [ "+" factor-list ]
    perm-list         := int32 ("," int32)*

The ``!`` section lists the satisfied factors. The ``#`` section lists
permissions, merged into one group whenever they require the same set of
factors. An empty policy is the empty string.

Example: ``"!1,3#1+1&2+1,3"`` satisfies factors 1 and 3, permission 1
requires factor 1 and permission 2 requires factors 1 and 3.
"""

import logging
import operator
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import ConversionError, MalformedGrammarError, NullInputError
from .group import ITEMS_DELIMITER, encode_group, decode_group


logger = logging.getLogger(__name__)


SATISFIED_FACTORS_PREFIX = "!"
PERMISSIONS_PREFIX = "#"
GROUP_DELIMITER = "&"
REQUIRED_FACTORS_DELIMITER = "+"

Converter = Callable[[int], Any]


def canonical_key(factors: Optional[Iterable[Any]]) -> str:
    """
    Build the grouping key of a required-factor list.

    Factors are compared as a set: the key is the numerically sorted,
    de-duplicated, encoded list. No factors give the empty key.
    """
    if not factors:
        return ""

    return encode_group(sorted({operator.index(factor) for factor in factors}))


def group_permissions(permissions: Mapping[Any, Iterable[Any]]) -> Dict[str, List[Any]]:
    """Merge permissions sharing a canonical key, in first-seen order."""
    groups: Dict[str, List[Any]] = {}

    for permission_id, required_factors in permissions.items():
        groups.setdefault(canonical_key(required_factors), []).append(permission_id)

    return groups


def encode_policy(satisfied_factors: Iterable[Any],
                  permissions: Mapping[Any, Iterable[Any]]) -> str:
    """
    Serialize satisfied factors and a permission map into a compact string.

    Args:
        satisfied_factors: Factors currently true for the subject
        permissions: Mapping of permission id to its required factors

    Returns:
        str: The compact policy string, ``""`` for an empty policy
    """
    if satisfied_factors is None:
        raise NullInputError("satisfied_factors")
    if permissions is None:
        raise NullInputError("permissions")

    parts = []

    factors = encode_group(dict.fromkeys(satisfied_factors))
    if factors:
        parts.append(SATISFIED_FACTORS_PREFIX + factors)

    prefix = PERMISSIONS_PREFIX
    for key, permission_ids in group_permissions(permissions).items():
        parts.append(prefix + encode_group(permission_ids))
        if key:
            parts.append(REQUIRED_FACTORS_DELIMITER + key)
        prefix = GROUP_DELIMITER

    return ''.join(parts)


def decode_policy(
    text: str,
    factor_converter: Optional[Converter] = None,
    permission_converter: Optional[Converter] = None
) -> Tuple[List[Any], Dict[Any, Tuple[Any, ...]]]:
    """
    Parse a compact policy string.

    Args:
        text: The compact policy string
        factor_converter: Maps a decoded integer to a factor id (default ``int``)
        permission_converter: Maps a decoded integer to a permission id (default ``int``)

    Returns:
        tuple: The satisfied factors and the permission map. All permissions
        of one group share the same required-factors tuple.

    Raises:
        NullInputError: If text is None
        MalformedGrammarError: If text does not follow the grammar
        CodecError: If an integer field cannot be decoded or converted
    """
    if text is None:
        raise NullInputError("text")

    factor_converter = factor_converter or int
    permission_converter = permission_converter or int

    satisfied_factors: List[Any] = []
    permissions: Dict[Any, Tuple[Any, ...]] = {}
    index = 0

    if text.startswith(SATISFIED_FACTORS_PREFIX):
        end = text.find(PERMISSIONS_PREFIX, 1)
        if end == -1:
            end = len(text)

        section = text[1:end]
        _reject_symbols(section, 1, SATISFIED_FACTORS_PREFIX, GROUP_DELIMITER,
                        REQUIRED_FACTORS_DELIMITER)
        if not section:
            raise MalformedGrammarError("Satisfied factors section is empty", position=1)

        satisfied_factors = _convert(decode_group(section), factor_converter, "factor")
        index = end

    if index < len(text):
        if text[index] != PERMISSIONS_PREFIX:
            raise MalformedGrammarError(
                f"Unexpected symbol {text[index]!r}, expected "
                f"{SATISFIED_FACTORS_PREFIX!r} or {PERMISSIONS_PREFIX!r}",
                position=index
            )

        permissions = _decode_permission_groups(text, index + 1, factor_converter,
                                                permission_converter)

    logger.debug(
        f"Decoded policy with {len(satisfied_factors)} satisfied factors "
        f"and {len(permissions)} permissions"
    )
    return satisfied_factors, permissions


def _decode_permission_groups(text: str, start: int, factor_converter: Converter,
                              permission_converter: Converter) -> Dict[Any, Tuple[Any, ...]]:
    section = text[start:]
    _reject_symbols(section, start, SATISFIED_FACTORS_PREFIX, PERMISSIONS_PREFIX)
    if not section:
        raise MalformedGrammarError("Permissions section is empty", position=start)

    permissions: Dict[Any, Tuple[Any, ...]] = {}
    position = start

    for group in section.split(GROUP_DELIMITER):
        if not group:
            raise MalformedGrammarError("Empty permission group", position=position)

        permission_part, delimiter, factor_part = group.partition(REQUIRED_FACTORS_DELIMITER)
        if not permission_part:
            raise MalformedGrammarError("Permission group has no permission ids",
                                        position=position)
        if delimiter and not factor_part:
            raise MalformedGrammarError(
                "Required factors delimiter is not followed by any factor",
                position=position + len(permission_part)
            )
        if REQUIRED_FACTORS_DELIMITER in factor_part:
            raise MalformedGrammarError(
                "Permission group has more than one required factors delimiter",
                position=position + len(permission_part) + 1 + factor_part.index(
                    REQUIRED_FACTORS_DELIMITER)
            )

        required_factors = tuple(_convert(decode_group(factor_part), factor_converter, "factor"))

        for permission_id in _convert(decode_group(permission_part), permission_converter,
                                      "permission"):
            if permission_id in permissions:
                raise MalformedGrammarError(
                    f"Permission {permission_id!r} appears more than once",
                    position=position
                )
            permissions[permission_id] = required_factors

        position += len(group) + 1

    return permissions


def _reject_symbols(section: str, offset: int, *symbols: str) -> None:
    for index, symbol in enumerate(section):
        if symbol in symbols:
            raise MalformedGrammarError(f"Unexpected symbol {symbol!r}",
                                        position=offset + index)


def _convert(values: List[int], converter: Converter, kind: str) -> List[Any]:
    converted = []

    for value in values:
        try:
            converted.append(converter(value))
        except (ValueError, TypeError) as e:
            raise ConversionError(f"Cannot convert {kind} value {value}: {e}",
                                  value=value, cause=e) from e

    return converted


__all__ = [
    'SATISFIED_FACTORS_PREFIX',
    'PERMISSIONS_PREFIX',
    'ITEMS_DELIMITER',
    'GROUP_DELIMITER',
    'REQUIRED_FACTORS_DELIMITER',
    'canonical_key',
    'group_permissions',
    'encode_policy',
    'decode_policy',
]
