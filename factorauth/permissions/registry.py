"""
Explicit table of permission metadata.

The registry declares, once at start-up, which factors each permission
requires and which permissions each role grants. It is the producer-side
lookup handed to :meth:`AccessPolicy.from_permissions`.
"""

import logging
from collections import abc
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..errors import ConfigurationError, RegistryError
from ..util.config import load_config_file
from .types import FactorId, PermissionId


logger = logging.getLogger(__name__)


class PermissionRegistry:
    """
    Registry of required factors per permission and granted permissions per role.

    In strict mode, looking up an undeclared permission or role raises
    RegistryError; otherwise it yields an empty list.
    """

    def __init__(
        self,
        required_factors: Optional[Mapping[PermissionId, Iterable[FactorId]]] = None,
        role_grants: Optional[Mapping[Any, Iterable[PermissionId]]] = None,
        strict: bool = False
    ):
        self.strict = strict
        self._required_factors: Dict[PermissionId, List[FactorId]] = {}
        self._role_grants: Dict[Any, List[PermissionId]] = {}

        for permission_id, factors in (required_factors or {}).items():
            self.register_permission(permission_id, factors)

        for role, permission_ids in (role_grants or {}).items():
            self.register_role(role, permission_ids)

    def register_permission(self, permission_id: PermissionId,
                            factors: Iterable[FactorId] = ()) -> None:
        """Declare the factors a permission requires. Redeclaring replaces."""
        self._required_factors[permission_id] = list(dict.fromkeys(factors))
        logger.debug(f"Registered permission {permission_id!r} requiring "
                     f"{self._required_factors[permission_id]}")

    def register_role(self, role: Any, permission_ids: Iterable[PermissionId]) -> None:
        """Declare the permissions a role grants. Redeclaring replaces."""
        self._role_grants[role] = list(dict.fromkeys(permission_ids))
        logger.debug(f"Registered role {role!r} granting {self._role_grants[role]}")

    def required_factors(self, permission_id: PermissionId) -> List[FactorId]:
        """Get the factors a permission requires."""
        factors = self._required_factors.get(permission_id)

        if factors is None:
            if self.strict:
                raise RegistryError(f"Permission {permission_id!r} is not registered",
                                    identifier=permission_id)
            return []

        return list(factors)

    def granted_permissions(self, role: Any) -> List[PermissionId]:
        """Get the permissions a role grants."""
        permission_ids = self._role_grants.get(role)

        if permission_ids is None:
            if self.strict:
                raise RegistryError(f"Role {role!r} is not registered", identifier=role)
            return []

        return list(permission_ids)

    def permission_map(self, permission_ids: Iterable[PermissionId]) -> Dict[PermissionId, List[FactorId]]:
        """Build a permission map for the given permissions."""
        return {permission_id: self.required_factors(permission_id)
                for permission_id in permission_ids}

    @property
    def permissions(self) -> List[PermissionId]:
        return list(self._required_factors)

    @property
    def roles(self) -> List[Any]:
        return list(self._role_grants)

    def __contains__(self, permission_id: PermissionId) -> bool:
        return permission_id in self._required_factors

    def __len__(self) -> int:
        return len(self._required_factors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'permissions': {permission_id: list(factors)
                            for permission_id, factors in self._required_factors.items()},
            'roles': {role: list(permission_ids)
                      for role, permission_ids in self._role_grants.items()}
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        factor_converter: Callable[[Any], FactorId] = int,
        permission_converter: Callable[[Any], PermissionId] = int,
        strict: bool = False
    ) -> 'PermissionRegistry':
        """
        Create a registry from a dictionary.

        Expected shape::

            permissions:
              1: [1, 3]
              2: []
            roles:
              admin: [1, 2]

        Args:
            data: The registry declarations
            factor_converter: Maps a raw factor value to a factor id
            permission_converter: Maps a raw permission value to a permission id
            strict: Whether lookups of undeclared ids raise

        Raises:
            ConfigurationError: If the data does not have the expected shape
        """
        if not isinstance(data, abc.Mapping):
            raise ConfigurationError("Registry data must be a mapping",
                                     config_value=type(data).__name__)

        permissions = data.get('permissions') or {}
        roles = data.get('roles') or {}

        if not isinstance(permissions, abc.Mapping):
            raise ConfigurationError("'permissions' must be a mapping", config_key='permissions')
        if not isinstance(roles, abc.Mapping):
            raise ConfigurationError("'roles' must be a mapping", config_key='roles')

        registry = cls(strict=strict)

        try:
            for raw_permission, raw_factors in permissions.items():
                registry.register_permission(
                    permission_converter(raw_permission),
                    [factor_converter(factor) for factor in _as_list(raw_factors, 'permissions')]
                )

            for role, raw_permissions in roles.items():
                registry.register_role(
                    role,
                    [permission_converter(permission)
                     for permission in _as_list(raw_permissions, 'roles')]
                )
        except (ValueError, TypeError, KeyError) as e:
            raise ConfigurationError(f"Invalid registry declaration: {e}", cause=e) from e

        logger.info(f"Loaded permission registry with {len(registry)} permissions "
                    f"and {len(registry.roles)} roles")
        return registry

    @classmethod
    def from_file(
        cls,
        file_path: str,
        factor_converter: Callable[[Any], FactorId] = int,
        permission_converter: Callable[[Any], PermissionId] = int,
        strict: bool = False
    ) -> 'PermissionRegistry':
        """Create a registry from a JSON or YAML file."""
        try:
            data = load_config_file(file_path)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot load permission registry: {e}",
                                     config_key='registry_file',
                                     config_value=file_path, cause=e) from e

        logger.info(f"Loading permission registry from {file_path}")
        return cls.from_dict(data or {}, factor_converter, permission_converter, strict)

    def __repr__(self) -> str:
        return (f"PermissionRegistry(permissions={len(self)}, roles={len(self._role_grants)}, "
                f"strict={self.strict})")


def _as_list(value: Any, section: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, abc.Mapping)) or not isinstance(value, abc.Iterable):
        raise ConfigurationError(f"Entries of '{section}' must be lists", config_key=section,
                                 config_value=value)
    return list(value)
