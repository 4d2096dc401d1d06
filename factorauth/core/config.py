"""
Configuration module for factorauth.
"""

from dataclasses import dataclass
from typing import Optional

from ..errors import ConfigurationError
from ..permissions.policy import AccessPolicy
from ..permissions.registry import PermissionRegistry
from ..util.config import ENV_PREFIX, get_bool_config, load_config_from_env


@dataclass
class Config:
    """Configuration for producing and consuming factor-based policies"""
    registry_file: Optional[str] = None
    strict_registry: bool = False
    reject_malformed: bool = True

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "Config":
        """Create configuration from environment variables"""
        env = load_config_from_env(prefix)
        return cls(
            registry_file=env.get("registry_file") or None,
            strict_registry=get_bool_config("strict_registry", False, prefix),
            reject_malformed=get_bool_config("reject_malformed", True, prefix),
        )

    def validate(self) -> bool:
        """Validate the configuration"""
        if self.registry_file is not None and not self.registry_file.strip():
            raise ConfigurationError("registry_file cannot be blank",
                                     config_key="registry_file",
                                     config_value=self.registry_file)
        return True

    def load_registry(self, **converters) -> PermissionRegistry:
        """
        Load the permission registry named by ``registry_file``.

        Keyword arguments are passed to PermissionRegistry.from_file
        (``factor_converter``, ``permission_converter``).
        """
        self.validate()

        if self.registry_file is None:
            raise ConfigurationError("registry_file is required to load a registry",
                                     config_key="registry_file")

        return PermissionRegistry.from_file(self.registry_file, strict=self.strict_registry,
                                            **converters)

    def load_policy(self, value: str, **converters) -> AccessPolicy:
        """
        Parse a policy string taken from a token claim.

        When ``reject_malformed`` is set, malformed strings raise; otherwise
        they yield an empty policy.
        """
        if self.reject_malformed:
            return AccessPolicy.deserialize(value, **converters)

        return AccessPolicy.try_deserialize(value, **converters)
