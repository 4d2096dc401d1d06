"""
factorauth Python Package

Factor-based permissions with a compact policy codec: grant permissions on
conjunctions of independently satisfiable factors, and carry the policy
inside a signed token claim as a short printable string.
"""

__version__ = "0.1.0"

from .core.config import Config
from .codec import encode_number, decode_number, encode_policy, decode_policy
from .errors import (
    FactorAuthError,
    CodecError,
    EmptyInputError,
    InvalidCharacterError,
    ValueOverflowError,
    MalformedGrammarError,
    ConversionError,
    NullInputError,
    RegistryError,
    ConfigurationError,
)
from .permissions import (
    AccessPolicy,
    PermissionRegistry,
    Verdict,
    serialize_policy,
    deserialize_policy,
)

__all__ = [
    "Config",
    "AccessPolicy",
    "PermissionRegistry",
    "Verdict",
    "serialize_policy",
    "deserialize_policy",
    "encode_number",
    "decode_number",
    "encode_policy",
    "decode_policy",
    "FactorAuthError",
    "CodecError",
    "EmptyInputError",
    "InvalidCharacterError",
    "ValueOverflowError",
    "MalformedGrammarError",
    "ConversionError",
    "NullInputError",
    "RegistryError",
    "ConfigurationError",
]
