"""
Error types and error codes for factorauth.
Provides structured error handling for the compact policy codec and the
permission registry.

The permission evaluator itself never raises: unknown permissions and
unsatisfied factors are ordinary results, not errors.
"""

from enum import Enum
from typing import Dict, Any, Optional


class ErrorCode(str, Enum):
    """Standard error codes used across factorauth."""
    EMPTY_INPUT = "empty_input"
    INVALID_CHARACTER = "invalid_character"
    OVERFLOW = "overflow"
    MALFORMED_GRAMMAR = "malformed_grammar"
    NULL_INPUT = "null_input"
    CONVERSION_FAILED = "conversion_failed"
    REGISTRY_ERROR = "registry_error"
    CONFIGURATION_ERROR = "configuration_error"
    INTERNAL_ERROR = "internal_error"

    def __str__(self) -> str:
        return self.value


# Error code constants for easy import
EMPTY_INPUT = ErrorCode.EMPTY_INPUT
INVALID_CHARACTER = ErrorCode.INVALID_CHARACTER
OVERFLOW = ErrorCode.OVERFLOW
MALFORMED_GRAMMAR = ErrorCode.MALFORMED_GRAMMAR
NULL_INPUT = ErrorCode.NULL_INPUT
CONVERSION_FAILED = ErrorCode.CONVERSION_FAILED
REGISTRY_ERROR = ErrorCode.REGISTRY_ERROR
CONFIGURATION_ERROR = ErrorCode.CONFIGURATION_ERROR
INTERNAL_ERROR = ErrorCode.INTERNAL_ERROR


class FactorAuthError(Exception):
    """Base exception for all factorauth errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            'error': self.error_code.value,
            'message': self.message,
            'details': self.details
        }

        if self.cause:
            result['cause'] = str(self.cause)

        return result

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class CodecError(FactorAuthError, ValueError):
    """Base class for failures while decoding a compact policy string."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        position: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, error_code, details, cause)
        self.position = position

        if position is not None:
            self.details['position'] = position


class EmptyInputError(CodecError):
    """Raised when an integer field is zero-length."""

    def __init__(self, message: str = "Input cannot be empty",
                 position: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, EMPTY_INPUT, position, details)


class InvalidCharacterError(CodecError):
    """Raised when a symbol outside the radix-32 alphabet is found."""

    def __init__(self, character: str, position: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Invalid base-32 character: {character!r}",
                         INVALID_CHARACTER, position, details)
        self.character = character
        self.details['character'] = character


class ValueOverflowError(CodecError):
    """Raised when a value does not fit into an unsigned 32-bit integer."""

    def __init__(self, message: str, value: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, OVERFLOW, None, details)
        self.value = value

        if value is not None:
            self.details['value'] = str(value)


class MalformedGrammarError(CodecError):
    """Raised when a policy string violates the policy grammar."""

    def __init__(self, message: str, position: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, MALFORMED_GRAMMAR, position, details)


class ConversionError(CodecError):
    """Raised when a factor or permission converter rejects a decoded value."""

    def __init__(self, message: str, value: Optional[int] = None,
                 cause: Optional[Exception] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, CONVERSION_FAILED, None, details, cause)
        self.value = value

        if value is not None:
            self.details['value'] = value


class NullInputError(FactorAuthError, TypeError):
    """Raised when a required argument is None."""

    def __init__(self, argument: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{argument} cannot be None", NULL_INPUT, details)
        self.argument = argument
        self.details['argument'] = argument


class RegistryError(FactorAuthError, LookupError):
    """Raised by a strict registry when an identifier has no declaration."""

    def __init__(
        self,
        message: str,
        identifier: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, REGISTRY_ERROR, details)
        self.identifier = identifier

        if identifier is not None:
            self.details['identifier'] = str(identifier)


class ConfigurationError(FactorAuthError):
    """Raised when there's a configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, CONFIGURATION_ERROR, details, cause)
        self.config_key = config_key
        self.config_value = config_value

        if config_key:
            self.details['config_key'] = config_key
        if config_value is not None:
            self.details['config_value'] = str(config_value)


def create_error_response(error: FactorAuthError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        'error': error.error_code.value,
        'message': error.message,
        'details': error.details,
    }


__all__ = [
    'ErrorCode',
    'EMPTY_INPUT',
    'INVALID_CHARACTER',
    'OVERFLOW',
    'MALFORMED_GRAMMAR',
    'NULL_INPUT',
    'CONVERSION_FAILED',
    'REGISTRY_ERROR',
    'CONFIGURATION_ERROR',
    'INTERNAL_ERROR',
    'FactorAuthError',
    'CodecError',
    'EmptyInputError',
    'InvalidCharacterError',
    'ValueOverflowError',
    'MalformedGrammarError',
    'ConversionError',
    'NullInputError',
    'RegistryError',
    'ConfigurationError',
    'create_error_response',
]
