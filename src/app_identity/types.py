"""Type definitions for App Identity."""

from typing import Any, Mapping, Union


# Protocol constants
SPEC_VERSION = 4
SUPPORTED_VERSIONS = (1, 2, 3, 4)
DEFAULT_FUZZ = 600  # seconds
RANDOM_NONCE_BYTES = 32
FIELD_SEPARATOR = ":"

# Timestamp nonce format (ISO 8601 basic, UTC)
TIMESTAMP_NONCE_FORMAT = "%Y%m%dT%H%M%S.%fZ"
TIMESTAMP_NONCE_PATTERN = r"(\d{8})T(\d{6})(?:\.(\d+))?Z"

# Type aliases
RawSecret = Union[str, bytes]
AppInput = Union[Mapping[str, Any], Any]


# Exception types
class AppIdentityError(Exception):
    """Base exception for App Identity errors."""
    pass


class ValidationError(AppIdentityError):
    """A field value has an invalid shape or type."""
    pass


class ProofError(AppIdentityError):
    """A proof string cannot be decoded or has the wrong structure."""
    pass


class VersionError(AppIdentityError):
    """Unsupported, disallowed, or incompatible algorithm version."""
    pass


class VerificationError(AppIdentityError):
    """The proof cannot be checked against the provided app."""
    pass
