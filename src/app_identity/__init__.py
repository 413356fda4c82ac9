"""
App Identity - shared-secret application identity proofs

Python implementation of the App Identity proof algorithm (versions 1-4).
"""

from .types import (
    SPEC_VERSION,
    SUPPORTED_VERSIONS,
    DEFAULT_FUZZ,
    AppIdentityError,
    ValidationError,
    ProofError,
    VersionError,
    VerificationError,
)
from .validation import (
    Secret,
    check_id,
    check_secret,
    check_version,
    check_config,
    check_nonce,
    check_padlock,
    check_disallowed,
)
from .versions import (
    AlgorithmVersion,
    get_version,
    is_allowed,
    disallowed_versions,
)
from .app import App
from .proof import Proof, compare_padlocks
from .engine import (
    generate_proof,
    generate_proof_async,
    generate_proof_or_none,
    parse_proof,
    parse_proof_or_none,
    verify_proof,
    verify_proof_async,
    verify_proof_or_none,
    allow_version,
    disallow_version,
)

__version__ = "1.0.0"

NAME = "AppIdentity for Python"

INFO = {"name": NAME, "version": __version__, "spec_version": SPEC_VERSION}

__all__ = [
    # Engine
    "generate_proof",
    "generate_proof_async",
    "generate_proof_or_none",
    "parse_proof",
    "parse_proof_or_none",
    "verify_proof",
    "verify_proof_async",
    "verify_proof_or_none",
    "allow_version",
    "disallow_version",
    # App
    "App",
    # Proof
    "Proof",
    "compare_padlocks",
    # Versions
    "AlgorithmVersion",
    "get_version",
    "is_allowed",
    "disallowed_versions",
    # Validation
    "Secret",
    "check_id",
    "check_secret",
    "check_version",
    "check_config",
    "check_nonce",
    "check_padlock",
    "check_disallowed",
    # Errors
    "AppIdentityError",
    "ValidationError",
    "ProofError",
    "VersionError",
    "VerificationError",
    # Constants
    "SPEC_VERSION",
    "SUPPORTED_VERSIONS",
    "DEFAULT_FUZZ",
    "NAME",
    "INFO",
]
