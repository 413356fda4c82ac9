"""
App Identity proof generation, parsing, and verification entry points.

The plain functions raise AppIdentityError subclasses with a specific reason.
The *_or_none variants wrap them and return None for any App Identity error,
for callers that only need to know whether a proof is usable.

Example usage:
    ```python
    app = {"id": "decaf", "secret": "bad", "version": 1}

    proof = generate_proof(app, nonce="hello")
    verified = verify_proof(proof, app)
    assert verified is not None and verified.verified
    ```
"""

import logging
from typing import Any, Iterable, Optional, Union

from .app import App
from .proof import Proof
from .types import AppIdentityError
from .validation import check_disallowed
from .versions import allow, disallow


logger = logging.getLogger(__name__)


def generate_proof(
    app: Any,
    nonce: Optional[str] = None,
    version: Any = None,
    disallowed: Optional[Iterable] = None,
) -> str:
    """
    Generate a proof string for an app.

    Args:
        app: An App, app input, or zero-argument loader returning one
        nonce: Nonce to use; generated for the proof version if omitted
        version: Proof version; defaults to the app version. An app may
            raise, but never lower, its version.
        disallowed: Versions disallowed for this call, in addition to the
            globally disallowed versions

    Returns:
        The encoded proof string

    Raises:
        AppIdentityError: If the proof cannot be generated
    """
    app = App.create(app)
    return _generate(app, nonce, version, disallowed)


async def generate_proof_async(
    app: Any,
    nonce: Optional[str] = None,
    version: Any = None,
    disallowed: Optional[Iterable] = None,
) -> str:
    """Like generate_proof(), but the loader may return an awaitable."""
    app = await App.create_async(app)
    return _generate(app, nonce, version, disallowed)


def parse_proof(proof: Union[str, Proof]) -> Proof:
    """
    Parse a proof string. A Proof is returned unchanged.

    Raises:
        AppIdentityError: If the proof cannot be parsed
    """
    if isinstance(proof, Proof):
        return proof
    return Proof.from_string(proof)


def verify_proof(
    proof: Union[str, Proof],
    app: Any,
    disallowed: Optional[Iterable] = None,
) -> Optional[App]:
    """
    Verify a proof against an app.

    Args:
        proof: A proof string (usually from a request header) or parsed Proof
        app: An App, app input, or a finder called with the parsed Proof
            that returns an App, app input, or None
        disallowed: Versions disallowed for this call, in addition to the
            globally disallowed versions

    Returns:
        The verified App, or None if the proof does not match

    Raises:
        AppIdentityError: If the proof is malformed or cannot be checked
            against the app
    """
    proof = parse_proof(proof)
    result = proof.verify(app, disallowed=disallowed)
    _log_verification(proof, result)
    return result


async def verify_proof_async(
    proof: Union[str, Proof],
    app: Any,
    disallowed: Optional[Iterable] = None,
) -> Optional[App]:
    """Like verify_proof(), but the finder may return an awaitable."""
    proof = parse_proof(proof)
    result = await proof.verify_async(app, disallowed=disallowed)
    _log_verification(proof, result)
    return result


def generate_proof_or_none(
    app: Any,
    nonce: Optional[str] = None,
    version: Any = None,
    disallowed: Optional[Iterable] = None,
) -> Optional[str]:
    """Like generate_proof(), returning None instead of raising."""
    try:
        return generate_proof(app, nonce=nonce, version=version, disallowed=disallowed)
    except AppIdentityError as e:
        logger.debug("Error generating proof: %s", e)
        return None


def parse_proof_or_none(proof: Union[str, Proof]) -> Optional[Proof]:
    """Like parse_proof(), returning None instead of raising."""
    try:
        return parse_proof(proof)
    except AppIdentityError as e:
        logger.debug("Error parsing proof: %s", e)
        return None


def verify_proof_or_none(
    proof: Union[str, Proof],
    app: Any,
    disallowed: Optional[Iterable] = None,
) -> Optional[App]:
    """Like verify_proof(), returning None instead of raising."""
    try:
        return verify_proof(proof, app, disallowed=disallowed)
    except AppIdentityError as e:
        logger.debug("Error verifying proof: %s", e)
        return None


def disallow_version(*versions: Any) -> None:
    """Add versions to the global disallowed list."""
    disallow(*versions)


def allow_version(*versions: Any) -> None:
    """Remove versions from the global disallowed list."""
    allow(*versions)


def _generate(app: App, nonce: Optional[str], version: Any, disallowed: Optional[Iterable]) -> str:
    disallowed = check_disallowed(disallowed)

    if nonce is None:
        nonce = app.generate_nonce(version)

    proof = Proof.from_app(app, nonce, version=version, disallowed=disallowed)
    logger.debug("Generated version %d proof for app %s", proof.version, app.id)
    return proof.to_string()


def _log_verification(proof: Proof, result: Optional[App]) -> None:
    if result is None:
        logger.debug("Proof for app %s (version %d) did not verify", proof.id, proof.version)
    else:
        logger.debug("Proof for app %s (version %d) verified", proof.id, proof.version)
