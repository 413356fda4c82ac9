"""
App Identity proofs.

A proof is the value a client presents to a server. It is built either from
an App and a nonce (client side) or by parsing a proof string (server side).

Wire format (Base64 URL-safe, no padding):
    version 1:   base64url("id:nonce:padlock")
    version 2+:  base64url("version:id:nonce:padlock")

The padlock is the upper-case hex digest of "id:nonce:secret" using the
digest algorithm of the proof version.
"""

import base64
import binascii
import inspect
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .app import App
from .types import FIELD_SEPARATOR, ProofError, VerificationError, VersionError
from .validation import check_id, check_nonce, check_padlock, check_version
from .versions import AlgorithmVersion, check_allowed


logger = logging.getLogger(__name__)

_BASE64URL = re.compile(r"[A-Za-z0-9_-]*={0,2}")


@dataclass(frozen=True)
class Proof:
    """
    A parsed or generated App Identity proof. Never holds a secret.

    Every field is validated on construction, so a Proof built directly from
    field values is as safe to verify as one from from_app() or from_string().
    """
    version: int
    id: str
    nonce: str
    padlock: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "version", check_version(self.version))
        object.__setattr__(self, "id", check_id(self.id))
        object.__setattr__(self, "nonce", check_nonce(self.nonce))
        object.__setattr__(self, "padlock", check_padlock(self.padlock))

    @classmethod
    def from_app(
        cls,
        app: App,
        nonce: Any,
        version: Any = None,
        disallowed: Optional[Iterable] = None,
    ) -> "Proof":
        """
        Build a proof for an app.

        Args:
            app: The app generating the proof
            nonce: A nonce valid for the proof version
            version: Proof version override; defaults to the app version
            disallowed: Versions disallowed for this call

        Returns:
            The generated Proof

        Raises:
            VersionError: If the version is disallowed or lower than the app version
            ValidationError: If the nonce is invalid for the version
        """
        version = app.version if version is None else check_version(version)
        algorithm = check_allowed(version, disallowed)

        if app.version > version:
            raise VersionError(
                f"app version {app.version} is not compatible with proof version {version}"
            )

        nonce = algorithm.validate_nonce(nonce, app.config)

        return cls(
            version=version,
            id=app.id,
            nonce=nonce,
            padlock=make_padlock(app, nonce, algorithm),
        )

    @classmethod
    def from_string(cls, proof: str) -> "Proof":
        """
        Parse a proof string.

        Raises:
            ProofError: If the string cannot be decoded or has the wrong number of parts
            ValidationError: If any part is invalid
            VersionError: If the version part is not a supported version
        """
        parts = _decode(proof).split(FIELD_SEPARATOR)

        if len(parts) == 3:
            version = 1
            id, nonce, padlock = parts
        elif len(parts) == 4:
            version, id, nonce, padlock = parts
        else:
            raise ProofError("proof must have 3 parts (version 1) or 4 parts (any version)")

        return cls(version=version, id=id, nonce=nonce, padlock=padlock)

    def verify(self, app: Any, disallowed: Optional[Iterable] = None) -> Optional[App]:
        """
        Verify this proof against an app.

        Args:
            app: An App, app input, or a finder called with this proof that
                returns one of those (or None if no app is known)
            disallowed: Versions disallowed for this call

        Returns:
            The verified App, or None if the padlock does not match or the
            finder did not find an app

        Raises:
            AppIdentityError: If the proof and app cannot be compared
        """
        if callable(app) and not isinstance(app, App):
            app = app(self)

        return self._verify_app(app, disallowed)

    async def verify_async(
        self, app: Any, disallowed: Optional[Iterable] = None
    ) -> Optional[App]:
        """Like verify(), but the finder may return an awaitable."""
        if callable(app) and not isinstance(app, App):
            app = app(self)
            if inspect.isawaitable(app):
                app = await app

        return self._verify_app(app, disallowed)

    def _verify_app(self, app: Any, disallowed: Optional[Iterable]) -> Optional[App]:
        if app is None:
            logger.debug("No app found for proof id %s", self.id)
            return None

        app = App.create(app)

        if self.id != app.id:
            raise VerificationError("proof and app do not match")

        if app.version > self.version:
            raise VersionError("proof and app version mismatch")

        algorithm = check_allowed(self.version, disallowed)
        algorithm.validate_nonce(self.nonce, app.config)
        check_padlock(self.padlock)

        expected = make_padlock(app, self.nonce, algorithm)

        if compare_padlocks(expected, self.padlock):
            return app.verify()

        logger.debug("Padlock mismatch for app %s (version %d)", app.id, self.version)
        return None

    def to_string(self) -> str:
        """Serialize the proof to its wire format."""
        if self.version == 1:
            parts = [self.id, self.nonce, self.padlock]
        else:
            parts = [str(self.version), self.id, self.nonce, self.padlock]

        raw = FIELD_SEPARATOR.join(parts).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "id": self.id,
            "nonce": self.nonce,
            "padlock": self.padlock,
        }

    def __str__(self) -> str:
        return self.to_string()


def make_padlock(app: App, nonce: str, algorithm: AlgorithmVersion) -> str:
    """Compute the padlock for an app and nonce. The secret is revealed only here."""
    secret = app.secret()
    prefix = f"{app.id}{FIELD_SEPARATOR}{nonce}{FIELD_SEPARATOR}".encode("utf-8")

    if isinstance(secret, str):
        secret = secret.encode("utf-8")

    return algorithm.make_digest(prefix + secret)


def compare_padlocks(expected: str, provided: str) -> bool:
    """
    Compare two padlocks case-insensitively in constant time.

    Every byte pair is visited regardless of where the first difference is.
    Empty values and values of different lengths never match.
    """
    if not expected or not provided:
        return False

    left = expected.upper().encode("utf-8")
    right = provided.upper().encode("utf-8")

    if len(left) != len(right):
        return False

    result = 0
    for a, b in zip(left, right):
        result |= a ^ b

    return result == 0


def _decode(proof: Any) -> str:
    if not isinstance(proof, str) or not _BASE64URL.fullmatch(proof):
        raise ProofError("cannot decode proof string")

    data = proof.rstrip("=")
    data += "=" * (-len(data) % 4)

    try:
        return base64.urlsafe_b64decode(data).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise ProofError("cannot decode proof string")
