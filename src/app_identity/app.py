"""
The App record used by App Identity proof generation and verification.

An App is usually built from a static configuration entry or a database
record. Apps are immutable; verify() and unverify() return modified copies.

App Identity algorithm versions are strictly upgradeable: a version 1 app can
verify version 1, 2, 3, or 4 proofs, but a version 2 app will never verify a
version 1 proof.
"""

import dataclasses
import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .types import AppInput, VersionError
from .validation import check_config, check_id, check_secret, check_version
from .versions import get_version


_FIELDS = ("id", "secret", "version", "config")


@dataclass(frozen=True, eq=False, repr=False)
class App:
    """
    An App Identity application.

    Attributes:
        id: Unique identifier; non-string values are converted with str()
        secret: Wrapped secret; call it to reveal the raw value
        version: Minimum algorithm version this app supports
        config: None or {"fuzz": seconds} for timestamp nonce validation
        source: The input the app was created from
        verified: Whether this app was used to verify a proof
    """
    id: Any
    secret: Any
    version: Any
    config: Optional[dict] = None
    source: Any = None
    verified: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", check_id(self.id))
        object.__setattr__(self, "secret", check_secret(self.secret))
        object.__setattr__(self, "version", check_version(self.version))
        object.__setattr__(self, "config", check_config(self.config))
        object.__setattr__(self, "verified", bool(self.verified))

    @classmethod
    def create(cls, input: Any) -> "App":
        """
        Create an App from a mapping, an object with id/secret/version/config
        attributes, another App, or a zero-argument loader returning one of
        those.

        An unverified App is returned as-is. A verified App is used as the
        source of a new, unverified App.

        Raises:
            ValidationError: If any field is invalid
            VersionError: If the version is not supported
        """
        if callable(input) and not isinstance(input, App):
            input = input()

        if isinstance(input, App):
            if not input.verified:
                return input
            return dataclasses.replace(input, verified=False, source=input)

        values = {name: _get(input, name) for name in _FIELDS}
        return cls(source=input, **values)

    @classmethod
    async def create_async(cls, input: Any) -> "App":
        """Like create(), but the loader may return an awaitable."""
        if callable(input) and not isinstance(input, App):
            input = input()
            if inspect.isawaitable(input):
                input = await input

        return cls.create(input)

    def verify(self) -> "App":
        """Return a verified copy of this app, or self if already verified."""
        if self.verified:
            return self
        return dataclasses.replace(self, verified=True)

    def unverify(self) -> "App":
        """Return an unverified copy of this app, or self if not verified."""
        if not self.verified:
            return self
        return dataclasses.replace(self, verified=False)

    def generate_nonce(self, version: Any = None) -> str:
        """
        Generate a nonce for this app, optionally for a higher version.

        Raises:
            VersionError: If the requested version is lower than the app version
        """
        if version is None:
            version = self.version
        else:
            version = check_version(version)

        if version < self.version:
            raise VersionError(
                f"app version {self.version} is not compatible with requested version {version}"
            )

        return get_version(version).generate_nonce()

    def to_dict(self) -> dict:
        """
        Export the app as a plain dict suitable for persistence.

        The secret is revealed in the result. Do not use this for logging.
        """
        return {
            "id": self.id,
            "secret": self.secret(),
            "version": self.version,
            "config": self.config,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, App):
            return NotImplemented
        return (
            self.id == other.id
            and self.version == other.version
            and self.config == other.config
            and self.verified == other.verified
            and self.secret() == other.secret()
        )

    def __hash__(self) -> int:
        return hash((App, self.id, self.version, self.verified))

    def __repr__(self) -> str:
        return (
            f"App(id={self.id!r}, version={self.version}, "
            f"config={self.config!r}, verified={self.verified})"
        )


def _get(input: AppInput, name: str) -> Any:
    if isinstance(input, Mapping):
        return input.get(name)
    return getattr(input, name, None)
