"""
Algorithm version registry for App Identity.

Each protocol version pairs a nonce strategy with a digest algorithm:

    Version  Nonce               Digest
    1        random              SHA-256
    2        timestamp +/- fuzz  SHA-256
    3        timestamp +/- fuzz  SHA-384
    4        timestamp +/- fuzz  SHA-512

The registry is fixed. The only mutable state is the global set of disallowed
versions, which is changed through allow() and disallow().
"""

import logging
import re
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Type, Union

from cryptography.hazmat.primitives import hashes

from .types import (
    DEFAULT_FUZZ,
    RANDOM_NONCE_BYTES,
    TIMESTAMP_NONCE_FORMAT,
    TIMESTAMP_NONCE_PATTERN,
    ValidationError,
    VersionError,
)
from .validation import check_disallowed, check_nonce, check_version, parse_version


logger = logging.getLogger(__name__)

_TIMESTAMP = re.compile(TIMESTAMP_NONCE_PATTERN, re.ASCII)


class RandomNonce:
    """Nonce strategy using a URL-safe random token."""

    name = "random"

    def generate(self) -> str:
        return secrets.token_urlsafe(RANDOM_NONCE_BYTES)

    def validate(self, nonce: Any, config: Optional[Mapping] = None) -> str:
        return check_nonce(nonce)


class TimestampNonce:
    """Nonce strategy using the current UTC time, checked against a fuzz window."""

    name = "timestamp"

    def generate(self) -> str:
        return datetime.now(timezone.utc).strftime(TIMESTAMP_NONCE_FORMAT)

    def validate(self, nonce: Any, config: Optional[Mapping] = None) -> str:
        nonce = check_nonce(nonce)
        timestamp = parse_timestamp(nonce)

        fuzz = (config or {}).get("fuzz") or DEFAULT_FUZZ
        diff = int(abs((datetime.now(timezone.utc) - timestamp).total_seconds()))

        if diff > fuzz:
            raise ValidationError("nonce is invalid")

        return nonce


def parse_timestamp(nonce: str) -> datetime:
    """
    Parse a basic-format ISO 8601 UTC timestamp (YYYYMMDDTHHMMSS[.ffffff]Z).

    Raises:
        ValidationError: If the nonce is not in exactly that shape
    """
    match = _TIMESTAMP.fullmatch(nonce)
    if match is None:
        raise ValidationError("nonce does not look like a timestamp")

    date, time, fraction = match.groups()

    try:
        timestamp = datetime.strptime(date + time, "%Y%m%d%H%M%S")
    except ValueError:
        raise ValidationError("nonce does not look like a timestamp")

    # Precision beyond microseconds is truncated
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))

    return timestamp.replace(microsecond=microsecond, tzinfo=timezone.utc)


@dataclass(frozen=True)
class AlgorithmVersion:
    """An App Identity algorithm version: a nonce strategy and a digest."""
    version: int
    nonce_strategy: Union[RandomNonce, TimestampNonce]
    digest_algorithm: Type[hashes.HashAlgorithm]

    def generate_nonce(self) -> str:
        return self.nonce_strategy.generate()

    def validate_nonce(self, nonce: Any, config: Optional[Mapping] = None) -> str:
        return self.nonce_strategy.validate(nonce, config)

    def make_digest(self, raw: Union[str, bytes]) -> str:
        """
        Digest the padlock pre-image.

        Args:
            raw: The `id:nonce:secret` pre-image; str values are UTF-8 encoded

        Returns:
            Upper-case hex digest
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")

        digest = hashes.Hash(self.digest_algorithm())
        digest.update(raw)
        return digest.finalize().hex().upper()


_RANDOM = RandomNonce()
_TIMESTAMP_NONCE = TimestampNonce()

VERSIONS: Mapping[int, AlgorithmVersion] = MappingProxyType({
    1: AlgorithmVersion(1, _RANDOM, hashes.SHA256),
    2: AlgorithmVersion(2, _TIMESTAMP_NONCE, hashes.SHA256),
    3: AlgorithmVersion(3, _TIMESTAMP_NONCE, hashes.SHA384),
    4: AlgorithmVersion(4, _TIMESTAMP_NONCE, hashes.SHA512),
})

_disallowed: set = set()
_disallowed_lock = threading.Lock()


def get_version(version: Any) -> AlgorithmVersion:
    """Look up the algorithm for a version, raising VersionError if unsupported."""
    return VERSIONS[check_version(version)]


def is_allowed(version: Any, disallowed: Optional[Iterable] = None) -> bool:
    """Return True if the version is supported and not disallowed."""
    try:
        check_allowed(version, disallowed)
    except (ValidationError, VersionError):
        return False
    return True


def check_allowed(version: Any, disallowed: Optional[Iterable] = None) -> AlgorithmVersion:
    """
    Require a version to be supported and absent from both the global and the
    per-call disallowed sets.

    Args:
        version: The version to check
        disallowed: Additional versions disallowed for this call only

    Returns:
        The AlgorithmVersion for the version

    Raises:
        VersionError: If the version is unsupported or disallowed
        ValidationError: If the disallowed list is malformed
    """
    algorithm = get_version(version)
    provided = check_disallowed(disallowed)

    with _disallowed_lock:
        globally_disallowed = algorithm.version in _disallowed

    if globally_disallowed:
        raise VersionError(f"version {algorithm.version} has been globally disallowed")

    if algorithm.version in provided:
        raise VersionError(f"version {algorithm.version} is not allowed")

    return algorithm


def disallow(*versions: Any) -> None:
    """Add versions to the global disallowed set."""
    checked = _coerce_versions(versions)

    with _disallowed_lock:
        _disallowed.update(checked)

    logger.info("Globally disallowed App Identity versions: %s", sorted(checked))


def allow(*versions: Any) -> None:
    """Remove versions from the global disallowed set."""
    checked = _coerce_versions(versions)

    with _disallowed_lock:
        _disallowed.difference_update(checked)

    logger.info("Globally allowed App Identity versions: %s", sorted(checked))


def disallowed_versions() -> FrozenSet[int]:
    """Return a snapshot of the global disallowed set."""
    with _disallowed_lock:
        return frozenset(_disallowed)


def _coerce_versions(versions: Iterable[Any]) -> FrozenSet[int]:
    return frozenset(parse_version(version) for version in versions)
