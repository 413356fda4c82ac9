"""Helpers for building App Identity inputs, padlocks, and proofs in tests."""

import base64
import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional


DIGESTS = {
    1: hashlib.sha256,
    2: hashlib.sha256,
    3: hashlib.sha384,
    4: hashlib.sha512,
}

# Known-answer values for the v1 "decaf" app with nonce "hello"
DECAF_INPUT = {"id": "decaf", "secret": "bad", "version": 1}
DECAF_NONCE = "hello"
DECAF_PADLOCK = "D3F62BA628B238D9803C24E86CB9673FD95B57A6BF94E2D6531A4A88599B3835"
DECAF_PROOF = "ZGVjYWY6aGVsbG86RDNGNjJCQTYyOEIyMzhEOTgwM0MyNEU4NkNCOTY3M0ZEOTVCNTdBNkJGOTRFMkQ2NTMxQTRBODg1OTlCMzgzNQ"


def app_input(version: int = 1, fuzz: Optional[int] = None) -> dict:
    """A random app input for the given version."""
    result = {
        "version": version,
        "id": str(uuid.uuid4()),
        "secret": secrets.token_hex(32),
    }
    if fuzz is not None:
        result["config"] = {"fuzz": fuzz}
    return result


def build_padlock(app, nonce: str = "nonce", version: Optional[int] = None, id: Optional[str] = None) -> str:
    """Compute a padlock independently of the library digest code."""
    version = app.version if version is None else version
    id = app.id if id is None else id
    raw = f"{id}:{nonce}:{app.secret()}".encode("utf-8")
    return DIGESTS[version](raw).hexdigest().upper()


def build_proof(app, padlock: str, nonce: str = "nonce", version: int = 1, id: Optional[str] = None) -> str:
    """Assemble a proof string from parts, without any validation."""
    id = app.id if id is None else id
    if version == 1:
        raw = f"{id}:{nonce}:{padlock}"
    else:
        raw = f"{version}:{id}:{nonce}:{padlock}"
    return encode(raw)


def encode(raw: str) -> str:
    return base64.urlsafe_b64encode(raw.encode("utf-8")).rstrip(b"=").decode("ascii")


def decode_to_parts(proof: str) -> list:
    data = proof + "=" * (-len(proof) % 4)
    return base64.urlsafe_b64decode(data).decode("utf-8").split(":")


def timestamp_nonce(seconds: float = 0) -> str:
    """A timestamp nonce offset from now by the given number of seconds."""
    ts = datetime.now(timezone.utc) + timedelta(seconds=seconds)
    return ts.strftime("%Y%m%dT%H%M%S.%fZ")
