"""
Field validation for App Identity values.

Every check returns the normalized value or raises ValidationError with a
stable reason string. The id, secret, nonce, and padlock values share the same
"safe string" rule (not nil, not empty, no colons) because the colon is the
field separator in both the proof wire format and the padlock pre-image.
"""

import inspect
import re
from collections.abc import Mapping
from typing import Any, Callable, FrozenSet, Optional, Union

from .types import (
    FIELD_SEPARATOR,
    SUPPORTED_VERSIONS,
    RawSecret,
    ValidationError,
    VersionError,
)


_DIGITS = re.compile(r"[0-9]+")
_HEX = re.compile(r"[0-9A-Fa-f]+")


class Secret:
    """
    Opaque holder for an app secret.

    Calling the wrapper reveals the raw value. The wrapper never includes the
    value in its repr or str output, so apps can be logged safely.
    """

    __slots__ = ("_reveal",)

    def __init__(self, source: Union[RawSecret, Callable[[], RawSecret]]) -> None:
        if callable(source):
            self._reveal = source
        else:
            self._reveal = lambda: source

    def __call__(self) -> RawSecret:
        return self._reveal()

    def reveal(self) -> RawSecret:
        """Return the raw secret value."""
        return self._reveal()

    def __repr__(self) -> str:
        return "Secret(***)"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return self() == other()

    def __hash__(self) -> int:
        return hash(Secret)


def check_id(value: Any) -> str:
    """Validate an app id, converting non-string values with str()."""
    if value is None:
        raise ValidationError(_must_not_be_nil("id"))
    return _check_safe_string(str(value), "id")


def check_secret(value: Any) -> Secret:
    """
    Validate a secret value or a zero-argument callable returning one.

    The callable is invoked to validate its result, but the wrapped form is
    returned so that the raw value is only revealed when a padlock is built.
    """
    if isinstance(value, Secret):
        _check_secret_contents(value())
        return value

    if callable(value):
        if _requires_arguments(value):
            raise ValidationError("wrapped secret function must not have parameters")
        _check_secret_contents(value())
        return Secret(value)

    return Secret(_check_secret_contents(value))


def parse_version(value: Any) -> int:
    """Convert a version value to a positive integer without a registry check."""
    if value is None:
        raise ValidationError(_must_not_be_nil("version"))

    if isinstance(value, str):
        if not _DIGITS.fullmatch(value):
            raise ValidationError("version cannot be converted to an integer")
        value = int(value)
    elif isinstance(value, bool) or isinstance(value, float):
        raise ValidationError("version must be a positive integer")
    elif not isinstance(value, int):
        raise ValidationError("version cannot be converted to an integer")

    if value <= 0:
        raise ValidationError("version must be a positive integer")

    return value


def check_version(value: Any) -> int:
    """Validate a version value and require it to be a supported version."""
    version = parse_version(value)
    if version not in SUPPORTED_VERSIONS:
        raise VersionError(f"unsupported version {version}")
    return version


def check_config(value: Any) -> Optional[dict]:
    """
    Validate an app config, which may be None or a mapping with `fuzz`.

    A config without a fuzz value normalizes to None.
    """
    if value is None:
        return None

    if not isinstance(value, Mapping):
        raise ValidationError("config must be nil or a map")

    fuzz = value.get("fuzz")
    if fuzz is None:
        return None

    if isinstance(fuzz, bool) or not isinstance(fuzz, int) or fuzz <= 0:
        raise ValidationError("config.fuzz must be a positive integer or nil")

    return {"fuzz": fuzz}


def check_nonce(value: Any) -> str:
    return _check_safe_string(value, "nonce")


def check_padlock(value: Any) -> str:
    """Validate a padlock: a safe string made only of hexadecimal digits."""
    padlock = _check_safe_string(value, "padlock")
    if not _HEX.fullmatch(padlock):
        raise ValidationError("padlock must be a hex string")
    return padlock


def check_disallowed(value: Any) -> FrozenSet[int]:
    """Validate a per-call list of disallowed versions."""
    if value is None:
        return frozenset()

    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(parse_version(version) for version in value)

    raise ValidationError("disallowed must be a list of versions")


def _check_secret_contents(value: Any) -> RawSecret:
    if value is None:
        raise ValidationError(_must_not_be_nil("secret"))

    if not isinstance(value, (str, bytes)):
        raise ValidationError("secret must be a binary string value")

    if len(value) == 0:
        raise ValidationError(_must_not_be_empty("secret"))

    separator = FIELD_SEPARATOR.encode() if isinstance(value, bytes) else FIELD_SEPARATOR
    if separator in value:
        raise ValidationError(_must_not_contain_colons("secret"))

    return value


def _check_safe_string(value: Any, field: str) -> str:
    if value is None:
        raise ValidationError(_must_not_be_nil(field))

    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")

    if value == "":
        raise ValidationError(_must_not_be_empty(field))

    if FIELD_SEPARATOR in value:
        raise ValidationError(_must_not_contain_colons(field))

    return value


def _requires_arguments(func: Callable) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False

    return any(
        param.default is inspect.Parameter.empty
        and param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD, param.KEYWORD_ONLY)
        for param in signature.parameters.values()
    )


def _must_not_be_nil(field: str) -> str:
    return f"{field} must not be nil"


def _must_not_be_empty(field: str) -> str:
    return f"{field} must not be an empty string"


def _must_not_contain_colons(field: str) -> str:
    return f"{field} must not contain colon characters"
