"""Tests for App construction and behavior."""

import asyncio
import dataclasses
import re
from types import SimpleNamespace

import pytest

from app_identity.app import App
from app_identity.types import ValidationError, VersionError
from .support import DECAF_INPUT, app_input


class TestCreate:
    """Tests for building apps from different inputs."""

    def test_from_mapping(self) -> None:
        """Test that an app is built from a mapping and keeps it as its source."""
        source = app_input(2, fuzz=300)
        app = App.create(source)

        assert app.id == source["id"]
        assert app.secret() == source["secret"]
        assert app.version == 2
        assert app.config == {"fuzz": 300}
        assert app.source is source
        assert app.verified is False

    def test_from_object(self) -> None:
        """Test that an app is built from an object with app attributes."""
        source = SimpleNamespace(id=1, secret="secret", version="3", config=None)
        app = App.create(source)

        assert app.id == "1"
        assert app.version == 3
        assert app.config is None

    def test_from_loader(self) -> None:
        """Test that a loader function is called to produce the app input."""
        source = app_input()
        assert App.create(lambda: source) == App.create(source)

    def test_keyword_construction(self) -> None:
        """Test direct construction with keyword arguments."""
        app = App(id="decaf", secret="bad", version=1)
        assert app.id == "decaf"
        assert app.source is None

    def test_unverified_app_is_passed_through(self) -> None:
        """Test that an unverified app is returned unchanged."""
        app = App.create(app_input())
        assert App.create(app) is app

    def test_verified_app_is_rebuilt_unverified(self) -> None:
        """Test that a verified app becomes the source of a new unverified app."""
        verified = App.create(app_input()).verify()
        app = App.create(verified)

        assert app is not verified
        assert app.verified is False
        assert app == verified.unverify()
        assert app.source is verified

    def test_missing_fields(self) -> None:
        """Test that missing fields report the nil error for that field."""
        with pytest.raises(ValidationError, match="id must not be nil"):
            App.create({"secret": "secret", "version": 1})

        with pytest.raises(ValidationError, match="secret must not be nil"):
            App.create({"id": "id", "version": 1})

        with pytest.raises(ValidationError, match="version must not be nil"):
            App.create({"id": "id", "secret": "secret"})

    def test_first_invalid_field_wins(self) -> None:
        """Test that fields are checked in id, secret, version, config order."""
        with pytest.raises(ValidationError, match="id must not contain colon"):
            App.create({"id": "a:b", "secret": "", "version": 0})

    def test_unsupported_version(self) -> None:
        """Test that an unsupported app version is rejected."""
        with pytest.raises(VersionError, match="unsupported version 5"):
            App.create({"id": "id", "secret": "secret", "version": 5})

    def test_invalid_config(self) -> None:
        """Test that an invalid fuzz value is rejected."""
        with pytest.raises(ValidationError, match="config.fuzz"):
            App.create({**app_input(), "config": {"fuzz": -1}})

    def test_is_immutable(self) -> None:
        """Test that app fields cannot be reassigned."""
        app = App.create(app_input())
        with pytest.raises(dataclasses.FrozenInstanceError):
            app.id = "other"


class TestCreateAsync:
    """Tests for building apps from async loaders."""

    def test_from_input(self) -> None:
        """Test async creation from a plain input."""
        source = app_input()
        app = asyncio.run(App.create_async(source))
        assert app == App.create(source)

    def test_from_sync_loader(self) -> None:
        """Test async creation from a synchronous loader."""
        source = app_input()
        app = asyncio.run(App.create_async(lambda: source))
        assert app == App.create(source)

    def test_from_async_loader(self) -> None:
        """Test async creation from a coroutine loader."""
        source = app_input()

        async def loader():
            return source

        app = asyncio.run(App.create_async(loader))
        assert app == App.create(source)


class TestVerify:
    """Tests for verify and unverify copies."""

    def test_verify_returns_new_instance(self) -> None:
        """Test that verify() returns a verified copy."""
        app = App.create(app_input())
        verified = app.verify()

        assert verified is not app
        assert verified.verified is True
        assert app.verified is False

    def test_verify_returns_self_when_verified(self) -> None:
        """Test that verify() on a verified app returns the same app."""
        verified = App.create(app_input()).verify()
        assert verified.verify() is verified

    def test_unverify_returns_new_instance(self) -> None:
        """Test that unverify() returns an unverified copy."""
        verified = App.create(app_input()).verify()
        app = verified.unverify()

        assert app is not verified
        assert app.verified is False

    def test_unverify_returns_self_when_unverified(self) -> None:
        """Test that unverify() on an unverified app returns the same app."""
        app = App.create(app_input())
        assert app.unverify() is app

    def test_verified_copy_keeps_fields(self) -> None:
        """Test that the verified copy keeps every other field."""
        source = app_input(3, fuzz=30)
        verified = App.create(source).verify()

        assert verified.id == source["id"]
        assert verified.secret() == source["secret"]
        assert verified.config == {"fuzz": 30}
        assert verified.source is source


class TestGenerateNonce:
    """Tests for app nonce generation."""

    def test_own_version(self) -> None:
        """Test nonce generation for the app's own version."""
        nonce = App.create(app_input(1)).generate_nonce()
        assert ":" not in nonce

    def test_timestamp_version(self) -> None:
        """Test that timestamp versions generate timestamp nonces."""
        nonce = App.create(app_input(2)).generate_nonce()
        assert re.fullmatch(r"\d{8}T\d{6}\.\d{6}Z", nonce)

    def test_higher_version(self) -> None:
        """Test that an app may generate a nonce for a higher version."""
        nonce = App.create(app_input(1)).generate_nonce(4)
        assert nonce.endswith("Z")

    def test_lower_version(self) -> None:
        """Test that an app cannot generate a nonce for a lower version."""
        app = App.create(app_input(2))
        with pytest.raises(
            VersionError, match="app version 2 is not compatible with requested version 1"
        ):
            app.generate_nonce(1)


class TestRepresentation:
    """Tests for equality, repr, and export."""

    def test_equality_ignores_secret_wrapper(self) -> None:
        """Test that apps with the same revealed secret compare equal."""
        source = app_input()
        wrapped = {**source, "secret": lambda: source["secret"]}

        assert App.create(source) == App.create(wrapped)

    def test_equality_compares_secret(self) -> None:
        """Test that apps with different secrets are not equal."""
        source = app_input()
        assert App.create(source) != App.create({**source, "secret": "other"})

    def test_equality_normalizes_empty_config(self) -> None:
        """Test that an empty config and no config compare equal."""
        app = App(id="decaf", secret="bad", version=1, config=None)

        assert App(id="decaf", secret="bad", version=1, config={}) == app
        assert App(id="decaf", secret="bad", version=1, config={"fuzz": None}) == app
        assert App.create({**DECAF_INPUT, "config": {}}).config is None

    def test_equality_compares_verified(self) -> None:
        """Test that the verified flag takes part in equality."""
        app = App.create(app_input())
        assert app != app.verify()

    def test_repr_never_shows_secret(self) -> None:
        """Test that repr and str never include the secret."""
        app = App.create({"id": "decaf", "secret": "hunter2", "version": 1, "config": {"fuzz": 5}})

        assert "hunter2" not in repr(app)
        assert "hunter2" not in str(app)
        assert repr(app) == "App(id='decaf', version=1, config={'fuzz': 5}, verified=False)"

    def test_to_dict_reveals_secret(self) -> None:
        """Test that to_dict exports the raw secret."""
        source = app_input(2, fuzz=90)
        assert App.create(source).to_dict() == {
            "id": source["id"],
            "secret": source["secret"],
            "version": 2,
            "config": {"fuzz": 90},
        }

    def test_to_dict_round_trip(self) -> None:
        """Test that an exported app can be created again."""
        app = App.create(app_input(3))
        assert App.create(app.to_dict()) == app
