"""Tests for affected user resolution."""

import os
from unittest.mock import patch

from crashlane.config import Configuration, Settings
from crashlane.report.user import (
    AFFECTED_USER_KEY,
    affected_user_from,
    attach_affected_user,
    information_hash,
)


class User:
    def __init__(self, email=None, username=None, id=None):
        self.email = email
        self.username = username
        self.id = id


class Controller:
    def __init__(self, user):
        self._user = user

    def current_user(self):
        return self._user


class TestAffectedUser:
    """Test cases for affected user helpers."""

    def setup_method(self):
        """Set up test fixtures."""
        with patch.dict(os.environ, {}, clear=True):
            self.config = Configuration(Settings(_env_file=None))

    def test_lookup_via_configured_method(self):
        """Test the configured method is called on the host."""
        user = User(email="bob@example.com")
        assert affected_user_from(Controller(user), self.config) is user

    def test_lookup_attribute(self):
        """Test non-callable attributes are returned directly."""

        class Request:
            current_user = "alice"

        assert affected_user_from(Request(), self.config) == "alice"

    def test_lookup_custom_method_name(self):
        """Test overriding the lookup method name."""

        class View:
            def signed_in_user(self):
                return "carol"

        self.config.affected_user_method = "signed_in_user"
        assert affected_user_from(View(), self.config) == "carol"

    def test_lookup_missing(self):
        """Test hosts without the method give None."""
        assert affected_user_from(object(), self.config) is None
        assert affected_user_from(None, self.config) is None

    def test_identifier_order(self):
        """Test the first non-empty identifier wins."""
        assert information_hash(User(email=None, username="bob", id=7), self.config) == {
            "identifier": "bob"
        }
        assert information_hash(User(email="", id=7), self.config) == {"identifier": "7"}

    def test_mapping_user(self):
        """Test dict users are probed by key."""
        assert information_hash({"id": 5}, self.config) == {"identifier": "5"}

    def test_scalar_user(self):
        """Test scalar users become the identifier."""
        assert information_hash(42, self.config) == {"identifier": "42"}
        assert information_hash("bob", self.config) == {"identifier": "bob"}

    def test_unidentifiable_user(self):
        """Test users without identifiers give None."""
        assert information_hash(User(), self.config) is None
        assert information_hash(None, self.config) is None

    def test_attach(self):
        """Test the user block is stored under the marker key."""
        env = attach_affected_user({}, Controller(User(email="bob@example.com")), self.config)
        assert env == {AFFECTED_USER_KEY: {"identifier": "bob@example.com"}}

    def test_attach_without_user(self):
        """Test env is untouched without a user."""
        assert attach_affected_user({"a": 1}, Controller(None), self.config) == {"a": 1}
