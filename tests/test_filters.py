"""Tests for parameter redaction."""

from crashlane.report.filters import FILTERED, filter_params

DEFAULTS = ["password", "card_number", "cvv"]


class TestFilterParams:
    """Test cases for filter_params."""

    def test_flat_params(self):
        """Test matching keys are replaced, others kept."""
        params = {"username": "bob", "password": "hunter2", "cvv": "123"}
        result = filter_params(params, DEFAULTS)

        assert result == {"username": "bob", "password": FILTERED, "cvv": FILTERED}

    def test_input_not_modified(self):
        """Test the original mapping is left untouched."""
        params = {"password": "hunter2"}
        filter_params(params, DEFAULTS)
        assert params == {"password": "hunter2"}

    def test_idempotent_on_flat_maps(self):
        """Test filtering twice gives the same result."""
        params = {"a": 1, "password": "x", "card_number": "4111"}
        once = filter_params(params, DEFAULTS)
        assert filter_params(once, DEFAULTS) == once

    def test_nested_structure_preserved(self):
        """Test recursion keeps keys and replaces only matched leaves."""
        params = {
            "user": {
                "name": "bob",
                "password": "secret",
                "billing": {"card_number": "4111", "zip": "12345"},
            },
            "page": "2",
        }
        result = filter_params(params, DEFAULTS)

        assert result == {
            "user": {
                "name": "bob",
                "password": FILTERED,
                "billing": {"card_number": FILTERED, "zip": "12345"},
            },
            "page": "2",
        }

    def test_nested_mapping_under_filtered_key_is_recursed(self):
        """Test a mapping value is recursed into even if its key matches."""
        params = {"password": {"old": "a", "new": "b"}}
        assert filter_params(params, DEFAULTS) == {"password": {"old": "a", "new": "b"}}

    def test_extra_filter_keys_at_top_level(self):
        """Test per-call extra keys are applied."""
        result = filter_params({"token": "abc", "a": 1}, DEFAULTS, ["token"])
        assert result == {"token": FILTERED, "a": 1}

    def test_extra_filter_keys_not_applied_to_nested_levels(self):
        """Test per-call extra keys stop at the top level."""
        params = {"token": "abc", "nested": {"token": "def", "password": "x"}}
        result = filter_params(params, DEFAULTS, ["token"])

        assert result == {"token": FILTERED, "nested": {"token": "def", "password": FILTERED}}

    def test_single_string_extra_key(self):
        """Test a bare string is accepted as a single extra key."""
        assert filter_params({"ssn": "1"}, DEFAULTS, "ssn") == {"ssn": FILTERED}

    def test_keys_compared_as_strings(self):
        """Test non-string filter names match string keys."""
        assert filter_params({"42": "x"}, [42]) == {"42": FILTERED}

    def test_no_filter_keys(self):
        """Test nothing is filtered without filter names."""
        assert filter_params({"password": "x"}, None) == {"password": "x"}

    def test_deep_nesting_terminates(self):
        """Test deeply nested trees are handled."""
        params = current = {}
        for _ in range(200):
            current["child"] = {}
            current = current["child"]
        current["password"] = "x"

        result = filter_params(params, DEFAULTS)
        for _ in range(200):
            result = result["child"]
        assert result == {"password": FILTERED}
