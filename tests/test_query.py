"""Tests for nested query string parsing."""

from crashlane.report.query import parse_nested_query


class TestParseNestedQuery:
    """Test cases for parse_nested_query."""

    def test_empty(self):
        """Test absent or empty query strings."""
        assert parse_nested_query(None) == {}
        assert parse_nested_query("") == {}

    def test_flat(self):
        """Test plain key/value pairs."""
        assert parse_nested_query("a=1&b=two") == {"a": "1", "b": "two"}

    def test_last_value_wins(self):
        """Test repeated scalar keys keep the last value."""
        assert parse_nested_query("a=1&a=2") == {"a": "2"}

    def test_unescaping(self):
        """Test percent and plus decoding."""
        assert parse_nested_query("q=hello+world&e=a%40b.com") == {"q": "hello world", "e": "a@b.com"}

    def test_blank_values_kept(self):
        """Test keys without values are kept."""
        assert parse_nested_query("a=&b") == {"a": "", "b": ""}

    def test_nested_hash(self):
        """Test bracketed keys build nested mappings."""
        result = parse_nested_query("user[name]=bob&user[address][city]=Oslo")
        assert result == {"user": {"name": "bob", "address": {"city": "Oslo"}}}

    def test_array(self):
        """Test [] suffix builds lists."""
        assert parse_nested_query("ids[]=1&ids[]=2") == {"ids": ["1", "2"]}

    def test_array_of_hashes(self):
        """Test [][key] builds a list of mappings."""
        result = parse_nested_query("items[][id]=1&items[][qty]=2&items[][id]=3")
        assert result == {"items": [{"id": "1", "qty": "2"}, {"id": "3"}]}

    def test_nameless_nested_arrays(self):
        """Test [][] keeps values in nested lists."""
        assert parse_nested_query("a[][]=1&a[][]=2") == {"a": [["1"], ["2"]]}

    def test_conflicting_shapes_do_not_raise(self):
        """Test conflicting shapes replace earlier values."""
        assert parse_nested_query("a=1&a[b]=2") == {"a": {"b": "2"}}
        assert parse_nested_query("a=1&a[]=2") == {"a": ["2"]}

    def test_bytes_input(self):
        """Test bytes bodies are decoded."""
        assert parse_nested_query(b"a=1&b[c]=2") == {"a": "1", "b": {"c": "2"}}
