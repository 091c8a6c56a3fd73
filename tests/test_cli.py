"""Tests for the crashlane-test command."""

import os
from unittest.mock import patch

import httpx
import orjson

from crashlane import cli
from crashlane.transport import HttpTransport


class TestCli:
    """Test cases for cli.main."""

    def setup_method(self):
        """Set up test fixtures."""
        self.requests = []
        self.status_code = 200

    def handler(self, request):
        self.requests.append(request)
        return httpx.Response(self.status_code)

    def run(self, argv):
        original = HttpTransport.from_configuration

        def from_configuration(configuration):
            return original(configuration, http_transport=httpx.MockTransport(self.handler))

        with patch.dict(os.environ, {}, clear=True), patch(
            "crashlane.client.HttpTransport.from_configuration", side_effect=from_configuration
        ):
            return cli.main(argv)

    def test_missing_api_key(self, capsys):
        """Test exit code 2 without credentials."""
        assert self.run([]) == 2
        assert "API key" in capsys.readouterr().err
        assert self.requests == []

    def test_sends_test_exception(self, capsys):
        """Test a real exception with traceback is sent."""
        code = self.run(["--api-key", "k", "--api-url", "http://collector.test/", "--message", "hello"])

        assert code == 0
        assert "Test exception sent" in capsys.readouterr().out

        body = orjson.loads(self.requests[0].content)
        error = body["details"]["error"]
        assert error["className"] == "crashlane.cli.CrashlaneTestException"
        assert error["message"] == "hello"
        assert error["stackTrace"][0]["methodName"] == "raise_test_exception"
        assert body["details"]["userCustomData"] == {"source": "crashlane-test"}

    def test_rejected(self):
        """Test non-2xx responses give exit code 1."""
        self.status_code = 401
        assert self.run(["--api-key", "bad"]) == 1
