"""
Test suite for configuration and diagnostics helpers.
"""

import httpx
import pytest
from pydantic import ValidationError

from pushbatch.config import ClientConfig, get_config, set_config
from pushbatch.core.dump import dump_request, dump_response
from pushbatch.errors import InvalidArgumentError


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PUSHBATCH_PROJECT_ID", raising=False)
        config = ClientConfig()

        assert config.endpoint == "https://fcm.googleapis.com/v1"
        assert config.batch_endpoint == "https://fcm.googleapis.com/batch"
        assert config.credentials_location == "fcm-credentials.json"

    def test_send_endpoint(self, test_config):
        assert test_config.send_endpoint == (
            "https://fcm.example.test/v1/projects/test-project/messages:send"
        )

    def test_send_endpoint_requires_project(self, monkeypatch):
        monkeypatch.delenv("PUSHBATCH_PROJECT_ID", raising=False)

        with pytest.raises(InvalidArgumentError, match="project_id"):
            ClientConfig().send_endpoint

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("PUSHBATCH_PROJECT_ID", "env-project")
        monkeypatch.setenv("PUSHBATCH_BATCH_ENDPOINT", "https://proxy.test/batch/")

        config = ClientConfig()

        assert config.project_id == "env-project"
        assert config.batch_endpoint == "https://proxy.test/batch"

    def test_empty_endpoint_rejected(self):
        with pytest.raises(ValidationError):
            ClientConfig(endpoint="  ")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ClientConfig(request_timeout_seconds=0)

    def test_global_config(self, test_config):
        set_config(test_config)

        assert get_config() is test_config


class TestDumps:
    """Tests for HttpError request/response dumps."""

    def test_request_dump_redacts_token(self):
        request = httpx.Request(
            "POST",
            "https://fcm.example.test/batch",
            headers={"Authorization": "Bearer secret-token"},
            content=b"payload",
        )

        dump = dump_request(request)

        assert dump.startswith("POST /batch HTTP/1.1\r\nHost: fcm.example.test\r\n")
        assert "Authorization: Bearer <redacted>" in dump
        assert "secret-token" not in dump
        assert dump.endswith("\r\n\r\npayload")

    def test_response_dump(self):
        response = httpx.Response(503, headers={"Retry-After": "30"}, text="overloaded")

        dump = dump_response(response)

        assert dump.startswith("HTTP/1.1 503 Service Unavailable\r\n")
        assert "Retry-After: 30" in dump
        assert dump.endswith("\r\n\r\noverloaded")

    def test_response_dump_keeps_header_case(self):
        response = httpx.Response(
            500,
            headers=[("Content-Type", "text/plain"), ("X-Request-Id", "abc")],
            content=b"boom",
        )

        dump = dump_response(response)

        assert "\r\nContent-Type: text/plain\r\nX-Request-Id: abc\r\n" in dump
        assert "content-type" not in dump
