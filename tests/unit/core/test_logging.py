"""
Tests for logging middleware.
Tests masking, request id tracking and the JSON formatter.
"""

import pytest
import json
import logging
import sys
from unittest.mock import patch
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.logging import (
    is_sensitive_field,
    mask_sensitive_data,
    should_log_request,
    StructuredFormatter,
    StructuredLoggingMiddleware,
    setup_logging,
)


class TestSensitiveFieldDetection:
    """Test sensitive field name detection."""

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("access_token", True),
        ("API_KEY", True),
        ("client_secret", True),
        ("Authorization", True),
        ("cookie", True),
        ("blob_ref", True),
        ("blobRef", True),
        ("owner_id", False),
        ("status", False),
        ("cost_estimate", False),
    ])
    def test_sensitive_field_patterns(self, field_name, expected):
        assert is_sensitive_field(field_name) == expected


class TestDataStructureMasking:
    def test_dict_masking(self):
        masked = mask_sensitive_data({"blob_ref": "s3://bucket/passport.pdf", "kind": "passport"})

        assert masked == {"blob_ref": "[REDACTED]", "kind": "passport"}

    def test_nested_values_and_pii(self):
        masked = mask_sensitive_data(
            {"profile": {"contact": "ada@example.com", "tokens": ["x"]}, "notes": ["call +44 20 7946 0958"]}
        )

        assert masked["profile"]["contact"] == "[EMAIL]"
        assert masked["profile"]["tokens"] == "[REDACTED]"
        assert "[PHONE]" in masked["notes"][0]

    def test_max_depth_protection(self):
        data = {"level": None}
        cursor = data
        for _ in range(20):
            cursor["level"] = {"level": None}
            cursor = cursor["level"]

        masked = json.dumps(mask_sensitive_data(data, max_depth=5))

        assert "[MAX_DEPTH_EXCEEDED]" in masked

    @pytest.mark.parametrize("path,expected", [
        ("/health", False),
        ("/ready", False),
        ("/api/v1/quotes", True),
    ])
    def test_should_log_request(self, path, expected):
        assert should_log_request(path) == expected


class TestStructuredLoggingMiddleware:
    """Test structured logging middleware."""

    @pytest.fixture
    def app(self):
        app = FastAPI()
        app.add_middleware(StructuredLoggingMiddleware, slow_request_seconds=60.0)

        @app.get("/quotes")
        async def quotes():
            return {"items": []}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return app

    @pytest.fixture
    def client(self, app):
        return TestClient(app)

    def test_request_logging_includes_actor(self, client):
        with patch('core.middleware.logging.logger') as mock_logger:
            response = client.get(
                "/quotes?api_key=leak",
                headers={"x-actor-id": "employer-1", "x-actor-role": "employer"},
            )

        assert response.status_code == 200
        events = [json.loads(call.args[0]) for call in mock_logger.info.call_args_list]
        started, completed = events
        assert started["event"] == "request_started"
        assert started["actor_id"] == "employer-1"
        assert started["actor_role"] == "employer"
        assert started["query_params"] == {"api_key": "[REDACTED]"}
        assert completed["event"] == "request_completed"
        assert completed["status_code"] == 200
        assert "performance" not in completed

    def test_request_id_generation(self, client):
        response = client.get("/quotes")

        assert len(response.headers["x-request-id"]) > 0

    def test_request_id_preservation(self, client):
        response = client.get("/quotes", headers={"x-request-id": "custom-request-id-123"})

        assert response.headers["x-request-id"] == "custom-request-id-123"

    def test_health_check_not_logged(self, client):
        with patch('core.middleware.logging.logger') as mock_logger:
            response = client.get("/health")

        assert response.status_code == 200
        assert "x-request-id" in response.headers
        assert not mock_logger.info.called


class TestStructuredFormatter:
    def test_format_with_extras(self):
        record = logging.LogRecord("engine", logging.INFO, __file__, 1, "quote approved", None, None)
        record.request_id = "req-1"
        record.actor_id = "staff-1"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "quote approved"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-1"
        assert data["actor_id"] == "staff-1"

    def test_format_exception(self):
        try:
            raise ValueError("broken")
        except ValueError:
            record = logging.LogRecord("engine", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

        data = json.loads(StructuredFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"

    def test_setup_logging_installs_json_handler(self):
        root = logging.getLogger()
        previous = root.handlers[:]
        level = root.level
        try:
            setup_logging("DEBUG", json_logs=True)

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
            assert root.level == logging.DEBUG
        finally:
            root.handlers = previous
            root.setLevel(level)
