"""
Tests for the error code registry and the JSON error handler.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from supportchat.core.errors import SupportChatError
from supportchat.core.errors.middleware import supportchat_error_handler
from supportchat.core.errors.registry import ErrorRegistry, RegistryValidationError, error_registry

EXPECTED = {
    "SC-API-001": 400,
    "SC-API-002": 401,
    "SC-CFG-001": 500,
    "SC-CFG-002": 500,
    "SC-LLM-001": 500,
    "SC-LLM-002": 429,
    "SC-EMB-001": 500,
    "SC-QDR-001": 500,
}


class TestSupportChatError:

    def test_valid_code(self):
        err = SupportChatError("SC-LLM-001", detail="boom", context={"provider": "anthropic"})
        assert err.code == "SC-LLM-001"
        assert str(err) == "SC-LLM-001: boom"
        assert err.domain == "LLM"

    @pytest.mark.parametrize("code", ["LLM-001", "SC-llm-001", "SC-LLM-1", "XX-LLM-001"])
    def test_invalid_code_format(self, code):
        with pytest.raises(ValueError):
            SupportChatError(code)


class TestRegistry:

    def test_bundled_registry(self):
        assert {code: error_registry.lookup(code).http_status for code in EXPECTED} == EXPECTED

    def test_llm_messages_match_widget_copy(self):
        assert error_registry.lookup("SC-LLM-001").safe_message == "AI service error"
        assert error_registry.lookup("SC-LLM-002").safe_message == "Rate limit exceeded. Please try again later."

    def test_unknown_code_lookup(self):
        assert error_registry.get("SC-API-999") is None
        with pytest.raises(KeyError):
            error_registry.lookup("SC-API-999")

    def test_rejects_domain_mismatch(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text(
            "errors:\n"
            "  - code: SC-API-001\n"
            "    domain: LLM\n"
            "    title: t\n"
            "    severity: INFO\n"
            "    retryable: false\n"
            "    http_status: 400\n"
            "    safe_message: m\n"
        )
        with pytest.raises(RegistryValidationError):
            ErrorRegistry().load(str(path))

    def test_rejects_missing_fields(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text("errors:\n  - code: SC-API-001\n    domain: API\n")
        with pytest.raises(RegistryValidationError):
            ErrorRegistry().load(str(path))


class TestHandler:

    @pytest.fixture
    def app_client(self):
        app = FastAPI()
        app.add_exception_handler(SupportChatError, supportchat_error_handler)

        @app.get("/raise/{code}")
        async def _raise(code: str):
            raise SupportChatError(code, detail="internal detail")

        return TestClient(app)

    def test_registered_code(self, app_client):
        response = app_client.get("/raise/SC-LLM-002")
        assert response.status_code == 429
        assert response.json() == {"error": "Rate limit exceeded. Please try again later.", "code": "SC-LLM-002"}
        assert "internal detail" not in response.text

    def test_unregistered_code_falls_back_to_500(self, app_client):
        response = app_client.get("/raise/SC-API-999")
        assert response.status_code == 500
        assert response.json() == {"error": "An unexpected error occurred.", "code": "SC-API-999"}
