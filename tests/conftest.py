"""
Pytest configuration for supportchat tests.
Sets environment variables before any supportchat import reads settings.
"""

import os
import tempfile

_test_log_dir = tempfile.mkdtemp(prefix="supportchat_test_")
os.environ["SUPPORTCHAT_LOG_DIR"] = _test_log_dir
os.environ["SUPPORTCHAT_LLM_PROVIDER"] = "anthropic"
os.environ["SUPPORTCHAT_ANTHROPIC_API_KEY"] = "sk-ant-test-key"
os.environ.pop("SUPPORTCHAT_OPENAI_API_KEY", None)
os.environ.pop("SUPPORTCHAT_QDRANT_URL", None)
os.environ.pop("SUPPORTCHAT_WIDGET_KEY", None)

import pytest
from fastapi.testclient import TestClient

# Load error registry so SupportChatError returns correct HTTP status codes
from supportchat.core.errors.registry import error_registry
error_registry.load()


@pytest.fixture
def client():
    """TestClient with lifespan (error registry loaded, clients closed)."""
    from supportchat.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def widget_key(monkeypatch):
    """Require a widget key for the duration of a test."""
    from supportchat.config import settings

    monkeypatch.setattr(settings, "widget_key", "widget-secret")
    return "widget-secret"
