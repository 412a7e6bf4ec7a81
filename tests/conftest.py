"""Pytest fixtures for feedback-portal tests."""

import pytest

from feedback_portal.config.settings import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        backend_url="https://backend.example.com/boards-api/",
        backend_api_key="anon-key",
        max_http_retries=0,
    )
