"""ABOUTME: Pytest configuration and fixtures for CrisisConnect tests
ABOUTME: Provides environment helpers, a fake clock, and a configured Flask test app"""

import os

import pytest
from flask import Flask
from flask.testing import FlaskClient

from crisisconnect.config import FlaskTestConfig
from crisisconnect.entrypoints.flask_app import create_app
from tests.fakes import FakeClock, FakeCredentialChecker

RATE_LIMIT_ENV_VARS = (
    "LOGIN_MAX_FAILURES",
    "LOGIN_WINDOW_MINUTES",
    "RATE_LIMIT_SWEEP_GRACE_MINUTES",
    "RATE_LIMIT_SWEEP_INTERVAL_MINUTES",
    "RATE_LIMIT_SWEEPER_ENABLED",
    "NEED_VIEW_LIMIT",
    "NEED_VIEW_WINDOW_MINUTES",
    "API_REQUEST_LIMIT",
    "API_REQUEST_WINDOW_MINUTES",
)


@pytest.fixture(scope="session")
def test_config():
    """Provide test configuration for the entire test session."""
    os.environ["FLASK_ENV"] = "testing"
    return FlaskTestConfig()


@pytest.fixture(autouse=True)
def set_test_env():
    """Automatically set test environment for all tests."""
    original_env = os.environ.get("FLASK_ENV")
    os.environ["FLASK_ENV"] = "testing"
    yield
    if original_env is not None:
        os.environ["FLASK_ENV"] = original_env
    else:
        os.environ.pop("FLASK_ENV", None)


@pytest.fixture
def clear_env_vars():
    """Fixture to temporarily remove environment variables for testing."""
    original_vars = {}

    def _clear_env_vars(*args):
        for key in args:
            original_vars[key] = os.environ.get(key)
            os.environ.pop(key, None)

    yield _clear_env_vars

    # Restore original environment variables
    for key, value in original_vars.items():
        if value is not None:
            os.environ[key] = value


@pytest.fixture
def temp_env_vars():
    """Fixture to temporarily set environment variables for testing."""
    original_vars = {}

    def _set_env_vars(**kwargs):
        for key, value in kwargs.items():
            original_vars[key] = os.environ.get(key)
            os.environ[key] = value

    yield _set_env_vars

    # Restore original environment variables
    for key, value in original_vars.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def credentials():
    return FakeCredentialChecker({"worker@example.org": "correct-horse-battery"})


@pytest.fixture
def app(clear_env_vars, fake_clock, credentials) -> Flask:
    clear_env_vars(*RATE_LIMIT_ENV_VARS)
    return create_app("testing", credential_checker=credentials, clock=fake_clock)


@pytest.fixture
def client(app) -> FlaskClient:
    return app.test_client()
