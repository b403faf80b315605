"""Shared fixtures for policygate tests."""

import pytest

from helpers import RecordingMetrics, User
from policygate.auth.context import RequestContext
from policygate.authz.config import AuthorizerSettings
from policygate.authz.engine import Authorizer


@pytest.fixture
def metrics():
    """Fresh recording metrics sink."""
    return RecordingMetrics()


@pytest.fixture
def settings():
    """Settings independent of the environment."""
    return AuthorizerSettings(separator=".", metrics_enabled=False, metrics_port=None)


@pytest.fixture
def authorizer(settings, metrics):
    """Authorizer recording observations."""
    return Authorizer(settings=settings, metrics=metrics)


@pytest.fixture
def admin():
    return User(user_id="alice", role="Admin")


@pytest.fixture
def guest():
    return User(user_id="bob", role="Guest")


@pytest.fixture
def admin_ctx(authorizer, admin):
    """Request context carrying an admin principal."""
    return authorizer.set_auth_context(RequestContext(), admin)


@pytest.fixture
def guest_ctx(authorizer, guest):
    """Request context carrying a guest principal."""
    return authorizer.set_auth_context(RequestContext(), guest)
