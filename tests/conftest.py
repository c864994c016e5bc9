"""Shared fixtures."""

import pytest

from core.switch_orchestrator import SwitchOrchestrator
from models.switch import TargetName
from tests.helpers import OLD_TOKEN, OLD_URL, FakeProfileStore, FakeTarget, make_profile


@pytest.fixture
def journal():
    return []


@pytest.fixture
def targets(journal):
    """env, editor and assistant targets all holding the old credentials."""
    return [
        FakeTarget(TargetName.ENV, "system", OLD_TOKEN, OLD_URL, journal=journal),
        FakeTarget(TargetName.EDITOR, "vscode", OLD_TOKEN, OLD_URL, journal=journal),
        FakeTarget(TargetName.ASSISTANT, "claude", OLD_TOKEN, OLD_URL, journal=journal),
    ]


@pytest.fixture
def profile():
    return make_profile()


@pytest.fixture
def profile_store(profile):
    return FakeProfileStore([profile])


@pytest.fixture
def orchestrator(profile_store, targets):
    return SwitchOrchestrator(profile_store, targets)
