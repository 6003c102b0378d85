"""Pytest configuration and shared fixtures for stepflow tests."""

import json
import sys
from pathlib import Path

import pytest

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stepflow.core.dictionary import NameDictionary, StepDictionaries
from stepflow.core.graph import StepStore

from tests.fixtures import FakeClock, build_login_flow, login_flow_diagram


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock that only moves when advanced."""
    return FakeClock()


@pytest.fixture
def store(fake_clock) -> StepStore:
    """Empty store with the default debounce window on a fake clock."""
    return StepStore(clock=fake_clock)


@pytest.fixture
def login_flow():
    """(store, ids) for Login -> "is valid?" -> Dashboard."""
    return build_login_flow()


@pytest.fixture
def login_dictionaries() -> StepDictionaries:
    """Dictionaries mapping the login flow to short labels."""
    return StepDictionaries(
        state=NameDictionary("state", {"Login": "LOGIN", "Dashboard": "DASH"}),
        rule=NameDictionary("rule", {"is valid?": "IS_VALID"}),
    )


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def diagram_file(tmp_path) -> Path:
    """Login flow written as a diagram JSON file."""
    path = tmp_path / "diagram.json"
    path.write_text(json.dumps(login_flow_diagram()))
    return path

