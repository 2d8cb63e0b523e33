"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest

from json_pilot.core.session import EditorSession
from json_pilot.models import FormattingOptions
from json_pilot.surface import InMemoryNotifier, InMemorySurface

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def surface() -> InMemorySurface:
    return InMemorySurface()


@pytest.fixture
def session(surface: InMemorySurface, notifier: InMemoryNotifier) -> EditorSession:
    """A session over an empty in-memory surface with default formatting."""
    return EditorSession(surface=surface, notifier=notifier, formatting=FormattingOptions())


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove json-pilot settings inherited from the environment."""
    for name in ("JSON_PILOT_TAB_SIZE", "JSON_PILOT_INSERT_SPACES", "JSON_PILOT_DEBOUNCE_MS"):
        monkeypatch.delenv(name, raising=False)
