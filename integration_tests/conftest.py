"""Pytest configuration for integration tests."""

import json

import pytest

PLAN = {
    "name": "Upper Lower",
    "type": "Split",
    "days": [
        {
            "name": "Upper",
            "exercises": [
                {"name": "Bench Press", "sets": 2, "reps": "6-8"},
                {"name": "Pull-up", "sets": 3, "reps": "5-10"},
            ],
        },
        {"name": "Lower", "exercises": [{"name": "Squat", "sets": 3, "reps": "5"}]},
    ],
}


# Mark all tests in this directory as integration tests
def pytest_collection_modifyitems(items):
    """Add integration marker to all tests in this directory."""
    for item in items:
        if "integration_tests" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point setpace at an empty data directory."""
    monkeypatch.setenv("SETPACE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("SETPACE_SAVE_DEBOUNCE", "60")
    return tmp_path / "data"


@pytest.fixture
def plan_data():
    """A two-day upper/lower plan."""
    return json.loads(json.dumps(PLAN))


@pytest.fixture
def plan_file(tmp_path, plan_data):
    """The plan as a JSON file."""
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(plan_data))
    return path
