"""End-to-end tests of the command line interface."""

import json

from click.testing import CliRunner

from setpace.cli import main


def invoke(*args, input=None):
    result = CliRunner().invoke(main, list(args), input=input)
    assert result.exit_code == 0, result.output
    return result


class TestCli:
    """Drive a full workout through the CLI."""

    def test_requires_init(self, data_dir):
        """Test that commands refuse to run before init."""
        result = CliRunner().invoke(main, ["plans", "list"])

        assert result.exit_code == 1
        assert "setpace init" in result.output

    def test_workout_flow(self, data_dir, plan_file):
        """Test import, session tracking, finish and streak."""
        invoke("init")
        assert "Imported plan 'Upper Lower'" in invoke(
            "plans", "import", str(plan_file), "--activate"
        ).output
        assert "Upper Lower" in invoke("plans", "list").output
        assert "Bench Press" in invoke("plans", "show", "1").output

        invoke("session", "start", "1", "1")
        invoke("session", "exercise", "1")
        invoke("session", "start-set")
        assert "Logged set 1" in invoke(
            "session", "complete-set", "--reps", "8", "--weight", "60"
        ).output

        invoke("session", "start-set")
        assert "resting" in invoke("session", "complete-set").output
        assert "Logged set 2" in invoke("session", "log-set", "6", "-w", "60").output

        status = json.loads(invoke("session", "status", "--json").output)
        assert status["current_exercise_id"] == 1
        assert status["state"] == "resting"

        invoke("session", "complete-exercise")
        invoke("session", "notes", "felt strong")
        assert "Workout saved" in invoke("session", "finish", "--yes").output

        streak = json.loads(invoke("streak", "--json").output)
        assert streak["status"] == "active"
        assert streak["streak"] == 1

        assert "felt strong" in invoke("session", "history").output

    def test_invalid_reps(self, data_dir, plan_file):
        """Test that bad input is reported and nothing is logged."""
        invoke("init")
        invoke("plans", "import", str(plan_file))
        invoke("session", "start", "1", "1")
        invoke("session", "exercise", "1")
        invoke("session", "start-set")

        result = CliRunner().invoke(main, ["session", "complete-set", "--reps", "lots"])

        assert result.exit_code == 1
        assert "Reps must be a number" in result.output
        status = json.loads(invoke("session", "status", "--json").output)
        assert status["state"] == "set_active"

    def test_second_start_refused(self, data_dir, plan_file):
        """Test that a second session cannot start while one is active."""
        invoke("init")
        invoke("plans", "import", str(plan_file))
        invoke("session", "start", "1", "1")

        result = CliRunner().invoke(main, ["session", "start", "1", "2"])

        assert result.exit_code == 1
        assert "already in progress" in result.output

    def test_cancel(self, data_dir, plan_file):
        """Test that cancelling leaves no session in progress."""
        invoke("init")
        invoke("plans", "import", str(plan_file))
        invoke("session", "start", "1", "2")
        invoke("session", "cancel", "--yes")

        result = CliRunner().invoke(main, ["session", "status"])
        assert result.exit_code == 1
        assert "No session in progress" in result.output
