"""Tests for the active-session publisher."""

import pytest

from setpace.services.active_session import ActiveSessionPublisher, SummaryStatus


class TestActiveSessionPublisher:
    """Tests for ActiveSessionPublisher."""

    def test_update_merges_fields(self):
        """Test that partial updates keep earlier fields."""
        publisher = ActiveSessionPublisher()
        publisher.update(session_id=1, plan_id=2, exercise_name="Squat")
        summary = publisher.update(status="resting")

        assert summary.session_id == 1
        assert summary.exercise_name == "Squat"
        assert summary.status == SummaryStatus.RESTING

    def test_unknown_field(self):
        """Test that unknown fields are rejected."""
        with pytest.raises(TypeError):
            ActiveSessionPublisher().update(session_id=1, colour="red")

    def test_subscribe_and_unsubscribe(self):
        """Test that subscribers are notified until they unsubscribe."""
        publisher = ActiveSessionPublisher()
        seen = []
        unsubscribe = publisher.subscribe(seen.append)

        publisher.update(session_id=1)
        publisher.clear()
        unsubscribe()
        publisher.update(session_id=2)

        assert len(seen) == 2
        assert seen[0].session_id == 1
        assert seen[1] is None

    def test_failing_subscriber_does_not_block_others(self):
        """Test that one failing subscriber is skipped."""
        publisher = ActiveSessionPublisher()
        seen = []

        def broken(summary):
            raise RuntimeError("banner gone")

        publisher.subscribe(broken)
        publisher.subscribe(seen.append)
        publisher.update(session_id=5)

        assert seen[0].session_id == 5

    def test_to_dict(self):
        """Test summary serialization."""
        summary = ActiveSessionPublisher().update(session_id=3, status="working")
        assert summary.to_dict()["status"] == "working"
        assert summary.to_dict()["start_time"] is None
