"""
Tests for merging pending messages with their stored counterparts
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from services.chat_service.models import Message, Pending, Role, Settled
from services.chat_service.reconciliation import reconcile

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def pending(local_id, role, content, offset=0, conversation_id="conv-1"):
    return Message(
        identity=Pending(local_id),
        conversation_id=conversation_id,
        role=role,
        content=content,
        created_at=BASE_TIME + timedelta(seconds=offset),
    )


def settled(store_id, role, content, offset=0, conversation_id="conv-1"):
    return Message(
        identity=Settled(store_id),
        conversation_id=conversation_id,
        role=role,
        content=content,
        created_at=BASE_TIME + timedelta(seconds=offset),
    )


class TestReconcile:
    """Test reconciliation of view-state with the store"""

    def test_pending_pair_collapses_into_settled(self):
        """Test that pending user and assistant messages are replaced by stored ones"""
        view = [
            pending("temp-user-1", Role.USER, "hello"),
            pending("temp-assistant-1", Role.ASSISTANT, "Hi there!", offset=1),
        ]
        stored = [
            settled("m1", Role.USER, "hello", offset=1),
            settled("m2", Role.ASSISTANT, "Hi there!", offset=2),
        ]

        result = reconcile(view, stored)

        assert [m.id for m in result] == ["m1", "m2"]
        assert all(m.is_settled for m in result)

    def test_reconcile_is_idempotent(self):
        """Test that merging the merged list again changes nothing"""
        view = [
            settled("m1", Role.USER, "first"),
            pending("temp-user-2", Role.USER, "second", offset=5),
            pending("temp-user-3", Role.USER, "unsent", offset=6),
        ]
        stored = [
            settled("m1", Role.USER, "first"),
            settled("m3", Role.USER, "second", offset=5),
        ]

        once = reconcile(view, stored)
        twice = reconcile(once, stored)

        assert once == twice
        assert [m.id for m in once] == ["m1", "m3", "temp-user-3"]

    def test_unmatched_pending_kept_after_settled(self):
        """Test that unmatched pending messages follow the settled list in view order"""
        view = [
            pending("temp-a", Role.USER, "one"),
            pending("temp-b", Role.ASSISTANT, "two"),
        ]
        stored = [settled("m1", Role.USER, "something else")]

        result = reconcile(view, stored)

        assert [m.id for m in result] == ["m1", "temp-a", "temp-b"]

    def test_role_must_match(self):
        """Test that equal content with a different role does not match"""
        view = [pending("temp-a", Role.USER, "same")]
        stored = [settled("m1", Role.ASSISTANT, "same")]

        result = reconcile(view, stored)

        assert [m.id for m in result] == ["m1", "temp-a"]

    def test_each_stored_record_claimed_once(self):
        """Test that two identical pending messages need two stored records"""
        view = [
            pending("temp-a", Role.USER, "again"),
            pending("temp-b", Role.USER, "again", offset=1),
        ]
        stored = [settled("m1", Role.USER, "again", offset=1)]

        result = reconcile(view, stored)

        assert [m.id for m in result] == ["m1", "temp-b"]

    def test_record_already_in_view_not_claimed(self):
        """Test that a stored record shown in the view is not reused for a pending twin"""
        view = [
            settled("m1", Role.USER, "repeat"),
            pending("temp-a", Role.USER, "repeat", offset=10),
        ]
        stored = [settled("m1", Role.USER, "repeat")]

        result = reconcile(view, stored)

        assert [m.id for m in result] == ["m1", "temp-a"]

    def test_time_window(self):
        """Test that records older than the window do not match"""
        view = [pending("temp-a", Role.USER, "hello", offset=600)]
        stored = [settled("m1", Role.USER, "hello", offset=0)]

        assert [m.id for m in reconcile(view, stored)] == ["m1", "temp-a"]
        assert [m.id for m in reconcile(view, stored, timedelta(minutes=15))] == ["m1"]

    def test_record_inside_window_matches(self):
        """Test that a record slightly older than the pending message still matches"""
        view = [pending("temp-a", Role.USER, "hello", offset=60)]
        stored = [settled("m1", Role.USER, "hello", offset=0)]

        assert [m.id for m in reconcile(view, stored)] == ["m1"]

    def test_other_conversation_does_not_match(self):
        """Test that records of another conversation are not claimed"""
        view = [pending("temp-a", Role.USER, "hello", conversation_id="conv-1")]
        stored = [settled("m1", Role.USER, "hello", conversation_id="conv-2")]

        result = reconcile(view, stored)

        assert [m.id for m in result] == ["m1", "temp-a"]

    def test_unsaved_message_never_claims_a_record(self):
        """Test that a reply the store rejected is not replaced by a later identical reply"""
        unsaved = replace(pending("temp-assistant-1", Role.ASSISTANT, "same reply", offset=1), unsaved=True)
        view = [
            settled("m1", Role.USER, "q1"),
            unsaved,
            pending("temp-user-2", Role.USER, "q2", offset=10),
            pending("temp-assistant-2", Role.ASSISTANT, "same reply", offset=11),
        ]
        stored = [
            settled("m1", Role.USER, "q1"),
            settled("m2", Role.USER, "q2", offset=10),
            settled("m3", Role.ASSISTANT, "same reply", offset=11),
        ]

        result = reconcile(view, stored)

        assert [m.id for m in result] == ["m1", "temp-assistant-1", "m2", "m3"]
        assert result[1].unsaved is True
        assert reconcile(result, stored) == result

    def test_unmatched_pending_placed_by_creation_time(self):
        """Test that an older unmatched message stays above newer stored ones"""
        view = [
            settled("m1", Role.USER, "q1"),
            replace(pending("temp-assistant-1", Role.ASSISTANT, "reply one", offset=1), unsaved=True),
            pending("temp-user-2", Role.USER, "q2", offset=10),
            pending("temp-assistant-2", Role.ASSISTANT, "reply two", offset=11),
        ]
        stored = [
            settled("m1", Role.USER, "q1"),
            settled("m2", Role.USER, "q2", offset=10),
            settled("m3", Role.ASSISTANT, "reply two", offset=11),
        ]

        result = reconcile(view, stored)

        assert [m.content for m in result] == ["q1", "reply one", "q2", "reply two"]
        assert [m.created_at for m in result] == sorted(m.created_at for m in result)

    def test_empty_inputs(self):
        """Test reconciliation with nothing to merge"""
        assert reconcile([], []) == []
        assert [m.id for m in reconcile([], [settled("m1", Role.USER, "x")])] == ["m1"]


if __name__ == "__main__":
    pytest.main([__file__])
