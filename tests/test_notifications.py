"""
Tests for the error taxonomy and user notifications
"""

import pytest
from unittest.mock import Mock

from services.errors import (
    ServiceError,
    StoreError,
    UnexpectedError,
    ValidationError,
    as_session_error,
)
from services.notifications import Notification, NotificationCenter


class TestErrors:
    """Test error descriptions shown to users"""

    def test_store_error_generic_message(self):
        assert StoreError("sqlite locked").describe("delete conversation") == "Failed to delete conversation."

    def test_user_message_preferred(self):
        error = ServiceError("429", "The AI service is busy right now.")

        assert error.describe("enhance prompt") == "The AI service is busy right now."

    def test_validation_error_uses_its_message(self):
        assert ValidationError("Please type a message first.").describe("send message") == "Please type a message first."

    def test_unknown_errors_wrapped(self):
        cause = KeyError("id")

        wrapped = as_session_error(cause)

        assert isinstance(wrapped, UnexpectedError)
        assert wrapped.__cause__ is cause
        assert wrapped.describe("load messages") == (
            "Something went wrong while trying to load messages. Please try again."
        )

    def test_session_errors_unchanged(self):
        error = StoreError("x")

        assert as_session_error(error) is error


class TestNotificationCenter:
    """Test notification delivery"""

    def test_failure_notification(self):
        center = NotificationCenter()

        center.failure(StoreError("offline"), "load conversations")

        notification = center.last
        assert notification.level == "error"
        assert notification.title == "Storage error"
        assert notification.message == "Failed to load conversations."

    def test_validation_is_warning(self):
        notification = Notification.from_error(ValidationError("blank"), "send message")

        assert notification.level == "warning"
        assert notification.title == "Hold up!"

    def test_listeners_receive_each_notification(self):
        center = NotificationCenter()
        listener = Mock()
        center.subscribe(listener)

        center.info("Success", "Conversation deleted")

        listener.assert_called_once()
        assert listener.call_args.args[0].message == "Conversation deleted"

    def test_drain(self):
        center = NotificationCenter()
        center.info("a", "1")
        center.info("b", "2")

        drained = center.drain()

        assert [n.title for n in drained] == ["a", "b"]
        assert center.pending == []
        assert center.last is None

    def test_pending_bounded(self):
        center = NotificationCenter(max_pending=2)

        for index in range(5):
            center.info(str(index), "message")

        assert [n.title for n in center.pending] == ["3", "4"]


if __name__ == "__main__":
    pytest.main([__file__])
