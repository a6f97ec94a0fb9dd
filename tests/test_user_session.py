"""
Tests for the owner identity kept in Streamlit session state
"""

import pytest
from unittest.mock import Mock, patch

from services.user_session import SimpleUserSession, get_current_owner_id


class TestSimpleUserSession:
    """Test owner identity tracking"""

    def setup_method(self):
        self.mock_st = Mock()
        self.mock_st.session_state = {}
        self.patcher = patch("services.user_session.st", self.mock_st)
        self.patcher.start()
        self.user_session = SimpleUserSession()

    def teardown_method(self):
        self.patcher.stop()

    def test_signed_out_by_default(self):
        assert self.user_session.get_owner_id() is None
        assert self.user_session.get_user_name() is None
        assert not self.user_session.is_signed_in()

    def test_sign_in(self):
        """Test recording an authenticated identity"""
        user = self.user_session.sign_in("user-42", "Ada")

        assert user["id"] == "user-42"
        assert self.user_session.get_owner_id() == "user-42"
        assert self.user_session.get_user_name() == "Ada"
        assert self.user_session.is_signed_in()

    def test_default_name(self):
        self.user_session.sign_in("user-42")

        assert self.user_session.get_user_name() == "User user-42"

    def test_guest(self):
        """Test short generated guest identities"""
        user = self.user_session.start_guest()

        assert len(user["id"]) == 8
        assert self.user_session.get_owner_id() == user["id"]

    def test_sign_out(self):
        """Test that signing out removes the owner"""
        self.user_session.sign_in("user-42")

        self.user_session.sign_out()
        self.user_session.sign_out()

        assert self.user_session.get_owner_id() is None

    def test_malformed_state_ignored(self):
        """Test that unexpected session state reads as signed out"""
        self.mock_st.session_state["user"] = "user-42"

        assert self.user_session.get_owner_id() is None

    def test_current_owner_helper(self):
        self.user_session.sign_in("user-7")

        assert get_current_owner_id() == "user-7"


if __name__ == "__main__":
    pytest.main([__file__])
