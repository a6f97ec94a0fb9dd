"""
Owner identity for the current browser session.

Authentication happens elsewhere; this module only tracks who the sessions
act for. A signed-out session has no owner, which puts the history
operations in their no-op mode.
"""

import streamlit as st
import uuid
from datetime import datetime
from typing import Dict, Optional

from utils.logging_config import get_logger

USER_KEY = "user"


class SimpleUserSession:
    """
    User identity kept in Streamlit session state.
    """

    def __init__(self):
        self.logger = get_logger(__name__)

    def sign_in(self, user_id: str, name: Optional[str] = None) -> Dict:
        """Record an identity established by the authentication layer"""
        st.session_state[USER_KEY] = {
            "id": user_id,
            "name": name or f"User {user_id}",
            "created_at": datetime.now().isoformat(),
        }
        self.logger.info(f"Owner identity set: {user_id}")
        return dict(st.session_state[USER_KEY])

    def start_guest(self) -> Dict:
        """Give an anonymous visitor a short generated identity"""
        return self.sign_in(str(uuid.uuid4())[:8])

    def sign_out(self) -> None:
        if USER_KEY in st.session_state:
            del st.session_state[USER_KEY]
            self.logger.info("Owner identity cleared")

    def get_owner_id(self) -> Optional[str]:
        user = st.session_state.get(USER_KEY)
        if isinstance(user, dict):
            return user.get("id")
        return None

    def get_user_name(self) -> Optional[str]:
        user = st.session_state.get(USER_KEY)
        if isinstance(user, dict):
            return user.get("name")
        return None

    def is_signed_in(self) -> bool:
        return self.get_owner_id() is not None


# Global instance
_simple_user_session: Optional[SimpleUserSession] = None


def get_simple_user_session() -> SimpleUserSession:
    """Get global simple user session instance"""
    global _simple_user_session
    if _simple_user_session is None:
        _simple_user_session = SimpleUserSession()
    return _simple_user_session


def get_current_owner_id() -> Optional[str]:
    """Owner identity of the current session, None when signed out"""
    return get_simple_user_session().get_owner_id()
