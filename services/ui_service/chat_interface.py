"""
Chat interface service - renders the chat, the conversation history and the
notifications raised by the sessions.
"""

import streamlit as st
from typing import Optional

from config.app_config import AppConfig, get_config
from services.chat_service.conversation_history import ConversationHistory
from services.chat_service.conversation_session import ConversationSession
from services.chat_service.models import Message, Role, SessionSnapshot
from services.notifications import Notification, NotificationCenter
from services.ui_service.async_runner import run
from services.user_session import SimpleUserSession
from utils.logging_config import get_logger, log_user_interaction

CURSOR = "▌"

AVATARS = {
    Role.USER: "👤",
    Role.ASSISTANT: "🤖",
}


class ChatInterface:
    """
    Service for chat interface components and interactions.
    Handles the conversation sidebar, message rendering and the reveal.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()

    # Notifications

    def render_notification(self, notification: Notification) -> None:
        text = f"**{notification.title}** {notification.message}"
        if notification.level == "error":
            st.error(text, icon="🚨")
        elif notification.level == "warning":
            st.warning(text, icon="⚠️")
        else:
            st.toast(text, icon="✅")

    def render_notifications(self, notifications: NotificationCenter) -> None:
        """Show each pending notification once"""
        for notification in notifications.drain():
            self.render_notification(notification)

    # Sidebar

    def render_user_menu(self, user_session: SimpleUserSession) -> None:
        with st.sidebar:
            name = user_session.get_user_name()
            if name:
                st.markdown(f"👤 **{name}**")
                if st.button("Sign out", use_container_width=True, key="sign_out"):
                    user_session.sign_out()
                    st.rerun()
                return

            st.caption("Not signed in, history is disabled")
            with st.form("sign_in_form", clear_on_submit=True):
                user_id = st.text_input("User ID")
                if st.form_submit_button("Sign in", use_container_width=True) and user_id.strip():
                    user_session.sign_in(user_id.strip())
                    st.rerun()
            if st.button("Continue as guest", use_container_width=True, key="guest"):
                user_session.start_guest()
                st.rerun()

    def render_conversation_sidebar(self, history: ConversationHistory, session: ConversationSession) -> None:
        """Render the owner's conversations with open and delete actions"""
        preview_length = self.config.ui.history_preview_length

        with st.sidebar:
            st.markdown("## 💬 Conversations")

            if st.button("➕ New Conversation", use_container_width=True, type="secondary"):
                session.new_conversation()
                st.rerun()

            conversations = history.conversations
            st.caption(f"📊 {len(conversations)} conversation{'s' if len(conversations) != 1 else ''}")

            for summary in conversations:
                title = summary.title
                label = title[:preview_length] + "..." if len(title) > preview_length else title
                is_current = summary.id == session.conversation_id

                select_col, delete_col = st.columns([5, 1])
                with select_col:
                    if st.button(
                        f"{'✅' if is_current else '💬'} {label}",
                        key=f"open_{summary.id}",
                        help=f"{summary.message_count} messages",
                        use_container_width=True,
                        type="primary" if is_current else "secondary",
                        disabled=is_current,
                    ):
                        log_user_interaction(self.logger, "conversation_opened", conversation_id=summary.id)
                        run(session.open(summary.id, summary.title))
                        st.rerun()
                with delete_col:
                    if st.button("🗑️", key=f"delete_{summary.id}", help="Delete conversation"):
                        if run(history.delete(summary.id)) and is_current:
                            session.new_conversation()
                        st.rerun()

    # Messages

    def render_message(self, message: Message, content: Optional[str] = None) -> None:
        with st.chat_message(message.role.value, avatar=AVATARS.get(message.role)):
            st.markdown(message.content if content is None else content)
            if message.unsaved:
                st.caption("⚠️ Not saved")
            st.caption(message.created_at.strftime("%H:%M"))

    def render_chat_messages(self, session: ConversationSession) -> None:
        messages = session.messages
        if not messages:
            st.info(self.config.ui.empty_chat_message)
            return

        for message in messages:
            self.render_message(message)

    def render_chat(self, session: ConversationSession, history: ConversationHistory) -> None:
        """Render the current conversation and handle a new message"""
        self.render_chat_messages(session)

        prompt = st.chat_input(
            self.config.ui.chat_placeholder,
            disabled=session.snapshot().in_flight,
        )
        if not prompt:
            return

        log_user_interaction(
            self.logger,
            "message_submitted",
            message_length=len(prompt),
            conversation_id=session.conversation_id,
        )
        self.send(session, prompt)
        run(history.load())
        st.rerun()

    def send(self, session: ConversationSession, prompt: str) -> bool:
        """Send `prompt`, drawing the reply as it is revealed"""
        with st.chat_message(Role.USER.value, avatar=AVATARS[Role.USER]):
            st.markdown(prompt)
        placeholder = st.chat_message(Role.ASSISTANT.value, avatar=AVATARS[Role.ASSISTANT]).empty()

        def draw(snapshot: SessionSnapshot) -> None:
            if not snapshot.is_revealing:
                return
            pending = [m for m in snapshot.messages if m.role == Role.ASSISTANT and m.is_pending]
            if pending:
                placeholder.markdown(pending[-1].content + CURSOR)

        unsubscribe = session.on_change(draw)
        try:
            with st.spinner("Thinking..."):
                return run(session.send(prompt))
        finally:
            unsubscribe()
            placeholder.empty()

    # History page

    def render_history_page(self, history: ConversationHistory, session: ConversationSession) -> Optional[str]:
        """
        Full list of conversations.

        Returns:
            The id of the conversation the user opened, if any
        """
        st.markdown("### 📚 Conversation History")

        if history.owner_id is None:
            st.info("Sign in to see your conversations.")
            return None

        if st.button("🔄 Refresh", key="refresh_history"):
            run(history.load())

        if not history.conversations:
            st.info("No conversations yet.")
            return None

        for summary in history.conversations:
            with st.container(border=True):
                st.markdown(f"**{summary.title}**")
                if summary.conversation.summary:
                    st.caption(summary.conversation.summary)
                labels = summary.tag_labels()
                if labels:
                    st.caption(" ".join(f"`{label}`" for label in labels))
                st.caption(
                    f"{summary.message_count} messages · updated "
                    f"{summary.conversation.updated_at.strftime('%Y-%m-%d %H:%M')}"
                )
                open_col, delete_col = st.columns(2)
                with open_col:
                    if st.button("Open", key=f"history_open_{summary.id}", use_container_width=True):
                        run(session.open(summary.id, summary.title))
                        return summary.id
                with delete_col:
                    if st.button("Delete", key=f"history_delete_{summary.id}", use_container_width=True):
                        if run(history.delete(summary.id)) and summary.id == session.conversation_id:
                            session.new_conversation()
                        st.rerun()
        return None


# Global interface instance
_chat_interface: Optional[ChatInterface] = None


def get_chat_interface() -> ChatInterface:
    """Get the global chat interface instance"""
    global _chat_interface
    if _chat_interface is None:
        _chat_interface = ChatInterface()
    return _chat_interface
