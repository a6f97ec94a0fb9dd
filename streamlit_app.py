import streamlit as st
from datetime import timedelta

from config.app_config import get_config
from services.ai_service import create_assistant_service, create_prompt_enhancer
from services.chat_service.conversation_history import ConversationHistory
from services.chat_service.conversation_session import ConversationSession
from services.chat_service.reveal import RevealScheduler
from services.enhancement_service.enhancement_session import EnhancementSession
from services.notifications import NotificationCenter
from services.persistence.gateway import get_persistence_gateway
from services.ui_service import get_chat_interface, get_enhancer_interface
from services.ui_service.async_runner import run
from services.user_session import get_simple_user_session
from utils.logging_config import initialize_logging, get_logger, log_user_interaction

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

# Get configuration
config = get_config()

PAGES = ["💬 Chat", "✨ Prompt Enhancer", "📚 History"]


def get_notifications() -> NotificationCenter:
    if "notifications" not in st.session_state:
        st.session_state.notifications = NotificationCenter()
    return st.session_state.notifications


def get_sessions(owner_id):
    """Sessions of the current owner, rebuilt when the owner changes"""
    sessions = st.session_state.get("sessions")
    if sessions is not None and sessions["owner_id"] == owner_id:
        return sessions

    if sessions is not None and sessions["chat"] is not None:
        sessions["chat"].close()

    gateway = get_persistence_gateway()
    notifications = get_notifications()

    chat = None
    if owner_id is not None:
        chat = ConversationSession(
            owner_id,
            gateway,
            create_assistant_service(config),
            reveal=RevealScheduler(config.streaming.reveal_delay),
            notifications=notifications,
            error_tracker=error_tracker,
            reconcile_window=timedelta(seconds=config.storage.reconcile_window_seconds),
        )

    sessions = {
        "owner_id": owner_id,
        "chat": chat,
        "history": ConversationHistory(owner_id, gateway, notifications, error_tracker),
        "enhancer": EnhancementSession(
            owner_id, gateway, create_prompt_enhancer(config), notifications, error_tracker
        ),
    }
    run(sessions["history"].load())
    run(sessions["enhancer"].load_history())
    st.session_state.sessions = sessions
    logger.info(f"Sessions ready for owner {owner_id}")
    return sessions


def main_app():
    st.set_page_config(page_title=config.ui.app_title, page_icon="✨", layout="wide")
    st.title(config.ui.app_title)

    user_session = get_simple_user_session()
    chat_ui = get_chat_interface()
    enhancer_ui = get_enhancer_interface()

    chat_ui.render_user_menu(user_session)
    sessions = get_sessions(user_session.get_owner_id())
    chat, history, enhancer = sessions["chat"], sessions["history"], sessions["enhancer"]

    page = st.sidebar.radio("Navigate", PAGES, key="page")
    if chat is not None:
        chat_ui.render_conversation_sidebar(history, chat)

    if page == PAGES[0]:
        if chat is None:
            st.info("Sign in or continue as a guest to start chatting.")
        else:
            chat_ui.render_chat(chat, history)
    elif page == PAGES[1]:
        enhancer_ui.render(enhancer)
    elif chat is not None:
        opened = chat_ui.render_history_page(history, chat)
        if opened:
            log_user_interaction(logger, "conversation_opened", conversation_id=opened)
            st.session_state.page_request = PAGES[0]
            st.rerun()
    else:
        st.info("Sign in to see your conversations.")

    chat_ui.render_notifications(get_notifications())


# Page switches requested by the previous run are applied before the radio is drawn
if "page_request" in st.session_state:
    st.session_state.page = st.session_state.pop("page_request")

main_app()
