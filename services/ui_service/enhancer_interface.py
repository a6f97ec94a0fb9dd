"""
Prompt enhancer interface - editor, result and the enhancement history.
"""

import streamlit as st
from typing import Optional

from config.app_config import AppConfig, get_config
from services.enhancement_service.enhancement_session import EnhancementSession
from services.ui_service.async_runner import run
from utils.logging_config import get_logger, log_user_interaction

EDITOR_KEY = "enhancer_original_prompt"
EDITOR_PENDING_KEY = "_enhancer_editor_pending"


class EnhancerInterface:
    """Renders the enhancement workflow for one session"""

    def __init__(self, config: Optional[AppConfig] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()

    def render_editor(self, session: EnhancementSession) -> None:
        st.markdown("### ✨ Prompt Enhancer")

        # A widget value can only be replaced before the widget is drawn
        if EDITOR_PENDING_KEY in st.session_state:
            st.session_state[EDITOR_KEY] = st.session_state.pop(EDITOR_PENDING_KEY)
        elif EDITOR_KEY not in st.session_state:
            st.session_state[EDITOR_KEY] = session.original_prompt

        original = st.text_area(
            "Your prompt",
            key=EDITOR_KEY,
            placeholder=self.config.ui.enhancer_placeholder,
            height=160,
        )

        enhance_col, clear_col = st.columns([3, 1])
        with enhance_col:
            enhance_clicked = st.button(
                "🚀 Enhance",
                type="primary",
                use_container_width=True,
                disabled=session.in_flight,
            )
        with clear_col:
            if st.button("Clear", use_container_width=True):
                session.clear_editor()
                st.session_state[EDITOR_PENDING_KEY] = ""
                st.rerun()

        if enhance_clicked:
            log_user_interaction(self.logger, "enhance_requested", prompt_length=len(original or ""))
            with st.spinner("Enhancing your prompt..."):
                run(session.enhance(original))

        if session.enhanced_prompt:
            st.markdown("#### Enhanced prompt")
            st.code(session.enhanced_prompt, language=None, wrap_lines=True)

    def render_history(self, session: EnhancementSession) -> None:
        st.markdown("### 🕘 Enhancement History")

        if session.owner_id is None:
            st.info("Sign in to keep a history of your enhancements.")
            return

        if self.config.storage.uses_local_cache():
            st.caption("History is stored on this machine only")

        if not session.history:
            st.caption("No enhancements yet.")
            return

        preview_length = self.config.ui.history_preview_length
        for enhancement in session.history:
            original = enhancement.original_prompt
            label = original[:preview_length] + "..." if len(original) > preview_length else original
            with st.expander(f"{label} · {enhancement.created_at.strftime('%Y-%m-%d %H:%M')}"):
                st.caption(f"Provider: {enhancement.provider}")
                st.code(enhancement.enhanced_prompt, language=None, wrap_lines=True)

                select_col, delete_col = st.columns(2)
                with select_col:
                    if st.button("Load", key=f"select_{enhancement.id}", use_container_width=True):
                        session.select(enhancement.id)
                        st.session_state[EDITOR_PENDING_KEY] = session.original_prompt
                        st.rerun()
                with delete_col:
                    if st.button("Delete", key=f"delete_enh_{enhancement.id}", use_container_width=True):
                        run(session.delete(enhancement.id))
                        st.rerun()

    def render(self, session: EnhancementSession) -> None:
        self.render_editor(session)
        st.divider()
        self.render_history(session)


# Global interface instance
_enhancer_interface: Optional[EnhancerInterface] = None


def get_enhancer_interface() -> EnhancerInterface:
    """Get the global enhancer interface instance"""
    global _enhancer_interface
    if _enhancer_interface is None:
        _enhancer_interface = EnhancerInterface()
    return _enhancer_interface
