"""
Runs session coroutines from Streamlit's synchronous script.

One event loop is kept per browser session so clients bound to a loop
(the OpenAI HTTP client) are reused across reruns.
"""

import asyncio
from typing import Any, Awaitable

import streamlit as st

LOOP_KEY = "_event_loop"


def get_event_loop() -> asyncio.AbstractEventLoop:
    loop = st.session_state.get(LOOP_KEY)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        st.session_state[LOOP_KEY] = loop
    return loop


def run(awaitable: Awaitable[Any]) -> Any:
    """Run `awaitable` to completion on the session's loop"""
    return get_event_loop().run_until_complete(awaitable)
