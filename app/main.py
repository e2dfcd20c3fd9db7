"""
Streamlit Chat Front End for the Sure chat bot

A browser stand-in for the messaging transport: whatever is typed here
goes through exactly the same gateway a real chat message would
(allow-list, rate limit, conversation engine).

DESIGN PRINCIPLES:
1. The page never talks to the engine directly, only to the orchestrator
2. One event loop for the lifetime of the process
3. Ignored messages are shown as ignored, not silently dropped

The orchestrator's background sweeps need a running event loop, so the
runtime owns a loop on a daemon thread and every call is submitted to it.
"""

import asyncio
import threading

import streamlit as st

from src.config import validate_all_settings
from src.orchestrator import ChatOrchestrator, create_app_components


# Page configuration
st.set_page_config(
    page_title="Sure Chat",
    page_icon="💬",
    layout="centered",
    initial_sidebar_state="expanded",
)


class BotRuntime:
    """Orchestrator plus the event loop it lives on."""

    def __init__(self, orchestrator: ChatOrchestrator):
        self.orchestrator = orchestrator
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self.loop.run_forever, daemon=True)
        self._thread.start()
        self.ready = self.run(orchestrator.start())

    def run(self, coro, timeout: float = 120.0):
        """Run a coroutine on the runtime loop and wait for its result."""
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result(timeout=timeout)

    def send(self, sender: str, text: str):
        return self.run(self.orchestrator.handle_incoming(sender, text))


@st.cache_resource
def get_runtime() -> BotRuntime:
    """Get or create the bot runtime (cached for the process)."""
    return BotRuntime(create_app_components())


def main():
    """Main application entry point."""
    status = validate_all_settings()
    if not status.get("sure") or not status.get("bot"):
        render_settings_page(status)
        return

    runtime = get_runtime()

    # Sidebar
    st.sidebar.title("💬 Sure Chat")
    st.sidebar.markdown("---")
    sender = st.sidebar.text_input(
        "Send as phone number",
        help="Must be listed in ALLOWED_PHONE_NUMBERS",
    )
    if runtime.orchestrator.engine.is_ready:
        st.sidebar.success("✅ Connected to Sure")
    else:
        st.sidebar.warning("⚠️ Accounts and categories not loaded yet")
    if st.sidebar.button("Clear chat"):
        st.session_state.chat_history = []

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Try:**
        - `new` to add a transaction
        - `recent` for the last transactions
        - `accounts` for balances
        - `help` for everything else
        """
    )

    render_chat_page(runtime, sender)


def render_chat_page(runtime: BotRuntime, sender: str):
    """Render the chat transcript and input box."""
    st.title("💬 Chat")

    if "chat_history" not in st.session_state:
        st.session_state.chat_history = []

    for role, text in st.session_state.chat_history:
        with st.chat_message(role):
            st.markdown(text)

    prompt = st.chat_input("Type a message")
    if not prompt:
        return

    if not sender:
        st.warning("Enter a phone number in the sidebar first.")
        return

    st.session_state.chat_history.append(("user", prompt))
    with st.chat_message("user"):
        st.markdown(prompt)

    reply = runtime.send(sender, prompt)
    if reply is None:
        st.caption("🔇 Message ignored (number not allowed or empty message).")
        return

    st.session_state.chat_history.append(("assistant", reply))
    with st.chat_message("assistant"):
        st.markdown(reply)


def render_settings_page(status: dict):
    """Shown instead of the chat when configuration is incomplete."""
    st.title("⚙️ Settings")

    sections = [
        ("Sure API (SURE_BASE_URL, SURE_API_KEY)", "sure"),
        ("Bot (ALLOWED_PHONE_NUMBERS, LOG_LEVEL, BOT_*)", "bot"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(
        "Create a `.env` file with the variables above and reload the page."
    )


if __name__ == "__main__":
    main()
