"""
Streamlit console for an FTP control channel.

    streamlit run ftpctl/ui/app.py
"""

import logging
from datetime import datetime

import streamlit as st

from ftpctl.config import ClientConfig
from ftpctl.core import ClientCommandHandler, ControlChannel, DataConnectMode, FtpError
from ftpctl.ui.verbs import get_suggestion, is_known

config = ClientConfig.from_env()

logging.basicConfig(
    level=getattr(logging, config.log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


st.set_page_config(page_title="ftpctl console", layout="wide")

if "handler" not in st.session_state:
    st.session_state["handler"] = None


def _disconnect():
    handler: ClientCommandHandler = st.session_state.get("handler")
    if handler is None:
        return
    try:
        handler.channel.logout()
        st.info("Disconnected")
    except FtpError as e:
        logger.error(f"[UI] Error disconnecting: {e}")
        st.error(f"Error disconnecting: {e}")
    finally:
        st.session_state["handler"] = None


# --- UI ----------------------------------------------------------------------
st.title("ftpctl — control channel console")

with st.sidebar:
    st.header("Connection")
    host = st.text_input("Host", value=config.host)
    port = st.number_input("Port", min_value=1, max_value=65535, value=config.port)
    timeout_ms = st.number_input("Timeout (ms)", min_value=0, max_value=600000, value=config.timeout_ms, step=1000)
    if st.button("Connect"):
        _disconnect()
        channel = ControlChannel()
        try:
            logger.info(f"[UI] Connecting to {host}:{port}...")
            banner = channel.connect(host, int(port), int(timeout_ms))
            st.session_state["handler"] = ClientCommandHandler(channel)
            st.success(f"{banner.code} — {banner.text}")
        except FtpError as e:
            logger.error(f"[UI] Connection failed: {e}")
            st.error(f"Connection failed ({e.kind.name}): {e}")
    if st.button("Disconnect"):
        _disconnect()

handler: ClientCommandHandler = st.session_state.get("handler")

col1, col2 = st.columns([3, 1])

with col1:
    st.subheader("Terminal")
    cmd = st.text_input("Command", placeholder="e.g. USER anonymous", key="cmd_input")
    if st.button("Run") and cmd:
        verb = cmd.strip().split(" ", 1)[0]
        if handler is None:
            st.error("Not connected. Connect first.")
        elif not is_known(verb):
            st.error(f"Unknown command: {verb}")
            suggestion = get_suggestion(verb)
            if suggestion:
                st.write(f"Try with {suggestion}")
        else:
            try:
                reply = handler.execute(cmd.strip())
                if reply.is_error:
                    st.error(str(reply))
                else:
                    st.success(str(reply))
            except FtpError as e:
                logger.error(f"[UI] Command error: {e}")
                st.error(f"{e.kind.name}: {e}")

    st.subheader("Data connection")
    mode = st.radio("Mode", [m.value for m in DataConnectMode],
                    index=[m.value for m in DataConnectMode].index(config.data_mode.value), horizontal=True)
    if st.button("Negotiate"):
        if handler is None:
            st.error("Not connected. Connect first.")
        else:
            try:
                with handler.open_data_connection(DataConnectMode.parse(mode)) as data:
                    if data.is_pending:
                        h, p = data.local_address()
                        st.success(f"Listening on {h}:{p} (PORT accepted)")
                    else:
                        h, p = data.data_socket.getpeername()[:2]
                        st.success(f"Connected to {h}:{p} (PASV)")
            except FtpError as e:
                st.error(f"{e.kind.name}: {e}")

with col2:
    st.subheader("History")
    if handler is None:
        st.info("No history: not connected")
    else:
        if st.button("Clear History"):
            handler.clear_history()
            st.rerun()
        for entry in reversed(handler.get_history()[-100:]):
            t = entry.get("time")
            time_str = t.isoformat() if isinstance(t, datetime) else str(t)
            with st.expander(f"{time_str} — {entry.get('command')}"):
                reply = entry.get("reply")
                if reply is not None:
                    st.write(f"Code: {reply.code}")
                    st.write(f"Message: {reply.text}")
                    st.write(f"Type: {reply.category}")
                if entry.get("error"):
                    st.error(str(entry.get("error")))


st.markdown("---")
st.caption("ftpctl console — commands are recorded with PASS masked.")
