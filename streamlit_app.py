from __future__ import annotations

import os
from typing import Dict, List

import requests
import streamlit as st


DEFAULT_BACKEND_URL = os.getenv("COURSECHAT_BACKEND_URL", "http://localhost:8000")

YEARS = ["1st Year", "2nd Year", "3rd Year", "4th Year"]
SEMESTERS = ["1st Semester", "2nd Semester"]
UNITS = ["1st unit", "2nd unit", "3rd unit", "4th unit", "5th unit"]


st.set_page_config(
    page_title="Campusify Course Chat",
    layout="wide",
)


def get_backend_url() -> str:
    return st.session_state.get("backend_url", DEFAULT_BACKEND_URL)


def initialize_state() -> None:
    st.session_state.setdefault("backend_url", DEFAULT_BACKEND_URL)
    st.session_state.setdefault("user_id", "")
    st.session_state.setdefault("session", None)
    st.session_state.setdefault("messages", [])


def start_session(filters: Dict[str, str]) -> Dict[str, object]:
    response = requests.post(
        f"{get_backend_url()}/chat/start",
        json={**filters, "user_id": st.session_state["user_id"]},
        timeout=15,
    )
    response.raise_for_status()
    return response.json()


def ask(question: str) -> Dict[str, object]:
    response = requests.post(
        f"{get_backend_url()}/chat/ask",
        json={"session_id": st.session_state["session"]["session_id"], "question": question},
        timeout=120,
    )
    response.raise_for_status()
    return response.json()


def load_history(session_id: str) -> List[Dict[str, object]]:
    response = requests.get(
        f"{get_backend_url()}/chat/{session_id}/history",
        params={"user_id": st.session_state["user_id"]},
        timeout=15,
    )
    response.raise_for_status()
    return response.json()["messages"]


def list_sessions() -> List[Dict[str, object]]:
    response = requests.get(
        f"{get_backend_url()}/chat/users/{st.session_state['user_id']}",
        timeout=15,
    )
    response.raise_for_status()
    return response.json()


def error_detail(exc: requests.HTTPError) -> str:
    try:
        return exc.response.json().get("detail", str(exc))
    except ValueError:
        return str(exc)


def render_sidebar() -> None:
    st.sidebar.title("Configuration")
    backend_url = st.sidebar.text_input("Backend URL", value=get_backend_url())
    if backend_url != get_backend_url():
        st.session_state["backend_url"] = backend_url
    st.session_state["user_id"] = st.sidebar.text_input("User ID", value=st.session_state["user_id"])
    st.sidebar.markdown("---")

    if not st.session_state["user_id"]:
        st.sidebar.info("Enter a user ID to start chatting.")
        return

    try:
        sessions = list_sessions()
    except requests.RequestException as exc:
        st.sidebar.error(f"Unable to reach backend: {exc}")
        return

    st.sidebar.subheader("Previous chats")
    for session in sessions:
        label = f"{session['subject']} ({session['unit']}) - {session['created_at'][:16]}"
        if st.sidebar.button(label, key=f"session-{session['id']}"):
            st.session_state["session"] = {
                "session_id": session["id"],
                "subject": session["subject"],
                "regulation": session["regulation"],
            }
            st.session_state["messages"] = load_history(session["id"])
            st.rerun()

    if st.session_state["session"] and st.sidebar.button("New chat"):
        st.session_state["session"] = None
        st.session_state["messages"] = []
        st.rerun()


def render_start() -> None:
    st.header("Start a chat")
    with st.form("start-form", clear_on_submit=False):
        year = st.selectbox("Year", YEARS)
        semester = st.selectbox("Semester", SEMESTERS)
        subject = st.text_input("Subject")
        regulation = st.text_input("Regulation", value="R20")
        unit = st.selectbox("Unit", UNITS)
        submitted = st.form_submit_button("Start")
        if submitted:
            try:
                st.session_state["session"] = start_session(
                    {
                        "year": year,
                        "semester": semester,
                        "subject": subject,
                        "regulation": regulation,
                        "unit": unit,
                    }
                )
                st.session_state["messages"] = []
                st.rerun()
            except requests.HTTPError as exc:
                st.error(error_detail(exc))
            except requests.RequestException as exc:
                st.error(f"Unable to reach backend: {exc}")


def render_chat() -> None:
    session = st.session_state["session"]
    st.header(f"{session['subject']} ({session['regulation']})")
    st.caption("Answers are drawn from the course material uploaded for this unit.")

    for message in st.session_state["messages"]:
        with st.chat_message("user" if message["role"] == "user" else "assistant"):
            st.markdown(message["content"])

    if prompt := st.chat_input("Ask a question about this unit..."):
        try:
            ask(prompt)
            st.session_state["messages"] = load_history(session["session_id"])
        except requests.HTTPError as exc:
            st.error(f"Request failed: {error_detail(exc)}")
            return
        except requests.RequestException as exc:
            st.error(f"Unable to reach backend: {exc}")
            return
        st.rerun()


def main() -> None:
    initialize_state()
    render_sidebar()
    if not st.session_state["user_id"]:
        st.info("Enter a user ID in the sidebar.")
    elif not st.session_state["session"]:
        render_start()
    else:
        render_chat()


if __name__ == "__main__":
    main()
