from fastapi.testclient import TestClient

from coursechat.main import app


def test_analytics_reports_question_outcomes(chat_service):
    app.state.chat_service = chat_service
    with TestClient(app) as client:
        session_id = client.post(
            "/chat/start",
            json={
                "year": "2nd Year",
                "semester": "1st Semester",
                "subject": "Data Structures",
                "regulation": "R20",
                "unit": "2nd unit",
                "user_id": "u1",
            },
        ).json()["session_id"]
        client.post("/chat/ask", json={"session_id": session_id, "question": "Explain stacks"})
        client.post("/chat/ask", json={"session_id": session_id, "question": "Which server hosts you?"})

        payload = client.get("/analytics").json()
        questions = payload["questions"]
        assert questions["sessions_started"] == 1
        assert questions["per_user"]["u1"]["total"] == 2
        assert questions["outcomes"] == {"answered": 1, "refused": 1}
        assert payload["extraction_cache_enabled"] is False
        assert payload["cache_entries"] == 0


def test_analytics_reports_extraction_cache(cached_chat_service):
    app.state.chat_service = cached_chat_service
    with TestClient(app) as client:
        session_id = client.post(
            "/chat/start",
            json={
                "year": "2nd Year",
                "semester": "1st Semester",
                "subject": "Data Structures",
                "regulation": "R20",
                "unit": "2nd unit",
                "user_id": "u1",
            },
        ).json()["session_id"]
        client.post("/chat/ask", json={"session_id": session_id, "question": "Explain stacks"})
        client.post("/chat/ask", json={"session_id": session_id, "question": "Explain queues"})

        payload = client.get("/analytics").json()
        assert payload["extraction_cache_enabled"] is True
        assert payload["cache_entries"] > 0
        assert payload["cache"]["hits"] == 1
