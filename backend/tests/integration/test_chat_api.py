"""Integration tests for the chat and conversation REST endpoints."""

import pytest
from sqlmodel import Session

from vent_ai.core.errors import (
    OracleEmptyReplyError,
    OracleRejectedError,
    OracleUnavailableError,
)
from vent_ai.db.repository import MessageRepository
from vent_ai.oracle.base import ChatTurn


@pytest.fixture
def sample_conversation(engine):
    """Create a conversation with a user and an AI message."""
    with Session(engine) as session:
        repo = MessageRepository(session)
        repo.create("conv-1", "user-1", "Ann", text="Hello")
        repo.create(
            "conv-1",
            "vent-ai",
            "Vent-AI",
            sender_avatar_ref="/ai-avatar.png",
            text="Hi there!",
            is_ai_generated=True,
        )
        repo.create("conv-2", "user-2", "Bob", audio_ref="https://cdn.test/v.webm", audio_duration_ms=1200)
    return "conv-1"


class TestChatEndpoint:
    """Tests for POST /api/chat."""

    def test_returns_reply(self, client, oracle, settings):
        oracle.results = ["That sounds really hard..."]

        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "I feel overwhelmed"}]},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "That sounds really hard..."}
        assert oracle.calls == [
            ([ChatTurn("user", "I feel overwhelmed")], settings.system_prompt)
        ]

    def test_normalizes_history_items(self, client, oracle):
        client.post(
            "/api/chat",
            json={
                "messages": [
                    {"role": "user", "text": "from text field"},
                    {"role": "bot", "content": "any other role"},
                    {"role": "user"},
                ]
            },
        )

        turns, _ = oracle.calls[0]
        assert turns == [
            ChatTurn("user", "from text field"),
            ChatTurn("assistant", "any other role"),
            ChatTurn("user", ""),
        ]

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"messages": "hello"},
            {"messages": {"role": "user"}},
            {"messages": None},
            {"messages": ["not an object"]},
            ["messages"],
        ],
    )
    def test_malformed_messages_return_400(self, client, oracle, body):
        response = client.post("/api/chat", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid messages format"}
        assert oracle.calls == []

    def test_invalid_json_returns_400(self, client):
        response = client.post(
            "/api/chat",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_provider_error_returns_500_with_details(self, client, oracle):
        details = {"message": "rate limited", "code": "429"}
        oracle.results = [OracleRejectedError(500, details)]

        response = client.post("/api/chat", json={"messages": []})

        assert response.status_code == 500
        assert response.json() == {
            "error": "AI service error",
            "details": {"message": "rate limited", "code": "429"},
            "status": 500,
        }

    def test_empty_reply_returns_500(self, client, oracle):
        oracle.results = [OracleEmptyReplyError("No response from AI")]

        response = client.post("/api/chat", json={"messages": []})

        assert response.status_code == 500
        assert response.json()["error"] == "No response from AI"

    def test_unavailable_returns_500(self, client, oracle):
        oracle.results = [OracleUnavailableError("connection refused")]

        response = client.post("/api/chat", json={"messages": []})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to process request"
        assert "connection refused" in data["details"]

    def test_unexpected_failure_returns_500(self, client, oracle):
        oracle.results = [RuntimeError("bad gateway page")]

        response = client.post("/api/chat", json={"messages": []})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to process request",
            "details": "bad gateway page",
        }


class TestListMessages:
    """Tests for GET /api/v1/conversations/{conversation_id}/messages."""

    def test_returns_messages_oldest_first(self, client, sample_conversation):
        response = client.get(f"/api/v1/conversations/{sample_conversation}/messages")
        assert response.status_code == 200

        data = response.json()
        assert data["conversation_id"] == "conv-1"
        assert [m["text"] for m in data["messages"]] == ["Hello", "Hi there!"]

        ai_message = data["messages"][1]
        assert ai_message["is_ai"] is True
        assert ai_message["sender_id"] == "vent-ai"
        assert ai_message["sender_photo"] == "/ai-avatar.png"
        assert ai_message["pending"] is False
        assert ai_message["created_at"] is not None

    def test_audio_message_fields(self, client, sample_conversation):
        response = client.get("/api/v1/conversations/conv-2/messages")

        message = response.json()["messages"][0]
        assert message["text"] is None
        assert message["audio_url"] == "https://cdn.test/v.webm"
        assert message["audio_duration_ms"] == 1200

    def test_respects_limit(self, client, sample_conversation):
        response = client.get("/api/v1/conversations/conv-1/messages?limit=1")

        assert [m["text"] for m in response.json()["messages"]] == ["Hi there!"]

    def test_invalid_limit(self, client):
        response = client.get("/api/v1/conversations/conv-1/messages?limit=0")
        assert response.status_code == 422

    def test_unknown_conversation_is_empty(self, client):
        response = client.get("/api/v1/conversations/nobody/messages")

        assert response.status_code == 200
        assert response.json()["messages"] == []


class TestClearMessages:
    """Tests for DELETE /api/v1/conversations/{conversation_id}/messages."""

    def test_deletes_only_that_conversation(self, client, sample_conversation):
        response = client.delete("/api/v1/conversations/conv-1/messages")

        assert response.status_code == 200
        assert response.json() == {"conversation_id": "conv-1", "deleted": 2}
        assert client.get("/api/v1/conversations/conv-1/messages").json()["messages"] == []
        assert len(client.get("/api/v1/conversations/conv-2/messages").json()["messages"]) == 1
