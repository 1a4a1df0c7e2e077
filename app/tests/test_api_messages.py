import pytest

from app.services.conversation.chat import derive_session_id
from app.tests.helpers import auth_headers


async def _chat(api_client, user_id="user-a", content="hi"):
    response = await api_client.post("/api/chat", json={"content": content}, headers=auth_headers(user_id))
    return response.json()


@pytest.mark.asyncio
async def test_messages_are_scoped_to_caller(api_client):
    await _chat(api_client, "user-a", "from a")
    await _chat(api_client, "user-b", "from b")

    response = await api_client.get("/api/messages", headers=auth_headers("user-b"))

    contents = [m["content"] for m in response.json() if not m["isBot"]]
    assert contents == ["from b"]


@pytest.mark.asyncio
async def test_delete_own_message(api_client, vector_store, answering_client):
    answering_client.ask.return_value = "Noted. MSGID: 77aa"
    reply = await _chat(api_client)

    response = await api_client.delete(f"/api/messages/{reply['id']}", headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["id"] == reply["id"]
    assert vector_store.delete_calls == [("msgid", "77aa")]
    history = await api_client.get("/api/messages", headers=auth_headers())
    assert [m["isBot"] for m in history.json()] == [False]


@pytest.mark.asyncio
async def test_delete_other_users_message_forbidden(api_client):
    reply = await _chat(api_client, "user-a")

    response = await api_client.delete(f"/api/messages/{reply['id']}", headers=auth_headers("user-b"))

    assert response.status_code == 403
    history = await api_client.get("/api/messages", headers=auth_headers("user-a"))
    assert reply["id"] in [m["id"] for m in history.json()]


@pytest.mark.asyncio
async def test_delete_missing_message(api_client):
    response = await api_client.delete("/api/messages/999", headers=auth_headers())
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_message_invalid_id(api_client):
    response = await api_client.delete("/api/messages/1e3", headers=auth_headers())
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_moderator_views(api_client):
    await _chat(api_client, "user-a", "question")

    denied = await api_client.get("/api/moderator/sessions", headers=auth_headers("user-b"))
    assert denied.status_code == 403

    sessions = await api_client.get("/api/moderator/sessions", headers=auth_headers("mod", role="moderator"))
    assert sessions.json() == {"sessions": [derive_session_id("user-a")]}

    messages = await api_client.get(
        f"/api/moderator/sessions/{derive_session_id('user-a')}/messages",
        headers=auth_headers("mod", role="admin"),
    )
    assert messages.status_code == 200
    assert [m["content"] for m in messages.json()][0] == "question"
