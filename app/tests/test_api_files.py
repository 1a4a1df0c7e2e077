import pytest

from app.tests.helpers import auth_headers


async def _upload(api_client, name="notes.txt", data=b"Design review on Monday."):
    response = await api_client.post(
        "/api/upload", files=[("files", (name, data, "text/plain"))], headers=auth_headers()
    )
    return response.json()["files"][0]["fileId"]


@pytest.mark.asyncio
async def test_list_files_newest_first(api_client):
    first = await _upload(api_client, "first.txt")
    second = await _upload(api_client, "second.txt")

    response = await api_client.get("/api/files", headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert [f["id"] for f in body] == [second, first]
    assert body[0]["originalName"] == "second.txt"
    assert body[0]["status"] == "completed"


@pytest.mark.asyncio
async def test_delete_file_by_any_user(api_client, vector_store):
    file_id = await _upload(api_client)

    response = await api_client.delete(f"/api/files/{file_id}", headers=auth_headers("user-b"))

    assert response.status_code == 200
    assert response.json()["id"] == file_id
    assert vector_store.entries == []
    listing = await api_client.get("/api/files", headers=auth_headers())
    assert listing.json() == []


@pytest.mark.asyncio
async def test_delete_file_when_vector_store_fails(api_client, vector_store):
    file_id = await _upload(api_client)
    vector_store.fail_delete = True

    response = await api_client.delete(f"/api/files/{file_id}", headers=auth_headers())

    assert response.status_code == 200
    listing = await api_client.get("/api/files", headers=auth_headers())
    assert listing.json() == []


@pytest.mark.asyncio
async def test_deleted_file_outcome_message_is_hidden(api_client):
    file_id = await _upload(api_client)
    before = await api_client.get("/api/messages", headers=auth_headers())
    assert [m["fileId"] for m in before.json()] == [file_id]

    await api_client.delete(f"/api/files/{file_id}", headers=auth_headers())

    after = await api_client.get("/api/messages", headers=auth_headers())
    assert after.json() == []


@pytest.mark.asyncio
async def test_delete_missing_file(api_client):
    response = await api_client.delete("/api/files/12345", headers=auth_headers())
    assert response.status_code == 404
    assert response.json() == {"error": "File not found"}


@pytest.mark.asyncio
async def test_delete_file_with_invalid_id(api_client):
    response = await api_client.delete("/api/files/abc", headers=auth_headers())
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid file id: abc"}
