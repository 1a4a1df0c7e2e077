import asyncio

import pytest
from unittest.mock import MagicMock

from app.core.errors import RemoteServiceError
import app.services.vector_store as vector_store_module
from app.services.vector_store import VectorStoreService


@pytest.fixture
def mock_client():
    """Mock of the blocking Mem0 client."""
    client = MagicMock()
    client.add.side_effect = lambda *args, **kwargs: {"results": [{"id": f"mem-{client.add.call_count}"}]}
    client.get_all.return_value = {"results": []}
    return client


@pytest.fixture
def store(mock_client):
    return VectorStoreService(client=mock_client, namespace="kb-test", timeout=5)


@pytest.mark.asyncio
async def test_add_chunks_tags_each_chunk(store, mock_client):
    ids = await store.add_chunks(["first", "second"], {"source_key": "1/a.txt"})

    assert ids == ["mem-1", "mem-2"]
    first_call = mock_client.add.call_args_list[0]
    assert first_call.args[0] == [{"role": "user", "content": "first"}]
    assert first_call.kwargs["user_id"] == "kb-test"
    assert first_call.kwargs["infer"] is False
    assert first_call.kwargs["metadata"] == {"source_key": "1/a.txt", "chunk_index": 0, "total_chunks": 2}


@pytest.mark.asyncio
async def test_delete_by_metadata_pages_until_empty(store, mock_client):
    mock_client.get_all.side_effect = [
        {"results": [{"id": "m1"}, {"id": "m2"}]},
        {"results": [{"id": "m3"}]},
        {"results": []},
    ]

    deleted = await store.delete_by_metadata("source_key", "1/a.txt")

    assert deleted == 3
    assert mock_client.get_all.call_args.kwargs["filters"] == {"user_id": "kb-test", "metadata.source_key": "1/a.txt"}
    assert [c.kwargs["memory_id"] for c in mock_client.delete.call_args_list] == ["m1", "m2", "m3"]


@pytest.mark.asyncio
async def test_client_errors_become_remote_service_errors(store, mock_client):
    mock_client.get_all.side_effect = ConnectionError("connection reset")

    with pytest.raises(RemoteServiceError, match="connection reset"):
        await store.delete_by_metadata("msgid", "abc")


@pytest.mark.asyncio
async def test_unexpected_result_shape(store, mock_client):
    mock_client.get_all.return_value = "nope"

    with pytest.raises(RemoteServiceError, match="Unexpected result format"):
        await store.find_by_metadata("msgid", "abc")


async def _current_lock():
    return vector_store_module._get_lock()


def test_each_event_loop_gets_its_own_lock():
    first_loop = asyncio.new_event_loop()
    second_loop = asyncio.new_event_loop()
    try:
        first = first_loop.run_until_complete(_current_lock())
        assert first_loop.run_until_complete(_current_lock()) is first
        second = second_loop.run_until_complete(_current_lock())
        assert second is not first
    finally:
        first_loop.close()
        second_loop.close()


def test_locks_of_closed_loops_are_released():
    old_loop = asyncio.new_event_loop()
    old_loop.run_until_complete(_current_lock())
    old_loop.close()
    assert old_loop in vector_store_module._mem0_locks

    new_loop = asyncio.new_event_loop()
    try:
        new_loop.run_until_complete(_current_lock())
    finally:
        new_loop.close()

    assert old_loop not in vector_store_module._mem0_locks
