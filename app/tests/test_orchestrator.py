import asyncio
import os

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.errors import ExtractionError
from app.db.models.chat_message import ChatMessage
from app.db.models.file_record import FileRecord, FileStatus
from app.db.models.ingested_document import IngestedDocument
from app.services.deletion import DeletionCoordinator
from app.services.ingestion.orchestrator import UploadedFile, describe_failure

OWNER = "user-a"
SESSION = "session-a"


async def _messages_for(session_factory, file_id):
    async with session_factory() as db:
        result = await db.execute(select(ChatMessage).where(ChatMessage.file_id == file_id))
        return list(result.scalars().all())


async def _record(session_factory, file_id):
    async with session_factory() as db:
        return await db.get(FileRecord, file_id)


@pytest.mark.asyncio
async def test_admit_batch_creates_processing_records(orchestrator, session_factory, file_service):
    uploads = [
        UploadedFile("notes.txt", "text/plain", b"hello world"),
        UploadedFile("archive.zip", "application/zip", b"PK\x03\x04"),
    ]

    admissions, jobs = await orchestrator.admit_batch(uploads, OWNER, SESSION)

    assert [a.accepted for a in admissions] == [True, False]
    assert admissions[1].reason == "Unsupported file type: application/zip"
    assert admissions[1].file_id is None
    assert len(jobs) == 1

    record = await _record(session_factory, admissions[0].file_id)
    assert record.status == FileStatus.PROCESSING
    assert record.owner_id == OWNER
    assert record.session_id == SESSION
    assert record.size == len(b"hello world")
    assert os.path.exists(os.path.join(file_service.staging_dir, jobs[0].staged_path))

    async with session_factory() as db:
        count = len((await db.execute(select(FileRecord))).scalars().all())
    assert count == 1


@pytest.mark.asyncio
async def test_process_completes_file_with_one_message(orchestrator, session_factory, vector_store, file_service):
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"The launch is on Tuesday.")], OWNER, SESSION
    )
    job = jobs[0]

    outcome = await orchestrator.process(job)

    assert outcome.status == FileStatus.COMPLETED
    assert not outcome.skipped
    record = await _record(session_factory, job.file_id)
    assert record.status == FileStatus.COMPLETED

    messages = await _messages_for(session_factory, job.file_id)
    assert len(messages) == 1
    assert messages[0].is_bot
    assert messages[0].content == "File processed successfully: notes.txt"
    assert messages[0].session_id == SESSION

    assert vector_store.entries
    assert all(e["metadata"]["source_key"] == f"{job.file_id}/notes.txt" for e in vector_store.entries)

    async with session_factory() as db:
        doc = (await db.execute(select(IngestedDocument))).scalars().one()
    assert doc.file_id == job.file_id
    assert doc.chunk_count == len(vector_store.entries)

    assert not os.path.exists(os.path.join(file_service.staging_dir, job.staged_path))


@pytest.mark.asyncio
async def test_vector_store_failure_marks_error(orchestrator, session_factory, vector_store):
    vector_store.fail_add = True
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"content")], OWNER, SESSION
    )

    outcome = await orchestrator.process(jobs[0])

    assert outcome.status == FileStatus.ERROR
    messages = await _messages_for(session_factory, jobs[0].file_id)
    assert len(messages) == 1
    assert messages[0].content.startswith("Error processing file notes.txt: ")
    assert "connection refused" in messages[0].content


@pytest.mark.asyncio
async def test_bookkeeping_failure_is_degraded_success(orchestrator, session_factory, monkeypatch):
    async def broken_bookkeeping(*args, **kwargs):
        raise RuntimeError("ingested_documents is locked")

    monkeypatch.setattr(orchestrator, "_record_ingestion", broken_bookkeeping)
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"content")], OWNER, SESSION
    )

    outcome = await orchestrator.process(jobs[0])

    assert outcome.status == FileStatus.COMPLETED
    messages = await _messages_for(session_factory, jobs[0].file_id)
    assert [m.content for m in messages] == ["File processed but index bookkeeping failed: notes.txt"]


@pytest.mark.asyncio
async def test_batch_with_corrupted_file(orchestrator, session_factory):
    uploads = [
        UploadedFile("a.txt", "text/plain", b"alpha"),
        UploadedFile("broken.pdf", "application/pdf", b"this is not a pdf"),
        UploadedFile("c.csv", "text/csv", b"k,v\nx,1\n"),
    ]
    admissions, jobs = await orchestrator.admit_batch(uploads, OWNER, SESSION)
    assert all(a.accepted for a in admissions)

    outcomes = await orchestrator.process_many(jobs)

    assert sorted(o.status.value for o in outcomes) == ["completed", "completed", "error"]
    for admission in admissions:
        record = await _record(session_factory, admission.file_id)
        messages = await _messages_for(session_factory, admission.file_id)
        assert len(messages) == 1
        expected = FileStatus.ERROR if admission.filename == "broken.pdf" else FileStatus.COMPLETED
        assert record.status == expected


@pytest.mark.asyncio
async def test_reprocessing_is_skipped(orchestrator, session_factory):
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"content")], OWNER, SESSION
    )
    await orchestrator.process(jobs[0])

    again = await orchestrator.process(jobs[0])

    assert again.skipped
    assert len(await _messages_for(session_factory, jobs[0].file_id)) == 1


@pytest.mark.asyncio
async def test_finalize_writes_nothing_for_finished_file(orchestrator, session_factory):
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"content")], OWNER, SESSION
    )
    await orchestrator.process(jobs[0])

    message_id = await orchestrator._finalize(jobs[0], FileStatus.ERROR, "late outcome")

    assert message_id is None
    record = await _record(session_factory, jobs[0].file_id)
    assert record.status == FileStatus.COMPLETED
    assert len(await _messages_for(session_factory, jobs[0].file_id)) == 1


@pytest.mark.asyncio
async def test_deleted_file_is_skipped(orchestrator, session_factory, vector_store):
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"content")], OWNER, SESSION
    )
    async with session_factory() as db:
        await db.delete(await db.get(FileRecord, jobs[0].file_id))
        await db.commit()

    outcome = await orchestrator.process(jobs[0])

    assert outcome.skipped
    assert outcome.status is None
    assert vector_store.entries == []
    assert await _messages_for(session_factory, jobs[0].file_id) == []


@pytest.mark.asyncio
async def test_file_deleted_during_indexing_leaves_nothing_behind(
        orchestrator, session_factory, vector_store, monkeypatch):
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"The launch is on Tuesday.")], OWNER, SESSION
    )
    job = jobs[0]
    original_add_chunks = vector_store.add_chunks

    async def add_chunks_after_delete(chunks, metadata):
        async with session_factory() as db:
            await DeletionCoordinator(db, vector_store).delete_file(job.file_id)
        return await original_add_chunks(chunks, metadata)

    monkeypatch.setattr(vector_store, "add_chunks", add_chunks_after_delete)

    outcome = await orchestrator.process(job)

    assert outcome.skipped
    assert outcome.message_id is None
    assert vector_store.entries == []
    assert await _record(session_factory, job.file_id) is None
    assert await _messages_for(session_factory, job.file_id) == []
    async with session_factory() as db:
        assert (await db.execute(select(IngestedDocument))).scalars().all() == []


@pytest.mark.asyncio
async def test_retry_after_failed_finalize_does_not_reindex(orchestrator, session_factory, vector_store, monkeypatch):
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"The launch is on Tuesday.")], OWNER, SESSION
    )
    job = jobs[0]
    original_finalize = orchestrator._finalize
    calls = []

    async def finalize_once_broken(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise OperationalError("UPDATE file_record", {}, Exception("connection lost"))
        return await original_finalize(*args, **kwargs)

    monkeypatch.setattr(orchestrator, "_finalize", finalize_once_broken)

    with pytest.raises(OperationalError):
        await orchestrator.process(job)
    entries_after_first_attempt = len(vector_store.entries)
    assert entries_after_first_attempt > 0
    assert (await _record(session_factory, job.file_id)).status == FileStatus.PROCESSING

    outcome = await orchestrator.process(job)

    assert outcome.status == FileStatus.COMPLETED
    assert not outcome.skipped
    assert len(vector_store.entries) == entries_after_first_attempt
    messages = await _messages_for(session_factory, job.file_id)
    assert [m.content for m in messages] == ["File processed successfully: notes.txt"]
    async with session_factory() as db:
        assert len((await db.execute(select(IngestedDocument))).scalars().all()) == 1


@pytest.mark.asyncio
async def test_admit_batch_stages_off_the_event_loop(orchestrator, monkeypatch):
    offloaded = []
    original_to_thread = asyncio.to_thread

    async def recording_to_thread(func, *args, **kwargs):
        offloaded.append(getattr(func, "__name__", None))
        return await original_to_thread(func, *args, **kwargs)

    monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)

    admissions, _ = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"content")], OWNER, SESSION
    )

    assert admissions[0].accepted
    assert "stage" in offloaded


@pytest.mark.asyncio
async def test_fail_finalizes_as_error(orchestrator, session_factory):
    _, jobs = await orchestrator.admit_batch(
        [UploadedFile("notes.txt", "text/plain", b"content")], OWNER, SESSION
    )

    message_id = await orchestrator.fail(jobs[0], "could not queue file for processing")

    assert message_id is not None
    record = await _record(session_factory, jobs[0].file_id)
    assert record.status == FileStatus.ERROR


def test_describe_failure_is_bounded():
    assert describe_failure(ExtractionError("first line\nTraceback (most recent call last):")) == "first line"
    assert describe_failure(ValueError()) == "ValueError"

    reason = describe_failure(RuntimeError("x" * 1000))
    assert len(reason) == 300
    assert reason.endswith("...")
