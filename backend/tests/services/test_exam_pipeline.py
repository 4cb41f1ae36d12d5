"""Exam Pipeline — end-to-end state machine against in-memory backends.

Invariants:
    - Scenario A: valid exam → COMPLETE, one object at the deterministic key, one minimal message
    - Scenario B: invalid exam → REJECTED_INVALID with zero backend calls
    - Scenario C: store fails → STORAGE_FAILED, messaging never touched
    - Scenario D: publish fails → PUBLISH_FAILED, object still retrievable
    - retry_storage / retry_publish resume without re-validating or re-writing
    - A cancelled caller does not stop store or publish; the final state is logged
"""

import asyncio
import json
import logging

import pytest

from exam_gateway.core.domain_types import OutcomeKind, PipelineState
from exam_gateway.core.errors import PublishError, StorageError
from exam_gateway.core.submission_outcome import SubmissionOutcome
from exam_gateway.services.durable_writer import DurableWriter
from exam_gateway.services.exam_pipeline import ExamPipeline
from exam_gateway.services.notification_publisher import NotificationPublisher
from tests.exam_factory import (
    FIXED_NOW,
    FIXED_TIMESTAMP,
    TEST_BUCKET,
    FakeMessageBroker,
    FakeObjectStore,
    hex64,
    lead_ok,
    make_payload,
)

EXPECTED_KEY = f"ecg_exam/{hex64('b')}/{hex64('a')}/{FIXED_TIMESTAMP}.parquet"


def _pipeline(store, broker):
    return ExamPipeline(
        DurableWriter(store, TEST_BUCKET),
        NotificationPublisher(broker),
        clock=lambda: FIXED_NOW,
    )


# ─── Scenario A: happy path ──────────────────────────────────────

async def test_valid_exam_completes(pipeline, store, broker):
    outcome = await pipeline.submit(make_payload())

    assert outcome.kind == OutcomeKind.ACCEPTED
    assert outcome.history == [
        PipelineState.RECEIVED, PipelineState.VALIDATED,
        PipelineState.TRANSFORMED, PipelineState.STORED,
        PipelineState.PUBLISHED, PipelineState.COMPLETE,
    ]
    assert outcome.object_key == EXPECTED_KEY
    assert list(store.objects) == [(TEST_BUCKET, EXPECTED_KEY)]
    assert len(broker.messages) == 1


async def test_published_message_has_no_waveform_or_key(pipeline, broker):
    await pipeline.submit(make_payload())
    _, body = broker.messages[0]
    assert json.loads(body) == {
        "topic": "topic-ecg-dev",
        "exam_type": "ECG Exam",
        "timestamp": FIXED_TIMESTAMP,
        "patient_id": hex64("a"),
        "hospital_id": hex64("b"),
    }


# ─── Scenario B: rejected before any backend call ────────────────

async def test_truncated_lead_rejected_without_side_effects(pipeline, store, broker):
    outcome = await pipeline.submit(make_payload(lead_v6=lead_ok()[:4999]))

    assert outcome.kind == OutcomeKind.REJECTED_INVALID
    assert outcome.history == [PipelineState.RECEIVED, PipelineState.REJECTED_INVALID]
    assert [v.field for v in outcome.violations] == ["lead_v6"]
    assert outcome.error.http_status == 400
    assert store.calls == []
    assert broker.calls == []


# ─── Scenario C: storage failure ─────────────────────────────────

async def test_storage_failure_never_publishes():
    store = FakeObjectStore(fail_with=StorageError("AccessDenied", "put_object"))
    broker = FakeMessageBroker()
    outcome = await _pipeline(store, broker).submit(make_payload())

    assert outcome.kind == OutcomeKind.STORAGE_FAILED
    assert outcome.state == PipelineState.STORAGE_FAILED
    assert isinstance(outcome.error, StorageError)
    assert outcome.error.context.object_key == EXPECTED_KEY
    assert broker.calls == []


async def test_missing_bucket_is_storage_failed():
    broker = FakeMessageBroker()
    pipeline = ExamPipeline(
        DurableWriter(FakeObjectStore(), None), NotificationPublisher(broker),
    )
    outcome = await pipeline.submit(make_payload())
    assert outcome.kind == OutcomeKind.STORAGE_FAILED
    assert outcome.error.code == "CONFIGURATION_ERROR"
    assert broker.calls == []


# ─── Scenario D: publish failure after store ─────────────────────

async def test_publish_failure_leaves_object_retrievable():
    store = FakeObjectStore()
    broker = FakeMessageBroker(fail_with=PublishError("broker down", "topic-ecg-dev"))
    pipeline = _pipeline(store, broker)
    outcome = await pipeline.submit(make_payload())

    assert outcome.kind == OutcomeKind.PUBLISH_FAILED
    assert outcome.history[-2:] == [PipelineState.STORED, PipelineState.PUBLISH_FAILED]
    assert isinstance(outcome.error, PublishError)
    assert outcome.error.context.object_key == EXPECTED_KEY

    table = await pipeline.writer.read(outcome.object_key)
    assert table.column("patient_id").to_pylist() == [hex64("a")]


async def test_unknown_topic_is_publish_failed():
    broker = FakeMessageBroker(topics=set())
    outcome = await _pipeline(FakeObjectStore(), broker).submit(make_payload())
    assert outcome.kind == OutcomeKind.PUBLISH_FAILED


# ─── Reconciliation ──────────────────────────────────────────────

async def test_retry_publish_completes_without_rewriting():
    store = FakeObjectStore()
    broker = FakeMessageBroker(fail_with=PublishError("broker down", "topic-ecg-dev"))
    pipeline = _pipeline(store, broker)
    failed = await pipeline.submit(make_payload())

    broker.fail_with = None
    retried = await pipeline.retry_publish(failed.notification, failed.object_key)

    assert retried.kind == OutcomeKind.ACCEPTED
    assert retried.history[0] == PipelineState.STORED
    assert [c[0] for c in store.calls] == ["put_object"]
    assert len(broker.messages) == 1


async def test_retry_storage_writes_same_key_then_publishes():
    store = FakeObjectStore(fail_with=StorageError("SlowDown", "put_object"))
    broker = FakeMessageBroker()
    pipeline = _pipeline(store, broker)
    failed = await pipeline.submit(make_payload())

    store.fail_with = None
    retried = await pipeline.retry_storage(failed.durable, failed.notification)

    assert retried.kind == OutcomeKind.ACCEPTED
    assert retried.object_key == EXPECTED_KEY
    assert len(broker.messages) == 1


# ─── Concurrency ─────────────────────────────────────────────────

async def test_concurrent_submissions_are_independent(pipeline, store, broker):
    payloads = [make_payload(patient_id=c * 64) for c in "0123456789"]
    outcomes = await asyncio.gather(*(pipeline.submit(p) for p in payloads))

    assert all(o.accepted for o in outcomes)
    assert len({o.object_key for o in outcomes}) == 10
    assert len(store.objects) == 10
    assert len(broker.messages) == 10


def _slow_store():
    started = asyncio.Event()
    release = asyncio.Event()

    class SlowStore(FakeObjectStore):
        async def put_object(self, bucket, key, data, content_type="application/octet-stream"):
            started.set()
            await release.wait()
            await super().put_object(bucket, key, data, content_type)

    return SlowStore(), started, release


async def _cancel_mid_store(pipeline, started):
    task = asyncio.create_task(pipeline.submit(make_payload()))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


async def test_cancelled_caller_still_stores_and_publishes(caplog):
    caplog.set_level(logging.INFO, logger="exam_gateway.services.exam_pipeline")
    store, started, release = _slow_store()
    broker = FakeMessageBroker()
    pipeline = _pipeline(store, broker)

    await _cancel_mid_store(pipeline, started)
    release.set()
    await pipeline.drain()

    assert list(store.objects) == [(TEST_BUCKET, EXPECTED_KEY)]
    assert len(broker.messages) == 1
    finished = [r for r in caplog.records if r.getMessage() == "Background submission finished"]
    assert len(finished) == 1
    assert finished[0].state == PipelineState.COMPLETE.value
    assert finished[0].object_key == EXPECTED_KEY


async def test_cancelled_caller_publish_failure_logs_reconciliation(caplog):
    caplog.set_level(logging.INFO, logger="exam_gateway.services.exam_pipeline")
    store, started, release = _slow_store()
    broker = FakeMessageBroker(fail_with=PublishError("broker down", "topic-ecg-dev"))
    pipeline = _pipeline(store, broker)

    await _cancel_mid_store(pipeline, started)
    release.set()
    await pipeline.drain()

    assert list(store.objects) == [(TEST_BUCKET, EXPECTED_KEY)]
    assert broker.messages == []
    finished = [r for r in caplog.records if r.getMessage() == "Background submission finished"]
    assert finished[0].state == PipelineState.PUBLISH_FAILED.value
    assert finished[0].object_key == EXPECTED_KEY
    assert finished[0].topic == "topic-ecg-dev"
    assert any("reconciliation required" in r.getMessage() for r in caplog.records)


async def test_background_bug_is_collected_and_logged(caplog):
    store, started, release = _slow_store()
    pipeline = _pipeline(store, FakeMessageBroker())

    async def broken_publish(notification):
        raise RuntimeError("boom")

    pipeline.publisher.publish = broken_publish
    await _cancel_mid_store(pipeline, started)
    release.set()
    await pipeline.drain()

    failed = [
        r for r in caplog.records
        if r.getMessage() == "Background submission failed; reconciliation required"
    ]
    assert len(failed) == 1
    assert failed[0].object_key == EXPECTED_KEY
    assert not pipeline._detached


async def test_missing_records_raise_value_error(pipeline):
    outcome = SubmissionOutcome(history=[PipelineState.TRANSFORMED])
    with pytest.raises(ValueError):
        await pipeline._run_sinks(outcome)
    with pytest.raises(ValueError):
        await pipeline._publish(outcome)
