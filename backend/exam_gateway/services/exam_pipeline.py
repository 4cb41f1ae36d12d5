"""Exam Pipeline — validate → transform → store → publish for one submission.

Invariants:
    - Publish happens only after store succeeds (no notification for a missing object)
    - Rejection happens before any backend call (RECEIVED → REJECTED_INVALID is side-effect free)
    - PUBLISH_FAILED is distinct from STORAGE_FAILED: the object exists, the event does not
    - No automatic retries; retry_storage / retry_publish resume from the recorded state
    - Store and publish are shielded from caller cancellation: a cancelled submission
      still stores, then publishes, and logs its final state (or a reconciliation line)
    - Nothing is shared between submissions beyond the injected writer/publisher and
      the set of detached in-flight tasks that drain() awaits

Design Decisions:
    - Clock injected at construction: transform stays pure, tests pin the timestamp
    - Only ExamGatewayError is turned into an outcome; anything else is a bug and propagates
"""

import asyncio
import logging
from datetime import datetime, timezone
from functools import partial
from typing import Callable

from exam_gateway.core.domain_types import (
    Environment,
    ExamType,
    ObjectKey,
    PipelineState,
)
from exam_gateway.core.errors import ErrorContext, ExamGatewayError, ExamValidationError
from exam_gateway.core.exam_payload import ExamPayload
from exam_gateway.core.submission_outcome import SubmissionOutcome
from exam_gateway.core.transform_exam import (
    DurableRecord,
    NotificationRecord,
    resolve_topic,
    transform_exam,
)
from exam_gateway.core.validate_exam import validate_exam
from exam_gateway.services.durable_writer import DurableWriter
from exam_gateway.services.notification_publisher import NotificationPublisher

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExamPipeline:
    """Runs submissions through the pipeline. Safe to share across concurrent requests."""

    def __init__(
        self,
        writer: DurableWriter,
        publisher: NotificationPublisher,
        environment: Environment = Environment.DEV,
        exam: ExamType = ExamType.ECG,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.writer = writer
        self.publisher = publisher
        self.environment = environment
        self.exam = exam
        self._clock = clock
        self._detached: set[asyncio.Future] = set()

    @property
    def notification_topic(self) -> str:
        return resolve_topic(self.exam, self.environment)

    async def submit(self, payload: ExamPayload) -> SubmissionOutcome:
        """Run one submission to a terminal state."""
        outcome = SubmissionOutcome()

        violations = validate_exam(payload)
        if violations:
            outcome.violations = violations
            outcome.error = ExamValidationError(
                violations, context=ErrorContext(exam_type=self.exam.display_name),
            )
            outcome.advance(PipelineState.REJECTED_INVALID)
            logger.warning(
                "Exam rejected",
                extra={
                    "state": outcome.state.value,
                    "exam_type": self.exam.display_name,
                    "violations": [f"{v.field}:{v.reason.value}" for v in violations],
                },
            )
            return outcome
        outcome.advance(PipelineState.VALIDATED)

        durable, notification = transform_exam(
            payload, self._clock(), self.environment, self.exam,
        )
        outcome.durable = durable
        outcome.notification = notification
        outcome.advance(PipelineState.TRANSFORMED)

        return await self._store_and_publish(outcome)

    async def retry_storage(
        self, durable: DurableRecord, notification: NotificationRecord,
    ) -> SubmissionOutcome:
        """Resume a STORAGE_FAILED submission from its transformed records."""
        outcome = SubmissionOutcome(
            history=[PipelineState.TRANSFORMED],
            durable=durable,
            notification=notification,
        )
        return await self._store_and_publish(outcome)

    async def retry_publish(
        self,
        notification: NotificationRecord,
        object_key: ObjectKey,
        durable: DurableRecord | None = None,
    ) -> SubmissionOutcome:
        """Re-publish for an object already written (PUBLISH_FAILED reconciliation)."""
        outcome = SubmissionOutcome(
            history=[PipelineState.STORED],
            durable=durable,
            notification=notification,
            object_key=object_key,
        )
        return await self._publish(outcome)

    async def drain(self) -> None:
        """Wait for submissions whose callers were cancelled mid-store."""
        if self._detached:
            await asyncio.gather(*self._detached, return_exceptions=True)

    async def _store_and_publish(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        task = asyncio.ensure_future(self._run_sinks(outcome))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            self._detach(task, outcome)
            raise

    def _detach(self, task: asyncio.Future, outcome: SubmissionOutcome) -> None:
        self._detached.add(task)
        task.add_done_callback(partial(self._finish_detached, outcome))
        logger.warning(
            "Caller cancelled; submission continues in background",
            extra={"state": outcome.state.value, **self._outcome_fields(outcome)},
        )

    def _finish_detached(self, outcome: SubmissionOutcome, task: asyncio.Future) -> None:
        self._detached.discard(task)
        fields = {"state": outcome.state.value, **self._outcome_fields(outcome)}
        if task.cancelled():
            logger.error(
                "Background submission cancelled; reconciliation required", extra=fields,
            )
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Background submission failed; reconciliation required",
                exc_info=error, extra=fields,
            )
            return
        logger.info("Background submission finished", extra=fields)

    @staticmethod
    def _outcome_fields(outcome: SubmissionOutcome) -> dict:
        return {
            "object_key": outcome.object_key,
            "topic": outcome.notification.topic if outcome.notification else None,
            "patient_id": outcome.durable.patient_id if outcome.durable else None,
        }

    async def _run_sinks(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        if outcome.durable is None:
            raise ValueError("submission has no durable record to store")
        try:
            outcome.object_key = await self.writer.write(outcome.durable)
        except ExamGatewayError as e:
            outcome.error = e
            outcome.advance(PipelineState.STORAGE_FAILED)
            logger.error(
                "Exam not stored; nothing published",
                extra={"state": outcome.state.value, **e.log_fields()},
            )
            return outcome
        outcome.advance(PipelineState.STORED)
        return await self._publish(outcome)

    async def _publish(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        if outcome.notification is None:
            raise ValueError("submission has no notification record to publish")
        try:
            outcome.message_id = await self.publisher.publish(outcome.notification)
        except ExamGatewayError as e:
            e.context.object_key = outcome.object_key
            outcome.error = e
            outcome.advance(PipelineState.PUBLISH_FAILED)
            logger.error(
                "Exam stored but notification not published; reconciliation required",
                extra={"state": outcome.state.value, **e.log_fields()},
            )
            return outcome
        outcome.advance(PipelineState.PUBLISHED)
        outcome.advance(PipelineState.COMPLETE)
        logger.info(
            "Exam processed",
            extra={
                "state": outcome.state.value,
                "object_key": outcome.object_key,
                "message_id": outcome.message_id,
                "topic": outcome.notification.topic,
            },
        )
        return outcome
