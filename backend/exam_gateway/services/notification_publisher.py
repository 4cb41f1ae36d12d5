"""Notification Publisher — emits a NotificationRecord as one compact JSON message.

Invariants:
    - The topic is resolved before anything is sent; an unknown topic is a PublishError
    - Body is exactly NotificationRecord.to_dict(): no samples, no hospital key
    - One record → one message, no ordering key, no retries here
"""

import json
import logging

from exam_gateway.core.domain_types import MessageId
from exam_gateway.core.errors import (
    EncodingError,
    ErrorContext,
    ExamGatewayError,
    PublishError,
)
from exam_gateway.core.sink_protocols import MessageBroker
from exam_gateway.core.transform_exam import NotificationRecord

logger = logging.getLogger(__name__)


def _context(record: NotificationRecord) -> ErrorContext:
    return ErrorContext(
        exam_type=record.exam_type,
        patient_id=record.patient_id,
        hospital_id=record.hospital_id,
        topic=record.topic,
    )


def encode_notification(record: NotificationRecord) -> bytes:
    """Compact UTF-8 JSON body."""
    try:
        return json.dumps(
            record.to_dict(), separators=(",", ":"), ensure_ascii=False,
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(str(e), "notification", context=_context(record)) from e


class NotificationPublisher:
    """Publishes notification records through an injected MessageBroker."""

    def __init__(self, broker: MessageBroker):
        self.broker = broker

    async def publish(self, record: NotificationRecord) -> MessageId:
        body = encode_notification(record)
        try:
            if not await self.broker.topic_exists(record.topic):
                raise PublishError("topic not found", record.topic)
            message_id = await self.broker.publish(record.topic, body)
        except ExamGatewayError as e:
            e.context = _context(record)
            logger.error(f"Publish failed: {e.message}", extra=e.log_fields())
            raise

        logger.info(
            "Notification published",
            extra={
                "topic": record.topic,
                "message_id": message_id,
                "patient_id": record.patient_id,
                "hospital_id": record.hospital_id,
            },
        )
        return message_id
