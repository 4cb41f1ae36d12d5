"""Kafka Message Broker — aiokafka adapter behind the MessageBroker protocol.

Invariants:
    - Messages are sent without a key: no per-patient ordering
    - publish() returns only after the broker acknowledges (acks="all")
    - KafkaError mapped to PublishError with the topic attached, including failed
      topic lookups (only an unknown topic reads as "does not exist")
    - One producer per process, started and stopped by the app lifespan
"""

import logging

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError, UnknownTopicOrPartitionError

from exam_gateway.config import Settings
from exam_gateway.core.domain_types import MessageId
from exam_gateway.core.errors import ErrorContext, PublishError

logger = logging.getLogger(__name__)


def create_kafka_producer(settings: Settings) -> AIOKafkaProducer:
    """Build (but do not start) the shared producer."""
    return AIOKafkaProducer(
        bootstrap_servers=settings.kafka_bootstrap_servers,
        client_id=settings.kafka_client_id,
        request_timeout_ms=settings.kafka_request_timeout_ms,
        acks="all",
    )


class KafkaMessageBroker:
    """Publishes notification bodies to Kafka topics."""

    def __init__(self, producer: AIOKafkaProducer):
        self.producer = producer
        self._started = False

    async def start(self) -> None:
        await self.producer.start()
        self._started = True
        logger.info("Kafka producer started")

    async def stop(self) -> None:
        if self._started:
            await self.producer.stop()
            self._started = False
            logger.info("Kafka producer stopped")

    async def topic_exists(self, topic: str) -> bool:
        """True if the cluster reports at least one partition for topic.

        An unknown topic is False; any other KafkaError (timeouts, unreachable
        brokers) raises PublishError with the cause attached.
        """
        try:
            partitions = await self.producer.partitions_for(topic)
        except UnknownTopicOrPartitionError:
            return False
        except KafkaError as e:
            raise PublishError(
                f"topic lookup failed: {str(e) or type(e).__name__}", topic,
                cause=e, context=ErrorContext(topic=topic),
            ) from e
        return bool(partitions)

    async def publish(self, topic: str, data: bytes) -> MessageId:
        try:
            metadata = await self.producer.send_and_wait(topic, value=data)
        except KafkaError as e:
            raise PublishError(
                str(e) or type(e).__name__, topic,
                cause=e, context=ErrorContext(topic=topic),
            ) from e
        return MessageId(f"{metadata.topic}:{metadata.partition}:{metadata.offset}")

    async def health_check(self) -> bool:
        """Check broker connectivity (for readiness probes)."""
        if not self._started:
            return False
        try:
            return bool(self.producer.client.cluster.brokers())
        except Exception as e:
            logger.error(f"Kafka health check failed: {e}")
            return False
