"""Exam Gateway API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ExamGatewayError → structured JSON responses
    - Missing deployment settings abort startup, not individual requests
    - Client handles built once in the lifespan and injected into the pipeline
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from exam_gateway.api.error_handlers import register_error_handlers
from exam_gateway.api.routes import ecg_exam, health
from exam_gateway.config import Settings, get_settings, validate_deployment
from exam_gateway.infrastructure.message_broker import (
    KafkaMessageBroker,
    create_kafka_producer,
)
from exam_gateway.infrastructure.object_store import S3ObjectStore, create_s3_client
from exam_gateway.infrastructure.observability import setup_logging
from exam_gateway.services.durable_writer import DurableWriter
from exam_gateway.services.exam_pipeline import ExamPipeline
from exam_gateway.services.notification_publisher import NotificationPublisher

logger = logging.getLogger(__name__)


def build_pipeline(
    settings: Settings, store: S3ObjectStore, broker: KafkaMessageBroker,
) -> ExamPipeline:
    writer = DurableWriter(
        store, settings.bucket_name,
        unique_suffix=settings.object_key_unique_suffix,
    )
    return ExamPipeline(
        writer, NotificationPublisher(broker),
        environment=settings.deployment_environment,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    validate_deployment(settings)

    store = S3ObjectStore(create_s3_client(settings))
    broker = KafkaMessageBroker(create_kafka_producer(settings))
    await broker.start()

    app.state.object_store = store
    app.state.message_broker = broker
    app.state.pipeline = build_pipeline(settings, store, broker)
    logger.info(
        f"Exam gateway started on {settings.host}:{settings.port}",
        extra={"topic": app.state.pipeline.notification_topic},
    )
    yield
    logger.info("Exam gateway shutting down")
    await app.state.pipeline.drain()
    await broker.stop()


app = FastAPI(title="Exam Gateway API", version="1.0.0", lifespan=lifespan)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(ecg_exam.router)
