"""Boundary Protocols — contracts between the pipeline and its storage/messaging backends.

Invariants:
    - Services depend on these Protocols, never on boto3 or aiokafka directly
    - Implementations raise StorageError / PublishError, never raw SDK exceptions
    - Implementations are safe for concurrent use by in-flight submissions

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async methods: implementations do network IO
"""

from typing import Protocol

from exam_gateway.core.domain_types import MessageId


class ObjectStore(Protocol):
    """Contract for atomic object persistence — implemented by infrastructure."""
    async def put_object(
        self, bucket: str, key: str, data: bytes, content_type: str = ...,
    ) -> None: ...
    async def get_object(self, bucket: str, key: str) -> bytes: ...
    async def health_check(self, bucket: str) -> bool: ...


class MessageBroker(Protocol):
    """Contract for at-least-once topic publishing — implemented by infrastructure."""
    async def topic_exists(self, topic: str) -> bool: ...
    async def publish(self, topic: str, data: bytes) -> MessageId: ...
    async def health_check(self) -> bool: ...
