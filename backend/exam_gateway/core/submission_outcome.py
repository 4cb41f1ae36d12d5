"""Submission Outcome — the single result handed back to the boundary layer.

Invariants:
    - kind is derived from the terminal state; it is never set independently
    - history lists every state visited, starting at RECEIVED (or the resume point)
    - ACCEPTED outcomes always carry object_key and message_id
    - Failed outcomes after TRANSFORMED keep both records for reconciliation
"""

from dataclasses import dataclass, field

from exam_gateway.core.domain_types import (
    MessageId,
    ObjectKey,
    OutcomeKind,
    PipelineState,
)
from exam_gateway.core.errors import ExamGatewayError
from exam_gateway.core.transform_exam import DurableRecord, NotificationRecord
from exam_gateway.core.validate_exam import Violation


TERMINAL_OUTCOMES: dict[PipelineState, OutcomeKind] = {
    PipelineState.COMPLETE: OutcomeKind.ACCEPTED,
    PipelineState.REJECTED_INVALID: OutcomeKind.REJECTED_INVALID,
    PipelineState.STORAGE_FAILED: OutcomeKind.STORAGE_FAILED,
    PipelineState.PUBLISH_FAILED: OutcomeKind.PUBLISH_FAILED,
}


@dataclass
class SubmissionOutcome:
    """Result of running one submission through the pipeline."""
    history: list[PipelineState] = field(
        default_factory=lambda: [PipelineState.RECEIVED],
    )
    violations: list[Violation] = field(default_factory=list)
    error: ExamGatewayError | None = None
    durable: DurableRecord | None = None
    notification: NotificationRecord | None = None
    object_key: ObjectKey | None = None
    message_id: MessageId | None = None

    @property
    def state(self) -> PipelineState:
        return self.history[-1]

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_OUTCOMES

    @property
    def kind(self) -> OutcomeKind:
        if not self.is_terminal:
            raise ValueError(f"Outcome not terminal: {self.state.value}")
        return TERMINAL_OUTCOMES[self.state]

    @property
    def accepted(self) -> bool:
        return self.state == PipelineState.COMPLETE

    def advance(self, state: PipelineState) -> None:
        if self.is_terminal:
            raise ValueError(
                f"Cannot leave terminal state {self.state.value} for {state.value}",
            )
        self.history.append(state)
