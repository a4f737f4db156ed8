"""
Base handler and context classes for DroneFit event handlers.

Provides the common interface and shared context for all handlers.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, List
from abc import ABC, abstractmethod

from core.context import DiagnosisState, QuestionSet, UserEvent
from ui.state import QuizSession


@dataclass
class HandlerContext:
    """
    Context passed to all event handlers.

    Contains everything a handler needs to process an event:
    - The event itself
    - The quiz session (current state, question on screen)
    - The question set being asked

    This avoids passing several parameters to each handler.
    """
    event: UserEvent
    session: QuizSession
    question_set: QuestionSet
    debug_mode: bool = False

    # Debug output collector
    debug_lines: List[str] = field(default_factory=list)

    @property
    def state(self) -> DiagnosisState:
        return self.session.diagnosis

    def add_debug(self, message: str) -> None:
        """Add a debug message."""
        if self.debug_mode:
            self.debug_lines.append(message)


@dataclass
class HandlerResult:
    """
    Result returned by event handlers.

    Contains the state to store in the session:
    - The new diagnosis state
    - The question to show next (None when nothing is left to ask)
    - A validation message when the event was rejected
    """
    state: DiagnosisState
    current_question_id: Optional[str] = None
    validation_message: Optional[str] = None

    @classmethod
    def unchanged(cls, ctx: HandlerContext, validation_message: Optional[str] = None) -> "HandlerResult":
        """Keep the session as it is, optionally with a validation message."""
        return cls(
            state=ctx.state,
            current_question_id=ctx.session.current_question_id,
            validation_message=validation_message,
        )


class BaseHandler(ABC):
    """
    Base class for all event handlers.

    Each handler processes a specific event type and returns a HandlerResult.
    Handlers should be stateless - all state is in HandlerContext.
    """

    @abstractmethod
    def handle(self, ctx: HandlerContext) -> HandlerResult:
        """
        Process the event and return a result.

        Args:
            ctx: Handler context with the event, session and question set

        Returns:
            HandlerResult with the state to store
        """
        pass

    def _first_question_id(self, ctx: HandlerContext) -> Optional[str]:
        questions = ctx.question_set.questions
        return questions[0].id if questions else None

    def _summarize(self, ctx: HandlerContext, state: Any) -> None:
        ctx.add_debug(
            f"STATE: mode={state.mode.value} answers={len(state.answers)} "
            f"segments={state.detail_segments}"
        )
