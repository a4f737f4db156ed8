"""
Event orchestrator for DroneFit.

Coordinates the flow: user event → handler routing → session update →
render model. On completion the winning category is mapped onto
recommended products.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from config import messages
from core.candidates import resolve_models, resolve_question_pool, select_candidates
from core.context import (
    CandidateSelection,
    Catalog,
    DiagnosisMode,
    DiagnosisSummary,
    EventType,
    Product,
    Progress,
    Question,
    QuestionSet,
    ResultTemplate,
    ResultTemplateSet,
    UserEvent,
)
from core.diagnosis import (
    build_active_questions,
    find_next_question_id,
    find_question_by_id,
    get_progress,
    is_diagnosis_complete,
)
from core.scoring import evaluate_question_set
from core.structured_logging import LogContext, Timer, log_error
from ui.state import QuizSession

from handlers.base import HandlerContext, HandlerResult
from handlers.answer import SelectOptionHandler, AdvanceHandler
from handlers.navigation import GoBackHandler, ResetHandler


@dataclass
class QuizComponents:
    """
    Read-only data needed by the orchestrator.

    These are typically loaded once by the app (see catalog_loader.load_all)
    and shared by all sessions.
    """
    question_set: QuestionSet
    catalog: Catalog
    templates: Optional[ResultTemplateSet] = None
    closeness_threshold: Optional[float] = None


@dataclass
class DiagnosisView:
    """
    Render model for the presentation layer.

    Attributes:
        question: Question to show (None when complete)
        selected_option_key: Recorded answer for the shown question, if any
        progress: Answered vs. active question counters
        complete: Whether results can be shown
        mode: Current flow mode
        validation_message: Why the last event was rejected
        error_message: Generic message when handling the event failed
        summary: Scoring result for the current answers
        selection: Recommended products (only when complete)
        template: Result page copy for the winning category
        result_summary: Highlights collected from answers (only when complete)
        preferred_models: Products pinned by answers
        gallery_models: Models to show beside the question (its pool, else the pinned models)
        has_answers: Whether anything has been answered yet
        debug_lines: Handler trace for the last event (debug mode only)
    """
    question: Optional[Question]
    progress: Progress
    complete: bool
    mode: DiagnosisMode
    summary: DiagnosisSummary
    selected_option_key: Optional[str] = None
    validation_message: Optional[str] = None
    error_message: Optional[str] = None
    selection: CandidateSelection = field(default_factory=CandidateSelection)
    template: Optional[ResultTemplate] = None
    result_summary: List[str] = field(default_factory=list)
    preferred_models: List[Product] = field(default_factory=list)
    gallery_models: List[Product] = field(default_factory=list)
    has_answers: bool = False
    debug_lines: List[str] = field(default_factory=list)

    @property
    def primary_category(self) -> Optional[str]:
        return self.summary.primary.category if self.summary.primary else None


# Handler registry - maps event types to handlers
HANDLERS = {
    EventType.SELECT_OPTION: SelectOptionHandler(),
    EventType.ADVANCE: AdvanceHandler(),
    EventType.GO_BACK: GoBackHandler(),
    EventType.RESET: ResetHandler(),
}


def build_view(
    session: QuizSession,
    components: QuizComponents,
    error_message: Optional[str] = None,
) -> DiagnosisView:
    """
    Build the render model for a session.

    Args:
        session: Quiz session to render
        components: Loaded question set, catalog and templates
        error_message: Generic error to surface, if handling failed

    Returns:
        DiagnosisView
    """
    state = session.diagnosis
    question_set = components.question_set
    catalog = components.catalog

    active = build_active_questions(question_set, state)
    complete = is_diagnosis_complete(state, active)

    summary = evaluate_question_set(
        question_set,
        state.answers,
        closeness_threshold=components.closeness_threshold,
        categories=catalog.category_keys or None,
        priority=catalog.priority,
    )

    question = None if complete else find_question_by_id(question_set, session.current_question_id)

    view = DiagnosisView(
        question=question,
        selected_option_key=state.answers.get(question.id) if question else None,
        progress=get_progress(question_set, state),
        complete=complete,
        mode=state.mode,
        summary=summary,
        validation_message=session.validation_message,
        error_message=error_message,
        preferred_models=resolve_models(catalog, state.preferred_models),
        has_answers=state.has_answers(),
    )

    if question is not None:
        view.gallery_models = resolve_question_pool(catalog, question.id) or view.preferred_models

    if summary.primary is not None:
        if components.templates is not None:
            view.template = components.templates.get_template(summary.primary.category)
        if complete:
            view.selection = select_candidates(
                catalog, summary.primary.category, state, session_id=session.session_id
            )

    if complete:
        view.result_summary = [item for item in state.result_summary if item]

    return view


def process_event(
    event: UserEvent,
    session: QuizSession,
    components: QuizComponents,
    debug_mode: bool = False,
) -> DiagnosisView:
    """
    Process a user event and return the updated render model.

    This is the main entry point:
    1. SELECT_OPTION → record the answer, move to the next question
    2. ADVANCE → move on if the shown question is answered
    3. GO_BACK → drop the latest answer
    4. RESET → start over

    Handler failures leave the session unchanged and surface a generic
    error message.

    Args:
        event: User event
        session: Quiz session (updated in place)
        components: Loaded question set, catalog and templates
        debug_mode: Whether to collect debug lines

    Returns:
        DiagnosisView for the updated session
    """
    with LogContext(session_id=session.session_id) as log_ctx:
        log_ctx.log_event(
            event.type.value,
            question_id=event.question_id,
            option_key=event.option_key,
        )

        debug_lines = []
        if debug_mode:
            debug_lines.append(f"EVENT: {event.type.value} question={event.question_id} option={event.option_key}")

        handler = HANDLERS.get(event.type)
        handler_ctx = HandlerContext(
            event=event,
            session=session,
            question_set=components.question_set,
            debug_mode=debug_mode,
            debug_lines=debug_lines,
        )

        error_message = None
        timer = Timer()
        try:
            with timer:
                result = handler.handle(handler_ctx)
        except Exception as e:
            # Log error and keep the previous state
            log_error(session.session_id, e, context=f"handling {event.type.value}")
            result = HandlerResult.unchanged(handler_ctx)
            error_message = messages.ERROR_GENERIC
            if debug_mode:
                debug_lines.append(f"ERROR: {type(e).__name__}: {str(e)}")

        session.update(result.state, result.current_question_id, result.validation_message)

        view = build_view(session, components, error_message=error_message)
        if debug_mode:
            debug_lines.append(f"NEXT: {view.question.id if view.question else None} complete={view.complete}")
        # Shared with handler_ctx, so handler lines are included
        view.debug_lines = debug_lines
        log_ctx.log_response(
            answered_count=view.progress.answered,
            active_count=view.progress.total,
            complete=view.complete,
            mode=view.mode.value,
            next_question_id=view.question.id if view.question else None,
            category=view.primary_category,
            handler_ms=round(timer.elapsed_ms, 2),
            session_duration_s=round(session.get_session_duration(), 1),
        )

    return view


def start_session(session: QuizSession, components: QuizComponents) -> DiagnosisView:
    """
    Render a session, showing the first eligible question if none is shown yet.
    """
    if session.current_question_id is None:
        session.current_question_id = find_next_question_id(components.question_set, session.diagnosis)
    return build_view(session, components)


class QuizOrchestrator:
    """
    Class-based orchestrator for dependency injection.

    Use this when you need to customize components or for testing.
    """

    def __init__(self, components: QuizComponents, debug_mode: bool = False):
        self.components = components
        self.debug_mode = debug_mode

    def start(self, session: QuizSession) -> DiagnosisView:
        return start_session(session, self.components)

    def process(self, event: UserEvent, session: QuizSession) -> DiagnosisView:
        """
        Process an event using this orchestrator's components.

        Args:
            event: User event
            session: Quiz session

        Returns:
            DiagnosisView
        """
        return process_event(event, session, self.components, debug_mode=self.debug_mode)

    def select(self, session: QuizSession, question_id: str, option_key: str) -> DiagnosisView:
        return self.process(UserEvent(EventType.SELECT_OPTION, question_id, option_key), session)

    def advance(self, session: QuizSession) -> DiagnosisView:
        return self.process(UserEvent(EventType.ADVANCE), session)

    def go_back(self, session: QuizSession) -> DiagnosisView:
        return self.process(UserEvent(EventType.GO_BACK), session)

    def reset(self, session: QuizSession) -> DiagnosisView:
        return self.process(UserEvent(EventType.RESET), session)
