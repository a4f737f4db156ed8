"""
Tests for the event orchestrator and handlers, run against the bundled data.

Run with: pytest tests/test_orchestrator.py -v
"""

import logging
import pytest

from catalog_loader import load_all
from config import messages
from config.settings import get_data_dir
from core import orchestrator as orchestrator_module
from core.context import DiagnosisMode, EventType, UserEvent
from core.orchestrator import QuizComponents, QuizOrchestrator, process_event
from handlers.base import BaseHandler
from ui.state import QuizSession


@pytest.fixture(scope="module")
def data():
    return load_all(get_data_dir())


@pytest.fixture
def orchestrator(data):
    components = QuizComponents(
        question_set=data["dynamic"],
        catalog=data["catalog"],
        templates=data["templates"],
    )
    return QuizOrchestrator(components, debug_mode=True)


@pytest.fixture
def session():
    return QuizSession(session_id="test-session")


def answer(orchestrator, session, *pairs):
    view = None
    for question_id, option_key in pairs:
        view = orchestrator.select(session, question_id, option_key)
    return view


class TestStart:
    """Test the first render of a session."""

    def test_first_question(self, orchestrator, session):
        """Test that a new session shows the mode-determining question."""
        view = orchestrator.start(session)

        assert view.question.id == "usage_scope"
        assert view.complete is False
        assert view.mode == DiagnosisMode.UNDETERMINED
        assert view.summary.primary is None
        assert view.template is None
        assert view.has_answers is False
        assert view.progress.answered == 0

    def test_start_keeps_current_question(self, orchestrator, session):
        """Test that rendering again does not move the question on screen."""
        answer(orchestrator, session, ("usage_scope", "personal"))

        assert orchestrator.start(session).question.id == "hobby_style"


class TestSelectOption:
    """Test answering questions."""

    def test_answer_moves_to_next_question(self, orchestrator, session):
        """Test that answering switches mode and shows the unlocked detail question."""
        orchestrator.start(session)
        view = orchestrator.select(session, "usage_scope", "personal")

        assert view.mode == DiagnosisMode.LIGHT
        assert view.question.id == "hobby_style"
        assert view.has_answers is True
        assert view.primary_category == "hobby"
        assert view.template is not None
        assert view.selection.primary is None

    def test_light_flow_result(self, orchestrator, session):
        """Test the light flow: three answers to a micro drone within budget."""
        view = answer(
            orchestrator, session,
            ("usage_scope", "personal"),
            ("hobby_style", "travel"),
            ("light_budget", "under_50k"),
        )

        assert view.complete is True
        assert view.question is None
        assert view.primary_category == "hobby"
        assert view.selection.primary.id == "tello"
        assert [p.id for p in view.selection.alternatives] == ["micro-whoop", "neo", "mini-4-pro", "air-3"]
        assert view.selection.note is None
        assert view.result_summary == ["A small, foldable aircraft that is easy to travel with."]
        assert view.progress.answered == 3
        assert view.progress.total == 3

    def test_unknown_option_rejected(self, orchestrator, session):
        """Test that an unknown option keeps the state and explains why."""
        orchestrator.start(session)
        view = orchestrator.select(session, "usage_scope", "spaceflight")

        assert view.validation_message == messages.VALIDATION_UNKNOWN_OPTION
        assert view.question.id == "usage_scope"
        assert session.diagnosis.answers == {}

    def test_answer_from_other_branch_rejected(self, orchestrator, session):
        """Test that a pro-only question cannot be answered in the light flow."""
        answer(orchestrator, session, ("usage_scope", "personal"))
        view = orchestrator.select(session, "pro_budget", "under_500k")

        assert view.validation_message == messages.VALIDATION_UNKNOWN_OPTION
        assert session.diagnosis.answers == {"usage_scope": "personal"}
        assert session.diagnosis.constraints.max_price is None
        assert view.question.id == "hobby_style"

    def test_flow_not_finished_by_skipping_questions(self, orchestrator, session):
        """Test that the flow only completes once every active question is answered."""
        view = answer(
            orchestrator, session,
            ("usage_scope", "personal"),
            ("pro_budget", "under_500k"),
            ("light_budget", "flexible"),
        )

        assert view.complete is False
        assert view.question.id == "hobby_style"
        assert "hobby_style" not in session.diagnosis.answers

    def test_missing_option_rejected(self, orchestrator, session):
        """Test that a select event without an option asks for one."""
        orchestrator.start(session)
        view = orchestrator.process(UserEvent(EventType.SELECT_OPTION, "usage_scope"), session)

        assert view.validation_message == messages.VALIDATION_SELECT_OPTION

    def test_validation_cleared_by_next_event(self, orchestrator, session):
        """Test that a validation message only lasts one event."""
        orchestrator.start(session)
        orchestrator.select(session, "usage_scope", "spaceflight")
        view = orchestrator.select(session, "usage_scope", "personal")

        assert view.validation_message is None

    def test_reanswer_switches_branch(self, orchestrator, session):
        """Test that changing the first answer drops the light branch."""
        answer(orchestrator, session, ("usage_scope", "personal"), ("hobby_style", "travel"))
        view = orchestrator.select(session, "usage_scope", "business")

        assert view.mode == DiagnosisMode.PRO
        assert session.diagnosis.answers == {"usage_scope": "business"}
        assert session.diagnosis.constraints.preferred_weight is None
        assert view.question.id == "industry"

    def test_force_complete(self, orchestrator, session):
        """Test that a consult answer ends the flow early."""
        view = answer(orchestrator, session, ("usage_scope", "business"), ("operations", "consult"))

        assert view.complete is True
        assert view.question is None
        assert "We recommend talking to a specialist before deciding." in view.result_summary

    def test_preferred_model_pinned(self, orchestrator, session):
        """Test that a pinned model is reported and leads the result."""
        view = answer(
            orchestrator, session,
            ("usage_scope", "personal"),
            ("hobby_style", "fpv"),
            ("light_budget", "flexible"),
        )

        assert [model.id for model in view.preferred_models] == ["micro-whoop"]
        assert view.selection.primary.id == "micro-whoop"


class TestAdvance:
    """Test the next button."""

    def test_unanswered_question_blocks(self, orchestrator, session):
        """Test that moving on without an answer is rejected."""
        orchestrator.start(session)
        view = orchestrator.advance(session)

        assert view.validation_message == messages.VALIDATION_SELECT_OPTION
        assert view.question.id == "usage_scope"

    def test_answered_question_moves_on(self, orchestrator, session):
        """Test that advance after going back to an answered question moves forward."""
        answer(orchestrator, session, ("usage_scope", "personal"))
        session.current_question_id = "usage_scope"
        view = orchestrator.advance(session)

        assert view.validation_message is None
        assert view.question.id == "hobby_style"


class TestNavigation:
    """Test going back and starting over."""

    def test_go_back(self, orchestrator, session):
        """Test that back drops the latest answer and shows that question again."""
        answer(orchestrator, session, ("usage_scope", "personal"), ("hobby_style", "travel"))
        view = orchestrator.go_back(session)

        assert view.question.id == "hobby_style"
        assert view.selected_option_key is None
        assert session.diagnosis.answers == {"usage_scope": "personal"}
        assert session.diagnosis.constraints.preferred_weight is None

    def test_go_back_without_answers(self, orchestrator, session):
        """Test that back on a fresh session changes nothing."""
        orchestrator.start(session)
        view = orchestrator.go_back(session)

        assert view.question.id == "usage_scope"
        assert view.validation_message is None
        assert view.error_message is None

    def test_go_back_from_result(self, orchestrator, session):
        """Test that back from the result page reopens the last question."""
        answer(
            orchestrator, session,
            ("usage_scope", "personal"),
            ("hobby_style", "travel"),
            ("light_budget", "under_50k"),
        )
        view = orchestrator.go_back(session)

        assert view.complete is False
        assert view.question.id == "light_budget"
        assert session.diagnosis.constraints.max_price is None

    def test_reset(self, orchestrator, session):
        """Test that start over clears answers and shows the first question."""
        answer(orchestrator, session, ("usage_scope", "personal"), ("hobby_style", "travel"))
        view = orchestrator.reset(session)

        assert view.question.id == "usage_scope"
        assert view.mode == DiagnosisMode.UNDETERMINED
        assert session.diagnosis.answers == {}

    def test_reset_keeps_weight_preference(self, orchestrator):
        """Test that a weight preference chosen before the quiz survives reset."""
        session = QuizSession(preferred_weight="over100")
        answer(orchestrator, session, ("usage_scope", "personal"))
        orchestrator.reset(session)

        assert session.diagnosis.constraints.preferred_weight == "over100"


class FailingHandler(BaseHandler):
    def handle(self, ctx):
        raise RuntimeError("Intentional failure")


class TestErrorHandling:
    """Test that handler failures keep the previous state."""

    def test_handler_exception(self, orchestrator, session, monkeypatch):
        """Test that a failing handler surfaces a generic error and keeps state."""
        answer(orchestrator, session, ("usage_scope", "personal"))
        before = session.diagnosis

        monkeypatch.setitem(orchestrator_module.HANDLERS, EventType.ADVANCE, FailingHandler())
        view = orchestrator.advance(session)

        assert view.error_message == messages.ERROR_GENERIC
        assert session.diagnosis == before
        assert view.question.id == "hobby_style"

    def test_process_event_function(self, data, session):
        """Test the module-level entry point."""
        components = QuizComponents(question_set=data["quick"], catalog=data["catalog"])
        view = process_event(UserEvent(EventType.RESET), session, components)

        assert view.question.id == "quick_purpose"
        assert view.template is None


class TestDebugOutput:
    """Test the debug trace carried on the view."""

    def test_debug_lines_collected(self, orchestrator, session):
        """Test that debug mode traces the event, the handler and the next question."""
        orchestrator.start(session)
        view = orchestrator.select(session, "usage_scope", "personal")

        assert view.debug_lines[0] == "EVENT: select_option question=usage_scope option=personal"
        assert any(line.startswith("STATE: mode=light") for line in view.debug_lines)
        assert view.debug_lines[-1] == "NEXT: hobby_style complete=False"

    def test_rejected_answer_traced(self, orchestrator, session):
        """Test that a rejected answer shows up in the trace."""
        orchestrator.start(session)
        view = orchestrator.select(session, "usage_scope", "spaceflight")

        assert "REJECTED: usage_scope=spaceflight" in view.debug_lines

    def test_handler_error_traced(self, orchestrator, session, monkeypatch):
        """Test that a handler failure is added to the trace."""
        monkeypatch.setitem(orchestrator_module.HANDLERS, EventType.ADVANCE, FailingHandler())
        view = orchestrator.advance(session)

        assert "ERROR: RuntimeError: Intentional failure" in view.debug_lines

    def test_no_debug_lines_by_default(self, data, session):
        """Test that nothing is collected outside debug mode."""
        components = QuizComponents(question_set=data["dynamic"], catalog=data["catalog"])
        view = QuizOrchestrator(components).select(session, "usage_scope", "personal")

        assert view.debug_lines == []


class TestEventLogging:
    """Test the per-event log record."""

    def test_view_rendered_timing(self, orchestrator, session, caplog):
        """Test that the handler time and session duration are logged."""
        with caplog.at_level(logging.INFO, logger="dronefit"):
            orchestrator.select(session, "usage_scope", "personal")

        record = [r for r in caplog.records if getattr(r, "event", None) == "view_rendered"][-1]
        assert record.handler_ms >= 0
        assert record.session_duration_s >= 0
        assert record.next_question_id == "hobby_style"

    def test_reset_goes_through_session(self, orchestrator, session):
        """Test that start over clears the validation message and keeps the session ID."""
        orchestrator.select(session, "usage_scope", "spaceflight")
        orchestrator.reset(session)

        assert session.session_id == "test-session"
        assert session.validation_message is None
        assert session.current_question_id == "usage_scope"


class TestGallery:
    """Test the models shown beside a question."""

    def test_question_pool(self, orchestrator, session):
        """Test that a question with a model pool shows it."""
        view = answer(orchestrator, session, ("usage_scope", "personal"))

        assert view.question.id == "hobby_style"
        assert [m.id for m in view.gallery_models] == ["mini-4-pro", "neo", "tello", "micro-whoop", "air-3"]

    def test_no_pool_falls_back_to_pinned_models(self, orchestrator, session):
        """Test that questions without a pool show the pinned models."""
        view = answer(orchestrator, session, ("usage_scope", "personal"), ("hobby_style", "fpv"))

        assert view.question.id == "light_budget"
        assert [m.id for m in view.gallery_models] == ["micro-whoop"]

    def test_no_gallery_on_result(self, orchestrator, session):
        """Test that the result page has no gallery."""
        view = answer(
            orchestrator, session,
            ("usage_scope", "personal"),
            ("hobby_style", "travel"),
            ("light_budget", "under_50k"),
        )

        assert view.gallery_models == []
