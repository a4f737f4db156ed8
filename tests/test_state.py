"""
Tests for session state management module.

Run with: pytest tests/test_state.py -v
"""

import pytest
from datetime import datetime
from types import SimpleNamespace

from ui.state import (
    QuizSession,
    diagnosis_to_dict,
    diagnosis_from_dict,
    save_session_to_streamlit,
    load_session_from_streamlit,
)
from core.context import ConstraintState, DiagnosisMode, DiagnosisState


@pytest.fixture
def session():
    """Create a fresh QuizSession instance."""
    return QuizSession()


@pytest.fixture
def answered_state():
    """Diagnosis state partway through the light flow."""
    return DiagnosisState(
        mode=DiagnosisMode.LIGHT,
        constraints=ConstraintState(max_price=50000, preferred_weight="under100", required_sensors=["thermal"]),
        answers={"usage_scope": "personal", "hobby_style": "travel"},
        question_order=["usage_scope", "hobby_style"],
        detail_segments=["detail_hobby"],
        preferred_models=["tello"],
        result_summary=["Easy to travel with."],
    )


class TestQuizSession:
    """Test QuizSession class."""

    def test_creation(self, session):
        """Test creating QuizSession."""
        assert session.session_id.startswith("session_")
        assert isinstance(session.created_at, datetime)
        assert session.diagnosis == DiagnosisState()
        assert session.current_question_id is None
        assert session.validation_message is None

    def test_custom_session_id(self):
        """Test creating QuizSession with custom ID."""
        assert QuizSession(session_id="test_123").session_id == "test_123"

    def test_weight_preference_in_base_state(self):
        """Test that a pre-quiz weight preference lands in the constraints."""
        session = QuizSession(preferred_weight="under100")
        assert session.diagnosis.constraints.preferred_weight == "under100"

    def test_update(self, session, answered_state):
        """Test replacing the state after an event."""
        session.update(answered_state, "light_budget", "Pick one")

        assert session.diagnosis is answered_state
        assert session.current_question_id == "light_budget"
        assert session.validation_message == "Pick one"
        assert session.updated_at >= session.created_at

    def test_reset(self, answered_state):
        """Test that reset keeps the ID and weight preference."""
        session = QuizSession(session_id="keep", preferred_weight="over100")
        session.update(answered_state, "light_budget")
        session.reset()

        assert session.session_id == "keep"
        assert session.diagnosis == DiagnosisState(constraints=ConstraintState(preferred_weight="over100"))
        assert session.current_question_id is None

    def test_reset_with_new_preference(self, session):
        """Test that reset can change the weight preference."""
        session.reset(preferred_weight="under100")

        assert session.preferred_weight == "under100"
        assert session.diagnosis.constraints.preferred_weight == "under100"

    def test_session_duration(self, session):
        """Test duration is non-negative."""
        assert session.get_session_duration() >= 0


class TestSerialization:
    """Test plain-dict conversion for Streamlit storage."""

    def test_diagnosis_round_trip(self, answered_state):
        """Test that a diagnosis state survives to_dict/from_dict."""
        assert diagnosis_from_dict(diagnosis_to_dict(answered_state)) == answered_state

    def test_mode_stored_as_string(self, answered_state):
        """Test that the Enum is stored by value."""
        assert diagnosis_to_dict(answered_state)["mode"] == "light"

    def test_from_empty_dict(self):
        """Test that missing keys fall back to defaults."""
        assert diagnosis_from_dict({}) == DiagnosisState()

    def test_session_round_trip(self, answered_state):
        """Test that a whole session survives to_dict/from_dict."""
        session = QuizSession(session_id="abc", preferred_weight="under100")
        session.update(answered_state, "light_budget")

        restored = QuizSession.from_dict(session.to_dict())

        assert restored.session_id == "abc"
        assert restored.preferred_weight == "under100"
        assert restored.current_question_id == "light_budget"
        assert restored.diagnosis == answered_state
        assert restored.created_at == session.created_at


class TestStreamlitPersistence:
    """Test saving to and loading from a session-state object."""

    def test_save_and_load(self, answered_state):
        """Test that a saved session is restored."""
        st_state = SimpleNamespace()
        session = QuizSession(session_id="persisted")
        session.update(answered_state, "light_budget")

        save_session_to_streamlit(session, st_state)
        loaded = load_session_from_streamlit(st_state)

        assert isinstance(st_state.quiz_session_data, dict)
        assert loaded.session_id == "persisted"
        assert loaded.diagnosis == answered_state

    def test_load_without_saved_session(self):
        """Test that a new session is created when nothing is stored."""
        loaded = load_session_from_streamlit(SimpleNamespace(), preferred_weight="over100")

        assert loaded.preferred_weight == "over100"
        assert loaded.diagnosis.answers == {}

    def test_load_cleared_session(self):
        """Test that a cleared slot starts a new session."""
        loaded = load_session_from_streamlit(SimpleNamespace(quiz_session_data=None))
        assert loaded.current_question_id is None
