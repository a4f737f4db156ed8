"""
Session state management for DroneFit.

Holds one user's quiz session (diagnosis state, the question on screen,
the weight preference chosen before the quiz) and persists it in
Streamlit's session state across reruns.
"""

from typing import Dict, Optional, Any
from datetime import datetime

from core.context import ConstraintState, DiagnosisMode, DiagnosisState
from core.diagnosis import create_base_state


class QuizSession:
    """
    Manages session state for one quiz run.

    Tracks:
    - The current DiagnosisState (replaced, never mutated, on each event)
    - The question currently on screen
    - The weight preference chosen before the quiz
    - The last validation message

    Example:
        session = QuizSession(preferred_weight="under100")
        session.diagnosis.mode
        # DiagnosisMode.UNDETERMINED
    """

    def __init__(self, session_id: Optional[str] = None, preferred_weight: Optional[str] = None):
        """
        Initialize session state.

        Args:
            session_id: Optional session identifier
            preferred_weight: "under100", "over100" or None
        """
        self.session_id = session_id or self._generate_session_id()
        self.created_at = datetime.now()
        self.updated_at = datetime.now()

        self.preferred_weight = preferred_weight
        self.diagnosis: DiagnosisState = create_base_state(preferred_weight)
        self.current_question_id: Optional[str] = None
        self.validation_message: Optional[str] = None

    def _generate_session_id(self) -> str:
        """Generate a unique session ID."""
        return f"session_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}"

    def update(
        self,
        diagnosis: DiagnosisState,
        current_question_id: Optional[str],
        validation_message: Optional[str] = None,
    ) -> None:
        """Replace the session's state after an event."""
        self.diagnosis = diagnosis
        self.current_question_id = current_question_id
        self.validation_message = validation_message
        self.updated_at = datetime.now()

    def reset(self, preferred_weight: Optional[str] = None) -> None:
        """
        Start the quiz over.

        Keeps:
        - Session ID
        - Created timestamp
        - Weight preference, unless a new one is given
        """
        if preferred_weight is not None:
            self.preferred_weight = preferred_weight
        self.diagnosis = create_base_state(self.preferred_weight)
        self.current_question_id = None
        self.validation_message = None
        self.updated_at = datetime.now()

    def get_session_duration(self) -> float:
        """Session duration in seconds."""
        return (self.updated_at - self.created_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Export session state to a plain dictionary."""
        return {
            'session_id': self.session_id,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
            'preferred_weight': self.preferred_weight,
            'current_question_id': self.current_question_id,
            'validation_message': self.validation_message,
            'diagnosis': diagnosis_to_dict(self.diagnosis),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizSession":
        """Rebuild a session from to_dict() output."""
        session = cls(session_id=data.get('session_id'), preferred_weight=data.get('preferred_weight'))
        if data.get('created_at'):
            session.created_at = datetime.fromisoformat(data['created_at'])
        if data.get('updated_at'):
            session.updated_at = datetime.fromisoformat(data['updated_at'])
        session.current_question_id = data.get('current_question_id')
        session.validation_message = data.get('validation_message')
        if data.get('diagnosis'):
            session.diagnosis = diagnosis_from_dict(data['diagnosis'])
        return session


# =============================================================================
# STREAMLIT SESSION PERSISTENCE
# =============================================================================
# Streamlit can't serialize dataclasses with Enums properly, so the
# diagnosis state is stored as a plain dict and rebuilt on each rerun.

def diagnosis_to_dict(state: DiagnosisState) -> Dict[str, Any]:
    """Convert a DiagnosisState to a plain dict."""
    constraints = state.constraints
    return {
        'mode': state.mode.value,  # Convert Enum to string
        'constraints': {
            'max_price': constraints.max_price,
            'min_price': constraints.min_price,
            'required_sensors': list(constraints.required_sensors) if constraints.required_sensors is not None else None,
            'preferred_weight': constraints.preferred_weight,
        },
        'answers': dict(state.answers),
        'question_order': list(state.question_order),
        'detail_segments': list(state.detail_segments),
        'preferred_models': list(state.preferred_models),
        'force_complete': state.force_complete,
        'result_summary': list(state.result_summary),
        'skip_common_questions': state.skip_common_questions,
    }


def diagnosis_from_dict(data: Dict[str, Any]) -> DiagnosisState:
    """Rebuild a DiagnosisState from diagnosis_to_dict() output."""
    constraints = data.get('constraints') or {}
    return DiagnosisState(
        mode=DiagnosisMode(data.get('mode', DiagnosisMode.UNDETERMINED.value)),  # Convert string back to Enum
        constraints=ConstraintState(
            max_price=constraints.get('max_price'),
            min_price=constraints.get('min_price'),
            required_sensors=constraints.get('required_sensors'),
            preferred_weight=constraints.get('preferred_weight'),
        ),
        answers=dict(data.get('answers') or {}),
        question_order=list(data.get('question_order') or []),
        detail_segments=list(data.get('detail_segments') or []),
        preferred_models=list(data.get('preferred_models') or []),
        force_complete=bool(data.get('force_complete', False)),
        result_summary=list(data.get('result_summary') or []),
        skip_common_questions=bool(data.get('skip_common_questions', False)),
    )


def save_session_to_streamlit(session: QuizSession, st_session_state: Any) -> None:
    """
    Save the quiz session to Streamlit session state as a simple dict.

    Args:
        session: QuizSession to persist
        st_session_state: Streamlit's st.session_state object
    """
    st_session_state.quiz_session_data = session.to_dict()


def load_session_from_streamlit(
    st_session_state: Any,
    preferred_weight: Optional[str] = None,
) -> QuizSession:
    """
    Load the quiz session from Streamlit session state.

    Starts a new session when nothing is stored yet.

    Args:
        st_session_state: Streamlit's st.session_state object
        preferred_weight: Weight preference for a new session

    Returns:
        QuizSession
    """
    data = getattr(st_session_state, 'quiz_session_data', None)
    if data:
        return QuizSession.from_dict(data)
    return QuizSession(preferred_weight=preferred_weight)
