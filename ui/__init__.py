"""
UI layer for DroneFit.

Provides response formatting and session state management.
"""

from ui.responses import (
    ResponseFormatter,
    get_response_formatter,
    score_frame,
    candidates_frame,
)
from ui.state import (
    QuizSession,
    diagnosis_to_dict,
    diagnosis_from_dict,
    save_session_to_streamlit,
    load_session_from_streamlit,
)

__all__ = [
    'ResponseFormatter',
    'get_response_formatter',
    'score_frame',
    'candidates_frame',
    'QuizSession',
    'diagnosis_to_dict',
    'diagnosis_from_dict',
    'save_session_to_streamlit',
    'load_session_from_streamlit',
]
