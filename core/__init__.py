"""Core questionnaire engine for DroneFit."""

from core.context import (
    DiagnosisMode,
    EventType,
    UserEvent,
    Product,
    Category,
    Catalog,
    Question,
    QuestionOption,
    QuestionSet,
    ConstraintState,
    DiagnosisState,
    DiagnosisSummary,
    CandidateSelection,
)
from core.scoring import calculate_score_map, rank_scores, evaluate_question_set
from core.diagnosis import (
    create_initial_state,
    create_base_state,
    should_include_question,
    build_active_questions,
    register_answer,
    is_diagnosis_complete,
    find_next_question_id,
    replay_answers,
)
from core.candidates import select_candidates

__all__ = [
    "DiagnosisMode",
    "EventType",
    "UserEvent",
    "Product",
    "Category",
    "Catalog",
    "Question",
    "QuestionOption",
    "QuestionSet",
    "ConstraintState",
    "DiagnosisState",
    "DiagnosisSummary",
    "CandidateSelection",
    "calculate_score_map",
    "rank_scores",
    "evaluate_question_set",
    "create_initial_state",
    "create_base_state",
    "should_include_question",
    "build_active_questions",
    "register_answer",
    "is_diagnosis_complete",
    "find_next_question_id",
    "replay_answers",
    "select_candidates",
]
