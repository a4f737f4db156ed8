"""
Diagnosis state machine for DroneFit.

Decides which question comes next and when the flow is complete:
- Inclusion predicate: which questions belong to the current flow
  (mode, active detail segments, skip-common flag)
- Transitions: each answer folds the chosen option's constraints and
  effects into a new DiagnosisState
- Completion: force-complete flag, terminal-tagged questions, and the
  answered vs. active question count
- Replay: state is always rebuilt from the ordered answer history, which
  is how "go back" and re-answering an earlier question work

All functions are pure: they return new state values and never change
the state they are given.
"""

from typing import Iterable, Optional

from config.settings import COMMON_SEGMENT, FALLBACK_MODE
from core.context import (
    DiagnosisMode,
    DiagnosisState,
    Progress,
    Question,
    QuestionOption,
    QuestionSet,
)
from core.effects import apply_effects
from core.structured_logging import get_logger, log_answer, log_transition

_logger = get_logger("core.diagnosis")


# =============================================================================
# STATE CREATION
# =============================================================================

def create_initial_state() -> DiagnosisState:
    """Fresh state at flow start."""
    return DiagnosisState()


def create_base_state(preferred_weight: Optional[str] = None) -> DiagnosisState:
    """
    Fresh state, optionally carrying a pre-set weight preference.

    Args:
        preferred_weight: "under100" or "over100" chosen before the quiz

    Returns:
        New DiagnosisState
    """
    state = create_initial_state()
    if preferred_weight:
        state.constraints.preferred_weight = preferred_weight
    return state


# =============================================================================
# QUESTION INCLUSION
# =============================================================================

def _segments_of(question: Question) -> list[str]:
    return question.target_segments or [COMMON_SEGMENT]


def should_include_question(question: Question, state: DiagnosisState) -> bool:
    """
    Check whether a question belongs to the current flow.

    Rules:
    - skip_common_questions excludes questions tagged only "common"
    - Undetermined mode: "common" questions, plus questions for detail
      segments that are already active
    - Known mode: questions tagged "common" or the current mode, or whose
      tags intersect the active detail segments

    Args:
        question: Question to check
        state: Current diagnosis state

    Returns:
        True if the question is eligible
    """
    segments = _segments_of(question)

    if state.skip_common_questions and segments == [COMMON_SEGMENT]:
        return False

    matches_detail = any(segment in state.detail_segments for segment in segments)

    if state.mode == DiagnosisMode.UNDETERMINED:
        if state.detail_segments:
            return COMMON_SEGMENT in segments or matches_detail
        return COMMON_SEGMENT in segments

    if COMMON_SEGMENT in segments or state.mode.value in segments:
        return True

    return matches_detail


def build_active_questions(question_set: QuestionSet, state: DiagnosisState) -> list[Question]:
    """Questions currently in the flow, in declared order."""
    return [q for q in question_set.questions if should_include_question(q, state)]


# =============================================================================
# TRANSITIONS
# =============================================================================

def apply_option(state: DiagnosisState, option: QuestionOption) -> DiagnosisState:
    """
    Fold an option's constraints and effects into a new state.

    Constraints merge field by field (only fields the option sets are
    overwritten); effects then run in their fixed order.

    Args:
        state: Current state (left untouched)
        option: Chosen option

    Returns:
        New DiagnosisState
    """
    next_state = state.copy()
    next_state.constraints = next_state.constraints.merged(option.constraints)
    return apply_effects(next_state, option.effects)


def register_answer(
    state: DiagnosisState,
    question: Question,
    option: QuestionOption,
    session_id: Optional[str] = None,
) -> DiagnosisState:
    """
    Apply one answer and return the resulting state.

    Steps:
    1. Apply the option's constraints and effects
    2. Default an unresolved mode to "pro"
    3. Record the answer; append the question to the history if new
       (re-answering overwrites in place without duplicating history)

    Args:
        state: Current state (left untouched)
        question: Answered question
        option: Chosen option
        session_id: Session identifier for logging

    Returns:
        New DiagnosisState
    """
    next_state = apply_option(state, option)

    if next_state.mode == DiagnosisMode.UNDETERMINED:
        next_state.mode = DiagnosisMode(FALLBACK_MODE)

    next_state.answers[question.id] = option.key
    if question.id not in next_state.question_order:
        next_state.question_order.append(question.id)

    log_answer(session_id, question.id, option.key, mode=next_state.mode.value)
    if next_state.mode != state.mode or next_state.detail_segments != state.detail_segments:
        log_transition(
            session_id,
            previous_mode=state.mode.value,
            mode=next_state.mode.value,
            detail_segments=list(next_state.detail_segments),
            question_id=question.id,
        )

    return next_state


def replay(
    question_set: QuestionSet,
    ordered_answers: Iterable[tuple[str, str]],
    preferred_weight: Optional[str] = None,
    session_id: Optional[str] = None,
) -> DiagnosisState:
    """
    Rebuild state as a left fold over an ordered answer history.

    Entries whose question or option can't be resolved are skipped.

    Args:
        question_set: Question set the answers belong to
        ordered_answers: (question_id, option_key) pairs in answer order
        preferred_weight: Weight preference carried by the base state
        session_id: Session identifier for logging

    Returns:
        The state obtained by applying each answer in order
    """
    state = create_base_state(preferred_weight)
    for question_id, option_key in ordered_answers:
        question = question_set.get_question(question_id)
        option = question.get_option(option_key) if question else None
        if question is None or option is None:
            _logger.warning(
                f"Skipping unresolved answer during replay: {question_id}={option_key}",
                extra={"event": "replay_skip", "question_id": question_id, "option_key": option_key},
            )
            continue
        state = register_answer(state, question, option, session_id=session_id)
    return state


def replay_answers(
    question_set: QuestionSet,
    answers: dict[str, str],
    order: Iterable[str],
    preferred_weight: Optional[str] = None,
    session_id: Optional[str] = None,
) -> DiagnosisState:
    """
    Rebuild state from an answer map and its answer order.

    Ids in the order without an answer are dropped from the rebuilt history.
    """
    ordered = [(qid, answers[qid]) for qid in order if answers.get(qid)]
    return replay(question_set, ordered, preferred_weight, session_id)


def history_of(state: DiagnosisState) -> list[tuple[str, str]]:
    """Ordered (question_id, option_key) history of a state."""
    return [(qid, state.answers[qid]) for qid in state.question_order if qid in state.answers]


def answer_question(
    question_set: QuestionSet,
    state: DiagnosisState,
    question_id: str,
    option_key: str,
    preferred_weight: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Optional[DiagnosisState]:
    """
    Answer a question, discarding later answers when it was answered before.

    Re-answering an earlier question truncates the history at that
    question and replays, so later answers given under the old branch
    never leak into the new one.

    Args:
        question_set: Question set
        state: Current state
        question_id: Question being answered
        option_key: Chosen option
        preferred_weight: Weight preference carried by the base state
        session_id: Session identifier for logging

    Returns:
        New DiagnosisState, or None if the question or option is unknown,
        or the question is outside the current flow and was never answered
    """
    question = question_set.get_question(question_id)
    if question is None or question.get_option(option_key) is None:
        _logger.warning(
            f"Unknown answer: {question_id}={option_key}",
            extra={"event": "unknown_answer", "question_id": question_id, "option_key": option_key},
        )
        return None

    # Answered questions stay answerable even after a later effect excludes them
    if question_id not in state.answers and not should_include_question(question, state):
        _logger.warning(
            f"Answer outside the current flow: {question_id}={option_key}",
            extra={"event": "inactive_answer", "question_id": question_id, "option_key": option_key},
        )
        return None

    history = history_of(state)
    for index, (answered_id, _) in enumerate(history):
        if answered_id == question_id:
            history = history[:index]
            break

    history.append((question_id, option_key))
    return replay(question_set, history, preferred_weight, session_id)


def go_back(
    question_set: QuestionSet,
    state: DiagnosisState,
    preferred_weight: Optional[str] = None,
    session_id: Optional[str] = None,
) -> DiagnosisState:
    """
    Drop the most recent answer and rebuild the state.

    With no answers this returns a fresh base state.
    """
    history = history_of(state)
    return replay(question_set, history[:-1], preferred_weight, session_id)


# =============================================================================
# FLOW QUERIES
# =============================================================================

def find_question_by_id(question_set: QuestionSet, question_id: Optional[str]) -> Optional[Question]:
    return question_set.get_question(question_id)


def find_next_question_id(question_set: QuestionSet, state: DiagnosisState) -> Optional[str]:
    """
    First unanswered, currently eligible question in declared order.

    Returns:
        Question id, or None when nothing is left to ask
    """
    for question in question_set.questions:
        if question.id in state.answers:
            continue
        if should_include_question(question, state):
            return question.id

    if state.mode == DiagnosisMode.UNDETERMINED:
        _logger.warning(
            "No eligible question while mode is undetermined",
            extra={"event": "no_eligible_question", "mode": state.mode.value},
        )
    return None


def is_diagnosis_complete(state: DiagnosisState, active_questions: list[Question]) -> bool:
    """
    Check whether the flow is complete.

    - force_complete set: complete
    - mode undetermined: never complete
    - an active terminal-tagged question unanswered: not complete
    - otherwise complete once answers cover the active question count

    Args:
        state: Current state
        active_questions: Questions currently in the flow

    Returns:
        True when results can be shown
    """
    if state.force_complete:
        return True

    if state.mode == DiagnosisMode.UNDETERMINED:
        return False

    pending_terminal = any(
        question.is_terminal() and question.id not in state.answers
        for question in active_questions
    )
    if pending_terminal:
        return False

    return len(state.answers) >= len(active_questions)


def is_flow_complete(question_set: QuestionSet, state: DiagnosisState) -> bool:
    """is_diagnosis_complete() against the state's current active questions."""
    return is_diagnosis_complete(state, build_active_questions(question_set, state))


def get_progress(question_set: QuestionSet, state: DiagnosisState) -> Progress:
    """
    Answered count vs. the number of currently active questions.

    The active set can grow or shrink as segments change, so while the
    flow is incomplete the total never drops below the question being shown.
    """
    active = build_active_questions(question_set, state)
    answered = len(state.answers)
    if is_diagnosis_complete(state, active):
        total = max(len(active), answered)
    else:
        total = max(len(active), answered + 1)
    return Progress(answered=answered, total=total)
