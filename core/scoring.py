"""
Scoring engine for DroneFit.

Converts an answer map into per-category totals and a deterministic
category ranking:
- Totals: each answered option adds score * question weight per category
- Ranking: descending total, then weighted per-question comparison
  (heaviest questions first), then the static category priority
- Evaluation: winner plus "close second" categories within a threshold

Malformed answers (unknown question ids or option keys) are skipped,
never raised.
"""

from functools import cmp_to_key
from typing import Iterable, Optional, Sequence

from config.settings import (
    CATEGORY_KEYS,
    DEFAULT_CATEGORY_PRIORITY,
    DEFAULT_CLOSENESS_THRESHOLD,
)
from core.context import (
    DiagnosisSummary,
    Question,
    QuestionOption,
    QuestionSet,
    RankedScore,
)
from core.structured_logging import log_evaluation


def create_empty_score_map(categories: Optional[Iterable[str]] = None) -> dict[str, float]:
    """Return every known category with a zero total."""
    keys = CATEGORY_KEYS if categories is None else categories
    return {key: 0 for key in keys}


def _answered_options(
    question_set: QuestionSet,
    answers: dict[str, str],
    questions: Optional[Sequence[Question]] = None,
) -> list[tuple[Question, QuestionOption]]:
    """Pair each answered question with its chosen option, skipping unresolved answers."""
    pairs = []
    for question in questions if questions is not None else question_set.questions:
        option = question.get_option(answers.get(question.id))
        if option is None:
            continue
        pairs.append((question, option))
    return pairs


def has_resolved_answer(question_set: QuestionSet, answers: dict[str, str]) -> bool:
    """Check if at least one recorded answer matches an option of the set."""
    return bool(_answered_options(question_set, answers))


def calculate_score_map(
    question_set: QuestionSet,
    answers: dict[str, str],
    categories: Optional[Iterable[str]] = None,
) -> dict[str, float]:
    """
    Compute per-category totals for an answer map.

    Args:
        question_set: Questions with scored options
        answers: Question id -> chosen option key
        categories: Known category keys (defaults to CATEGORY_KEYS)

    Returns:
        Category -> total weighted score. Categories not in the known set
        are ignored.

    Example:
        >>> totals = calculate_score_map(question_set, {"purpose": "travel"})
        >>> totals["hobby"]
        6
    """
    totals = create_empty_score_map(categories)

    for question, option in _answered_options(question_set, answers):
        weight = question.weight or 1
        for category, delta in option.scores.items():
            if category in totals:
                totals[category] += delta * weight

    return totals


def _compare_by_weighted_answers(
    category_a: str,
    category_b: str,
    weighted_pairs: list[tuple[Question, QuestionOption]],
) -> int:
    """
    Compare two tied categories by their weighted per-question scores.

    Questions are scanned heaviest first; the first non-equal comparison
    decides, higher score first.
    """
    for question, option in weighted_pairs:
        weight = question.weight or 1
        score_a = option.scores.get(category_a, 0) * weight
        score_b = option.scores.get(category_b, 0) * weight
        if score_a == score_b:
            continue
        return -1 if score_a > score_b else 1
    return 0


def _priority_index(category: str, priority: Sequence[str]) -> int:
    """Position in the priority list; unlisted categories sort after all listed ones."""
    try:
        return list(priority).index(category)
    except ValueError:
        return len(priority)


def rank_scores(
    totals: dict[str, float],
    question_set: QuestionSet,
    answers: dict[str, str],
    priority: Optional[Sequence[str]] = None,
) -> list[RankedScore]:
    """
    Rank categories by total score with deterministic tie-breaks.

    Args:
        totals: Category -> total score (from calculate_score_map)
        question_set: Question set the totals were computed from
        answers: Answer map the totals were computed from
        priority: Static category ordering for the final tie-break

    Returns:
        RankedScore list, best first
    """
    priority = DEFAULT_CATEGORY_PRIORITY if priority is None else priority

    # Heaviest questions first; sorted() keeps declared order among equal weights
    by_weight = sorted(question_set.questions, key=lambda q: -(q.weight or 1))
    weighted_pairs = _answered_options(question_set, answers, by_weight)

    def compare(a: RankedScore, b: RankedScore) -> int:
        if a.score != b.score:
            return -1 if a.score > b.score else 1

        weighted = _compare_by_weighted_answers(a.category, b.category, weighted_pairs)
        if weighted != 0:
            return weighted

        index_a = _priority_index(a.category, priority)
        index_b = _priority_index(b.category, priority)
        if index_a != index_b:
            return index_a - index_b

        # Both unlisted: fall back to key order
        if a.category == b.category:
            return 0
        return -1 if a.category < b.category else 1

    entries = [RankedScore(category=category, score=score) for category, score in totals.items()]
    return sorted(entries, key=cmp_to_key(compare))


def evaluate_question_set(
    question_set: QuestionSet,
    answers: dict[str, str],
    closeness_threshold: Optional[float] = None,
    categories: Optional[Iterable[str]] = None,
    priority: Optional[Sequence[str]] = None,
) -> DiagnosisSummary:
    """
    Score, rank, and pick the winning and close-second categories.

    The winner is ranked[0] unless no recorded answer resolves to an option
    of the question set (including an empty answer map), in which case
    there is no primary and no secondary.

    Args:
        question_set: Question set to evaluate against
        answers: Question id -> chosen option key
        closeness_threshold: Max point gap for a close second (default 2)
        categories: Known category keys
        priority: Static category ordering for tie-breaks

    Returns:
        DiagnosisSummary with totals, ranked, primary, secondary
    """
    threshold = DEFAULT_CLOSENESS_THRESHOLD if closeness_threshold is None else closeness_threshold

    totals = calculate_score_map(question_set, answers, categories)
    ranked = rank_scores(totals, question_set, answers, priority)

    primary = ranked[0] if ranked and has_resolved_answer(question_set, answers) else None

    secondary = []
    if primary is not None:
        secondary = [
            entry for entry in ranked
            if entry.category != primary.category and primary.score - entry.score <= threshold
        ]

    log_evaluation(
        category=primary.category if primary else None,
        score=primary.score if primary else None,
        secondary=[entry.category for entry in secondary],
        answer_count=len(answers),
    )

    return DiagnosisSummary(
        totals=totals,
        ranked=ranked,
        primary=primary,
        secondary=secondary,
    )
