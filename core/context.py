"""
Core data models for DroneFit.

Defines all data structures used throughout the application: the static
catalog and question-bank records, the per-user diagnosis state, and the
results produced by scoring and candidate selection.
These are pure Python dataclasses with no external dependencies.
"""

from dataclasses import dataclass, field
from typing import Optional, Any
from enum import Enum

from config.settings import (
    COMMON_SEGMENT,
    TERMINAL_STRATEGY_TAG,
    MICRO_WEIGHT_THRESHOLD_GRAMS,
    DEFAULT_CATEGORY_PRIORITY,
    KIND_AIRCRAFT,
    WEIGHT_CLASS_MICRO,
    WEIGHT_CLASS_STANDARD,
    MODE_UNDETERMINED,
    MODE_LIGHT,
    MODE_PRO,
)


class DiagnosisMode(Enum):
    """
    Flow mode of a diagnosis session.

    UNDETERMINED: only the mode-determining "common" questions are shown
    LIGHT: short flow for simple intents
    PRO: detailed flow for professional use
    """
    UNDETERMINED = MODE_UNDETERMINED
    LIGHT = MODE_LIGHT
    PRO = MODE_PRO


class EventType(Enum):
    """User events the quiz reacts to."""
    SELECT_OPTION = "select_option"  # Answer the shown question
    ADVANCE = "advance"              # Move on to the next question
    GO_BACK = "go_back"              # Drop the latest answer
    RESET = "reset"                  # Start over


@dataclass
class UserEvent:
    """
    A user event with its payload.

    Attributes:
        type: What the user did
        question_id: Question the event refers to (SELECT_OPTION)
        option_key: Chosen option (SELECT_OPTION)
    """
    type: EventType
    question_id: Optional[str] = None
    option_key: Optional[str] = None


# =============================================================================
# CATALOG
# =============================================================================

@dataclass
class PriceRange:
    """Price range of a product in the catalog currency (min <= max)."""
    min: int
    max: int

    def overlaps(self, min_price: Optional[int] = None, max_price: Optional[int] = None) -> bool:
        """
        Check whether this range overlaps a budget window.

        Each side is only checked if that bound is set.
        """
        if max_price is not None and self.min > max_price:
            return False
        if min_price is not None and self.max < min_price:
            return False
        return True


@dataclass
class ProductLinks:
    """Outbound links for a product."""
    learn: Optional[str] = None
    consult: Optional[str] = None
    demo: Optional[str] = None


@dataclass
class Product:
    """
    Product (aircraft or payload) in the equipment catalog.

    Attributes:
        id: Unique product id
        name: Display name
        price: Price range in the catalog currency
        type_tags: Category keys this product serves
        kind: "aircraft" or "payload"
        weight_grams: Take-off mass in grams, if known
        bullets: Short selling points
        specs: Free-form spec table (label -> value)
        notes: Free-text notes
        status: Availability/status text
        images: Image references
        links: Outbound links
    """
    id: str
    name: str
    price: PriceRange
    type_tags: list[str] = field(default_factory=list)
    kind: str = KIND_AIRCRAFT
    weight_grams: Optional[float] = None
    bullets: list[str] = field(default_factory=list)
    specs: dict[str, str] = field(default_factory=dict)
    notes: Optional[str] = None
    status: Optional[str] = None
    images: list[str] = field(default_factory=list)
    links: ProductLinks = field(default_factory=ProductLinks)

    @property
    def weight_class(self) -> str:
        """"micro" when known to be under the micro threshold, else "standard"."""
        if self.weight_grams is not None and self.weight_grams < MICRO_WEIGHT_THRESHOLD_GRAMS:
            return WEIGHT_CLASS_MICRO
        return WEIGHT_CLASS_STANDARD

    def is_micro(self) -> bool:
        return self.weight_class == WEIGHT_CLASS_MICRO


@dataclass
class Category:
    """
    Use-case category (e.g. "hobby", "survey").

    Attributes:
        key: Category key
        label: Display label
        primary_model_id: Id of the best-fit product
        alts: Alternate product ids, in display order
        summary: Short description
    """
    key: str
    label: str
    primary_model_id: str
    alts: list[str] = field(default_factory=list)
    summary: Optional[str] = None


@dataclass
class Catalog:
    """
    Product catalog with categories and their product links.

    Attributes:
        version: Data version string
        currency: Currency of all price ranges
        types: Categories by key
        models: All products
        priority: Static category ordering used as the final ranking tie-break
    """
    version: str
    currency: str
    types: dict[str, Category]
    models: list[Product]
    priority: tuple[str, ...] = DEFAULT_CATEGORY_PRIORITY

    def get_model(self, model_id: Optional[str]) -> Optional[Product]:
        """Find a product by id."""
        if not model_id:
            return None
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    def get_category(self, key: Optional[str]) -> Optional[Category]:
        """Find a category by key."""
        if not key:
            return None
        return self.types.get(key)

    @property
    def category_keys(self) -> list[str]:
        return list(self.types.keys())


# =============================================================================
# QUESTION BANK
# =============================================================================

@dataclass
class OptionConstraints:
    """
    Soft constraints attached to an option.

    Only fields that are set take part in the constraint merge.
    """
    max_price: Optional[int] = None
    min_price: Optional[int] = None
    required_sensors: Optional[list[str]] = None
    preferred_weight: Optional[str] = None

    def specified_fields(self) -> dict[str, Any]:
        """Fields this option explicitly sets."""
        return {
            name: value
            for name, value in (
                ("max_price", self.max_price),
                ("min_price", self.min_price),
                ("required_sensors", self.required_sensors),
                ("preferred_weight", self.preferred_weight),
            )
            if value is not None
        }


class EffectType(Enum):
    """
    State-mutating instructions an option can carry.

    Declaration order is the order in which effects are applied
    within one transition.
    """
    SET_MODE = "set_mode"
    SET_DETAIL_SEGMENTS = "set_detail_segments"
    ADD_DETAIL_SEGMENTS = "add_detail_segments"
    REMOVE_DETAIL_SEGMENTS = "remove_detail_segments"
    SKIP_COMMON_QUESTIONS = "skip_common_questions"
    CLEAR_PREFERRED_WEIGHT = "clear_preferred_weight"
    CLEAR_PREFERRED_MODELS = "clear_preferred_models"
    SET_PREFERRED_MODELS = "set_preferred_models"
    ADD_PREFERRED_MODELS = "add_preferred_models"
    FORCE_COMPLETE = "force_complete"
    CLEAR_RESULT_SUMMARY = "clear_result_summary"
    APPEND_RESULT_SUMMARY = "append_result_summary"
    SET_RESULT_SUMMARY = "set_result_summary"


@dataclass(frozen=True)
class Effect:
    """
    Single effect command.

    Attributes:
        type: What the command does
        value: Payload (mode, segment list, model ids, summary text); None for flags
    """
    type: EffectType
    value: Any = None


@dataclass
class QuestionOption:
    """
    Answer option of a question.

    Attributes:
        key: Option key, unique within its question
        label: Display label
        scores: Category key -> signed score contribution
        constraints: Constraints merged into the session when chosen
        effects: Effect commands applied when chosen
    """
    key: str
    label: str
    scores: dict[str, float] = field(default_factory=dict)
    constraints: Optional[OptionConstraints] = None
    effects: tuple[Effect, ...] = ()


@dataclass
class Question:
    """
    Question in a question set.

    Attributes:
        id: Question id, unique within its set
        text: Prompt text
        options: Answer options (2+)
        weight: Score multiplier (>= 1)
        category: Optional topic label
        difficulty: "basic", "advanced" or "expert"
        target_segments: Flow phases this question belongs to
        strategy_tags: Flow hints such as "light_terminal"
    """
    id: str
    text: str
    options: list[QuestionOption]
    weight: int = 1
    category: Optional[str] = None
    difficulty: Optional[str] = None
    target_segments: list[str] = field(default_factory=lambda: [COMMON_SEGMENT])
    strategy_tags: list[str] = field(default_factory=list)

    def get_option(self, key: Optional[str]) -> Optional[QuestionOption]:
        """Find an option by key."""
        if not key:
            return None
        for option in self.options:
            if option.key == key:
                return option
        return None

    def is_terminal(self) -> bool:
        """Check if this question gates completion."""
        return TERMINAL_STRATEGY_TAG in self.strategy_tags


@dataclass
class QuestionSet:
    """Ordered set of questions."""
    version: str
    title: str
    questions: list[Question]
    locale: Optional[str] = None

    def get_question(self, question_id: Optional[str]) -> Optional[Question]:
        """Find a question by id."""
        if not question_id:
            return None
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class CtaLink:
    """Call-to-action link."""
    label: str
    href: str


@dataclass
class ResultTemplate:
    """Result page copy for one category."""
    title: str
    main_message: str
    price_note: Optional[str] = None
    tips: list[str] = field(default_factory=list)
    cta: Optional[CtaLink] = None
    secondary_cta: Optional[CtaLink] = None


@dataclass
class ResultTemplateSet:
    """Result templates by category key."""
    version: str
    templates: dict[str, ResultTemplate]
    locale: Optional[str] = None

    def get_template(self, category_key: Optional[str]) -> Optional[ResultTemplate]:
        if not category_key:
            return None
        return self.templates.get(category_key)


# =============================================================================
# SESSION STATE
# =============================================================================

@dataclass
class ConstraintState:
    """
    Soft constraints accumulated over a session.

    Attributes:
        max_price: Upper budget bound
        min_price: Lower budget bound
        required_sensors: Required sensor/feature tags
        preferred_weight: "under100" or "over100"
    """
    max_price: Optional[int] = None
    min_price: Optional[int] = None
    required_sensors: Optional[list[str]] = None
    preferred_weight: Optional[str] = None

    def has_budget(self) -> bool:
        return self.max_price is not None or self.min_price is not None

    def merged(self, constraints: Optional[OptionConstraints]) -> "ConstraintState":
        """
        Return a new state with the option's specified fields overwritten.

        Fields the option leaves unset keep their current value.
        """
        updated = ConstraintState(
            max_price=self.max_price,
            min_price=self.min_price,
            required_sensors=list(self.required_sensors) if self.required_sensors is not None else None,
            preferred_weight=self.preferred_weight,
        )
        if constraints is None:
            return updated
        for name, value in constraints.specified_fields().items():
            setattr(updated, name, list(value) if isinstance(value, list) else value)
        return updated


@dataclass
class DiagnosisState:
    """
    Per-user diagnosis state.

    Every transition builds a new value from the previous one; engine
    functions never mutate a state they were given.

    Attributes:
        mode: Current flow mode
        constraints: Accumulated soft constraints
        answers: Question id -> chosen option key
        question_order: Answered question ids, in answer order
        detail_segments: Active fine-grained sub-flow segments
        preferred_models: Product ids pinned ahead of the category default
        force_complete: Flow ends immediately when set
        result_summary: Human-readable highlights for the result page
        skip_common_questions: Exclude purely "common" questions
    """
    mode: DiagnosisMode = DiagnosisMode.UNDETERMINED
    constraints: ConstraintState = field(default_factory=ConstraintState)
    answers: dict[str, str] = field(default_factory=dict)
    question_order: list[str] = field(default_factory=list)
    detail_segments: list[str] = field(default_factory=list)
    preferred_models: list[str] = field(default_factory=list)
    force_complete: bool = False
    result_summary: list[str] = field(default_factory=list)
    skip_common_questions: bool = False

    def copy(self) -> "DiagnosisState":
        """Copy with fresh containers so the copy can be changed safely."""
        return DiagnosisState(
            mode=self.mode,
            constraints=self.constraints.merged(None),
            answers=dict(self.answers),
            question_order=list(self.question_order),
            detail_segments=list(self.detail_segments),
            preferred_models=list(self.preferred_models),
            force_complete=self.force_complete,
            result_summary=list(self.result_summary),
            skip_common_questions=self.skip_common_questions,
        )

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    def has_answers(self) -> bool:
        return bool(self.question_order)


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class RankedScore:
    """Category with its total score."""
    category: str
    score: float


@dataclass
class DiagnosisSummary:
    """
    Scoring result for an answer map.

    Attributes:
        totals: Category -> total weighted score
        ranked: All categories, best first
        primary: Winning category (None when no answer resolved)
        secondary: Close-second categories within the threshold
    """
    totals: dict[str, float]
    ranked: list[RankedScore]
    primary: Optional[RankedScore] = None
    secondary: list[RankedScore] = field(default_factory=list)


@dataclass
class CandidateSelection:
    """
    Recommended product plus ordered alternatives.

    Attributes:
        primary: Best-fit product (None when nothing resolves)
        alternatives: Remaining candidates, budget-fitting first
        note: Advisory note explaining any fallback
    """
    primary: Optional[Product] = None
    alternatives: list[Product] = field(default_factory=list)
    note: Optional[str] = None

    @property
    def candidates(self) -> list[Product]:
        """Primary followed by alternatives."""
        ordered = [self.primary] if self.primary else []
        return ordered + list(self.alternatives)


@dataclass
class Progress:
    """Progress counters for the presentation layer."""
    answered: int
    total: int

    @property
    def current(self) -> int:
        """1-based number of the question being shown."""
        return self.answered + 1
