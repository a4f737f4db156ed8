"""
Candidate selector for DroneFit.

Maps a winning category plus the accumulated constraints onto one
recommended product and an ordered list of alternatives:
- Pool: the category's primary product and alternates, primary first
- Preferred models pinned by answers move to the front
- Weight preference partitions the pool (micro vs. standard)
- Budget demotes alternatives that don't fit; nothing is dropped

Whenever a preference can't be met, a note explains the fallback.
"""

from typing import Optional, Union

from config.settings import QUESTION_MODEL_POOLS, WEIGHT_PREF_OVER_100, WEIGHT_PREF_UNDER_100
from config import messages
from core.context import (
    CandidateSelection,
    Catalog,
    ConstraintState,
    DiagnosisState,
    Product,
)
from core.structured_logging import get_logger, log_selection

_logger = get_logger("core.candidates")


# =============================================================================
# RESOLUTION
# =============================================================================

def resolve_primary_model(catalog: Catalog, category_key: str) -> Optional[Product]:
    """Declared primary product of a category, or None if it doesn't resolve."""
    category = catalog.get_category(category_key)
    if category is None:
        return None

    model = catalog.get_model(category.primary_model_id)
    if model is None:
        _logger.warning(
            f"Primary model {category.primary_model_id} of {category_key} is not in the catalog",
            extra={"event": "dangling_model", "category": category_key, "model_id": category.primary_model_id},
        )
    return model


def resolve_alternative_models(catalog: Catalog, category_key: str) -> list[Product]:
    """
    Alternate products of a category, in declared order.

    Ids that don't resolve are skipped.
    """
    category = catalog.get_category(category_key)
    if category is None:
        return []

    models = []
    for model_id in category.alts:
        model = catalog.get_model(model_id)
        if model is None:
            _logger.warning(
                f"Alternate model {model_id} of {category_key} is not in the catalog",
                extra={"event": "dangling_model", "category": category_key, "model_id": model_id},
            )
            continue
        models.append(model)
    return models


def resolve_models(catalog: Catalog, model_ids: list[str]) -> list[Product]:
    """Products for the given ids, in order, skipping unknown and repeated ids."""
    models = [catalog.get_model(model_id) for model_id in model_ids]
    return _unique_by_id([model for model in models if model is not None])


def resolve_question_pool(
    catalog: Catalog,
    question_id: Optional[str],
    pools: Optional[dict] = None,
) -> list[Product]:
    """
    Products to show beside a question.

    Args:
        catalog: Product catalog
        question_id: Question on screen
        pools: Question id -> model ids (defaults to QUESTION_MODEL_POOLS)

    Returns:
        Resolvable pool products, empty when the question has no pool
    """
    pools = QUESTION_MODEL_POOLS if pools is None else pools
    if question_id is None:
        return []
    return resolve_models(catalog, pools.get(question_id, []))


# =============================================================================
# PREDICATES
# =============================================================================

def is_micro_model(product: Product) -> bool:
    """Check if a product is known to weigh under the micro threshold."""
    return product.is_micro()


def fits_budget(product: Product, constraints: ConstraintState) -> bool:
    """
    Check whether a product's price range overlaps the budget window.

    Each bound is only checked if it is set.
    """
    return product.price.overlaps(constraints.min_price, constraints.max_price)


# =============================================================================
# SELECTION
# =============================================================================

def _unique_by_id(products: list[Product]) -> list[Product]:
    seen = set()
    result = []
    for product in products:
        if product.id in seen:
            continue
        seen.add(product.id)
        result.append(product)
    return result


def _pin_preferred(pool: list[Product], preferred_models: list[str]) -> list[Product]:
    """Move preferred products that are in the pool to the front, in override order."""
    by_id = {product.id: product for product in pool}
    pinned = [by_id[model_id] for model_id in dict.fromkeys(preferred_models) if model_id in by_id]
    if not pinned:
        return pool
    pinned_ids = {product.id for product in pinned}
    return pinned + [product for product in pool if product.id not in pinned_ids]


def _partition_by_weight(
    pool: list[Product],
    preference: Optional[str],
    notes: list[str],
) -> tuple[list[Product], list[Product]]:
    """
    Split the pool into a preferred partition and an overflow partition.

    Returns:
        (preferred, overflow)
    """
    micro = [product for product in pool if is_micro_model(product)]
    standard = [product for product in pool if not is_micro_model(product)]

    if preference == WEIGHT_PREF_UNDER_100:
        if micro:
            return micro, standard
        notes.append(messages.NOTE_NO_MICRO_FALLBACK)
        return pool, []

    if preference == WEIGHT_PREF_OVER_100:
        if standard:
            return standard, micro
        notes.append(messages.NOTE_NO_STANDARD_FALLBACK)
        return micro, []

    return pool, []


def _order_by_budget(products: list[Product], constraints: ConstraintState) -> tuple[list[Product], list[Product]]:
    """
    Stable-partition products into budget-fitting first, then the rest.

    Returns:
        (ordered, fitting)
    """
    fitting = [product for product in products if fits_budget(product, constraints)]
    others = [product for product in products if not fits_budget(product, constraints)]
    return fitting + others, fitting


def select_candidates(
    catalog: Catalog,
    category_key: Optional[str],
    state: Union[DiagnosisState, ConstraintState, None] = None,
    preferred_models: Optional[list[str]] = None,
    session_id: Optional[str] = None,
) -> CandidateSelection:
    """
    Pick the recommended product and ordered alternatives for a category.

    Steps:
    1. Unknown category -> empty selection
    2. Pool = resolvable primary + alternates, de-duplicated, primary first
    3. Preferred models present in the pool move to the front
    4. Weight preference partitions the pool (with a note on fallback)
    5. Primary = first of the preferred partition
    6. Alternatives = rest of the preferred partition, then the overflow
    7. Budget-fitting alternatives move ahead; nothing is dropped
    8. Notes for a primary outside the budget or the weight preference

    When the category's declared primary product does not resolve, there
    is no primary and every resolvable alternate is returned as an
    alternative.

    Args:
        catalog: Product catalog
        category_key: Winning category
        state: DiagnosisState or bare ConstraintState
        preferred_models: Pinned product ids (defaults to the state's)
        session_id: Session identifier for logging

    Returns:
        CandidateSelection(primary, alternatives, note)
    """
    if isinstance(state, DiagnosisState):
        constraints = state.constraints
        if preferred_models is None:
            preferred_models = state.preferred_models
    else:
        constraints = state or ConstraintState()
    preferred_models = preferred_models or []

    if catalog.get_category(category_key) is None:
        _logger.warning(
            f"Unknown category for candidate selection: {category_key}",
            extra={"event": "unknown_category", "category": category_key},
        )
        return CandidateSelection()

    declared_primary = resolve_primary_model(catalog, category_key)
    pool = _unique_by_id(
        ([declared_primary] if declared_primary else []) + resolve_alternative_models(catalog, category_key)
    )

    if not pool:
        note = messages.NOTE_NO_BUDGET_MATCH if constraints.max_price is not None else None
        log_selection(category_key, None, [], note=note, session_id=session_id)
        return CandidateSelection(note=note)

    pool = _pin_preferred(pool, preferred_models)

    notes: list[str] = []
    preferred, overflow = _partition_by_weight(pool, constraints.preferred_weight, notes)

    if declared_primary is None:
        alternatives, _ = _order_by_budget(_unique_by_id(preferred + overflow), constraints)
        note = " ".join(notes) if notes else None
        log_selection(
            category_key, None, [product.id for product in alternatives], note=note, session_id=session_id
        )
        return CandidateSelection(primary=None, alternatives=alternatives, note=note)

    primary = preferred[0]
    remaining = [product for product in _unique_by_id(preferred + overflow) if product.id != primary.id]
    alternatives, fitting = _order_by_budget(remaining, constraints)

    if not fits_budget(primary, constraints) and constraints.has_budget():
        notes.append(messages.NOTE_PRIMARY_OVER_BUDGET if fitting else messages.NOTE_BUDGET_TOO_NARROW)

    if constraints.preferred_weight == WEIGHT_PREF_UNDER_100 and not is_micro_model(primary):
        has_micro = any(is_micro_model(product) for product in pool)
        notes.append(messages.NOTE_MICRO_NOT_PRIMARY if has_micro else messages.NOTE_NO_MICRO_IN_CATEGORY)

    note = " ".join(notes) if notes else None
    log_selection(
        category_key,
        primary.id,
        [product.id for product in alternatives],
        note=note,
        session_id=session_id,
    )
    return CandidateSelection(primary=primary, alternatives=alternatives, note=note)
