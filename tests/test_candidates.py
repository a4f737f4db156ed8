"""
Tests for candidate selection (primary product, alternatives, notes).

Run with: pytest tests/test_candidates.py -v
"""

import pytest
from config import messages
from core.context import (
    CandidateSelection,
    Catalog,
    Category,
    ConstraintState,
    DiagnosisState,
    PriceRange,
    Product,
)
from core.candidates import (
    resolve_primary_model,
    resolve_alternative_models,
    resolve_models,
    resolve_question_pool,
    is_micro_model,
    fits_budget,
    select_candidates,
)


def product(product_id, low, high, weight=None, kind="aircraft"):
    return Product(
        id=product_id,
        name=product_id.title(),
        price=PriceRange(min=low, max=high),
        kind=kind,
        weight_grams=weight,
    )


@pytest.fixture
def catalog():
    """Catalog with micro and standard aircraft and a few broken links."""
    models = [
        product("mini", 100000, 110000, weight=249),
        product("neo", 40000, 45000, weight=135),
        product("tiny", 15000, 20000, weight=87),
        product("whoop", 30000, 35000, weight=32),
        product("air", 250000, 260000, weight=720),
        product("big", 2000000, 2500000, weight=6300),
        product("mapper", 600000, 700000, weight=900),
        product("camera", 1000000, 1200000, kind="payload"),
    ]
    types = {
        "hobby": Category(key="hobby", label="Hobby", primary_model_id="mini", alts=["neo", "tiny", "whoop"]),
        "creative": Category(key="creative", label="Creative", primary_model_id="air", alts=["mini", "air"]),
        "survey": Category(key="survey", label="Survey", primary_model_id="ghost", alts=["big", "ghost2", "mapper"]),
        "indoor": Category(key="indoor", label="Indoor", primary_model_id="tiny", alts=["whoop"]),
        "logi": Category(key="logi", label="Logistics", primary_model_id="ghost"),
    }
    return Catalog(version="test", currency="JPY", types=types, models=models)


def ids(products):
    return [p.id for p in products]


class TestResolution:
    """Test product lookups for a category."""

    def test_primary(self, catalog):
        """Test that the declared primary resolves."""
        assert resolve_primary_model(catalog, "hobby").id == "mini"

    def test_dangling_primary(self, catalog):
        """Test that a missing primary resolves to None."""
        assert resolve_primary_model(catalog, "survey") is None
        assert resolve_primary_model(catalog, "nope") is None

    def test_alternatives_skip_dangling_ids(self, catalog):
        """Test that alternates missing from the catalog are skipped."""
        assert ids(resolve_alternative_models(catalog, "survey")) == ["big", "mapper"]
        assert resolve_alternative_models(catalog, "nope") == []

    def test_resolve_models(self, catalog):
        """Test that ids resolve in order, skipping unknown and repeated ids."""
        assert ids(resolve_models(catalog, ["tiny", "ghost", "mini", "tiny"])) == ["tiny", "mini"]

    def test_question_pool(self, catalog):
        """Test that a question's gallery resolves from its pool."""
        pools = {"style": ["air", "ghost", "neo"]}

        assert ids(resolve_question_pool(catalog, "style", pools)) == ["air", "neo"]
        assert resolve_question_pool(catalog, "budget", pools) == []
        assert resolve_question_pool(catalog, None, pools) == []


class TestPredicates:
    """Test weight and budget predicates."""

    def test_micro(self, catalog):
        """Test the under-100 g classification."""
        assert is_micro_model(catalog.get_model("tiny")) is True
        assert is_micro_model(catalog.get_model("neo")) is False

    def test_unknown_weight_is_not_micro(self, catalog):
        """Test that products without a weight count as standard."""
        assert is_micro_model(catalog.get_model("camera")) is False

    def test_budget_overlap(self, catalog):
        """Test that a price range only needs to overlap the budget window."""
        mini = catalog.get_model("mini")

        assert fits_budget(mini, ConstraintState()) is True
        assert fits_budget(mini, ConstraintState(max_price=100000)) is True
        assert fits_budget(mini, ConstraintState(max_price=99999)) is False
        assert fits_budget(mini, ConstraintState(min_price=110000)) is True
        assert fits_budget(mini, ConstraintState(min_price=110001)) is False


class TestSelection:
    """Test candidate selection."""

    def test_no_constraints(self, catalog):
        """Test that the declared primary leads with alternates in order."""
        selection = select_candidates(catalog, "hobby")

        assert selection.primary.id == "mini"
        assert ids(selection.alternatives) == ["neo", "tiny", "whoop"]
        assert selection.note is None

    def test_duplicates_removed(self, catalog):
        """Test that a primary listed again as an alternate appears once."""
        selection = select_candidates(catalog, "creative")

        assert selection.primary.id == "air"
        assert ids(selection.alternatives) == ["mini"]

    def test_unknown_category(self, catalog):
        """Test that an unknown category gives an empty selection."""
        assert select_candidates(catalog, "nope") == CandidateSelection()
        assert select_candidates(catalog, None) == CandidateSelection()

    def test_empty_pool_with_budget(self, catalog):
        """Test that a category with nothing resolvable explains an empty result."""
        selection = select_candidates(catalog, "logi", ConstraintState(max_price=50000))

        assert selection.primary is None
        assert selection.alternatives == []
        assert selection.note == messages.NOTE_NO_BUDGET_MATCH

    def test_empty_pool_without_budget(self, catalog):
        """Test that an empty pool without a budget has no note."""
        assert select_candidates(catalog, "logi").note is None


class TestBudget:
    """Test budget ordering and notes."""

    def test_fitting_alternatives_first(self, catalog):
        """Test that fitting alternatives move ahead, keeping relative order."""
        selection = select_candidates(catalog, "hobby", ConstraintState(max_price=35000))

        assert selection.primary.id == "mini"
        assert ids(selection.alternatives) == ["tiny", "whoop", "neo"]
        assert selection.note == messages.NOTE_PRIMARY_OVER_BUDGET

    def test_budget_never_drops_candidates(self, catalog):
        """Test that nothing is removed when nothing fits."""
        selection = select_candidates(catalog, "hobby", ConstraintState(max_price=1000))

        assert selection.primary.id == "mini"
        assert ids(selection.alternatives) == ["neo", "tiny", "whoop"]
        assert selection.note == messages.NOTE_BUDGET_TOO_NARROW

    def test_primary_within_budget(self, catalog):
        """Test that no note is added when the primary fits."""
        selection = select_candidates(catalog, "hobby", ConstraintState(min_price=50000, max_price=200000))

        assert selection.primary.id == "mini"
        assert selection.note is None


class TestWeightPreference:
    """Test micro / standard partitioning."""

    def test_under100_promotes_micro(self, catalog):
        """Test that a micro model becomes primary when one exists."""
        selection = select_candidates(catalog, "hobby", ConstraintState(preferred_weight="under100"))

        assert selection.primary.id == "tiny"
        assert ids(selection.alternatives) == ["whoop", "mini", "neo"]
        assert selection.note is None

    def test_under100_fallback(self, catalog):
        """Test that a category without micro models falls back with notes."""
        selection = select_candidates(catalog, "creative", ConstraintState(preferred_weight="under100"))

        assert selection.primary.id == "air"
        assert messages.NOTE_NO_MICRO_FALLBACK in selection.note
        assert messages.NOTE_NO_MICRO_IN_CATEGORY in selection.note

    def test_under100_pinned_standard(self, catalog):
        """Test that the weight partition wins over a pinned standard model."""
        selection = select_candidates(
            catalog, "hobby", ConstraintState(preferred_weight="under100"), preferred_models=["neo"]
        )

        assert selection.primary.id == "tiny"
        assert ids(selection.alternatives) == ["whoop", "neo", "mini"]

    def test_over100(self, catalog):
        """Test that standard models lead and micro models follow."""
        selection = select_candidates(catalog, "hobby", ConstraintState(preferred_weight="over100"))

        assert selection.primary.id == "mini"
        assert ids(selection.alternatives) == ["neo", "tiny", "whoop"]
        assert selection.note is None

    def test_over100_fallback(self, catalog):
        """Test that a micro-only category falls back with a note."""
        selection = select_candidates(catalog, "indoor", ConstraintState(preferred_weight="over100"))

        assert selection.primary.id == "tiny"
        assert ids(selection.alternatives) == ["whoop"]
        assert selection.note == messages.NOTE_NO_STANDARD_FALLBACK

    def test_weight_and_budget_combined(self, catalog):
        """Test that budget ordering applies after the weight partition."""
        selection = select_candidates(
            catalog, "hobby", ConstraintState(preferred_weight="under100", max_price=41000)
        )

        assert selection.primary.id == "tiny"
        assert ids(selection.alternatives) == ["whoop", "neo", "mini"]


class TestPreferredModels:
    """Test models pinned by answers."""

    def test_pinned_model_leads(self, catalog):
        """Test that a pinned model in the pool becomes primary."""
        selection = select_candidates(catalog, "hobby", preferred_models=["whoop"])

        assert selection.primary.id == "whoop"
        assert ids(selection.alternatives) == ["mini", "neo", "tiny"]

    def test_pins_outside_pool_ignored(self, catalog):
        """Test that pins for products not in the category are ignored."""
        selection = select_candidates(catalog, "hobby", preferred_models=["air", "ghost"])

        assert selection.primary.id == "mini"

    def test_pins_from_diagnosis_state(self, catalog):
        """Test that pins and constraints are read from a diagnosis state."""
        state = DiagnosisState(
            constraints=ConstraintState(max_price=50000),
            preferred_models=["tiny", "neo"],
        )
        selection = select_candidates(catalog, "hobby", state)

        assert selection.primary.id == "tiny"
        assert ids(selection.alternatives) == ["neo", "whoop", "mini"]
        assert selection.note is None


class TestMissingPrimary:
    """Test categories whose declared primary is not in the catalog."""

    def test_alternatives_still_returned(self, catalog):
        """Test that there is no primary but every resolvable alternate is listed."""
        selection = select_candidates(catalog, "survey")

        assert selection.primary is None
        assert ids(selection.alternatives) == ["big", "mapper"]
        assert selection.note is None

    def test_budget_orders_alternatives(self, catalog):
        """Test that budget ordering still applies without a primary."""
        selection = select_candidates(catalog, "survey", ConstraintState(max_price=1000000))

        assert ids(selection.alternatives) == ["mapper", "big"]
        assert selection.note is None

    def test_weight_note_still_applies(self, catalog):
        """Test that the weight fallback note is kept without a primary."""
        selection = select_candidates(catalog, "survey", ConstraintState(preferred_weight="under100"))

        assert selection.primary is None
        assert selection.note == messages.NOTE_NO_MICRO_FALLBACK
