"""
User-facing text for DroneFit.

Notes produced by the candidate selector, validation messages for the
quiz flow, and display labels used by the UI layer.
"""

# === Candidate Selector Notes ===

NOTE_NO_BUDGET_MATCH = "No models matched your budget."

NOTE_NO_MICRO_FALLBACK = (
    "No sub-100 g model fits these requirements, so standard-class "
    "aircraft are shown instead."
)
NOTE_NO_STANDARD_FALLBACK = (
    "No model over 100 g was found, so micro-class aircraft are shown instead."
)

NOTE_PRIMARY_OVER_BUDGET = (
    "The recommended model is outside your budget. Consider the lower-priced "
    "alternatives to adjust cost."
)
NOTE_BUDGET_TOO_NARROW = (
    "Few models meet your requirements within this budget. Consider "
    "revisiting the budget range."
)

NOTE_MICRO_NOT_PRIMARY = (
    "No sub-100 g model made the top pick. Consider other categories as well."
)
NOTE_NO_MICRO_IN_CATEGORY = (
    "This category has no sub-100 g models. The aircraft shown assume "
    "the required flight permits."
)


# === Flow Messages ===

VALIDATION_SELECT_OPTION = "Please select an option before moving on."
VALIDATION_UNKNOWN_OPTION = "That option is not available for this question."

ERROR_GENERIC = (
    "Something went wrong while updating your answers. Please try again."
)

NO_RESULT_AVAILABLE = (
    "No recommendation is available yet. Please keep answering or "
    "broaden your constraints."
)


# === Labels ===

MODE_LABELS = {
    "undetermined": "Not yet determined",
    "light": "Light (short flow)",
    "pro": "Pro (detailed flow)",
}

WEIGHT_PREFERENCE_LABELS = {
    "under100": "Prefer sub-100 g micro drones",
    "over100": "Performance first, over 100 g is fine",
}

WEIGHT_CLASS_LABELS = {
    "micro": "Under 100 g",
    "standard": "Over 100 g",
}

PROGRESS_LABEL = "Diagnosis progress"

CHIP_MAX_BUDGET = "Max budget: up to {amount}"
CHIP_MIN_BUDGET = "Min budget: {amount} and up"
CHIP_WEIGHT = {
    "under100": "Under 100 g wanted",
    "over100": "Over 100 g is fine",
}
CHIP_SENSORS = "Sensors: {sensors}"

PRICE_RANGE = "{low} - {high}"
PRICE_AT_LEAST = "{amount} or more"
PRICE_AT_MOST = "up to {amount}"

EMPTY_CANDIDATES = "Answer a few questions to see matching models."
CLOSE_SECOND_HEADER = "Also worth a look"
RESULT_HIGHLIGHTS_HEADER = "What we heard"
RECOMMENDED_TYPE_HEADER = "Your starting point"
GALLERY_HEADER = "Models to compare"
