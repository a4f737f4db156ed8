"""
Engine settings for DroneFit.

Static configuration for the questionnaire engine: data locations,
closeness thresholds, flow segment names, and category ordering.
"""

import os
from pathlib import Path


# === Data Locations ===

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Bundled reference data (catalog, question sets, result templates)
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"

# Environment override for the data directory
DATA_DIR_ENV_VAR = "DRONEFIT_DATA_DIR"

CATALOG_FILE = "catalog.json"
DYNAMIC_QUESTIONS_FILE = "questions.dynamic.json"
QUICK_QUESTIONS_FILE = "questions.quick.json"
RESULT_TEMPLATES_FILE = "result_templates.json"


def get_data_dir() -> Path:
    """Return the data directory, honoring DRONEFIT_DATA_DIR if set."""
    override = os.environ.get(DATA_DIR_ENV_VAR)
    if override:
        return Path(override)
    return DEFAULT_DATA_DIR


# === Scoring ===

# A category within this many points of the winner is surfaced as a "close second"
DEFAULT_CLOSENESS_THRESHOLD = 2
SHORT_FLOW_CLOSENESS_THRESHOLD = 1   # quick (3 question) flow
LONG_FLOW_CLOSENESS_THRESHOLD = 3    # full dynamic flow

# Known use-case categories
CATEGORY_KEYS = (
    "hobby",
    "creative",
    "inspection",
    "survey",
    "agri",
    "logi",
    "disaster",
    "auto",
    "dev",
)

# Final tie-break ordering when weighted per-question comparison is a tie.
# Catalogs may override this with their own "priority" list.
DEFAULT_CATEGORY_PRIORITY = (
    "hobby",
    "creative",
    "inspection",
    "survey",
    "agri",
    "logi",
    "disaster",
    "auto",
    "dev",
)


# === Flow Segments ===

COMMON_SEGMENT = "common"

MODE_UNDETERMINED = "undetermined"
MODE_LIGHT = "light"
MODE_PRO = "pro"

# Mode assigned when an answer is registered and no question has set one
FALLBACK_MODE = MODE_PRO

# Strategy tag marking a question that must be answered before completion
TERMINAL_STRATEGY_TAG = "light_terminal"


# === Weight Classes ===

# Products strictly below this mass are "micro" class
MICRO_WEIGHT_THRESHOLD_GRAMS = 100

WEIGHT_PREF_UNDER_100 = "under100"
WEIGHT_PREF_OVER_100 = "over100"
WEIGHT_PREFERENCES = (WEIGHT_PREF_UNDER_100, WEIGHT_PREF_OVER_100)

WEIGHT_CLASS_MICRO = "micro"
WEIGHT_CLASS_STANDARD = "standard"


# === Product Kinds ===

KIND_AIRCRAFT = "aircraft"
KIND_PAYLOAD = "payload"
PRODUCT_KINDS = (KIND_AIRCRAFT, KIND_PAYLOAD)

DIFFICULTY_LEVELS = ("basic", "advanced", "expert")


# === Model Galleries ===

# Models shown beside a question instead of the current candidates
QUESTION_MODEL_POOLS = {
    "hobby_style": ["mini-4-pro", "neo", "tello", "micro-whoop", "air-3"],
    "creative_output": ["air-3", "mini-4-pro", "inspire-3"],
}


# === App ===

DEBUG_MODE = False

# Maximum loader errors kept for display
MAX_LOADER_ERRORS = 10
