"""Configuration for DroneFit."""

from config.settings import (
    CATEGORY_KEYS,
    DEFAULT_CATEGORY_PRIORITY,
    DEFAULT_CLOSENESS_THRESHOLD,
    COMMON_SEGMENT,
    TERMINAL_STRATEGY_TAG,
    MICRO_WEIGHT_THRESHOLD_GRAMS,
    get_data_dir,
)
from config import messages

__all__ = [
    "CATEGORY_KEYS",
    "DEFAULT_CATEGORY_PRIORITY",
    "DEFAULT_CLOSENESS_THRESHOLD",
    "COMMON_SEGMENT",
    "TERMINAL_STRATEGY_TAG",
    "MICRO_WEIGHT_THRESHOLD_GRAMS",
    "get_data_dir",
    "messages",
]
