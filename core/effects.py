"""
Option effects for DroneFit.

Options in the question bank can carry an "effects" object that changes
session state beyond scoring (switch mode, unlock detail segments, pin
products, end the flow early, collect result highlights).

The loose JSON object is parsed once at load time into an ordered tuple
of Effect commands. apply_effects() runs them in the fixed EffectType
declaration order, whatever order they were written in:

    mode -> detail segments (set, add, remove) -> skip-common flag
    -> clear weight preference -> preferred models (clear, set, add)
    -> force complete -> result summary (clear, append, set)
"""

from typing import Any, Callable, Iterable, Optional

from core.context import DiagnosisMode, DiagnosisState, Effect, EffectType
from core.structured_logging import get_logger

_logger = get_logger("core.effects")

# Fixed application order
EFFECT_ORDER = list(EffectType)

# JSON key -> effect type. Both camelCase and snake_case keys are accepted.
EFFECT_KEYS = {
    "setMode": EffectType.SET_MODE,
    "setDetailSegments": EffectType.SET_DETAIL_SEGMENTS,
    "addDetailSegments": EffectType.ADD_DETAIL_SEGMENTS,
    "removeDetailSegments": EffectType.REMOVE_DETAIL_SEGMENTS,
    "skipCommonQuestions": EffectType.SKIP_COMMON_QUESTIONS,
    "clearPreferredWeight": EffectType.CLEAR_PREFERRED_WEIGHT,
    "clearPreferredModels": EffectType.CLEAR_PREFERRED_MODELS,
    "setPreferredModels": EffectType.SET_PREFERRED_MODELS,
    "addPreferredModels": EffectType.ADD_PREFERRED_MODELS,
    "forceComplete": EffectType.FORCE_COMPLETE,
    "clearResultSummary": EffectType.CLEAR_RESULT_SUMMARY,
    "appendResultSummary": EffectType.APPEND_RESULT_SUMMARY,
    "setResultSummary": EffectType.SET_RESULT_SUMMARY,
}
EFFECT_KEYS.update({effect_type.value: effect_type for effect_type in EffectType})

FLAG_EFFECTS = {
    EffectType.SKIP_COMMON_QUESTIONS,
    EffectType.CLEAR_PREFERRED_WEIGHT,
    EffectType.CLEAR_PREFERRED_MODELS,
    EffectType.FORCE_COMPLETE,
    EffectType.CLEAR_RESULT_SUMMARY,
}

LIST_EFFECTS = {
    EffectType.SET_DETAIL_SEGMENTS,
    EffectType.ADD_DETAIL_SEGMENTS,
    EffectType.REMOVE_DETAIL_SEGMENTS,
    EffectType.SET_PREFERRED_MODELS,
    EffectType.ADD_PREFERRED_MODELS,
}

TEXT_EFFECTS = {
    EffectType.APPEND_RESULT_SUMMARY,
    EffectType.SET_RESULT_SUMMARY,
}


def _unique(items: Iterable[str]) -> list[str]:
    """De-duplicate, keeping first occurrence order."""
    return list(dict.fromkeys(items))


def _as_text_list(value: Any) -> Optional[list[str]]:
    """Accept a string or a list of strings; drop empty entries."""
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return [item for item in value if item]
    return None


def _parse_effect(effect_type: EffectType, value: Any) -> Optional[Effect]:
    """Build one command from a raw JSON value, or None if it is a no-op or invalid."""
    if effect_type == EffectType.SET_MODE:
        try:
            mode = DiagnosisMode(value)
        except ValueError:
            _logger.warning(f"Ignoring invalid setMode value: {value!r}")
            return None
        if mode == DiagnosisMode.UNDETERMINED:
            _logger.warning("Ignoring setMode to undetermined")
            return None
        return Effect(effect_type, mode)

    if effect_type in FLAG_EFFECTS:
        return Effect(effect_type) if value is True else None

    if effect_type in LIST_EFFECTS:
        items = _as_text_list(value)
        if items is None:
            _logger.warning(f"Ignoring {effect_type.value}: expected a list of strings, got {value!r}")
            return None
        # An explicit empty "set" still replaces; empty add/remove do nothing
        if not items and effect_type != EffectType.SET_DETAIL_SEGMENTS:
            return None
        return Effect(effect_type, tuple(_unique(items)))

    if effect_type in TEXT_EFFECTS:
        items = _as_text_list(value)
        if not items:
            return None
        return Effect(effect_type, tuple(items))

    return None


def parse_effects(raw: Optional[dict]) -> tuple[Effect, ...]:
    """
    Parse a loose effects object into ordered effect commands.

    Unknown keys and malformed values are logged and ignored.

    Args:
        raw: Effects object from the question bank (may be None)

    Returns:
        Tuple of Effect commands in application order

    Example:
        >>> parse_effects({"setMode": "light", "addDetailSegments": ["detail_hobby_travel"]})
        (Effect(type=<EffectType.SET_MODE: 'set_mode'>, ...), Effect(...))
    """
    if not raw:
        return ()
    if not isinstance(raw, dict):
        _logger.warning(f"Ignoring effects that are not an object: {raw!r}")
        return ()

    effects = []
    for key, value in raw.items():
        effect_type = EFFECT_KEYS.get(key)
        if effect_type is None:
            _logger.warning(f"Ignoring unknown effect key: {key}")
            continue
        effect = _parse_effect(effect_type, value)
        if effect is not None:
            effects.append(effect)

    return tuple(sorted(effects, key=lambda e: EFFECT_ORDER.index(e.type)))


# =============================================================================
# APPLICATION
# =============================================================================
# Each handler updates the private working copy made by apply_effects().

def _set_mode(state: DiagnosisState, value: DiagnosisMode) -> None:
    state.mode = value


def _set_detail_segments(state: DiagnosisState, value: tuple) -> None:
    state.detail_segments = _unique(value)


def _add_detail_segments(state: DiagnosisState, value: tuple) -> None:
    state.detail_segments = _unique([*state.detail_segments, *value])


def _remove_detail_segments(state: DiagnosisState, value: tuple) -> None:
    state.detail_segments = [s for s in state.detail_segments if s not in value]


def _skip_common_questions(state: DiagnosisState, value: Any) -> None:
    state.skip_common_questions = True


def _clear_preferred_weight(state: DiagnosisState, value: Any) -> None:
    state.constraints.preferred_weight = None


def _clear_preferred_models(state: DiagnosisState, value: Any) -> None:
    state.preferred_models = []


def _set_preferred_models(state: DiagnosisState, value: tuple) -> None:
    state.preferred_models = _unique(value)


def _add_preferred_models(state: DiagnosisState, value: tuple) -> None:
    state.preferred_models = _unique([*state.preferred_models, *value])


def _force_complete(state: DiagnosisState, value: Any) -> None:
    state.force_complete = True


def _clear_result_summary(state: DiagnosisState, value: Any) -> None:
    state.result_summary = []


def _append_result_summary(state: DiagnosisState, value: tuple) -> None:
    state.result_summary = [*state.result_summary, *value]


def _set_result_summary(state: DiagnosisState, value: tuple) -> None:
    state.result_summary = list(value)


EFFECT_HANDLERS: dict[EffectType, Callable[[DiagnosisState, Any], None]] = {
    EffectType.SET_MODE: _set_mode,
    EffectType.SET_DETAIL_SEGMENTS: _set_detail_segments,
    EffectType.ADD_DETAIL_SEGMENTS: _add_detail_segments,
    EffectType.REMOVE_DETAIL_SEGMENTS: _remove_detail_segments,
    EffectType.SKIP_COMMON_QUESTIONS: _skip_common_questions,
    EffectType.CLEAR_PREFERRED_WEIGHT: _clear_preferred_weight,
    EffectType.CLEAR_PREFERRED_MODELS: _clear_preferred_models,
    EffectType.SET_PREFERRED_MODELS: _set_preferred_models,
    EffectType.ADD_PREFERRED_MODELS: _add_preferred_models,
    EffectType.FORCE_COMPLETE: _force_complete,
    EffectType.CLEAR_RESULT_SUMMARY: _clear_result_summary,
    EffectType.APPEND_RESULT_SUMMARY: _append_result_summary,
    EffectType.SET_RESULT_SUMMARY: _set_result_summary,
}


def apply_effects(state: DiagnosisState, effects: Iterable[Effect]) -> DiagnosisState:
    """
    Apply effect commands to a copy of the state.

    Args:
        state: Current state (left untouched)
        effects: Commands, in any order

    Returns:
        New DiagnosisState
    """
    next_state = state.copy()
    for effect in sorted(effects, key=lambda e: EFFECT_ORDER.index(e.type)):
        EFFECT_HANDLERS[effect.type](next_state, effect.value)
    return next_state
