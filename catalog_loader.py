"""
JSON Loader for DroneFit Reference Data

Loads the equipment catalog, question sets, and result templates from
the JSON files under data/ and maps them to core.context dataclasses.

Architecture: validate per record, default optional fields explicitly.
- A malformed product, category, question, option or template is skipped
  and logged; the rest of the file still loads
- Only a missing file or a file that isn't a JSON object raises
  CatalogLoadError
- Option effects are parsed into Effect commands at load time
"""

import json
import re
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from config.settings import (
    CATALOG_FILE,
    DEFAULT_CATEGORY_PRIORITY,
    DIFFICULTY_LEVELS,
    DYNAMIC_QUESTIONS_FILE,
    KIND_AIRCRAFT,
    MAX_LOADER_ERRORS,
    PRODUCT_KINDS,
    QUICK_QUESTIONS_FILE,
    RESULT_TEMPLATES_FILE,
    WEIGHT_PREFERENCES,
    get_data_dir,
)
from core.context import (
    Catalog,
    Category,
    CtaLink,
    OptionConstraints,
    PriceRange,
    Product,
    ProductLinks,
    Question,
    QuestionOption,
    QuestionSet,
    ResultTemplate,
    ResultTemplateSet,
)
from core.effects import parse_effects
from core.structured_logging import get_logger, timed

_logger = get_logger("loader")


class CatalogLoadError(Exception):
    """A data file is missing or is not a JSON object."""


# =============================================================================
# PARSING HELPERS
# =============================================================================

_WEIGHT_PATTERN = re.compile(r"([\d.,]+)\s*(kg|g)\b", re.IGNORECASE)


def parse_weight_grams(weight_str: Any) -> Optional[float]:
    """
    Parse a take-off mass from spec text.

    Examples:
    - "249 g" -> 249.0
    - "0.9 kg" -> 900.0
    - "approx. 1,050g" -> 1050.0
    - "N/A" -> None
    """
    if weight_str is None:
        return None
    if isinstance(weight_str, (int, float)):
        return float(weight_str)

    match = _WEIGHT_PATTERN.search(str(weight_str))
    if not match:
        return None

    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return None

    if match.group(2).lower() == "kg":
        value *= 1000
    return round(value, 1)


def _require_str(record: dict, key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"missing or empty '{key}'")
    return value


def _optional_str(record: dict, key: str) -> Optional[str]:
    value = record.get(key)
    return value if isinstance(value, str) and value else None


def _as_str_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{name}' must be a list of strings")
    return list(value)


def _str_list(record: dict, key: str) -> list[str]:
    return _as_str_list(record.get(key), key)


def _get(record: dict, *keys: str) -> Any:
    """First present value among alternative key spellings."""
    for key in keys:
        if key in record:
            return record[key]
    return None


def _int_or_none(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{name}' must be a number")
    return int(value)


def _read_json(path: Path) -> dict:
    """Read a JSON object from disk, raising CatalogLoadError on failure."""
    if not path.exists():
        raise CatalogLoadError(f"Data file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogLoadError(f"Expected a JSON object at the top level of {path}")
    return data


def _report(kind: str, path: Path, loaded: int, skipped: int, errors: list[str]) -> None:
    _logger.info(
        f"Loaded {loaded} {kind} from {path.name}",
        extra={"event": "data_loaded", "path": str(path), "records_loaded": loaded, "records_skipped": skipped},
    )
    if skipped:
        _logger.warning(
            f"Skipped {skipped} {kind} due to errors",
            extra={"event": "data_skipped", "path": str(path), "records_skipped": skipped},
        )
        for err in errors[:5]:
            _logger.warning(f"  - {err}")


def _record_error(errors: list[str], message: str) -> None:
    if len(errors) < MAX_LOADER_ERRORS:
        errors.append(message)


# =============================================================================
# CATALOG
# =============================================================================

def _parse_price(record: dict) -> PriceRange:
    raw = _get(record, "price", "priceJPY")
    if not isinstance(raw, dict):
        raise ValueError("missing price range")
    low = _int_or_none(raw.get("min"), "price.min")
    high = _int_or_none(raw.get("max"), "price.max")
    if low is None or high is None:
        raise ValueError("price range needs min and max")
    if low > high:
        raise ValueError(f"price min {low} is greater than max {high}")
    return PriceRange(min=low, max=high)


def parse_product(record: dict) -> Product:
    """
    Build a Product from a catalog record.

    Raises:
        ValueError: if a required field is missing or malformed
    """
    if not isinstance(record, dict):
        raise ValueError("product record is not an object")

    kind = record.get("kind") or KIND_AIRCRAFT
    if kind not in PRODUCT_KINDS:
        raise ValueError(f"unknown kind '{kind}'")

    specs = record.get("specs") or {}
    if not isinstance(specs, dict):
        raise ValueError("'specs' must be an object")
    specs = {str(label): str(value) for label, value in specs.items()}

    weight_grams = _get(record, "weight_grams", "weightGrams")
    if weight_grams is None:
        weight_grams = parse_weight_grams(specs.get("weight") or specs.get("Weight"))
    else:
        weight_grams = parse_weight_grams(weight_grams)

    links = record.get("links") or {}
    if not isinstance(links, dict):
        raise ValueError("'links' must be an object")

    return Product(
        id=_require_str(record, "id"),
        name=_require_str(record, "name"),
        price=_parse_price(record),
        type_tags=_str_list(record, "typeTags") if "typeTags" in record else _str_list(record, "type_tags"),
        kind=kind,
        weight_grams=weight_grams,
        bullets=_str_list(record, "bullets"),
        specs=specs,
        notes=_optional_str(record, "notes"),
        status=_optional_str(record, "status"),
        images=_str_list(record, "images"),
        links=ProductLinks(
            learn=_optional_str(links, "learn"),
            consult=_optional_str(links, "consult"),
            demo=_optional_str(links, "demo"),
        ),
    )


def parse_category(key: str, record: dict) -> Category:
    """
    Build a Category from a catalog "types" entry.

    Raises:
        ValueError: if a required field is missing or malformed
    """
    if not isinstance(record, dict):
        raise ValueError("category record is not an object")

    primary = _get(record, "primaryModelId", "primary_model_id")
    if not isinstance(primary, str) or not primary:
        raise ValueError("missing 'primaryModelId'")

    return Category(
        key=key,
        label=_require_str(record, "label"),
        primary_model_id=primary,
        alts=_str_list(record, "alts"),
        summary=_optional_str(record, "summary"),
    )


def load_catalog(path: Union[str, Path, None] = None) -> Catalog:
    """
    Load the product catalog.

    Args:
        path: Catalog JSON file (defaults to <data dir>/catalog.json)

    Returns:
        Catalog with every valid category and product

    Raises:
        CatalogLoadError: if the file is missing or not a JSON object
    """
    path = Path(path) if path else get_data_dir() / CATALOG_FILE
    data = _read_json(path)

    errors: list[str] = []
    skipped = 0

    types = {}
    raw_types = data.get("types") or {}
    if not isinstance(raw_types, dict):
        raise CatalogLoadError(f"'types' must be an object in {path}")
    for key, record in raw_types.items():
        try:
            types[key] = parse_category(key, record)
        except (ValueError, TypeError) as e:
            skipped += 1
            _record_error(errors, f"Category {key}: {e}")

    models = []
    seen_ids = set()
    raw_models = data.get("models") or []
    if not isinstance(raw_models, list):
        raise CatalogLoadError(f"'models' must be a list in {path}")
    for idx, record in enumerate(raw_models):
        try:
            product = parse_product(record)
            if product.id in seen_ids:
                raise ValueError(f"duplicate id '{product.id}'")
            seen_ids.add(product.id)
            models.append(product)
        except (ValueError, TypeError) as e:
            skipped += 1
            _record_error(errors, f"Model {idx}: {type(e).__name__}: {e}")

    priority = data.get("priority")
    if isinstance(priority, list) and all(isinstance(key, str) for key in priority):
        priority = tuple(priority)
    else:
        priority = DEFAULT_CATEGORY_PRIORITY

    _report("catalog records", path, len(types) + len(models), skipped, errors)

    return Catalog(
        version=str(data.get("version", "")),
        currency=str(data.get("currency", "")),
        types=types,
        models=models,
        priority=priority,
    )


# =============================================================================
# QUESTION SETS
# =============================================================================

def _parse_constraints(raw: Any) -> Optional[OptionConstraints]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError("'constraints' must be an object")

    preferred_weight = _get(raw, "preferredWeight", "preferred_weight")
    if preferred_weight is not None and preferred_weight not in WEIGHT_PREFERENCES:
        raise ValueError(f"unknown preferredWeight '{preferred_weight}'")

    sensors = _get(raw, "requiredSensors", "required_sensors")
    if sensors is not None and not (
        isinstance(sensors, list) and all(isinstance(item, str) for item in sensors)
    ):
        raise ValueError("'requiredSensors' must be a list of strings")

    return OptionConstraints(
        max_price=_int_or_none(_get(raw, "maxPrice", "max_price"), "maxPrice"),
        min_price=_int_or_none(_get(raw, "minPrice", "min_price"), "minPrice"),
        required_sensors=list(sensors) if sensors is not None else None,
        preferred_weight=preferred_weight,
    )


def parse_option(record: dict) -> QuestionOption:
    """
    Build a QuestionOption from a question-bank record.

    Raises:
        ValueError: if a required field is missing or malformed
    """
    if not isinstance(record, dict):
        raise ValueError("option record is not an object")

    scores = record.get("scores") or {}
    if not isinstance(scores, dict):
        raise ValueError("'scores' must be an object")
    for category, delta in scores.items():
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            raise ValueError(f"score for '{category}' must be a number")

    return QuestionOption(
        key=_require_str(record, "key"),
        label=_require_str(record, "label"),
        scores=dict(scores),
        constraints=_parse_constraints(record.get("constraints")),
        effects=parse_effects(record.get("effects")),
    )


def parse_question(record: dict, errors: Optional[list[str]] = None) -> Question:
    """
    Build a Question from a question-bank record.

    Malformed options are skipped; the question itself is rejected when
    fewer than two valid options remain.

    Raises:
        ValueError: if a required field is missing or malformed
    """
    if not isinstance(record, dict):
        raise ValueError("question record is not an object")
    errors = errors if errors is not None else []

    question_id = _require_str(record, "id")

    options = []
    seen_keys = set()
    for idx, raw_option in enumerate(record.get("options") or []):
        try:
            option = parse_option(raw_option)
            if option.key in seen_keys:
                raise ValueError(f"duplicate option key '{option.key}'")
            seen_keys.add(option.key)
            options.append(option)
        except (ValueError, TypeError) as e:
            _record_error(errors, f"Question {question_id} option {idx}: {e}")
    if len(options) < 2:
        raise ValueError(f"question '{question_id}' needs at least 2 valid options")

    weight = record.get("weight", 1)
    if isinstance(weight, bool) or not isinstance(weight, int) or weight < 1:
        raise ValueError(f"weight must be an integer >= 1, got {weight!r}")

    difficulty = record.get("difficulty")
    if difficulty is not None and difficulty not in DIFFICULTY_LEVELS:
        raise ValueError(f"unknown difficulty '{difficulty}'")

    segments = _get(record, "targetSegments", "target_segments")
    tags = _get(record, "strategyTags", "strategy_tags")

    question = Question(
        id=question_id,
        text=_require_str(record, "text"),
        options=options,
        weight=weight,
        category=_optional_str(record, "category"),
        difficulty=difficulty,
        strategy_tags=_as_str_list(tags, "strategyTags"),
    )
    if segments:
        question.target_segments = _as_str_list(segments, "targetSegments")
    return question


def load_question_set(path: Union[str, Path, None] = None) -> QuestionSet:
    """
    Load a question set.

    Args:
        path: Question set JSON file (defaults to the dynamic set)

    Returns:
        QuestionSet with every valid question, in declared order

    Raises:
        CatalogLoadError: if the file is missing, not a JSON object,
            or contains no valid question
    """
    path = Path(path) if path else get_data_dir() / DYNAMIC_QUESTIONS_FILE
    data = _read_json(path)

    errors: list[str] = []
    skipped = 0
    questions = []
    seen_ids = set()

    for idx, record in enumerate(data.get("questions") or []):
        try:
            question = parse_question(record, errors)
            if question.id in seen_ids:
                raise ValueError(f"duplicate question id '{question.id}'")
            seen_ids.add(question.id)
            questions.append(question)
        except (ValueError, TypeError) as e:
            skipped += 1
            _record_error(errors, f"Question {idx}: {e}")

    _report("questions", path, len(questions), skipped, errors)

    if not questions:
        raise CatalogLoadError(f"No valid questions in {path}")

    return QuestionSet(
        version=str(data.get("version", "")),
        title=str(data.get("title", "")),
        questions=questions,
        locale=_optional_str(data, "locale"),
    )


# =============================================================================
# RESULT TEMPLATES
# =============================================================================

def _parse_cta(raw: Any) -> Optional[CtaLink]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError("CTA must be an object")
    return CtaLink(label=_require_str(raw, "label"), href=_require_str(raw, "href"))


def parse_result_template(record: dict) -> ResultTemplate:
    if not isinstance(record, dict):
        raise ValueError("template record is not an object")

    main_message = _get(record, "mainMessage", "main_message")
    if not isinstance(main_message, str) or not main_message:
        raise ValueError("missing 'mainMessage'")

    return ResultTemplate(
        title=_require_str(record, "title"),
        main_message=main_message,
        price_note=_optional_str(record, "priceNote") or _optional_str(record, "price_note"),
        tips=_str_list(record, "tips"),
        cta=_parse_cta(record.get("cta")),
        secondary_cta=_parse_cta(_get(record, "secondaryCta", "secondary_cta")),
    )


def load_result_templates(path: Union[str, Path, None] = None) -> ResultTemplateSet:
    """
    Load result page templates.

    Raises:
        CatalogLoadError: if the file is missing or not a JSON object
    """
    path = Path(path) if path else get_data_dir() / RESULT_TEMPLATES_FILE
    data = _read_json(path)

    errors: list[str] = []
    skipped = 0
    templates = {}

    raw_templates = data.get("templates") or {}
    if not isinstance(raw_templates, dict):
        raise CatalogLoadError(f"'templates' must be an object in {path}")
    for key, record in raw_templates.items():
        try:
            templates[key] = parse_result_template(record)
        except (ValueError, TypeError) as e:
            skipped += 1
            _record_error(errors, f"Template {key}: {e}")

    _report("result templates", path, len(templates), skipped, errors)

    return ResultTemplateSet(
        version=str(data.get("version", "")),
        templates=templates,
        locale=_optional_str(data, "locale"),
    )


@timed("data_load")
def load_all(data_dir: Union[str, Path, None] = None) -> dict:
    """
    Load every bundled data file.

    Returns:
        Dict with keys: catalog, dynamic, quick, templates
    """
    data_dir = Path(data_dir) if data_dir else get_data_dir()
    return {
        "catalog": load_catalog(data_dir / CATALOG_FILE),
        "dynamic": load_question_set(data_dir / DYNAMIC_QUESTIONS_FILE),
        "quick": load_question_set(data_dir / QUICK_QUESTIONS_FILE),
        "templates": load_result_templates(data_dir / RESULT_TEMPLATES_FILE),
    }


# =============================================================================
# STATISTICS
# =============================================================================

def catalog_to_dataframe(catalog: Catalog) -> pd.DataFrame:
    """
    Flatten the catalog's products into a DataFrame for the lineup table.

    Columns: id, name, kind, price_min, price_max, weight_grams,
    weight_class, categories
    """
    rows = [
        {
            "id": model.id,
            "name": model.name,
            "kind": model.kind,
            "price_min": model.price.min,
            "price_max": model.price.max,
            "weight_grams": model.weight_grams,
            "weight_class": model.weight_class,
            "categories": ", ".join(model.type_tags),
        }
        for model in catalog.models
    ]
    columns = ["id", "name", "kind", "price_min", "price_max", "weight_grams", "weight_class", "categories"]
    return pd.DataFrame(rows, columns=columns)


def get_catalog_statistics(catalog: Catalog) -> dict:
    """
    Get statistics about the loaded catalog.

    Returns dict with:
    - total: Product count
    - by_kind: Count by kind
    - by_category: Count by category tag
    - micro: Count of sub-100 g products
    - dangling_ids: Category product ids missing from the catalog
    - avg_price_min: Mean lower price bound
    """
    df = catalog_to_dataframe(catalog)
    stats = {
        "total": len(df),
        "by_kind": {},
        "by_category": {},
        "micro": 0,
        "dangling_ids": [],
        "avg_price_min": 0,
    }

    if not df.empty:
        stats["by_kind"] = df["kind"].value_counts().to_dict()
        stats["micro"] = int((df["weight_class"] == "micro").sum())
        stats["avg_price_min"] = round(float(df["price_min"].mean()), 1)

    for model in catalog.models:
        for tag in model.type_tags:
            stats["by_category"][tag] = stats["by_category"].get(tag, 0) + 1

    known_ids = {model.id for model in catalog.models}
    for category in catalog.types.values():
        for model_id in [category.primary_model_id, *category.alts]:
            if model_id not in known_ids and model_id not in stats["dangling_ids"]:
                stats["dangling_ids"].append(model_id)

    return stats
