"""
Response formatting for DroneFit UI.

Handles all display formatting: prices and budgets, constraint chips,
product cards, the result page, and pandas tables for scores and
candidates.
"""

from typing import List, Optional

import pandas as pd

from config import messages
from core.context import (
    CandidateSelection,
    Catalog,
    ConstraintState,
    DiagnosisSummary,
    Product,
    Progress,
)
from core.candidates import fits_budget


class ResponseFormatter:
    """
    Formats quiz output for display.

    Features:
    - Price and budget formatting
    - Constraint chips for the candidate sidebar
    - Product cards and result page markdown
    - DataFrames for the score breakdown and candidate table

    Example:
        formatter = ResponseFormatter(currency="JPY")
        formatter.format_price_range(None, 150000)
        # 'up to 150,000 JPY'
    """

    def __init__(self, currency: str = "JPY"):
        """Initialize response formatter."""
        self.currency = currency

    # =========================================================================
    # PRICES
    # =========================================================================

    def format_amount(self, amount: int) -> str:
        """Format an amount with thousands separators and the currency."""
        return f"{amount:,} {self.currency}"

    def format_price_range(self, min_price: Optional[int], max_price: Optional[int]) -> Optional[str]:
        """
        Format a budget window.

        Returns:
            "low - high", "low or more", "up to high", or None when
            neither bound is set
        """
        if min_price is not None and max_price is not None:
            return messages.PRICE_RANGE.format(
                low=self.format_amount(min_price), high=self.format_amount(max_price)
            )
        if min_price is not None:
            return messages.PRICE_AT_LEAST.format(amount=self.format_amount(min_price))
        if max_price is not None:
            return messages.PRICE_AT_MOST.format(amount=self.format_amount(max_price))
        return None

    def format_product_price(self, product: Product) -> str:
        return messages.PRICE_RANGE.format(
            low=f"{product.price.min:,}", high=self.format_amount(product.price.max)
        )

    # =========================================================================
    # CONSTRAINTS
    # =========================================================================

    def format_constraint_chips(self, constraints: ConstraintState) -> List[str]:
        """
        Short labels describing the active constraints.

        Example:
            >>> formatter.format_constraint_chips(ConstraintState(max_price=50000))
            ['Max budget: up to 50,000 JPY']
        """
        chips = []
        if constraints.max_price is not None:
            chips.append(messages.CHIP_MAX_BUDGET.format(amount=self.format_amount(constraints.max_price)))
        if constraints.min_price is not None:
            chips.append(messages.CHIP_MIN_BUDGET.format(amount=self.format_amount(constraints.min_price)))
        if constraints.preferred_weight in messages.CHIP_WEIGHT:
            chips.append(messages.CHIP_WEIGHT[constraints.preferred_weight])
        if constraints.required_sensors:
            chips.append(messages.CHIP_SENSORS.format(sensors=", ".join(constraints.required_sensors)))
        return chips

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    def format_product(self, product: Product, index: Optional[int] = None) -> str:
        """
        Format a product card as markdown.

        Args:
            product: Product to format
            index: Position number to prefix, if any

        Returns:
            Markdown string
        """
        prefix = f"{index}. " if index is not None else ""
        lines = [f"**{prefix}{product.name}**"]
        lines.append(
            f"{self.format_product_price(product)} · "
            f"{messages.WEIGHT_CLASS_LABELS.get(product.weight_class, product.weight_class)}"
        )
        for bullet in product.bullets[:3]:
            lines.append(f"- {bullet}")
        if product.status:
            lines.append(f"_{product.status}_")
        if product.links.learn:
            lines.append(f"[Learn more]({product.links.learn})")
        return "\n".join(lines)

    def format_candidates(self, selection: CandidateSelection) -> str:
        """Format a candidate selection as a numbered markdown list."""
        if not selection.candidates:
            return messages.NO_RESULT_AVAILABLE

        parts = [self.format_product(product, i) for i, product in enumerate(selection.candidates, 1)]
        if selection.note:
            parts.append(f"> {selection.note}")
        return "\n\n".join(parts)

    # =========================================================================
    # RESULTS
    # =========================================================================

    def format_progress(self, progress: Progress) -> tuple:
        """
        Progress bar values.

        Returns:
            (label, fraction) where label is "current / total" and fraction
            is clamped to [0, 1]
        """
        total = max(progress.total, 1)
        current = min(progress.current, total)
        fraction = min(1.0, max(0.0, current / total))
        return f"{current} / {total}", fraction

    def format_secondary(self, summary: DiagnosisSummary, catalog: Catalog) -> Optional[str]:
        """List close-second categories, or None if there are none."""
        if not summary.secondary:
            return None
        labels = []
        for entry in summary.secondary:
            category = catalog.get_category(entry.category)
            labels.append(category.label if category else entry.category)
        return f"{messages.CLOSE_SECOND_HEADER}: {', '.join(labels)}"

    def format_highlights(self, highlights: List[str]) -> Optional[str]:
        if not highlights:
            return None
        lines = [f"**{messages.RESULT_HIGHLIGHTS_HEADER}**"]
        lines.extend(f"- {item}" for item in highlights)
        return "\n".join(lines)

    def format_recommended_type(self, catalog: Catalog, category_key: Optional[str]) -> Optional[str]:
        """Banner for the type picked before the quiz, or None if it is unknown."""
        category = catalog.get_category(category_key) if category_key else None
        if category is None:
            return None
        text = f"**{messages.RECOMMENDED_TYPE_HEADER}: {category.label}**"
        if category.summary:
            text += f"\n\n{category.summary}"
        return text


def get_response_formatter(currency: str = "JPY") -> ResponseFormatter:
    """Get a response formatter for a catalog currency."""
    return ResponseFormatter(currency=currency)


# =============================================================================
# TABLES
# =============================================================================

def score_frame(summary: DiagnosisSummary, catalog: Optional[Catalog] = None) -> pd.DataFrame:
    """
    Ranked scores as a DataFrame.

    Columns: rank, category, label, score, primary, close_second
    """
    secondary = {entry.category for entry in summary.secondary}
    primary = summary.primary.category if summary.primary else None

    rows = []
    for rank, entry in enumerate(summary.ranked, 1):
        category = catalog.get_category(entry.category) if catalog else None
        rows.append({
            "rank": rank,
            "category": entry.category,
            "label": category.label if category else entry.category,
            "score": entry.score,
            "primary": entry.category == primary,
            "close_second": entry.category in secondary,
        })
    return pd.DataFrame(rows, columns=["rank", "category", "label", "score", "primary", "close_second"])


def candidates_frame(selection: CandidateSelection, constraints: ConstraintState) -> pd.DataFrame:
    """
    Recommended products as a DataFrame.

    Columns: role, id, name, price_min, price_max, weight_class, fits_budget
    """
    rows = []
    for i, product in enumerate(selection.candidates):
        rows.append({
            "role": "primary" if selection.primary is not None and i == 0 else "alternative",
            "id": product.id,
            "name": product.name,
            "price_min": product.price.min,
            "price_max": product.price.max,
            "weight_class": product.weight_class,
            "fits_budget": fits_budget(product, constraints),
        })
    return pd.DataFrame(
        rows, columns=["role", "id", "name", "price_min", "price_max", "weight_class", "fits_budget"]
    )
