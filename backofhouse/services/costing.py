"""Costing calculations for master ingredients and recipes.

Every function here is total: malformed numeric input never raises.
Additive operands (prices, quantities, minutes) coerce to 0 and divisors
(units per case, yield, recipe unit ratio) coerce to 1.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
ONE = Decimal("1")
STORAGE_PLACES = Decimal("0.0001")
DEFAULT_LABOR_RATE_PER_HOUR = Decimal("20")
MINUTES_PER_HOUR = Decimal("60")

_MIXED_FRACTION = re.compile(r"^\s*([+-]?)(\d+)\s+(\d+)\s*/\s*(\d+)")
_FRACTION = re.compile(r"^\s*([+-]?)(\d+)\s*/\s*(\d+)")
_DECIMAL = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


@dataclass(frozen=True)
class CostLine:
    """One ingredient line as seen by the calculator."""

    quantity: object
    cost_per_unit: object


@dataclass(frozen=True)
class RecipeCost:
    recipe_total: Decimal
    cost_per_unit: Decimal


@dataclass(frozen=True)
class CostingSummary:
    """Full costing breakdown for a recipe."""

    ingredient_total: Decimal
    labor_cost: Decimal
    total_cost: Decimal
    cost_per_unit: Decimal
    target_cost: Decimal | None


def to_decimal(value, default: Decimal = ZERO) -> Decimal:
    """Coerce a stored or user-entered value to a finite Decimal, else ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int | float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return default
    else:
        return default
    return result if result.is_finite() else default


def _divisor(value) -> Decimal:
    result = to_decimal(value, ONE)
    return result if result > 0 else ONE


def quantize(value: Decimal) -> Decimal:
    """Round to the 4 decimal places used for stored costs."""
    return value.quantize(STORAGE_PLACES, rounding=ROUND_HALF_UP)


def parse_quantity(value) -> Decimal:
    """Parse a free-text quantity field.

    Reads the leading number the way a kitchen writes it ("2", "2.5 lb",
    "1/2", "1 1/2 cups"). Empty or non-numeric text parses to 0.
    """
    if not isinstance(value, str):
        return to_decimal(value)

    match = _MIXED_FRACTION.match(value)
    if match and int(match.group(4)) != 0:
        sign, whole, numerator, denominator = match.groups()
        result = Decimal(whole) + Decimal(numerator) / Decimal(denominator)
        return -result if sign == "-" else result

    match = _FRACTION.match(value)
    if match and int(match.group(3)) != 0:
        sign, numerator, denominator = match.groups()
        result = Decimal(numerator) / Decimal(denominator)
        return -result if sign == "-" else result

    match = _DECIMAL.match(value)
    if match:
        return to_decimal(match.group(1))
    return ZERO


def compute_ingredient_cost_per_unit(
    current_price, recipe_units_per_case, yield_fraction
) -> Decimal:
    """Cost of one recipe unit of a purchased item, adjusted for trim/waste.

    ``(current_price / recipe_units_per_case) * (1 / yield_fraction)``, rounded
    to 4 places. A missing or zero divisor is treated as 1, which masks
    missing catalog data rather than flagging it.
    """
    price = to_decimal(current_price)
    base_unit_cost = price / _divisor(recipe_units_per_case)
    return quantize(base_unit_cost * (ONE / _divisor(yield_fraction)))


def compute_recipe_cost(ingredients: Iterable[CostLine], recipe_unit_ratio) -> RecipeCost:
    """Sum ``quantity * cost`` over the lines and divide by the recipe unit ratio."""
    recipe_total = ZERO
    for line in ingredients:
        recipe_total += parse_quantity(line.quantity) * to_decimal(line.cost_per_unit)

    ratio = max(to_decimal(recipe_unit_ratio, ONE), ONE)
    return RecipeCost(
        recipe_total=quantize(recipe_total),
        cost_per_unit=quantize(recipe_total / ratio),
    )


def compute_labor_cost(prep_time, cook_time, rate_per_hour=None) -> Decimal:
    """Labor for the active minutes of a recipe at an hourly rate."""
    rate = to_decimal(rate_per_hour, DEFAULT_LABOR_RATE_PER_HOUR)
    minutes = to_decimal(prep_time) + to_decimal(cook_time)
    return quantize(minutes / MINUTES_PER_HOUR * rate)


def compute_costing_summary(
    ingredients: Iterable[CostLine],
    recipe_unit_ratio,
    prep_time=0,
    cook_time=0,
    labor_rate_per_hour=None,
    target_cost_percent=None,
) -> CostingSummary:
    """Combine ingredient and labor costs into the figures shown on a recipe."""
    recipe_cost = compute_recipe_cost(ingredients, recipe_unit_ratio)
    labor_cost = compute_labor_cost(prep_time, cook_time, labor_rate_per_hour)
    total_cost = recipe_cost.recipe_total + labor_cost

    target_cost = None
    percent = to_decimal(target_cost_percent, default=None)
    if percent is not None:
        target_cost = quantize(total_cost * percent / Decimal("100"))

    return CostingSummary(
        ingredient_total=recipe_cost.recipe_total,
        labor_cost=labor_cost,
        total_cost=quantize(total_cost),
        cost_per_unit=recipe_cost.cost_per_unit,
        target_cost=target_cost,
    )
