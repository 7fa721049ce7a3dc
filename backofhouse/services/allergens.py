"""Allergen flag normalization and recipe allergen aggregation.

Ingredient-derived allergens are advisory. The declared ``contains`` set on a
recipe is only ever changed by an explicit manual declaration; nothing in
this module writes derived allergens into it.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from backofhouse.models.enums import AllergenTier, IngredientKind

ALLERGEN_TYPES = (
    "peanut",
    "crustacean",
    "treenut",
    "shellfish",
    "sesame",
    "soy",
    "fish",
    "wheat",
    "milk",
    "sulphite",
    "egg",
    "gluten",
    "mustard",
    "celery",
    "garlic",
    "onion",
    "nitrite",
    "mushroom",
    "hot_pepper",
    "citrus",
    "pork",
)

CUSTOM_ALLERGEN_SLOTS = (1, 2, 3)

# Precedence when the same allergen appears in more than one tier
TIER_ORDER = (
    AllergenTier.CONTAINS,
    AllergenTier.MAY_CONTAIN,
    AllergenTier.CROSS_CONTACT_RISK,
)

_TIER_ALIASES = {
    AllergenTier.CONTAINS: ("contains",),
    AllergenTier.MAY_CONTAIN: ("may_contain", "mayContain"),
    AllergenTier.CROSS_CONTACT_RISK: ("cross_contact_risk", "crossContactRisk"),
}

_TRUTHY_STRINGS = {"true", "1"}


@dataclass(frozen=True)
class PurchasedRef:
    """Reference to a master ingredient."""

    master_ingredient_id: int
    kind = IngredientKind.PURCHASED


@dataclass(frozen=True)
class SubRecipeRef:
    """Reference to a prepared recipe used as an ingredient."""

    recipe_id: int
    kind = IngredientKind.SUB_RECIPE


IngredientRef = PurchasedRef | SubRecipeRef


@dataclass(frozen=True)
class AllergenSuggestion:
    derived: list[str]
    suggested: list[str]  # Derived from ingredients but not declared
    declared_only: list[str]  # Declared but not backed by any ingredient


def normalize_flag(value) -> bool:
    """Collapse the mixed encodings of a stored allergen flag to a bool.

    ``True``, ``1`` and the strings ``"true"`` / ``"1"`` are set; everything
    else (including ``None``) is not.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False


def normalize_allergen_name(name: str) -> str:
    return name.strip().lower()


def active_allergens(ingredient) -> set[str]:
    """Allergens flagged on a master ingredient, custom names lower-cased."""
    found = {
        allergen
        for allergen in ALLERGEN_TYPES
        if normalize_flag(getattr(ingredient, f"allergen_{allergen}", False))
    }
    for slot in CUSTOM_ALLERGEN_SLOTS:
        name = getattr(ingredient, f"allergen_custom{slot}_name", None)
        active = getattr(ingredient, f"allergen_custom{slot}_active", False)
        if name and name.strip() and normalize_flag(active):
            found.add(normalize_allergen_name(name))
    return found


def ingredient_ref(row) -> IngredientRef:
    """Build the tagged reference for a stored recipe ingredient row."""
    if row.kind == IngredientKind.SUB_RECIPE.value:
        return SubRecipeRef(recipe_id=row.prepared_recipe_id)
    return PurchasedRef(master_ingredient_id=row.master_ingredient_id)


def normalize_allergen_info(value: Mapping | None) -> dict[str, list[str]]:
    """Return a complete allergen document with three disjoint tiers.

    Missing tiers are filled in, names are lower-cased and de-duplicated, and
    an allergen listed in several tiers keeps only the most severe one.
    """
    value = value or {}
    seen: set[str] = set()
    result: dict[str, list[str]] = {}
    for tier in TIER_ORDER:
        entries: list[str] = []
        for key in _TIER_ALIASES[tier]:
            for name in value.get(key) or []:
                if not isinstance(name, str) or not name.strip():
                    continue
                normalized = normalize_allergen_name(name)
                if normalized not in seen:
                    seen.add(normalized)
                    entries.append(normalized)
        result[tier.value] = entries
    return result


def derive_contains_set(
    ingredients: Iterable[IngredientRef],
    master_index: Mapping[int, object],
    recipe_index: Mapping[int, object],
) -> set[str]:
    """Union of allergens contributed by a recipe's ingredient references.

    Purchased references read the master ingredient's active flags; sub-recipe
    references contribute that recipe's declared ``contains`` tier. References
    that resolve nowhere contribute nothing.
    """
    result: set[str] = set()
    for ref in ingredients:
        if isinstance(ref, PurchasedRef):
            master = master_index.get(ref.master_ingredient_id)
            if master is not None:
                result |= active_allergens(master)
        elif isinstance(ref, SubRecipeRef):
            recipe = recipe_index.get(ref.recipe_id)
            if recipe is not None:
                info = normalize_allergen_info(recipe.allergen_info)
                result.update(info[AllergenTier.CONTAINS.value])
    return result


def find_unresolved(
    ingredients: Iterable[IngredientRef],
    master_index: Mapping[int, object],
    recipe_index: Mapping[int, object],
) -> list[IngredientRef]:
    """References that resolve in neither index."""
    unresolved = []
    for ref in ingredients:
        if isinstance(ref, PurchasedRef) and ref.master_ingredient_id not in master_index:
            unresolved.append(ref)
        elif isinstance(ref, SubRecipeRef) and ref.recipe_id not in recipe_index:
            unresolved.append(ref)
    return unresolved


def suggest_allergens(derived: Iterable[str], allergen_info: Mapping | None) -> AllergenSuggestion:
    """Compare ingredient-derived allergens against the manual declaration."""
    derived_set = set(derived)
    declared = set(normalize_allergen_info(allergen_info)[AllergenTier.CONTAINS.value])
    return AllergenSuggestion(
        derived=sorted(derived_set),
        suggested=sorted(derived_set - declared),
        declared_only=sorted(declared - derived_set),
    )


def set_allergen_tier(
    allergen_info: Mapping | None, allergen: str, tier: AllergenTier | None
) -> dict[str, list[str]]:
    """Manually place an allergen in one tier, or clear it when ``tier`` is None."""
    info = normalize_allergen_info(allergen_info)
    name = normalize_allergen_name(allergen)
    for entries in info.values():
        if name in entries:
            entries.remove(name)
    if tier is not None:
        info[AllergenTier(tier).value].append(name)
    return info
