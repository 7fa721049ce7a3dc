"""Enums for model fields."""

from enum import Enum


class RecipeType(str, Enum):
    """Prepared items are sub-components; final items are plated dishes."""

    PREPARED = "prepared"
    FINAL = "final"


class RecipeStatus(str, Enum):
    """Workflow state of a recipe."""

    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    ARCHIVED = "archived"


class IngredientKind(str, Enum):
    """What a recipe ingredient row points at."""

    PURCHASED = "purchased"
    SUB_RECIPE = "sub_recipe"


class AllergenTier(str, Enum):
    """Allergen severity tiers used for labeling."""

    CONTAINS = "contains"
    MAY_CONTAIN = "may_contain"
    CROSS_CONTACT_RISK = "cross_contact_risk"


class WarningLevel(str, Enum):
    """Warning levels for recipe steps."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VersionBump(str, Enum):
    """Which part of the version label to increment."""

    MAJOR = "major"
    MINOR = "minor"
