"""SQLAlchemy models."""

from backofhouse.models.master_ingredient import MasterIngredient
from backofhouse.models.organization import Organization
from backofhouse.models.recipe import Recipe, RecipeIngredient, RecipeStage, RecipeStep
from backofhouse.models.recipe_version import RecipeVersion
from backofhouse.models.team_member import TeamMember

__all__ = [
    "Organization",
    "MasterIngredient",
    "Recipe",
    "RecipeIngredient",
    "RecipeStage",
    "RecipeStep",
    "RecipeVersion",
    "TeamMember",
]
