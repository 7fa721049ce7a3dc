"""Pydantic schemas for API requests and responses."""

from backofhouse.schemas.master_ingredient import (
    MasterIngredientCreate,
    MasterIngredientResponse,
    MasterIngredientUpdate,
)
from backofhouse.schemas.organization import OrganizationCreate, OrganizationResponse
from backofhouse.schemas.recipe import RecipeCreate, RecipeResponse, RecipeUpdate
from backofhouse.schemas.team_member import TeamMemberCreate, TeamMemberResponse, TeamMemberUpdate

__all__ = [
    "OrganizationCreate",
    "OrganizationResponse",
    "MasterIngredientCreate",
    "MasterIngredientUpdate",
    "MasterIngredientResponse",
    "RecipeCreate",
    "RecipeUpdate",
    "RecipeResponse",
    "TeamMemberCreate",
    "TeamMemberUpdate",
    "TeamMemberResponse",
]
