"""FastAPI dependencies for organization scoping and services."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from backofhouse.config import get_settings
from backofhouse.database import get_db
from backofhouse.models.organization import Organization
from backofhouse.services.master_ingredient_service import MasterIngredientService
from backofhouse.services.recipe_service import RecipeService


def get_current_organization(
    x_organization_id: Annotated[int, Header()],
    db: Annotated[Session, Depends(get_db)],
) -> Organization:
    """Get the organization named by the ``X-Organization-ID`` header.

    This only scopes the request; callers are not authenticated.
    """
    organization = db.query(Organization).filter(Organization.id == x_organization_id).first()
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )
    return organization


def get_master_ingredient_service(
    db: Annotated[Session, Depends(get_db)],
) -> MasterIngredientService:
    """Get master ingredient service with dependencies."""
    return MasterIngredientService(db)


def get_recipe_service(
    db: Annotated[Session, Depends(get_db)],
) -> RecipeService:
    """Get recipe service with dependencies."""
    return RecipeService(db, get_settings())
