"""Master ingredient catalog API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from backofhouse.api.dependencies import get_current_organization, get_master_ingredient_service
from backofhouse.models.master_ingredient import MasterIngredient
from backofhouse.models.organization import Organization
from backofhouse.schemas.master_ingredient import (
    MasterIngredientCreate,
    MasterIngredientResponse,
    MasterIngredientUpdate,
)
from backofhouse.services.allergens import ALLERGEN_TYPES, active_allergens
from backofhouse.services.master_ingredient_service import MasterIngredientService

router = APIRouter(prefix="/api/v1/master-ingredients", tags=["master-ingredients"])


def to_response(ingredient: MasterIngredient) -> MasterIngredientResponse:
    response = MasterIngredientResponse.model_validate(ingredient)
    response.allergens = sorted(active_allergens(ingredient))
    return response


# --- Static routes first (before /{ingredient_id}) ---


@router.get("/allergen-types")
async def get_allergen_types():
    """Get the fixed allergen types every ingredient can flag."""
    return {"allergen_types": list(ALLERGEN_TYPES)}


@router.get("", response_model=list[MasterIngredientResponse])
async def list_master_ingredients(
    organization: Annotated[Organization, Depends(get_current_organization)],
    service: Annotated[MasterIngredientService, Depends(get_master_ingredient_service)],
    category: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
):
    """List the organization's master ingredients."""
    ingredients = service.list_ingredients(organization.id, category=category, search=search)
    return [to_response(ingredient) for ingredient in ingredients]


@router.post("", response_model=MasterIngredientResponse, status_code=status.HTTP_201_CREATED)
async def create_master_ingredient(
    data: MasterIngredientCreate,
    organization: Annotated[Organization, Depends(get_current_organization)],
    service: Annotated[MasterIngredientService, Depends(get_master_ingredient_service)],
):
    """Create a master ingredient; its recipe-unit cost is derived."""
    return to_response(service.create_ingredient(organization.id, data))


@router.get("/{ingredient_id}", response_model=MasterIngredientResponse)
async def get_master_ingredient(
    ingredient_id: int,
    organization: Annotated[Organization, Depends(get_current_organization)],
    service: Annotated[MasterIngredientService, Depends(get_master_ingredient_service)],
):
    """Get a master ingredient."""
    return to_response(service.get_ingredient(organization.id, ingredient_id))


@router.put("/{ingredient_id}", response_model=MasterIngredientResponse)
async def update_master_ingredient(
    ingredient_id: int,
    data: MasterIngredientUpdate,
    organization: Annotated[Organization, Depends(get_current_organization)],
    service: Annotated[MasterIngredientService, Depends(get_master_ingredient_service)],
):
    """Update a master ingredient, recomputing its cost when a cost input changes."""
    ingredient = service.get_ingredient(organization.id, ingredient_id)
    return to_response(service.update_ingredient(ingredient, data))


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_master_ingredient(
    ingredient_id: int,
    organization: Annotated[Organization, Depends(get_current_organization)],
    service: Annotated[MasterIngredientService, Depends(get_master_ingredient_service)],
):
    """Soft delete a master ingredient."""
    ingredient = service.get_ingredient(organization.id, ingredient_id)
    service.delete_ingredient(ingredient)
