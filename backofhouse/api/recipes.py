"""Recipe API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from backofhouse.api.dependencies import get_current_organization, get_recipe_service
from backofhouse.models.organization import Organization
from backofhouse.schemas.recipe import (
    AllergenDeclaration,
    AllergenSuggestionResponse,
    AllergenToggle,
    CostingResponse,
    RecipeCreate,
    RecipeIngredientCreate,
    RecipeIngredientResponse,
    RecipeIngredientUpdate,
    RecipeListResponse,
    RecipeResponse,
    RecipeStageCreate,
    RecipeStageResponse,
    RecipeStageUpdate,
    RecipeStepCreate,
    RecipeStepResponse,
    RecipeStepUpdate,
    RecipeUpdate,
    RecipeVersionCreate,
    RecipeVersionResponse,
    RecipeVersionRevert,
    ReorderRequest,
    StatusUpdate,
    TimingResponse,
)
from backofhouse.services.recipe_service import RecipeService

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])

Org = Annotated[Organization, Depends(get_current_organization)]
Service = Annotated[RecipeService, Depends(get_recipe_service)]


# --- Static routes first (before /{recipe_id}) ---


@router.get("", response_model=list[RecipeListResponse])
async def list_recipes(
    organization: Org,
    service: Service,
    recipe_type: Annotated[str | None, Query(alias="type")] = None,
    recipe_status: Annotated[str | None, Query(alias="status")] = None,
):
    """List the organization's recipes, optionally filtered by type and status."""
    recipes = service.list_recipes(
        organization.id, recipe_type=recipe_type, recipe_status=recipe_status
    )

    result = []
    for recipe in recipes:
        result.append(
            RecipeListResponse(
                id=recipe.id,
                type=recipe.type,
                status=recipe.status,
                name=recipe.name,
                category=recipe.category,
                station=recipe.station,
                total_time=recipe.total_time,
                cost_per_unit=recipe.cost_per_unit,
                version=recipe.version,
                ingredient_count=len(recipe.ingredients),
                updated_at=recipe.updated_at,
            )
        )
    return result


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(recipe_data: RecipeCreate, organization: Org, service: Service):
    """Create a recipe with ingredients, stages and steps."""
    return service.create_recipe(organization.id, recipe_data)


@router.post("/recalculate")
async def recalculate_recipes(organization: Org, service: Service):
    """Recompute derived times and costs for every recipe in the organization."""
    count = service.recalculate_all(organization.id)
    return {"recalculated": count}


# --- Ingredient routes (before /{recipe_id}) ---


@router.put("/ingredients/{ingredient_id}", response_model=RecipeIngredientResponse)
async def update_ingredient(
    ingredient_id: int,
    ingredient_data: RecipeIngredientUpdate,
    organization: Org,
    service: Service,
):
    """Update an ingredient line; the recipe's cost is recomputed."""
    ingredient = service.get_ingredient(organization.id, ingredient_id)
    return service.update_ingredient(ingredient, ingredient_data)


@router.delete("/ingredients/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ingredient(ingredient_id: int, organization: Org, service: Service):
    """Remove an ingredient line from its recipe."""
    ingredient = service.get_ingredient(organization.id, ingredient_id)
    service.delete_ingredient(ingredient)


# --- Stage and step routes (before /{recipe_id}) ---


@router.put("/stages/{stage_id}", response_model=RecipeStageResponse)
async def update_stage(
    stage_id: int,
    stage_data: RecipeStageUpdate,
    organization: Org,
    service: Service,
):
    """Rename a stage or change its prep-list flag."""
    stage = service.get_stage(organization.id, stage_id)
    return service.update_stage(stage, stage_data)


@router.delete("/stages/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_stage(stage_id: int, organization: Org, service: Service):
    """Delete a stage; its steps stay on the recipe without a stage."""
    stage = service.get_stage(organization.id, stage_id)
    service.remove_stage(stage)


@router.put("/steps/{step_id}", response_model=RecipeStepResponse)
async def update_step(
    step_id: int,
    step_data: RecipeStepUpdate,
    organization: Org,
    service: Service,
):
    """Update a step; stage totals are rolled up again."""
    step = service.get_step(organization.id, step_id)
    return service.update_step(step, step_data)


@router.delete("/steps/{step_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_step(step_id: int, organization: Org, service: Service):
    """Delete a step."""
    step = service.get_step(organization.id, step_id)
    service.delete_step(step)


# --- Dynamic recipe routes (must be last) ---


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(recipe_id: int, organization: Org, service: Service):
    """Get a recipe with its ingredients, stages and steps."""
    return service.get_recipe(organization.id, recipe_id)


@router.put("/{recipe_id}", response_model=RecipeResponse)
async def update_recipe(
    recipe_id: int,
    recipe_data: RecipeUpdate,
    organization: Org,
    service: Service,
):
    """Update recipe metadata (not ingredients, stages or steps)."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.update_recipe(recipe, recipe_data)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(recipe_id: int, organization: Org, service: Service):
    """Soft delete a recipe."""
    recipe = service.get_recipe(organization.id, recipe_id)
    service.delete_recipe(recipe)


@router.post(
    "/{recipe_id}/ingredients",
    response_model=RecipeIngredientResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_ingredient(
    recipe_id: int,
    ingredient_data: RecipeIngredientCreate,
    organization: Org,
    service: Service,
):
    """Add a purchased or sub-recipe ingredient line."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.add_ingredient(recipe, ingredient_data)


@router.post(
    "/{recipe_id}/stages",
    response_model=RecipeStageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_stage(
    recipe_id: int,
    stage_data: RecipeStageCreate,
    organization: Org,
    service: Service,
):
    """Append a stage."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.add_stage(recipe, stage_data)


@router.post("/{recipe_id}/stages/reorder", response_model=list[RecipeStageResponse])
async def reorder_stages(
    recipe_id: int,
    request: ReorderRequest,
    organization: Org,
    service: Service,
):
    """Move a stage to a new position."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.reorder_stages(recipe, request.item_id, request.new_index)


@router.post(
    "/{recipe_id}/steps",
    response_model=RecipeStepResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_step(
    recipe_id: int,
    step_data: RecipeStepCreate,
    organization: Org,
    service: Service,
):
    """Append a step, optionally assigned to one of the recipe's stages."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.add_step(recipe, step_data)


@router.post("/{recipe_id}/steps/reorder", response_model=list[RecipeStepResponse])
async def reorder_steps(
    recipe_id: int,
    request: ReorderRequest,
    organization: Org,
    service: Service,
):
    """Move a step to a new position."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.reorder_steps(recipe, request.item_id, request.new_index)


@router.get("/{recipe_id}/costing", response_model=CostingResponse)
async def get_costing(recipe_id: int, organization: Org, service: Service):
    """Cost breakdown, including lines whose ingredient no longer resolves."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.costing(recipe)


@router.get("/{recipe_id}/timing", response_model=TimingResponse)
async def get_timing(recipe_id: int, organization: Org, service: Service):
    """Recipe times with per-stage totals."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.timing(recipe)


@router.get("/{recipe_id}/allergens/suggestions", response_model=AllergenSuggestionResponse)
async def get_allergen_suggestions(recipe_id: int, organization: Org, service: Service):
    """Allergens implied by the ingredients. The declaration is not changed."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.allergen_suggestions(recipe)


@router.put("/{recipe_id}/allergens", response_model=RecipeResponse)
async def declare_allergens(
    recipe_id: int,
    declaration: AllergenDeclaration,
    organization: Org,
    service: Service,
):
    """Replace the recipe's declared allergens."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.declare_allergens(recipe, declaration.allergen_info, declaration.modified_by)


@router.post("/{recipe_id}/allergens/toggle", response_model=RecipeResponse)
async def toggle_allergen(
    recipe_id: int,
    toggle: AllergenToggle,
    organization: Org,
    service: Service,
):
    """Move one allergen into a tier, or clear it."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.toggle_allergen(recipe, toggle.allergen, toggle.tier, toggle.modified_by)


@router.put("/{recipe_id}/status", response_model=RecipeResponse)
async def update_status(
    recipe_id: int,
    status_data: StatusUpdate,
    organization: Org,
    service: Service,
):
    """Move the recipe through the approval workflow."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.set_status(
        recipe, status_data.status, status_data.actor, status_data.notes
    )


@router.get("/{recipe_id}/versions", response_model=list[RecipeVersionResponse])
async def list_versions(recipe_id: int, organization: Org, service: Service):
    """Version history, newest first."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.list_versions(recipe)


@router.post(
    "/{recipe_id}/versions",
    response_model=RecipeVersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_version(
    recipe_id: int,
    version_data: RecipeVersionCreate,
    organization: Org,
    service: Service,
):
    """Archive the current recipe and bump its version label."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.create_version(recipe, version_data)


@router.post("/{recipe_id}/versions/{version_id}/revert", response_model=RecipeResponse)
async def revert_version(
    recipe_id: int,
    version_id: int,
    revert_data: RecipeVersionRevert,
    organization: Org,
    service: Service,
):
    """Restore a stored version as a new draft."""
    recipe = service.get_recipe(organization.id, recipe_id)
    return service.revert_to_version(recipe, version_id, revert_data)
