"""Master ingredient service: catalog CRUD with derived recipe-unit cost."""

import logging

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backofhouse.database import commit_or_raise
from backofhouse.models.master_ingredient import MasterIngredient
from backofhouse.schemas.master_ingredient import MasterIngredientCreate, MasterIngredientUpdate
from backofhouse.services.costing import compute_ingredient_cost_per_unit

logger = logging.getLogger(__name__)

COST_INPUT_FIELDS = {"current_price", "recipe_unit_per_purchase_unit", "yield_percent"}
REQUIRED_FIELDS = {"item_code", "product", "current_price", "yield_percent"}


def recalculate_cost(ingredient: MasterIngredient) -> bool:
    """Refresh ``cost_per_recipe_unit`` from its inputs. Returns True if it changed."""
    new_cost = compute_ingredient_cost_per_unit(
        ingredient.current_price,
        ingredient.recipe_unit_per_purchase_unit,
        ingredient.yield_percent,
    )
    if ingredient.cost_per_recipe_unit is not None and ingredient.cost_per_recipe_unit == new_cost:
        return False
    logger.info(
        f"Master ingredient {ingredient.id or 'new'} cost_per_recipe_unit "
        f"{ingredient.cost_per_recipe_unit} -> {new_cost}"
    )
    ingredient.cost_per_recipe_unit = new_cost
    return True


class MasterIngredientService:
    """Service for the organization's master ingredient catalog."""

    def __init__(self, db: Session):
        self.db = db

    def list_ingredients(
        self,
        organization_id: int,
        category: str | None = None,
        search: str | None = None,
    ) -> list[MasterIngredient]:
        query = self.db.query(MasterIngredient).filter(
            MasterIngredient.organization_id == organization_id,
            MasterIngredient.deleted_at.is_(None),
        )
        if category:
            query = query.filter(MasterIngredient.category == category)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    MasterIngredient.product.ilike(pattern),
                    MasterIngredient.item_code.ilike(pattern),
                    MasterIngredient.vendor.ilike(pattern),
                )
            )
        return query.order_by(MasterIngredient.product).all()

    def get_ingredient(self, organization_id: int, ingredient_id: int) -> MasterIngredient:
        ingredient = (
            self.db.query(MasterIngredient)
            .filter(
                MasterIngredient.id == ingredient_id,
                MasterIngredient.organization_id == organization_id,
                MasterIngredient.deleted_at.is_(None),
            )
            .first()
        )
        if not ingredient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Master ingredient not found"
            )
        return ingredient

    def load_index(self, organization_id: int) -> dict[int, MasterIngredient]:
        """Fetch the active catalog keyed by id."""
        return {
            ingredient.id: ingredient
            for ingredient in self.list_ingredients(organization_id)
        }

    def create_ingredient(
        self, organization_id: int, data: MasterIngredientCreate
    ) -> MasterIngredient:
        self._ensure_unique_item_code(organization_id, data.item_code)

        ingredient = MasterIngredient(organization_id=organization_id, **data.model_dump())
        recalculate_cost(ingredient)
        self.db.add(ingredient)
        commit_or_raise(
            self.db,
            "create master ingredient",
            conflict_detail="An ingredient with this item code already exists",
        )
        self.db.refresh(ingredient)
        return ingredient

    def update_ingredient(
        self, ingredient: MasterIngredient, data: MasterIngredientUpdate
    ) -> MasterIngredient:
        """Apply changes and recompute this ingredient's cost per recipe unit.

        Recipes that use the ingredient keep their stored cost until they are
        recalculated (``RecipeService.recalculate_all``, exposed as
        ``POST /api/v1/recipes/recalculate``).
        """
        changes = data.model_dump(exclude_unset=True)
        if "item_code" in changes and changes["item_code"] != ingredient.item_code:
            self._ensure_unique_item_code(ingredient.organization_id, changes["item_code"])

        for field, value in changes.items():
            if value is None and field in REQUIRED_FIELDS:
                continue  # Required columns; null means "leave as is"
            setattr(ingredient, field, value)

        if COST_INPUT_FIELDS & changes.keys():
            recalculate_cost(ingredient)

        commit_or_raise(
            self.db,
            "update master ingredient",
            conflict_detail="An ingredient with this item code already exists",
        )
        self.db.refresh(ingredient)
        return ingredient

    def delete_ingredient(self, ingredient: MasterIngredient) -> None:
        """Soft delete; recipes that still reference it see an unresolved line."""
        ingredient.soft_delete()
        commit_or_raise(self.db, "delete master ingredient")

    def _ensure_unique_item_code(self, organization_id: int, item_code: str) -> None:
        existing = (
            self.db.query(MasterIngredient)
            .filter(
                MasterIngredient.organization_id == organization_id,
                MasterIngredient.item_code == item_code,
            )
            .first()
        )
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An ingredient with this item code already exists",
            )
