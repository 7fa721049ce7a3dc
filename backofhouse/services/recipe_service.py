"""Recipe service: recompute-then-save orchestration for recipes."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from backofhouse.config import Settings, get_settings
from backofhouse.database import commit_or_raise
from backofhouse.models.enums import IngredientKind, RecipeStatus, VersionBump
from backofhouse.models.master_ingredient import MasterIngredient
from backofhouse.models.recipe import Recipe, RecipeIngredient, RecipeStage, RecipeStep
from backofhouse.models.recipe_version import RecipeVersion
from backofhouse.schemas.recipe import (
    AllergenInfo,
    RecipeCreate,
    RecipeIngredientCreate,
    RecipeIngredientUpdate,
    RecipeStageCreate,
    RecipeStageUpdate,
    RecipeStepCreate,
    RecipeStepUpdate,
    RecipeUpdate,
    RecipeVersionCreate,
    RecipeVersionRevert,
)
from backofhouse.services import allergens
from backofhouse.services.costing import (
    CostLine,
    compute_costing_summary,
    parse_quantity,
    quantize,
    to_decimal,
)
from backofhouse.services.stages import (
    apply_stage_rollup,
    detach_stage,
    move_item,
    roll_up_stage_times,
)

logger = logging.getLogger(__name__)

# Recipe fields captured in a version snapshot and restored on revert
SNAPSHOT_FIELDS = (
    "type",
    "name",
    "description",
    "major_group",
    "category",
    "sub_category",
    "station",
    "prep_time",
    "cook_time",
    "rest_time",
    "yield_amount",
    "yield_unit",
    "recipe_unit_ratio",
    "unit_type",
    "labor_cost_per_hour",
    "target_cost_percent",
    "allergen_info",
    "quality_standards",
    "training",
    "storage",
    "equipment",
    "media",
)
DECIMAL_SNAPSHOT_FIELDS = {
    "yield_amount",
    "recipe_unit_ratio",
    "labor_cost_per_hour",
    "target_cost_percent",
}
INGREDIENT_SNAPSHOT_FIELDS = (
    "kind",
    "master_ingredient_id",
    "prepared_recipe_id",
    "quantity",
    "unit",
    "notes",
)
STEP_SNAPSHOT_FIELDS = (
    "instruction",
    "warning_level",
    "time_in_minutes",
    "temperature_unit",
    "is_quality_control_point",
    "is_critical_control_point",
    "notes",
)

# Step columns that cannot be cleared
STEP_REQUIRED_FIELDS = ("instruction", "is_quality_control_point", "is_critical_control_point")


@dataclass
class CatalogIndex:
    """Explicitly fetched lookup tables for one organization."""

    masters: dict[int, MasterIngredient]
    recipes: dict[int, Recipe]


def next_version_label(current: str | None, bump: VersionBump) -> str:
    """Bump a "major.minor" label; unparseable labels count as 1.0."""
    parts = (current or "1.0").split(".")
    try:
        major = int(parts[0])
    except ValueError:
        major = 1
    try:
        minor = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        minor = 0
    if bump == VersionBump.MAJOR:
        return f"{major + 1}.0"
    return f"{major}.{minor + 1}"


def _json_value(value):
    return str(value) if isinstance(value, Decimal) else value


def _or_default(value, default):
    return default if value is None else value


class RecipeService:
    """Service for recipe-related operations."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    # --- Loading ---

    def list_recipes(
        self,
        organization_id: int,
        recipe_type: str | None = None,
        recipe_status: str | None = None,
    ) -> list[Recipe]:
        query = self.db.query(Recipe).filter(
            Recipe.organization_id == organization_id,
            Recipe.deleted_at.is_(None),
        )
        if recipe_type:
            query = query.filter(Recipe.type == recipe_type)
        if recipe_status:
            query = query.filter(Recipe.status == recipe_status)
        return query.order_by(Recipe.name).all()

    def get_recipe(self, organization_id: int, recipe_id: int) -> Recipe:
        recipe = (
            self.db.query(Recipe)
            .filter(
                Recipe.id == recipe_id,
                Recipe.organization_id == organization_id,
                Recipe.deleted_at.is_(None),
            )
            .first()
        )
        if not recipe:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
        return recipe

    def get_ingredient(self, organization_id: int, ingredient_id: int) -> RecipeIngredient:
        ingredient = (
            self.db.query(RecipeIngredient)
            .join(Recipe, RecipeIngredient.recipe_id == Recipe.id)
            .filter(
                RecipeIngredient.id == ingredient_id,
                Recipe.organization_id == organization_id,
                Recipe.deleted_at.is_(None),
            )
            .first()
        )
        if not ingredient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Ingredient not found"
            )
        return ingredient

    def get_stage(self, organization_id: int, stage_id: int) -> RecipeStage:
        stage = (
            self.db.query(RecipeStage)
            .join(Recipe)
            .filter(
                RecipeStage.id == stage_id,
                Recipe.organization_id == organization_id,
                Recipe.deleted_at.is_(None),
            )
            .first()
        )
        if not stage:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stage not found")
        return stage

    def get_step(self, organization_id: int, step_id: int) -> RecipeStep:
        step = (
            self.db.query(RecipeStep)
            .join(Recipe)
            .filter(
                RecipeStep.id == step_id,
                Recipe.organization_id == organization_id,
                Recipe.deleted_at.is_(None),
            )
            .first()
        )
        if not step:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Step not found")
        return step

    def load_indexes(self, organization_id: int) -> CatalogIndex:
        """Refetch the master ingredient and recipe lookups for an organization."""
        masters = (
            self.db.query(MasterIngredient)
            .filter(
                MasterIngredient.organization_id == organization_id,
                MasterIngredient.deleted_at.is_(None),
            )
            .all()
        )
        recipes = self.list_recipes(organization_id)
        return CatalogIndex(
            masters={m.id: m for m in masters},
            recipes={r.id: r for r in recipes},
        )

    # --- Derived values ---

    def _unit_cost(self, ingredient: RecipeIngredient, index: CatalogIndex) -> Decimal | None:
        ref = allergens.ingredient_ref(ingredient)
        if isinstance(ref, allergens.PurchasedRef):
            master = index.masters.get(ref.master_ingredient_id)
            return to_decimal(master.cost_per_recipe_unit) if master else None
        sub_recipe = index.recipes.get(ref.recipe_id)
        return to_decimal(sub_recipe.cost_per_unit) if sub_recipe else None

    def costing(self, recipe: Recipe, index: CatalogIndex | None = None) -> dict:
        """Cost breakdown for a recipe, including unresolved ingredient lines."""
        index = index or self.load_indexes(recipe.organization_id)
        lines = []
        cost_lines = []
        unresolved = []
        for ingredient in recipe.ingredients:
            unit_cost = self._unit_cost(ingredient, index)
            if unit_cost is None:
                unresolved.append(ingredient.id)
            quantity = parse_quantity(ingredient.quantity)
            cost_lines.append(CostLine(quantity=quantity, cost_per_unit=unit_cost))
            lines.append(
                {
                    "ingredient_id": ingredient.id,
                    "kind": ingredient.kind,
                    "quantity": quantity,
                    "unit_cost": unit_cost or Decimal("0"),
                    "line_cost": quantize(quantity * (unit_cost or Decimal("0"))),
                    "resolved": unit_cost is not None,
                }
            )

        if unresolved:
            logger.warning(f"Recipe {recipe.id} has unresolved ingredients: {unresolved}")

        summary = compute_costing_summary(
            cost_lines,
            recipe.recipe_unit_ratio,
            prep_time=recipe.prep_time,
            cook_time=recipe.cook_time,
            labor_rate_per_hour=_or_default(
                recipe.labor_cost_per_hour, self.settings.default_labor_rate_per_hour
            ),
            target_cost_percent=_or_default(
                recipe.target_cost_percent, self.settings.default_target_cost_percent
            ),
        )
        return {
            "recipe_id": recipe.id,
            "ingredient_total": summary.ingredient_total,
            "labor_cost": summary.labor_cost,
            "total_cost": summary.total_cost,
            "cost_per_unit": summary.cost_per_unit,
            "target_cost": summary.target_cost,
            "lines": lines,
            "unresolved_ingredient_ids": unresolved,
        }

    def recalculate(self, recipe: Recipe, index: CatalogIndex | None = None) -> None:
        """Refresh every derived field on the recipe. Does not commit."""
        recipe.total_time = sum(
            int(to_decimal(minutes))
            for minutes in (recipe.prep_time, recipe.cook_time, recipe.rest_time)
        )

        breakdown = self.costing(recipe, index)
        if to_decimal(recipe.cost_per_unit) != breakdown["cost_per_unit"]:
            logger.info(
                f"Recipe {recipe.id} cost_per_unit {recipe.cost_per_unit} -> "
                f"{breakdown['cost_per_unit']}"
            )
        recipe.cost_per_unit = breakdown["cost_per_unit"]
        recipe.total_cost = breakdown["total_cost"]

        rollup = roll_up_stage_times(recipe.steps, recipe.stages)
        for stage in apply_stage_rollup(recipe.stages, rollup):
            logger.info(f"Stage {stage.id} total_time -> {stage.total_time}")

    def recalculate_all(self, organization_id: int) -> int:
        """Recompute every recipe, sub-recipes before the recipes that use them."""
        index = self.load_indexes(organization_id)
        done: set[int] = set()
        in_progress: set[int] = set()

        def visit(recipe: Recipe) -> None:
            if recipe.id in done or recipe.id in in_progress:
                return
            in_progress.add(recipe.id)
            for ingredient in recipe.ingredients:
                if ingredient.kind == IngredientKind.SUB_RECIPE.value:
                    sub_recipe = index.recipes.get(ingredient.prepared_recipe_id)
                    if sub_recipe is not None:
                        visit(sub_recipe)
            self.recalculate(recipe, index)
            in_progress.discard(recipe.id)
            done.add(recipe.id)

        for recipe in index.recipes.values():
            visit(recipe)
        commit_or_raise(self.db, "recalculate recipes")
        return len(done)

    def timing(self, recipe: Recipe) -> dict:
        rollup = roll_up_stage_times(recipe.steps, recipe.stages)
        return {
            "recipe_id": recipe.id,
            "prep_time": recipe.prep_time,
            "cook_time": recipe.cook_time,
            "rest_time": recipe.rest_time,
            "total_time": recipe.total_time,
            "stages": [
                {"stage_id": stage.id, "name": stage.name, "total_time": rollup.totals[stage.id]}
                for stage in recipe.stages
            ],
            "unstaged_time": rollup.unstaged_total,
        }

    # --- Recipes ---

    def create_recipe(self, organization_id: int, data: RecipeCreate) -> Recipe:
        """Create a recipe with nested ingredients, stages and steps."""
        index = self.load_indexes(organization_id)
        for ing_data in data.ingredients:
            self._validate_reference(None, ing_data, index)

        recipe = Recipe(
            organization_id=organization_id,
            **data.model_dump(exclude={"type", "ingredients", "stages", "steps", "allergen_info"}),
            type=data.type.value,
            allergen_info=allergens.normalize_allergen_info(data.allergen_info.model_dump()),
        )
        for position, ing_data in enumerate(data.ingredients):
            recipe.ingredients.append(self._new_ingredient(ing_data, position))
        for position, stage_data in enumerate(data.stages):
            recipe.stages.append(
                RecipeStage(
                    name=stage_data.name,
                    is_prep_list_task=stage_data.is_prep_list_task,
                    sort_order=position,
                )
            )
        self.db.add(recipe)
        self.db.flush()  # Stage ids for step assignment

        for position, step_data in enumerate(data.steps):
            stage_id = step_data.stage_id
            if step_data.stage_index is not None:
                if step_data.stage_index >= len(recipe.stages):
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"Step {position} refers to missing stage {step_data.stage_index}",
                    )
                stage_id = recipe.stages[step_data.stage_index].id
            step = self._new_step(step_data, position)
            step.stage_id = stage_id
            recipe.steps.append(step)
        self.db.flush()
        self._validate_step_stages(recipe)

        index.recipes[recipe.id] = recipe
        self.recalculate(recipe, index)
        commit_or_raise(self.db, "create recipe")
        self.db.refresh(recipe)
        return recipe

    def update_recipe(self, recipe: Recipe, data: RecipeUpdate) -> Recipe:
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("type", "prep_time", "cook_time", "rest_time"):
                continue
            if value is None and field == "recipe_unit_ratio":
                value = Decimal("1")
            if field == "type":
                value = value.value
            setattr(recipe, field, value)

        self.recalculate(recipe)
        commit_or_raise(self.db, "update recipe")
        self.db.refresh(recipe)
        return recipe

    def delete_recipe(self, recipe: Recipe) -> None:
        """Soft delete; parent recipes keep the line as an unresolved reference."""
        recipe.soft_delete()
        commit_or_raise(self.db, "delete recipe")

    # --- Ingredients ---

    def _validate_reference(
        self,
        recipe: Recipe | None,
        data: RecipeIngredientCreate,
        index: CatalogIndex,
    ) -> None:
        if data.kind == IngredientKind.PURCHASED:
            if data.master_ingredient_id not in index.masters:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Master ingredient {data.master_ingredient_id} not found",
                )
            return

        if data.prepared_recipe_id not in index.recipes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Recipe {data.prepared_recipe_id} not found",
            )
        if recipe is not None and self._reaches(data.prepared_recipe_id, recipe.id, index):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A recipe cannot contain itself",
            )

    def _reaches(self, start_id: int, target_id: int, index: CatalogIndex) -> bool:
        """True if ``target_id`` is ``start_id`` or one of its nested sub-recipes."""
        pending = [start_id]
        seen: set[int] = set()
        while pending:
            current = pending.pop()
            if current == target_id:
                return True
            if current in seen or current not in index.recipes:
                continue
            seen.add(current)
            pending.extend(
                ing.prepared_recipe_id
                for ing in index.recipes[current].ingredients
                if ing.kind == IngredientKind.SUB_RECIPE.value
            )
        return False

    def _new_ingredient(self, data: RecipeIngredientCreate, position: int) -> RecipeIngredient:
        return RecipeIngredient(
            kind=data.kind.value,
            master_ingredient_id=data.master_ingredient_id,
            prepared_recipe_id=data.prepared_recipe_id,
            quantity=data.quantity,
            unit=data.unit,
            notes=data.notes,
            sort_order=position,
        )

    def add_ingredient(self, recipe: Recipe, data: RecipeIngredientCreate) -> RecipeIngredient:
        index = self.load_indexes(recipe.organization_id)
        self._validate_reference(recipe, data, index)

        ingredient = self._new_ingredient(data, len(recipe.ingredients))
        recipe.ingredients.append(ingredient)
        self.recalculate(recipe, index)
        commit_or_raise(self.db, "add ingredient")
        self.db.refresh(ingredient)
        return ingredient

    def update_ingredient(
        self, ingredient: RecipeIngredient, data: RecipeIngredientUpdate
    ) -> RecipeIngredient:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(ingredient, field, value)

        self.recalculate(ingredient.recipe)
        commit_or_raise(self.db, "update ingredient")
        self.db.refresh(ingredient)
        return ingredient

    def delete_ingredient(self, ingredient: RecipeIngredient) -> None:
        recipe = ingredient.recipe
        recipe.ingredients.remove(ingredient)
        for position, remaining in enumerate(recipe.ingredients):
            remaining.sort_order = position
        self.recalculate(recipe)
        commit_or_raise(self.db, "delete ingredient")

    # --- Stages and steps ---

    def add_stage(self, recipe: Recipe, data: RecipeStageCreate) -> RecipeStage:
        stage = RecipeStage(
            name=data.name,
            is_prep_list_task=data.is_prep_list_task,
            sort_order=len(recipe.stages),
        )
        recipe.stages.append(stage)
        commit_or_raise(self.db, "add stage")
        self.db.refresh(stage)
        return stage

    def update_stage(self, stage: RecipeStage, data: RecipeStageUpdate) -> RecipeStage:
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(stage, field, value)
        commit_or_raise(self.db, "update stage")
        self.db.refresh(stage)
        return stage

    def remove_stage(self, stage: RecipeStage) -> None:
        """Delete a stage, keeping its steps as unstaged.

        The steps are detached and the stage deleted in two separate commits,
        so a failure in between leaves the stage in place with no steps.
        """
        recipe = stage.recipe
        detached = detach_stage(recipe.steps, stage.id)
        commit_or_raise(self.db, "detach steps from stage")
        logger.info(f"Detached {len(detached)} steps from stage {stage.id}")

        recipe.stages.remove(stage)
        for position, remaining in enumerate(recipe.stages):
            remaining.sort_order = position
        commit_or_raise(self.db, "delete stage")

    def reorder_stages(self, recipe: Recipe, stage_id: int, new_index: int) -> list[RecipeStage]:
        try:
            ordered = move_item(recipe.stages, stage_id, new_index)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Stage not found"
            ) from None
        commit_or_raise(self.db, "reorder stages")
        return ordered

    def _new_step(self, data: RecipeStepCreate, position: int) -> RecipeStep:
        return RecipeStep(
            stage_id=data.stage_id,
            instruction=data.instruction,
            warning_level=data.warning_level.value if data.warning_level else None,
            time_in_minutes=data.time_in_minutes,
            temperature_value=data.temperature_value,
            temperature_unit=data.temperature_unit,
            is_quality_control_point=data.is_quality_control_point,
            is_critical_control_point=data.is_critical_control_point,
            notes=data.notes,
            sort_order=position,
        )

    def _validate_step_stages(self, recipe: Recipe) -> None:
        stage_ids = {stage.id for stage in recipe.stages}
        for step in recipe.steps:
            if step.stage_id is not None and step.stage_id not in stage_ids:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Stage {step.stage_id} does not belong to this recipe",
                )

    def add_step(self, recipe: Recipe, data: RecipeStepCreate) -> RecipeStep:
        step = self._new_step(data, len(recipe.steps))
        recipe.steps.append(step)
        self._validate_step_stages(recipe)
        self.recalculate(recipe)
        commit_or_raise(self.db, "add step")
        self.db.refresh(step)
        return step

    def update_step(self, step: RecipeStep, data: RecipeStepUpdate) -> RecipeStep:
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in STEP_REQUIRED_FIELDS:
                continue
            if field == "warning_level" and value is not None:
                value = value.value
            setattr(step, field, value)

        self._validate_step_stages(step.recipe)
        self.recalculate(step.recipe)
        commit_or_raise(self.db, "update step")
        self.db.refresh(step)
        return step

    def delete_step(self, step: RecipeStep) -> None:
        recipe = step.recipe
        recipe.steps.remove(step)
        for position, remaining in enumerate(recipe.steps):
            remaining.sort_order = position
        self.recalculate(recipe)
        commit_or_raise(self.db, "delete step")

    def reorder_steps(self, recipe: Recipe, step_id: int, new_index: int) -> list[RecipeStep]:
        try:
            ordered = move_item(recipe.steps, step_id, new_index)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Step not found"
            ) from None
        commit_or_raise(self.db, "reorder steps")
        return ordered

    # --- Allergens ---

    def allergen_suggestions(self, recipe: Recipe) -> dict:
        """Allergens the ingredients suggest, without touching the declaration."""
        index = self.load_indexes(recipe.organization_id)
        refs = [allergens.ingredient_ref(ingredient) for ingredient in recipe.ingredients]
        derived = allergens.derive_contains_set(refs, index.masters, index.recipes)
        suggestion = allergens.suggest_allergens(derived, recipe.allergen_info)

        unresolved_refs = set(allergens.find_unresolved(refs, index.masters, index.recipes))
        unresolved_ids = [
            ingredient.id
            for ingredient, ref in zip(recipe.ingredients, refs, strict=True)
            if ref in unresolved_refs
        ]
        return {
            "recipe_id": recipe.id,
            "declared": allergens.normalize_allergen_info(recipe.allergen_info),
            "derived": suggestion.derived,
            "suggested": suggestion.suggested,
            "declared_only": suggestion.declared_only,
            "unresolved_ingredient_ids": unresolved_ids,
        }

    def declare_allergens(
        self, recipe: Recipe, allergen_info: AllergenInfo, modified_by: str | None = None
    ) -> Recipe:
        """Replace the manual allergen declaration."""
        recipe.allergen_info = allergens.normalize_allergen_info(allergen_info.model_dump())
        recipe.modified_by = modified_by or recipe.modified_by
        commit_or_raise(self.db, "update allergens")
        self.db.refresh(recipe)
        return recipe

    def toggle_allergen(
        self, recipe: Recipe, allergen: str, tier, modified_by: str | None = None
    ) -> Recipe:
        recipe.allergen_info = allergens.set_allergen_tier(recipe.allergen_info, allergen, tier)
        recipe.modified_by = modified_by or recipe.modified_by
        commit_or_raise(self.db, "update allergens")
        self.db.refresh(recipe)
        return recipe

    # --- Status and versions ---

    def set_status(
        self,
        recipe: Recipe,
        new_status: RecipeStatus,
        actor: str | None,
        notes: str | None = None,
    ) -> Recipe:
        now = datetime.now(UTC)
        recipe.status = new_status.value
        if new_status == RecipeStatus.APPROVED:
            recipe.approved_by = actor
            recipe.approved_at = now
            recipe.approval_notes = notes
        elif new_status == RecipeStatus.REVIEW:
            recipe.last_reviewed_by = actor
            recipe.last_reviewed_at = now
        recipe.modified_by = actor or recipe.modified_by
        commit_or_raise(self.db, "change recipe status")
        self.db.refresh(recipe)
        return recipe

    def _snapshot(self, recipe: Recipe) -> dict:
        stage_positions = {stage.id: position for position, stage in enumerate(recipe.stages)}
        return {
            "recipe": {field: _json_value(getattr(recipe, field)) for field in SNAPSHOT_FIELDS},
            "ingredients": [
                {field: getattr(ing, field) for field in INGREDIENT_SNAPSHOT_FIELDS}
                for ing in recipe.ingredients
            ],
            "stages": [
                {"name": stage.name, "is_prep_list_task": stage.is_prep_list_task}
                for stage in recipe.stages
            ],
            "steps": [
                {
                    **{field: getattr(step, field) for field in STEP_SNAPSHOT_FIELDS},
                    "temperature_value": _json_value(step.temperature_value),
                    "stage_index": stage_positions.get(step.stage_id),
                }
                for step in recipe.steps
            ],
        }

    def _restore(self, recipe: Recipe, snapshot: dict) -> None:
        for field, value in snapshot["recipe"].items():
            if field in DECIMAL_SNAPSHOT_FIELDS and value is not None:
                value = Decimal(value)
            setattr(recipe, field, value)

        recipe.ingredients.clear()
        recipe.steps.clear()
        recipe.stages.clear()
        self.db.flush()

        for position, data in enumerate(snapshot["ingredients"]):
            recipe.ingredients.append(RecipeIngredient(sort_order=position, **data))
        for position, data in enumerate(snapshot["stages"]):
            recipe.stages.append(RecipeStage(sort_order=position, **data))
        self.db.flush()

        for position, data in enumerate(snapshot["steps"]):
            data = dict(data)
            stage_index = data.pop("stage_index")
            if data["temperature_value"] is not None:
                data["temperature_value"] = Decimal(data["temperature_value"])
            step = RecipeStep(sort_order=position, **data)
            if stage_index is not None and stage_index < len(recipe.stages):
                step.stage_id = recipe.stages[stage_index].id
            recipe.steps.append(step)

    def list_versions(self, recipe: Recipe) -> list[RecipeVersion]:
        return list(recipe.versions)

    def _archive_current(
        self,
        recipe: Recipe,
        created_by: str | None,
        changes: list[str],
        notes: str | None,
        reverted_from: str | None = None,
    ) -> RecipeVersion:
        entry = RecipeVersion(
            recipe_id=recipe.id,
            version=recipe.version,
            created_by=created_by,
            changes=changes,
            notes=notes,
            status=recipe.status,
            reverted_from=reverted_from,
            approved_by=recipe.approved_by,
            approved_at=recipe.approved_at,
            approval_notes=recipe.approval_notes,
            snapshot=self._snapshot(recipe),
        )
        self.db.add(entry)
        return entry

    def create_version(self, recipe: Recipe, data: RecipeVersionCreate) -> RecipeVersion:
        """Archive the current state and start a new draft version."""
        entry = self._archive_current(recipe, data.created_by, data.changes, data.notes)
        recipe.version = next_version_label(recipe.version, data.bump)
        recipe.status = RecipeStatus.DRAFT.value
        recipe.modified_by = data.created_by or recipe.modified_by
        commit_or_raise(self.db, "create version")
        self.db.refresh(entry)
        logger.info(f"Recipe {recipe.id} archived {entry.version}, now {recipe.version}")
        return entry

    def revert_to_version(
        self, recipe: Recipe, version_id: int, data: RecipeVersionRevert
    ) -> Recipe:
        """Restore a stored snapshot as a new draft version.

        The state being replaced is archived first, with ``reverted_from``
        naming the version that was restored.
        """
        target = (
            self.db.query(RecipeVersion)
            .filter(RecipeVersion.id == version_id, RecipeVersion.recipe_id == recipe.id)
            .first()
        )
        if not target:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=f"Version {version_id} not found"
            )

        index = self.load_indexes(recipe.organization_id)
        for item in target.snapshot["ingredients"]:
            if item["kind"] == IngredientKind.SUB_RECIPE.value and self._reaches(
                item["prepared_recipe_id"], recipe.id, index
            ):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Version {target.version} would make the recipe contain itself",
                )

        self._archive_current(
            recipe,
            data.created_by,
            [f"Reverted to version {target.version}"],
            data.notes,
            reverted_from=target.version,
        )
        self._restore(recipe, target.snapshot)
        recipe.version = next_version_label(recipe.version, VersionBump.MINOR)
        recipe.status = RecipeStatus.DRAFT.value
        recipe.modified_by = data.created_by or recipe.modified_by
        self.db.flush()

        self.recalculate(recipe)
        commit_or_raise(self.db, "revert recipe")
        self.db.refresh(recipe)
        return recipe
