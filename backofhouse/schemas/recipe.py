"""Recipe schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from backofhouse.models.enums import (
    AllergenTier,
    IngredientKind,
    RecipeStatus,
    RecipeType,
    VersionBump,
    WarningLevel,
)


def _quantity_as_text(value):
    if isinstance(value, int | float | Decimal) and not isinstance(value, bool):
        return str(value)
    return value


# --- Allergens ---


class AllergenInfo(BaseModel):
    """Declared allergens in three severity tiers."""

    model_config = ConfigDict(populate_by_name=True)

    contains: list[str] = []
    may_contain: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("may_contain", "mayContain")
    )
    cross_contact_risk: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("cross_contact_risk", "crossContactRisk"),
    )


class AllergenDeclaration(BaseModel):
    """Replace a recipe's declared allergens."""

    allergen_info: AllergenInfo
    modified_by: str | None = Field(None, max_length=255)


class AllergenToggle(BaseModel):
    """Put one allergen in a tier, or remove it with ``tier: null``."""

    allergen: str = Field(..., min_length=1, max_length=100)
    tier: AllergenTier | None
    modified_by: str | None = Field(None, max_length=255)


class AllergenSuggestionResponse(BaseModel):
    """Ingredient-derived allergens compared with the declaration."""

    recipe_id: int
    declared: AllergenInfo
    derived: list[str]
    suggested: list[str]
    declared_only: list[str]
    unresolved_ingredient_ids: list[int]


# --- Recipe Ingredient ---


class RecipeIngredientCreate(BaseModel):
    """Create a recipe ingredient referencing a master ingredient or a sub-recipe."""

    kind: IngredientKind
    master_ingredient_id: int | None = None
    prepared_recipe_id: int | None = None
    quantity: str | None = Field(None, max_length=50)
    unit: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, value):
        # Quantities are free text; accept bare numbers from clients
        return _quantity_as_text(value)

    @model_validator(mode="after")
    def validate_reference(self) -> "RecipeIngredientCreate":
        """Exactly one reference, matching ``kind``."""
        if self.kind == IngredientKind.PURCHASED:
            if self.master_ingredient_id is None or self.prepared_recipe_id is not None:
                raise ValueError("purchased ingredients need master_ingredient_id only")
        elif self.prepared_recipe_id is None or self.master_ingredient_id is not None:
            raise ValueError("sub_recipe ingredients need prepared_recipe_id only")
        return self


class RecipeIngredientUpdate(BaseModel):
    """Update a recipe ingredient line."""

    quantity: str | None = Field(None, max_length=50)
    unit: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, value):
        # Quantities are free text; accept bare numbers from clients
        return _quantity_as_text(value)


class RecipeIngredientResponse(BaseModel):
    """Recipe ingredient response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipe_id: int
    kind: IngredientKind
    master_ingredient_id: int | None
    prepared_recipe_id: int | None
    quantity: str | None
    unit: str | None
    notes: str | None
    sort_order: int


# --- Stages and Steps ---


class RecipeStageCreate(BaseModel):
    """Create a stage."""

    name: str = Field(..., min_length=1, max_length=255)
    is_prep_list_task: bool = False


class RecipeStageUpdate(BaseModel):
    """Update a stage."""

    name: str | None = Field(None, min_length=1, max_length=255)
    is_prep_list_task: bool | None = None


class RecipeStageResponse(BaseModel):
    """Stage response with rolled-up time."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipe_id: int
    name: str
    is_prep_list_task: bool
    sort_order: int
    total_time: int


class RecipeStepCreate(BaseModel):
    """Create a step.

    ``stage_index`` points into the ``stages`` list of a recipe being created;
    ``stage_id`` points at an existing stage.
    """

    instruction: str = Field(..., min_length=1, max_length=10000)
    stage_id: int | None = None
    stage_index: int | None = Field(None, ge=0)
    warning_level: WarningLevel | None = None
    time_in_minutes: int | None = Field(None, ge=0)
    temperature_value: Decimal | None = None
    temperature_unit: Literal["F", "C"] | None = None
    is_quality_control_point: bool = False
    is_critical_control_point: bool = False
    notes: str | None = Field(None, max_length=2000)


class RecipeStepUpdate(BaseModel):
    """Update a step. Send ``stage_id: null`` to unstage it."""

    instruction: str | None = Field(None, min_length=1, max_length=10000)
    stage_id: int | None = None
    warning_level: WarningLevel | None = None
    time_in_minutes: int | None = Field(None, ge=0)
    temperature_value: Decimal | None = None
    temperature_unit: Literal["F", "C"] | None = None
    is_quality_control_point: bool | None = None
    is_critical_control_point: bool | None = None
    notes: str | None = Field(None, max_length=2000)


class RecipeStepResponse(BaseModel):
    """Step response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipe_id: int
    stage_id: int | None
    instruction: str
    warning_level: str | None
    time_in_minutes: int | None
    temperature_value: Decimal | None
    temperature_unit: str | None
    is_quality_control_point: bool
    is_critical_control_point: bool
    notes: str | None
    sort_order: int


class ReorderRequest(BaseModel):
    """Move one stage or step to a new position."""

    item_id: int
    new_index: int = Field(..., ge=0)


# --- Recipe ---


class RecipeCreate(BaseModel):
    """Create a recipe with its ingredients, stages and steps."""

    type: RecipeType = RecipeType.FINAL
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    major_group: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    sub_category: str | None = Field(None, max_length=100)
    station: str | None = Field(None, max_length=100)
    prep_time: int = Field(0, ge=0)
    cook_time: int = Field(0, ge=0)
    rest_time: int = Field(0, ge=0)
    yield_amount: Decimal | None = Field(None, ge=0)
    yield_unit: str | None = Field(None, max_length=50)
    recipe_unit_ratio: Decimal = Field(Decimal("1"), ge=0)
    unit_type: str | None = Field(None, max_length=50)
    labor_cost_per_hour: Decimal | None = Field(None, ge=0)
    target_cost_percent: Decimal | None = Field(None, ge=0, le=100)
    allergen_info: AllergenInfo = Field(default_factory=AllergenInfo)
    quality_standards: dict = {}
    training: dict = {}
    storage: dict = {}
    equipment: list[dict] = []
    media: list[dict] = []
    modified_by: str | None = Field(None, max_length=255)
    ingredients: list[RecipeIngredientCreate] = []
    stages: list[RecipeStageCreate] = []
    steps: list[RecipeStepCreate] = []


class RecipeUpdate(BaseModel):
    """Update recipe metadata (not ingredients, stages or steps)."""

    type: RecipeType | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    major_group: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    sub_category: str | None = Field(None, max_length=100)
    station: str | None = Field(None, max_length=100)
    prep_time: int | None = Field(None, ge=0)
    cook_time: int | None = Field(None, ge=0)
    rest_time: int | None = Field(None, ge=0)
    yield_amount: Decimal | None = Field(None, ge=0)
    yield_unit: str | None = Field(None, max_length=50)
    recipe_unit_ratio: Decimal | None = Field(None, ge=0)
    unit_type: str | None = Field(None, max_length=50)
    labor_cost_per_hour: Decimal | None = Field(None, ge=0)
    target_cost_percent: Decimal | None = Field(None, ge=0, le=100)
    quality_standards: dict | None = None
    training: dict | None = None
    storage: dict | None = None
    equipment: list[dict] | None = None
    media: list[dict] | None = None
    modified_by: str | None = Field(None, max_length=255)


class RecipeResponse(BaseModel):
    """Recipe response with ingredients, stages and steps."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    type: RecipeType
    status: RecipeStatus
    name: str
    description: str | None
    major_group: str | None
    category: str | None
    sub_category: str | None
    station: str | None
    prep_time: int
    cook_time: int
    rest_time: int
    total_time: int
    yield_amount: Decimal | None
    yield_unit: str | None
    recipe_unit_ratio: Decimal
    unit_type: str | None
    labor_cost_per_hour: Decimal | None
    target_cost_percent: Decimal | None
    cost_per_unit: Decimal
    total_cost: Decimal
    allergen_info: AllergenInfo
    quality_standards: dict
    training: dict
    storage: dict
    equipment: list[dict]
    media: list[dict]
    version: str
    modified_by: str | None
    approved_by: str | None
    approved_at: datetime | None
    approval_notes: str | None
    last_reviewed_by: str | None
    last_reviewed_at: datetime | None
    ingredients: list[RecipeIngredientResponse]
    stages: list[RecipeStageResponse]
    steps: list[RecipeStepResponse]
    created_at: datetime
    updated_at: datetime


class RecipeListResponse(BaseModel):
    """Recipe list item (without ingredients or steps)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    type: RecipeType
    status: RecipeStatus
    name: str
    category: str | None
    station: str | None
    total_time: int
    cost_per_unit: Decimal
    version: str
    ingredient_count: int
    updated_at: datetime


# --- Costing and timing ---


class CostLineResponse(BaseModel):
    """Cost of one ingredient line."""

    ingredient_id: int
    kind: IngredientKind
    quantity: Decimal  # Parsed from the free-text field
    unit_cost: Decimal
    line_cost: Decimal
    resolved: bool


class CostingResponse(BaseModel):
    """Costing breakdown for a recipe."""

    recipe_id: int
    ingredient_total: Decimal
    labor_cost: Decimal
    total_cost: Decimal
    cost_per_unit: Decimal
    target_cost: Decimal | None
    lines: list[CostLineResponse]
    unresolved_ingredient_ids: list[int]


class StageTimeResponse(BaseModel):
    stage_id: int
    name: str
    total_time: int


class TimingResponse(BaseModel):
    """Recipe timing with per-stage roll-up."""

    recipe_id: int
    prep_time: int
    cook_time: int
    rest_time: int
    total_time: int
    stages: list[StageTimeResponse]
    unstaged_time: int


# --- Status and versions ---


class StatusUpdate(BaseModel):
    """Move a recipe through the draft/review/approved/archived workflow."""

    status: RecipeStatus
    actor: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=5000)


class RecipeVersionCreate(BaseModel):
    """Snapshot the current recipe and bump its version label."""

    bump: VersionBump = VersionBump.MINOR
    changes: list[str] = []
    notes: str | None = Field(None, max_length=5000)
    created_by: str | None = Field(None, max_length=255)


class RecipeVersionRevert(BaseModel):
    """Restore a recipe from a stored version."""

    created_by: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=5000)


class RecipeVersionResponse(BaseModel):
    """Version history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipe_id: int
    version: str
    created_at: datetime
    created_by: str | None
    changes: list[str]
    notes: str | None
    status: RecipeStatus
    reverted_from: str | None
    approved_by: str | None
    approved_at: datetime | None
    approval_notes: str | None
