"""Master ingredient schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backofhouse.services.allergens import ALLERGEN_TYPES, normalize_flag

ALLERGEN_FLAG_FIELDS = tuple(f"allergen_{allergen}" for allergen in ALLERGEN_TYPES) + (
    "allergen_custom1_active",
    "allergen_custom2_active",
    "allergen_custom3_active",
)


class AllergenFlags(BaseModel):
    """Allergen flags, accepting true/"true"/1 as set."""

    allergen_peanut: bool = False
    allergen_crustacean: bool = False
    allergen_treenut: bool = False
    allergen_shellfish: bool = False
    allergen_sesame: bool = False
    allergen_soy: bool = False
    allergen_fish: bool = False
    allergen_wheat: bool = False
    allergen_milk: bool = False
    allergen_sulphite: bool = False
    allergen_egg: bool = False
    allergen_gluten: bool = False
    allergen_mustard: bool = False
    allergen_celery: bool = False
    allergen_garlic: bool = False
    allergen_onion: bool = False
    allergen_nitrite: bool = False
    allergen_mushroom: bool = False
    allergen_hot_pepper: bool = False
    allergen_citrus: bool = False
    allergen_pork: bool = False
    allergen_custom1_name: str | None = Field(None, max_length=100)
    allergen_custom1_active: bool = False
    allergen_custom2_name: str | None = Field(None, max_length=100)
    allergen_custom2_active: bool = False
    allergen_custom3_name: str | None = Field(None, max_length=100)
    allergen_custom3_active: bool = False
    allergen_notes: str | None = Field(None, max_length=2000)

    @field_validator(*ALLERGEN_FLAG_FIELDS, mode="before")
    @classmethod
    def normalize_flags(cls, value):
        return normalize_flag(value)


class MasterIngredientCreate(AllergenFlags):
    """Create a master ingredient. ``cost_per_recipe_unit`` is always derived."""

    item_code: str = Field(..., min_length=1, max_length=100)
    product: str = Field(..., min_length=1, max_length=255)
    vendor: str | None = Field(None, max_length=255)
    major_group: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    sub_category: str | None = Field(None, max_length=100)
    storage_area: str | None = Field(None, max_length=100)
    image_url: str | None = Field(None, max_length=1024)
    case_size: str | None = Field(None, max_length=100)
    units_per_case: Decimal | None = Field(None, ge=0)
    current_price: Decimal = Field(Decimal("0"), ge=0)
    recipe_unit_type: str | None = Field(None, max_length=50)
    recipe_unit_per_purchase_unit: Decimal | None = Field(None, ge=0)
    yield_percent: Decimal = Field(Decimal("1"), ge=0, le=1)


class MasterIngredientUpdate(AllergenFlags):
    """Update a master ingredient. Only fields present in the request are applied."""

    item_code: str | None = Field(None, min_length=1, max_length=100)
    product: str | None = Field(None, min_length=1, max_length=255)
    vendor: str | None = Field(None, max_length=255)
    major_group: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    sub_category: str | None = Field(None, max_length=100)
    storage_area: str | None = Field(None, max_length=100)
    image_url: str | None = Field(None, max_length=1024)
    case_size: str | None = Field(None, max_length=100)
    units_per_case: Decimal | None = Field(None, ge=0)
    current_price: Decimal | None = Field(None, ge=0)
    recipe_unit_type: str | None = Field(None, max_length=50)
    recipe_unit_per_purchase_unit: Decimal | None = Field(None, ge=0)
    yield_percent: Decimal | None = Field(None, ge=0, le=1)


class MasterIngredientResponse(AllergenFlags):
    """Master ingredient response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    item_code: str
    product: str
    vendor: str | None
    major_group: str | None
    category: str | None
    sub_category: str | None
    storage_area: str | None
    image_url: str | None
    case_size: str | None
    units_per_case: Decimal | None
    current_price: Decimal
    recipe_unit_type: str | None
    recipe_unit_per_purchase_unit: Decimal | None
    yield_percent: Decimal
    cost_per_recipe_unit: Decimal
    allergens: list[str] = []  # Active allergens, fixed and custom
    created_at: datetime
    updated_at: datetime
