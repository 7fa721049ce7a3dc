"""MasterIngredient model for the purchasable item catalog."""

from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text, UniqueConstraint

from backofhouse.database import Base
from backofhouse.models.mixins import OrganizationScopedMixin, SoftDeleteMixin, TimestampMixin


class MasterIngredient(Base, OrganizationScopedMixin, TimestampMixin, SoftDeleteMixin):
    """A purchasable item with case pricing, yield and allergen flags."""

    __tablename__ = "master_ingredients"
    __table_args__ = (
        UniqueConstraint("organization_id", "item_code", name="uq_master_ingredient_org_item_code"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_code = Column(String(100), nullable=False)  # Vendor item code
    product = Column(String(255), nullable=False)
    vendor = Column(String(255), nullable=True)
    major_group = Column(String(100), nullable=True)
    category = Column(String(100), nullable=True)
    sub_category = Column(String(100), nullable=True)
    storage_area = Column(String(100), nullable=True)
    image_url = Column(String(1024), nullable=True)

    # Purchase units
    case_size = Column(String(100), nullable=True)  # Label, e.g. "4 x 5 lb"
    units_per_case = Column(Numeric(12, 4), nullable=True)
    current_price = Column(Numeric(12, 4), nullable=False, default=0)  # Per case

    # Recipe units
    recipe_unit_type = Column(String(50), nullable=True)
    recipe_unit_per_purchase_unit = Column(Numeric(12, 4), nullable=True)
    yield_percent = Column(Numeric(6, 4), nullable=False, default=1)  # Fraction, 1 = 100%
    cost_per_recipe_unit = Column(Numeric(12, 4), nullable=False, default=0)  # Derived

    # Allergens
    allergen_peanut = Column(Boolean, nullable=False, default=False)
    allergen_crustacean = Column(Boolean, nullable=False, default=False)
    allergen_treenut = Column(Boolean, nullable=False, default=False)
    allergen_shellfish = Column(Boolean, nullable=False, default=False)
    allergen_sesame = Column(Boolean, nullable=False, default=False)
    allergen_soy = Column(Boolean, nullable=False, default=False)
    allergen_fish = Column(Boolean, nullable=False, default=False)
    allergen_wheat = Column(Boolean, nullable=False, default=False)
    allergen_milk = Column(Boolean, nullable=False, default=False)
    allergen_sulphite = Column(Boolean, nullable=False, default=False)
    allergen_egg = Column(Boolean, nullable=False, default=False)
    allergen_gluten = Column(Boolean, nullable=False, default=False)
    allergen_mustard = Column(Boolean, nullable=False, default=False)
    allergen_celery = Column(Boolean, nullable=False, default=False)
    allergen_garlic = Column(Boolean, nullable=False, default=False)
    allergen_onion = Column(Boolean, nullable=False, default=False)
    allergen_nitrite = Column(Boolean, nullable=False, default=False)
    allergen_mushroom = Column(Boolean, nullable=False, default=False)
    allergen_hot_pepper = Column(Boolean, nullable=False, default=False)
    allergen_citrus = Column(Boolean, nullable=False, default=False)
    allergen_pork = Column(Boolean, nullable=False, default=False)
    allergen_custom1_name = Column(String(100), nullable=True)
    allergen_custom1_active = Column(Boolean, nullable=False, default=False)
    allergen_custom2_name = Column(String(100), nullable=True)
    allergen_custom2_active = Column(Boolean, nullable=False, default=False)
    allergen_custom3_name = Column(String(100), nullable=True)
    allergen_custom3_active = Column(Boolean, nullable=False, default=False)
    allergen_notes = Column(Text, nullable=True)
