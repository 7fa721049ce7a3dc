"""Recipe model and its ingredient, stage and step rows."""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from backofhouse.database import Base
from backofhouse.models.mixins import OrganizationScopedMixin, SoftDeleteMixin, TimestampMixin


def empty_allergen_info() -> dict:
    return {"contains": [], "may_contain": [], "cross_contact_risk": []}


class Recipe(Base, OrganizationScopedMixin, TimestampMixin, SoftDeleteMixin):
    """Prepared (sub-component) or final (plated) recipe."""

    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(20), nullable=False, default="final")  # "prepared" | "final"
    status = Column(String(20), nullable=False, default="draft")
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Classification
    major_group = Column(String(100), nullable=True)
    category = Column(String(100), nullable=True)
    sub_category = Column(String(100), nullable=True)
    station = Column(String(100), nullable=True)

    # Timing, in minutes
    prep_time = Column(Integer, nullable=False, default=0)
    cook_time = Column(Integer, nullable=False, default=0)
    rest_time = Column(Integer, nullable=False, default=0)
    total_time = Column(Integer, nullable=False, default=0)  # Derived

    # Units and yield
    yield_amount = Column(Numeric(12, 4), nullable=True)
    yield_unit = Column(String(50), nullable=True)
    recipe_unit_ratio = Column(Numeric(12, 4), nullable=False, default=1)
    unit_type = Column(String(50), nullable=True)

    # Costing
    labor_cost_per_hour = Column(Numeric(10, 2), nullable=True)
    target_cost_percent = Column(Numeric(5, 2), nullable=True)
    cost_per_unit = Column(Numeric(12, 4), nullable=False, default=0)  # Derived
    total_cost = Column(Numeric(12, 4), nullable=False, default=0)  # Derived

    # Structured documents
    allergen_info = Column(JSON, nullable=False, default=empty_allergen_info)
    quality_standards = Column(JSON, nullable=False, default=dict)
    training = Column(JSON, nullable=False, default=dict)
    storage = Column(JSON, nullable=False, default=dict)
    equipment = Column(JSON, nullable=False, default=list)
    media = Column(JSON, nullable=False, default=list)

    # Version control and approval
    version = Column(String(20), nullable=False, default="1.0")
    modified_by = Column(String(255), nullable=True)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approval_notes = Column(Text, nullable=True)
    last_reviewed_by = Column(String(255), nullable=True)
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        foreign_keys="RecipeIngredient.recipe_id",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order",
    )
    stages = relationship(
        "RecipeStage",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeStage.sort_order",
    )
    steps = relationship(
        "RecipeStep",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeStep.sort_order",
    )
    versions = relationship(
        "RecipeVersion",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeVersion.id.desc()",
    )


class RecipeIngredient(Base, TimestampMixin):
    """Ingredient line: either a purchased master ingredient or a sub-recipe."""

    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        CheckConstraint(
            "(kind = 'purchased' AND master_ingredient_id IS NOT NULL"
            " AND prepared_recipe_id IS NULL)"
            " OR (kind = 'sub_recipe' AND prepared_recipe_id IS NOT NULL"
            " AND master_ingredient_id IS NULL)",
            name="ck_recipe_ingredient_reference",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # "purchased" | "sub_recipe"
    master_ingredient_id = Column(Integer, ForeignKey("master_ingredients.id"), nullable=True)
    prepared_recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=True)
    quantity = Column(String(50), nullable=True)  # Free text, parsed leniently
    unit = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    # Relationships
    recipe = relationship("Recipe", back_populates="ingredients", foreign_keys=[recipe_id])
    master_ingredient = relationship("MasterIngredient")
    prepared_recipe = relationship("Recipe", foreign_keys=[prepared_recipe_id])


class RecipeStage(Base, TimestampMixin):
    """Named grouping of steps, used for organization and time roll-up."""

    __tablename__ = "recipe_stages"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_prep_list_task = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    total_time = Column(Integer, nullable=False, default=0)  # Derived from steps

    # Relationships
    recipe = relationship("Recipe", back_populates="stages")


class RecipeStep(Base, TimestampMixin):
    """Single method step, optionally assigned to a stage."""

    __tablename__ = "recipe_steps"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    stage_id = Column(
        Integer, ForeignKey("recipe_stages.id", ondelete="SET NULL"), nullable=True, index=True
    )
    instruction = Column(Text, nullable=False)
    warning_level = Column(String(20), nullable=True)  # "low" | "medium" | "high"
    time_in_minutes = Column(Integer, nullable=True)
    temperature_value = Column(Numeric(6, 1), nullable=True)
    temperature_unit = Column(String(1), nullable=True)  # "F" | "C"
    is_quality_control_point = Column(Boolean, nullable=False, default=False)
    is_critical_control_point = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    # Relationships
    recipe = relationship("Recipe", back_populates="steps")
