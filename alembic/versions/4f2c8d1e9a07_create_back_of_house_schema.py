"""Create back-of-house schema

Revision ID: 4f2c8d1e9a07
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f2c8d1e9a07"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Fixed allergen flags on master_ingredients
ALLERGEN_TYPES = [
    "peanut",
    "crustacean",
    "treenut",
    "shellfish",
    "sesame",
    "soy",
    "fish",
    "wheat",
    "milk",
    "sulphite",
    "egg",
    "gluten",
    "mustard",
    "celery",
    "garlic",
    "onion",
    "nitrite",
    "mushroom",
    "hot_pepper",
    "citrus",
    "pork",
]


def timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
        ),
    ]


def organization_column() -> sa.Column:
    return sa.Column(
        "organization_id",
        sa.Integer(),
        sa.ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        *timestamp_columns(),
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        organization_column(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("punch_id", sa.String(50), nullable=True),
        *timestamp_columns(),
    )

    allergen_columns = [
        sa.Column(f"allergen_{allergen}", sa.Boolean(), nullable=False, server_default=sa.false())
        for allergen in ALLERGEN_TYPES
    ]
    for slot in (1, 2, 3):
        allergen_columns.append(sa.Column(f"allergen_custom{slot}_name", sa.String(100)))
        allergen_columns.append(
            sa.Column(
                f"allergen_custom{slot}_active",
                sa.Boolean(),
                nullable=False,
                server_default=sa.false(),
            )
        )

    op.create_table(
        "master_ingredients",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        organization_column(),
        sa.Column("item_code", sa.String(100), nullable=False),
        sa.Column("product", sa.String(255), nullable=False),
        sa.Column("vendor", sa.String(255), nullable=True),
        sa.Column("major_group", sa.String(100), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("sub_category", sa.String(100), nullable=True),
        sa.Column("storage_area", sa.String(100), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("case_size", sa.String(100), nullable=True),
        sa.Column("units_per_case", sa.Numeric(12, 4), nullable=True),
        sa.Column("current_price", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("recipe_unit_type", sa.String(50), nullable=True),
        sa.Column("recipe_unit_per_purchase_unit", sa.Numeric(12, 4), nullable=True),
        sa.Column("yield_percent", sa.Numeric(6, 4), nullable=False, server_default="1"),
        sa.Column("cost_per_recipe_unit", sa.Numeric(12, 4), nullable=False, server_default="0"),
        *allergen_columns,
        sa.Column("allergen_notes", sa.Text(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *timestamp_columns(),
        sa.UniqueConstraint(
            "organization_id", "item_code", name="uq_master_ingredient_org_item_code"
        ),
    )

    op.create_table(
        "recipes",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        organization_column(),
        sa.Column("type", sa.String(20), nullable=False, server_default="final"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("major_group", sa.String(100), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("sub_category", sa.String(100), nullable=True),
        sa.Column("station", sa.String(100), nullable=True),
        sa.Column("prep_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cook_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rest_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("yield_amount", sa.Numeric(12, 4), nullable=True),
        sa.Column("yield_unit", sa.String(50), nullable=True),
        sa.Column("recipe_unit_ratio", sa.Numeric(12, 4), nullable=False, server_default="1"),
        sa.Column("unit_type", sa.String(50), nullable=True),
        sa.Column("labor_cost_per_hour", sa.Numeric(10, 2), nullable=True),
        sa.Column("target_cost_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("cost_per_unit", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("total_cost", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("allergen_info", sa.JSON(), nullable=False),
        sa.Column("quality_standards", sa.JSON(), nullable=False),
        sa.Column("training", sa.JSON(), nullable=False),
        sa.Column("storage", sa.JSON(), nullable=False),
        sa.Column("equipment", sa.JSON(), nullable=False),
        sa.Column("media", sa.JSON(), nullable=False),
        sa.Column("version", sa.String(20), nullable=False, server_default="1.0"),
        sa.Column("modified_by", sa.String(255), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_notes", sa.Text(), nullable=True),
        sa.Column("last_reviewed_by", sa.String(255), nullable=True),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *timestamp_columns(),
    )

    op.create_table(
        "recipe_ingredients",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "recipe_id", sa.Integer(), sa.ForeignKey("recipes.id"), nullable=False, index=True
        ),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column(
            "master_ingredient_id",
            sa.Integer(),
            sa.ForeignKey("master_ingredients.id"),
            nullable=True,
        ),
        sa.Column("prepared_recipe_id", sa.Integer(), sa.ForeignKey("recipes.id"), nullable=True),
        sa.Column("quantity", sa.String(50), nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *timestamp_columns(),
        sa.CheckConstraint(
            "(kind = 'purchased' AND master_ingredient_id IS NOT NULL"
            " AND prepared_recipe_id IS NULL)"
            " OR (kind = 'sub_recipe' AND prepared_recipe_id IS NOT NULL"
            " AND master_ingredient_id IS NULL)",
            name="ck_recipe_ingredient_reference",
        ),
    )

    op.create_table(
        "recipe_stages",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "recipe_id", sa.Integer(), sa.ForeignKey("recipes.id"), nullable=False, index=True
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_prep_list_task", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_time", sa.Integer(), nullable=False, server_default="0"),
        *timestamp_columns(),
    )

    op.create_table(
        "recipe_steps",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "recipe_id", sa.Integer(), sa.ForeignKey("recipes.id"), nullable=False, index=True
        ),
        sa.Column(
            "stage_id",
            sa.Integer(),
            sa.ForeignKey("recipe_stages.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column("instruction", sa.Text(), nullable=False),
        sa.Column("warning_level", sa.String(20), nullable=True),
        sa.Column("time_in_minutes", sa.Integer(), nullable=True),
        sa.Column("temperature_value", sa.Numeric(6, 1), nullable=True),
        sa.Column("temperature_unit", sa.String(1), nullable=True),
        sa.Column(
            "is_quality_control_point", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "is_critical_control_point", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *timestamp_columns(),
    )

    op.create_table(
        "recipe_versions",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "recipe_id", sa.Integer(), sa.ForeignKey("recipes.id"), nullable=False, index=True
        ),
        sa.Column("version", sa.String(20), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("reverted_from", sa.String(20), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_notes", sa.Text(), nullable=True),
        sa.Column("snapshot", sa.JSON(), nullable=False),
        *timestamp_columns(),
    )


def downgrade() -> None:
    op.drop_table("recipe_versions")
    op.drop_table("recipe_steps")
    op.drop_table("recipe_stages")
    op.drop_table("recipe_ingredients")
    op.drop_table("recipes")
    op.drop_table("master_ingredients")
    op.drop_table("team_members")
    op.drop_table("organizations")
