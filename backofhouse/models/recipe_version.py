"""RecipeVersion model for the append-only version history."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from backofhouse.database import Base
from backofhouse.models.mixins import TimestampMixin


class RecipeVersion(Base, TimestampMixin):
    """Immutable snapshot of a recipe, created only by explicit user action."""

    __tablename__ = "recipe_versions"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    version = Column(String(20), nullable=False)
    created_by = Column(String(255), nullable=True)
    changes = Column(JSON, nullable=False, default=list)  # List of change descriptions
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False)  # Recipe status when snapshotted
    reverted_from = Column(String(20), nullable=True)

    # Approval record
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approval_notes = Column(Text, nullable=True)

    snapshot = Column(JSON, nullable=False)

    # Relationships
    recipe = relationship("Recipe", back_populates="versions")
