"""Organization model."""

from sqlalchemy import Column, Integer, String

from backofhouse.database import Base
from backofhouse.models.mixins import TimestampMixin


class Organization(Base, TimestampMixin):
    """Organization that owns catalog, recipes and team members."""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
