"""Team member model."""

from sqlalchemy import Column, Integer, String

from backofhouse.database import Base
from backofhouse.models.mixins import OrganizationScopedMixin, TimestampMixin


class TeamMember(Base, OrganizationScopedMixin, TimestampMixin):
    """Staff member of an organization, matched against schedule names."""

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    display_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    punch_id = Column(String(50), nullable=True)  # Time-clock id, preferred over row id

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
