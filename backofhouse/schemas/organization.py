"""Organization schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OrganizationCreate(BaseModel):
    """Create an organization."""

    name: str = Field(..., min_length=1, max_length=255)


class OrganizationResponse(BaseModel):
    """Organization response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
