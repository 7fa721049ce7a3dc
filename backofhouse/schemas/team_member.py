"""Team member and schedule matching schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TeamMemberCreate(BaseModel):
    """Create a team member."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    display_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = Field(None, max_length=255)
    punch_id: str | None = Field(None, max_length=50)


class TeamMemberUpdate(BaseModel):
    """Update a team member."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    display_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = Field(None, max_length=255)
    punch_id: str | None = Field(None, max_length=50)


class TeamMemberResponse(BaseModel):
    """Team member response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    first_name: str
    last_name: str
    display_name: str | None
    email: str | None
    punch_id: str | None
    created_at: datetime


class ScheduleEmployee(BaseModel):
    """Employee as named on an imported schedule."""

    name: str = Field(..., min_length=1, max_length=255)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    role: str | None = Field(None, max_length=100)


class ScheduleMatchRequest(BaseModel):
    """Employees to match against the organization's team."""

    employees: list[ScheduleEmployee]


class EmployeeMatch(BaseModel):
    """One schedule employee matched to a team member."""

    employee_name: str
    employee_id: str  # punch_id when set, else the team member id
    team_member: TeamMemberResponse


class ScheduleMatchResponse(BaseModel):
    """Result of automatic employee matching."""

    matches: list[EmployeeMatch]
    unmatched: list[str]
    match_percent: int
