"""Team member and schedule matching API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backofhouse.api.dependencies import get_current_organization
from backofhouse.database import commit_or_raise, get_db
from backofhouse.models.organization import Organization
from backofhouse.models.team_member import TeamMember
from backofhouse.schemas.team_member import (
    EmployeeMatch,
    ScheduleMatchRequest,
    ScheduleMatchResponse,
    TeamMemberCreate,
    TeamMemberResponse,
    TeamMemberUpdate,
)
from backofhouse.services.matching import auto_match

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/team-members", tags=["team-members"])
schedule_router = APIRouter(prefix="/api/v1/schedule", tags=["schedule"])


def get_org_team_member(db: Session, member_id: int, organization: Organization) -> TeamMember:
    """Get a team member that belongs to the organization."""
    member = (
        db.query(TeamMember)
        .filter(TeamMember.id == member_id, TeamMember.organization_id == organization.id)
        .first()
    )
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    return member


@router.get("", response_model=list[TeamMemberResponse])
async def list_team_members(
    organization: Annotated[Organization, Depends(get_current_organization)],
    db: Annotated[Session, Depends(get_db)],
):
    """List the organization's team members."""
    return (
        db.query(TeamMember)
        .filter(TeamMember.organization_id == organization.id)
        .order_by(TeamMember.last_name, TeamMember.first_name)
        .all()
    )


@router.post("", response_model=TeamMemberResponse, status_code=status.HTTP_201_CREATED)
async def create_team_member(
    member_data: TeamMemberCreate,
    organization: Annotated[Organization, Depends(get_current_organization)],
    db: Annotated[Session, Depends(get_db)],
):
    """Add a team member."""
    member = TeamMember(organization_id=organization.id, **member_data.model_dump())
    db.add(member)
    commit_or_raise(db, "create team member")
    db.refresh(member)
    return member


@router.get("/{member_id}", response_model=TeamMemberResponse)
async def get_team_member(
    member_id: int,
    organization: Annotated[Organization, Depends(get_current_organization)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get a team member."""
    return get_org_team_member(db, member_id, organization)


@router.put("/{member_id}", response_model=TeamMemberResponse)
async def update_team_member(
    member_id: int,
    member_data: TeamMemberUpdate,
    organization: Annotated[Organization, Depends(get_current_organization)],
    db: Annotated[Session, Depends(get_db)],
):
    """Update a team member."""
    member = get_org_team_member(db, member_id, organization)

    if member_data.first_name is not None:
        member.first_name = member_data.first_name
    if member_data.last_name is not None:
        member.last_name = member_data.last_name
    if member_data.display_name is not None:
        member.display_name = member_data.display_name
    if member_data.email is not None:
        member.email = member_data.email
    if member_data.punch_id is not None:
        member.punch_id = member_data.punch_id

    commit_or_raise(db, "update team member")
    db.refresh(member)
    return member


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_member(
    member_id: int,
    organization: Annotated[Organization, Depends(get_current_organization)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a team member."""
    member = get_org_team_member(db, member_id, organization)
    db.delete(member)
    commit_or_raise(db, "delete team member")


@schedule_router.post("/match", response_model=ScheduleMatchResponse)
async def match_schedule(
    request: ScheduleMatchRequest,
    organization: Annotated[Organization, Depends(get_current_organization)],
    db: Annotated[Session, Depends(get_db)],
):
    """Match imported schedule names to team members."""
    team_members = (
        db.query(TeamMember)
        .filter(TeamMember.organization_id == organization.id)
        .order_by(TeamMember.id)
        .all()
    )
    matched = auto_match(request.employees, team_members)

    matches = []
    unmatched = []
    for employee in request.employees:
        member = matched.get(employee.name)
        if member is None:
            unmatched.append(employee.name)
            continue
        matches.append(
            EmployeeMatch(
                employee_name=employee.name,
                employee_id=member.punch_id or str(member.id),
                team_member=TeamMemberResponse.model_validate(member),
            )
        )

    total = len(request.employees)
    match_percent = round(len(matches) * 100 / total) if total else 0
    logger.info(f"Matched {len(matches)} of {total} schedule employees for org {organization.id}")
    return ScheduleMatchResponse(matches=matches, unmatched=unmatched, match_percent=match_percent)
