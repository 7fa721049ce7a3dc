"""Organization API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backofhouse.api.dependencies import get_current_organization
from backofhouse.database import commit_or_raise, get_db
from backofhouse.models.organization import Organization
from backofhouse.schemas.organization import OrganizationCreate, OrganizationResponse

router = APIRouter(prefix="/api/v1/organizations", tags=["organizations"])


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Create an organization."""
    organization = Organization(name=data.name)
    db.add(organization)
    commit_or_raise(db, "create organization")
    db.refresh(organization)
    return organization


@router.get("", response_model=list[OrganizationResponse])
async def list_organizations(db: Annotated[Session, Depends(get_db)]):
    """List all organizations."""
    return db.query(Organization).order_by(Organization.name).all()


@router.get("/current", response_model=OrganizationResponse)
async def get_organization(
    organization: Annotated[Organization, Depends(get_current_organization)],
):
    """Get the organization selected by the request header."""
    return organization
