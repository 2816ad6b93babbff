"""
Public resource library and support service directory.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.core.database import get_db
from survivor_hub.models.directory import Resources, Services
from survivor_hub.schemas.directory import ResourceResponse, ServiceResponse

router = APIRouter(tags=["directory"])


@router.get("/resources", response_model=list[ResourceResponse])
async def list_resources(
    category: Annotated[str | None, Query(max_length=100, description="Filter by category")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[ResourceResponse]:
    """Resource articles, newest first."""
    query = select(Resources)
    if category:
        query = query.where(Resources.category == category)  # type: ignore[arg-type]

    result = await db.execute(query.order_by(desc(Resources.created_at), desc(Resources.id)))  # type: ignore[arg-type]
    return [ResourceResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    search: Annotated[
        str | None,
        Query(max_length=200, description="Match organization or location (case-insensitive)"),
    ] = None,
    db: AsyncSession = Depends(get_db),
) -> list[ServiceResponse]:
    """Support services ordered by organization name."""
    query = select(Services)
    if search and search.strip():
        term = search.strip().lower()
        query = query.where(
            or_(
                func.lower(Services.organization).contains(term, autoescape=True),
                func.lower(Services.location).contains(term, autoescape=True),
            )
        )

    result = await db.execute(query.order_by(Services.organization))  # type: ignore[arg-type]
    return [ServiceResponse.model_validate(s) for s in result.scalars().all()]
