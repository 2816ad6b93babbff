"""
Admin API endpoints for report moderation and content management.

Every endpoint requires the admin role and provides:
- Report triage (list, detail, status updates, history, evidence download)
- Live report change events (server-sent events)
- Dashboard statistics
- Resource library and service directory CRUD
- Translation entry CRUD
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi.responses import FileResponse, StreamingResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.config import ReportStatus, settings
from survivor_hub.core.auth import AdminActor
from survivor_hub.core.database import get_db
from survivor_hub.core.logging import get_logger
from survivor_hub.models.directory import Resources, Services
from survivor_hub.models.report import utcnow
from survivor_hub.models.translation import Translations
from survivor_hub.schemas.directory import (
    ResourceCreate,
    ResourceResponse,
    ResourceUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from survivor_hub.schemas.report import (
    AdminStatisticsResponse,
    EvidenceFileResponse,
    ReportDetailResponse,
    ReportListResponse,
    ReportResponse,
    ReportStatusUpdate,
    StatusChangeResponse,
)
from survivor_hub.schemas.translation import (
    TranslationCreate,
    TranslationResponse,
    TranslationUpdate,
)
from survivor_hub.services.evidence import evidence_path
from survivor_hub.services.report_events import stream_report_events
from survivor_hub.services.reports import (
    get_admin_statistics,
    get_evidence_file,
    get_report_detail,
    list_reports,
    update_report_status,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ===== Report Triage =====


@router.get("/reports", response_model=ReportListResponse)
async def list_reports_endpoint(
    admin: AdminActor,
    status_filter: Annotated[
        ReportStatus | None,
        Query(alias="status", description="Filter by status"),
    ] = None,
    search: Annotated[
        str | None, Query(max_length=12, description="Tracking ID substring (case-insensitive)")
    ] = None,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    per_page: Annotated[
        int, Query(ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page")
    ] = settings.DEFAULT_PAGE_SIZE,
    db: AsyncSession = Depends(get_db),
) -> ReportListResponse:
    """List reports, newest first."""
    reports, total = await list_reports(
        db, admin, status=status_filter, search=search, page=page, per_page=per_page
    )
    return ReportListResponse(
        total=total,
        page=page,
        per_page=per_page,
        items=[ReportResponse.model_validate(r) for r in reports],
    )


@router.get("/reports/events")
async def report_events(admin: AdminActor) -> StreamingResponse:
    """
    Stream report changes as server-sent events.

    An event is pushed whenever a report is submitted or its status changes.
    """
    logger.info("report_events_stream_opened", admin_id=admin.user_id)
    return StreamingResponse(
        stream_report_events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/reports/{report_id}", response_model=ReportDetailResponse)
async def get_report(
    report_id: Annotated[str, Path(max_length=36, description="Report ID")],
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> ReportDetailResponse:
    """Full report with evidence metadata and status history."""
    detail = await get_report_detail(db, admin, report_id)
    base = ReportResponse.model_validate(detail.report)
    return ReportDetailResponse(
        **base.model_dump(),
        evidence=[EvidenceFileResponse.model_validate(e) for e in detail.evidence],
        history=[StatusChangeResponse.model_validate(h) for h in detail.history],
    )


@router.patch("/reports/{report_id}/status", response_model=ReportResponse)
async def update_status(
    report_id: Annotated[str, Path(max_length=36, description="Report ID")],
    update: ReportStatusUpdate,
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> ReportResponse:
    """
    Move a report to a new status.

    Appends an entry to the report's status history in the same transaction.
    """
    report = await update_report_status(db, admin, report_id, update.status.value, update.notes)
    return ReportResponse.model_validate(report)


@router.get("/reports/{report_id}/history", response_model=list[StatusChangeResponse])
async def get_history(
    report_id: Annotated[str, Path(max_length=36, description="Report ID")],
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> list[StatusChangeResponse]:
    """Status history of a report, oldest first."""
    # Resolved through the detail so unknown reports are 404, not an empty list
    detail = await get_report_detail(db, admin, report_id)
    return [StatusChangeResponse.model_validate(h) for h in detail.history]


@router.get("/reports/{report_id}/files/{file_id}")
async def download_evidence(
    report_id: Annotated[str, Path(max_length=36, description="Report ID")],
    file_id: Annotated[int, Path(description="Evidence file ID")],
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    """Download an evidence file under its original name."""
    evidence = await get_evidence_file(db, admin, report_id, file_id)
    path = evidence_path(evidence.file_url)
    if not path.is_file():
        # Row outlived its object (purge in progress)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Evidence file expired")

    logger.info("evidence_downloaded", report_id=report_id, file_id=file_id, admin_id=admin.user_id)
    return FileResponse(
        path,
        media_type=evidence.content_type or "application/octet-stream",
        filename=evidence.file_name,
    )


# ===== Statistics =====


@router.get("/statistics", response_model=AdminStatisticsResponse)
async def statistics(
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> AdminStatisticsResponse:
    """Counters for the admin dashboard."""
    stats = await get_admin_statistics(db, admin)
    return AdminStatisticsResponse.model_validate(stats)


# ===== Resources =====


@router.post("/resources", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    resource_data: ResourceCreate,
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> ResourceResponse:
    """Add a resource article."""
    resource = Resources(**resource_data.model_dump())
    db.add(resource)
    await db.commit()
    await db.refresh(resource)

    logger.info("resource_created", resource_id=resource.id, admin_id=admin.user_id)
    return ResourceResponse.model_validate(resource)


async def _get_resource(db: AsyncSession, resource_id: int) -> Resources:
    resource = await db.get(Resources, resource_id)
    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")
    return resource


@router.patch("/resources/{resource_id}", response_model=ResourceResponse)
async def update_resource(
    resource_id: Annotated[int, Path(description="Resource ID")],
    resource_data: ResourceUpdate,
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> ResourceResponse:
    """Update a resource article. Omitted fields are left unchanged."""
    resource = await _get_resource(db, resource_id)
    for key, value in resource_data.model_dump(exclude_unset=True).items():
        setattr(resource, key, value)
    await db.commit()
    await db.refresh(resource)

    logger.info("resource_updated", resource_id=resource_id, admin_id=admin.user_id)
    return ResourceResponse.model_validate(resource)


@router.delete("/resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: Annotated[int, Path(description="Resource ID")],
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a resource article."""
    resource = await _get_resource(db, resource_id)
    await db.delete(resource)
    await db.commit()
    logger.info("resource_deleted", resource_id=resource_id, admin_id=admin.user_id)


# ===== Services =====


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    service_data: ServiceCreate,
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> ServiceResponse:
    """Add a support service listing."""
    service = Services(**service_data.model_dump())
    db.add(service)
    await db.commit()
    await db.refresh(service)

    logger.info("service_created", service_id=service.id, admin_id=admin.user_id)
    return ServiceResponse.model_validate(service)


async def _get_service(db: AsyncSession, service_id: int) -> Services:
    service = await db.get(Services, service_id)
    if service is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return service


@router.patch("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: Annotated[int, Path(description="Service ID")],
    service_data: ServiceUpdate,
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> ServiceResponse:
    """Update a service listing. Omitted fields are left unchanged."""
    service = await _get_service(db, service_id)
    for key, value in service_data.model_dump(exclude_unset=True).items():
        setattr(service, key, value)
    await db.commit()
    await db.refresh(service)

    logger.info("service_updated", service_id=service_id, admin_id=admin.user_id)
    return ServiceResponse.model_validate(service)


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: Annotated[int, Path(description="Service ID")],
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a service listing."""
    service = await _get_service(db, service_id)
    await db.delete(service)
    await db.commit()
    logger.info("service_deleted", service_id=service_id, admin_id=admin.user_id)


# ===== Translations =====


@router.get("/translations", response_model=list[TranslationResponse])
async def list_translations(
    admin: AdminActor,
    locale: Annotated[str | None, Query(max_length=8, description="Filter by locale")] = None,
    search: Annotated[str | None, Query(max_length=150, description="Key substring")] = None,
    db: AsyncSession = Depends(get_db),
) -> list[TranslationResponse]:
    """List translation entries ordered by key."""
    query = select(Translations)
    if locale:
        query = query.where(Translations.locale == locale)  # type: ignore[arg-type]
    if search:
        query = query.where(Translations.key.contains(search, autoescape=True))  # type: ignore[attr-defined]

    result = await db.execute(query.order_by(Translations.key, Translations.locale))  # type: ignore[arg-type]
    return [TranslationResponse.model_validate(t) for t in result.scalars().all()]


@router.post(
    "/translations", response_model=TranslationResponse, status_code=status.HTTP_201_CREATED
)
async def create_translation(
    translation_data: TranslationCreate,
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> TranslationResponse:
    """Add a translation entry. Each key exists at most once per locale."""
    translation = Translations(
        key=translation_data.key,
        locale=translation_data.locale.value,
        value=translation_data.value,
    )
    db.add(translation)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Translation for this key and locale already exists",
        ) from e
    await db.refresh(translation)

    logger.info(
        "translation_created",
        key=translation.key,
        locale=translation.locale,
        admin_id=admin.user_id,
    )
    return TranslationResponse.model_validate(translation)


async def _get_translation(db: AsyncSession, translation_id: int) -> Translations:
    translation = await db.get(Translations, translation_id)
    if translation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Translation not found")
    return translation


@router.patch("/translations/{translation_id}", response_model=TranslationResponse)
async def update_translation(
    translation_id: Annotated[int, Path(description="Translation ID")],
    translation_data: TranslationUpdate,
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> TranslationResponse:
    """Change the text of a translation entry."""
    translation = await _get_translation(db, translation_id)
    translation.value = translation_data.value
    translation.updated_at = utcnow()
    await db.commit()
    await db.refresh(translation)

    logger.info("translation_updated", translation_id=translation_id, admin_id=admin.user_id)
    return TranslationResponse.model_validate(translation)


@router.delete("/translations/{translation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_translation(
    translation_id: Annotated[int, Path(description="Translation ID")],
    admin: AdminActor,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a translation entry."""
    translation = await _get_translation(db, translation_id)
    await db.delete(translation)
    await db.commit()
    logger.info("translation_deleted", translation_id=translation_id, admin_id=admin.user_id)
