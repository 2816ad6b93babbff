"""
Public report endpoints: anonymous submission and tracking lookup.

Neither endpoint requires an account. Signed-in callers may opt in to
linking a submission to their account.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.core.auth import OptionalActor
from survivor_hub.core.database import get_db
from survivor_hub.core.errors import PartialFailureError, partial_failure_response
from survivor_hub.schemas.report import (
    ReportSubmitResponse,
    ReportTrackingResponse,
    StatusChangeResponse,
)
from survivor_hub.services.evidence import EvidenceUpload
from survivor_hub.services.notifications import NotificationOutbox, get_outbox
from survivor_hub.services.reports import lookup_report_status, submit_report

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post(
    "",
    response_model=ReportSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    responses={207: {"description": "Report saved, evidence may be incomplete"}},
)
async def create_report(
    actor: OptionalActor,
    outbox: Annotated[NotificationOutbox, Depends(get_outbox)],
    type_of_abuse: Annotated[str, Form(max_length=64)] = "",
    description: Annotated[str, Form()] = "",
    link_to_account: Annotated[bool, Form()] = False,
    files: Annotated[list[UploadFile] | None, File(description="Evidence files")] = None,
    db: AsyncSession = Depends(get_db),
) -> ReportSubmitResponse | JSONResponse:
    """
    Submit a report.

    The tracking ID in the response is the submitter's only way back to the
    report and is not shown again. When some evidence could not be stored
    the report is still saved and the response is 207 with the tracking ID.
    """
    uploads = [
        EvidenceUpload(
            filename=upload.filename or "",
            content=await upload.read(),
            content_type=upload.content_type,
        )
        for upload in files or []
    ]

    try:
        result = await submit_report(
            db,
            actor,
            type_of_abuse=type_of_abuse,
            description=description,
            evidence=uploads,
            outbox=outbox,
            link_to_account=link_to_account,
        )
    except PartialFailureError as exc:
        # Returned rather than raised so the notification task still runs
        return partial_failure_response(exc)

    return ReportSubmitResponse(
        tracking_id=result.tracking_id,
        status=result.status,
        evidence_count=result.evidence_count,
    )


@router.get("/track/{tracking_id}", response_model=ReportTrackingResponse)
async def track_report(
    tracking_id: Annotated[str, Path(max_length=64, description="Tracking ID (RPT-XXXXXXXX)")],
    db: AsyncSession = Depends(get_db),
) -> ReportTrackingResponse:
    """
    Look up the status of a report by tracking ID.

    Returns status and history only. The description, evidence and admin
    notes are never part of this response.
    """
    result = await lookup_report_status(db, tracking_id)
    return ReportTrackingResponse(
        tracking_id=result.tracking_id,
        type_of_abuse=result.type_of_abuse,
        status=result.status,
        created_at=result.created_at,
        history=[StatusChangeResponse.model_validate(change) for change in result.history],
    )
