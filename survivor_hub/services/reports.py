"""
Incident report lifecycle.

Submission, anonymous tracking lookup and admin moderation. Callers pass the
resolved actor explicitly; moderation operations require an ``Admin``.

Submission commits the report before any evidence is written so that the
tracking ID survives any evidence failure. Each evidence file is then stored
and recorded on its own; a failure on either side leaves no orphan behind and
is reported back as ``PartialFailureError``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.config import AbuseType, ReportStatus, settings
from survivor_hub.core.actors import Admin, Anonymous, AuthenticatedUser
from survivor_hub.core.errors import (
    NotFoundError,
    PartialFailureError,
    SurvivorHubError,
    ValidationError,
)
from survivor_hub.core.logging import get_logger
from survivor_hub.models.directory import Resources, Services
from survivor_hub.models.evidence_file import EvidenceFiles
from survivor_hub.models.report import Reports, utcnow
from survivor_hub.models.report_status_change import ReportStatusChanges
from survivor_hub.services.evidence import (
    EvidenceUpload,
    build_storage_path,
    delete_evidence,
    resolve_content_type,
    store_evidence,
    validate_evidence,
)
from survivor_hub.services.notifications import NotificationOutbox, ReportNotification
from survivor_hub.services.report_events import publish_report_event
from survivor_hub.services.tracking import generate_tracking_id, normalize_tracking_id

logger = get_logger(__name__)


@dataclass
class SubmissionResult:
    """Outcome of a fully successful submission."""

    tracking_id: str
    report_id: str
    status: str
    created_at: datetime
    evidence_count: int = 0


@dataclass
class TrackingResult:
    """
    Read-restricted view of a report for token holders.

    Has no description, evidence or admin notes field. ``id`` is used to join
    the history and is not sent to the client.
    """

    id: str
    tracking_id: str
    type_of_abuse: str
    status: str
    created_at: datetime
    history: list[ReportStatusChanges] = field(default_factory=list)


@dataclass
class ReportDetail:
    """A report with its evidence and history, for moderators."""

    report: Reports
    evidence: list[EvidenceFiles]
    history: list[ReportStatusChanges]


# ===== Submission =====


def _validate_submission(type_of_abuse: str, description: str) -> tuple[AbuseType, str]:
    if not type_of_abuse or not description or not description.strip():
        raise ValidationError()
    try:
        abuse_type = AbuseType(type_of_abuse)
    except ValueError as e:
        raise ValidationError("Please choose a valid type of abuse.") from e
    return abuse_type, description.strip()


async def _insert_report(
    db: AsyncSession,
    abuse_type: AbuseType,
    description: str,
    user_id: int | None,
) -> Reports:
    """
    Insert a report under a fresh tracking ID.

    A token that already exists, or that loses a race on the unique index,
    is discarded and a new one is minted.
    """
    for attempt in range(1, settings.TRACKING_ID_MAX_ATTEMPTS + 1):
        tracking_id = generate_tracking_id()

        existing = await db.execute(
            select(Reports.id).where(Reports.tracking_id == tracking_id)  # type: ignore[call-overload]
        )
        if existing.first() is not None:
            logger.warning("tracking_id_collision", attempt=attempt, stage="precheck")
            continue

        report = Reports(
            tracking_id=tracking_id,
            type_of_abuse=abuse_type.value,
            description=description,
            status=ReportStatus.SUBMITTED.value,
            user_id=user_id,
        )
        db.add(report)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("tracking_id_collision", attempt=attempt, stage="insert")
            continue
        return report

    logger.error("tracking_id_exhausted", attempts=settings.TRACKING_ID_MAX_ATTEMPTS)
    raise SurvivorHubError("Failed to submit report. Please try again.")


async def _record_evidence(db: AsyncSession, row: EvidenceFiles) -> None:
    db.add(row)
    await db.commit()


async def _attach_evidence(
    db: AsyncSession, report_id: str, uploads: list[EvidenceUpload]
) -> tuple[int, list[str]]:
    """
    Store each upload and record its metadata row.

    Returns:
        (number of files attached, original names of files that failed)
    """
    attached = 0
    failed: list[str] = []

    for upload in uploads:
        storage_path = build_storage_path(report_id, upload.filename)

        try:
            store_evidence(storage_path, upload.content)
        except OSError as e:
            logger.error(
                "evidence_store_failed",
                report_id=report_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            failed.append(upload.filename)
            continue

        row = EvidenceFiles(
            report_id=report_id,
            file_url=storage_path,
            file_name=upload.filename,
            content_type=resolve_content_type(upload),
            size=len(upload.content),
        )
        try:
            await _record_evidence(db, row)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "evidence_metadata_failed",
                report_id=report_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            # The object must not outlive its missing row
            try:
                delete_evidence(storage_path)
            except OSError as cleanup_error:
                logger.error(
                    "evidence_cleanup_failed",
                    report_id=report_id,
                    storage_path=storage_path,
                    error=str(cleanup_error),
                )
            failed.append(upload.filename)
            continue

        attached += 1

    return attached, failed


async def submit_report(
    db: AsyncSession,
    actor: Anonymous | AuthenticatedUser,
    type_of_abuse: str,
    description: str,
    evidence: list[EvidenceUpload] | None = None,
    outbox: NotificationOutbox | None = None,
    link_to_account: bool = False,
) -> SubmissionResult:
    """
    Create a report and attach its evidence.

    The report is only linked to the caller's account when the caller is
    signed in and asks for it.

    Raises:
        ValidationError: invalid category, blank description or evidence over limits
        PartialFailureError: report saved but some evidence was not
    """
    uploads = evidence or []
    abuse_type, clean_description = _validate_submission(type_of_abuse, description)
    validate_evidence(uploads)

    user_id = actor.user_id if link_to_account else None
    report = await _insert_report(db, abuse_type, clean_description, user_id)

    # Rollbacks during evidence handling expire the instance
    tracking_id = report.tracking_id
    report_id = report.id
    created_at = report.created_at

    logger.info(
        "report_submitted",
        tracking_id=tracking_id,
        type_of_abuse=abuse_type.value,
        evidence_count=len(uploads),
        linked=user_id is not None,
    )

    attached, failed = await _attach_evidence(db, report_id, uploads)

    if outbox is not None:
        try:
            outbox.emit(
                ReportNotification(
                    tracking_id=tracking_id,
                    type_of_abuse=abuse_type.value,
                    submitted_at=created_at,
                )
            )
        except Exception as e:
            logger.error(
                "report_notification_emit_failed",
                tracking_id=tracking_id,
                error=str(e),
                error_type=type(e).__name__,
            )

    await publish_report_event("created", report_id, tracking_id, ReportStatus.SUBMITTED.value)

    if failed:
        raise PartialFailureError(tracking_id=tracking_id, failed_files=failed)

    return SubmissionResult(
        tracking_id=tracking_id,
        report_id=report_id,
        status=ReportStatus.SUBMITTED.value,
        created_at=created_at,
        evidence_count=attached,
    )


# ===== Tracking =====


async def get_status_history(db: AsyncSession, report_id: str) -> list[ReportStatusChanges]:
    """Status changes of a report, oldest first."""
    result = await db.execute(
        select(ReportStatusChanges)
        .where(ReportStatusChanges.report_id == report_id)  # type: ignore[arg-type]
        .order_by(ReportStatusChanges.created_at, ReportStatusChanges.id)  # type: ignore[arg-type]
    )
    return list(result.scalars().all())


async def lookup_report_status(db: AsyncSession, raw_tracking_id: str) -> TrackingResult:
    """
    Resolve a tracking ID to the status of its report.

    The format is checked before any query is issued.

    Raises:
        InvalidFormatError: token does not look like RPT-XXXXXXXX
        NotFoundError: no report carries this token
    """
    tracking_id = normalize_tracking_id(raw_tracking_id)

    result = await db.execute(
        select(  # type: ignore[call-overload]
            Reports.id,
            Reports.tracking_id,
            Reports.type_of_abuse,
            Reports.status,
            Reports.created_at,
        ).where(Reports.tracking_id == tracking_id)
    )
    row = result.first()
    if row is None:
        logger.info("report_lookup_miss")
        raise NotFoundError()

    history = await get_status_history(db, row.id)
    return TrackingResult(
        id=row.id,
        tracking_id=row.tracking_id,
        type_of_abuse=row.type_of_abuse,
        status=row.status,
        created_at=row.created_at,
        history=history,
    )


# ===== Moderation =====


async def list_reports(
    db: AsyncSession,
    actor: Admin,
    status: ReportStatus | None = None,
    search: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Reports], int]:
    """
    List reports newest first.

    ``search`` is a case-insensitive substring match on the tracking ID.

    Returns:
        (reports on this page, total matching)
    """
    query = select(Reports)
    if status is not None:
        query = query.where(Reports.status == status.value)  # type: ignore[arg-type]
    if search and search.strip():
        query = query.where(
            func.upper(Reports.tracking_id).contains(search.strip().upper(), autoescape=True)
        )

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    offset = (page - 1) * per_page
    result = await db.execute(
        query.order_by(Reports.created_at.desc(), Reports.id)  # type: ignore[attr-defined]
        .offset(offset)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def _get_report(db: AsyncSession, report_id: str, lock: bool = False) -> Reports:
    query = select(Reports).where(Reports.id == report_id)  # type: ignore[arg-type]
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    report = result.scalar_one_or_none()
    if report is None:
        raise NotFoundError("Report not found")
    return report


async def get_report_detail(db: AsyncSession, actor: Admin, report_id: str) -> ReportDetail:
    """
    Full report with evidence and history.

    Raises:
        NotFoundError: unknown report id
    """
    report = await _get_report(db, report_id)

    evidence_result = await db.execute(
        select(EvidenceFiles)
        .where(EvidenceFiles.report_id == report_id)  # type: ignore[arg-type]
        .order_by(EvidenceFiles.created_at, EvidenceFiles.id)  # type: ignore[arg-type]
    )
    history = await get_status_history(db, report_id)

    return ReportDetail(
        report=report,
        evidence=list(evidence_result.scalars().all()),
        history=history,
    )


async def get_evidence_file(
    db: AsyncSession, actor: Admin, report_id: str, file_id: int
) -> EvidenceFiles:
    """
    Evidence metadata row, scoped to its report.

    Raises:
        NotFoundError: no such file on this report
    """
    result = await db.execute(
        select(EvidenceFiles).where(
            EvidenceFiles.id == file_id,  # type: ignore[arg-type]
            EvidenceFiles.report_id == report_id,  # type: ignore[arg-type]
        )
    )
    evidence = result.scalar_one_or_none()
    if evidence is None:
        raise NotFoundError("Evidence file not found")
    return evidence


async def update_report_status(
    db: AsyncSession,
    actor: Admin,
    report_id: str,
    new_status: str,
    notes: str | None = None,
) -> Reports:
    """
    Move a report to a new status and append the change to its history.

    The report row is locked for the duration of the transaction so that the
    appended change always starts from the status it replaces. Both writes are
    committed together or not at all. Notes, when given, also replace the
    report's admin notes.

    Raises:
        ValidationError: ``new_status`` is not a report status
        NotFoundError: unknown report id
    """
    try:
        target = ReportStatus(new_status)
    except ValueError as e:
        raise ValidationError(f"Invalid status: {new_status}") from e

    report = await _get_report(db, report_id, lock=True)
    old_status = report.status
    now = utcnow()

    report.status = target.value
    report.reviewed_at = now
    if notes is not None:
        report.admin_notes = notes

    db.add(
        ReportStatusChanges(
            report_id=report_id,
            old_status=old_status,
            new_status=target.value,
            notes=notes,
            changed_by=actor.user_id,
            created_at=now,
        )
    )

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            "report_status_update_failed",
            report_id=report_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise

    await db.refresh(report)
    logger.info(
        "report_status_updated",
        tracking_id=report.tracking_id,
        old_status=old_status,
        new_status=target.value,
        admin_id=actor.user_id,
    )

    await publish_report_event("updated", report.id, report.tracking_id, report.status)
    return report


async def get_admin_statistics(
    db: AsyncSession, actor: Admin, now: datetime | None = None
) -> dict[str, object]:
    """Counters for the admin dashboard."""
    now = now or utcnow()

    async def _count(model: type, *conditions: object) -> int:
        query = select(func.count()).select_from(model)
        for condition in conditions:
            query = query.where(condition)  # type: ignore[arg-type]
        result = await db.execute(query)
        return result.scalar() or 0

    status_result = await db.execute(
        select(Reports.status, func.count()).group_by(Reports.status)  # type: ignore[call-overload]
    )
    by_status = {s.value: 0 for s in ReportStatus}
    for status_value, count in status_result.all():
        by_status[status_value] = count

    return {
        "total_reports": await _count(Reports),
        "reports_last_7_days": await _count(Reports, Reports.created_at >= now - timedelta(days=7)),
        "reports_last_30_days": await _count(
            Reports, Reports.created_at >= now - timedelta(days=30)
        ),
        "reports_by_status": by_status,
        "total_evidence_files": await _count(EvidenceFiles),
        "total_resources": await _count(Resources),
        "total_services": await _count(Services),
    }


# ===== Account-linked reports =====


async def list_reports_for_user(db: AsyncSession, actor: AuthenticatedUser) -> list[Reports]:
    """Reports the signed-in caller chose to link to their account, newest first."""
    result = await db.execute(
        select(Reports)
        .where(Reports.user_id == actor.user_id)  # type: ignore[arg-type]
        .order_by(Reports.created_at.desc())  # type: ignore[attr-defined]
    )
    return list(result.scalars().all())
