"""
Evidence file storage helpers.

Objects are written once under ``<EVIDENCE_STORAGE_PATH>/<report_id>/`` with a
random name and are never modified in place. The original filename is kept
only in the metadata row.
"""

import mimetypes
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path as FilePath
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.config import settings
from survivor_hub.core.errors import ValidationError
from survivor_hub.core.logging import get_logger
from survivor_hub.models.evidence_file import EvidenceFiles

logger = get_logger(__name__)

ALLOWED_DOCUMENT_TYPES = {"application/pdf"}


@dataclass(frozen=True)
class EvidenceUpload:
    """An uploaded file, already read into memory."""

    filename: str
    content: bytes
    content_type: str | None = None


def resolve_content_type(upload: EvidenceUpload) -> str | None:
    if upload.content_type and upload.content_type != "application/octet-stream":
        return upload.content_type
    guessed, _ = mimetypes.guess_type(upload.filename)
    return guessed


def validate_evidence(uploads: list[EvidenceUpload]) -> None:
    """
    Check count, size and type limits before anything is persisted.

    Accepted types are images and PDF documents.

    Raises:
        ValidationError: if any limit is exceeded
    """
    if len(uploads) > settings.MAX_EVIDENCE_FILES:
        raise ValidationError(
            f"You can attach at most {settings.MAX_EVIDENCE_FILES} evidence files."
        )

    for upload in uploads:
        if not upload.filename:
            raise ValidationError("Evidence files must have a filename.")
        if len(upload.content) == 0:
            raise ValidationError("Evidence files must not be empty.")
        if len(upload.content) > settings.MAX_EVIDENCE_SIZE:
            raise ValidationError(
                f"Evidence files must be smaller than {settings.MAX_EVIDENCE_SIZE // (1024 * 1024)}MB."
            )
        content_type = resolve_content_type(upload)
        if content_type is None or not (
            content_type.startswith("image/") or content_type in ALLOWED_DOCUMENT_TYPES
        ):
            raise ValidationError("Only images and PDF files can be attached as evidence.")


def build_storage_path(report_id: str, filename: str) -> str:
    """
    Build a random storage path scoped to the report.

    Only the lowercase extension of the original filename survives.
    """
    ext = FilePath(filename).suffix.lower().lstrip(".")
    name = uuid4().hex
    return f"{report_id}/{name}.{ext}" if ext else f"{report_id}/{name}"


def _absolute(storage_path: str) -> FilePath:
    base = FilePath(settings.EVIDENCE_STORAGE_PATH)
    return base / storage_path


def store_evidence(storage_path: str, content: bytes) -> FilePath:
    """
    Write an evidence object. Fails if the object already exists.

    Returns:
        Absolute path of the stored object
    """
    target = _absolute(storage_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "xb") as f:
        f.write(content)
    return target


def delete_evidence(storage_path: str) -> bool:
    """
    Remove an evidence object if it exists.

    Returns:
        True if a file was removed
    """
    target = _absolute(storage_path)
    if not target.exists():
        return False
    target.unlink()

    # Remove the per-report directory once it is empty
    parent = target.parent
    if parent != FilePath(settings.EVIDENCE_STORAGE_PATH) and not any(parent.iterdir()):
        parent.rmdir()
    return True


def evidence_path(storage_path: str) -> FilePath:
    """Absolute path of a stored object (for admin downloads)."""
    return _absolute(storage_path)


async def purge_expired_evidence(db: AsyncSession, now: datetime | None = None) -> dict[str, int]:
    """
    Delete evidence objects and rows older than EVIDENCE_RETENTION_HOURS.

    A file that cannot be removed keeps its row so the next run retries it;
    the rest of the batch still proceeds.

    Returns:
        dict with counts: {"purged": int, "missing": int, "errors": int}
    """
    results = {"purged": 0, "missing": 0, "errors": 0}

    cutoff = (now or datetime.now(UTC)) - timedelta(hours=settings.EVIDENCE_RETENTION_HOURS)
    result = await db.execute(
        select(EvidenceFiles).where(EvidenceFiles.created_at < cutoff)  # type: ignore[arg-type]
    )
    expired = result.scalars().all()

    for evidence in expired:
        try:
            removed = delete_evidence(evidence.file_url)
            await db.delete(evidence)
            results["purged"] += 1
            if not removed:
                results["missing"] += 1
        except OSError as e:
            results["errors"] += 1
            logger.error(
                "evidence_purge_failed",
                evidence_id=evidence.id,
                report_id=evidence.report_id,
                error=str(e),
                error_type=type(e).__name__,
            )

    await db.commit()
    logger.info("evidence_purge_completed", **results)
    return results
