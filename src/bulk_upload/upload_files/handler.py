"""UploadFiles: validate local files, check the bucket, upload under a concurrency cap."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from bulk_upload.common.config import UploadConfig
from bulk_upload.common.exceptions import ClassifiedTransferError, PreflightError
from bulk_upload.common.files import FileDescriptor, collect_files
from bulk_upload.common.logger import get_logger, log_with_context
from bulk_upload.common.retry import retry_with_backoff
from bulk_upload.common.s3_client import check_bucket, create_s3_client, put_file
from bulk_upload.common.scheduler import (
    ProgressCallback,
    Task,
    TaskResult,
    limit_concurrency,
)
from bulk_upload.common.validator import ValidationSummary, validate_files
from bulk_upload.upload_files.report import UploadReport

logger = get_logger(__name__)


@dataclass(frozen=True)
class PreparedBatch:
    batch_id: str
    descriptors: List[FileDescriptor] = field(default_factory=list)
    validation: Optional[ValidationSummary] = None


def prepare_batch(
    source: str,
    config: UploadConfig,
    s3_client,
    batch_id: str = "",
) -> PreparedBatch:
    """Collect and validate files, then confirm the bucket is reachable.

    Raises PreflightError when nothing survives validation or the bucket
    cannot be reached.
    """
    batch_id = batch_id or str(uuid.uuid4())
    candidates = collect_files(source, config.target_prefix)
    if not candidates:
        log_with_context(
            logger, logging.WARNING, "No files found to upload",
            batch_id=batch_id, source=source,
        )
        return PreparedBatch(batch_id=batch_id)

    summary = validate_files(
        [d.local_path for d in candidates], config.validation_config()
    )
    for verdict in summary.invalid:
        log_with_context(
            logger, logging.WARNING, "Skipping invalid file",
            batch_id=batch_id, path=verdict.path, reason=verdict.reason,
            error=verdict.error,
        )

    if not summary.valid:
        raise PreflightError(
            "No valid files to upload",
            details={"batch_id": batch_id, "validation": summary},
        )

    by_path = {d.local_path: d for d in candidates}
    accepted = [by_path[v.path] for v in summary.valid]
    log_with_context(
        logger, logging.INFO, "File check complete",
        batch_id=batch_id, valid=summary.valid_count,
        invalid=summary.invalid_count, total_size_mb=summary.total_size_mb,
    )

    try:
        check_bucket(s3_client, config.bucket)
    except ClassifiedTransferError as e:
        classification = e.classification
        raise PreflightError(
            f"Cannot reach destination bucket {config.bucket}: {e}. "
            f"{classification.suggestion}",
            details={
                "batch_id": batch_id,
                "category": classification.category.value,
                "validation": summary,
            },
        ) from e

    return PreparedBatch(batch_id=batch_id, descriptors=accepted, validation=summary)


def build_upload_task(
    descriptor: FileDescriptor, config: UploadConfig, s3_client
) -> Task:
    """Create the retry-guarded upload task for one file."""

    async def attempt():
        return await asyncio.to_thread(
            put_file,
            s3_client,
            descriptor.local_path,
            config.bucket,
            descriptor.key,
            config.multipart_threshold_bytes,
        )

    async def upload() -> TaskResult:
        try:
            payload = await retry_with_backoff(
                attempt,
                max_attempts=config.max_retry_attempts,
                base_delay=config.retry_base_delay,
                max_delay=config.retry_max_delay,
                adaptive=config.adaptive_retry,
            )
        except ClassifiedTransferError as e:
            logger.warning("Upload failed for %s: %s", descriptor.key, e)
            return TaskResult(success=False, error=str(e), code=e.code)
        return TaskResult(success=True, payload=payload)

    return upload


async def upload_batch(
    descriptors: List[FileDescriptor],
    config: UploadConfig,
    s3_client,
    on_progress: Optional[ProgressCallback] = None,
    batch_id: str = "",
) -> List[TaskResult]:
    """Upload every descriptor; results align with ``descriptors`` by index."""
    if not descriptors:
        return []
    tasks = [build_upload_task(d, config, s3_client) for d in descriptors]
    concurrency = min(config.max_concurrency, len(tasks))
    log_with_context(
        logger, logging.INFO, "Upload started",
        batch_id=batch_id, files=len(tasks), concurrency=concurrency,
    )
    results = await limit_concurrency(tasks, concurrency, on_progress)
    log_with_context(
        logger, logging.INFO, "Upload finished",
        batch_id=batch_id, succeeded=sum(1 for r in results if r.success),
        failed=sum(1 for r in results if not r.success),
    )
    return results


def run_upload(
    source: str,
    config: UploadConfig,
    s3_client=None,
    on_progress: Optional[ProgressCallback] = None,
    on_prepared: Optional[Callable[[PreparedBatch], None]] = None,
) -> UploadReport:
    """Run one complete batch and return its report.

    ``on_prepared`` sees the validated batch before any upload starts.
    """
    config.validate()
    if s3_client is None:
        s3_client = create_s3_client(config)

    batch = prepare_batch(source, config, s3_client)
    if on_prepared is not None:
        on_prepared(batch)
    results = asyncio.run(
        upload_batch(
            batch.descriptors, config, s3_client, on_progress, batch.batch_id
        )
    )
    return UploadReport(
        batch_id=batch.batch_id,
        descriptors=batch.descriptors,
        results=results,
        validation=batch.validation,
    )
