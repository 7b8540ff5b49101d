"""Batch report: successes, failures, and failures grouped by classification."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bulk_upload.common.classifier import ErrorCategory, classify_error
from bulk_upload.common.files import FileDescriptor
from bulk_upload.common.scheduler import TaskResult
from bulk_upload.common.validator import ValidationSummary


@dataclass
class FailureGroup:
    category: ErrorCategory
    description: str
    suggestion: str
    files: List[Dict[str, str]] = field(default_factory=list)


def group_failures(
    descriptors: List[FileDescriptor], results: List[TaskResult]
) -> Dict[ErrorCategory, FailureGroup]:
    """Group failed results by category, in first-seen order."""
    groups: Dict[ErrorCategory, FailureGroup] = {}
    for descriptor, result in zip(descriptors, results):
        if result.success:
            continue
        error = result.error or "Unknown error"
        classification = classify_error(error, result.code)
        group = groups.get(classification.category)
        if group is None:
            group = groups[classification.category] = FailureGroup(
                category=classification.category,
                description=classification.description,
                suggestion=classification.suggestion,
            )
        group.files.append({"file": descriptor.key, "error": error})
    return groups


@dataclass(frozen=True)
class UploadReport:
    batch_id: str
    descriptors: List[FileDescriptor]
    results: List[TaskResult]
    validation: Optional[ValidationSummary] = None

    @property
    def succeeded(self) -> List[Tuple[FileDescriptor, TaskResult]]:
        return [(d, r) for d, r in zip(self.descriptors, self.results) if r.success]

    @property
    def failed(self) -> List[Tuple[FileDescriptor, TaskResult]]:
        return [(d, r) for d, r in zip(self.descriptors, self.results) if not r.success]

    @property
    def ok(self) -> bool:
        return not self.failed

    def failure_groups(self) -> Dict[ErrorCategory, FailureGroup]:
        return group_failures(self.descriptors, self.results)

    def to_dict(self) -> Dict[str, Any]:
        validation = self.validation
        return {
            "batch_id": self.batch_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": "COMPLETED" if self.ok else "FAILED",
            "total_files": len(self.results),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "uploaded": [
                {"file": d.key, "url": (r.payload or {}).get("url", "")}
                for d, r in self.succeeded
            ],
            "failures": {
                category.value: {
                    "description": group.description,
                    "suggestion": group.suggestion,
                    "files": group.files,
                }
                for category, group in self.failure_groups().items()
            },
            "validation": {
                "valid": validation.valid_count,
                "invalid": validation.invalid_count,
                "total_size_bytes": validation.total_size_bytes,
                "rejected": [
                    {"path": v.path, "reason": v.reason, "error": v.error}
                    for v in validation.invalid
                ],
            }
            if validation is not None
            else None,
        }


def write_report(report: UploadReport, path: str) -> None:
    """Write the report as indented JSON."""
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(report.to_dict(), fh, indent=2, default=str)
