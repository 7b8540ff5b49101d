"""Pre-flight checks that filter local files before any upload is attempted."""

import os
import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, Iterable, List, Optional

from bulk_upload.common.exceptions import ValidationError

NOT_FOUND = "not_found"
NOT_FILE = "not_file"
SIZE_EXCEEDED = "size_exceeded"
FORBIDDEN_EXTENSION = "forbidden_extension"
UNSUPPORTED_EXTENSION = "unsupported_extension"
NOT_READABLE = "not_readable"
CHECK_FAILED = "check_failed"

_MB = 1024 * 1024


@dataclass(frozen=True)
class ValidationConfig:
    max_size_bytes: int = 500 * _MB
    forbidden_extensions: FrozenSet[str] = frozenset()
    allowed_extensions: Optional[FrozenSet[str]] = None
    check_readable: bool = True

    def __post_init__(self):
        # Extensions are compared lower-case with the leading dot.
        object.__setattr__(
            self,
            "forbidden_extensions",
            frozenset(e.lower() for e in self.forbidden_extensions),
        )
        if self.allowed_extensions is not None:
            object.__setattr__(
                self,
                "allowed_extensions",
                frozenset(e.lower() for e in self.allowed_extensions),
            )


@dataclass(frozen=True)
class FileVerdict:
    path: str
    valid: bool
    size: Optional[int] = None
    extension: Optional[str] = None
    last_modified: Optional[datetime] = None
    error: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ValidationSummary:
    valid: List[FileVerdict] = field(default_factory=list)
    invalid: List[FileVerdict] = field(default_factory=list)
    total_size_bytes: int = 0

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)

    @property
    def total_count(self) -> int:
        return len(self.valid) + len(self.invalid)

    @property
    def total_size_mb(self) -> float:
        return round(self.total_size_bytes / _MB, 2)


def _check(path: str, config: ValidationConfig) -> FileVerdict:
    try:
        st = os.stat(path)
    except OSError as e:
        raise ValidationError(NOT_FOUND, f"File does not exist: {path}") from e

    if not stat.S_ISREG(st.st_mode):
        raise ValidationError(NOT_FILE, f"Not a regular file: {path}")

    if st.st_size > config.max_size_bytes:
        raise ValidationError(
            SIZE_EXCEEDED,
            f"File too large: {st.st_size / _MB:.2f}MB "
            f"(limit {config.max_size_bytes / _MB:.2f}MB)",
        )

    extension = os.path.splitext(path)[1].lower()
    if extension in config.forbidden_extensions:
        raise ValidationError(
            FORBIDDEN_EXTENSION, f"Forbidden file type: {extension}"
        )

    if (
        config.allowed_extensions is not None
        and extension not in config.allowed_extensions
    ):
        raise ValidationError(
            UNSUPPORTED_EXTENSION, f"Unsupported file type: {extension or '(none)'}"
        )

    if config.check_readable:
        try:
            with open(path, "rb"):
                pass
        except OSError as e:
            raise ValidationError(NOT_READABLE, f"File is not readable: {e}") from e

    return FileVerdict(
        path=path,
        valid=True,
        size=st.st_size,
        extension=extension,
        last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    )


def validate_file(path: str, config: ValidationConfig) -> FileVerdict:
    """Run the checks in order; the first failing check decides the verdict."""
    try:
        return _check(path, config)
    except ValidationError as e:
        return FileVerdict(path=path, valid=False, error=str(e), reason=e.reason)
    except Exception as e:
        return FileVerdict(
            path=path,
            valid=False,
            error=f"File check failed: {e}",
            reason=CHECK_FAILED,
        )


def validate_files(paths: Iterable[str], config: ValidationConfig) -> ValidationSummary:
    """Partition paths into valid and invalid verdicts, preserving input order."""
    valid: List[FileVerdict] = []
    invalid: List[FileVerdict] = []
    total_size = 0
    for path in paths:
        verdict = validate_file(path, config)
        if verdict.valid:
            valid.append(verdict)
            total_size += verdict.size
        else:
            invalid.append(verdict)
    return ValidationSummary(valid=valid, invalid=invalid, total_size_bytes=total_size)
