"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional

from bulk_upload.common.exceptions import ConfigError
from bulk_upload.common.validator import ValidationConfig

DEFAULT_FORBIDDEN_EXTENSIONS = frozenset(
    {".exe", ".bat", ".cmd", ".scr", ".msi", ".dmg"}
)


def parse_extensions(value: str) -> FrozenSet[str]:
    """Parse a comma-separated extension list into lower-case dotted suffixes."""
    extensions = set()
    for item in value.split(","):
        item = item.strip().lower()
        if not item:
            continue
        extensions.add(item if item.startswith(".") else f".{item}")
    return frozenset(extensions)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class UploadConfig:
    """Upload configuration from environment variables and CLI overrides."""

    # Destination
    bucket: str = ""
    region: str = ""
    target_prefix: str = ""
    endpoint_url: str = ""

    # Explicit credentials; empty means the boto3 default chain
    access_key_id: str = ""
    secret_access_key: str = ""

    # Scheduling
    max_concurrency: int = 5
    multipart_threshold_bytes: int = 50 * 1024 * 1024  # 50 MB

    # Retry (initial policy, adapted after the first failure)
    max_retry_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0
    adaptive_retry: bool = True

    # Pre-flight validation
    max_file_size_bytes: int = 500 * 1024 * 1024  # 500 MB
    forbidden_extensions: FrozenSet[str] = field(
        default_factory=lambda: DEFAULT_FORBIDDEN_EXTENSIONS
    )
    allowed_extensions: Optional[FrozenSet[str]] = None
    check_readable: bool = True

    @classmethod
    def from_env(cls) -> "UploadConfig":
        """Load configuration from environment variables."""
        allowed = os.environ.get("ALLOWED_EXTENSIONS", "")
        try:
            return cls(
                bucket=os.environ.get("DESTINATION_BUCKET", ""),
                region=os.environ.get("AWS_REGION", ""),
                target_prefix=os.environ.get("DESTINATION_PREFIX", ""),
                endpoint_url=os.environ.get("S3_ENDPOINT_URL", ""),
                max_concurrency=int(os.environ.get("MAX_CONCURRENCY", "5")),
                multipart_threshold_bytes=int(
                    os.environ.get(
                        "MULTIPART_THRESHOLD_BYTES", str(50 * 1024 * 1024)
                    )
                ),
                max_retry_attempts=int(os.environ.get("MAX_RETRY_ATTEMPTS", "3")),
                retry_base_delay=float(os.environ.get("RETRY_BASE_DELAY", "1.0")),
                retry_max_delay=float(os.environ.get("RETRY_MAX_DELAY", "30.0")),
                adaptive_retry=_env_bool("ADAPTIVE_RETRY", True),
                max_file_size_bytes=int(
                    os.environ.get("MAX_FILE_SIZE_BYTES", str(500 * 1024 * 1024))
                ),
                forbidden_extensions=parse_extensions(
                    os.environ.get(
                        "FORBIDDEN_EXTENSIONS",
                        ",".join(sorted(DEFAULT_FORBIDDEN_EXTENSIONS)),
                    )
                ),
                allowed_extensions=parse_extensions(allowed) if allowed else None,
                check_readable=_env_bool("CHECK_READABLE", True),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting in environment: {e}") from e

    def with_overrides(self, **overrides) -> "UploadConfig":
        """Return a copy with every non-None override applied."""
        return replace(
            self, **{k: v for k, v in overrides.items() if v is not None}
        )

    def validate(self) -> None:
        """Raise ConfigError naming every missing or out-of-range setting."""
        missing = [name for name in ("bucket", "region") if not getattr(self, name)]
        if missing:
            raise ConfigError(
                f"Missing required settings: {', '.join(missing)}",
                details={"missing": missing},
            )
        if self.max_concurrency < 1:
            raise ConfigError(
                f"max_concurrency must be at least 1, got {self.max_concurrency}"
            )
        if self.max_retry_attempts < 0:
            raise ConfigError(
                f"max_retry_attempts must be >= 0, got {self.max_retry_attempts}"
            )

    def validation_config(self) -> ValidationConfig:
        return ValidationConfig(
            max_size_bytes=self.max_file_size_bytes,
            forbidden_extensions=self.forbidden_extensions,
            allowed_extensions=self.allowed_extensions,
            check_readable=self.check_readable,
        )
