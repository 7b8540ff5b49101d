"""Classify transfer failures into categories that drive retry and reporting."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from botocore.exceptions import ClientError


class ErrorCategory(str, Enum):
    NETWORK = "network"
    PERMISSION = "permission"
    FILE = "file"
    STORAGE_SERVICE = "storage-service"
    SERVER = "server"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorClassification:
    category: ErrorCategory
    description: str
    suggestion: str


# Markers are matched case-insensitively against the error message.
_NETWORK_MARKERS = (
    "enotfound",
    "etimedout",
    "econnrefused",
    "econnreset",
    "getaddrinfo",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "could not connect to the endpoint url",
    "connection refused",
    "connection reset",
    "timed out",
)
_NETWORK_CODES = frozenset(
    {
        "ENOTFOUND",
        "ETIMEDOUT",
        "ECONNREFUSED",
        "ECONNRESET",
        "NetworkingError",
        "RequestTimeout",
        "EndpointConnectionError",
        "ConnectTimeoutError",
        "ReadTimeoutError",
    }
)

_PERMISSION_MARKERS = (
    "access denied",
    "accessdenied",
    "forbidden",
    "permission denied",
    "invalidaccesskeyid",
    "signaturedoesnotmatch",
    "unable to locate credentials",
)
_PERMISSION_CODES = frozenset(
    {
        403,
        "403",
        "AccessDenied",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "NoCredentials",
    }
)

_FILE_MARKERS = ("enoent", "no such file", "file not found")
_FILE_CODES = frozenset({"NoSuchKey", "ENOENT"})

_STORAGE_SERVICE_CODES = frozenset({"NoSuchBucket"})

_CLASSIFICATIONS = {
    ErrorCategory.NETWORK: ErrorClassification(
        ErrorCategory.NETWORK,
        "Network connection error",
        "Check network connectivity or retry later",
    ),
    ErrorCategory.PERMISSION: ErrorClassification(
        ErrorCategory.PERMISSION,
        "Permission denied",
        "Check the access key, secret key and bucket permissions",
    ),
    ErrorCategory.FILE: ErrorClassification(
        ErrorCategory.FILE,
        "Missing file or object",
        "Check that the local file exists and is readable",
    ),
    ErrorCategory.STORAGE_SERVICE: ErrorClassification(
        ErrorCategory.STORAGE_SERVICE,
        "Storage service configuration error",
        "Check the bucket name and region configuration",
    ),
    ErrorCategory.SERVER: ErrorClassification(
        ErrorCategory.SERVER,
        "Storage server error",
        "The service is temporarily unavailable, retry later",
    ),
    ErrorCategory.UNKNOWN: ErrorClassification(
        ErrorCategory.UNKNOWN,
        "Unknown error",
        "Inspect the error details and retry",
    ),
}


def _numeric(code) -> Optional[int]:
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    if isinstance(code, str) and code.strip().isdigit():
        return int(code.strip())
    return None


def classify_error(
    message: str, code: Union[str, int, None] = None
) -> ErrorClassification:
    """Map a failure message and optional code to exactly one classification.

    Rules are evaluated in order and the first match wins: network,
    permission, file, storage-service, server (numeric code >= 500), unknown.
    """
    text = (message or "").lower()
    status = _numeric(code)

    if any(marker in text for marker in _NETWORK_MARKERS) or code in _NETWORK_CODES:
        category = ErrorCategory.NETWORK
    elif (
        code in _PERMISSION_CODES
        or status == 403
        or any(marker in text for marker in _PERMISSION_MARKERS)
    ):
        category = ErrorCategory.PERMISSION
    elif any(marker in text for marker in _FILE_MARKERS) or code in _FILE_CODES:
        category = ErrorCategory.FILE
    elif code in _STORAGE_SERVICE_CODES:
        category = ErrorCategory.STORAGE_SERVICE
    elif status is not None and status >= 500:
        category = ErrorCategory.SERVER
    else:
        category = ErrorCategory.UNKNOWN
    return _CLASSIFICATIONS[category]


def classify_exception(error: BaseException) -> ErrorClassification:
    """Classify any exception, pulling a code from it where one is available."""
    code = getattr(error, "code", None)
    if code is None and isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code")
    if code is None:
        code = getattr(error, "errno", None)
    return classify_error(str(error), code)
