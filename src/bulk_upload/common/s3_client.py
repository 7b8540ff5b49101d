"""S3 client construction, bucket check, and single-file upload."""

import os
from typing import Any, Dict
from urllib.parse import quote

import boto3
from boto3.s3.transfer import TransferConfig as S3TransferConfig
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import (
    ClientError,
    ConnectionError as BotoConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from bulk_upload.common.config import UploadConfig
from bulk_upload.common.exceptions import ClassifiedTransferError
from bulk_upload.common.logger import get_logger

logger = get_logger(__name__)

_NETWORK_ERRORS = (BotoConnectionError, ReadTimeoutError)
_S3_ERRORS = (ClientError, NoCredentialsError) + _NETWORK_ERRORS


def _translate_error(
    e: Exception, operation: str, not_found_code: str = ""
) -> ClassifiedTransferError:
    """Translate a boto3/botocore failure into a ClassifiedTransferError.

    HEAD responses carry no error body, so a bare 404 is mapped to
    ``not_found_code`` when one is given.
    """
    message = f"S3 {operation} failed: {e}"
    if isinstance(e, ClientError):
        error_code = e.response.get("Error", {}).get("Code", "")
        status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if isinstance(status, int) and (status == 403 or status >= 500):
            code = status
        elif status == 404 and not_found_code:
            code = not_found_code
        else:
            code = error_code or status
        return ClassifiedTransferError(
            message,
            code=code,
            details={"error_code": error_code, "status": status, "operation": operation},
        )
    if isinstance(e, _NETWORK_ERRORS):
        return ClassifiedTransferError(
            message, code="NetworkingError", details={"operation": operation}
        )
    if isinstance(e, NoCredentialsError):
        return ClassifiedTransferError(
            message, code="NoCredentials", details={"operation": operation}
        )
    return ClassifiedTransferError(message, details={"operation": operation})


def create_s3_client(config: UploadConfig):
    """Build the S3 client shared by every task of one batch."""
    kwargs: Dict[str, Any] = {"service_name": "s3"}
    if config.region:
        kwargs["region_name"] = config.region
    if config.endpoint_url:
        kwargs["endpoint_url"] = config.endpoint_url
    if config.access_key_id and config.secret_access_key:
        kwargs["aws_access_key_id"] = config.access_key_id
        kwargs["aws_secret_access_key"] = config.secret_access_key
    return boto3.client(**kwargs)


def object_url(s3_client, bucket: str, key: str) -> str:
    """Public URL of an object, honouring custom endpoints."""
    endpoint = s3_client.meta.endpoint_url.rstrip("/")
    return f"{endpoint}/{bucket}/{quote(key)}"


def check_bucket(s3_client, bucket: str) -> None:
    """Confirm the destination bucket exists and is reachable."""
    try:
        s3_client.head_bucket(Bucket=bucket)
    except _S3_ERRORS as e:
        raise _translate_error(e, "head_bucket", not_found_code="NoSuchBucket") from e
    logger.info("Destination bucket s3://%s is reachable", bucket)


def put_file(
    s3_client,
    local_path: str,
    bucket: str,
    key: str,
    multipart_threshold: int = 50 * 1024 * 1024,
) -> Dict[str, Any]:
    """Upload one local file; large files use the managed multipart transfer."""
    try:
        size = os.stat(local_path).st_size
    except FileNotFoundError as e:
        raise ClassifiedTransferError(
            f"Local file not found: {local_path}", code="ENOENT"
        ) from e

    if size == 0:
        raise ClassifiedTransferError(
            f"File size is 0, refusing to upload empty file: {local_path}"
        )

    try:
        if size > multipart_threshold:
            logger.info("Multipart upload %s (%d bytes) -> s3://%s/%s",
                        local_path, size, bucket, key)
            s3_client.upload_file(
                local_path,
                bucket,
                key,
                Config=S3TransferConfig(multipart_threshold=multipart_threshold),
            )
        else:
            with open(local_path, "rb") as body:
                s3_client.put_object(Bucket=bucket, Key=key, Body=body)
    except S3UploadFailedError as e:
        # boto3 raises the wrapper while handling the original ClientError.
        if isinstance(e.__context__, ClientError):
            raise _translate_error(e.__context__, "upload_file") from e
        raise ClassifiedTransferError(
            f"S3 upload_file failed: {e}", details={"operation": "upload_file"}
        ) from e
    except _S3_ERRORS as e:
        raise _translate_error(e, "put_object") from e

    logger.debug("Upload complete: s3://%s/%s", bucket, key)
    return {"key": key, "size": size, "url": object_url(s3_client, bucket, key)}
