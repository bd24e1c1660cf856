"""S3-compatible storage backend (AWS S3, MinIO, SeaweedFS)."""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    HTTPClientError,
    IncompleteReadError,
    NoCredentialsError,
    ParamValidationError,
    PartialCredentialsError,
)
from botocore.exceptions import ConnectionError as BotoConnectionError

from ..location import ObjectLocation
from .base import (
    ABSENT_FINGERPRINT,
    DEFAULT_CONTENT_TYPE,
    UNKNOWN_FINGERPRINT,
    Conflict,
    ObjectSnapshot,
    StorageBackend,
    WriteResult,
    Written,
)
from .exceptions import (
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageTransientError,
)

log = logging.getLogger(__name__)

_ERROR_CODE_MAP = {
    "NoSuchKey": StorageNotFoundError,
    "NotFound": StorageNotFoundError,
    "404": StorageNotFoundError,
    "AccessDenied": StoragePermissionError,
    "403": StoragePermissionError,
    "InvalidAccessKeyId": StoragePermissionError,
    "SignatureDoesNotMatch": StoragePermissionError,
    "ExpiredToken": StoragePermissionError,
    "SlowDown": StorageTransientError,
    "Throttling": StorageTransientError,
    "RequestTimeout": StorageTransientError,
    "InternalError": StorageTransientError,
    "ServiceUnavailable": StorageTransientError,
    "503": StorageTransientError,
    "500": StorageTransientError,
}

_PRECONDITION_CODES = {"PreconditionFailed", "412", "ConditionalRequestConflict", "409"}
_UNSUPPORTED_CODES = {"NotImplemented", "501"}
_MISSING_CODES = {"NoSuchKey", "NotFound", "404"}


def _strip_etag(etag: str | None) -> str:
    return (etag or "").strip('"')


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class S3Backend(StorageBackend):
    """S3-compatible storage backend with If-Match conditional writes.

    Fingerprints are ETags without the surrounding quotes. Endpoints that do
    not honour ``If-Match``/``If-None-Match`` on PutObject can be handled with
    ``strict_preconditions=False``, which checks the ETag with HeadObject right
    before an unconditional PutObject.
    """

    def __init__(
        self,
        region: str | None = None,
        endpoint_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_session_token: str | None = None,
        strict_preconditions: bool = True,
    ):
        self._region = region
        self._endpoint_url = endpoint_url
        self._strict_preconditions = strict_preconditions

        kwargs: dict = {
            "config": Config(
                region_name=region,
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "standard"},
            ),
        }
        if aws_access_key_id and aws_secret_access_key:
            kwargs["aws_access_key_id"] = aws_access_key_id
            kwargs["aws_secret_access_key"] = aws_secret_access_key
        if aws_session_token:
            kwargs["aws_session_token"] = aws_session_token
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._client = boto3.client("s3", **kwargs)

    def fetch(self, location: ObjectLocation) -> ObjectSnapshot:
        try:
            response = self._client.get_object(Bucket=location.bucket, Key=location.key)
            content = response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, location.key) from e

        return ObjectSnapshot(
            content=content,
            fingerprint=_strip_etag(response.get("ETag")),
            content_type=response.get("ContentType", DEFAULT_CONTENT_TYPE),
            metadata=response.get("Metadata", {}),
        )

    def conditional_write(
        self,
        location: ObjectLocation,
        content: bytes,
        expected_fingerprint: str,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> WriteResult:
        if not self._strict_preconditions:
            return self._emulated_write(location, content, expected_fingerprint, content_type, metadata)

        params = self._put_params(location, content, content_type, metadata)
        if expected_fingerprint == ABSENT_FINGERPRINT:
            params["IfNoneMatch"] = "*"
        else:
            params["IfMatch"] = f'"{expected_fingerprint}"'

        try:
            response = self._client.put_object(**params)
        except ParamValidationError:
            log.warning("S3 client rejected conditional write parameters; checking ETag before upload instead")
            return self._emulated_write(location, content, expected_fingerprint, content_type, metadata)
        except ClientError as e:
            code = _error_code(e)
            if code in _PRECONDITION_CODES:
                return Conflict(self._fingerprint_after_conflict(location))
            if code in _MISSING_CODES and expected_fingerprint != ABSENT_FINGERPRINT:
                return Conflict(ABSENT_FINGERPRINT)
            if code in _UNSUPPORTED_CODES:
                log.warning("Endpoint does not support conditional writes; checking ETag before upload instead")
                return self._emulated_write(location, content, expected_fingerprint, content_type, metadata)
            raise self._translate_error(e, location.key) from e
        except BotoCoreError as e:
            raise self._translate_error(e, location.key) from e

        return Written(_strip_etag(response.get("ETag")))

    def _emulated_write(
        self,
        location: ObjectLocation,
        content: bytes,
        expected_fingerprint: str,
        content_type: str | None,
        metadata: dict[str, str] | None,
    ) -> WriteResult:
        current = self._head_fingerprint(location)
        if current != expected_fingerprint:
            return Conflict(current)

        params = self._put_params(location, content, content_type, metadata)
        try:
            response = self._client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, location.key) from e
        return Written(_strip_etag(response.get("ETag")))

    def _head_fingerprint(self, location: ObjectLocation) -> str:
        try:
            response = self._client.head_object(Bucket=location.bucket, Key=location.key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return ABSENT_FINGERPRINT
            raise self._translate_error(e, location.key) from e
        except BotoCoreError as e:
            raise self._translate_error(e, location.key) from e
        return _strip_etag(response.get("ETag"))

    def _fingerprint_after_conflict(self, location: ObjectLocation) -> str:
        try:
            return self._head_fingerprint(location)
        except StorageError as e:
            log.warning("Could not read current ETag of %s after conflict: %s", location, e)
            return UNKNOWN_FINGERPRINT

    @staticmethod
    def _put_params(
        location: ObjectLocation,
        content: bytes,
        content_type: str | None,
        metadata: dict[str, str] | None,
    ) -> dict:
        params: dict = {
            "Bucket": location.bucket,
            "Key": location.key,
            "Body": content,
            "ContentType": content_type or DEFAULT_CONTENT_TYPE,
        }
        if metadata:
            params["Metadata"] = metadata
        return params

    def _translate_error(self, error: Exception, key: str | None = None) -> StorageError:
        if isinstance(error, ClientError):
            exc_cls = _ERROR_CODE_MAP.get(_error_code(error))
            if exc_cls is None:
                status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
                exc_cls = StorageTransientError if status >= 500 else StorageError
            return exc_cls(str(error), key=key, cause=error)
        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return StoragePermissionError(str(error), key=key, cause=error)
        if isinstance(error, (BotoConnectionError, HTTPClientError, IncompleteReadError)):
            return StorageTransientError(str(error), key=key, cause=error)
        return StorageError(str(error), key=key, cause=error)
