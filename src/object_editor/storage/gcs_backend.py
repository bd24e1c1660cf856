"""Google Cloud Storage backend."""

import logging

import requests
from google.api_core.exceptions import (
    Forbidden,
    NotFound,
    PreconditionFailed,
    ServerError,
    TooManyRequests,
    Unauthorized,
)
from google.auth.exceptions import DefaultCredentialsError, RefreshError, TransportError
from google.cloud import storage as gcs
from google.oauth2 import service_account

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


class GcsBackend(StorageBackend):
    """Google Cloud Storage backend using object generations as fingerprints.

    Generation ``0`` in an ``ifGenerationMatch`` precondition means the object
    must not exist, which is how writes of new objects are guarded.
    """

    def __init__(
        self,
        project: str | None = None,
        service_account_file: str | None = None,
    ):
        kwargs: dict = {}
        if project:
            kwargs["project"] = project
        try:
            if service_account_file:
                kwargs["credentials"] = service_account.Credentials.from_service_account_file(service_account_file)
            self._gcs_client = gcs.Client(**kwargs)
        except (DefaultCredentialsError, OSError, ValueError) as e:
            raise StoragePermissionError(f"Could not load GCS credentials: {e}", cause=e) from e

    def fetch(self, location: ObjectLocation) -> ObjectSnapshot:
        bucket = self._gcs_client.bucket(location.bucket)
        try:
            blob = bucket.get_blob(location.key)
            # get_blob also returns None when the bucket itself is missing
            bucket_exists = blob is not None or bucket.exists()
        except Exception as e:
            raise self._translate_error(e, location.key) from e
        if not bucket_exists:
            raise StorageError(f"Bucket {location.bucket!r} does not exist", key=location.key)
        if blob is None:
            raise StorageNotFoundError(f"{location} does not exist", key=location.key)

        try:
            content = blob.download_as_bytes(if_generation_match=blob.generation)
        except PreconditionFailed as e:
            raise StorageTransientError(
                f"{location} changed while it was being downloaded", key=location.key, cause=e
            ) from e
        except Exception as e:
            raise self._translate_error(e, location.key) from e

        return ObjectSnapshot(
            content=content,
            fingerprint=str(blob.generation),
            content_type=blob.content_type or DEFAULT_CONTENT_TYPE,
            metadata=blob.metadata or {},
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
        if expected_fingerprint == ABSENT_FINGERPRINT:
            generation = 0
        else:
            generation = int(expected_fingerprint)

        blob = self._gcs_client.bucket(location.bucket).blob(location.key)
        if metadata:
            blob.metadata = metadata
        try:
            blob.upload_from_string(
                content,
                content_type=content_type or DEFAULT_CONTENT_TYPE,
                if_generation_match=generation,
            )
        except PreconditionFailed:
            return Conflict(self._fingerprint_after_conflict(location))
        except Exception as e:
            raise self._translate_error(e, location.key) from e

        return Written(str(blob.generation))

    def _fingerprint_after_conflict(self, location: ObjectLocation) -> str:
        try:
            blob = self._gcs_client.bucket(location.bucket).get_blob(location.key)
        except Exception as e:
            log.warning("Could not read current generation of %s after conflict: %s", location, e)
            return UNKNOWN_FINGERPRINT
        return ABSENT_FINGERPRINT if blob is None else str(blob.generation)

    def _translate_error(self, error: Exception, key: str | None = None) -> StorageError:
        if isinstance(error, NotFound):
            return StorageNotFoundError(str(error), key=key, cause=error)
        if isinstance(error, (Forbidden, Unauthorized, DefaultCredentialsError, RefreshError)):
            return StoragePermissionError(str(error), key=key, cause=error)
        if isinstance(error, (ServerError, TooManyRequests, TransportError)):
            return StorageTransientError(str(error), key=key, cause=error)
        if isinstance(error, (ConnectionError, requests.exceptions.RequestException)):
            return StorageTransientError(str(error), key=key, cause=error)
        return StorageError(str(error), key=key, cause=error)
