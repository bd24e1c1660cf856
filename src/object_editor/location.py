"""Identity of the single remote object being edited."""

from dataclasses import dataclass
from enum import Enum

_URI_FORMAT_ERROR = "Invalid cloud storage URI format. Expected s3://bucket/key or gs://bucket/key"


class StorageProvider(str, Enum):
    """Supported object store providers."""

    S3 = "s3"
    GCS = "gcs"

    @property
    def scheme(self) -> str:
        return "gs" if self is StorageProvider.GCS else "s3"


_SCHEMES = {
    "s3://": StorageProvider.S3,
    "gs://": StorageProvider.GCS,
}


@dataclass(frozen=True)
class ObjectLocation:
    """Resolved provider, bucket and key of an object."""

    provider: StorageProvider
    bucket: str
    key: str
    region: str | None = None

    def __post_init__(self):
        if not self.bucket:
            raise ValueError("Bucket name must not be empty")
        if not self.key:
            raise ValueError("Object key must not be empty")

    @property
    def uri(self) -> str:
        return f"{self.provider.scheme}://{self.bucket}/{self.key}"

    def __str__(self) -> str:
        return self.uri


def parse_object_uri(uri: str) -> tuple[StorageProvider, str, str]:
    """Split ``s3://bucket/key`` or ``gs://bucket/key`` into provider, bucket and key.

    Raises:
        ValueError: If the scheme is unknown or the bucket or key is empty.
    """
    for prefix, provider in _SCHEMES.items():
        if uri.startswith(prefix):
            bucket, sep, key = uri[len(prefix) :].partition("/")
            if sep and bucket and key:
                return provider, bucket, key
            break
    raise ValueError(_URI_FORMAT_ERROR)
