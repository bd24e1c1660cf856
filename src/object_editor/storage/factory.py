"""Factory for creating storage backends based on the resolved provider."""

import logging
import os

from ..config import EditorSettings
from ..location import StorageProvider
from .base import StorageBackend

log = logging.getLogger(__name__)


def create_storage_backend(
    provider: StorageProvider | str,
    settings: EditorSettings | None = None,
    region: str | None = None,
) -> StorageBackend:
    """Create the StorageBackend for a provider.

    Credentials come from each provider's standard discovery chain; only the
    overrides carried by ``settings`` are passed through explicitly.

    Args:
        provider: "s3" or "gcs".
        settings: Endpoint and credential overrides. Defaults are used if None.
        region: AWS region of the object, usually ObjectLocation.region. Falls
            back to the boto3 configuration chain when None.

    Returns:
        Configured StorageBackend instance.

    Raises:
        ValueError: If provider is unsupported.
    """
    settings = settings or EditorSettings()
    backend = str(getattr(provider, "value", provider)).lower()

    if backend == StorageProvider.S3.value:
        return _create_s3_backend(settings, region)
    if backend == StorageProvider.GCS.value:
        return _create_gcs_backend(settings, region)

    raise ValueError(f"Unsupported storage provider: {backend!r}. Supported: s3, gcs")


def _create_s3_backend(settings: EditorSettings, region: str | None) -> StorageBackend:
    from .s3_backend import S3Backend

    return S3Backend(
        region=region,
        endpoint_url=settings.endpoint_url,
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        aws_session_token=os.getenv("AWS_SESSION_TOKEN"),
        strict_preconditions=settings.strict_preconditions,
    )


def _create_gcs_backend(settings: EditorSettings, region: str | None) -> StorageBackend:
    from .gcs_backend import GcsBackend

    if region:
        log.warning("Region %r is ignored for GCS", region)
    return GcsBackend(
        project=settings.gcs_project,
        service_account_file=settings.gcs_service_account_file,
    )
