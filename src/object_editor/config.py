"""Runtime settings for an edit session, resolved from the environment and CLI options."""

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

# Checked in order; the first non-empty value wins.
EDITOR_ENV_VARS = ("EO_EDITOR", "VISUAL", "EDITOR")


class EditorSettings(BaseModel):
    """Settings shared by the storage backends, the editor and the engine."""

    editor: Optional[str] = Field(
        default=None,
        description="Editor command line, e.g. 'vim' or 'code --wait'.",
    )
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom S3-compatible endpoint (MinIO, SeaweedFS).",
    )
    gcs_project: Optional[str] = Field(
        default=None,
        description="Google Cloud project used by the GCS client.",
    )
    gcs_service_account_file: Optional[str] = Field(
        default=None,
        description="Service account JSON file for GCS. When unset the client uses Application Default Credentials.",
    )
    strict_preconditions: bool = Field(
        default=True,
        description="Use server-side If-Match preconditions on S3. Disable for endpoints without support.",
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts for fetch and write-back on transient errors.",
    )
    retry_initial_delay: float = Field(
        default=0.5,
        ge=0,
        description="Delay before the first retry in seconds; doubles on each retry.",
    )
    retry_max_delay: float = Field(
        default=8.0,
        ge=0,
        description="Upper bound for a single retry delay in seconds.",
    )
    sync_on_save: bool = Field(
        default=False,
        description="Upload every time the editor saves, not only when it exits.",
    )
    debounce_ms: int = Field(
        default=500,
        ge=0,
        description="Quiet period after a save before it is uploaded in sync-on-save mode.",
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> "EditorSettings":
        """Build settings from environment variables, letting non-None overrides win.

        Raises:
            pydantic.ValidationError: If a value does not pass validation.
        """
        values: dict[str, Any] = {
            "editor": _first_env(*EDITOR_ENV_VARS),
            "endpoint_url": os.getenv("S3_ENDPOINT_URL"),
            "gcs_project": os.getenv("GCS_PROJECT"),
            "gcs_service_account_file": os.getenv("EO_GCS_SERVICE_ACCOUNT_FILE"),
        }
        if os.getenv("EO_RETRY_ATTEMPTS"):
            values["retry_attempts"] = os.environ["EO_RETRY_ATTEMPTS"]
        if os.getenv("EO_DEBOUNCE_MS"):
            values["debounce_ms"] = os.environ["EO_DEBOUNCE_MS"]

        values.update({name: value for name, value in overrides.items() if value is not None})
        return cls(**values)


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return None
