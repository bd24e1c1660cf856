"""Unit tests for EditorSettings."""

import pytest
from pydantic import ValidationError

from object_editor.config import EditorSettings

ENV_VARS = [
    "EO_EDITOR",
    "VISUAL",
    "EDITOR",
    "S3_ENDPOINT_URL",
    "GCS_PROJECT",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "EO_GCS_SERVICE_ACCOUNT_FILE",
    "EO_RETRY_ATTEMPTS",
    "EO_DEBOUNCE_MS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_defaults(self):
        settings = EditorSettings()

        assert settings.editor is None
        assert settings.strict_preconditions is True
        assert settings.retry_attempts == 3
        assert settings.retry_initial_delay == 0.5
        assert settings.retry_max_delay == 8.0
        assert settings.sync_on_save is False
        assert settings.debounce_ms == 500

    def test_retry_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            EditorSettings(retry_attempts=0)

    def test_debounce_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            EditorSettings(debounce_ms=-1)


class TestEditorResolution:
    def test_eo_editor_wins(self, monkeypatch):
        monkeypatch.setenv("EO_EDITOR", "nano")
        monkeypatch.setenv("VISUAL", "code --wait")
        monkeypatch.setenv("EDITOR", "vi")

        assert EditorSettings.from_env().editor == "nano"

    def test_visual_before_editor(self, monkeypatch):
        monkeypatch.setenv("VISUAL", "code --wait")
        monkeypatch.setenv("EDITOR", "vi")

        assert EditorSettings.from_env().editor == "code --wait"

    def test_editor_fallback(self, monkeypatch):
        monkeypatch.setenv("EDITOR", "vi")

        assert EditorSettings.from_env().editor == "vi"

    def test_blank_values_skipped(self, monkeypatch):
        monkeypatch.setenv("VISUAL", "   ")
        monkeypatch.setenv("EDITOR", "vi")

        assert EditorSettings.from_env().editor == "vi"

    def test_no_editor_configured(self):
        assert EditorSettings.from_env().editor is None


class TestFromEnv:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("S3_ENDPOINT_URL", "http://localhost:9000")
        monkeypatch.setenv("GCS_PROJECT", "proj")
        monkeypatch.setenv("EO_GCS_SERVICE_ACCOUNT_FILE", "/secrets/sa.json")
        monkeypatch.setenv("EO_RETRY_ATTEMPTS", "5")
        monkeypatch.setenv("EO_DEBOUNCE_MS", "250")

        settings = EditorSettings.from_env()

        assert settings.endpoint_url == "http://localhost:9000"
        assert settings.gcs_project == "proj"
        assert settings.gcs_service_account_file == "/secrets/sa.json"
        assert settings.retry_attempts == 5
        assert settings.debounce_ms == 250

    def test_overrides_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("EDITOR", "vi")
        monkeypatch.setenv("EO_DEBOUNCE_MS", "250")

        settings = EditorSettings.from_env(editor="emacs", debounce_ms=100, strict_preconditions=False)

        assert settings.editor == "emacs"
        assert settings.debounce_ms == 100
        assert settings.strict_preconditions is False

    def test_none_overrides_ignored(self, monkeypatch):
        monkeypatch.setenv("EDITOR", "vi")

        settings = EditorSettings.from_env(editor=None, sync_on_save=None)

        assert settings.editor == "vi"
        assert settings.sync_on_save is False

    def test_application_default_credentials_left_to_the_client(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/home/me/.config/gcloud/adc.json")

        assert EditorSettings.from_env().gcs_service_account_file is None

    def test_invalid_env_value_raises_validation_error(self, monkeypatch):
        monkeypatch.setenv("EO_RETRY_ATTEMPTS", "many")

        with pytest.raises(ValidationError):
            EditorSettings.from_env()
