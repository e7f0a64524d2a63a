"""Unit tests for API settings."""

import pytest

from api.config import Settings


class TestSettings:
    """Tests for Settings loading."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MEDXERN_WRAPPER_SECRET", raising=False)
        monkeypatch.delenv("API_WRAPPER_SECRET", raising=False)

        settings = Settings(_env_file=None)

        assert settings.max_file_bytes == 20 * 1024 * 1024
        assert settings.max_files == 10
        assert settings.wrapper_timeout == 300.0
        assert settings.min_artifact_bytes == 100
        assert settings.wrapper_secret is None

    def test_wrapper_secret_from_legacy_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MEDXERN_WRAPPER_SECRET", "from-env")

        settings = Settings(_env_file=None)

        assert settings.wrapper_secret is not None
        assert settings.wrapper_secret.get_secret_value() == "from-env"
        assert "from-env" not in repr(settings)

    def test_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_MAX_FILES", "3")
        monkeypatch.setenv("API_MINIO_BUCKET", "artifacts-test")

        settings = Settings(_env_file=None)

        assert settings.max_files == 3
        assert settings.minio_bucket == "artifacts-test"

    def test_secret_by_field_name(self) -> None:
        settings = Settings(_env_file=None, wrapper_secret="direct")

        assert settings.wrapper_secret.get_secret_value() == "direct"
