"""Tests for settings validation and logging configuration."""

import pytest

from ark_indexer.app import build_file_manager
from ark_indexer.core.config import Settings, configure_logging
from ark_indexer.services.storage.file_manager import LocalFileManager, PinataFileManager

REQUIRED = ("DATABASE_URL", "STARKNET_RPC_URL", "WEBHOOK_SECRET", "STORAGE_BACKEND", "PINATA_JWT")


@pytest.fixture
def clean_env(monkeypatch):
    for name in REQUIRED:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_missing_variables_listed_together(clean_env):
    with pytest.raises(ValueError) as exc_info:
        Settings(_env_file=None, APP_ENV="production")  # type: ignore[call-arg]

    message = str(exc_info.value)
    assert "DATABASE_URL" in message
    assert "STARKNET_RPC_URL" in message
    assert "WEBHOOK_SECRET" in message


def test_pinata_backend_requires_jwt(clean_env):
    with pytest.raises(ValueError, match="PINATA_JWT"):
        Settings(  # type: ignore[call-arg]
            _env_file=None,
            APP_ENV="production",
            DATABASE_URL="postgresql+psycopg://u:p@localhost/ark",
            STARKNET_RPC_URL="https://rpc",
            WEBHOOK_SECRET="s",
            STORAGE_BACKEND="pinata",
        )


def test_test_environment_skips_validation(clean_env):
    settings = Settings(_env_file=None, APP_ENV="test")  # type: ignore[call-arg]

    assert settings.database_url == ""
    assert settings.ipfs_gateway == "ipfs.io"


def test_file_manager_selection(clean_env, tmp_path):
    def settings_for(backend: str) -> Settings:
        return Settings(  # type: ignore[call-arg]
            _env_file=None,
            APP_ENV="test",
            STORAGE_BACKEND=backend,
            LOCAL_STORAGE_ROOT=str(tmp_path),
            PINATA_JWT="jwt",
        )

    assert build_file_manager(settings_for("none")) is None
    assert isinstance(build_file_manager(settings_for("local")), LocalFileManager)
    assert isinstance(build_file_manager(settings_for("pinata")), PinataFileManager)


@pytest.mark.parametrize("app_env", ["production", "development"])
def test_configure_logging(clean_env, app_env):
    settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        APP_ENV=app_env,
        LOG_LEVEL="debug",
        DATABASE_URL="postgresql+psycopg://u:p@localhost/ark",
        STARKNET_RPC_URL="https://rpc",
        WEBHOOK_SECRET="s",
    )

    configure_logging(settings)
