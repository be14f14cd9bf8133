from pathlib import Path

import pytest
from pydantic import ValidationError

from catalog.config import (
    DEFAULT_ADMIN_URL,
    DEFAULT_API_URL,
    DEFAULT_CLIENT_URL,
    ROOT_DIR,
    Settings,
    get_settings,
)
from catalog.errors import ConfigurationError

ENV_VARS = (
    "MEMBERSTACK_SECRET_KEY",
    "MEMBERSTACK_APP_ID",
    "MEMBERSTACK_PUBLIC_KEY",
    "MEMBERSTACK_ADMIN_URL",
    "MEMBERSTACK_CLIENT_URL",
    "CATALOG_API_URL",
    "CATALOG_LOG_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.secret_key is None
        assert settings.app_id is None
        assert settings.public_key is None
        assert settings.admin_url == DEFAULT_ADMIN_URL
        assert settings.client_url == DEFAULT_CLIENT_URL
        assert settings.api_url == DEFAULT_API_URL
        assert settings.log_dir == ROOT_DIR / "logs"

    def test_reads_environment(self, clean_env, tmp_path):
        clean_env.setenv("MEMBERSTACK_SECRET_KEY", "sk_live")
        clean_env.setenv("MEMBERSTACK_APP_ID", "app_9")
        clean_env.setenv("MEMBERSTACK_PUBLIC_KEY", "pk_live")
        clean_env.setenv("CATALOG_LOG_DIR", str(tmp_path))
        settings = get_settings()
        assert (settings.secret_key, settings.app_id, settings.public_key) == ("sk_live", "app_9", "pk_live")
        assert settings.log_dir == Path(tmp_path)

    def test_rereads_on_every_call(self, clean_env):
        clean_env.setenv("MEMBERSTACK_APP_ID", "first")
        assert get_settings().app_id == "first"
        clean_env.setenv("MEMBERSTACK_APP_ID", "second")
        assert get_settings().app_id == "second"

    def test_urls_lose_trailing_slash(self, clean_env):
        clean_env.setenv("MEMBERSTACK_ADMIN_URL", "https://admin.test/")
        clean_env.setenv("CATALOG_API_URL", "http://localhost:9000//")
        settings = Settings(_env_file=None)
        assert settings.admin_url == "https://admin.test"
        assert settings.api_url == "http://localhost:9000"

    def test_frozen(self, clean_env):
        settings = Settings(_env_file=None)
        with pytest.raises(ValidationError):
            settings.app_id = "changed"


class TestRequireServerCredentials:
    def test_missing_secret(self, clean_env):
        with pytest.raises(ConfigurationError, match="MEMBERSTACK_SECRET_KEY"):
            Settings(_env_file=None).require_server_credentials()

    def test_blank_secret_is_missing(self, clean_env):
        clean_env.setenv("MEMBERSTACK_SECRET_KEY", "   ")
        clean_env.setenv("MEMBERSTACK_APP_ID", "app_1")
        with pytest.raises(ConfigurationError, match="MEMBERSTACK_SECRET_KEY"):
            Settings(_env_file=None).require_server_credentials()

    def test_app_id_needed_for_data_tables(self, clean_env):
        clean_env.setenv("MEMBERSTACK_SECRET_KEY", "sk_test")
        settings = Settings(_env_file=None)
        with pytest.raises(ConfigurationError, match="MEMBERSTACK_APP_ID"):
            settings.require_server_credentials()
        settings.require_server_credentials(need_app_id=False)
