import pydantic
import pytest

from gardenbeds.shared.config.settings import Settings, get_settings
from gardenbeds.shared.config.supabase import SupabaseManager
from gardenbeds.shared.core.exceptions import ConfigurationError

REQUIRED = {"SUPABASE_URL": "https://example.supabase.co/", "SUPABASE_ANON_KEY": "key", "_env_file": None}


def test_defaults():
    settings = Settings(**REQUIRED)

    assert settings.SUPABASE_URL == "https://example.supabase.co"
    assert settings.get_cache_ttls() == {"database": 300, "api": 600, "search": 1800, "images": 3600}
    assert settings.RATE_LIMIT_REQUESTS == 100
    assert settings.has_plant_api is False


def test_store_credentials_are_required(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)

    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


def test_values_are_read_from_the_environment(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "env-key")
    monkeypatch.setenv("TREFLE_API_TOKEN", "trefle-token")
    monkeypatch.setenv("CACHE_DATABASE_TTL", "42")

    settings = Settings(_env_file=None)

    assert settings.SUPABASE_URL == "https://env.supabase.co"
    assert settings.has_plant_api is True
    assert settings.get_cache_ttls()["database"] == 42


@pytest.mark.parametrize("field, value", [
    ("ENVIRONMENT", "qa"),
    ("LOG_LEVEL", "verbose"),
    ("LOG_FORMAT", "xml"),
    ("SUPABASE_URL", "example.supabase.co"),
    ("CORS_ORIGINS", "localhost:3000"),
])
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(pydantic.ValidationError):
        Settings(**{**REQUIRED, field: value})


def test_values_are_normalised():
    settings = Settings(**REQUIRED, ENVIRONMENT="Production", LOG_LEVEL="debug", LOG_FORMAT="TEXT")

    assert settings.is_production
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.LOG_FORMAT == "text"


def test_cors_origins_list():
    settings = Settings(**REQUIRED, CORS_ORIGINS="http://a.test, https://b.test")

    assert settings.cors_origins_list == ["http://a.test", "https://b.test"]


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_supabase_client_is_created_once_from_settings(mocker):
    create = mocker.patch("gardenbeds.shared.config.supabase.create_client", return_value=object())
    manager = SupabaseManager(Settings(**REQUIRED))

    assert manager.client is manager.client
    create.assert_called_once()
    assert create.call_args.kwargs["supabase_url"] == "https://example.supabase.co"
    assert create.call_args.kwargs["supabase_key"] == "key"


def test_supabase_client_failure_is_a_configuration_error(mocker):
    mocker.patch("gardenbeds.shared.config.supabase.create_client", side_effect=RuntimeError("bad url"))

    with pytest.raises(ConfigurationError):
        SupabaseManager(Settings(**REQUIRED)).client
