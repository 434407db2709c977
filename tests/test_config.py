import pytest

from config import DEFAULT_DATABASE_URL, load_settings

ENV_VARS = [
    "API_TOKEN",
    "DATABASE_URL",
    "SQL_ECHO",
    "SEED_DEMO_DATA",
    "CORS_ORIGINS",
    "HOST",
    "PORT",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so monkeypatch restores the variables load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_TOKEN", "secret")

    settings = load_settings(dotenv_path=None)

    assert settings.api_token == "secret"
    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.sql_echo is False
    assert settings.seed_demo_data is False
    assert settings.cors_origins == ("*",)
    assert settings.port == 4000
    assert settings.log_level == "INFO"


def test_load_settings_requires_token() -> None:
    with pytest.raises(ValueError, match=r"API_TOKEN is not set"):
        load_settings(dotenv_path=None)


def test_load_settings_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_TOKEN", "secret")
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/bookings")
    monkeypatch.setenv("SQL_ECHO", "true")
    monkeypatch.setenv("SEED_DEMO_DATA", "1")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, ,http://b.test")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings(dotenv_path=None)

    assert settings.database_url == "postgresql+asyncpg://u:p@db/bookings"
    assert settings.sql_echo is True
    assert settings.seed_demo_data is True
    assert settings.cors_origins == ("http://a.test", "http://b.test")
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"


def test_load_settings_rejects_bad_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_TOKEN", "secret")
    monkeypatch.setenv("PORT", "http")

    with pytest.raises(ValueError, match=r"Invalid PORT"):
        load_settings(dotenv_path=None)


def test_load_settings_rejects_bad_boolean(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_TOKEN", "secret")
    monkeypatch.setenv("SEED_DEMO_DATA", "maybe")

    with pytest.raises(ValueError, match=r"Invalid SEED_DEMO_DATA"):
        load_settings(dotenv_path=None)


def test_load_settings_reads_dotenv_file(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("API_TOKEN=from-file\nPORT=5000\n")

    settings = load_settings(dotenv_path=str(env_file))

    assert settings.api_token == "from-file"
    assert settings.port == 5000
