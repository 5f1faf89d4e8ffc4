import pytest

from todo_api.settings import get_settings

_VARS = [
    "PERSISTENCE_BACKEND",
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_PASSWORD",
    "DB_NAME",
    "DB_POOL_SIZE",
    "SQLITE_DB_PATH",
    "HOST",
    "PORT",
    "CORS_ALLOW_ORIGINS",
    "CORS_ALLOW_ORIGIN_SUFFIXES",
    "LOG_LEVEL",
    "STATIC_DIR",
]


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    for name in _VARS:
        monkeypatch.setenv(name, "")
    return monkeypatch


def test_defaults(clean_env):
    s = get_settings()
    assert s.persistence_backend == "mysql"
    assert (s.db_host, s.db_port, s.db_user, s.db_name) == ("localhost", 3306, "root", "todos")
    assert s.db_pool_size == 10
    assert s.port == 3000
    assert s.cors_allow_origins == ["http://localhost:5173", "http://localhost:3000"]
    assert s.cors_allow_origin_suffixes == [".railway.app", ".vercel.app"]
    assert s.log_level == "INFO"
    assert s.static_dir is None


def test_overrides(clean_env):
    clean_env.setenv("PERSISTENCE_BACKEND", "SQLite")
    clean_env.setenv("DB_PORT", "3307")
    clean_env.setenv("DB_POOL_SIZE", "3")
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example ,")
    clean_env.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.persistence_backend == "sqlite"
    assert s.db_port == 3307
    assert s.db_pool_size == 3
    assert s.port == 8080
    assert s.cors_allow_origins == ["https://a.example", "https://b.example"]
    assert s.log_level == "DEBUG"


def test_invalid_values_fall_back(clean_env):
    clean_env.setenv("PERSISTENCE_BACKEND", "postgres")
    clean_env.setenv("PORT", "not-a-port")
    clean_env.setenv("DB_POOL_SIZE", "0")
    s = get_settings()
    assert s.persistence_backend == "mysql"
    assert s.port == 3000
    assert s.db_pool_size == 1
