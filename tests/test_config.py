import pytest

from webcam_gateway.core.config import DEFAULT_ALLOWLIST_PATH, clear_settings_cache, get_settings
from webcam_gateway.core.logging import resolve_log_level

ENV_NAMES = [
    "ALLOWLIST_PATH",
    "ALLOWLIST_EXTRA",
    "API_PREFIX",
    "REQUEST_TIMEOUT_SECONDS",
    "MAX_IMAGE_BYTES",
    "MAX_PAGE_BYTES",
    "HTML_SCANNER",
    "UPSTREAM_USER_AGENT",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield monkeypatch
    clear_settings_cache()


def test_defaults(clean_env):
    settings = get_settings()
    assert settings.allowlist_path == str(DEFAULT_ALLOWLIST_PATH)
    assert settings.allowlist_extra == ""
    assert settings.api_prefix == "/api"
    assert settings.request_timeout_seconds == 10.0
    assert settings.max_image_bytes == 15 * 1024 * 1024
    assert settings.max_page_bytes == 2 * 1024 * 1024
    assert settings.html_scanner == "streaming"
    assert settings.upstream_user_agent == "WebcamSun/1.0"
    assert settings.image_cache_ttl_seconds == 30
    assert settings.page_cache_ttl_seconds == 60


def test_environment_overrides(clean_env):
    clean_env.setenv("ALLOWLIST_EXTRA", "a.test,b.test")
    clean_env.setenv("API_PREFIX", "gateway/")
    clean_env.setenv("REQUEST_TIMEOUT_SECONDS", "2.5")
    clean_env.setenv("MAX_PAGE_BYTES", "1024")
    clean_env.setenv("HTML_SCANNER", "Buffered")
    settings = get_settings()
    assert settings.allowlist_extra == "a.test,b.test"
    assert settings.api_prefix == "/gateway"
    assert settings.request_timeout_seconds == 2.5
    assert settings.max_page_bytes == 1024
    assert settings.html_scanner == "buffered"


def test_unknown_scanner_falls_back_to_streaming(clean_env):
    clean_env.setenv("HTML_SCANNER", "regex")
    assert get_settings().html_scanner == "streaming"


def test_dotenv_file_is_loaded_without_overriding_environment(clean_env, tmp_path):
    (tmp_path / ".env").write_text(
        '# local overrides\nALLOWLIST_EXTRA="dev.test"\nUPSTREAM_USER_AGENT=FromFile/1.0\n',
        encoding="utf-8",
    )
    clean_env.setenv("UPSTREAM_USER_AGENT", "FromEnv/1.0")
    settings = get_settings()
    assert settings.allowlist_extra == "dev.test"
    assert settings.upstream_user_agent == "FromEnv/1.0"


def test_settings_are_cached(clean_env):
    assert get_settings() is get_settings()


@pytest.mark.parametrize("raw,level", [("debug", 10), ("WARNING", 30), ("verbose", 20)])
def test_resolve_log_level(raw, level):
    assert resolve_log_level(raw) == level
