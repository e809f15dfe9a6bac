from resume_optimizer.client import RetryPolicy
from resume_optimizer.config import Settings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("OPTIMIZER_BASE_URL", "https://optimizer.example.com")
    monkeypatch.setenv("OPTIMIZER_MAX_RETRIES", "5")
    monkeypatch.setenv("OPTIMIZER_RETRY_DELAY", "0.5")
    monkeypatch.setenv("OPTIMIZER_TIMEOUT", "60")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()
    assert settings.base_url == "https://optimizer.example.com"
    assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
    assert settings.log_level == "DEBUG"

    policy = RetryPolicy.from_settings(settings)
    assert policy == RetryPolicy(max_retries=5, base_delay=0.5, timeout=60.0)


def test_settings_defaults(monkeypatch):
    for name in ("OPTIMIZER_MAX_RETRIES", "OPTIMIZER_RETRY_DELAY", "OPTIMIZER_TIMEOUT", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()
    assert RetryPolicy.from_settings(settings) == RetryPolicy()
    assert settings.cors_origins == ["http://localhost:5173", "http://localhost:3000"]


def test_settings_build_their_retry_policy():
    settings = Settings(max_retries=2, retry_delay=0.25, timeout=10.0)
    assert settings.retry_policy() == RetryPolicy(max_retries=2, base_delay=0.25, timeout=10.0)
    assert settings.retry_policy().delay_for(2) == 0.5


def test_dotenv_is_loaded_by_settings_only(monkeypatch):
    from resume_optimizer import config, main

    calls = []
    monkeypatch.setattr(config, "load_dotenv", lambda: calls.append("load"))
    config.Settings.from_env()
    assert calls == ["load"]
    assert not hasattr(main, "load_dotenv")
