import pytest

from config import get_settings_module, load_settings


@pytest.mark.parametrize(
    "env, module",
    [
        ("prod", "config.production"),
        ("Testing", "config.testing"),
        ("staging", "config.development"),
    ],
)
def test_app_env_picks_the_settings_module(monkeypatch, env, module):
    monkeypatch.setenv("APP_ENV", env)
    assert get_settings_module() == module


def test_testing_settings_run_without_snapshot(monkeypatch):
    monkeypatch.setenv("APP_ENV", "test")
    settings = load_settings()
    assert settings.SNAPSHOT_PATH == ""
    assert settings.TIMEZONE == "UTC"
