import importlib
import os
from types import ModuleType

_ENVIRONMENTS = {
    "development": "config.development",
    "dev": "config.development",
    "testing": "config.testing",
    "test": "config.testing",
    "production": "config.production",
    "prod": "config.production",
}


def get_settings_module() -> str:
    """Dotted path of the settings module named by APP_ENV; development when unset or unknown."""
    env = os.getenv("APP_ENV", "development").strip().lower()
    return _ENVIRONMENTS.get(env, "config.development")


def load_settings() -> ModuleType:
    return importlib.import_module(get_settings_module())
