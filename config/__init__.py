import os


def get_settings_module() -> str:
    # ABSENCE_SETTINGS_MODULE wins over APP_ENV when set
    override = os.getenv("ABSENCE_SETTINGS_MODULE")
    if override:
        return override

    env = os.getenv("APP_ENV", "development").lower()
    if env in {"prod", "production"}:
        return "config.production"
    if env in {"test", "testing"}:
        return "config.testing"
    return "config.development"
