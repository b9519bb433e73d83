import os


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self):
        self.app_name = os.getenv("TUTORAPP_APP_NAME", "TutorApp")
        self.api_version = "1.0.0"
        self.environment = os.getenv("TUTORAPP_ENVIRONMENT", "development")
        self.secret_key = os.getenv("TUTORAPP_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = _env_int("TUTORAPP_ACCESS_TOKEN_EXPIRE_MINUTES", 30)
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("TUTORAPP_DATABASE_URL", "sqlite:///./tutorapp.db")
        # Rate billed when a student has no usable hourly rate on file
        self.default_hourly_rate = _env_float("TUTORAPP_DEFAULT_HOURLY_RATE", 30.0)
        self.log_level = os.getenv("TUTORAPP_LOG_LEVEL", "INFO").upper()
        self.pdf_compression = _env_bool("TUTORAPP_PDF_COMPRESSION", True)


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
