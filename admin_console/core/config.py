"""
Application settings
"""

from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv


"""env loading order
1) OS environment variables (deployment dashboard etc.)
2) .env at the repository root
3) .env next to the package (admin_console/.env)
"""

# Pre-load .env files (OS environment wins, override=False)
_here = Path(__file__).resolve()
_repo_root_env = _here.parents[2] / ".env"   # repo/.env
_package_env = _here.parents[1] / ".env"     # repo/admin_console/.env
for _p in (_repo_root_env, _package_env):
    try:
        if _p.exists():
            load_dotenv(dotenv_path=str(_p), override=False)
    except Exception:
        pass


DEFAULT_JWT_SECRET = "change-this-admin-console-secret-in-production"


class Settings(BaseSettings):
    """Application settings"""
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    DATABASE_URL: str = "sqlite+aiosqlite:///./data/admin_console.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # JWT (admin routes)
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"

    # Settings cache (app settings + phase levels)
    SETTINGS_CACHE_TTL_SECONDS: int = 300  # 5 minutes
    SETTINGS_CACHE_USE_REDIS: bool = False
    SETTINGS_CACHE_REDIS_PREFIX: str = "admin-console:settings"

    FRONTEND_BASE_URL: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'


settings = Settings()


def validate_settings():
    """Refuse to boot production with placeholder secrets."""
    if settings.ENVIRONMENT == "production":
        if settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY must be changed in production.")
        if settings.SETTINGS_CACHE_TTL_SECONDS <= 0:
            raise ValueError("SETTINGS_CACHE_TTL_SECONDS must be positive.")

    return True


validate_settings()
