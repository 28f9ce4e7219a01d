"""
BlogFleet - Configuración centralizada.
Carga variables de entorno y config.yaml.
"""
import yaml
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuración desde variables de entorno."""

    # App
    app_name: str = "BlogFleet"
    app_env: str = "development"
    app_debug: bool = True
    app_url: str = "http://localhost:8000"

    # Base de datos
    database_url: str = "sqlite+aiosqlite:///./blogfleet.db"

    # Redis (broker de Celery)
    redis_url: str = "redis://localhost:6379/0"

    # Protección de endpoints operativos (header X-Admin-Key)
    admin_key: str = "blogfleet-admin-secret-change-me"

    # DeepSeek
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"

    # Anthropic (Claude)
    anthropic_api_key: str = ""

    # Replicate (imágenes destacadas)
    replicate_api_token: str = ""
    replicate_base_url: str = "https://api.replicate.com/v1"
    default_image_model: str = "flux-schnell"

    # Scheduler
    scheduler_timezone: str = "Europe/Paris"
    default_max_per_day: int = 5
    default_max_per_week: int = 20
    error_label_max_length: int = 30

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Retorna instancia cacheada de configuración."""
    return Settings()


def load_config() -> dict:
    """Carga configuración desde config.yaml."""
    config_path = Path(__file__).parent / "config.yaml"
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


@lru_cache
def get_config() -> dict:
    """Retorna configuración YAML cacheada."""
    return load_config()
