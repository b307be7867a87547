"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Encontrar la raíz del proyecto (donde está el .env)
# config.py -> immo/ -> src/ -> project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., description="URL del proyecto Supabase")
    supabase_key: str = Field(..., description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # Recomendaciones
    recommendation_candidate_pool: int = Field(
        200, ge=1, description="Máximo de propiedades candidatas por pedido"
    )
    recommendation_default_limit: int = Field(
        6, ge=0, description="Cantidad de recomendaciones por defecto"
    )
    view_history_limit: int = Field(
        100, ge=1, description="Vistas recientes usadas para minar patrones"
    )
    engaged_view_seconds: int = Field(
        15, ge=0, description="Duración mínima (exclusiva) de una vista con interés"
    )
    max_seed_favorites: int = Field(
        10, ge=1, description="Favoritos usados para buscar usuarios similares"
    )
    max_similar_users: int = Field(
        20, ge=1, description="Usuarios similares consultados en filtrado colaborativo"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema
MONTHLY_PRICE_UNITS = ["month", "mois"]

MOVE_IN_TIMELINES = {
    "immediate": 7,
    "within_month": 30,
    "within_3months": 90,
    "flexible": None,  # Siempre disponible
}

VIEW_SOURCES = ["search", "recommendation", "direct", "assistant"]
