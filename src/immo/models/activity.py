"""
Modelos de actividad del usuario.

- PropertyView: una vista registrada en 'property_views'
- FavoriteEdge: relación usuario-propiedad en 'property_favorites'
- ViewingPattern: patrón derivado del historial de vistas
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PropertyView(BaseModel):
    """Vista de una propiedad (anónima si user_id es None)."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(None, description="UUID generado por Supabase")
    property_id: str = Field(..., description="FK a properties")
    user_id: Optional[str] = Field(None, description="FK al usuario (None = anónimo)")
    session_id: Optional[str] = Field(None, description="Sesión para tracking anónimo")
    source: str = Field(default="direct", description="search, recommendation, direct, assistant")
    view_duration_seconds: int = Field(default=0, description="Duración de la vista")
    viewed_at: Optional[datetime] = Field(None, description="Timestamp de la vista")

    @field_validator("view_duration_seconds", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return value or 0

    def is_engaged(self, threshold_seconds: int = 15) -> bool:
        """Una vista con interés real dura más que el umbral."""
        return self.view_duration_seconds > threshold_seconds

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id", "viewed_at"})


class FavoriteEdge(BaseModel):
    """Arista del grafo usuario -> propiedad favorita."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    user_id: str
    property_id: str


class ViewingPattern(BaseModel):
    """
    Patrón de navegación minado de las vistas con interés.

    Las frecuencias cuentan propiedades vistas (no vistas repetidas).
    """

    property_types: dict[str, int] = Field(default_factory=dict)
    listing_types: dict[str, int] = Field(default_factory=dict)
    cities: dict[str, int] = Field(default_factory=dict)
    neighborhoods: dict[str, int] = Field(default_factory=dict)
    amenities: dict[str, int] = Field(default_factory=dict)
    price_min: Optional[float] = Field(default=None, description="Precio mínimo visto x 0.7")
    price_max: Optional[float] = Field(default=None, description="Precio máximo visto x 1.3")
    avg_view_duration: float = Field(default=0.0, description="Duración media (s)")

    @property
    def has_price_range(self) -> bool:
        """Indica si alguna propiedad vista tenía precio."""
        return self.price_min is not None and self.price_max is not None
