"""
Modelo de Propiedad

Representa una fila de la tabla 'properties' tal como la consume
el motor de recomendaciones (solo lectura).
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from immo.config import MONTHLY_PRICE_UNITS


class Property(BaseModel):
    """
    Propiedad publicada en el marketplace.

    Inmutable durante una pasada de scoring: el motor nunca la modifica.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")

    # Identificadores
    id: str = Field(..., description="UUID generado por Supabase")
    title: str = Field(default="", description="Título del anuncio")

    # Ubicación
    city: str = Field(..., description="Ciudad")
    neighborhood: Optional[str] = Field(None, description="Barrio")

    # Precio
    price: float = Field(..., description="Precio en la moneda del anuncio")
    price_unit: str = Field(default="month", description="month, mois, day, total...")

    # Características físicas
    bedrooms: Optional[int] = Field(None, description="Dormitorios")
    bathrooms: Optional[int] = Field(None, description="Baños")
    area: Optional[float] = Field(None, description="Superficie m²")
    property_type: str = Field(..., description="apartment, house, studio...")
    listing_type: str = Field(..., description="rent, sale, short_stay...")

    # Media y amenities
    images: list[str] = Field(default_factory=list, description="URLs de imágenes")
    amenities: list[str] = Field(default_factory=list, description="Amenities declaradas")

    # Confianza y engagement
    is_verified: bool = Field(default=False, description="Propiedad verificada")
    view_count: int = Field(default=0, description="Cantidad de vistas acumuladas")

    # Fechas
    created_at: Optional[datetime] = Field(None, description="Fecha de publicación")
    available_from: Optional[date] = Field(None, description="Disponible desde")

    @field_validator("images", "amenities", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []

    @field_validator("is_verified", mode="before")
    @classmethod
    def _none_to_false(cls, value):
        return bool(value)

    @field_validator("view_count", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return value or 0

    @property
    def is_monthly(self) -> bool:
        """El precio está expresado por mes."""
        return self.price_unit in MONTHLY_PRICE_UNITS

    @property
    def neighborhood_key(self) -> str:
        """Barrio para agrupar (las propiedades sin barrio van a 'other')."""
        return self.neighborhood or "other"
