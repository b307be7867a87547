"""
Modelo de Perfil de Usuario

Preferencias explícitas guardadas por el usuario en la tabla 'profiles'.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProfile(BaseModel):
    """
    Preferencias de búsqueda del usuario.

    Todos los campos son opcionales: un perfil incompleto
    simplemente aporta menos señales al scoring.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")

    # Ubicación
    city: Optional[str] = Field(None, description="Ciudad donde busca")
    preferred_neighborhoods: list[str] = Field(
        default_factory=list, description="Barrios deseados"
    )

    # Presupuesto mensual
    budget_min: Optional[float] = Field(None, description="Presupuesto mínimo mensual")
    budget_max: Optional[float] = Field(None, description="Presupuesto máximo mensual")

    # Tipos buscados
    preferred_property_types: list[str] = Field(
        default_factory=list, description="Tipos de propiedad preferidos"
    )
    preferred_listing_types: list[str] = Field(
        default_factory=list, description="Tipos de operación preferidos"
    )
    preferred_amenities: list[str] = Field(
        default_factory=list, description="Amenities deseadas"
    )

    # Mudanza
    move_in_timeline: Optional[str] = Field(
        None,
        description="immediate, within_month, within_3months o flexible",
    )

    @field_validator(
        "preferred_neighborhoods",
        "preferred_property_types",
        "preferred_listing_types",
        "preferred_amenities",
        mode="before",
    )
    @classmethod
    def _none_to_list(cls, value):
        return value or []

    @property
    def has_budget(self) -> bool:
        return self.budget_min is not None and self.budget_max is not None
