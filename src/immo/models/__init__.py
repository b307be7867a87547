"""
Modelos de datos del sistema.

- Property: propiedades publicadas (candidatas)
- UserProfile: preferencias explícitas
- PropertyView / FavoriteEdge: actividad del usuario
- ViewingPattern: patrón derivado del historial
"""

from immo.models.property import Property
from immo.models.profile import UserProfile
from immo.models.activity import PropertyView, FavoriteEdge, ViewingPattern

__all__ = [
    "Property",
    "UserProfile",
    "PropertyView",
    "FavoriteEdge",
    "ViewingPattern",
]
