"""
Módulo de base de datos.

Provee acceso a Supabase y lecturas de propiedades, perfiles,
favoritos y vistas.
"""

from immo.database.supabase_client import get_supabase_client, SupabaseClient
from immo.database.repositories import (
    PropertyRepository,
    ProfileRepository,
    FavoriteRepository,
    PropertyViewRepository,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "PropertyRepository",
    "ProfileRepository",
    "FavoriteRepository",
    "PropertyViewRepository",
]
