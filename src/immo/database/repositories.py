"""
Repositorios para lecturas/escrituras en Supabase.

Cada repositorio maneja una tabla/entidad específica.
"""

from typing import Optional

import structlog

from immo.database.supabase_client import get_supabase_client, SupabaseClient
from immo.models import Property, UserProfile, PropertyView, FavoriteEdge

logger = structlog.get_logger()


class BaseRepository:
    """Clase base para repositorios."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client


class PropertyRepository(BaseRepository):
    """Repositorio para propiedades publicadas."""

    TABLE = "properties"

    def get_recommendation_candidates(self, limit: int = 200) -> list[Property]:
        """
        Obtiene el pool de candidatas para recomendar.

        Solo propiedades publicadas y disponibles, de la más nueva
        a la más vieja. Los errores de Supabase se propagan.
        """
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("is_published", True)
            .eq("is_available", True)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        rows = response.data or []
        logger.debug("Candidatas obtenidas", total=len(rows), limit=limit)
        return [Property.model_validate(row) for row in rows]

    def get_by_ids(
        self,
        property_ids: list[str],
        columns: str = "id, property_type, listing_type, city, neighborhood, price, amenities",
    ) -> list[dict]:
        """Obtiene columnas puntuales de un conjunto de propiedades."""
        if not property_ids:
            return []
        response = (
            self.client.table(self.TABLE)
            .select(columns)
            .in_("id", property_ids)
            .execute()
        )
        return response.data or []


class ProfileRepository(BaseRepository):
    """Repositorio para perfiles de usuario."""

    TABLE = "profiles"

    PREFERENCE_COLUMNS = (
        "city, budget_min, budget_max, "
        "preferred_property_types, preferred_neighborhoods, "
        "preferred_listing_types, preferred_amenities, "
        "move_in_timeline"
    )

    def get_preferences(self, user_id: str) -> Optional[UserProfile]:
        """Obtiene las preferencias guardadas de un usuario (None si no tiene perfil)."""
        response = (
            self.client.table(self.TABLE)
            .select(self.PREFERENCE_COLUMNS)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return UserProfile.model_validate(response.data[0])


class FavoriteRepository(BaseRepository):
    """Repositorio para la relación usuario-propiedad favorita."""

    TABLE = "property_favorites"

    def get_user_favorite_ids(self, user_id: str) -> list[str]:
        """Obtiene los IDs de propiedades favoritas de un usuario."""
        response = (
            self.client.table(self.TABLE)
            .select("property_id")
            .eq("user_id", user_id)
            .execute()
        )
        return [row["property_id"] for row in response.data or []]

    def get_edges_for_properties(
        self, property_ids: list[str], exclude_user_id: str
    ) -> list[FavoriteEdge]:
        """
        Obtiene quién más marcó como favoritas estas propiedades.

        Primer salto del filtrado colaborativo: propiedades -> usuarios similares.
        """
        if not property_ids:
            return []
        response = (
            self.client.table(self.TABLE)
            .select("property_id, user_id")
            .in_("property_id", property_ids)
            .neq("user_id", exclude_user_id)
            .execute()
        )
        return [FavoriteEdge.model_validate(row) for row in response.data or []]

    def get_edges_for_users(
        self, user_ids: list[str], exclude_property_ids: list[str]
    ) -> list[FavoriteEdge]:
        """
        Obtiene los favoritos de un conjunto de usuarios.

        Segundo salto: usuarios similares -> sus otras propiedades favoritas.
        """
        if not user_ids:
            return []
        query = (
            self.client.table(self.TABLE)
            .select("property_id, user_id")
            .in_("user_id", user_ids)
        )
        if exclude_property_ids:
            query = query.not_.in_("property_id", exclude_property_ids)
        response = query.execute()
        return [FavoriteEdge.model_validate(row) for row in response.data or []]


class PropertyViewRepository(BaseRepository):
    """Repositorio para el historial de vistas."""

    TABLE = "property_views"

    def create(self, view: PropertyView) -> dict:
        """Registra una vista."""
        response = self.client.table(self.TABLE).insert(view.to_db_dict()).execute()
        logger.debug(
            "Vista registrada",
            property_id=view.property_id,
            user_id=view.user_id,
            source=view.source,
        )
        return response.data[0] if response.data else {}

    def get_latest_view_id(
        self, property_id: str, user_id: Optional[str]
    ) -> Optional[str]:
        """Obtiene el ID de la vista más reciente de un usuario sobre una propiedad."""
        query = (
            self.client.table(self.TABLE)
            .select("id")
            .eq("property_id", property_id)
        )
        if user_id:
            query = query.eq("user_id", user_id)
        else:
            query = query.is_("user_id", "null")
        response = query.order("viewed_at", desc=True).limit(1).execute()
        return response.data[0]["id"] if response.data else None

    def update_duration(self, view_id: str, duration_seconds: int) -> bool:
        """Actualiza la duración de una vista."""
        response = (
            self.client.table(self.TABLE)
            .update({"view_duration_seconds": duration_seconds})
            .eq("id", view_id)
            .execute()
        )
        return len(response.data or []) > 0

    def get_recent_views(self, user_id: str, limit: int = 100) -> list[PropertyView]:
        """Obtiene las vistas más recientes de un usuario."""
        response = (
            self.client.table(self.TABLE)
            .select("property_id, user_id, view_duration_seconds, viewed_at")
            .eq("user_id", user_id)
            .order("viewed_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [PropertyView.model_validate(row) for row in response.data or []]
