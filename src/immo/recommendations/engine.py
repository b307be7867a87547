"""
Motor de recomendaciones.

Implementa:
- Pool de candidatas: propiedades publicadas y disponibles (fatal si falla)
- Señales del usuario: perfil, historial de vistas, filtrado colaborativo
  (opcionales: si una lectura falla, esa señal se omite)
- Scoring ponderado + selector de diversidad
"""

import asyncio
from datetime import datetime
from typing import Optional

import structlog

from immo.config import Settings, get_settings
from immo.database import (
    PropertyRepository,
    ProfileRepository,
    FavoriteRepository,
    PropertyViewRepository,
)
from immo.models import Property, UserProfile, ViewingPattern
from immo.recommendations.diversity import select_diverse
from immo.recommendations.scoring import ScoredCandidate, ScoringContext, score_candidates
from immo.recommendations.signals import (
    build_viewing_pattern,
    collaborative_property_ids,
    favorite_amenities,
    similar_user_ids,
)

logger = structlog.get_logger()


class CandidateFetchError(Exception):
    """No se pudo obtener el pool de propiedades candidatas."""


class RecommendationEngine:
    """
    Motor de recomendaciones por pedido (sin estado compartido).

    Flujo:
    1. Obtener hasta 200 candidatas (publicadas + disponibles)
    2. Si hay usuario, leer en paralelo perfil, favoritos e historial
    3. Minar el patrón de vistas y el filtrado colaborativo
    4. Puntuar cada candidata
    5. Seleccionar con topes de diversidad
    """

    def __init__(
        self,
        property_repo: Optional[PropertyRepository] = None,
        profile_repo: Optional[ProfileRepository] = None,
        favorite_repo: Optional[FavoriteRepository] = None,
        view_repo: Optional[PropertyViewRepository] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.property_repo = property_repo or PropertyRepository()
        self.profile_repo = profile_repo or ProfileRepository()
        self.favorite_repo = favorite_repo or FavoriteRepository()
        self.view_repo = view_repo or PropertyViewRepository()

    async def recommend(
        self,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[ScoredCandidate]:
        """
        Recomienda propiedades para un usuario (o visitante anónimo).

        Args:
            user_id: UUID del usuario autenticado (None = anónimo)
            limit: Cantidad de resultados (default de settings)
            now: Referencia temporal para novedad y disponibilidad

        Returns:
            Lista de ScoredCandidate en orden de recomendación

        Raises:
            CandidateFetchError: Si falla la lectura del pool de candidatas
        """
        if limit is None:
            limit = self.settings.recommendation_default_limit

        candidates = await self._fetch_candidates()
        if not candidates:
            logger.info("Sin propiedades candidatas", user_id=user_id)
            return []

        context = await self.build_context(user_id, candidates)
        scored = score_candidates(candidates, context, now)
        results = select_diverse(scored, limit)

        logger.info(
            "Recomendaciones generadas",
            user_id=user_id,
            candidates=len(candidates),
            results=len(results),
            has_profile=context.profile is not None,
            has_pattern=context.viewing_pattern is not None,
            collaborative=len(context.collaborative_ids),
        )
        return results

    async def recommend_properties(
        self,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[Property]:
        """Igual que recommend, pero devuelve solo las propiedades."""
        results = await self.recommend(user_id=user_id, limit=limit, now=now)
        return [r.property for r in results]

    async def _fetch_candidates(self) -> list[Property]:
        try:
            return await asyncio.to_thread(
                self.property_repo.get_recommendation_candidates,
                self.settings.recommendation_candidate_pool,
            )
        except Exception as e:
            logger.error("Error obteniendo propiedades candidatas", error=str(e))
            raise CandidateFetchError(
                "No se pudieron obtener las propiedades candidatas"
            ) from e

    async def build_context(
        self, user_id: Optional[str], candidates: list[Property]
    ) -> ScoringContext:
        """Reúne las señales del usuario; las que fallan quedan vacías."""
        if user_id is None:
            return ScoringContext()

        profile, favorites, pattern = await asyncio.gather(
            self._load_profile(user_id),
            self._load_favorites(user_id),
            self._load_viewing_pattern(user_id),
        )

        collaborative_ids = set()
        if favorites:
            collaborative_ids = await self._load_collaborative_ids(user_id, favorites)

        return ScoringContext(
            user_id=user_id,
            profile=profile,
            favorite_ids=set(favorites),
            viewing_pattern=pattern,
            collaborative_ids=collaborative_ids,
            favorite_amenities=favorite_amenities(candidates, favorites),
        )

    async def _load_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            return await asyncio.to_thread(self.profile_repo.get_preferences, user_id)
        except Exception as e:
            logger.warning("Perfil no disponible, se omite", user_id=user_id, error=str(e))
            return None

    async def _load_favorites(self, user_id: str) -> list[str]:
        try:
            return await asyncio.to_thread(
                self.favorite_repo.get_user_favorite_ids, user_id
            )
        except Exception as e:
            logger.warning("Favoritos no disponibles, se omiten", user_id=user_id, error=str(e))
            return []

    async def _load_viewing_pattern(self, user_id: str) -> Optional[ViewingPattern]:
        try:
            views = await asyncio.to_thread(
                self.view_repo.get_recent_views,
                user_id,
                self.settings.view_history_limit,
            )
            threshold = self.settings.engaged_view_seconds
            engaged_ids = list(
                dict.fromkeys(v.property_id for v in views if v.is_engaged(threshold))
            )
            if not engaged_ids:
                return None

            viewed_properties = await asyncio.to_thread(
                self.property_repo.get_by_ids, engaged_ids
            )
            return build_viewing_pattern(views, viewed_properties, threshold)
        except Exception as e:
            logger.warning("Historial no disponible, se omite", user_id=user_id, error=str(e))
            return None

    async def _load_collaborative_ids(
        self, user_id: str, favorites: list[str]
    ) -> set[str]:
        """Recorrido de 2 saltos: mis favoritos -> usuarios similares -> sus favoritos."""
        try:
            seed = favorites[: self.settings.max_seed_favorites]
            edges = await asyncio.to_thread(
                self.favorite_repo.get_edges_for_properties, seed, user_id
            )
            similar = similar_user_ids(edges, self.settings.max_similar_users)
            if not similar:
                return set()

            other_edges = await asyncio.to_thread(
                self.favorite_repo.get_edges_for_users, similar, favorites
            )
            return collaborative_property_ids(other_edges, favorites)
        except Exception as e:
            logger.warning(
                "Filtrado colaborativo no disponible, se omite",
                user_id=user_id,
                error=str(e),
            )
            return set()
