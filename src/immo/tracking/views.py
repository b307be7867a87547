"""
Tracking de vistas e historial de navegación.

Las vistas alimentan el patrón de navegación del motor de
recomendaciones. Nada de esto es crítico: los errores se loguean
y nunca cortan la navegación del usuario.
"""

import random
import string
import time
from typing import Optional

import structlog

from immo.config import VIEW_SOURCES
from immo.database import PropertyRepository, PropertyViewRepository
from immo.models import PropertyView

logger = structlog.get_logger()

MIN_TRACKED_DURATION = 3
VIEWED_IDS_LIMIT = 50
FREQUENT_TYPES_LIMIT = 30


def new_session_id() -> str:
    """ID de sesión para visitantes anónimos: anon_<ms>_<9 caracteres>."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"anon_{int(time.time() * 1000)}_{suffix}"


class ViewTracker:
    """Registra vistas y su duración."""

    def __init__(self, view_repo: Optional[PropertyViewRepository] = None):
        self.view_repo = view_repo or PropertyViewRepository()

    def track_view(
        self,
        property_id: str,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        source: str = "direct",
    ) -> Optional[dict]:
        """
        Registra la apertura de una propiedad con duración 0.

        Returns:
            El registro insertado, o None si falló
        """
        if source not in VIEW_SOURCES:
            logger.warning("Fuente de vista desconocida", source=source)
            source = "direct"

        view = PropertyView(
            property_id=property_id,
            user_id=user_id,
            session_id=session_id or new_session_id(),
            source=source,
            view_duration_seconds=0,
        )
        try:
            return self.view_repo.create(view)
        except Exception as e:
            logger.error("Error registrando vista", property_id=property_id, error=str(e))
            return None

    def finish_view(
        self,
        property_id: str,
        user_id: Optional[str],
        duration_seconds: int,
    ) -> bool:
        """
        Guarda la duración en la vista más reciente del usuario.

        Solo se actualizan vistas de más de 3 segundos.
        """
        if duration_seconds <= MIN_TRACKED_DURATION:
            return False
        try:
            view_id = self.view_repo.get_latest_view_id(property_id, user_id)
            if not view_id:
                return False
            return self.view_repo.update_duration(view_id, duration_seconds)
        except Exception as e:
            logger.debug("No se pudo actualizar duración", property_id=property_id, error=str(e))
            return False


class ViewingHistory:
    """Consultas livianas sobre el historial de un usuario."""

    def __init__(
        self,
        view_repo: Optional[PropertyViewRepository] = None,
        property_repo: Optional[PropertyRepository] = None,
    ):
        self.view_repo = view_repo or PropertyViewRepository()
        self.property_repo = property_repo or PropertyRepository()

    def get_viewed_property_ids(self, user_id: Optional[str]) -> list[str]:
        """IDs distintos de las últimas 50 vistas, de la más reciente a la más vieja."""
        if not user_id:
            return []
        try:
            views = self.view_repo.get_recent_views(user_id, VIEWED_IDS_LIMIT)
        except Exception as e:
            logger.warning("Error leyendo historial", user_id=user_id, error=str(e))
            return []
        return list(dict.fromkeys(v.property_id for v in views))

    def get_frequently_viewed_types(self, user_id: Optional[str]) -> dict[str, int]:
        """
        Cuenta tipos de propiedad, tipos de operación y ciudades
        ('city:<nombre>') de las últimas 30 vistas.
        """
        if not user_id:
            return {}
        try:
            views = self.view_repo.get_recent_views(user_id, FREQUENT_TYPES_LIMIT)
            if not views:
                return {}
            property_ids = list(dict.fromkeys(v.property_id for v in views))
            rows = self.property_repo.get_by_ids(
                property_ids, columns="id, property_type, listing_type, city"
            )
        except Exception as e:
            logger.warning("Error leyendo historial", user_id=user_id, error=str(e))
            return {}

        counts: dict[str, int] = {}
        for row in rows:
            city = row.get("city")
            for key in (
                row.get("property_type"),
                row.get("listing_type"),
                f"city:{city}" if city else None,
            ):
                if key:
                    counts[key] = counts.get(key, 0) + 1
        return counts
