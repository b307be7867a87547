"""
Tracking de vistas.

Registra vistas de propiedades y expone consultas sobre el historial.
"""

from immo.tracking.views import ViewTracker, ViewingHistory, new_session_id

__all__ = [
    "ViewTracker",
    "ViewingHistory",
    "new_session_id",
]
