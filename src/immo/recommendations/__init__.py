"""
Motor de recomendaciones.

Combina preferencias del perfil, historial de vistas y filtrado
colaborativo para rankear propiedades con diversidad geográfica.
"""

from immo.recommendations.engine import RecommendationEngine, CandidateFetchError
from immo.recommendations.scoring import ScoredCandidate, ScoringContext

__all__ = [
    "RecommendationEngine",
    "CandidateFetchError",
    "ScoredCandidate",
    "ScoringContext",
]
