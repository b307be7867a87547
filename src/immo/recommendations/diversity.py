"""
Selector de diversidad.

Evita que una sola ciudad o barrio acapare las recomendaciones.
"""

import math

import structlog

from immo.recommendations.scoring import ScoredCandidate

logger = structlog.get_logger()

MAX_CITY_SHARE = 0.6
MAX_NEIGHBORHOOD_SHARE = 0.4


def select_diverse(candidates: list[ScoredCandidate], limit: int) -> list[ScoredCandidate]:
    """
    Elige las mejores `limit` candidatas respetando topes por ciudad y barrio.

    Flujo:
    1. Ordenar por score descendente (estable ante empates)
    2. Recorrer contando cada candidata por ciudad y por barrio
    3. Admitir si está dentro de los topes, o si todavía no se llegó
       a la mitad del límite (válvula de escape)
    4. Completar con las restantes, en orden de score, si faltan resultados

    Args:
        candidates: Candidatas con score
        limit: Cantidad de resultados pedida

    Returns:
        Lista de largo min(limit, len(candidates))
    """
    if limit <= 0 or not candidates:
        return []

    ranked = sorted(candidates, key=lambda c: c.score, reverse=True)

    max_per_city = math.ceil(limit * MAX_CITY_SHARE)
    max_per_neighborhood = math.ceil(limit * MAX_NEIGHBORHOOD_SHARE)
    escape_valve = math.ceil(limit / 2)

    selected: list[ScoredCandidate] = []
    admitted = set()
    city_count: dict[str, int] = {}
    neighborhood_count: dict[str, int] = {}

    for index, candidate in enumerate(ranked):
        city = candidate.property.city
        neighborhood = candidate.property.neighborhood_key
        city_count[city] = city_count.get(city, 0) + 1
        neighborhood_count[neighborhood] = neighborhood_count.get(neighborhood, 0) + 1

        within_caps = (
            city_count[city] <= max_per_city
            and neighborhood_count[neighborhood] <= max_per_neighborhood
        )
        if within_caps or len(selected) < escape_valve:
            selected.append(candidate)
            admitted.add(index)

        if len(selected) >= limit:
            break

    diverse = len(selected)
    if len(selected) < limit:
        for index, candidate in enumerate(ranked):
            if index in admitted:
                continue
            selected.append(candidate)
            if len(selected) >= limit:
                break

    logger.debug(
        "Selección de diversidad",
        pool=len(candidates),
        limit=limit,
        diverse=diverse,
        backfilled=len(selected) - diverse,
    )
    return selected
