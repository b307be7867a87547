"""
Extractores de señales para el scoring de recomendaciones.

Funciones puras sobre (propiedad candidata, contexto del usuario):
- Perfil: preferencias explícitas guardadas
- Historial: patrón minado de las vistas con interés
- Colaborativo: favoritos de usuarios con gustos parecidos
- Afinidad de amenities: amenities de las propiedades favoritas

Cada extractor devuelve un SignalResult (puntos + razones) y nunca
modifica sus entradas.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from typing import Iterable, Optional

from immo.config import MOVE_IN_TIMELINES
from immo.models import Property, UserProfile, PropertyView, FavoriteEdge, ViewingPattern

# Pesos por factor, en orden estricto de prioridad
WEIGHTS = {
    "profile": 30.0,
    "viewing_history": 25.0,
    "collaborative": 15.0,
    "location": 12.0,
    "availability": 8.0,
    "popularity": 5.0,
    "recency": 3.0,
    "verification": 2.0,
}

# Razones mostradas al usuario (chips en la UI)
REASON_PREFERRED_TYPE = "Type de bien préféré"
REASON_IN_YOUR_CITY = "Dans votre ville"
REASON_DESIRED_NEIGHBORHOOD = "Quartier recherché"
REASON_WITHIN_BUDGET = "Dans votre budget"
REASON_NEAR_BUDGET = "Proche de votre budget"
REASON_DESIRED_AMENITIES = "{count} équipements souhaités"
REASON_AVAILABLE_NOW = "Disponible immédiatement"
REASON_VIEWED_TYPE = "Type consulté fréquemment"
REASON_SIMILAR_PROFILES = "Populaire chez profils similaires"

BUDGET_TOLERANCE = 0.15
PATTERN_PRICE_LOW = 0.7
PATTERN_PRICE_HIGH = 1.3
MIN_SIMILAR_USERS = 2
MIN_SHARED_FAVORITE_AMENITIES = 2
FAVORITE_AMENITY_CAP = 8.0


@dataclass
class SignalResult:
    """Puntos y razones aportados por un extractor."""

    score: float = 0.0
    reasons: list[str] = field(default_factory=list)

    def add(self, points: float, reason: Optional[str] = None):
        self.score += points
        if reason:
            self.reasons.append(reason)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Los timestamps sin zona se asumen en UTC (como los guarda Postgres)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_until_available(listing: Property, now: datetime) -> Optional[int]:
    """Días (redondeados hacia arriba) hasta que la propiedad esté disponible."""
    if listing.available_from is None:
        return None
    available = datetime.combine(listing.available_from, time(), tzinfo=timezone.utc)
    seconds = (available - as_utc(now)).total_seconds()
    return math.ceil(seconds / 86400)


def matches_timeline(timeline: Optional[str], days_until: int) -> bool:
    if timeline not in MOVE_IN_TIMELINES:
        return False
    max_days = MOVE_IN_TIMELINES[timeline]
    return max_days is None or days_until <= max_days


def _neighborhood_matches(neighborhood: str, preferred: Iterable[str]) -> bool:
    """Match difuso bidireccional: 'Bonapriso' matchea 'bonapriso nord' y viceversa."""
    normalized = neighborhood.lower()
    for candidate in preferred:
        wanted = candidate.lower()
        if wanted in normalized or normalized in wanted:
            return True
    return False


def profile_match(
    listing: Property,
    profile: UserProfile,
    now: Optional[datetime] = None,
) -> SignalResult:
    """
    Puntúa la propiedad contra las preferencias explícitas del perfil.

    Args:
        listing: Propiedad candidata
        profile: Preferencias del usuario
        now: Referencia temporal para la disponibilidad

    Returns:
        SignalResult con créditos de perfil, ubicación y disponibilidad
    """
    now = now or utcnow()
    result = SignalResult()
    profile_weight = WEIGHTS["profile"]
    location_weight = WEIGHTS["location"]

    if listing.property_type in profile.preferred_property_types:
        result.add(profile_weight * 0.25, REASON_PREFERRED_TYPE)

    if listing.listing_type in profile.preferred_listing_types:
        result.add(profile_weight * 0.2)

    if profile.city and listing.city.lower() == profile.city.lower():
        result.add(location_weight * 0.7, REASON_IN_YOUR_CITY)

    if listing.neighborhood and profile.preferred_neighborhoods:
        if _neighborhood_matches(listing.neighborhood, profile.preferred_neighborhoods):
            result.add(location_weight * 0.5, REASON_DESIRED_NEIGHBORHOOD)

    # El presupuesto del perfil es mensual
    if listing.is_monthly and profile.has_budget:
        price = listing.price
        if profile.budget_min <= price <= profile.budget_max:
            result.add(profile_weight * 0.3, REASON_WITHIN_BUDGET)
        elif (
            profile.budget_min * (1 - BUDGET_TOLERANCE)
            <= price
            <= profile.budget_max * (1 + BUDGET_TOLERANCE)
        ):
            result.add(profile_weight * 0.15, REASON_NEAR_BUDGET)

    if profile.preferred_amenities and listing.amenities:
        wanted = set(profile.preferred_amenities)
        matching = [a for a in listing.amenities if a in wanted]
        if matching:
            overlap = len(matching) / len(profile.preferred_amenities)
            reason = None
            if len(matching) >= 3:
                reason = REASON_DESIRED_AMENITIES.format(count=len(matching))
            result.add(overlap * profile_weight * 0.25, reason)

    if profile.move_in_timeline:
        days_until = days_until_available(listing, now)
        if days_until is not None and matches_timeline(profile.move_in_timeline, days_until):
            reason = REASON_AVAILABLE_NOW if days_until <= 7 else None
            result.add(WEIGHTS["availability"], reason)

    return result


def build_viewing_pattern(
    views: list[PropertyView],
    viewed_properties: list[dict],
    engaged_threshold: int = 15,
) -> Optional[ViewingPattern]:
    """
    Mina el patrón de navegación a partir del historial de vistas.

    Solo cuentan las propiedades de vistas con interés (duración mayor
    al umbral). Cada propiedad suma una vez, aunque se haya visto varias.

    Args:
        views: Vistas crudas más recientes del usuario
        viewed_properties: Filas de 'properties' de las vistas con interés
        engaged_threshold: Segundos mínimos (exclusivos) de una vista con interés

    Returns:
        ViewingPattern, o None si no hay vistas con interés
    """
    engaged = [v for v in views if v.is_engaged(engaged_threshold)]
    if not engaged:
        return None

    engaged_ids = {v.property_id for v in engaged}
    rows = [p for p in viewed_properties if p.get("id") in engaged_ids]
    if not rows:
        return None

    property_types = Counter()
    listing_types = Counter()
    cities = Counter()
    neighborhoods = Counter()
    amenities = Counter()
    prices = []

    for row in rows:
        if row.get("property_type"):
            property_types[row["property_type"]] += 1
        if row.get("listing_type"):
            listing_types[row["listing_type"]] += 1
        if row.get("city"):
            cities[row["city"]] += 1
        if row.get("neighborhood"):
            neighborhoods[row["neighborhood"]] += 1
        if row.get("price") is not None:
            prices.append(float(row["price"]))
        for amenity in row.get("amenities") or []:
            amenities[amenity] += 1

    avg_duration = sum(v.view_duration_seconds for v in engaged) / len(engaged)

    return ViewingPattern(
        property_types=dict(property_types),
        listing_types=dict(listing_types),
        cities=dict(cities),
        neighborhoods=dict(neighborhoods),
        amenities=dict(amenities),
        price_min=min(prices) * PATTERN_PRICE_LOW if prices else None,
        price_max=max(prices) * PATTERN_PRICE_HIGH if prices else None,
        avg_view_duration=avg_duration,
    )


def viewing_pattern_match(listing: Property, pattern: ViewingPattern) -> SignalResult:
    """Puntúa la propiedad contra el patrón de navegación (cada campo con tope)."""
    result = SignalResult()
    weight = WEIGHTS["viewing_history"]

    type_count = pattern.property_types.get(listing.property_type, 0)
    if type_count > 0:
        reason = REASON_VIEWED_TYPE if type_count >= 3 else None
        result.add(min(type_count * 4, weight * 0.3), reason)

    listing_count = pattern.listing_types.get(listing.listing_type, 0)
    if listing_count > 0:
        result.add(min(listing_count * 3, weight * 0.2))

    city_count = pattern.cities.get(listing.city, 0)
    if city_count > 0:
        result.add(min(city_count * 3, weight * 0.2))

    if listing.neighborhood:
        neighborhood_count = pattern.neighborhoods.get(listing.neighborhood, 0)
        if neighborhood_count > 0:
            result.add(min(neighborhood_count * 4, weight * 0.15))

    if pattern.has_price_range and pattern.price_min <= listing.price <= pattern.price_max:
        result.add(weight * 0.15)

    if listing.amenities:
        amenity_score = sum(pattern.amenities.get(a, 0) for a in listing.amenities)
        if amenity_score:
            result.add(min(amenity_score, weight * 0.1))

    return result


def similar_user_ids(edges: list[FavoriteEdge], limit: int = 20) -> list[str]:
    """Usuarios distintos de las aristas, en orden de aparición."""
    seen = []
    for edge in edges:
        if edge.user_id not in seen:
            seen.append(edge.user_id)
            if len(seen) >= limit:
                break
    return seen


def collaborative_property_ids(
    edges: list[FavoriteEdge],
    own_favorites: Iterable[str],
    min_users: int = MIN_SIMILAR_USERS,
) -> set[str]:
    """
    Propiedades favoritas de al menos `min_users` usuarios similares distintos.

    Args:
        edges: Favoritos de los usuarios similares
        own_favorites: Favoritos del usuario actual (se excluyen)
        min_users: Usuarios similares distintos requeridos

    Returns:
        Conjunto de IDs de propiedades con bonus colaborativo
    """
    own = set(own_favorites)
    users_by_property: dict[str, set[str]] = {}
    for edge in edges:
        if edge.property_id in own:
            continue
        users_by_property.setdefault(edge.property_id, set()).add(edge.user_id)
    return {
        property_id
        for property_id, users in users_by_property.items()
        if len(users) >= min_users
    }


def collaborative_match(listing: Property, collaborative_ids: set[str]) -> SignalResult:
    result = SignalResult()
    if listing.id in collaborative_ids:
        result.add(WEIGHTS["collaborative"], REASON_SIMILAR_PROFILES)
    return result


def favorite_amenities(
    candidates: list[Property], favorite_ids: Iterable[str]
) -> set[str]:
    """Amenities de las propiedades favoritas presentes en el pool."""
    favorites = set(favorite_ids)
    amenities = set()
    for listing in candidates:
        if listing.id in favorites:
            amenities.update(listing.amenities)
    return amenities


def favorite_amenity_match(listing: Property, amenities: set[str]) -> SignalResult:
    """Afinidad por amenities compartidas con los favoritos (sin razón visible)."""
    result = SignalResult()
    shared = [a for a in listing.amenities if a in amenities]
    if len(shared) >= MIN_SHARED_FAVORITE_AMENITIES:
        result.add(min(len(shared) * 1.5, FAVORITE_AMENITY_CAP))
    return result
