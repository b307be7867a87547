"""
Scoring de propiedades candidatas.

Combina las señales del usuario (perfil, historial, colaborativo)
con señales de la propiedad (popularidad, novedad, verificación)
en un score único con razones legibles.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from immo.models import Property, UserProfile, ViewingPattern
from immo.recommendations.signals import (
    WEIGHTS,
    SignalResult,
    as_utc,
    collaborative_match,
    favorite_amenity_match,
    profile_match,
    utcnow,
    viewing_pattern_match,
)

REASON_VERY_POPULAR = "Très populaire"
REASON_NEW = "Nouveau"
REASON_VERIFIED = "Vérifié"

# Supera la suma de todos los créditos positivos posibles
FAVORITED_PENALTY = 150.0

RECENCY_WINDOW_DAYS = 14
NEW_LISTING_DAYS = 3
VERY_POPULAR_VIEWS = 100
MAX_REASONS = 3

# Reglas simplificadas para usuarios anónimos
ANONYMOUS_VERIFIED_BONUS = 8.0
ANONYMOUS_POPULAR_VIEWS = 30
ANONYMOUS_POPULAR_BONUS = 4.0
ANONYMOUS_FRESH_DAYS = 7
ANONYMOUS_FRESH_BONUS = 6.0
ANONYMOUS_RICH_AMENITIES = 5
ANONYMOUS_RICH_AMENITIES_BONUS = 3.0


@dataclass
class ScoredCandidate:
    """Propiedad con su score y las razones de la recomendación."""

    property: Property
    score: float
    reasons: list[str] = field(default_factory=list)


@dataclass
class ScoringContext:
    """
    Señales del usuario para una pasada de scoring.

    user_id en None indica un visitante anónimo: solo se aplican
    las reglas basadas en la propiedad.
    """

    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    favorite_ids: set[str] = field(default_factory=set)
    viewing_pattern: Optional[ViewingPattern] = None
    collaborative_ids: set[str] = field(default_factory=set)
    favorite_amenities: set[str] = field(default_factory=set)

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None


def listing_age_days(listing: Property, now: datetime) -> Optional[float]:
    if listing.created_at is None:
        return None
    return (as_utc(now) - as_utc(listing.created_at)).total_seconds() / 86400


def popularity_score(view_count: int) -> float:
    """log10(vistas + 1) escalado, con tope en el peso de popularidad."""
    return min(math.log10(max(view_count, 0) + 1) * 2, WEIGHTS["popularity"])


def recency_score(age_days: Optional[float]) -> float:
    """Decaimiento lineal: peso completo al publicar, cero a los 14 días o más."""
    if age_days is None:
        return 0.0
    remaining = max(0.0, (RECENCY_WINDOW_DAYS - age_days) / RECENCY_WINDOW_DAYS)
    return min(remaining, 1.0) * WEIGHTS["recency"]


def _engagement_signals(listing: Property, age_days: Optional[float]) -> SignalResult:
    result = SignalResult()

    reason = REASON_VERY_POPULAR if listing.view_count > VERY_POPULAR_VIEWS else None
    result.add(popularity_score(listing.view_count), reason)

    if age_days is not None:
        reason = REASON_NEW if age_days < NEW_LISTING_DAYS else None
        result.add(recency_score(age_days), reason)

    if listing.is_verified:
        result.add(WEIGHTS["verification"], REASON_VERIFIED)

    return result


def _anonymous_bonus(listing: Property, age_days: Optional[float]) -> float:
    bonus = 0.0
    if listing.is_verified:
        bonus += ANONYMOUS_VERIFIED_BONUS
    if listing.view_count > ANONYMOUS_POPULAR_VIEWS:
        bonus += ANONYMOUS_POPULAR_BONUS
    if age_days is not None and age_days < ANONYMOUS_FRESH_DAYS:
        bonus += ANONYMOUS_FRESH_BONUS
    if len(listing.amenities) > ANONYMOUS_RICH_AMENITIES:
        bonus += ANONYMOUS_RICH_AMENITIES_BONUS
    return bonus


def score_property(
    listing: Property,
    context: ScoringContext,
    now: Optional[datetime] = None,
) -> ScoredCandidate:
    """
    Calcula el score de una propiedad para un usuario.

    Las razones se generan en orden: perfil, historial, colaborativo
    y luego popularidad/novedad/verificación; se muestran las 3 primeras.
    """
    now = now or utcnow()
    score = 0.0
    reasons: list[str] = []
    age_days = listing_age_days(listing, now)

    signals: list[SignalResult] = []
    if not context.is_anonymous:
        if context.profile is not None:
            signals.append(profile_match(listing, context.profile, now))
        if context.viewing_pattern is not None:
            signals.append(viewing_pattern_match(listing, context.viewing_pattern))
        signals.append(collaborative_match(listing, context.collaborative_ids))

    signals.append(_engagement_signals(listing, age_days))

    if not context.is_anonymous and context.favorite_amenities:
        signals.append(favorite_amenity_match(listing, context.favorite_amenities))

    for signal in signals:
        score += signal.score
        reasons.extend(signal.reasons)

    if context.is_anonymous:
        score += _anonymous_bonus(listing, age_days)
    elif listing.id in context.favorite_ids:
        score -= FAVORITED_PENALTY

    return ScoredCandidate(property=listing, score=score, reasons=reasons[:MAX_REASONS])


def score_candidates(
    candidates: list[Property],
    context: ScoringContext,
    now: Optional[datetime] = None,
) -> list[ScoredCandidate]:
    """Puntúa todo el pool (sin ordenar; el orden lo define el selector de diversidad)."""
    now = now or utcnow()
    return [score_property(listing, context, now) for listing in candidates]
