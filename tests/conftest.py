"""Pytest configuration and shared factories for tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from immo.config import Settings
from immo.models import Property, PropertyView

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def make_property(**overrides) -> Property:
    """Create a Property with neutral defaults (scores 0 for a bare user context)."""
    defaults = dict(
        id="p1",
        title="Appartement",
        city="Douala",
        neighborhood=None,
        price=75_000,
        price_unit="month",
        property_type="apartment",
        listing_type="rent",
        amenities=[],
        is_verified=False,
        view_count=0,
        created_at=NOW - timedelta(days=60),
        available_from=None,
    )
    defaults.update(overrides)
    return Property(**defaults)


def make_view(property_id: str, duration: int, user_id: str = "u1") -> PropertyView:
    return PropertyView(
        property_id=property_id,
        user_id=user_id,
        view_duration_seconds=duration,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> Settings:
    return Settings(supabase_url="http://localhost:54321", supabase_key="test-key")


@pytest.fixture
def repos() -> dict:
    """Mocked repositories with empty defaults for every read."""
    property_repo = MagicMock()
    property_repo.get_recommendation_candidates.return_value = []
    property_repo.get_by_ids.return_value = []

    profile_repo = MagicMock()
    profile_repo.get_preferences.return_value = None

    favorite_repo = MagicMock()
    favorite_repo.get_user_favorite_ids.return_value = []
    favorite_repo.get_edges_for_properties.return_value = []
    favorite_repo.get_edges_for_users.return_value = []

    view_repo = MagicMock()
    view_repo.get_recent_views.return_value = []

    return {
        "property_repo": property_repo,
        "profile_repo": profile_repo,
        "favorite_repo": favorite_repo,
        "view_repo": view_repo,
    }
