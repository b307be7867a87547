"""Unit tests for the signal extractors.

Tests cover:
- Profile matching (type, location, budget, amenities, move-in timeline)
- Viewing pattern mining and matching
- Collaborative filtering over favorite edges
- Favorite-amenity affinity
"""

from datetime import date

import pytest

from conftest import NOW, make_property, make_view
from immo.models import FavoriteEdge, UserProfile, ViewingPattern
from immo.recommendations.signals import (
    REASON_AVAILABLE_NOW,
    REASON_DESIRED_NEIGHBORHOOD,
    REASON_IN_YOUR_CITY,
    REASON_NEAR_BUDGET,
    REASON_PREFERRED_TYPE,
    REASON_SIMILAR_PROFILES,
    REASON_VIEWED_TYPE,
    REASON_WITHIN_BUDGET,
    build_viewing_pattern,
    collaborative_match,
    collaborative_property_ids,
    days_until_available,
    favorite_amenities,
    favorite_amenity_match,
    profile_match,
    similar_user_ids,
    viewing_pattern_match,
)


# ── Profile match ──────────────────────────────────────────────────────────


class TestProfileMatch:
    def test_empty_profile_gives_no_credit(self):
        result = profile_match(make_property(), UserProfile(), NOW)
        assert result.score == 0
        assert result.reasons == []

    def test_preferred_types(self):
        profile = UserProfile(
            preferred_property_types=["apartment"],
            preferred_listing_types=["rent"],
        )
        result = profile_match(make_property(), profile, NOW)
        assert result.score == pytest.approx(7.5 + 6.0)
        assert result.reasons == [REASON_PREFERRED_TYPE]

    def test_city_match_is_case_insensitive(self):
        profile = UserProfile(city="Douala")
        result = profile_match(make_property(city="DOUALA"), profile, NOW)
        assert result.score == pytest.approx(8.4)
        assert result.reasons == [REASON_IN_YOUR_CITY]

    @pytest.mark.parametrize(
        "listing_neighborhood, preferred",
        [
            ("Bonapriso Nord", ["bonapriso"]),
            ("Akwa", ["Akwa Nord"]),
            ("bastos", ["Bastos"]),
        ],
    )
    def test_neighborhood_fuzzy_match(self, listing_neighborhood, preferred):
        profile = UserProfile(preferred_neighborhoods=preferred)
        result = profile_match(make_property(neighborhood=listing_neighborhood), profile, NOW)
        assert result.score == pytest.approx(6.0)
        assert result.reasons == [REASON_DESIRED_NEIGHBORHOOD]

    def test_neighborhood_mismatch_or_missing(self):
        profile = UserProfile(preferred_neighborhoods=["Bonapriso"])
        assert profile_match(make_property(neighborhood="Akwa"), profile, NOW).score == 0
        assert profile_match(make_property(neighborhood=None), profile, NOW).score == 0

    def test_within_budget(self):
        profile = UserProfile(budget_min=50_000, budget_max=100_000)
        result = profile_match(make_property(price=100_000), profile, NOW)
        assert result.score == pytest.approx(9.0)
        assert result.reasons == [REASON_WITHIN_BUDGET]

    @pytest.mark.parametrize("price", [110_000, 45_000])
    def test_near_budget(self, price):
        profile = UserProfile(budget_min=50_000, budget_max=100_000)
        result = profile_match(make_property(price=price), profile, NOW)
        assert result.score == pytest.approx(4.5)
        assert result.reasons == [REASON_NEAR_BUDGET]

    def test_outside_budget_tolerance(self):
        profile = UserProfile(budget_min=50_000, budget_max=100_000)
        result = profile_match(make_property(price=120_000), profile, NOW)
        assert result.score == 0

    def test_budget_only_applies_to_monthly_prices(self):
        profile = UserProfile(budget_min=50_000, budget_max=100_000)
        assert profile_match(make_property(price_unit="mois"), profile, NOW).score > 0
        assert profile_match(make_property(price_unit="day"), profile, NOW).score == 0

    def test_budget_requires_both_bounds(self):
        profile = UserProfile(budget_max=100_000)
        assert profile_match(make_property(), profile, NOW).score == 0

    def test_amenity_overlap(self):
        profile = UserProfile(preferred_amenities=["wifi", "parking", "pool", "gym"])
        listing = make_property(amenities=["wifi", "parking", "pool", "garden"])
        result = profile_match(listing, profile, NOW)
        assert result.score == pytest.approx(3 / 4 * 7.5)
        assert result.reasons == ["3 équipements souhaités"]

    def test_amenity_reason_needs_three_matches(self):
        profile = UserProfile(preferred_amenities=["wifi", "parking"])
        listing = make_property(amenities=["wifi", "parking"])
        result = profile_match(listing, profile, NOW)
        assert result.score == pytest.approx(7.5)
        assert result.reasons == []

    def test_immediate_availability(self):
        profile = UserProfile(move_in_timeline="immediate")
        listing = make_property(available_from=date(2026, 1, 15))
        result = profile_match(listing, profile, NOW)
        assert result.score == pytest.approx(8.0)
        assert result.reasons == [REASON_AVAILABLE_NOW]

    def test_within_month_without_reason(self):
        profile = UserProfile(move_in_timeline="within_month")
        listing = make_property(available_from=date(2026, 2, 1))
        result = profile_match(listing, profile, NOW)
        assert result.score == pytest.approx(8.0)
        assert result.reasons == []

    def test_timeline_not_met(self):
        profile = UserProfile(move_in_timeline="immediate")
        listing = make_property(available_from=date(2026, 2, 1))
        assert profile_match(listing, profile, NOW).score == 0

    def test_flexible_always_matches(self):
        profile = UserProfile(move_in_timeline="flexible")
        listing = make_property(available_from=date(2027, 6, 1))
        assert profile_match(listing, profile, NOW).score == pytest.approx(8.0)

    def test_unknown_timeline_never_matches(self):
        profile = UserProfile(move_in_timeline="someday")
        listing = make_property(available_from=date(2026, 1, 11))
        assert profile_match(listing, profile, NOW).score == 0

    def test_days_until_available_rounds_up(self):
        # 2026-01-15 00:00 UTC is 4.5 days after NOW
        listing = make_property(available_from=date(2026, 1, 15))
        assert days_until_available(listing, NOW) == 5
        assert days_until_available(make_property(), NOW) is None


# ── Viewing pattern ────────────────────────────────────────────────────────


VIEWED_ROWS = [
    {
        "id": "v1",
        "property_type": "apartment",
        "listing_type": "rent",
        "city": "Douala",
        "neighborhood": "Akwa",
        "price": 50_000,
        "amenities": ["wifi", "parking"],
    },
    {
        "id": "v2",
        "property_type": "apartment",
        "listing_type": "sale",
        "city": "Douala",
        "neighborhood": None,
        "price": 100_000,
        "amenities": ["wifi"],
    },
    {
        "id": "v3",
        "property_type": "house",
        "listing_type": "rent",
        "city": "Yaoundé",
        "neighborhood": "Bastos",
        "price": 900_000,
        "amenities": None,
    },
]


class TestBuildViewingPattern:
    def test_only_engaged_views_count(self):
        views = [
            make_view("v1", 30),
            make_view("v2", 20),
            make_view("v3", 10),
            make_view("v1", 40),
        ]
        pattern = build_viewing_pattern(views, VIEWED_ROWS)

        assert pattern.property_types == {"apartment": 2}
        assert pattern.listing_types == {"rent": 1, "sale": 1}
        assert pattern.cities == {"Douala": 2}
        assert pattern.neighborhoods == {"Akwa": 1}
        assert pattern.amenities == {"wifi": 2, "parking": 1}
        assert pattern.price_min == pytest.approx(35_000)
        assert pattern.price_max == pytest.approx(130_000)
        assert pattern.avg_view_duration == pytest.approx(30.0)

    def test_threshold_is_exclusive(self):
        assert build_viewing_pattern([make_view("v1", 15)], VIEWED_ROWS) is None

    def test_no_views_or_no_details(self):
        assert build_viewing_pattern([], VIEWED_ROWS) is None
        assert build_viewing_pattern([make_view("v1", 60)], []) is None


class TestViewingPatternMatch:
    def test_each_field_is_capped(self):
        pattern = ViewingPattern(
            property_types={"apartment": 3},
            listing_types={"rent": 1},
            cities={"Douala": 2},
            neighborhoods={"Akwa": 1},
            amenities={"wifi": 2, "parking": 1},
            price_min=35_000,
            price_max=130_000,
        )
        listing = make_property(neighborhood="Akwa", amenities=["wifi", "parking"])
        result = viewing_pattern_match(listing, pattern)

        # 7.5 (type, capped) + 3 + 5 (city, capped) + 3.75 + 3.75 (price) + 2.5 (amenities, capped)
        assert result.score == pytest.approx(25.5)
        assert result.reasons == [REASON_VIEWED_TYPE]

    def test_reason_needs_frequent_type(self):
        pattern = ViewingPattern(property_types={"apartment": 2}, price_min=0, price_max=0)
        result = viewing_pattern_match(make_property(), pattern)
        assert result.score == pytest.approx(7.5)
        assert result.reasons == []

    def test_unrelated_listing(self):
        pattern = ViewingPattern(
            property_types={"house": 5}, cities={"Yaoundé": 4}, price_min=1, price_max=2
        )
        assert viewing_pattern_match(make_property(), pattern).score == 0

    def test_zero_priced_views_still_form_a_range(self):
        rows = [{"id": "v1", "property_type": "land", "price": 0}]
        pattern = build_viewing_pattern([make_view("v1", 30)], rows)

        assert pattern.price_min == 0
        assert pattern.price_max == 0
        listing = make_property(property_type="studio", listing_type="sale", city="Kribi", price=0)
        assert viewing_pattern_match(listing, pattern).score == pytest.approx(3.75)

    def test_views_without_prices_give_no_price_credit(self):
        rows = [{"id": "v1", "property_type": "land", "price": None}]
        pattern = build_viewing_pattern([make_view("v1", 30)], rows)

        assert not pattern.has_price_range
        listing = make_property(property_type="studio", listing_type="sale", city="Kribi", price=0)
        assert viewing_pattern_match(listing, pattern).score == 0


# ── Collaborative filtering ────────────────────────────────────────────────


class TestCollaborative:
    def test_needs_two_distinct_similar_users(self):
        edges = [
            FavoriteEdge(user_id="u2", property_id="p5"),
            FavoriteEdge(user_id="u3", property_id="p5"),
            FavoriteEdge(user_id="u2", property_id="p6"),
            FavoriteEdge(user_id="u2", property_id="p7"),
            FavoriteEdge(user_id="u2", property_id="p7"),
        ]
        assert collaborative_property_ids(edges, own_favorites=[]) == {"p5"}

    def test_own_favorites_are_excluded(self):
        edges = [
            FavoriteEdge(user_id="u2", property_id="p1"),
            FavoriteEdge(user_id="u3", property_id="p1"),
        ]
        assert collaborative_property_ids(edges, own_favorites=["p1"]) == set()

    def test_similar_user_ids_keep_first_seen_order(self):
        edges = [
            FavoriteEdge(user_id="u3", property_id="p1"),
            FavoriteEdge(user_id="u2", property_id="p1"),
            FavoriteEdge(user_id="u3", property_id="p2"),
            FavoriteEdge(user_id="u4", property_id="p2"),
        ]
        assert similar_user_ids(edges) == ["u3", "u2", "u4"]
        assert similar_user_ids(edges, limit=2) == ["u3", "u2"]

    def test_collaborative_match(self):
        result = collaborative_match(make_property(id="p5"), {"p5"})
        assert result.score == pytest.approx(15.0)
        assert result.reasons == [REASON_SIMILAR_PROFILES]
        assert collaborative_match(make_property(id="p6"), {"p5"}).score == 0


# ── Favorite amenities ─────────────────────────────────────────────────────


class TestFavoriteAmenities:
    def test_collects_amenities_of_favorites_in_pool(self):
        pool = [
            make_property(id="p1", amenities=["wifi", "pool"]),
            make_property(id="p2", amenities=["gym"]),
            make_property(id="p3", amenities=["garden"]),
        ]
        assert favorite_amenities(pool, ["p1", "p2", "missing"]) == {"wifi", "pool", "gym"}

    @pytest.mark.parametrize(
        "amenities, expected",
        [
            (["wifi"], 0.0),
            (["wifi", "pool"], 3.0),
            (["a", "b", "c", "d", "e", "f"], 8.0),
        ],
    )
    def test_affinity_score(self, amenities, expected):
        preferred = {"wifi", "pool", "a", "b", "c", "d", "e", "f"}
        result = favorite_amenity_match(make_property(amenities=amenities), preferred)
        assert result.score == pytest.approx(expected)
        assert result.reasons == []
