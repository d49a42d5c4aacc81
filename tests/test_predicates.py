from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.filters.builder import build_property_predicate, build_unit_predicate
from app.filters.predicates import MATCH_ALL, AnyOf, Clause, Not, ObjectMatcher, Op, clauses_of
from app.models import ImageType, PropertyStatus, UnitStatus
from app.schemas.search import PropertySearchCriteria, UnitSearchCriteria

LISTINGS = [
    {
        "name": "Sunny Loft", "description": "Open plan loft", "city": "Austin", "state": "TX",
        "status": PropertyStatus.PUBLISHED, "monthly_rent": Decimal("1500"), "bedrooms": 2,
        "pet_friendly": True, "security_deposit": Decimal("500"), "tags": ["downtown", "quiet"],
        "latitude": 30.27, "longitude": -97.74, "images": [{"deleted_at": None, "is_360_degree": False,
                                                             "image_type": ImageType.VIEW_360}],
        "available_from": datetime(2026, 3, 15, 18, 30, tzinfo=timezone.utc),
    },
    {
        "name": "Cedar House", "description": "Family home", "city": "Round Rock", "state": "TX",
        "status": PropertyStatus.DRAFT, "monthly_rent": Decimal("2400"), "bedrooms": 4,
        "pet_friendly": False, "security_deposit": None, "tags": ["suburb"],
        "latitude": 30.51, "longitude": -97.67, "images": [],
        "available_from": datetime(2026, 4, 1, tzinfo=timezone.utc),
    },
    {
        "name": "Harbor Flat", "description": "Near the austin marina", "city": "Galveston", "state": "TX",
        "status": PropertyStatus.PUBLISHED, "monthly_rent": None, "bedrooms": 1,
        "pet_friendly": True, "security_deposit": Decimal("0"), "tags": ["downtown"],
        "latitude": 29.30, "longitude": -94.79, "images": [{"deleted_at": datetime(2026, 1, 1),
                                                            "is_360_degree": True, "image_type": ImageType.OTHER}],
        "available_from": None,
    },
]


def matching(criteria: PropertySearchCriteria):
    predicate = build_property_predicate(criteria)
    return [doc["name"] for doc in LISTINGS if ObjectMatcher(doc).matches(predicate)]


def test_empty_criteria_match_everything():
    assert build_property_predicate(PropertySearchCriteria()) == MATCH_ALL
    assert matching(PropertySearchCriteria()) == ["Sunny Loft", "Cedar House", "Harbor Flat"]


def test_blank_strings_impose_nothing():
    assert build_property_predicate(PropertySearchCriteria(city="  ", search_keyword="")) == MATCH_ALL


def test_rent_range_is_inclusive_and_skips_missing_rent():
    criteria = PropertySearchCriteria(min_rent=Decimal("1500"), max_rent=Decimal("2400"))
    assert matching(criteria) == ["Sunny Loft", "Cedar House"]


def test_lone_bound_is_one_sided():
    assert matching(PropertySearchCriteria(max_rent=Decimal("1500"))) == ["Sunny Loft"]


def test_city_is_case_insensitive_substring():
    assert matching(PropertySearchCriteria(city="ROUND")) == ["Cedar House"]


def test_keyword_searches_name_description_and_city():
    predicate = build_property_predicate(PropertySearchCriteria(search_keyword="austin"))
    (group,) = predicate.parts
    assert isinstance(group, AnyOf)
    assert {clause.field for clause in clauses_of(group)} == {"name", "description", "city"}
    assert matching(PropertySearchCriteria(search_keyword="austin")) == ["Sunny Loft", "Harbor Flat"]


def test_keyword_group_is_anded_with_other_filters():
    criteria = PropertySearchCriteria(search_keyword="austin", max_bedrooms=1)
    assert matching(criteria) == ["Harbor Flat"]


def test_adding_a_criterion_only_narrows():
    base = PropertySearchCriteria(state="TX")
    narrowed = PropertySearchCriteria(state="TX", pet_friendly=True)
    assert set(matching(narrowed)) <= set(matching(base))
    assert matching(narrowed) == ["Sunny Loft", "Harbor Flat"]


@pytest.mark.parametrize(
    "first, second",
    [
        ({"status": "published"}, {"min_bedrooms": 2}),
        ({"pet_friendly": True}, {"tags": ["downtown"]}),
        ({"city": "a"}, {"max_rent": 2000}),
    ],
)
def test_filters_are_independent(first, second):
    both = set(matching(PropertySearchCriteria(**first, **second)))
    assert both == set(matching(PropertySearchCriteria(**first))) & set(matching(PropertySearchCriteria(**second)))


def test_enum_filters_compare_by_value():
    assert matching(PropertySearchCriteria(status="published")) == ["Sunny Loft", "Harbor Flat"]


def test_tags_require_every_tag():
    assert matching(PropertySearchCriteria(tags=["downtown"])) == ["Sunny Loft", "Harbor Flat"]
    assert matching(PropertySearchCriteria(tags=["quiet", "downtown", "quiet"])) == ["Sunny Loft"]
    (clause,) = build_property_predicate(PropertySearchCriteria(tags=["quiet", "downtown", "quiet"])).parts
    assert clause == Clause("tags", Op.HAS_ALL, ("downtown", "quiet"))


def test_has_security_deposit_treats_zero_as_absent():
    assert matching(PropertySearchCriteria(has_security_deposit=True)) == ["Sunny Loft"]
    assert matching(PropertySearchCriteria(has_security_deposit=False)) == ["Cedar House", "Harbor Flat"]


def test_has_images_ignores_deleted_images():
    assert matching(PropertySearchCriteria(has_images=True)) == ["Sunny Loft"]
    assert matching(PropertySearchCriteria(has_images=False)) == ["Cedar House", "Harbor Flat"]
    (clause,) = build_property_predicate(PropertySearchCriteria(has_images=False)).parts
    assert isinstance(clause, Not)


def test_has_360_images_accepts_flag_or_image_type():
    assert matching(PropertySearchCriteria(has_360_images=True)) == ["Sunny Loft"]


def test_available_to_covers_the_whole_day():
    assert matching(PropertySearchCriteria(available_to=date(2026, 3, 15))) == ["Sunny Loft"]
    assert matching(PropertySearchCriteria(available_from=date(2026, 3, 16))) == ["Cedar House"]


def test_radius_needs_all_three_coordinates():
    assert build_property_predicate(PropertySearchCriteria(latitude=30.27, longitude=-97.74)) == MATCH_ALL
    near_austin = PropertySearchCriteria(latitude=30.27, longitude=-97.74, radius_miles=25)
    assert matching(near_austin) == ["Sunny Loft", "Cedar House"]


def test_lease_criteria_map_to_lease_columns():
    predicate = build_property_predicate(PropertySearchCriteria(min_lease_months=6, max_lease_months=12))
    assert set(predicate.parts) == {
        Clause("lease_min_months", Op.GTE, 6),
        Clause("lease_max_months", Op.LTE, 12),
    }


def test_inverted_ranges_are_reported():
    criteria = PropertySearchCriteria(min_rent=Decimal("2000"), max_rent=Decimal("1000"), min_bedrooms=1)
    assert criteria.inverted_ranges() == ["min_rent cannot be greater than max_rent"]


def test_unit_predicate_filters_rent_and_keyword():
    units = [
        {"unit_number": "U1", "monthly_rent": Decimal("1200"), "status": UnitStatus.AVAILABLE, "notes": None},
        {"unit_number": "U2", "monthly_rent": Decimal("1300"), "status": UnitStatus.RENTED, "notes": "Corner unit"},
    ]
    predicate = build_unit_predicate(UnitSearchCriteria(min_rent=Decimal("1250")))
    assert [u["unit_number"] for u in units if ObjectMatcher(u).matches(predicate)] == ["U2"]
    predicate = build_unit_predicate(UnitSearchCriteria(search_keyword="corner", status="rented"))
    assert [u["unit_number"] for u in units if ObjectMatcher(u).matches(predicate)] == ["U2"]
