"""
Turns sparse search criteria into predicate trees.

Every criterion is optional and an unset (None) criterion adds nothing to the
tree. Blank strings count as unset. Whatever is set is AND-ed together.
"""
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

from app.filters.predicates import AllOf, Clause, Not, Op, Predicate, all_of, any_of
from app.models import ImageType
from app.schemas.search import PropertySearchCriteria, UnitSearchCriteria

MILES_PER_DEGREE_LAT = 69.0

# (criteria attribute, store field, operator) for the plain one-to-one filters
PROPERTY_FILTERS = (
    ("owner_id", "owner_id", Op.EQ),
    ("status", "status", Op.EQ),
    ("property_type", "property_type", Op.EQ),
    ("city", "city", Op.CONTAINS),
    ("state", "state", Op.EQ),
    ("zip_code", "zip_code", Op.EQ),
    ("min_rent", "monthly_rent", Op.GTE),
    ("max_rent", "monthly_rent", Op.LTE),
    ("min_security_deposit", "security_deposit", Op.GTE),
    ("max_security_deposit", "security_deposit", Op.LTE),
    ("min_bedrooms", "bedrooms", Op.GTE),
    ("max_bedrooms", "bedrooms", Op.LTE),
    ("min_bathrooms", "bathrooms", Op.GTE),
    ("max_bathrooms", "bathrooms", Op.LTE),
    ("min_square_footage", "total_sqft", Op.GTE),
    ("max_square_footage", "total_sqft", Op.LTE),
    ("utilities_included", "utilities_included", Op.EQ),
    ("pet_friendly", "pet_friendly", Op.EQ),
    ("furnished", "furnished", Op.EQ),
    ("parking_available", "parking_available", Op.EQ),
    ("smoke_free", "smoke_free", Op.EQ),
    ("is_available", "is_available", Op.EQ),
    ("is_featured", "is_featured", Op.EQ),
    ("min_credit_score", "credit_score_minimum", Op.GTE),
    ("min_income_multiple", "income_multiple", Op.GTE),
    ("min_lease_months", "lease_min_months", Op.GTE),
    ("max_lease_months", "lease_max_months", Op.LTE),
    ("min_view_count", "view_count", Op.GTE),
    ("max_view_count", "view_count", Op.LTE),
    ("elevator_building", "elevator_building", Op.EQ),
    ("heating_type", "heating_type", Op.EQ),
    ("cooling_type", "cooling_type", Op.EQ),
    ("air_conditioning", "air_conditioning", Op.EQ),
    ("energy_efficiency_rating", "energy_efficiency_rating", Op.EQ),
)

# Date criteria applied to timestamp columns; "_to" bounds include the whole day
PROPERTY_DATE_RANGES = (
    ("available_from", "available_to", "available_from"),
    ("created_from", "created_to", "created_at"),
    ("updated_from", "updated_to", "updated_at"),
)

# Optional money columns behind the has_* flags
PROPERTY_PRESENCE_FLAGS = (
    ("has_security_deposit", "security_deposit"),
    ("has_pet_deposit", "pet_deposit"),
    ("has_application_fee", "application_fee"),
)

PROPERTY_KEYWORD_FIELDS = ("name", "description", "city")

UNIT_FILTERS = (
    ("status", "status", Op.EQ),
    ("min_rent", "monthly_rent", Op.GTE),
    ("max_rent", "monthly_rent", Op.LTE),
    ("min_bedrooms", "bedrooms", Op.GTE),
    ("max_bedrooms", "bedrooms", Op.LTE),
    ("min_bathrooms", "bathrooms", Op.GTE),
    ("max_bathrooms", "bathrooms", Op.LTE),
    ("min_sqft", "sqft", Op.GTE),
    ("max_sqft", "sqft", Op.LTE),
    ("floor_number", "floor_number", Op.EQ),
    ("furnished", "furnished", Op.EQ),
    ("pet_friendly", "pet_friendly", Op.EQ),
    ("parking_assigned", "parking_assigned", Op.EQ),
    ("is_available", "is_available", Op.EQ),
)

UNIT_KEYWORD_FIELDS = ("notes", "unit_number")

LIVE_IMAGE = Clause("deleted_at", Op.IS_NULL, True)


def _is_set(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set)):
        return bool(value)
    return True


def _normalise(value):
    return value.strip() if isinstance(value, str) else value


def fold_filters(criteria, table) -> List[Predicate]:
    """One clause per (attribute, field, op) entry whose criterion is set."""
    return [
        Clause(field, op, _normalise(getattr(criteria, attr)))
        for attr, field, op in table
        if _is_set(getattr(criteria, attr, None))
    ]


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def date_range(field: str, start: Optional[date], end: Optional[date]) -> List[Predicate]:
    parts = []
    if start is not None:
        parts.append(Clause(field, Op.GTE, start_of_day(start)))
    if end is not None:
        parts.append(Clause(field, Op.LT, start_of_day(end + timedelta(days=1))))
    return parts


def keyword_group(keyword: Optional[str], fields: Iterable[str]) -> List[Predicate]:
    if not _is_set(keyword):
        return []
    keyword = keyword.strip()
    return [any_of(Clause(field, Op.CONTAINS, keyword) for field in fields)]


def bounding_box(latitude: float, longitude: float, radius_miles: float) -> List[Predicate]:
    """Approximate a search radius with a lat/lon box around the centre."""
    lat_delta = radius_miles / MILES_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(latitude))
    lon_delta = 180.0 if cos_lat < 1e-6 else min(radius_miles / (MILES_PER_DEGREE_LAT * cos_lat), 180.0)
    return [
        Clause("latitude", Op.GTE, max(latitude - lat_delta, -90.0)),
        Clause("latitude", Op.LTE, min(latitude + lat_delta, 90.0)),
        Clause("longitude", Op.GTE, max(longitude - lon_delta, -180.0)),
        Clause("longitude", Op.LTE, min(longitude + lon_delta, 180.0)),
    ]


def presence(field: str, wanted: bool) -> Predicate:
    if wanted:
        return Clause(field, Op.GT, 0)
    return any_of((Clause(field, Op.IS_NULL, True), Clause(field, Op.EQ, 0)))


def image_exists(match: Predicate, wanted: bool) -> Predicate:
    found = Clause("images", Op.EXISTS, match)
    return found if wanted else Not(found)


def build_property_predicate(criteria: PropertySearchCriteria) -> AllOf:
    parts = fold_filters(criteria, PROPERTY_FILTERS)

    for start_attr, end_attr, field in PROPERTY_DATE_RANGES:
        parts.extend(date_range(field, getattr(criteria, start_attr), getattr(criteria, end_attr)))

    for attr, field in PROPERTY_PRESENCE_FLAGS:
        wanted = getattr(criteria, attr)
        if wanted is not None:
            parts.append(presence(field, wanted))

    if criteria.latitude is not None and criteria.longitude is not None and criteria.radius_miles is not None:
        parts.extend(bounding_box(criteria.latitude, criteria.longitude, criteria.radius_miles))

    if criteria.has_images is not None:
        parts.append(image_exists(LIVE_IMAGE, criteria.has_images))
    if criteria.has_360_images is not None:
        spherical = any_of((
            Clause("is_360_degree", Op.EQ, True),
            Clause("image_type", Op.EQ, ImageType.VIEW_360),
        ))
        parts.append(image_exists(all_of((LIVE_IMAGE, spherical)), criteria.has_360_images))

    tags = [tag.strip() for tag in criteria.tags or () if _is_set(tag)]
    if tags:
        parts.append(Clause("tags", Op.HAS_ALL, tuple(sorted(set(tags)))))

    parts.extend(keyword_group(criteria.search_keyword, PROPERTY_KEYWORD_FIELDS))
    return all_of(parts)


def build_unit_predicate(criteria: UnitSearchCriteria) -> AllOf:
    parts = fold_filters(criteria, UNIT_FILTERS)
    parts.extend(date_range("available_from", criteria.available_from, None))
    parts.extend(keyword_group(criteria.search_keyword, UNIT_KEYWORD_FIELDS))
    return all_of(parts)
