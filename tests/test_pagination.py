import pytest
from pydantic import ValidationError

from app.schemas.search import PageRequest
from app.services.pagination import PageSpec, build_page, resolve_page, snake_case


def test_offset_is_page_minus_one_times_limit():
    spec = resolve_page(PageRequest(page=3, limit=10))
    assert spec.offset == 20
    assert spec.limit == 10
    assert spec.page == 3


def test_defaults_sort_newest_first():
    spec = resolve_page()
    assert spec == PageSpec(offset=0, limit=20, sort_field="createdAt", ascending=False)


@pytest.mark.parametrize("order, ascending", [("asc", True), ("ASC", True), (" Asc ", True), ("desc", False),
                                              ("sideways", False), (None, False)])
def test_order_is_case_insensitive(order, ascending):
    assert resolve_page(PageRequest(order=order)).ascending is ascending


@pytest.mark.parametrize("sort", ["", "   ", None])
def test_blank_sort_falls_back_to_created_at(sort):
    assert resolve_page(PageRequest(sort=sort)).sort_field == "createdAt"


@pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
def test_page_request_rejects_out_of_bounds(page, limit):
    with pytest.raises(ValidationError):
        PageRequest(page=page, limit=limit)


def test_snake_case_maps_camel_case_names():
    assert snake_case("createdAt") == "created_at"
    assert snake_case("monthlyRent") == "monthly_rent"
    assert snake_case("view_count") == "view_count"


def test_build_page_counts_pages():
    spec = resolve_page(PageRequest(page=2, limit=10))
    page = build_page(["a", "b"], 12, spec)
    assert page.pages == 2
    assert page.page == 2
    assert page.total == 12
    assert build_page([], 0, spec).pages == 0
