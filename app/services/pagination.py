import re
from dataclasses import dataclass
from typing import Optional

from app.schemas.search import Page, PageRequest

DEFAULT_SORT_FIELD = "createdAt"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class PageSpec:
    offset: int
    limit: int
    sort_field: str
    ascending: bool

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1


def resolve_page(request: Optional[PageRequest] = None) -> PageSpec:
    """
    Normalise a page request into offset/limit/ordering.

    Bounds are enforced by ``PageRequest`` validation; this only normalises.
    Any order other than "asc" (case-insensitive) sorts descending.
    """
    request = request or PageRequest()
    sort_field = (request.sort or "").strip() or DEFAULT_SORT_FIELD
    ascending = (request.order or "").strip().lower() == "asc"
    return PageSpec(
        offset=(request.page - 1) * request.limit,
        limit=request.limit,
        sort_field=sort_field,
        ascending=ascending,
    )


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def build_page(items: list, total: int, spec: PageSpec) -> Page:
    pages = (total + spec.limit - 1) // spec.limit if total else 0
    return Page(items=items, total=total, page=spec.page, limit=spec.limit, pages=pages)
