"""Search filter and pagination window construction."""

from dataclasses import dataclass
from typing import Any, Optional
from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from ..models.property_models import Property

ALL_TYPES = "All"
LIKE_ESCAPE = "\\"

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 6


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value only matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_pattern(value: str) -> str:
    return f"%{escape_like(value)}%"


def _text_fields():
    return [
        Property.name,
        Property.description,
        Property.location["street"].as_string(),
        Property.location["city"].as_string(),
        Property.location["state"].as_string(),
        Property.location["zipcode"].as_string(),
    ]


def build_search_filter(location: Optional[str], property_type: Optional[str] = None) -> ColumnElement:
    """Build the filter for a property search.

    The location token is matched as a case-insensitive literal substring
    against name, description and every location field. A property type
    other than "All" further restricts the type field the same way.

    Args:
        location: Free-text location token; empty matches everything
        property_type: Optional property type token

    Returns:
        ColumnElement: Filter clause for Property queries
    """
    location_pattern = contains_pattern(location or "")
    clause = or_(*[
        field.ilike(location_pattern, escape=LIKE_ESCAPE) for field in _text_fields()
    ])

    if property_type and property_type != ALL_TYPES:
        type_pattern = contains_pattern(property_type)
        clause = and_(clause, Property.type.ilike(type_pattern, escape=LIKE_ESCAPE))

    return clause


@dataclass(frozen=True)
class PageWindow:
    """A resolved pagination window."""
    page: int
    page_size: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def paginate(page: Any = None, page_size: Any = None,
             default_page_size: int = DEFAULT_PAGE_SIZE,
             max_page_size: Optional[int] = None) -> PageWindow:
    """Resolve raw page parameters into a window.

    Absent, non-numeric or non-positive values fall back to the defaults;
    page sizes above max_page_size are capped.

    Args:
        page: Requested page number (1-based)
        page_size: Requested number of properties per page
        default_page_size: Page size used when none is given
        max_page_size: Upper bound on the page size

    Returns:
        PageWindow: Page number and size to query with
    """
    resolved_page = _positive_int(page, DEFAULT_PAGE)
    resolved_size = _positive_int(page_size, default_page_size)
    if max_page_size is not None:
        resolved_size = min(resolved_size, max_page_size)
    return PageWindow(page=resolved_page, page_size=resolved_size)
