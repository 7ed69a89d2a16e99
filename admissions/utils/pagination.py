# utils/pagination.py
"""
List query parsing shared by admin list endpoints.
"""

import math

from sqlalchemy import or_

from admissions.utils.errors import AppError, ErrorCode

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_TRUE_VALUES = {'true', '1', 'yes'}
_FALSE_VALUES = {'false', '0', 'no'}


class ListQuery:
    """Validated pagination, sorting and common filter values."""

    def __init__(self, page, limit, sort_by, order, search=None, status=None, cohort_id=None):
        self.page = page
        self.limit = limit
        self.offset = (page - 1) * limit
        self.sort_by = sort_by
        self.order = order
        self.search = search
        self.status = status
        self.cohort_id = cohort_id

    def __repr__(self):
        return f'<ListQuery page={self.page} limit={self.limit} sort={self.sort_by} {self.order}>'


def _validation_error(message):
    return AppError(400, ErrorCode.VALIDATION_ERROR, message)


def _clean_string(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_int(value, field_name, minimum=None, maximum=None, default=None):
    value = _clean_string(value)
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise _validation_error(f"Query param '{field_name}' must be an integer.")
    if minimum is not None and parsed < minimum:
        raise _validation_error(f"Query param '{field_name}' must be at least {minimum}.")
    if maximum is not None and parsed > maximum:
        raise _validation_error(f"Query param '{field_name}' must be at most {maximum}.")
    return parsed


def parse_query_boolean(value, field_name):
    """Coerce true/false/1/0/yes/no to a bool; None passes through."""
    if value is None or isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise _validation_error(f"Query param '{field_name}' must be a boolean.")


def parse_list_query(args, allowed_sort_columns, default_sort_column, max_limit=MAX_LIMIT):
    """
    Parse list query parameters into a ListQuery.

    Args:
        args: Mapping of raw query parameters (e.g. request.args)
        allowed_sort_columns: Column names accepted for sortBy
        default_sort_column: Column used when sortBy is absent
        max_limit: Upper bound for the limit parameter

    Returns:
        ListQuery

    Raises:
        AppError: VALIDATION_ERROR for malformed or unsupported values
    """
    if default_sort_column not in allowed_sort_columns:
        raise AppError(500, ErrorCode.INTERNAL_ERROR, 'Invalid list configuration for default sort column.')

    page = _parse_int(args.get('page'), 'page', minimum=1, default=DEFAULT_PAGE)
    limit = _parse_int(args.get('limit'), 'limit', minimum=1, maximum=max_limit, default=DEFAULT_LIMIT)

    sort_by = _clean_string(args.get('sortBy'))
    if sort_by and sort_by not in allowed_sort_columns:
        raise _validation_error(
            f"Unsupported sortBy value '{sort_by}'. Allowed: {', '.join(allowed_sort_columns)}"
        )

    order = (_clean_string(args.get('order')) or 'desc').lower()
    if order not in ('asc', 'desc'):
        raise _validation_error("Query param 'order' must be 'asc' or 'desc'.")

    return ListQuery(
        page=page,
        limit=limit,
        sort_by=sort_by or default_sort_column,
        order=order,
        search=_clean_string(args.get('search')),
        status=_clean_string(args.get('status')),
        cohort_id=_parse_int(args.get('cohort_id'), 'cohort_id'),
    )


def build_pagination(page, limit, total):
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': 0 if total == 0 else math.ceil(total / limit),
    }


def build_search_clause(columns, search):
    """OR-combined case-insensitive substring match over columns."""
    pattern = f'%{search}%'
    return or_(*[column.ilike(pattern) for column in columns])


def apply_ordering(query, column, order):
    return query.order_by(column.asc() if order == 'asc' else column.desc())
