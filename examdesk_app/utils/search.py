# File: examdesk_app/utils/search.py
# Shared query filters for the admin account listings.

from sqlalchemy import or_


def _escape_like(value):
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def contains_ci(column, value):
    """Case-insensitive substring condition on `column`, treating `value` literally."""
    return column.ilike(f'%{_escape_like(value)}%', escape='\\')


def apply_account_filters(query, model, filters):
    """
    Apply the account listing filters to a SQLAlchemy query.

    Args:
        query: SQLAlchemy query over `model` (User or RetiredUser).
        model: Mapped class exposing role, department, section, batch,
            name and roll_number columns.
        filters (dict): optional keys `role` (exact match), `department`,
            `section`, `batch` (case-insensitive substring) and `search`
            (case-insensitive substring on name or roll number). Blank
            values are ignored.

    Returns:
        query: the filtered query.
    """
    filters = filters or {}

    role = (filters.get('role') or '').strip()
    if role:
        query = query.filter(model.role == role)

    for field in ('department', 'section', 'batch'):
        value = (filters.get(field) or '').strip()
        if value:
            query = query.filter(contains_ci(getattr(model, field), value))

    search = (filters.get('search') or '').strip()
    if search:
        query = query.filter(or_(
            contains_ci(model.name, search),
            contains_ci(model.roll_number, search),
        ))

    return query
