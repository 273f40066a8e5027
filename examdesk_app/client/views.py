"""
Role views: one tagged variant per role, built from session claims.

UI hosts branch on the variant (``dispatch``) or guard a screen with
``require_view`` instead of comparing role strings.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Type, Union


class ViewNotAllowed(Exception):
    """The signed-in view may not open the requested screen."""


@dataclass(frozen=True)
class StudentView:
    tag: ClassVar[str] = 'student'

    user_id: int
    name: Optional[str]
    roll_number: Optional[str]
    department: Optional[str] = None
    section: Optional[str] = None
    batch: Optional[str] = None


@dataclass(frozen=True)
class StaffView:
    tag: ClassVar[str] = 'staff'

    user_id: int
    name: Optional[str]
    roll_number: Optional[str]
    department: Optional[str] = None


@dataclass(frozen=True)
class AdminView:
    tag: ClassVar[str] = 'admin'

    user_id: int
    name: Optional[str]
    roll_number: Optional[str]
    department: Optional[str] = None


View = Union[StudentView, StaffView, AdminView]

_VIEWS_BY_TAG: Dict[str, Type] = {cls.tag: cls for cls in (StudentView, StaffView, AdminView)}


def view_for(claims: Mapping[str, Any]) -> View:
    """Build the view variant matching the `role` claim."""
    role = (claims or {}).get('role')
    cls = _VIEWS_BY_TAG.get(role)
    if cls is None:
        raise ViewNotAllowed(f'No view for role {role!r}')
    common = {
        'user_id': claims.get('user_id'),
        'name': claims.get('name'),
        'roll_number': claims.get('roll_number'),
        'department': claims.get('department'),
    }
    if cls is StudentView:
        return StudentView(section=claims.get('section'), batch=claims.get('batch'), **common)
    return cls(**common)


def require_view(view: View, *allowed: Type) -> View:
    if not isinstance(view, allowed):
        names = ', '.join(cls.tag for cls in allowed)
        raise ViewNotAllowed(f"'{view.tag}' view cannot open this screen (allowed: {names})")
    return view


def dispatch(view: View, handlers: Mapping[Type, Callable[[Any], Any]]):
    """Call the handler registered for the view's variant."""
    handler = handlers.get(type(view))
    if handler is None:
        raise ViewNotAllowed(f"No handler for '{view.tag}' view")
    return handler(view)
