"""Explicit holder of the signed-in caller, passed to whatever needs it."""
from typing import Any, Dict, Mapping, Optional

CLAIM_FIELDS = {
    'user_id': '_id',
    'roll_number': 'rollNumber',
    'name': 'name',
    'role': 'role',
    'department': 'department',
    'section': 'section',
    'batch': 'batch',
}


def claims_from_user_payload(user: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert the `user` object of a login/validate response into claims."""
    claims = {key: user.get(wire) for key, wire in CLAIM_FIELDS.items()}
    if claims['user_id'] is None:
        claims['user_id'] = user.get('id')
    return claims


class AuthSession:
    """Bearer token plus the claims it was issued for."""

    def __init__(self, token: Optional[str] = None, claims: Optional[Mapping[str, Any]] = None):
        self.token = token
        self.claims: Dict[str, Any] = dict(claims or {})

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def role(self) -> Optional[str]:
        return self.claims.get('role')

    def start(self, token: str, user: Mapping[str, Any]) -> None:
        self.token = token
        self.claims = claims_from_user_payload(user)

    def refresh(self, token: Optional[str] = None, user: Optional[Mapping[str, Any]] = None) -> None:
        """Swap in a re-issued token and/or updated profile."""
        if token:
            self.token = token
        if user:
            self.claims = claims_from_user_payload(user)

    def clear(self) -> None:
        self.token = None
        self.claims = {}

    def auth_headers(self) -> Dict[str, str]:
        return {'Authorization': f'Bearer {self.token}'} if self.token else {}

    def __repr__(self):
        who = self.claims.get('roll_number') or 'anonymous'
        return f'<AuthSession {who} authenticated={self.is_authenticated}>'
