"""
HTTP client for the ExamDesk REST API.

Every call goes through one `_request` that attaches the bearer token of
the injected `AuthSession`, decodes the `{success, message, ...}` body and
turns failures into exceptions. A 401 on an authenticated call clears the
session (forced logout) and raises `SessionExpired`.
"""
import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import requests

from examdesk_app.utils.time_utils import isoformat_utc
from .session import AuthSession

logger = logging.getLogger('examdesk.client')

API_PREFIX = '/api'
DEFAULT_TIMEOUT = 15


class ApiError(Exception):
    """The server answered with a failure body."""

    def __init__(self, status: int, code: Optional[str], message: str, payload: Optional[Mapping] = None):
        self.status = status
        self.code = code
        self.message = message
        self.payload = dict(payload or {})
        super().__init__(f'{status} {code}: {message}')


class SessionExpired(ApiError):
    """The token was missing, invalid or expired; the session has been cleared."""


class TransportError(Exception):
    """The request never produced an HTTP response."""


def _timestamp(value) -> str:
    return isoformat_utc(value) if isinstance(value, datetime) else value


class ApiClient:

    def __init__(self, base_url: str, session: Optional[AuthSession] = None, http=None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session if session is not None else AuthSession()
        self.http = http or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f'{self.base_url}{API_PREFIX}{path}'

    def _send(self, method: str, path: str, **kwargs) -> Tuple[requests.Response, bool]:
        headers = dict(kwargs.pop('headers', None) or {})
        authenticated = self.session.is_authenticated
        headers.update(self.session.auth_headers())
        try:
            response = self.http.request(method, self._url(path), headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(str(exc)) from exc
        return response, authenticated

    def _raise_for_failure(self, response, body: Mapping, authenticated: bool) -> None:
        message = body.get('message') or response.reason or 'Request failed'
        if response.status_code == 401 and authenticated:
            self.session.clear()
            raise SessionExpired(401, body.get('code'), message, body)
        raise ApiError(response.status_code, body.get('code'), message, body)

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response, authenticated = self._send(method, path, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if not response.ok or body.get('success') is False:
            self._raise_for_failure(response, body, authenticated)
        return body

    def _download(self, path: str) -> Tuple[bytes, Optional[str]]:
        response, authenticated = self._send('GET', path)
        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {}
            self._raise_for_failure(response, body if isinstance(body, dict) else {}, authenticated)
        disposition = response.headers.get('Content-Disposition', '')
        match = re.search(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', disposition)
        return response.content, match.group(1) if match else None

    # --- Auth ---

    def login(self, roll_number: str, password: str) -> Dict[str, Any]:
        body = self._request('POST', '/login', json={'rollNumber': roll_number, 'password': password})
        self.session.start(body['token'], body['user'])
        return body['user']

    def logout(self) -> None:
        self.session.clear()

    def register(self, name: str, roll_number: str, password: str, department: str,
                 role: str = 'student', section: Optional[str] = None, batch: Optional[str] = None) -> Dict[str, Any]:
        payload = {
            'name': name,
            'rollNumber': roll_number,
            'password': password,
            'department': department,
            'role': role,
            'section': section,
            'batch': batch,
        }
        return self._request('POST', '/register', json={k: v for k, v in payload.items() if v is not None})

    def validate(self) -> Dict[str, Any]:
        return self._request('GET', '/validate')['user']

    def server_time(self) -> str:
        return self._request('GET', '/time')['serverTime']

    def update_profile(self, **changes) -> Dict[str, Any]:
        """Accepts name, department, section, batch, rollNumber, newPassword."""
        body = self._request('PUT', '/users/profile', json=changes)
        self.session.refresh(token=body.get('token'), user=body.get('user'))
        return body['user']

    # --- Quizzes ---

    def available_quizzes(self) -> Dict[str, Any]:
        """Returns {'quizzes': [...], 'serverTime': ...}."""
        body = self._request('GET', '/quizzes/available')
        return {'quizzes': body.get('quizzes', []), 'serverTime': body.get('serverTime')}

    def list_quizzes(self):
        return self._request('GET', '/quizzes')['quizzes']

    def get_quiz(self, quiz_id: int) -> Dict[str, Any]:
        return self._request('GET', f'/quizzes/{quiz_id}')['quiz']

    def create_quiz(self, title: str, questions: Iterable[Mapping[str, Any]], start_time, end_time,
                    duration: int, description: Optional[str] = None, department: Optional[str] = None,
                    batch: Optional[str] = None, images: Optional[Mapping[int, Tuple]] = None) -> Dict[str, Any]:
        """
        `images` maps a question index to a requests file tuple
        (filename, content, content_type).
        """
        form = {
            'title': title,
            'description': description,
            'startTime': _timestamp(start_time),
            'endTime': _timestamp(end_time),
            'duration': str(duration),
            'department': department,
            'batch': batch,
            'questions': json.dumps(list(questions)),
        }
        files = [(f'questionImage_{index}', image) for index, image in sorted((images or {}).items())]
        body = self._request(
            'POST', '/quizzes',
            data={k: v for k, v in form.items() if v is not None},
            files=files or None,
        )
        return body['quiz']

    def delete_quiz(self, quiz_id: int) -> Dict[str, Any]:
        return self._request('DELETE', f'/quizzes/{quiz_id}')['quiz']

    # --- Results ---

    def submit_result(self, quiz_id: int, answers, violations: int = 0) -> Dict[str, Any]:
        body = self._request('POST', '/results', json={
            'quizId': quiz_id,
            'answers': list(answers),
            'violations': violations,
        })
        return body['result']

    def results(self):
        return self._request('GET', '/results')['results']

    def result_details(self, result_id: int) -> Dict[str, Any]:
        return self._request('GET', f'/results/{result_id}/details')['result']

    def quiz_results(self, quiz_id: int):
        return self._request('GET', f'/quizzes/{quiz_id}/results')['results']

    def export_results(self, quiz_id: int) -> Tuple[bytes, Optional[str]]:
        """Returns (xlsx bytes, filename)."""
        return self._download(f'/quizzes/{quiz_id}/results/export')

    # --- Administration ---

    def pending_users(self, **filters):
        return self._request('GET', '/users/pending', params=filters)['users']

    def active_users(self, **filters):
        return self._request('GET', '/users', params=filters)['users']

    def deleted_users(self, **filters):
        return self._request('GET', '/deleted-users', params=filters)['deletedUsers']

    def approve_users(self, user_ids) -> int:
        return self._request('POST', '/users/approve', json={'userIds': list(user_ids)})['approvedCount']

    def delete_user(self, user_id: int) -> Dict[str, Any]:
        return self._request('DELETE', f'/users/{user_id}')['deletedUser']

    def delete_users(self, user_ids) -> int:
        return self._request('POST', '/users/delete', json={'userIds': list(user_ids)})['deletedCount']

    def purge_user(self, retired_id: int) -> Dict[str, Any]:
        return self._request('DELETE', f'/users/permanent/{retired_id}')['deletedUser']

    def restore_user(self, retired_id: int) -> Dict[str, Any]:
        return self._request('POST', f'/users/restore/{retired_id}')['user']

    def reset_password(self, user_id: int, new_password: str) -> None:
        self._request('PUT', f'/users/{user_id}/password', json={'newPassword': new_password})

    def create_staff(self, name: str, roll_number: str, password: str, department: str) -> Dict[str, Any]:
        body = self._request('POST', '/users/staff', json={
            'name': name,
            'rollNumber': roll_number,
            'password': password,
            'department': department,
        })
        return body['user']
