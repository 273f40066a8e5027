"""
Client-side state machine for taking one quiz.

LOADING -> ACTIVE | REFUSED
ACTIVE <-> FULLSCREEN_BLOCKED
ACTIVE | FULLSCREEN_BLOCKED -> SUBMITTING -> COMPLETED
SUBMITTING -> back to where it came from when the submission fails

Fullscreen and visibility tracking is a proctoring aid only. It runs on
the client and can be bypassed; the server never relies on it beyond
recording the reported violation count.
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from examdesk_app.utils.time_utils import parse_timestamp, to_naive_utc, utcnow
from .api_client import ApiError, SessionExpired, TransportError

logger = logging.getLogger('examdesk.client')


class SessionState(enum.Enum):
    LOADING = 'loading'
    REFUSED = 'refused'
    ACTIVE = 'active'
    FULLSCREEN_BLOCKED = 'fullscreen_blocked'
    SUBMITTING = 'submitting'
    COMPLETED = 'completed'


class RefusalReason(enum.Enum):
    NOT_STARTED = 'NOT_STARTED'
    ENDED = 'ENDED'


class NavigationPolicy(enum.Enum):
    FREE = 'free'
    REQUIRE_ANSWER = 'require_answer'


@dataclass(frozen=True)
class ViolationPolicy:
    """Warn up to `max_warnings` times; the next violation forces submission."""

    max_warnings: int = 1

    def forces_submit(self, violations: int) -> bool:
        return violations > self.max_warnings


TRANSITIONS: Dict[SessionState, frozenset] = {
    SessionState.LOADING: frozenset({SessionState.ACTIVE, SessionState.REFUSED}),
    SessionState.REFUSED: frozenset(),
    SessionState.ACTIVE: frozenset({SessionState.FULLSCREEN_BLOCKED, SessionState.SUBMITTING}),
    SessionState.FULLSCREEN_BLOCKED: frozenset({SessionState.ACTIVE, SessionState.SUBMITTING}),
    SessionState.SUBMITTING: frozenset({
        SessionState.COMPLETED, SessionState.ACTIVE, SessionState.FULLSCREEN_BLOCKED,
    }),
    SessionState.COMPLETED: frozenset(),
}

_SERVER_REFUSALS = {
    'QUIZ_NOT_STARTED': RefusalReason.NOT_STARTED,
    'QUIZ_ENDED': RefusalReason.ENDED,
}


class InvalidTransition(Exception):
    def __init__(self, current: SessionState, target: SessionState):
        self.current = current
        self.target = target
        super().__init__(f'Cannot move from {current.name} to {target.name}')


class IncompleteSubmission(Exception):
    """A manual submit was attempted with unanswered questions."""

    def __init__(self, unanswered: List[int]):
        self.unanswered = unanswered
        super().__init__(f'{len(unanswered)} question(s) unanswered')


class AnswersLocked(Exception):
    """Time ran out or a violation forced submission; the answer sheet is final."""


class SessionPresenter:
    """Presentation hooks; UI hosts override what they support."""

    def acquire_fullscreen(self) -> None:
        pass

    def show_warning(self, message: str, warnings_left: int) -> None:
        pass

    def show_retry(self, message: str) -> None:
        pass


class QuizSession:

    def __init__(
        self,
        api,
        quiz_id: int,
        clock: Optional[Callable[[], Any]] = None,
        presenter: Optional[SessionPresenter] = None,
        navigation: NavigationPolicy = NavigationPolicy.FREE,
        violation_policy: Optional[ViolationPolicy] = None,
    ):
        self.api = api
        self.quiz_id = quiz_id
        self.clock = clock or utcnow
        self.presenter = presenter or SessionPresenter()
        self.navigation = navigation
        self.violation_policy = violation_policy or ViolationPolicy()

        self.state = SessionState.LOADING
        self.quiz: Optional[Dict[str, Any]] = None
        self.answers: List[Optional[int]] = []
        self.cursor = 0
        self.remaining_seconds = 0
        self.violations = 0
        self.refusal_reason: Optional[RefusalReason] = None
        self.result: Optional[Dict[str, Any]] = None
        self.already_submitted = False
        self.last_error: Optional[str] = None
        self._submit_in_flight = False
        self.forced_submit_pending = False

    # --- state plumbing ---

    def _transition(self, target: SessionState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        logger.debug("Quiz %s session: %s -> %s", self.quiz_id, self.state.name, target.name)
        self.state = target

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            raise InvalidTransition(self.state, states[0])

    def _refuse(self, reason: RefusalReason) -> None:
        self.refusal_reason = reason
        self._transition(SessionState.REFUSED)

    @property
    def question_count(self) -> int:
        return len(self.answers)

    @property
    def current_question(self) -> Optional[Dict[str, Any]]:
        if not self.quiz:
            return None
        return self.quiz['questions'][self.cursor]

    @property
    def unanswered(self) -> List[int]:
        return [index for index, answer in enumerate(self.answers) if answer is None]

    @property
    def score(self) -> Optional[int]:
        return self.result.get('score') if self.result else None

    # --- Loading ---

    def load(self) -> SessionState:
        """Fetch the quiz and enter ACTIVE, or REFUSED outside its window."""
        self._require(SessionState.LOADING)
        try:
            quiz = self.api.get_quiz(self.quiz_id)
        except SessionExpired:
            raise
        except ApiError as exc:
            reason = _SERVER_REFUSALS.get(exc.code)
            if reason is None:
                raise
            self.last_error = exc.message
            self._refuse(reason)
            return self.state

        now = to_naive_utc(self.clock())
        start_time = parse_timestamp(quiz['startTime'])
        end_time = parse_timestamp(quiz['endTime'])
        if now < start_time:
            self._refuse(RefusalReason.NOT_STARTED)
            return self.state
        if now > end_time:
            self._refuse(RefusalReason.ENDED)
            return self.state

        until_close = math.floor((end_time - now).total_seconds())
        budget = min(int(quiz['duration']) * 60, until_close)
        if budget <= 0:
            # Less than a second left: no countdown could ever reach zero.
            self._refuse(RefusalReason.ENDED)
            return self.state

        self.quiz = quiz
        self.answers = [None] * len(quiz['questions'])
        self.cursor = 0
        self.remaining_seconds = budget
        self._transition(SessionState.ACTIVE)
        self.presenter.acquire_fullscreen()
        return self.state

    # --- Answering and navigation ---

    def _require_open_sheet(self) -> None:
        self._require(SessionState.ACTIVE)
        if self.forced_submit_pending:
            raise AnswersLocked(self.last_error or 'The quiz is being submitted')

    def select_answer(self, question_index: int, option_index: int) -> None:
        self._require_open_sheet()
        if not 0 <= question_index < self.question_count:
            raise IndexError(f'No question {question_index}')
        self.answers[question_index] = option_index

    def advance(self) -> bool:
        """Move to the next question. Returns False when the cursor did not move."""
        self._require_open_sheet()
        if self.navigation is NavigationPolicy.REQUIRE_ANSWER and self.answers[self.cursor] is None:
            return False
        target = min(self.cursor + 1, self.question_count - 1)
        moved = target != self.cursor
        self.cursor = target
        return moved

    def retreat(self) -> bool:
        self._require_open_sheet()
        target = max(self.cursor - 1, 0)
        moved = target != self.cursor
        self.cursor = target
        return moved

    def tick(self) -> None:
        """One second of countdown. Reaching zero submits whatever is answered."""
        if self.state not in (SessionState.ACTIVE, SessionState.FULLSCREEN_BLOCKED):
            return
        if self.forced_submit_pending or self.remaining_seconds <= 0:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds == 0:
            logger.info("Quiz %s: time is up, submitting", self.quiz_id)
            self._submit(forced=True)

    # --- Proctoring ---

    def report_violation(self) -> None:
        """Fullscreen lost or page hidden."""
        if self.state not in (SessionState.ACTIVE, SessionState.FULLSCREEN_BLOCKED):
            return
        if self.forced_submit_pending:
            return
        self.violations += 1
        if self.violation_policy.forces_submit(self.violations):
            logger.info("Quiz %s: violation %d forces submission", self.quiz_id, self.violations)
            self._submit(forced=True)
            return

        if self.state is SessionState.ACTIVE:
            self._transition(SessionState.FULLSCREEN_BLOCKED)
        warnings_left = self.violation_policy.max_warnings - self.violations
        self.presenter.show_warning(
            'Leaving fullscreen or switching tabs is not allowed. '
            'The quiz will be submitted automatically next time.',
            warnings_left,
        )
        self.presenter.acquire_fullscreen()

    def fullscreen_restored(self) -> None:
        self._require(SessionState.FULLSCREEN_BLOCKED)
        self._transition(SessionState.ACTIVE)

    # --- Submission ---

    def submit(self, allow_incomplete: bool = False) -> Optional[Dict[str, Any]]:
        """
        Manual submission. Raises IncompleteSubmission when questions are
        unanswered unless `allow_incomplete` is set.

        After a failed forced submission this is the retry, and the sheet is
        sent as it stands.
        """
        if self._submit_in_flight or self.state in (SessionState.SUBMITTING, SessionState.COMPLETED):
            return self.result
        self._require(SessionState.ACTIVE, SessionState.FULLSCREEN_BLOCKED)
        if self.forced_submit_pending:
            return self._submit(forced=True)
        unanswered = self.unanswered
        if unanswered and not allow_incomplete:
            raise IncompleteSubmission(unanswered)
        return self._submit(forced=False)

    def _submit(self, forced: bool) -> Optional[Dict[str, Any]]:
        if self._submit_in_flight or self.state in (SessionState.SUBMITTING, SessionState.COMPLETED):
            return self.result

        prior = self.state
        if forced:
            self.forced_submit_pending = True
        self._submit_in_flight = True
        self._transition(SessionState.SUBMITTING)
        try:
            self.result = self.api.submit_result(self.quiz_id, list(self.answers), violations=self.violations)
        except SessionExpired:
            self._transition(prior)
            raise
        except ApiError as exc:
            if exc.code == 'ALREADY_SUBMITTED':
                self.already_submitted = True
                self.forced_submit_pending = False
                self.last_error = exc.message
                self._transition(SessionState.COMPLETED)
                return None
            self._recover(prior, exc.message)
            return None
        except TransportError as exc:
            self._recover(prior, f'Network error: {exc}')
            return None
        finally:
            self._submit_in_flight = False

        self.last_error = None
        self.forced_submit_pending = False
        self._transition(SessionState.COMPLETED)
        logger.info("Quiz %s submitted%s, score %s", self.quiz_id, ' (forced)' if forced else '', self.score)
        return self.result

    def _recover(self, prior: SessionState, message: str) -> None:
        self.last_error = message
        self._transition(prior)
        self.presenter.show_retry(message)
