from flask import current_app

from examdesk_app.core.signals import quiz_created, quiz_deleted, result_submitted


def on_quiz_created(sender, quiz, **kwargs):
    current_app.logger.info(
        f"[audit] quiz {quiz.quiz_id} '{quiz.title}' opens {quiz.start_time:%Y-%m-%d %H:%M} UTC, "
        f"closes {quiz.end_time:%Y-%m-%d %H:%M} UTC"
    )


def on_quiz_deleted(sender, quiz_id, title, deleted_by=None, **kwargs):
    current_app.logger.info(f"[audit] quiz {quiz_id} '{title}' deleted by {deleted_by}; results kept")


def on_result_submitted(sender, result, **kwargs):
    if result.violations:
        current_app.logger.warning(
            f"[audit] result {result.result_id} for quiz {result.quiz_id} "
            f"recorded {result.violations} proctoring violation(s)"
        )


def register_events():
    """Connect signals."""
    quiz_created.connect(on_quiz_created)
    quiz_deleted.connect(on_quiz_deleted)
    result_submitted.connect(on_result_submitted)
