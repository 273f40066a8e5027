"""
Central Signal Registry for Event-Driven Architecture.

Uses blinker (Flask's signal backend) so modules can react to domain
events without importing each other.

Usage:
    # Publisher (sender)
    from examdesk_app.core.signals import result_submitted
    result_submitted.send(current_app._get_current_object(), result=result)

    # Subscriber (receiver) - in module's events.py
    @result_submitted.connect
    def on_result_submitted(sender, **kwargs):
        ...
"""
from blinker import Namespace

# ============================================
# Account Signals
# ============================================
account_signals = Namespace()

# Payload: user (User)
user_registered = account_signals.signal('user_registered')

# Payload: user_ids (list[int]), approved_count (int)
users_approved = account_signals.signal('users_approved')

# Payload: retired (RetiredUser), former_user_id (int)
user_retired = account_signals.signal('user_retired')

# Payload: user (User), retired_id (int)
user_restored = account_signals.signal('user_restored')

# Payload: retired_id (int), roll_number (str)
user_purged = account_signals.signal('user_purged')

# ============================================
# Quiz Signals
# ============================================
quiz_signals = Namespace()

# Payload: quiz (Quiz)
quiz_created = quiz_signals.signal('quiz_created')

# Payload: quiz_id (int), title (str), deleted_by (int)
quiz_deleted = quiz_signals.signal('quiz_deleted')

# Payload: result (QuizResult)
result_submitted = quiz_signals.signal('result_submitted')
