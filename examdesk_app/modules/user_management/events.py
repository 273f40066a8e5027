from flask import current_app

from examdesk_app.core.signals import (
    user_purged,
    user_registered,
    user_restored,
    user_retired,
    users_approved,
)


def on_user_registered(sender, user, **kwargs):
    state = 'approved' if user.is_approved else 'pending approval'
    current_app.logger.info(f"[audit] {user.role} {user.roll_number} registered ({state})")


def on_users_approved(sender, user_ids, approved_count, **kwargs):
    current_app.logger.info(f"[audit] {approved_count} account(s) approved: {user_ids}")


def on_user_retired(sender, retired, former_user_id, **kwargs):
    current_app.logger.info(f"[audit] account {former_user_id} ({retired.roll_number}) moved to deleted users")


def on_user_restored(sender, user, retired_id, **kwargs):
    current_app.logger.info(f"[audit] deleted user {retired_id} restored as account {user.user_id}")


def on_user_purged(sender, retired_id, roll_number, **kwargs):
    current_app.logger.info(f"[audit] deleted user {retired_id} ({roll_number}) purged")


def register_events():
    """Connect signals."""
    user_registered.connect(on_user_registered)
    users_approved.connect(on_users_approved)
    user_retired.connect(on_user_retired)
    user_restored.connect(on_user_restored)
    user_purged.connect(on_user_purged)
