# food_donation/notifications.py
from food_donation import db
from food_donation.errors import NotFound
from food_donation.models import Notification


def _owned_by(account):
    if account.is_donor():
        return Notification.query.filter_by(donor_id=account.id)
    return Notification.query.filter_by(organization_id=account.id)


def list_notifications(account):
    """All of the account's notifications, newest first."""
    return _owned_by(account).order_by(Notification.created_at.desc(),
                                       Notification.id.desc()).all()


def unread_count(account):
    return _owned_by(account).filter_by(read=False).count()


def mark_notification_read(account, notification_id):
    # Marking an already-read notification is a no-op.
    notification = _owned_by(account).filter_by(id=notification_id).first()
    if notification is None:
        raise NotFound('Notification not found.')
    if not notification.read:
        notification.read = True
        db.session.commit()
    return notification
