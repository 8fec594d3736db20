from datetime import datetime, timedelta
import pytest
from conftest import login_donor, login_organization
from food_donation import db, lifecycle
from food_donation.errors import NotFound
from food_donation.models import Donor, Organization, Notification
from food_donation.notifications import list_notifications, mark_notification_read, unread_count


def _seed_notifications(donor_email='d@example.com'):
    donor = Donor.query.filter_by(email=donor_email).one()
    now = datetime.utcnow()
    for age, message in ((30, 'oldest'), (0, 'newest'), (10, 'middle')):
        db.session.add(Notification(donor_id=donor.id, order_id='o-' + message, message=message,
                                    status='Accepted', created_at=now - timedelta(minutes=age)))
    db.session.commit()
    return donor


def test_feed_is_newest_first(app, donor):
    with app.app_context():
        owner = _seed_notifications()
        assert [n.message for n in list_notifications(owner)] == ['newest', 'middle', 'oldest']
        assert unread_count(owner) == 3


def test_feed_only_lists_own_notifications(app, donor, organization):
    with app.app_context():
        lifecycle.create_donation('d@example.com', 'Helping Hands', 'Food', ['Bread'], [1])
        owner = Donor.query.filter_by(email='d@example.com').one()
        org = Organization.query.filter_by(email='org@example.com').one()
        assert list_notifications(owner) == []
        assert len(list_notifications(org)) == 1


def test_mark_read_is_idempotent(app, donor):
    with app.app_context():
        owner = _seed_notifications()
        target = list_notifications(owner)[0]

        assert mark_notification_read(owner, target.id).read is True
        assert mark_notification_read(owner, target.id).read is True
        assert db.session.get(Notification, target.id).read is True
        assert unread_count(owner) == 2


def test_mark_read_of_foreign_notification_is_not_found(app, donor, make_donor):
    make_donor(email='other@example.com', name='Otto')
    with app.app_context():
        owner = _seed_notifications()
        target_id = list_notifications(owner)[0].id
        stranger = Donor.query.filter_by(email='other@example.com').one()
        with pytest.raises(NotFound):
            mark_notification_read(stranger, target_id)
        with pytest.raises(NotFound):
            mark_notification_read(owner, 9999)
        assert db.session.get(Notification, target_id).read is False


def test_notification_pages(app, client, donor, organization):
    with app.app_context():
        lifecycle.create_donation('d@example.com', 'Helping Hands', 'Food', ['Bread'], [1])
        notification_id = Notification.query.one().id

    login_organization(client)
    response = client.get('/notifications')
    assert response.status_code == 200
    assert b'New donation received from Dana Donor' in response.data

    for _ in range(2):
        response = client.post(f'/notifications/{notification_id}/read')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/notifications')
    with app.app_context():
        assert db.session.get(Notification, notification_id).read is True

    client.get('/logout')
    login_donor(client)
    assert client.post(f'/notifications/{notification_id}/read').status_code == 404
