# food_donation/lifecycle.py
"""Donation lifecycle: creation and status transitions.

A donation is stored twice, once under the receiving organization and once
under the donor. Every operation here writes both copies (plus the
notification that reports the change) in a single transaction, and only
after that commit succeeds does it dispatch the best-effort email.

The acting account is always passed in explicitly by the caller; nothing in
this module reads the session.
"""
import uuid
from datetime import datetime
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from food_donation import db
from food_donation.errors import NotFound, ValidationFailed
from food_donation.mailer import send_email
from food_donation.models import Donor, Organization, OrganizationDonation, DonorDonation, \
                                 Notification, PENDING, ACCEPTED, REJECTED, COLLECTED, \
                                 can_transition

# Web-facing category slug -> stored category name
DONATION_CATEGORIES = {
    'food': 'Food',
    'grocery': 'Groceries',
}

_TRANSITION_VERBS = {
    ACCEPTED: 'accepted',
    REJECTED: 'rejected',
    COLLECTED: 'collected',
}


def new_order_id():
    # Practically unique; no check against existing ids.
    return uuid.uuid4().hex


def format_date(moment):
    return f"{moment.month}/{moment.day}/{moment.year}"


def _commit(*records):
    try:
        db.session.add_all(records)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Donation write failed; rolled back")
        raise


def _get_donor(email):
    donor = Donor.query.filter_by(email=email).first()
    if donor is None:
        raise NotFound('Donor not found.')
    return donor


def _get_organization(email):
    organization = Organization.query.filter_by(email=email).first()
    if organization is None:
        raise NotFound('Organization not found.')
    return organization


def create_donation(donor_email, organization_name, category, items, quantities):
    """Record a new donation from a donor to an organization.

    Returns the ``(organization_copy, donor_copy)`` pair, both ``Pending``.
    """
    items = [str(item).strip() for item in items]
    quantities = list(quantities)
    if not items or any(not item for item in items):
        raise ValidationFailed('At least one item is required.')
    if len(items) != len(quantities):
        raise ValidationFailed('Each item needs a quantity.')
    if not category:
        raise ValidationFailed('Donation type is required.')

    donor = _get_donor(donor_email)
    # Names are unique, see Organization.organization_name.
    organization = Organization.query.filter_by(organization_name=organization_name).first()
    if organization is None:
        raise NotFound('Organization not found.')

    order_id = new_order_id()
    now = datetime.utcnow()
    date = format_date(now)
    address = donor.address

    org_copy = OrganizationDonation(
        organization_id=organization.id,
        order_id=order_id,
        status=PENDING,
        date=date,
        created_at=now,
        donor_name=donor.donor_name,
        donor_ph_no=donor.ph_no,
        donor_email=donor.email,
        donation=category,
        donor_address=address,
        items=items,
        quantities=quantities,
    )
    donor_copy = DonorDonation(
        donor_id=donor.id,
        order_id=order_id,
        status=PENDING,
        date=date,
        created_at=now,
        donate_to=organization.organization_name,
        donation=category,
        organization_ph=organization.ph_no,
        address=address,
        items=items,
        quantities=quantities,
    )
    notification = Notification(
        organization_id=organization.id,
        order_id=order_id,
        message=f"New donation received from {donor.donor_name} (Order ID: {order_id})",
        status=PENDING,
        created_at=now,
    )
    _commit(org_copy, donor_copy, notification)
    current_app.logger.info("Donation %s created: %s -> %s", order_id, donor.email,
                            organization.email)

    send_email(
        'New Donation Received',
        [organization.email],
        f"You have a new donation from {donor.donor_name}.\n"
        f"Order ID: {order_id}\n"
        f"Donation Type: {category}\n"
        f"Items: {', '.join(items)}\n"
        f"Quantity: {', '.join(str(q) for q in quantities)}",
    )
    return org_copy, donor_copy


def transition_donation(organization_email, donor_email, order_id, status, pickup_time=None):
    """Move both copies of a donation to ``status`` and notify the donor.

    The organization copy is looked up under the caller's own email, so an
    organization can only act on donations addressed to it. The current
    status is not enforced: an off-graph move is applied and logged.

    Returns the organization's list to re-display: pending donations after
    accept or reject, processed ones after collect.
    """
    if status not in _TRANSITION_VERBS:
        raise ValidationFailed(f'Unknown donation status: {status}')
    if status == ACCEPTED and not pickup_time:
        raise ValidationFailed('A pickup time is required to accept a donation.')

    organization = _get_organization(organization_email)
    org_copy = organization.donations.filter_by(order_id=order_id).first()
    if org_copy is None:
        raise NotFound('Donation not found.')

    donor = _get_donor(donor_email)
    donor_copy = donor.donations.filter_by(order_id=order_id).first()
    if donor_copy is None:
        raise NotFound('Donation not found.')

    if not can_transition(org_copy.status, status):
        current_app.logger.warning("Donation %s moved off the lifecycle: %s -> %s",
                                   order_id, org_copy.status, status)

    for copy in (org_copy, donor_copy):
        copy.status = status
        if status == ACCEPTED:
            copy.time = pickup_time

    verb = _TRANSITION_VERBS[status]
    org_name = organization.organization_name
    notification = Notification(
        donor_id=donor.id,
        order_id=order_id,
        message=f"Your donation (Order ID: {order_id}) has been {verb} by {org_name}",
        status=status,
    )
    _commit(org_copy, donor_copy, notification)
    current_app.logger.info("Donation %s %s by %s", order_id, verb, organization.email)

    subject, body = _transition_email(status, order_id, org_name, pickup_time)
    send_email(subject, [donor.email], body)

    if status == COLLECTED:
        return processed_donations(organization)
    return pending_donations(organization)


def _transition_email(status, order_id, org_name, pickup_time):
    if status == ACCEPTED:
        return ('Donation Accepted',
                f"Your donation (Order ID: {order_id}) has been accepted by {org_name}.\n"
                f"Please be ready for pickup at the scheduled time: {pickup_time}.")
    if status == REJECTED:
        return ('Donation Rejected',
                f"Your donation (Order ID: {order_id}) has been rejected by {org_name}.\n"
                f"You are welcome to offer it to another organization.")
    return ('Donation Collected',
            f"Your donation (Order ID: {order_id}) has been successfully collected by {org_name}.\n"
            f"Thank you for your generous contribution!")


def accept_donation(organization_email, donor_email, order_id, pickup_time):
    return transition_donation(organization_email, donor_email, order_id, ACCEPTED, pickup_time)


def reject_donation(organization_email, donor_email, order_id):
    return transition_donation(organization_email, donor_email, order_id, REJECTED)


def collect_donation(organization_email, donor_email, order_id):
    return transition_donation(organization_email, donor_email, order_id, COLLECTED)


def pending_donations(organization):
    return organization.donations.filter_by(status=PENDING) \
                                 .order_by(OrganizationDonation.created_at.desc()).all()


def processed_donations(organization):
    return organization.donations.filter(OrganizationDonation.status != PENDING) \
                                 .order_by(OrganizationDonation.created_at.desc()).all()


def donor_history(donor):
    return donor.donations.order_by(DonorDonation.created_at.desc()).all()
