# food_donation/models.py
import secrets
from datetime import datetime, timedelta
from food_donation import db, bcrypt
from flask_login import UserMixin
from sqlalchemy.schema import UniqueConstraint, CheckConstraint

# Donation lifecycle states
PENDING = 'Pending'
ACCEPTED = 'Accepted'
REJECTED = 'Rejected'
COLLECTED = 'Collected'
DONATION_STATES = (PENDING, ACCEPTED, REJECTED, COLLECTED)

# Edges of the lifecycle; Rejected and Collected are terminal.
TRANSITIONS = {
    (PENDING, ACCEPTED),
    (PENDING, REJECTED),
    (ACCEPTED, COLLECTED),
}


def can_transition(src, dst):
    return (src, dst) in TRANSITIONS


class AccountMixin(UserMixin):
    """Fields and behaviour shared by donors and organizations.

    Both roles live in their own table, so the id handed to Flask-Login is
    prefixed with the role to keep it unique across the two.
    """
    role = None

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(60), nullable=False)
    ph_no = db.Column(db.String(20), nullable=True)

    # Postal address
    street = db.Column(db.String(120), nullable=True)
    city = db.Column(db.String(60), nullable=True)
    dist = db.Column(db.String(60), nullable=True)
    state = db.Column(db.String(60), nullable=True)
    pincode = db.Column(db.String(12), nullable=True)

    # Password reset
    reset_token = db.Column(db.String(64), unique=True, nullable=True)
    reset_token_expiry = db.Column(db.DateTime, nullable=True)

    def get_id(self):
        return f"{self.role}:{self.id}"

    def set_password(self, password):
        self.password = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password, password)

    def is_donor(self):
        return self.role == Donor.role

    def is_organization(self):
        return self.role == Organization.role

    @property
    def address(self):
        return '/'.join(str(part or '') for part in
                        (self.street, self.city, self.dist, self.state, self.pincode))

    def issue_reset_token(self, ttl_minutes):
        self.reset_token = secrets.token_urlsafe(32)
        self.reset_token_expiry = datetime.utcnow() + timedelta(minutes=ttl_minutes)
        return self.reset_token

    def reset_token_valid(self, now=None):
        if not self.reset_token or not self.reset_token_expiry:
            return False
        return (now or datetime.utcnow()) < self.reset_token_expiry

    def clear_reset_token(self):
        self.reset_token = None
        self.reset_token_expiry = None


class Donor(AccountMixin, db.Model):
    role = 'donor'

    donor_name = db.Column(db.String(100), nullable=False)

    donations = db.relationship('DonorDonation', backref='donor', lazy='dynamic',
                                cascade='all, delete-orphan')
    notifications = db.relationship('Notification', backref='donor', lazy='dynamic',
                                    foreign_keys='Notification.donor_id')

    @property
    def display_name(self):
        return self.donor_name

    def __repr__(self):
        return f"Donor('{self.donor_name}', '{self.email}')"


class Organization(AccountMixin, db.Model):
    role = 'organization'

    organization_name = db.Column(db.String(120), unique=True, nullable=False)
    organization_id = db.Column(db.String(60), nullable=False)  # issued outside this app
    owner_name = db.Column(db.String(100), nullable=True)

    donations = db.relationship('OrganizationDonation', backref='organization', lazy='dynamic',
                                cascade='all, delete-orphan')
    notifications = db.relationship('Notification', backref='organization', lazy='dynamic',
                                    foreign_keys='Notification.organization_id')

    @property
    def display_name(self):
        return self.organization_name

    def __repr__(self):
        return f"Organization('{self.organization_name}', '{self.email}')"


class DonationHistoryMixin:
    """One owner's copy of a donation.

    The same donation is stored once under the organization and once under
    the donor; the two rows share ``order_id`` and must agree on ``status``.
    """
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(32), nullable=False, index=True)
    status = db.Column(db.String(10), nullable=False, default=PENDING)
    date = db.Column(db.String(10), nullable=False)  # M/D/YYYY
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    donation = db.Column(db.String(20), nullable=False)  # category, e.g. 'Food'
    items = db.Column(db.JSON, nullable=False, default=list)
    quantities = db.Column(db.JSON, nullable=False, default=list)
    time = db.Column(db.String(40), nullable=True)  # pickup time, set on accept


class OrganizationDonation(DonationHistoryMixin, db.Model):
    __tablename__ = 'organization_donation'

    organization_id = db.Column(db.Integer, db.ForeignKey('organization.id'), nullable=False)
    donor_name = db.Column(db.String(100), nullable=False)
    donor_ph_no = db.Column(db.String(20), nullable=True)
    donor_email = db.Column(db.String(120), nullable=False)
    donor_address = db.Column(db.String(400), nullable=True)

    __table_args__ = (UniqueConstraint('organization_id', 'order_id', name='_org_order_uc'),)

    def __repr__(self):
        return f"OrganizationDonation('{self.order_id}', '{self.status}')"


class DonorDonation(DonationHistoryMixin, db.Model):
    __tablename__ = 'donor_donation'

    donor_id = db.Column(db.Integer, db.ForeignKey('donor.id'), nullable=False)
    donate_to = db.Column(db.String(120), nullable=False)
    organization_ph = db.Column(db.String(20), nullable=True)
    address = db.Column(db.String(400), nullable=True)

    __table_args__ = (UniqueConstraint('donor_id', 'order_id', name='_donor_order_uc'),)

    def __repr__(self):
        return f"DonorDonation('{self.order_id}', '{self.status}')"


class Notification(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    donor_id = db.Column(db.Integer, db.ForeignKey('donor.id'), nullable=True)
    organization_id = db.Column(db.Integer, db.ForeignKey('organization.id'), nullable=True)
    order_id = db.Column(db.String(32), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(10), nullable=False)
    read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Exactly one owner.
    __table_args__ = (
        CheckConstraint('(donor_id IS NULL) != (organization_id IS NULL)', name='_single_owner_ck'),
    )

    def __repr__(self):
        return f"Notification('{self.order_id}', '{self.status}', read={self.read})"
