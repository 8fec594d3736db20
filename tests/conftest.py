# tests/conftest.py
import pytest
from food_donation import create_app, db
from food_donation.models import Donor, Organization

PASSWORD = 'Secret#123'

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'WTF_CSRF_ENABLED': False,
    'BCRYPT_LOG_ROUNDS': 4,
    'MAIL_SUPPRESS_SEND': True,
    'MAIL_DEFAULT_SENDER': 'noreply@example.com',
    'MAIL_SEND_ASYNC': False,
    'BASE_URL': None,
    'LOG_FILE': None,
}


# No app context stays pushed across client requests: Flask-Login caches the
# user on ``g`` and would leak it between requests.
@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_donor(app):
    def _make(email='d@example.com', name='Dana Donor', password=PASSWORD):
        with app.app_context():
            donor = Donor(donor_name=name, email=email, ph_no='9876543210',
                          street='12 Baker St', city='Sample City', dist='Sample District',
                          state='Sample State', pincode='123456')
            donor.set_password(password)
            db.session.add(donor)
            db.session.commit()
            return email
    return _make


@pytest.fixture
def make_organization(app):
    def _make(email='org@example.com', name='Helping Hands', org_id='HH-001', password=PASSWORD):
        with app.app_context():
            organization = Organization(organization_name=name, organization_id=org_id,
                                        owner_name='Olive Owner', email=email, ph_no='0123456789',
                                        street='100 Main Ave', city='Metroville',
                                        dist='Central', state='Stateland', pincode='654321')
            organization.set_password(password)
            db.session.add(organization)
            db.session.commit()
            return email
    return _make


@pytest.fixture
def donor(make_donor):
    return make_donor()


@pytest.fixture
def organization(make_organization):
    return make_organization()


def login_donor(client, email='d@example.com', password=PASSWORD):
    return client.post('/donor/login', data={'email': email, 'password': password})


def login_organization(client, email='org@example.com', password=PASSWORD, org_id='HH-001'):
    return client.post('/organization/login',
                       data={'email': email, 'password': password, 'org_id': org_id})
