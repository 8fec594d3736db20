import pytest
from conftest import PASSWORD, login_donor, login_organization
from food_donation.forms import PASSWORD_POLICY_MESSAGE
from food_donation.models import Donor, Organization

ADDRESS = {
    'phone_no': '9876543210',
    'street': '12 Baker St',
    'city': 'Sample City',
    'district': 'Sample District',
    'state': 'Sample State',
    'pincode': '123456',
}


def donor_form(email='d@example.com', password=PASSWORD, confirm=None):
    return dict(ADDRESS, donor_name='Dana Donor', email=email, password=password,
                confirm_password=password if confirm is None else confirm)


def org_form(email='org@example.com', name='Helping Hands', password=PASSWORD):
    return dict(ADDRESS, organization_name=name, org_id='HH-001', owner_name='Olive Owner',
                email=email, password=password, confirm_password=password)


def test_register_donor_stores_only_a_hash(app, client):
    response = client.post('/donor/register', data=donor_form())
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/donor/login')

    with app.app_context():
        donor = Donor.query.filter_by(email='d@example.com').one()
        assert donor.password != PASSWORD
        assert donor.check_password(PASSWORD)
        assert donor.address == '12 Baker St/Sample City/Sample District/Sample State/123456'


def test_duplicate_donor_email_is_rejected(app, client):
    client.post('/donor/register', data=donor_form())
    response = client.post('/donor/register', data=donor_form())
    assert response.status_code == 200
    assert b'Donor already exists.' in response.data
    with app.app_context():
        assert Donor.query.count() == 1


def test_duplicate_organization_email_is_rejected(app, client):
    client.post('/organization/register', data=org_form())
    response = client.post('/organization/register', data=org_form(name='Other Name'))
    assert b'Organization already exists.' in response.data
    with app.app_context():
        assert Organization.query.count() == 1


def test_same_email_may_be_donor_and_organization(app, client):
    assert client.post('/donor/register', data=donor_form(email='both@example.com')).status_code == 302
    assert client.post('/organization/register', data=org_form(email='both@example.com')).status_code == 302
    with app.app_context():
        assert Donor.query.filter_by(email='both@example.com').count() == 1
        assert Organization.query.filter_by(email='both@example.com').count() == 1


def test_organization_names_must_be_unique(app, client):
    client.post('/organization/register', data=org_form())
    response = client.post('/organization/register', data=org_form(email='second@example.com'))
    assert b'An organization with that name already exists.' in response.data
    with app.app_context():
        assert Organization.query.count() == 1


@pytest.mark.parametrize('password', ['short1', 'alllettersnosymbol1', 'NoDigits!!', '12345678!'])
def test_password_policy_rejects_before_writing(app, client, password):
    response = client.post('/donor/register', data=donor_form(password=password))
    assert response.status_code == 200
    assert PASSWORD_POLICY_MESSAGE.encode() in response.data
    response = client.post('/organization/register', data=org_form(password=password))
    assert PASSWORD_POLICY_MESSAGE.encode() in response.data
    with app.app_context():
        assert Donor.query.count() == 0
        assert Organization.query.count() == 0


def test_password_confirmation_must_match(app, client):
    response = client.post('/donor/register', data=donor_form(confirm='Different#123'))
    assert b'Passwords do not match.' in response.data
    with app.app_context():
        assert Donor.query.count() == 0


def test_donor_login_and_logout(client, donor):
    response = login_donor(client)
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/donor/home')
    assert b'Welcome, Dana Donor' in client.get('/donor/home').data

    client.get('/logout')
    response = client.get('/donor/home')
    assert response.status_code == 302
    assert '/donor/login' in response.headers['Location']


def test_donor_login_errors(client, donor):
    response = login_donor(client, email='nobody@example.com')
    assert b'Donor not found or incorrect email.' in response.data
    response = login_donor(client, password='Wrong#1234')
    assert b'Incorrect password.' in response.data
    assert client.get('/donor/home').status_code == 302


def test_organization_login_checks_all_factors(client, organization):
    response = login_organization(client, email='nobody@example.com')
    assert b'Organization email not found or incorrect.' in response.data

    response = login_organization(client, password='Wrong#1234')
    assert b'Incorrect password.' in response.data

    response = login_organization(client, org_id='WRONG-ID')
    assert b'Organization ID not found or incorrect.' in response.data
    assert b'Incorrect password.' not in response.data
    assert client.get('/organization/home').status_code == 302

    response = login_organization(client)
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/organization/home')


def test_roles_are_kept_apart(client, donor, organization):
    login_donor(client)
    assert client.get('/organization/home').status_code == 403
    client.get('/logout')

    login_organization(client)
    assert client.get('/donate/food').status_code == 403


def test_unauthenticated_redirects_to_role_login(client):
    response = client.get('/donate/food')
    assert response.status_code == 302
    assert '/donor/login' in response.headers['Location']

    response = client.post('/organization/donations/accept', data={})
    assert response.status_code == 302
    assert '/organization/login' in response.headers['Location']
