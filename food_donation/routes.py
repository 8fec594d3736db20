# food_donation/routes.py
from flask import Blueprint, render_template, url_for, flash, redirect, request, abort, current_app
from flask_login import login_user, current_user, logout_user, login_required
from food_donation import db
from food_donation.models import Donor, Organization
from food_donation.forms import (
    DonorRegistrationForm, OrganizationRegistrationForm, DonorLoginForm, OrganizationLoginForm,
    DonationForm, DonationActionForm, AcceptDonationForm, MarkReadForm,
    ForgotPasswordForm, ResetPasswordForm
)
from food_donation.errors import LifecycleError
from food_donation.mailer import send_email
from food_donation import lifecycle
from food_donation.notifications import list_notifications, mark_notification_read, unread_count
import functools

main = Blueprint('main', __name__)

ACCOUNT_MODELS = {
    Donor.role: Donor,
    Organization.role: Organization,
}

LOGIN_VIEWS = {
    Donor.role: 'main.donor_login',
    Organization.role: 'main.org_login',
}

HOME_VIEWS = {
    Donor.role: 'main.donor_home',
    Organization.role: 'main.org_home',
}


# --- Helper for Role-Based Access Control ---
def role_required(role):
    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                flash('Please log in to access this page.', 'info')
                return redirect(url_for(LOGIN_VIEWS[role], next=request.path))
            if current_user.role != role:
                abort(403)
            return f(*args, **kwargs)
        return wrapper
    return decorator


@main.app_errorhandler(LifecycleError)
def lifecycle_error(error):
    current_app.logger.info("%s: %s", type(error).__name__, error.message)
    return render_template('error.html', title='Error', message=error.message), error.status_code


def _redirect_authenticated():
    flash('You are already logged in!', 'info')
    return redirect(url_for(HOME_VIEWS[current_user.role]))


# --- Public Routes ---

@main.route("/")
def home():
    if current_user.is_authenticated:
        return redirect(url_for(HOME_VIEWS[current_user.role]))
    return render_template('intro.html', title='Welcome')


@main.route("/signup")
def signup():
    return render_template('reg_home.html', title='Sign Up')


@main.route("/login")
def choose_login():
    # Pages open to both roles send anonymous users here to pick a login page.
    if current_user.is_authenticated:
        return _redirect_authenticated()
    return render_template('choose_login.html', title='Log In', next_page=request.args.get('next'))


@main.route("/donor/register", methods=['GET', 'POST'])
def donor_register():
    if current_user.is_authenticated:
        return _redirect_authenticated()
    form = DonorRegistrationForm()
    if form.validate_on_submit():
        donor = Donor(
            donor_name=form.donor_name.data,
            email=form.email.data,
            ph_no=form.phone_no.data,
            street=form.street.data,
            city=form.city.data,
            dist=form.district.data,
            state=form.state.data,
            pincode=form.pincode.data,
        )
        donor.set_password(form.password.data)
        db.session.add(donor)
        db.session.commit()
        current_app.logger.info("Donor registered: %s", donor.email)
        flash('Your account has been created! You are now able to log in.', 'success')
        return redirect(url_for('main.donor_login'))
    return render_template('register.html', title='Donor Registration', form=form,
                           legend='Register as a Donor')


@main.route("/organization/register", methods=['GET', 'POST'])
def org_register():
    if current_user.is_authenticated:
        return _redirect_authenticated()
    form = OrganizationRegistrationForm()
    if form.validate_on_submit():
        organization = Organization(
            organization_name=form.organization_name.data,
            organization_id=form.org_id.data,
            owner_name=form.owner_name.data,
            email=form.email.data,
            ph_no=form.phone_no.data,
            street=form.street.data,
            city=form.city.data,
            dist=form.district.data,
            state=form.state.data,
            pincode=form.pincode.data,
        )
        organization.set_password(form.password.data)
        db.session.add(organization)
        db.session.commit()
        current_app.logger.info("Organization registered: %s", organization.email)
        flash('Your organization has been registered! You are now able to log in.', 'success')
        return redirect(url_for('main.org_login'))
    return render_template('register.html', title='Organization Registration', form=form,
                           legend='Register an Organization')


@main.route("/donor/login", methods=['GET', 'POST'])
def donor_login():
    if current_user.is_authenticated:
        return _redirect_authenticated()
    form = DonorLoginForm()
    if form.validate_on_submit():
        donor = Donor.query.filter_by(email=form.email.data).first()
        if donor is None:
            flash('Donor not found or incorrect email.', 'danger')
        elif not donor.check_password(form.password.data):
            flash('Incorrect password.', 'danger')
        else:
            login_user(donor)
            flash(f'Login successful! Welcome, {donor.donor_name}.', 'success')
            return _redirect_next('main.donor_home')
    return render_template('login.html', title='Donor Login', form=form, legend='Donor Login')


@main.route("/organization/login", methods=['GET', 'POST'])
def org_login():
    if current_user.is_authenticated:
        return _redirect_authenticated()
    form = OrganizationLoginForm()
    if form.validate_on_submit():
        organization = Organization.query.filter_by(email=form.email.data).first()
        # Checked in order; each failure has its own message.
        if organization is None:
            flash('Organization email not found or incorrect.', 'danger')
        elif not organization.check_password(form.password.data):
            flash('Incorrect password.', 'danger')
        elif form.org_id.data != organization.organization_id:
            flash('Organization ID not found or incorrect.', 'danger')
        else:
            login_user(organization)
            flash(f'Login successful! Welcome, {organization.organization_name}.', 'success')
            return _redirect_next('main.org_home')
    return render_template('login.html', title='Organization Login', form=form,
                           legend='Organization Login')


def _redirect_next(default_view):
    next_page = request.args.get('next')
    # Only follow local paths.
    if next_page and next_page.startswith('/') and not next_page.startswith('//'):
        return redirect(next_page)
    return redirect(url_for(default_view))


@main.route("/logout")
def logout():
    logout_user()
    flash('You have been logged out.', 'info')
    return redirect(url_for('main.home'))


# --- Donor Routes ---

@main.route("/donor/home")
@role_required('donor')
def donor_home():
    return render_template('don_home.html', title='Home', name=current_user.donor_name,
                           unread=unread_count(current_user))


@main.route("/donate/<any(food, grocery):category>", methods=['GET', 'POST'])
@role_required('donor')
def donate(category):
    form = DonationForm()
    organizations = Organization.query.order_by(Organization.organization_name).all()
    form.orgname.choices = [(o.organization_name, o.organization_name) for o in organizations]

    if form.add_item.data:
        # Grow both lists by one row and redisplay without validating.
        form.items.append_entry()
        form.quantities.append_entry()
    elif form.validate_on_submit():
        lifecycle.create_donation(
            current_user.email,
            form.orgname.data,
            lifecycle.DONATION_CATEGORIES[category],
            form.items.data,
            form.quantities.data,
        )
        flash('Donation submitted successfully!', 'success')
        return redirect(url_for('main.donor_home'))
    return render_template('donate.html', title=f'Donate {lifecycle.DONATION_CATEGORIES[category]}',
                           form=form, category=category, organizations=organizations,
                           don_details=current_user)


@main.route("/donor/history")
@role_required('donor')
def donor_history():
    return render_template('don_history.html', title='Donation History', name=current_user.donor_name,
                           donations=lifecycle.donor_history(current_user))


@main.route("/donor/profile")
@role_required('donor')
def donor_profile():
    return render_template('don_profile.html', title='Profile', name=current_user.donor_name,
                           don_data=current_user, no_donations=current_user.donations.count())


# --- Organization Routes ---

@main.route("/organization/home")
@role_required('organization')
def org_home():
    return render_template('org_home.html', title='Home', name=current_user.organization_name,
                           donations=lifecycle.pending_donations(current_user),
                           accept_form=AcceptDonationForm(), action_form=DonationActionForm())


@main.route("/organization/history")
@role_required('organization')
def org_history():
    return render_template('org_history.html', title='Donation History',
                           name=current_user.organization_name, org_data=current_user,
                           donations=lifecycle.processed_donations(current_user),
                           action_form=DonationActionForm())


@main.route("/organization/profile")
@role_required('organization')
def org_profile():
    donations = current_user.donations.all()
    donor_locations = [
        {'donor_name': d.donor_name, 'donor_address': d.donor_address, 'status': d.status}
        for d in donations
    ]
    return render_template('org_profile.html', title='Profile', name=current_user.organization_name,
                           org_data=current_user, no_donations=len(donations),
                           donor_locations=donor_locations)


@main.route("/organization/donations/accept", methods=['POST'])
@role_required('organization')
def accept_donation():
    form = AcceptDonationForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, 'danger')
        return redirect(url_for('main.org_home'))
    donations = lifecycle.accept_donation(current_user.email, form.donor_email.data,
                                          form.order_id.data, form.time.data)
    flash('Donation accepted.', 'success')
    return render_template('org_home.html', title='Home', name=current_user.organization_name,
                           donations=donations, accept_form=AcceptDonationForm(formdata=None),
                           action_form=DonationActionForm(formdata=None))


@main.route("/organization/donations/reject", methods=['POST'])
@role_required('organization')
def reject_donation():
    form = DonationActionForm()
    if not form.validate_on_submit():
        abort(400)
    donations = lifecycle.reject_donation(current_user.email, form.donor_email.data,
                                          form.order_id.data)
    flash('Donation rejected.', 'info')
    return render_template('org_home.html', title='Home', name=current_user.organization_name,
                           donations=donations, accept_form=AcceptDonationForm(formdata=None),
                           action_form=DonationActionForm(formdata=None))


@main.route("/organization/donations/collect", methods=['POST'])
@role_required('organization')
def collect_donation():
    form = DonationActionForm()
    if not form.validate_on_submit():
        abort(400)
    donations = lifecycle.collect_donation(current_user.email, form.donor_email.data,
                                           form.order_id.data)
    flash('Donation marked as collected.', 'success')
    return render_template('org_history.html', title='Donation History',
                           name=current_user.organization_name, org_data=current_user,
                           donations=donations, action_form=DonationActionForm(formdata=None))


# --- Notification Routes (both roles) ---

@main.route("/notifications")
@login_required
def notifications():
    return render_template('notifications.html', title='Notifications', name=current_user.display_name,
                           notifications=list_notifications(current_user), form=MarkReadForm())


@main.route("/notifications/<int:notification_id>/read", methods=['POST'])
@login_required
def mark_read(notification_id):
    form = MarkReadForm()
    if not form.validate_on_submit():
        abort(400)
    mark_notification_read(current_user, notification_id)
    return redirect(url_for('main.notifications'))


# --- Password Reset ---

def _reset_link(role, token):
    base_url = current_app.config.get('BASE_URL')
    if base_url:
        return base_url.rstrip('/') + url_for('main.reset_password', role=role, token=token)
    return url_for('main.reset_password', role=role, token=token, _external=True)


@main.route("/<any(donor, organization):role>/forgot_password", methods=['GET', 'POST'])
def forgot_password(role):
    form = ForgotPasswordForm()
    if form.validate_on_submit():
        account = ACCOUNT_MODELS[role].query.filter_by(email=form.email.data).first()
        if account is not None:
            token = account.issue_reset_token(current_app.config['RESET_TOKEN_TTL_MINUTES'])
            db.session.commit()
            send_email(
                'Password Reset Request',
                [account.email],
                f"Hello {account.display_name},\n\n"
                f"Use the link below to reset your password. It expires in "
                f"{current_app.config['RESET_TOKEN_TTL_MINUTES']} minutes.\n\n"
                f"{_reset_link(role, token)}\n\n"
                f"If you did not request a reset, you can ignore this email."
            )
        # Same answer either way.
        flash('If an account exists for that email, a reset link has been sent.', 'info')
        return redirect(url_for(LOGIN_VIEWS[role]))
    return render_template('forgot_password.html', title='Forgot Password', form=form, role=role)


@main.route("/<any(donor, organization):role>/reset_password/<token>", methods=['GET', 'POST'])
def reset_password(role, token):
    account = ACCOUNT_MODELS[role].query.filter_by(reset_token=token).first()
    if account is None or not account.reset_token_valid():
        flash('Invalid or expired reset link.', 'danger')
        return redirect(url_for('main.forgot_password', role=role))

    form = ResetPasswordForm()
    if form.validate_on_submit():
        account.set_password(form.password.data)
        account.clear_reset_token()
        db.session.commit()
        current_app.logger.info("Password reset for %s %s", role, account.email)
        flash('Your password has been updated! You are now able to log in.', 'success')
        return redirect(url_for(LOGIN_VIEWS[role]))
    return render_template('reset_password.html', title='Reset Password', form=form)
