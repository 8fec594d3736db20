# food_donation/forms.py
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SubmitField, SelectField, IntegerField, \
                    FieldList, HiddenField
from wtforms.validators import DataRequired, Length, Email, EqualTo, ValidationError, \
                               Optional, Regexp, NumberRange
from food_donation.models import Donor, Organization
from email_validator import validate_email, EmailNotValidError

# At least 8 chars drawn from letters, digits and @$!%*#?&, with one of each kind.
PASSWORD_PATTERN = r'^(?=.*[A-Za-z])(?=.*\d)(?=.*[@$!%*#?&])[A-Za-z\d@$!%*#?&]{8,}$'
PASSWORD_POLICY_MESSAGE = ('Password must have at least 8 chars, one letter, one number, '
                           'and one special character.')


# Custom validator for email
def validate_email_address(form, field):
    try:
        validate_email(field.data, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError('Invalid email address.')


class AddressMixin:
    phone_no = StringField('Phone Number', validators=[DataRequired(), Length(max=20)])
    street = StringField('Street', validators=[DataRequired(), Length(max=120)])
    city = StringField('City', validators=[DataRequired(), Length(max=60)])
    district = StringField('District', validators=[DataRequired(), Length(max=60)])
    state = StringField('State', validators=[DataRequired(), Length(max=60)])
    pincode = StringField('Pincode', validators=[DataRequired(), Length(max=12)])


class PasswordMixin:
    password = PasswordField('Password', validators=[DataRequired(),
                                                     Regexp(PASSWORD_PATTERN, message=PASSWORD_POLICY_MESSAGE)])
    confirm_password = PasswordField('Confirm Password',
                                     validators=[DataRequired(),
                                                 EqualTo('password', message='Passwords do not match.')])


# Donor Registration Form
class DonorRegistrationForm(PasswordMixin, AddressMixin, FlaskForm):
    donor_name = StringField('Name', validators=[DataRequired(), Length(min=2, max=100)])
    email = StringField('Email', validators=[DataRequired(), Email(), validate_email_address])
    submit = SubmitField('Sign Up')

    def validate_email(self, email):
        if Donor.query.filter_by(email=email.data).first():
            raise ValidationError('Donor already exists.')


# Organization Registration Form
class OrganizationRegistrationForm(PasswordMixin, AddressMixin, FlaskForm):
    organization_name = StringField('Organization Name', validators=[DataRequired(), Length(min=2, max=120)])
    org_id = StringField('Organization ID', validators=[DataRequired(), Length(max=60)])
    owner_name = StringField('Owner Name', validators=[Optional(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Email(), validate_email_address])
    submit = SubmitField('Sign Up')

    def validate_email(self, email):
        if Organization.query.filter_by(email=email.data).first():
            raise ValidationError('Organization already exists.')

    def validate_organization_name(self, organization_name):
        # Donations are addressed by organization name, so it has to be unique.
        if Organization.query.filter_by(organization_name=organization_name.data).first():
            raise ValidationError('An organization with that name already exists.')


class DonorLoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    submit = SubmitField('Login')


class OrganizationLoginForm(FlaskForm):
    org_id = StringField('Organization ID', validators=[DataRequired()])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    submit = SubmitField('Login')


# Items and quantities are parallel lists: items-0/quantities-0, items-1/quantities-1, ...
class DonationForm(FlaskForm):
    orgname = SelectField('Organization', validators=[DataRequired()])
    items = FieldList(StringField('Item', validators=[DataRequired(), Length(max=100)]), min_entries=1)
    quantities = FieldList(IntegerField('Quantity', validators=[DataRequired(), NumberRange(min=1)]),
                           min_entries=1)
    add_item = SubmitField('Add item')
    submit = SubmitField('Donate')

    def validate_quantities(self, quantities):
        if len(quantities.entries) != len(self.items.entries):
            raise ValidationError('Each item needs a quantity.')


class DonationActionForm(FlaskForm):
    donor_email = HiddenField('Donor Email', validators=[DataRequired(message='Donation reference is missing.')])
    order_id = HiddenField('Order ID', validators=[DataRequired(message='Donation reference is missing.')])


class AcceptDonationForm(DonationActionForm):
    time = StringField('Pickup Time',
                       validators=[DataRequired(message='A pickup time is required to accept a donation.'),
                                   Length(max=40)])
    submit = SubmitField('Accept')


class MarkReadForm(FlaskForm):
    submit = SubmitField('Mark as read')


class ForgotPasswordForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    submit = SubmitField('Send Reset Link')


# Form for resetting a password from an emailed link
class ResetPasswordForm(FlaskForm):
    password = PasswordField('New Password', validators=[DataRequired(), Length(min=8)])
    confirm_password = PasswordField('Confirm New Password',
                                     validators=[DataRequired(),
                                                 EqualTo('password', message='Passwords do not match.')])
    submit = SubmitField('Reset Password')
