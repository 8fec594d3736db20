# food_donation/__init__.py
import os
from logging import FileHandler, WARNING
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_mail import Mail
from flask_wtf.csrf import CSRFProtect
from dotenv import load_dotenv

# Load environment variables from the .env file.
load_dotenv()

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
mail = Mail()
csrf = CSRFProtect()

login_manager.login_view = 'main.choose_login'
login_manager.login_message_category = 'info'


def _env_flag(name, default='False'):
    return os.getenv(name, default).lower() in ('true', '1', 't')


def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', 'sqlite:///site.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Configure Flask-Mail
    app.config['MAIL_SERVER'] = os.getenv('MAIL_SERVER')
    app.config['MAIL_PORT'] = int(os.getenv('MAIL_PORT', 587))
    app.config['MAIL_USE_TLS'] = _env_flag('MAIL_USE_TLS')
    app.config['MAIL_USE_SSL'] = _env_flag('MAIL_USE_SSL')
    app.config['MAIL_USERNAME'] = os.getenv('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.getenv('MAIL_PASSWORD')
    app.config['MAIL_DEFAULT_SENDER'] = os.getenv('MAIL_DEFAULT_SENDER')
    # Emails go out on a background thread unless this is switched off (tests do).
    app.config['MAIL_SEND_ASYNC'] = _env_flag('MAIL_SEND_ASYNC', 'True')

    # Password reset links are built from BASE_URL when set, otherwise from the request host.
    app.config['BASE_URL'] = os.getenv('BASE_URL')
    app.config['RESET_TOKEN_TTL_MINUTES'] = int(os.getenv('RESET_TOKEN_TTL_MINUTES', 15))
    app.config['LOG_FILE'] = os.getenv('LOG_FILE')

    if test_config is not None:
        app.config.update(test_config)

    if app.config['LOG_FILE']:
        file_handler = FileHandler(app.config['LOG_FILE'])
        file_handler.setLevel(WARNING)
        app.logger.addHandler(file_handler)

    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)
    csrf.init_app(app)

    # Import the models before db.create_all() so every table is registered.
    from food_donation.models import Donor, Organization, OrganizationDonation, \
                                     DonorDonation, Notification

    @login_manager.user_loader
    def load_user(user_id):
        # Ids are namespaced by role: the same email may be a donor and an organization.
        role, _, pk = user_id.partition(':')
        model = {Donor.role: Donor, Organization.role: Organization}.get(role)
        if model is None or not pk.isdigit():
            return None
        return db.session.get(model, int(pk))

    from food_donation.routes import main as main_blueprint
    app.register_blueprint(main_blueprint)

    with app.app_context():
        db.create_all()

    return app
