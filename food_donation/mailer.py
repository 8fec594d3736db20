# food_donation/mailer.py
from threading import Thread
from flask import current_app
from flask_mail import Message
from food_donation import mail


# Runs on a worker thread; a failed send is logged and dropped, never retried.
def send_async_email(app, msg):
    with app.app_context():
        try:
            mail.send(msg)
            app.logger.info("Email sent successfully to %s", msg.recipients)
        except Exception:
            app.logger.warning("Email sending failed (non-critical) to %s", msg.recipients,
                               exc_info=True)


def send_email(subject, recipients, text_body, html_body=None):
    """Fire-and-forget email.

    Returns without sending when no sender is configured, so a missing mail
    provider never breaks the request that triggered the email.
    """
    app = current_app._get_current_object()
    if not app.config.get('MAIL_DEFAULT_SENDER'):
        app.logger.warning("Mail sender not configured. Email not sent to: %s", recipients)
        return None

    msg = Message(subject, recipients=recipients)
    msg.body = text_body
    if html_body:
        msg.html = html_body

    if not app.config.get('MAIL_SEND_ASYNC', True):
        send_async_email(app, msg)
        return None

    # Send email in a separate thread to avoid blocking the web request
    thread = Thread(target=send_async_email, args=(app, msg), daemon=True)
    thread.start()
    return thread
