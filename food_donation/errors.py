# food_donation/errors.py


class LifecycleError(Exception):
    """Base class for failures raised by the donation workflow."""
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFound(LifecycleError):
    """A referenced donor, organization, donation or notification is absent."""
    status_code = 404


class ValidationFailed(LifecycleError):
    status_code = 400
