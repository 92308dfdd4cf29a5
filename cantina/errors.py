"""Domain errors raised by the service layer"""


class CantinaError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CantinaError):
    """A referenced customer, order or debt does not exist"""

    status_code = 404


class BadRequestError(CantinaError):
    status_code = 400


class InvalidStateError(CantinaError):
    """The requested transition is not allowed from the current state"""

    status_code = 409


class ConfigurationError(CantinaError):
    """Server-side configuration is missing or invalid"""

    status_code = 500


class StoreUnavailableError(CantinaError):
    status_code = 503
