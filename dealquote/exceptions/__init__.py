"""Custom exceptions for the deal quote service."""


class QuoteServiceError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(QuoteServiceError):
    """Raised when an input field is malformed or out of range."""
    def __init__(self, field, message, payload=None):
        payload = dict(payload or ())
        payload['field'] = field
        super().__init__(f"{field}: {message}", 400, payload)
        self.field = field


class BusinessLogicError(QuoteServiceError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(QuoteServiceError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ConfigurationError(QuoteServiceError):
    """Raised when a required policy setting is missing or invalid."""
    def __init__(self, setting, message):
        super().__init__(f"{setting}: {message}", 500, {'setting': setting})
        self.setting = setting


class PersistenceError(QuoteServiceError):
    """Raised when the database rejects or fails an operation."""
    def __init__(self, message="Database operation failed", payload=None):
        super().__init__(message, 503, payload)
