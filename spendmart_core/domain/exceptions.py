"""Domain-specific exceptions"""

from typing import Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Purchase or setup input is missing or malformed"""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class AuthenticationError(DomainException):
    """No signed-in identity is available for the operation"""

    pass


class PersistenceError(DomainException):
    """Document store rejected or failed a read or write"""

    pass


class NotFoundError(PersistenceError):
    """Requested document does not exist"""

    pass


class AccountNotFoundError(NotFoundError):
    """User account document has not been created yet"""

    pass


class DueNotFoundError(NotFoundError):
    """Due does not exist or belongs to another user"""

    pass


class SchedulingError(DomainException):
    """Reminder could not be registered with the notification service"""

    pass
