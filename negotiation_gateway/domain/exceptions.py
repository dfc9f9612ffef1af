"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidTermError(DomainException):
    """Term length is outside the domain of an installment schedule"""

    pass


class InvalidDebtError(DomainException):
    """Debt amount is zero, negative or unreadable"""

    pass


class ExternalServiceError(DomainException):
    """Model or classifier collaborator did not produce a usable answer"""

    pass


class ExternalServiceTimeout(ExternalServiceError):
    """Collaborator did not answer within its time budget"""

    pass


class ExternalServiceFailure(ExternalServiceError):
    """Collaborator returned an error or a malformed payload"""

    pass


class HardshipTransitionError(DomainException):
    """Requested hardship status change is not allowed from the current status"""

    pass
