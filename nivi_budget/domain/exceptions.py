"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Amount, name or percentage rejected at the engine boundary"""

    pass


class InvalidDocumentError(DomainException):
    """Stored finance document does not have the expected shape"""

    pass


class IdentityServiceError(DomainException):
    """Identity service returned an error or is unavailable"""

    pass


class InvalidCredentialsError(DomainException):
    """Bearer credential was rejected by the identity service"""

    pass
