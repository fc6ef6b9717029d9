"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRuleError(DomainException):
    """Rule data is malformed or violates a caller-side constraint"""

    pass


class RuleNotFoundError(DomainException):
    """No recurring rule exists for the given id"""

    pass


class RuleStoreError(DomainException):
    """Rule store could not be read or written"""

    pass


class LedgerError(DomainException):
    """Ledger rejected the transaction or is unavailable"""

    pass


class NotificationError(DomainException):
    """Notification service rejected the request or is unavailable"""

    pass
