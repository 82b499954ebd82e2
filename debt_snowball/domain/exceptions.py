"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidDebtError(DomainException):
    """Debt fields violate balance, payment, rate or due-day constraints"""

    pass


class DebtNotFoundError(DomainException):
    """Referenced debt does not exist in the store"""

    def __init__(self, debt_id: str):
        super().__init__(f"Debt with ID {debt_id} not found")
        self.debt_id = debt_id


class StatementNotFoundError(DomainException):
    """Referenced statement does not exist in the store"""

    def __init__(self, statement_id: str):
        super().__init__(f"Statement with ID {statement_id} not found")
        self.statement_id = statement_id


class DocumentReadError(DomainException):
    """Uploaded document content could not be read"""

    pass


class StorageError(DomainException):
    """Persisting to the local store failed; the write did not happen"""

    pass
