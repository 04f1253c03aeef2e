class DemandPlanningError(Exception):
    """Base exception for Demand Planning errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Demand Planning backend"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(DemandPlanningError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(DemandPlanningError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class ValidationError(DemandPlanningError):
    """Exception raised for invalid arguments, rejected before any mutation."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        code = code or 'INVALID_ARGUMENT'
        super().__init__(message, code, details)


class NotFoundError(DemandPlanningError):
    """Exception raised when a scope matches no demand records."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        code = code or 'NOT_FOUND'
        super().__init__(message, code, details)


class NumericDomainError(DemandPlanningError):
    """Exception raised for ill-posed numeric input, e.g. a non-positive holding cost."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Numeric domain error"
        code = code or 'NUMERIC_DOMAIN'
        super().__init__(message, code, details)


class TransactionError(DemandPlanningError):
    """Exception raised when a store transaction fails and is rolled back."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Transaction failed and was rolled back"
        code = code or 'INTERNAL'
        super().__init__(message, code, details)


class ForecastError(DemandPlanningError):
    """Exception raised for forecasting-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Forecasting error"
        super().__init__(message, code, details)
