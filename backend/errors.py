"""
Domain Exceptions

Errors raised by services and mapped to HTTP responses by the routes.
"""


class ValidationError(ValueError):
    """Invalid client input (HTTP 400)."""

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict:
        result = {"error": self.message}
        if self.field:
            result["field"] = self.field
        return result


class ReconciliationError(Exception):
    """Base error for transaction reconciliation."""

    retryable = False


class PersistenceUnavailableError(ReconciliationError):
    """The existing-classification lookup could not reach the database.

    Fatal for the ingestion call; the caller may retry the whole request.
    """

    retryable = True

    def __init__(self, message: str, user_id=None):
        self.message = message
        self.user_id = user_id
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "retry": self.retryable}


class PlaidAPIError(Exception):
    """Exception raised when the Plaid API returns an error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        endpoint: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.endpoint = endpoint
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "error_code": self.error_code,
            "endpoint": self.endpoint,
            "status_code": self.status_code,
            "retry": self.status_code in [408, 429, 500, 502, 503, 504]
            if self.status_code
            else False,
        }
