"""
Core - Error Hierarchy.

Every failure the keyword engine reports to a caller is one of these types.
The API layer maps them to HTTP status codes through `status_code` and
renders them with `to_payload()`. An empty provider result is not an error;
it is returned as the "NO DATA" table.
"""


class KeywordExplorerError(Exception):
    """Base exception for all keyword explorer failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"error": self.message, "type": type(self).__name__}


class ValidationError(KeywordExplorerError):
    """
    Raised when caller input fails a precondition.

    Always raised before any provider call is made. `code` is a short
    machine-readable reason such as 'missing-input' or 'invalid-levels'.
    """

    status_code = 400

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code)
        self.code = code

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["code"] = self.code
        return payload


class ConfigurationError(KeywordExplorerError):
    """Raised when provider credentials are not configured."""

    status_code = 500


class ProviderError(KeywordExplorerError):
    """Raised when the BlueCitrus API answers with a non-success status or cannot be reached."""

    status_code = 502

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.status is not None:
            payload["provider_status"] = self.status
        return payload


class SchemaMismatchError(KeywordExplorerError):
    """Raised when provider records cannot be laid out as a consistent table."""

    status_code = 502
