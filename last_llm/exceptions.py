"""
last_llm custom exceptions.

All last_llm exceptions inherit from LastLLMError so callers can catch either
the specific exception or the base class.
"""


class LastLLMError(Exception):
    """Base exception for all last_llm errors."""
    pass


class ConfigurationError(LastLLMError):
    """Raised when settings are missing or invalid, or a provider is unknown."""
    pass


class ValidationError(LastLLMError):
    """
    Raised when structured data fails schema validation.

    Attributes:
        errors: Mapping of field name to the list of violations for that field.
    """

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None):
        self.errors = errors or {}
        super().__init__(message)


class ToolValidationError(ValidationError):
    """Raised when tool parameters are missing or violate an enum constraint."""
    pass


class ApiError(LastLLMError):
    """
    Raised when a vendor API interaction fails.

    Attributes:
        status: HTTP status code when known, otherwise None.
        message: Human-readable description, including vendor detail when
                 it could be extracted from the response body.
    """

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        self.status = status
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ApiError(status={self.status!r}, message={self.message!r})"
