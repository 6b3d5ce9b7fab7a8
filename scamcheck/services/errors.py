class AnalysisError(Exception):
    """Base class for failures that abort an analysis request."""


class ConfigurationError(AnalysisError):
    """A required setting (e.g. the Gemini API key) is missing."""


class GatewayError(AnalysisError):
    """The model call itself failed (network, quota, blocked request...)."""


class InvalidResponseError(AnalysisError):
    """The model reply could not be parsed as JSON, even after brace extraction."""

    def __init__(self, raw: str, message: str = "Invalid AI response (not JSON)") -> None:
        super().__init__(message)
        self.raw = raw


class ReportValidationError(AnalysisError):
    """The normalized reply does not match the report schema (strict mode only)."""
