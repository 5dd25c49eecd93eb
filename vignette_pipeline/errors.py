"""Exception types raised by the vignette pipeline."""


class VignettePipelineError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(VignettePipelineError):
    """Raised when required configuration (e.g. the API key) is missing."""


class ServiceError(VignettePipelineError):
    """Raised when the text-generation service returns a non-success response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseParseError(VignettePipelineError):
    """
    Raised when a service response cannot be decoded into the expected JSON.

    Args:
        message (str): Human-readable reason.
        raw_text (str): Untouched response text, kept for diagnosis.
    """

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class ResponseWrapperError(ResponseParseError):
    """The markdown code fence around the payload is unbalanced."""


class ResponseJSONError(ResponseParseError):
    """The content inside the wrapper is not valid JSON."""


class ResponseSchemaError(ResponseParseError):
    """The JSON is valid but does not have the expected shape."""
