"""Exceptions raised by the SSML engine and its collaborators."""


class SSMLError(Exception):
    """Base class for every recoverable error in this package."""


class InvalidSelectionError(SSMLError):
    """Selection is missing from the text or would break tag nesting."""


class NotFoundError(SSMLError):
    """No span with the requested tag name exists."""


class UnknownTagError(NotFoundError):
    """Tag name is not in the registry."""


class InvalidAttributeError(SSMLError, ValueError):
    """Attribute is not defined for the tag or its value is out of range."""


class InvalidNameError(SSMLError, ValueError):
    """Speaker name is empty or whitespace-only."""


class MalformedMarkupError(SSMLError):
    """Structured SSML document could not be parsed."""


class SynthesisError(SSMLError):
    """Speech synthesis request failed.

    ``status_code`` carries the provider's HTTP status when there was one.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
